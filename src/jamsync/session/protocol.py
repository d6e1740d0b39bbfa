"""Wire protocol for live sessions — one tagged JSON object per frame.

Client frames are validated against a discriminated union keyed on the
``event`` field; anything that does not match is rejected before it can
touch session state. Field names on the wire are camelCase.
"""

from __future__ import annotations

import json
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from jamsync.exceptions import JamSyncError


class ProtocolError(JamSyncError):
    """Raised when a client frame is not a valid protocol event."""


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Client -> server
# ---------------------------------------------------------------------------


class JoinSession(_WireModel):
    event: Literal["join_session"] = "join_session"
    session_id: str = Field(min_length=1)
    user_id: str = Field(min_length=1)


class ConductorAdvance(_WireModel):
    event: Literal["conductor_advance"] = "conductor_advance"
    session_id: str = Field(min_length=1)
    line_index: int  # not bounds-checked; renderers clamp


class TransposeChange(_WireModel):
    event: Literal["transpose_change"] = "transpose_change"
    session_id: str = Field(min_length=1)
    semitones: int


class BpmChange(_WireModel):
    event: Literal["bpm_change"] = "bpm_change"
    session_id: str = Field(min_length=1)
    bpm: int  # not range-checked; auto-advance rejects bpm <= 0


ClientEvent = Annotated[
    Union[JoinSession, ConductorAdvance, TransposeChange, BpmChange],
    Field(discriminator="event"),
]

_client_event_adapter: TypeAdapter[ClientEvent] = TypeAdapter(ClientEvent)


def parse_client_event(raw: str | bytes | dict) -> ClientEvent:
    """Validate a client frame.

    Raises:
        ProtocolError: If the frame is not JSON or matches no event schema.
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except ValueError as exc:  # JSONDecodeError or UnicodeDecodeError
            raise ProtocolError(f"Frame is not valid JSON: {exc}") from exc
    try:
        return _client_event_adapter.validate_python(raw)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in e['loc']) or 'frame'}: {e['msg']}"
            for e in exc.errors()
        )
        raise ProtocolError(f"Invalid event: {errors}") from exc


# ---------------------------------------------------------------------------
# Server -> client
# ---------------------------------------------------------------------------


class SessionStateEvent(_WireModel):
    event: Literal["session_state"] = "session_state"
    current_line_index: int
    semitones: int
    bpm: int
    members: list[str]


class LineChanged(_WireModel):
    event: Literal["line_changed"] = "line_changed"
    line_index: int


class MemberJoined(_WireModel):
    event: Literal["member_joined"] = "member_joined"
    user_id: str


class MemberLeft(_WireModel):
    event: Literal["member_left"] = "member_left"
    participant_id: str


class ErrorEvent(_WireModel):
    event: Literal["error"] = "error"
    message: str
