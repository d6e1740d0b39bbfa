"""Live jam sessions: in-memory state store, wire protocol and broadcast hub."""

from jamsync.session.hub import Connection, ParticipantStatus, SessionHub
from jamsync.session.protocol import (
    BpmChange,
    ConductorAdvance,
    JoinSession,
    ProtocolError,
    TransposeChange,
    parse_client_event,
)
from jamsync.session.store import SessionState, SessionStore

__all__ = [
    "BpmChange",
    "ConductorAdvance",
    "Connection",
    "JoinSession",
    "ParticipantStatus",
    "ProtocolError",
    "SessionHub",
    "SessionState",
    "SessionStore",
    "TransposeChange",
    "parse_client_event",
]
