"""In-process state for each jam session.

State lives in process memory, keyed by session id, and is created on
first access. Nothing here authenticates or authorizes callers; the sync
hub decides who may mutate what. Every operation is synchronous so a
mutation can never interleave with another one on the event loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

DEFAULT_BPM = 80


@dataclass
class SessionState:
    """Live state of one session.

    Attributes:
        current_line_index: Global line index the conductor is on. Not
            validated against the song; renderers clamp it.
        semitones: Transposition applied on top of stored chords.
        bpm: Tempo driving auto-advance.
        connections: Connection id -> user id for every joined connection,
            in join order.
    """

    current_line_index: int = 0
    semitones: int = 0
    bpm: int = DEFAULT_BPM
    connections: dict[str, str] = field(default_factory=dict)

    @property
    def members(self) -> list[str]:
        """Distinct user ids of joined connections, in join order."""
        return list(dict.fromkeys(self.connections.values()))

    def snapshot(self) -> dict:
        """Wire representation sent in ``session_state`` events."""
        return {
            "currentLineIndex": self.current_line_index,
            "semitones": self.semitones,
            "bpm": self.bpm,
            "members": self.members,
        }


class SessionStore:
    """Single-owner in-process map of session id to SessionState."""

    def __init__(self, default_bpm: int = DEFAULT_BPM) -> None:
        self.default_bpm = default_bpm
        self._states: dict[str, SessionState] = {}

    def __len__(self) -> int:
        return len(self._states)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._states

    def get(self, session_id: str) -> SessionState | None:
        return self._states.get(session_id)

    def get_or_create(self, session_id: str) -> SessionState:
        state = self._states.get(session_id)
        if state is None:
            state = SessionState(bpm=self.default_bpm)
            self._states[session_id] = state
            logger.debug("Created state for session %s", session_id)
        return state

    def mutate(self, session_id: str, fn: Callable[[SessionState], None]) -> SessionState:
        """Apply ``fn`` to the session's state (created if needed) and return it."""
        state = self.get_or_create(session_id)
        fn(state)
        return state

    def add_member(self, session_id: str, connection_id: str, user_id: str) -> SessionState:
        def apply(state: SessionState) -> None:
            state.connections[connection_id] = user_id

        return self.mutate(session_id, apply)

    def remove_member(self, session_id: str, connection_id: str) -> SessionState | None:
        """Forget a connection. Unknown sessions are left uncreated."""
        state = self._states.get(session_id)
        if state is not None:
            state.connections.pop(connection_id, None)
        return state

    def set_line(self, session_id: str, line_index: int) -> SessionState:
        def apply(state: SessionState) -> None:
            state.current_line_index = line_index

        return self.mutate(session_id, apply)

    def set_transpose(self, session_id: str, semitones: int) -> SessionState:
        def apply(state: SessionState) -> None:
            state.semitones = semitones

        return self.mutate(session_id, apply)

    def set_bpm(self, session_id: str, bpm: int) -> SessionState:
        def apply(state: SessionState) -> None:
            state.bpm = bpm

        return self.mutate(session_id, apply)
