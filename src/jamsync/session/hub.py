"""Session hub — relays conductor actions through the store to every participant.

Each connected participant moves through
``disconnected -> connected -> joined(session) -> disconnected``. Joined
connections form a broadcast group per session.

There is no authority model: any participant may advance the line, change
the transposition or the tempo, and whichever event is processed last
wins. Within a group, mutate-and-broadcast runs under a per-session lock,
so every participant sees events in the order the hub processed them.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from enum import Enum
from typing import Protocol

from fastapi import WebSocketDisconnect

from jamsync.session.protocol import (
    BpmChange,
    ClientEvent,
    ConductorAdvance,
    ErrorEvent,
    JoinSession,
    LineChanged,
    MemberJoined,
    MemberLeft,
    ProtocolError,
    SessionStateEvent,
    TransposeChange,
    parse_client_event,
)
from jamsync.session.store import SessionState, SessionStore

logger = logging.getLogger(__name__)


class Connection(Protocol):
    """Anything that can push a JSON frame to one participant."""

    async def send_json(self, data: dict) -> None: ...


class ParticipantStatus(Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    JOINED = "joined"


def state_event(state: SessionState) -> dict:
    return SessionStateEvent(
        current_line_index=state.current_line_index,
        semitones=state.semitones,
        bpm=state.bpm,
        members=state.members,
    ).to_wire()


class SessionHub:
    def __init__(self, store: SessionStore) -> None:
        self.store = store
        self._connections: dict[str, Connection] = {}
        # session id -> connection ids, in join order
        self._groups: dict[str, dict[str, None]] = {}
        # connection id -> session ids it joined
        self._joined: dict[str, set[str]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    # -- connection lifecycle ------------------------------------------------

    def connect(self, connection: Connection) -> str:
        """Register a new connection and return its participant id."""
        connection_id = uuid.uuid4().hex
        self._connections[connection_id] = connection
        self._joined[connection_id] = set()
        logger.info("Connected: %s", connection_id)
        return connection_id

    async def disconnect(self, connection_id: str) -> None:
        """Tear down a connection and tell its groups it left."""
        sessions = self._joined.pop(connection_id, set())
        self._connections.pop(connection_id, None)
        for session_id in sorted(sessions):
            async with self._lock(session_id):
                self._groups.get(session_id, {}).pop(connection_id, None)
                self.store.remove_member(session_id, connection_id)
                await self._broadcast(
                    session_id, MemberLeft(participant_id=connection_id).to_wire(),
                )
        logger.info("Disconnected: %s", connection_id)

    def status(self, connection_id: str) -> ParticipantStatus:
        if connection_id not in self._connections:
            return ParticipantStatus.DISCONNECTED
        if self._joined.get(connection_id):
            return ParticipantStatus.JOINED
        return ParticipantStatus.CONNECTED

    def group(self, session_id: str) -> list[str]:
        """Connection ids joined to ``session_id``, in join order."""
        return list(self._groups.get(session_id, {}))

    # -- inbound events ------------------------------------------------------

    async def receive(self, connection_id: str, raw: str | bytes | dict) -> None:
        """Validate one client frame and apply it.

        Invalid frames are answered with an ``error`` event to the sender
        only and change nothing.
        """
        try:
            event = parse_client_event(raw)
        except ProtocolError as exc:
            logger.warning("Rejected frame from %s: %s", connection_id, exc)
            await self._send(connection_id, ErrorEvent(message=str(exc)).to_wire())
            return
        await self.dispatch(connection_id, event)

    async def dispatch(self, connection_id: str, event: ClientEvent) -> None:
        if isinstance(event, JoinSession):
            await self.join(connection_id, event)
        elif isinstance(event, ConductorAdvance):
            await self.advance_line(event)
        elif isinstance(event, TransposeChange):
            await self.set_transpose(event)
        elif isinstance(event, BpmChange):
            await self.set_bpm(event)

    async def join(self, connection_id: str, event: JoinSession) -> None:
        session_id = event.session_id
        async with self._lock(session_id):
            self._groups.setdefault(session_id, {})[connection_id] = None
            self._joined.setdefault(connection_id, set()).add(session_id)
            state = self.store.add_member(session_id, connection_id, event.user_id)
            await self._send(connection_id, state_event(state))
            await self._broadcast(
                session_id,
                MemberJoined(user_id=event.user_id).to_wire(),
                exclude=connection_id,
            )
        logger.info("User %s joined session %s", event.user_id, session_id)

    async def advance_line(self, event: ConductorAdvance) -> None:
        async with self._lock(event.session_id):
            self.store.set_line(event.session_id, event.line_index)
            await self._broadcast(
                event.session_id, LineChanged(line_index=event.line_index).to_wire(),
            )

    async def set_transpose(self, event: TransposeChange) -> None:
        async with self._lock(event.session_id):
            state = self.store.set_transpose(event.session_id, event.semitones)
            await self._broadcast(event.session_id, state_event(state))

    async def set_bpm(self, event: BpmChange) -> None:
        async with self._lock(event.session_id):
            state = self.store.set_bpm(event.session_id, event.bpm)
            await self._broadcast(event.session_id, state_event(state))

    # -- outbound ------------------------------------------------------------

    def _lock(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock

    async def _send(self, connection_id: str, payload: dict) -> None:
        connection = self._connections.get(connection_id)
        if connection is None:
            return
        try:
            await connection.send_json(payload)
        except (WebSocketDisconnect, RuntimeError, ConnectionError) as exc:
            logger.warning("Send to %s failed: %s", connection_id, exc)

    async def _broadcast(
        self, session_id: str, payload: dict, exclude: str | None = None,
    ) -> None:
        for connection_id in list(self._groups.get(session_id, {})):
            if connection_id != exclude:
                await self._send(connection_id, payload)
