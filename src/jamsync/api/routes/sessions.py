"""Live session endpoints: state snapshot and the /ws/jam socket."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, WebSocket, WebSocketDisconnect

from jamsync.api.schemas import SessionStateOut
from jamsync.session.hub import SessionHub

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/sessions/{session_id}/state", response_model=SessionStateOut)
async def get_session_state(request: Request, session_id: str) -> SessionStateOut:
    state = request.app.state.session_store.get(session_id)
    if state is None:
        raise HTTPException(404, f"Session not found: {session_id}")
    return SessionStateOut(
        current_line_index=state.current_line_index,
        semitones=state.semitones,
        bpm=state.bpm,
        members=state.members,
    )


@router.websocket("/ws/jam")
async def jam_socket(websocket: WebSocket) -> None:
    """One participant's connection.

    Frames are JSON objects tagged by ``event``. The hub validates and
    applies them; the socket only pumps frames until the peer goes away.
    """
    hub: SessionHub = websocket.app.state.session_hub
    await websocket.accept()
    connection_id = hub.connect(websocket)
    try:
        while True:
            raw = await websocket.receive_text()
            await hub.receive(connection_id, raw)
    except WebSocketDisconnect:
        logger.debug("Socket closed by peer: %s", connection_id)
    finally:
        await hub.disconnect(connection_id)
