"""GET /api/v1/tracks/search — look up tracks to import."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Query, Request

from jamsync.api.schemas import TrackOut

router = APIRouter()


@router.get("/tracks/search", response_model=list[TrackOut])
async def search_tracks(
    request: Request,
    q: str = Query("", description="Free-text song or artist query"),
    limit: int | None = Query(None, ge=1, le=50),
) -> list[TrackOut]:
    tracks = await request.app.state.track_search.search(q, limit=limit)
    return [TrackOut(**asdict(t)) for t in tracks]
