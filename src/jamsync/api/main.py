"""JamSync — FastAPI application serving the song sheet API and live jam sessions."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jamsync import __version__
from jamsync.api.routes import health, sessions, songs, tracks
from jamsync.config import Settings, get_settings
from jamsync.ingest.importer import SongImporter
from jamsync.ingest.lyrics import LyricsClient
from jamsync.ingest.tablature import TablatureClient
from jamsync.ingest.tracks import TrackSearchClient
from jamsync.session.hub import SessionHub
from jamsync.session.store import SessionStore
from jamsync.sheet.repository import SongRepository


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the stores and the shared HTTP client for the feeds."""
    settings: Settings = app.state.settings
    app.state.session_store = SessionStore(default_bpm=settings.default_bpm)
    app.state.session_hub = SessionHub(app.state.session_store)
    app.state.song_repository = SongRepository()

    async with httpx.AsyncClient(transport=app.state.transport) as client:
        lyrics = LyricsClient(client, settings)
        tablature = TablatureClient(client, settings)
        app.state.track_search = TrackSearchClient(client, settings)
        app.state.song_importer = SongImporter(
            app.state.song_repository, lyrics, tablature,
        )
        yield


def create_app(
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    ``transport`` replaces the network for the lyric, tablature and track
    feeds; tests pass an ``httpx.MockTransport``.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title="JamSync",
        description="Song sheets with chords over lyrics, synced live across a band",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.transport = transport

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(songs.router, prefix="/api/v1", tags=["songs"])
    app.include_router(tracks.router, prefix="/api/v1", tags=["tracks"])
    app.include_router(sessions.router, prefix="/api/v1", tags=["sessions"])

    return app


app = create_app()
