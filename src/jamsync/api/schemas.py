"""Pydantic models for API request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Editor and session payloads use camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Songs
# ---------------------------------------------------------------------------


class ChordBeatOut(BaseModel):
    id: str
    chord: str
    beat_position: float


class LineOut(BaseModel):
    id: str
    order: int
    text: str
    start_time: float | None
    chords: list[ChordBeatOut]


class SectionOut(BaseModel):
    id: str
    name: str
    order: int
    lines: list[LineOut]


class SongSummaryOut(BaseModel):
    id: str
    title: str
    artist: str
    genre: str
    key: str
    bpm: int
    duration_ms: int | None = None
    artwork_url: str | None = None
    preview_url: str | None = None
    itunes_track_id: int | None = None
    songsterr_id: int | None = None


class SongOut(SongSummaryOut):
    sections: list[SectionOut]


class SongCreate(BaseModel):
    title: str = Field(min_length=1)
    artist: str = ""
    genre: str = ""
    key: str = ""
    bpm: int = Field(0, ge=0)


class SongUpdate(BaseModel):
    title: str | None = None
    artist: str | None = None
    genre: str | None = None
    key: str | None = None
    bpm: int | None = Field(None, ge=0)
    duration_ms: int | None = Field(None, ge=0)


# ---------------------------------------------------------------------------
# Sheet editor boundary (word indices)
# ---------------------------------------------------------------------------


class SheetChord(_CamelModel):
    word_index: int = Field(ge=0)
    chord: str


class SheetLine(_CamelModel):
    text: str
    timestamp: float | None = None
    chords: list[SheetChord] = []


class SheetSection(_CamelModel):
    name: str
    lines: list[SheetLine] = []


class Sheet(_CamelModel):
    sections: list[SheetSection]


class LyricsUpdate(_CamelModel):
    lyrics_text: str = ""


# ---------------------------------------------------------------------------
# Render preview
# ---------------------------------------------------------------------------


class RenderedWordOut(BaseModel):
    word: str
    chord: str | None
    role: str | None


class RenderedLineOut(BaseModel):
    index: int
    section_name: str
    is_first_in_section: bool
    start_time: float | None
    font_size: int
    words: list[RenderedWordOut]


class RenderOut(BaseModel):
    song_id: str
    key: str
    semitones: int
    lines: list[RenderedLineOut]


# ---------------------------------------------------------------------------
# Tracks and import
# ---------------------------------------------------------------------------


class TrackOut(BaseModel):
    track_id: int
    track_name: str
    artist_name: str
    primary_genre_name: str = ""
    artwork_url: str = ""
    preview_url: str | None = None
    duration_ms: int | None = None
    collection_name: str | None = None


class ImportRequest(TrackOut):
    """Track metadata to import, as returned by /tracks/search."""


class ImportResponse(BaseModel):
    song: SongOut
    created: bool
    has_lyrics: bool
    has_chords: bool
    synced: bool


# ---------------------------------------------------------------------------
# Sessions and health
# ---------------------------------------------------------------------------


class SessionStateOut(_CamelModel):
    current_line_index: int
    semitones: int
    bpm: int
    members: list[str]


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    active_sessions: int
