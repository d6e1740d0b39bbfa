"""Song sheet endpoints: metadata, editor sheet, lyrics paste, import and render."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request, Response

from jamsync.api.schemas import (
    ChordBeatOut,
    ImportRequest,
    ImportResponse,
    LineOut,
    LyricsUpdate,
    RenderedLineOut,
    RenderedWordOut,
    RenderOut,
    SectionOut,
    Sheet,
    SheetChord,
    SheetLine,
    SheetSection,
    SongCreate,
    SongOut,
    SongSummaryOut,
    SongUpdate,
)
from jamsync.exceptions import SongNotFoundError
from jamsync.ingest.tracks import TrackMetadata
from jamsync.sheet.models import Song
from jamsync.sheet.position import WordChord
from jamsync.sheet.render import FONT_SIZES, flatten_lines, render_line
from jamsync.sheet.repository import SongRepository
from jamsync.sheet.serializer import EditorLine, EditorSection, sheet_to_editor
from jamsync.theory.transpose import transpose_key

router = APIRouter()


def _repository(request: Request) -> SongRepository:
    return request.app.state.song_repository


def _get_song(request: Request, song_id: str) -> Song:
    try:
        return _repository(request).get(song_id)
    except SongNotFoundError as exc:
        raise HTTPException(404, str(exc)) from exc


def _summary_fields(song: Song) -> dict:
    return {
        "id": song.id,
        "title": song.title,
        "artist": song.artist,
        "genre": song.genre,
        "key": song.key,
        "bpm": song.bpm,
        "duration_ms": song.duration_ms,
        "artwork_url": song.artwork_url,
        "preview_url": song.preview_url,
        "itunes_track_id": song.itunes_track_id,
        "songsterr_id": song.songsterr_id,
    }


def song_out(song: Song) -> SongOut:
    return SongOut(
        **_summary_fields(song),
        sections=[
            SectionOut(
                id=s.id,
                name=s.name,
                order=s.order,
                lines=[
                    LineOut(
                        id=ln.id,
                        order=ln.order,
                        text=ln.text,
                        start_time=ln.start_time,
                        chords=[
                            ChordBeatOut(id=c.id, chord=c.chord, beat_position=c.beat_position)
                            for c in ln.chords
                        ],
                    )
                    for ln in s.lines
                ],
            )
            for s in song.sections
        ],
    )


@router.get("/songs", response_model=list[SongSummaryOut])
async def list_songs(
    request: Request,
    search: str | None = None,
    genre: str | None = None,
    key: str | None = None,
) -> list[SongSummaryOut]:
    songs = _repository(request).find(search=search, genre=genre, key=key)
    return [SongSummaryOut(**_summary_fields(s)) for s in songs]


@router.post("/songs", response_model=SongOut, status_code=201)
async def create_song(request: Request, body: SongCreate) -> SongOut:
    song = _repository(request).create(
        title=body.title, artist=body.artist, genre=body.genre, key=body.key, bpm=body.bpm,
    )
    return song_out(song)


@router.post("/songs/import", response_model=ImportResponse)
async def import_song(request: Request, response: Response, body: ImportRequest) -> ImportResponse:
    """Create a song from track metadata, enriched with lyrics and chords.

    Returns 201 for a new song and 200 when the track was imported before.
    Missing lyrics or chords are reported in the flags, never as errors.
    """
    track = TrackMetadata(**body.model_dump())
    result = await request.app.state.song_importer.import_track(track)
    response.status_code = 201 if result.created else 200
    return ImportResponse(
        song=song_out(result.song),
        created=result.created,
        has_lyrics=result.has_lyrics,
        has_chords=result.has_chords,
        synced=result.synced,
    )


@router.get("/songs/{song_id}", response_model=SongOut)
async def get_song(request: Request, song_id: str) -> SongOut:
    return song_out(_get_song(request, song_id))


@router.put("/songs/{song_id}", response_model=SongOut)
async def update_song(request: Request, song_id: str, body: SongUpdate) -> SongOut:
    _get_song(request, song_id)
    song = _repository(request).update_meta(song_id, **body.model_dump())
    return song_out(song)


@router.get("/songs/{song_id}/sheet", response_model=Sheet)
async def get_sheet(request: Request, song_id: str) -> Sheet:
    """Return the sheet with chords addressed by word index."""
    song = _get_song(request, song_id)
    return Sheet(
        sections=[
            SheetSection(
                name=s.name,
                lines=[
                    SheetLine(
                        text=ln.text,
                        timestamp=ln.timestamp,
                        chords=[
                            SheetChord(word_index=c.word_index, chord=c.chord)
                            for c in ln.chords
                        ],
                    )
                    for ln in s.lines
                ],
            )
            for s in sheet_to_editor(song)
        ]
    )


@router.put("/songs/{song_id}/sections", response_model=SongOut)
async def save_sections(request: Request, song_id: str, body: Sheet) -> SongOut:
    """Replace the whole sheet. Concurrent saves: the last one wins."""
    _get_song(request, song_id)
    payload = [
        EditorSection(
            name=s.name,
            lines=[
                EditorLine(
                    text=ln.text,
                    timestamp=ln.timestamp,
                    chords=[WordChord(word_index=c.word_index, chord=c.chord) for c in ln.chords],
                )
                for ln in s.lines
            ],
        )
        for s in body.sections
    ]
    song = _repository(request).save_sections(song_id, payload)
    return song_out(song)


@router.put("/songs/{song_id}/lyrics", response_model=SongOut)
async def update_lyrics(request: Request, song_id: str, body: LyricsUpdate) -> SongOut:
    _get_song(request, song_id)
    song = _repository(request).update_lyrics(song_id, body.lyrics_text)
    return song_out(song)


@router.get("/songs/{song_id}/render", response_model=RenderOut)
async def render_song(
    request: Request,
    song_id: str,
    semitones: int = 0,
    font_size: int = Query(18, description=f"One of {list(FONT_SIZES)}"),
) -> RenderOut:
    """Lay out every line with transposed chords above their words."""
    if font_size not in FONT_SIZES:
        raise HTTPException(400, f"Unsupported font size: {font_size}. Allowed: {list(FONT_SIZES)}")
    song = _get_song(request, song_id)
    lines = []
    for idx, flat in enumerate(flatten_lines(song)):
        rendered = render_line(
            flat.line.text, flat.line.chords, semitones=semitones, key=song.key,
            font_size=font_size,
        )
        lines.append(
            RenderedLineOut(
                index=idx,
                section_name=flat.section_name,
                is_first_in_section=flat.is_first_in_section,
                start_time=flat.line.start_time,
                font_size=rendered.font_size,
                words=[
                    RenderedWordOut(
                        word=w.word,
                        chord=w.chord,
                        role=w.role.value if w.role is not None else None,
                    )
                    for w in rendered.words
                ],
            )
        )
    return RenderOut(
        song_id=song.id,
        key=transpose_key(song.key, semitones),
        semitones=semitones,
        lines=lines,
    )
