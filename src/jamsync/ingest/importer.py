"""Builds a song sheet from track metadata plus the lyric and tab feeds.

Pipeline: dedup on track id -> create song -> fetch lyrics and search
tablature concurrently -> fetch the tablature revision -> merge chords
onto lyric lines by global line index -> store.

Every feed is best-effort. A song with lyrics but no chords, or tempo and
key but no lyrics, is a valid result.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from jamsync.ingest.lyrics import LyricsClient, LyricsResult
from jamsync.ingest.tablature import TablatureClient, TablatureData
from jamsync.ingest.tracks import TrackMetadata
from jamsync.sheet.models import ChordBeat, Line, Section, Song
from jamsync.sheet.repository import SongRepository

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of an import.

    Attributes:
        song: The stored song.
        created: False if the track had been imported before.
        has_lyrics: True if the lyric feed produced lines.
        has_chords: True if at least one chord landed on a line.
        synced: True if the lyric lines carry timestamps.
    """

    song: Song
    created: bool
    has_lyrics: bool = False
    has_chords: bool = False
    synced: bool = False


def build_sections(lyrics: LyricsResult, tablature: TablatureData | None) -> list[Section]:
    """Turn parsed lyrics into stored sections, attaching tablature chords.

    Measure ``i`` of the chord track lands on global lyric line ``i``; the
    raw beat offset is normalized into [0, 1) before it is stored.
    """
    sections: list[Section] = []
    global_idx = 0
    for s_idx, lyric_section in enumerate(lyrics.sections):
        lines: list[Line] = []
        for l_idx, lyric_line in enumerate(lyric_section.lines):
            chords: list[ChordBeat] = []
            if tablature is not None:
                chords = [
                    ChordBeat(chord=c.chord, beat_position=c.normalized_position())
                    for c in tablature.chords_for_line(global_idx)
                    if c.chord
                ]
            lines.append(
                Line(
                    text=lyric_line.text,
                    order=l_idx,
                    start_time=lyric_line.start_time,
                    chords=chords,
                )
            )
            global_idx += 1
        sections.append(Section(name=lyric_section.name, order=s_idx, lines=lines))
    return sections


class SongImporter:
    def __init__(
        self,
        repository: SongRepository,
        lyrics: LyricsClient,
        tablature: TablatureClient,
    ):
        self.repository = repository
        self.lyrics = lyrics
        self.tablature = tablature

    async def _fetch_tablature(self, artist: str, title: str) -> TablatureData | None:
        song_id = await self.tablature.search(artist, title)
        if song_id is None:
            return None
        return await self.tablature.fetch(song_id)

    async def import_track(self, track: TrackMetadata) -> ImportResult:
        """Import ``track``, or return the song already imported from it."""
        existing = self.repository.find_by_itunes_id(track.track_id)
        if existing is not None:
            logger.debug("Track %d already imported as %s", track.track_id, existing.id)
            return ImportResult(song=existing, created=False)

        song = self.repository.create(
            title=track.track_name,
            artist=track.artist_name,
            genre=track.primary_genre_name,
            artwork_url=track.artwork_url or None,
            preview_url=track.preview_url or None,
            itunes_track_id=track.track_id,
            duration_ms=track.duration_ms,
        )

        lyrics, tablature = await asyncio.gather(
            self.lyrics.fetch(
                track.track_name,
                track.artist_name,
                album=track.collection_name,
                duration_ms=track.duration_ms,
            ),
            self._fetch_tablature(track.artist_name, track.track_name),
        )

        if tablature is not None:
            song.bpm = tablature.bpm or 0
            song.key = tablature.key or ""
            song.songsterr_id = tablature.songsterr_id

        result = ImportResult(song=song, created=True)
        if lyrics is not None:
            self.repository.replace_sections(song.id, build_sections(lyrics, tablature))
            result.has_lyrics = True
            result.synced = lyrics.synced
            result.has_chords = any(line.chords for line in song.iter_lines())

        logger.info(
            "Imported %s - %s: lyrics=%s chords=%s bpm=%d key=%r",
            song.artist, song.title, result.has_lyrics, result.has_chords, song.bpm, song.key,
        )
        return result
