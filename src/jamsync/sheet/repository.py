"""In-memory song repository.

Stands in for the relational store behind the sheet editor. Structural
edits are full replaces: every existing section (with its lines and
chords) is dropped and recreated with new ids. Two clients saving the same
song concurrently therefore clobber each other; the last save wins.
"""

from __future__ import annotations

import logging

from jamsync.exceptions import SongNotFoundError
from jamsync.sheet.models import Line, Section, Song
from jamsync.sheet.serializer import EditorSection, sections_from_editor

logger = logging.getLogger(__name__)

_META_FIELDS = ("title", "artist", "genre", "key", "bpm", "duration_ms")


class SongRepository:
    """Songs keyed by id, with an index on the external track id."""

    def __init__(self) -> None:
        self._songs: dict[str, Song] = {}

    def __len__(self) -> int:
        return len(self._songs)

    def add(self, song: Song) -> Song:
        self._songs[song.id] = song
        return song

    def create(
        self,
        title: str,
        artist: str = "",
        genre: str = "",
        key: str = "",
        bpm: int = 0,
        **extra,
    ) -> Song:
        """Create and store a song with no sheet."""
        song = Song(title=title, artist=artist, genre=genre, key=key, bpm=bpm, **extra)
        logger.info("Created song %s (%s - %s)", song.id, artist, title)
        return self.add(song)

    def get(self, song_id: str) -> Song:
        """Return a song by id.

        Raises:
            SongNotFoundError: If no song has this id.
        """
        try:
            return self._songs[song_id]
        except KeyError:
            raise SongNotFoundError(song_id) from None

    def find_by_itunes_id(self, track_id: int) -> Song | None:
        for song in self._songs.values():
            if song.itunes_track_id == track_id:
                return song
        return None

    def find(
        self,
        search: str | None = None,
        genre: str | None = None,
        key: str | None = None,
    ) -> list[Song]:
        """Return songs matching all given filters, ordered by title.

        ``search`` matches a substring of title or artist; ``genre`` and
        ``key`` must match exactly. All comparisons ignore case.
        """
        result = []
        for song in self._songs.values():
            if search:
                needle = search.lower()
                if needle not in song.title.lower() and needle not in song.artist.lower():
                    continue
            if genre and song.genre.lower() != genre.lower():
                continue
            if key and song.key.lower() != key.lower():
                continue
            result.append(song)
        return sorted(result, key=lambda s: s.title.lower())

    def update_meta(self, song_id: str, **changes) -> Song:
        """Update metadata fields; ``None`` values leave a field unchanged."""
        song = self.get(song_id)
        for name, value in changes.items():
            if name not in _META_FIELDS:
                raise ValueError(f"Unknown song field: {name}")
            if value is not None:
                setattr(song, name, value)
        return song

    def replace_sections(self, song_id: str, sections: list[Section]) -> Song:
        """Drop every section of the song and store ``sections`` in its place."""
        song = self.get(song_id)
        dropped = len(song.sections)
        song.sections = sections
        logger.debug(
            "Replaced %d sections of song %s with %d", dropped, song_id, len(sections),
        )
        return song

    def save_sections(self, song_id: str, payload: list[EditorSection]) -> Song:
        """Full-replace the sheet from an editor payload (word-index chords)."""
        return self.replace_sections(song_id, sections_from_editor(payload))

    def update_lyrics(self, song_id: str, lyrics_text: str) -> Song:
        """Full-replace the sheet with pasted plain lyrics.

        Every raw line (blank ones included) becomes a line of a single
        "Lyrics" section. Blank text leaves the song with no sections.
        """
        sections: list[Section] = []
        if lyrics_text.strip():
            lines = [
                Line(text=raw, order=idx)
                for idx, raw in enumerate(lyrics_text.split("\n"))
            ]
            sections.append(Section(name="Lyrics", order=0, lines=lines))
        return self.replace_sections(song_id, sections)
