"""Song sheet data model — songs, sections, lyric lines and anchored chords.

Chords are anchored to lyric words through a continuous beat position
rather than a word index, so a sheet survives whitespace-only re-renders
and imports from sources that segment words differently:

- Song owns an ordered list of Sections
- Section owns an ordered list of Lines
- Line owns an unordered list of ChordBeats
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field


def new_id() -> str:
    """Return a fresh row identifier."""
    return uuid.uuid4().hex


@dataclass
class ChordBeat:
    """A chord symbol placed along a lyric line.

    Attributes:
        chord: Free-form chord symbol (e.g. "Dsus4", "F#m7").
        beat_position: Horizontal placement across the line, nominally in
            [0, 1]. Derived from a word index when authored and not
            re-derived when the line text changes.
    """

    chord: str
    beat_position: float = 0.0
    id: str = field(default_factory=new_id)


@dataclass
class Line:
    """A single lyric line.

    Attributes:
        text: Raw lyric text. Words are derived by whitespace splitting.
        order: Position within the owning section.
        start_time: Seconds from the start of the track, if known.
        chords: Chords anchored to this line (unordered).
    """

    text: str
    order: int = 0
    start_time: float | None = None
    chords: list[ChordBeat] = field(default_factory=list)
    id: str = field(default_factory=new_id)


@dataclass
class Section:
    """A named block of lines (e.g. "Chorus", "Part 2")."""

    name: str
    order: int = 0
    lines: list[Line] = field(default_factory=list)
    id: str = field(default_factory=new_id)


@dataclass
class Song:
    """A song and its sheet.

    Attributes:
        title: Song title.
        artist: Performing artist.
        genre: Primary genre.
        key: Musical key as written (e.g. "Am", "F#").
        bpm: Tempo in beats per minute (0 when unknown).
        duration_ms: Track duration in milliseconds, if known.
        artwork_url: Cover art URL from the track search.
        preview_url: Audio preview URL from the track search.
        itunes_track_id: External track id, used to dedup re-imports.
        songsterr_id: External tablature id the chords came from.
        sections: Ordered sections of the sheet.
    """

    title: str
    artist: str = ""
    genre: str = ""
    key: str = ""
    bpm: int = 0
    duration_ms: int | None = None
    artwork_url: str | None = None
    preview_url: str | None = None
    itunes_track_id: int | None = None
    songsterr_id: int | None = None
    sections: list[Section] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    @property
    def line_count(self) -> int:
        """Total number of lines across all sections."""
        return sum(len(s.lines) for s in self.sections)

    def iter_lines(self):
        """Yield every line in global (section, then line) order."""
        for section in self.sections:
            yield from section.lines
