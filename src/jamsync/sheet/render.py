"""Render-time alignment — lay chords over words and time the auto-advance.

Stored chords carry beat positions; at display time each word gets a
nominal position and picks up the first chord within a tolerance window
of it. The window (``1 / max(n, 2)``) lets chords authored against a
slightly different word segmentation still land on a word.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from jamsync.sheet.models import ChordBeat, Line, Song
from jamsync.sheet.position import split_words
from jamsync.theory.transpose import ChordRole, chord_role, transpose

logger = logging.getLogger(__name__)

# Font size steps in px
FONT_SIZES = (14, 16, 18, 20, 24, 28)
DEFAULT_FONT_SIZE = 18

BEATS_PER_LINE = 4  # one 4/4 bar per line


@dataclass
class RenderedWord:
    """A word with the (already transposed) chord shown above it.

    ``chord`` is None for words without a chord; the view draws a
    fixed-height placeholder so every word sits on the same baseline.
    """

    word: str
    chord: str | None = None
    role: ChordRole | None = None


@dataclass
class RenderedLine:
    words: list[RenderedWord]
    font_size: int


@dataclass
class FlatLine:
    """A line addressed by its global index across sections."""

    line: Line
    section_name: str
    is_first_in_section: bool


def render_line(
    text: str,
    chords: list[ChordBeat],
    semitones: int = 0,
    key: str = "",
    font_size: int = DEFAULT_FONT_SIZE,
) -> RenderedLine:
    """Align ``chords`` to the words of ``text`` for display."""
    words = split_words(text)
    n = len(words)
    span = max(n - 1, 1)
    tolerance = 1 / max(n, 2)
    ordered = sorted(chords, key=lambda c: c.beat_position)
    shown_key = transpose(key, semitones) if key else ""

    rendered: list[RenderedWord] = []
    for w, word in enumerate(words):
        position = w / span
        match = next(
            (c for c in ordered if abs(c.beat_position - position) < tolerance),
            None,
        )
        if match is None:
            rendered.append(RenderedWord(word=word))
            continue
        chord = transpose(match.chord, semitones)
        role = chord_role(chord, shown_key) if shown_key else ChordRole.OTHER
        rendered.append(RenderedWord(word=word, chord=chord, role=role))

    return RenderedLine(words=rendered, font_size=font_size)


def flatten_lines(song: Song) -> list[FlatLine]:
    """List a song's lines in global order, as the session line index sees them."""
    result: list[FlatLine] = []
    for section in song.sections:
        for idx, line in enumerate(section.lines):
            result.append(
                FlatLine(line=line, section_name=section.name, is_first_in_section=idx == 0)
            )
    return result


def clamp_line_index(index: int, line_count: int) -> int:
    """Clamp a relayed line index to a song with ``line_count`` lines."""
    if line_count <= 0:
        return 0
    return min(max(index, 0), line_count - 1)


def step_font_size(current: int, step: int) -> int:
    """Move ``step`` positions along FONT_SIZES, stopping at either end."""
    try:
        idx = FONT_SIZES.index(current)
    except ValueError:
        idx = FONT_SIZES.index(DEFAULT_FONT_SIZE)
    idx = min(max(idx + step, 0), len(FONT_SIZES) - 1)
    return FONT_SIZES[idx]


def ms_per_line(bpm: int) -> float:
    """Milliseconds spent on each line when auto-advancing at ``bpm``."""
    if bpm <= 0:
        raise ValueError(f"BPM must be positive, got {bpm}")
    return (60_000 / bpm) * BEATS_PER_LINE


class AutoAdvance:
    """Advance the current line once per bar and emit ``conductor_advance``.

    Stops at the last line (it does not loop). ``emit`` receives the new
    line index and is expected to send it to the session.
    """

    def __init__(
        self,
        line_count: int,
        bpm: int,
        emit: Callable[[int], Awaitable[None]],
        start_index: int = 0,
    ):
        self.line_count = line_count
        self.bpm = bpm
        self.emit = emit
        self.current = clamp_line_index(start_index, line_count)

    @property
    def interval_s(self) -> float:
        return ms_per_line(self.bpm) / 1000

    @property
    def finished(self) -> bool:
        return self.current >= self.line_count - 1

    async def tick(self) -> bool:
        """Advance one line. Returns False once the last line is reached."""
        if self.finished:
            return False
        self.current += 1
        await self.emit(self.current)
        return True

    async def run(self) -> None:
        """Tick on a timer until the last line, then return."""
        logger.debug(
            "Auto-advance: %d lines at %d BPM (%.0f ms/line)",
            self.line_count, self.bpm, ms_per_line(self.bpm),
        )
        while not self.finished:
            await asyncio.sleep(self.interval_s)
            await self.tick()
