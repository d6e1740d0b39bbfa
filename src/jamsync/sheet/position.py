"""Convert between word indices and beat positions.

A beat position ``b`` places a chord along a line as a fraction of the
line's word span: ``b = w / max(n - 1, 1)`` for word index ``w`` in a line
of ``n`` words. The conversion back rounds and clamps, so it is exact only
while the word count is unchanged.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class WordChord:
    """A chord attached to a word by index (editor-side representation)."""

    word_index: int
    chord: str


def split_words(text: str) -> list[str]:
    """Split lyric text on runs of whitespace, dropping empty tokens."""
    return text.split()


def _span(word_count: int) -> int:
    return max(word_count - 1, 1)


def to_beat_position(text: str, word_index: int) -> float:
    """Return the beat position of ``word_index`` within ``text``.

    Lines with fewer than two words always map to 0.
    """
    n = len(split_words(text))
    if n < 2:
        return 0.0
    return word_index / _span(n)


def to_word_index(text: str, beat_position: float) -> int:
    """Return the word index nearest to ``beat_position``, clamped to the line."""
    n = len(split_words(text))
    if n == 0:
        return 0
    index = math.floor(beat_position * _span(n) + 0.5)  # half-up, not banker's
    return min(max(index, 0), n - 1)


def clamp_chords(text: str, chords: list[WordChord]) -> list[WordChord]:
    """Clamp chord word indices to ``text`` and drop collisions.

    Used when a line is edited: chords beyond the new last word move onto
    it, and when several chords collapse onto one index the first one
    encountered is kept.
    """
    max_index = max(len(split_words(text)) - 1, 0)
    seen: set[int] = set()
    result: list[WordChord] = []
    for c in chords:
        index = min(max(c.word_index, 0), max_index)
        if index in seen:
            continue
        seen.add(index)
        result.append(WordChord(word_index=index, chord=c.chord))
    return result


def set_chord(chords: list[WordChord], word_index: int, chord: str) -> list[WordChord]:
    """Return ``chords`` with the chord on ``word_index`` replaced.

    An empty (or whitespace-only) ``chord`` clears the word.
    """
    result = [c for c in chords if c.word_index != word_index]
    chord = chord.strip()
    if chord:
        result.append(WordChord(word_index=word_index, chord=chord))
    return result
