"""Chord transposition with sharp spelling."""

from __future__ import annotations

import re
from enum import Enum

# Western note names in chromatic order (canonical sharp spelling)
_NOTES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Flat spellings accepted on input
_ENHARMONIC = {
    "Bb": "A#",
    "Eb": "D#",
    "Ab": "G#",
    "Db": "C#",
    "Gb": "F#",
}

_LETTERS = ["C", "D", "E", "F", "G", "A", "B"]

_ROOT_RE = re.compile(r"^([A-G][#b]?)(.*)$", re.DOTALL)

# Root + accidental + optional quality + optional slash bass
_CHORD_RE = re.compile(
    r"^[A-G][#b]?"
    r"(?:m(?:aj)?7?|maj7?|dim7?|aug7?|sus[24]?|add[29]|[2-9]|11|13|m[679]|m11|m13|5)?"
    r"(?:/[A-G][#b]?)?$"
)


class ChordRole(Enum):
    """Function of a chord relative to the song key, used for colouring."""

    TONIC = "tonic"
    SUBDOMINANT = "subdominant"
    DOMINANT = "dominant"
    OTHER = "other"


def parse_chord(symbol: str) -> tuple[str, str] | None:
    """Split a chord symbol into (root, suffix).

    The suffix is opaque: quality, extensions and any slash bass stay in it.
    Returns None if the symbol does not start with a note letter.
    """
    match = _ROOT_RE.match(symbol)
    if not match:
        return None
    return match.group(1), match.group(2)


def note_index(root: str) -> int | None:
    """Return the pitch class (0 = C) of a root spelling, or None."""
    root = _ENHARMONIC.get(root, root)
    try:
        return _NOTES.index(root)
    except ValueError:
        return None


def transpose(symbol: str, semitones: int) -> str:
    """Transpose a chord symbol by ``semitones``.

    Whole-octave shifts return the symbol untouched. Unparseable symbols and
    roots outside the accepted spellings (e.g. "Cb", "E#") are returned
    unchanged. Slash-chord bass notes are part of the suffix and are not
    transposed.

    Examples:
        >>> transpose("Am7", 3)
        'Cm7'
        >>> transpose("Bb", 1)
        'B'
        >>> transpose("C", -1)
        'B'
    """
    if semitones % 12 == 0:
        return symbol
    parsed = parse_chord(symbol)
    if parsed is None:
        return symbol
    root, suffix = parsed
    idx = note_index(root)
    if idx is None:
        return symbol
    return _NOTES[(idx + semitones) % 12] + suffix


def transpose_key(key: str, semitones: int) -> str:
    """Transpose a key name such as "Am" or "F#"; empty keys stay empty."""
    if not key:
        return key
    return transpose(key, semitones)


def is_valid_chord(symbol: str) -> bool:
    """Return True if ``symbol`` is a chord the sheet editor accepts.

    The empty string is valid: it clears a chord.
    """
    return symbol == "" or bool(_CHORD_RE.match(symbol))


def chord_role(chord: str, key: str) -> ChordRole:
    """Classify ``chord`` by the scale-letter distance of its root from ``key``.

    This is a colouring aid, not harmonic analysis: only letters are
    compared, so accidentals and chord quality are ignored. Distance 3 and
    distance 4 get separate roles (subdominant, dominant); every other
    distance, 6 included, is OTHER rather than a colour of its own.
    """
    chord_parsed = parse_chord(chord)
    key_parsed = parse_chord(key)
    if chord_parsed is None or key_parsed is None:
        return ChordRole.OTHER
    diff = (_LETTERS.index(chord_parsed[0][0]) - _LETTERS.index(key_parsed[0][0])) % 7
    if diff == 0:
        return ChordRole.TONIC
    if diff == 3:
        return ChordRole.SUBDOMINANT
    if diff == 4:
        return ChordRole.DOMINANT
    return ChordRole.OTHER
