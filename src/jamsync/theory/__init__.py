"""Music theory helpers."""

from jamsync.theory.transpose import (
    ChordRole,
    chord_role,
    is_valid_chord,
    parse_chord,
    transpose,
    transpose_key,
)

__all__ = [
    "ChordRole",
    "chord_role",
    "is_valid_chord",
    "parse_chord",
    "transpose",
    "transpose_key",
]
