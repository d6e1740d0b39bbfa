"""Sheet serializer — JSON round-trips and the editor's word-index boundary.

Stored sheets anchor chords by beat position. The editor works with word
indices instead; conversion between the two happens here, when a sheet is
handed to or received from the editor.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from jamsync.sheet.models import ChordBeat, Line, Section, Song
from jamsync.sheet.position import (
    WordChord,
    clamp_chords,
    to_beat_position,
    to_word_index,
)

# ---------------------------------------------------------------------------
# Editor payload
# ---------------------------------------------------------------------------


@dataclass
class EditorLine:
    text: str
    timestamp: float | None = None
    chords: list[WordChord] = field(default_factory=list)


@dataclass
class EditorSection:
    name: str
    lines: list[EditorLine] = field(default_factory=list)


def line_to_editor(line: Line) -> EditorLine:
    """Convert a stored line to word-index chords.

    When several chords round onto the same word the first one wins.
    """
    chords = [
        WordChord(word_index=to_word_index(line.text, c.beat_position), chord=c.chord)
        for c in line.chords
    ]
    return EditorLine(
        text=line.text,
        timestamp=line.start_time,
        chords=clamp_chords(line.text, chords),
    )


def sheet_to_editor(song: Song) -> list[EditorSection]:
    """Return the song's sheet in editor form."""
    return [
        EditorSection(name=s.name, lines=[line_to_editor(ln) for ln in s.lines])
        for s in song.sections
    ]


def sections_from_editor(payload: list[EditorSection]) -> list[Section]:
    """Build fresh stored sections from an editor payload.

    Orders are re-enumerated from 0, every row gets a new id, and chords
    with a blank symbol are skipped.
    """
    sections: list[Section] = []
    for s_idx, sec in enumerate(payload):
        lines: list[Line] = []
        for l_idx, ln in enumerate(sec.lines):
            chords = [
                ChordBeat(
                    chord=c.chord,
                    beat_position=to_beat_position(ln.text, c.word_index),
                )
                for c in ln.chords
                if c.chord.strip()
            ]
            lines.append(
                Line(text=ln.text, order=l_idx, start_time=ln.timestamp, chords=chords)
            )
        sections.append(Section(name=sec.name, order=s_idx, lines=lines))
    return sections


def distribute_timestamps(payload: list[EditorSection], duration_s: float) -> None:
    """Spread line timestamps evenly over ``duration_s`` (whole seconds), in place."""
    if duration_s <= 0:
        raise ValueError(f"Duration must be positive, got {duration_s}")
    total = sum(len(s.lines) for s in payload)
    idx = 0
    for sec in payload:
        for ln in sec.lines:
            ln.timestamp = float(round(idx / total * duration_s))
            idx += 1


def editor_to_dict(payload: list[EditorSection]) -> dict:
    """Convert an editor payload to its JSON wire shape."""
    return {
        "sections": [
            {
                "name": s.name,
                "lines": [
                    {
                        "text": ln.text,
                        "timestamp": ln.timestamp,
                        "chords": [
                            {"wordIndex": c.word_index, "chord": c.chord}
                            for c in ln.chords
                        ],
                    }
                    for ln in s.lines
                ],
            }
            for s in payload
        ]
    }


def editor_from_dict(d: dict) -> list[EditorSection]:
    """Parse the JSON wire shape of an editor payload.

    Raises:
        ValueError: If a chord's word index is negative.
        KeyError: If a required field is missing.
    """
    sections: list[EditorSection] = []
    for s in d["sections"]:
        lines: list[EditorLine] = []
        for ln in s["lines"]:
            chords: list[WordChord] = []
            for c in ln.get("chords", []):
                word_index = int(c["wordIndex"])
                if word_index < 0:
                    raise ValueError(f"wordIndex must be non-negative, got {word_index}")
                chords.append(WordChord(word_index=word_index, chord=c["chord"]))
            lines.append(
                EditorLine(text=ln["text"], timestamp=ln.get("timestamp"), chords=chords)
            )
        sections.append(EditorSection(name=s["name"], lines=lines))
    return sections


# ---------------------------------------------------------------------------
# Stored model
# ---------------------------------------------------------------------------


def _chord_to_dict(chord: ChordBeat) -> dict:
    return {
        "id": chord.id,
        "chord": chord.chord,
        "beat_position": chord.beat_position,
    }


def _chord_from_dict(d: dict) -> ChordBeat:
    return ChordBeat(chord=d["chord"], beat_position=d["beat_position"], id=d["id"])


def _line_to_dict(line: Line) -> dict:
    return {
        "id": line.id,
        "order": line.order,
        "text": line.text,
        "start_time": line.start_time,
        "chords": [_chord_to_dict(c) for c in line.chords],
    }


def _line_from_dict(d: dict) -> Line:
    return Line(
        id=d["id"],
        order=d["order"],
        text=d["text"],
        start_time=d.get("start_time"),
        chords=[_chord_from_dict(c) for c in d.get("chords", [])],
    )


def _section_to_dict(section: Section) -> dict:
    return {
        "id": section.id,
        "name": section.name,
        "order": section.order,
        "lines": [_line_to_dict(ln) for ln in section.lines],
    }


def _section_from_dict(d: dict) -> Section:
    return Section(
        id=d["id"],
        name=d["name"],
        order=d["order"],
        lines=[_line_from_dict(ln) for ln in d["lines"]],
    )


def song_to_dict(song: Song) -> dict:
    """Convert a Song to a JSON-serializable dict."""
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
        "sections": [_section_to_dict(s) for s in song.sections],
    }


def song_from_dict(d: dict) -> Song:
    """Reconstruct a Song from a dict (parsed JSON)."""
    return Song(
        id=d["id"],
        title=d["title"],
        artist=d.get("artist", ""),
        genre=d.get("genre", ""),
        key=d.get("key", ""),
        bpm=d.get("bpm", 0),
        duration_ms=d.get("duration_ms"),
        artwork_url=d.get("artwork_url"),
        preview_url=d.get("preview_url"),
        itunes_track_id=d.get("itunes_track_id"),
        songsterr_id=d.get("songsterr_id"),
        sections=[_section_from_dict(s) for s in d.get("sections", [])],
    )


def save_song(song: Song, path: str | Path) -> None:
    """Save a song and its sheet to a JSON file.

    Args:
        song: The Song to save.
        path: Output file path.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = song_to_dict(song)
    with open(path, "w") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_song(path: str | Path) -> Song:
    """Load a song from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Song file not found: {path}")
    with open(path) as f:
        data = json.load(f)
    return song_from_dict(data)
