"""Tablature ingestion — tempo, key and chord events from measure/beat data.

Revision payloads look like::

    {"tempo": 120,
     "tracks": [{"measures": [{"keySignature": {"key": 1},
                               "beats": [{"value": 4,
                                          "effects": {"chord": {"name": "G"}}}]}]}]}

Chords are mapped onto lyric lines by a deliberate approximation: measure
``i`` is treated as lyric line ``i``. Within a measure, chord beats carry a
running counter of beat values (``beat_offset``), which is not on the
[0, 1] scale the sheet uses; ``TabChord.normalized_position`` converts it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from jamsync.exceptions import FetchError
from jamsync.ingest.feed import FeedClient

logger = logging.getLogger(__name__)

# Major key for a signature of N sharps / N flats
_SHARPS = ["C", "G", "D", "A", "E", "B", "F#", "C#"]
_FLATS = ["C", "F", "Bb", "Eb", "Ab", "Db", "Gb", "Cb"]


@dataclass
class TabChord:
    """A chord annotation found in the chord track.

    Attributes:
        chord: Chord name as annotated.
        line_index: Measure index, used as the lyric line index.
        beat_offset: Sum of beat values preceding this beat in its measure.
        measure_length: Sum of all beat values in the measure.
    """

    chord: str
    line_index: int
    beat_offset: float
    measure_length: float

    def normalized_position(self) -> float:
        """Beat offset scaled into [0, 1) by the measure length."""
        if self.measure_length <= 0:
            return 0.0
        return self.beat_offset / self.measure_length


@dataclass
class TablatureData:
    bpm: int
    key: str
    songsterr_id: int | None = None
    chords: list[TabChord] = field(default_factory=list)

    def chords_for_line(self, line_index: int) -> list[TabChord]:
        return [c for c in self.chords if c.line_index == line_index]


def key_from_signature(sharps: int) -> str:
    """Map a signed sharp count (negative = flats) to a major key name.

    Counts beyond seven sharps or flats fall back to "C".
    """
    table = _SHARPS if sharps >= 0 else _FLATS
    idx = abs(sharps)
    if idx >= len(table):
        return "C"
    return table[idx]


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _measures(track) -> list[dict]:
    if not isinstance(track, dict):
        return []
    return [m for m in _as_list(track.get("measures")) if isinstance(m, dict)]


def _beats(measure: dict) -> list[dict]:
    return [b for b in _as_list(measure.get("beats")) if isinstance(b, dict)]


def _chord_name(beat: dict) -> str:
    effects = beat.get("effects")
    if not isinstance(effects, dict):
        return ""
    chord = effects.get("chord")
    if not isinstance(chord, dict):
        return ""
    name = chord.get("name")
    return name.strip() if isinstance(name, str) else ""


def _finite_number(value) -> bool:
    """True for int/float values other than bool, NaN and infinities."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _beat_value(beat: dict) -> float:
    value = beat.get("value")
    return value if _finite_number(value) else 1


def _signature(measure: dict) -> int | None:
    sig = measure.get("keySignature")
    if not isinstance(sig, dict):
        return None
    key = sig.get("key")
    if isinstance(key, bool) or not isinstance(key, int):
        return None
    return key


def find_key(tracks: list) -> str:
    """Key of the first track whose first measure declares a signature, or ""."""
    for track in tracks:
        measures = _measures(track)
        if not measures:
            continue
        sharps = _signature(measures[0])
        if sharps is not None:
            return key_from_signature(sharps)
    return ""


def find_chord_track(tracks: list) -> list[dict] | None:
    """Measures of the first track with at least one chord annotation."""
    for track in tracks:
        measures = _measures(track)
        if any(_chord_name(b) for m in measures for b in _beats(m)):
            return measures
    return None


def extract_chords(measures: list[dict]) -> list[TabChord]:
    chords: list[TabChord] = []
    for measure_idx, measure in enumerate(measures):
        beats = _beats(measure)
        measure_length = sum(_beat_value(b) for b in beats)
        position = 0
        for beat in beats:
            name = _chord_name(beat)
            if name:
                chords.append(
                    TabChord(
                        chord=name,
                        line_index=measure_idx,
                        beat_offset=position,
                        measure_length=measure_length,
                    )
                )
            position += _beat_value(beat)
    return chords


def parse_revision(data: dict, songsterr_id: int | None = None) -> TablatureData:
    """Extract tempo, key and chord events from a revision payload."""
    tempo = data.get("tempo")
    bpm = int(tempo) if _finite_number(tempo) else 0
    tracks = _as_list(data.get("tracks"))

    measures = find_chord_track(tracks)
    chords = extract_chords(measures) if measures is not None else []

    return TablatureData(
        bpm=bpm,
        key=find_key(tracks),
        songsterr_id=songsterr_id,
        chords=chords,
    )


class TablatureClient(FeedClient):
    """Client for a Songsterr-style tablature feed."""

    async def search(self, artist: str, title: str) -> int | None:
        """Return the id of the best matching song, or None."""
        url = f"{self.settings.tablature_base_url}/songs.json"
        try:
            results = await self.get_json(
                url,
                {"pattern": f"{artist} {title}"},
                timeout=self.settings.tablature_search_timeout_s,
            )
        except FetchError as exc:
            logger.warning("Tablature search failed: %s", exc)
            return None
        if not isinstance(results, list) or not results:
            return None
        first = results[0]
        song_id = first.get("id") if isinstance(first, dict) else None
        return song_id if isinstance(song_id, int) else None

    async def fetch(self, song_id: int) -> TablatureData | None:
        """Download and parse the default revision. Returns None on any failure."""
        url = f"{self.settings.tablature_base_url}/song/{song_id}/revision/default.json"
        try:
            data = await self.get_json(url, timeout=self.settings.tablature_revision_timeout_s)
        except FetchError as exc:
            logger.warning("Tablature revision fetch failed: %s", exc)
            return None
        if not isinstance(data, dict):
            return None
        result = parse_revision(data, songsterr_id=song_id)
        logger.info(
            "Tablature %d: bpm=%d key=%r chords=%d",
            song_id, result.bpm, result.key, len(result.chords),
        )
        return result
