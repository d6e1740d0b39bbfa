"""Ingestion of external feeds: track search, lyrics and tablature."""

from jamsync.ingest.importer import ImportResult, SongImporter, build_sections
from jamsync.ingest.lyrics import (
    LyricLine,
    LyricsClient,
    LyricSection,
    LyricsResult,
    group_into_sections,
    parse_lrc,
    parse_lyrics,
    parse_plain,
)
from jamsync.ingest.tablature import (
    TabChord,
    TablatureClient,
    TablatureData,
    key_from_signature,
    parse_revision,
)
from jamsync.ingest.tracks import TrackMetadata, TrackSearchClient

__all__ = [
    "ImportResult",
    "LyricLine",
    "LyricSection",
    "LyricsClient",
    "LyricsResult",
    "SongImporter",
    "TabChord",
    "TablatureClient",
    "TablatureData",
    "TrackMetadata",
    "TrackSearchClient",
    "build_sections",
    "group_into_sections",
    "key_from_signature",
    "parse_lrc",
    "parse_lyrics",
    "parse_plain",
    "parse_revision",
]
