"""Lyric ingestion — parse timed (LRC) or plain lyrics into sectioned lines.

Timed input looks like::

    [ti:Song Title]
    [00:12.30]First line
    [00:15.10]Second line

Metadata tags are dropped. Consecutive timed lines are grouped into
"Part N" sections, starting a new section whenever the silence between two
lines exceeds a gap threshold. Plain lyrics are grouped by paragraph.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from jamsync.exceptions import FetchError
from jamsync.ingest.feed import FeedClient

logger = logging.getLogger(__name__)

GAP_THRESHOLD_S = 3.0

_METADATA_RE = re.compile(r"^\[(?:ti|ar|al|by|offset|re|ve|length):", re.IGNORECASE)
_TIMED_RE = re.compile(r"^\[(\d{1,2}):(\d{2}\.\d+)\](.*)$")
# Commercial footer appended by some lyric providers: a trailing block whose
# first line starts with "***" ("******* This Lyrics is ...")
_FOOTER_RE = re.compile(r"(?m)^[ \t]*\*{3,}[\s\S]*\Z")
_PARAGRAPH_RE = re.compile(r"\n\s*\n")


@dataclass
class LyricLine:
    text: str
    start_time: float | None = None  # seconds from start of track


@dataclass
class LyricSection:
    name: str
    lines: list[LyricLine] = field(default_factory=list)


@dataclass
class LyricsResult:
    """Parsed lyrics.

    Attributes:
        sections: Ordered "Part N" sections.
        synced: True if the lines carry timestamps.
    """

    sections: list[LyricSection]
    synced: bool

    @property
    def line_count(self) -> int:
        return sum(len(s.lines) for s in self.sections)


def has_timestamps(text: str) -> bool:
    """Return True if any line of ``text`` starts with a time marker."""
    return any(_TIMED_RE.match(raw.strip()) for raw in text.split("\n"))


def parse_lrc(text: str) -> list[LyricLine]:
    """Parse timed lyric lines, skipping metadata, untimed and empty lines."""
    result: list[LyricLine] = []
    for raw in text.split("\n"):
        line = raw.strip()
        if _METADATA_RE.match(line):
            continue
        match = _TIMED_RE.match(line)
        if not match:
            continue
        body = match.group(3).strip()
        if not body:
            continue
        start = int(match.group(1)) * 60 + float(match.group(2))
        result.append(LyricLine(text=body, start_time=start))
    return result


def parse_plain(text: str) -> list[list[LyricLine]]:
    """Parse untimed lyrics into paragraphs of non-blank lines."""
    cleaned = _FOOTER_RE.sub("", text).strip()
    paragraphs: list[list[LyricLine]] = []
    for block in _PARAGRAPH_RE.split(cleaned):
        lines = [
            LyricLine(text=raw.strip())
            for raw in block.split("\n")
            if raw.strip() and not _METADATA_RE.match(raw.strip())
        ]
        if lines:
            paragraphs.append(lines)
    return paragraphs


def group_into_sections(
    lines: list[LyricLine],
    gap_threshold: float = GAP_THRESHOLD_S,
) -> list[LyricSection]:
    """Split timed lines into "Part N" sections on gaps over ``gap_threshold``."""
    sections: list[LyricSection] = []
    current: list[LyricLine] = []
    prev: LyricLine | None = None

    for line in lines:
        is_gap = (
            prev is not None
            and prev.start_time is not None
            and line.start_time is not None
            and line.start_time - prev.start_time > gap_threshold
        )
        if is_gap and current:
            sections.append(LyricSection(name=f"Part {len(sections) + 1}", lines=current))
            current = []
        current.append(line)
        prev = line

    if current:
        sections.append(LyricSection(name=f"Part {len(sections) + 1}", lines=current))
    return sections


def parse_timed(text: str, gap_threshold: float = GAP_THRESHOLD_S) -> LyricsResult | None:
    lines = parse_lrc(text)
    if not lines:
        return None
    return LyricsResult(sections=group_into_sections(lines, gap_threshold), synced=True)


def parse_untimed(text: str) -> LyricsResult | None:
    paragraphs = parse_plain(text)
    if not paragraphs:
        return None
    sections = [
        LyricSection(name=f"Part {idx + 1}", lines=lines)
        for idx, lines in enumerate(paragraphs)
    ]
    return LyricsResult(sections=sections, synced=False)


def parse_lyrics(text: str, gap_threshold: float = GAP_THRESHOLD_S) -> LyricsResult | None:
    """Parse a lyric block in whichever format it is written.

    Returns None when no lines survive parsing.
    """
    if has_timestamps(text):
        return parse_timed(text, gap_threshold)
    return parse_untimed(text)


class LyricsClient(FeedClient):
    """Client for an LRCLIB-style lyrics feed.

    Records carry optional ``syncedLyrics`` and ``plainLyrics`` blocks and an
    ``instrumental`` flag.
    """

    async def fetch(
        self,
        title: str,
        artist: str,
        album: str | None = None,
        duration_ms: int | None = None,
    ) -> LyricsResult | None:
        """Look up lyrics for a track. Returns None ("no lyrics") on any failure."""
        record = None
        if duration_ms:
            record = await self._get_exact(title, artist, album, duration_ms)
        if record is None:
            record = await self._search(title, artist)
        if record is None:
            logger.info("No lyrics found for %s - %s", artist, title)
            return None
        return self.parse_record(record)

    def parse_record(self, record: dict) -> LyricsResult | None:
        """Turn a feed record into parsed lyrics; synced lyrics win over plain."""
        if not isinstance(record, dict) or record.get("instrumental"):
            return None
        synced = record.get("syncedLyrics")
        if isinstance(synced, str) and synced.strip():
            result = parse_timed(synced, self.settings.gap_threshold_s)
            if result is not None:
                return result
        plain = record.get("plainLyrics")
        if isinstance(plain, str) and plain.strip():
            return parse_untimed(plain)
        return None

    async def _get_exact(
        self, title: str, artist: str, album: str | None, duration_ms: int,
    ) -> dict | None:
        params = {
            "track_name": title,
            "artist_name": artist,
            "duration": str(round(duration_ms / 1000)),
        }
        if album:
            params["album_name"] = album
        url = f"{self.settings.lyrics_base_url}/get"
        try:
            data = await self.get_json(url, params, timeout=self.settings.lyrics_timeout_s)
        except FetchError as exc:
            logger.debug("Exact lyrics lookup failed: %s", exc)
            return None
        return data if isinstance(data, dict) else None

    async def _search(self, title: str, artist: str) -> dict | None:
        params = {"q": f"{artist} {title}", "limit": "1"}
        url = f"{self.settings.lyrics_base_url}/search"
        try:
            data = await self.get_json(url, params, timeout=self.settings.lyrics_timeout_s)
        except FetchError as exc:
            logger.warning("Lyrics search failed: %s", exc)
            return None
        if not isinstance(data, list) or not data:
            return None
        return data[0]
