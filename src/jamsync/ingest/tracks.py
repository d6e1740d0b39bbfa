"""Track metadata search against an iTunes-style search endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from jamsync.exceptions import FetchError
from jamsync.ingest.feed import FeedClient

logger = logging.getLogger(__name__)


@dataclass
class TrackMetadata:
    """A track as returned by the search endpoint; the input of an import."""

    track_id: int
    track_name: str
    artist_name: str
    primary_genre_name: str = ""
    artwork_url: str = ""
    preview_url: str | None = None
    duration_ms: int | None = None
    collection_name: str | None = None


def _track_from_result(r: dict) -> TrackMetadata | None:
    if r.get("wrapperType") != "track" or r.get("kind") != "song":
        return None
    track_id = r.get("trackId")
    if not isinstance(track_id, int):
        return None
    return TrackMetadata(
        track_id=track_id,
        track_name=r.get("trackName") or "",
        artist_name=r.get("artistName") or "",
        primary_genre_name=r.get("primaryGenreName") or "",
        artwork_url=r.get("artworkUrl100") or "",
        preview_url=r.get("previewUrl"),
        duration_ms=r.get("trackTimeMillis"),
        collection_name=r.get("collectionName"),
    )


class TrackSearchClient(FeedClient):
    async def search(self, query: str, limit: int | None = None) -> list[TrackMetadata]:
        """Search songs by free text. Returns [] on any failure."""
        query = query.strip()
        if not query:
            return []
        params = {
            "term": query,
            "media": "music",
            "entity": "song",
            "limit": str(limit or self.settings.track_search_limit),
        }
        try:
            data = await self.get_json(
                self.settings.track_search_url, params,
                timeout=self.settings.track_search_timeout_s,
            )
        except FetchError as exc:
            logger.warning("Track search failed: %s", exc)
            return []
        results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(results, list):
            return []
        tracks = []
        for r in results:
            if isinstance(r, dict):
                track = _track_from_result(r)
                if track is not None:
                    tracks.append(track)
        return tracks
