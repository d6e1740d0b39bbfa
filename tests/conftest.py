"""Shared fixtures: canned external feeds served through httpx.MockTransport."""

import httpx
import pytest

from jamsync.config import Settings


class FakeFeeds:
    """Canned responses for the track, lyric and tablature feeds.

    Set the attributes before a request is made; every request is recorded
    as ``(host, path, params)`` in ``requests``.
    """

    def __init__(self):
        self.tracks = []
        self.lyrics_record = None
        self.lyrics_search = []
        self.tab_results = []
        self.revision = None
        self.fail_hosts = set()
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        host = request.url.host
        path = request.url.path
        self.requests.append((host, path, dict(request.url.params)))

        if host in self.fail_hosts:
            raise httpx.ConnectError("connection refused", request=request)

        if host == "itunes.apple.com" and path == "/search":
            return httpx.Response(200, json={"resultCount": len(self.tracks), "results": self.tracks})
        if host == "lrclib.net" and path == "/api/get":
            if self.lyrics_record is None:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json=self.lyrics_record)
        if host == "lrclib.net" and path == "/api/search":
            return httpx.Response(200, json=self.lyrics_search)
        if host == "www.songsterr.com" and path == "/a/ra/songs.json":
            return httpx.Response(200, json=self.tab_results)
        if host == "www.songsterr.com" and path.startswith("/a/ra/song/"):
            if self.revision is None:
                return httpx.Response(404)
            return httpx.Response(200, json=self.revision)
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [path for _, path, _ in self.requests]


@pytest.fixture()
def feeds():
    return FakeFeeds()


@pytest.fixture()
def settings():
    return Settings()


def itunes_result(track_id=1, name="Wonderwall", artist="Oasis", **extra):
    result = {
        "wrapperType": "track",
        "kind": "song",
        "trackId": track_id,
        "trackName": name,
        "artistName": artist,
        "primaryGenreName": "Rock",
        "artworkUrl100": "https://img.test/100.jpg",
        "previewUrl": "https://audio.test/preview.m4a",
        "trackTimeMillis": 258000,
        "collectionName": "Morning Glory",
    }
    result.update(extra)
    return result


@pytest.fixture()
def make_itunes_result():
    return itunes_result
