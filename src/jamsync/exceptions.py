class JamSyncError(Exception):
    """Base exception for jamsync."""


class FetchError(JamSyncError):
    """Raised when an external feed request fails.

    A status code of 0 means the request never produced a response
    (timeout, DNS failure, connection reset).
    """

    def __init__(self, url: str, status_code: int, reason: str = ""):
        self.url = url
        self.status_code = status_code
        self.reason = reason
        msg = f"HTTP {status_code} fetching {url}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class SongNotFoundError(JamSyncError):
    """Raised when a song id is not present in the repository."""

    def __init__(self, song_id: str):
        self.song_id = song_id
        super().__init__(f"Song not found: {song_id}")
