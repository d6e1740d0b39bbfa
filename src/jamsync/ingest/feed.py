"""Shared HTTP plumbing for the external feeds.

Feed clients raise FetchError internally; each public lookup converts it
into "no data" so an import never fails because a feed is down.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from jamsync.config import Settings, get_settings
from jamsync.exceptions import FetchError

logger = logging.getLogger(__name__)


class FeedClient:
    """Base class for read-only JSON feeds.

    Args:
        client: Shared async HTTP client. Tests pass one built on
            ``httpx.MockTransport``.
        settings: Timeouts, base URLs and user agent.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Settings | None = None):
        self.client = client
        self.settings = settings or get_settings()

    async def get_json(
        self,
        url: str,
        params: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """GET ``url`` and decode the JSON body.

        Raises:
            FetchError: On network failure, timeout, non-200 status or a
                body that is not JSON.
        """
        try:
            resp = await self.client.get(
                url,
                params=params,
                timeout=timeout,
                headers={"User-Agent": self.settings.user_agent},
                follow_redirects=True,
            )
        except httpx.TimeoutException as exc:
            raise FetchError(url, 0, "timed out") from exc
        except httpx.RequestError as exc:
            raise FetchError(url, 0, str(exc)) from exc
        if resp.status_code != 200:
            raise FetchError(url, resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise FetchError(url, resp.status_code, "invalid JSON") from exc
