"""HTTP client for the on-demand history pull."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import requests
from requests.exceptions import ConnectionError as ReqConnectionError
from requests.exceptions import ReadTimeout, RequestException

from sensor_dashboard.errors import DecodeError, FetchError
from sensor_dashboard.sources.codec import parse_history_body

logger = logging.getLogger(__name__)


class HistoryClient:
    """Fetches ``{"history": [...]}`` batches from the telemetry server.

    No timeout is imposed unless the caller passes one.  Every failure is
    raised as ``FetchError`` so the caller can leave its state untouched.
    """

    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        verify_ssl: bool = True,
        session: requests.Session | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"Accept": "application/json"})
        self._session.verify = verify_ssl

        if not verify_ssl:
            import urllib3

            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    def fetch(self) -> list[Any]:
        """GET the history endpoint and return the raw ``history`` records."""
        try:
            response = self._session.get(self._url, timeout=self._timeout)
        except (ReqConnectionError, ReadTimeout) as exc:
            logger.warning("History endpoint unreachable at %s", self._url)
            raise FetchError(f"history endpoint unreachable: {exc}") from exc
        except RequestException as exc:
            logger.exception("History request error for %s", self._url)
            raise FetchError(f"history request failed: {exc}") from exc

        if not response.ok:
            logger.warning("History endpoint returned %d", response.status_code)
            raise FetchError(
                f"history endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        # Strict UTF-8: invalid bytes fail the pull like a malformed push frame.
        try:
            records = parse_history_body(json.loads(response.content.decode("utf-8")))
        except (UnicodeDecodeError, ValueError, DecodeError) as exc:
            logger.warning("Undecodable history response: %s", exc)
            raise FetchError(f"undecodable history response: {exc}") from exc

        logger.debug("Fetched %d history records from %s", len(records), self._url)
        return records

    async def fetch_async(self) -> list[Any]:
        """Run ``fetch`` in a worker thread so the event loop stays free."""
        return await asyncio.to_thread(self.fetch)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
        logger.info("History client session closed")
