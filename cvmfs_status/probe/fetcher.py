"""
Fetcher — Timeout-bounded GET/HEAD over httpx.

Every call either returns content or reports "not found"; network errors,
timeouts and non-2xx responses are all folded into "not found" and logged.
Callers decide whether that is fatal.

## Usage

    with Fetcher(timeout=5.0) as fetcher:
        body = fetcher.get("http://host/cvmfs/repo/.cvmfspublished")
        if body is None:
            ...
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "cvmfs-status/1.0"


class Fetcher:
    """Blocking HTTP client shared by all probes of one run."""

    def __init__(
        self,
        timeout: float = 5.0,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.timeout = timeout
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
            transport=transport,
        )

    def get(self, url: str) -> Optional[bytes]:
        """Body of ``url``, or None if it could not be fetched."""
        try:
            response = self._client.get(url)
        except httpx.TimeoutException:
            logger.debug(f"GET {url} timed out after {self.timeout}s")
            return None
        except httpx.HTTPError as e:
            logger.debug(f"GET {url} failed: {e}")
            return None

        if response.status_code >= 400:
            logger.debug(f"GET {url}: {response.status_code}")
            return None
        return response.content

    def head(self, url: str) -> bool:
        """True if ``url`` exists."""
        try:
            response = self._client.head(url)
        except httpx.TimeoutException:
            logger.debug(f"HEAD {url} timed out after {self.timeout}s")
            return False
        except httpx.HTTPError as e:
            logger.debug(f"HEAD {url} failed: {e}")
            return False

        logger.debug(f"HEAD {url}: {response.status_code}")
        return response.status_code < 400

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
