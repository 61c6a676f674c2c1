"""
Endpoint Prober — Issue the raw fetches that describe one endpoint.

The manifest and whitelist are load-bearing: failing to fetch or parse
either raises a ``ProbeError``. Everything else is best effort and only adds
degradation messages to the raw record.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..errors import UnreachableError
from .fetcher import Fetcher
from .formats import Manifest, Whitelist, parse_manifest, parse_whitelist

logger = logging.getLogger(__name__)

MANIFEST_PATH = ".cvmfspublished"
WHITELIST_PATH = ".cvmfswhitelist"
LAST_SNAPSHOT_PATH = ".cvmfs_last_snapshot"
SNAPSHOTTING_PATH = ".cvmfs_is_snapshotting"
INFO_PATH = "cvmfs/info/v1"

NO_META_JSON = "no meta.json"
NO_REPOSITORIES_JSON = "no repositories.json"


@dataclass
class RawEndpoint:
    """Unclassified facts gathered from one endpoint."""

    url: str
    host: str
    manifest: Manifest
    whitelist: Whitelist
    meta_json: Optional[Dict[str, Any]] = None
    repositories_json: Optional[Dict[str, Any]] = None
    last_snapshot: Optional[str] = None
    snapshotting: bool = False
    degradations: List[str] = field(default_factory=list)


def host_of(url: str) -> str:
    """Network host of a repository URL (lower case, no port)."""
    return (urlparse(url.strip()).hostname or url.strip()).lower()


def info_url(url: str, name: str) -> str:
    """URL of a host-wide info document next to the repository."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}/{INFO_PATH}/{name}"


class EndpointProber:
    """Fetches and parses everything needed to describe one endpoint."""

    def __init__(self, fetcher: Fetcher):
        self.fetcher = fetcher

    def probe(self, url: str) -> RawEndpoint:
        """
        Probe the repository at ``url``.

        Raises:
            UnreachableError: manifest or whitelist could not be fetched
            MalformedManifestError: manifest did not parse
            MalformedWhitelistError: whitelist did not parse
        """
        url = url.rstrip("/")
        logger.debug("Probing endpoint", extra={"endpoint": url})

        manifest_data = self.fetcher.get(f"{url}/{MANIFEST_PATH}")
        if manifest_data is None:
            raise UnreachableError("manifest could not be fetched", url=url)
        manifest = parse_manifest(manifest_data, url=url)

        whitelist_data = self.fetcher.get(f"{url}/{WHITELIST_PATH}")
        if whitelist_data is None:
            raise UnreachableError("whitelist could not be fetched", url=url)
        whitelist = parse_whitelist(whitelist_data, url=url)

        raw = RawEndpoint(
            url=url,
            host=host_of(url),
            manifest=manifest,
            whitelist=whitelist,
        )

        raw.meta_json = self._fetch_json(info_url(url, "meta.json"))
        if raw.meta_json is None:
            raw.degradations.append(NO_META_JSON)

        raw.repositories_json = self._fetch_json(info_url(url, "repositories.json"))
        if raw.repositories_json is None:
            raw.degradations.append(NO_REPOSITORIES_JSON)

        snapshot = self.fetcher.get(f"{url}/{LAST_SNAPSHOT_PATH}")
        if snapshot is not None:
            text = snapshot.decode("utf-8", errors="replace").strip()
            raw.last_snapshot = text or None

        raw.snapshotting = self.fetcher.head(f"{url}/{SNAPSHOTTING_PATH}")

        logger.debug(
            f"Probed revision {manifest.revision}, "
            f"{len(raw.degradations)} missing resource(s)",
            extra={"endpoint": url, "revision": manifest.revision},
        )
        return raw

    def _fetch_json(self, url: str) -> Optional[Dict[str, Any]]:
        data = self.fetcher.get(url)
        if data is None:
            return None
        try:
            document = json.loads(data)
        except ValueError:
            logger.warning(f"Ignoring invalid JSON at {url}")
            return None
        if not isinstance(document, dict):
            logger.warning(f"Ignoring non-object JSON at {url}")
            return None
        return document
