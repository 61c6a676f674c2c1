"""
Errors — Exception taxonomy for probing and configuration.

Fatal endpoint failures are raised as ``ProbeError`` subclasses. Missing
optional resources (meta.json, contact, port 8000, ...) are never raised:
they become degradation messages on the endpoint record instead.

## Usage

    from cvmfs_status.errors import ProbeError

    try:
        raw = prober.probe(url)
    except ProbeError as e:
        print(f"{e.url}: {e.message}")
"""

from __future__ import annotations

from typing import Optional


class CvmfsStatusError(Exception):
    """Base class for all errors raised by cvmfs-status."""


class ProbeError(CvmfsStatusError):
    """Raised when an endpoint cannot be described at all."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.message = message
        self.url = url
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.url:
            return f"{self.url}: {self.message}"
        return self.message


class UnreachableError(ProbeError):
    """Network failure, timeout, or a load-bearing file is missing."""


class MalformedManifestError(ProbeError):
    """The .cvmfspublished manifest could not be parsed."""


class MalformedWhitelistError(ProbeError):
    """The .cvmfswhitelist could not be parsed."""


class DecompressionError(ProbeError):
    """The metainfo object could not be inflated or decoded."""


class ConfigurationError(CvmfsStatusError):
    """Raised when settings or the host table are missing or invalid."""
