"""
Probe — Raw fetches and file-format parsing for one endpoint.
"""

from .fetcher import Fetcher
from .formats import Manifest, Whitelist, parse_manifest, parse_whitelist
from .prober import EndpointProber, RawEndpoint

__all__ = [
    "EndpointProber",
    "Fetcher",
    "Manifest",
    "RawEndpoint",
    "Whitelist",
    "parse_manifest",
    "parse_whitelist",
]
