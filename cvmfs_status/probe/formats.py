"""
Formats — Parsers for the line-oriented repository files and timestamps.

Both ``.cvmfspublished`` and ``.cvmfswhitelist`` are sequences of
``<KEY><value>`` lines, the key being a single character. A line holding
exactly ``--`` ends the text part; what follows is a binary signature and is
never decoded.

Manifest keys used here:

    C  root catalog hash        N  repository name
    G  garbage collection flag  S  revision
    T  publish timestamp        D  TTL in seconds
    M  metainfo object hash

Whitelist: the first ``E`` line holds the expiry as ``YYYYMMDDHHMMSS`` UTC.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterator, Optional, Tuple

from dateutil import parser as date_parser

from ..errors import MalformedManifestError, MalformedWhitelistError

SIGNATURE_SEPARATOR = b"--"
WHITELIST_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


@dataclass
class Manifest:
    """Parsed text part of a .cvmfspublished file."""

    catalog_hash: str
    revision: int
    repository: Optional[str] = None
    metainfo_hash: Optional[str] = None
    timestamp: Optional[str] = None
    ttl_seconds: Optional[int] = None
    gc_enabled: bool = False
    fields: Dict[str, str] = field(default_factory=dict)


@dataclass
class Whitelist:
    """Parsed text part of a .cvmfswhitelist file."""

    expiry: datetime
    repository: Optional[str] = None


def _iter_fields(data: bytes) -> Iterator[Tuple[str, str]]:
    for raw_line in data.split(b"\n"):
        line = raw_line.rstrip(b"\r")
        if line == SIGNATURE_SEPARATOR:
            return
        if not line:
            continue
        text = line.decode("utf-8", errors="replace")
        yield text[0], text[1:].strip()


def parse_manifest(data: bytes, url: Optional[str] = None) -> Manifest:
    """
    Parse a manifest.

    Raises:
        MalformedManifestError: if the catalog hash or revision is missing,
            or a numeric field does not parse
    """
    fields: Dict[str, str] = {}
    for key, value in _iter_fields(data):
        fields.setdefault(key, value)

    if not fields.get("C"):
        raise MalformedManifestError("manifest has no catalog hash", url=url)
    if "S" not in fields:
        raise MalformedManifestError("manifest has no revision", url=url)

    try:
        revision = int(fields["S"])
    except ValueError as e:
        raise MalformedManifestError(f"invalid revision {fields['S']!r}", url=url) from e
    if revision < 0:
        raise MalformedManifestError(f"negative revision {revision}", url=url)

    ttl: Optional[int] = None
    if fields.get("D"):
        try:
            ttl = int(fields["D"])
        except ValueError as e:
            raise MalformedManifestError(f"invalid TTL {fields['D']!r}", url=url) from e

    return Manifest(
        catalog_hash=fields["C"],
        revision=revision,
        repository=fields.get("N") or None,
        metainfo_hash=fields.get("M") or None,
        timestamp=fields.get("T") or None,
        ttl_seconds=ttl,
        gc_enabled=fields.get("G", "").lower() == "yes",
        fields=fields,
    )


def parse_whitelist(data: bytes, url: Optional[str] = None) -> Whitelist:
    """
    Parse a whitelist. The first ``E`` line is authoritative.

    Raises:
        MalformedWhitelistError: if no valid expiry line is present
    """
    repository: Optional[str] = None
    for key, value in _iter_fields(data):
        if key == "N" and repository is None:
            repository = value or None
        elif key == "E":
            try:
                expiry = parse_whitelist_timestamp(value)
            except ValueError as e:
                raise MalformedWhitelistError(f"invalid expiry {value!r}", url=url) from e
            return Whitelist(expiry=expiry, repository=repository)

    raise MalformedWhitelistError("whitelist has no expiry", url=url)


def parse_whitelist_timestamp(value: str) -> datetime:
    """``YYYYMMDDHHMMSS`` (UTC) to an aware datetime."""
    if len(value) != 14 or not value.isdigit():
        raise ValueError(f"not a YYYYMMDDHHMMSS timestamp: {value!r}")
    parsed = datetime.strptime(value, WHITELIST_TIMESTAMP_FORMAT)
    return parsed.replace(tzinfo=timezone.utc)


def format_whitelist_timestamp(value: datetime) -> str:
    """Aware datetime to ``YYYYMMDDHHMMSS`` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime(WHITELIST_TIMESTAMP_FORMAT)


def parse_verbose_timestamp(value: str) -> datetime:
    """
    Parse ``date`` style output such as ``Thu Jan 18 10:00:01 UTC 2024``.

    A zone name dateutil does not know is dropped and the wall-clock time is
    read in the process's local zone. The result is always in UTC.
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", date_parser.UnknownTimezoneWarning)
        try:
            parsed = date_parser.parse(value.strip())
        except OverflowError:
            raise ValueError(f"timestamp out of range: {value!r}") from None

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed.astimezone(timezone.utc)


def parse_manifest_timestamp(value: str) -> datetime:
    """Publish timestamp: epoch seconds, or the verbose ``date`` form."""
    text = value.strip()
    if text.isdigit():
        return datetime.fromtimestamp(int(text), tz=timezone.utc)
    return parse_verbose_timestamp(text)
