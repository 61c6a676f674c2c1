"""
Endpoint Classifier — Turn a raw probe into a populated EndpointRecord.

Classification resolves timestamps and the metainfo object, judges the
maintainer contact, derives the endpoint's role from the repository's
declared topology, runs the supplementary reachability checks and finally
computes the per-endpoint status.

Repository-wide findings are returned alongside the record in a
``DegradationReport`` for the caller to merge.
"""

from __future__ import annotations

import json
import logging
import zlib
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from pydantic import ValidationError

from ..config.hosts import HostTable
from ..config.settings import AuditSettings
from ..errors import DecompressionError
from ..models.endpoint import DegradationReport, EndpointRecord, EndpointStatus, Role
from ..models.metainfo import PLACEHOLDER_CONTACT, Metainfo, RepositoryDeclaration
from ..probe.fetcher import Fetcher
from ..probe.formats import parse_manifest_timestamp, parse_verbose_timestamp
from ..probe.prober import MANIFEST_PATH, RawEndpoint, host_of

logger = logging.getLogger(__name__)

NO_CONTACT = "no contact exported"
CONTACT_NOT_CONFIGURED = "contact not configured"
NO_PROXY_PORT = "doesn't listen on port {port}"
NO_GEO_API = "doesn't run geo-routing service"


def metainfo_path(metainfo_hash: str) -> str:
    """Hash-sharded object path: data/<first 2 hex>/<rest>M."""
    return f"data/{metainfo_hash[:2]}/{metainfo_hash[2:]}M"


def classify_role(
    url: str,
    declared_origin: Optional[str],
    declared_replicas: Optional[Sequence[str]],
) -> Role:
    """
    Role of ``url`` given the repository's declared topology.

    Matched by host, so a declaration reaching the same host through another
    scheme or port still applies.
    """
    host = host_of(url)
    is_origin = bool(declared_origin) and host_of(declared_origin) == host
    is_replica = any(host_of(r) == host for r in declared_replicas or ())

    if is_origin and is_replica:
        return Role.ORIGIN_REPLICA
    if is_origin:
        return Role.ORIGIN
    if is_replica:
        return Role.REPLICA
    return Role.UNKNOWN


def judge_contact(metainfo: Optional[Metainfo]) -> Tuple[Optional[str], Optional[str]]:
    """Return (contact, degradation) for the maintainer contact."""
    email = metainfo.email.strip() if metainfo and metainfo.email else ""
    if not email:
        return None, NO_CONTACT
    if email == PLACEHOLDER_CONTACT:
        return email, CONTACT_NOT_CONFIGURED
    return email, None


def compute_status(
    snapshotting: bool,
    degradations: Sequence[str],
    whitelist_expiry: Optional[datetime],
    now: datetime,
) -> EndpointStatus:
    """Per-endpoint status; later rules override earlier ones."""
    status = EndpointStatus.ONLINE
    if snapshotting:
        status = EndpointStatus.SYNCHRONIZING
    if degradations:
        status = EndpointStatus.DEGRADED
    if whitelist_expiry is not None and whitelist_expiry < now:
        status = EndpointStatus.EXPIRED
    return status


class EndpointClassifier:
    """Builds EndpointRecords from RawEndpoints."""

    def __init__(
        self,
        fetcher: Fetcher,
        settings: Optional[AuditSettings] = None,
        hosts: Optional[HostTable] = None,
    ):
        self.fetcher = fetcher
        self.settings = settings or AuditSettings()
        self.hosts = hosts or HostTable()

    def load_metainfo(self, raw: RawEndpoint) -> Optional[Metainfo]:
        """
        Fetch and inflate the metainfo object referenced by the manifest.

        Returns None when the manifest references none or it is missing.

        Raises:
            DecompressionError: the object is not zlib-compressed JSON
        """
        metainfo_hash = raw.manifest.metainfo_hash
        if not metainfo_hash:
            return None

        data = self.fetcher.get(f"{raw.url}/{metainfo_path(metainfo_hash)}")
        if data is None:
            logger.warning(
                f"Metainfo object {metainfo_hash} not found",
                extra={"endpoint": raw.url},
            )
            return None

        try:
            document = json.loads(zlib.decompress(data))
        except zlib.error as e:
            raise DecompressionError(f"metainfo does not inflate: {e}", url=raw.url) from e
        except ValueError as e:
            raise DecompressionError(f"metainfo is not JSON: {e}", url=raw.url) from e

        try:
            return Metainfo.model_validate(document)
        except ValidationError as e:
            raise DecompressionError(f"metainfo has unexpected shape: {e}", url=raw.url) from e

    def classify(
        self,
        raw: RawEndpoint,
        metainfo: Optional[Metainfo],
        declaration: RepositoryDeclaration,
        now: Optional[datetime] = None,
    ) -> Tuple[EndpointRecord, DegradationReport]:
        """Populate an EndpointRecord for ``raw``."""
        if now is None:
            now = datetime.now(timezone.utc)

        manifest = raw.manifest
        repository_issues = DegradationReport(declaration.issues())
        degradations: List[str] = list(raw.degradations)

        last_update = self._parse_time(manifest.timestamp, parse_manifest_timestamp, raw.url)
        last_snapshot = self._parse_time(raw.last_snapshot, parse_verbose_timestamp, raw.url)

        contact, contact_issue = judge_contact(metainfo)
        if contact_issue:
            degradations.append(contact_issue)

        role = classify_role(raw.url, declaration.origin, declaration.replicas)

        if not self.fetcher.head(self._proxy_port_url(raw)):
            degradations.append(NO_PROXY_PORT.format(port=self.settings.proxy_port))
        if role.is_replica and not self.fetcher.head(self._geo_api_url(raw)):
            degradations.append(NO_GEO_API)

        status = compute_status(raw.snapshotting, degradations, raw.whitelist.expiry, now)

        record = EndpointRecord(
            url=raw.url,
            host=raw.host,
            alias=self.hosts.alias(raw.host),
            role=role,
            repository=manifest.repository,
            revision=manifest.revision,
            catalog_hash=manifest.catalog_hash,
            metainfo_hash=manifest.metainfo_hash,
            gc_enabled=manifest.gc_enabled,
            last_update=last_update,
            last_snapshot=last_snapshot,
            ttl_seconds=manifest.ttl_seconds,
            whitelist_expiry=raw.whitelist.expiry,
            contact=contact,
            snapshotting=raw.snapshotting,
            degradations=degradations,
            status=status,
        )

        if degradations:
            logger.warning(
                f"{record.alias}: {', '.join(degradations)}",
                extra={"endpoint": raw.url},
            )
        logger.info(
            f"{record.alias} is {role.value} at revision {record.revision}: {status.value}",
            extra={"endpoint": raw.url, "revision": record.revision},
        )
        return record, repository_issues

    def _proxy_port_url(self, raw: RawEndpoint) -> str:
        parsed = urlparse(raw.url)
        return f"{parsed.scheme}://{raw.host}:{self.settings.proxy_port}{parsed.path}/{MANIFEST_PATH}"

    def _geo_api_url(self, raw: RawEndpoint) -> str:
        return f"{raw.url}/api/v1.0/geo/{raw.host}/{raw.host}"

    @staticmethod
    def _parse_time(value, parse, url: str) -> Optional[datetime]:
        if not value:
            return None
        try:
            return parse(value)
        except ValueError:
            logger.warning(f"Unparsable timestamp {value!r}", extra={"endpoint": url})
            return None
