"""
Repository Auditor — Run the full pipeline once for one repository.

    prober -> classifier -> staleness detector -> aggregator

The primary URL is probed first; its metainfo declares the origin and the
replica set, which together with any extra replica hosts form the endpoint
set (one endpoint per host). Secondaries that fail to probe are recorded as
down; a malformed primary aborts the run.

## Usage

    with Fetcher(timeout=5.0) as fetcher:
        auditor = RepositoryAuditor(fetcher)
        assessment = auditor.assess("atlas.cern.ch", "http://host/cvmfs/atlas.cern.ch")
        print(assessment.verdict.text)
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from ..config.hosts import HostTable
from ..config.settings import AuditSettings
from ..errors import ProbeError, UnreachableError
from ..models.endpoint import (
    DegradationReport,
    EndpointRecord,
    RepositoryAssessment,
    Role,
)
from ..models.metainfo import RepositoryDeclaration
from ..probe.fetcher import Fetcher
from ..probe.prober import EndpointProber, host_of
from .aggregate import aggregate
from .classifier import EndpointClassifier, classify_role
from .staleness import detect_staleness

logger = logging.getLogger(__name__)


def endpoint_set(
    primary_url: str,
    declaration: RepositoryDeclaration,
    extra_replicas: Iterable[str] = (),
) -> List[str]:
    """Primary, declared origin, declared and extra replicas; one URL per host."""
    candidates = [primary_url]
    if declaration.origin:
        candidates.append(declaration.origin)
    candidates.extend(declaration.replicas or ())
    candidates.extend(extra_replicas)

    seen = set()
    urls = []
    for url in candidates:
        url = url.strip().rstrip("/")
        host = host_of(url)
        if not url or host in seen:
            continue
        seen.add(host)
        urls.append(url)
    return urls


class RepositoryAuditor:
    """Builds a RepositoryAssessment per call; keeps no state between runs."""

    def __init__(
        self,
        fetcher: Fetcher,
        settings: Optional[AuditSettings] = None,
        hosts: Optional[HostTable] = None,
    ):
        self.settings = settings or AuditSettings()
        self.hosts = hosts or HostTable()
        self.prober = EndpointProber(fetcher)
        self.classifier = EndpointClassifier(fetcher, self.settings, self.hosts)

    def assess(
        self,
        repository: str,
        primary_url: str,
        extra_replicas: Iterable[str] = (),
        now: Optional[datetime] = None,
    ) -> RepositoryAssessment:
        """
        Assess ``repository`` starting from ``primary_url``.

        Raises:
            MalformedManifestError, MalformedWhitelistError, DecompressionError:
                the primary endpoint publishes unusable trust data
        """
        if now is None:
            now = datetime.now(timezone.utc)
        primary_url = primary_url.strip().rstrip("/")
        assessment = RepositoryAssessment(repository=repository, checked_at=now)

        logger.info(
            f"Assessing {repository} from {primary_url}",
            extra={"repository": repository},
        )

        try:
            raw = self.prober.probe(primary_url)
        except UnreachableError as e:
            logger.error(f"Primary endpoint unreachable: {e.message}", extra={"endpoint": primary_url})
            host = host_of(primary_url)
            assessment.endpoints.append(
                EndpointRecord.unreachable(
                    primary_url, host, self.hosts.alias(host), Role.UNKNOWN, e.message
                )
            )
            return self._finish(assessment, now)

        metainfo = self.classifier.load_metainfo(raw)
        declaration = RepositoryDeclaration.from_metainfo(metainfo)
        record, issues = self.classifier.classify(raw, metainfo, declaration, now)
        assessment.endpoints.append(record)
        assessment.degradations.merge(issues)

        secondaries = endpoint_set(primary_url, declaration, extra_replicas)[1:]
        for record, issues in self._assess_secondaries(secondaries, declaration, now):
            assessment.endpoints.append(record)
            assessment.degradations.merge(issues)

        return self._finish(assessment, now)

    def _finish(self, assessment: RepositoryAssessment, now: datetime) -> RepositoryAssessment:
        assessment.stale = detect_staleness(
            assessment.endpoints,
            now=now,
            threshold_seconds=self.settings.stale_threshold_seconds,
        )
        assessment.verdict = aggregate(assessment)
        logger.info(
            f"{assessment.repository}: {assessment.verdict.text} "
            f"({assessment.num_up} replica(s) up)",
            extra={"repository": assessment.repository},
        )
        return assessment

    def _assess_secondaries(
        self,
        urls: List[str],
        declaration: RepositoryDeclaration,
        now: datetime,
    ) -> List[Tuple[EndpointRecord, DegradationReport]]:
        if self.settings.workers <= 1 or len(urls) <= 1:
            return [self._assess_endpoint(url, declaration, now) for url in urls]

        workers = min(self.settings.workers, len(urls))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as pool:
            return list(pool.map(lambda url: self._assess_endpoint(url, declaration, now), urls))

    def _assess_endpoint(
        self,
        url: str,
        declaration: RepositoryDeclaration,
        now: datetime,
    ) -> Tuple[EndpointRecord, DegradationReport]:
        try:
            raw = self.prober.probe(url)
            metainfo = self.classifier.load_metainfo(raw)
        except ProbeError as e:
            logger.warning(f"Endpoint down: {e.message}", extra={"endpoint": url})
            host = host_of(url)
            role = classify_role(url, declaration.origin, declaration.replicas)
            record = EndpointRecord.unreachable(url, host, self.hosts.alias(host), role, e.message)
            return record, DegradationReport(declaration.issues())

        return self.classifier.classify(raw, metainfo, declaration, now)
