"""
Endpoint Models — Per-endpoint records and the per-run assessment.

A ``RepositoryAssessment`` is built fresh for every pipeline run and holds
one ``EndpointRecord`` per probed host plus the repository-wide degradation
report. Nothing here outlives a run.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, Iterator, List, Optional


class Role(str, Enum):
    """Role of an endpoint within the replication topology."""
    UNKNOWN = "unknown"
    ORIGIN = "origin"
    ORIGIN_REPLICA = "origin+replica"
    REPLICA = "replica"

    @property
    def is_origin(self) -> bool:
        return self in (Role.ORIGIN, Role.ORIGIN_REPLICA)

    @property
    def is_replica(self) -> bool:
        return self in (Role.REPLICA, Role.ORIGIN_REPLICA)


class EndpointStatus(str, Enum):
    """Condition of a single endpoint."""
    ONLINE = "online"
    SYNCHRONIZING = "synchronizing"
    DEGRADED = "degraded"
    EXPIRED = "expired"
    STALE = "stale"
    DOWN = "down"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]

    @property
    def is_up(self) -> bool:
        """Counts towards the number of serving replicas."""
        return self in (
            EndpointStatus.ONLINE,
            EndpointStatus.SYNCHRONIZING,
            EndpointStatus.DEGRADED,
            EndpointStatus.STALE,
        )


_PRECEDENCE = {
    EndpointStatus.ONLINE: 0,
    EndpointStatus.SYNCHRONIZING: 0,
    EndpointStatus.DEGRADED: 1,
    EndpointStatus.EXPIRED: 1,
    EndpointStatus.STALE: 2,
    EndpointStatus.DOWN: 3,
}


def worst(statuses: Iterable[EndpointStatus]) -> Optional[EndpointStatus]:
    """Highest-precedence status; the first one wins ties."""
    result: Optional[EndpointStatus] = None
    for status in statuses:
        if result is None or status.precedence > result.precedence:
            result = status
    return result


class Verdict(IntEnum):
    """Overall verdict; the value is the process exit code."""
    HEALTHY = 0
    DEGRADED = 1
    STALE = 2
    DOWN = 3

    @property
    def text(self) -> str:
        return _VERDICT_TEXT[self]


_VERDICT_TEXT = {
    Verdict.HEALTHY: "HEALTHY",
    Verdict.DEGRADED: "DEGRADED!",
    Verdict.STALE: "STALE!",
    Verdict.DOWN: "DOWN!",
}


class DegradationReport:
    """
    Insertion-ordered set of degradation messages.

    Safe to merge into from several probing threads.
    """

    def __init__(self, messages: Iterable[str] = ()):
        self._messages: Dict[str, None] = {}
        self._lock = threading.Lock()
        for message in messages:
            self.add(message)

    def add(self, message: str) -> bool:
        """Record ``message``; returns False if it was already present."""
        with self._lock:
            if message in self._messages:
                return False
            self._messages[message] = None
            return True

    def merge(self, other: Iterable[str]) -> None:
        for message in other:
            self.add(message)

    def to_list(self) -> List[str]:
        with self._lock:
            return list(self._messages)

    def __iter__(self) -> Iterator[str]:
        return iter(self.to_list())

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def __contains__(self, message: object) -> bool:
        with self._lock:
            return message in self._messages

    def __repr__(self) -> str:
        return f"DegradationReport({self.to_list()!r})"


def _iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class EndpointRecord:
    """Everything known about one repository on one host."""

    url: str
    host: str
    alias: str
    role: Role = Role.UNKNOWN
    repository: Optional[str] = None
    revision: int = 0
    catalog_hash: Optional[str] = None
    metainfo_hash: Optional[str] = None
    gc_enabled: bool = False
    last_update: Optional[datetime] = None
    last_snapshot: Optional[datetime] = None
    ttl_seconds: Optional[int] = None
    whitelist_expiry: Optional[datetime] = None
    contact: Optional[str] = None
    snapshotting: bool = False
    degradations: List[str] = field(default_factory=list)
    status: EndpointStatus = EndpointStatus.ONLINE

    @classmethod
    def unreachable(
        cls,
        url: str,
        host: str,
        alias: str,
        role: Role,
        reason: str,
    ) -> "EndpointRecord":
        """Record for an endpoint that could not be probed."""
        return cls(
            url=url,
            host=host,
            alias=alias,
            role=role,
            revision=0,
            degradations=[reason],
            status=EndpointStatus.DOWN,
        )

    @property
    def is_down(self) -> bool:
        return self.status == EndpointStatus.DOWN

    def add_degradation(self, message: str) -> None:
        self.degradations.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "host": self.host,
            "alias": self.alias,
            "role": self.role.value,
            "repository": self.repository,
            "revision": self.revision,
            "catalog_hash": self.catalog_hash,
            "gc_enabled": self.gc_enabled,
            "last_update": _iso(self.last_update),
            "last_snapshot": _iso(self.last_snapshot),
            "ttl_seconds": self.ttl_seconds,
            "whitelist_expiry": _iso(self.whitelist_expiry),
            "contact": self.contact,
            "snapshotting": self.snapshotting,
            "status": self.status.value,
            "degradations": list(self.degradations),
        }


@dataclass
class RepositoryAssessment:
    """The whole endpoint set for one repository at one point in time."""

    repository: str
    endpoints: List[EndpointRecord] = field(default_factory=list)
    degradations: DegradationReport = field(default_factory=DegradationReport)
    stale: bool = False
    verdict: Optional[Verdict] = None
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def origin(self) -> Optional[EndpointRecord]:
        for endpoint in self.endpoints:
            if endpoint.role.is_origin:
                return endpoint
        return None

    @property
    def replicas(self) -> List[EndpointRecord]:
        return [e for e in self.endpoints if e.role.is_replica]

    @property
    def num_up(self) -> int:
        """Replicas that are still serving content."""
        return sum(1 for e in self.replicas if e.status.is_up)

    @property
    def min_revision(self) -> int:
        """Lowest revision among reachable endpoints, -1 if none is reachable."""
        revisions = [e.revision for e in self.endpoints if not e.is_down]
        if not revisions:
            return -1
        return min(revisions)

    @property
    def worst_status(self) -> Optional[EndpointStatus]:
        return worst(e.status for e in self.endpoints)

    def to_dict(self) -> Dict[str, Any]:
        verdict = self.verdict
        return {
            "repository": self.repository,
            "checked_at": _iso(self.checked_at),
            "status": verdict.text if verdict is not None else None,
            "code": int(verdict) if verdict is not None else None,
            "stale": self.stale,
            "num_up": self.num_up,
            "min_revision": self.min_revision,
            "degradations": self.degradations.to_list(),
            "endpoints": [e.to_dict() for e in self.endpoints],
        }
