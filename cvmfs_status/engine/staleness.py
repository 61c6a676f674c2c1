"""
Staleness Detector — Compare every replica against the origin.

A replica trailing the origin's revision is only penalised once the lag
window has elapsed, either since the origin last published or since the
replica last completed a snapshot. Propagation delay inside the window is
expected.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..config.settings import DEFAULT_STALE_THRESHOLD_SECONDS
from ..models.endpoint import EndpointRecord, EndpointStatus

logger = logging.getLogger(__name__)

LAGGING = "synchronization is lagging"


def _older_than(moment: Optional[datetime], now: datetime, seconds: int) -> bool:
    if moment is None:
        return False
    return (now - moment).total_seconds() > seconds


def detect_staleness(
    endpoints: List[EndpointRecord],
    now: Optional[datetime] = None,
    threshold_seconds: int = DEFAULT_STALE_THRESHOLD_SECONDS,
) -> bool:
    """
    Mark lagging replicas stale. Mutates the records in place.

    Returns:
        True if at least one replica was marked stale
    """
    if now is None:
        now = datetime.now(timezone.utc)

    origin = next((e for e in endpoints if e.role.is_origin), None)
    if origin is None or origin.is_down:
        return False

    origin_expired = _older_than(origin.last_update, now, threshold_seconds)
    stale = False

    for endpoint in endpoints:
        if not endpoint.role.is_replica:
            continue
        if endpoint.revision == origin.revision:
            continue
        if endpoint.status in (EndpointStatus.SYNCHRONIZING, EndpointStatus.DOWN):
            continue

        if origin_expired or _older_than(endpoint.last_snapshot, now, threshold_seconds):
            endpoint.status = EndpointStatus.STALE
            endpoint.add_degradation(LAGGING)
            stale = True
            logger.warning(
                f"{endpoint.alias} is at revision {endpoint.revision}, "
                f"origin at {origin.revision}",
                extra={"endpoint": endpoint.url, "revision": endpoint.revision},
            )

    return stale
