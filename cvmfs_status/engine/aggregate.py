"""
Status Aggregator — Fold the assessment into one verdict.
"""

from __future__ import annotations

from ..models.endpoint import EndpointStatus, RepositoryAssessment, Verdict

_DEGRADED_STATUSES = (
    EndpointStatus.DEGRADED,
    EndpointStatus.EXPIRED,
    EndpointStatus.DOWN,
)


def aggregate(assessment: RepositoryAssessment) -> Verdict:
    """
    Overall verdict, first match wins:

    1. no replica serving          -> DOWN
    2. a replica is stale          -> STALE
    3. any endpoint or repository
       degradation                 -> DEGRADED
    4. otherwise                   -> HEALTHY
    """
    if assessment.num_up == 0:
        return Verdict.DOWN
    if assessment.stale:
        return Verdict.STALE
    if len(assessment.degradations) > 0 or any(
        e.status in _DEGRADED_STATUSES for e in assessment.endpoints
    ):
        return Verdict.DEGRADED
    return Verdict.HEALTHY
