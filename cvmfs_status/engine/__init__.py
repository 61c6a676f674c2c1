"""
Engine — Classification, staleness detection, aggregation and waiting.
"""

from .aggregate import aggregate
from .audit import RepositoryAuditor, endpoint_set
from .classifier import EndpointClassifier, classify_role, compute_status
from .staleness import detect_staleness
from .wait import wait_for_revision

__all__ = [
    "EndpointClassifier",
    "RepositoryAuditor",
    "aggregate",
    "classify_role",
    "compute_status",
    "detect_staleness",
    "endpoint_set",
    "wait_for_revision",
]
