"""
Models — Endpoint records, assessments and the repository metainfo schema.
"""

from .endpoint import (
    DegradationReport,
    EndpointRecord,
    EndpointStatus,
    RepositoryAssessment,
    Role,
    Verdict,
)
from .metainfo import Metainfo, RepositoryDeclaration

__all__ = [
    "DegradationReport",
    "EndpointRecord",
    "EndpointStatus",
    "Metainfo",
    "RepositoryAssessment",
    "RepositoryDeclaration",
    "Role",
    "Verdict",
]
