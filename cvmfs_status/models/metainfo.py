"""
Metainfo Models — Pydantic schema for the repository metainfo object.

The metainfo JSON is published by the origin and copied by every replica.
It declares the maintainer contact and the recommended origin/replica URLs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_CONTACT = "you@organisation.org"

NO_ORIGIN_DECLARED = "no recommended stratum 0 published"
NO_REPLICAS_DECLARED = "no recommended replicas published"


class Metainfo(BaseModel):
    """Repository metainfo as published under data/<hash>M."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    administrator: Optional[str] = None
    email: Optional[str] = None
    organisation: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    recommended_stratum0: Optional[str] = Field(default=None, alias="recommended-stratum0")
    recommended_stratum1s: Optional[List[str]] = Field(default=None, alias="recommended-stratum1s")
    custom: Optional[Dict[str, Any]] = None


class RepositoryDeclaration(BaseModel):
    """Declared topology of a repository."""

    origin: Optional[str] = None
    replicas: Optional[List[str]] = None

    @classmethod
    def from_metainfo(cls, metainfo: Optional[Metainfo]) -> "RepositoryDeclaration":
        if metainfo is None:
            return cls()
        return cls(
            origin=metainfo.recommended_stratum0 or None,
            replicas=metainfo.recommended_stratum1s or None,
        )

    def issues(self) -> List[str]:
        """Repository-wide degradations implied by missing declarations."""
        found = []
        if not self.origin:
            found.append(NO_ORIGIN_DECLARED)
        if not self.replicas:
            found.append(NO_REPLICAS_DECLARED)
        return found
