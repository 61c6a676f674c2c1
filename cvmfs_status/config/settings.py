"""
Audit Settings — Parse CVMFS_STATUS_* environment variables.

All values have defaults suitable for an interactive run:

    CVMFS_STATUS_TIMEOUT_SECONDS=5
    CVMFS_STATUS_WAIT_INTERVAL_SECONDS=20
    CVMFS_STATUS_STALE_THRESHOLD_SECONDS=1200
    CVMFS_STATUS_PROXY_PORT=8000
    CVMFS_STATUS_WORKERS=1
    CVMFS_STATUS_USER_AGENT=cvmfs-status/<version>
    CVMFS_STATUS_HOSTS_FILE=/etc/cvmfs-status/hosts.yaml
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .. import __version__
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "CVMFS_STATUS_"

# Replication lag tolerated before a trailing replica counts as stale
# (15 minutes of snapshot cadence plus 5 minutes of slack).
DEFAULT_STALE_THRESHOLD_SECONDS = 1200


@dataclass(frozen=True)
class AuditSettings:
    """Runtime knobs for one audit invocation."""

    timeout_seconds: float = 5.0
    wait_interval_seconds: float = 20.0
    stale_threshold_seconds: int = DEFAULT_STALE_THRESHOLD_SECONDS
    proxy_port: int = 8000
    workers: int = 1
    user_agent: str = f"cvmfs-status/{__version__}"
    hosts_file: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuditSettings":
        """Build settings from environment variables."""
        env = os.environ if environ is None else environ

        settings = cls(
            timeout_seconds=_float(env, "TIMEOUT_SECONDS", cls.timeout_seconds),
            wait_interval_seconds=_float(
                env, "WAIT_INTERVAL_SECONDS", cls.wait_interval_seconds
            ),
            stale_threshold_seconds=_int(
                env, "STALE_THRESHOLD_SECONDS", cls.stale_threshold_seconds
            ),
            proxy_port=_int(env, "PROXY_PORT", cls.proxy_port),
            workers=_int(env, "WORKERS", cls.workers),
            user_agent=env.get(f"{ENV_PREFIX}USER_AGENT") or cls.user_agent,
            hosts_file=env.get(f"{ENV_PREFIX}HOSTS_FILE") or None,
        )
        settings.validate()
        return settings

    def override(self, **changes) -> "AuditSettings":
        """Return a copy with non-None values from ``changes`` applied."""
        applied = {k: v for k, v in changes.items() if v is not None}
        if not applied:
            return self
        updated = replace(self, **applied)
        updated.validate()
        return updated

    def validate(self) -> None:
        if self.timeout_seconds <= 0:
            raise ConfigurationError("timeout must be positive")
        if self.wait_interval_seconds < 0:
            raise ConfigurationError("wait interval must not be negative")
        if self.stale_threshold_seconds <= 0:
            raise ConfigurationError("stale threshold must be positive")
        if not 0 < self.proxy_port < 65536:
            raise ConfigurationError(f"invalid proxy port: {self.proxy_port}")
        if self.workers < 1:
            raise ConfigurationError("workers must be at least 1")


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} is not a number: {raw!r}") from e


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} is not an integer: {raw!r}") from e
