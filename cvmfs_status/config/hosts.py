"""
Host Table — Friendly aliases for replica hosts and origin lookup by domain.

The built-in table covers the well-known WLCG hosts. A YAML file can extend
or override it:

    aliases:
      cvmfs-stratum-one.example.org: EXAMPLE
    domains:
      example.org: cvmfs-stratum-zero.example.org

Aliases are matched case-insensitively. Domains are matched as suffixes of
the repository name, longest first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ALIASES: Dict[str, str] = {
    "cvmfs-stratum-zero.cern.ch": "CERN-S0",
    "cvmfs-stratum-one.cern.ch": "CERN",
    "cernvmfs.gridpp.rl.ac.uk": "RAL",
    "cvmfs-s1bnl.opensciencegrid.org": "BNL",
    "cvmfs-s1fnal.opensciencegrid.org": "FNAL",
    "cvmfs-s1goc.opensciencegrid.org": "OSG",
    "cvmfs-egi.gridpp.rl.ac.uk": "EGI-RAL",
    "cvmfs-stratum-one.ihep.ac.cn": "IHEP",
    "cvmfs02.grid.sinica.edu.tw": "ASGC",
    "cvmfs-stratum-one.zeuthen.desy.de": "DESY",
    "oasis.opensciencegrid.org": "OASIS",
}

DEFAULT_DOMAINS: Dict[str, str] = {
    "cern.ch": "cvmfs-stratum-zero.cern.ch",
    "egi.eu": "cvmfs-egi.gridpp.rl.ac.uk",
    "opensciencegrid.org": "oasis.opensciencegrid.org",
}


@dataclass
class HostTable:
    """Static host-alias and domain-to-origin lookup."""

    aliases: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    domains: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_DOMAINS))

    def alias(self, host: str) -> str:
        """Friendly name for ``host``; the host itself when unknown."""
        return self.aliases.get(host.lower(), host)

    def resolve(self, name: str) -> str:
        """Turn an alias or a host name into a host name."""
        wanted = name.strip()
        for host, alias in self.aliases.items():
            if alias.lower() == wanted.lower():
                return host
        return wanted.lower()

    def origin_for(self, repository: str) -> str:
        """Origin host serving ``repository``, looked up by domain suffix."""
        name = repository.lower()
        for domain in sorted(self.domains, key=len, reverse=True):
            if name == domain or name.endswith("." + domain):
                return self.domains[domain]
        raise ConfigurationError(
            f"No origin host known for {repository}; pass --host explicitly"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"aliases": dict(self.aliases), "domains": dict(self.domains)}


def repository_url(host: str, repository: str) -> str:
    """Base URL of ``repository`` on ``host``."""
    return f"http://{host}/cvmfs/{repository}"


def load_host_table(path: Optional[Path] = None) -> HostTable:
    """
    Load the host table, merging an optional YAML file over the defaults.

    Raises:
        ConfigurationError: if the file is missing or not a mapping
    """
    table = HostTable()
    if path is None:
        return table

    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Hosts file does not exist: {path}")

    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(f"Hosts file must contain a mapping: {path}")

    for section in ("aliases", "domains"):
        entries = data.get(section) or {}
        if not isinstance(entries, dict):
            raise ConfigurationError(f"'{section}' in {path} must be a mapping")
        target = getattr(table, section)
        for key, value in entries.items():
            target[str(key).lower()] = str(value)

    logger.info(
        f"Loaded host table from {path}: "
        f"{len(table.aliases)} aliases, {len(table.domains)} domains"
    )
    return table
