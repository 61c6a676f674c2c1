"""
Tests for settings parsing and the host table.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cvmfs_status.config.hosts import (
    DEFAULT_ALIASES,
    HostTable,
    load_host_table,
    repository_url,
)
from cvmfs_status.config.settings import DEFAULT_STALE_THRESHOLD_SECONDS, AuditSettings
from cvmfs_status.errors import ConfigurationError, CvmfsStatusError


class TestAuditSettings:

    def test_defaults(self):
        settings = AuditSettings.from_env({})

        assert settings.timeout_seconds == 5.0
        assert settings.wait_interval_seconds == 20.0
        assert settings.stale_threshold_seconds == DEFAULT_STALE_THRESHOLD_SECONDS == 1200
        assert settings.proxy_port == 8000
        assert settings.workers == 1
        assert settings.user_agent.startswith("cvmfs-status/")
        assert settings.hosts_file is None

    def test_from_env(self):
        settings = AuditSettings.from_env({
            "CVMFS_STATUS_TIMEOUT_SECONDS": "2.5",
            "CVMFS_STATUS_WAIT_INTERVAL_SECONDS": "0",
            "CVMFS_STATUS_STALE_THRESHOLD_SECONDS": "600",
            "CVMFS_STATUS_PROXY_PORT": "3128",
            "CVMFS_STATUS_WORKERS": "4",
            "CVMFS_STATUS_USER_AGENT": "probe/1",
            "CVMFS_STATUS_HOSTS_FILE": "/etc/hosts.yaml",
        })

        assert settings.timeout_seconds == 2.5
        assert settings.wait_interval_seconds == 0
        assert settings.stale_threshold_seconds == 600
        assert settings.proxy_port == 3128
        assert settings.workers == 4
        assert settings.user_agent == "probe/1"
        assert settings.hosts_file == "/etc/hosts.yaml"

    def test_blank_values_use_defaults(self):
        settings = AuditSettings.from_env({"CVMFS_STATUS_WORKERS": "  "})

        assert settings.workers == 1

    @pytest.mark.parametrize("name,value", [
        ("CVMFS_STATUS_TIMEOUT_SECONDS", "soon"),
        ("CVMFS_STATUS_TIMEOUT_SECONDS", "0"),
        ("CVMFS_STATUS_PROXY_PORT", "70000"),
        ("CVMFS_STATUS_WORKERS", "0"),
        ("CVMFS_STATUS_WORKERS", "1.5"),
        ("CVMFS_STATUS_STALE_THRESHOLD_SECONDS", "-1"),
    ])
    def test_invalid_values(self, name, value):
        with pytest.raises(ConfigurationError):
            AuditSettings.from_env({name: value})

    def test_error_is_part_of_the_hierarchy(self):
        with pytest.raises(CvmfsStatusError, match="not an integer"):
            AuditSettings.from_env({"CVMFS_STATUS_WORKERS": "many"})

    def test_override_ignores_none(self):
        settings = AuditSettings()

        assert settings.override(timeout_seconds=None) is settings
        assert settings.override(timeout_seconds=1.0, workers=None).timeout_seconds == 1.0

    def test_override_validates(self):
        with pytest.raises(ConfigurationError):
            AuditSettings().override(workers=0)


class TestHostTable:

    def test_alias_of_known_host(self):
        table = HostTable()

        assert table.alias("cvmfs-stratum-one.cern.ch") == "CERN"
        assert table.alias("CVMFS-Stratum-One.cern.ch") == "CERN"

    def test_alias_of_unknown_host_is_host(self):
        assert HostTable().alias("mirror.example.org") == "mirror.example.org"

    def test_resolve(self):
        table = HostTable()

        assert table.resolve("ral") == "cernvmfs.gridpp.rl.ac.uk"
        assert table.resolve("Mirror.Example.org") == "mirror.example.org"

    @pytest.mark.parametrize("repository,origin", [
        ("atlas.cern.ch", "cvmfs-stratum-zero.cern.ch"),
        ("pheno.egi.eu", "cvmfs-egi.gridpp.rl.ac.uk"),
        ("oasis.opensciencegrid.org", "oasis.opensciencegrid.org"),
    ])
    def test_origin_for(self, repository, origin):
        assert HostTable().origin_for(repository) == origin

    def test_longest_domain_wins(self):
        table = HostTable(domains={"cern.ch": "a", "sft.cern.ch": "b"})

        assert table.origin_for("lhcb.sft.cern.ch") == "b"
        assert table.origin_for("atlas.cern.ch") == "a"

    def test_unknown_domain(self):
        with pytest.raises(ConfigurationError):
            HostTable().origin_for("repo.example.org")

    def test_suffix_must_match_a_label(self):
        with pytest.raises(ConfigurationError):
            HostTable().origin_for("notcern.ch")

    def test_repository_url(self):
        assert repository_url("s0.example.org", "atlas.cern.ch") == "http://s0.example.org/cvmfs/atlas.cern.ch"


class TestLoadHostTable:

    def test_defaults_without_file(self):
        table = load_host_table()

        assert table.aliases == DEFAULT_ALIASES

    def test_file_extends_and_overrides(self, tmp_path: Path):
        path = tmp_path / "hosts.yaml"
        path.write_text(
            "aliases:\n"
            "  Mirror.Example.org: MIRROR\n"
            "  cvmfs-stratum-one.cern.ch: CERN-S1\n"
            "domains:\n"
            "  example.org: s0.example.org\n"
        )

        table = load_host_table(path)

        assert table.alias("mirror.example.org") == "MIRROR"
        assert table.alias("cvmfs-stratum-one.cern.ch") == "CERN-S1"
        assert table.origin_for("repo.example.org") == "s0.example.org"
        assert table.origin_for("atlas.cern.ch") == "cvmfs-stratum-zero.cern.ch"

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "hosts.yaml"
        path.write_text("")

        assert load_host_table(path).aliases == DEFAULT_ALIASES

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError):
            load_host_table(tmp_path / "nope.yaml")

    def test_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "hosts.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError):
            load_host_table(path)

    def test_section_not_a_mapping(self, tmp_path: Path):
        path = tmp_path / "hosts.yaml"
        path.write_text("aliases: [a, b]\n")

        with pytest.raises(ConfigurationError):
            load_host_table(path)
