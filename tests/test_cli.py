"""
Tests for the cvmfs-status CLI — check, manifest, hosts.

Uses Click's CliRunner; the HTTP layer is swapped for the fake repository
server so commands run without network access.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from click.testing import CliRunner

from cvmfs_status import __version__
from cvmfs_status.main import cli
from cvmfs_status.probe.fetcher import Fetcher

from tests.fakes import ORIGIN_URL, REPLICA_B_URL, REPLICA_URL, REPOSITORY, default_metainfo


# -- Fixtures -----------------------------------------------------------------

@pytest.fixture(autouse=True)
def offline(server, monkeypatch):
    """Route every Fetcher the commands build through the fake server."""

    def make_fetcher(**kwargs):
        return Fetcher(transport=server.transport(), **kwargs)

    monkeypatch.setattr("cvmfs_status.cli.check.Fetcher", make_fetcher)
    monkeypatch.setattr("cvmfs_status.cli.info.Fetcher", make_fetcher)
    for name in list(os.environ):
        if name.startswith("CVMFS_STATUS_"):
            monkeypatch.delenv(name)

    yield

    # setup_logging() attached a handler to the runner's captured stderr
    logging.getLogger().handlers.clear()


def _run(args: list, env: dict | None = None):
    runner = CliRunner()
    return runner.invoke(cli, ["--log-level", "CRITICAL", *args], env=env, obj={})


def _healthy(server, replica_revision=42, **replica):
    server.add_endpoint(ORIGIN_URL, revision=42, metainfo=default_metainfo())
    server.add_endpoint(
        REPLICA_URL,
        revision=replica_revision,
        metainfo=default_metainfo(),
        last_snapshot=datetime.now(timezone.utc) - timedelta(minutes=5),
        **replica,
    )


# -- check --------------------------------------------------------------------

class TestCheck:

    def test_healthy_json(self, server):
        _healthy(server)

        result = _run(["check", REPOSITORY, "--host", "s0.example.org", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "HEALTHY"
        assert data["code"] == 0
        assert data["repository"] == REPOSITORY
        assert [e["role"] for e in data["endpoints"]] == ["origin", "replica"]

    def test_healthy_table(self, server):
        _healthy(server)

        result = _run(["check", REPOSITORY, "-s", "s0.example.org"])

        assert result.exit_code == 0
        assert "HEALTHY" in result.output
        assert "Replicas up: 1" in result.output
        assert "s1.example.org" in result.output

    def test_stale_exit_code(self, server):
        server.add_endpoint(
            ORIGIN_URL,
            revision=42,
            metainfo=default_metainfo(),
            published=datetime.now(timezone.utc) - timedelta(minutes=25),
        )
        server.add_endpoint(REPLICA_URL, revision=40, metainfo=default_metainfo())

        result = _run(["check", REPOSITORY, "--host", "s0.example.org"])

        assert result.exit_code == 2
        assert "STALE!" in result.output
        assert "synchronization is lagging" in result.output

    def test_degraded_exit_code(self, server):
        _healthy(server, geo=False)

        result = _run(["check", REPOSITORY, "--host", "s0.example.org", "--json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["status"] == "DEGRADED!"
        assert data["endpoints"][1]["degradations"] == ["doesn't run geo-routing service"]

    def test_origin_unreachable(self, server):
        result = _run(["check", REPOSITORY, "--host", "s0.example.org"])

        assert result.exit_code == 3
        assert "DOWN!" in result.output

    def test_malformed_primary_aborts(self, server):
        server.put(f"{ORIGIN_URL}/.cvmfspublished", b"Sabc\n")

        result = _run(["check", REPOSITORY, "--host", "s0.example.org"])

        assert result.exit_code == 3
        assert "Aborting" in result.output

    def test_extra_replica(self, server):
        _healthy(server)
        server.add_endpoint(REPLICA_B_URL, metainfo=default_metainfo())

        result = _run([
            "check", REPOSITORY, "--host", "s0.example.org",
            "--replica", "s1b.example.org", "--json",
        ])

        data = json.loads(result.stdout)
        assert [e["url"] for e in data["endpoints"]] == [ORIGIN_URL, REPLICA_URL, REPLICA_B_URL]

    def test_wait_gives_up(self, server):
        _healthy(server)

        result = _run([
            "check", REPOSITORY, "--host", "s0.example.org",
            "--wait-for-revision", "43", "--max-attempts", "1", "--json",
        ])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert "revision wait timed out" in data["degradations"]

    def test_wait_already_satisfied(self, server):
        _healthy(server)

        result = _run([
            "check", REPOSITORY, "--host", "s0.example.org", "-w", "42", "--max-attempts", "1",
        ])

        assert result.exit_code == 0

    def test_unknown_domain_is_configuration_error(self):
        result = _run(["check", "repo.example.org"])

        assert result.exit_code == 64
        assert "No origin host known" in result.output

    def test_bad_worker_option(self):
        result = _run(["check", REPOSITORY, "--workers", "0"])

        assert result.exit_code == 64

    def test_bad_environment(self):
        result = _run(["hosts"], env={"CVMFS_STATUS_PROXY_PORT": "http"})

        assert result.exit_code == 64
        assert "Configuration error" in result.output


# -- manifest / hosts ---------------------------------------------------------

class TestInspection:

    def test_manifest_json(self, server):
        server.add_endpoint(ORIGIN_URL, revision=7, snapshotting=True, info=False)

        result = _run(["manifest", ORIGIN_URL, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["manifest"]["S"] == "7"
        assert data["manifest"]["N"] == REPOSITORY
        assert data["snapshotting"] is True
        assert data["missing"] == ["no meta.json", "no repositories.json"]

    def test_manifest_text(self, server):
        server.add_endpoint(ORIGIN_URL, revision=7)

        result = _run(["manifest", ORIGIN_URL])

        assert result.exit_code == 0
        assert "S  7" in result.output
        assert "Whitelist expiry" in result.output

    def test_manifest_unreachable(self):
        result = _run(["manifest", ORIGIN_URL])

        assert result.exit_code == 3
        assert "manifest could not be fetched" in result.output

    def test_hosts_json(self):
        result = _run(["hosts", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["aliases"]["cvmfs-stratum-one.cern.ch"] == "CERN"
        assert data["domains"]["cern.ch"] == "cvmfs-stratum-zero.cern.ch"

    def test_hosts_file(self, tmp_path: Path):
        path = tmp_path / "hosts.yaml"
        path.write_text("aliases:\n  s1.example.org: EXAMPLE\n")

        result = _run(["--hosts-file", str(path), "hosts"])

        assert result.exit_code == 0
        assert "EXAMPLE" in result.output

    def test_alias_used_in_report(self, server, tmp_path: Path):
        _healthy(server)
        path = tmp_path / "hosts.yaml"
        path.write_text("aliases:\n  s0.example.org: ORIGIN\n  s1.example.org: MIRROR\n")

        result = _run(["--hosts-file", str(path), "check", REPOSITORY, "--host", "origin", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [e["alias"] for e in data["endpoints"]] == ["ORIGIN", "MIRROR"]

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output
