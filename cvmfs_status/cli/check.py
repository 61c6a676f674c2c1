"""
CLI check command — assess one repository and exit with its verdict code.

Usage:
    cvmfs-status check REPOSITORY [--host H] [--replica H ...] [--json]
                                  [--wait-for-revision N] [--interval S]

Exit codes: 0 healthy, 1 degraded, 2 stale, 3 down, 64 configuration error.
"""

from __future__ import annotations

from typing import Optional, Tuple

import click

from ..config.hosts import repository_url
from ..engine.audit import RepositoryAuditor
from ..engine.wait import wait_for_revision
from ..errors import ConfigurationError, ProbeError
from ..models.endpoint import Verdict
from ..probe.fetcher import Fetcher
from .render import EXIT_CONFIG_ERROR, echo_error, echo_json, render_assessment


@click.command("check")
@click.argument("repository")
@click.option("--host", "-s", "origin", default=None, help="Host or alias to start from (default: by domain)")
@click.option("--replica", "-r", "replicas", multiple=True, help="Extra replica host or alias")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--wait-for-revision", "-w", "target", type=int, default=None,
              help="Block until every endpoint serves this revision")
@click.option("--interval", type=float, default=None, help="Seconds between wait attempts")
@click.option("--max-attempts", type=click.IntRange(min=1), default=None,
              help="Stop waiting after this many attempts")
@click.option("--timeout", type=float, default=None, help="Per-request timeout in seconds")
@click.option("--workers", type=int, default=None, help="Endpoints probed concurrently")
@click.pass_context
def check(
    ctx: click.Context,
    repository: str,
    origin: Optional[str],
    replicas: Tuple[str, ...],
    as_json: bool,
    target: Optional[int],
    interval: Optional[float],
    max_attempts: Optional[int],
    timeout: Optional[float],
    workers: Optional[int],
) -> None:
    """Check replication health of REPOSITORY."""
    hosts = ctx.obj["hosts"]

    try:
        settings = ctx.obj["settings"].override(
            timeout_seconds=timeout,
            wait_interval_seconds=interval,
            workers=workers,
        )
        origin_host = hosts.resolve(origin) if origin else hosts.origin_for(repository)
    except ConfigurationError as e:
        echo_error(str(e))
        ctx.exit(EXIT_CONFIG_ERROR)

    primary_url = repository_url(origin_host, repository)
    extra = [repository_url(hosts.resolve(r), repository) for r in replicas]

    with Fetcher(timeout=settings.timeout_seconds, user_agent=settings.user_agent) as fetcher:
        auditor = RepositoryAuditor(fetcher, settings, hosts)
        try:
            assessment = wait_for_revision(
                lambda: auditor.assess(repository, primary_url, extra),
                target,
                interval_seconds=settings.wait_interval_seconds,
                max_attempts=max_attempts,
            )
        except ProbeError as e:
            echo_error(f"Aborting: {e}")
            ctx.exit(int(Verdict.DOWN))

    if as_json:
        echo_json(assessment.to_dict())
    else:
        render_assessment(assessment)

    ctx.exit(int(assessment.verdict))
