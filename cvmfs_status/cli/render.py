"""
Rendering — Terminal table and JSON views of an assessment.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import click

from ..models.endpoint import EndpointStatus, RepositoryAssessment, Verdict

# Outside the 0-3 verdict range so automation never confuses the two
EXIT_CONFIG_ERROR = 64

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

STATUS_COLORS = {
    EndpointStatus.ONLINE: "green",
    EndpointStatus.SYNCHRONIZING: "cyan",
    EndpointStatus.DEGRADED: "yellow",
    EndpointStatus.EXPIRED: "magenta",
    EndpointStatus.STALE: "yellow",
    EndpointStatus.DOWN: "red",
}

VERDICT_STYLES = {
    Verdict.HEALTHY: ("✅", "green"),
    Verdict.DEGRADED: ("⚠️", "yellow"),
    Verdict.STALE: ("⏳", "yellow"),
    Verdict.DOWN: ("❌", "red"),
}

COLUMNS = (
    "ALIAS",
    "ROLE",
    "STATUS",
    "REVISION",
    "LAST UPDATE (UTC)",
    "LAST SNAPSHOT (UTC)",
    "TTL",
    "WHITELIST EXPIRY (UTC)",
    "CONTACT",
)


def format_time(value: Optional[datetime]) -> str:
    if value is None:
        return "-"
    return value.astimezone(timezone.utc).strftime(TIME_FORMAT)


def echo_error(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)


def echo_json(data: Dict[str, Any]) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def assessment_rows(assessment: RepositoryAssessment) -> List[List[str]]:
    rows = []
    for e in assessment.endpoints:
        rows.append([
            e.alias,
            e.role.value,
            e.status.value,
            str(e.revision),
            format_time(e.last_update),
            format_time(e.last_snapshot),
            str(e.ttl_seconds) if e.ttl_seconds is not None else "-",
            format_time(e.whitelist_expiry),
            e.contact or "-",
        ])
    return rows


def render_assessment(assessment: RepositoryAssessment) -> None:
    """Print the endpoint table, degradations and the verdict."""
    rows = assessment_rows(assessment)
    widths = [
        max(len(COLUMNS[i]), *(len(row[i]) for row in rows)) if rows else len(COLUMNS[i])
        for i in range(len(COLUMNS))
    ]

    click.echo()
    click.secho(f"📦 {assessment.repository}", bold=True)
    click.echo()
    click.echo("  " + "  ".join(c.ljust(w) for c, w in zip(COLUMNS, widths)))

    for endpoint, row in zip(assessment.endpoints, rows):
        cells = [cell.ljust(w) for cell, w in zip(row, widths)]
        click.echo("  " + "  ".join(cells[:2]) + "  ", nl=False)
        click.secho(cells[2], fg=STATUS_COLORS.get(endpoint.status, "white"), nl=False)
        click.echo("  " + "  ".join(cells[3:]))

    issues = [e for e in assessment.endpoints if e.degradations]
    if issues or len(assessment.degradations):
        click.echo()
        click.echo("Degradations:")
        for endpoint in issues:
            for message in endpoint.degradations:
                click.echo(f"  • {endpoint.alias}: {message}")
        for message in assessment.degradations:
            click.echo(f"  • {assessment.repository}: {message}")

    verdict = assessment.verdict if assessment.verdict is not None else Verdict.DOWN
    icon, color = VERDICT_STYLES[verdict]
    click.echo()
    click.secho(f"{icon} {verdict.text}", fg=color, bold=True)
    click.echo(f"   Replicas up: {assessment.num_up}  Minimum revision: {assessment.min_revision}")
    click.echo()
