"""
CLI inspection commands — dump one endpoint's manifest, list the host table.

Usage:
    cvmfs-status manifest URL [--json]
    cvmfs-status hosts [--json]
"""

from __future__ import annotations

import click

from ..errors import ProbeError
from ..models.endpoint import Verdict
from ..probe.fetcher import Fetcher
from ..probe.formats import format_whitelist_timestamp
from ..probe.prober import EndpointProber
from .render import echo_error, echo_json


@click.command("manifest")
@click.argument("url")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def manifest(ctx: click.Context, url: str, as_json: bool) -> None:
    """Show the parsed manifest and whitelist served at URL."""
    settings = ctx.obj["settings"]

    with Fetcher(timeout=settings.timeout_seconds, user_agent=settings.user_agent) as fetcher:
        try:
            raw = EndpointProber(fetcher).probe(url)
        except ProbeError as e:
            echo_error(str(e))
            ctx.exit(int(Verdict.DOWN))

    result = {
        "url": raw.url,
        "manifest": dict(raw.manifest.fields),
        "whitelist_expiry": format_whitelist_timestamp(raw.whitelist.expiry),
        "last_snapshot": raw.last_snapshot,
        "snapshotting": raw.snapshotting,
        "missing": list(raw.degradations),
    }

    if as_json:
        echo_json(result)
        return

    click.echo()
    click.secho(f"📄 {raw.url}", bold=True)
    click.echo()
    for key, value in sorted(result["manifest"].items()):
        click.echo(f"  {key}  {value}")
    click.echo()
    click.echo(f"  Whitelist expiry:  {result['whitelist_expiry']}")
    click.echo(f"  Last snapshot:     {raw.last_snapshot or '-'}")
    click.echo(f"  Snapshotting:      {'yes' if raw.snapshotting else 'no'}")
    for message in raw.degradations:
        click.secho(f"  ⚠️  {message}", fg="yellow")
    click.echo()


@click.command("hosts")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def hosts(ctx: click.Context, as_json: bool) -> None:
    """Show the host alias and domain table in effect."""
    table = ctx.obj["hosts"]

    if as_json:
        echo_json(table.to_dict())
        return

    click.echo()
    click.echo("Aliases:")
    for host, alias in sorted(table.aliases.items(), key=lambda item: item[1]):
        click.echo(f"  {alias:12} {host}")
    click.echo()
    click.echo("Domains:")
    for domain, host in sorted(table.domains.items()):
        click.echo(f"  {domain:24} {host}")
    click.echo()
