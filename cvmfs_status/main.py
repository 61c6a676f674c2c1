"""
cvmfs-status — CLI Entry Point

Usage:
    cvmfs-status check atlas.cern.ch [--host CERN-S0] [--json]
    cvmfs-status check atlas.cern.ch --wait-for-revision 1234
    cvmfs-status manifest http://host/cvmfs/atlas.cern.ch
    cvmfs-status hosts
"""

from __future__ import annotations

# Load .env file FIRST, before anything reads CVMFS_STATUS_* variables
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from typing import Optional

import click

from . import __version__
from .cli.check import check
from .cli.info import hosts, manifest
from .cli.render import EXIT_CONFIG_ERROR, echo_error
from .config.hosts import load_host_table
from .config.settings import AuditSettings
from .errors import ConfigurationError
from .logging_config import setup_logging


@click.group()
@click.version_option(__version__, prog_name="cvmfs-status")
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR")
@click.option("--log-format", type=click.Choice(["text", "json"]), default=None)
@click.option(
    "--hosts-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML file with extra host aliases and domains",
)
@click.pass_context
def cli(
    ctx: click.Context,
    log_level: Optional[str],
    log_format: Optional[str],
    hosts_file: Optional[Path],
) -> None:
    """cvmfs-status — Replication health of a stratum 0 and its stratum 1s."""
    setup_logging(log_level, log_format)
    ctx.ensure_object(dict)

    try:
        settings = AuditSettings.from_env()
        table_path = hosts_file or (Path(settings.hosts_file) if settings.hosts_file else None)
        ctx.obj["settings"] = settings
        ctx.obj["hosts"] = load_host_table(table_path)
    except ConfigurationError as e:
        echo_error(f"Configuration error: {e}")
        ctx.exit(EXIT_CONFIG_ERROR)


cli.add_command(check)
cli.add_command(manifest)
cli.add_command(hosts)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
