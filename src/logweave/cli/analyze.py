"""Analyze CLI commands for Logweave."""

import asyncio
import time
from pathlib import Path

import click

from logweave.cli.output import output_bundle, output_error, output_json
from logweave.core.errors import LogweaveError
from logweave.core.logging import info
from logweave.parsers import ParserRegistry


@click.command()
@click.argument(
    "files",
    nargs=-1,
    required=True,
    type=click.Path(path_type=Path, dir_okay=False),
)
@click.option(
    "--source",
    "-s",
    "log_format",
    required=True,
    help="Format of every input file (elk, defender, wazuh, sysmon)",
)
@click.option(
    "--nested",
    is_flag=True,
    default=False,
    help="Emit the dashboard layout (aptPatterns/fileMap/networkMap) as JSON",
)
@click.pass_context
def analyze(
    ctx: click.Context,
    files: tuple[Path, ...],
    log_format: str,
    nested: bool,
) -> None:
    """Normalize exported logs and report the derived attack chain.

    \b
    Examples:
      logweave analyze --source sysmon sysmon-export.json
      logweave -f human analyze -s wazuh alerts-1.json alerts-2.json
      logweave analyze -s elk --nested hits.ndjson

    Files that cannot be read or parsed are skipped; diagnostics are
    written to stderr. The bundle is written to stdout.
    """
    try:
        parser = ParserRegistry.create(log_format)
    except LogweaveError as e:
        output_error(e.to_structured_error())
        ctx.exit(1)
        return

    start_time = time.time()
    bundle = asyncio.run(parser.parse_logs(list(files), log_format))
    duration_ms = int((time.time() - start_time) * 1000)

    if nested:
        output_json(bundle.to_visualization())
    else:
        output_bundle(bundle)

    info(
        f"Found {len(bundle.threat_indicators)} threat indicators and "
        f"{len(bundle.attack_chain)} attack-chain steps in {duration_ms}ms"
    )


@click.command()
def formats() -> None:
    """List supported log formats."""
    output_json(
        [
            {
                "format": name,
                "parser": parser_class.__name__,
                "version": parser_class.version,
                "description": parser_class.description,
            }
            for name, parser_class in sorted(ParserRegistry.all().items())
        ]
    )
