"""
PXP agent — CLI entrypoint.

Usage:
    pxp-agent --help
    pxp-agent modules list
    pxp-agent -v modules run echo run --params '{"message": "hi"}'

Logging: -v/-q/--debug pick the console level; without them
PXP_LOG_LEVEL applies. PXP_LOG_FILE adds a file log.
"""

from __future__ import annotations

from pathlib import Path

import click

from pxp_agent import __version__
from pxp_agent.core.observability.logging_config import level_from_flags, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="pxp-agent")
@click.option("--verbose", "-v", is_flag=True, help="Log module loading and action runs.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Log action arguments and module output.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to pxp-agent.yml (default: PXP_AGENT_CONFIG or auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """PXP agent — run remote actions through external modules."""
    setup_logging(level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet))
    ctx.obj = {"config_path": config_path, "quiet": quiet}


# ── Sub-command groups (pxp_agent/ui/cli/) ──────────────────────────

from pxp_agent.ui.cli.modules import modules  # noqa: E402

cli.add_command(modules)


if __name__ == "__main__":
    cli()
