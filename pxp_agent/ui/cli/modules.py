"""
CLI commands for external modules.

Thin wrappers over ``pxp_agent.core.modules``: list what loads from
the modules directory, or run a single action locally.
"""

from __future__ import annotations

import json
import sys
import uuid
from pathlib import Path

import click

from pxp_agent.core.models.request import ActionRequest, RequestType


def _build_registry(ctx: click.Context, modules_dir: str | None):
    """Load modules from ``modules_dir`` or from the agent configuration."""
    from pxp_agent.core.config.loader import ConfigError, load_configuration
    from pxp_agent.core.modules.registry import ModuleRegistry

    modules_config_dir: str | None = None
    if modules_dir is None:
        try:
            config = load_configuration(ctx.obj.get("config_path"))
        except ConfigError as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)
        modules_dir = config.modules_dir
        modules_config_dir = config.modules_config_dir

    registry = ModuleRegistry()
    registry.load_from_dir(modules_dir, modules_config_dir)
    return registry


@click.group()
def modules() -> None:
    """External modules — list and run actions."""


@modules.command("list")
@click.option("--modules-dir", "-m", default=None, help="Modules directory (overrides config).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_modules(ctx: click.Context, modules_dir: str | None, as_json: bool) -> None:
    """List the modules that load and their actions."""
    registry = _build_registry(ctx, modules_dir)
    status = registry.module_status()

    if as_json:
        click.echo(json.dumps(status, indent=2))
        return

    if not status:
        click.secho("No modules loaded.", fg="yellow")
        return

    click.secho(f"\n📦 Modules: {len(status)}", bold=True)
    for name, info in status.items():
        actions = ", ".join(info["actions"]) or "(no actions)"
        click.echo(f"   • {name}: {actions}")
    click.echo()


@modules.command("run")
@click.argument("module_name")
@click.argument("action")
@click.option("--params", "-p", default="{}", help="Action input as JSON.")
@click.option("--modules-dir", "-m", default=None, help="Modules directory (overrides config).")
@click.option(
    "--results-dir",
    "-r",
    type=click.Path(file_okay=False),
    default=None,
    help="Run non-blocking, storing output files in this directory.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run_action(
    ctx: click.Context,
    module_name: str,
    action: str,
    params: str,
    modules_dir: str | None,
    results_dir: str | None,
    as_json: bool,
) -> None:
    """Run ACTION of MODULE_NAME locally and print the outcome.

    Examples:

        pxp-agent modules run echo run --params '{"message": "hi"}'

        pxp-agent modules run echo run -r /tmp/job-1
    """
    from pxp_agent.core.modules.base import ProcessingError

    try:
        action_params = json.loads(params)
    except json.JSONDecodeError as e:
        click.secho(f"❌ --params is not valid JSON: {e}", fg="red", err=True)
        sys.exit(1)

    registry = _build_registry(ctx, modules_dir)
    module = registry.get(module_name)
    if module is None:
        click.secho(f"❌ Unknown module: {module_name}", fg="red", err=True)
        sys.exit(1)
    if not module.has_action(action):
        click.secho(f"❌ Unknown action '{action}' for module '{module_name}'", fg="red", err=True)
        sys.exit(1)

    request = ActionRequest(
        id=str(uuid.uuid4()),
        transaction_id=str(uuid.uuid4()),
        sender="pcp://localhost/cli",
        module=module_name,
        action=action,
        params=action_params,
        type=RequestType.BLOCKING,
    )
    if results_dir:
        Path(results_dir).mkdir(parents=True, exist_ok=True)
        request.type = RequestType.NON_BLOCKING
        request.results_dir = str(Path(results_dir).resolve())

    try:
        outcome = module.execute_action(request)
    except ProcessingError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(outcome.model_dump(mode="json"), indent=2))
    else:
        click.echo(json.dumps(outcome.results, indent=2))
        if outcome.stderr and not ctx.obj.get("quiet"):
            click.secho(outcome.stderr.rstrip(), fg="yellow", err=True)

    if not outcome.ok:
        sys.exit(outcome.exit_code)
