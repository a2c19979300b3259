# src/ledgerlab/cli.py
"""ledgerlab Command Line Interface.

Entry point for the ledgerlab CLI tool.
"""

from pathlib import Path
from typing import TYPE_CHECKING

import typer
from pydantic import ValidationError

from ledgerlab import __version__
from ledgerlab.contracts import (
    ConfigWriteError,
    LaunchError,
    ProvisionError,
    Topology,
    TopologyValidationError,
)
from ledgerlab.core.config import LedgerlabSettings, SessionSettings, load_settings
from ledgerlab.core.logging import configure_logging

if TYPE_CHECKING:
    from ledgerlab.engine import ProvisionResult, Provisioner

app = typer.Typer(
    name="ledgerlab",
    help="ledgerlab: local MANY ledger test network under tmux.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"ledgerlab version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """ledgerlab: local MANY ledger test network under tmux."""
    pass


def _load_settings_or_exit(settings: str | None, verbose: bool = False) -> LedgerlabSettings:
    settings_path = Path(settings) if settings else None
    try:
        config = load_settings(settings_path)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None

    level = "DEBUG" if verbose else config.logging.level
    configure_logging(level=level, json_output=config.logging.json_output)
    return config


def _topology_or_exit(config: LedgerlabSettings) -> Topology:
    from ledgerlab.core.topology import default_topology

    try:
        return default_topology(config)
    except TopologyValidationError as e:
        typer.echo(f"Topology error: {e}", err=True)
        raise typer.Exit(1) from None


def _provision_or_exit(
    provisioner: "Provisioner", root_dir: Path | None, topology: Topology
) -> "ProvisionResult":
    # The root directory is reported even on failure so it can be cleaned up
    try:
        result = provisioner.provision(root_dir, topology)
    except ProvisionError as e:
        if e.root_dir is not None:
            typer.echo(f"Using directory {e.root_dir} for tendermint root.")
        typer.echo(f"Provisioning failed: {e}", err=True)
        raise typer.Exit(1) from None
    typer.echo(f"Using directory {result.root_dir} for tendermint root.")
    return result


@app.command()
def up(
    root_dir: Path | None = typer.Argument(
        None,
        help="Root directory for node state and logs (default: fresh temp dir).",
    ),
    session_name: str | None = typer.Argument(
        None,
        help="tmux session name (default: from settings, 'many').",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    no_attach: bool = typer.Option(
        False,
        "--no-attach",
        help="Launch the session but don't attach to it.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show detailed output.",
    ),
) -> None:
    """Provision the root directory and launch every process under tmux.

    Blocks while attached. Detaching leaves all processes running.
    """
    from ledgerlab.engine import Orchestrator, Provisioner, TendermintInitializer, TmuxBackend

    config = _load_settings_or_exit(settings, verbose=verbose)

    name = session_name or config.session.name
    if session_name is not None:
        try:
            SessionSettings(name=session_name)
        except ValidationError:
            typer.echo(f"Error: Invalid session name: {session_name!r}", err=True)
            raise typer.Exit(1) from None

    topology = _topology_or_exit(config)

    provisioner = Provisioner(TendermintInitializer(config.binaries.tendermint))
    provisioned = _provision_or_exit(provisioner, root_dir, topology)

    orchestrator = Orchestrator(TmuxBackend(config.binaries.tmux), config)
    attach = config.session.attach and not no_attach
    try:
        result = orchestrator.run(name, provisioned.root_dir, topology, attach=attach)
    except (LaunchError, TopologyValidationError) as e:
        typer.echo(f"Launch failed: {e}", err=True)
        raise typer.Exit(1) from None

    if verbose or not attach:
        typer.echo(f"Session '{result.session}': {len(result.launched)} window(s) started")
        for window in result.failed:
            typer.echo(f"  failed: {window}", err=True)
    raise typer.Exit(result.exit_code)


@app.command()
def provision(
    root_dir: Path | None = typer.Argument(
        None,
        help="Root directory for node state (default: fresh temp dir).",
    ),
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Initialize node state and apply config overrides without launching."""
    from ledgerlab.engine import Provisioner, TendermintInitializer

    config = _load_settings_or_exit(settings)
    topology = _topology_or_exit(config)

    provisioner = Provisioner(TendermintInitializer(config.binaries.tendermint))
    result = _provision_or_exit(provisioner, root_dir, topology)
    if result.initialized:
        typer.echo(f"  Initialized {len(topology.nodes)} node(s)")
    else:
        typer.echo("  Already provisioned, nothing to do")


@app.command()
def topology(
    settings: str | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
) -> None:
    """Show the processes, addresses and launch order."""
    from ledgerlab.engine import build_launch_plan

    config = _load_settings_or_exit(settings)
    topo = _topology_or_exit(config)

    typer.echo("NODES:")
    for node in topo.nodes:
        typer.echo(
            f"  {node.name:12} p2p={node.p2p}  rpc={node.rpc}  proxy-app={node.proxy_app}"
        )

    plan = build_launch_plan(topo, Path("<root>"), config)
    typer.echo("\nLAUNCH ORDER:")
    for index, spec in enumerate(plan.processes, start=1):
        after = f"  (after {', '.join(spec.depends_on)})" if spec.depends_on else ""
        typer.echo(f"  {index}. {spec.name:20} {spec.kind.value:12}{after}")

    typer.echo(f"\nPorts: {', '.join(str(p) for p in sorted(topo.declared_ports()))}")


@app.command()
def patch(
    file: Path = typer.Argument(..., help="TOML file to patch in place."),
    key: str = typer.Argument(..., help="Dotted key path, e.g. p2p.laddr."),
    value: str = typer.Argument(..., help="Value to set."),
    value_type: str = typer.Option(
        "str",
        "--type",
        "-t",
        help="Value type: str, int, float or bool.",
    ),
) -> None:
    """Set a value at a key path in a TOML file."""
    from ledgerlab.core.config_patch import parse_scalar, set_value

    valid_types = {"str", "int", "float", "bool"}
    if value_type not in valid_types:
        typer.echo(f"Error: Invalid type '{value_type}'.", err=True)
        typer.echo(f"Valid types: {', '.join(sorted(valid_types))}", err=True)
        raise typer.Exit(1)

    try:
        scalar = parse_scalar(value, value_type)  # type: ignore[arg-type]
        set_value(file, key, scalar)
    except (ValueError, ConfigWriteError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None

    typer.echo(f"{key} = {scalar!r}")


@app.command(hidden=True)
def tee(
    command: list[str] = typer.Argument(..., help="Command and arguments, after --."),
    log: Path = typer.Option(..., "--log", help="Log file receiving a copy of the output."),
    env: list[str] | None = typer.Option(
        None,
        "--env",
        help="KEY=VALUE added to the command's environment (repeatable).",
    ),
) -> None:
    """Run a command with its output copied to the terminal and a log file."""
    from ledgerlab.engine.tee import run_teed

    bindings: dict[str, str] = {}
    for binding in env or []:
        key, sep, value = binding.partition("=")
        if not sep or not key:
            typer.echo(f"Error: Invalid --env binding: {binding!r}", err=True)
            raise typer.Exit(2)
        bindings[key] = value

    try:
        status = run_teed(command, log, bindings)
    except LaunchError:
        raise typer.Exit(127) from None
    raise typer.Exit(status)


if __name__ == "__main__":
    app()
