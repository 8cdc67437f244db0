#!/usr/bin/env python3
"""
berth CLI - Main entry point.

Usage:
    berth [OPTIONS] COMMAND [ARGS]...

Create containers on a Docker-compatible engine, pulling missing images
on demand and optionally pinning them through content trust.
"""

import logging
import os
from typing import List, Optional

import typer
from rich.table import Table

from .. import __version__
from ..config import ConfigError, PullPolicy
from ..models import ContainerConfig, HostConfig
from ..service import ContainerCreator
from .async_typer import AsyncTyper
from .client import get_config, get_engine
from .decorators import require_engine, reserve_cidfile
from .output import out


# Create the main Typer app
app = AsyncTyper(
    name="berth",
    help="Create containers on a Docker-compatible engine",
    add_completion=True,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        out.result(f"berth version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-D",
        help="Log engine requests and pipeline steps to stderr.",
    ),
) -> None:
    """
    berth - container creation with lazy pulls and content trust.
    """
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(levelname)s %(name)s: %(message)s",
        )


def _parse_labels(labels: List[str]) -> dict[str, str]:
    parsed: dict[str, str] = {}
    for label in labels:
        key, _, value = label.partition("=")
        if not key:
            raise typer.BadParameter(f"invalid label: {label!r}", param_hint="--label")
        parsed[key] = value
    return parsed


def _parse_pull(value: Optional[str]) -> Optional[PullPolicy]:
    if value is None:
        return None
    try:
        return PullPolicy.parse(value)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--pull")


@app.command(context_settings={"allow_interspersed_args": False})
@reserve_cidfile
@require_engine
async def create(
    image: str = typer.Argument(..., help="Image to create the container from"),
    command: Optional[List[str]] = typer.Argument(None, help="Command and arguments to run"),
    name: Optional[str] = typer.Option(None, "--name", help="Assign a name to the container"),
    pull: Optional[str] = typer.Option(
        None,
        "--pull",
        help="Pull image before creating: always, missing or never (default: from config)",
    ),
    cidfile: Optional[str] = typer.Option(
        None, "--cidfile", help="Write the container ID to the file (must not exist)",
    ),
    content_trust: Optional[bool] = typer.Option(
        None,
        "--content-trust/--disable-content-trust",
        help="Resolve tags to signed digests (default: from config)",
    ),
    env: Optional[List[str]] = typer.Option(None, "--env", "-e", help="Set environment variables"),
    label: Optional[List[str]] = typer.Option(None, "--label", "-l", help="Set metadata (key=value)"),
    volume: Optional[List[str]] = typer.Option(None, "--volume", "-v", help="Bind mount a volume"),
    network: Optional[str] = typer.Option(None, "--network", help="Connect the container to a network"),
    entrypoint: Optional[str] = typer.Option(None, "--entrypoint", help="Overwrite the image entrypoint"),
    workdir: Optional[str] = typer.Option(None, "--workdir", "-w", help="Working directory inside the container"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Username or UID"),
    tty: bool = typer.Option(False, "--tty", "-t", help="Allocate a pseudo-TTY"),
    interactive: bool = typer.Option(False, "--interactive", "-i", help="Keep STDIN open"),
    privileged: bool = typer.Option(False, "--privileged", help="Give extended privileges"),
    rm: bool = typer.Option(False, "--rm", help="Remove the container when it exits"),
) -> None:
    """Create a new container.

    Prints only the container ID on stdout; pull progress and warnings go
    to stderr.  If the image is not present locally it is pulled and the
    creation retried once.
    """
    policy = _parse_pull(pull)
    labels = _parse_labels(label or [])

    settings = get_config()
    if content_trust is not None:
        settings = settings.with_trust(content_trust)

    config = ContainerConfig(
        image=image,
        cmd=command or None,
        entrypoint=[entrypoint] if entrypoint is not None else None,
        env=env or None,
        labels=labels or None,
        working_dir=workdir,
        user=user,
        tty=tty or None,
        open_stdin=interactive or None,
        attach_stdin=interactive or None,
    )
    host_config = HostConfig(
        binds=volume or None,
        network_mode=network,
        privileged=privileged or None,
        auto_remove=rm or None,
    )

    creator = ContainerCreator(get_engine(), settings, out.reporter())
    outcome = await creator.create(
        config,
        host_config,
        name=name,
        cidfile=cidfile,  # opened by @reserve_cidfile
        pull=policy,
    )
    out.result(outcome.container_id)


@app.command(name="pull")
@require_engine
async def pull_cmd(
    image: str = typer.Argument(..., help="Image to pull"),
    content_trust: Optional[bool] = typer.Option(
        None,
        "--content-trust/--disable-content-trust",
        help="Pull the signed digest of the tag (default: from config)",
    ),
) -> None:
    """Pull an image from its registry."""
    settings = get_config()
    if content_trust is not None:
        settings = settings.with_trust(content_trust)

    creator = ContainerCreator(get_engine(), settings, out.reporter())
    pulled = await creator.pull(image)
    out.result(str(pulled))


@app.command(name="config")
def config_cmd(
    key: Optional[str] = typer.Argument(
        None, help="Config key to display (e.g. trust.enabled, create.pull)"
    ),
) -> None:
    """View berth configuration.

    Configuration is read from (highest to lowest priority):
      1. BERTH_* environment variables
      2. ~/.config/berth/berth.conf  (user)
      3. /etc/berth/berth.conf       (system)

    Examples:
        berth config                 # Show all config
        berth config trust.enabled   # Get one value
    """
    try:
        values = get_config().as_dict()
    except ConfigError as e:
        out.error(str(e))
        raise typer.Exit(1)

    if key is None:
        table = Table(show_header=True)
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")
        for setting, value in values.items():
            table.add_row(setting, value)
        out.console.print(table)
        return

    if key not in values:
        out.error(f"Unknown config key: {key}")
        out.hint(f"Valid keys: {', '.join(values)}")
        raise typer.Exit(1)

    out.result(f"{key} = {values[key]}")


def cli() -> None:
    """CLI entry point for the console script."""
    prog_name = os.environ.get("BERTH_PROG_NAME", "berth")
    app(prog_name=prog_name)


if __name__ == "__main__":
    cli()
