"""flexpublish CLI for running and inspecting conditional publishers - Tyro implementation."""

import json
import logging
import signal
import sys
from builtins import print as builtin_print
from pathlib import Path
from typing import Annotated

import attrs
import tyro
from rich import print
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from flexpublish.config import FlexPublishConfig, get_config, load_config, set_config_instance
from flexpublish.errors import BuildInterruptedError, ConfigurationError
from flexpublish.extension import get_display_name, get_registry
from flexpublish.model import Build, BuildListener, Launcher, Result
from flexpublish.runner import BuildRunner


# Subcommand definitions using attrs
@attrs.define
class RunBuild:
    """Run one build through the configured flexible publisher."""

    result: Annotated[str, tyro.conf.arg(aliases=["-r"])] = "SUCCESS"
    """Build result before publishers run (SUCCESS, UNSTABLE, FAILURE, ...)."""

    number: Annotated[int, tyro.conf.arg(aliases=["-n"])] = 1
    """Build number."""

    workspace: Annotated[Path | None, tyro.conf.arg(aliases=["-w"])] = None
    """Build workspace (default: current directory)."""


@attrs.define
class Kinds:
    """List registered run conditions and the publishers that may be wrapped."""

    project_kind: str | None = None
    """Project kind to check eligibility for (default: configured project kind)."""


@attrs.define
class Show:
    """Show the configured condition/publisher pairs in execution order."""

    json: bool = False
    """Output as JSON."""


# Type alias for all subcommands
Command = (
    Annotated[RunBuild, tyro.conf.subcommand(name="run")]
    | Annotated[Kinds, tyro.conf.subcommand(name="kinds")]
    | Annotated[Show, tyro.conf.subcommand(name="show")]
)


def setup_logging(debug: bool = False) -> None:
    """Configure logging with 100-character text width."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s - %(name)-20s - %(levelname)-8s - %(message).100s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def run_build(config: FlexPublishConfig, cmd: RunBuild) -> Result:
    """Run one build of the configured project.

    Args:
        config: Loaded configuration
        cmd: Run options

    Returns:
        Final build result

    Raises:
        ConfigurationError: If the configuration can't be bound
        ValueError: If the initial result is unknown
    """
    config.load_extensions()
    flexible = config.build_publisher()
    project = config.project.to_project()
    workspace = (cmd.workspace or Path.cwd()).resolve()

    env = {
        "BUILD_NUMBER": str(cmd.number),
        "JOB_NAME": project.name,
        "WORKSPACE": str(workspace),
    }
    build = Build(project=project, number=cmd.number, result=Result.from_name(cmd.result), workspace=workspace, env=env)
    launcher = Launcher(workspace, env)
    listener = BuildListener()

    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: launcher.interrupt())
    try:
        return BuildRunner(project, [flexible]).run(build, launcher, listener)
    except BuildInterruptedError:
        build.set_result(Result.ABORTED)
        listener.println(f"Finished: {build.result.name}")
        return build.result
    except OSError as e:
        listener.error(f"Publisher failed: {e}")
        build.set_result(Result.FAILURE)
        listener.println(f"Finished: {build.result.name}")
        return build.result
    finally:
        signal.signal(signal.SIGINT, previous_handler)


def show_kinds(project_kind: str | None) -> None:
    """Print registered condition kinds and wrappable publisher kinds."""
    registry = get_registry()
    console = Console()

    console.print(Panel("[bold cyan]Run Conditions[/bold cyan]", expand=False))
    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Display Name", style="green")
    for descriptor in registry.run_conditions():
        table.add_row(descriptor.id, descriptor.display_name)
    console.print(table)

    console.print(Panel(f"[bold cyan]Publishers for '{project_kind}' projects[/bold cyan]", expand=False))
    allowed = registry.allowed_publishers(project_kind)
    if not allowed:
        console.print("[yellow]No publishers can be wrapped for this project kind[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Kind", style="cyan")
    table.add_column("Display Name", style="green")
    table.add_column("Ordinal", style="magenta", justify="right")
    for descriptor in allowed:
        table.add_row(descriptor.id, descriptor.display_name, str(descriptor.ordinal))
    console.print(table)


def show_publishers(config: FlexPublishConfig, as_json: bool = False) -> None:
    """Print the configured conditional publishers in order."""
    config.load_extensions()
    flexible = config.build_publisher()

    rows = [
        {
            "index": index,
            "condition": get_display_name(conditional.condition),
            "publisher": get_display_name(conditional.publisher),
        }
        for index, conditional in enumerate(flexible.publishers, start=1)
    ]

    if as_json:
        builtin_print(json.dumps({"project": config.project.model_dump(), "publishers": rows}, indent=2))
        return

    console = Console()
    console.print(
        Panel(f"[bold cyan]{config.project.name}[/bold cyan] [dim]({config.project.kind})[/dim]", expand=False)
    )
    if not rows:
        console.print("[yellow]No publishers configured[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Condition", style="green")
    table.add_column("Publisher", style="cyan")
    for row in rows:
        table.add_row(str(row["index"]), row["condition"], row["publisher"])
    console.print(table)


def main(
    cmd: Annotated[Command, tyro.conf.arg(name="")],
    *,
    config_dir: Annotated[Path | None, tyro.conf.arg(help="Configuration directory")] = None,
) -> None:
    """flexpublish - conditional post-build publishers.

    Wraps each post-build publisher in a run condition and runs the
    sequence in order, stopping at the first failure.
    """
    try:
        if config_dir is None:
            # FLEXPUBLISH_CONFIG_DIR, then ~/.flexpublish
            config = get_config()
        else:
            config = load_config(config_dir)
            set_config_instance(config)
    except ConfigurationError as e:
        setup_logging()
        print(f"[red]Error: {e}[/red]", file=sys.stderr)
        sys.exit(1)

    setup_logging(config.debug)

    try:
        if isinstance(cmd, RunBuild):
            result = run_build(config, cmd)
            sys.exit(0 if result is Result.SUCCESS else 1)

        elif isinstance(cmd, Kinds):
            show_kinds(cmd.project_kind or config.project.kind)

        elif isinstance(cmd, Show):
            show_publishers(config, as_json=cmd.json)

    except (ConfigurationError, ValueError) as e:
        print(f"[red]Error: {e}[/red]", file=sys.stderr)
        sys.exit(1)


def entry_point() -> None:
    """Entry point for the flexpublish command."""
    tyro.cli(main)


if __name__ == "__main__":
    entry_point()
