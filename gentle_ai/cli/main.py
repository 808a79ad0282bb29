"""Main CLI application for gentle-ai."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gentle_ai import __version__
from gentle_ai.components.assets import components_for_preset
from gentle_ai.config.parser import ConfigError, find_config_file, load_install_config
from gentle_ai.config.schemas import InstallConfig, Selection, default_backup_root
from gentle_ai.core.backup import BackupError, list_snapshots, load_snapshot, restore_snapshot
from gentle_ai.core.installer import InstallError, Installer, InstallOptions, InstallResult, render_dry_run
from gentle_ai.core.pipeline import FailurePolicy, ProgressEvent, StepStatus
from gentle_ai.core.resolver import ResolutionError
from gentle_ai.core.verify import render_report
from gentle_ai.utils.platform import detect_agents, detect_platform_profile, get_home_directory

app = typer.Typer(
    name="gentle-ai",
    help="Configure AI coding agents with memory, SDD workflow, skills and persona",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

logger = logging.getLogger("gentle_ai")


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG (3+ also shows source paths)
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    if not logger.handlers:
        handler = RichHandler(
            console=error_console,
            show_time=verbosity >= 2,
            show_path=verbosity >= 3,
            rich_tracebacks=True,
        )
        handler.setLevel(level)
        logger.addHandler(handler)
    else:
        for h in logger.handlers:
            h.setLevel(level)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[red]Error:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {message}")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]⚠[/yellow] {message}")


def split_values(values: list[str] | None) -> list[str]:
    """Flatten repeated and comma-separated option values."""
    result: list[str] = []
    for value in values or []:
        result.extend(part.strip() for part in value.split(",") if part.strip())
    return result


def load_config(config_path: Path | None) -> InstallConfig:
    """Load gentle-ai.yaml from --config or the working directory, if any."""
    path = config_path or find_config_file()
    if path is None:
        return InstallConfig()
    try:
        return load_install_config(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1) from e


@dataclass
class RunSettings:
    selection: Selection
    options: InstallOptions


def build_settings(
    config: InstallConfig,
    agents: list[str] | None,
    components: list[str] | None,
    skills: list[str] | None,
    persona: str | None,
    preset: str | None,
    home: Path | None,
    dry_run: bool,
    no_rollback: bool = False,
    continue_on_error: bool = False,
    skip_binary_installs: bool = False,
    skip_agent_install: bool = False,
) -> RunSettings:
    """Combine config file values with CLI options; options win.

    Without agents, the agents already configured under the home directory
    are used (all supported agents if none are). Without components, the
    preset decides.
    """
    home = home.expanduser().resolve() if home is not None else get_home_directory()
    preset = preset or config.preset

    try:
        selection = Selection(
            agents=split_values(agents) or config.agents or detect_agents(home),
            components=split_values(components) or config.components or components_for_preset(preset),
            skills=split_values(skills) or config.skills,
            persona=persona or config.persona,
            preset=preset,
        )
    except ValidationError as e:
        print_error(f"Invalid selection: {e}")
        raise typer.Exit(1) from e

    failure_policy = FailurePolicy.CONTINUE_ON_ERROR if continue_on_error else FailurePolicy(config.failure_policy)
    options = InstallOptions(
        home=home,
        backup_root=config.backup_root.expanduser() if config.backup_root else default_backup_root(home),
        dry_run=dry_run,
        rollback_on_failure=config.rollback_on_failure and not no_rollback,
        failure_policy=failure_policy,
        skip_agent_install=skip_agent_install,
        skip_binary_installs=config.skip_binary_installs or skip_binary_installs,
    )
    return RunSettings(selection=selection, options=options)


def _print_progress(event: ProgressEvent) -> None:
    if event.status == StepStatus.SUCCEEDED:
        console.print(f"  [green]✓[/green] {event.step_id}")
    elif event.status == StepStatus.FAILED:
        console.print(f"  [red]✗[/red] {event.step_id}: {event.error}")
    elif event.status == StepStatus.ROLLED_BACK:
        console.print(f"  [yellow]↺[/yellow] {event.step_id}")


def _report_failure(result: InstallResult | None) -> None:
    if result is None or result.execution is None:
        return
    execution = result.execution
    if execution.rollback_failed:
        print_error("Rollback failed; some files may be left modified")
    elif execution.rolled_back:
        print_warning("Changes were rolled back")
    if result.snapshot is not None:
        console.print(f"  Snapshot: {result.snapshot.id}")


AgentOption = Annotated[
    list[str] | None,
    typer.Option("--agent", "-a", help="Agent to configure (repeatable, comma-separated)"),
]
ComponentOption = Annotated[
    list[str] | None,
    typer.Option("--component", "-c", help="Component to install (repeatable, comma-separated)"),
]
SkillOption = Annotated[
    list[str] | None,
    typer.Option("--skill", help="Skill to install (repeatable, comma-separated)"),
]
PersonaOption = Annotated[
    str | None,
    typer.Option("--persona", help="Persona: gentleman, neutral or custom"),
]
PresetOption = Annotated[
    str | None,
    typer.Option("--preset", help="Preset: full-gentleman, ecosystem-only, minimal or custom"),
]
ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to gentle-ai.yaml"),
]
HomeOption = Annotated[
    Path | None,
    typer.Option("--home", help="Home directory to configure (defaults to the current user's)"),
]


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug, -vvv trace)",
        ),
    ] = 0,
) -> None:
    """gentle-ai - configure AI coding agents in one transactional run."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the gentle-ai version."""
    console.print(f"gentle-ai {__version__}")


@app.command()
def install(
    agent: AgentOption = None,
    component: ComponentOption = None,
    skill: SkillOption = None,
    persona: PersonaOption = None,
    preset: PresetOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be installed without changing anything"),
    ] = False,
    config: ConfigOption = None,
    home: HomeOption = None,
    no_rollback: Annotated[
        bool,
        typer.Option("--no-rollback", help="Leave changes in place when the apply stage fails"),
    ] = False,
    continue_on_error: Annotated[
        bool,
        typer.Option("--continue-on-error", help="Keep applying after a failed step"),
    ] = False,
    skip_binary_installs: Annotated[
        bool,
        typer.Option("--skip-binary-installs", help="Only write configuration; do not run installers"),
    ] = False,
    skip_agent_install: Annotated[
        bool,
        typer.Option("--skip-agent-install", help="Do not install agent binaries"),
    ] = False,
) -> None:
    """Install and configure components for the selected agents.

    Every file the run may touch is snapshotted first. If a step fails the
    snapshot is restored, unless --no-rollback is given.
    """
    settings = build_settings(
        load_config(config),
        agent,
        component,
        skill,
        persona,
        preset,
        home,
        dry_run,
        no_rollback=no_rollback,
        continue_on_error=continue_on_error,
        skip_binary_installs=skip_binary_installs,
        skip_agent_install=skip_agent_install,
    )
    installer = Installer(settings.options, detect_platform_profile(), on_progress=_print_progress)

    if not dry_run:
        console.print("Installing...")

    try:
        result = installer.install(settings.selection)
    except ResolutionError as e:
        print_error(str(e))
        raise typer.Exit(1) from e
    except InstallError as e:
        print_error(str(e))
        _report_failure(e.result)
        raise typer.Exit(1) from e

    for unsupported in result.resolved.unsupported_agents:
        print_warning(f"Agent {unsupported} is not supported yet and was skipped")

    if result.dry_run:
        console.print(render_dry_run(result), markup=False, highlight=False, soft_wrap=True)
        return

    if result.verification is not None:
        console.print(render_report(result.verification), markup=False, highlight=False, soft_wrap=True)
    print_success(f"Installed {len(result.resolved.ordered_components)} component(s)")


@app.command()
def plan(
    agent: AgentOption = None,
    component: ComponentOption = None,
    skill: SkillOption = None,
    persona: PersonaOption = None,
    preset: PresetOption = None,
    config: ConfigOption = None,
    home: HomeOption = None,
) -> None:
    """Show the resolved install plan without changing anything."""
    settings = build_settings(load_config(config), agent, component, skill, persona, preset, home, dry_run=True)
    installer = Installer(settings.options, detect_platform_profile())

    try:
        result = installer.plan(settings.selection)
    except ResolutionError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    table = Table(title="Install Plan")
    table.add_column("#", style="dim")
    table.add_column("Component", style="cyan")
    table.add_column("Reason", style="green")
    for index, action in enumerate(result.review.components, start=1):
        table.add_row(str(index), action.id, action.action)
    console.print(table)

    console.print(render_dry_run(result), markup=False, highlight=False, soft_wrap=True)


@app.command()
def backups(
    home: HomeOption = None,
    config: ConfigOption = None,
) -> None:
    """List backup snapshots, newest first."""
    settings = build_settings(load_config(config), None, None, None, None, None, home, dry_run=True)
    snapshots = list_snapshots(settings.options.backup_root)

    if not snapshots:
        console.print("No backups found")
        return

    table = Table(title="Backups")
    table.add_column("ID", style="cyan")
    table.add_column("Created", style="green")
    table.add_column("Files", justify="right")
    table.add_column("New", justify="right", style="dim")

    for manifest in snapshots:
        created = sum(1 for entry in manifest.entries if not entry.existed)
        table.add_row(
            manifest.id,
            manifest.created_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
            str(len(manifest.entries)),
            str(created),
        )

    console.print(table)


@app.command()
def restore(
    snapshot_id: Annotated[str, typer.Argument(help="Snapshot id (see 'gentle-ai backups')")],
    home: HomeOption = None,
    config: ConfigOption = None,
) -> None:
    """Restore files from a backup snapshot."""
    settings = build_settings(load_config(config), None, None, None, None, None, home, dry_run=True)

    try:
        manifest = load_snapshot(settings.options.backup_root, snapshot_id)
        restore_snapshot(manifest)
    except BackupError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    print_success(f"Restored {len(manifest.entries)} file(s) from snapshot {manifest.id}")


if __name__ == "__main__":
    app()
