"""Main CLI application for wp-downloader."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from wp_downloader import __version__
from wp_downloader.config.parser import ConfigError, find_project_root
from wp_downloader.core.decision import detect_installed_version
from wp_downloader.core.host import ComposerProjectHost
from wp_downloader.core.installer import InstallError, PayloadInstaller
from wp_downloader.core.plugin import InstallOutcome, WpDownloaderPlugin
from wp_downloader.core.resolver import UnresolvableVersion
from wp_downloader.core.session import RunSession
from wp_downloader.registry.https import HttpsFetcher
from wp_downloader.utils.archive import ArchiveError

# Create the main Typer app
app = typer.Typer(
    name="wp-downloader",
    help="Install WordPress from wordpress.org releases, keeping wp-content and wp-config.php",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()
error_console = Console(stderr=True)

# Set up logger for the wp_downloader package
logger = logging.getLogger("wp_downloader")

PathOption = Annotated[
    Path | None,
    typer.Option(
        "--path",
        "-p",
        help="Project directory (defaults to the nearest directory with composer.json)",
    ),
]

TimeoutOption = Annotated[
    int | None,
    typer.Option(
        "--timeout",
        "-t",
        help="HTTP timeout in seconds",
        min=1,
    ),
]


def setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2+=DEBUG
    """
    if verbosity == 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger.setLevel(level)

    # Only add handler if not already configured
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


def get_host(path: Path | None = None) -> ComposerProjectHost:
    """Get the project host, raising an error if no project is found."""
    if path is None:
        path = find_project_root()
        if path is None:
            print_error("No composer.json or wp-downloader.yaml found in current directory")
            raise typer.Exit(1)

    try:
        return ComposerProjectHost(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1) from e


def run_plugin(path: Path | None, timeout: int | None, update: bool) -> InstallOutcome | None:
    """Activate the plugin on a project and run install or update."""
    host = get_host(path)
    plugin = WpDownloaderPlugin(fetcher=HttpsFetcher(timeout=timeout))

    try:
        plugin.activate(host)
        return plugin.dispatch("pre-update-cmd" if update else "pre-install-cmd")
    except (ConfigError, UnresolvableVersion, InstallError, ArchiveError) as e:
        print_error(str(e))
        raise typer.Exit(1) from e


def print_outcome(outcome: InstallOutcome | None) -> None:
    if outcome is None:
        return
    if outcome.installed:
        print_success(outcome.message)
        console.print(f"  Target: {outcome.target}")
    else:
        console.print(
            f"WordPress {outcome.version} is up to date in {outcome.target}",
            highlight=False,
        )


@app.callback()
def callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase verbosity (-v info, -vv debug)",
        ),
    ] = 0,
) -> None:
    """wp-downloader - WordPress core installer."""
    setup_logging(verbose)


@app.command()
def version() -> None:
    """Show the wp-downloader version."""
    console.print(f"wp-downloader {__version__}")


@app.command()
def install(path: PathOption = None, timeout: TimeoutOption = None) -> None:
    """Install WordPress if needed.

    An installed version that satisfies the configured constraint is kept.
    """
    print_outcome(run_plugin(path, timeout, update=False))


@app.command()
def update(path: PathOption = None, timeout: TimeoutOption = None) -> None:
    """Update WordPress to the newest version allowed by the constraint."""
    print_outcome(run_plugin(path, timeout, update=True))


@app.command()
def versions(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", help="Number of versions to show", min=1),
    ] = 20,
    timeout: TimeoutOption = None,
) -> None:
    """List WordPress versions available on wordpress.org."""
    session = RunSession(HttpsFetcher(timeout=timeout))
    available = session.catalog.list_versions()

    if not available:
        print_error("Could not retrieve WordPress versions from wp.org API.")
        raise typer.Exit(1)

    table = Table(title="WordPress Versions")
    table.add_column("Version", style="green")
    table.add_column("Archive", style="dim")

    for v in available[:limit]:
        table.add_row(str(v), f"wordpress-{v}.zip")

    console.print(table)
    if len(available) > limit:
        console.print(f"... and {len(available) - limit} more")


@app.command()
def resolve(
    constraint: Annotated[
        str,
        typer.Argument(help="Version constraint (e.g. '4.7', '>=4.5', '^5.0', 'latest')"),
    ] = "latest",
    timeout: TimeoutOption = None,
) -> None:
    """Resolve a version constraint to a WordPress version."""
    session = RunSession(HttpsFetcher(timeout=timeout))
    try:
        resolved = session.resolver.resolve(constraint)
    except UnresolvableVersion as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    console.print(str(resolved), highlight=False)


@app.command()
def status(path: PathOption = None) -> None:
    """Show the effective configuration and the installed version."""
    host = get_host(path)
    plugin = WpDownloaderPlugin()
    try:
        plugin.activate(host)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1) from e

    config = plugin.config
    installer = PayloadInstaller(plugin.session.fetcher, working_dir=host.working_dir)
    try:
        target = installer.target_path(config)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(1) from e
    installed = detect_installed_version(target)

    table = Table(title="wp-downloader")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("version", config.version_constraint or "latest")
    table.add_row("no-content", str(config.no_content).lower())
    table.add_row("target-dir", config.target_dir)
    table.add_row("installed", str(installed.detected_version or "-"))
    console.print(table)


if __name__ == "__main__":
    app()
