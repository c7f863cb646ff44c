"""
nGrinder Packager CLI - Command-line interface.

Build, list and evict agent and monitor packages from the terminal.
Configuration comes from NGRINDER_* environment variables.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ngrinder_packager.core.config import PackagerConfig
from ngrinder_packager.core.exceptions import PackagerError
from ngrinder_packager.packages.models import PackageVariant
from ngrinder_packager.packages.service import PackageService

app = typer.Typer(
    name="ngrinder-packager",
    help="nGrinder Packager - Distributable Agent and Monitor Package Builder",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every command."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_service() -> PackageService:
    try:
        return PackageService(PackagerConfig.from_env())
    except PackagerError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)


@app.command()
def build(
    variant: PackageVariant = typer.Argument(PackageVariant.AGENT, help="Package variant"),
    region: Optional[str] = typer.Option(None, "--region", "-r", help="Controller region"),
    connection_ip: Optional[str] = typer.Option(
        None, "--ip", "-i", help="Controller address written into the agent config"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Controller port (agent) or listening port (monitor)"
    ),
    owner: Optional[str] = typer.Option(None, "--owner", "-o", help="Owner of a private agent"),
    windows: bool = typer.Option(False, "--windows", "-w", help="Build a zip for Windows"),
):
    """Build a package, or reuse the one already built for the same inputs."""
    service = _load_service()

    console.print(
        Panel.fit(
            f"[bold blue]nGrinder Packager[/bold blue]\n"
            f"Variant: {variant.value}\n"
            f"Version: {service.config.version}\n"
            f"Download dir: {service.config.download_dir}",
        )
    )

    try:
        path = service.create_package(
            variant,
            region=region,
            connection_ip=connection_ip,
            port=port,
            owner=owner,
            for_windows=windows,
        )
    except PackagerError as e:
        console.print(f"[red]Package build failed: {e}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]Package ready:[/green] {path}")


@app.command()
def artifacts():
    """List packages in the download directory."""
    service = _load_service()
    items = service.list_artifacts()
    now = datetime.now(timezone.utc)

    table = Table(title=f"Packages ({len(items)})")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    table.add_column("Expires", style="magenta")

    for item in items:
        expires_at = item.last_modified + service.config.retention
        expires = "expired" if expires_at < now else expires_at.strftime("%Y-%m-%d %H:%M")
        table.add_row(
            item.name,
            f"{item.size_bytes:,}",
            item.last_modified.strftime("%Y-%m-%d %H:%M"),
            expires,
        )

    console.print(table)


@app.command()
def sweep(
    force: bool = typer.Option(False, "--force", "-f", help="Delete every package"),
):
    """Evict packages older than the retention period."""
    service = _load_service()
    result = service.sweeper.sweep(force=force)

    console.print(
        f"Deleted {result.deleted_count} packages, freed {result.freed_bytes:,} bytes"
    )
    for error in result.errors:
        console.print(f"[yellow]{error}[/yellow]")
    if not result.success:
        raise typer.Exit(1)


@app.command()
def version():
    """Show nGrinder Packager version."""
    from ngrinder_packager import __version__

    console.print(f"nGrinder Packager v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
