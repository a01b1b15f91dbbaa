"""CLI entrypoint for App Center uploads."""

from pathlib import Path
from typing import Annotated

import typer
import yaml
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from appcenter_upload.config import TOKEN_ENV_VAR, load_config, load_upload_request
from appcenter_upload.errors import AppCenterError
from appcenter_upload.log import configure_logging

app = typer.Typer(
    name="appcenter-upload",
    help="Upload Android builds to App Center and distribute them to testers",
    no_args_is_help=True,
)
console = Console()

PACKAGE_ROOT = Path(__file__).parent.parent.parent  # src/appcenter_upload -> src -> project root
DEFAULT_CONFIG = PACKAGE_ROOT / "configs" / "appcenter.yaml"


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    raise typer.Exit(code=1)


@app.command()
def upload(
    artifact: Annotated[Path, typer.Argument(help="Path to the APK or AAB to upload")],
    build_number: Annotated[int, typer.Option(help="Build number (version code)")],
    build_version: Annotated[str, typer.Option(help="Build version (version name)")],
    flavor: Annotated[str, typer.Option("--flavor", "-f", help="Flavor section in the config")] = "release",
    config: Annotated[Path, typer.Option("--config", "-c", help="App Center config path")] = DEFAULT_CONFIG,
    mapping: Annotated[Path | None, typer.Option(help="ProGuard/R8 mapping file")] = None,
    release_notes: Annotated[str | None, typer.Option(help="Release notes")] = None,
    release_notes_file: Annotated[Path | None, typer.Option(help="Read release notes from a file")] = None,
    token: Annotated[
        str | None, typer.Option(envvar=TOKEN_ENV_VAR, help="App Center API token", show_default=False)
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Validate only, don't upload")] = False,
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="-v for requests, -vv for bodies")] = 0,
):
    """Upload a build and its mapping file, then distribute it."""
    from appcenter_upload.api.client import DistributionClient
    from appcenter_upload.api.transport import build_transport
    from appcenter_upload.pipeline.upload import upload_build

    configure_logging(verbose)

    if release_notes_file is not None and release_notes is not None:
        _fail("Use either --release-notes or --release-notes-file, not both")

    try:
        if release_notes_file is not None:
            release_notes = release_notes_file.read_text(encoding="utf-8")
        app_config = load_config(config)
        request = load_upload_request(
            app_config,
            flavor,
            artifact_file=artifact,
            build_number=build_number,
            build_version=build_version,
            mapping_file=mapping,
            release_notes=release_notes,
            api_token=token,
        )
        request.check_artifact()
    except (OSError, ValueError, ValidationError, yaml.YAMLError) as e:
        _fail(f"Cannot upload: {e}")

    console.print(f"[bold]Uploading {request.artifact_file.name} ({flavor})[/bold]")
    console.print(f"  App: {request.owner}/{request.app_name}")
    console.print(f"  Build: {request.build_version} ({request.build_number})")
    console.print(f"  Targets: {', '.join(request.distribution_targets) or '-'}")
    console.print(f"  Mapping: {request.mapping_file if request.has_mapping_file else '-'}\n")

    if dry_run:
        console.print("[green]Dry run complete. No uploads performed.[/green]")
        return

    transport = build_transport(
        max_retries=request.max_retries,
        timeout=app_config.transport.timeout_seconds,
        backoff_base=app_config.transport.backoff_seconds,
    )
    client = DistributionClient(transport, base_url=app_config.transport.base_url)

    try:
        report = upload_build(request, client)
    except (AppCenterError, OSError) as e:
        _fail(f"Upload failed: {e}")

    table = Table(title="Upload complete", show_header=False)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Flavor", report.flavor)
    table.add_row("Release", report.release_id)
    table.add_row("Destinations", ", ".join(report.destinations) or "-")
    table.add_row("Mapping", report.symbol_upload_id or "skipped")
    console.print(table)


@app.command()
def check(
    config: Annotated[Path, typer.Option("--config", "-c", help="App Center config path")] = DEFAULT_CONFIG,
):
    """Validate a config file and list its flavors."""
    try:
        app_config = load_config(config)
    except (OSError, ValidationError, yaml.YAMLError) as e:
        _fail(f"Invalid configuration: {e}")

    table = Table(title=f"Flavors in {config}", show_header=True)
    table.add_column("Flavor")
    table.add_column("App")
    table.add_column("Targets")
    table.add_column("Retries", justify="right")
    table.add_column("Token", justify="center")

    for name, flavor in app_config.flavors.items():
        table.add_row(
            name,
            f"{flavor.owner}/{flavor.app_name}",
            ", ".join(flavor.distribution_targets) or "-",
            str(flavor.max_retries),
            "yes" if flavor.api_token is not None else "env",
        )

    console.print(table)
    console.print(f"Base URL: {app_config.transport.base_url}")


@app.command()
def version():
    """Show version information."""
    from appcenter_upload import __version__

    console.print(f"appcenter-upload version {__version__}")


def main():
    load_dotenv()
    app()


if __name__ == "__main__":
    main()
