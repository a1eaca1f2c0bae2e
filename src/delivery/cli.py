import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from src.delivery.archive import load_file_contents
from src.delivery.exif import scan_folder
from src.delivery.exporter import DeliveryExporter, ExportConfig
from src.delivery.folder_structure import (
    FolderStructureOptions,
    generate_folder_structure,
    get_folder_tree_string,
)
from src.delivery.index_xml import generate_index_d_xml
from src.delivery.models import DeliveryManifest, ExportMetadata, ExportProgress, ExportStep
from src.delivery.photo_xml import generate_photo_xml
from src.delivery.report import (
    format_photo_list_as_csv,
    format_report_as_json,
    format_report_as_text,
    generate_delivery_report,
)
from src.delivery.settings import STANDARD_VERSION
from src.delivery.validator import (
    DeliveryValidator,
    ValidatorConfig,
    format_validation_result,
    format_validation_result_as_json,
)
from src.delivery.xml_writer import XmlConfig

# Allow flags to be specified anywhere (before or after arguments)
CONTEXT_SETTINGS = {"allow_interspersed_args": True}
app = typer.Typer(help="Electronic delivery (PHOTO/INDEX_D) export CLI")
console = Console()

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("text", "json", "csv")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global options for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def load_manifest(path: Path) -> DeliveryManifest:
    """Read a manifest JSON file, exiting with a message if it is unusable."""
    if not path.exists():
        console.print(f"[red]Manifest not found: {path}[/red]")
        raise typer.Exit(1)
    try:
        return DeliveryManifest.model_validate_json(path.read_text(encoding="utf-8"))
    except ValidationError as e:
        console.print(f"[bold red]Invalid manifest:[/bold red] {e}")
        raise typer.Exit(1)


def _folder_options(root: Optional[str], no_drawings: bool = False) -> FolderStructureOptions:
    return FolderStructureOptions(include_drawing_folder=not no_drawings, custom_root_name=root)


def _print_progress(progress: ExportProgress):
    # One line per step, not per file
    if progress.current_step == ExportStep.COPYING_PHOTOS and progress.processed_files:
        return
    console.print(
        f"[dim]{progress.progress_percent:>3}%[/dim] {progress.current_step.value}"
    )


@app.command(context_settings=CONTEXT_SETTINGS)
def export(
    manifest: Path = typer.Argument(..., help="Manifest JSON (metadata + photos)"),
    output: Path = typer.Option(..., "--output", "-o", help="Path of the ZIP archive to write"),
    photos_dir: Optional[Path] = typer.Option(None, "--photos-dir", help="Base directory for relative photo paths"),
    root: Optional[str] = typer.Option(None, "--root", help="Custom root folder name (default PHOTO)"),
    standard_version: str = typer.Option(STANDARD_VERSION, "--standard", help="Applicable standard version"),
    no_drawings: bool = typer.Option(False, "--no-drawings", help="Omit the DRA folder"),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite an existing archive"),
):
    """
    Build a delivery ZIP archive from a manifest.
    Fails without writing anything when validation reports errors.
    """
    if output.exists() and not force:
        console.print(f"[red]Output already exists: {output} (use --force)[/red]")
        raise typer.Exit(1)

    data = load_manifest(manifest)
    options = _folder_options(root, no_drawings)
    base_dir = photos_dir or manifest.parent

    folder = generate_folder_structure(data.photos, options)
    file_contents = load_file_contents(folder, base_dir)

    exporter = DeliveryExporter()
    exporter.on_progress(_print_progress)
    config = ExportConfig(
        output_format="zip",
        standard_version=standard_version,
        folder_options=options,
    )

    console.print(f"[bold blue]Exporting:[/bold blue] {data.metadata.construction_name}")
    result = asyncio.run(exporter.export(data.photos, data.metadata, config, file_contents))

    if not result.success:
        if result.validation_result is not None:
            console.print(format_validation_result(result.validation_result))
        console.print(f"[bold red]Export failed:[/bold red] {result.error}")
        raise typer.Exit(1)

    archive = result.archive
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(archive.buffer)

    table = Table(title="Export Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")
    table.add_row("Archive", str(output))
    table.add_row("Photos", str(len(result.folder_structure.photo_files)))
    table.add_row("Files in archive", str(archive.file_count))
    table.add_row("Missing files", str(len(archive.missing_files)))
    table.add_row("Warnings", str(len(result.validation_result.warnings)))
    table.add_row("Size", f"{len(archive.buffer)} bytes")
    table.add_row("Time", f"{result.processing_time_ms} ms")
    console.print(table)

    for name in archive.missing_files:
        console.print(f"[yellow]Missing:[/yellow] {name}")


@app.command(context_settings=CONTEXT_SETTINGS)
def validate(
    manifest: Path = typer.Argument(..., help="Manifest JSON (metadata + photos)"),
    json_output: bool = typer.Option(False, "--json", help="Print the result as JSON"),
    strict: bool = typer.Option(False, "--strict", help="Also warn about missing construction type"),
    root: Optional[str] = typer.Option(None, "--root", help="Custom root folder name"),
):
    """Validate a manifest without building anything. Exits 1 when invalid."""
    data = load_manifest(manifest)
    folder = generate_folder_structure(data.photos, _folder_options(root))
    validator = DeliveryValidator(ValidatorConfig(strict_mode=strict))
    result = validator.validate(folder)

    if json_output:
        typer.echo(format_validation_result_as_json(result))
    else:
        typer.echo(format_validation_result(result))

    if not result.is_valid:
        raise typer.Exit(1)


@app.command(context_settings=CONTEXT_SETTINGS)
def preview(
    manifest: Path = typer.Argument(..., help="Manifest JSON (metadata + photos)"),
    xml: bool = typer.Option(False, "--xml", help="Also print PHOTO.XML and INDEX_D.XML"),
    root: Optional[str] = typer.Option(None, "--root", help="Custom root folder name"),
    standard_version: str = typer.Option(STANDARD_VERSION, "--standard", help="Applicable standard version"),
):
    """Show the delivery folder layout."""
    data = load_manifest(manifest)
    folder = generate_folder_structure(data.photos, _folder_options(root))

    typer.echo(get_folder_tree_string(folder))

    table = Table(title="File Mapping", show_header=True)
    table.add_column("Delivery name", style="cyan")
    table.add_column("Original")
    table.add_column("Title")
    table.add_column("Date")
    for entry in folder.photo_files:
        table.add_row(
            entry.delivery_file_name,
            entry.original_file_name,
            entry.photo_info.photo_title,
            entry.photo_info.shooting_date or "-",
        )
    console.print(table)

    if xml:
        xml_config = XmlConfig(standard_version=standard_version)
        typer.echo("")
        typer.echo(generate_photo_xml(folder, data.metadata, xml_config))
        typer.echo("")
        typer.echo(
            generate_index_d_xml(data.metadata, xml_config, photo_folder_name=folder.root_folder_name)
        )


@app.command(context_settings=CONTEXT_SETTINGS)
def report(
    manifest: Path = typer.Argument(..., help="Manifest JSON (metadata + photos)"),
    fmt: str = typer.Option("text", "--format", help="text, json or csv"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
    root: Optional[str] = typer.Option(None, "--root", help="Custom root folder name"),
):
    """Generate a delivery report."""
    if fmt not in REPORT_FORMATS:
        console.print(f"[red]Unknown format: {fmt} (choose from {', '.join(REPORT_FORMATS)})[/red]")
        raise typer.Exit(1)

    data = load_manifest(manifest)
    folder = generate_folder_structure(data.photos, _folder_options(root))
    validation = DeliveryValidator().validate(folder)
    delivery_report = generate_delivery_report(folder, data.metadata, validation)

    renderers = {
        "text": format_report_as_text,
        "json": format_report_as_json,
        "csv": format_photo_list_as_csv,
    }
    rendered = renderers[fmt](delivery_report)

    if output:
        output.write_text(rendered, encoding="utf-8")
        console.print(f"[green]Report written to {output}[/green]")
    else:
        typer.echo(rendered)


@app.command(context_settings=CONTEXT_SETTINGS)
def scan(
    folder: Path = typer.Argument(..., help="Folder containing photos", exists=True, file_okay=False, dir_okay=True),
    construction_name: str = typer.Option(..., "--construction-name", help="工事件名"),
    contractor_name: str = typer.Option(..., "--contractor-name", help="受注者名"),
    orderer_name: Optional[str] = typer.Option(None, "--orderer-name", help="発注者名"),
    category: Optional[str] = typer.Option(None, "--category", help="写真区分 applied to every photo"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write manifest to file instead of stdout"),
):
    """
    Build a manifest from a folder of photos.
    Shooting date and GPS position are read from EXIF.
    """
    photos = scan_folder(folder, category)
    if not photos:
        console.print(f"[yellow]No supported photos found in {folder}[/yellow]")
        raise typer.Exit(1)

    manifest = DeliveryManifest(
        metadata=ExportMetadata(
            construction_name=construction_name,
            contractor_name=contractor_name,
            orderer_name=orderer_name,
        ),
        photos=photos,
    )
    text = json.dumps(manifest.to_dict(), ensure_ascii=False, indent=2)

    if output:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Manifest with {len(photos)} photo(s) written to {output}[/green]")
    else:
        typer.echo(text)
