import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from .config import DEFAULT_WORKERS, MAX_FILE_SIZE, resolve_assets_dir
from .core.engine import WatermarkEngine
from .core.position import parse_override
from .core.variants import VARIANT_ASSETS, WatermarkVariant
from .errors import InitializationError
from .processors.batch import BatchItem, ItemStatus, process_batch
from .processors.image import SUPPORTED_IMAGE_FORMATS, is_supported_image

app = typer.Typer(
    name="awr",
    help="Remove AI watermarks (Gemini, Doubao) from images by reverse alpha blending.",
    add_completion=True,
)
console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Route library logging through Rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def get_files_to_process(path: Path, recursive: bool = False) -> list[Path]:
    """Get all supported files from path (file or directory)."""
    if path.is_file():
        return [path] if is_supported_image(path) else []

    files = []
    pattern = "**/*" if recursive else "*"

    for f in path.glob(pattern):
        if f.is_file() and is_supported_image(f):
            files.append(f)

    return sorted(files)


@app.command()
def process(
    path: Path = typer.Argument(
        ...,
        help="Path to image file or directory for batch processing",
        exists=True,
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output path (file or directory). Defaults to input location with '_output' suffix.",
    ),
    recursive: bool = typer.Option(
        False,
        "--recursive",
        "-r",
        help="Process directories recursively",
    ),
    suffix: str = typer.Option(
        "_output",
        "--suffix",
        "-s",
        help="Suffix to add to output filenames",
    ),
    overwrite: bool = typer.Option(
        False,
        "--overwrite",
        "-y",
        help="Overwrite existing output files without prompting",
    ),
    variant: WatermarkVariant = typer.Option(
        WatermarkVariant.GEMINI,
        "--variant",
        "-m",
        help="AI generator that produced the watermark",
    ),
    override: Optional[str] = typer.Option(
        None,
        "--override",
        help="Force a size bucket (gemini: 48px, 96px) or aspect bucket (doubao: tall, square, wide)",
    ),
    workers: int = typer.Option(
        DEFAULT_WORKERS,
        "--workers",
        "-w",
        min=1,
        help="Number of images processed at the same time",
    ),
    assets_dir: Optional[Path] = typer.Option(
        None,
        "--assets-dir",
        help="Directory with reference captures (defaults to $AWR_ASSETS_DIR or the bundled assets)",
        exists=True,
        file_okay=False,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
):
    """
    Remove AI watermarks from images.

    Results are always written as lossless PNG.

    Examples:
        awr process image.png
        awr process image.png --variant doubao -o clean.png
        awr process ./photos/ -r --suffix "_nowatermark" --workers 4
    """
    setup_logging(verbose)

    try:
        bucket = parse_override(variant, override)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    files = get_files_to_process(path, recursive)

    if not files:
        console.print(f"[red]No supported files found in {path}[/red]")
        console.print(f"Supported formats: {SUPPORTED_IMAGE_FORMATS} (max {MAX_FILE_SIZE // (1024 * 1024)} MB)")
        raise typer.Exit(1)

    try:
        engine = WatermarkEngine.create(assets_dir, [variant])
    except InitializationError as e:
        console.print(f"[red]Could not initialize watermark engine:[/red] {e}")
        raise typer.Exit(2)

    # Determine output directory for batch processing
    output_dir = None
    if path.is_dir() and output:
        output_dir = output
        output_dir.mkdir(parents=True, exist_ok=True)

    def output_for(file_path: Path) -> Path | None:
        if output_dir:
            return output_dir / f"{file_path.stem}{suffix}.png"
        if output and path.is_file():
            return output
        return None  # Use default naming

    # Check for overwrite before anything runs
    selected = []
    for file_path in files:
        file_output = output_for(file_path) or file_path.parent / f"{file_path.stem}{suffix}.png"
        if file_output.exists() and not overwrite:
            if not typer.confirm(f"Overwrite {file_output}?"):
                continue
        selected.append(file_path)

    console.print(
        Panel(
            f"Processing {len(selected)} file(s) (removing {variant.value} watermark)",
            title="AI Watermark Remover",
            border_style="blue",
        )
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        main_task = progress.add_task("Processing files...", total=len(selected))

        def item_done(item: BatchItem) -> None:
            if item.status is ItemStatus.COMPLETED:
                console.print(f"  [green]Image saved:[/green] {item.output_path}")
            else:
                console.print(f"  [red]Error processing {item.input_path}:[/red] {item.error}")
            progress.advance(main_task)

        items = process_batch(
            selected,
            engine,
            output_for=output_for,
            suffix=suffix,
            variant=variant,
            override=bucket,
            workers=workers,
            on_item_done=item_done,
        )

    failed = [item for item in items if item.status is ItemStatus.ERROR]
    if failed:
        console.print(f"[bold yellow]Done with {len(failed)} error(s).[/bold yellow]")
        raise typer.Exit(1)

    console.print("[bold green]Done![/bold green]")


@app.command()
def locate(
    width: int = typer.Argument(..., min=1, help="Image width in pixels"),
    height: int = typer.Argument(..., min=1, help="Image height in pixels"),
    variant: WatermarkVariant = typer.Option(
        WatermarkVariant.GEMINI,
        "--variant",
        "-m",
        help="AI generator that produced the watermark",
    ),
    override: Optional[str] = typer.Option(
        None,
        "--override",
        help="Force a size bucket (gemini: 48px, 96px) or aspect bucket (doubao: tall, square, wide)",
    ),
):
    """Show where the watermark sits in an image of the given size."""
    engine = WatermarkEngine(variants=[variant])

    try:
        wm_info = engine.get_watermark_info(width, height, variant, override)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    rect = wm_info.rect
    table = Table(title=f"{variant.value} watermark in {width}×{height}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Bucket", wm_info.config.bucket.value)
    table.add_row("Size", wm_info.size_display)
    table.add_row("Margin (right, bottom)", f"{wm_info.config.margin_right}, {wm_info.config.margin_bottom}")
    table.add_row("Position", f"({rect.x},{rect.y})")
    table.add_row("Reference capture", wm_info.config.asset.filename)
    table.add_row("Fits image", "yes" if rect.fits(width, height) else "[red]no[/red]")
    console.print(table)


@app.command()
def info(
    assets_dir: Optional[Path] = typer.Option(
        None,
        "--assets-dir",
        help="Directory with reference captures (defaults to $AWR_ASSETS_DIR or the bundled assets)",
    ),
):
    """Display information about supported formats and algorithm."""
    captures_dir = resolve_assets_dir(assets_dir)
    asset_lines = []
    for variant, assets in VARIANT_ASSETS.items():
        names = ", ".join(
            a.filename if captures_dir.joinpath(a.filename).is_file() else f"[red]{a.filename} (missing)[/red]"
            for a in assets
        )
        asset_lines.append(f"  - {variant.value}: {names}")

    console.print(
        Panel(
            "[bold]AI Watermark Remover[/bold]\n\n"
            "Removes visible logo watermarks from AI-generated images.\n"
            "The watermark region is computed from the image size alone.\n\n"
            "[cyan]Watermarks Removed:[/cyan]\n"
            "  - Gemini sparkle logo (bottom-right, 48px / 96px / interpolated)\n"
            "  - Doubao text badge (bottom-right, per aspect-ratio template)\n\n"
            f"[cyan]Reference Captures[/cyan] ({captures_dir}):\n" + "\n".join(asset_lines) + "\n\n"
            f"[cyan]Supported Image Formats:[/cyan] {', '.join(sorted(SUPPORTED_IMAGE_FORMATS))}\n"
            "[cyan]Output:[/cyan] PNG (lossless)\n\n"
            "[dim]original = (watermarked - alpha * 255) / (1 - alpha)[/dim]",
            title="About",
            border_style="blue",
        )
    )


if __name__ == "__main__":
    app()
