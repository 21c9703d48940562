from __future__ import annotations

import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..config import AppConfig, dump_config, load_config
from ..core import ConversionService
from ..models import ConversionOptions, LinkMode
from ..utils import atomic_write

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(help="Convert HTML fragments into readable plaintext")


def _load_config(path: Path | None) -> AppConfig:
    return load_config(path)


def _build_options(
    defaults: ConversionOptions,
    links: str | None,
    width: int | None,
    alt_text: bool | None,
) -> ConversionOptions:
    try:
        return ConversionOptions(
            links=LinkMode.parse(links) if links is not None else defaults.links,
            width=width if width is not None else defaults.width,
            image_alt_text=alt_text if alt_text is not None else defaults.image_alt_text,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _read_input(file: str) -> str:
    if file == "-":
        return sys.stdin.read()
    path = Path(file)
    if not path.is_file():
        err_console.print(f"[red]Conversion failed[/red]: NOT_FOUND - {path}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8", errors="replace")


@app.command()
def convert(
    file: str = typer.Argument(..., help="HTML file to convert, or '-' for stdin"),
    links: str | None = typer.Option(None, "--links", help="off, inline, table, nextline or bbcode"),
    width: int | None = typer.Option(None, "--width", min=0, help="Wrap width, 0 disables wrapping"),
    alt_text: bool | None = typer.Option(None, "--alt-text/--no-alt-text", help="Render image alt text"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write plaintext to this file"),
    correlation_id: str | None = typer.Option(None, "--id", help="Label used in log output"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    service = ConversionService(cfg)
    options = _build_options(service.default_options, links, width, alt_text)
    html = _read_input(file)
    result = service.convert_result(html, options, correlation_id or (file if file != "-" else None))
    if result.error is not None:
        err_console.print(f"[red]Conversion failed[/red]: {result.error.code} - {result.error}")
        raise typer.Exit(1)
    if output is None:
        typer.echo(result.text, nl=False)
        return
    atomic_write(output, result.text)
    console.print(f"[green]Success[/green]: {file} -> {output} ({len(result.links)} links)")


@app.command()
def batch(
    path: list[Path],
    links: str | None = typer.Option(None, "--links", help="off, inline, table, nextline or bbcode"),
    width: int | None = typer.Option(None, "--width", min=0, help="Wrap width, 0 disables wrapping"),
    alt_text: bool | None = typer.Option(None, "--alt-text/--no-alt-text", help="Render image alt text"),
    parallel: int | None = typer.Option(None, "--parallel", min=1, help="Parallel workers"),
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    cfg = _load_config(config)
    service = ConversionService(cfg)
    options = _build_options(service.default_options, links, width, alt_text)
    batch_result = service.batch_convert(path, options=options, parallelism=parallel)
    table = Table(title=f"Batch {batch_result.run_id}")
    table.add_column("Source")
    table.add_column("Output")
    table.add_column("Links")
    table.add_column("Status")
    for run in batch_result.runs:
        status = run.result.error.code if run.result.error else "ok"
        output = str(run.output_path) if run.result.ok else "-"
        table.add_row(str(run.source), output, str(len(run.result.links)), status)
    console.print(table)
    summary = batch_result.summary
    console.print(f"Processed {summary.total} files: {summary.successes} succeeded, {summary.failures} failed.")
    if summary.failures:
        raise typer.Exit(1)


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Run the local conversion API, regardless of enable_local_api."""
    import uvicorn

    from ..api import create_app

    cfg = _load_config(config)
    uvicorn.run(create_app(config=cfg, require_enabled=False), host=cfg.api.host, port=cfg.api.port)


@app.command()
def show_config(
    config: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    typer.echo(dump_config(_load_config(config)))


if __name__ == "__main__":
    app()
