"""Command line interface for speechfeels."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from speechfeels.config import OUTPUT_FORMATS, AppConfig, FailurePolicy
from speechfeels.exceptions import SpeechfeelsError
from speechfeels.output.render import render
from speechfeels.pipeline.runner import Runner
from speechfeels.sentiment.annotator import ensure_thread_safe
from speechfeels.sentiment.encoder import AnnotatorConfig, EmbeddingSentimentAnnotator
from speechfeels.utils.files import iter_text_paths


console = Console(stderr=True)
app = typer.Typer(help="speechfeels - sentence-level sentiment of speeches")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _build_annotator(config: AppConfig) -> EmbeddingSentimentAnnotator:
    return EmbeddingSentimentAnnotator(
        AnnotatorConfig(
            model_name=config.model_name,
            batch_size=config.batch_size,
            device=config.device,
        )
    )


@app.command()
def analyze(
    inputs: List[Path] = typer.Argument(
        ..., help="Speech files or directories of .txt files.", resolve_path=True
    ),
    output_format: str = typer.Option(
        AppConfig().output_format, "--format", "-f", help=f"One of: {', '.join(OUTPUT_FORMATS)}"
    ),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Worker threads (default: CPUs + 2)"),
    isolate: bool = typer.Option(
        False, "--isolate", help="Keep going when a document fails instead of aborting the run"
    ),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    device: Optional[str] = typer.Option(None, help="Torch device (default: auto-detect)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Annotate every sentence of the given speeches with a sentiment label."""
    _setup_logging(verbose)
    try:
        config = AppConfig(
            model_name=model,
            workers=workers,
            policy=FailurePolicy.ISOLATE if isolate else FailurePolicy.FAIL_FAST,
            output_format=output_format,
            device=device,
        )
        pool_size = config.resolve_workers()
    except SpeechfeelsError as exc:
        raise typer.BadParameter(str(exc)) from exc

    paths = list(iter_text_paths(inputs))
    if not paths:
        console.print("[yellow]No speech files found.[/yellow]")
        return

    runner = Runner(_build_annotator(config), workers=pool_size, policy=config.policy)
    try:
        results = runner.run_all(paths)
    except (SpeechfeelsError, OSError, UnicodeDecodeError) as exc:
        console.print(f"[red]Run aborted:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    rendered = render([r.document for r in results if r.ok], config.output_format)
    if output is None:
        typer.echo(rendered, nl=False)
    else:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        console.print(f"Wrote [bold]{output}[/bold]")

    for result in results:
        if not result.ok:
            console.print(f"[red]Failed:[/red] {result.path}: {result.error}")
    console.print(f"Annotated: {runner.stats.succeeded}, failed: {runner.stats.failed}")
    if runner.stats.failed:
        raise typer.Exit(code=1)


@app.command()
def sentences(
    text: str = typer.Argument(..., help="Text to annotate"),
    model: str = typer.Option(AppConfig().model_name, help="Sentence-transformer model name"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Show the sentiment of each sentence in a piece of text."""
    _setup_logging(verbose)
    annotator = ensure_thread_safe(_build_annotator(AppConfig(model_name=model)))
    try:
        results = annotator.annotate(text)
    except SpeechfeelsError as exc:
        console.print(f"[red]Annotation failed:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not results:
        console.print("[yellow]No sentences found.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#")
    table.add_column("Sentiment")
    table.add_column("Sentence")
    for index, result in enumerate(results, start=1):
        table.add_row(str(index), result.label.value, result.text)
    Console().print(table)
