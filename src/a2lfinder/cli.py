"""Command line interface for A2LFinder."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from a2lfinder.config import AppConfig
from a2lfinder.index.corpus import Corpus
from a2lfinder.index.identify import Identifier
from a2lfinder.index.indexer import CorpusBuilder

console = Console()
app = typer.Typer(help="A2LFinder - identify ECU firmware images against a reference corpus")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(
    root: Optional[Path],
    chunk_size: Optional[int] = None,
    kgram_k: Optional[int] = None,
    kgram_step: Optional[int] = None,
) -> AppConfig:
    overrides = {
        "data_root": root,
        "chunk_size": chunk_size,
        "kgram_k": kgram_k,
        "kgram_step": kgram_step,
    }
    changes = {name: value for name, value in overrides.items() if value is not None}
    return replace(AppConfig.from_env(), **changes)


def _build(config: AppConfig) -> tuple[Corpus, CorpusBuilder]:
    builder = CorpusBuilder(config)
    corpus = builder.build(config.resolve_data_root(Path.cwd()))
    return corpus, builder


ROOT_OPTION = typer.Option(None, "--root", help="Corpus root (defaults to DATA_ROOT)")


@app.command()
def scan(
    root: Path = typer.Argument(..., help="Folder holding A2L and BIN files.", resolve_path=True),
    chunk_size: Optional[int] = typer.Option(None, min=1, help="Fixed chunk size in bytes"),
    kgram_k: Optional[int] = typer.Option(None, min=1, help="K-gram window length in bytes"),
    kgram_step: Optional[int] = typer.Option(None, min=1, help="K-gram step in bytes"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Index a corpus folder and report what was found."""
    _setup_logging(verbose)
    config = _load_config(root, chunk_size, kgram_k, kgram_step)

    console.print(f"Indexing [bold]{root}[/bold]...")
    corpus, builder = _build(config)
    if corpus.is_empty():
        console.print("[yellow]No A2L or BIN files found.[/yellow]")
        return

    stats = builder.stats
    console.print(
        f"A2L: {stats.descriptions}, BIN: {stats.binaries}, "
        f"associated: {stats.associated}, failed: {stats.failed}, "
        f"directories: {stats.directories} ({stats.elapsed_ms} ms)"
    )


@app.command()
def identify(
    upload: Path = typer.Argument(..., help="Firmware image to identify", resolve_path=True),
    root: Optional[Path] = ROOT_OPTION,
    top_k: int = typer.Option(5, min=1, help="Number of candidates to display"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Rank candidate A2L files for a firmware image."""
    _setup_logging(verbose)
    if not upload.is_file():
        raise typer.BadParameter(f"File not found: {upload}")

    config = _load_config(root)
    corpus, _ = _build(config)
    identifier = Identifier(corpus, top_k=config.top_k, max_results=top_k)
    result = identifier.identify(upload.read_bytes(), upload.name)

    if not result.ok:
        console.print(f"[red]{result.error}[/red]")
        raise typer.Exit(code=1)

    console.print(f"SHA1 {result.sha1} ({result.received_bytes} bytes)")
    if not result.matches:
        console.print("[yellow]No candidates found.[/yellow]")
        if result.diagnostics is not None:
            diagnostics = result.diagnostics
            console.print(
                f"Root: {diagnostics.data_root}, indexed A2L: {diagnostics.descriptions}, "
                f"BIN: {diagnostics.binaries}"
            )
            for note in diagnostics.notes:
                console.print(f"- {note}")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Score")
    table.add_column("Label")
    table.add_column("A2L")
    table.add_column("Reasons")

    for match in result.matches:
        table.add_row(str(match.score), match.label, str(match.description_path), "; ".join(match.reasons))

    console.print(table)


@app.command()
def descriptions(
    root: Optional[Path] = ROOT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List indexed A2L files."""
    _setup_logging(verbose)
    corpus, _ = _build(_load_config(root))
    entries = corpus.list_descriptions()
    if not entries:
        console.print("[yellow]No A2L files indexed.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Label")
    table.add_column("Path")
    table.add_column("Identifiers")
    table.add_column("Part numbers")
    table.add_column("SW IDs")
    for entry in entries:
        table.add_row(
            entry.label,
            str(entry.path),
            str(len(entry.identifiers)),
            ", ".join(sorted(entry.part_numbers)),
            ", ".join(sorted(entry.software_ids)),
        )
    console.print(table)


@app.command()
def binaries(
    root: Optional[Path] = ROOT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """List indexed BIN files and their associated A2L files."""
    _setup_logging(verbose)
    corpus, _ = _build(_load_config(root))
    entries = corpus.list_binaries()
    if not entries:
        console.print("[yellow]No BIN files indexed.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("SHA1")
    table.add_column("Path")
    table.add_column("Size")
    table.add_column("A2L")
    for entry in entries:
        associated = ", ".join(str(path) for path in entry.associated_descriptions) or "-"
        table.add_row(entry.sha1, str(entry.path), str(entry.size), associated)
    console.print(table)


@app.command()
def lookup(
    sha1: str = typer.Argument(..., help="SHA1 of a BIN file"),
    root: Optional[Path] = ROOT_OPTION,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Print the A2L files associated with a BIN content hash."""
    _setup_logging(verbose)
    corpus, _ = _build(_load_config(root))
    paths = corpus.find_by_content_hash(sha1.strip())
    if not paths:
        console.print("[yellow]No A2L associated with this hash.[/yellow]")
        return
    for path in paths:
        console.print(str(path))
