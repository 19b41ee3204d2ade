"""CLI entry point: Typer app for kbrag commands.

Usage:
    kbrag ingest docs/
    kbrag query "How do I register a new client?"
    kbrag chat "What is the intake checklist?"
    kbrag status
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from kbrag.config import Settings, load_settings
from kbrag.errors import KBRagError

app = typer.Typer(
    name="kbrag",
    help="Training knowledge base RAG: ingest, query, chat.",
    no_args_is_help=True,
)

console = Console()

_DOCS_DIR = typer.Argument(help="Folder of training documents (default: settings)")
_CONFIG = typer.Option("--config", "-c", help="Path to settings YAML")

_state: dict[str, Path | None] = {"config": None}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


def _settings() -> Settings:
    try:
        return load_settings(_state["config"])
    except KBRagError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc


def _clients(settings: Settings, need_llm: bool = False):
    from kbrag.clients import build_clients

    try:
        return build_clients(settings, need_llm=need_llm)
    except KBRagError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", "-l", help="Logging level"),
    config: Annotated[Path | None, _CONFIG] = None,
) -> None:
    """Configure logging and the settings file for all commands."""
    _configure_logging(log_level)
    _state["config"] = config


@app.command()
def ingest(
    docs_dir: Annotated[Path | None, _DOCS_DIR] = None,
    extension: list[str] | None = typer.Option(
        None, "--ext", "-x", help="File extension to include (repeatable)",
    ),
) -> None:
    """Chunk, embed and upsert every document in a folder."""
    from kbrag.documents.source import DirectoryDocumentSource
    from kbrag.pipeline.ingest import IngestPipeline

    settings = _settings()
    root = docs_dir or Path(settings.ingestion.docs_dir)
    extensions = extension or settings.ingestion.supported_formats
    try:
        source = DirectoryDocumentSource(root, extensions=extensions)
    except KBRagError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc

    clients = _clients(settings)

    pipeline = IngestPipeline.from_settings(
        settings,
        embedding_provider=clients.embedding_provider,
        vector_store=clients.vector_store,
    )
    try:
        summary = pipeline.run(source)
    except KBRagError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title="Ingestion Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Documents found", str(summary.documents_found))
    table.add_row("Documents processed", str(summary.documents_processed))
    table.add_row("Documents skipped", str(summary.documents_skipped))
    table.add_row("Chunks created", str(summary.chunks_created))
    table.add_row("Vectors embedded", str(summary.vectors_embedded))
    table.add_row("Vectors stored", str(summary.vectors_stored))
    table.add_row("Batches dropped", str(summary.batches_dropped))
    table.add_row("Index", summary.index_name)
    console.print(table)

    for name in summary.skipped_sources:
        console.print(f"  [yellow]Skipped:[/] {name}")

    if summary.chunks_created > 0 and summary.vectors_stored == 0:
        console.print("[bold red]Error:[/] no vectors were stored")
        raise typer.Exit(code=1)


@app.command()
def query(
    question: str = typer.Argument(..., help="Question to search for"),
    top_k: int | None = typer.Option(None, "--top-k", "-k", help="Matches to request"),
    min_score: float | None = typer.Option(
        None, "--min-score", "-m", help="Minimum similarity score",
    ),
) -> None:
    """Show the chunks and context block retrieved for a question."""
    from kbrag.retrieval.retriever import Retriever
    from kbrag.retrieval.schemas import RetrievalConfig

    settings = _settings()
    clients = _clients(settings)
    config = RetrievalConfig(
        top_k=top_k or settings.retrieval.top_k,
        min_score=settings.retrieval.min_score if min_score is None else min_score,
    )
    retriever = Retriever(clients.embedding_provider, clients.vector_store, config)

    try:
        rag_context = retriever.get_rag_context(question)
    except KBRagError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title=f"Matches for: {question[:60]}")
    table.add_column("#", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Source")
    table.add_column("Page", justify="right")
    for i, chunk in enumerate(rag_context.chunks, 1):
        table.add_row(
            str(i),
            f"{chunk.score:.3f}",
            chunk.metadata.title or chunk.metadata.source,
            str(chunk.metadata.page_number or ""),
        )
    console.print(table)
    console.print(f"\n{rag_context.context_section}", markup=False)


@app.command()
def chat(
    question: str = typer.Argument(..., help="Question to ask"),
) -> None:
    """Ask the training assistant a question."""
    from kbrag.pipeline.chat import ChatPipeline
    from kbrag.pipeline.citations import format_citations
    from kbrag.retrieval.retriever import Retriever
    from kbrag.retrieval.schemas import RetrievalConfig

    settings = _settings()
    clients = _clients(settings, need_llm=True)
    retriever = Retriever(
        clients.embedding_provider,
        clients.vector_store,
        RetrievalConfig(
            top_k=settings.retrieval.top_k,
            min_score=settings.retrieval.min_score,
        ),
    )
    pipeline = ChatPipeline(retriever=retriever, llm_provider=clients.llm_provider)

    try:
        response = pipeline.ask(question)
    except KBRagError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"\n[bold]Q:[/] {escape(response.question)}")
    console.print(f"\n[bold green]A:[/] {escape(response.answer)}")

    if response.citations:
        console.print(format_citations(response.citations), markup=False)

    console.print(
        f"\n[dim]Model: {response.model} "
        f"| Context chunks: {response.retrieval_count}[/]",
    )


@app.command()
def status() -> None:
    """Show configuration, credentials and available components."""
    from kbrag.config import missing_credentials
    from kbrag.embeddings.factory import available_providers as emb_providers
    from kbrag.llm.factory import available_providers as llm_providers
    from kbrag.vectorstore.factory import available_stores

    settings = _settings()
    console.print("\n[bold green]kbrag[/] v0.1.0\n")

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Embeddings", f"{settings.embedding.provider} ({settings.embedding.model})")
    table.add_row("Vector store", settings.vectorstore.backend)
    table.add_row("Collection", settings.vectorstore.collection)
    table.add_row("Chat model", f"{settings.llm.provider} ({settings.llm.model})")
    table.add_row(
        "Chunking",
        f"{settings.chunking.chunk_size} chars, {settings.chunking.chunk_overlap} overlap",
    )
    table.add_row(
        "Retrieval",
        f"top_k={settings.retrieval.top_k}, min_score={settings.retrieval.min_score}",
    )
    table.add_row("Docs folder", settings.ingestion.docs_dir)
    console.print(table)

    components = Table(title="Available Components")
    components.add_column("Layer", style="cyan")
    components.add_column("Available")
    components.add_row("Embedding Providers", ", ".join(emb_providers()))
    components.add_row("Vector Stores", ", ".join(available_stores()))
    components.add_row("LLM Providers", ", ".join(llm_providers()))
    console.print(components)

    missing = missing_credentials(settings, need_llm=True)
    if missing:
        console.print(f"[yellow]Missing credentials:[/] {', '.join(missing)}")
        return

    clients = _clients(settings)
    console.print(
        f"[green]All credentials present[/] | "
        f"Stored vectors in {clients.vector_store.index_name}: {clients.vector_store.count()}",
    )


if __name__ == "__main__":
    app()
