"""Command line interface for DocDedup."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from docdedup.cleanup import plan, resolve_group
from docdedup.config import AppConfig
from docdedup.documents.filesystem import FilesystemStore
from docdedup.embedding.llm import LLMClient
from docdedup.embedding.semantic import SemanticAugmenter
from docdedup.index.scanner import DuplicateScanner, ScanError, VectorSource
from docdedup.index.session import ScanSession
from docdedup.models import DuplicateGroup
from docdedup.web.app import app as web_app


console = Console()
app = typer.Typer(help="DocDedup - find duplicate and near-duplicate notes")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def build_llm_client(config: AppConfig) -> LLMClient:
    return LLMClient(
        provider=config.llm_provider,
        api_key=config.api_key,
        endpoint=config.endpoint,
        model=config.llm_model,
        temperature=config.temperature,
    )


def build_semantic(config: AppConfig) -> tuple[SemanticAugmenter | None, VectorSource | None]:
    """Create the optional semantic collaborators described by the config."""
    augmenter: SemanticAugmenter | None = None
    vector_source: VectorSource | None = None

    if config.enable_llm:
        augmenter = SemanticAugmenter(
            build_llm_client(config), dimensions=config.embedding_dimensions
        )
        vector_source = augmenter.embed

    if config.vector_backend == "local":
        try:
            from docdedup.embedding.encoder import EmbeddingModel
        except ImportError as exc:
            raise typer.BadParameter(
                "sentence-transformers is not installed. Install the local extras with "
                "\"python -m pip install '.[local]'\""
            ) from exc
        vector_source = EmbeddingModel().vector

    return augmenter, vector_source


def _print_groups(groups: List[DuplicateGroup]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Group")
    table.add_column("Type")
    table.add_column("Score")
    table.add_column("Documents")

    for group in groups:
        score = f"{group.similarity_score:.1f}" if group.similarity_score is not None else "-"
        table.add_row(
            group.group_key[:16],
            group.match_type,
            score,
            "\n".join(group.paths),
        )

    console.print(table)


@app.command()
def scan(
    root: Path = typer.Argument(..., help="Directory with notes to scan.", resolve_path=True),
    mode: str = typer.Option(AppConfig().mode, help="exact, canonical or near"),
    threshold: float = typer.Option(
        AppConfig().similarity_threshold, help="Near-duplicate threshold (0-100)"
    ),
    ignore: List[str] = typer.Option([], "--ignore", help="Path prefix to skip (repeatable)"),
    size_cap_mb: float = typer.Option(AppConfig().size_cap_mb, help="Skip files larger than this"),
    max_documents: int = typer.Option(AppConfig().max_documents, help="Near-mode document ceiling"),
    max_comparisons: int = typer.Option(
        AppConfig().max_comparisons, help="Near-mode comparison budget"
    ),
    llm: bool = typer.Option(False, "--llm/--no-llm", help="Use an LLM for semantic scoring"),
    provider: str = typer.Option(AppConfig().llm_provider, help="openai, azure, zhipu, qwen or custom"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="LLM API key"),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="LLM endpoint URL"),
    model: str = typer.Option(AppConfig().llm_model, "--model", help="LLM model name"),
    vector_backend: str = typer.Option(
        AppConfig().vector_backend, help="Semantic vectors from 'llm' or 'local' embeddings"
    ),
    resolve: Optional[str] = typer.Option(
        None, "--resolve", help="keep-newest or keep-oldest for every group"
    ),
    action: str = typer.Option(AppConfig().action, help="tag, trash or none"),
    yes: bool = typer.Option(
        not AppConfig().confirm_before_delete,
        "--yes/--confirm",
        "-y",
        help="Skip or require confirmation before changing files",
    ),
    db: Path = typer.Option(None, "--db", help="SQLite cache path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Scan a directory for duplicate notes."""
    _setup_logging(verbose)
    if mode not in ("exact", "canonical", "near"):
        raise typer.BadParameter(f"Unknown mode: {mode}")
    if action not in ("tag", "trash", "none"):
        raise typer.BadParameter(f"Unknown action: {action}")
    if resolve is not None and resolve not in ("keep-newest", "keep-oldest"):
        raise typer.BadParameter(f"Unknown resolve strategy: {resolve}")
    if vector_backend not in ("llm", "local"):
        raise typer.BadParameter(f"Unknown vector backend: {vector_backend}")

    config = AppConfig(
        db_path=db if db is not None else AppConfig().db_path,
        mode=mode,  # type: ignore[arg-type]
        similarity_threshold=threshold,
        ignore_paths=list(ignore),
        size_cap_mb=size_cap_mb,
        max_documents=max_documents,
        max_comparisons=max_comparisons,
        action=action,  # type: ignore[arg-type]
        confirm_before_delete=not yes,
        enable_llm=llm,
        llm_provider=provider,  # type: ignore[arg-type]
        api_key=api_key,
        endpoint=endpoint,
        llm_model=model,
        vector_backend=vector_backend,  # type: ignore[arg-type]
    )

    resolved_db = config.resolve_db_path(Path.cwd())
    _ensure_db_parent(resolved_db)

    store = FilesystemStore(root)
    augmenter, vector_source = build_semantic(config)
    session = ScanSession(resolved_db)
    try:
        session.load()
        scanner = DuplicateScanner(
            store, session, config, augmenter=augmenter, vector_source=vector_source
        )
        console.print(f"Scanning [bold]{root}[/bold] ({config.mode} mode)...")
        try:
            groups = asyncio.run(scanner.scan())
        except ScanError as exc:
            console.print(f"[red]{exc}[/red]")
            raise typer.Exit(code=1)
        session.flush()

        stats = scanner.last_stats
        if stats.truncated:
            console.print(
                f"[yellow]Only the {config.max_documents} largest documents were compared.[/yellow]"
            )
        if not groups:
            console.print(f"[green]No duplicates found.[/green] Scanned {stats.scanned} files.")
            return

        _print_groups(groups)
        total_files = sum(len(group) for group in groups)
        console.print(
            f"Groups: {len(groups)}, files: {total_files}, "
            f"failed: {stats.failed}, cached: {stats.cache_hits}"
        )

        if resolve is not None:
            _resolve_groups(
                store, groups, resolve, config.action, config.confirm_before_delete
            )
    finally:
        session.close()


def _resolve_groups(
    store: FilesystemStore,
    groups: List[DuplicateGroup],
    strategy: str,
    action: str,
    confirm: bool,
) -> None:
    plans = [(group, *plan(group, strategy)) for group in groups]  # type: ignore[arg-type]
    verb = "move to trash" if action == "trash" else "tag"
    if action == "none":
        console.print("Action is 'none'; nothing to change.")
        return

    for group, keep, remove in plans:
        console.print(f"[bold]{group.group_key[:16]}[/bold] keep {keep.path}")
        for doc in remove:
            console.print(f"  {verb}: {doc.path}")

    if confirm and not typer.confirm(f"Proceed to {verb} these files?"):
        console.print("Cancelled.")
        return

    changed = 0
    for group, _keep, remove in plans:
        changed += len(resolve_group(store, group, remove, action))  # type: ignore[arg-type]
    console.print(f"Changed {changed} files.")


@app.command()
def stats(
    root: Path = typer.Argument(..., help="Directory with notes.", resolve_path=True),
    db: Path = typer.Option(None, "--db", help="SQLite cache path"),
) -> None:
    """Show cache and corpus statistics."""
    config = AppConfig(db_path=db if db is not None else AppConfig().db_path)
    resolved_db = config.resolve_db_path(Path.cwd())
    if not resolved_db.exists():
        console.print("[yellow]Cache database not found, it will be created on first scan.[/yellow]")
        return

    session = ScanSession(resolved_db)
    try:
        session.load()
        scanner = DuplicateScanner(FilesystemStore(root), session, config)
        snapshot = scanner.get_stats()
    finally:
        session.close()
    console.print(
        f"Cached records: {snapshot.cache_size}, documents: {snapshot.total_documents}, "
        f"memoized pairs: {snapshot.memo_size}"
    )


@app.command("clear-cache")
def clear_cache(
    db: Path = typer.Option(None, "--db", help="SQLite cache path"),
) -> None:
    """Remove every cached hash record."""
    config = AppConfig(db_path=db if db is not None else AppConfig().db_path)
    resolved_db = config.resolve_db_path(Path.cwd())

    if not resolved_db.exists():
        console.print("[yellow]Cache database not found, nothing to clear.[/yellow]")
        return

    session = ScanSession(resolved_db)
    try:
        session.load()
        removed = session.size()
        session.clear()
    finally:
        session.close()
    console.print(f"Cleared {removed} cached records.")


@app.command("test-llm")
def test_llm(
    provider: str = typer.Option(AppConfig().llm_provider, help="openai, azure, zhipu, qwen or custom"),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="LLM API key"),
    endpoint: Optional[str] = typer.Option(None, "--endpoint", help="LLM endpoint URL"),
    model: str = typer.Option(AppConfig().llm_model, "--model", help="LLM model name"),
) -> None:
    """Check that the LLM answers and rates a paraphrase as similar."""
    config = AppConfig(
        enable_llm=True,
        llm_provider=provider,  # type: ignore[arg-type]
        api_key=api_key,
        endpoint=endpoint,
        llm_model=model,
    )
    client = build_llm_client(config)
    if not client.test_connection():
        console.print("[red]LLM connection test failed. Check your API key and settings.[/red]")
        raise typer.Exit(code=1)

    augmenter = SemanticAugmenter(client)
    if augmenter.test_connection():
        console.print("[green]LLM connection OK, semantic similarity is working.[/green]")
    else:
        console.print("[yellow]LLM reachable but semantic scores look unreliable.[/yellow]")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
) -> None:
    """Start the JSON API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    console.print(f"Starting web API on http://{host}:{port}")
    uvicorn.run(
        web_app,
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
