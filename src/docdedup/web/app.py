"""FastAPI application exposing scans and cache maintenance."""

from __future__ import annotations

import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, List, Literal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from docdedup.cleanup import resolve_group
from docdedup.config import AppConfig
from docdedup.documents.filesystem import FilesystemStore
from docdedup.index.scanner import DuplicateScanner, ScanError
from docdedup.index.session import ScanSession
from docdedup.models import DuplicateGroup

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="DocDedup API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


class ScanPayload(BaseModel):
    root: Path
    mode: Literal["exact", "canonical", "near"] = "exact"
    threshold: float = Field(default=80, ge=0, le=100)
    ignore_paths: List[str] = Field(default_factory=list)
    size_cap_mb: float = 5
    db: Path | None = None


class ClearPayload(BaseModel):
    db: Path | None = None


class ResolvePayload(BaseModel):
    root: Path
    paths: List[str]
    keep: str
    action: Literal["tag", "trash", "none"] = "tag"
    match_type: Literal["exact", "canonical", "near"] = "exact"


def _resolve_db_path(db: Path | None) -> Path:
    config = AppConfig(db_path=db if db is not None else AppConfig().db_path)
    return config.resolve_db_path(Path.cwd())


def _ensure_db_parent(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)


def _require_root(root: Path) -> Path:
    path = root.expanduser()
    if not path.is_dir():
        raise HTTPException(status_code=404, detail=f"Directory not found: {path}")
    return path


def _group_to_dict(group: DuplicateGroup) -> dict[str, Any]:
    return {
        "group_key": group.group_key,
        "match_type": group.match_type,
        "similarity_score": group.similarity_score,
        "members": [asdict(member) for member in group.members],
    }


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


@app.post("/scan")
async def scan_documents(payload: ScanPayload) -> dict[str, Any]:
    root = _require_root(payload.root)
    resolved_db = _resolve_db_path(payload.db)
    _ensure_db_parent(resolved_db)

    config = AppConfig(
        db_path=resolved_db,
        mode=payload.mode,
        similarity_threshold=payload.threshold,
        ignore_paths=payload.ignore_paths,
        size_cap_mb=payload.size_cap_mb,
    )
    session = ScanSession(resolved_db)
    try:
        session.load()
        scanner = DuplicateScanner(FilesystemStore(root), session, config)
        try:
            groups = await scanner.scan()
        except ScanError as exc:
            LOGGER.exception("Scan failed: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc
        session.flush()
        stats = asdict(scanner.last_stats)
    finally:
        session.close()

    return {"groups": [_group_to_dict(group) for group in groups], "stats": stats}


@app.get("/stats")
async def get_stats(root: str, db: str | None = None) -> dict[str, Any]:
    directory = _require_root(Path(root))
    resolved_db = _resolve_db_path(Path(db) if db else None)
    if not resolved_db.exists():
        return {"cache_size": 0, "total_documents": 0, "memo_size": 0}

    session = ScanSession(resolved_db)
    try:
        session.load()
        scanner = DuplicateScanner(FilesystemStore(directory), session)
        snapshot = scanner.get_stats()
    finally:
        session.close()
    return asdict(snapshot)


@app.post("/cache/clear")
async def clear_cache(payload: ClearPayload) -> dict[str, Any]:
    resolved_db = _resolve_db_path(payload.db)
    if not resolved_db.exists():
        raise HTTPException(status_code=404, detail="Database not found")

    session = ScanSession(resolved_db)
    try:
        session.load()
        removed = session.size()
        session.clear()
    finally:
        session.close()
    return {"status": "ok", "removed": removed}


@app.post("/resolve")
async def resolve_duplicates(payload: ResolvePayload) -> dict[str, Any]:
    root = _require_root(payload.root)
    if payload.keep not in payload.paths:
        raise HTTPException(status_code=400, detail="The kept file must be one of the paths")

    store = FilesystemStore(root)
    wanted = set(payload.paths)
    members = [doc for doc in store.list_documents() if doc.path in wanted]
    if len(members) < 2:
        raise HTTPException(status_code=400, detail="At least two existing files are required")

    group = DuplicateGroup(group_key="request", members=members, match_type=payload.match_type)
    remove = [doc for doc in members if doc.path != payload.keep]
    try:
        changed = resolve_group(store, group, remove, payload.action)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return {"status": "ok", "match_type": group.match_type, "changed": changed}
