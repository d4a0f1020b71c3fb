"""User-directed resolution of duplicate groups."""

from __future__ import annotations

import logging
from typing import List, Literal, Sequence, Tuple

from docdedup.config import CleanupAction
from docdedup.documents.base import DUPLICATE_TAG, DocumentStore
from docdedup.models import DocumentRef, DuplicateGroup

LOGGER = logging.getLogger(__name__)

KeepStrategy = Literal["keep-newest", "keep-oldest"]


def plan_keep_newest(group: DuplicateGroup) -> Tuple[DocumentRef, List[DocumentRef]]:
    ordered = sorted(group.members, key=lambda doc: (-doc.mtime, doc.path))
    return ordered[0], ordered[1:]


def plan_keep_oldest(group: DuplicateGroup) -> Tuple[DocumentRef, List[DocumentRef]]:
    ordered = sorted(group.members, key=lambda doc: (doc.mtime, doc.path))
    return ordered[0], ordered[1:]


def plan(group: DuplicateGroup, strategy: KeepStrategy) -> Tuple[DocumentRef, List[DocumentRef]]:
    if strategy == "keep-newest":
        return plan_keep_newest(group)
    if strategy == "keep-oldest":
        return plan_keep_oldest(group)
    raise ValueError(f"Unknown strategy: {strategy}")


def resolve_group(
    store: DocumentStore,
    group: DuplicateGroup,
    remove: Sequence[DocumentRef],
    action: CleanupAction,
) -> List[str]:
    """Apply the cleanup action to ``remove``; returns the paths actually changed.

    At least one member of the group must stay untouched.
    """
    group_paths = set(group.paths)
    targets = [doc for doc in remove if doc.path in group_paths]
    if len({doc.path for doc in targets}) >= len(group_paths):
        raise ValueError("Cannot remove all files from a group; keep at least one")
    if action == "none":
        return []

    changed: List[str] = []
    for doc in targets:
        try:
            if action == "trash":
                store.trash(doc.path)
                changed.append(doc.path)
            elif store.annotate(doc.path, DUPLICATE_TAG):
                changed.append(doc.path)
        except Exception as exc:
            LOGGER.error("Failed to %s %s: %s", action, doc.path, exc)
    return changed
