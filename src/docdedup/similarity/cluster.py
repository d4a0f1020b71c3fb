"""Group near-duplicate matches into clusters with a disjoint-set forest."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

from docdedup.models import DocumentRef, DuplicateGroup, SimilarityEdge

LOGGER = logging.getLogger(__name__)


class DisjointSet:
    """Union-find over dense indices 0..n-1 with union by size."""

    def __init__(self, size: int) -> None:
        self.parent = list(range(size))
        self.sizes = [1] * size

    def find(self, x: int) -> int:
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, x: int, y: int) -> int:
        """Merge the sets of x and y; the larger set's root survives."""
        root_x, root_y = self.find(x), self.find(y)
        if root_x == root_y:
            return root_x
        if self.sizes[root_x] < self.sizes[root_y]:
            root_x, root_y = root_y, root_x
        self.parent[root_y] = root_x
        self.sizes[root_x] += self.sizes[root_y]
        return root_x


def build_clusters(
    edges: Sequence[SimilarityEdge], documents: Iterable[DocumentRef]
) -> List[DuplicateGroup]:
    """Turn above-threshold edges into near-duplicate groups.

    A group's ``similarity_score`` averages the edges whose endpoints both
    ended up in it, so it explains the grouping without promising that
    every member pair was compared.
    """
    by_path: Dict[str, DocumentRef] = {doc.path: doc for doc in documents}
    index: Dict[str, int] = {}
    order: List[str] = []
    for edge in edges:
        for path in (edge.path_a, edge.path_b):
            if path not in index:
                index[path] = len(order)
                order.append(path)

    forest = DisjointSet(len(order))
    for edge in edges:
        forest.union(index[edge.path_a], index[edge.path_b])

    members: Dict[int, List[str]] = defaultdict(list)
    for path in order:
        members[forest.find(index[path])].append(path)

    scores: Dict[int, List[float]] = defaultdict(list)
    for edge in edges:
        scores[forest.find(index[edge.path_a])].append(edge.score)

    groups: List[DuplicateGroup] = []
    for root, paths in members.items():
        if len(paths) < 2:
            continue
        edge_scores = scores[root]
        group = DuplicateGroup(
            group_key=f"near-{len(groups) + 1:03d}",
            members=[by_path[path] for path in sorted(paths) if path in by_path],
            match_type="near",
            similarity_score=round(sum(edge_scores) / len(edge_scores), 2),
        )
        if len(group.members) < 2:
            continue
        groups.append(group)
        LOGGER.debug(
            "Created group %s with %d documents (mean score %.2f)",
            group.group_key,
            len(group.members),
            group.similarity_score,
        )
    return groups
