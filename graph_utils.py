from __future__ import annotations
from itertools import combinations
from typing import Hashable, Optional
import logging

import networkx as nx
import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
class DisjointSet:
    def __init__(self, vertices: list[Hashable]):
        self.parent = {v: v for v in vertices}
        self.rank = {v: 0 for v in vertices}

    def find(self, vertex: Hashable):
        if self.parent[vertex] != vertex:
            self.parent[vertex] = self.find(self.parent[vertex])

        return self.parent[vertex]

    def union(self, root1: Hashable, root2: Hashable):
        if self.rank[root1] > self.rank[root2]:
            self.parent[root2] = root1

        elif self.rank[root1] < self.rank[root2]:
            self.parent[root1] = root2

        else:
            self.parent[root2] = root1
            self.rank[root1] += 1


def kruskal(vertices: list[int], edges: list[tuple[int, int, float]]) -> list[tuple[int, int, float]]:
    """
    Maximum-weight spanning forest. Ties are broken on (u, v) so the result
    is a pure function of the input.
    """
    edges = sorted(edges, key=lambda edge: (-edge[2], edge[0], edge[1]))

    disjoint_set = DisjointSet(vertices)

    forest = []
    for u, v, weight in edges:
        # Union-Find Algorithm
        root_u = disjoint_set.find(u)
        root_v = disjoint_set.find(v)

        if root_u != root_v:
            forest.append((u, v, weight))
            disjoint_set.union(root_u, root_v)

    return forest


# ---------------------------------------------------------------------------
def max_spanning_forest(weights: NDArray[np.float64],
                        threshold: Optional[float] = None) -> nx.Graph:
    """
    Maximum-weight spanning forest of the complete graph whose edge weights
    are the off-diagonal entries of `weights`.

    Vertices are 1..F. With `threshold`, edges of weight ≤ threshold are
    left out of the candidate graph first, which may disconnect it.
    """
    weights = np.asarray(weights, dtype=np.float64)
    n = weights.shape[0]
    vertices = list(range(1, n + 1))

    candidates = [(i + 1, j + 1, float(weights[i, j]))
                  for i, j in combinations(range(n), 2)
                  if threshold is None or weights[i, j] > threshold]

    forest = nx.Graph()
    forest.add_nodes_from(vertices)
    for u, v, weight in kruskal(vertices, candidates):
        forest.add_edge(u, v, weight=weight)

    logger.debug("Spanning forest: %d of %d candidate edges kept",
                 forest.number_of_edges(), len(candidates))
    return forest


def connected_components(forest: nx.Graph) -> list[set[int]]:
    """Components ordered by their smallest vertex."""
    return sorted((set(c) for c in nx.connected_components(forest)), key=min)


def center(component: nx.Graph) -> int:
    """Smallest-id vertex of minimum eccentricity."""
    return min(nx.center(component))


def bfs_orient(forest: nx.Graph, root: int) -> dict[int, int]:
    """
    Orient the component of `root` away from it.
    Returns {vertex: parent} for that component, the root mapping to 0.
    """
    parents = {root: 0}
    for parent, child in nx.bfs_edges(forest, source=root, sort_neighbors=sorted):
        parents[child] = parent
    return parents
