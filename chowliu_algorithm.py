from __future__ import annotations
from dataclasses import dataclass, field
from typing import Literal, Dict, Tuple, Union, Optional, Iterator, get_args
import logging
from logging.handlers import RotatingFileHandler
import random

import networkx as nx
import numpy as np
import pandas as pd
from numpy.typing import NDArray

from distribution_cache import WeightedDataset, DistributionCache, build_distribution_cache
from errors import RootPolicyError
from graph_utils import max_spanning_forest, connected_components, center, bfs_orient
from mutual_information import mutual_information

#-------------------------------Logger--------------------------------------
logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)

if not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
    handler = RotatingFileHandler(
        "chow_liu.log",
        maxBytes=1024*1024,
        backupCount=3,
        mode="a",
        delay=True,
    )
    fmt = "%(asctime)s %(name)s %(levelname)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))
    handler.setLevel(logging.INFO)
    logger.addHandler(handler)


# ---------------------------- Configuration ---------------------------------
RootPolicy = Literal["graph_center", "rand"]

@dataclass(frozen=True, slots=True)
class LearnerConfig:
    alpha: float = 0.0001
    parametered: bool = True
    root_policy: RootPolicy = "graph_center"
    seed: Optional[int] = None
    mi_threshold: Optional[float] = None      # drop edges with MI <= threshold

    def __post_init__(self):
        if self.root_policy not in get_args(RootPolicy):
            raise RootPolicyError(
                f"{self.root_policy!r} is not recognized, must be one of {get_args(RootPolicy)}")
        if self.alpha < 0:
            raise ValueError(f"alpha must be non-negative, got {self.alpha}")
        if self.mi_threshold is not None and self.mi_threshold < 0:
            raise ValueError(f"mi_threshold must be non-negative, got {self.mi_threshold}")


# ---------------------------- Tree types ------------------------------------
@dataclass(frozen=True, slots=True)
class RootCPT:
    """value -> P(X = value)"""
    probs: Dict[int, float]

    def __getitem__(self, value: int) -> float:
        return self.probs[value]


@dataclass(frozen=True, slots=True)
class ConditionalCPT:
    """(value, parent_value) -> P(X = value | parent = parent_value)"""
    probs: Dict[Tuple[int, int], float]

    def __getitem__(self, key: Tuple[int, int]) -> float:
        return self.probs[key]


CPT = Union[RootCPT, ConditionalCPT]


@dataclass(frozen=True)
class RootedTree:
    """
    Directed tree/forest over vertices 1..N stored as a parent vector:
    parents[v - 1] is the parent of v, 0 for a root.
    """
    parents: Tuple[int, ...]
    feature_names: Tuple[str, ...] = ()

    @property
    def num_vertices(self) -> int:
        return len(self.parents)

    def vertices(self) -> range:
        return range(1, self.num_vertices + 1)

    def parent(self, v: int) -> int:
        return self.parents[v - 1]

    def roots(self) -> list[int]:
        return [v for v in self.vertices() if self.parent(v) == 0]

    def children(self, v: int) -> list[int]:
        return [c for c in self.vertices() if self.parent(c) == v]

    def edges(self) -> Iterator[Tuple[int, int]]:
        """(parent, child) pairs."""
        for v in self.vertices():
            if self.parent(v) != 0:
                yield self.parent(v), v

    def to_digraph(self) -> nx.DiGraph:
        g = nx.DiGraph()
        g.add_nodes_from(self.vertices())
        g.add_edges_from(self.edges())
        return g


@dataclass(frozen=True)
class ParameterizedTree(RootedTree):
    cpts: Dict[int, CPT] = field(default_factory=dict)

    def cpt(self, v: int) -> CPT:
        return self.cpts[v]


def parent_vector(tree: RootedTree) -> list[int]:
    "Get parent vector of a tree"
    return list(tree.parents)


# ---------------------------- Rooting ---------------------------------------
def root_forest(forest: nx.Graph,
                root_policy: RootPolicy = "graph_center",
                rng: Optional[random.Random] = None,
                *,
                verbose: bool = False) -> Tuple[int, ...]:
    """
    Pick one root per connected component and orient every edge away from
    it with a BFS. Returns the merged parent vector over all vertices.
    """
    if root_policy not in get_args(RootPolicy):
        raise RootPolicyError(
            f"{root_policy!r} is not recognized, must be one of {get_args(RootPolicy)}")
    rng = rng or random.Random()

    parents: dict[int, int] = {}
    components = connected_components(forest)
    for comp in components:
        if len(comp) == 1:
            root = next(iter(comp))
        elif root_policy == "graph_center":
            root = center(forest.subgraph(comp))
        else:
            root = rng.choice(sorted(comp))

        parents.update(bfs_orient(forest, root))
        if verbose:
            logger.info("Component of size %d rooted at %d", len(comp), root)

    logger.info("Rooted %d component(s) with policy %r", len(components), root_policy)
    return tuple(parents[v] for v in sorted(forest.nodes))


# ---------------------------- CPTs ------------------------------------------
def clamp_invalid(p: NDArray[np.float64]) -> NDArray[np.float64]:
    """Replace NaN and ±inf with 0; rows may then no longer sum to 1."""
    bad = ~np.isfinite(p)
    if bad.any():
        logger.debug("Clamped %d non-finite conditional probabilities to 0", int(bad.sum()))
    return np.where(bad, 0.0, p)


def get_cpt(parent: int, child: int, dis_cache: DistributionCache) -> CPT:
    if parent == 0:
        p = dis_cache.marginal[child - 1]
        return RootCPT({0: float(p[0]), 1: float(p[1])})

    # joint and marginal are smoothed separately: rows sum to 1 only up to O(alpha / weight)
    # pairwise entries are ordered (child, parent) = 00, 01, 10, 11
    denom = np.tile(dis_cache.marginal[parent - 1], 2)
    with np.errstate(divide="ignore", invalid="ignore"):
        p = dis_cache.pairwise[child - 1, parent - 1] / denom
    p = clamp_invalid(p)
    return ConditionalCPT({(0, 0): float(p[0]), (0, 1): float(p[1]),
                           (1, 0): float(p[2]), (1, 1): float(p[3])})  # p(child|parent)


def assemble_cpts(tree: RootedTree, dis_cache: DistributionCache) -> ParameterizedTree:
    cpts = {v: get_cpt(tree.parent(v), v, dis_cache) for v in tree.vertices()}
    return ParameterizedTree(parents=tree.parents, feature_names=tree.feature_names, cpts=cpts)


# ---------------------------- Learner ---------------------------------------
def _as_dataset(data, weights) -> WeightedDataset:
    if isinstance(data, WeightedDataset):
        if weights is not None:
            return WeightedDataset(data.features, weights, data.feature_names)
        return data
    if isinstance(data, pd.DataFrame):
        return WeightedDataset.from_frame(data, weights)
    return WeightedDataset.from_array(data, weights)


def learn_chow_liu_tree(data: WeightedDataset | pd.DataFrame | NDArray,
                        alpha: float = 0.0001,
                        parametered: bool = True,
                        root_policy: RootPolicy = "graph_center",
                        *,
                        weights=None,
                        seed: Optional[int] = None,
                        mi_threshold: Optional[float] = None,
                        verbose: bool = False) -> ParameterizedTree | RootedTree:
    """
    Learn a Chow-Liu tree from binary training data.

    Parameters
    ----------
    data         : WeightedDataset, DataFrame or 2-D array of 0/1 values;
                   the latter two get uniform weights unless `weights` is given
    alpha        : Laplace smoothing added to every count
    parametered  : when False the bare RootedTree is returned, without CPTs
    root_policy  : "graph_center" (deterministic) or "rand"
    weights      : per-row weights, overriding those of `data`
    seed         : seeds the "rand" policy
    mi_threshold : ignore candidate edges with MI <= threshold
    verbose      : log every kept edge and chosen root

    Returns
    -------
    ParameterizedTree, or RootedTree when `parametered` is False
    """
    config = LearnerConfig(alpha=alpha, parametered=parametered, root_policy=root_policy,
                           seed=seed, mi_threshold=mi_threshold)
    dataset = _as_dataset(data, weights)
    logger.info("Learning Chow-Liu tree: %d rows, %d features",
                dataset.num_rows, dataset.num_features)

    # ---- statistics and mutual information -------------------------------
    dis_cache = build_distribution_cache(dataset, alpha=config.alpha)
    MI = mutual_information(dis_cache)

    # ---- maximum spanning tree / forest ----------------------------------
    forest = max_spanning_forest(MI, threshold=config.mi_threshold)
    logger.info("MWST edges: %d", forest.number_of_edges())
    if verbose:
        for u, v, w in forest.edges(data="weight"):
            logger.info("Edge kept (%s,%s)  MI=%.6g",
                        dataset.feature_names[u - 1], dataset.feature_names[v - 1], w)

    # ---- rooted tree / forest --------------------------------------------
    parents = root_forest(forest, config.root_policy, random.Random(config.seed),
                          verbose=verbose)
    clt = RootedTree(parents=parents, feature_names=tuple(dataset.feature_names))

    if config.parametered:
        clt = assemble_cpts(clt, dis_cache)
    return clt


#####################
# Methods for test
#####################
def print_tree(clt: RootedTree) -> str:
    "Print edges and vertices of a ChowLiu tree"
    lines = [" ".join(f"{src} => {dst}" for src, dst in clt.edges())]
    for v in clt.vertices():
        if isinstance(clt, ParameterizedTree):
            lines.append(f"{v} parent={clt.parent(v)} cpt={clt.cpt(v).probs}")
        else:
            lines.append(str(v))
    out = "\n".join(lines)
    print(out)
    return out


if __name__ == '__main__':
    rows = [random.randint(0, 1) for _ in range(200)]
    df = pd.DataFrame({"A": rows,
                       "B": rows,
                       "C": [1 - r if random.random() < 0.9 else r for r in rows],
                       "D": [random.randint(0, 1) for _ in range(200)]})

    print_tree(learn_chow_liu_tree(df, verbose=True))
