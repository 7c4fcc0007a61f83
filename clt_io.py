"""
Plain-text format for parameterized Chow-Liu trees.

    <N>                              vertex count
    <R>                              root count
    <root> <P(root=1)>               R lines
    <dst> <src> <P(dst=1|src=1)> <P(dst=1|src=0)>      N - R lines

Vertex ids are 1-based int32, probabilities float64.
"""
from __future__ import annotations
from pathlib import Path
import logging

import numpy as np

from chowliu_algorithm import ParameterizedTree, RootCPT, ConditionalCPT, CPT
from errors import FormatError

logger = logging.getLogger(__name__)

INT32_MIN, INT32_MAX = np.iinfo(np.int32).min, np.iinfo(np.int32).max


# ---------------------------- Writing ---------------------------------------
def dumps_clt(clt: ParameterizedTree) -> str:
    roots = clt.roots()
    lines = [str(clt.num_vertices), str(len(roots))]

    for v in roots:
        lines.append(f"{v} {clt.cpt(v)[1]!r}")

    for v in clt.vertices():
        src = clt.parent(v)
        if src == 0:
            continue
        cpt = clt.cpt(v)
        lines.append(f"{v} {src} {cpt[(1, 1)]!r} {cpt[(1, 0)]!r}")

    return "\n".join(lines) + "\n"


def save_clt(clt: ParameterizedTree, filename: str | Path) -> None:
    Path(filename).write_text(dumps_clt(clt))
    logger.info("Saved Chow-Liu tree with %d vertices to %s", clt.num_vertices, filename)


# ---------------------------- Parsing ---------------------------------------
def _parse_int32(token: str, line_no: int) -> int:
    try:
        value = int(token)
    except ValueError:
        raise FormatError(f"expected an integer, got {token!r}", line_no) from None
    if not INT32_MIN <= value <= INT32_MAX:
        raise FormatError(f"integer {value} does not fit in int32", line_no)
    return value


def _parse_float(token: str, line_no: int) -> float:
    try:
        return float(token)
    except ValueError:
        raise FormatError(f"expected a float, got {token!r}", line_no) from None


def _parse_vertex(token: str, n: int, line_no: int) -> int:
    v = _parse_int32(token, line_no)
    if not 1 <= v <= n:
        raise FormatError(f"vertex id {v} outside 1..{n}", line_no)
    return v


def loads_clt(text: str) -> ParameterizedTree:
    """
    Rebuild a tree from its text form; statistics are not recomputed.
    Any malformed or missing line raises FormatError.
    """
    lines = text.splitlines()
    cursor = 0

    def next_tokens(expected: int) -> tuple[list[str], int]:
        nonlocal cursor
        if cursor >= len(lines):
            raise FormatError(f"unexpected end of file, expected line {cursor + 1}")
        cursor += 1
        tokens = lines[cursor - 1].split()
        if len(tokens) != expected:
            raise FormatError(f"expected {expected} token(s), got {len(tokens)}", cursor)
        return tokens, cursor

    (tok,), line_no = next_tokens(1)
    n = _parse_int32(tok, line_no)
    if n < 0:
        raise FormatError(f"negative vertex count {n}", line_no)

    (tok,), line_no = next_tokens(1)
    n_root = _parse_int32(tok, line_no)
    if not 0 <= n_root <= n:
        raise FormatError(f"root count {n_root} outside 0..{n}", line_no)

    parents: dict[int, int] = {}
    cpts: dict[int, CPT] = {}

    for _ in range(n_root):
        (root, prob), line_no = next_tokens(2)
        root, prob = _parse_vertex(root, n, line_no), _parse_float(prob, line_no)
        if root in parents:
            raise FormatError(f"vertex {root} defined twice", line_no)
        parents[root] = 0
        cpts[root] = RootCPT({1: prob, 0: 1 - prob})

    for _ in range(n - n_root):
        (dst, src, prob1, prob0), line_no = next_tokens(4)
        dst, src = _parse_vertex(dst, n, line_no), _parse_vertex(src, n, line_no)
        prob1, prob0 = _parse_float(prob1, line_no), _parse_float(prob0, line_no)
        if dst in parents:
            raise FormatError(f"vertex {dst} defined twice", line_no)
        parents[dst] = src
        cpts[dst] = ConditionalCPT({(1, 1): prob1, (0, 1): 1 - prob1,
                                    (1, 0): prob0, (0, 0): 1 - prob0})

    for extra in range(cursor, len(lines)):
        if lines[extra].strip():
            raise FormatError("unexpected content after the last vertex", extra + 1)

    return ParameterizedTree(parents=tuple(parents[v] for v in range(1, n + 1)), cpts=cpts)


def parse_clt(filename: str | Path) -> ParameterizedTree:
    "Parse a clt from given file"
    clt = loads_clt(Path(filename).read_text())
    logger.info("Parsed Chow-Liu tree with %d vertices from %s", clt.num_vertices, filename)
    return clt
