"""
OVAL criteria flattening.

An OVAL definition describes its applicability as a tree of AND/OR
operators over test references. Matching wants the disjunctive normal
form instead: a list of conjunctions, each of which must hold entirely
for one distinct match.
"""

from typing import List, Sequence, Set, Tuple

from vulnfeed.core.exceptions import ParseError
from vulnfeed.schemas.oval import Criteria, Criterion

OPERATORS = ("AND", "OR")


def _operator(node: Criteria) -> str:
    op = (node.operator or "AND").upper()
    if op not in OPERATORS:
        raise ParseError(f"walking OVAL definition: unknown operator {node.operator!r}")
    return op


def _validate(node: Criteria) -> None:
    _operator(node)
    for child in node.criterias:
        _validate(child)


def walk(root: Criteria) -> List[List[Criterion]]:
    """
    Flatten a criteria tree into conjunctions of criterions.

    AND nodes contribute all of their criterions to every conjunction that
    passes through them and defer their child criteria; OR nodes fork one
    conjunction per criterion and per child criteria. A conjunction is
    emitted once no deferred node remains.

    Returns:
        Non-empty, duplicate-free conjunctions in document order. An empty
        tree yields an empty list.

    Raises:
        ParseError: If any node carries an operator other than AND or OR
    """
    _validate(root)

    out: List[List[Criterion]] = []
    seen: Set[Tuple[str, ...]] = set()

    def emit(stack: Sequence[Criterion]) -> None:
        if not stack:
            return
        key = tuple(c.test_ref for c in stack)
        if key in seen:
            return
        seen.add(key)
        out.append(list(stack))

    def expand(stack: List[Criterion], pending: List[Criteria]) -> None:
        if not pending:
            emit(stack)
            return
        node, rest = pending[0], pending[1:]
        if _operator(node) == "AND":
            expand(stack + node.criterions, list(node.criterias) + rest)
            return
        if not node.criterions and not node.criterias:
            expand(stack, rest)
            return
        for criterion in node.criterions:
            expand(stack + [criterion], rest)
        for child in node.criterias:
            expand(stack, [child] + rest)

    expand([], [root])
    return out
