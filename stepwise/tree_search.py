"""
Tree search strategies.

A search wraps a per-node function ``fn(node, *extra) -> Optional[Status]``
and applies it across a tree, returning the first changed Status it finds,
anchored at the path of the node that changed. The search stops at the first
hit; callers run it again to find further rewrites.

    search = post_order(arithmetic)
    status = search(tree, expression_ctx)
"""

from typing import Callable, Optional

from .node import Node, Path
from .status import Status

NodeFunction = Callable[..., Optional[Status]]
Search = Callable[..., Optional[Status]]


def _hit(status: Optional[Status], path: Path) -> Optional[Status]:
    if status is None or not status.changed:
        return None
    return status.at(path)


def post_order(fn: NodeFunction) -> Search:
    """
    Depth-first search visiting children before their parent.

    Leaves are simplified before the operators above them see their operands,
    so ``(2 + 3) * x`` evaluates ``2 + 3`` before the product is considered.
    """
    def visit(node: Node, path: Path, extra: tuple) -> Optional[Status]:
        for idx, arg in enumerate(node.args):
            status = visit(arg, path + (idx,), extra)
            if status is not None:
                return status
        return _hit(fn(node, *extra), path)

    def search(node: Node, *extra) -> Optional[Status]:
        return visit(node, (), extra)

    search.__name__ = f"post_order({getattr(fn, '__name__', None) or repr(fn)})"
    return search


def pre_order(fn: NodeFunction) -> Search:
    """Depth-first search trying each parent before its children."""
    def visit(node: Node, path: Path, extra: tuple) -> Optional[Status]:
        status = _hit(fn(node, *extra), path)
        if status is not None:
            return status
        for idx, arg in enumerate(node.args):
            status = visit(arg, path + (idx,), extra)
            if status is not None:
                return status
        return None

    def search(node: Node, *extra) -> Optional[Status]:
        return visit(node, (), extra)

    search.__name__ = f"pre_order({getattr(fn, '__name__', None) or repr(fn)})"
    return search
