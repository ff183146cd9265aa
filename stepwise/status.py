"""
Rewrite results.

A rule reports a successful rewrite of one node as a Status: the label of the
change, the node before and after, and optional substeps describing a
multi-stage derivation. ``path`` is filled in by tree search and locates the
rewritten node relative to the node the search started from.
"""

from typing import Iterable, Optional, Tuple

from .node import Node, Path


class ChangeTypes:
    """
    Labels for rewrite steps.

    The set is open: pattern rules derive their own label from their name.
    Labels only make traces readable; control flow never depends on them.
    """

    ORIGINAL_EXPRESSION = "ORIGINAL_EXPRESSION"
    SIMPLIFY_ARITHMETIC = "SIMPLIFY_ARITHMETIC"
    CANCEL_TERMS = "CANCEL_TERMS"
    REARRANGE_COEFF = "REARRANGE_COEFF"
    REMOVE_MULTIPLYING_BY_ONE = "REMOVE_MULTIPLYING_BY_ONE"
    MULTIPLY_BY_ZERO = "MULTIPLY_BY_ZERO"
    REMOVE_ADDING_ZERO = "REMOVE_ADDING_ZERO"
    CONVERT_DECIMAL_TO_FRACTION = "CONVERT_DECIMAL_TO_FRACTION"
    CONVERT_INTEGER_TO_FRACTION = "CONVERT_INTEGER_TO_FRACTION"
    DIVIDE_FRACTION_FOR_ADDITION = "DIVIDE_FRACTION_FOR_ADDITION"
    COMMON_DENOMINATOR = "COMMON_DENOMINATOR"
    ADD_NUMERATORS = "ADD_NUMERATORS"
    ADD_FRACTIONS = "ADD_FRACTIONS"


class Status:
    """Outcome of trying to rewrite one node."""

    __slots__ = ('changed', 'change_type', 'old_node', 'new_node', 'substeps', 'path')

    def __init__(self, change_type: Optional[str], old_node: Node,
                 new_node: Optional[Node], substeps: Iterable['Status'] = (),
                 path: Path = (), changed: bool = True):
        self.changed = changed
        self.change_type = change_type
        self.old_node = old_node
        self.new_node = new_node
        self.substeps: Tuple['Status', ...] = tuple(substeps)
        self.path = tuple(path)

    @classmethod
    def no_change(cls, node: Node) -> 'Status':
        return cls(None, node, node, changed=False)

    @classmethod
    def node_changed(cls, change_type: str, old_node: Node, new_node: Node,
                     substeps: Iterable['Status'] = ()) -> 'Status':
        return cls(change_type, old_node, new_node, substeps)

    @property
    def root_node(self) -> Optional[Node]:
        return self.new_node

    def at(self, path: Path) -> 'Status':
        """Return a copy of this status anchored at path."""
        return Status(self.change_type, self.old_node, self.new_node,
                      self.substeps, path, self.changed)

    def __bool__(self) -> bool:
        return self.changed

    def __repr__(self) -> str:
        if not self.changed:
            return f"Status(no change: {self.old_node!r})"
        return f"Status({self.change_type}: {self.old_node!r} -> {self.new_node!r})"
