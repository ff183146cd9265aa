"""
Tree normalization.

Between rewrite steps a tree is kept flattened and sign-normalized:

    flatten              (2 + (x - 3)) -> 2 + x + -3
    normalize_constants  -(3) -> -3,  -(2/3) -> -2/3

``sort_args`` is the canonical ordering pass applied once after the rewrite
loop finishes.
"""

from fractions import Fraction
from typing import Union

from . import node_type as nt
from .node import (
    OPERATORS, Constant, Function, Node, Operator, Parenthesis, UnaryMinus,
)


def _mark_implicit(node: Operator) -> Operator:
    """Render ``constant * x^n`` products as juxtaposition (``2x``)."""
    if node.implicit or node.op != '*' or len(node.args) != 2:
        return node
    coeff, rest = node.args
    if nt.is_constant(coeff) and nt.is_symbol_power(rest):
        return Operator('*', node.args, implicit=True)
    return node


def negate(node: Node) -> Node:
    """Negation of node, folding constants."""
    if isinstance(node, Constant):
        return Constant(-node.value)
    return UnaryMinus(node)


def flatten(node: Node) -> Node:
    """
    Collapse nested sums and products and drop parenthesis nodes.

    Subtraction becomes addition of a negated term so every sum is a single
    n-ary ``+`` node.
    """
    if not isinstance(node, Node):
        return node

    if isinstance(node, Parenthesis):
        return flatten(node.content)

    if isinstance(node, Operator):
        args = [flatten(arg) for arg in node.args]
        op = node.op

        if op == '-' and len(args) == 2:
            return flatten(Operator('+', [args[0], negate(args[1])]))
        if op == '-' and len(args) == 1:
            return UnaryMinus(args[0])

        if op in ('+', '*'):
            collapsed = []
            for arg in args:
                if nt.is_operator(arg, op):
                    collapsed.extend(arg.args)
                else:
                    collapsed.append(arg)
            if len(collapsed) == 1:
                return collapsed[0]
            implicit = node.implicit and op == '*' and len(collapsed) == len(args)
            return _mark_implicit(Operator(op, collapsed, implicit))

        return Operator(op, args, node.implicit)

    if isinstance(node, (UnaryMinus, Function)):
        return node.with_args([flatten(arg) for arg in node.args])

    return node


def normalize_constants(node: Node) -> Node:
    """Fold unary minus applied to a constant or an integer fraction into the constant."""
    if not isinstance(node, Node) or not node.args:
        return node

    node = node.with_args([normalize_constants(arg) for arg in node.args])

    if isinstance(node, UnaryMinus):
        arg = node.arg
        if isinstance(arg, Constant):
            return Constant(-arg.value)
        if nt.is_integer_fraction(arg):
            numerator, denominator = arg.args
            return Operator('/', [Constant(-numerator.value), denominator])

    if isinstance(node, Operator):
        return _mark_implicit(node)
    return node


def normalize(node: Node) -> Node:
    """Restore the flattened, sign-normalized shape."""
    return normalize_constants(flatten(node))


# ============================================================
# Canonical ordering
# ============================================================

def polynomial_degree(node: Node) -> Union[int, Fraction]:
    """Total degree of node treated as a polynomial term (0 for anything else)."""
    if nt.is_symbol(node):
        return 1
    if nt.is_unary_minus(node):
        return polynomial_degree(node.arg)
    if nt.is_operator(node, '^'):
        base, exponent = node.args
        if nt.is_symbol(base) and nt.is_constant(exponent):
            return exponent.value
        return 0
    if nt.is_operator(node, '*'):
        return sum(polynomial_degree(arg) for arg in node.args)
    if nt.is_operator(node, '/'):
        numerator, denominator = node.args
        if nt.is_constant(denominator):
            return polynomial_degree(numerator)
        return 0
    if nt.is_operator(node, '+'):
        return max(polynomial_degree(arg) for arg in node.args)
    return 0


def _is_numeric_factor(node: Node) -> bool:
    return nt.is_constant_or_constant_fraction(node, True)


def sort_args(node: Node) -> Node:
    """
    Reorder sum terms by descending degree (constants last) and move
    numeric factors to the front of products. Both sorts are stable.
    """
    if not isinstance(node, Node) or not node.args:
        return node

    args = [sort_args(arg) for arg in node.args]

    if nt.is_operator(node, '+'):
        args.sort(key=lambda term: (_is_numeric_factor(term), -polynomial_degree(term)))
    elif nt.is_operator(node, '*'):
        args.sort(key=lambda factor: 0 if _is_numeric_factor(factor) else 1)

    node = node.with_args(args)
    if isinstance(node, Operator):
        return _mark_implicit(node)
    return node


def has_unsupported_nodes(node) -> bool:
    """True if the tree holds anything the rewrite rules cannot classify."""
    if not isinstance(node, Node):
        return True
    if isinstance(node, Operator) and node.op not in OPERATORS:
        return True
    return any(has_unsupported_nodes(arg) for arg in node.args)
