"""
Shape predicates over expression nodes.

These never modify a node. Several accept ``allow_unary_minus`` which looks
through one layer of UnaryMinus, so ``-x`` counts as a symbol and ``-(3)`` as
a constant when it is set.
"""

import weakref
from typing import Dict, Optional, Tuple

from . import numeric
from .node import (
    OPERATORS, Constant, Function, Node, Operator, Parenthesis, Symbol, UnaryMinus,
)
from .numeric import NumberLike, as_exact


def is_operator(node: Node, op: Optional[str] = None) -> bool:
    return (isinstance(node, Operator) and node.op in OPERATORS and
            (op is None or node.op == op))


def is_unary_minus(node: Node) -> bool:
    return isinstance(node, UnaryMinus)


def is_parenthesis(node: Node) -> bool:
    return isinstance(node, Parenthesis)


def is_function(node: Node, name: Optional[str] = None) -> bool:
    if not isinstance(node, Function):
        return False
    return name is None or node.name == name


def is_nth_root(node: Node) -> bool:
    return is_function(node, 'nthRoot') or is_function(node, 'sqrt')


def is_symbol(node: Node, allow_unary_minus: bool = False) -> bool:
    if isinstance(node, Symbol):
        return True
    if allow_unary_minus and is_unary_minus(node):
        return is_symbol(node.arg, False)
    return False


def is_named_symbol(node: Node, name: str) -> bool:
    return isinstance(node, Symbol) and node.name == name


def is_constant(node: Node, allow_unary_minus: bool = False) -> bool:
    if isinstance(node, Constant):
        return True
    if allow_unary_minus and is_unary_minus(node):
        return is_constant(node.arg, False)
    return False


def constant_value(node: Node) -> numeric.ExactNumber:
    """Value of a constant, looking through one unary minus."""
    if is_unary_minus(node):
        return -node.arg.value
    return node.value


def is_constant_fraction(node: Node, allow_unary_minus: bool = False) -> bool:
    """True for a division whose two operands are constants."""
    if not is_operator(node, '/'):
        return False
    return all(is_constant(arg, allow_unary_minus) for arg in node.args)


def is_constant_or_constant_fraction(node: Node, allow_unary_minus: bool = False) -> bool:
    return (is_constant(node, allow_unary_minus) or
            is_constant_fraction(node, allow_unary_minus))


def is_integer_fraction(node: Node, allow_unary_minus: bool = False) -> bool:
    """True for a constant fraction whose numerator and denominator are integers."""
    if not is_constant_fraction(node, allow_unary_minus):
        return False
    numerator, denominator = node.args
    if allow_unary_minus:
        if is_unary_minus(numerator):
            numerator = numerator.arg
        if is_unary_minus(denominator):
            denominator = denominator.arg
    return (numeric.is_integer(numerator.value) and
            numeric.is_integer(denominator.value))


def is_constant_integer(node: Node, expected: Optional[NumberLike] = None) -> bool:
    if not isinstance(node, Constant):
        return False
    if expected is not None:
        return node.value == as_exact(expected)
    return numeric.is_integer(node.value)


def is_zero(node: Node) -> bool:
    return is_constant(node) and numeric.is_zero(node.value)


def is_constant_negative(node: Node) -> bool:
    return isinstance(node, Constant) and numeric.is_negative(node.value)


def is_constant_positive(node: Node) -> bool:
    return isinstance(node, Constant) and numeric.is_positive(node.value)


def is_constant_or_symbol(node: Node) -> bool:
    return is_constant(node) or is_symbol(node)


def is_symbol_power(node: Node) -> bool:
    """``x`` or ``x^c`` with a constant exponent."""
    if is_symbol(node):
        return True
    return (is_operator(node, '^') and is_symbol(node.args[0]) and
            is_constant(node.args[1]))


def is_polynomial_term(node: Node) -> bool:
    """
    True for single-symbol polynomial terms: ``x``, ``x^2``, ``3x``,
    ``2/3 x^2``, ``x/2``.
    """
    if is_symbol_power(node):
        return True
    if is_operator(node, '*') and len(node.args) == 2:
        coeff, rest = node.args
        return (is_constant_or_constant_fraction(coeff, True) and
                is_symbol_power(rest))
    if is_operator(node, '/'):
        numerator, denominator = node.args
        return is_constant(denominator) and is_polynomial_term(numerator)
    return False


def has_fraction_coefficient(node: Node) -> bool:
    """True for ``coeff * x^n`` where coeff is a fraction."""
    if not (is_polynomial_term(node) and is_operator(node, '*')):
        return False
    coeff = node.args[0]
    if is_constant_fraction(coeff, True):
        return True
    return is_constant(coeff) and not numeric.is_integer(coeff.value)


# ============================================================
# Symbol containment with an identity-keyed side table
# ============================================================

class SymbolCache:
    """
    Memo of contains_symbol results keyed by node identity.

    Entries live outside the nodes. Each entry holds a weak reference to the
    node it was computed for; when that node is collected the entry is
    dropped, so an object that later reuses the same id never sees it.
    """

    def __init__(self):
        self._table: Dict[Tuple[int, str], Tuple[weakref.ref, bool]] = {}

    def lookup(self, node: Node, name: str) -> Optional[bool]:
        entry = self._table.get((id(node), name))
        if entry is None or entry[0]() is not node:
            return None
        return entry[1]

    def store(self, node: Node, name: str, value: bool) -> None:
        key = (id(node), name)
        table = self._table

        def _forget(ref, key=key):
            current = table.get(key)
            if current is not None and current[0] is ref:
                del table[key]

        table[key] = (weakref.ref(node, _forget), value)

    def clear(self) -> None:
        self._table.clear()

    def __len__(self) -> int:
        return len(self._table)


symbol_cache = SymbolCache()


def contains_symbol(node: Node, name: str, cache: Optional[SymbolCache] = None) -> bool:
    """True if a symbol called name occurs anywhere in node."""
    if cache is None:
        cache = symbol_cache
    cached = cache.lookup(node, name)
    if cached is not None:
        return cached

    if is_symbol(node):
        result = node.name == name
    elif is_constant(node):
        result = False
    else:
        result = any(contains_symbol(arg, name, cache) for arg in node.args)

    cache.store(node, name, result)
    return result
