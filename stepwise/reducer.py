"""
Cancellation of common factors in fractions.

``cancel_terms`` applies to a division, or to a product with at least one
division among its factors. Both sides are split into a list of numerator
factors and a list of denominator factors:

    (4 x^2) / (5 x^2)      numerator [4, x^2]     denominator [5, x^2]
    2/3 * x                numerator [2, x]       denominator [3]

Pairs are then scanned numerator-major (every denominator factor for the
first numerator factor, then the second, ...) and the first pair that
reduces is rewritten, trying in order:

    equal factors          x / x -> 1, -x / x -> -1
    common integer factor  6 / 4 -> 3 / 2
    equal bases            x^5 / x^2 -> x^(5 - 2),  x / x^3 -> 1 / x^(3 - 1)

A unary minus on either factor is set aside before each comparison and
flips the sign of the result, so ``-x^3 / x`` becomes ``-x^(3 - 1)``.

One pair is reduced per call, so ``x y / (x y)`` takes two steps. The
exponent difference is left as a subtraction; the arithmetic rule evaluates
it on the next step.
"""

from typing import List, Optional, Tuple

from . import node_type as nt
from . import numeric
from .node import Constant, Node, Operator, UnaryMinus
from .rules import rule
from .status import ChangeTypes, Status

Factors = List[Node]

# (new numerator factor, new denominator factor, flips sign); None drops the factor
Reduction = Tuple[Optional[Node], Optional[Node], bool]


def _factors(node: Node) -> Factors:
    if nt.is_operator(node, '*'):
        return list(node.args)
    return [node]


def decompose(node: Node) -> Tuple[Factors, Factors]:
    """Split node into numerator and denominator factor lists."""
    if nt.is_operator(node, '/'):
        numerator, denominator = node.args
        return _factors(numerator), _factors(denominator)
    if nt.is_operator(node, '*'):
        return list(node.args), []
    return [node], []


def _strip_minus(node: Node) -> Tuple[Node, bool]:
    if nt.is_unary_minus(node):
        return node.arg, True
    return node, False


def _base_and_exponent(node: Node) -> Optional[Tuple[Node, Node]]:
    if nt.is_operator(node, '^'):
        base, exponent = node.args
        if not nt.is_constant(exponent):
            return None
        return base, exponent
    return node, Constant(1)


def _power(base: Node, larger: Node, smaller: Node) -> Node:
    return Operator('^', [base, Operator('-', [larger, smaller])])


def _reduce_equal(top: Node, bottom: Node) -> Optional[Reduction]:
    top, top_negated = _strip_minus(top)
    bottom, bottom_negated = _strip_minus(bottom)
    if top != bottom:
        return None
    return None, None, top_negated != bottom_negated


def _reduce_integers(top: Node, bottom: Node) -> Optional[Reduction]:
    top, top_negated = _strip_minus(top)
    bottom, bottom_negated = _strip_minus(bottom)
    if not (nt.is_constant_integer(top) and nt.is_constant_integer(bottom)):
        return None

    a = numeric.absolute(top.value)
    b = numeric.absolute(bottom.value)
    g = numeric.gcd(a, b)
    if g <= 1:
        return None

    negative = numeric.sign(top.value) * numeric.sign(bottom.value) < 0
    negative ^= top_negated != bottom_negated
    new_top = None if a / g == 1 else Constant(a / g)
    new_bottom = None if b / g == 1 else Constant(b / g)
    return new_top, new_bottom, negative


def _reduce_powers(top: Node, bottom: Node) -> Optional[Reduction]:
    top, top_negated = _strip_minus(top)
    bottom, bottom_negated = _strip_minus(bottom)
    top_parts = _base_and_exponent(top)
    bottom_parts = _base_and_exponent(bottom)
    if top_parts is None or bottom_parts is None:
        return None
    base, top_exponent = top_parts
    bottom_base, bottom_exponent = bottom_parts
    if base != bottom_base:
        return None

    negative = top_negated != bottom_negated
    if top_exponent.value > bottom_exponent.value:
        return _power(base, top_exponent, bottom_exponent), None, negative
    if top_exponent.value < bottom_exponent.value:
        return None, _power(base, bottom_exponent, top_exponent), negative
    return None, None, negative


_REDUCTIONS = (_reduce_equal, _reduce_integers, _reduce_powers)


def reduce_pair(top: Node, bottom: Node) -> Optional[Reduction]:
    for reduction in _REDUCTIONS:
        result = reduction(top, bottom)
        if result is not None:
            return result
    return None


def _replace(factors: Factors, idx: int, new_factor: Optional[Node]) -> Factors:
    if new_factor is None:
        return factors[:idx] + factors[idx + 1:]
    return factors[:idx] + [new_factor] + factors[idx + 1:]


def reduce_factors(numerator: Factors, denominator: Factors) -> Optional[Tuple[Factors, Factors, bool]]:
    """Reduce the first reducible (numerator, denominator) pair."""
    for i, top in enumerate(numerator):
        for j, bottom in enumerate(denominator):
            result = reduce_pair(top, bottom)
            if result is None:
                continue
            new_top, new_bottom, negative = result
            return (_replace(numerator, i, new_top),
                    _replace(denominator, j, new_bottom),
                    negative)
    return None


def rebuild_product(factors: Factors) -> Node:
    if not factors:
        return Constant(1)
    if len(factors) == 1:
        return factors[0]
    return Operator('*', factors)


def rebuild(numerator: Factors, denominator: Factors) -> Node:
    if not denominator:
        return rebuild_product(numerator)
    return Operator('/', [rebuild_product(numerator), rebuild_product(denominator)])


@rule("cancel-terms", description="Cancel factors common to a numerator and a denominator")
def cancel_terms(node, expression_ctx):
    if nt.is_operator(node, '/'):
        operands = [node]
    elif nt.is_operator(node, '*') and any(nt.is_operator(arg, '/') for arg in node.args):
        operands = list(node.args)
    else:
        return None

    numerator: Factors = []
    denominator: Factors = []
    for operand in operands:
        top, bottom = decompose(operand)
        numerator.extend(top)
        denominator.extend(bottom)

    reduced = reduce_factors(numerator, denominator)
    if reduced is None:
        return None
    numerator, denominator, negative = reduced

    new_node = rebuild(numerator, denominator)
    if negative:
        new_node = UnaryMinus(new_node)
    return Status.node_changed(ChangeTypes.CANCEL_TERMS, node, new_node)
