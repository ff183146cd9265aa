"""
Arithmetic on constants.

    arithmetic                    2 + 3 -> 5,  6/3 -> 2,  2^3 -> 8
    combine_constant_terms        2 + x + 3 -> 5 + x
    convert_decimal_to_fraction   0.25 -> 1/4

Integer division is only carried out when it is exact; ``4/6`` is left for
the cancellation rule, which reduces it to ``2/3``.
"""

from fractions import Fraction
from functools import reduce
from typing import List, Optional

from . import node_type as nt
from . import numeric
from .node import Constant, Node, Operator
from .rules import rule
from .status import ChangeTypes, Status


def evaluate(op: str, values: List[Fraction]) -> Optional[Fraction]:
    """Exact value of op applied to values, or None if there is none."""
    if op == '+':
        return reduce(numeric.exact_add, values, Fraction(0))
    if op == '*':
        return reduce(numeric.exact_mul, values, Fraction(1))
    if len(values) != 2:
        return None
    a, b = values
    if op == '-':
        return numeric.exact_sub(a, b)
    if op == '/':
        if numeric.is_integer(a) and numeric.is_integer(b):
            remainder = numeric.exact_mod(a, b)
            if remainder is None or remainder != 0:
                return None
        return numeric.exact_div(a, b)
    if op == '^':
        return numeric.exact_pow(a, b)
    return None


def _constant_node(value, expression_ctx) -> Node:
    """A result constant; non-integers become an integer fraction unless decimals are kept."""
    if numeric.is_integer(value) or expression_ctx.get('allow_decimal', False):
        return Constant(value)
    return Operator('/', [Constant(value.numerator), Constant(value.denominator)])


@rule("arithmetic", description="Evaluate an operation on constants")
def arithmetic(node, expression_ctx):
    if not nt.is_operator(node) or not node.args:
        return None
    if not all(nt.is_constant(arg, True) for arg in node.args):
        return None
    result = evaluate(node.op, [nt.constant_value(arg) for arg in node.args])
    if result is None:
        return None
    new_node = _constant_node(result, expression_ctx)
    return Status.node_changed(ChangeTypes.SIMPLIFY_ARITHMETIC, node, new_node)


@rule("combine-constant-terms", description="Collect the constants of a sum or product")
def combine_constant_terms(node, expression_ctx):
    if not (nt.is_operator(node, '+') or nt.is_operator(node, '*')):
        return None
    positions = [idx for idx, arg in enumerate(node.args) if nt.is_constant(arg)]
    if len(positions) < 2 or len(positions) == len(node.args):
        return None

    combined = evaluate(node.op, [node.args[idx].value for idx in positions])
    args = []
    for idx, arg in enumerate(node.args):
        if idx == positions[0]:
            args.append(_constant_node(combined, expression_ctx))
        elif idx not in positions:
            args.append(arg)
    new_node = Operator(node.op, args, node.implicit)
    return Status.node_changed(ChangeTypes.SIMPLIFY_ARITHMETIC, node, new_node)


@rule("convert-decimal-to-fraction", description="Write a decimal as a fraction")
def convert_decimal_to_fraction(node, expression_ctx):
    if expression_ctx.get('allow_decimal', False):
        return None
    if not isinstance(node, Constant) or numeric.is_integer(node.value):
        return None
    # 1/3 has no decimal form to convert from
    if not numeric.is_terminating(node.value):
        return None
    value = node.value
    new_node = Operator('/', [Constant(value.numerator), Constant(value.denominator)])
    return Status.node_changed(ChangeTypes.CONVERT_DECIMAL_TO_FRACTION, node, new_node)
