"""
Adding fractions of constants.

Both rules report their work as substeps so a trace shows the intermediate
forms:

    1/2 + 1/3
      COMMON_DENOMINATOR   3/6 + 2/6
      ADD_NUMERATORS       (3 + 2) / 6

    1 + 1/2
      CONVERT_INTEGER_TO_FRACTION   2/2 + 1/2
      ADD_NUMERATORS                (2 + 1) / 2

The last substep always ends on the rule's own result.
"""

from fractions import Fraction

from . import node_type as nt
from . import numeric
from .node import Constant, Node, Operator
from .rules import rule
from .status import ChangeTypes, Status


def _fraction(numerator: Fraction, denominator: Fraction) -> Operator:
    return Operator('/', [Constant(numerator), Constant(denominator)])


def _add_numerators(first: Node, second: Node) -> Operator:
    """a/d + b/d -> (a + b) / d"""
    return Operator('/', [Operator('+', [first.args[0], second.args[0]]), first.args[1]])


@rule("add-constant-fractions", description="Add two fractions of integers")
def add_constant_fractions(node, expression_ctx):
    if not nt.is_operator(node, '+') or len(node.args) != 2:
        return None
    first, second = node.args
    if not (nt.is_integer_fraction(first) and nt.is_integer_fraction(second)):
        return None

    a, b = (arg.value for arg in first.args)
    c, d = (arg.value for arg in second.args)
    if b == 0 or d == 0:
        return None

    if b == d:
        return Status.node_changed(ChangeTypes.ADD_NUMERATORS, node,
                                   _add_numerators(first, second))

    common = numeric.lcm(b, d)
    first = _fraction(a * (common / b), common)
    second = _fraction(c * (common / d), common)
    same_denominator = Operator('+', [first, second])
    summed = _add_numerators(first, second)
    substeps = [
        Status.node_changed(ChangeTypes.COMMON_DENOMINATOR, node, same_denominator),
        Status.node_changed(ChangeTypes.ADD_NUMERATORS, same_denominator, summed),
    ]
    return Status.node_changed(ChangeTypes.ADD_FRACTIONS, node, summed, substeps)


@rule("add-constant-and-fraction", description="Add a constant to a fraction of integers")
def add_constant_and_fraction(node, expression_ctx):
    if not nt.is_operator(node, '+') or len(node.args) != 2:
        return None
    first, second = node.args
    if isinstance(first, Constant) and nt.is_integer_fraction(second):
        const_idx = 0
    elif nt.is_integer_fraction(first) and isinstance(second, Constant):
        const_idx = 1
    else:
        return None

    constant = node.args[const_idx]
    fraction = node.args[1 - const_idx]
    numerator, denominator = fraction.args
    if denominator.value == 0:
        return None

    if numeric.is_integer(constant.value):
        # 3 + 1/2 -> 6/2 + 1/2
        converted = _fraction(constant.value * denominator.value, denominator.value)
        args = [converted, fraction] if const_idx == 0 else [fraction, converted]
        rewritten = Operator('+', args)
        summed = _add_numerators(*args)
        substeps = [
            Status.node_changed(ChangeTypes.CONVERT_INTEGER_TO_FRACTION, node, rewritten),
            Status.node_changed(ChangeTypes.ADD_NUMERATORS, rewritten, summed),
        ]
    else:
        # 0.5 + 1/4 -> 0.5 + 0.25
        decimal = Constant(numeric.exact_div(numerator.value, denominator.value))
        args = [constant, decimal] if const_idx == 0 else [decimal, constant]
        rewritten = Operator('+', args)
        summed = Constant(constant.value + decimal.value)
        substeps = [
            Status.node_changed(ChangeTypes.DIVIDE_FRACTION_FOR_ADDITION, node, rewritten),
            Status.node_changed(ChangeTypes.SIMPLIFY_ARITHMETIC, rewritten, summed),
        ]

    return Status.node_changed(ChangeTypes.SIMPLIFY_ARITHMETIC, node, summed, substeps)
