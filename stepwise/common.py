"""
Identity rules.

The structural identities are written as pattern rules; the ones that scan
an argument list of any length are plain functions.
"""

from typing import List

from . import node_type as nt
from .node import Constant, Operator
from .patterns import load_rules_from_dsl
from .rules import Rule, rule
from .status import ChangeTypes, Status

IDENTITY_RULES = '''
[exponents]
@remove-exponent-by-one "x^1 = x": (^ ?x 1) => :x
@remove-exponent-by-zero "x^0 = 1": (^ ?x 0) => 1
@remove-exponent-base-one "1^x = 1": (^ 1 ?x) => 1

[division]
@remove-division-by-one "x/1 = x": (/ ?x 1) => :x
@reduce-zero-numerator "0/x = 0": (/ 0 ?x:var) => 0
@remove-division-by-negative-one "x/-1 = -x": (/ ?x -1) => (neg :x)

[negation]
@remove-double-negation "-(-x) = x": (neg (neg ?x)) => :x
@remove-multiplying-by-negative-one "-1 * x = -x": (* -1 ?xs...) => (neg (* :xs...))
'''


@rule("remove-multiplying-by-one", description="1 * x = x")
def remove_multiplying_by_one(node, expression_ctx):
    if not nt.is_operator(node, '*'):
        return None
    args = [arg for arg in node.args if not nt.is_constant_integer(arg, 1)]
    if len(args) == len(node.args):
        return None
    if not args:
        new_node = Constant(1)
    elif len(args) == 1:
        new_node = args[0]
    else:
        new_node = Operator('*', args, node.implicit)
    return Status.node_changed(ChangeTypes.REMOVE_MULTIPLYING_BY_ONE, node, new_node)


@rule("multiply-by-zero", description="0 * x = 0")
def multiply_by_zero(node, expression_ctx):
    if not nt.is_operator(node, '*'):
        return None
    if not any(nt.is_zero(arg) for arg in node.args):
        return None
    return Status.node_changed(ChangeTypes.MULTIPLY_BY_ZERO, node, Constant(0))


@rule("remove-adding-zero", description="x + 0 = x")
def remove_adding_zero(node, expression_ctx):
    if not nt.is_operator(node, '+'):
        return None
    args = [arg for arg in node.args if not nt.is_zero(arg)]
    if len(args) == len(node.args):
        return None
    if not args:
        new_node = Constant(0)
    elif len(args) == 1:
        new_node = args[0]
    else:
        new_node = Operator('+', args)
    return Status.node_changed(ChangeTypes.REMOVE_ADDING_ZERO, node, new_node)


def common_rules() -> List[Rule]:
    return [
        *load_rules_from_dsl(IDENTITY_RULES),
        remove_multiplying_by_one,
        multiply_by_zero,
        remove_adding_zero,
    ]
