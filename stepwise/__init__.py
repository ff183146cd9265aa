"""
stepwise - step-by-step simplification of algebraic expressions

Applies an ordered pool of rewrite rules to an expression tree until none
applies, recording every intermediate tree so the simplification can be
shown one step at a time.

Quick Start:
    from stepwise import Simplifier, E

    simplifier = Simplifier()
    for step in simplifier.steps(E("(2x + 5)^8 / (2x + 5)^2")):
        print(step.change_type, step.render())

    # ORIGINAL_EXPRESSION (2x + 5)^8 / ((2x + 5)^2)
    # CANCEL_TERMS (2x + 5)^(8 - 2)
    # SIMPLIFY_ARITHMETIC (2x + 5)^6

Writing rules:
    from stepwise import Status, rule

    @rule("remove-adding-zero", description="x + 0 = x")
    def remove_adding_zero(node, expression_ctx):
        ...                     # return None or a changed Status

    # or as a pattern
    @remove-exponent-by-one "x^1 = x": (^ ?x 1) => :x

Rendering:
    render(node)                # "1 / (2x)"
    render(node, "typeset")     # "\\frac{1}{2~x}"
"""

__version__ = "0.1.0"

# Tree
from .node import (
    Node,
    Constant,
    Symbol,
    Operator,
    UnaryMinus,
    Parenthesis,
    Function,
    constant,
    symbol,
    operator,
    unary_minus,
    parenthesis,
    function,
    node_at,
    replace_at,
    CONST_ONE,
    CONST_ZERO,
)
from .normalize import normalize, flatten, sort_args
from .node_type import contains_symbol

# Rules
from .status import Status, ChangeTypes
from .tree_search import post_order, pre_order
from .rules import Rule, FunctionRule, rule, default_rules
from .patterns import PatternRule, parse_rule_line, load_rules_from_dsl, match, instantiate
from .reducer import cancel_terms

# Engine
from .engine import (
    Simplifier,
    Step,
    StepTrace,
    Cursor,
    RewriteContext,
    MAX_STEP_COUNT,
    step_through,
    simplify_expression,
)

# Text
from .parser import parse, parse_text, E
from .render import render, render_linear, render_typeset, LINEAR, TYPESET

from .exceptions import StepwiseError, StepContractError, ExpressionParseError, RuleSyntaxError

# Public API
__all__ = [
    # Version
    "__version__",
    # Tree
    "Node",
    "Constant",
    "Symbol",
    "Operator",
    "UnaryMinus",
    "Parenthesis",
    "Function",
    "constant",
    "symbol",
    "operator",
    "unary_minus",
    "parenthesis",
    "function",
    "node_at",
    "replace_at",
    "CONST_ONE",
    "CONST_ZERO",
    "normalize",
    "flatten",
    "sort_args",
    "contains_symbol",
    # Rules
    "Status",
    "ChangeTypes",
    "post_order",
    "pre_order",
    "Rule",
    "FunctionRule",
    "rule",
    "default_rules",
    "PatternRule",
    "parse_rule_line",
    "load_rules_from_dsl",
    "match",
    "instantiate",
    "cancel_terms",
    # Engine
    "Simplifier",
    "Step",
    "StepTrace",
    "Cursor",
    "RewriteContext",
    "MAX_STEP_COUNT",
    "step_through",
    "simplify_expression",
    # Text
    "parse",
    "parse_text",
    "E",
    "render",
    "render_linear",
    "render_typeset",
    "LINEAR",
    "TYPESET",
    # Errors
    "StepwiseError",
    "StepContractError",
    "ExpressionParseError",
    "RuleSyntaxError",
]
