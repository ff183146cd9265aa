"""
Rewrite rules.

A rule looks at a single node and either declines (returns None) or returns a
changed Status whose ``new_node`` is a complete replacement for that node.
Rules never modify their input and never see the rest of the tree; the
engine runs each one through a tree search and splices the result back in.

    @rule("remove-adding-zero", description="x + 0 = x")
    def remove_adding_zero(node, expression_ctx):
        ...

Every rule receives the expression context, a mapping the caller passes to
the engine and that is handed to each rule untouched. Built-in rules read
only ``allow_decimal``.
"""

from typing import Callable, Iterable, List, Mapping, Optional

from .node import Node
from .status import Status

ExpressionContext = Mapping
RuleFunction = Callable[[Node, ExpressionContext], Optional[Status]]


class Rule:
    """
    Base class of pluggable rules.

    Subclasses implement ``apply``. ``priority`` orders the pool: higher
    priority rules are tried first, equal priorities keep the order in which
    they were supplied.
    """

    def __init__(self, name: Optional[str] = None, description: Optional[str] = None,
                 priority: int = 0):
        self.name = name
        self.description = description
        self.priority = priority

    def apply(self, node: Node, expression_ctx: ExpressionContext) -> Optional[Status]:
        raise NotImplementedError

    def __call__(self, node: Node, expression_ctx: Optional[ExpressionContext] = None) -> Optional[Status]:
        return self.apply(node, expression_ctx if expression_ctx is not None else {})

    def __repr__(self) -> str:
        if not self.name:
            return f"<anonymous {type(self).__name__}>"
        base = f"@{self.name}[{self.priority}]" if self.priority != 0 else f"@{self.name}"
        if self.description:
            base += f" \"{self.description}\""
        return base


class FunctionRule(Rule):
    """A rule backed by a plain function ``fn(node, expression_ctx)``."""

    def __init__(self, fn: RuleFunction, name: Optional[str] = None,
                 description: Optional[str] = None, priority: int = 0):
        if name is None:
            name = fn.__name__.replace('_', '-')
        if description is None and fn.__doc__:
            description = fn.__doc__.strip().splitlines()[0]
        super().__init__(name, description, priority)
        self.fn = fn

    def apply(self, node: Node, expression_ctx: ExpressionContext) -> Optional[Status]:
        return self.fn(node, expression_ctx)


def rule(name: Optional[str] = None, priority: int = 0,
         description: Optional[str] = None) -> Callable[[RuleFunction], FunctionRule]:
    """
    Decorator turning a function into a Rule.

    The function name (with ``_`` replaced by ``-``) is the default rule name
    and the first docstring line the default description.
    """
    def decorator(fn: RuleFunction) -> FunctionRule:
        return FunctionRule(fn, name, description, priority)
    return decorator


def sort_by_priority(rules: Iterable[Rule]) -> List[Rule]:
    """Order rules by descending priority, keeping the given order for ties."""
    indexed = list(enumerate(rules))
    indexed.sort(key=lambda item: (-item[1].priority, item[0]))
    return [r for _, r in indexed]


def default_rules() -> List[Rule]:
    """The built-in rule pool, in the order the engine tries it."""
    from .arithmetic import arithmetic, combine_constant_terms, convert_decimal_to_fraction
    from .common import common_rules
    from .fraction_rules import add_constant_and_fraction, add_constant_fractions
    from .reducer import cancel_terms

    return [
        convert_decimal_to_fraction,
        arithmetic,
        *common_rules(),
        cancel_terms,
        add_constant_fractions,
        add_constant_and_fraction,
        combine_constant_terms,
    ]
