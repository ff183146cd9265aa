"""
Text to expression tree.

Grammar (loosest binding first):

    statement := expr ("=" expr)?
    expr      := term (("+" | "-") term)*
    term      := implicit (("*" | "/") implicit)*
    implicit  := unary power*              # juxtaposition: 2x, 3(x + 1)
    unary     := "-" unary | "+" unary | power
    power     := primary ("^" unary)?      # right associative
    primary   := number | "(" expr ")" | name "(" expr, ... ")" | name

Juxtaposition binds tighter than ``*`` and ``/``, except that a number over
a number followed by juxtaposition reads as a coefficient: ``2/3 x`` is
``(2/3) x`` while ``2 a / a`` is ``(2a) / a``. Parentheses are kept as
Parenthesis nodes; ``normalize`` removes them.
"""

from fractions import Fraction
from typing import Tuple, Union

from parsy import ParseError, forward_declaration, generate, regex, string

from .exceptions import ExpressionParseError
from .node import Constant, Function, Node, Operator, Parenthesis, Symbol, UnaryMinus
from .normalize import normalize

FUNCTION_NAMES = frozenset([
    'sqrt', 'nthRoot', 'sin', 'cos', 'tan', 'ctg', 'cot', 'log', 'ln', 'abs', 'exp',
])

# Names the user may type for a function known internally by another name.
FUNCTION_ALIASES = {
    'cot': 'ctg',
}


# ============================================================
# Grammar
# ============================================================

ws = regex(r'\s*')


def lexeme(p):
    return p << ws


def token(s: str):
    return lexeme(string(s))


number = lexeme(regex(r'\d+(?:\.\d+)?|\.\d+')).map(Constant).desc('a number')
identifier = lexeme(regex(r'[A-Za-z_][A-Za-z0-9_]*')).desc('a name')

expr = forward_declaration()
unary = forward_declaration()


@generate
def name_or_call():
    name = yield identifier
    if name in FUNCTION_NAMES:
        args = yield (token('(') >> expr.sep_by(token(','), min=1) << token(')')).optional()
        if args is not None:
            internal = FUNCTION_ALIASES.get(name, name)
            presentation = name if internal != name else None
            return Function(internal, args, presentation)
    return Symbol(name)


group = (token('(') >> expr << token(')')).map(Parenthesis)

primary = number | group | name_or_call


@generate
def power():
    base = yield primary
    exponent = yield (token('^') >> unary).optional()
    if exponent is None:
        return base
    return Operator('^', [base, exponent])


unary.become(
    (token('-') >> unary).map(UnaryMinus)
    | (token('+') >> unary)
    | power
)


@generate
def implicit_product():
    first = yield unary
    rest = yield power.many()
    if not rest:
        return first
    return Operator('*', [first] + rest, implicit=True)


def _combine_term(left: Node, op: str, right: Node) -> Node:
    # 2/3 x reads as (2/3) x
    if (op == '/' and isinstance(left, Constant) and isinstance(right, Operator) and
            right.op == '*' and right.implicit and isinstance(right.args[0], Constant)):
        coeff = Operator('/', [left, right.args[0]])
        return Operator('*', [coeff] + list(right.args[1:]), implicit=True)
    return Operator(op, [left, right])


@generate
def term():
    acc = yield implicit_product
    while True:
        op = yield (token('*') | token('/')).optional()
        if op is None:
            return acc
        right = yield implicit_product
        acc = _combine_term(acc, op, right)


@generate
def sum_expr():
    acc = yield term
    while True:
        op = yield (token('+') | token('-')).optional()
        if op is None:
            return acc
        right = yield term
        acc = Operator(op, [acc, right])


expr.become(sum_expr)


@generate
def statement():
    yield ws
    left = yield expr
    right = yield (token('=') >> expr).optional()
    if right is None:
        return left
    return Operator('=', [left, right])


def parse(text: str) -> Node:
    """
    Parse text into an expression tree (not normalized).

    Raises:
        ExpressionParseError: If text is not a valid expression
    """
    try:
        return statement.parse(text)
    except ParseError as e:
        raise ExpressionParseError(f"Cannot parse {text!r}: {e}") from e


def parse_text(text: str) -> Node:
    """Parse text and normalize the resulting tree."""
    return normalize(parse(text))


# ============================================================
# Expression Builder
# ============================================================

Buildable = Union[Node, int, Fraction, str]


def _coerce(value: Buildable) -> Node:
    if isinstance(value, Node):
        return value
    if isinstance(value, (int, Fraction)):
        return Constant(value)
    if isinstance(value, str):
        return Symbol(value)
    raise TypeError(f"Cannot build a node from {type(value).__name__}")


class _ExprBuilder:
    """
    Expression builder for stepwise.

    Examples:
        from stepwise import E

        # Parse and normalize text
        expr = E("2x + 1")

        # Build programmatically; ints become constants, strings symbols
        expr = E.op("*", E.op("+", 2, 3), "x")

        x, y = E.vars("x", "y")
        expr = E.op("/", E.neg(x), E.neg(x))
    """

    def __call__(self, text: str) -> Node:
        """Parse text into a normalized tree: E("x - 3") -> (+ x -3)."""
        return parse_text(text)

    def op(self, name: str, *args: Buildable, implicit: bool = False) -> Operator:
        return Operator(name, [_coerce(arg) for arg in args], implicit)

    def neg(self, arg: Buildable) -> UnaryMinus:
        return UnaryMinus(_coerce(arg))

    def fn(self, name: str, *args: Buildable) -> Function:
        return Function(name, [_coerce(arg) for arg in args])

    def var(self, name: str) -> Symbol:
        return Symbol(name)

    def vars(self, *names: str) -> Tuple[Symbol, ...]:
        return tuple(Symbol(name) for name in names)

    def const(self, value: Union[int, str, Fraction]) -> Constant:
        return Constant(value)

    def __repr__(self) -> str:
        return "E (expression builder)"


E = _ExprBuilder()
