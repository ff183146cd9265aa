"""
Expression tree to text.

Two dialects:
    linear   - plain text that the parser reads back: "(2 + 3) * x", "2/3x^2"
    typeset  - LaTeX: "\\frac{2}{3}~x^{2}"

Subtraction is stored as addition of a negated term, so both dialects print
``2 + -3`` first and, unless ``show_plus_minus`` is set, collapse the
``+ -`` pair into a minus sign as a final string pass.
"""

import re
from typing import Optional

from . import node_type as nt
from .node import Constant, Function, Node, Operator, Parenthesis, Symbol, UnaryMinus
from .normalize import flatten
from .numeric import is_integer, is_terminating, show_exact

LINEAR = "linear"
TYPESET = "typeset"
DIALECTS = (LINEAR, TYPESET)

_PLUS_MINUS_RE = re.compile(r'\s*?\+\s*?-\s*?')
_TEX_PLUS_MINUS_RE = re.compile(r'\+\s*-')


def render(node: Node, dialect: str = LINEAR, show_plus_minus: bool = False) -> str:
    """Render node in the given dialect ("linear" or "typeset")."""
    if dialect == LINEAR:
        return render_linear(node, show_plus_minus)
    if dialect == TYPESET:
        return render_typeset(node, show_plus_minus)
    raise ValueError(f"Unknown dialect: {dialect!r} (expected one of {DIALECTS})")


# ============================================================
# Linear dialect
# ============================================================

def render_linear(node: Node, show_plus_minus: bool = False) -> str:
    """
    Render node as linear text.

    Examples:
        (* (+ 2 3) x)      -> "(2 + 3) * x"
        (* (/ 2 3) (^ x 2)) -> "2/3x^2"
        (/ 1 (* 2 x))      -> "1 / (2x)"
    """
    text = _linear(flatten(node))
    if not show_plus_minus:
        text = _PLUS_MINUS_RE.sub(' - ', text)
    return text


def _juxtaposable(node: Node) -> bool:
    """Can node follow a factor with no operator between them?"""
    if nt.is_symbol(node) or nt.is_function(node):
        return True
    if nt.is_operator(node, '+') or nt.is_operator(node, '-'):
        return True
    if nt.is_operator(node, '^'):
        return _juxtaposable(node.args[0])
    return False


_TRAILING_NAME_RE = re.compile(r'[A-Za-z_][A-Za-z0-9_]*$')
_LEADING_NAME_RE = re.compile(r'[A-Za-z0-9_]')


def _juxtapose(parts) -> str:
    """
    Join factor texts with no operator, keeping a space where a name would
    run into the next factor: ``x y`` (not the symbol ``xy``), ``x^y z``,
    ``x sin(x)``. ``2x``, ``x^2y`` and ``x(y + 1)`` need none.
    """
    text = parts[0]
    for part in parts[1:]:
        if _TRAILING_NAME_RE.search(text) and _LEADING_NAME_RE.match(part):
            text += " "
        text += part
    return text


def _linear_constant(node: Constant, parent: Optional[Node]) -> str:
    text = show_exact(node.value)
    if parent is None:
        return text
    if nt.is_constant_negative(node):
        # (-3)^2 and 5 - (-3)
        if nt.is_operator(parent, '^') and parent.args[0] is node:
            return f"({text})"
        if nt.is_operator(parent, '-') and parent.args[0] is not node:
            return f"({text})"
    if '/' in text and (nt.is_unary_minus(parent) or
                        (isinstance(parent, Operator) and parent.op in '*/^')):
        return f"({text})"
    return text


def _linear(node: Node, parent: Optional[Node] = None) -> str:
    if nt.has_fraction_coefficient(node):
        coeff, rest = node.args
        coeff_str = _linear(coeff)
        rest_str = _linear(rest)
        if nt.is_operator(coeff, '/'):
            return f"{coeff_str}{rest_str}"
        return f"{coeff_str} {rest_str}"

    if nt.is_integer_fraction(node):
        numerator, denominator = node.args
        return f"{_linear(numerator)}/{_linear(denominator)}"

    if isinstance(node, Operator):
        return _linear_operator(node, parent)

    if isinstance(node, Parenthesis):
        return f"({_linear(node.content)})"

    if isinstance(node, UnaryMinus):
        arg = node.arg
        if nt.is_operator(arg, '+') or nt.is_operator(arg, '-'):
            return f"-({_linear(arg)})"
        if nt.is_constant_negative(arg) or nt.is_unary_minus(arg):
            return f"-({_linear(arg)})"
        return f"-{_linear(arg, node)}"

    if isinstance(node, Constant):
        return _linear_constant(node, parent)

    if isinstance(node, Function):
        name = node.presentation_name or node.name
        return f"{name}({', '.join(_linear(arg) for arg in node.args)})"

    if isinstance(node, Symbol):
        return node.name

    raise TypeError(f"Cannot render {type(node).__name__}")


def _needs_power_paren(node: Node) -> bool:
    return nt.is_operator(node) and node.op not in ('+', '-')


def _linear_operator(node: Operator, parent: Optional[Node]) -> str:
    op = node.op
    args = node.args

    if op == '/' and nt.is_operator(args[1]):
        return f"{_linear(args[0], node)} / ({_linear(args[1])})"

    if op == '^':
        base, exponent = args
        base_str = _linear(base, node)
        exponent_str = _linear(exponent, node)
        # + and - operands wrap themselves under a ^ parent
        if _needs_power_paren(base) or nt.is_unary_minus(base):
            base_str = f"({base_str})"
        if _needs_power_paren(exponent):
            exponent_str = f"({exponent_str})"
        return f"{base_str}^{exponent_str}"

    if op in ('+', '-'):
        sep = f" {op} "
    elif op == '*':
        if (node.implicit and not nt.is_operator(args[0], '/') and
                all(_juxtaposable(arg) for arg in args[1:])):
            sep = ""
        else:
            sep = " * "
    elif op == '/':
        # 2/3 but x / 3
        sep = "/" if nt.is_constant_fraction(node, True) else " / "
    else:
        sep = f" {op} "

    parts = [_linear(arg, node) for arg in args]
    text = _juxtapose(parts) if sep == "" else sep.join(parts)

    # (x + 2) / 2, 3 * (x + 1), 5 - (x + 1)
    if op in ('+', '-') and isinstance(parent, Operator):
        if parent.op in ('*', '/', '^'):
            text = f"({text})"
        elif parent.op == '-' and parent.args[0] is not node:
            text = f"({text})"

    return text


# ============================================================
# Typeset (LaTeX) dialect
# ============================================================

_TEX_FUNCTIONS = {'sin', 'cos', 'tan', 'cot', 'log', 'ln', 'exp'}

_TEX_SYMBOLS = {
    'pi': '\\pi',
    'alpha': '\\alpha',
    'beta': '\\beta',
    'gamma': '\\gamma',
    'theta': '\\theta',
}


def render_typeset(node: Node, show_plus_minus: bool = False) -> str:
    """
    Render node as LaTeX.

    Examples:
        (* (/ 2 3) (^ x 2)) -> "\\frac{2}{3}~x^{2}"
        (+ 2 3 4)          -> "2+3+4"
    """
    text = _tex(flatten(node))
    if not show_plus_minus:
        text = _TEX_PLUS_MINUS_RE.sub('-', text)
    return text


def _paren(text: str) -> str:
    return f"\\left({text}\\right)"


def _tex_constant(value) -> str:
    if is_integer(value) or is_terminating(value):
        return show_exact(value)
    sign = '-' if value < 0 else ''
    return f"{sign}\\frac{{{abs(value.numerator)}}}{{{value.denominator}}}"


def _tex(node: Node, parent: Optional[Node] = None) -> str:
    if isinstance(node, Constant):
        text = _tex_constant(node.value)
        if nt.is_constant_negative(node) and isinstance(parent, Operator):
            is_first = parent.args[0] is node
            if parent.op == '^' and is_first:
                return _paren(text)
            if parent.op in ('-', '*') and not is_first:
                return _paren(text)
        return text

    if isinstance(node, Symbol):
        return _TEX_SYMBOLS.get(node.name, node.name)

    if isinstance(node, Parenthesis):
        return _paren(_tex(node.content))

    if isinstance(node, UnaryMinus):
        arg = node.arg
        if nt.is_operator(arg, '+') or nt.is_operator(arg, '-'):
            return f"-{_paren(_tex(arg))}"
        if nt.is_constant_negative(arg) or nt.is_unary_minus(arg):
            return f"-{_paren(_tex(arg))}"
        return f"-{_tex(arg, node)}"

    if isinstance(node, Function):
        return _tex_function(node)

    if isinstance(node, Operator):
        return _tex_operator(node)

    raise TypeError(f"Cannot render {type(node).__name__}")


def _tex_function(node: Function) -> str:
    args = [_tex(arg) for arg in node.args]
    name = node.presentation_name or node.name
    if node.name == 'sqrt' and len(args) == 1:
        return f"\\sqrt{{{args[0]}}}"
    if node.name == 'nthRoot':
        if len(args) == 1:
            return f"\\sqrt{{{args[0]}}}"
        return f"\\sqrt[{args[1]}]{{{args[0]}}}"
    joined = ",".join(args)
    if name in _TEX_FUNCTIONS:
        return f"\\{name}{_paren(joined)}"
    return f"\\mathrm{{{name}}}{_paren(joined)}"


def _needs_tex_paren(node: Node) -> bool:
    return isinstance(node, Operator) and node.op in ('+', '-', '*')


def _tex_operator(node: Operator) -> str:
    op = node.op
    args = node.args

    if op == '/':
        numerator, denominator = args
        return f"\\frac{{{_tex(numerator)}}}{{{_tex(denominator)}}}"

    if op == '^':
        base, exponent = args
        base_str = _tex(base, node)
        if isinstance(base, (Operator, UnaryMinus)):
            base_str = "{" + _paren(base_str) + "}"
        elif not isinstance(base, (Symbol, Constant)):
            base_str = "{" + base_str + "}"
        return f"{base_str}^{{{_tex(exponent, node)}}}"

    if op == '+':
        return "+".join(_tex(arg, node) for arg in args)

    if op == '-':
        left, right = args
        right_str = _tex(right, node)
        if nt.is_operator(right, '+') or nt.is_operator(right, '-'):
            right_str = _paren(right_str)
        return f"{_tex(left, node)}-{right_str}"

    if op == '*':
        sep = "~" if node.implicit or nt.has_fraction_coefficient(node) else " \\cdot "
        parts = []
        for arg in args:
            text = _tex(arg, node)
            if _needs_tex_paren(arg):
                text = _paren(text)
            parts.append(text)
        return sep.join(parts)

    return f" {op} ".join(_tex(arg, node) for arg in args)
