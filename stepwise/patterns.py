"""
Pattern rules written as text.

DSL format, one rule per line:
    # Comment
    [group]
    @rule-name: (pattern) => (skeleton)
    @rule-name[priority] "Description text": (pattern) => (skeleton)

    Examples:
    @remove-exponent-by-one "x^1 = x": (^ ?x 1) => :x
    @remove-double-negation: (neg (neg ?x)) => :x

Pattern syntax:
    ?x                 - match any node, bind to x
    ?x:const           - match a constant only
    ?x:var             - match a symbol only
    ?xs...             - match the remaining arguments (zero or more)
    ?xs:const...       - remaining arguments, each a constant
    3, -1, 0.5         - match a constant with that value
    x                  - match the symbol x
    (op p1 p2 ...)     - op is one of + - * / ^, ``neg`` for unary minus,
                         or a function name such as sqrt

Skeleton syntax:
    :x                 - substitute the node bound to x
    :xs...             - splice the bound argument list into the parent
    (! op a b)         - compute op on constants now, e.g. (! + :a :b)
    literal            - number becomes a constant, name a symbol

The change type of a pattern rule is derived from its name:
``remove-exponent-by-one`` reports REMOVE_EXPONENT_BY_ONE.
"""

import re
from fractions import Fraction
from typing import Any, Dict, List, Optional, Sequence, Union

from parsy import ParseError, forward_declaration, regex, string

from . import node_type as nt
from .arithmetic import evaluate
from .exceptions import RuleSyntaxError
from .node import OPERATORS, Constant, Function, Node, Operator, Symbol, UnaryMinus
from .numeric import as_exact, numeric_re, show_exact
from .rules import Rule
from .status import Status

Template = Union[Fraction, str, List]
Bindings = Dict[str, Any]

NEG = 'neg'


# ============================================================
# Reading templates
# ============================================================

def _read_atom(token: str) -> Template:
    if re.fullmatch(numeric_re, token):
        return as_exact(token)

    if token.startswith('?'):
        rest = token[1:]
        is_rest = rest.endswith('...')
        if is_rest:
            rest = rest[:-3]
        name, _, kind = rest.partition(':')
        if not name:
            raise RuleSyntaxError(f"Pattern variable without a name: {token!r}")
        if kind not in ('', 'const', 'var', 'expr'):
            raise RuleSyntaxError(f"Unknown pattern type {kind!r} in {token!r}")
        if is_rest:
            return ["?...", name, kind] if kind in ('const', 'var') else ["?...", name]
        if kind == 'const':
            return ["?c", name]
        if kind == 'var':
            return ["?v", name]
        return ["?", name]

    if token.startswith(':') and len(token) > 1:
        rest = token[1:]
        if rest.endswith('...'):
            return [":...", rest[:-3]]
        return [":", rest]

    return token


_ws = regex(r'\s*')
_atom = (regex(r'[^\s()]+') << _ws).map(_read_atom)
_sexpr = forward_declaration()
_list = string('(') >> _ws >> _sexpr.many() << string(')') << _ws
_sexpr.become(_list | _atom)


def parse_sexpr(text: str) -> Template:
    """
    Read a pattern or skeleton.

    Examples:
        "(^ ?x 1)" -> ["^", ["?", "x"], Fraction(1)]
        ":x" -> [":", "x"]
    """
    try:
        return (_ws >> _sexpr).parse(text)
    except ParseError as e:
        raise RuleSyntaxError(f"Malformed template {text!r}: {e}") from e


def format_sexpr(template: Template) -> str:
    """Inverse of parse_sexpr, using the DSL spelling for variables."""
    if isinstance(template, Fraction):
        return show_exact(template)
    if isinstance(template, str):
        return template
    if not template:
        return "()"
    head = template[0]
    if head == "?" and len(template) == 2:
        return f"?{template[1]}"
    if head == "?c":
        return f"?{template[1]}:const"
    if head == "?v":
        return f"?{template[1]}:var"
    if head == "?...":
        if len(template) == 3:
            return f"?{template[1]}:{template[2]}..."
        return f"?{template[1]}..."
    if head == ":" and len(template) == 2:
        return f":{template[1]}"
    if head == ":...":
        return f":{template[1]}..."
    return "(" + " ".join(format_sexpr(part) for part in template) + ")"


def _is_var(template: Template, kind: str) -> bool:
    return isinstance(template, list) and bool(template) and template[0] == kind


# ============================================================
# Pattern Matching
# ============================================================

def _extend(bindings: Bindings, name: str, value: Any) -> Optional[Bindings]:
    if name in bindings:
        return bindings if bindings[name] == value else None
    return {**bindings, name: value}


def _head_matches(head: Any, node: Node) -> bool:
    if head == NEG:
        return nt.is_unary_minus(node)
    if head in OPERATORS:
        return nt.is_operator(node, head)
    if isinstance(head, str):
        return nt.is_function(node, head)
    return False


def _rest_allows(constraint: Optional[str], node: Node) -> bool:
    if constraint == 'const':
        return nt.is_constant(node)
    if constraint == 'var':
        return nt.is_symbol(node)
    return True


def match(pattern: Template, node: Node, bindings: Optional[Bindings] = None) -> Optional[Bindings]:
    """
    Match pattern against node.

    Returns:
        The bindings extended with the pattern's variables, or None if the
        node does not match. A variable used twice must bind structurally
        equal nodes.
    """
    if bindings is None:
        bindings = {}

    if isinstance(pattern, Fraction):
        return bindings if isinstance(node, Constant) and node.value == pattern else None

    if isinstance(pattern, str):
        return bindings if nt.is_named_symbol(node, pattern) else None

    if _is_var(pattern, "?"):
        return _extend(bindings, pattern[1], node)
    if _is_var(pattern, "?c"):
        return _extend(bindings, pattern[1], node) if nt.is_constant(node) else None
    if _is_var(pattern, "?v"):
        return _extend(bindings, pattern[1], node) if nt.is_symbol(node) else None
    if _is_var(pattern, "?..."):
        raise RuleSyntaxError("Rest pattern (?xs...) must be the last argument of a compound pattern")

    if not pattern or not _head_matches(pattern[0], node):
        return None
    return _match_args(pattern[1:], node.args, bindings)


def _match_args(patterns: Sequence[Template], args: Sequence[Node],
                bindings: Bindings) -> Optional[Bindings]:
    for idx, pattern in enumerate(patterns):
        if _is_var(pattern, "?..."):
            if idx != len(patterns) - 1:
                raise RuleSyntaxError("Rest pattern (?xs...) must be the last argument of a compound pattern")
            rest = tuple(args[idx:])
            constraint = pattern[2] if len(pattern) == 3 else None
            if not all(_rest_allows(constraint, arg) for arg in rest):
                return None
            return _extend(bindings, pattern[1], rest)
        if idx >= len(args):
            return None
        bindings = match(pattern, args[idx], bindings)
        if bindings is None:
            return None
    return bindings if len(args) == len(patterns) else None


# ============================================================
# Instantiation
# ============================================================

def _lookup(bindings: Bindings, name: str) -> Any:
    try:
        return bindings[name]
    except KeyError:
        raise RuleSyntaxError(f"Skeleton uses unbound variable :{name}") from None


def _build(head: Any, args: List[Node]) -> Node:
    if head == NEG:
        if len(args) != 1:
            raise RuleSyntaxError(f"(neg ...) takes one argument, got {len(args)}")
        return UnaryMinus(args[0])
    if head in OPERATORS:
        return Operator(head, args)
    if isinstance(head, str):
        return Function(head, args)
    raise RuleSyntaxError(f"Cannot build a node with head {head!r}")


def _instantiate_args(skeletons: Sequence[Template], bindings: Bindings) -> List[Node]:
    args: List[Node] = []
    for skeleton in skeletons:
        if _is_var(skeleton, ":..."):
            args.extend(_lookup(bindings, skeleton[1]))
        else:
            args.append(instantiate(skeleton, bindings))
    return args


def instantiate(skeleton: Template, bindings: Bindings) -> Node:
    """Build the node described by skeleton, substituting bound variables."""
    if isinstance(skeleton, Fraction):
        return Constant(skeleton)
    if isinstance(skeleton, str):
        return Symbol(skeleton)
    if not skeleton:
        raise RuleSyntaxError("Empty skeleton")

    if _is_var(skeleton, ":"):
        return _lookup(bindings, skeleton[1])
    if _is_var(skeleton, ":..."):
        raise RuleSyntaxError("Splice (:xs...) must appear inside an argument list")

    if skeleton[0] == "!":
        op = skeleton[1]
        args = _instantiate_args(skeleton[2:], bindings)
        if all(nt.is_constant(arg) for arg in args):
            value = evaluate(op, [arg.value for arg in args])
            if value is not None:
                return Constant(value)
        return _build(op, args)

    return _build(skeleton[0], _instantiate_args(skeleton[1:], bindings))


# ============================================================
# Rules
# ============================================================

def change_type_for(name: Optional[str]) -> str:
    """remove-exponent-by-one -> REMOVE_EXPONENT_BY_ONE"""
    if not name:
        return "PATTERN_REWRITE"
    return name.upper().replace('-', '_')


class PatternRule(Rule):
    """A rule that rewrites nodes matching a pattern into a skeleton."""

    def __init__(self, pattern: Template, skeleton: Template, name: Optional[str] = None,
                 description: Optional[str] = None, priority: int = 0,
                 tags: Optional[List[str]] = None):
        super().__init__(name, description, priority)
        self.pattern = pattern
        self.skeleton = skeleton
        self.tags = list(tags or [])
        self.change_type = change_type_for(name)

    def apply(self, node, expression_ctx):
        bindings = match(self.pattern, node, {})
        if bindings is None:
            return None
        new_node = instantiate(self.skeleton, bindings)
        if new_node == node:
            return None
        return Status.node_changed(self.change_type, node, new_node)

    def to_dsl(self) -> str:
        body = f"{format_sexpr(self.pattern)} => {format_sexpr(self.skeleton)}"
        if not self.name:
            return body
        return f"{self!r}: {body}"


_RULE_HEADER = re.compile(r'@([\w-]+)(?:\[(-?\d+)\])?(?:\s+"([^"]*)")?:\s*(.+)')


def parse_rule_line(line: str) -> Optional[PatternRule]:
    """
    Parse a single rule line.

    Formats:
        @name: pattern => skeleton
        @name[priority]: pattern => skeleton
        @name "description": pattern => skeleton
        @name[priority] "description": pattern => skeleton
        pattern => skeleton

    Returns:
        The rule, or None for blank and comment lines

    Raises:
        RuleSyntaxError: If the line is not a well-formed rule
    """
    line = line.strip()
    if not line or line.startswith('#'):
        return None

    name = description = None
    priority = 0
    if line.startswith('@'):
        header = _RULE_HEADER.match(line)
        if not header:
            raise RuleSyntaxError(f"Malformed rule header: {line!r}")
        name, priority_text, description, line = header.groups()
        priority = int(priority_text) if priority_text else 0

    if '=>' not in line:
        raise RuleSyntaxError(f"Rule is missing '=>': {line!r}")
    pattern_text, skeleton_text = line.split('=>', 1)
    return PatternRule(parse_sexpr(pattern_text), parse_sexpr(skeleton_text),
                       name, description, priority)


def load_rules_from_dsl(text: str) -> List[PatternRule]:
    """
    Load rules from DSL text.

    A ``[group]`` line tags the rules that follow it with that group name.
    """
    rules = []
    current_group = None
    for line in text.split('\n'):
        stripped = line.strip()
        if stripped.startswith('[') and stripped.endswith(']'):
            current_group = stripped[1:-1].strip()
            continue
        parsed = parse_rule_line(stripped)
        if parsed is None:
            continue
        if current_group and current_group not in parsed.tags:
            parsed.tags.append(current_group)
        rules.append(parsed)
    return rules
