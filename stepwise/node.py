"""
Expression tree nodes for stepwise.

Nodes are immutable: arguments are stored as tuples and every rewrite builds
new nodes instead of editing existing ones. Equality is deep structural
equality (same kind, operator, values, names and argument order), so two
independently built trees for ``2x + 1`` compare equal even though they share
no objects.

Node kinds:
    Constant(value)                 - exact number (fractions.Fraction)
    Symbol(name)                    - variable
    Operator(op, args, implicit)    - one of + - * / ^
    UnaryMinus(arg)                 - negation, distinct from subtraction
    Parenthesis(content)            - grouping hint kept by the parser
    Function(name, args)            - named function call, e.g. sqrt(x)

Paths:
    A path is a tuple of child indices from a root, e.g. (1, 0) is the first
    argument of the second argument. ``node_at`` and ``replace_at`` give the
    control loop an explicit cursor that cannot go stale by aliasing.
"""

from typing import Iterable, Iterator, Optional, Sequence, Tuple

from .numeric import ExactNumber, NumberLike, as_exact, show_exact

OPERATORS = ('+', '-', '*', '/', '^')

Path = Tuple[int, ...]


class Node:
    """Base class of all expression nodes."""

    __slots__ = ('__weakref__',)

    kind = 'node'

    @property
    def args(self) -> Tuple['Node', ...]:
        """Child nodes in order (empty for leaves)."""
        return ()

    def with_args(self, args: Sequence['Node']) -> 'Node':
        """Return a node of the same kind with the given children."""
        return self

    def clone(self) -> 'Node':
        """Return a structurally equal tree made of fresh node objects."""
        return self.with_args([arg.clone() for arg in self.args])

    def _key(self) -> tuple:
        raise NotImplementedError

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, Node):
            return NotImplemented
        return self._key() == other._key()

    def __ne__(self, other) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self) -> int:
        return hash(self._key())

    def to_sexpr(self) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}<{self.to_sexpr()}>"

    def __str__(self) -> str:
        from .render import render_linear
        return render_linear(self)


class Constant(Node):
    """An exact numeric constant."""

    __slots__ = ('value',)

    kind = 'constant'

    def __init__(self, value: NumberLike):
        self.value: ExactNumber = as_exact(value)

    def clone(self) -> 'Constant':
        return Constant(self.value)

    def _key(self) -> tuple:
        return ('constant', self.value)

    def to_sexpr(self) -> str:
        return show_exact(self.value)


class Symbol(Node):
    """A named variable."""

    __slots__ = ('name',)

    kind = 'symbol'

    def __init__(self, name: str):
        self.name = name

    def clone(self) -> 'Symbol':
        return Symbol(self.name)

    def _key(self) -> tuple:
        return ('symbol', self.name)

    def to_sexpr(self) -> str:
        return self.name


class Operator(Node):
    """
    A binary or n-ary arithmetic operation.

    ``implicit`` marks juxtaposition multiplication (``2x``); it only affects
    rendering and is ignored by equality.
    """

    __slots__ = ('op', '_args', 'implicit')

    kind = 'operator'

    def __init__(self, op: str, args: Iterable[Node], implicit: bool = False):
        self.op = op
        self._args = tuple(args)
        self.implicit = implicit

    @property
    def args(self) -> Tuple[Node, ...]:
        return self._args

    def with_args(self, args: Sequence[Node]) -> 'Operator':
        return Operator(self.op, args, self.implicit)

    def _key(self) -> tuple:
        return ('operator', self.op, tuple(arg._key() for arg in self._args))

    def to_sexpr(self) -> str:
        parts = [self.op] + [arg.to_sexpr() for arg in self._args]
        return "(" + " ".join(parts) + ")"


class UnaryMinus(Node):
    """Negation of a single argument."""

    __slots__ = ('arg',)

    kind = 'unary_minus'

    def __init__(self, arg: Node):
        self.arg = arg

    @property
    def args(self) -> Tuple[Node, ...]:
        return (self.arg,)

    def with_args(self, args: Sequence[Node]) -> 'UnaryMinus':
        (arg,) = args
        return UnaryMinus(arg)

    def _key(self) -> tuple:
        return ('unary_minus', self.arg._key())

    def to_sexpr(self) -> str:
        return f"(neg {self.arg.to_sexpr()})"


class Parenthesis(Node):
    """Explicit grouping written by the user; carries no meaning of its own."""

    __slots__ = ('content',)

    kind = 'parenthesis'

    def __init__(self, content: Node):
        self.content = content

    @property
    def args(self) -> Tuple[Node, ...]:
        return (self.content,)

    def with_args(self, args: Sequence[Node]) -> 'Parenthesis':
        (content,) = args
        return Parenthesis(content)

    def _key(self) -> tuple:
        return ('parenthesis', self.content._key())

    def to_sexpr(self) -> str:
        return f"(paren {self.content.to_sexpr()})"


class Function(Node):
    """
    A named function applied to arguments.

    ``presentation_name`` is the name the user wrote when it differs from the
    internal one (``cot`` for ``ctg``); renderers prefer it.
    """

    __slots__ = ('name', '_args', 'presentation_name')

    kind = 'function'

    def __init__(self, name: str, args: Iterable[Node],
                 presentation_name: Optional[str] = None):
        self.name = name
        self._args = tuple(args)
        self.presentation_name = presentation_name

    @property
    def args(self) -> Tuple[Node, ...]:
        return self._args

    def with_args(self, args: Sequence[Node]) -> 'Function':
        return Function(self.name, args, self.presentation_name)

    def _key(self) -> tuple:
        return ('function', self.name, tuple(arg._key() for arg in self._args))

    def to_sexpr(self) -> str:
        parts = [self.name] + [arg.to_sexpr() for arg in self._args]
        return "(" + " ".join(parts) + ")"


# ============================================================
# Creators
# ============================================================

def constant(value: NumberLike) -> Constant:
    return Constant(value)


def symbol(name: str) -> Symbol:
    return Symbol(name)


def operator(op: str, args: Iterable[Node], implicit: bool = False) -> Operator:
    return Operator(op, args, implicit)


def unary_minus(arg: Node) -> UnaryMinus:
    return UnaryMinus(arg)


def parenthesis(content: Node) -> Parenthesis:
    return Parenthesis(content)


def function(name: str, args: Iterable[Node],
             presentation_name: Optional[str] = None) -> Function:
    return Function(name, args, presentation_name)


CONST_ZERO = Constant(0)
CONST_ONE = Constant(1)


# ============================================================
# Paths
# ============================================================

def node_at(root: Node, path: Path) -> Node:
    """
    Return the node reached by following path from root.

    Raises:
        IndexError: If the path leaves the tree
    """
    node = root
    for idx in path:
        args = node.args
        if idx < 0 or idx >= len(args):
            raise IndexError(f"node_at: path {path} leaves the tree at index {idx}")
        node = args[idx]
    return node


def is_valid_path(root: Node, path: Path) -> bool:
    try:
        node_at(root, path)
    except IndexError:
        return False
    return True


def replace_at(root: Node, path: Path, new_node: Node) -> Node:
    """
    Return a copy of root with the node at path replaced by new_node.

    Only the nodes along the path are rebuilt; untouched subtrees are shared,
    which is safe because nodes are never mutated.
    """
    if not path:
        return new_node
    idx, rest = path[0], path[1:]
    args = list(root.args)
    if idx < 0 or idx >= len(args):
        raise IndexError(f"replace_at: path index {idx} out of range")
    args[idx] = replace_at(args[idx], rest, new_node)
    return root.with_args(args)


def iter_paths(root: Node, path: Path = ()) -> Iterator[Tuple[Path, Node]]:
    """Yield (path, node) pairs in post-order (children before parents)."""
    for idx, arg in enumerate(root.args):
        yield from iter_paths(arg, path + (idx,))
    yield path, root
