"""
Step-by-step simplification engine.

    from stepwise import Simplifier, E

    simplifier = Simplifier()
    for step in simplifier.steps(E("(4 x^2) / (5 x^2)")):
        print(step.change_type, step.render())

    ORIGINAL_EXPRESSION 4x^2 / (5x^2)
    CANCEL_TERMS 4/5

Control loop:
    1. Normalize the input and emit an ORIGINAL_EXPRESSION step. A tree the
       rules cannot handle (an ``=`` operator, foreign objects) is returned
       as it is.
    2. Try each rule, in pool order, on every node below the cursor
       (children first). The first change is spliced into the tree, the
       tree is renormalized, a step is emitted and the cursor moves to the
       changed node.
    3. When nothing changes below the cursor, move the cursor back to the
       root and try again.
    4. When nothing changes from the root, shuffle once: render the tree,
       parse the text back and retry, which can regroup sums and products.
       A shuffle is only attempted again after another change, and never for
       text that was already shuffled.
    5. Stop when a shuffle gives nothing new or after ``max_steps`` accepted
       changes, then sort the arguments of sums and products and emit a
       REARRANGE_COEFF step if that changes the rendered text.

Steps can be delivered through a callback as they happen
(``step_through(node, on_step=...)``) or collected (``steps(node)``,
``trace(node)``).
"""

import logging
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from .exceptions import ExpressionParseError, StepContractError
from .node import Node, Path, node_at, replace_at
from .normalize import has_unsupported_nodes, normalize, sort_args
from .parser import parse
from .render import LINEAR, render, render_linear
from .rules import Rule, default_rules, sort_by_priority
from .status import ChangeTypes, Status
from .tree_search import Search, post_order

logger = logging.getLogger(__name__)

MAX_STEP_COUNT = 64

Parser = Callable[[str], Node]
StepCallback = Callable[['Step'], None]


# ============================================================
# Cursor
# ============================================================

class Cursor:
    """
    Where the loop resumes searching: a path of child indices from the root.

    The empty path is the root. A cursor never holds a node, only a path, so
    rebuilding the tree cannot leave it pointing at a discarded node.
    """

    __slots__ = ('path',)

    def __init__(self, path: Path = ()):
        self.path: Path = tuple(path)

    @property
    def is_root(self) -> bool:
        return not self.path

    @property
    def parent_path(self) -> Optional[Path]:
        return self.path[:-1] if self.path else None

    @property
    def index(self) -> Optional[int]:
        return self.path[-1] if self.path else None

    def node(self, root: Node) -> Node:
        return node_at(root, self.path)

    def resolve(self, root: Node) -> 'Cursor':
        """The longest prefix of this cursor's path that exists in root."""
        node = root
        for depth, idx in enumerate(self.path):
            args = node.args
            if idx >= len(args):
                return Cursor(self.path[:depth])
            node = args[idx]
        return self

    def __eq__(self, other) -> bool:
        if isinstance(other, Cursor):
            return self.path == other.path
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.path)

    def __repr__(self) -> str:
        return f"Cursor({self.path})"


Cursor.ROOT = Cursor()


# ============================================================
# Steps and traces
# ============================================================

class Step:
    """An emitted step: the change label and a snapshot of the whole tree after it."""

    __slots__ = ('change_type', 'root_node', 'substeps')

    def __init__(self, change_type: str, root_node: Node, substeps: Sequence['Step'] = ()):
        self.change_type = change_type
        self.root_node = root_node
        self.substeps: Tuple['Step', ...] = tuple(substeps)

    def render(self, dialect: str = LINEAR, show_plus_minus: bool = False) -> str:
        return render(self.root_node, dialect, show_plus_minus)

    def to_dict(self) -> Dict:
        """Convert step to dictionary for serialization."""
        return {
            "change_type": self.change_type,
            "expression": self.render(),
            "substeps": [sub.to_dict() for sub in self.substeps],
        }

    def __repr__(self) -> str:
        return f"{self.change_type}: {self.render()}"


class StepTrace:
    """
    The steps of one simplification.

    Provides multiple formatting options:
        - Default repr: verbose multi-line format
        - format("compact"): single line showing the change chain
        - format("rules"): just the change types
        - format("chain"): the expression after each change
        - to_dict(): JSON-serializable dictionary
    """

    def __init__(self, show_plus_minus: bool = False):
        self.steps: List[Step] = []
        self.initial: Optional[Node] = None
        self.final: Optional[Node] = None
        self.show_plus_minus = show_plus_minus

    def add_step(self, step: Step):
        if step.change_type == ChangeTypes.ORIGINAL_EXPRESSION and self.initial is None:
            self.initial = step.root_node
        else:
            self.steps.append(step)

    def _show(self, node: Optional[Node]) -> str:
        if node is None:
            return "None"
        return render_linear(node, self.show_plus_minus)

    def format(self, style: str = "verbose") -> str:
        """
        Format the trace in different styles.

        Args:
            style: One of "verbose", "compact", "rules", "chain"

        Returns:
            Formatted string representation of the trace.
        """
        if style == "compact":
            changes = ", ".join(self.changes_applied())
            return f"{self._show(self.initial)} --[{changes}]--> {self._show(self.final)}"

        elif style == "rules":
            changes = self.changes_applied()
            return " -> ".join(changes) if changes else "(no changes applied)"

        elif style == "chain":
            parts = [self._show(self.initial)]
            for step in self.steps:
                parts.append(f"  --({step.change_type})-->")
                parts.append(self._show(step.root_node))
            return "\n".join(parts)

        else:
            return repr(self)

    def __repr__(self) -> str:
        lines = [f"Initial: {self._show(self.initial)}"]
        for i, step in enumerate(self.steps, 1):
            lines.append(f"  {i}. {step.change_type}: {self._show(step.root_node)}")
            for j, sub in enumerate(step.substeps, 1):
                lines.append(f"     {i}.{j} {sub.change_type}: {self._show(sub.root_node)}")
        lines.append(f"Final: {self._show(self.final)}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if anything changed."""
        return len(self.steps) > 0

    def to_dict(self) -> Dict:
        """Convert trace to dictionary for JSON serialization."""
        return {
            "initial": self._show(self.initial),
            "final": self._show(self.final),
            "steps": [step.to_dict() for step in self.steps],
            "step_count": len(self.steps),
        }

    def change_counts(self) -> Dict[str, int]:
        """Count how many times each change type was applied."""
        counts: Dict[str, int] = {}
        for step in self.steps:
            counts[step.change_type] = counts.get(step.change_type, 0) + 1
        return counts

    def changes_applied(self) -> List[str]:
        return [step.change_type for step in self.steps]

    def summary(self) -> str:
        if not self.steps:
            return "No simplification performed"
        counts = self.change_counts()
        most_used = max(counts.items(), key=lambda x: x[1])
        return (f"{len(self.steps)} steps using {len(counts)} kinds of change. "
                f"Most used: {most_used[0]} ({most_used[1]}x)")


# ============================================================
# Rewrite context
# ============================================================

def check_status(status: Status) -> None:
    """
    Raise StepContractError unless status (and its substeps) name a change
    type and carry a resulting node.
    """
    if not isinstance(status, Status):
        raise StepContractError(f"Rule returned {status!r} instead of a Status")
    if not status.change_type:
        raise StepContractError(f"Rule changed {status.old_node!r} without a change type")
    if not isinstance(status.new_node, Node):
        raise StepContractError(
            f"{status.change_type} on {status.old_node!r} has no resulting node")
    for sub in status.substeps:
        check_status(sub)


class RewriteContext:
    """State of a single run: the working tree, cursor and step counter."""

    def __init__(self, root: Node, max_steps: int = MAX_STEP_COUNT,
                 on_step: Optional[StepCallback] = None,
                 expression_ctx: Optional[Mapping] = None, debug: bool = False):
        self.root = root
        self.cursor = Cursor.ROOT
        self.iteration = 0
        self.max_steps = max_steps
        self.on_step = on_step
        self.expression_ctx = expression_ctx if expression_ctx is not None else {}
        self.debug = debug
        self.shuffled = False
        self.last_shuffle_text: Optional[str] = None
        self.last_tree: Optional[Node] = None

    def emit(self, change_type: str, substeps: Sequence[Step] = (), snapshot: bool = True) -> Step:
        tree = self.root.clone() if snapshot else self.root
        step = Step(change_type, tree, substeps)
        self.last_tree = tree
        if self.debug:
            logger.info("%s: %s", change_type, render_linear(tree) if snapshot else repr(tree))
            for i, sub in enumerate(step.substeps, 1):
                logger.info("  %d. %s: %s", i, sub.change_type, render_linear(sub.root_node))
        if self.on_step is not None:
            self.on_step(step)
        return step

    def _substep(self, before: Node, path: Path, status: Status) -> Step:
        path = path + status.path
        tree = normalize(replace_at(before, path, status.new_node)).clone()
        substeps = [self._substep(before, path, sub) for sub in status.substeps]
        return Step(status.change_type, tree, substeps)

    def _follow(self, path: Path, new_node: Node) -> Cursor:
        """
        Cursor on the spliced node. Renormalizing can merge it into its parent
        (a sum spliced into a sum), leaving another node at the same indices;
        the cursor then stops at the parent.
        """
        cursor = Cursor(path).resolve(self.root)
        if cursor.path == path and cursor.node(self.root) == normalize(new_node):
            return cursor
        return Cursor(path[:-1]).resolve(self.root)

    def accept(self, status: Status) -> Step:
        """Splice a rule's result into the tree at the cursor and emit the step."""
        check_status(status)
        before = self.root
        path = self.cursor.path + status.path
        self.root = normalize(replace_at(before, path, status.new_node))
        substeps = [self._substep(before, path, sub) for sub in status.substeps]
        self.iteration += 1
        self.cursor = self._follow(path, status.new_node)
        self.shuffled = False
        return self.emit(status.change_type, substeps)


# ============================================================
# Simplifier
# ============================================================

class Simplifier:
    """
    Applies an ordered pool of rules until none applies, step by step.

    Example:
        from stepwise import Simplifier, rule

        simplifier = Simplifier()
        simplifier.simplify("2/(4x)")          # tree for 1 / (2x)

        result, trace = simplifier("x^3 / x", trace=True)
        print(trace.format("rules"))        # CANCEL_TERMS -> SIMPLIFY_ARITHMETIC

        # Custom pool; no parser disables the shuffle recovery
        Simplifier(rules=[my_rule], parser=None)
    """

    def __init__(self, rules: Optional[Sequence[Rule]] = None,
                 parser: Optional[Parser] = parse,
                 max_steps: int = MAX_STEP_COUNT,
                 show_plus_minus: bool = False):
        """
        Args:
            rules: The rule pool; defaults to ``default_rules()``. Higher
                priority rules are tried first, ties keep the given order.
            parser: Text parser used to shuffle the tree at a dead end, or
                None to never shuffle.
            max_steps: Cap on accepted changes per run.
            show_plus_minus: Render ``x + -1`` instead of ``x - 1`` in
                traces and logs.
        """
        self._rules: List[Rule] = sort_by_priority(default_rules() if rules is None else rules)
        self.parser = parser
        self.max_steps = max_steps
        self.show_plus_minus = show_plus_minus
        self._searches: Optional[List[Tuple[Rule, Search]]] = None

    @property
    def rules(self) -> List[Rule]:
        return list(self._rules)

    def _pool(self) -> List[Tuple[Rule, Search]]:
        if self._searches is None:
            self._searches = [(r, post_order(r)) for r in self._rules]
        return self._searches

    def add_rule(self, rule: Rule) -> 'Simplifier':
        """Add a rule to the pool (fluent interface)."""
        self._rules = sort_by_priority(self._rules + [rule])
        self._searches = None
        return self

    def with_parser(self, parser: Optional[Parser]) -> 'Simplifier':
        self.parser = parser
        return self

    def copy(self) -> 'Simplifier':
        return Simplifier(self._rules, self.parser, self.max_steps, self.show_plus_minus)

    def _coerce(self, node: Union[Node, str]) -> Node:
        if isinstance(node, str):
            if self.parser is None:
                raise TypeError("Cannot simplify text without a parser")
            return self.parser(node)
        if not isinstance(node, Node):
            raise TypeError(f"Expected a Node or text, got {type(node).__name__}")
        return node

    # ---- main loop ----------------------------------------------------

    def step_through(self, node: Union[Node, str], on_step: Optional[StepCallback] = None,
                     expression_ctx: Optional[Mapping] = None, debug: bool = False) -> Node:
        """
        Simplify node, passing each step to on_step as it is produced.

        Returns:
            The tree of the last emitted step
        """
        ctx = RewriteContext(normalize(self._coerce(node)), self.max_steps,
                             on_step, expression_ctx, debug)

        if has_unsupported_nodes(ctx.root):
            ctx.emit(ChangeTypes.ORIGINAL_EXPRESSION, snapshot=False)
            logger.debug("Not simplifying unsupported expression %r", ctx.root)
            return ctx.root

        ctx.emit(ChangeTypes.ORIGINAL_EXPRESSION)
        self._run(ctx)
        self._postprocess(ctx)
        return ctx.last_tree.clone()

    def _apply_rules(self, ctx: RewriteContext) -> Optional[Tuple[Rule, Status]]:
        start = ctx.cursor.node(ctx.root)
        for r, search in self._pool():
            status = search(start, ctx.expression_ctx)
            if status is not None:
                return r, status
        return None

    def _run(self, ctx: RewriteContext) -> None:
        while ctx.iteration < ctx.max_steps:
            found = self._apply_rules(ctx)
            if found is not None:
                r, status = found
                if ctx.debug:
                    logger.info("%r fired at %s", r, ctx.cursor.path + status.path)
                ctx.accept(status)
                continue
            if not ctx.cursor.is_root:
                ctx.cursor = Cursor.ROOT
                continue
            if not ctx.shuffled and self._shuffle(ctx):
                continue
            return
        logger.warning("Potential infinite loop for expression: %s", render_linear(ctx.root))

    def _shuffle(self, ctx: RewriteContext) -> bool:
        """Reparse the rendered tree; True if there is a new tree to retry."""
        ctx.shuffled = True
        if self.parser is None:
            return False
        text = render_linear(ctx.root)
        if text == ctx.last_shuffle_text:
            return False
        ctx.last_shuffle_text = text
        try:
            reparsed = normalize(self.parser(text))
        except ExpressionParseError:
            logger.debug("Shuffle could not reparse %r", text)
            return False
        # text that reads back as a different expression, e.g. f(x) as f*x
        if render_linear(reparsed) != text:
            logger.debug("Shuffle of %r does not round-trip", text)
            return False
        ctx.root = reparsed
        ctx.cursor = Cursor.ROOT
        return True

    def _postprocess(self, ctx: RewriteContext) -> None:
        ordered = sort_args(ctx.root)
        if render_linear(ordered) != render_linear(ctx.root):
            ctx.root = ordered
            ctx.emit(ChangeTypes.REARRANGE_COEFF)

    # ---- conveniences -------------------------------------------------

    def steps(self, node: Union[Node, str], expression_ctx: Optional[Mapping] = None,
              debug: bool = False) -> List[Step]:
        """Simplify node and return every step, starting with the original expression."""
        collected: List[Step] = []
        self.step_through(node, collected.append, expression_ctx, debug)
        return collected

    def trace(self, node: Union[Node, str], expression_ctx: Optional[Mapping] = None,
              debug: bool = False) -> StepTrace:
        trace = StepTrace(self.show_plus_minus)
        trace.final = self.step_through(node, trace.add_step, expression_ctx, debug)
        return trace

    def simplify(self, node: Union[Node, str], expression_ctx: Optional[Mapping] = None) -> Node:
        return self.step_through(node, expression_ctx=expression_ctx)

    def __call__(self, node: Union[Node, str], trace: bool = False,
                 expression_ctx: Optional[Mapping] = None, debug: bool = False):
        """
        Simplify node.

        Returns:
            The result, or (result, StepTrace) when trace is True
        """
        if trace:
            t = self.trace(node, expression_ctx, debug)
            return t.final, t
        return self.step_through(node, expression_ctx=expression_ctx, debug=debug)

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __repr__(self) -> str:
        return f"Simplifier({len(self._rules)} rules)"


_default_simplifier: Optional[Simplifier] = None


def default_simplifier() -> Simplifier:
    global _default_simplifier
    if _default_simplifier is None:
        _default_simplifier = Simplifier()
    return _default_simplifier


def step_through(node: Union[Node, str], on_step: Optional[StepCallback] = None,
                 expression_ctx: Optional[Mapping] = None, debug: bool = False) -> Node:
    """Simplify node with the built-in rules, reporting each step to on_step."""
    return default_simplifier().step_through(node, on_step, expression_ctx, debug)


def simplify_expression(node: Union[Node, str], expression_ctx: Optional[Mapping] = None) -> Node:
    """Simplify node with the built-in rules and return the result."""
    return default_simplifier().simplify(node, expression_ctx)
