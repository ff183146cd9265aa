"""Tests for trace formatting."""

import json

from stepwise import Simplifier, StepTrace, Step, Constant, ChangeTypes


class TestTraceFormatting:
    """Tests for trace format() method."""

    def setup_method(self):
        """Set up test simplifier."""
        self.simplifier = Simplifier()

    def test_format_verbose(self):
        """Verbose format shows full details."""
        trace = self.simplifier.trace("1/2 + 1/3")

        verbose = trace.format("verbose")
        assert "Initial: 1/2 + 1/3" in verbose
        assert "Final: 5/6" in verbose
        assert "1. ADD_FRACTIONS: (3 + 2) / 6" in verbose
        assert "1.1 COMMON_DENOMINATOR: 3/6 + 2/6" in verbose

    def test_format_compact(self):
        """Compact format shows single line."""
        trace = self.simplifier.trace("2 + 2")

        compact = trace.format("compact")
        assert compact == "2 + 2 --[SIMPLIFY_ARITHMETIC]--> 4"
        assert compact.count("\n") == 0

    def test_format_rules(self):
        """Rules format shows just the change types."""
        trace = self.simplifier.trace("x^3/x")
        assert trace.format("rules") == "CANCEL_TERMS -> SIMPLIFY_ARITHMETIC"

    def test_format_chain(self):
        """Chain format shows step-by-step transformations."""
        trace = self.simplifier.trace("x^3/x")

        chain = trace.format("chain")
        assert chain.splitlines() == [
            "x^3 / x",
            "  --(CANCEL_TERMS)-->",
            "x^(3 - 1)",
            "  --(SIMPLIFY_ARITHMETIC)-->",
            "x^2",
        ]

    def test_format_empty_trace(self):
        """Empty trace formats correctly."""
        trace = self.simplifier.trace("x + y")

        assert trace.format("rules") == "(no changes applied)"
        assert trace.format("compact") == "x + y --[]--> x + y"
        assert trace.format("chain") == "x + y"

    def test_show_plus_minus(self):
        """show_plus_minus keeps "+ -" in the output."""
        trace = Simplifier(show_plus_minus=True).trace("x - 1")
        assert trace.format("chain") == "x + -1"


class TestTraceIteration:
    """Tests for iterating over trace steps."""

    def test_iter_trace(self):
        """A trace iterates over its steps."""
        trace = Simplifier().trace("1/4 + 1/4")

        step_count = 0
        for step in trace:
            assert isinstance(step, Step)
            step_count += 1

        assert step_count == len(trace)
        assert step_count == 3

    def test_bool(self):
        """A trace is true when anything changed."""
        assert Simplifier().trace("2 + 2")
        assert not Simplifier().trace("x")

    def test_original_step_is_initial(self):
        """The ORIGINAL_EXPRESSION step becomes the initial tree, not a step."""
        trace = StepTrace()
        trace.add_step(Step(ChangeTypes.ORIGINAL_EXPRESSION, Constant(1)))
        trace.add_step(Step("OTHER", Constant(2)))
        assert trace.initial == Constant(1)
        assert trace.changes_applied() == ["OTHER"]


class TestTraceToDict:
    """Tests for trace serialization."""

    def test_to_dict(self):
        """to_dict holds the steps and their substeps."""
        trace = Simplifier().trace("1/2 + 1/3")
        d = trace.to_dict()

        assert d["initial"] == "1/2 + 1/3"
        assert d["final"] == "5/6"
        assert d["step_count"] == 2
        assert d["steps"][0]["change_type"] == ChangeTypes.ADD_FRACTIONS
        assert d["steps"][0]["substeps"][1]["expression"] == "(3 + 2) / 6"

    def test_to_json(self):
        """Trace can be serialized to JSON."""
        trace = Simplifier().trace("2 + 2")
        parsed = json.loads(json.dumps(trace.to_dict()))
        assert parsed["steps"][0]["expression"] == "4"


class TestTraceStatistics:
    """Tests for trace statistics."""

    def test_change_counts(self):
        """change_counts counts steps by change type."""
        trace = Simplifier().trace("2.5 + 1.5")
        counts = trace.change_counts()
        assert counts[ChangeTypes.CONVERT_DECIMAL_TO_FRACTION] == 2
        assert counts[ChangeTypes.SIMPLIFY_ARITHMETIC] == 2

    def test_summary(self):
        """The summary counts steps and names the most used change."""
        trace = Simplifier().trace("2.5 + 1.5")
        summary = trace.summary()
        assert summary.startswith("5 steps using 3 kinds of change.")
        assert "Most used: CONVERT_DECIMAL_TO_FRACTION (2x)" in summary

    def test_summary_empty(self):
        """An empty trace says nothing was done."""
        assert Simplifier().trace("x").summary() == "No simplification performed"


class TestStepRepr:
    """Tests for step display."""

    def test_repr(self):
        """A step shows its change type and text."""
        step = Step(ChangeTypes.SIMPLIFY_ARITHMETIC, Constant(4))
        assert repr(step) == "SIMPLIFY_ARITHMETIC: 4"

    def test_render_typeset(self):
        """A step renders as LaTeX."""
        step = Simplifier().steps("2/3 x^2")[0]
        assert step.render("typeset") == "\\frac{2}{3}~x^{2}"
