"""Tests for pattern matching, instantiation and the rule DSL."""

from fractions import Fraction

import pytest

from stepwise import (
    Constant, Symbol, Operator, UnaryMinus, Function, E,
    PatternRule, parse_rule_line, load_rules_from_dsl, match, instantiate, RuleSyntaxError,
)
from stepwise.patterns import parse_sexpr, format_sexpr, change_type_for


class TestReadTemplates:
    """Tests for reading patterns and skeletons."""

    def test_pattern(self):
        """Lists, variables and numbers are read."""
        assert parse_sexpr("(^ ?x 1)") == ["^", ["?", "x"], Fraction(1)]

    def test_typed_variables(self):
        """Variables may carry a type."""
        assert parse_sexpr("?n:const") == ["?c", "n"]
        assert parse_sexpr("?v:var") == ["?v", "v"]
        assert parse_sexpr("?e:expr") == ["?", "e"]

    def test_rest_variables(self):
        """A trailing ... marks a rest variable."""
        assert parse_sexpr("?xs...") == ["?...", "xs"]
        assert parse_sexpr("?xs:const...") == ["?...", "xs", "const"]

    def test_skeleton_variables(self):
        """:x names a binding in a skeleton."""
        assert parse_sexpr(":x") == [":", "x"]
        assert parse_sexpr(":xs...") == [":...", "xs"]

    def test_negative_number(self):
        """Negative numbers are numbers."""
        assert parse_sexpr("(/ ?x -1)") == ["/", ["?", "x"], Fraction(-1)]

    def test_unbalanced(self):
        """Unbalanced parentheses are a syntax error."""
        with pytest.raises(RuleSyntaxError):
            parse_sexpr("(+ ?x")

    def test_unknown_type(self):
        """Unknown variable types are a syntax error."""
        with pytest.raises(RuleSyntaxError):
            parse_sexpr("?x:matrix")

    def test_format_inverse(self):
        """format_sexpr writes back what parse_sexpr read."""
        text = "(* -1 ?xs:const... (neg :y) 0.5)"
        assert format_sexpr(parse_sexpr(text)) == text


class TestMatch:
    """Tests for pattern matching against nodes."""

    def test_bind(self):
        """A variable binds a whole subtree."""
        bindings = match(parse_sexpr("(^ ?x 1)"), E.op("^", E.op("+", "a", 1), 1))
        assert bindings == {"x": E.op("+", "a", 1)}

    def test_literal_mismatch(self):
        """A literal must match exactly."""
        assert match(parse_sexpr("(^ ?x 1)"), E.op("^", "a", 2)) is None

    def test_repeated_variable(self):
        """A repeated variable must bind equal nodes."""
        pattern = parse_sexpr("(+ ?x ?x)")
        assert match(pattern, E.op("+", "y", "y")) == {"x": Symbol('y')}
        assert match(pattern, E.op("+", "y", "z")) is None

    def test_typed(self):
        """Typed variables check the node kind."""
        pattern = parse_sexpr("(^ ?x:var ?n:const)")
        assert match(pattern, E.op("^", "x", 2)) == {"x": Symbol('x'), "n": Constant(2)}
        assert match(pattern, E.op("^", 2, 2)) is None
        assert match(pattern, E.op("^", "x", "y")) is None

    def test_rest(self):
        """A rest variable binds the remaining arguments."""
        bindings = match(parse_sexpr("(+ ?x ?rest...)"), E.op("+", 1, 2, 3))
        assert bindings == {"x": Constant(1), "rest": (Constant(2), Constant(3))}

    def test_rest_may_be_empty(self):
        """A rest variable may bind nothing."""
        bindings = match(parse_sexpr("(* 2 ?rest...)"), Operator('*', [Constant(2)]))
        assert bindings == {"rest": ()}

    def test_rest_constraint(self):
        """A typed rest variable checks every argument."""
        pattern = parse_sexpr("(+ ?xs:const...)")
        assert match(pattern, E.op("+", 1, 2)) is not None
        assert match(pattern, E.op("+", 1, "x")) is None

    def test_rest_must_be_last(self):
        """A rest variable before other arguments is a syntax error."""
        with pytest.raises(RuleSyntaxError):
            match(parse_sexpr("(+ ?xs... ?y)"), E.op("+", 1, 2))

    def test_arity_mismatch(self):
        """Argument counts must agree without a rest variable."""
        assert match(parse_sexpr("(+ ?x ?y)"), E.op("+", 1, 2, 3)) is None

    def test_unary_minus_and_functions(self):
        """neg and function names match their nodes."""
        assert match(parse_sexpr("(neg (neg ?x))"), E.neg(E.neg("a"))) == {"x": Symbol('a')}
        assert match(parse_sexpr("(sqrt 0)"), E.fn("sqrt", 0)) == {}
        assert match(parse_sexpr("(sqrt 0)"), E.fn("abs", 0)) is None

    def test_symbol_literal(self):
        """A bare name matches that symbol."""
        assert match(parse_sexpr("(* pi ?x)"), E.op("*", "pi", 2)) == {"x": Constant(2)}


class TestInstantiate:
    """Tests for building nodes from skeletons."""

    def test_substitute(self):
        """Bindings are substituted."""
        node = instantiate(parse_sexpr("(neg :x)"), {"x": Symbol('a')})
        assert node == UnaryMinus(Symbol('a'))

    def test_splice(self):
        """A rest binding is spliced into the arguments."""
        node = instantiate(parse_sexpr("(f 0 :xs...)"), {"xs": (Constant(1), Constant(2))})
        assert node == Function('f', [Constant(0), Constant(1), Constant(2)])

    def test_compute(self):
        """! evaluates constant arguments."""
        skeleton = parse_sexpr("(! + :a :b)")
        assert instantiate(skeleton, {"a": Constant(2), "b": Constant(3)}) == Constant(5)

    def test_compute_falls_back_to_node(self):
        """! builds the operation when it cannot evaluate."""
        skeleton = parse_sexpr("(! + :a :b)")
        node = instantiate(skeleton, {"a": Symbol('x'), "b": Constant(3)})
        assert node == Operator('+', [Symbol('x'), Constant(3)])

    def test_literals(self):
        """Numbers and names in a skeleton become nodes."""
        assert instantiate(parse_sexpr("0.5"), {}) == Constant(Fraction(1, 2))
        assert instantiate(parse_sexpr("y"), {}) == Symbol('y')

    def test_unbound(self):
        """An unbound name is a syntax error."""
        with pytest.raises(RuleSyntaxError):
            instantiate(parse_sexpr(":missing"), {})

    def test_bad_neg(self):
        """neg takes one argument."""
        with pytest.raises(RuleSyntaxError):
            instantiate(parse_sexpr("(neg 1 2)"), {})


class TestRuleLines:
    """Tests for parsing DSL rule lines."""

    def test_full_header(self):
        """Name, priority and description are read from the header."""
        r = parse_rule_line('@double[5] "x+x = 2x": (+ ?x ?x) => (* 2 :x)')
        assert r.name == "double"
        assert r.priority == 5
        assert r.description == "x+x = 2x"
        assert r.change_type == "DOUBLE"

    def test_apply(self):
        """A rule rewrites what its pattern matches."""
        r = parse_rule_line("@double: (+ ?x ?x) => (* 2 :x)")
        status = r(E.op("+", "y", "y"))
        assert status.change_type == "DOUBLE"
        assert status.new_node == Operator('*', [Constant(2), Symbol('y')])
        assert r(E.op("+", "y", "z")) is None

    def test_unchanged_result_is_no_change(self):
        """A rewrite to an equal tree is no change."""
        r = parse_rule_line("@same: (+ ?x ?y) => (+ :x :y)")
        assert r(E.op("+", "a", "b")) is None

    def test_anonymous(self):
        """A rule may have no name."""
        r = parse_rule_line("(neg (neg ?x)) => :x")
        assert r.name is None
        assert r.change_type == "PATTERN_REWRITE"

    def test_negative_priority(self):
        """Priorities may be negative."""
        assert parse_rule_line("@late[-2]: ?x => :x").priority == -2

    def test_blank_and_comment(self):
        """Blank lines and comments hold no rule."""
        assert parse_rule_line("") is None
        assert parse_rule_line("   # nothing here") is None

    def test_malformed_header(self):
        """A header without a colon is a syntax error."""
        with pytest.raises(RuleSyntaxError):
            parse_rule_line("@bad (x) => x")

    def test_missing_arrow(self):
        """A rule needs =>."""
        with pytest.raises(RuleSyntaxError):
            parse_rule_line("@r: (+ ?x 0)")

    def test_to_dsl(self):
        """to_dsl writes back the rule line."""
        line = '@double[5] "x+x = 2x": (+ ?x ?x) => (* 2 :x)'
        assert parse_rule_line(line).to_dsl() == line

    def test_change_type_for(self):
        """Rule names become change types."""
        assert change_type_for("remove-exponent-by-one") == "REMOVE_EXPONENT_BY_ONE"
        assert change_type_for(None) == "PATTERN_REWRITE"


class TestLoadRules:
    """Tests for loading rule blocks."""

    def test_groups(self):
        """[group] headings tag the rules after them."""
        rules = load_rules_from_dsl('''
            # identities
            [exponents]
            @one: (^ ?x 1) => :x
            @zero: (^ ?x 0) => 1

            [division]
            @by-one: (/ ?x 1) => :x
        ''')
        assert [r.name for r in rules] == ["one", "zero", "by-one"]
        assert rules[0].tags == ["exponents"]
        assert rules[2].tags == ["division"]
        assert all(isinstance(r, PatternRule) for r in rules)

    def test_error_propagates(self):
        """One bad line fails the whole load."""
        with pytest.raises(RuleSyntaxError):
            load_rules_from_dsl("@ok: ?x => :x\n@broken: (+ ?x => :x")
