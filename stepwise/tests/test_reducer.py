"""Tests for cancelling common factors."""

import pytest

from stepwise import Constant, Symbol, Operator, UnaryMinus, ChangeTypes, E, Simplifier, render
from stepwise import cancel_terms
from stepwise.reducer import decompose, rebuild, rebuild_product, reduce_pair

x = Symbol('x')
y = Symbol('y')


def power(base, larger, smaller):
    return Operator('^', [base, Operator('-', [Constant(larger), Constant(smaller)])])


class TestDecompose:
    """Tests for splitting into factor lists."""

    def test_division(self):
        """Both sides of a division are split into factors."""
        top, bottom = decompose(E("(2x)/(3y)"))
        assert top == [Constant(2), x]
        assert bottom == [Constant(3), y]

    def test_product(self):
        """A product has no denominator factors."""
        top, bottom = decompose(E.op("*", 2, "x"))
        assert top == [Constant(2), x]
        assert bottom == []

    def test_other(self):
        """Any other node is a single numerator factor."""
        assert decompose(x) == ([x], [])


class TestRebuild:
    """Tests for rebuilding from factor lists."""

    def test_empty_product(self):
        """No factors left rebuilds as 1."""
        assert rebuild_product([]) == Constant(1)

    def test_single_factor(self):
        """A single factor is returned as it is."""
        assert rebuild_product([x]) is x

    def test_no_denominator(self):
        """Without denominator factors the result is a product."""
        assert rebuild([x, y], []) == Operator('*', [x, y])

    def test_fraction(self):
        """An empty numerator becomes 1 over the denominator."""
        assert rebuild([], [Constant(2), x]) == Operator('/', [Constant(1), Operator('*', [Constant(2), x])])


class TestReducePair:
    """Tests for the pairwise reductions."""

    def test_equal(self):
        """Equal factors cancel completely."""
        assert reduce_pair(x, x) == (None, None, False)

    def test_equal_with_one_minus(self):
        """One negated factor leaves a sign flip."""
        assert reduce_pair(UnaryMinus(x), x) == (None, None, True)

    def test_equal_with_two_minuses(self):
        """Two negated factors cancel their signs."""
        assert reduce_pair(UnaryMinus(x), UnaryMinus(x)) == (None, None, False)

    def test_integers(self):
        """Integers are divided by their gcd."""
        assert reduce_pair(Constant(6), Constant(4)) == (Constant(3), Constant(2), False)

    def test_integer_sign(self):
        """Negative integers flip the sign once per negative."""
        assert reduce_pair(Constant(-6), Constant(4)) == (Constant(3), Constant(2), True)
        assert reduce_pair(Constant(-6), Constant(-4)) == (Constant(3), Constant(2), False)

    def test_coprime(self):
        """Coprime integers do not reduce."""
        assert reduce_pair(Constant(4), Constant(5)) is None

    def test_powers(self):
        """Like-base powers keep the exponent difference."""
        top, bottom, negative = reduce_pair(E("x^5"), E("x^2"))
        assert top == power(x, 5, 2)
        assert bottom is None
        assert not negative

    def test_bare_base_counts_as_first_power(self):
        """A bare base reduces against its own power."""
        top, bottom, _ = reduce_pair(x, E("x^3"))
        assert top is None
        assert bottom == power(x, 3, 1)

    def test_negated_power(self):
        """A minus on a power is set aside and flips the sign."""
        top, bottom, negative = reduce_pair(UnaryMinus(E("x^3")), x)
        assert top == power(x, 3, 1)
        assert bottom is None
        assert negative

    def test_negated_base_below(self):
        """A minus on the denominator base flips the sign too."""
        top, bottom, negative = reduce_pair(E("x^3"), UnaryMinus(x))
        assert top == power(x, 3, 1)
        assert negative

    def test_symbolic_exponent(self):
        """Symbolic exponents are not compared."""
        assert reduce_pair(E("x^n"), x) is None

    def test_different_bases(self):
        """Different bases do not reduce."""
        assert reduce_pair(x, y) is None


class TestCancelTerms:
    """Tests for the cancel-terms rule."""

    @pytest.mark.parametrize("text,expected", [
        ("x^2/x^2", Constant(1)),
        ("(4*x^2)/(5*x^2)", Operator('/', [Constant(4), Constant(5)])),
        ("-x/-x", Constant(1)),
        ("-x/x", UnaryMinus(Constant(1))),
        ("6/4", Operator('/', [Constant(3), Constant(2)])),
        ("6/3", Constant(2)),
        ("-6/4", UnaryMinus(Operator('/', [Constant(3), Constant(2)]))),
        ("-2/-4", Operator('/', [Constant(1), Constant(2)])),
        ("2/(4x)", Operator('/', [Constant(1), Operator('*', [Constant(2), x])])),
        ("6/(2x)", Operator('/', [Constant(3), x])),
        ("2x/x", Constant(2)),
        ("x^5/x^2", power(x, 5, 2)),
        ("x/x^3", Operator('/', [Constant(1), power(x, 3, 1)])),
        ("-x^3/x", UnaryMinus(power(x, 3, 1))),
        ("x^3/-x", UnaryMinus(power(x, 3, 1))),
        ("-(7+x)^8/(7+x)^2", UnaryMinus(power(E.op("+", 7, "x"), 8, 2))),
    ])
    def test_cancel(self, text, expected):
        """Each case cancels one pair in a single CANCEL_TERMS step."""
        status = cancel_terms(E(text))
        assert status.change_type == ChangeTypes.CANCEL_TERMS
        assert status.new_node == expected

    def test_negated_power_renders(self):
        """The sign of a cancelled power stays outside the power."""
        status = cancel_terms(E("-(7+x)^8/(7+x)^2"))
        assert render(status.new_node) == "-(7 + x)^(8 - 2)"

    @pytest.mark.parametrize("text", ["-x^3/x", "x^3/-x"])
    def test_negated_power_simplifies(self, text):
        """A negated power cancels through to the end."""
        assert render(Simplifier().simplify(text)) == "-x^2"

    def test_one_pair_per_call(self):
        """x y / (x y) cancels x first."""
        status = cancel_terms(E("(x y)/(x y)"))
        assert status.new_node == Operator('/', [y, y])

    def test_product_with_fraction(self):
        """A product holding a fraction cancels across its factors."""
        status = cancel_terms(E.op("*", E.op("/", 2, "x"), "x"))
        assert status.new_node == Constant(2)

    def test_nothing_to_cancel(self):
        """Shapes without a common factor are left alone."""
        assert cancel_terms(E("2/3 x")) is None
        assert cancel_terms(E("x + 1")) is None
        assert cancel_terms(E("2x")) is None
