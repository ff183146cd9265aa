"""Tests for flattening, sign normalization and ordering."""

from fractions import Fraction

from stepwise import Constant, Symbol, Operator, UnaryMinus, Parenthesis, parse, render, E
from stepwise.normalize import (
    flatten, normalize, normalize_constants, sort_args, polynomial_degree, has_unsupported_nodes,
)


class TestFlatten:
    """Tests for flatten()."""

    def test_subtraction_becomes_addition(self):
        """2 + (x - 3) -> 2 + x + -3"""
        tree = flatten(parse("2 + (x - 3)"))
        assert tree == Operator('+', [Constant(2), Symbol('x'), Constant(-3)])

    def test_nested_products_collapse(self):
        """Nested products become one product."""
        tree = flatten(parse("(2 * x) * y"))
        assert tree == Operator('*', [Constant(2), Symbol('x'), Symbol('y')])

    def test_parentheses_removed(self):
        """Parentheses are dropped."""
        assert flatten(Parenthesis(Parenthesis(Symbol('x')))) == Symbol('x')

    def test_unary_subtraction(self):
        """A one-argument subtraction is a unary minus."""
        assert flatten(Operator('-', [Symbol('x')])) == UnaryMinus(Symbol('x'))

    def test_single_argument_sum(self):
        """A one-argument sum is its argument."""
        assert flatten(Operator('+', [Symbol('x')])) == Symbol('x')

    def test_coefficient_marked_implicit(self):
        """A constant times a symbol is written implicitly."""
        tree = flatten(Operator('*', [Constant(2), Symbol('x')]))
        assert tree.implicit

    def test_non_coefficient_product_explicit(self):
        """A symbol times a constant stays explicit."""
        tree = flatten(Operator('*', [Symbol('x'), Constant(2)]))
        assert not tree.implicit

    def test_division_kept_binary(self):
        """Division is not flattened."""
        tree = flatten(parse("x / y / z"))
        assert tree == Operator('/', [Operator('/', [Symbol('x'), Symbol('y')]), Symbol('z')])


class TestNormalizeConstants:
    """Tests for folding signs into constants."""

    def test_negated_constant(self):
        """-(3) is the constant -3."""
        assert normalize_constants(UnaryMinus(Constant(3))) == Constant(-3)

    def test_negated_integer_fraction(self):
        """The sign of a negated fraction moves to the numerator."""
        tree = normalize_constants(UnaryMinus(Operator('/', [Constant(2), Constant(3)])))
        assert tree == Operator('/', [Constant(-2), Constant(3)])

    def test_negated_symbol_kept(self):
        """A negated symbol stays negated."""
        assert normalize_constants(UnaryMinus(Symbol('x'))) == UnaryMinus(Symbol('x'))

    def test_normalize(self):
        """normalize flattens and folds signs."""
        assert normalize(parse("-(3) + x")) == Operator('+', [Constant(-3), Symbol('x')])


class TestSortArgs:
    """Tests for the canonical ordering pass."""

    def test_sum_by_degree(self):
        """Terms are ordered by falling degree."""
        tree = sort_args(E("3 + x^2 + x"))
        assert render(tree) == "x^2 + x + 3"

    def test_product_coefficient_first(self):
        """The coefficient moves to the front."""
        tree = sort_args(E("x * 2"))
        assert tree == Operator('*', [Constant(2), Symbol('x')])
        assert render(tree) == "2x"

    def test_stable_for_ties(self):
        """Terms of equal degree keep their order."""
        tree = sort_args(E("y + x"))
        assert render(tree) == "y + x"

    def test_polynomial_degree(self):
        """Degrees add across a product."""
        assert polynomial_degree(E("2x^3")) == 3
        assert polynomial_degree(E("x y")) == 2
        assert polynomial_degree(E("x/2")) == 1
        assert polynomial_degree(Constant(Fraction(1, 2))) == 0


class TestUnsupported:
    """Tests for detecting trees the rules cannot handle."""

    def test_equation_unsupported(self):
        """Equations are not supported."""
        assert has_unsupported_nodes(parse("x = 2"))

    def test_foreign_object_unsupported(self):
        """Objects that are not nodes are not supported."""
        assert has_unsupported_nodes("x + 1")

    def test_regular_tree_supported(self):
        """Ordinary expressions are supported."""
        assert not has_unsupported_nodes(E("sqrt(x) + 2/3"))
