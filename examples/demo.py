#!/usr/bin/env python3
"""
stepwise Feature Demonstration

This script walks through the major features of the stepwise library.
"""

from stepwise import (
    Simplifier, E, render, rule, Status, ChangeTypes,
    load_rules_from_dsl, TYPESET,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_steps():
    """Show every step of a simplification."""
    section("Step by Step")

    simplifier = Simplifier()
    for step in simplifier.steps("(2x + 5)^8 / (2x + 5)^2"):
        print(f"  {step.change_type:<22} {step.render()}")


def demo_substeps():
    """Show the substeps of adding fractions."""
    section("Substeps")

    trace = Simplifier().trace("1/2 + 1/3")
    print(trace.format("verbose"))


def demo_simplify():
    """Simplify a handful of expressions."""
    section("Simplification")

    simplifier = Simplifier()
    examples = [
        "2/(4x)",
        "(4 x^2) / (5 x^2)",
        "1 + 1/2",
        "2 + x + 3",
        "x * 1 + 0",
        "-(-x)",
        "2.5 + 1.5",
    ]

    for text in examples:
        print(f"  {text:<20} => {render(simplifier.simplify(text))}")


def demo_pattern_rules():
    """Add rules written in the pattern language."""
    section("Pattern Rules")

    simplifier = Simplifier()
    for r in load_rules_from_dsl('''
        # like terms
        @double "x + x = 2x": (+ ?x ?x) => (* 2 :x)
    '''):
        simplifier.add_rule(r)

    result, trace = simplifier("y + y", trace=True)
    print(f"  y + y => {render(result)}")
    print(f"  changes: {trace.format('rules')}")


def demo_function_rules():
    """Add a rule written as a Python function."""
    section("Function Rules")

    @rule("square-of-square", priority=10)
    def square_of_square(node, expression_ctx):
        """(x^2)^2 = x^4"""
        if getattr(node, 'op', None) != '^':
            return None
        base, exponent = node.args
        if getattr(base, 'op', None) != '^':
            return None
        inner_base, inner_exponent = base.args
        new_node = E.op('^', inner_base, E.op('*', inner_exponent, exponent))
        return Status.node_changed("MULTIPLY_EXPONENTS", node, new_node)

    simplifier = Simplifier().add_rule(square_of_square)
    print(f"  {square_of_square!r}")
    print(simplifier.trace("(x^2)^3").format("chain"))


def demo_rendering():
    """Plain text and LaTeX output."""
    section("Rendering")

    simplifier = Simplifier()
    for text in ["2/3 x^2 + 1", "x^3/x", "1/(2x)"]:
        result = simplifier.simplify(text)
        print(f"  {render(result):<16} {render(result, TYPESET)}")

    print(f"  {render(E('x - 1'), show_plus_minus=True)}")


def demo_decimals():
    """Keep decimals with the allow_decimal option."""
    section("Decimals")

    simplifier = Simplifier()
    for ctx in ({}, {"allow_decimal": True}):
        result = simplifier.simplify("0.5 + x", ctx)
        print(f"  {ctx!s:<24} {render(result)}")


def demo_trace_formats():
    """Trace output styles."""
    section("Trace Formats")

    trace = Simplifier().trace("2.5 + 1.5")
    for style in ("compact", "rules", "chain"):
        print(f"  [{style}]")
        print(trace.format(style))
    print(f"  {trace.summary()}")
    print(f"  {trace.change_counts()[ChangeTypes.CONVERT_DECIMAL_TO_FRACTION]} decimals converted")


def main():
    demo_steps()
    demo_substeps()
    demo_simplify()
    demo_pattern_rules()
    demo_function_rules()
    demo_rendering()
    demo_decimals()
    demo_trace_formats()


if __name__ == "__main__":
    main()
