#!/usr/bin/env python3
"""
stepwise Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    stepwise                            # Start REPL
    stepwise script.steps               # Run script
    stepwise -e "2/(4x)"                # Simplify expression
    stepwise -s -e "1/2 + 1/3"          # Show every step
    stepwise --latex -e "x^3/x"         # LaTeX output
    echo "2 + 2" | stepwise             # Filter mode

Script Format:
    # Comment
    :steps on
    @sqrt-of-zero: (sqrt 0) => 0

    (2x + 5)^8 / (2x + 5)^2
    1 + 1/2

REPL Commands:
    :help              Show help
    :steps on|off      Show every step
    :latex on|off      Print LaTeX instead of text
    :decimal on|off    Keep decimals instead of converting them to fractions
    :rules             List the rule pool
    :quit              Exit
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from . import __version__
from .engine import MAX_STEP_COUNT, Simplifier
from .exceptions import StepwiseError
from .node import Node
from .patterns import load_rules_from_dsl
from .render import LINEAR, TYPESET, render

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False


class StepwiseCompleter:
    """Tab completer for the stepwise REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":steps", ":latex", ":decimal", ":rules",
    ]

    TOGGLE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'StepwiseREPL'):
        self.repl = repl
        self.matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)

        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> list:
        line = line.lstrip()

        if line.startswith((":steps ", ":latex ", ":decimal ")):
            return [t for t in self.TOGGLE_OPTIONS if t.startswith(text)]

        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]

        return []


def _toggle(current: bool, arg: str) -> bool:
    arg = arg.lower()
    if arg in ("on", "true", "1"):
        return True
    if arg in ("off", "false", "0"):
        return False
    return not current


class StepwiseREPL:
    """Interactive REPL for stepwise."""

    def __init__(self, simplifier: Optional[Simplifier] = None):
        self.simplifier = simplifier if simplifier is not None else Simplifier()
        self.show_steps = False
        self.latex = False
        self.allow_decimal = False
        self.debug = False
        self.running = True

        if HAS_READLINE:
            self.history_file = Path.home() / ".stepwise_history"
            try:
                readline.read_history_file(self.history_file)
            except OSError:
                pass
            readline.set_history_length(1000)

            self.completer = StepwiseCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")
            readline.set_completer_delims(" \t\n")

    def save_history(self):
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError:
                pass

    @property
    def expression_ctx(self) -> Dict[str, bool]:
        return {"allow_decimal": self.allow_decimal}

    def show(self, node: Node) -> str:
        dialect = TYPESET if self.latex else LINEAR
        return render(node, dialect, self.simplifier.show_plus_minus)

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "steps":
            self.show_steps = _toggle(self.show_steps, arg)
            return f"Steps {'shown' if self.show_steps else 'hidden'}"

        elif cmd == "latex":
            self.latex = _toggle(self.latex, arg)
            return f"LaTeX output {'enabled' if self.latex else 'disabled'}"

        elif cmd == "decimal":
            self.allow_decimal = _toggle(self.allow_decimal, arg)
            return f"Decimals {'kept' if self.allow_decimal else 'converted to fractions'}"

        elif cmd == "rules":
            return "\n".join(repr(r) for r in self.simplifier)

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        return """stepwise REPL Commands:
  :help              Show this help
  :steps on|off      Show every step
  :latex on|off      Print LaTeX instead of text
  :decimal on|off    Keep decimals instead of converting them to fractions
  :rules             List the rule pool
  :quit              Exit

Syntax:
  @name: (pattern) => (skeleton)           Add a pattern rule
  @name[priority]: (pattern) => (skeleton) Rule with priority
  2x + 3/4                                 Simplify an expression
"""

    def simplify(self, text: str) -> str:
        """Simplify text and format the result (or every step)."""
        if not self.show_steps:
            result = self.simplifier.step_through(
                text, expression_ctx=self.expression_ctx, debug=self.debug)
            return self.show(result)

        trace = self.simplifier.trace(text, self.expression_ctx, self.debug)
        lines = [self.show(trace.initial)]
        for i, step in enumerate(trace.steps, 1):
            lines.append(f"  {i}. {step.change_type}: {self.show(step.root_node)}")
            for j, sub in enumerate(step.substeps, 1):
                lines.append(f"       {i}.{j} {sub.change_type}: {self.show(sub.root_node)}")
        lines.append(f"= {self.show(trace.final)}")
        return "\n".join(lines)

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()

        if not line or line.startswith("#"):
            return None

        if line.startswith(":"):
            return self.handle_command(line)

        try:
            if "=>" in line:
                rules = load_rules_from_dsl(line)
                for r in rules:
                    self.simplifier.add_rule(r)
                return f"Added {len(rules)} rule(s)"
            return self.simplify(line)
        except StepwiseError as e:
            return f"Error: {e}"

    def run(self):
        """Run the REPL loop."""
        print("stepwise - step-by-step expression simplifier")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                line = input("stepwise> ")
                result = self.process_line(line)
                if result:
                    print(result)
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print()
                continue

        self.save_history()


class ScriptRunner:
    """Runs stepwise scripts, single expressions and piped input."""

    def __init__(self, repl: Optional[StepwiseREPL] = None):
        self.repl = repl if repl is not None else StepwiseREPL()

    def _emit(self, result: Optional[str]) -> int:
        if not result:
            return 0
        if result.startswith("Error"):
            print(result, file=sys.stderr)
            return 1
        print(result)
        return 0

    def run_script(self, path: Path) -> int:
        """
        Run a script file.

        Returns:
            Exit code (0 for success)
        """
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1

        for lineno, line in enumerate(lines, 1):
            result = self.repl.process_line(line)
            if result and result.startswith(("Error", "Unknown")):
                print(f"{path}:{lineno}: {result}", file=sys.stderr)
                return 1
            if result and not line.strip().startswith(":"):
                print(result)
        return 0

    def run_expression(self, text: str) -> int:
        """
        Simplify a single expression.

        Returns:
            Exit code (0 for success)
        """
        return self._emit(self.repl.process_line(text))

    def run_stdin(self) -> int:
        """
        Simplify each line read from stdin.

        Returns:
            Exit code (0 for success, 1 if any line failed)
        """
        code = 0
        for line in sys.stdin:
            code = max(code, self._emit(self.repl.process_line(line)))
        return code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stepwise",
        description="stepwise - step-by-step expression simplifier",
        epilog="Examples:\n"
               "  stepwise                        Start REPL\n"
               "  stepwise script.steps           Run script\n"
               "  stepwise -e '2/(4x)'            Simplify expression\n"
               "  stepwise -s -e '1/2 + 1/3'      Show every step\n"
               "  echo '2 + 2' | stepwise         Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Simplify a single expression"
    )

    parser.add_argument(
        "-s", "--steps",
        action="store_true",
        help="Print every step"
    )

    parser.add_argument(
        "--latex",
        action="store_true",
        help="Print LaTeX instead of text"
    )

    parser.add_argument(
        "--show-plus-minus",
        action="store_true",
        help="Print 'x + -1' rather than 'x - 1'"
    )

    parser.add_argument(
        "--allow-decimal",
        action="store_true",
        help="Keep decimals instead of converting them to fractions"
    )

    parser.add_argument(
        "--max-steps",
        type=int,
        default=MAX_STEP_COUNT,
        help=f"Cap on rewrite steps per expression (default {MAX_STEP_COUNT})"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Log every step as it is applied"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    simplifier = Simplifier(max_steps=args.max_steps, show_plus_minus=args.show_plus_minus)
    repl = StepwiseREPL(simplifier)
    repl.show_steps = args.steps
    repl.latex = args.latex
    repl.allow_decimal = args.allow_decimal
    repl.debug = args.debug
    runner = ScriptRunner(repl)

    if args.script:
        sys.exit(runner.run_script(Path(args.script)))

    elif args.expr:
        sys.exit(runner.run_expression(args.expr))

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())

    else:
        repl.run()


if __name__ == "__main__":
    main()
