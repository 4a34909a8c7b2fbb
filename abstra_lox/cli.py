"""Command-line driver: runs a script file, or an interactive prompt when no file is given.

Exit statuses follow the sysexits convention: 64 for a bad invocation, 65 when
the script has lexical, syntax or resolution errors, 70 when it stops on a
runtime error.
"""

from __future__ import annotations
import argparse
import cmd
import logging
import sys

from termcolor import colored

from .session import LoxSession, Outcome

logger = logging.getLogger(__name__)

EX_USAGE = 64


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(EX_USAGE, f"{self.prog}: error: {message}\n")


def report_error(text: str):
    print(colored(text, "red"), file=sys.stderr)


class Shell(cmd.Cmd):
    """Interactive Lox prompt. Each line runs in the same session."""
    intro = "Lox interpreter :: Python backend\nPress Ctrl-D to exit."
    prompt = "> "

    def __init__(self, sess: LoxSession, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sess = sess

    def onecmd(self, line):
        if line == "EOF":
            print()
            return True
        if line.strip():
            self.sess.run(line)
        return False

    def emptyline(self):
        """Do not repeat previous command on empty line."""
        return ""


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog="abstra-lox", description="Run a Lox script or start an interactive prompt.")
    parser.add_argument("script", nargs="?", help="path of the script to run")
    parser.add_argument("--max-call-depth", type=int, default=200, help="maximum function call nesting depth")
    parser.add_argument("--max-instructions", type=int, default=None, help="maximum loop iterations plus calls per run")
    parser.add_argument("-v", "--verbose", action="store_true", help="log interpreter phases to stderr")
    return parser


def run_file(sess: LoxSession, path: str) -> int:
    with open(path, encoding="utf-8") as f:
        source = f.read()
    outcome = sess.run(source)
    logger.debug("%s finished with %s", path, outcome.name)
    return int(outcome)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    options = dict(
        max_call_depth=args.max_call_depth,
        max_instructions=args.max_instructions,
        write=print,
        report=report_error,
    )
    if args.script is not None:
        return run_file(LoxSession(**options), args.script)

    Shell(LoxSession(repl=True, **options)).cmdloop()
    return int(Outcome.OK)
