"""
scopelang - Command line entry point
Runs a source file, or starts a REPL when no file is given
"""

import sys
import logging
from dataclasses import dataclass
from typing import List, Optional

from termcolor import colored

from . import __version__
from .lexer import tokenize
from .parser import Parser
from .interpreter import EvalError, format_scope, run
from .values import format_value
from .ast_nodes import dump_tree

ERROR = "red"

@dataclass
class Options:
    show_tokens: bool = False
    show_ast: bool = False
    show_scopes: bool = False
    verbose: bool = False
    max_depth: Optional[int] = None
    file: Optional[str] = None

class UsageError(Exception):
    pass


def report(kind: str, message: str):
    """Print a coloured error line to stderr"""
    print(colored(f"{kind}: ", ERROR, attrs=["bold"]) + message, file=sys.stderr)

def print_scope(depth: int, bindings):
    print(f"{depth - 1} -> {format_scope(bindings)}")

def run_source(source: str, options: Options, echo: bool = False) -> bool:
    """Run source through the whole pipeline, returns False if any error was reported"""
    tokens, errors = tokenize(source)
    if options.show_tokens:
        for token in tokens:
            print(token)

    parser = Parser(tokens, options.max_depth)
    tree = parser.parse()
    errors = errors + parser.get_errors()
    if options.show_ast:
        print(dump_tree(tree))

    if errors:
        for error in errors:
            report("syntax error", error)
        return False

    try:
        result = run(tree, on_scope_exit=print_scope if options.show_scopes else None)
    except EvalError as e:
        report("runtime error", str(e))
        return False

    if echo and result is not None:
        print(format_value(result))
    return True

def run_file(filepath: str, options: Options) -> int:
    """Execute a source file"""
    try:
        with open(filepath, 'r', encoding='utf-8') as f:
            source = f.read()
    except OSError as e:
        report("error", f"could not read {filepath}: {e.strerror}")
        return 1

    return 0 if run_source(source, options) else 1

def is_balanced(source: str) -> bool:
    """Whether every '(' typed so far has been closed"""
    tokens, __ = tokenize(source)
    depth = 0
    for token in tokens:
        if token.text == '(':
            depth += 1
        elif token.text == ')':
            depth -= 1
    return depth <= 0

def run_repl(options: Options) -> int:
    """Interactive REPL"""
    print(f"scopelang {__version__} - Type 'exit' or Ctrl+D to quit")

    buffer = []

    while True:
        try:
            line = input("... " if buffer else ">>> ")

            if not buffer and line.strip() == "exit":
                break

            buffer.append(line)
            source = '\n'.join(buffer)
            if not is_balanced(source):
                continue
            buffer = []

            if source.strip():
                run_source(source, options, echo=True)

        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("\nInterrupted")
            buffer = []

    return 0

def show_help():
    print(f"""scopelang {__version__} - a small scoped scripting language

Usage:
  scopelang [options] [file]     Run a source file, or start the REPL

Options:
  --tokens          Print the token stream
  --ast             Print the syntax tree
  --scopes          Print every scope as it is closed
  --max-depth N     Maximum block nesting accepted by the parser
  --verbose         Log pipeline internals to stderr
  --help            Show this help
  --version         Show version
""")

def parse_args(args: List[str]) -> Options:
    options = Options()
    args = list(args)
    while args:
        arg = args.pop(0)
        if arg == '--tokens':
            options.show_tokens = True
        elif arg == '--ast':
            options.show_ast = True
        elif arg == '--scopes':
            options.show_scopes = True
        elif arg == '--verbose':
            options.verbose = True
        elif arg == '--max-depth':
            try:
                options.max_depth = int(args.pop(0), 10)
            except (IndexError, ValueError):
                raise UsageError("--max-depth expects a positive integer") from None
            if options.max_depth < 1:
                raise UsageError("--max-depth expects a positive integer")
        elif arg.startswith('-'):
            raise UsageError(f"Unknown option: {arg}")
        elif options.file is None:
            options.file = arg
        else:
            raise UsageError(f"Unexpected argument: {arg}")
    return options

def main(argv: Optional[List[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv

    if args and args[0] in ('--help', '-h'):
        show_help()
        return 0
    if args and args[0] in ('--version', '-v'):
        print(f"scopelang {__version__}")
        return 0

    try:
        options = parse_args(args)
    except UsageError as e:
        report("error", str(e))
        return 2

    if options.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if options.file is None:
        return run_repl(options)
    return run_file(options.file, options)

if __name__ == "__main__":
    sys.exit(main())
