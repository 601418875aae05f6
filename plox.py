#!/usr/bin/env python3
"""
plox: a tree-walking interpreter for the Lox language
Usage: plox [options] [script.lox]   (no script, or '-', starts the REPL)
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, TextIO

from config import InterpreterOptions
from diagnostics import ColorMode, DiagnosticFormatter
from errors import LoxError, LoxRuntimeError, StaticErrors
from interpreter import Interpreter
from parser import parse_source
from source_map import source_map_session

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_STATIC_ERROR = 65
EXIT_NO_INPUT = 66
EXIT_RUNTIME_ERROR = 70

@dataclass
class RunResult:
    """Outcome of running one piece of source"""
    exit_code: int
    errors: List[LoxError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.exit_code == EXIT_OK

def run_source(source: str, path: str = "<string>", *, interpreter: Optional[Interpreter] = None,
               options: Optional[InterpreterOptions] = None, output: Optional[TextIO] = None,
               stderr: Optional[TextIO] = None, echo: bool = False) -> RunResult:
    """Lex, parse and run source, reporting any diagnostics to stderr.

    Pass an existing interpreter to keep state between calls (as the REPL does).
    """
    if interpreter is None:
        interpreter = Interpreter(output, options)
    options = interpreter.options
    stderr = stderr if stderr is not None else sys.stderr
    formatter = DiagnosticFormatter(options.color, options.max_errors)

    try:
        program = parse_source(source, path, options.collect_all_diagnostics)
    except StaticErrors as batch:
        logger.debug("%s rejected with %d static error(s)", path, len(batch.errors))
        formatter.emit_errors(batch.errors, stderr)
        return RunResult(EXIT_STATIC_ERROR, batch.errors)

    try:
        interpreter.interpret(program, echo=echo)
    except LoxRuntimeError as error:
        logger.debug("%s failed at runtime: %s", path, error.kind.title)
        formatter.emit_diagnostic(error.diagnostic, stderr)
        return RunResult(EXIT_RUNTIME_ERROR, [error])

    return RunResult(EXIT_OK)

def run_file(path: str, options: Optional[InterpreterOptions] = None,
             output: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> int:
    """Run a Lox program from a file and return the process exit code"""
    stderr = stderr if stderr is not None else sys.stderr
    try:
        with open(path, 'r', encoding='utf-8') as f:
            source = f.read()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug("could not read %s: %s", path, e)
        stderr.write(f"Error: cannot read '{path}': {e}\n")
        return EXIT_NO_INPUT

    return run_source(source, path, options=options, output=output, stderr=stderr).exit_code

def run_repl(options: Optional[InterpreterOptions] = None,
             read_line: Callable[[str], str] = input,
             output: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> int:
    """Run Lox in interactive mode; one interpreter and one source map persist across lines"""
    output = output if output is not None else sys.stdout
    with source_map_session():
        return _repl_loop(Interpreter(output, options), read_line, output, stderr)

def _repl_loop(interpreter: Interpreter, read_line: Callable[[str], str],
               output: TextIO, stderr: Optional[TextIO]) -> int:
    output.write("Lox interactive mode. Type 'exit' or press Ctrl-D to quit.\n")

    while True:
        try:
            line = read_line("> ")
        except EOFError:
            output.write("\n")
            break
        except KeyboardInterrupt:
            output.write("\nUse 'exit' to quit.\n")
            continue

        stripped = line.strip()
        if stripped == "exit":
            break
        if not stripped:
            continue

        # A bare expression may omit its semicolon
        if not stripped.endswith((';', '}')):
            line += ';'

        run_source(line, "<repl>", interpreter=interpreter, stderr=stderr, echo=True)

    return EXIT_OK

def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="plox", description="Run Lox scripts")
    parser.add_argument("script", nargs="?", help="script to run; omit or use '-' for the REPL")
    parser.add_argument("--max-depth", type=int, default=None, metavar="N",
                        help="maximum call depth before a stack overflow is reported")
    parser.add_argument("--catch-runtime-errors", action="store_true", default=None,
                        help="let try/catch handle runtime errors as thrown messages")
    parser.add_argument("--first-error-only", action="store_true",
                        help="stop at the first lexical or syntax error")
    parser.add_argument("--color", choices=[mode.value for mode in ColorMode], default=None,
                        help="colorize diagnostics (default: auto)")
    parser.add_argument("--max-errors", type=int, default=None, metavar="N",
                        help="maximum number of diagnostics to show")
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    parser.add_argument("--log-file", default=None, help="write internal logs to FILE")
    return parser

def configure_logging(verbose: bool, log_file: Optional[str]):
    level = logging.DEBUG if verbose else logging.WARNING
    log_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    if log_file:
        logging.basicConfig(level=level, filename=log_file, filemode="a", format=log_format)
    else:
        logging.basicConfig(level=level, format=log_format)

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point"""
    arg_parser = build_arg_parser()
    args = arg_parser.parse_args(argv)
    configure_logging(args.verbose, args.log_file)

    try:
        options = InterpreterOptions.from_env().with_overrides(
            max_call_depth=args.max_depth,
            catch_runtime_errors=args.catch_runtime_errors,
            collect_all_diagnostics=False if args.first_error_only else None,
            color=ColorMode(args.color) if args.color else None,
            max_errors=args.max_errors,
        )
    except ValueError as e:
        arg_parser.error(str(e))

    logger.debug("options: %s", options)
    if args.script is None or args.script == "-":
        return run_repl(options)

    with source_map_session():
        return run_file(args.script, options)

if __name__ == "__main__":
    sys.exit(main())
