#!/usr/bin/env python3
"""
compiler.py
Driver for the mini language front end (lexer -> one-pass syntax-directed
translation -> three-address code, plus an optional run of that code).

Usage:
    python compiler.py program.src --out-dir out --run

Writes tokens.txt, symbols.txt, intermediate.txt and errors.txt into the
output directory. Like the classic two-pass setup, a lexical-only pass runs
first and translation is skipped when it finds errors.
"""

import argparse
import logging
import sys
from pathlib import Path

from diagnostics import DiagnosticSink
from ir import IRExecutionError, execute_ir
from lexer import Lexer, tokenize
from translator import translate

logger = logging.getLogger(__name__)


# =====================================================
# COMPILER DRIVER
# =====================================================
def compile_source(code, run=False, stop_on_lexical=True):
    result = {
        'tokens': [],
        'symbols': [],
        'symbol_table': '',
        'tac': [],
        'output': [],
        'errors': [],
        'diagnostics': [],
        'translated': False,
    }

    # pass 1: lexical only
    lex_errors = DiagnosticSink()
    result['tokens'] = tokenize(code, lex_errors)
    if lex_errors.has_errors() and stop_on_lexical:
        result['diagnostics'] = list(lex_errors)
        result['errors'] = lex_errors.messages()
        logger.info("%d lexical errors, translation skipped", len(lex_errors))
        return result

    # pass 2: translation, with a fresh lexer
    diagnostics = DiagnosticSink()
    symbols, ir = translate(Lexer(code, diagnostics), diagnostics)
    result['translated'] = True
    result['symbols'] = list(symbols.history)
    result['symbol_table'] = symbols.dump()
    result['tac'] = list(ir)
    result['diagnostics'] = list(diagnostics)
    result['errors'] = diagnostics.messages()
    logger.info("%d tokens, %d symbols, %d instructions, %d diagnostics",
                len(result['tokens']), len(result['symbols']), len(ir), len(diagnostics))

    if run and not diagnostics.has_errors():
        try:
            result['output'] = [str(v) for v in execute_ir(ir)]
        except IRExecutionError as e:
            result['errors'] = [f"runtime error: {e}"]
    return result


def write_outputs(result, out_dir):
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    files = {
        'tokens.txt': '\n'.join(str(t) for t in result['tokens']),
        'errors.txt': '\n'.join(result['errors']),
    }
    if result['translated']:
        files['symbols.txt'] = result['symbol_table']
        files['intermediate.txt'] = ''.join(f"{instr}\n" for instr in result['tac'])
    for name, content in files.items():
        (out / name).write_text(content, encoding='utf-8')
        logger.info("wrote %s", out / name)
    return sorted(files)


# =====================================================
# SAMPLE PROGRAM
# =====================================================
SAMPLE_PROGRAM = r'''
// sample program
program {
    int n;
    int fact;
    n = 5;
    fact = 1;
    while (n > 1) {
        fact = fact * n;
        n = n - 1;
    }
    print(fact);
}
'''


def main(argv=None):
    parser = argparse.ArgumentParser(description="Mini language front end")
    parser.add_argument("source", nargs="?", help="Path to the source file (sample program if omitted)")
    parser.add_argument("--out-dir", default="out", help="Directory for the generated files")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity")
    parser.add_argument("--run", action="store_true", help="Execute the generated code and print its output")
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s %(name)s: %(message)s")

    if args.source:
        try:
            code = Path(args.source).read_text(encoding='utf-8')
        except OSError as e:
            print(f"cannot read {args.source}: {e}", file=sys.stderr)
            return 1
    else:
        code = SAMPLE_PROGRAM

    result = compile_source(code, run=args.run)
    write_outputs(result, args.out_dir)

    if result['errors']:
        print(f"Errors detected. See {Path(args.out_dir) / 'errors.txt'}")
        return 1
    print(f"OK. (tokens.txt, symbols.txt, intermediate.txt in {args.out_dir}/)")
    for line in result['output']:
        print(line)
    return 0


if __name__ == '__main__':
    sys.exit(main())
