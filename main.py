"""
Monkey Programming Language - Main Entry Point
Script runner and interactive read-eval-print loop
"""

import sys
import argparse
import atexit
import os
from typing import List, Optional

# Readline support for history and auto-completion
try:
  import readline
  READLINE_AVAILABLE = True
except ImportError:
  READLINE_AVAILABLE = False

from lexer import tokenize
from parsing import create_parser, create_debug_parser, parse_file, pretty_print_ast
from interpreter import create_interpreter, Evaluator, DEFAULT_MAX_DEPTH
from objects import inspect, is_error, NULL_TYPE
from error_handling import MonkeyLexError, MonkeyParseError, format_parse_errors
from tokens import KEYWORDS
from stdlib import list_builtin_functions


VERSION = "Monkey v0.1.0"
PROMPT = ">> "


def create_arg_parser() -> argparse.ArgumentParser:
  """Create command line argument parser"""
  parser = argparse.ArgumentParser(
      description='Monkey Programming Language - tree-walking interpreter',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog="""
Examples:
  %(prog)s script.mk              # Run a Monkey script
  %(prog)s -i                     # Interactive mode
  %(prog)s --tokens script.mk     # Show the token stream
  %(prog)s --parse script.mk      # Parse and show the AST
  %(prog)s --debug script.mk      # Run with debug output
        """
  )

  parser.add_argument(
      'script',
      nargs='?',
      help='Monkey script file to execute'
  )

  parser.add_argument(
      '-i', '--interactive',
      action='store_true',
      help='Start interactive mode (after running the script, if one is given)'
  )

  parser.add_argument(
      '--tokens',
      action='store_true',
      help='Tokenize file and show tokens (for debugging)'
  )

  parser.add_argument(
      '--parse',
      action='store_true',
      help='Parse file and show AST (for debugging)'
  )

  parser.add_argument(
      '--debug',
      action='store_true',
      help='Enable debug output for all stages'
  )

  parser.add_argument(
      '--max-depth',
      type=int,
      default=DEFAULT_MAX_DEPTH,
      help=f'Maximum nested function calls before evaluation stops (default: {DEFAULT_MAX_DEPTH})'
  )

  parser.add_argument(
      '--version',
      action='version',
      version=VERSION
  )

  return parser


def read_script(script_path: str) -> str:
  """Read a script, exiting with a message on I/O failure"""
  try:
    with open(script_path, 'r', encoding='utf-8') as f:
      return f.read()
  except FileNotFoundError:
    print(f"Error: Script file '{script_path}' not found")
    sys.exit(1)
  except UnicodeDecodeError as e:
    print(f"Error: Cannot decode file '{script_path}': {e}")
    print(f"  Hint: Make sure the file is a text file with UTF-8 encoding")
    sys.exit(1)


def tokenize_file(script_path: str) -> None:
  """Show the token stream of a script"""
  source = read_script(script_path)
  try:
    for token in tokenize(source):
      print(f"{token.line:4d}:{token.column:<4d} {token}")
  except MonkeyLexError as e:
    print(f"Lex error at line {e.line}, column {e.column}: {e.message}")
    sys.exit(1)


def parse_script_file(script_path: str, debug: bool = False) -> None:
  """Parse a script and show the AST"""
  try:
    program = parse_file(script_path, debug)
  except MonkeyParseError as e:
    print(e)
    sys.exit(1)

  print(f"Parsed {len(program)} top-level statements:")
  print("=" * 50)
  for i, stmt in enumerate(program.statements, 1):
    print(f"\nStatement {i}: {stmt}")
    print(pretty_print_ast(stmt), end='')


def run_script_file(script_path: str, debug: bool = False, max_depth: int = DEFAULT_MAX_DEPTH,
                    exit_on_error: bool = True) -> Evaluator:
  """Run a script, print its final value and return the evaluator holding its bindings"""
  try:
    program = parse_file(script_path, debug)
  except MonkeyParseError as e:
    print(e)
    sys.exit(1)

  evaluator = create_interpreter(debug=debug, max_depth=max_depth)
  result = evaluator.eval(program)

  if is_error(result):
    print(f"Runtime error in '{script_path}': {inspect(result)}")
    if exit_on_error:
      sys.exit(1)
  elif result['type'] != NULL_TYPE:
    print(inspect(result))

  return evaluator


def eval_line(line: str, evaluator: Evaluator, debug: bool = False) -> Optional[str]:
  """
  Evaluate one line of input against a session evaluator.
  Returns the text to print, or None when there is nothing to show.
  """
  parser = create_debug_parser(line) if debug else create_parser(line)
  program = parser.parse()
  errors = parser.get_errors()

  if errors:
    return format_parse_errors(errors).rstrip("\n")

  result = evaluator.eval(program)
  if result['type'] == NULL_TYPE:
    return None
  return inspect(result)


def completion_words() -> List[str]:
  return sorted(KEYWORDS) + list_builtin_functions() + ["exit"]


def setup_readline():
  """Setup readline with history and auto-completion"""
  if not READLINE_AVAILABLE:
    return

  history_file = os.path.expanduser("~/.monkey_history")
  try:
    readline.read_history_file(history_file)
  except OSError:
    pass  # First run, no history yet

  readline.set_history_length(1000)

  completions = completion_words()

  def completer(text, state):
    options = [word for word in completions if word.startswith(text)]
    if state < len(options):
      return options[state]
    return None

  readline.set_completer(completer)
  readline.parse_and_bind("tab: complete")
  atexit.register(readline.write_history_file, history_file)


def run_interactive_mode(debug: bool = False, max_depth: int = DEFAULT_MAX_DEPTH,
                         evaluator: Optional[Evaluator] = None) -> None:
  """Run the read-eval-print loop until exit or end of input"""
  print("Hello! This is the Monkey programming language!")
  print("Feel free to type in commands ('exit' to quit)")
  if debug:
    print("Debug mode enabled")
  print()

  setup_readline()
  if evaluator is None:
    evaluator = create_interpreter(debug=debug, max_depth=max_depth)

  while True:
    try:
      line = input(PROMPT)
    except (KeyboardInterrupt, EOFError):
      print("\nGoodbye!")
      break

    if line.strip() == "exit":
      break
    if not line.strip():
      continue

    output = eval_line(line, evaluator, debug)
    if output is not None:
      print(output)


def main() -> None:
  """Main entry point for Monkey"""
  arg_parser = create_arg_parser()
  args = arg_parser.parse_args()

  if not args.script:
    run_interactive_mode(debug=args.debug, max_depth=args.max_depth)
    return

  if args.tokens:
    tokenize_file(args.script)
  elif args.parse:
    parse_script_file(args.script, debug=args.debug)
  elif args.interactive:
    # Keep the script's bindings available at the prompt
    evaluator = run_script_file(args.script, debug=args.debug, max_depth=args.max_depth,
                                exit_on_error=False)
    run_interactive_mode(debug=args.debug, max_depth=args.max_depth, evaluator=evaluator)
  else:
    run_script_file(args.script, debug=args.debug, max_depth=args.max_depth)


if __name__ == "__main__":
  main()
