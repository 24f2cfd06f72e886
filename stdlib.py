"""
Monkey Standard Library
Built-in functions, resolved by name after the environment chain.
Every built-in takes the evaluated argument list and returns a value;
misuse produces an ERROR value rather than an exception.
"""

from typing import Dict, List, Optional

from objects import (
    make_integer, make_array, make_builtin, inspect,
    NULL, STRING, ARRAY
)
from utilities import (
    validate_builtin_args,
    builtin_arity_error,
    unsupported_argument_error
)


# ============================================================================
# STRING / ARRAY FUNCTIONS
# ============================================================================

def monkey_len(args: List[Dict]) -> Dict:
  """Length of a string or array"""
  if len(args) != 1:
    return builtin_arity_error(1, len(args))

  arg = args[0]
  if arg['type'] in (STRING, ARRAY):
    return make_integer(len(arg['value']))
  return unsupported_argument_error("len", arg)


def monkey_first(args: List[Dict]) -> Dict:
  """First element of an array, null when empty"""
  error = validate_builtin_args("first", args, [ARRAY])
  if error:
    return error

  elements = args[0]['value']
  return elements[0] if elements else NULL


def monkey_last(args: List[Dict]) -> Dict:
  """Last element of an array, null when empty"""
  error = validate_builtin_args("last", args, [ARRAY])
  if error:
    return error

  elements = args[0]['value']
  return elements[-1] if elements else NULL


def monkey_rest(args: List[Dict]) -> Dict:
  """New array without the first element, null when empty"""
  error = validate_builtin_args("rest", args, [ARRAY])
  if error:
    return error

  elements = args[0]['value']
  if not elements:
    return NULL
  return make_array(elements[1:])


def monkey_push(args: List[Dict]) -> Dict:
  """New array with a value appended; the argument array is left untouched"""
  error = validate_builtin_args("push", args, [ARRAY, None])
  if error:
    return error

  return make_array(args[0]['value'] + [args[1]])


# ============================================================================
# PRINT FUNCTIONS
# ============================================================================

def monkey_puts(args: List[Dict]) -> Dict:
  """Print each argument on its own line"""
  for arg in args:
    print(inspect(arg))
  return NULL


# ============================================================================
# REGISTRY
# ============================================================================

BUILTIN_FUNCTIONS: Dict[str, Dict] = {
    "len": make_builtin("len", monkey_len),
    "first": make_builtin("first", monkey_first),
    "last": make_builtin("last", monkey_last),
    "rest": make_builtin("rest", monkey_rest),
    "push": make_builtin("push", monkey_push),
    "puts": make_builtin("puts", monkey_puts),
}


def get_builtin_function(name: str) -> Optional[Dict]:
  """Get built-in function by name"""
  return BUILTIN_FUNCTIONS.get(name)


def list_builtin_functions() -> List[str]:
  """List all available built-in functions"""
  return list(BUILTIN_FUNCTIONS.keys())
