"""
Monkey Value Model
Runtime values as tagged dictionaries, plus their textual rendering
"""

from typing import Any, Callable, Dict, List, Optional


# ============================================================================
# VALUE TYPES
# ============================================================================

INTEGER = "INTEGER"
STRING = "STRING"
BOOLEAN = "BOOLEAN"
ARRAY = "ARRAY"
FUNCTION = "FUNCTION"
BUILTIN = "BUILTIN"
NULL_TYPE = "NULL"
RETURN_VALUE = "RETURN_VALUE"
ERROR = "ERROR"

INT64_MIN = -2 ** 63
INT64_MAX = 2 ** 63 - 1


# ============================================================================
# DATA STRUCTURES (Tagged Dictionaries)
# ============================================================================

def make_value(value: Any, type_name: str) -> Dict:
  """Create a runtime value"""
  return {
      'type': type_name,
      'value': value
  }


def make_integer(value: int) -> Dict:
  return make_value(value, INTEGER)


def make_string(value: str) -> Dict:
  return make_value(value, STRING)


def make_array(elements: List[Dict]) -> Dict:
  return make_value(list(elements), ARRAY)


def make_function(params: List[str], body: Any, closure_env: Dict) -> Dict:
  """Create a function value closing over the environment it was defined in"""
  return {
      'type': FUNCTION,
      'params': params,
      'body': body,
      'closure_env': closure_env
  }


def make_builtin(name: str, func: Callable[[List[Dict]], Dict]) -> Dict:
  """Create a built-in function value wrapping a native callable"""
  return {
      'type': BUILTIN,
      'name': name,
      'func': func
  }


def make_return_value(value: Dict) -> Dict:
  """Wrap the operand of a `return` so blocks can stop unwinding early"""
  return make_value(value, RETURN_VALUE)


def make_error(message: str) -> Dict:
  return {
      'type': ERROR,
      'message': message
  }


# Shared singletons; never mutate them
TRUE = make_value(True, BOOLEAN)
FALSE = make_value(False, BOOLEAN)
NULL = make_value(None, NULL_TYPE)


def make_boolean(value: bool) -> Dict:
  return TRUE if value else FALSE


# ============================================================================
# PREDICATES
# ============================================================================

def is_error(value: Optional[Dict]) -> bool:
  return value is not None and value['type'] == ERROR


def is_sentinel(value: Optional[Dict]) -> bool:
  """True for values that must stop block evaluation and propagate"""
  return value is not None and value['type'] in (RETURN_VALUE, ERROR)


def is_truthy(value: Dict) -> bool:
  """Truthiness used by `!`: only false and null are falsy"""
  if value['type'] == NULL_TYPE:
    return False
  if value['type'] == BOOLEAN:
    return value['value']
  return True


def unwrap_return_value(value: Dict) -> Dict:
  if value['type'] == RETURN_VALUE:
    return value['value']
  return value


# ============================================================================
# RENDERING
# ============================================================================

def inspect(value: Dict) -> str:
  """Render a value the way the shell prints it"""
  value_type = value['type']

  if value_type == INTEGER:
    return str(value['value'])
  elif value_type == STRING:
    return value['value']
  elif value_type == BOOLEAN:
    return "true" if value['value'] else "false"
  elif value_type == ARRAY:
    return "[" + ", ".join(inspect(elem) for elem in value['value']) + "]"
  elif value_type == FUNCTION:
    return f"fn({', '.join(value['params'])}) {{ ... }}"
  elif value_type == BUILTIN:
    return "[builtin function]"
  elif value_type == NULL_TYPE:
    return "null"
  elif value_type == RETURN_VALUE:
    return inspect(value['value'])
  elif value_type == ERROR:
    return value['message']
  return f"<{value_type}>"
