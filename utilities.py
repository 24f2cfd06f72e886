"""
Utilities module for the Monkey interpreter
Runtime error builders and the operator tables shared by the evaluator
"""

from typing import Callable, Dict, List, Optional
import operator

from objects import make_error, make_integer, make_boolean, make_string, INT64_MIN, INT64_MAX


# ==================== ERROR MESSAGE BUILDERS ====================

def type_mismatch_error(op: str, left: Dict, right: Dict) -> Dict:
  """
  Error for an infix operator applied to operands of different types

  Examples:
    type_mismatch_error("+", <INTEGER>, <BOOLEAN>) -> "type mismatch: INTEGER + BOOLEAN"
  """
  return make_error(f"type mismatch: {left['type']} {op} {right['type']}")


def unknown_prefix_operator_error(op: str, right: Dict) -> Dict:
  return make_error(f"unknown operator: {op}{right['type']}")


def unknown_infix_operator_error(op: str, left: Dict, right: Dict) -> Dict:
  return make_error(f"unknown operator: {left['type']} {op} {right['type']}")


def arity_error(expected: int, got: int) -> Dict:
  """Error for a user-defined function called with the wrong argument count"""
  return make_error(f"wrong number of arguments: want={expected}, got={got}")


def builtin_arity_error(expected: int, got: int) -> Dict:
  """Error for a built-in called with the wrong argument count"""
  return make_error(f"wrong number of arguments. got={got}, want={expected}")


def unsupported_argument_error(func_name: str, value: Dict) -> Dict:
  return make_error(f"argument to `{func_name}` not supported, got {value['type']}")


def argument_type_error(func_name: str, expected: str, value: Dict) -> Dict:
  return make_error(f"argument to `{func_name}` must be {expected}, got {value['type']}")


# ==================== VALIDATION UTILITIES ====================

def validate_builtin_args(
  func_name: str,
  args: List[Dict],
  expected_types: List[Optional[str]]
) -> Optional[Dict]:
  """
  Check a built-in's arguments against the expected type tags

  Returns:
    An ERROR value describing the first problem, or None when the
    arguments are acceptable
  """
  if len(args) != len(expected_types):
    return builtin_arity_error(len(expected_types), len(args))

  for arg, expected in zip(args, expected_types):
    if expected is not None and arg['type'] != expected:
      return argument_type_error(func_name, expected, arg)

  return None


# ==================== INTEGER ARITHMETIC ====================

def truncating_divide(x: int, y: int) -> int:
  """Integer division rounding toward zero"""
  quotient = abs(x) // abs(y)
  return quotient if (x < 0) == (y < 0) else -quotient


def fits_int64(value: int) -> bool:
  return INT64_MIN <= value <= INT64_MAX


# ==================== BINARY OPERATION FACTORIES ====================

def binary_arithmetic_op(
  op: Callable[[int, int], int],
  symbol: str
) -> Callable[[Dict, Dict], Dict]:
  """
  Factory for integer arithmetic on INTEGER values

  Results outside the signed 64-bit range become ERROR values.

  Examples:
    add = binary_arithmetic_op(operator.add, "+")
    add(make_integer(1), make_integer(2)) -> INTEGER 3
  """
  def arithmetic(x: Dict, y: Dict) -> Dict:
    if symbol == "/" and y['value'] == 0:
      return make_error("division by zero")
    result = op(x['value'], y['value'])
    if not fits_int64(result):
      return make_error(f"integer overflow: {x['value']} {symbol} {y['value']}")
    return make_integer(result)

  return arithmetic


def binary_comparison_op(
  op: Callable[[object, object], bool]
) -> Callable[[Dict, Dict], Dict]:
  """
  Factory for comparisons yielding BOOLEAN values

  Examples:
    lt = binary_comparison_op(operator.lt)
    lt(make_integer(1), make_integer(2)) -> TRUE
  """
  def comparison(x: Dict, y: Dict) -> Dict:
    return make_boolean(op(x['value'], y['value']))

  return comparison


INTEGER_OPERATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    '+': binary_arithmetic_op(operator.add, '+'),
    '-': binary_arithmetic_op(operator.sub, '-'),
    '*': binary_arithmetic_op(operator.mul, '*'),
    '/': binary_arithmetic_op(truncating_divide, '/'),
    '<': binary_comparison_op(operator.lt),
    '>': binary_comparison_op(operator.gt),
    '==': binary_comparison_op(operator.eq),
    '!=': binary_comparison_op(operator.ne),
}

STRING_OPERATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    '+': lambda x, y: make_string(x["value"] + y["value"]),
    '==': binary_comparison_op(operator.eq),
    '!=': binary_comparison_op(operator.ne),
}

BOOLEAN_OPERATORS: Dict[str, Callable[[Dict, Dict], Dict]] = {
    '==': binary_comparison_op(operator.eq),
    '!=': binary_comparison_op(operator.ne),
}
