"""
Monkey Interpreter - Tree-Walking Evaluator
Walks the AST against a chained environment and produces a single value.

Control flow is carried by data: `return` produces a RETURN_VALUE wrapper and
runtime faults produce ERROR values. Every step that combines sub-results
checks for these sentinels first and hands them upward unchanged.
"""

import sys
from typing import Dict, List, Optional, Tuple

from ast_nodes import (
    Node, Program, BlockStatement, LetStatement, ReturnStatement,
    ExpressionStatement, Identifier, IntegerLiteral, BooleanLiteral,
    StringLiteral, PrefixExpression, InfixExpression, IfExpression,
    FunctionLiteral, CallExpression, ArrayLiteral, IndexExpression
)
from objects import (
    make_integer, make_string, make_boolean, make_array, make_function,
    make_return_value, make_error, is_error, is_sentinel, is_truthy,
    unwrap_return_value, NULL, INTEGER, STRING, BOOLEAN, ARRAY, FUNCTION,
    BUILTIN, RETURN_VALUE, INT64_MIN
)
from environment import (
    make_runtime_env, make_enclosed_env, env_lookup_value, env_bind_value,
    env_depth
)
from stdlib import get_builtin_function
from utilities import (
    INTEGER_OPERATORS, STRING_OPERATORS, BOOLEAN_OPERATORS,
    type_mismatch_error, unknown_prefix_operator_error,
    unknown_infix_operator_error, arity_error
)
from parsing import parse_source
from error_handling import MonkeyParseError


# Nested user function calls allowed before evaluation stops
DEFAULT_MAX_DEPTH = 1000

# Python frames one level of Monkey recursion needs, with headroom
FRAMES_PER_CALL = 12

RECURSION_LIMIT_MESSAGE = "maximum recursion depth exceeded"

OPERATOR_TABLES = {
    INTEGER: INTEGER_OPERATORS,
    STRING: STRING_OPERATORS,
    BOOLEAN: BOOLEAN_OPERATORS,
}


def make_execution_context(max_depth: int = DEFAULT_MAX_DEPTH) -> Dict:
  """
  Create the mutable bookkeeping shared by one evaluation.
  `depth` counts active user function calls; the host recursion limit is
  raised so that max_depth calls fit on the Python stack.
  """
  ensure_recursion_limit(max_depth)
  return {
      'max_depth': max_depth,
      'depth': 0
  }


def ensure_recursion_limit(max_depth: int) -> None:
  """Raise (never lower) the interpreter's recursion limit for max_depth calls"""
  needed = max_depth * FRAMES_PER_CALL + 2000
  if sys.getrecursionlimit() < needed:
    sys.setrecursionlimit(needed)


# ============================================================================
# EVALUATION FUNCTIONS
# ============================================================================

def eval_node(node: Node, env: Dict, debug: bool = False, context: Optional[Dict] = None) -> Optional[Dict]:
  """
  Evaluate an AST node in env.
  Statements that bind names (let) yield None; expressions always yield a value.
  """
  if context is None:
    context = make_execution_context()

  if debug:
    print(f"Evaluating: {type(node).__name__} {node}")

  # Statements
  if isinstance(node, ExpressionStatement):
    return eval_node(node.expression, env, debug, context)
  elif isinstance(node, LetStatement):
    return eval_let_statement(node, env, debug, context)
  elif isinstance(node, ReturnStatement):
    value = eval_node(node.value, env, debug, context)
    if is_sentinel(value):
      return value
    return make_return_value(value)
  elif isinstance(node, BlockStatement):
    return eval_block_statement(node, env, debug, context)

  # Literals
  elif isinstance(node, IntegerLiteral):
    return make_integer(node.value)
  elif isinstance(node, BooleanLiteral):
    return make_boolean(node.value)
  elif isinstance(node, StringLiteral):
    return make_string(node.value)

  # Expressions
  elif isinstance(node, Identifier):
    return eval_identifier(node, env)
  elif isinstance(node, PrefixExpression):
    right = eval_node(node.right, env, debug, context)
    if is_sentinel(right):
      return right
    return eval_prefix_expression(node.operator, right)
  elif isinstance(node, InfixExpression):
    left = eval_node(node.left, env, debug, context)
    if is_sentinel(left):
      return left
    right = eval_node(node.right, env, debug, context)
    if is_sentinel(right):
      return right
    return eval_infix_expression(node.operator, left, right)
  elif isinstance(node, IfExpression):
    return eval_if_expression(node, env, debug, context)
  elif isinstance(node, FunctionLiteral):
    return make_function([param.name for param in node.parameters], node.body, env)
  elif isinstance(node, CallExpression):
    return eval_call_expression(node, env, debug, context)
  elif isinstance(node, ArrayLiteral):
    elements, sentinel = eval_expressions(node.elements, env, debug, context)
    if sentinel is not None:
      return sentinel
    return make_array(elements)
  elif isinstance(node, IndexExpression):
    left = eval_node(node.left, env, debug, context)
    if is_sentinel(left):
      return left
    index = eval_node(node.index, env, debug, context)
    if is_sentinel(index):
      return index
    return eval_index_expression(left, index)

  return make_error(f"cannot evaluate node: {type(node).__name__}")


def eval_block_statement(block: BlockStatement, env: Dict, debug: bool = False,
                         context: Optional[Dict] = None) -> Optional[Dict]:
  """
  Evaluate statements in order, keeping the last result.
  A RETURN_VALUE or ERROR stops the block and is returned still wrapped, so an
  enclosing block stops too; only the function call boundary unwraps returns.
  """
  result = None
  for stmt in block.statements:
    result = eval_node(stmt, env, debug, context)
    if is_sentinel(result):
      return result
  return result


def eval_let_statement(node: LetStatement, env: Dict, debug: bool = False,
                       context: Optional[Dict] = None) -> Optional[Dict]:
  value = eval_node(node.value, env, debug, context)
  if is_sentinel(value):
    return value
  env_bind_value(env, node.name.name, value)
  return None


def eval_identifier(node: Identifier, env: Dict) -> Dict:
  """Look up the environment chain first, then the built-ins"""
  value = env_lookup_value(env, node.name)
  if value is not None:
    return value

  builtin = get_builtin_function(node.name)
  if builtin is not None:
    return builtin

  return make_error(f"identifier not found: {node.name}")


def eval_prefix_expression(operator: str, right: Dict) -> Dict:
  if operator == "!":
    return make_boolean(not is_truthy(right))

  if operator == "-":
    if right['type'] != INTEGER:
      return unknown_prefix_operator_error(operator, right)
    if right['value'] == INT64_MIN:
      return make_error(f"integer overflow: -{right['value']}")
    return make_integer(-right['value'])

  return unknown_prefix_operator_error(operator, right)


def eval_infix_expression(operator: str, left: Dict, right: Dict) -> Dict:
  if left['type'] != right['type']:
    return type_mismatch_error(operator, left, right)

  operators = OPERATOR_TABLES.get(left['type'], {})
  op = operators.get(operator)
  if op is None:
    return unknown_infix_operator_error(operator, left, right)
  return op(left, right)


def eval_if_expression(node: IfExpression, env: Dict, debug: bool = False,
                       context: Optional[Dict] = None) -> Dict:
  """Conditions must be BOOLEAN; any other value is an error"""
  condition = eval_node(node.condition, env, debug, context)
  if is_sentinel(condition):
    return condition

  if condition['type'] != BOOLEAN:
    return make_error(f"non-boolean condition: {condition['type']}")

  if condition['value']:
    result = eval_block_statement(node.consequence, env, debug, context)
  elif node.alternative is not None:
    result = eval_block_statement(node.alternative, env, debug, context)
  else:
    return NULL

  return NULL if result is None else result


def eval_expressions(exprs: List[Node], env: Dict, debug: bool = False,
                     context: Optional[Dict] = None) -> Tuple[List[Dict], Optional[Dict]]:
  """
  Evaluate expressions left to right.
  Returns (values, None), or ([], sentinel) as soon as one yields a sentinel.
  """
  values = []
  for expr in exprs:
    value = eval_node(expr, env, debug, context)
    if is_sentinel(value):
      return [], value
    values.append(value)
  return values, None


def eval_call_expression(node: CallExpression, env: Dict, debug: bool = False,
                         context: Optional[Dict] = None) -> Dict:
  function = eval_node(node.function, env, debug, context)
  if is_sentinel(function):
    return function

  args, sentinel = eval_expressions(node.arguments, env, debug, context)
  if sentinel is not None:
    return sentinel

  return apply_function(function, args, debug, context)


def apply_function(function: Dict, args: List[Dict], debug: bool = False,
                   context: Optional[Dict] = None) -> Dict:
  """
  Call a user function or a built-in with already-evaluated arguments.
  Each user function call counts against the context's max_depth.
  """
  if context is None:
    context = make_execution_context()

  if function['type'] == FUNCTION:
    params = function['params']
    if len(params) != len(args):
      return arity_error(len(params), len(args))

    if context['depth'] >= context['max_depth']:
      return make_error(RECURSION_LIMIT_MESSAGE)

    call_env = make_enclosed_env(function['closure_env'])
    for name, value in zip(params, args):
      env_bind_value(call_env, name, value)

    if debug:
      print(f"Calling fn({', '.join(params)}) at scope depth {env_depth(call_env)}")

    context['depth'] += 1
    try:
      result = eval_block_statement(function['body'], call_env, debug, context)
    finally:
      context['depth'] -= 1

    if result is None:
      return NULL
    return unwrap_return_value(result)

  if function['type'] == BUILTIN:
    return function['func'](args)

  return make_error(f"not a function: {function['type']}")


def eval_index_expression(left: Dict, index: Dict) -> Dict:
  """Array indexing; out-of-range (negative included) gives null"""
  if left['type'] == ARRAY and index['type'] == INTEGER:
    elements = left['value']
    i = index['value']
    if i < 0 or i >= len(elements):
      return NULL
    return elements[i]

  return make_error(f"index operator not supported: {left['type']}[{index['type']}]")


# ============================================================================
# PROGRAM EVALUATION
# ============================================================================

def eval_program(program: Program, env: Optional[Dict] = None, debug: bool = False,
                 context: Optional[Dict] = None) -> Dict:
  """
  Evaluate every statement of a program and return the last value.
  Returns NULL for an empty program or one whose last statement binds a name.
  """
  if env is None:
    env = make_runtime_env()
  if context is None:
    context = make_execution_context()

  result = None
  try:
    for stmt in program.statements:
      result = eval_node(stmt, env, debug, context)
      if result is not None and result['type'] == RETURN_VALUE:
        return result['value']
      if is_error(result):
        return result
  except RecursionError:
    return make_error(RECURSION_LIMIT_MESSAGE)

  return NULL if result is None else result


def evaluate_source(source: str, env: Optional[Dict] = None, debug: bool = False,
                    max_depth: int = DEFAULT_MAX_DEPTH) -> Dict:
  """Parse and evaluate source text; raises MonkeyParseError on parse errors"""
  program, errors = parse_source(source, debug)
  if errors:
    raise MonkeyParseError(f"{len(errors)} parse error(s)", errors, source)
  return eval_program(program, env, debug, make_execution_context(max_depth))


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

class Evaluator:
  """Evaluator bound to one root environment, e.g. for a REPL session"""

  def __init__(self, env: Optional[Dict] = None, debug: bool = False,
               max_depth: int = DEFAULT_MAX_DEPTH):
    self.env = env if env is not None else make_runtime_env()
    self.debug = debug
    self.max_depth = max_depth
    ensure_recursion_limit(max_depth)

  def eval(self, program: Program) -> Dict:
    return eval_program(program, self.env, self.debug, make_execution_context(self.max_depth))

  def user_bindings(self) -> Dict[str, Dict]:
    return dict(self.env['bindings'])


def create_interpreter(debug: bool = False, max_depth: int = DEFAULT_MAX_DEPTH) -> Evaluator:
  """Factory function returning an evaluator with a fresh root environment"""
  return Evaluator(debug=debug, max_depth=max_depth)


def create_debug_interpreter(max_depth: int = DEFAULT_MAX_DEPTH) -> Evaluator:
  """Factory function returning a debug evaluator"""
  return create_interpreter(debug=True, max_depth=max_depth)
