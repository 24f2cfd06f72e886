"""
Evaluator tests for Monkey
Arithmetic, control flow, sentinel propagation, closures and the depth guard
"""

import sys

import pytest

from objects import (
    inspect, make_integer, TRUE, FALSE, NULL,
    INTEGER, STRING, ARRAY, FUNCTION, ERROR
)
from environment import make_runtime_env, make_enclosed_env, env_lookup_value, env_bind_value
from interpreter import (
    Evaluator, create_interpreter, create_debug_interpreter, evaluate_source,
    make_execution_context, ensure_recursion_limit, RECURSION_LIMIT_MESSAGE,
    DEFAULT_MAX_DEPTH, FRAMES_PER_CALL
)
from parsing import parse_source
from error_handling import MonkeyParseError


def assert_integer(value, expected):
  assert value['type'] == INTEGER, inspect(value)
  assert value['value'] == expected


def assert_error(value, message):
  assert value['type'] == ERROR, inspect(value)
  assert value['message'] == message


class TestIntegerArithmetic:
  """Signed 64-bit integer operators"""

  @pytest.mark.parametrize("source,expected", [
      ("5", 5),
      ("10", 10),
      ("-5", -5),
      ("-10", -10),
      ("1 + 2 * 3", 7),
      ("(1 + 2) * 3", 9),
      ("5 + 5 + 5 + 5 - 10", 10),
      ("2 * 2 * 2 * 2 * 2", 32),
      ("-50 + 100 + -50", 0),
      ("5 * 2 + 10", 20),
      ("5 + 2 * 10", 25),
      ("20 + 2 * -10", 0),
      ("50 / 2 * 2 + 10", 60),
      ("2 * (5 + 10)", 30),
      ("3 * 3 * 3 + 10", 37),
      ("3 * (3 * 3) + 10", 37),
      ("(5 + 10 * 2 + 15 / 3) * 2 + -10", 50),
  ])
  def test_integer_expressions(self, run, source, expected):
    assert_integer(run(source), expected)

  @pytest.mark.parametrize("source,expected", [
      ("7 / 2", 3),
      ("-7 / 2", -3),
      ("7 / -2", -3),
      ("-7 / -2", 3),
  ])
  def test_division_truncates_toward_zero(self, run, source, expected):
    assert_integer(run(source), expected)

  def test_division_by_zero(self, run):
    assert_error(run("1 / 0"), "division by zero")

  def test_overflow_is_an_error(self, run):
    assert_error(run("9223372036854775807 + 1"), "integer overflow: 9223372036854775807 + 1")

  def test_smallest_integer(self, run):
    assert_integer(run("-9223372036854775807 - 1"), -2 ** 63)

  def test_negating_smallest_integer(self, run):
    result = run("let m = -9223372036854775807 - 1; -m")
    assert result['type'] == ERROR
    assert result['message'].startswith("integer overflow")


class TestBooleans:
  """Comparison, equality and the bang operator"""

  @pytest.mark.parametrize("source,expected", [
      ("true", True),
      ("false", False),
      ("1 < 2", True),
      ("1 > 2", False),
      ("1 < 1", False),
      ("1 == 1", True),
      ("1 != 1", False),
      ("1 != 2", True),
      ("true == true", True),
      ("false == false", True),
      ("true == false", False),
      ("true != false", True),
      ("(1 < 2) == true", True),
      ("(1 > 2) == true", False),
  ])
  def test_boolean_expressions(self, run, source, expected):
    assert run(source) is (TRUE if expected else FALSE)

  @pytest.mark.parametrize("source,expected", [
      ("!true", False),
      ("!false", True),
      ("!5", False),
      ("!!true", True),
      ("!!false", False),
      ("!!5", True),
  ])
  def test_bang_operator(self, run, source, expected):
    assert run(source) is (TRUE if expected else FALSE)


class TestConditionals:
  """if/else expressions"""

  @pytest.mark.parametrize("source,expected", [
      ("if (true) { 10 }", 10),
      ("if (1 < 2) { 10 }", 10),
      ("if (1 > 2) { 10 } else { 20 }", 20),
      ("if (1 < 2) { 10 } else { 20 }", 10),
  ])
  def test_if_else(self, run, source, expected):
    assert_integer(run(source), expected)

  @pytest.mark.parametrize("source", [
      "if (false) { 10 }",
      "if (1 > 2) { 10 }",
      "if (true) { }",
  ])
  def test_missing_branch_is_null(self, run, source):
    assert run(source) is NULL

  def test_non_boolean_condition(self, run):
    assert_error(run("if (1) { 10 }"), "non-boolean condition: INTEGER")


class TestReturnStatements:
  """`return` stops evaluation at any block depth"""

  @pytest.mark.parametrize("source,expected", [
      ("return 10;", 10),
      ("return 10; 9;", 10),
      ("return 2 * 5; 9;", 10),
      ("9; return 2 * 5; 9;", 10),
      ("if (10 > 1) { if (10 > 1) { return 10; } return 1; }", 10),
  ])
  def test_return(self, run, source, expected):
    assert_integer(run(source), expected)

  def test_return_stops_at_the_call(self, run):
    assert_integer(run("let f = fn() { return 1; 5 }; f() + 1"), 2)

  def test_return_inside_nested_if_in_function(self, run):
    source = """
        let f = fn(x) {
          if (x > 0) {
            if (x > 10) { return "big"; }
            return "small";
          }
          "negative"
        };
        [f(20), f(5), f(-1)]
    """
    assert inspect(run(source)) == "[big, small, negative]"


class TestErrors:
  """Runtime errors are values that propagate unchanged"""

  @pytest.mark.parametrize("source,message", [
      ("5 + true;", "type mismatch: INTEGER + BOOLEAN"),
      ("5 + true; 5;", "type mismatch: INTEGER + BOOLEAN"),
      ("-true", "unknown operator: -BOOLEAN"),
      ('-"a"', "unknown operator: -STRING"),
      ("true + false;", "unknown operator: BOOLEAN + BOOLEAN"),
      ("true < false", "unknown operator: BOOLEAN < BOOLEAN"),
      ("5; true + false; 5", "unknown operator: BOOLEAN + BOOLEAN"),
      ("if (10 > 1) { true + false; }", "unknown operator: BOOLEAN + BOOLEAN"),
      ("if (10 > 1) { if (10 > 1) { return true + false; } return 1; }",
       "unknown operator: BOOLEAN + BOOLEAN"),
      ('"Hello" - "World"', "unknown operator: STRING - STRING"),
      ("[1] + [2]", "unknown operator: ARRAY + ARRAY"),
      ("foobar", "identifier not found: foobar"),
      ("5()", "not a function: INTEGER"),
      ("fn(x) { x }(1, 2)", "wrong number of arguments: want=1, got=2"),
      ('[1, 2]["a"]', "index operator not supported: ARRAY[STRING]"),
      ("5[0]", "index operator not supported: INTEGER[INTEGER]"),
  ])
  def test_error_messages(self, run, source, message):
    assert_error(run(source), message)

  @pytest.mark.parametrize("source", [
      "foobar + 1",
      "1 + foobar",
      "-foobar",
      "!foobar",
      "[1, foobar, 3]",
      "[1, 2][foobar]",
      "foobar[0]",
      "len(foobar)",
      "fn(x) { x }(foobar)",
      "foobar(1)",
      "if (foobar) { 1 }",
      "let a = foobar; 1",
      "fn() { foobar + 1 }()",
      "fn() { return foobar; }()",
  ])
  def test_error_propagates_from_any_position(self, run, source):
    assert_error(run(source), "identifier not found: foobar")

  def test_first_error_wins(self, run):
    assert_error(run("[foobar, barfoo]"), "identifier not found: foobar")

  def test_error_stops_later_statements(self, run):
    env = make_runtime_env()
    run("let a = 1; a + true; let b = 2;", env)
    assert env_lookup_value(env, "a") is not None
    assert env_lookup_value(env, "b") is None


class TestBindings:
  """let statements and identifier lookup"""

  @pytest.mark.parametrize("source,expected", [
      ("let a = 5; a;", 5),
      ("let a = 5 * 5; a;", 25),
      ("let a = 5; let b = a; b;", 5),
      ("let a = 5; let b = a; let c = a + b + 5; c;", 15),
      ("let a = 1; let a = a + 1; a", 2),
  ])
  def test_let_statements(self, run, source, expected):
    assert_integer(run(source), expected)

  def test_scopes_start_empty(self):
    root = make_runtime_env()
    env_bind_value(root, "a", make_integer(1))
    child = make_enclosed_env(root)
    assert child['bindings'] == {}
    assert child['parent'] is root
    assert env_lookup_value(child, "a") == make_integer(1)

  def test_let_as_last_statement_is_null(self, run):
    assert run("let a = 5;") is NULL

  def test_empty_program_is_null(self, run):
    assert run("") is NULL


class TestFunctions:
  """Function values, application and closures"""

  def test_function_object(self, run):
    result = run("fn(x) { x + 2; };")
    assert result['type'] == FUNCTION
    assert result['params'] == ["x"]
    assert str(result['body']) == "{ (x + 2) }"

  @pytest.mark.parametrize("source,expected", [
      ("let identity = fn(x) { x; }; identity(5);", 5),
      ("let identity = fn(x) { return x; }; identity(5);", 5),
      ("let double = fn(x) { x * 2; }; double(5);", 10),
      ("let add = fn(x, y) { x + y; }; add(5, 5);", 10),
      ("let add = fn(x, y) { x + y; }; add(5 + 5, add(5, 5));", 20),
      ("fn(x) { x; }(5)", 5),
  ])
  def test_function_application(self, run, source, expected):
    assert_integer(run(source), expected)

  def test_empty_body_returns_null(self, run):
    assert run("fn() { }()") is NULL

  def test_closures(self, run):
    source = """
        let newAdder = fn(x) {
          fn(y) { x + y };
        };
        let addTwo = newAdder(2);
        addTwo(3);
    """
    assert_integer(run(source), 5)

  def test_curried_call(self, run):
    assert_integer(run("fn(x) { fn(y) { x + y } }(2)(3)"), 5)

  def test_recursive_function(self, run):
    source = """
        let fib = fn(x) {
          if (x < 2) { x } else { fib(x - 1) + fib(x - 2) }
        };
        fib(15);
    """
    assert_integer(run(source), 610)

  def test_closure_sees_later_binding(self, run):
    assert_integer(run("let f = fn() { y }; let y = 5; f()"), 5)

  def test_parameters_shadow_outer_names(self, run):
    assert_integer(run("let x = 10; let f = fn(x) { x * 2 }; f(3) + x"), 16)

  def test_call_scope_is_discarded(self, run):
    assert_error(run("let f = fn(x) { let y = x; y }; f(1); y"), "identifier not found: y")

  def test_let_inside_function_stays_local(self, run):
    env = make_runtime_env()
    assert_integer(run("let x = 1; let f = fn() { let x = 2; x }; f()", env), 2)
    assert_integer(env_lookup_value(env, "x"), 1)

  def test_higher_order_functions(self, run):
    source = """
        let apply = fn(f, x) { f(x) };
        let square = fn(n) { n * n };
        apply(square, 7)
    """
    assert_integer(run(source), 49)


class TestDepthGuard:
  """Unbounded recursion becomes an error value; terminating recursion does not"""

  COUNT = "let count = fn(n) { if (n == 0) { 0 } else { 1 + count(n - 1) } };"

  def test_infinite_recursion(self, run):
    assert_error(run("let f = fn(x) { f(x + 1) }; f(0)"), RECURSION_LIMIT_MESSAGE)

  @pytest.mark.parametrize("n", [40, 100, 500])
  def test_deep_terminating_recursion(self, run, n):
    assert_integer(run(f"{self.COUNT} count({n})"), n)

  def test_recursive_sum_over_array(self, run):
    elements = ", ".join(str(i) for i in range(1, 101))
    source = f"""
        let sum = fn(arr) {{
          if (len(arr) == 0) {{ 0 }} else {{ first(arr) + sum(rest(arr)) }}
        }};
        sum([{elements}])
    """
    assert_integer(run(source), 5050)

  def test_limit_counts_calls(self, run):
    """count(n) makes n + 1 nested calls"""
    assert_integer(run(f"{self.COUNT} count(49)", max_depth=50), 49)
    assert_error(run(f"{self.COUNT} count(50)", max_depth=50), RECURSION_LIMIT_MESSAGE)

  def test_deep_expression_without_calls(self, run):
    assert_integer(run("-" * 250 + "1"), 1)
    assert_integer(run("(" * 400 + "1" + ")" * 400, max_depth=1), 1)

  def test_host_recursion_limit_is_raised(self):
    make_execution_context(1500)
    assert sys.getrecursionlimit() >= 1500 * FRAMES_PER_CALL
    limit = sys.getrecursionlimit()
    ensure_recursion_limit(1)
    assert sys.getrecursionlimit() == limit

  def test_interpreter_default_depth(self):
    assert DEFAULT_MAX_DEPTH >= 1000
    assert create_interpreter().max_depth == DEFAULT_MAX_DEPTH

  def test_error_message(self):
    assert RECURSION_LIMIT_MESSAGE == "maximum recursion depth exceeded"

  def test_custom_limit(self, run):
    source = "let f = fn(n) { if (n == 0) { 0 } else { f(n - 1) } }; f(10)"
    assert_error(run(source, max_depth=10), RECURSION_LIMIT_MESSAGE)
    assert_integer(run(source, max_depth=100), 0)

  def test_evaluator_recovers_after_limit(self):
    evaluator = create_interpreter(max_depth=20)
    program, _ = parse_source("let f = fn(x) { f(x) }; f(1)")
    assert_error(evaluator.eval(program), RECURSION_LIMIT_MESSAGE)
    program, _ = parse_source("1 + 1")
    assert_integer(evaluator.eval(program), 2)


class TestStringsAndArrays:
  """String concatenation, array literals and indexing"""

  def test_string_literal(self, run):
    result = run('"Hello World!"')
    assert result['type'] == STRING
    assert result['value'] == "Hello World!"

  def test_string_concatenation(self, run):
    assert inspect(run('"Hello" + " " + "World!"')) == "Hello World!"

  @pytest.mark.parametrize("source,expected", [
      ('"a" == "a"', True),
      ('"a" == "b"', False),
      ('"a" != "b"', True),
  ])
  def test_string_equality(self, run, source, expected):
    assert run(source) is (TRUE if expected else FALSE)

  def test_array_literal(self, run):
    result = run("[1, 2 * 2, 3 + 3]")
    assert result['type'] == ARRAY
    assert [element['value'] for element in result['value']] == [1, 4, 6]

  @pytest.mark.parametrize("source,expected", [
      ("[1, 2, 3][0]", 1),
      ("[1, 2, 3][1]", 2),
      ("[1, 2, 3][2]", 3),
      ("let i = 0; [1][i];", 1),
      ("[1, 2, 3][1 + 1];", 3),
      ("let myArray = [1, 2, 3]; myArray[2];", 3),
      ("let myArray = [1, 2, 3]; myArray[0] + myArray[1] + myArray[2];", 6),
      ("let myArray = [1, 2, 3]; let i = myArray[0]; myArray[i]", 2),
  ])
  def test_index_expressions(self, run, source, expected):
    assert_integer(run(source), expected)

  @pytest.mark.parametrize("source", ["[1, 2, 3][3]", "[1, 2, 3][-1]", "[][0]"])
  def test_index_out_of_range_is_null(self, run, source):
    assert run(source) is NULL

  def test_nested_arrays(self, run):
    assert inspect(run("[[1, 2], [3]][0][1]")) == "2"


class TestRendering:
  """Textual rendering of values"""

  @pytest.mark.parametrize("source,expected", [
      ("5", "5"),
      ("-5", "-5"),
      ("true", "true"),
      ('"text"', "text"),
      ('[1, "two", [true]]', "[1, two, [true]]"),
      ("[]", "[]"),
      ("fn(x, y) { x + y }", "fn(x, y) { ... }"),
      ("fn() { 1 }", "fn() { ... }"),
      ("len", "[builtin function]"),
      ("if (false) { 1 }", "null"),
      ("foobar", "identifier not found: foobar"),
  ])
  def test_inspect(self, run, source, expected):
    assert inspect(run(source)) == expected

  @pytest.mark.parametrize("source", ["5", "-42", "true", "false", "[1, [2, 3], []]"])
  def test_rendering_evaluates_to_equal_value(self, run, source):
    first = run(source)
    assert inspect(run(inspect(first))) == inspect(first)

  def test_rendering_round_trip_integer(self, run):
    assert run(inspect(make_integer(5))) == make_integer(5)


class TestEvaluatorSession:
  """Evaluator objects keep one root environment across programs"""

  def test_bindings_persist(self):
    evaluator = Evaluator()
    for line in ["let a = 2;", "let double = fn(x) { x * 2 };"]:
      program, _ = parse_source(line)
      evaluator.eval(program)
    program, _ = parse_source("double(a)")
    assert_integer(evaluator.eval(program), 4)
    assert sorted(evaluator.user_bindings()) == ["a", "double"]

  def test_builtins_are_not_user_bindings(self):
    evaluator = create_interpreter()
    program, _ = parse_source("len")
    evaluator.eval(program)
    assert evaluator.user_bindings() == {}

  def test_debug_interpreter_traces(self, capsys):
    evaluator = create_debug_interpreter()
    program, _ = parse_source("fn(x) { x }(1)")
    assert_integer(evaluator.eval(program), 1)
    out = capsys.readouterr().out
    assert "Evaluating: CallExpression" in out
    assert "Calling fn(x) at scope depth 2" in out

  def test_evaluate_source(self):
    env = make_runtime_env()
    assert_integer(evaluate_source("let a = 3; a * a", env), 9)
    assert_integer(env_lookup_value(env, "a"), 3)

  def test_evaluate_source_parse_error(self):
    with pytest.raises(MonkeyParseError) as exc_info:
      evaluate_source("let = 1;")
    assert exc_info.value.errors
