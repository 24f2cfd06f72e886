"""
Test configuration for Monkey interpreter tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import parse_source
from interpreter import eval_program, make_execution_context, DEFAULT_MAX_DEPTH
from environment import make_runtime_env


@pytest.fixture
def run():
  """Parse and evaluate source in a fresh environment, failing on parse errors"""
  def _run(source, env=None, max_depth=DEFAULT_MAX_DEPTH):
    context = make_execution_context(max_depth)
    program, errors = parse_source(source)
    assert errors == [], f"unexpected parse errors: {errors}"
    return eval_program(program, env if env is not None else make_runtime_env(), context=context)
  return _run


@pytest.fixture
def parse():
  """Parse source, failing on parse errors"""
  def _parse(source):
    program, errors = parse_source(source)
    assert errors == [], f"unexpected parse errors: {errors}"
    return program
  return _parse
