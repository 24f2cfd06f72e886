"""
Monkey Environment
Identifier bindings chained to an optional parent scope.

Environments are shared by reference: a function value keeps the environment it
was defined in, and `let` mutates bindings in place, so a closure sees names
bound after it was created (this is what makes recursive functions work).
"""

from typing import Dict, Optional


def make_runtime_env(parent: Optional[Dict] = None) -> Dict:
  """Create a runtime environment with no bindings"""
  return {
      'parent': parent,
      'bindings': {}
  }


def make_enclosed_env(parent: Dict) -> Dict:
  """Create a fresh child scope, e.g. for a function call"""
  return make_runtime_env(parent)


def env_lookup_value(env: Dict, name: str) -> Optional[Dict]:
  """Look up a value in the environment chain"""
  if name in env['bindings']:
    return env['bindings'][name]
  elif env['parent']:
    return env_lookup_value(env['parent'], name)
  return None


def env_bind_value(env: Dict, name: str, value: Dict) -> Dict:
  """Bind name in this scope (shadowing any outer binding) and return value"""
  env['bindings'][name] = value
  return value


def env_depth(env: Dict) -> int:
  """Number of scopes in the chain, this one included"""
  depth = 1
  while env['parent'] is not None:
    env = env['parent']
    depth += 1
  return depth
