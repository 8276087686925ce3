"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- Tracer isolation between tests.
- Helpers that parse, index and refactor Java snippets.
"""

import sys
import textwrap
from pathlib import Path
from typing import Callable

import pytest

# Add src to path so we can import 'staticizer' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from staticizer.analysis.symbol_table import SymbolTable  # noqa: E402
from staticizer.core.engine import StaticizerEngine  # noqa: E402
from staticizer.core.conversion_result import RefactorResult  # noqa: E402
from staticizer.core.tracer import reset_tracer  # noqa: E402
from staticizer.frontends.java.parser import JavaParser  # noqa: E402


@pytest.fixture(autouse=True)
def isolate_tracer():
  """Ensures trace events recorded by one test do not leak into the next."""
  reset_tracer()
  yield
  reset_tracer()


@pytest.fixture
def java_parser() -> JavaParser:
  return JavaParser()


@pytest.fixture
def build_table(java_parser) -> Callable[[str], SymbolTable]:
  """Parses a snippet (dedented) and indexes it."""

  def _build(code: str) -> SymbolTable:
    return SymbolTable.build(java_parser.parse(textwrap.dedent(code)))

  return _build


@pytest.fixture
def refactor() -> Callable[[str], RefactorResult]:
  """Runs the full engine on a snippet (dedented)."""
  engine = StaticizerEngine()

  def _run(code: str) -> RefactorResult:
    return engine.run(textwrap.dedent(code))

  return _run


@pytest.fixture
def assert_rewrites(refactor) -> Callable[[str, str], None]:
  """
  Asserts the engine turns `before` into exactly `after`.

  The result is fed back through the engine to check nothing else changes.
  """

  def _check(before: str, after: str) -> None:
    result = refactor(before)
    assert result.success, result.errors
    assert result.code == textwrap.dedent(after)
    again = refactor(result.code)
    assert again.code == result.code
    assert not again.changed

  return _check


@pytest.fixture
def assert_unchanged(refactor) -> Callable[[str], None]:
  """Asserts the engine leaves `code` byte-identical."""

  def _check(code: str) -> None:
    result = refactor(code)
    assert result.success, result.errors
    assert not result.has_errors, result.errors
    assert result.code == textwrap.dedent(code)
    assert not result.changed

  return _check
