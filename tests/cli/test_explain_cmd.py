"""
Tests for the `explain` command.
"""

import pytest
from rich.console import Console

from staticizer.cli.__main__ import main
from staticizer.utils.console import reset_console, set_console


@pytest.fixture
def captured():
  recorder = Console(record=True, width=200)
  set_console(recorder)
  yield recorder
  reset_console()


def test_explain_lists_every_candidate(tmp_path, captured):
  src = tmp_path / "A.java"
  original = (
    "class A {\n"
    "    int a;\n"
    "    private int reads() { return a; }\n"
    "    private int loop() { return loop(); }\n"
    "    final int pure() { return 1; }\n"
    "    public int open() { return 2; }\n"
    "}\n"
  )
  src.write_text(original, encoding="utf-8")

  assert main(["explain", str(src)]) == 0
  output = captured.export_text()
  assert "reads instance field 'a'" in output
  assert "recursive call never reaches a static exit" in output
  assert "pure" in output
  assert "open" not in output
  assert src.read_text(encoding="utf-8") == original


def test_explain_without_candidates(tmp_path, captured):
  src = tmp_path / "A.java"
  src.write_text("class A {\n    public void f() {}\n}\n", encoding="utf-8")
  assert main(["explain", str(src)]) == 0
  assert "No private or final instance methods" in captured.export_text()


def test_explain_unparsable(tmp_path, captured):
  src = tmp_path / "A.java"
  src.write_text("class A {", encoding="utf-8")
  assert main(["explain", str(src)]) == 1
  assert "Parse Error" in captured.export_text()


def test_explain_missing_file(tmp_path, captured):
  assert main(["explain", str(tmp_path / "nope.java")]) == 1
