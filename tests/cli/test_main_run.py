"""
Tests for the `run` command.

Covers single files, directories, check mode, the JSON report and trace
output, and argument dispatch from `main`.
"""

import json
from unittest.mock import patch

import pytest
from rich.console import Console

from staticizer.cli.__main__ import main
from staticizer.utils.console import reset_console, set_console

ELIGIBLE = "class A {\n    private int f() {\n        return 0;\n    }\n}\n"
PROMOTED = "class A {\n    private static int f() {\n        return 0;\n    }\n}\n"
NOTHING = "class B {\n    int a;\n    private int g() {\n        return a;\n    }\n}\n"


@pytest.fixture
def captured():
  """Routes CLI output to a recording console."""
  recorder = Console(record=True, width=200)
  set_console(recorder)
  yield recorder
  reset_console()


@pytest.fixture
def project(tmp_path):
  root = tmp_path / "project"
  (root / "pkg").mkdir(parents=True)
  (root / "generated").mkdir()
  (root / "pkg" / "A.java").write_text(ELIGIBLE, encoding="utf-8")
  (root / "pkg" / "B.java").write_text(NOTHING, encoding="utf-8")
  (root / "generated" / "G.java").write_text(ELIGIBLE, encoding="utf-8")
  (root / "notes.txt").write_text("not java", encoding="utf-8")
  return root


def test_single_file_in_place(tmp_path, captured):
  src = tmp_path / "A.java"
  src.write_text(ELIGIBLE, encoding="utf-8")

  assert main(["run", str(src)]) == 0
  assert src.read_text(encoding="utf-8") == PROMOTED
  assert "Refactored" in captured.export_text()


def test_single_file_to_output(tmp_path, captured):
  src = tmp_path / "A.java"
  src.write_text(ELIGIBLE, encoding="utf-8")
  out_dir = tmp_path / "out"
  out_dir.mkdir()

  assert main(["run", str(src), "--out", str(out_dir)]) == 0
  assert src.read_text(encoding="utf-8") == ELIGIBLE
  assert (out_dir / "A.java").read_text(encoding="utf-8") == PROMOTED


def test_unchanged_file_not_rewritten(tmp_path, captured):
  src = tmp_path / "B.java"
  src.write_text(NOTHING, encoding="utf-8")
  before = src.stat().st_mtime_ns

  assert main(["run", str(src)]) == 0
  assert src.stat().st_mtime_ns == before
  assert "nothing to change" in captured.export_text()


def test_directory_with_exclude(project, captured):
  assert main(["run", str(project), "--exclude", "generated/*"]) == 0
  assert (project / "pkg" / "A.java").read_text(encoding="utf-8") == PROMOTED
  assert (project / "pkg" / "B.java").read_text(encoding="utf-8") == NOTHING
  assert (project / "generated" / "G.java").read_text(encoding="utf-8") == ELIGIBLE
  output = captured.export_text()
  assert "Staticizer Report" in output
  assert "1/2 file(s) changed" in output


def test_directory_to_output_tree(project, tmp_path, captured):
  out = tmp_path / "out"
  assert main(["run", str(project), "--out", str(out)]) == 0
  assert (out / "pkg" / "A.java").read_text(encoding="utf-8") == PROMOTED
  assert (out / "generated" / "G.java").read_text(encoding="utf-8") == PROMOTED
  assert not (out / "notes.txt").exists()


def test_check_mode_writes_nothing(project, captured):
  assert main(["run", str(project), "--check"]) == 1
  assert (project / "pkg" / "A.java").read_text(encoding="utf-8") == ELIGIBLE
  assert "Would change" in captured.export_text()


def test_check_mode_clean(tmp_path, captured):
  src = tmp_path / "B.java"
  src.write_text(NOTHING, encoding="utf-8")
  assert main(["run", str(src), "--check"]) == 0


def test_unparsable_file(tmp_path, captured):
  src = tmp_path / "Broken.java"
  src.write_text("class Broken { void f( }", encoding="utf-8")

  assert main(["run", str(src)]) == 0
  assert "file left unchanged" in captured.export_text()
  assert main(["run", str(src), "--strict"]) == 1
  assert src.read_text(encoding="utf-8") == "class Broken { void f( }"


def test_json_report(project, tmp_path, captured):
  report = tmp_path / "report.json"
  assert main(["run", str(project), "--check", "--json-report", str(report)]) == 1

  data = json.loads(report.read_text(encoding="utf-8"))
  assert data["summary"] == {"files": 3, "changed": 2, "failed": 0, "promoted": 2}
  b = data["files"]["pkg/B.java"]
  assert b["changed"] is False
  assert b["retained"][0]["name"] == "g"
  assert b["retained"][0]["reason"].startswith("reads instance field 'a'")


def test_json_trace_single_file(tmp_path, captured):
  src = tmp_path / "A.java"
  src.write_text(ELIGIBLE, encoding="utf-8")
  trace = tmp_path / "trace.json"

  assert main(["run", str(src), "--json-trace", str(trace)]) == 0
  events = json.loads(trace.read_text(encoding="utf-8"))
  assert any(e["type"] == "source_mutation" for e in events)


def test_json_trace_directory(project, tmp_path, captured):
  traces = tmp_path / "traces"
  assert main(["run", str(project), "--check", "--json-trace", str(traces)]) == 1
  assert (traces / "pkg" / "A.trace.json").exists()
  assert (traces / "generated" / "G.trace.json").exists()


def test_missing_input(tmp_path, captured):
  assert main(["run", str(tmp_path / "missing.java")]) == 1
  assert "Input not found" in captured.export_text()


def test_empty_directory(tmp_path, captured):
  assert main(["run", str(tmp_path)]) == 0
  assert "No files matching" in captured.export_text()


@patch("staticizer.cli.commands.handle_run")
def test_dispatch_arguments(mock_handle, tmp_path):
  mock_handle.return_value = 0
  main(["run", str(tmp_path), "--strict", "--exclude", "a/*", "b/*"])

  mock_handle.assert_called_once()
  kwargs = mock_handle.call_args[1]
  assert kwargs["strict"] is True
  assert kwargs["check"] is None
  assert kwargs["exclude"] == ["a/*", "b/*"]


def test_version(capsys):
  with pytest.raises(SystemExit) as excinfo:
    main(["--version"])
  assert excinfo.value.code == 0
  assert "0.1.0" in capsys.readouterr().out
