"""
Run Command Handler.

This module implements the logic for the `staticizer run` command.
It orchestrates:
1. Configuration loading (pyproject `[tool.staticizer]` plus CLI overrides).
2. File discovery (single file, or a directory filtered by glob and excludes).
3. Refactoring via the Engine.
4. Output writing, trace dumping and the JSON report.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.table import Table

from staticizer.config import RuntimeConfig
from staticizer.core.engine import StaticizerEngine
from staticizer.core.conversion_result import RefactorResult
from staticizer.errors import ConfigError
from staticizer.utils.console import (
  console,
  log_error,
  log_info,
  log_success,
  log_warning,
)


def handle_run(
  input_path: Path,
  output_path: Optional[Path],
  check: Optional[bool] = None,
  strict: Optional[bool] = None,
  exclude: Optional[List[str]] = None,
  json_report_path: Optional[Path] = None,
  json_trace_path: Optional[Path] = None,
) -> int:
  """
  Handles the 'run' command execution.

  Args:
      input_path: Java file or directory to process.
      output_path: Destination file or directory. Files are rewritten in
          place when omitted (unless checking).
      check: If True, only report which files would change.
      strict: If True, unparsable files count as failures.
      exclude: Extra exclude patterns for directory runs.
      json_report_path: Where to write the JSON summary.
      json_trace_path: Where to dump execution traces.

  Returns:
      int: Exit code. 1 if any file failed, or (in check mode) would change.
  """
  if not input_path.exists():
    log_error(f"Input not found: {input_path}")
    return 1

  try:
    config = RuntimeConfig.load(
      strict_mode=strict,
      check_only=check,
      exclude=exclude,
      json_report=json_report_path,
      search_path=input_path if input_path.is_dir() else input_path.parent,
    )
  except ConfigError as e:
    log_error(str(e))
    return 1

  engine = StaticizerEngine(config=config)
  batch_results: Dict[str, RefactorResult] = {}

  if input_path.is_file():
    dest = output_path
    if dest is not None and dest.is_dir():
      dest = dest / input_path.name
    batch_results[input_path.name] = _process_single_file(input_path, dest, engine, config, json_trace_path)

  else:
    sources = sorted(p for p in input_path.rglob(config.file_glob) if p.is_file() and not config.is_excluded(p, input_path))
    if not sources:
      log_warning(f"No files matching '{config.file_glob}' found in {input_path}")
      return 0

    log_info(f"Processing {len(sources)} files from {input_path}...")

    for src_file in sources:
      rel_path = src_file.relative_to(input_path)
      dest_file = output_path / rel_path if output_path else None

      batch_trace = None
      if json_trace_path:
        # One trace per file, named after the source.
        batch_trace = json_trace_path / rel_path.with_suffix(".trace.json")

      batch_results[str(rel_path)] = _process_single_file(src_file, dest_file, engine, config, batch_trace)

  _print_batch_summary(batch_results, config.check_only)

  if config.json_report:
    _write_report(config.json_report, batch_results)

  if any(not r.success for r in batch_results.values()):
    return 1
  if config.check_only and any(r.changed for r in batch_results.values()):
    return 1
  return 0


def _process_single_file(
  input_path: Path,
  output_path: Optional[Path],
  engine: StaticizerEngine,
  config: RuntimeConfig,
  json_trace_path: Optional[Path] = None,
) -> RefactorResult:
  """
  Helper to refactor a single file.

  Args:
      input_path: Source file path.
      output_path: Destination file path (in place when None).
      engine: The configured engine.
      config: Runtime configuration object.
      json_trace_path: Path to save trace event logs.

  Returns:
      RefactorResult: Result object containing status and code.
  """
  try:
    with open(input_path, "rt", encoding="utf-8") as f:
      code = f.read()
    result = engine.run(code)

    if json_trace_path and result.trace_events:
      try:
        json_trace_path.parent.mkdir(parents=True, exist_ok=True)
        with open(json_trace_path, "wt", encoding="utf-8") as f:
          json.dump(result.trace_events, f, indent=2)
        log_info(f"Trace saved to [path]{json_trace_path}[/path]")
      except OSError as e:
        log_error(f"Failed to write trace: {e}")

    if not result.success or config.check_only:
      if config.check_only and result.changed:
        log_info(f"Would change: [path]{input_path}[/path] ({len(result.promoted)} method(s))")
      return result

    if output_path:
      output_path.parent.mkdir(parents=True, exist_ok=True)
      with open(output_path, "wt", encoding="utf-8") as f:
        f.write(result.code)
      log_success(f"Refactored: [path]{input_path}[/path] -> [path]{output_path}[/path]")
    elif result.changed:
      with open(input_path, "wt", encoding="utf-8") as f:
        f.write(result.code)
      log_success(f"Refactored: [path]{input_path}[/path] ({len(result.promoted)} method(s))")

    return result
  except (OSError, UnicodeDecodeError) as e:
    log_error(f"Failed to process {input_path}: {e}")
    return RefactorResult(success=False, errors=[str(e)])


def _print_batch_summary(results: Dict[str, RefactorResult], check_only: bool = False) -> None:
  """
  Renders a summary table of results to the console.

  Args:
      results: Dictionary mapping filenames to results.
      check_only: Whether files were only checked.
  """
  total = len(results)
  changed = sum(1 for r in results.values() if r.success and r.changed)
  failures = sum(1 for r in results.values() if not r.success or r.has_errors)
  promoted = sum(len(r.promoted) for r in results.values())

  verb = "would change" if check_only else "changed"
  if failures == 0 and changed == 0:
    log_success(f"Batch Complete: {total} file(s) checked, nothing to change.")
    return

  table = Table(title="Staticizer Report")
  table.add_column("File", style="cyan")
  table.add_column("Status", justify="center")
  table.add_column("Promoted", justify="right")
  table.add_column("Issues", style="red")

  for filename, res in results.items():
    if res.success and not res.has_errors and not res.changed:
      continue
    if not res.success:
      status = "❌ Failed"
    elif res.has_errors:
      status = "⚠️ Skipped"
    else:
      status = "✏️ Changed"
    table.add_row(filename, status, str(len(res.promoted)), "; ".join(res.errors))

  console.print(table)
  console.print(f"\n[bold]Summary:[/bold] {changed}/{total} file(s) {verb}, {promoted} method(s), {failures} with issues.")


def _write_report(path: Path, results: Dict[str, RefactorResult]) -> None:
  """
  Writes the machine-readable summary.

  Args:
      path: Destination JSON file.
      results: Dictionary mapping filenames to results.
  """
  report: Dict[str, Any] = {
    "files": {
      name: {
        "success": res.success,
        "changed": res.changed,
        "errors": res.errors,
        "promoted": [m.model_dump() for m in res.promoted],
        "retained": [m.model_dump() for m in res.retained],
      }
      for name, res in results.items()
    },
    "summary": {
      "files": len(results),
      "changed": sum(1 for r in results.values() if r.changed),
      "failed": sum(1 for r in results.values() if not r.success),
      "promoted": sum(len(r.promoted) for r in results.values()),
    },
  }
  try:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "wt", encoding="utf-8") as f:
      json.dump(report, f, indent=2)
    log_info(f"Report saved to [path]{path}[/path]")
  except OSError as e:
    log_error(f"Failed to write report: {e}")
