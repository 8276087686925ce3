"""
Explain Command Handler.

Prints one row per candidate method of a Java file: whether it would be made
static and, if not, the first construct that ties it to the instance.
"""

from pathlib import Path

from rich.table import Table

from staticizer import DESCRIPTION, DISPLAY_NAME
from staticizer.config import RuntimeConfig
from staticizer.core.engine import StaticizerEngine
from staticizer.utils.console import console, log_error


def handle_explain(input_path: Path) -> int:
  """
  Handles the 'explain' command execution.

  Args:
      input_path: The Java file to analyze. Nothing is written.

  Returns:
      int: Exit code (0 for success, 1 if the file could not be analyzed).
  """
  if not input_path.is_file():
    log_error(f"Input not found: {input_path}")
    return 1

  try:
    code = input_path.read_text(encoding="utf-8")
  except (OSError, UnicodeDecodeError) as e:
    log_error(f"Failed to read {input_path}: {e}")
    return 1

  result = StaticizerEngine(config=RuntimeConfig(strict_mode=True)).run(code)
  if not result.success:
    log_error("; ".join(result.errors))
    return 1

  console.print(f"[bold]{DISPLAY_NAME}[/bold]")
  console.print(f"[info]{DESCRIPTION}[/info]\n")

  rows = [(m.line, m.owner, m.name, "[success]static[/success]", "") for m in result.promoted]
  rows += [(m.line, m.owner, m.name, "[warning]instance[/warning]", m.reason) for m in result.retained]
  if not rows:
    console.print(f"No private or final instance methods in [path]{input_path}[/path].")
    return 0

  table = Table(title=str(input_path))
  table.add_column("Line", justify="right")
  table.add_column("Class", style="cyan")
  table.add_column("Method", style="bold magenta")
  table.add_column("Outcome", justify="center")
  table.add_column("Reason")
  for line, owner, name, outcome, reason in sorted(rows):
    table.add_row(str(line), owner, name, outcome, reason)

  console.print(table)
  return 0
