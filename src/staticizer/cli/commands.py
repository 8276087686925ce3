"""
CLI Command Handlers Facade.

Re-exports the handlers from `staticizer.cli.handlers` so the dispatcher and
tests have a single import point.
"""

from staticizer.cli.handlers.explain import handle_explain
from staticizer.cli.handlers.run import (
  handle_run,
  _print_batch_summary,
  _process_single_file,
)

__all__ = [
  "_print_batch_summary",
  "_process_single_file",
  "handle_explain",
  "handle_run",
]
