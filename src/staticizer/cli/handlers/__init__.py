from .explain import handle_explain
from .run import handle_run, _print_batch_summary, _process_single_file

__all__ = [
  "_print_batch_summary",
  "_process_single_file",
  "handle_explain",
  "handle_run",
]
