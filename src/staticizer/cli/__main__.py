"""
Main Entry Point for the staticizer CLI.

This module handles argument parsing and dispatches to specific command
handlers defined in `staticizer.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from staticizer import DISPLAY_NAME, __version__
from staticizer.cli import commands
from staticizer.utils.console import set_verbose


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Parses arguments via argparse and calls the appropriate handler function.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  parser = argparse.ArgumentParser(description=f"staticizer: {DISPLAY_NAME}")
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("-v", "--verbose", action="store_true", help="Show classification and resolver details")

  subparsers = parser.add_subparsers(dest="command", required=True)

  # --- Command: RUN ---
  cmd_run = subparsers.add_parser("run", help="Make eligible methods static in a Java file or directory")
  cmd_run.add_argument("path", type=Path, help="Input source file or directory")
  cmd_run.add_argument("--out", type=Path, default=None, help="Output destination (file or dir); in place if omitted")
  cmd_run.add_argument(
    "--check",
    action="store_true",
    default=None,
    help="Report files that would change without writing them (exit 1 if any would)",
  )
  cmd_run.add_argument(
    "--strict",
    action="store_true",
    default=None,
    help="Treat unparsable files as failures (Overrides config)",
  )
  cmd_run.add_argument(
    "--exclude",
    nargs="*",
    default=None,
    help="Glob patterns, relative to the input directory, to skip",
  )
  cmd_run.add_argument("--json-report", type=Path, default=None, help="Write a JSON summary of all files.")
  cmd_run.add_argument(
    "--json-trace", type=Path, default=None, help="Dump the full execution trace (events, mutations) to a JSON file."
  )

  # --- Command: EXPLAIN ---
  cmd_explain = subparsers.add_parser("explain", help="Show the decision and reason for every candidate method")
  cmd_explain.add_argument("path", type=Path, help="Input Java file")

  args = parser.parse_args(argv)
  set_verbose(args.verbose)

  if args.command == "run":
    return commands.handle_run(
      args.path,
      args.out,
      check=args.check,
      strict=args.strict,
      exclude=args.exclude,
      json_report_path=args.json_report,
      json_trace_path=args.json_trace,
    )

  elif args.command == "explain":
    return commands.handle_explain(args.path)

  return 0


if __name__ == "__main__":
  sys.exit(main())
