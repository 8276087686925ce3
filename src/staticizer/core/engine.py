"""
Orchestration Engine.

This module provides the `StaticizerEngine`, the entry point for refactoring
one compilation unit. The pipeline consists of:

1.  **Parsing**: Java source text into a tree-sitter `SyntaxTree`.
2.  **Indexing**: Building the `SymbolTable` (classes, members, supertypes,
    the scopes captured by local and anonymous classes).
3.  **Analysis**: The `TraversalDriver` visits every class in source order,
    classifies each candidate method and resolves eligibility to a fixpoint.
4.  **Rewriting**: `static` is spliced into the modifier list of every
    eligible method; all other bytes are preserved.

The engine fails closed. Input that cannot be parsed, or any internal error,
leaves the source untouched and is reported through `RefactorResult.errors`;
with `strict_mode` the result is also marked unsuccessful.
"""

import logging
from typing import Optional

from staticizer.analysis.driver import AnalysisContext, TraversalDriver
from staticizer.analysis.symbol_table import SymbolTable
from staticizer.config import RuntimeConfig
from staticizer.core.conversion_result import PromotedMethod, RefactorResult, RetainedMethod
from staticizer.core.rewriter import StaticRewriter
from staticizer.core.tracer import get_tracer, reset_tracer
from staticizer.errors import ParseError
from staticizer.frontends.java.parser import JavaParser

logger = logging.getLogger(__name__)


class StaticizerEngine:
  """
  Refactors one compilation unit at a time.
  """

  def __init__(self, config: Optional[RuntimeConfig] = None, strict_mode: Optional[bool] = None):
    """
    Initializes the Engine.

    Args:
        config (RuntimeConfig, optional): The runtime configuration. Defaults
            are used (not the pyproject lookup) when omitted.
        strict_mode (bool, optional): Override for `config.strict_mode`.
    """
    self.config = config or RuntimeConfig()
    self.strict_mode = self.config.strict_mode if strict_mode is None else strict_mode
    self.parser = JavaParser()

  def analyze(self, code: str) -> AnalysisContext:
    """
    Runs parsing, indexing and analysis without rewriting.

    Args:
        code (str): Java source text.

    Returns:
        AnalysisContext: The per-method outcomes.

    Raises:
        ParseError: If the source has syntax errors.
    """
    tree = self.parser.parse(code)
    table = SymbolTable.build(tree)
    return TraversalDriver(table).run()

  def _fail(self, code: str, message: str, tracer) -> RefactorResult:
    tracer.log_warning(message)
    tracer.close_phases()
    if self.strict_mode:
      logger.error(message)
      return RefactorResult(code=code, errors=[message], success=False, trace_events=tracer.export())
    logger.warning(message)
    return RefactorResult(
      code=code, errors=[f"{message}; file left unchanged"], success=True, trace_events=tracer.export()
    )

  def run(self, code: str) -> RefactorResult:
    """
    Executes the full pipeline.

    Args:
        code (str): The input source string.

    Returns:
        RefactorResult: Rewritten code plus per-method outcomes.
    """
    reset_tracer()
    tracer = get_tracer()
    tracer.start_phase("Staticizer Pipeline", f"strict={self.strict_mode}")

    tracer.start_phase("Parsing", "Java source -> syntax tree")
    try:
      tree = self.parser.parse(code)
    except ParseError as e:
      return self._fail(code, f"Parse Error: {e}", tracer)
    tracer.end_phase()

    try:
      tracer.start_phase("Indexing", "Classes, members and scopes")
      table = SymbolTable.build(tree)
      tracer.end_phase()

      tracer.start_phase("Analysis", f"{len(table.classes)} class scope(s)")
      context = TraversalDriver(table, tracer).run()
      tracer.end_phase()

      tracer.start_phase("Rewriting", f"{len(context.promoted)} method(s)")
      new_code = StaticRewriter(tree, tracer).apply(context.promoted)
      tracer.end_phase()
    except Exception as e:
      logger.debug("Internal error", exc_info=True)
      return self._fail(code, f"Internal Error: {type(e).__name__}: {e}", tracer)

    tracer.end_phase()

    return RefactorResult(
      code=new_code,
      success=True,
      promoted=[PromotedMethod(owner=m.owner.display_name, name=m.name, line=m.line) for m in context.promoted],
      retained=[
        RetainedMethod(owner=o.method.owner.display_name, name=o.method.name, line=o.method.line, reason=o.reason)
        for o in context.retained
      ],
      trace_events=tracer.export(),
    )
