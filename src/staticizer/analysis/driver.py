"""
Traversal Driver.

Visits every class-shaped scope of a compilation unit in source order, a class
before the scopes nested in it, and runs each through the pipeline:

    EnteringClass -> CollectingCandidates -> Classifying -> Resolving
      -> MergingGlobalSet -> RecursingIntoNestedScopes -> Done

State is threaded explicitly: each step takes an immutable `AnalysisContext`
and returns a new one. The eligible set only grows, and a class's decisions
are final once its own resolver pass is merged.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from staticizer.analysis.candidates import CandidateCollector
from staticizer.analysis.classifier import InstanceAccessClassifier
from staticizer.analysis.model import (
  ClassifierVerdict,
  ClassInfo,
  DefiniteInstanceAccess,
  MethodInfo,
)
from staticizer.analysis.resolver import resolve_with_passes
from staticizer.analysis.symbol_table import SymbolTable
from staticizer.core.tracer import TraceLogger, get_tracer

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
  ENTERING_CLASS = "entering_class"
  COLLECTING_CANDIDATES = "collecting_candidates"
  CLASSIFYING = "classifying"
  RESOLVING = "resolving"
  MERGING_GLOBAL_SET = "merging_global_set"
  RECURSING_INTO_NESTED_SCOPES = "recursing_into_nested_scopes"
  DONE = "done"


@dataclass(frozen=True)
class MethodOutcome:
  """
  Final decision for one candidate.

  Attributes:
      method: The candidate.
      eligible: True if it will be made static.
      reason: Why it stays an instance method ('' when eligible).
  """

  method: MethodInfo
  eligible: bool
  reason: str = ""


@dataclass(frozen=True)
class AnalysisContext:
  """
  Accumulated traversal state.

  Attributes:
      eligible: Every method proven eligible so far.
      outcomes: Candidate decisions in traversal order.
      visited: Classes completed, in traversal order.
  """

  eligible: FrozenSet[MethodInfo] = frozenset()
  outcomes: Tuple[MethodOutcome, ...] = ()
  visited: Tuple[ClassInfo, ...] = ()

  @property
  def promoted(self) -> List[MethodInfo]:
    return [o.method for o in self.outcomes if o.eligible]

  @property
  def retained(self) -> List[MethodOutcome]:
    return [o for o in self.outcomes if not o.eligible]


def explain_pruned(method: MethodInfo, edges: FrozenSet[MethodInfo], eligible: FrozenSet[MethodInfo]) -> str:
  """
  Describes why a candidate without direct access was still pruned.

  Args:
      method: The pruned candidate.
      edges: Its invocation edges.
      eligible: Methods eligible after resolution.

  Returns:
      A reason naming the first blocking callee.
  """
  blocking = sorted((m for m in edges if m not in eligible), key=lambda m: m.line)
  if not blocking:
    return "depends on an ineligible method"
  callee = blocking[0]
  if callee is method:
    return "recursive call never reaches a static exit"
  return f"calls '{callee.qualified_name}', which cannot be made static"


class TraversalDriver:
  """
  Runs the per-class pipeline over a whole unit.
  """

  def __init__(self, table: SymbolTable, tracer: Optional[TraceLogger] = None):
    """
    Args:
        table: Symbol facts for the unit.
        tracer: Event sink (defaults to the global tracer).
    """
    self.table = table
    self.collector = CandidateCollector(table)
    self.classifier = InstanceAccessClassifier(table)
    self.tracer = tracer or get_tracer()

  def run(self, context: Optional[AnalysisContext] = None) -> AnalysisContext:
    """
    Analyzes every class of the unit.

    Args:
        context: Starting state (empty by default).

    Returns:
        The final context.
    """
    context = context or AnalysisContext()
    for cls in self.table.top_level_classes():
      context = self.visit_class(cls, context)
    return context

  def _enter(self, cls: ClassInfo, state: DriverState) -> DriverState:
    logger.debug("%s: %s", cls.display_name, state.value)
    return state

  def visit_class(self, cls: ClassInfo, context: AnalysisContext) -> AnalysisContext:
    """
    Runs the pipeline for one class and then for its nested scopes.

    Args:
        cls: The class-shaped scope.
        context: State before the class.

    Returns:
        State after the class and everything nested in it.
    """
    self._enter(cls, DriverState.ENTERING_CLASS)
    self.tracer.start_phase(f"Class {cls.display_name}", f"line {cls.line}")

    self._enter(cls, DriverState.COLLECTING_CANDIDATES)
    candidates = self.collector.collect(cls)

    self._enter(cls, DriverState.CLASSIFYING)
    verdicts: Dict[MethodInfo, ClassifierVerdict] = {m: self.classifier.classify(m) for m in candidates}

    self._enter(cls, DriverState.RESOLVING)
    eligible, passes = resolve_with_passes(verdicts, context.eligible)
    for index, admitted in enumerate(passes, start=1):
      self.tracer.log_resolver_pass(cls.display_name, index, sorted(m.qualified_name for m in admitted))

    self._enter(cls, DriverState.MERGING_GLOBAL_SET)
    merged = context.eligible | eligible
    outcomes: List[MethodOutcome] = []
    for method in candidates:
      verdict = verdicts[method]
      if method in eligible:
        outcome = MethodOutcome(method, True)
        self.tracer.log_inspection(method.qualified_name, "eligible")
      elif isinstance(verdict, DefiniteInstanceAccess):
        reason = f"{verdict.reason} (line {verdict.line})" if verdict.line else verdict.reason
        outcome = MethodOutcome(method, False, reason)
        self.tracer.log_inspection(method.qualified_name, "instance access", reason)
      else:
        outcome = MethodOutcome(method, False, explain_pruned(method, verdict.edges, merged))
        self.tracer.log_inspection(method.qualified_name, "pruned", outcome.reason)
      outcomes.append(outcome)

    context = replace(
      context,
      eligible=merged,
      outcomes=context.outcomes + tuple(outcomes),
      visited=context.visited + (cls,),
    )

    self._enter(cls, DriverState.RECURSING_INTO_NESTED_SCOPES)
    for nested in cls.nested_classes:
      context = self.visit_class(nested, context)

    self._enter(cls, DriverState.DONE)
    self.tracer.end_phase()
    return context
