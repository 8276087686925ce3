"""
Refactoring Trace Logger.

Records what a run did, as a flat list of events that nest through
`parent_id`:

- phases (the pipeline stages and one phase per visited class);
- the outcome for each candidate method;
- each fixpoint resolver pass with the methods it admitted;
- each modifier list rewrite;
- warnings for runs that fail closed.

`export` returns plain dicts for JSON serialization.
"""

import time
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TraceEventType(str, Enum):
  PHASE_START = "phase_start"
  PHASE_END = "phase_end"
  INSPECTION = "inspection"
  RESOLVER_PASS = "resolver_pass"
  SOURCE_MUTATION = "source_mutation"
  ANALYSIS_WARNING = "analysis_warning"


@dataclass
class TraceEvent:
  id: str
  type: TraceEventType
  timestamp: float
  description: str
  parent_id: Optional[str] = None
  metadata: Dict[str, Any] = field(default_factory=dict)


class TraceLogger:
  """
  Event sink shared by the Engine, the Traversal Driver and the Rewriter.
  """

  def __init__(self):
    self._events: List[TraceEvent] = []
    self._open: List[str] = []  # ids of started phases, innermost last

  def _record(self, kind: TraceEventType, description: str, parent: Optional[str], **metadata: Any) -> str:
    event_id = str(uuid.uuid4())
    self._events.append(TraceEvent(event_id, kind, time.time(), description, parent, metadata))
    return event_id

  @property
  def _current(self) -> Optional[str]:
    return self._open[-1] if self._open else None

  def start_phase(self, name: str, description: str = "") -> str:
    """Opens a phase nested in the current one and returns its id."""
    phase_id = self._record(TraceEventType.PHASE_START, name, self._current, detail=description)
    self._open.append(phase_id)
    return phase_id

  def end_phase(self):
    """Closes the innermost open phase, if any."""
    if self._open:
      self._record(TraceEventType.PHASE_END, "End Phase", self._open.pop())

  def close_phases(self):
    """Closes every open phase, innermost first."""
    while self._open:
      self.end_phase()

  def log_inspection(self, method: str, outcome: str, detail: str = ""):
    self._record(TraceEventType.INSPECTION, f"Inspecting '{method}'", self._current, outcome=outcome, detail=detail)

  def log_resolver_pass(self, owner: str, index: int, admitted: List[str]):
    self._record(
      TraceEventType.RESOLVER_PASS,
      f"Resolver pass {index} on {owner}",
      self._current,
      owner=owner,
      admitted=admitted,
      **{"pass": index},
    )

  def log_mutation(self, method: str, before: str, after: str):
    self._record(TraceEventType.SOURCE_MUTATION, f"Made '{method}' static", self._current, before=before, after=after)

  def log_warning(self, message: str):
    self._record(TraceEventType.ANALYSIS_WARNING, message, self._current, level="warning")

  def export(self) -> List[Dict[str, Any]]:
    return [asdict(e) for e in self._events]


# Global instance for ease of access from the analysis passes.
_GLOBAL_TRACER = TraceLogger()


def get_tracer() -> TraceLogger:
  return _GLOBAL_TRACER


def reset_tracer():
  global _GLOBAL_TRACER
  _GLOBAL_TRACER = TraceLogger()
