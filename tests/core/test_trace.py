"""
Tests for the Tracing System.
"""

from staticizer.core.tracer import TraceEventType, TraceLogger, get_tracer, reset_tracer


def test_phase_nesting():
  logger = TraceLogger()

  p1 = logger.start_phase("Parent")
  logger.start_phase("Child")
  logger.end_phase()  # End Child
  logger.end_phase()  # End Parent

  events = logger.export()

  # 4 events: Start P, Start C, End C, End P
  assert len(events) == 4
  assert events[0]["type"] == TraceEventType.PHASE_START
  assert events[1]["parent_id"] == p1
  assert events[2]["type"] == TraceEventType.PHASE_END


def test_end_phase_without_start_is_noop():
  logger = TraceLogger()
  logger.end_phase()
  assert logger.export() == []


def test_inspection_metadata():
  logger = TraceLogger()
  logger.log_inspection("A.test", "instance access", "reads instance field 'a' (line 4)")

  events = logger.export()
  assert len(events) == 1
  assert events[0]["type"] == TraceEventType.INSPECTION
  assert events[0]["metadata"]["outcome"] == "instance access"
  assert "'a'" in events[0]["metadata"]["detail"]


def test_resolver_pass_metadata():
  logger = TraceLogger()
  phase = logger.start_phase("Class A")
  logger.log_resolver_pass("A", 2, ["A.first"])

  event = logger.export()[-1]
  assert event["type"] == TraceEventType.RESOLVER_PASS
  assert event["parent_id"] == phase
  assert event["metadata"] == {"owner": "A", "pass": 2, "admitted": ["A.first"]}


def test_mutation_and_warning():
  logger = TraceLogger()
  logger.log_mutation("A.test", "private", "private static")
  logger.log_warning("Parse Error: Syntax error")

  mutation, warning = logger.export()
  assert mutation["type"] == TraceEventType.SOURCE_MUTATION
  assert mutation["metadata"]["after"] == "private static"
  assert warning["type"] == TraceEventType.ANALYSIS_WARNING
  assert warning["metadata"]["level"] == "warning"


def test_reset_replaces_global():
  first = get_tracer()
  first.log_warning("stale")
  reset_tracer()
  assert get_tracer() is not first
  assert get_tracer().export() == []


def test_engine_records_pipeline(refactor):
  result = refactor(
    """
    class A {
        private int first() {
            return second();
        }
        private int second() {
            return 0;
        }
    }
    """
  )
  events = result.trace_events
  phases = [e["description"] for e in events if e["type"] == TraceEventType.PHASE_START]
  assert phases[:3] == ["Staticizer Pipeline", "Parsing", "Indexing"]
  assert "Class A" in phases

  passes = [e["metadata"]["admitted"] for e in events if e["type"] == TraceEventType.RESOLVER_PASS]
  assert passes == [["A.second"], ["A.first"]]

  mutations = [e for e in events if e["type"] == TraceEventType.SOURCE_MUTATION]
  assert len(mutations) == 2
  assert {m["metadata"]["after"] for m in mutations} == {"private static"}


def test_close_phases_ends_innermost_first():
  logger = TraceLogger()
  outer = logger.start_phase("Outer")
  inner = logger.start_phase("Inner")
  logger.close_phases()
  logger.close_phases()

  ends = [e["parent_id"] for e in logger.export() if e["type"] == TraceEventType.PHASE_END]
  assert ends == [inner, outer]
