"""
Tests for the Static Modifier Rewriter.
"""

from staticizer.core.rewriter import StaticRewriter
from staticizer.core.tracer import TraceEventType, TraceLogger


def _rewrite(build_table, code, names):
  table = build_table(code)
  methods = [m for c in table.classes for m in c.methods if m.name in names and m.node is not None]
  tracer = TraceLogger()
  return StaticRewriter(table.tree, tracer).apply(methods), tracer


def test_splice_after_last_keyword(build_table):
  out, _ = _rewrite(build_table, "class A {\n  private final int f() { return 0; }\n}\n", {"f"})
  assert out == "class A {\n  private final static int f() { return 0; }\n}\n"


def test_annotations_and_comments_preserved(build_table):
  code = "class A {\n  @Deprecated /* keep */ private\n  int f() { return 0; } // tail\n}\n"
  out, _ = _rewrite(build_table, code, {"f"})
  assert out == "class A {\n  @Deprecated /* keep */ private static\n  int f() { return 0; } // tail\n}\n"


def test_annotation_after_keyword(build_table):
  out, _ = _rewrite(build_table, "class A {\n  private @Deprecated int f() { return 0; }\n}\n", {"f"})
  assert out == "class A {\n  private static @Deprecated int f() { return 0; }\n}\n"


def test_generic_method(build_table):
  out, _ = _rewrite(build_table, "class A {\n  private <T> T id(T t) { return t; }\n}\n", {"id"})
  assert out == "class A {\n  private static <T> T id(T t) { return t; }\n}\n"


def test_multiple_splices_keep_offsets(build_table):
  code = "class A {\n  private int f() { return 0; }\n  final int g() { return 1; }\n  private int h() { return 2; }\n}\n"
  out, tracer = _rewrite(build_table, code, {"f", "g", "h"})
  assert out == (
    "class A {\n"
    "  private static int f() { return 0; }\n"
    "  final static int g() { return 1; }\n"
    "  private static int h() { return 2; }\n"
    "}\n"
  )
  mutations = [e for e in tracer.export() if e["type"] == TraceEventType.SOURCE_MUTATION]
  assert [m["description"] for m in mutations] == ["Made 'A.h' static", "Made 'A.g' static", "Made 'A.f' static"]
  assert mutations[1]["metadata"] == {"before": "final", "after": "final static"}


def test_already_static_is_skipped(build_table):
  table = build_table("class A {\n  private static int f() { return 0; }\n}\n")
  method = table.top_level["A"].methods[0]
  rewriter = StaticRewriter(table.tree, TraceLogger())
  assert rewriter.splice_for(method) is None
  assert rewriter.apply([method]) == "class A {\n  private static int f() { return 0; }\n}\n"


def test_non_ascii_source(build_table):
  code = 'class A {\n  String s = "héllo";\n  private int f() { return 0; }\n}\n'
  out, _ = _rewrite(build_table, code, {"f"})
  assert out == 'class A {\n  String s = "héllo";\n  private static int f() { return 0; }\n}\n'


def test_no_methods_is_identity(build_table):
  code = "class A {\n  private int f() { return 0; }\n}\n"
  out, tracer = _rewrite(build_table, code, set())
  assert out == code
  assert tracer.export() == []
