"""
Tests for the SymbolTable.

Verifies:
1.  Class discovery (member, local, anonymous, enum constant bodies).
2.  Supertype linking and opacity.
3.  Name, method and type resolution along the lexical scope chain.
"""

from staticizer.analysis.model import ClassKind
from staticizer.analysis.symbol_table import (
  FieldRef,
  LocalRef,
  MethodRef,
  StaticImportRef,
  TypeRef,
  Unresolved,
  clean_type_name,
  select_overloads,
)


def _by_name(table, name):
  return next(c for c in table.classes if c.name == name)


def _method(cls, name):
  return next(m for m in cls.methods if m.name == name)


def test_clean_type_name():
  assert clean_type_name("java.util.List<String>") == "java.util.List"
  assert clean_type_name("Outer.Inner") == "Outer.Inner"
  assert clean_type_name("int[]") == "int"


def test_package_and_imports(build_table):
  table = build_table(
    """
    package com.example;

    import java.util.List;
    import java.util.*;
    import static java.lang.Math.max;

    class A {}
    """
  )
  assert table.package == "com.example"
  assert table.imported_types == {"List": "java.util.List"}
  assert table.static_imports == {"max"}
  assert list(table.top_level) == ["A"]


def test_class_discovery(build_table):
  table = build_table(
    """
    interface I {}
    class A {
        static class S {}
        class Inner {}
        I field = new I() {};
        void m() {
            class Local {}
        }
    }
    enum E {
        X {
            void f() {}
        };
        void f() {}
    }
    """
  )
  a = _by_name(table, "A")
  kinds = [(c.name, c.kind) for c in a.nested_classes]
  assert kinds == [
    ("S", ClassKind.CLASS),
    ("Inner", ClassKind.CLASS),
    (None, ClassKind.ANONYMOUS),
    ("Local", ClassKind.CLASS),
  ]
  assert _by_name(table, "S").is_static
  assert _by_name(table, "Inner").requires_outer_instance
  local = _by_name(table, "Local")
  assert local.is_local
  assert local.enclosing_method is _method(a, "m")
  assert set(a.member_types) == {"S", "Inner"}

  e = _by_name(table, "E")
  constant_body = e.nested_classes[0]
  assert constant_body.kind == ClassKind.ANONYMOUS
  assert constant_body.supertypes == [e]
  assert e.fields["X"].is_static
  assert [m.name for m in e.methods if m.node is None] == ["values", "valueOf"]


def test_interface_members_are_static(build_table):
  table = build_table(
    """
    interface I {
        int LIMIT = 3;
        class Nested {}
    }
    """
  )
  i = _by_name(table, "I")
  assert i.fields["LIMIT"].is_static
  assert _by_name(table, "Nested").is_static


def test_supertype_linking_and_opacity(build_table):
  table = build_table(
    """
    import com.example.Base;

    interface Known {}
    class Parent {}
    class A extends Parent implements Known, java.io.Serializable {}
    class B extends Base {}
    class C implements Runnable {
        public void run() {}
    }
    class D extends Object {}
    enum E {}
    record R(int x) {}
    """
  )
  a = _by_name(table, "A")
  assert [s.name for s in a.supertypes] == ["Parent", "Known"]
  assert not a.has_opaque_supertypes

  b = _by_name(table, "B")
  assert b.opaque_fields and b.opaque_methods

  c = _by_name(table, "C")
  assert c.opaque_methods and not c.opaque_fields

  assert not _by_name(table, "D").has_opaque_supertypes
  assert _by_name(table, "E").opaque_methods
  r = _by_name(table, "R")
  assert r.opaque_methods
  assert not r.fields["x"].is_static


def test_declares_supertype_through_hierarchy(build_table):
  table = build_table(
    """
    import java.io.Serializable;

    class Base implements Serializable {}
    class A extends Base {}
    class Z {}
    """
  )
  names = frozenset({"Serializable", "java.io.Serializable"})
  assert table.declares_supertype(_by_name(table, "A"), names)
  assert not table.declares_supertype(_by_name(table, "Z"), names)


def test_resolve_name_kinds(build_table):
  table = build_table(
    """
    import static java.lang.Math.PI;

    class A {
        int field = 0;
        static int counter = 0;
        void m(int param) {}
    }
    """
  )
  a = _by_name(table, "A")
  scope = table.scope_of(a).child("method")
  scope.declare("param")

  assert isinstance(table.resolve_name(scope, "param"), LocalRef)
  field_ref = table.resolve_name(scope, "field")
  assert isinstance(field_ref, FieldRef)
  assert field_ref.via is a
  assert not field_ref.field.is_static
  assert table.resolve_name(scope, "counter").field.is_static
  assert isinstance(table.resolve_name(scope, "A"), TypeRef)
  assert isinstance(table.resolve_name(scope, "String"), TypeRef)
  assert isinstance(table.resolve_name(scope, "PI"), StaticImportRef)
  missing = table.resolve_name(scope, "nothing")
  assert isinstance(missing, Unresolved)
  assert missing.at_class is None


def test_resolve_name_inherited_field(build_table):
  table = build_table(
    """
    class Parent {
        protected int inherited = 0;
    }
    class A extends Parent {}
    """
  )
  a = _by_name(table, "A")
  ref = table.resolve_name(table.scope_of(a), "inherited")
  assert isinstance(ref, FieldRef)
  assert ref.via is a
  assert ref.field.owner is _by_name(table, "Parent")


def test_opaque_class_shadows_outer_members(build_table):
  table = build_table(
    """
    import com.example.Base;

    class A {
        int x = 0;
        void m() {
            Object o = new Base() {
                int f() {
                    return 0;
                }
            };
        }
    }
    """
  )
  anonymous = next(c for c in table.classes if c.kind == ClassKind.ANONYMOUS)
  assert anonymous.opaque_fields

  ref = table.resolve_name(table.scope_of(anonymous), "x")
  assert isinstance(ref, FieldRef)
  assert ref.shadowed_by is anonymous

  unknown = table.resolve_name(table.scope_of(anonymous), "y")
  assert isinstance(unknown, Unresolved)
  assert unknown.at_class is anonymous


def test_anonymous_class_captures_locals(build_table):
  table = build_table(
    """
    interface I {}
    class A {
        void m(int p) {
            int before = 1;
            I i = new I() {};
            int after = 2;
        }
    }
    """
  )
  anonymous = next(c for c in table.classes if c.kind == ClassKind.ANONYMOUS)
  scope = table.scope_of(anonymous)
  assert isinstance(table.resolve_name(scope, "p"), LocalRef)
  assert isinstance(table.resolve_name(scope, "before"), LocalRef)
  assert isinstance(table.resolve_name(scope, "after"), Unresolved)


def test_resolve_method_overloads(build_table):
  table = build_table(
    """
    class A {
        private void f() {}
        private void f(int a) {}
        static void g(String s) {}
    }
    """
  )
  a = _by_name(table, "A")
  scope = table.scope_of(a)

  one = table.resolve_method(scope, "f", 1)
  assert isinstance(one, MethodRef)
  assert [m.arity for m in one.overloads] == [1]

  fallback = table.resolve_method(scope, "g", 3)
  assert isinstance(fallback, MethodRef)
  assert fallback.overloads[0].is_static

  obj = table.resolve_method(scope, "hashCode", 0)
  assert isinstance(obj, Unresolved)
  assert obj.at_class is a


def test_select_overloads_varargs(build_table):
  table = build_table(
    """
    class A {
        private void f(String fmt, Object... args) {}
        private void f() {}
    }
    """
  )
  overloads = _by_name(table, "A").methods
  assert [m.arity for m in select_overloads(overloads, 0)] == [0]
  assert [m.arity for m in select_overloads(overloads, 4)] == [2]


def test_resolve_type_text(build_table):
  table = build_table(
    """
    package p;

    class Outer {
        static class Inner {
            class Deep {}
        }
    }
    """
  )
  scope = table.scope_of(_by_name(table, "Outer"))
  assert table.resolve_type_text(scope, "Outer.Inner.Deep<String>").cls is _by_name(table, "Deep")
  assert table.resolve_type_text(scope, "p.Outer").cls is _by_name(table, "Outer")
  assert table.resolve_type_text(scope, "java.util.Map").cls is None
  assert table.resolve_type_text(scope, "Unknown") is None
