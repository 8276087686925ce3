"""
Tests for the fixpoint eligibility resolver.

Uses standalone `MethodInfo` objects: the resolver only looks at verdicts.
"""

from staticizer.analysis.model import ClassInfo, ClassKind, DefiniteInstanceAccess, MethodInfo, NoDirectAccess
from staticizer.analysis.resolver import resolve_eligible, resolve_with_passes

OWNER = ClassInfo(name="A", kind=ClassKind.CLASS, node=None, body=None)


def _m(name):
  return MethodInfo(name=name, owner=OWNER, modifiers=frozenset({"private"}))


def test_direct_access_is_dropped():
  a = _m("a")
  assert resolve_eligible({a: DefiniteInstanceAccess("uses 'this'")}, frozenset()) == frozenset()


def test_leaf_is_eligible():
  a = _m("a")
  assert resolve_eligible({a: NoDirectAccess()}, frozenset()) == {a}


def test_chain_resolves_in_passes():
  a, b, c = _m("a"), _m("b"), _m("c")
  verdicts = {
    a: NoDirectAccess(frozenset({b})),
    b: NoDirectAccess(frozenset({c})),
    c: NoDirectAccess(),
  }
  eligible, passes = resolve_with_passes(verdicts, frozenset())
  assert eligible == {a, b, c}
  assert passes == [frozenset({c}), frozenset({b}), frozenset({a})]


def test_chain_into_access_is_pruned():
  a, b = _m("a"), _m("b")
  verdicts = {a: NoDirectAccess(frozenset({b})), b: DefiniteInstanceAccess("reads instance field 'x'")}
  assert resolve_eligible(verdicts, frozenset()) == frozenset()


def test_self_and_mutual_recursion_are_never_promoted():
  a, b, c = _m("a"), _m("b"), _m("c")
  verdicts = {
    a: NoDirectAccess(frozenset({a})),
    b: NoDirectAccess(frozenset({c})),
    c: NoDirectAccess(frozenset({b})),
  }
  eligible, passes = resolve_with_passes(verdicts, frozenset())
  assert eligible == frozenset()
  assert passes == []


def test_recursive_method_with_exit_stays_pending():
  a, base = _m("a"), _m("base")
  verdicts = {a: NoDirectAccess(frozenset({a, base})), base: NoDirectAccess()}
  eligible, passes = resolve_with_passes(verdicts, frozenset())
  assert eligible == {base}
  assert passes == [frozenset({base})]


def test_prior_set_unblocks_edges():
  outer, inner = _m("outer"), _m("inner")
  verdicts = {inner: NoDirectAccess(frozenset({outer}))}
  assert resolve_eligible(verdicts, frozenset({outer})) == {inner}
  assert resolve_eligible(verdicts, frozenset()) == frozenset()


def test_result_independent_of_order():
  a, b, c = _m("a"), _m("b"), _m("c")
  items = [
    (a, NoDirectAccess(frozenset({b}))),
    (b, NoDirectAccess()),
    (c, NoDirectAccess(frozenset({c}))),
  ]
  forward = resolve_eligible(dict(items), frozenset())
  backward = resolve_eligible(dict(reversed(items)), frozenset())
  assert forward == backward == {a, b}
