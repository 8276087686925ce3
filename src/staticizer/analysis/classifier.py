"""
Instance-Access Classifier.

Walks one method body and decides whether it touches the enclosing instance.
The walk is a single depth-first pass; every `visit` returns True as soon as
a disqualifying construct is found, and the remaining siblings are skipped
through `any()` in `ScopedVisitor.visit_all`.

A body that passes produces `NoDirectAccess` with the set of non-overridable
methods it calls through an implicit receiver. Whether those are eligible is
left to the fixpoint resolver.

Receivers:
  - Only the left-most segment of a qualified access is evaluated. `a.b.c`
    reads `a`; the tail segments belong to some other object.
  - `this`, `super`, `Outer.this` and `Outer.super` receivers denote an
    enclosing instance. The qualifier would survive into a static body, so
    any of them is access whatever member it selects.
  - Anything declared inside the candidate body (local and anonymous classes)
    has its own instance; its members never count.
"""

import logging
from typing import Optional, Set

from tree_sitter import Node

from staticizer.analysis.model import (
  ClassifierVerdict,
  ClassInfo,
  ClassKind,
  DefiniteInstanceAccess,
  MethodInfo,
  NoDirectAccess,
  declared_within,
)
from staticizer.analysis.scopes import Scope, ScopedVisitor, argument_count
from staticizer.analysis.symbol_table import (
  FieldRef,
  LocalRef,
  MethodRef,
  Reference,
  StaticImportRef,
  SymbolTable,
  TypeRef,
  Unresolved,
)
from staticizer.frontends.java import kinds
from staticizer.frontends.java.parser import line_of

logger = logging.getLogger(__name__)

# Statement kinds with nothing to evaluate.
_EMPTY = frozenset({"empty_statement", ";"})


class InstanceAccessClassifier(ScopedVisitor):
  """
  Classifies candidate method bodies against a `SymbolTable`.

  One instance can classify any number of methods; per-method state is reset
  by `classify`.
  """

  def __init__(self, table: SymbolTable):
    """
    Args:
        table: Symbol facts for the compilation unit.
    """
    self.table = table
    self.method: Optional[MethodInfo] = None
    self.edges: Set[MethodInfo] = set()
    self.reason = ""
    self.reason_line = 0

  def classify(self, method: MethodInfo) -> ClassifierVerdict:
    """
    Produces the verdict for one method.

    Args:
        method: The candidate method.

    Returns:
        `DefiniteInstanceAccess` with the first disqualifying construct, or
        `NoDirectAccess` with the invocation edges found.
    """
    self.method = method
    self.edges = set()
    self.reason = ""
    self.reason_line = 0

    if method.body is None:
      return DefiniteInstanceAccess("method has no body", method.line)

    scope = self.table.scope_of(method.owner).child(f"method_{method.name}")
    params = method.node.child_by_field_name("parameters") if method.node is not None else None
    if params is not None:
      self.declare_parameters(params, scope)

    if self.visit(method.body, scope):
      logger.debug("%s: instance access (%s, line %d)", method.qualified_name, self.reason, self.reason_line)
      return DefiniteInstanceAccess(self.reason, self.reason_line)

    logger.debug("%s: no direct access, %d edge(s)", method.qualified_name, len(self.edges))
    return NoDirectAccess(frozenset(self.edges))

  # --- Verdict helpers ---

  def _access(self, reason: str, node: Node) -> bool:
    self.reason = reason
    self.reason_line = line_of(node)
    return True

  def _is_foreign(self, cls: Optional[ClassInfo]) -> bool:
    """True if `cls` is not declared inside the method being classified."""
    return not declared_within(cls, self.method)

  def _text(self, node: Node) -> str:
    return self.table.tree.text(node)

  # --- Dispatch ---

  def visit(self, node: Node, scope: Scope) -> bool:
    kind = node.type

    if kind == "ERROR" or node.is_missing:
      return self._access("unparsable code", node)
    if not node.is_named or kind in kinds.INERT or kind in _EMPTY:
      return False

    if kind == "identifier":
      return self.visit_name(node, scope)
    if kind in ("this", "super"):
      return self.visit_bare_receiver(node, scope)
    if kind == "field_access":
      return self.visit_field_access(node, scope)
    if kind == "method_invocation":
      return self.visit_method_invocation(node, scope)
    if kind == "method_reference":
      return self.visit_method_reference(node, scope)
    if kind == "explicit_constructor_invocation":
      return self.visit_constructor_invocation(node, scope)
    if kind in kinds.TRANSPARENT:
      return self.visit_children(node, scope)
    if kind in _STRUCTURAL:
      return self.visit_structure(node, scope)

    return self._access(f"unrecognized construct '{kind}'", node)

  # --- Names and receivers ---

  def visit_name(self, node: Node, scope: Scope) -> bool:
    ref = self.table.resolve_name(scope, self._text(node))
    return self.check_reference(ref, node)

  def visit_case_constant(self, node: Node, scope: Scope) -> bool:
    ref = self.table.resolve_name(scope, self._text(node))
    if isinstance(ref, Unresolved):
      # Enum constant of the selector type.
      return False
    return self.check_reference(ref, node)

  def check_reference(self, ref: Reference, node: Node) -> bool:
    """
    Applies the access rules to a resolved simple name.

    Args:
        ref: The resolution result.
        node: The identifier (for reporting).

    Returns:
        True if the name denotes instance state of the candidate.
    """
    name = self._text(node)
    if isinstance(ref, TypeRef):
      return False
    if isinstance(ref, Unresolved):
      if ref.at_class is not None and self._is_foreign(ref.at_class):
        return self._access(f"'{name}' may be inherited by {ref.at_class.display_name}", node)
      return False

    shadow = ref.shadowed_by
    if shadow is not None and self._is_foreign(shadow):
      return self._access(f"'{name}' may be inherited by {shadow.display_name}", node)
    if isinstance(ref, (LocalRef, StaticImportRef)):
      return False
    if isinstance(ref, FieldRef):
      if ref.field.is_static or not self._is_foreign(ref.via):
        return False
      return self._access(f"reads instance field '{name}'", node)
    return False

  def visit_bare_receiver(self, node: Node, scope: Scope) -> bool:
    if self._is_foreign(scope.innermost_class()):
      return self._access(f"uses '{node.type}'", node)
    return False

  def qualified_receiver(self, node: Node, scope: Scope) -> Optional[ClassInfo]:
    """Resolves the `Outer` of an `Outer.this` / `Outer.super` qualifier."""
    ref = self.table.resolve_type_text(scope, self._text(node))
    return ref.cls if ref is not None else None

  def qualifier_text(self, obj: Node, receiver: str) -> str:
    """Renders `this`, `super`, `Outer.this` or `Outer.super` for a reason."""
    if obj.type in ("this", "super", "field_access"):
      return self._text(obj)
    return f"{self._text(obj)}.{receiver}"

  def receiver_of(self, obj: Node, node: Node, scope: Scope):
    """
    Classifies the receiver of a field access or method invocation.

    Args:
        obj: The `object` child.
        node: The access node.
        scope: Current scope.

    Returns:
        Tuple of (receiver kind, class). Kind is "this", "super" or None for
        an ordinary expression receiver.
    """
    qualified_super = any(c.type == "super" and c != obj for c in node.named_children)
    if obj.type == "this":
      return "this", scope.innermost_class()
    if obj.type == "super":
      return "super", scope.innermost_class()
    if qualified_super:
      return "super", self.qualified_receiver(obj, scope)
    if obj.type == "field_access":
      field = obj.child_by_field_name("field")
      if field is not None and field.type == "this":
        return "this", self.qualified_receiver(obj.child_by_field_name("object"), scope)
    return None, None

  def visit_field_access(self, node: Node, scope: Scope) -> bool:
    obj = node.child_by_field_name("object")
    field = node.child_by_field_name("field")
    if obj is None or field is None:
      return self._access("malformed field access", node)

    if field.type == "this":
      cls = self.qualified_receiver(obj, scope)
      if cls is None or self._is_foreign(cls):
        return self._access(f"uses '{self._text(node)}'", node)
      return False

    receiver, cls = self.receiver_of(obj, node, scope)
    if receiver is None:
      return self.visit(obj, scope)
    if cls is None:
      return self._access(f"unknown receiver in '{self._text(node)}'", node)
    if not self._is_foreign(cls):
      return False
    # The qualifier stays in the body, and is illegal in a static method.
    return self._access(f"uses '{self.qualifier_text(obj, receiver)}'", node)

  # --- Invocations ---

  def visit_method_invocation(self, node: Node, scope: Scope) -> bool:
    name = self._text(node.child_by_field_name("name"))
    arguments = node.child_by_field_name("arguments")
    arity = argument_count(arguments)
    obj = node.child_by_field_name("object")

    if obj is None:
      if self.check_call(self.table.resolve_method(scope, name, arity), node):
        return True
    else:
      receiver, cls = self.receiver_of(obj, node, scope)
      if receiver is None:
        if self.visit(obj, scope):
          return True
      elif cls is None:
        return self._access(f"unknown receiver in call to '{name}'", node)
      elif self._is_foreign(cls):
        return self._access(f"uses '{self.qualifier_text(obj, receiver)}' to call '{name}'", node)

    return arguments is not None and self.visit(arguments, scope)

  def check_call(self, ref: Reference, node: Node) -> bool:
    """
    Applies the invocation rules to a call through an implicit receiver.

    Static callees are ignored; non-overridable callees become edges; any
    other instance callee disqualifies the method.

    Args:
        ref: The resolved callee.
        node: The invocation (for reporting).

    Returns:
        True if the call is instance access.
    """
    name = self._text(node.child_by_field_name("name"))
    if isinstance(ref, Unresolved):
      if ref.at_class is not None and self._is_foreign(ref.at_class):
        return self._access(f"calls inherited method '{name}'", node)
      return False
    if isinstance(ref, StaticImportRef):
      if ref.shadowed_by is not None and self._is_foreign(ref.shadowed_by):
        return self._access(f"'{name}' may be inherited by {ref.shadowed_by.display_name}", node)
      return False
    if not isinstance(ref, MethodRef):
      return self._access(f"cannot resolve call to '{name}'", node)

    if not self._is_foreign(ref.via):
      return False
    if ref.shadowed_by is not None and self._is_foreign(ref.shadowed_by):
      return self._access(f"'{name}' may be inherited by {ref.shadowed_by.display_name}", node)

    for callee in ref.overloads:
      if callee.is_static:
        continue
      if callee.is_non_overridable and not callee.is_constructor:
        self.edges.add(callee)
        continue
      return self._access(f"calls instance method '{callee.qualified_name}'", node)
    return False

  def visit_constructor_invocation(self, node: Node, scope: Scope) -> bool:
    """`this(...)` / `super(...)` inside constructors of nested classes."""
    for child in node.named_children:
      if child.type in ("this", "super") or child.type in kinds.TYPES:
        continue
      if self.visit(child, scope):
        return True
    return False

  # --- Construction ---

  def captures_instance(self, cls: ClassInfo) -> bool:
    """
    Checks whether `new cls(...)` without a qualifier captures an enclosing
    instance of the candidate.

    Args:
        cls: The created class.

    Returns:
        True for inner member classes and local classes of instance contexts
        that are declared outside the candidate.
    """
    if not self._is_foreign(cls):
      return False
    if cls.requires_outer_instance:
      return True
    if cls.is_local and cls.kind == ClassKind.CLASS and not cls.is_static:
      return cls.enclosing_method is None or not cls.enclosing_method.is_static
    return False

  def visit_object_creation(self, node: Node, scope: Scope) -> bool:
    qualifier = None
    for child in node.named_children:
      if child.type in kinds.TYPES or child.type in ("argument_list", "class_body"):
        continue
      qualifier = child
      break

    if qualifier is not None:
      if qualifier.type == "this":
        if self._is_foreign(scope.innermost_class()):
          return self._access("creates inner class with 'this' as outer instance", node)
      elif self.visit(qualifier, scope):
        return True
    else:
      created = self.table.resolve_type_text(scope, self._text(node.child_by_field_name("type")))
      if created is not None and created.cls is not None and self.captures_instance(created.cls):
        return self._access(f"creates inner class '{created.cls.display_name}'", node)

    for child in node.named_children:
      if child is qualifier or child.type in kinds.TYPES:
        continue
      if child.type == "class_body":
        if self.visit_anonymous_class(node, child, scope):
          return True
      elif self.visit(child, scope):
        return True
    return False

  def visit_method_reference(self, node: Node, scope: Scope) -> bool:
    target = node.named_children[0] if node.named_children else None
    if target is None:
      return self._access("malformed method reference", node)
    is_constructor = any(c.type == "new" for c in node.children)

    if target.type in ("this", "super"):
      return self.visit_bare_receiver(target, scope)
    if target.type == "field_access":
      field = target.child_by_field_name("field")
      if field is not None and field.type == "this":
        return self.visit_field_access(target, scope)
    if any(c.type == "super" and c != target for c in node.named_children):
      cls = self.qualified_receiver(target, scope)
      if cls is None or self._is_foreign(cls):
        return self._access(f"uses '{self._text(node)}'", node)
      return False

    if target.type in kinds.TYPES or target.type in ("identifier", "scoped_identifier", "field_access"):
      as_type = self.table.resolve_type_text(scope, self._text(target))
      if is_constructor:
        if as_type is not None and as_type.cls is not None and self.captures_instance(as_type.cls):
          return self._access(f"references constructor of inner class '{as_type.cls.display_name}'", node)
        return False
      if target.type in kinds.TYPES:
        return False
      if target.type == "identifier":
        ref = self.table.resolve_name(scope, self._text(target))
        return self.check_reference(ref, target)
    return self.visit(target, scope)

  # --- Classes declared inside the candidate ---

  def declare_local_class(self, node: Node, scope: Scope) -> None:
    info = self.table.class_for(node)
    if info is not None and info.name:
      scope.declare_type(info.name, info)

  def visit_local_class(self, node: Node, scope: Scope) -> bool:
    info = self.table.class_for(node)
    if info is None:
      return self._access("unindexed local class", node)
    return self.visit_class_body(info)

  def visit_anonymous_class(self, node: Node, body: Node, scope: Scope) -> bool:
    info = self.table.class_for(node)
    if info is None:
      return self._access("unindexed anonymous class", node)
    return self.visit_class_body(info)

  def visit_class_body(self, info: ClassInfo) -> bool:
    """
    Walks every code region of a class declared inside the candidate.

    Args:
        info: The local or anonymous class (or one nested inside it).

    Returns:
        True if any region uses the candidate's instance.
    """
    class_scope = self.table.scope_of(info)
    if info.body is None:
      return False
    members = []
    for child in info.body.named_children:
      if child.type == "enum_body_declarations":
        members.extend(child.named_children)
      else:
        members.append(child)

    for member in members:
      kind = member.type
      if kind in ("field_declaration", "constant_declaration"):
        if self.visit_declarators(member, class_scope.child("field")):
          return True
      elif kind in ("method_declaration", "constructor_declaration", "compact_constructor_declaration"):
        body = member.child_by_field_name("body")
        if body is None:
          continue
        method_scope = class_scope.child("method")
        params = member.child_by_field_name("parameters")
        if params is not None:
          self.declare_parameters(params, method_scope)
        if kind == "compact_constructor_declaration":
          for component in info.fields.values():
            method_scope.declare(component.name)
        if self.visit(body, method_scope):
          return True
      elif kind == "block":
        if self.visit(member, class_scope):
          return True
      elif kind == "static_initializer":
        if self.visit_children(member, class_scope):
          return True
      elif kind in kinds.CLASS_DECLARATIONS:
        nested = self.table.class_for(member)
        if nested is not None and self.visit_class_body(nested):
          return True
      elif kind == "enum_constant":
        arguments = member.child_by_field_name("arguments")
        if arguments is not None and self.visit(arguments, class_scope.child("enum_constant")):
          return True
        nested = self.table.class_for(member)
        if nested is not None and self.visit_class_body(nested):
          return True
    return False


_STRUCTURAL = frozenset(
  {
    "block",
    "constructor_body",
    "local_variable_declaration",
    "for_statement",
    "enhanced_for_statement",
    "catch_clause",
    "try_statement",
    "try_with_resources_statement",
    "lambda_expression",
    "switch_block_statement_group",
    "switch_rule",
    "switch_label",
    "instanceof_expression",
    "if_statement",
    "ternary_expression",
    "while_statement",
    "binary_expression",
    "labeled_statement",
    "object_creation_expression",
  }
) | kinds.CLASS_DECLARATIONS
