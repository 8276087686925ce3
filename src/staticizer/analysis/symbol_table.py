"""
Symbol Table for a Java Compilation Unit.

This module provides the symbol facts the instance-access classifier relies on.
A single pre-pass over the syntax tree builds a `ClassInfo` for every
class-shaped scope (top-level, member, local and anonymous classes,
interfaces, enums, records, enum constant bodies) together with its fields,
methods and member types. A second pass links supertypes declared in the same
unit.

Name lookup follows the Java scoping rules lexically:
1.  **Locals**: parameters, local variables and local classes in enclosing blocks.
2.  **Members**: fields and methods of each enclosing class, including members
    inherited from supertypes declared in the unit.
3.  **Types**: member, local, top-level, imported and well-known platform types.
4.  **Static imports**.

Supertypes that cannot be resolved inside the unit make a class *opaque*:
an unresolved name reaching it may be an inherited instance member. Every
reference therefore records the first opaque class scope it passed
(`shadowed_by`) so that callers can stay conservative.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple, Union

from tree_sitter import Node

from staticizer.analysis.model import ClassInfo, ClassKind, FieldInfo, MethodInfo
from staticizer.analysis.scopes import Scope, ScopedVisitor, declarator_name
from staticizer.frontends.java import kinds
from staticizer.frontends.java.parser import NodeKey, SyntaxTree, line_of, node_key

# Instance methods every class inherits from the root object type.
OBJECT_METHODS = frozenset(
  {"clone", "equals", "finalize", "getClass", "hashCode", "notify", "notifyAll", "toString", "wait"}
)

ROOT_SUPERCLASSES = frozenset({"Object", "java.lang.Object"})

# Supertypes that contribute no members.
MARKER_INTERFACES = frozenset({"Serializable", "java.io.Serializable", "Cloneable", "java.lang.Cloneable"})

# Implicitly imported `java.lang` types commonly used as qualifiers.
JAVA_LANG_TYPES = frozenset(
  {
    "Object",
    "String",
    "StringBuilder",
    "StringBuffer",
    "CharSequence",
    "Math",
    "StrictMath",
    "System",
    "Runtime",
    "Thread",
    "Class",
    "Boolean",
    "Byte",
    "Character",
    "Short",
    "Integer",
    "Long",
    "Float",
    "Double",
    "Number",
    "Void",
    "Enum",
    "Record",
    "Iterable",
    "Comparable",
    "Runnable",
    "AutoCloseable",
    "Throwable",
    "Exception",
    "Error",
    "RuntimeException",
    "IllegalArgumentException",
    "IllegalStateException",
    "NullPointerException",
    "UnsupportedOperationException",
    "IndexOutOfBoundsException",
    "ArithmeticException",
    "ClassCastException",
    "CloneNotSupportedException",
    "InterruptedException",
    "Override",
    "Deprecated",
    "SuppressWarnings",
    "FunctionalInterface",
    "SafeVarargs",
  }
)


@dataclass(frozen=True)
class LocalRef:
  """A parameter, local variable or captured local."""

  name: str
  shadowed_by: Optional[ClassInfo] = None


@dataclass(frozen=True)
class FieldRef:
  """A field found in the members of `via` (declared there or inherited)."""

  field: FieldInfo
  via: ClassInfo
  shadowed_by: Optional[ClassInfo] = None


@dataclass(frozen=True)
class TypeRef:
  """A type name; `cls` is None for types declared outside the unit."""

  name: str
  cls: Optional[ClassInfo] = None


@dataclass(frozen=True)
class MethodRef:
  """The overloads an implicit-receiver call may bind to, found in `via`."""

  overloads: Tuple[MethodInfo, ...]
  via: ClassInfo
  shadowed_by: Optional[ClassInfo] = None


@dataclass(frozen=True)
class StaticImportRef:
  """A name brought in by a single static import."""

  name: str
  shadowed_by: Optional[ClassInfo] = None


@dataclass(frozen=True)
class Unresolved:
  """
  A name with no declaration in the unit.

  Attributes:
      name: The identifier.
      at_class: The class scope that may provide it through an unresolved
          supertype, or None if no such scope was passed.
  """

  name: str
  at_class: Optional[ClassInfo] = None


Reference = Union[LocalRef, FieldRef, TypeRef, MethodRef, StaticImportRef, Unresolved]


def clean_type_name(text: str) -> str:
  """
  Normalizes type source text to a dotted name.

  Strips annotations, type arguments, array dimensions and whitespace:
  `java.util.List<@NonNull String>[]` becomes `java.util.List`.

  Args:
      text: Raw type text.

  Returns:
      The dotted type name.
  """
  text = re.sub(r"@[\w.]+(\([^)]*\))?", "", text)
  depth = 0
  out = []
  for ch in text:
    if ch == "<":
      depth += 1
    elif ch == ">":
      depth -= 1
    elif depth == 0:
      out.append(ch)
  return "".join(out).replace("[]", "").replace("...", "").replace(" ", "").strip()


def select_overloads(overloads: List[MethodInfo], arity: int) -> List[MethodInfo]:
  """Keeps the overloads applicable to a call with `arity` arguments."""
  return [m for m in overloads if m.arity == arity or (m.is_varargs and arity >= m.arity - 1)]


def modifier_keywords(node: Node) -> Tuple[frozenset, Optional[Node]]:
  """
  Collects the keyword modifiers of a declaration.

  Args:
      node: A declaration node.

  Returns:
      Tuple of (keyword set, the `modifiers` node or None).
  """
  for child in node.children:
    if child.type == "modifiers":
      words = frozenset(c.type for c in child.children if c.type in kinds.MODIFIER_KEYWORDS)
      return words, child
  return frozenset(), None


class SymbolTable:
  """
  Symbol facts for one compilation unit.

  Attributes:
      tree: The parsed unit.
      package: The declared package ('' for the default package).
      classes: Every class-shaped scope, in source order.
      top_level: Top-level types by simple name.
      imported_types: Single-type imports, simple name to qualified name.
      static_imports: Simple names brought in by single static imports.
  """

  def __init__(self, tree: SyntaxTree):
    """
    Initializes an empty table. Use `SymbolTable.build` to populate one.

    Args:
        tree: The parsed compilation unit.
    """
    self.tree = tree
    self.package = ""
    self.classes: List[ClassInfo] = []
    self.top_level: Dict[str, ClassInfo] = {}
    self.imported_types: Dict[str, str] = {}
    self.static_imports: Set[str] = set()
    self.root_scope = Scope(name="unit")
    self._by_node: Dict[NodeKey, ClassInfo] = {}
    self._scopes: Dict[ClassInfo, Scope] = {}

  @classmethod
  def build(cls, tree: SyntaxTree) -> "SymbolTable":
    """
    Indexes all declarations of a compilation unit.

    Args:
        tree: The parsed compilation unit.

    Returns:
        The populated table.
    """
    table = cls(tree)
    for child in tree.root.named_children:
      if child.type == "package_declaration":
        for part in child.named_children:
          if part.type in ("identifier", "scoped_identifier"):
            table.package = tree.text(part)
      elif child.type == "import_declaration":
        table._record_import(child)
      elif child.type in kinds.CLASS_DECLARATIONS:
        info = table._declare_class(child, outer=None, enclosing_method=None, is_local=False, parent_scope=table.root_scope)
        if info.name:
          table.top_level[info.name] = info
    for info in table.classes:
      table._link_supertypes(info)
    return table

  # --- Queries ---

  def class_for(self, node: Node) -> Optional[ClassInfo]:
    """
    Finds the class declared by a node.

    Args:
        node: A class declaration, or an `object_creation_expression` with a body.

    Returns:
        The indexed class, if any.
    """
    return self._by_node.get(node_key(node))

  def scope_of(self, info: ClassInfo) -> Scope:
    """Returns the class scope of an indexed class."""
    return self._scopes[info]

  def top_level_classes(self) -> List[ClassInfo]:
    """Top-level classes in source order."""
    return [c for c in self.classes if c.outer is None]

  def hierarchy(self, info: ClassInfo) -> Iterator[ClassInfo]:
    """
    Yields a class followed by its in-unit supertypes, nearest first.

    Args:
        info: The starting class.
    """
    seen: Set[int] = set()
    queue = [info]
    while queue:
      current = queue.pop(0)
      if id(current) in seen:
        continue
      seen.add(id(current))
      yield current
      queue.extend(current.supertypes)

  def declares_supertype(self, info: ClassInfo, names: frozenset) -> bool:
    """
    Checks whether a class or one of its in-unit supertypes names a given supertype.

    Args:
        info: The class to inspect.
        names: Accepted spellings, e.g. {"Serializable", "java.io.Serializable"}.

    Returns:
        True if any (transitive) supertype clause matches.
    """
    for current in self.hierarchy(info):
      declared = list(current.interface_names)
      if current.superclass_name:
        declared.append(current.superclass_name)
      if any(clean_type_name(n) in names for n in declared):
        return True
    return False

  def find_field(self, info: ClassInfo, name: str) -> Tuple[Optional[FieldInfo], bool]:
    """
    Looks up a field among a class's own and inherited members.

    Args:
        info: The class to search.
        name: Field name.

    Returns:
        Tuple of (field or None, whether an opaque supertype might declare it).
    """
    opaque = False
    for current in self.hierarchy(info):
      if name in current.fields:
        return current.fields[name], False
      opaque = opaque or current.opaque_fields
    return None, opaque

  def find_methods(self, info: ClassInfo, name: str) -> Tuple[List[MethodInfo], bool]:
    """
    Collects the methods named `name` among a class's own and inherited members.

    Args:
        info: The class to search.
        name: Method name.

    Returns:
        Tuple of (overloads, whether an opaque supertype might declare more).
    """
    found: List[MethodInfo] = []
    opaque = False
    for current in self.hierarchy(info):
      found.extend(current.methods_named(name))
      opaque = opaque or current.opaque_methods
    return found, opaque

  def find_member_type(self, info: ClassInfo, name: str) -> Optional[ClassInfo]:
    for current in self.hierarchy(info):
      if name in current.member_types:
        return current.member_types[name]
    return None

  def resolve_name(self, scope: Scope, name: str) -> Reference:
    """
    Resolves a simple name used as an expression.

    Args:
        scope: The scope at the point of use.
        name: The identifier.

    Returns:
        The reference it denotes.
    """
    shadow: Optional[ClassInfo] = None
    for current in scope.chain():
      if current.cls is None:
        if name in current.variables:
          return LocalRef(name, shadowed_by=shadow)
        continue
      field, opaque = self.find_field(current.cls, name)
      if field is not None:
        return FieldRef(field, via=current.cls, shadowed_by=shadow)
      if opaque and shadow is None:
        shadow = current.cls

    type_ref = self.resolve_type_name(scope, name)
    if type_ref is not None:
      return type_ref
    if name in self.static_imports:
      return StaticImportRef(name, shadowed_by=shadow)
    return Unresolved(name, at_class=shadow)

  def resolve_method(self, scope: Scope, name: str, arity: int) -> Reference:
    """
    Resolves an invocation without an explicit receiver.

    The innermost class that has any method of that name is searched (Java's
    comb rule); overloads are narrowed by argument count. If the count matches
    nothing, every overload is kept.

    Args:
        scope: The scope at the call site.
        name: The method name.
        arity: Number of arguments at the call site.

    Returns:
        A `MethodRef`, `StaticImportRef` or `Unresolved`.
    """
    shadow: Optional[ClassInfo] = None
    for current in scope.chain():
      if current.cls is None:
        continue
      overloads, opaque = self.find_methods(current.cls, name)
      if overloads:
        chosen = select_overloads(overloads, arity)
        if chosen:
          return MethodRef(tuple(chosen), via=current.cls, shadowed_by=shadow)
        if opaque:
          return Unresolved(name, at_class=current.cls)
        return MethodRef(tuple(overloads), via=current.cls, shadowed_by=shadow)
      if name in OBJECT_METHODS:
        return Unresolved(name, at_class=current.cls)
      if opaque and shadow is None:
        shadow = current.cls

    if name in self.static_imports:
      return StaticImportRef(name, shadowed_by=shadow)
    return Unresolved(name, at_class=shadow)

  def resolve_type_name(self, scope: Scope, name: str) -> Optional[TypeRef]:
    """
    Resolves a simple type name.

    Args:
        scope: The scope at the point of use.
        name: The simple name.

    Returns:
        A `TypeRef`, or None if the name is not a known type.
    """
    for current in scope.chain():
      if name in current.types:
        return TypeRef(name, current.types[name])
      if current.cls is not None:
        if current.cls.name == name:
          return TypeRef(name, current.cls)
        member = self.find_member_type(current.cls, name)
        if member is not None:
          return TypeRef(name, member)
    if name in self.top_level:
      return TypeRef(name, self.top_level[name])
    if name in self.imported_types or name in JAVA_LANG_TYPES:
      return TypeRef(name, None)
    return None

  def resolve_type_text(self, scope: Scope, text: str) -> Optional[TypeRef]:
    """
    Resolves a (possibly qualified or generic) type as written in source.

    Args:
        scope: The scope at the point of use.
        text: Type source text, e.g. `Outer.Inner<T>`.

    Returns:
        A `TypeRef` (with `cls=None` for qualified names outside the unit),
        or None for an unknown simple name.
    """
    dotted = clean_type_name(text)
    if not dotted:
      return None
    segments = dotted.split(".")
    head = self.resolve_type_name(scope, segments[0])
    if head is not None:
      current = head.cls
      for segment in segments[1:]:
        if current is None:
          return TypeRef(dotted, None)
        current = self.find_member_type(current, segment)
        if current is None:
          return TypeRef(dotted, None)
      return TypeRef(dotted, current)

    if len(segments) > 1:
      prefix = ".".join(segments[:-1])
      if prefix == self.package and segments[-1] in self.top_level:
        return TypeRef(dotted, self.top_level[segments[-1]])
      return TypeRef(dotted, None)
    return None

  # --- Indexing ---

  def _record_import(self, node: Node) -> None:
    is_static = any(c.type == "static" for c in node.children)
    is_wildcard = any(c.type == "asterisk" for c in node.named_children)
    target = next((c for c in node.named_children if c.type in ("identifier", "scoped_identifier")), None)
    if target is None or is_wildcard:
      return
    qualified = self.tree.text(target)
    simple = qualified.rsplit(".", 1)[-1]
    if is_static:
      self.static_imports.add(simple)
    else:
      self.imported_types[simple] = qualified

  def _register(self, info: ClassInfo, parent_scope: Scope) -> Scope:
    self.classes.append(info)
    self._by_node[node_key(info.node)] = info
    scope = parent_scope.enter_class(info)
    self._scopes[info] = scope
    if info.outer is not None:
      info.outer.nested_classes.append(info)
    return scope

  def _declare_class(
    self,
    node: Node,
    outer: Optional[ClassInfo],
    enclosing_method: Optional[MethodInfo],
    is_local: bool,
    parent_scope: Scope,
  ) -> ClassInfo:
    """
    Indexes a class, interface, enum, record or annotation declaration.

    Args:
        node: The declaration node.
        outer: The lexically enclosing class.
        enclosing_method: The method whose body declares it (local classes).
        is_local: True for block-level declarations.
        parent_scope: Scope in effect at the declaration point.

    Returns:
        The new `ClassInfo`.
    """
    kind = {
      "class_declaration": ClassKind.CLASS,
      "interface_declaration": ClassKind.INTERFACE,
      "enum_declaration": ClassKind.ENUM,
      "record_declaration": ClassKind.RECORD,
      "annotation_type_declaration": ClassKind.ANNOTATION,
    }[node.type]
    words, _ = modifier_keywords(node)
    name_node = node.child_by_field_name("name")

    implicitly_static = kind != ClassKind.CLASS or (
      outer is not None and outer.kind in (ClassKind.INTERFACE, ClassKind.ANNOTATION)
    )
    info = ClassInfo(
      name=self.tree.text(name_node) if name_node is not None else None,
      kind=kind,
      node=node,
      body=node.child_by_field_name("body"),
      outer=outer,
      enclosing_method=enclosing_method,
      is_static=outer is not None and ("static" in words or implicitly_static),
      is_local=is_local,
      line=line_of(node),
    )

    superclass = node.child_by_field_name("superclass")
    if superclass is not None:
      sup_type = next((c for c in superclass.named_children), None)
      info.superclass_name = self.tree.text(sup_type) if sup_type is not None else None

    for child in node.named_children:
      if child.type in ("super_interfaces", "extends_interfaces"):
        for type_list in child.named_children:
          for iface in type_list.named_children:
            info.interface_names.append(self.tree.text(iface))

    if kind == ClassKind.ENUM:
      info.opaque_methods = True
      for implicit, arity in (("values", 0), ("valueOf", 1)):
        info.methods.append(
          MethodInfo(name=implicit, owner=info, modifiers=frozenset({"public", "static"}), param_types=("String",) * arity)
        )
    elif kind == ClassKind.RECORD:
      info.opaque_methods = True

    scope = self._register(info, parent_scope)

    if kind == ClassKind.RECORD:
      self._index_record_components(info, node)

    if info.body is not None:
      self._index_members(info, info.body, scope)
    return info

  def _declare_anonymous(
    self,
    node: Node,
    body: Node,
    outer: Optional[ClassInfo],
    enclosing_method: Optional[MethodInfo],
    parent_scope: Scope,
    supertype: Optional[ClassInfo] = None,
  ) -> ClassInfo:
    """
    Indexes an anonymous class body.

    Args:
        node: The `object_creation_expression` (or `enum_constant`) node.
        body: Its `class_body`.
        outer: The class containing the creation expression.
        enclosing_method: The method whose body contains it, if any.
        parent_scope: Scope in effect at the creation point.
        supertype: Pre-resolved supertype (enum constant bodies).

    Returns:
        The new `ClassInfo`.
    """
    info = ClassInfo(
      name=None,
      kind=ClassKind.ANONYMOUS,
      node=node,
      body=body,
      outer=outer,
      enclosing_method=enclosing_method,
      is_local=True,
      line=line_of(node),
    )
    if supertype is not None:
      info.supertypes.append(supertype)
    else:
      created = node.child_by_field_name("type")
      info.superclass_name = self.tree.text(created) if created is not None else None
    scope = self._register(info, parent_scope)
    self._index_members(info, body, scope)
    return info

  def _index_record_components(self, info: ClassInfo, node: Node) -> None:
    params = node.child_by_field_name("parameters")
    if params is None:
      return
    for param in params.named_children:
      name_node = declarator_name(param)
      if name_node is None:
        continue
      name = self.tree.text(name_node)
      info.fields[name] = FieldInfo(name=name, owner=info, is_static=False, line=line_of(param))
      info.methods.append(MethodInfo(name=name, owner=info, modifiers=frozenset({"public"}), line=line_of(param)))

  def _index_members(self, info: ClassInfo, body: Node, scope: Scope) -> None:
    """
    Indexes the members of a class body and walks its code regions.

    Args:
        info: The owning class.
        body: The class body node.
        scope: The class scope.
    """
    members: List[Node] = []
    for child in body.named_children:
      if child.type == "enum_body_declarations":
        members.extend(child.named_children)
      else:
        members.append(child)

    for member in members:
      kind = member.type
      if kind in ("field_declaration", "constant_declaration"):
        words, _ = modifier_keywords(member)
        is_static = (
          "static" in words or kind == "constant_declaration" or info.kind in (ClassKind.INTERFACE, ClassKind.ANNOTATION)
        )
        for declarator in member.children_by_field_name("declarator"):
          name_node = declarator_name(declarator)
          if name_node is not None:
            name = self.tree.text(name_node)
            info.fields[name] = FieldInfo(name=name, owner=info, is_static=is_static, line=line_of(declarator))
          value = declarator.child_by_field_name("value")
          if value is not None:
            self._index_code(value, info, None, scope.child("initializer"))

      elif kind in ("method_declaration", "constructor_declaration", "compact_constructor_declaration"):
        method = self._make_method(info, member)
        info.methods.append(method)
        if method.body is not None:
          body_scope = scope.child(f"method_{method.name}")
          params = member.child_by_field_name("parameters")
          if params is not None:
            _declare_params(params, body_scope)
          if kind == "compact_constructor_declaration":
            for component in info.fields.values():
              if not component.is_static:
                body_scope.declare(component.name)
          self._index_code(method.body, info, method, body_scope)

      elif kind in kinds.CLASS_DECLARATIONS:
        nested = self._declare_class(member, outer=info, enclosing_method=None, is_local=False, parent_scope=scope)
        if nested.name:
          info.member_types[nested.name] = nested

      elif kind == "enum_constant":
        name_node = member.child_by_field_name("name")
        if name_node is not None:
          name = self.tree.text(name_node)
          info.fields[name] = FieldInfo(name=name, owner=info, is_static=True, line=line_of(member))
        arguments = member.child_by_field_name("arguments")
        if arguments is not None:
          self._index_code(arguments, info, None, scope.child("enum_constant"))
        constant_body = member.child_by_field_name("body")
        if constant_body is not None:
          self._declare_anonymous(member, constant_body, info, None, scope, supertype=info)

      elif kind in ("block", "static_initializer"):
        self._index_code(member, info, None, scope)

  def _make_method(self, info: ClassInfo, node: Node) -> MethodInfo:
    words, modifiers_node = modifier_keywords(node)
    is_constructor = node.type != "method_declaration"
    name_node = node.child_by_field_name("name")
    param_types: List[str] = []
    is_varargs = False
    params = node.child_by_field_name("parameters")
    if params is not None:
      for param in params.named_children:
        if param.type == "formal_parameter":
          param_types.append(clean_type_name(self.tree.text(param.child_by_field_name("type"))))
        elif param.type == "spread_parameter":
          type_node = next((c for c in param.named_children if c.type not in ("modifiers", "variable_declarator")), None)
          param_types.append(clean_type_name(self.tree.text(type_node)))
          is_varargs = True
    return MethodInfo(
      name=self.tree.text(name_node) if name_node is not None else (info.name or ""),
      owner=info,
      modifiers=words,
      is_constructor=is_constructor,
      param_types=tuple(param_types),
      is_varargs=is_varargs,
      node=node,
      body=node.child_by_field_name("body"),
      modifiers_node=modifiers_node,
      line=line_of(node),
    )

  def _index_code(self, node: Node, info: ClassInfo, method: Optional[MethodInfo], scope: Scope) -> None:
    _CodeIndexer(self, info, method).visit(node, scope)

  def _link_supertypes(self, info: ClassInfo) -> None:
    """
    Resolves the supertype clauses of a class and computes its opacity.

    Args:
        info: The class to link.
    """
    context = self._scopes[info].parent or self.root_scope

    if info.superclass_name:
      ref = self.resolve_type_text(context, info.superclass_name)
      if ref is not None and ref.cls is not None:
        info.supertypes.append(ref.cls)
      elif clean_type_name(info.superclass_name) not in ROOT_SUPERCLASSES:
        info.opaque_methods = True
        info.opaque_fields = True

    for iface in info.interface_names:
      ref = self.resolve_type_text(context, iface)
      if ref is not None and ref.cls is not None:
        info.supertypes.append(ref.cls)
      elif clean_type_name(iface) not in MARKER_INTERFACES:
        info.opaque_methods = True


def _declare_params(params: Node, scope: Scope) -> None:
  ScopedVisitor().declare_parameters(params, scope)


class _CodeIndexer(ScopedVisitor):
  """
  Walks a code region to index the local and anonymous classes it declares.

  Each one is registered with a snapshot of the scope at its declaration
  point, which is the set of locals it can capture.
  """

  def __init__(self, table: SymbolTable, cls: ClassInfo, method: Optional[MethodInfo]):
    self.table = table
    self.cls = cls
    self.method = method

  def declare_local_class(self, node: Node, scope: Scope) -> None:
    info = self.table._declare_class(
      node, outer=self.cls, enclosing_method=self.method, is_local=True, parent_scope=scope.snapshot()
    )
    if info.name:
      scope.declare_type(info.name, info)

  def visit_anonymous_class(self, node: Node, body: Node, scope: Scope) -> bool:
    self.table._declare_anonymous(node, body, self.cls, self.method, scope.snapshot())
    return False
