"""
Analysis Data Model.

Declarations discovered in a compilation unit (`ClassInfo`, `MethodInfo`,
`FieldInfo`) and the verdicts produced by the instance-access classifier.

Declarations compare by identity: exactly one object is created per source
declaration, so they can be used directly as set members and dict keys.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from tree_sitter import Node


class ClassKind(str, Enum):
  """The syntactic flavour of a class-shaped scope."""

  CLASS = "class"
  INTERFACE = "interface"
  ENUM = "enum"
  RECORD = "record"
  ANNOTATION = "annotation"
  ANONYMOUS = "anonymous"


@dataclass(eq=False)
class FieldInfo:
  """A field (or enum constant / record component) declared by a class."""

  name: str
  owner: "ClassInfo"
  is_static: bool
  line: int = 0


@dataclass(eq=False)
class MethodInfo:
  """
  A method or constructor declaration.

  Attributes:
      name: Declared name (the class name for constructors).
      owner: The declaring class.
      modifiers: Keyword modifiers present in source (e.g. {"private", "final"}).
      is_constructor: True for constructors and compact record constructors.
      param_types: Source text of each parameter type, generics stripped.
      is_varargs: True if the last parameter is a spread parameter.
      node: The declaration node (None for implicit members).
      body: The body block, if any.
      modifiers_node: The `modifiers` node, if any.
      line: 1-based line of the declaration.
  """

  name: str
  owner: "ClassInfo"
  modifiers: FrozenSet[str] = frozenset()
  is_constructor: bool = False
  param_types: Tuple[str, ...] = ()
  is_varargs: bool = False
  node: Optional[Node] = None
  body: Optional[Node] = None
  modifiers_node: Optional[Node] = None
  line: int = 0

  @property
  def is_static(self) -> bool:
    return "static" in self.modifiers

  @property
  def is_private(self) -> bool:
    return "private" in self.modifiers

  @property
  def is_final(self) -> bool:
    return "final" in self.modifiers

  @property
  def is_non_overridable(self) -> bool:
    """Private and final methods cannot be replaced by a subclass."""
    return self.is_private or self.is_final

  @property
  def arity(self) -> int:
    return len(self.param_types)

  @property
  def qualified_name(self) -> str:
    return f"{self.owner.display_name}.{self.name}"

  def __repr__(self) -> str:
    return f"MethodInfo({self.qualified_name}/{self.arity} @ line {self.line})"


@dataclass(eq=False)
class ClassInfo:
  """
  A class-shaped scope: named, local or anonymous class, interface, enum or record.

  Attributes:
      name: Simple name (None for anonymous classes).
      kind: Syntactic flavour.
      node: The declaration (or anonymous `class_body`) node.
      body: The body node holding the members.
      outer: Lexically enclosing class, if nested.
      enclosing_method: Method or constructor whose body declares this class
          (local and anonymous classes only).
      is_static: True for static nested classes, including implicitly static ones.
      is_local: True for classes declared inside a block.
      superclass_name: Source text of the `extends` clause (classes only).
      interface_names: Source text of implemented / extended interfaces.
      fields: Declared fields by name.
      methods: Declared methods and constructors in source order.
      member_types: Member classes by simple name.
      nested_classes: Every class declared directly inside this one (member,
          local and anonymous), in source order.
      supertypes: Supertypes resolved inside the unit.
      opaque_fields: True if an unresolved supertype may contribute instance fields.
      opaque_methods: True if an unresolved supertype may contribute instance methods.
  """

  name: Optional[str]
  kind: ClassKind
  node: Node
  body: Optional[Node]
  outer: Optional["ClassInfo"] = None
  enclosing_method: Optional[MethodInfo] = None
  is_static: bool = False
  is_local: bool = False
  line: int = 0
  superclass_name: Optional[str] = None
  interface_names: List[str] = field(default_factory=list)
  fields: Dict[str, FieldInfo] = field(default_factory=dict)
  methods: List[MethodInfo] = field(default_factory=list)
  member_types: Dict[str, "ClassInfo"] = field(default_factory=dict)
  nested_classes: List["ClassInfo"] = field(default_factory=list)
  supertypes: List["ClassInfo"] = field(default_factory=list)
  opaque_fields: bool = False
  opaque_methods: bool = False

  @property
  def display_name(self) -> str:
    """Dotted name for reporting, e.g. `Outer.Inner` or `Outer.<anonymous@12>`."""
    own = self.name if self.name else f"<anonymous@{self.line}>"
    if self.outer is not None:
      return f"{self.outer.display_name}.{own}"
    return own

  @property
  def requires_outer_instance(self) -> bool:
    """True for inner member classes, whose construction captures an enclosing instance."""
    return (
      self.kind == ClassKind.CLASS
      and self.outer is not None
      and not self.is_static
      and not self.is_local
      and self.outer.kind not in (ClassKind.INTERFACE, ClassKind.ANNOTATION)
    )

  @property
  def has_opaque_supertypes(self) -> bool:
    return self.opaque_fields or self.opaque_methods

  def methods_named(self, name: str) -> List[MethodInfo]:
    """Declared (non-constructor) methods with the given name."""
    return [m for m in self.methods if m.name == name and not m.is_constructor]

  def __repr__(self) -> str:
    return f"ClassInfo({self.display_name})"


def declared_within(cls: Optional[ClassInfo], method: MethodInfo) -> bool:
  """
  Checks whether a class is declared (at any depth) inside a method's body.

  Instances of such classes are distinct from the method's receiver, so their
  members never count as instance access of the method.

  Args:
      cls: The class to test.
      method: The method whose body is the boundary.

  Returns:
      True if `cls` is a local or anonymous class nested in `method`.
  """
  current = cls
  while current is not None:
    if current.enclosing_method is method:
      return True
    current = current.outer
  return False


@dataclass(frozen=True)
class DefiniteInstanceAccess:
  """The method body uses the receiver; it can never become static."""

  reason: str
  line: int = 0


@dataclass(frozen=True)
class NoDirectAccess:
  """
  The method body does not touch instance state directly.

  Attributes:
      edges: Non-overridable methods it calls through an implicit receiver;
          the method is eligible only if all of them are.
  """

  edges: FrozenSet[MethodInfo] = frozenset()


ClassifierVerdict = Union[DefiniteInstanceAccess, NoDirectAccess]
