"""
Lexical Scopes and the Scoped Walk.

`Scope` models one level of Java name lookup: either a block-like local scope
(parameters, local variables, local classes) or a class scope. Scopes chain to
their parent, so lookup proceeds from the innermost block outwards through the
enclosing classes.

`ScopedVisitor` implements the declaration and scoping rules of method bodies
once, for every pass that needs them: the symbol table pre-pass (which records
the scope captured by each local and anonymous class) and the instance-access
classifier. Every `visit` returns a bool; True means "stop", which lets the
classifier short-circuit with `any()` over the remaining children.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Set

from tree_sitter import Node

from staticizer.analysis.model import ClassInfo
from staticizer.frontends.java import kinds


class Scope:
  """
  Represents a name scope (unit root, class, or block).
  """

  def __init__(self, parent: Optional["Scope"] = None, cls: Optional[ClassInfo] = None, name: str = "<block>"):
    """
    Initialize the scope.

    Args:
        parent: The enclosing scope (None for the unit root).
        cls: The class whose members this scope exposes (class scopes only).
        name: Debug name for the scope.
    """
    self.parent = parent
    self.cls = cls
    self.name = name
    self.variables: Set[str] = set()
    self.types: Dict[str, ClassInfo] = {}

  @property
  def is_class_scope(self) -> bool:
    return self.cls is not None

  def declare(self, name: str) -> None:
    """Registers a local variable or parameter."""
    self.variables.add(name)

  def declare_type(self, name: str, cls: ClassInfo) -> None:
    """Registers a local class declaration."""
    self.types[name] = cls

  def child(self, name: str = "<block>") -> "Scope":
    """Creates a nested block scope."""
    return Scope(parent=self, name=name)

  def enter_class(self, cls: ClassInfo) -> "Scope":
    """Creates a class scope nested in this one."""
    return Scope(parent=self, cls=cls, name=f"class_{cls.display_name}")

  def chain(self) -> Iterator["Scope"]:
    """Yields this scope and its ancestors, innermost first."""
    current: Optional[Scope] = self
    while current is not None:
      yield current
      current = current.parent

  def innermost_class(self) -> Optional[ClassInfo]:
    """The class whose instance `this` denotes at this point."""
    for scope in self.chain():
      if scope.cls is not None:
        return scope.cls
    return None

  def snapshot(self) -> "Scope":
    """
    Returns a copy of the local scopes down to the nearest class scope.

    Later declarations in the live scopes do not leak into the copy, which is
    what a local or anonymous class captures at its declaration point.
    """
    if self.cls is not None or (self.parent is None and not self.variables and not self.types):
      return self
    copy = Scope(parent=self.parent.snapshot() if self.parent else None, name=self.name)
    copy.variables = set(self.variables)
    copy.types = dict(self.types)
    return copy


def declarator_name(node: Node) -> Optional[Node]:
  """Returns the `name` identifier of a declarator-like node."""
  return node.child_by_field_name("name")


def pattern_bindings(node: Node) -> Iterator[Node]:
  """
  Yields the identifiers bound by a (possibly nested) pattern.

  Args:
      node: A `type_pattern`, `record_pattern` or `pattern` node.
  """
  if node.type == "type_pattern":
    for child in node.named_children:
      if child.type == "identifier":
        yield child
    return
  for child in node.named_children:
    if child.type in ("pattern", "type_pattern", "record_pattern", "record_pattern_body", "record_pattern_component"):
      yield from pattern_bindings(child)
    elif node.type == "record_pattern_component" and child.type == "identifier":
      yield child


def condition_bindings(node: Optional[Node], when_true: bool) -> List[str]:
  """
  Names of the pattern variables bound when a condition evaluates to `when_true`.

  Follows the flow rules for `!`, `&&`, `||` and parentheses. Any other
  expression binds nothing, so `o instanceof String s ? s : a` binds `s` in
  the first arm only.

  Args:
      node: The condition expression (may be None).
      when_true: The outcome the bindings are wanted for.

  Returns:
      The bound names, left to right.
  """
  if node is None:
    return []
  kind = node.type
  if kind == "parenthesized_expression":
    inner = [c for c in node.named_children if c.type not in ("line_comment", "block_comment")]
    return condition_bindings(inner[0], when_true) if len(inner) == 1 else []
  if kind == "unary_expression":
    operator = node.child_by_field_name("operator")
    if operator is not None and operator.type == "!":
      return condition_bindings(node.child_by_field_name("operand"), not when_true)
    return []
  if kind == "binary_expression":
    operator = node.child_by_field_name("operator")
    op = operator.type if operator is not None else ""
    if (op == "&&" and when_true) or (op == "||" and not when_true):
      left = condition_bindings(node.child_by_field_name("left"), when_true)
      return left + condition_bindings(node.child_by_field_name("right"), when_true)
    return []
  if kind == "instanceof_expression" and when_true:
    names = []
    name = node.child_by_field_name("name")
    if name is not None:
      names.append(name.text.decode("utf-8"))
    pattern = node.child_by_field_name("pattern")
    if pattern is not None:
      names.extend(b.text.decode("utf-8") for b in pattern_bindings(pattern))
    return names
  return []


def argument_count(arguments: Optional[Node]) -> int:
  """Counts the expressions in an `argument_list`."""
  if arguments is None:
    return 0
  return sum(1 for c in arguments.named_children if c.type not in ("line_comment", "block_comment"))


class ScopedVisitor:
  """
  Walks method bodies and other code regions while maintaining `Scope`s.

  Subclasses override `visit` for the node kinds they care about and defer to
  `visit_structure` for the scoping constructs handled here. Hooks
  `visit_local_class` and `visit_anonymous_class` are called for class
  declarations found inside code.
  """

  def visit(self, node: Node, scope: Scope) -> bool:
    """Visits a node; returns True to stop the walk."""
    return self.visit_structure(node, scope)

  def visit_all(self, nodes: Iterable[Node], scope: Scope) -> bool:
    """Visits nodes in order, stopping at the first one that returns True."""
    return any(self.visit(n, scope) for n in nodes)

  def visit_children(self, node: Node, scope: Scope) -> bool:
    return self.visit_all(node.named_children, scope)

  # --- Hooks ---

  def visit_local_class(self, node: Node, scope: Scope) -> bool:
    """Called for a class declared inside a block."""
    return False

  def visit_anonymous_class(self, node: Node, body: Node, scope: Scope) -> bool:
    """Called for the body of an `object_creation_expression` declaring a class."""
    return False

  def visit_case_constant(self, node: Node, scope: Scope) -> bool:
    """Called for a bare identifier used as a `case` constant."""
    return False

  def declare_local_class(self, node: Node, scope: Scope) -> None:
    """Registers a local class name in the block scope. Subclasses with a symbol table override."""

  # --- Scoping constructs ---

  def visit_structure(self, node: Node, scope: Scope) -> bool:
    """
    Handles the node kinds that introduce or populate scopes.

    Args:
        node: The node to visit.
        scope: The current scope.

    Returns:
        True to stop the walk.
    """
    kind = node.type

    if kind in ("block", "constructor_body"):
      return self.visit_block(node.named_children, scope.child())

    if kind == "local_variable_declaration":
      return self.visit_declarators(node, scope)

    if kind in kinds.CLASS_DECLARATIONS:
      self.declare_local_class(node, scope)
      return self.visit_local_class(node, scope)

    if kind == "for_statement":
      inner = scope.child("for")
      body = node.child_by_field_name("body")
      header = [c for c in node.named_children if body is None or c != body]
      if self.visit_block(header, inner):
        return True
      condition = node.child_by_field_name("condition")
      return body is not None and self.visit(body, self.bound_scope(inner, condition, True))

    if kind in ("if_statement", "ternary_expression"):
      return self.visit_conditional(node, scope)

    if kind == "while_statement":
      condition = node.child_by_field_name("condition")
      if condition is not None and self.visit(condition, scope):
        return True
      body = node.child_by_field_name("body")
      return body is not None and self.visit(body, self.bound_scope(scope, condition, True))

    if kind == "binary_expression":
      return self.visit_binary(node, scope)

    if kind == "enhanced_for_statement":
      value = node.child_by_field_name("value")
      if value is not None and self.visit(value, scope.child()):
        return True
      inner = scope.child("for")
      name = declarator_name(node)
      if name is not None:
        inner.declare(name.text.decode("utf-8"))
      body = node.child_by_field_name("body")
      return body is not None and self.visit(body, inner)

    if kind == "catch_clause":
      inner = scope.child("catch")
      for child in node.named_children:
        if child.type == "catch_formal_parameter":
          name = declarator_name(child)
          if name is not None:
            inner.declare(name.text.decode("utf-8"))
      body = node.child_by_field_name("body")
      return body is not None and self.visit(body, inner)

    if kind == "try_with_resources_statement":
      inner = scope.child("try")
      resources = node.child_by_field_name("resources")
      if resources is not None:
        for resource in resources.named_children:
          if self.visit_resource(resource, inner):
            return True
      body = node.child_by_field_name("body")
      if body is not None and self.visit(body, inner):
        return True
      tail = [c for c in node.named_children if c.type in ("catch_clause", "finally_clause")]
      return self.visit_all(tail, scope)

    if kind == "try_statement":
      return self.visit_children(node, scope)

    if kind == "lambda_expression":
      inner = scope.child("lambda")
      params = node.child_by_field_name("parameters")
      if params is not None:
        self.declare_parameters(params, inner)
      body = node.child_by_field_name("body")
      return body is not None and self.visit(body, inner)

    if kind == "switch_block_statement_group":
      inner = scope.child("case")
      return self.visit_block(node.named_children, inner)

    if kind == "switch_rule":
      inner = scope.child("case")
      return self.visit_children(node, inner)

    if kind == "switch_label":
      return self.visit_switch_label(node, scope)

    if kind == "instanceof_expression":
      return self.visit_instanceof(node, scope)

    if kind == "labeled_statement":
      statements = [c for c in node.named_children if c.type != "identifier"]
      return self.visit_all(statements, scope)

    if kind == "object_creation_expression":
      return self.visit_object_creation(node, scope)

    return self.visit_children(node, scope)

  def visit_block(self, statements: Iterable[Node], scope: Scope) -> bool:
    """
    Visits the statements of a block.

    Declarations populate `scope` for the statements that follow; any other
    statement gets a throwaway child scope so pattern variables stay local to it.
    """
    for statement in statements:
      if statement.type in ("local_variable_declaration", "switch_label") or statement.type in kinds.CLASS_DECLARATIONS:
        target = scope
      else:
        target = scope.child("statement")
      if self.visit(statement, target):
        return True
    return False

  def visit_declarators(self, node: Node, scope: Scope) -> bool:
    """Visits each declarator: declare the name, then evaluate the initializer."""
    for declarator in node.children_by_field_name("declarator"):
      name = declarator_name(declarator)
      if name is not None:
        scope.declare(name.text.decode("utf-8"))
      value = declarator.child_by_field_name("value")
      if value is not None and self.visit(value, scope.child()):
        return True
    return False

  def visit_resource(self, resource: Node, scope: Scope) -> bool:
    name = declarator_name(resource)
    value = resource.child_by_field_name("value")
    if name is not None:
      scope.declare(name.text.decode("utf-8"))
      return value is not None and self.visit(value, scope.child())
    # `try (existingVariable)` or `try (this.field)`
    return self.visit_children(resource, scope)

  def declare_parameters(self, params: Node, scope: Scope) -> None:
    """
    Declares method, constructor or lambda parameters.

    Args:
        params: A `formal_parameters`, `inferred_parameters` or bare `identifier` node.
        scope: The scope receiving the names.
    """
    if params.type == "identifier":
      scope.declare(params.text.decode("utf-8"))
      return
    for param in params.named_children:
      if param.type == "identifier":
        scope.declare(param.text.decode("utf-8"))
      elif param.type == "formal_parameter":
        name = declarator_name(param)
        if name is not None:
          scope.declare(name.text.decode("utf-8"))
      elif param.type == "spread_parameter":
        for child in param.named_children:
          if child.type == "variable_declarator":
            name = declarator_name(child)
            if name is not None:
              scope.declare(name.text.decode("utf-8"))

  def visit_switch_label(self, node: Node, scope: Scope) -> bool:
    """
    Visits a `case` label.

    Bare identifiers go through `visit_case_constant`, since they may name enum
    constants of the selector type rather than anything in scope. Pattern bindings are declared into the enclosing case scope.
    """
    pending: List[Node] = []
    for child in node.named_children:
      if child.type in ("pattern", "type_pattern", "record_pattern"):
        for binding in pattern_bindings(child):
          scope.declare(binding.text.decode("utf-8"))
      elif child.type == "identifier":
        if self.visit_case_constant(child, scope):
          return True
      else:
        pending.append(child)
    return self.visit_all(pending, scope)

  def visit_instanceof(self, node: Node, scope: Scope) -> bool:
    """Visits the tested operand. Its bindings are declared by the enclosing condition."""
    left = node.child_by_field_name("left")
    return left is not None and self.visit(left, scope)

  def bound_scope(self, scope: Scope, condition: Optional[Node], when_true: bool) -> Scope:
    """A child of `scope` declaring what `condition` binds when it is `when_true`."""
    inner = scope.child("when_true" if when_true else "when_false")
    for name in condition_bindings(condition, when_true):
      inner.declare(name)
    return inner

  def visit_conditional(self, node: Node, scope: Scope) -> bool:
    """
    Visits an `if` statement or a `?:` expression.

    The consequence sees the bindings of a true condition and the alternative
    those of a false one.
    """
    condition = node.child_by_field_name("condition")
    if condition is not None and self.visit(condition, scope):
      return True
    for field, when_true in (("consequence", True), ("alternative", False)):
      branch = node.child_by_field_name(field)
      if branch is not None and self.visit(branch, self.bound_scope(scope, condition, when_true)):
        return True
    return False

  def visit_binary(self, node: Node, scope: Scope) -> bool:
    """Visits a binary expression; `&&` and `||` scope bindings into the right operand."""
    operator = node.child_by_field_name("operator")
    op = operator.type if operator is not None else ""
    if op not in ("&&", "||"):
      return self.visit_children(node, scope)
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")
    if left is not None and self.visit(left, scope):
      return True
    return right is not None and self.visit(right, self.bound_scope(scope, left, op == "&&"))

  def visit_object_creation(self, node: Node, scope: Scope) -> bool:
    """Visits the enclosing-instance expression, arguments and anonymous body."""
    for child in node.named_children:
      if child.type == "class_body":
        if self.visit_anonymous_class(node, child, scope):
          return True
      elif child.type in kinds.TYPES:
        continue
      elif self.visit(child, scope):
        return True
    return False
