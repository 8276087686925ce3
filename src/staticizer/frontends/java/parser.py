"""
Java Parser Frontend.

Wraps the `tree-sitter` runtime with the `tree-sitter-java` grammar and exposes
the parsed compilation unit as a `SyntaxTree`: the raw source bytes plus the
concrete syntax tree. Byte offsets on every node are what the rewriter uses to
splice modifiers into the original text without disturbing formatting.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

import tree_sitter_java as tsjava
from tree_sitter import Language, Node, Parser

from staticizer.errors import ParseError

JAVA_LANGUAGE = Language(tsjava.language())

NodeKey = Tuple[int, int, str]


def node_key(node: Node) -> NodeKey:
  """
  Returns a stable identity for a node within one parse.

  Args:
      node: A tree-sitter node.

  Returns:
      Tuple of (start byte, end byte, node kind).
  """
  return (node.start_byte, node.end_byte, node.type)


def line_of(node: Node) -> int:
  """Returns the 1-based line a node starts on."""
  return node.start_point[0] + 1


@dataclass
class SyntaxTree:
  """
  A parsed Java compilation unit.

  Attributes:
      source: The UTF-8 encoded source text.
      root: The `program` node.
  """

  source: bytes
  root: Node

  @property
  def has_errors(self) -> bool:
    """True if the parser had to recover from a syntax error."""
    return self.root.has_error

  def text(self, node: Optional[Node]) -> str:
    """
    Extracts the source text covered by a node.

    Args:
        node: The node to slice (None yields an empty string).

    Returns:
        The decoded text.
    """
    if node is None:
      return ""
    return self.source[node.start_byte : node.end_byte].decode("utf-8")

  def first_error(self) -> Optional[Node]:
    """
    Locates the first `ERROR` or missing node in document order.

    Returns:
        The offending node, or None for a clean tree.
    """
    for node in walk(self.root):
      if node.type == "ERROR" or node.is_missing:
        return node
    return None


def walk(node: Node) -> Iterator[Node]:
  """
  Pre-order traversal over all nodes (named and anonymous).

  Args:
      node: The subtree root.

  Yields:
      Every node in document order.
  """
  stack: List[Node] = [node]
  while stack:
    current = stack.pop()
    yield current
    stack.extend(reversed(current.children))


class JavaParser:
  """
  Parses Java source text into a `SyntaxTree`.
  """

  def __init__(self) -> None:
    """Initializes the underlying tree-sitter parser."""
    self._parser = Parser(JAVA_LANGUAGE)

  def parse(self, code: str, allow_errors: bool = False) -> SyntaxTree:
    """
    Parses a compilation unit.

    Args:
        code: Java source text.
        allow_errors: If False (default), a tree containing recovered syntax
            errors is rejected.

    Returns:
        The parsed tree.

    Raises:
        ParseError: If the source has syntax errors and `allow_errors` is False.
    """
    source = code.encode("utf-8")
    tree = self._parser.parse(source)
    result = SyntaxTree(source=source, root=tree.root_node)

    if result.has_errors and not allow_errors:
      bad = result.first_error()
      if bad is not None:
        row, col = bad.start_point
        snippet = result.text(bad)[:20]
        raise ParseError(f"Syntax error near '{snippet}'", line=row + 1, column=col + 1)
      raise ParseError("Syntax error")

    return result
