"""
Static Modifier Rewriter.

Applies the analysis result to the source text. Each eligible method gets
` static` spliced in right after the last keyword of its modifier list;
annotations, comments and formatting are left untouched, and every other byte
of the input is preserved. Splices are applied back-to-front so the byte
offsets recorded in the syntax tree stay valid.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from staticizer.analysis.model import MethodInfo
from staticizer.core.tracer import TraceLogger, get_tracer
from staticizer.frontends.java import kinds
from staticizer.frontends.java.parser import SyntaxTree

logger = logging.getLogger(__name__)

Splice = Tuple[int, bytes]


class StaticRewriter:
  """
  Splices `static` into the modifier lists of methods.
  """

  def __init__(self, tree: SyntaxTree, tracer: Optional[TraceLogger] = None):
    """
    Args:
        tree: The parsed unit the methods belong to.
        tracer: Event sink (defaults to the global tracer).
    """
    self.tree = tree
    self.tracer = tracer or get_tracer()

  def splice_for(self, method: MethodInfo) -> Optional[Splice]:
    """
    Computes the insertion for one method.

    Args:
        method: An eligible method.

    Returns:
        Tuple of (byte offset, inserted bytes), or None if the method is
        already static or has no declaration node.
    """
    if method.is_static or method.node is None:
      return None

    modifiers = method.modifiers_node
    if modifiers is not None:
      keywords = [c for c in modifiers.children if c.type in kinds.MODIFIER_KEYWORDS]
      if keywords:
        return keywords[-1].end_byte, b" static"
      return modifiers.end_byte, b" static"

    # No modifier list: insert before the type parameters or return type.
    first = next((c for c in method.node.children if c.is_named), method.node)
    return first.start_byte, b"static "

  def apply(self, methods: Iterable[MethodInfo]) -> str:
    """
    Rewrites the source.

    Args:
        methods: Methods to make static.

    Returns:
        The new source text.
    """
    splices: List[Tuple[Splice, MethodInfo]] = []
    for method in methods:
      splice = self.splice_for(method)
      if splice is not None:
        splices.append((splice, method))

    source = self.tree.source
    for (offset, text), method in sorted(splices, key=lambda s: s[0][0], reverse=True):
      source = source[:offset] + text + source[offset:]
      self.tracer.log_mutation(method.qualified_name, *self._describe(method, offset, text))
      logger.debug("Made %s static at byte %d", method.qualified_name, offset)

    return source.decode("utf-8")

  def _describe(self, method: MethodInfo, offset: int, text: bytes) -> Tuple[str, str]:
    """Modifier list text before and after a splice."""
    modifiers = method.modifiers_node
    if modifiers is None:
      return "", text.decode("utf-8").strip()
    before = self.tree.source[modifiers.start_byte : modifiers.end_byte]
    relative = offset - modifiers.start_byte
    after = before[:relative] + text + before[relative:]
    return before.decode("utf-8"), after.decode("utf-8")
