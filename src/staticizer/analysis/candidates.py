"""
Candidate Collection.

Selects the methods of one class that are worth classifying: non-constructor,
non-static, private or final, with a body, and not one of the serialization
hooks that the runtime dispatches on an instance.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from staticizer.analysis.model import ClassInfo, MethodInfo
from staticizer.analysis.symbol_table import SymbolTable

SERIALIZABLE_NAMES = frozenset({"Serializable", "java.io.Serializable"})


@dataclass(frozen=True)
class HookSignature:
  """A reserved method signature: name plus parameter type simple names."""

  name: str
  params: Tuple[str, ...]

  def matches(self, method: MethodInfo) -> bool:
    if method.name != self.name or method.arity != len(self.params):
      return False
    return all(_simple(actual) == expected for actual, expected in zip(method.param_types, self.params))


def _simple(type_name: str) -> str:
  return type_name.rsplit(".", 1)[-1]


SERIALIZATION_HOOKS = (
  HookSignature("writeObject", ("ObjectOutputStream",)),
  HookSignature("readObject", ("ObjectInputStream",)),
  HookSignature("readObjectNoData", ()),
)


class CandidateCollector:
  """
  Enumerates candidate methods per class.
  """

  def __init__(self, table: SymbolTable):
    self.table = table

  def skip_reason(self, method: MethodInfo) -> Optional[str]:
    """
    Explains why a method is not a candidate.

    Args:
        method: Any method or constructor.

    Returns:
        A short reason, or None if the method is a candidate.
    """
    if method.is_constructor:
      return "constructor"
    if method.is_static:
      return "already static"
    if not method.is_non_overridable:
      return "overridable"
    if method.body is None:
      return "no body"
    if self.is_serialization_hook(method):
      return "serialization hook"
    return None

  def is_serialization_hook(self, method: MethodInfo) -> bool:
    """
    Checks for `writeObject`, `readObject` and `readObjectNoData` on a class
    that implements `Serializable`.

    Args:
        method: The method to test.

    Returns:
        True if the serialization runtime calls it on an instance.
    """
    if not any(hook.matches(method) for hook in SERIALIZATION_HOOKS):
      return False
    return self.table.declares_supertype(method.owner, SERIALIZABLE_NAMES)

  def collect(self, cls: ClassInfo) -> List[MethodInfo]:
    """
    Lists the candidates declared by a class, in source order.

    Args:
        cls: The class to inspect.

    Returns:
        Candidate methods.
    """
    return [m for m in cls.methods if m.node is not None and self.skip_reason(m) is None]
