"""
Fixpoint Eligibility Resolver.

Given the verdicts for one class's candidates and the methods already proven
eligible, computes the subset of candidates whose invocation edges all
bottom out in eligible methods. Candidates with direct instance access are
dropped up front.

The set is grown from the ground up: a pass admits every remaining candidate
whose callees are all admitted already (or were finalized by earlier classes),
and the loop stops when a pass admits nothing. A candidate on a call cycle is
only admitted once some other path proves the cycle's members, which never
happens for pure self or mutual recursion, so such chains are never promoted.
The result does not depend on candidate order.
"""

import logging
from typing import AbstractSet, Dict, FrozenSet, List, Mapping, Tuple

from staticizer.analysis.model import ClassifierVerdict, MethodInfo, NoDirectAccess

logger = logging.getLogger(__name__)


def resolve_eligible(
  verdicts: Mapping[MethodInfo, ClassifierVerdict],
  prior: AbstractSet[MethodInfo],
) -> FrozenSet[MethodInfo]:
  """
  Computes the eligible subset of a class's candidates.

  Args:
      verdicts: Classifier verdict per candidate.
      prior: Methods finalized as eligible by earlier classes.

  Returns:
      The candidates that can be made static.
  """
  eligible, _ = resolve_with_passes(verdicts, prior)
  return eligible


def resolve_with_passes(
  verdicts: Mapping[MethodInfo, ClassifierVerdict],
  prior: AbstractSet[MethodInfo],
) -> Tuple[FrozenSet[MethodInfo], List[FrozenSet[MethodInfo]]]:
  """
  Same as `resolve_eligible`, also reporting what each pass admitted.

  Args:
      verdicts: Classifier verdict per candidate.
      prior: Methods finalized as eligible by earlier classes.

  Returns:
      Tuple of (eligible set, methods admitted per pass in order).
  """
  edges: Dict[MethodInfo, FrozenSet[MethodInfo]] = {
    m: v.edges for m, v in verdicts.items() if isinstance(v, NoDirectAccess)
  }
  pending = frozenset(edges)
  proven: FrozenSet[MethodInfo] = frozenset()
  passes: List[FrozenSet[MethodInfo]] = []

  while pending:
    allowed = proven | frozenset(prior)
    admitted = frozenset(m for m in pending if edges[m] <= allowed)
    if not admitted:
      break
    passes.append(admitted)
    logger.debug("Resolver pass %d admitted %s", len(passes), sorted(m.qualified_name for m in admitted))
    proven = proven | admitted
    pending = pending - admitted

  if pending:
    logger.debug("Resolver left %s without a static exit", sorted(m.qualified_name for m in pending))
  return proven, passes
