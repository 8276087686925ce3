"""
Data structures representing the output of a refactoring run.

`RefactorResult` carries the rewritten source, any errors, the per-method
outcomes and the execution trace.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class PromotedMethod(BaseModel):
  """A method that was made static."""

  owner: str = Field(..., description="Dotted name of the declaring class.")
  name: str = Field(..., description="Method name.")
  line: int = Field(0, description="1-based line of the declaration.")


class RetainedMethod(BaseModel):
  """A candidate that stays an instance method."""

  owner: str = Field(..., description="Dotted name of the declaring class.")
  name: str = Field(..., description="Method name.")
  line: int = Field(0, description="1-based line of the declaration.")
  reason: str = Field("", description="The first construct that ties it to the instance.")


class RefactorResult(BaseModel):
  """
  Container for the results of a refactoring job.
  """

  code: str = Field(default="", description="The (possibly rewritten) source code.")
  errors: List[str] = Field(default_factory=list, description="List of error and warning messages.")
  success: bool = Field(
    default=True,
    description="True if the pipeline completed without fatal failures.",
  )
  promoted: List[PromotedMethod] = Field(default_factory=list, description="Methods made static.")
  retained: List[RetainedMethod] = Field(default_factory=list, description="Candidates left unchanged.")
  trace_events: List[Dict[str, Any]] = Field(default_factory=list, description="Execution trace log data.")

  @property
  def has_errors(self) -> bool:
    """
    Check if the result contains any error messages.

    Returns:
        True if one or more errors are present.
    """
    return len(self.errors) > 0

  @property
  def changed(self) -> bool:
    """True if at least one method was made static."""
    return len(self.promoted) > 0
