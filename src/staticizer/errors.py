"""
Exception hierarchy for staticizer.

The analysis core never raises to the caller of the engine: these exceptions
are used at the seams (parsing, configuration) and converted into
`RefactorResult.errors` by the engine.
"""


class StaticizerError(Exception):
  """Base class for all errors raised by staticizer."""


class ParseError(StaticizerError):
  """
  Raised when the input is not a syntactically valid compilation unit.

  Attributes:
      line: 1-based line of the first syntax problem, if known.
      column: 1-based column of the first syntax problem, if known.
  """

  def __init__(self, message: str, line: int = 0, column: int = 0):
    super().__init__(message)
    self.line = line
    self.column = column

  def __str__(self) -> str:
    base = super().__str__()
    if self.line:
      return f"{base} (line {self.line}, col {self.column})"
    return base


class ConfigError(StaticizerError):
  """Raised when configuration values cannot be validated."""
