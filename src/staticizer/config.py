"""
Runtime Configuration Store.

Settings come from the `[tool.staticizer]` table of the nearest
`pyproject.toml`, with explicit (CLI) arguments taking precedence.
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from staticizer.errors import ConfigError

if sys.version_info >= (3, 11):
  import tomllib
else:
  import tomli as tomllib

TOOL_SECTION = "staticizer"


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the refactoring engine.
  """

  strict_mode: bool = Field(False, description="If True, unparsable input is a failure rather than a warning.")
  file_glob: str = Field("*.java", description="Pattern selecting source files when processing a directory.")
  exclude: List[str] = Field(default_factory=list, description="Glob patterns (relative to the input root) to skip.")
  check_only: bool = Field(False, description="Report what would change without writing files.")
  json_report: Optional[Path] = Field(None, description="Where to write a JSON summary of the run.")

  @field_validator("file_glob")
  @classmethod
  def validate_glob(cls, v: str) -> str:
    """
    Rejects empty file patterns.

    Args:
        v (str): The pattern.

    Returns:
        str: The stripped pattern.

    Raises:
        ValueError: If the pattern is blank.
    """
    v_clean = v.strip()
    if not v_clean:
      raise ValueError("file_glob must not be empty")
    return v_clean

  def is_excluded(self, path: Path, root: Path) -> bool:
    """
    Checks a file against the exclude patterns.

    Args:
        path (Path): The candidate file.
        root (Path): The directory being processed.

    Returns:
        bool: True if any pattern matches the path relative to `root`.
    """
    try:
      relative = path.relative_to(root)
    except ValueError:
      relative = path
    return any(relative.match(pattern) for pattern in self.exclude)

  @classmethod
  def load(
    cls,
    strict_mode: Optional[bool] = None,
    file_glob: Optional[str] = None,
    exclude: Optional[List[str]] = None,
    check_only: Optional[bool] = None,
    json_report: Optional[Path] = None,
    search_path: Optional[Path] = None,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and overrides with CLI arguments.

    Args:
        strict_mode (Optional[bool]): Override for strict mode.
        file_glob (Optional[str]): Override for the file pattern.
        exclude (Optional[List[str]]): Extra exclude patterns (added to the TOML ones).
        check_only (Optional[bool]): Override for check mode.
        json_report (Optional[Path]): Override for the report path.
        search_path (Optional[Path]): Directory to start searching for TOML config.

    Returns:
        RuntimeConfig: The fully resolved configuration object.

    Raises:
        ConfigError: If the TOML table holds invalid values.
    """
    toml_config, toml_dir = _load_toml_settings(search_path or Path.cwd())

    final_strict = strict_mode if strict_mode is not None else toml_config.get("strict_mode", False)
    final_check = check_only if check_only is not None else toml_config.get("check_only", False)
    final_glob = file_glob or toml_config.get("file_glob", "*.java")
    final_exclude = [*toml_config.get("exclude", []), *(exclude or [])]

    final_report = json_report
    if final_report is None and "json_report" in toml_config:
      final_report = Path(toml_config["json_report"])
      if toml_dir and not final_report.is_absolute():
        final_report = toml_dir / final_report

    try:
      return cls(
        strict_mode=final_strict,
        file_glob=final_glob,
        exclude=final_exclude,
        check_only=final_check,
        json_report=final_report,
      )
    except ValidationError as e:
      raise ConfigError(f"Invalid [tool.{TOOL_SECTION}] configuration: {e}") from e


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches the start directory and its parents for 'pyproject.toml' and extracts config.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.

  Raises:
      ConfigError: If the first pyproject.toml found is not valid TOML.
  """
  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Cannot read {toml_path}: {e}") from e

      return data.get("tool", {}).get(TOOL_SECTION, {}), parent

  return {}, None
