"""
staticizer Package.

Finds `private` and `final` Java methods that never touch instance state and
makes them `static`. A method qualifies when neither it nor any
non-overridable method it calls through an implicit receiver reads instance
fields, uses `this`, calls overridable instance methods or creates inner
class instances.

Usage
-----

Simple String Refactoring
^^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    import staticizer
    code = "class A { private int test() { return 0; } }"
    print(staticizer.staticize(code))
    # class A { private static int test() { return 0; } }

Advanced Usage (Engine)
^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from staticizer import StaticizerEngine, RuntimeConfig

    engine = StaticizerEngine(config=RuntimeConfig(strict_mode=True))
    res = engine.run(code)

    if res.success:
        for method in res.promoted:
            print(method.owner, method.name)
    else:
        print(f"Errors: {res.errors}")
"""

from staticizer.config import RuntimeConfig
from staticizer.core.conversion_result import PromotedMethod, RefactorResult, RetainedMethod
from staticizer.core.engine import StaticizerEngine

__version__ = "0.1.0"

DISPLAY_NAME = '"private" and "final" methods that don\'t access instance data should be "static"'
DESCRIPTION = (
  "Non-overridable methods (private or final) that don't access instance data can be static "
  "to prevent any misunderstanding about the contract of the method."
)


def staticize(code: str, strict: bool = False) -> str:
  """
  Makes eligible methods of a Java compilation unit static.

  Args:
      code (str): Java source text.
      strict (bool): If True, raise on input that cannot be refactored.

  Returns:
      str: The rewritten source (unchanged when nothing qualifies).

  Raises:
      ValueError: If `strict` is set and the run failed.
  """
  result = StaticizerEngine(strict_mode=strict).run(code)
  if not result.success:
    raise ValueError(f"Refactoring failed: {'; '.join(result.errors)}")
  return result.code


__all__ = [
  "DESCRIPTION",
  "DISPLAY_NAME",
  "PromotedMethod",
  "RefactorResult",
  "RetainedMethod",
  "RuntimeConfig",
  "StaticizerEngine",
  "staticize",
  "__version__",
]
