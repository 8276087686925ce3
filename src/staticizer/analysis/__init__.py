"""
Analysis Package.

Decides which non-overridable methods can become static:
- `symbol_table`: declarations, scopes and name resolution for one unit.
- `classifier`: per-method instance-access verdicts.
- `candidates`: candidate selection and the serialization-hook exemption.
- `resolver`: fixpoint over invocation edges.
- `driver`: source-order traversal accumulating the eligible set.
"""
