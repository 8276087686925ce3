"""
Java Node Kind Tables.

The tree-sitter grammar exposes node kinds as strings. These tables partition
the kinds that may appear inside a method body into closed groups so that the
analysis can dispatch on them exhaustively: any named kind missing from every
group is treated as unrecognized by the classifier.
"""

from typing import FrozenSet

# Declarations that open a new class-shaped scope.
CLASS_DECLARATIONS: FrozenSet[str] = frozenset(
  {
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
    "annotation_type_declaration",
  }
)

CLASS_BODIES: FrozenSet[str] = frozenset(
  {
    "class_body",
    "interface_body",
    "enum_body",
    "enum_body_declarations",
    "annotation_type_body",
  }
)

# Keyword modifiers, as they appear as anonymous children of `modifiers`.
MODIFIER_KEYWORDS: FrozenSet[str] = frozenset(
  {
    "public",
    "protected",
    "private",
    "abstract",
    "static",
    "final",
    "strictfp",
    "default",
    "synchronized",
    "native",
    "transient",
    "volatile",
    "sealed",
    "non-sealed",
  }
)

LITERALS: FrozenSet[str] = frozenset(
  {
    "decimal_integer_literal",
    "hex_integer_literal",
    "octal_integer_literal",
    "binary_integer_literal",
    "decimal_floating_point_literal",
    "hex_floating_point_literal",
    "true",
    "false",
    "character_literal",
    "string_literal",
    "null_literal",
  }
)

# Type syntax never reads state; it is skipped wholesale.
TYPES: FrozenSet[str] = frozenset(
  {
    "type_identifier",
    "scoped_type_identifier",
    "generic_type",
    "array_type",
    "integral_type",
    "floating_point_type",
    "boolean_type",
    "void_type",
    "type_arguments",
    "wildcard",
    "dimensions",
    "annotated_type",
    "type_parameters",
    "type_parameter",
    "type_bound",
    "catch_type",
    "throws",
    "type_list",
  }
)

# Nodes carrying no evaluation of their own.
INERT: FrozenSet[str] = frozenset(
  {
    "line_comment",
    "block_comment",
    "modifiers",
    "marker_annotation",
    "annotation",
    "break_statement",
    "continue_statement",
    "asterisk",
    "class_literal",
  }
) | LITERALS | TYPES

# Nodes whose named children are evaluated in order, with no scoping rules.
TRANSPARENT: FrozenSet[str] = frozenset(
  {
    "expression_statement",
    "return_statement",
    "yield_statement",
    "throw_statement",
    "assert_statement",
    "do_statement",
    "synchronized_statement",
    "parenthesized_expression",
    "unary_expression",
    "update_expression",
    "cast_expression",
    "assignment_expression",
    "array_access",
    "array_initializer",
    "array_creation_expression",
    "dimensions_expr",
    "argument_list",
    "finally_clause",
    "switch_expression",
    "switch_block",
    "guard",
    "element_value_array_initializer",
    "template_expression",
    "string_interpolation",
  }
)
