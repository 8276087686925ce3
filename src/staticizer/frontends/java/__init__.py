"""
Java frontend: tree-sitter parsing and node kind tables.
"""

from staticizer.frontends.java.parser import JavaParser, SyntaxTree, line_of, node_key, walk

__all__ = ["JavaParser", "SyntaxTree", "line_of", "node_key", "walk"]
