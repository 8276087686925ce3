"""
Language Frontends.

Each frontend turns source text into a tree the analysis passes can walk.
"""
