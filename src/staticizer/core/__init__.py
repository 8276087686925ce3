"""
Core Package.

Contains the pipeline around the analysis:
- Refactoring Engine
- Static modifier Rewriter
- Result models
- Trace logger
"""
