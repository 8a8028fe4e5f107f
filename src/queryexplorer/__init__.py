"""
QueryExplorer - action orchestration for an interactive data explorer.

This package sequences validation, query execution and state updates for
explorer models, and loads previously saved models in bulk.
"""

__version__ = "0.1.0"
