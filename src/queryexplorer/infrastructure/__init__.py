"""
Infrastructure layer package.

This package contains modules for interacting with the outside world:
- Persisted explorer storage
- Event collection loading
- Local query execution
- Logging configuration
- Path utilities

Modules here must not import GUI frameworks (PySide6, Qt, etc.).
"""
