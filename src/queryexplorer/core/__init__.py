"""Core domain logic package.

This package contains pure logic for explorer models, validations, actions
and stores. Modules here must not import GUI frameworks (PySide6, Qt, etc.).
"""
