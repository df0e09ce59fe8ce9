"""
Interfaces module - UI adapters for the annotation core.

Provides adapters to connect the selection controller with editor
surfaces of different UI frameworks.
"""

from .editor_adapter import EditorAdapter

__all__ = ['EditorAdapter']
