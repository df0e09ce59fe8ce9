"""
Core annotation module - UI-agnostic selection logic.

This module provides the selection/edit state machine and the value types
it works on, independent of any rendering surface or editor widget.
"""

from .controller import EditorProps, SelectionController
from .events import AnnotationEvent, EventEmitter, EventType, LayerEventType
from .state import Annotation, EditorMode, SelectionState, SelectionStatus

__all__ = [
    "SelectionController",
    "EditorProps",
    "AnnotationEvent",
    "EventType",
    "LayerEventType",
    "EventEmitter",
    "Annotation",
    "EditorMode",
    "SelectionState",
    "SelectionStatus",
]
