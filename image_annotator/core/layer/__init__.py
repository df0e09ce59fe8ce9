"""
Annotation layers - the rendering side of the annotator.

The selection controller drives layers through the ``AnnotationLayer``
contract; ``InMemoryAnnotationLayer`` implements it without a display.
"""

from .base import (
    AnnotationLayer,
    AnnotationNotFoundError,
    DrawingTool,
    SelectedShape,
    Shape,
)
from .memory import InMemoryAnnotationLayer

__all__ = [
    "AnnotationLayer",
    "AnnotationNotFoundError",
    "DrawingTool",
    "SelectedShape",
    "Shape",
    "InMemoryAnnotationLayer",
]
