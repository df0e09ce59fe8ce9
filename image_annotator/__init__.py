"""Selection and edit lifecycle of image annotations."""

from .annotator import ImageAnnotator
from .core.annotation import Annotation, AnnotationEvent, EventType
from .core.layer import InMemoryAnnotationLayer

__all__ = [
    "ImageAnnotator",
    "Annotation",
    "AnnotationEvent",
    "EventType",
    "InMemoryAnnotationLayer",
]
