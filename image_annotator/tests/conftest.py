"""
Test fixtures and utilities for image_annotator tests.

Provides reusable annotations, layers and an event recorder.
"""

import pytest
import numpy as np
from unittest.mock import Mock

from image_annotator.core.annotation import Annotation, EventEmitter, EventType
from image_annotator.core.annotation.utils import polygon_target, rect_target


class EventRecorder:
    """Collects public events fired by an emitter, in order."""

    def __init__(self):
        self.events = []

    def attach(self, emitter: EventEmitter):
        for event_type in EventType:
            if event_type is not EventType.STATE_CHANGED:
                emitter.on(event_type, self.events.append)
        return self

    @property
    def types(self):
        return [e.event_type for e in self.events]

    def of(self, event_type):
        return [e for e in self.events if e.event_type is event_type]

    def clear(self):
        self.events.clear()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def test_image():
    """
    Create a test RGB image.

    Channel 0 holds the x coordinate, channel 1 the y coordinate and
    channel 2 is saturated, so crops can be checked pixel by pixel.
    """
    image = np.zeros((100, 100, 3), dtype=np.uint8)
    image[:, :, 0] = np.arange(100, dtype=np.uint8)[None, :]
    image[:, :, 1] = np.arange(100, dtype=np.uint8)[:, None]
    image[:, :, 2] = 255
    return image


@pytest.fixture
def annotation_a():
    return Annotation(
        id="#a",
        target=rect_target(10, 10, 20, 20, source="image.jpg"),
        body=({"type": "TextualBody", "purpose": "commenting", "value": "first"},),
    )


@pytest.fixture
def annotation_b():
    return Annotation(
        id="#b",
        target=polygon_target([(50, 50), (90, 50), (70, 80)], source="image.jpg"),
        body=({"type": "TextualBody", "purpose": "tagging", "value": "tree"},),
    )


@pytest.fixture
def moved_target():
    return rect_target(15, 15, 20, 20, source="image.jpg")


@pytest.fixture
def memory_layer(test_image, annotation_a, annotation_b):
    from image_annotator.core.layer import InMemoryAnnotationLayer

    layer = InMemoryAnnotationLayer(image=test_image)
    layer.init([annotation_a, annotation_b])
    return layer


@pytest.fixture
def annotator(memory_layer):
    from image_annotator.annotator import ImageAnnotator

    return ImageAnnotator(memory_layer)


@pytest.fixture
def headless_annotator(memory_layer):
    from image_annotator.annotator import ImageAnnotator

    return ImageAnnotator(memory_layer, {"disableEditor": True})


@pytest.fixture
def mock_layer():
    """Create a mock annotation layer with a real event emitter."""
    layer = Mock()
    layer.events = EventEmitter(propagate_errors=True)
    return layer
