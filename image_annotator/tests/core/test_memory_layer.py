"""
Tests for InMemoryAnnotationLayer.
"""

import numpy as np
import pytest

from image_annotator.core.annotation import LayerEventType
from image_annotator.core.annotation.utils import rect_target
from image_annotator.core.layer import (
    AnnotationNotFoundError,
    InMemoryAnnotationLayer,
    Shape,
)


@pytest.fixture
def layer_events(memory_layer):
    received = []
    for event_type in LayerEventType:
        memory_layer.events.on(event_type, received.append)
    return received


class TestStore:
    """Annotation storage."""

    def test_init_and_get(self, memory_layer):
        assert [a.id for a in memory_layer.get_annotations()] == ["#a", "#b"]
        assert memory_layer.get_selected() is None

    def test_add_or_update_replaces_previous_id(self, memory_layer, annotation_a):
        renamed = annotation_a.clone(id="#a2")
        memory_layer.add_or_update_annotation(renamed, annotation_a)

        assert [a.id for a in memory_layer.get_annotations()] == ["#b", "#a2"]

    def test_update_refreshes_selected_shape(self, memory_layer, annotation_a, moved_target):
        memory_layer.click("#a")
        memory_layer.add_or_update_annotation(annotation_a.clone(target=moved_target))

        selected = memory_layer.get_selected()
        assert selected.annotation.target == moved_target
        assert selected.element.target == moved_target

    def test_remove(self, memory_layer):
        removed = memory_layer.remove_annotation("#b")
        assert removed.id == "#b"
        assert [a.id for a in memory_layer.get_annotations()] == ["#a"]

    def test_remove_unknown(self, memory_layer):
        with pytest.raises(AnnotationNotFoundError):
            memory_layer.remove_annotation("#missing")

    def test_override_id_keeps_order(self, memory_layer):
        memory_layer.click("#a")
        memory_layer.override_id("#a", "#server-1")

        assert [a.id for a in memory_layer.get_annotations()] == ["#server-1", "#b"]
        assert memory_layer.get_selected().annotation.id == "#server-1"

        with pytest.raises(AnnotationNotFoundError):
            memory_layer.override_id("#a", "#server-2")

    def test_destroy(self, memory_layer, layer_events):
        memory_layer.destroy()

        assert memory_layer.get_annotations() == []
        with pytest.raises(AnnotationNotFoundError):
            memory_layer.hover("#a")
        assert layer_events == []


class TestSelection:
    """Selection and simulated input."""

    def test_select_annotation_emits(self, memory_layer, layer_events):
        selected = memory_layer.select_annotation("#a", skip_event=True)

        assert selected.id == "#a"
        event = layer_events[0]
        assert event.event_type is LayerEventType.SELECT
        assert event.data["skip_event"]
        assert isinstance(event.data["element"], Shape)
        assert event.data["element"].annotation_id == "#a"

    def test_select_unknown_deselects_silently(self, memory_layer, layer_events):
        memory_layer.click("#a")
        layer_events.clear()

        assert memory_layer.select_annotation("#missing") is None
        assert memory_layer.get_selected() is None
        assert layer_events == []

    def test_draw_selection(self, memory_layer, layer_events):
        draft = memory_layer.draw_selection(rect_target(0, 0, 4, 4))

        assert draft.is_selection
        assert draft.id.startswith("#")
        assert memory_layer.get_selected().annotation == draft
        assert draft not in memory_layer.get_annotations()
        assert layer_events[0].data["annotation"] == draft

    def test_draw_refused_when_read_only(self):
        layer = InMemoryAnnotationLayer(read_only=True)
        assert layer.draw_selection(rect_target(0, 0, 4, 4)) is None
        assert layer.get_selected() is None

    def test_click_unknown(self, memory_layer):
        with pytest.raises(AnnotationNotFoundError):
            memory_layer.click("#missing")

    def test_click_empty(self, memory_layer, layer_events):
        memory_layer.click("#a")
        memory_layer.click_empty()

        assert memory_layer.get_selected() is None
        assert layer_events[-1].data["annotation"] is None

    def test_drag_target(self, memory_layer, layer_events, moved_target):
        assert not memory_layer.drag_target(moved_target)

        memory_layer.click("#a")
        assert memory_layer.drag_target(moved_target)

        event = layer_events[-1]
        assert event.event_type is LayerEventType.UPDATE_TARGET
        assert event.data["target"] == moved_target
        assert memory_layer.get_selected().element.target == moved_target
        # Stored annotation only changes on commit
        assert memory_layer.get_annotations()[0].target != moved_target

    def test_drag_refused_for_read_only_annotation(
        self, memory_layer, annotation_a, moved_target
    ):
        memory_layer.init([annotation_a.clone(read_only=True)])
        memory_layer.click("#a")
        assert not memory_layer.drag_target(moved_target)

    def test_remove_selected_draft(self, memory_layer):
        draft = memory_layer.draw_selection(rect_target(0, 0, 4, 4))
        assert memory_layer.remove_annotation(draft.id) == draft
        assert memory_layer.get_selected() is None


class TestSnippet:
    """Image access."""

    def test_without_image(self, annotation_a):
        layer = InMemoryAnnotationLayer()
        layer.init([annotation_a])
        layer.click("#a")
        assert layer.get_selected_image_snippet() is None

    def test_uses_reshaped_target(self, memory_layer):
        memory_layer.click("#a")
        memory_layer.drag_target(rect_target(0, 0, 5, 3))

        snippet = memory_layer.get_selected_image_snippet()
        assert snippet.shape == (3, 5, 3)

    def test_invalid_image(self):
        with pytest.raises(ValueError):
            InMemoryAnnotationLayer(image=np.zeros((10, 10), dtype=np.uint8))
