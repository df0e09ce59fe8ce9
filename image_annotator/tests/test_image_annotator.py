"""
Tests for the ImageAnnotator public API.

Runs on the in-memory layer, mixing simulated user input with API calls
the way a host application would.
"""

import pytest

from image_annotator import ImageAnnotator
from image_annotator.core.annotation import EventType, SelectionStatus
from image_annotator.core.annotation.utils import rect_target
from image_annotator.core.layer import AnnotationNotFoundError, DrawingTool


def stored(annotator, annotation_id):
    return next(a for a in annotator.get_annotations() if a.id == annotation_id)


class TestSingleSelection:
    """At most one annotation is open at a time."""

    def test_switching_in_normal_mode_cancels(self, annotator, memory_layer, recorder):
        recorder.attach(annotator.controller.events)

        memory_layer.click("#a")
        memory_layer.click("#b")

        assert recorder.types == [
            EventType.ANNOTATION_SELECTED,
            EventType.SELECTION_CANCELLED,
            EventType.ANNOTATION_SELECTED,
        ]
        assert recorder.events[1].data["annotation"].id == "#a"
        assert annotator.get_selected().id == "#b"
        assert annotator.controller.state.selected_annotation.id == "#b"

    def test_switching_in_normal_mode_discards_reshape(
        self, annotator, memory_layer, annotation_a, moved_target, recorder
    ):
        memory_layer.click("#a")
        memory_layer.drag_target(moved_target)
        recorder.attach(annotator.controller.events)

        memory_layer.click("#b")

        assert recorder.of(EventType.ANNOTATION_UPDATED) == []
        assert len(recorder.of(EventType.SELECTION_CANCELLED)) == 1
        assert stored(annotator, "#a") == annotation_a

    def test_switching_in_headless_mode_saves_reshape(
        self, headless_annotator, memory_layer, annotation_a, moved_target, recorder
    ):
        memory_layer.click("#a")
        memory_layer.drag_target(moved_target)
        recorder.attach(headless_annotator.controller.events)

        memory_layer.click("#b")

        assert recorder.types == [
            EventType.ANNOTATION_UPDATED,
            EventType.ANNOTATION_SELECTED,
        ]
        updated = recorder.events[0].data
        assert updated["previous"] == annotation_a
        assert updated["annotation"].target == moved_target
        assert stored(headless_annotator, "#a").target == moved_target
        assert headless_annotator.get_selected().id == "#b"

    def test_switching_in_headless_mode_without_changes(
        self, headless_annotator, memory_layer, recorder
    ):
        memory_layer.click("#a")
        recorder.attach(headless_annotator.controller.events)

        memory_layer.click("#b")

        assert recorder.types == [
            EventType.SELECTION_CANCELLED,
            EventType.ANNOTATION_SELECTED,
        ]

    def test_click_empty(self, annotator, memory_layer, recorder):
        memory_layer.click("#a")
        recorder.attach(annotator.controller.events)

        memory_layer.click_empty()

        assert recorder.types == [EventType.SELECTION_CANCELLED]
        assert annotator.get_selected() is None


class TestLayerSelectionSync:
    """Reshapes after a headless commit or cancel are not lost."""

    def test_drag_after_headless_cancel(
        self, headless_annotator, memory_layer, moved_target, recorder
    ):
        memory_layer.click("#a")
        headless_annotator.save_selected()
        # No editor to close, the surface keeps #a selected
        assert headless_annotator.get_selected().id == "#a"
        recorder.attach(headless_annotator.controller.events)

        assert memory_layer.drag_target(moved_target)
        memory_layer.click("#b")

        assert recorder.types == [
            EventType.SELECTION_TARGET_CHANGED,
            EventType.ANNOTATION_UPDATED,
            EventType.ANNOTATION_SELECTED,
        ]
        assert recorder.events[0].data["target"] == moved_target
        assert stored(headless_annotator, "#a").target == moved_target

    def test_drag_after_headless_commit(
        self, headless_annotator, memory_layer, moved_target, recorder
    ):
        memory_layer.click("#a")
        memory_layer.drag_target(moved_target)
        headless_annotator.save_selected()
        recorder.attach(headless_annotator.controller.events)

        second = rect_target(40, 40, 10, 10)
        memory_layer.drag_target(second)
        memory_layer.click("#b")

        updated = recorder.of(EventType.ANNOTATION_UPDATED)
        assert len(updated) == 1
        assert updated[0].data["previous"].target == moved_target
        assert updated[0].data["annotation"].target == second
        assert stored(headless_annotator, "#a").target == second

    def test_editor_props_are_copies(self, annotator, memory_layer):
        memory_layer.click("#a")

        props = annotator.editor_props
        props.annotation.target["selector"]["value"] = "xywh=pixel:0,0,1,1"

        original = rect_target(10, 10, 20, 20, source="image.jpg")
        assert annotator.controller.state.selected_annotation.target == original
        assert memory_layer.get_annotations()[0].target == original


class TestDrafts:
    """Newly drawn selections."""

    def test_draw_fires_selection_created(self, annotator, memory_layer, recorder):
        recorder.attach(annotator.controller.events)
        draft = memory_layer.draw_selection(rect_target(0, 0, 5, 5))

        assert recorder.types == [EventType.SELECTION_CREATED]
        assert recorder.events[0].data["annotation"].is_selection
        assert annotator.editor_props.annotation.id == draft.id

    def test_staged_update_then_save_creates_once(
        self, annotator, memory_layer, recorder
    ):
        draft = memory_layer.draw_selection(rect_target(0, 0, 5, 5))
        reshaped = rect_target(1, 1, 8, 8)
        recorder.attach(annotator.controller.events)

        annotator.update_selected(draft.clone(target=reshaped))
        annotator.save_selected()

        assert recorder.types == [EventType.ANNOTATION_CREATED]
        created = recorder.events[0].data["annotation"]
        assert created.target == reshaped
        assert not created.is_selection
        assert annotator.controller.state.status is SelectionStatus.IDLE
        assert annotator.get_selected() is None
        assert stored(annotator, draft.id) == created

    def test_override_id_of_reopened_annotation(self, annotator, memory_layer):
        draft = memory_layer.draw_selection(rect_target(0, 0, 5, 5))
        callbacks = []
        annotator.on(
            EventType.ANNOTATION_CREATED,
            lambda e: callbacks.append(e.data["override_id"]),
        )

        annotator.editor.create(annotator.editor_props.annotation)
        memory_layer.click(draft.id)
        assert annotator.editor_props is not None

        callbacks[0]("#server-1")

        assert annotator.editor_props is None
        assert [a.id for a in annotator.get_annotations()] == ["#a", "#b", "#server-1"]
        # Surface and editor agree: nothing left to drag
        assert annotator.get_selected() is None
        assert not memory_layer.drag_target(rect_target(2, 2, 5, 5))

    def test_headless_draft_is_created_on_switch(
        self, headless_annotator, memory_layer, recorder
    ):
        memory_layer.draw_selection(rect_target(0, 0, 5, 5))
        recorder.attach(headless_annotator.controller.events)

        memory_layer.click("#a")

        assert recorder.types == [
            EventType.ANNOTATION_CREATED,
            EventType.ANNOTATION_SELECTED,
        ]
        assert len(headless_annotator.get_annotations()) == 3


class TestUpdateSelected:
    """Programmatic updates of the open selection."""

    def test_previous_is_value_before_first_staged_change(
        self, headless_annotator, memory_layer, annotation_a, recorder
    ):
        memory_layer.click("#a")
        recorder.attach(headless_annotator.controller.events)

        first = annotation_a.clone(body=({"value": "one"},))
        second = annotation_a.clone(body=({"value": "two"},))
        headless_annotator.update_selected(first)
        headless_annotator.update_selected(second)
        headless_annotator.save_selected()

        assert recorder.types == [EventType.ANNOTATION_UPDATED]
        data = recorder.events[0].data
        assert data["annotation"] == second
        assert data["previous"] == annotation_a

    def test_save_immediately(self, annotator, memory_layer, annotation_a, recorder):
        memory_layer.click("#a")
        recorder.attach(annotator.controller.events)
        edited = annotation_a.clone(body=({"value": "now"},))

        completion = annotator.update_selected(edited, save_immediately=True)

        assert completion.done()
        assert recorder.types == [EventType.ANNOTATION_UPDATED]
        assert recorder.events[0].data["previous"] == annotation_a
        assert stored(annotator, "#a") == edited

    def test_without_selection_resolves_without_events(
        self, annotator, annotation_a, recorder
    ):
        recorder.attach(annotator.controller.events)

        completion = annotator.update_selected(annotation_a, save_immediately=True)

        assert completion.done()
        assert completion.result() is None
        assert recorder.events == []

    def test_save_selected_resolves(self, annotator, memory_layer):
        memory_layer.click("#a")
        completion = annotator.save_selected()
        assert completion.done()
        assert completion.result() is None

    def test_save_without_changes_cancels(self, annotator, memory_layer, recorder):
        memory_layer.click("#a")
        recorder.attach(annotator.controller.events)

        annotator.save_selected()

        assert recorder.types == [EventType.SELECTION_CANCELLED]
        assert annotator.get_selected() is None


class TestRemove:
    """Removing annotations."""

    def test_remove_open_selection(self, annotator, memory_layer, recorder):
        memory_layer.click("#a")
        recorder.attach(annotator.controller.events)

        annotator.remove_annotation("#a")

        assert recorder.types == [EventType.ANNOTATION_DELETED]
        assert recorder.events[0].data["annotation"].id == "#a"
        assert annotator.editor_props is None
        assert [a.id for a in annotator.get_annotations()] == ["#b"]

    def test_remove_other_annotation_keeps_selection(self, annotator, memory_layer):
        memory_layer.click("#a")
        annotator.remove_annotation("#b")

        assert annotator.editor_props.annotation.id == "#a"

    def test_remove_unknown(self, annotator, recorder):
        recorder.attach(annotator.controller.events)

        with pytest.raises(AnnotationNotFoundError):
            annotator.remove_annotation("#missing")

        assert recorder.events == []

    def test_remove_open_draft(self, annotator, memory_layer, recorder):
        draft = memory_layer.draw_selection(rect_target(0, 0, 5, 5))
        recorder.attach(annotator.controller.events)

        annotator.remove_annotation(draft.id)

        assert recorder.types == [EventType.ANNOTATION_DELETED]
        assert len(annotator.get_annotations()) == 2


class TestSelectionApi:
    """select_annotation, cancel_selected and keyboard input."""

    def test_select_annotation(self, annotator, recorder):
        recorder.attach(annotator.controller.events)

        selected = annotator.select_annotation("#a")

        assert selected.id == "#a"
        assert recorder.types == [EventType.ANNOTATION_SELECTED]
        assert annotator.get_selected().id == "#a"

    def test_select_none_deselects(self, annotator, recorder):
        annotator.select_annotation("#a")
        recorder.attach(annotator.controller.events)

        assert annotator.select_annotation(None) is None
        assert recorder.types == [EventType.SELECTION_CANCELLED]
        assert annotator.get_selected() is None

    def test_select_unknown_deselects(self, headless_annotator):
        headless_annotator.select_annotation("#a")
        assert headless_annotator.select_annotation("#missing") is None
        assert headless_annotator.get_selected() is None
        assert headless_annotator.controller.state.status is SelectionStatus.IDLE

    def test_cancel_selected(self, annotator, memory_layer, recorder):
        memory_layer.click("#a")
        recorder.attach(annotator.controller.events)

        annotator.cancel_selected()
        annotator.cancel_selected()

        assert recorder.types == [EventType.SELECTION_CANCELLED]
        assert annotator.get_selected() is None

    @pytest.mark.parametrize("key", ["Escape", "Esc", 27])
    def test_escape_in_headless_mode(self, headless_annotator, memory_layer, recorder, key):
        memory_layer.click("#a")
        recorder.attach(headless_annotator.controller.events)

        headless_annotator.handle_key(key)

        assert recorder.types == [EventType.SELECTION_CANCELLED]
        assert headless_annotator.get_selected() is None

    def test_escape_ignored_in_normal_mode(self, annotator, memory_layer, recorder):
        memory_layer.click("#a")
        recorder.attach(annotator.controller.events)

        annotator.handle_key("Escape")
        annotator.handle_key("Enter")

        assert recorder.events == []
        assert annotator.get_selected().id == "#a"

    def test_target_changed_payload_is_a_copy(
        self, annotator, memory_layer, moved_target, recorder
    ):
        memory_layer.click("#a")
        recorder.attach(annotator.controller.events)

        memory_layer.drag_target(moved_target)
        payload = recorder.of(EventType.SELECTION_TARGET_CHANGED)[0].data["target"]
        payload["selector"]["value"] = "xywh=pixel:0,0,1,1"

        assert annotator.editor_props.modified_target == moved_target


class TestAnnotationsAndSettings:
    """Annotation list, drawing tools and configuration."""

    def test_get_annotations_returns_copies(self, annotator, memory_layer):
        annotations = annotator.get_annotations()
        annotations[0].target["selector"]["value"] = "xywh=pixel:0,0,1,1"

        assert memory_layer.get_annotations()[0].target["selector"]["value"] == (
            "xywh=pixel:10,10,20,20"
        )

    def test_add_and_set_annotations(self, annotator, annotation_a):
        annotator.add_annotation(annotation_a.clone(id="#c"))
        assert [a.id for a in annotator.get_annotations()] == ["#a", "#b", "#c"]

        annotator.set_annotations([annotation_a])
        assert [a.id for a in annotator.get_annotations()] == ["#a"]

    def test_drawing_tools(self, annotator, memory_layer):
        assert annotator.list_drawing_tools() == ["rect", "polygon"]

        annotator.add_drawing_tool(DrawingTool("ellipse", "SvgSelector"))
        annotator.set_drawing_tool("ellipse")
        assert memory_layer.current_tool == "ellipse"

        with pytest.raises(ValueError):
            annotator.set_drawing_tool("freehand")

    def test_set_visible(self, annotator, memory_layer):
        annotator.set_visible(False)
        assert not memory_layer.visible

    def test_disable_editor_toggle(self, annotator, memory_layer):
        memory_layer.click("#a")
        assert not annotator.disable_editor

        annotator.disable_editor = True
        assert annotator.disable_editor
        assert annotator.editor_props is None

    def test_read_only(self, memory_layer, annotation_a, recorder):
        annotator = ImageAnnotator(memory_layer, {"readOnly": "true"})
        recorder.attach(annotator.controller.events)
        memory_layer.click("#a")

        assert annotator.read_only
        assert annotator.editor_props.read_only

        annotator.editor.update(annotation_a.clone(body=()))
        assert recorder.of(EventType.ANNOTATION_UPDATED) == []

        annotator.read_only = False
        assert not annotator.editor_props.read_only

    def test_hover(self, annotator, memory_layer, recorder):
        recorder.attach(annotator.controller.events)

        memory_layer.hover("#b")
        memory_layer.unhover("#b")

        assert recorder.types == [
            EventType.MOUSE_ENTER_ANNOTATION,
            EventType.MOUSE_LEAVE_ANNOTATION,
        ]

    def test_image_snippet(self, annotator, memory_layer):
        assert annotator.get_selected_image_snippet() is None

        memory_layer.click("#a")
        snippet = annotator.get_selected_image_snippet()

        assert snippet.shape == (20, 20, 3)
        assert snippet[0, 0, 0] == 10
        assert snippet[0, 0, 1] == 10
        assert snippet[19, 19, 0] == 29

    def test_off_unsubscribes(self, annotator, memory_layer):
        received = []
        annotator.on(EventType.ANNOTATION_SELECTED, received.append)
        annotator.off(EventType.ANNOTATION_SELECTED, received.append)

        memory_layer.click("#a")
        assert received == []

    def test_destroy(self, annotator, memory_layer):
        received = []
        annotator.on(EventType.ANNOTATION_SELECTED, received.append)

        annotator.destroy()

        assert memory_layer.get_annotations() == []
        assert received == []
