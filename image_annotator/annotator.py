"""
Public API of the image annotator.

``ImageAnnotator`` is what host applications use instead of UI
interaction. Every call funnels into the same controller transitions the
annotation layer and the editor trigger, so the event stream looks the
same whichever path caused a change.
"""

import logging
from concurrent.futures import Future
from typing import Callable, List, Mapping, Optional, Union

import numpy as np

from .core.annotation import (
    Annotation,
    AnnotationEvent,
    EditorProps,
    EventType,
    SelectionController,
)
from .core.layer import AnnotationLayer, DrawingTool
from .interfaces import EditorAdapter
from .utils.config import load_config

logger = logging.getLogger(__name__)

ESCAPE_KEYS = {"Escape", "Esc", 27}


class ImageAnnotator:
    """
    Programmatic surface of the annotator.

    ``save_selected`` and ``update_selected`` return futures that are
    already resolved when the call returns: by then the layer has been
    updated and all events of the operation have fired, so the next call
    can be issued right away. Overlapping calls from inside event
    listeners are not supported, except for the ``override_id`` callback
    handed out with ``ANNOTATION_CREATED``.
    """

    def __init__(
        self,
        layer: AnnotationLayer,
        config: Optional[Mapping] = None,
        render_editor: Optional[Callable[[Optional[EditorProps]], None]] = None,
    ):
        """
        Args:
            layer: Annotation layer rendering the annotations
            config: Options, see ``utils.config.load_config``
            render_editor: Editor surface callback, receives props or None
        """
        self.config = load_config(config)
        self.layer = layer
        self.controller = SelectionController(layer, self.config)
        self.editor = EditorAdapter(self.controller, render_editor)

    # Events

    def on(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        self.controller.events.on(event_type, callback)

    def off(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        self.controller.events.off(event_type, callback)

    # Configuration

    @property
    def disable_editor(self) -> bool:
        return self.controller.headless

    @disable_editor.setter
    def disable_editor(self, disabled: bool):
        self.controller.headless = disabled

    @property
    def read_only(self) -> bool:
        return self.config.read_only

    @read_only.setter
    def read_only(self, read_only: bool):
        self.config.read_only = bool(read_only)
        self.editor.refresh()

    @property
    def editor_props(self) -> Optional[EditorProps]:
        return self.controller.editor_props

    # Annotations

    def add_annotation(self, annotation: Annotation):
        self.layer.add_or_update_annotation(annotation.clone())

    def get_annotations(self) -> List[Annotation]:
        return [a.clone() for a in self.layer.get_annotations()]

    def remove_annotation(self, annotation_or_id: Union[Annotation, str]):
        """
        Remove an annotation and fire ``ANNOTATION_DELETED``.

        Closes the editor if the removed annotation is the open one.
        Unknown identifiers are reported by the layer.
        """
        self.controller.delete_annotation(self._resolve(annotation_or_id))

    def set_annotations(self, annotations: List[Annotation]):
        self.layer.init([a.clone() for a in annotations])

    # Selection

    def get_selected(self) -> Optional[Annotation]:
        selected = self.layer.get_selected()
        return selected.annotation.clone() if selected else None

    def get_selected_image_snippet(self) -> Optional[np.ndarray]:
        return self.layer.get_selected_image_snippet()

    def select_annotation(
        self, annotation_or_id: Union[Annotation, str, None] = None
    ) -> Optional[Annotation]:
        """
        Select an annotation as if the user had clicked it.

        Passing None or an unknown identifier deselects, and resolves the
        open selection the same way a click on an empty spot does: normal
        mode fires ``SELECTION_CANCELLED``, headless mode saves pending
        changes (or fires ``SELECTION_CANCELLED`` when there are none).
        """
        annotation = self.layer.select_annotation(annotation_or_id)
        if annotation is not None:
            return annotation.clone()

        self.controller.handle_select(None)
        return None

    def cancel_selected(self):
        self.controller.cancel_selected()

    def save_selected(self) -> Future:
        """Commit pending changes of the open selection."""
        self.controller.save_selected()
        return self._completed()

    def update_selected(
        self, annotation: Annotation, save_immediately: bool = False
    ) -> Future:
        """
        Replace the open selection, staging the change or committing it.

        Without an open selection this does nothing.
        """
        self.controller.update_selected(annotation, save_immediately)
        return self._completed()

    def handle_key(self, key):
        """Keyboard input; Escape cancels the selection in headless mode."""
        if key in ESCAPE_KEYS:
            self.controller.escape()

    # Drawing tools and display

    def add_drawing_tool(self, plugin: DrawingTool):
        self.layer.add_drawing_tool(plugin)

    def list_drawing_tools(self) -> List[str]:
        return self.layer.list_drawing_tools()

    def set_drawing_tool(self, shape: str):
        self.layer.set_drawing_tool(shape)

    def set_visible(self, visible: bool):
        self.layer.set_visible(visible)

    def destroy(self):
        self.controller.disconnect()
        self.controller.events.clear()
        self.layer.destroy()

    def _resolve(self, annotation_or_id):
        if isinstance(annotation_or_id, Annotation):
            return annotation_or_id

        for annotation in self.layer.get_annotations():
            if annotation.id == annotation_or_id:
                return annotation

        selected = self.controller.state.selected_annotation
        if selected is not None and selected.id == annotation_or_id:
            return selected
        return annotation_or_id

    @staticmethod
    def _completed() -> Future:
        completion = Future()
        completion.set_result(None)
        return completion
