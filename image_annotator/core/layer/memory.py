"""
In-memory annotation layer.

A headless stand-in for a rendering surface: keeps annotations in a dict,
tracks one selected shape and simulates user input (drawing, clicking,
dragging, hovering) by emitting the same events a real surface would.
"""

import copy
import logging
from typing import Dict, List, Optional, Union

import numpy as np

from ..annotation.events import AnnotationEvent, LayerEventType
from ..annotation.state import Annotation
from ..annotation.utils import FRAGMENT_SELECTOR, SVG_SELECTOR, crop_snippet, validate_image
from .base import (
    AnnotationLayer,
    AnnotationNotFoundError,
    DrawingTool,
    SelectedShape,
    Shape,
)

logger = logging.getLogger(__name__)

BUILTIN_TOOLS = (
    DrawingTool("rect", FRAGMENT_SELECTOR),
    DrawingTool("polygon", SVG_SELECTOR),
)


class InMemoryAnnotationLayer(AnnotationLayer):
    """Annotation layer without a display."""

    def __init__(self, image: Optional[np.ndarray] = None, read_only: bool = False):
        """
        Initialize layer.

        Args:
            image: Optional RGB image the annotations refer to
            read_only: Refuse drawing and reshaping when set
        """
        super().__init__()
        if image is not None:
            validate_image(image)
        self.image = image
        self.read_only = read_only
        self.visible = True

        self._annotations: Dict[str, Annotation] = {}
        self._selected: Optional[SelectedShape] = None

        self._tools: Dict[str, DrawingTool] = {t.identifier: t for t in BUILTIN_TOOLS}
        self.current_tool = BUILTIN_TOOLS[0].identifier

    # Commands

    def init(self, annotations: List[Annotation]):
        self._annotations = {a.id: a for a in annotations}
        self._selected = None

    def add_or_update_annotation(
        self, annotation: Annotation, previous: Optional[Annotation] = None
    ):
        if previous is not None and previous.id != annotation.id:
            self._annotations.pop(previous.id, None)
        self._annotations[annotation.id] = annotation

        replaced = {annotation.id, previous.id if previous is not None else None}
        if self._selected is not None and self._selected.annotation.id in replaced:
            # Still selected (no editor to close), now showing the stored value
            self._selected = SelectedShape(
                annotation, Shape(annotation.id, copy.deepcopy(annotation.target))
            )

    def remove_annotation(self, annotation_or_id: Union[Annotation, str]) -> Annotation:
        annotation_id = _id_of(annotation_or_id)

        selected = self._selected
        if selected is not None and selected.annotation.id == annotation_id:
            self._selected = None
            if selected.annotation.is_selection:
                return selected.annotation

        if annotation_id not in self._annotations:
            raise AnnotationNotFoundError(annotation_id)
        return self._annotations.pop(annotation_id)

    def override_id(self, original_id: str, forced_id: str):
        if original_id not in self._annotations:
            raise AnnotationNotFoundError(original_id)

        self._annotations = {
            (forced_id if key == original_id else key): (
                a.clone(id=forced_id) if key == original_id else a
            )
            for key, a in self._annotations.items()
        }

        if self._selected is not None and self._selected.annotation.id == original_id:
            renamed = self._annotations[forced_id]
            self._selected = SelectedShape(
                renamed, Shape(forced_id, copy.deepcopy(renamed.target))
            )

    def select_annotation(
        self, annotation_or_id: Union[Annotation, str, None], skip_event: bool = False
    ) -> Optional[Annotation]:
        annotation = self._find(annotation_or_id)
        if annotation is None:
            self.deselect()
            return None

        self._select(annotation, skip_event)
        return annotation

    def deselect(self):
        self._selected = None

    def set_drawing_tool(self, shape: str):
        if shape not in self._tools:
            raise ValueError(f"Unknown drawing tool: {shape}")
        self.current_tool = shape

    def add_drawing_tool(self, plugin: DrawingTool):
        self._tools[plugin.identifier] = plugin

    def set_visible(self, visible: bool):
        self.visible = bool(visible)

    def destroy(self):
        self.events.clear()
        self._annotations.clear()
        self._selected = None

    # Queries

    def get_annotations(self) -> List[Annotation]:
        return list(self._annotations.values())

    def get_selected(self) -> Optional[SelectedShape]:
        return self._selected

    def get_selected_image_snippet(self) -> Optional[np.ndarray]:
        if self._selected is None or self.image is None:
            return None
        return crop_snippet(self.image, self._selected.element.target)

    def list_drawing_tools(self) -> List[str]:
        return list(self._tools)

    # Simulated user input

    def draw_selection(self, target: dict, body=()) -> Optional[Annotation]:
        """User finished drawing a new shape with the current tool."""
        if self.read_only:
            logger.debug("Layer is read-only, ignoring new shape")
            return None

        draft = Annotation.new_selection(target, body)
        self._select(draft, skip_event=False)
        return draft

    def click(self, annotation_or_id: Union[Annotation, str]) -> Annotation:
        """User clicked an existing annotation."""
        annotation = self._find(annotation_or_id)
        if annotation is None:
            raise AnnotationNotFoundError(_id_of(annotation_or_id))
        self._select(annotation, skip_event=False)
        return annotation

    def click_empty(self):
        """User clicked the surface outside of any annotation."""
        self.deselect()
        self.events.emit(
            AnnotationEvent(
                LayerEventType.SELECT,
                {"annotation": None, "element": None, "skip_event": False},
            )
        )

    def drag_target(self, target: dict) -> bool:
        """User reshaped the selected annotation. Returns False if refused."""
        selected = self._selected
        if selected is None or self.read_only or selected.annotation.read_only:
            return False

        selected.element.target = copy.deepcopy(target)
        self.events.emit(
            AnnotationEvent(
                LayerEventType.UPDATE_TARGET,
                {"element": selected.element, "target": copy.deepcopy(target)},
            )
        )
        return True

    def hover(self, annotation_or_id: Union[Annotation, str]):
        self._emit_hover(LayerEventType.MOUSE_ENTER_ANNOTATION, annotation_or_id)

    def unhover(self, annotation_or_id: Union[Annotation, str]):
        self._emit_hover(LayerEventType.MOUSE_LEAVE_ANNOTATION, annotation_or_id)

    def _emit_hover(self, event_type: LayerEventType, annotation_or_id):
        annotation = self._find(annotation_or_id)
        if annotation is None:
            raise AnnotationNotFoundError(_id_of(annotation_or_id))
        self.events.emit(AnnotationEvent(event_type, {"annotation": annotation}))

    def _find(self, annotation_or_id) -> Optional[Annotation]:
        if annotation_or_id is None:
            return None
        return self._annotations.get(_id_of(annotation_or_id))

    def _select(self, annotation: Annotation, skip_event: bool):
        element = Shape(annotation.id, copy.deepcopy(annotation.target))
        self._selected = SelectedShape(annotation, element)
        self.events.emit(
            AnnotationEvent(
                LayerEventType.SELECT,
                {"annotation": annotation, "element": element, "skip_event": skip_event},
            )
        )


def _id_of(annotation_or_id: Union[Annotation, str]) -> str:
    if isinstance(annotation_or_id, Annotation):
        return annotation_or_id.id
    return annotation_or_id
