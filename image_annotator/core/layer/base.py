"""
Annotation layer contract.

The annotation layer owns rendering and hit-testing of annotations on the
image surface. The selection controller only talks to it through the
operations and events declared here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import numpy as np

from ..annotation.events import EventEmitter
from ..annotation.state import Annotation


class AnnotationNotFoundError(KeyError):
    """No annotation with the given identifier is known to the layer."""


@dataclass
class Shape:
    """Visual element bound to an annotation on the surface."""

    annotation_id: str
    target: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SelectedShape:
    """The layer's current selection."""

    annotation: Annotation
    element: Any = None


@dataclass(frozen=True)
class DrawingTool:
    """A drawing tool plugin, identified by the shape it draws."""

    identifier: str
    selector_type: str


class AnnotationLayer(ABC):
    """
    Rendering surface for annotations.

    Emits ``LayerEventType`` events through ``events``:
    - SELECT {annotation, element, skip_event}; annotation None means deselect
    - UPDATE_TARGET {element, target}
    - MOUSE_ENTER_ANNOTATION / MOUSE_LEAVE_ANNOTATION {annotation}

    Imperative calls such as ``deselect`` never emit events.
    """

    def __init__(self):
        # Errors in the controller's handlers reach whoever triggered the event
        self.events = EventEmitter(propagate_errors=True)

    @abstractmethod
    def init(self, annotations: List[Annotation]):
        """Replace all annotations."""

    @abstractmethod
    def add_or_update_annotation(
        self, annotation: Annotation, previous: Optional[Annotation] = None
    ):
        """Add ``annotation`` or replace ``previous`` with it."""

    @abstractmethod
    def remove_annotation(self, annotation_or_id: Union[Annotation, str]):
        """Remove an annotation or the open draft."""

    @abstractmethod
    def override_id(self, original_id: str, forced_id: str):
        """Rename an annotation."""

    @abstractmethod
    def select_annotation(
        self, annotation_or_id: Union[Annotation, str, None], skip_event: bool = False
    ) -> Optional[Annotation]:
        """Select an annotation and emit SELECT; deselect if it is unknown."""

    @abstractmethod
    def deselect(self):
        """Drop the current selection without emitting anything."""

    @abstractmethod
    def get_annotations(self) -> List[Annotation]:
        """All committed annotations."""

    @abstractmethod
    def get_selected(self) -> Optional[SelectedShape]:
        """The current selection, if any."""

    @abstractmethod
    def get_selected_image_snippet(self) -> Optional[np.ndarray]:
        """Image pixels under the current selection."""

    @abstractmethod
    def set_drawing_tool(self, shape: str):
        """Activate a registered drawing tool."""

    @abstractmethod
    def add_drawing_tool(self, plugin: DrawingTool):
        """Register a drawing tool."""

    @abstractmethod
    def list_drawing_tools(self) -> List[str]:
        """Identifiers of all registered drawing tools."""

    @abstractmethod
    def set_visible(self, visible: bool):
        """Show or hide all annotations."""

    @abstractmethod
    def destroy(self):
        """Release the surface."""
