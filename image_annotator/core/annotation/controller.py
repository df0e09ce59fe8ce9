"""
Selection/edit controller.

Core logic for tracking the single open annotation on an image surface.
UI-agnostic - works with any annotation layer and any editor surface.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from . import transitions
from .events import AnnotationEvent, EventEmitter, EventType, LayerEventType
from .state import Annotation, EditorMode, SelectionState
from .transitions import Emit, LayerCall, SetState, Transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditorProps:
    """What an editor surface needs to render the open selection."""

    annotation: Annotation
    modified_target: Optional[Dict[str, Any]]
    selected_element: Any
    read_only: bool


class SelectionController:
    """
    Owns the selection state and decides how every change is resolved.

    This class handles:
    - Reacting to selection, target and hover events of the annotation layer
    - Committing or discarding the previous selection on every change
    - Driving the layer's mutating operations
    - Firing the public lifecycle events

    All decisions are delegated to the pure functions in ``transitions``;
    this class only applies their effects in order.
    """

    def __init__(self, layer, config):
        """
        Initialize the controller.

        Args:
            layer: Annotation layer to observe and drive
            config: Configuration with ``disable_editor`` and ``read_only``
        """
        self.layer = layer
        self.config = config
        self.mode = EditorMode.from_flag(config.disable_editor)

        self.state = SelectionState()

        # Public lifecycle events
        self.events = EventEmitter()

        self._layer_handlers = {
            LayerEventType.SELECT: self._on_layer_select,
            LayerEventType.UPDATE_TARGET: self._on_layer_update_target,
            LayerEventType.MOUSE_ENTER_ANNOTATION: self._on_layer_mouse_enter,
            LayerEventType.MOUSE_LEAVE_ANNOTATION: self._on_layer_mouse_leave,
        }
        for event_type, handler in self._layer_handlers.items():
            self.layer.events.on(event_type, handler)

    def disconnect(self):
        """Stop listening to the annotation layer."""
        for event_type, handler in self._layer_handlers.items():
            self.layer.events.off(event_type, handler)

    # Layer events

    def _on_layer_select(self, event: AnnotationEvent):
        self.handle_select(
            event.data.get("annotation"),
            event.data.get("element"),
            event.data.get("skip_event", False),
        )

    def _on_layer_update_target(self, event: AnnotationEvent):
        self.handle_update_target(event.data.get("element"), event.data["target"])

    def _on_layer_mouse_enter(self, event: AnnotationEvent):
        self.events.emit(
            AnnotationEvent(
                EventType.MOUSE_ENTER_ANNOTATION,
                {"annotation": event.data["annotation"].clone()},
            )
        )

    def _on_layer_mouse_leave(self, event: AnnotationEvent):
        self.events.emit(
            AnnotationEvent(
                EventType.MOUSE_LEAVE_ANNOTATION,
                {"annotation": event.data["annotation"].clone()},
            )
        )

    # Transitions

    def handle_select(self, annotation, element=None, skip_event: bool = False):
        return self._apply(
            transitions.select(self.state, self.mode, annotation, element, skip_event)
        )

    def handle_update_target(self, element, target):
        adopted = None
        if self.state.selected_annotation is None:
            # Headless commits and cancels leave the layer selection in place
            selected = self.layer.get_selected()
            if selected is not None:
                adopted = selected.annotation
        return self._apply(
            transitions.update_target(self.state, element, target, adopted)
        )

    def save_selected(self):
        return self._apply(transitions.save_selected(self.state, self.mode))

    def update_selected(self, annotation: Annotation, save_immediately: bool = False):
        return self._apply(
            transitions.update_selected(
                self.state, self.mode, annotation, save_immediately
            )
        )

    def cancel_selected(self, annotation: Optional[Annotation] = None):
        return self._apply(transitions.cancel(self.state, self.mode, annotation))

    def create_annotation(self, annotation: Annotation):
        return self._apply(
            transitions.create_annotation(self.state, self.mode, annotation)
        )

    def update_annotation(
        self, annotation: Annotation, previous: Optional[Annotation] = None
    ):
        return self._apply(
            transitions.update_annotation(self.state, self.mode, annotation, previous)
        )

    def delete_annotation(self, annotation):
        return self._apply(transitions.delete(self.state, annotation))

    def escape(self):
        return self._apply(transitions.escape(self.state, self.mode))

    def override_id(self, original_id: str, forced_id: str):
        return self._apply(
            transitions.override_id(self.state, self.mode, original_id, forced_id)
        )

    def override_id_callback(self, annotation: Annotation) -> Callable[[str], None]:
        """
        Build the callback handed out with ``ANNOTATION_CREATED``.

        Lets the host application replace the generated identifier of a
        freshly created annotation, e.g. with one assigned by its backend.
        """
        original_id = annotation.id

        def override(forced_id: str):
            self.override_id(original_id, forced_id)

        return override

    # Mode and editor

    @property
    def headless(self) -> bool:
        return self.mode.is_headless

    @headless.setter
    def headless(self, disabled: bool):
        mode = EditorMode.from_flag(disabled)
        if mode is self.mode:
            return
        logger.debug("Editor mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode
        self.config.disable_editor = mode.is_headless
        self._state_changed()

    @property
    def editor_props(self) -> Optional[EditorProps]:
        """Props for the editor surface, or None while it must stay closed."""
        selected = self.state.selected_annotation
        if selected is None or self.mode.is_headless:
            return None

        return EditorProps(
            annotation=selected.clone(),
            modified_target=copy.deepcopy(self.state.modified_target),
            selected_element=self.state.selected_element,
            read_only=bool(self.config.read_only or selected.read_only),
        )

    # Effect execution

    def _apply(self, transition: Transition) -> Transition:
        if not transition.effects:
            return transition

        before = self.state.status
        for effect in transition.effects:
            if isinstance(effect, SetState):
                self.state = effect.state
            elif isinstance(effect, LayerCall):
                logger.debug("Layer call: %s", effect.method)
                getattr(self.layer, effect.method)(*effect.args)
            elif isinstance(effect, Emit):
                self.events.emit(
                    AnnotationEvent(effect.event_type, self._event_data(effect))
                )
            else:
                raise TypeError(f"Unknown effect: {effect!r}")

        logger.debug("Selection %s -> %s", before.value, self.state.status.value)
        self._state_changed()
        return transition

    def _state_changed(self):
        self.events.emit(
            AnnotationEvent(EventType.STATE_CHANGED, {"status": self.state.status})
        )

    def _event_data(self, effect: Emit) -> Dict[str, Any]:
        # Listeners get their own copies, never the controller's values
        data = {}
        for key, value in effect.data.items():
            if isinstance(value, Annotation):
                data[key] = value.clone()
            else:
                data[key] = copy.deepcopy(value)

        if effect.event_type is EventType.ANNOTATION_CREATED:
            data["override_id"] = self.override_id_callback(effect.data["annotation"])
        return data
