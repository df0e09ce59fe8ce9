"""
Event system for the annotation workflow.

Provides a decoupled way for the selection controller to notify host
applications and UI components about lifecycle changes, and for annotation
layers to report user interaction, without depending on a UI framework.
"""

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Public lifecycle events fired by the selection controller."""

    # Selection events
    SELECTION_CREATED = "selection_created"
    ANNOTATION_SELECTED = "annotation_selected"
    SELECTION_CANCELLED = "selection_cancelled"
    SELECTION_TARGET_CHANGED = "selection_target_changed"

    # Annotation CRUD events
    ANNOTATION_CREATED = "annotation_created"
    ANNOTATION_UPDATED = "annotation_updated"
    ANNOTATION_DELETED = "annotation_deleted"

    # Hover events
    MOUSE_ENTER_ANNOTATION = "mouse_enter_annotation"
    MOUSE_LEAVE_ANNOTATION = "mouse_leave_annotation"

    # Controller events
    STATE_CHANGED = "state_changed"


class LayerEventType(Enum):
    """Events emitted by an annotation layer."""

    SELECT = "select"
    UPDATE_TARGET = "update_target"
    MOUSE_ENTER_ANNOTATION = "mouse_enter_annotation"
    MOUSE_LEAVE_ANNOTATION = "mouse_leave_annotation"


@dataclass
class AnnotationEvent:
    """Event that occurs during annotation."""

    event_type: Enum
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    Listener errors are logged and skipped unless ``propagate_errors`` is
    set, in which case the first failure is raised to the emitting caller.
    """

    def __init__(self, propagate_errors: bool = False):
        self._listeners: Dict[Enum, List[Callable]] = {}
        self.propagate_errors = propagate_errors

    def on(self, event_type: Enum, callback: Callable[[AnnotationEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def off(self, event_type: Enum, callback: Callable[[AnnotationEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type].remove(callback)

    def emit(self, event: AnnotationEvent):
        """Emit an event to all subscribers."""
        # Copy so listeners may unsubscribe while being notified
        for callback in list(self._listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                if self.propagate_errors:
                    raise
                # Log but don't crash on listener errors
                logger.exception(
                    "Error in event listener for %s", event.event_type.value
                )

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
