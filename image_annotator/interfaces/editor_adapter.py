"""
Editor adapter for the selection controller.

Bridges the SelectionController with an editor surface (a form UI that
shows the open annotation and lets the user save, delete or cancel).
"""

import logging
from typing import Callable, Optional

from ..core.annotation import (
    Annotation,
    AnnotationEvent,
    EditorProps,
    EventType,
    SelectionController,
)

logger = logging.getLogger(__name__)


class EditorAdapter:
    """
    Adapter connecting SelectionController to an editor surface.

    Provides a compatibility layer that:
    - Re-renders the editor whenever the controller state changes
    - Relays the editor's create/update/delete/cancel actions
    - Refuses mutating actions while the editor is read-only or closed
    """

    def __init__(
        self,
        controller: SelectionController,
        render_callback: Optional[Callable[[Optional[EditorProps]], None]] = None,
    ):
        """
        Initialize adapter.

        Args:
            controller: Core selection controller
            render_callback: Called with the editor props, or None to close it
        """
        self.controller = controller
        self.render_callback = render_callback

        # Subscribe to controller events
        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Setup event handlers for controller events."""
        self.controller.events.on(EventType.STATE_CHANGED, self._on_state_changed)

    def _on_state_changed(self, event: AnnotationEvent):
        """Handle any state change of the controller."""
        self.refresh()

    def refresh(self):
        if self.render_callback:
            self.render_callback(self.controller.editor_props)

    @property
    def is_open(self) -> bool:
        return self.controller.editor_props is not None

    # Editor actions

    def create(self, annotation: Annotation):
        """Save button on a new selection."""
        if self._refuse("create"):
            return
        self.controller.create_annotation(annotation)

    def update(self, annotation: Annotation, previous: Optional[Annotation] = None):
        """Save button on an existing annotation."""
        if self._refuse("update"):
            return
        self.controller.update_annotation(annotation, previous)

    def delete(self, annotation: Annotation):
        """Delete button."""
        if self._refuse("delete"):
            return
        self.controller.delete_annotation(annotation)

    def cancel(self, annotation: Optional[Annotation] = None):
        """Cancel button."""
        if not self.is_open:
            logger.warning("Editor is closed, ignoring cancel")
            return
        self.controller.cancel_selected(annotation)

    def _refuse(self, action: str) -> bool:
        props = self.controller.editor_props
        if props is None:
            logger.warning("Editor is closed, ignoring %s", action)
            return True
        if props.read_only:
            logger.warning(
                "Annotation %s is read-only, ignoring %s", props.annotation.id, action
            )
            return True
        return False
