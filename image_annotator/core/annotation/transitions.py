"""
Transitions of the selection/edit state machine.

Every function here is pure: it takes the current ``SelectionState`` and
the ``EditorMode`` and returns a ``Transition`` holding the next state plus
the ordered list of effects the controller has to perform (state
checkpoints, annotation layer calls and public events). Nothing in this
module touches a layer or fires an event by itself, so the commit protocol
can be tested without a rendering surface.

The same table serves both modes. Where normal and headless mode differ,
the difference is a branch on ``mode`` inside a single function:

- finalizing a selection because another one was picked commits pending
  changes in headless mode and discards them in normal mode
- the annotation layer is only told to deselect in normal mode, where an
  open editor has to be closed
"""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from .events import EventType
from .state import Annotation, EditorMode, SelectionState


@dataclass(frozen=True)
class SetState:
    """Checkpoint: the controller state becomes ``state``."""

    state: SelectionState


@dataclass(frozen=True)
class LayerCall:
    """Invoke ``method`` on the annotation layer."""

    method: str
    args: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class Emit:
    """Fire a public lifecycle event."""

    event_type: EventType
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Transition:
    """Next state plus the effects leading to it, in execution order."""

    state: SelectionState
    effects: Tuple[Any, ...] = ()

    def then(self, other: "Transition") -> "Transition":
        return Transition(other.state, self.effects + other.effects)

    def emitted(self):
        """Event types fired by this transition, in order."""
        return [e.event_type for e in self.effects if isinstance(e, Emit)]

    def layer_calls(self):
        """Layer method names invoked by this transition, in order."""
        return [e.method for e in self.effects if isinstance(e, LayerCall)]


def _to(state: SelectionState, *effects) -> Transition:
    return Transition(state, (SetState(state),) + effects)


def _commit(
    state: SelectionState,
    mode: EditorMode,
    annotation: Annotation,
    previous: Optional[Annotation],
    created: bool,
) -> Transition:
    # Pending target edits always win over the annotation's own target
    result = annotation.to_annotation()
    if state.modified_target is not None:
        result = result.clone(target=state.modified_target)

    effects = []
    if not mode.is_headless:
        effects.append(LayerCall("deselect"))
    effects.append(LayerCall("add_or_update_annotation", (result, previous)))

    if created:
        effects.append(Emit(EventType.ANNOTATION_CREATED, {"annotation": result}))
    else:
        effects.append(
            Emit(
                EventType.ANNOTATION_UPDATED,
                {"annotation": result, "previous": previous},
            )
        )
    return _to(state.cleared(), *effects)


def create_annotation(
    state: SelectionState, mode: EditorMode, annotation: Annotation
) -> Transition:
    """Commit ``annotation`` as a new annotation replacing the open draft."""
    return _commit(state, mode, annotation, state.selected_annotation, created=True)


def update_annotation(
    state: SelectionState,
    mode: EditorMode,
    annotation: Annotation,
    previous: Optional[Annotation] = None,
) -> Transition:
    """Commit ``annotation`` as a change to an existing annotation."""
    if previous is None:
        previous = state.headless_baseline or state.selected_annotation
    return _commit(state, mode, annotation, previous, created=False)


def cancel(
    state: SelectionState,
    mode: EditorMode,
    annotation: Optional[Annotation] = None,
) -> Transition:
    """Discard the open selection and report it as cancelled."""
    if annotation is None:
        annotation = state.selected_annotation
    if annotation is None:
        return Transition(state)

    effects = []
    if not mode.is_headless:
        effects.append(LayerCall("deselect"))
    # NOTE: fired in headless mode too, see DESIGN.md
    effects.append(Emit(EventType.SELECTION_CANCELLED, {"annotation": annotation}))
    return _to(state.cleared(), *effects)


def save_selected(state: SelectionState, mode: EditorMode) -> Transition:
    """
    Commit whatever is pending on the open selection.

    Drafts are created. Existing annotations are updated against the
    headless baseline if one was recorded, or against themselves when only
    the target moved. With nothing pending the save becomes a cancel so no
    empty update is ever reported.
    """
    selected = state.selected_annotation
    if selected is None:
        return Transition(state)

    if selected.is_selection:
        return _commit(state, mode, selected, selected, created=True)
    if state.headless_baseline is not None:
        return _commit(state, mode, selected, state.headless_baseline, created=False)
    if state.modified_target is not None:
        return _commit(state, mode, selected, selected, created=False)
    return cancel(state, mode, selected)


def update_selected(
    state: SelectionState,
    mode: EditorMode,
    annotation: Annotation,
    save_immediately: bool = False,
) -> Transition:
    """
    Replace the open selection with ``annotation``.

    Without ``save_immediately`` the change is only staged, and the value
    that was selected before the first staged change is kept as baseline.
    """
    selected = state.selected_annotation
    if selected is None:
        return Transition(state)

    if save_immediately:
        if selected.is_selection:
            return _commit(state, mode, annotation, selected, created=True)
        previous = state.headless_baseline or selected
        return _commit(state, mode, annotation, previous, created=False)

    if selected.is_selection and not annotation.is_selection:
        # Stays a draft until it is promoted on save
        annotation = annotation.clone(is_selection=True)

    return _to(
        replace(
            state,
            selected_annotation=annotation,
            headless_baseline=state.headless_baseline or selected,
        )
    )


def finalize(state: SelectionState, mode: EditorMode) -> Transition:
    """
    Resolve the open selection because the selection is moving away.

    The annotation layer has already changed its own selection at this
    point, so the normal-mode discard does not deselect it again.
    """
    if mode.is_headless:
        return save_selected(state, mode)

    selected = state.selected_annotation
    if selected is None:
        return _to(state.cleared())
    return _to(
        state.cleared(),
        Emit(EventType.SELECTION_CANCELLED, {"annotation": selected}),
    )


def select(
    state: SelectionState,
    mode: EditorMode,
    annotation: Optional[Annotation],
    element: Any = None,
    skip_event: bool = False,
) -> Transition:
    """Handle a selection change reported by the layer or requested via API."""
    if annotation is None:
        return deselect(state, mode)

    current = state.selected_annotation
    if current is not None and current.is_equal(annotation):
        if element is None:
            return Transition(state)
        return _to(replace(state, selected_element=element))

    transition = finalize(state, mode) if current is not None else Transition(state)

    effects = []
    if not skip_event:
        if annotation.is_selection:
            effects.append(Emit(EventType.SELECTION_CREATED, {"annotation": annotation}))
        else:
            effects.append(
                Emit(EventType.ANNOTATION_SELECTED, {"annotation": annotation})
            )

    selected = SelectionState(selected_annotation=annotation, selected_element=element)
    return transition.then(_to(selected, *effects))


def deselect(state: SelectionState, mode: EditorMode) -> Transition:
    """The layer reported that nothing is selected any more."""
    if state.selected_annotation is None:
        if state == state.cleared():
            return Transition(state)
        return _to(state.cleared())
    return finalize(state, mode)


def escape(state: SelectionState, mode: EditorMode) -> Transition:
    """Escape key: drops the selection in headless mode, ignored otherwise."""
    if not mode.is_headless:
        return Transition(state)

    effects = [LayerCall("deselect")]
    if state.selected_annotation is not None:
        effects.append(
            Emit(
                EventType.SELECTION_CANCELLED,
                {"annotation": state.selected_annotation},
            )
        )
    return _to(state.cleared(), *effects)


def update_target(
    state: SelectionState,
    element: Any,
    target: Dict[str, Any],
    adopted: Optional[Annotation] = None,
) -> Transition:
    """
    Record a reshaped target for the open selection.

    ``adopted`` is the annotation the layer still shows as selected. It is
    taken over when nothing is open here, which happens in headless mode
    after a commit or cancel left the layer selection in place. The
    notification fires even when there is nothing to store the target on.
    """
    notify = Emit(
        EventType.SELECTION_TARGET_CHANGED, {"target": copy.deepcopy(target)}
    )

    if state.selected_annotation is None and adopted is not None:
        state = SelectionState(selected_annotation=adopted, selected_element=element)
    if state.selected_annotation is None:
        return Transition(state, (notify,))

    return _to(
        replace(
            state,
            selected_element=element,
            modified_target=copy.deepcopy(target),
        ),
        notify,
    )


def delete(state: SelectionState, annotation) -> Transition:
    """Remove an annotation, closing the editor if it was the open one."""
    annotation_id = annotation if isinstance(annotation, str) else annotation.id

    selected = state.selected_annotation
    if selected is not None and selected.id == annotation_id:
        state = state.cleared()

    return _to(
        state,
        LayerCall("remove_annotation", (annotation,)),
        Emit(EventType.ANNOTATION_DELETED, {"annotation": annotation}),
    )


def override_id(
    state: SelectionState, mode: EditorMode, original_id: str, forced_id: str
) -> Transition:
    """Replace a generated identifier, closing the editor if it still shows it."""
    effects = []
    selected = state.selected_annotation
    if selected is not None and selected.id == original_id:
        state = state.cleared()
        if not mode.is_headless:
            effects.append(LayerCall("deselect"))
    effects.append(LayerCall("override_id", (original_id, forced_id)))
    return _to(state, *effects)
