"""
Scripted annotation sessions.

Drives an ``ImageAnnotator`` on top of the in-memory layer through a list
of steps and records the public events it fires. A script is a JSON
object::

    {
      "config": {"disableEditor": true},
      "annotations": [{"id": "#a", "type": "Annotation", "target": {...}}],
      "steps": [
        {"action": "click", "id": "#a"},
        {"action": "drag", "target": {...}},
        {"action": "save"}
      ]
    }
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from image_annotator.annotator import ImageAnnotator
from image_annotator.core.annotation import Annotation, AnnotationEvent, EventType
from image_annotator.core.layer import InMemoryAnnotationLayer

logger = logging.getLogger(__name__)

PUBLIC_EVENTS = [e for e in EventType if e is not EventType.STATE_CHANGED]


def event_to_dict(event: AnnotationEvent) -> Dict[str, Any]:
    """JSON-friendly view of a public event."""
    data = {"event": event.event_type.value}
    for key, value in event.data.items():
        if isinstance(value, Annotation):
            data[key] = value.to_dict()
        elif key == "target":
            data[key] = value
        elif isinstance(value, str):
            data[key] = value
    return data


def _selected(annotator: ImageAnnotator) -> Annotation:
    selected = annotator.controller.state.selected_annotation
    if selected is None:
        raise ValueError("Step needs an open selection")
    return selected


def _step_update(annotator: ImageAnnotator, step: dict):
    if "annotation" in step:
        annotation = Annotation.from_dict(step["annotation"])
    else:
        changes = {}
        if "body" in step:
            changes["body"] = step["body"]
        if "target" in step:
            changes["target"] = step["target"]
        annotation = _selected(annotator).clone(**changes)
    annotator.update_selected(annotation, step.get("save_immediately", False))


def _step_editor_save(annotator: ImageAnnotator, step: dict):
    props = annotator.editor_props
    if props is None:
        raise ValueError("Editor is not open")
    annotation = props.annotation
    if "body" in step:
        annotation = annotation.clone(body=step["body"])
    if annotation.is_selection:
        annotator.editor.create(annotation)
    else:
        annotator.editor.update(annotation, props.annotation)


def _step_editor_delete(annotator: ImageAnnotator, step: dict):
    props = annotator.editor_props
    if props is None:
        raise ValueError("Editor is not open")
    annotator.editor.delete(props.annotation)


STEPS = {
    "draw": lambda a, s, layer: layer.draw_selection(s["target"], s.get("body", ())),
    "click": lambda a, s, layer: layer.click(s["id"]),
    "click_empty": lambda a, s, layer: layer.click_empty(),
    "drag": lambda a, s, layer: layer.drag_target(s["target"]),
    "hover": lambda a, s, layer: layer.hover(s["id"]),
    "unhover": lambda a, s, layer: layer.unhover(s["id"]),
    "select": lambda a, s, layer: a.select_annotation(s.get("id")),
    "save": lambda a, s, layer: a.save_selected(),
    "cancel": lambda a, s, layer: a.cancel_selected(),
    "update": lambda a, s, layer: _step_update(a, s),
    "remove": lambda a, s, layer: a.remove_annotation(s["id"]),
    "key": lambda a, s, layer: a.handle_key(s["key"]),
    "override_id": lambda a, s, layer: a.controller.override_id(s["id"], s["new_id"]),
    "editor_save": lambda a, s, layer: _step_editor_save(a, s),
    "editor_delete": lambda a, s, layer: _step_editor_delete(a, s),
    "editor_cancel": lambda a, s, layer: a.editor.cancel(),
}


def run_script(
    script: Dict[str, Any], options: Optional[Dict[str, Any]] = None
) -> Tuple[List[Dict[str, Any]], ImageAnnotator]:
    """
    Play a script.

    Args:
        script: Parsed script (see module docstring)
        options: Configuration overriding the script's ``config``

    Returns:
        Recorded events (as dicts) and the annotator in its final state
    """
    config = dict(script.get("config", {}))
    config.update(options or {})

    layer = InMemoryAnnotationLayer()
    annotator = ImageAnnotator(layer, config)
    annotator.set_annotations(
        [Annotation.from_dict(a) for a in script.get("annotations", [])]
    )

    events: List[Dict[str, Any]] = []
    for event_type in PUBLIC_EVENTS:
        annotator.on(event_type, lambda event: events.append(event_to_dict(event)))

    for index, step in enumerate(script.get("steps", [])):
        action = step.get("action")
        if action not in STEPS:
            raise ValueError(f"Step {index}: unknown action {action!r}")
        logger.debug("Step %d: %s", index, action)
        STEPS[action](annotator, step, layer)

    return events, annotator
