"""
State management for annotation selection.

Contains the value types shared by every component: the annotation record
itself and the working state of the selection controller.
"""

import copy
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Annotation:
    """
    A committed annotation or an in-progress selection (draft).

    Instances are never mutated in place. Use ``clone`` to derive a
    modified copy; mutable members are deep-copied on every clone so that
    callers never share nested dicts with the owner.
    """

    id: str
    target: Dict[str, Any] = field(default_factory=dict)
    body: Tuple[Dict[str, Any], ...] = ()
    is_selection: bool = False
    read_only: bool = False

    @classmethod
    def new_selection(cls, target: Dict[str, Any], body=()) -> "Annotation":
        """Create a draft with a generated identifier."""
        return cls(
            id=f"#{uuid.uuid4()}",
            target=copy.deepcopy(target),
            body=tuple(copy.deepcopy(b) for b in body),
            is_selection=True,
        )

    def clone(self, **changes) -> "Annotation":
        """Return a structural copy, optionally with some fields replaced."""
        values = {
            "target": copy.deepcopy(changes.pop("target", self.target)),
            "body": tuple(copy.deepcopy(b) for b in changes.pop("body", self.body)),
        }
        values.update(changes)
        return replace(self, **values)

    def to_annotation(self) -> "Annotation":
        """Promote a draft to a committed annotation."""
        return self.clone(is_selection=False)

    def is_equal(self, other: Optional["Annotation"]) -> bool:
        return other is not None and self == other

    def to_dict(self):
        """Convert to dictionary for serialization."""
        data = {
            "id": self.id,
            "type": "Selection" if self.is_selection else "Annotation",
            "body": [copy.deepcopy(b) for b in self.body],
            "target": copy.deepcopy(self.target),
        }
        if self.read_only:
            data["readOnly"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict):
        """Create from dictionary."""
        body = data.get("body", [])
        if isinstance(body, dict):
            body = [body]
        return cls(
            id=data["id"],
            target=copy.deepcopy(data.get("target", {})),
            body=tuple(copy.deepcopy(b) for b in body),
            is_selection=data.get("type") == "Selection",
            read_only=bool(data.get("readOnly", False)),
        )


class SelectionStatus(Enum):
    """Conceptual states of the selection controller."""

    IDLE = "idle"
    SELECTED_CLEAN = "selected_clean"
    SELECTED_DIRTY_TARGET = "selected_dirty_target"
    SELECTED_DIRTY_HEADLESS = "selected_dirty_headless"


class EditorMode(Enum):
    """Whether an interactive editor is shown for the current selection."""

    NORMAL = "normal"
    HEADLESS = "headless"

    @classmethod
    def from_flag(cls, disable_editor: bool) -> "EditorMode":
        return cls.HEADLESS if disable_editor else cls.NORMAL

    @property
    def is_headless(self) -> bool:
        return self is EditorMode.HEADLESS


@dataclass(frozen=True)
class SelectionState:
    """
    Working state of the selection controller.

    ``modified_target`` and ``headless_baseline`` only carry meaning while
    ``selected_annotation`` is set; ``cleared`` resets all of them together.
    """

    selected_annotation: Optional[Annotation] = None
    selected_element: Any = None
    modified_target: Optional[Dict[str, Any]] = None
    headless_baseline: Optional[Annotation] = None

    @property
    def status(self) -> SelectionStatus:
        if self.selected_annotation is None:
            return SelectionStatus.IDLE
        if self.headless_baseline is not None:
            return SelectionStatus.SELECTED_DIRTY_HEADLESS
        if self.modified_target is not None:
            return SelectionStatus.SELECTED_DIRTY_TARGET
        return SelectionStatus.SELECTED_CLEAN

    def cleared(self) -> "SelectionState":
        return SelectionState()

    def to_dict(self):
        """Convert to dictionary (element handles are left out)."""
        selected = self.selected_annotation
        baseline = self.headless_baseline
        return {
            "status": self.status.value,
            "selected_annotation": selected.to_dict() if selected else None,
            "modified_target": copy.deepcopy(self.modified_target),
            "headless_baseline": baseline.to_dict() if baseline else None,
        }
