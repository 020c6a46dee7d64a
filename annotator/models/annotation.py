"""Per-record annotation state and the API models built around it."""

from __future__ import annotations

from dataclasses import dataclass, field

from pydantic import BaseModel

from annotator.models.taxonomy import LabelLevel, LabelOption


@dataclass
class LabelRecord:
    """Active label and sub-label keys for one record (usually one file).

    Both collections behave as insertion-ordered sets: a key appears at
    most once and iteration follows the order keys were activated.
    """

    id: str
    user_labels: list[str] = field(default_factory=list)
    user_sub_labels: list[str] = field(default_factory=list)

    def keys(self, level: LabelLevel) -> list[str]:
        return self.user_labels if level == "label" else self.user_sub_labels

    def is_active(self, level: LabelLevel, key: str) -> bool:
        return key in self.keys(level)

    def activate(self, level: LabelLevel, key: str) -> bool:
        """Add *key* at *level*; return ``False`` if it was already active."""
        keys = self.keys(level)
        if key in keys:
            return False
        keys.append(key)
        return True

    def deactivate(self, level: LabelLevel, key: str) -> bool:
        """Remove *key* at *level*; return ``False`` if it was not active."""
        keys = self.keys(level)
        if key not in keys:
            return False
        keys.remove(key)
        return True


class AnnotationRow(BaseModel):
    """One persisted annotation line: ``id,label_encoding,sub_label_encoding``."""

    id: str
    label_encoding: str
    sub_label_encoding: str


class TaxonomyResponse(BaseModel):
    """Label hierarchy and bit positions returned by GET /taxonomy."""

    options: list[LabelOption]
    positions: dict[str, int]


class RecordResponse(BaseModel):
    """Current annotation state of a single record."""

    id: str
    labels: list[str]
    sub_labels: list[str]
    label_encoding: str
    sub_label_encoding: str


class LoadAnnotationsRequest(BaseModel):
    """Request body for POST /annotations/load."""

    path: str
    overwrite: bool = False


class LoadAnnotationsResponse(BaseModel):
    """Outcome of loading a previous-annotation file."""

    path: str
    loaded: int
    skipped: int


class SaveAnnotationsRequest(BaseModel):
    """Request body for POST /annotations/save."""

    path: str | None = None


class SaveAnnotationsResponse(BaseModel):
    """Outcome of writing the annotation file."""

    path: str
    record_count: int
