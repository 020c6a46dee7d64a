"""Label taxonomy: label options, sub-label options and bit positions.

The taxonomy is loaded once per session and never mutated.  Every key
(label or sub-label) maps to a bit offset inside the encoded string of
its level; sub-label keys are unique across the whole taxonomy so a
sub-label key always identifies its parent.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Literal

from pydantic import BaseModel

from annotator.errors import NotFoundError, UnknownKeyError

LabelLevel = Literal["label", "sub_label"]


class LocalizedText(BaseModel):
    """Display text in the two supported languages."""

    zh: str = ""
    en: str = ""

    model_config = {"frozen": True}


class SubLabelOption(BaseModel):
    """Second-level taxonomy entry owned by a :class:`LabelOption`."""

    id: str
    display: LocalizedText
    key: str

    model_config = {"frozen": True}


class LabelOption(BaseModel):
    """Top-level taxonomy branch with its ordered sub-label options."""

    id: str
    display: LocalizedText
    key: str
    sub_options: tuple[SubLabelOption, ...] = ()

    model_config = {"frozen": True}


class Taxonomy:
    """Immutable label hierarchy plus the key-to-bit-position mapping.

    *positions* is trusted as-is: keys referenced by *options* are assumed
    to be present.  Pass ``strict=True`` to :func:`load_taxonomy` to verify
    that at load time instead.
    """

    def __init__(
        self,
        options: Iterable[LabelOption],
        positions: Mapping[str, int],
    ) -> None:
        self._options: tuple[LabelOption, ...] = tuple(options)
        self._positions: dict[str, int] = dict(positions)

        self._labels: dict[str, LabelOption] = {}
        self._sub_labels: dict[str, SubLabelOption] = {}
        self._parents: dict[str, LabelOption] = {}
        for option in self._options:
            self._labels.setdefault(option.key, option)
            for sub in option.sub_options:
                # First owner wins if the unique-key assumption is broken.
                self._sub_labels.setdefault(sub.key, sub)
                self._parents.setdefault(sub.key, option)

        # Inverse of the positions mapping, first key in insertion order wins.
        self._inverse: dict[LabelLevel | None, dict[int, str]] = {
            None: {},
            "label": {},
            "sub_label": {},
        }
        for key, position in self._positions.items():
            self._inverse[None].setdefault(position, key)
            if key in self._labels:
                self._inverse["label"].setdefault(position, key)
            elif key in self._sub_labels:
                self._inverse["sub_label"].setdefault(position, key)

    @property
    def options(self) -> tuple[LabelOption, ...]:
        return self._options

    @property
    def positions(self) -> dict[str, int]:
        return dict(self._positions)

    def label_keys(self) -> list[str]:
        """All label keys in taxonomy order."""
        return [option.key for option in self._options]

    def sub_label_keys(self) -> list[str]:
        """All sub-label keys in taxonomy order."""
        return [sub.key for option in self._options for sub in option.sub_options]

    def missing_positions(self) -> list[str]:
        """Taxonomy keys that have no entry in the positions mapping."""
        return [
            key
            for key in self.label_keys() + self.sub_label_keys()
            if key not in self._positions
        ]

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def position_of(self, key: str) -> int:
        """Return the bit offset of *key*.

        Raises :class:`UnknownKeyError` if *key* has no position.
        """
        try:
            return self._positions[key]
        except KeyError:
            raise UnknownKeyError(f"No encoding position for key {key!r}") from None

    def key_at(self, position: int, level: LabelLevel | None = None) -> str:
        """Return the key encoded at bit *position*.

        With *level* given, only keys of that level are considered; this
        matters when label and sub-label offsets share the same range.
        """
        try:
            return self._inverse[level][position]
        except KeyError:
            scope = f"{level} " if level else ""
            raise UnknownKeyError(
                f"No {scope}key is encoded at position {position}"
            ) from None

    def is_top_level_label(self, key: str) -> bool:
        return key in self._labels

    def contains(self, key: str) -> bool:
        """True if *key* is a label or sub-label key of this taxonomy."""
        return key in self._labels or key in self._sub_labels

    def parent_of(self, sub_key: str) -> tuple[str, list[str]]:
        """Return ``(parent_key, sibling_keys)`` for a sub-label key.

        Siblings exclude *sub_key* itself.  Raises :class:`NotFoundError`
        if *sub_key* is not a sub-option of any label.
        """
        parent = self._parents.get(sub_key)
        if parent is None:
            raise NotFoundError(f"Sub-label {sub_key!r} has no parent label")
        siblings = [sub.key for sub in parent.sub_options if sub.key != sub_key]
        return parent.key, siblings

    def display_of(self, key: str) -> LocalizedText:
        """Return the display text for a label or sub-label key."""
        if key in self._labels:
            return self._labels[key].display
        if key in self._sub_labels:
            return self._sub_labels[key].display
        raise NotFoundError(f"Key {key!r} is not part of the taxonomy")
