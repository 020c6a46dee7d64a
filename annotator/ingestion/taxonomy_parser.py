"""Taxonomy configuration loader.

Reads two JSON documents:

- the **label options** file, a list of
  ``{"Id", "Label": {"Zh", "En"}, "Value", "SubLabels": [...]}`` objects
  where each sub-label has the same shape minus ``SubLabels``;
- the **encoding positions** file, a flat ``{key: bit_offset}`` object.

Field names are matched case-insensitively.  Any read or parse failure is
raised as :class:`ConfigLoadError`; the application refuses to start
without a complete taxonomy.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from annotator.errors import ConfigLoadError
from annotator.models.taxonomy import LabelOption, LocalizedText, SubLabelOption, Taxonomy
from annotator.repositories.storage import StorageBackend

logger = logging.getLogger(__name__)

# Flexible key lookup order, compared against lower-cased field names.
_ID_KEYS = ("id",)
_DISPLAY_KEYS = ("label", "display")
_KEY_KEYS = ("value", "key")
_SUB_KEYS = ("sublabels", "sub_labels", "suboptions", "sub_options")


def _lower_keys(record: dict) -> dict:
    """Return a copy of *record* with lower-cased field names."""
    return {str(k).lower(): v for k, v in record.items()}


def _get_field(record: dict, keys: tuple[str, ...], default: Any = None) -> Any:
    """Return the first matching key's value from *record*."""
    for k in keys:
        if k in record:
            return record[k]
    return default


def _read_json(path: str | Path, storage: StorageBackend, what: str) -> Any:
    try:
        text = storage.read_text(path)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"Cannot read {what} file {path}: {e}") from e
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigLoadError(f"Invalid JSON in {what} file {path}: {e}") from e


def _parse_display(raw: Any) -> LocalizedText:
    if raw is None:
        return LocalizedText()
    if isinstance(raw, str):
        return LocalizedText(zh=raw, en=raw)
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"Label display must be an object, got {type(raw).__name__}")
    raw = _lower_keys(raw)
    return LocalizedText(zh=str(raw.get("zh") or ""), en=str(raw.get("en") or ""))


def _parse_entry(raw: Any, where: str) -> tuple[str, LocalizedText, str, dict]:
    if not isinstance(raw, dict):
        raise ConfigLoadError(f"{where}: expected an object, got {type(raw).__name__}")
    record = _lower_keys(raw)
    key = _get_field(record, _KEY_KEYS)
    if key is None or str(key) == "":
        raise ConfigLoadError(f"{where}: missing 'Value' field")
    entry_id = _get_field(record, _ID_KEYS, default="")
    display = _parse_display(_get_field(record, _DISPLAY_KEYS))
    return str(entry_id), display, str(key), record


def parse_label_options(data: Any) -> list[LabelOption]:
    """Build :class:`LabelOption` objects from decoded label-options JSON."""
    if not isinstance(data, list):
        raise ConfigLoadError("Label options must be a JSON array")

    options: list[LabelOption] = []
    for i, raw in enumerate(data):
        entry_id, display, key, record = _parse_entry(raw, f"label option #{i}")
        raw_subs = _get_field(record, _SUB_KEYS, default=[]) or []
        if not isinstance(raw_subs, list):
            raise ConfigLoadError(f"label option {key!r}: 'SubLabels' must be an array")

        sub_options = []
        for j, raw_sub in enumerate(raw_subs):
            sub_id, sub_display, sub_key, _ = _parse_entry(
                raw_sub, f"sub-label #{j} of {key!r}"
            )
            sub_options.append(SubLabelOption(id=sub_id, display=sub_display, key=sub_key))

        options.append(
            LabelOption(id=entry_id, display=display, key=key, sub_options=tuple(sub_options))
        )
    return options


def parse_positions(data: Any) -> dict[str, int]:
    """Validate decoded positions JSON as a ``{key: offset}`` mapping."""
    if not isinstance(data, dict):
        raise ConfigLoadError("Encoding positions must be a JSON object")

    positions: dict[str, int] = {}
    for key, value in data.items():
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ConfigLoadError(
                f"Encoding position for {key!r} must be a non-negative integer, got {value!r}"
            )
        positions[str(key)] = value
    return positions


def load_taxonomy(
    label_option_path: str | Path,
    encoding_position_path: str | Path,
    storage: StorageBackend | None = None,
    strict: bool = False,
) -> Taxonomy:
    """Read both configuration files and build the session :class:`Taxonomy`.

    With *strict* set, every label and sub-label key must have an
    encoding position; otherwise the positions file is trusted as-is.
    """
    if storage is None:
        storage = StorageBackend()

    options = parse_label_options(_read_json(label_option_path, storage, "label options"))
    positions = parse_positions(
        _read_json(encoding_position_path, storage, "encoding positions")
    )
    taxonomy = Taxonomy(options, positions)

    missing = taxonomy.missing_positions()
    if missing:
        if strict:
            raise ConfigLoadError(
                f"Keys without an encoding position: {', '.join(missing)}"
            )
        logger.warning("Keys without an encoding position: %s", ", ".join(missing))

    logger.info(
        "Loaded taxonomy: %d labels, %d sub-labels, %d positions",
        len(taxonomy.label_keys()),
        len(taxonomy.sub_label_keys()),
        len(positions),
    )
    return taxonomy
