"""Tests for taxonomy loading and lookups."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from annotator.errors import ConfigLoadError, NotFoundError, UnknownKeyError
from annotator.ingestion.taxonomy_parser import load_taxonomy, parse_label_options
from annotator.models.taxonomy import Taxonomy

from conftest import LABEL_OPTIONS, POSITIONS


# ------------------------------------------------------------------
# Loading
# ------------------------------------------------------------------


def test_load_taxonomy_case_insensitive_fields(taxonomy: Taxonomy) -> None:
    assert taxonomy.label_keys() == ["A", "B", "C"]
    assert taxonomy.sub_label_keys() == ["A1", "A2", "B1", "B2", "C1"]

    beta = taxonomy.options[1]
    assert beta.id == "2"
    assert beta.display.zh == "乙"
    assert beta.display.en == "Beta"
    assert [sub.key for sub in beta.sub_options] == ["B1", "B2"]

    gamma = taxonomy.options[2]
    assert gamma.display.en == "Gamma"
    assert gamma.sub_options[0].id == "3-1"


def test_positions_keep_insertion_order(taxonomy: Taxonomy) -> None:
    assert list(taxonomy.positions) == list(POSITIONS)
    assert taxonomy.positions == POSITIONS


def test_missing_label_options_file(config_dir: Path) -> None:
    with pytest.raises(ConfigLoadError, match="label options"):
        load_taxonomy(config_dir / "nope.json", config_dir / "encoding_positions.json")


def test_missing_positions_file(config_dir: Path) -> None:
    with pytest.raises(ConfigLoadError, match="encoding positions"):
        load_taxonomy(config_dir / "label_options.json", config_dir / "nope.json")


def test_malformed_json(config_dir: Path) -> None:
    (config_dir / "encoding_positions.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(ConfigLoadError, match="Invalid JSON"):
        load_taxonomy(config_dir / "label_options.json", config_dir / "encoding_positions.json")


def test_negative_position_rejected(config_dir: Path) -> None:
    (config_dir / "encoding_positions.json").write_text(json.dumps({"A": -1}), encoding="utf-8")
    with pytest.raises(ConfigLoadError, match="non-negative"):
        load_taxonomy(config_dir / "label_options.json", config_dir / "encoding_positions.json")


def test_label_option_without_value() -> None:
    with pytest.raises(ConfigLoadError, match="Value"):
        parse_label_options([{"Id": "1", "Label": {"Zh": "x"}}])


def test_positions_trusted_unless_strict(config_dir: Path) -> None:
    partial = {k: v for k, v in POSITIONS.items() if k != "C1"}
    (config_dir / "encoding_positions.json").write_text(json.dumps(partial), encoding="utf-8")

    relaxed = load_taxonomy(
        config_dir / "label_options.json", config_dir / "encoding_positions.json"
    )
    assert relaxed.missing_positions() == ["C1"]

    with pytest.raises(ConfigLoadError, match="C1"):
        load_taxonomy(
            config_dir / "label_options.json",
            config_dir / "encoding_positions.json",
            strict=True,
        )


# ------------------------------------------------------------------
# Lookups
# ------------------------------------------------------------------


def test_position_of(taxonomy: Taxonomy) -> None:
    assert taxonomy.position_of("B") == 1
    assert taxonomy.position_of("B2") == 3
    with pytest.raises(UnknownKeyError):
        taxonomy.position_of("Z")


def test_is_top_level_label(taxonomy: Taxonomy) -> None:
    assert taxonomy.is_top_level_label("A")
    assert not taxonomy.is_top_level_label("A1")
    assert not taxonomy.is_top_level_label("Z")


def test_parent_of_returns_siblings_without_self(taxonomy: Taxonomy) -> None:
    assert taxonomy.parent_of("A2") == ("A", ["A1"])
    assert taxonomy.parent_of("C1") == ("C", [])


def test_parent_of_unknown_key(taxonomy: Taxonomy) -> None:
    with pytest.raises(NotFoundError):
        taxonomy.parent_of("A")


def test_key_at_by_level(taxonomy: Taxonomy) -> None:
    # Offset 0 belongs to "A" in the label space and "A1" in the sub-label space.
    assert taxonomy.key_at(0) == "A"
    assert taxonomy.key_at(0, "label") == "A"
    assert taxonomy.key_at(0, "sub_label") == "A1"
    assert taxonomy.key_at(4, "sub_label") == "C1"
    with pytest.raises(UnknownKeyError):
        taxonomy.key_at(3, "label")


def test_display_of(taxonomy: Taxonomy) -> None:
    assert taxonomy.display_of("B1").zh == "乙一"
    assert taxonomy.display_of("C").en == "Gamma"
    with pytest.raises(NotFoundError):
        taxonomy.display_of("Z")


def test_taxonomy_is_immutable(taxonomy: Taxonomy) -> None:
    positions = taxonomy.positions
    positions["A"] = 99
    assert taxonomy.position_of("A") == 0

    with pytest.raises(ValidationError):
        taxonomy.options[0].key = "X"


def test_build_from_parsed_options() -> None:
    taxonomy = Taxonomy(parse_label_options(LABEL_OPTIONS), POSITIONS)
    assert taxonomy.contains("B2")
    assert not taxonomy.contains("Z")
