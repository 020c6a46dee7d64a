"""Label encoding engine.

Holds the mutable per-record label state for one annotation session and
implements the parent/child consistency rules between labels and
sub-labels, the positional bit-encoding, and the summary counts.

A sentinel record with id ``"default"`` holds every label and sub-label
key of the taxonomy.  It is the single source of truth for which keys are
top-level (see :meth:`AnnotationStore.classify`) and for the width of the
encoded strings.  It never appears in persisted output or summaries.

The store performs no I/O and is not thread-safe; callers serialize all
access.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from typing import Literal

from annotator.errors import AnnotationLoadError, UnknownKeyError
from annotator.ingestion.annotation_parser import render_annotation_line
from annotator.models.annotation import AnnotationRow, LabelRecord
from annotator.models.taxonomy import LabelLevel, Taxonomy

logger = logging.getLogger(__name__)

DEFAULT_RECORD_ID = "default"

SummaryOrder = Literal["first_seen", "taxonomy"]
Language = Literal["zh", "en"]


class AnnotationStore:
    """Per-session label state keyed by record id.

    Usage::

        store = AnnotationStore(taxonomy)
        store.add_label("f1.tsv", "A1")       # also activates parent "A"
        store.encode("f1.tsv", "label")       # -> "10"
        print(store.output_annotations())
    """

    def __init__(
        self,
        taxonomy: Taxonomy,
        summary_order: SummaryOrder = "first_seen",
        summary_language: Language = "zh",
    ) -> None:
        self.taxonomy = taxonomy
        self.summary_order = summary_order
        self.summary_language = summary_language
        self._records: dict[str, LabelRecord] = {}
        self.reset()

    # ------------------------------------------------------------------
    # Session state
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Discard every record and recreate the sentinel.

        Destructive: all annotation state is lost.
        """
        sentinel = LabelRecord(id=DEFAULT_RECORD_ID)
        for key in self.taxonomy.label_keys():
            sentinel.activate("label", key)
        for key in self.taxonomy.sub_label_keys():
            sentinel.activate("sub_label", key)
        self._records = {DEFAULT_RECORD_ID: sentinel}
        logger.debug(
            "Store reset: %d labels, %d sub-labels",
            len(sentinel.user_labels),
            len(sentinel.user_sub_labels),
        )

    @property
    def _sentinel(self) -> LabelRecord:
        return self._records[DEFAULT_RECORD_ID]

    def _records_without_sentinel(self) -> Iterator[LabelRecord]:
        for record_id, record in self._records.items():
            if record_id != DEFAULT_RECORD_ID:
                yield record

    def _get_or_create(self, record_id: str) -> LabelRecord:
        if record_id == DEFAULT_RECORD_ID:
            raise ValueError(f"Record id {DEFAULT_RECORD_ID!r} is reserved")
        record = self._records.get(record_id)
        if record is None:
            record = LabelRecord(id=record_id)
            self._records[record_id] = record
        return record

    def get_record(self, record_id: str) -> LabelRecord | None:
        """Return the record for *record_id*, or ``None`` if never annotated."""
        if record_id == DEFAULT_RECORD_ID:
            return None
        return self._records.get(record_id)

    def record_ids(self) -> list[str]:
        """Ids of all annotated records in insertion order."""
        return [record.id for record in self._records_without_sentinel()]

    def has_annotations(self) -> bool:
        return any(True for _ in self._records_without_sentinel())

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def classify(self, key: str) -> LabelLevel:
        """Return ``"label"`` if *key* is top-level, otherwise ``"sub_label"``."""
        if self._sentinel.is_active("label", key):
            return "label"
        return "sub_label"

    def add_label(self, record_id: str, key: str) -> None:
        """Activate *key* on a record, creating the record if needed.

        Activating a sub-label also activates its parent label.  An unknown
        key raises :class:`NotFoundError` before any record is created.
        """
        if self.classify(key) == "label":
            self._get_or_create(record_id).activate("label", key)
        else:
            parent_key, _ = self.taxonomy.parent_of(key)
            record = self._get_or_create(record_id)
            record.activate("label", parent_key)
            record.activate("sub_label", key)
        logger.debug("Added %s to %s", key, record_id)

    def remove_label(self, record_id: str, key: str) -> None:
        """Deactivate *key* on a record; unknown records are ignored.

        Removing a label leaves its sub-labels active.  Removing the last
        active sub-label of a label also removes that label.
        """
        record = self.get_record(record_id)
        if record is None:
            return

        if self.classify(key) == "label":
            record.deactivate("label", key)
        else:
            parent_key, siblings = self.taxonomy.parent_of(key)
            if record.is_active("sub_label", key) and not any(
                record.is_active("sub_label", sibling) for sibling in siblings
            ):
                self.remove_label(record_id, parent_key)
            record.deactivate("sub_label", key)
        logger.debug("Removed %s from %s", key, record_id)

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def width(self, level: LabelLevel) -> int:
        """Length of encoded strings at *level*."""
        return len(self._sentinel.keys(level))

    def encode(self, record_id: str, level: LabelLevel) -> str:
        """Return the bitstring of a record's active keys at *level*.

        Unknown records encode as all zeros.
        """
        width = self.width(level)
        bits = ["0"] * width
        record = self.get_record(record_id)
        if record is not None:
            for key in record.keys(level):
                position = self.taxonomy.position_of(key)
                if position >= width:
                    raise UnknownKeyError(
                        f"Position {position} of {key!r} exceeds {level} width {width}"
                    )
                bits[position] = "1"
        return "".join(bits)

    def encode_for_key(self, record_id: str, key: str) -> str:
        """Encode a record at whichever level *key* belongs to."""
        return self.encode(record_id, self.classify(key))

    def decode(self, bitstring: str, level: LabelLevel | None = None) -> list[str]:
        """Return the keys whose bits are set, in ascending bit order.

        Without *level* the key is resolved against the whole positions
        mapping; pass the level when label and sub-label offsets overlap.
        """
        return [
            self.taxonomy.key_at(offset, level)
            for offset, bit in enumerate(bitstring)
            if bit == "1"
        ]

    def load_records(self, rows: Iterable[AnnotationRow]) -> int:
        """Merge previously persisted annotations into the store.

        Decoded keys are added to any existing state, so loading the same
        rows twice without :meth:`reset` is not idempotent.  Every row is
        validated before the first one is applied: on any error
        :class:`AnnotationLoadError` is raised and no record changes.
        Returns the number of rows applied.
        """
        decoded = self._decode_rows(rows)
        self._apply_decoded(decoded)
        return len(decoded)

    def replace_records(self, rows: Iterable[AnnotationRow]) -> int:
        """Validate *rows*, then :meth:`reset` and load them.

        On :class:`AnnotationLoadError` the current state is left intact.
        """
        decoded = self._decode_rows(rows)
        self.reset()
        self._apply_decoded(decoded)
        return len(decoded)

    def _decode_rows(
        self, rows: Iterable[AnnotationRow]
    ) -> list[tuple[str, list[str], list[str]]]:
        decoded: list[tuple[str, list[str], list[str]]] = []
        for row in rows:
            if row.id == DEFAULT_RECORD_ID:
                raise AnnotationLoadError(f"Record id {DEFAULT_RECORD_ID!r} is reserved")
            for level, encoding in (
                ("label", row.label_encoding),
                ("sub_label", row.sub_label_encoding),
            ):
                if set(encoding) - {"0", "1"}:
                    raise AnnotationLoadError(
                        f"{row.id}: {encoding!r} is not a binary string"
                    )
                if len(encoding) != self.width(level):
                    raise AnnotationLoadError(
                        f"{row.id}: {level} encoding {encoding!r} has length "
                        f"{len(encoding)}, expected {self.width(level)}"
                    )
            try:
                labels = self.decode(row.label_encoding, "label")
                sub_labels = self.decode(row.sub_label_encoding, "sub_label")
            except UnknownKeyError as e:
                raise AnnotationLoadError(f"{row.id}: {e}") from e
            decoded.append((row.id, labels, sub_labels))
        return decoded

    def _apply_decoded(self, decoded: list[tuple[str, list[str], list[str]]]) -> None:
        for record_id, labels, sub_labels in decoded:
            record = self._get_or_create(record_id)
            for key in labels:
                record.activate("label", key)
            for key in sub_labels:
                record.activate("sub_label", key)
        logger.info("Loaded %d annotation records", len(decoded))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def annotation_rows(self) -> list[AnnotationRow]:
        """Encoded form of every annotated record, in insertion order."""
        return [
            AnnotationRow(
                id=record.id,
                label_encoding=self.encode(record.id, "label"),
                sub_label_encoding=self.encode(record.id, "sub_label"),
            )
            for record in self._records_without_sentinel()
        ]

    def output_annotations(self) -> str:
        """Render all annotated records as newline-terminated CSV lines."""
        return "".join(
            render_annotation_line(row) + "\n" for row in self.annotation_rows()
        )

    def summary_counts(self) -> tuple[dict[str, int], dict[str, int]]:
        """Count records per active label key and per active sub-label key.

        Keys appear in the order they were first counted, or in taxonomy
        order when the store was created with ``summary_order="taxonomy"``.
        """
        label_counts: Counter[str] = Counter()
        sub_label_counts: Counter[str] = Counter()
        for record in self._records_without_sentinel():
            label_counts.update(record.user_labels)
            sub_label_counts.update(record.user_sub_labels)

        if self.summary_order == "taxonomy":
            return (
                self._in_taxonomy_order(label_counts, self.taxonomy.label_keys()),
                self._in_taxonomy_order(sub_label_counts, self.taxonomy.sub_label_keys()),
            )
        return dict(label_counts), dict(sub_label_counts)

    @staticmethod
    def _in_taxonomy_order(counts: Counter[str], order: list[str]) -> dict[str, int]:
        ordered = {key: counts[key] for key in order if key in counts}
        # Keys outside the taxonomy keep first-seen order at the end.
        for key, count in counts.items():
            ordered.setdefault(key, count)
        return ordered

    def _display(self, key: str) -> str:
        if not self.taxonomy.contains(key):
            return key
        display = self.taxonomy.display_of(key)
        return getattr(display, self.summary_language) or key

    def summarize(self) -> str:
        """Render per-key counts: label lines, a blank line, sub-label lines."""
        label_counts, sub_label_counts = self.summary_counts()
        lines = [f"[{self._display(key)}]:{count}" for key, count in label_counts.items()]
        lines.append("")
        lines.extend(
            f"[{self._display(key)}]:{count}" for key, count in sub_label_counts.items()
        )
        return "".join(line + "\n" for line in lines)
