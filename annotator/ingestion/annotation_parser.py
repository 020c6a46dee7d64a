"""Previous-annotation file codec.

The annotation file is headerless comma-delimited text, one record per
line::

    sample_001.tsv,0110,000100100
    sample_002.tsv,1000,100000000

Parsing is all-or-nothing: any malformed row raises
:class:`AnnotationLoadError` and no rows are returned, so callers never
apply a partially-read file.
"""

from __future__ import annotations

import csv
import io
import logging
import re

import pandas as pd

from annotator.errors import AnnotationLoadError
from annotator.models.annotation import AnnotationRow

logger = logging.getLogger(__name__)

_FIELD_COUNT = 3
_BITSTRING = re.compile(r"^[01]+$")


def parse_annotations(text: str) -> list[AnnotationRow]:
    """Parse previous-annotation text into :class:`AnnotationRow` objects.

    Blank input yields an empty list.  Raises :class:`AnnotationLoadError`
    on a wrong field count, or a bitstring that is empty or contains
    anything other than ``0`` and ``1``.
    """
    if not text.strip():
        return []

    try:
        df = pd.read_csv(
            io.StringIO(text),
            header=None,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as e:
        raise AnnotationLoadError(f"Malformed annotation file: {e}") from e

    if df.shape[1] != _FIELD_COUNT:
        raise AnnotationLoadError(
            f"Expected {_FIELD_COUNT} fields per row, found {df.shape[1]}"
        )

    rows: list[AnnotationRow] = []
    for row_number, values in enumerate(df.itertuples(index=False, name=None), start=1):
        # Short rows are padded with NaN; empty fields stay "".
        if any(pd.isna(v) for v in values):
            raise AnnotationLoadError(
                f"Row {row_number}: expected {_FIELD_COUNT} fields"
            )
        record_id, label_encoding, sub_label_encoding = (str(v).strip() for v in values)
        if not record_id:
            raise AnnotationLoadError(f"Row {row_number}: empty record id")
        for name, value in (
            ("label", label_encoding),
            ("sub-label", sub_label_encoding),
        ):
            if not _BITSTRING.match(value):
                raise AnnotationLoadError(
                    f"Row {row_number} ({record_id}): {name} encoding "
                    f"{value!r} is not a binary string"
                )
        rows.append(
            AnnotationRow(
                id=record_id,
                label_encoding=label_encoding,
                sub_label_encoding=sub_label_encoding,
            )
        )

    logger.debug("Parsed %d annotation rows", len(rows))
    return rows


def render_annotation_line(row: AnnotationRow) -> str:
    """Render one annotation row, quoting the id only when it needs it."""
    buffer = io.StringIO()
    csv.writer(buffer).writerow(
        [row.id, row.label_encoding, row.sub_label_encoding]
    )
    return buffer.getvalue().removesuffix("\r\n")
