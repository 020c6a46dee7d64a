"""Exception hierarchy for the label encoding engine.

``ConfigLoadError`` is fatal at startup.  ``UnknownKeyError`` and
``NotFoundError`` signal a key outside the taxonomy the engine was built
from.  ``AnnotationLoadError`` and ``AnnotationConflictError`` are the
recoverable conditions surfaced to callers when loading previous work.
"""

from __future__ import annotations


class AnnotatorError(Exception):
    """Base class for all annotator errors."""


class ConfigLoadError(AnnotatorError):
    """A taxonomy or positions source could not be read or parsed."""


class UnknownKeyError(AnnotatorError, KeyError):
    """A key has no entry in the positions mapping."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""


class NotFoundError(AnnotatorError, LookupError):
    """A sub-label key does not belong to any label option."""


class AnnotationLoadError(AnnotatorError, ValueError):
    """Previous-annotation input is malformed; no records were changed."""


class AnnotationConflictError(AnnotatorError):
    """Loading would discard annotations that have not been confirmed away."""
