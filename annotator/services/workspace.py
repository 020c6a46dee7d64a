"""Annotation workspace: the file list and everything persisted around it.

Wraps an :class:`AnnotationStore` with the behaviour of an annotation
session that is not presentation:

- a list of data files (TSV/CSV) whose names double as record ids;
- previews of a data file's text;
- toggling a label on a file, after which the file's own encoding file
  (``<stem>.txt``) and ``summary.txt`` are rewritten in the output folder;
- loading a previous annotation file and saving the current one.
"""

from __future__ import annotations

import csv
import io
import logging
import threading
from pathlib import Path

from annotator.errors import AnnotationConflictError
from annotator.ingestion.annotation_parser import parse_annotations
from annotator.models.annotation import (
    LoadAnnotationsResponse,
    RecordResponse,
    SaveAnnotationsResponse,
)
from annotator.models.workspace import FileListItem
from annotator.repositories.storage import StorageBackend
from annotator.services.annotation_store import AnnotationStore

logger = logging.getLogger(__name__)

DATA_EXTENSIONS = {".tsv", ".csv"}

# CSV previews show this column of every row that has more columns.
_CSV_TEXT_COLUMN = 3


def _basename(path: str) -> str:
    """Return the last component of a path."""
    if path.startswith("gs://"):
        return path.rstrip("/").split("/")[-1]
    return Path(path).name


def _dirname(path: str) -> str:
    """Return everything before the last path component."""
    if path.startswith("gs://"):
        return path.rstrip("/").rsplit("/", 1)[0]
    return str(Path(path).parent)


def _stem(path: str) -> str:
    """Return the filename without extension."""
    name = _basename(path)
    dot = name.rfind(".")
    return name[:dot] if dot > 0 else name


def _extension(path: str) -> str:
    name = _basename(path)
    dot = name.rfind(".")
    return name[dot:].lower() if dot > 0 else ""


class WorkspaceService:
    """File list plus persistence of per-file encodings and the summary.

    Usage::

        workspace = WorkspaceService(store, storage, data_dir=Path("data"))
        workspace.scan_default_folder()
        workspace.toggle_label("sample_001.tsv", "A1")
    """

    def __init__(
        self,
        store: AnnotationStore,
        storage: StorageBackend,
        data_dir: str | Path,
        output_dir: str | Path | None = None,
        summary_file_name: str = "summary.txt",
        annotation_file_name: str = "annotation.csv",
    ) -> None:
        self.store = store
        self.storage = storage
        self.data_dir = str(data_dir)
        self.output_dir = str(output_dir) if output_dir is not None else self.data_dir
        self.summary_file_name = summary_file_name
        self.annotation_file_name = annotation_file_name
        self._files: dict[str, FileListItem] = {}
        # Serializes store mutations and the file rewrites that follow them.
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # File list
    # ------------------------------------------------------------------

    def scan_default_folder(self) -> list[FileListItem]:
        """Add every ``.tsv`` file in the data folder, if the folder exists."""
        if not self.storage.isdir(self.data_dir):
            logger.info("Data folder %s does not exist, file list left empty", self.data_dir)
            return []
        entries = sorted(
            entry for entry in self.storage.list_dir(self.data_dir)
            if _extension(entry) == ".tsv"
        )
        return self.add_files(entries)

    def add_files(self, paths: list[str]) -> list[FileListItem]:
        """Append data files to the list; names already listed are skipped.

        Returns only the newly added items.
        """
        added: list[FileListItem] = []
        with self._lock:
            for path in paths:
                if _extension(path) not in DATA_EXTENSIONS:
                    logger.warning("Skipping %s: not a TSV or CSV file", path)
                    continue
                name = _basename(path)
                if name in self._files:
                    continue
                item = FileListItem(name=name, directory_name=_dirname(path))
                self._files[name] = item
                added.append(item)
        if added:
            logger.info("Added %d files to the workspace", len(added))
        return added

    def list_files(self) -> list[FileListItem]:
        return list(self._files.values())

    def get_file(self, name: str) -> FileListItem:
        """Return the listed file called *name*.

        Raises :class:`FileNotFoundError` if it is not in the file list.
        """
        item = self._files.get(name)
        if item is None:
            raise FileNotFoundError(f"File not in workspace: {name}")
        return item

    def read_file_content(self, name: str) -> str:
        """Return the text shown for a data file.

        TSV files are returned verbatim.  CSV files are parsed and the
        fourth field of every row that has one is returned, one per line.
        """
        item = self.get_file(name)
        text = self.storage.read_text(self.storage.join(item.directory_name, item.name))
        if _extension(name) == ".tsv":
            return text

        lines = [
            fields[_CSV_TEXT_COLUMN]
            for fields in csv.reader(io.StringIO(text))
            if len(fields) > _CSV_TEXT_COLUMN
        ]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Labelling
    # ------------------------------------------------------------------

    def record_state(self, record_id: str) -> RecordResponse:
        """Active keys and both encodings of a record (empty if unannotated)."""
        with self._lock:
            record = self.store.get_record(record_id)
            return RecordResponse(
                id=record_id,
                labels=list(record.user_labels) if record else [],
                sub_labels=list(record.user_sub_labels) if record else [],
                label_encoding=self.store.encode(record_id, "label"),
                sub_label_encoding=self.store.encode(record_id, "sub_label"),
            )

    def add_label(self, record_id: str, key: str) -> RecordResponse:
        with self._lock:
            self.store.add_label(record_id, key)
            return self._persist(record_id)

    def remove_label(self, record_id: str, key: str) -> RecordResponse:
        with self._lock:
            self.store.remove_label(record_id, key)
            return self._persist(record_id)

    def toggle_label(self, record_id: str, key: str) -> RecordResponse:
        """Deactivate *key* if it is active on the record, otherwise activate it."""
        with self._lock:
            record = self.store.get_record(record_id)
            if record is not None and record.is_active(self.store.classify(key), key):
                self.store.remove_label(record_id, key)
            else:
                self.store.add_label(record_id, key)
            return self._persist(record_id)

    def _persist(self, record_id: str) -> RecordResponse:
        """Rewrite the record's encoding file and the summary file."""
        state = self.record_state(record_id)
        self.storage.write_text(
            self.storage.join(self.output_dir, f"{_stem(record_id)}.txt"),
            f"{state.label_encoding},{state.sub_label_encoding}",
        )
        self.write_summary()
        return state

    def summarize(self) -> str:
        with self._lock:
            return self.store.summarize()

    def write_summary(self) -> str:
        """Rewrite the summary file and return its path."""
        path = self.storage.join(self.output_dir, self.summary_file_name)
        with self._lock:
            self.storage.write_text(path, self.store.summarize())
        return path

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load_previous_annotations(
        self, path: str, overwrite: bool = False
    ) -> LoadAnnotationsResponse:
        """Replace the session state with a previous annotation file.

        Raises :class:`AnnotationConflictError` when annotations exist and
        *overwrite* is not set.  Only rows for files in the file list are
        loaded; with an empty file list every row is.  A malformed file
        raises :class:`AnnotationLoadError` and leaves the state untouched.
        """
        with self._lock:
            if self.store.has_annotations() and not overwrite:
                raise AnnotationConflictError(
                    "Current annotation data would be removed; confirm to continue"
                )

            rows = parse_annotations(self.storage.read_text(path))
            if self._files:
                kept = [row for row in rows if row.id in self._files]
            else:
                kept = rows
            skipped = len(rows) - len(kept)
            if skipped:
                logger.warning("Skipped %d annotation rows for files not in the workspace", skipped)

            loaded = self.store.replace_records(kept)
        logger.info("Loaded %d annotations from %s", loaded, path)
        return LoadAnnotationsResponse(path=path, loaded=loaded, skipped=skipped)

    def export_annotations(self) -> str:
        with self._lock:
            return self.store.output_annotations()

    def save_annotations(self, path: str | None = None) -> SaveAnnotationsResponse:
        """Write every annotated record to *path* (wholesale, not appended)."""
        if path is None:
            path = self.storage.join(self.output_dir, self.annotation_file_name)
        with self._lock:
            self.storage.write_text(path, self.store.output_annotations())
            record_count = len(self.store.record_ids())
        logger.info("Saved %d annotations to %s", record_count, path)
        return SaveAnnotationsResponse(path=path, record_count=record_count)

    def reset(self) -> None:
        """Discard all annotation state; the caller is responsible for confirming."""
        with self._lock:
            self.store.reset()
        logger.info("Annotation state cleared")
