"""Unified storage abstraction using fsspec for local and remote files."""

from pathlib import Path

import fsspec


class StorageBackend:
    """Filesystem abstraction that provides identical API for local and GCS paths.

    Uses fsspec internally.  Filesystem instances are lazily created and
    cached per protocol (``file`` for local, ``gcs`` for Cloud Storage).
    Configuration files, data files and annotation outputs all go through
    this class so the engine itself never touches the filesystem.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self.encoding = encoding
        self._filesystems: dict[str, fsspec.AbstractFileSystem] = {}

    def _get_fs(self, path: str | Path) -> tuple[fsspec.AbstractFileSystem, str]:
        """Resolve the fsspec filesystem and normalised path for *path*.

        GCS paths (``gs://...``) use the ``gcs`` protocol.  Everything else
        is treated as a local file and resolved to an absolute path.
        """
        path = str(path)
        if path.startswith("gs://"):
            protocol = "gcs"
            norm_path = path
        else:
            protocol = "file"
            norm_path = str(Path(path).resolve())

        if protocol not in self._filesystems:
            self._filesystems[protocol] = fsspec.filesystem(protocol)

        return self._filesystems[protocol], norm_path

    def isdir(self, path: str | Path) -> bool:
        """Return ``True`` if *path* is a directory."""
        fs, norm_path = self._get_fs(path)
        return fs.isdir(norm_path)

    def read_bytes(self, path: str | Path) -> bytes:
        """Read the entire contents of *path* as bytes."""
        fs, norm_path = self._get_fs(path)
        return fs.cat(norm_path)

    def read_text(self, path: str | Path) -> str:
        """Read *path* as text, dropping a leading UTF-8 byte-order mark."""
        return self.read_bytes(path).decode(self.encoding).lstrip("\ufeff")

    def write_text(self, path: str | Path, content: str) -> None:
        """Replace the contents of *path* with *content*.

        Parent directories are created as needed.  Writes are wholesale,
        never appended.
        """
        fs, norm_path = self._get_fs(path)
        parent = norm_path.rsplit("/", 1)[0]
        if parent and parent != norm_path:
            fs.makedirs(parent, exist_ok=True)
        fs.pipe(norm_path, content.encode(self.encoding))

    def list_dir(self, path: str | Path) -> list[str]:
        """List entries in *path*."""
        fs, norm_path = self._get_fs(path)
        return fs.ls(norm_path, detail=False)

    def join(self, base_path: str | Path, file_name: str) -> str:
        """Construct a full path from a base directory and a file name."""
        base_path = str(base_path)
        if base_path.startswith("gs://"):
            return f"{base_path.rstrip('/')}/{file_name}"
        return str(Path(base_path) / file_name)
