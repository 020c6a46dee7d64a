"""Pydantic models for the annotation file list and file previews."""

from pydantic import BaseModel


class FileListItem(BaseModel):
    """A data file queued for annotation."""

    name: str
    """File name (basename only); doubles as the record id."""

    directory_name: str
    """Directory containing the file."""


class FileListResponse(BaseModel):
    """Response from ``GET /files``."""

    files: list[FileListItem]


class AddFilesRequest(BaseModel):
    """Request body for the ``POST /files`` endpoint."""

    paths: list[str]
    """Absolute paths of ``.tsv`` / ``.csv`` files to add."""


class FileContentResponse(BaseModel):
    """Response from ``GET /files/{name}/content``."""

    name: str
    content: str
