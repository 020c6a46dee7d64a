"""Files API router.

Endpoints:
- GET  /files                  -- list data files queued for annotation
- POST /files                  -- add TSV/CSV files to the list
- GET  /files/{name}/content   -- preview the text of a listed file
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException

from annotator.dependencies import get_workspace
from annotator.models.workspace import AddFilesRequest, FileContentResponse, FileListResponse
from annotator.services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["files"])


@router.get("", response_model=FileListResponse)
def list_files(
    workspace: WorkspaceService = Depends(get_workspace),
) -> FileListResponse:
    """Return the file list in the order files were added."""
    return FileListResponse(files=workspace.list_files())


@router.post("", response_model=FileListResponse)
def add_files(
    request: AddFilesRequest,
    workspace: WorkspaceService = Depends(get_workspace),
) -> FileListResponse:
    """Add files to the list and return the full, updated list.

    Files that are not ``.tsv`` / ``.csv`` or whose name is already
    listed are skipped.
    """
    workspace.add_files(request.paths)
    return FileListResponse(files=workspace.list_files())


@router.get("/{name}/content", response_model=FileContentResponse)
def get_file_content(
    name: str,
    workspace: WorkspaceService = Depends(get_workspace),
) -> FileContentResponse:
    """Return the preview text of a listed file."""
    try:
        content = workspace.read_file_content(name)
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="File not found")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="File is not valid UTF-8 text")
    return FileContentResponse(name=name, content=content)
