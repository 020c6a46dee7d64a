"""Annotations API router.

Endpoints:
- POST /annotations/load    -- replace session state with a previous annotation file
- GET  /annotations/export  -- current annotations as CSV text
- POST /annotations/save    -- write current annotations to a file
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from annotator.dependencies import get_workspace
from annotator.errors import AnnotationConflictError, AnnotationLoadError
from annotator.models.annotation import (
    LoadAnnotationsRequest,
    LoadAnnotationsResponse,
    SaveAnnotationsRequest,
    SaveAnnotationsResponse,
)
from annotator.services.workspace import WorkspaceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/annotations", tags=["annotations"])


@router.post("/load", response_model=LoadAnnotationsResponse)
def load_annotations(
    request: LoadAnnotationsRequest,
    workspace: WorkspaceService = Depends(get_workspace),
) -> LoadAnnotationsResponse:
    """Load a headerless ``id,labels,sublabels`` file.

    Returns 409 when current annotations would be discarded and
    ``overwrite`` is not set, and 422 when the file is malformed (in
    which case nothing was changed).
    """
    try:
        return workspace.load_previous_annotations(request.path, overwrite=request.overwrite)
    except AnnotationConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except AnnotationLoadError as e:
        logger.warning("Rejected annotation file %s: %s", request.path, e)
        raise HTTPException(status_code=422, detail=f"Load failed, no records changed: {e}")
    except FileNotFoundError:
        raise HTTPException(status_code=404, detail="Annotation file not found")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Annotation file is not valid UTF-8 text")


@router.get("/export", response_class=PlainTextResponse)
def export_annotations(
    workspace: WorkspaceService = Depends(get_workspace),
) -> str:
    """Return every annotated record as one CSV line."""
    return workspace.export_annotations()


@router.post("/save", response_model=SaveAnnotationsResponse)
def save_annotations(
    request: SaveAnnotationsRequest,
    workspace: WorkspaceService = Depends(get_workspace),
) -> SaveAnnotationsResponse:
    """Overwrite the annotation file (default: ``annotation.csv`` in the output folder)."""
    try:
        return workspace.save_annotations(request.path)
    except OSError as e:
        raise HTTPException(status_code=400, detail=f"Could not write annotation file: {e}")
