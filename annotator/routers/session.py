"""Session API router.

Endpoints:
- GET  /summary -- per-label record counts as text
- POST /reset   -- discard all annotation state (requires confirm=true)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse

from annotator.dependencies import get_workspace
from annotator.services.workspace import WorkspaceService

router = APIRouter(tags=["session"])


@router.get("/summary", response_class=PlainTextResponse)
def get_summary(
    workspace: WorkspaceService = Depends(get_workspace),
) -> str:
    """Return label counts, a blank line, then sub-label counts."""
    return workspace.summarize()


@router.post("/reset")
def reset_session(
    confirm: bool = Query(False, description="Must be true; the reset cannot be undone"),
    workspace: WorkspaceService = Depends(get_workspace),
) -> dict:
    """Clear every record's labels."""
    if not confirm:
        raise HTTPException(
            status_code=409,
            detail="Current annotation data will be removed; pass confirm=true",
        )
    workspace.reset()
    return {"reset": True}
