"""Records API router.

Endpoints:
- GET    /records/{record_id}                     -- active keys and encodings
- POST   /records/{record_id}/labels/{key}        -- activate a label or sub-label
- DELETE /records/{record_id}/labels/{key}        -- deactivate a label or sub-label
- POST   /records/{record_id}/labels/{key}/toggle -- flip a key's state

Every mutation rewrites the record's encoding file and the summary file.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from annotator.dependencies import get_taxonomy, get_workspace
from annotator.models.annotation import RecordResponse
from annotator.models.taxonomy import Taxonomy
from annotator.services.annotation_store import DEFAULT_RECORD_ID
from annotator.services.workspace import WorkspaceService

router = APIRouter(prefix="/records", tags=["records"])


def _check_request(taxonomy: Taxonomy, record_id: str, key: str | None = None) -> None:
    """Reject the reserved sentinel id and keys outside the taxonomy."""
    if record_id == DEFAULT_RECORD_ID:
        raise HTTPException(status_code=400, detail="Record id 'default' is reserved")
    if key is not None and not taxonomy.contains(key):
        raise HTTPException(status_code=404, detail=f"Unknown label key: {key}")


@router.get("/{record_id}", response_model=RecordResponse)
def get_record(
    record_id: str,
    taxonomy: Taxonomy = Depends(get_taxonomy),
    workspace: WorkspaceService = Depends(get_workspace),
) -> RecordResponse:
    """Return a record's state; unannotated records encode as all zeros."""
    _check_request(taxonomy, record_id)
    return workspace.record_state(record_id)


@router.post("/{record_id}/labels/{key}", response_model=RecordResponse)
def add_label(
    record_id: str,
    key: str,
    taxonomy: Taxonomy = Depends(get_taxonomy),
    workspace: WorkspaceService = Depends(get_workspace),
) -> RecordResponse:
    """Activate *key*; a sub-label also activates its parent label."""
    _check_request(taxonomy, record_id, key)
    return workspace.add_label(record_id, key)


@router.delete("/{record_id}/labels/{key}", response_model=RecordResponse)
def remove_label(
    record_id: str,
    key: str,
    taxonomy: Taxonomy = Depends(get_taxonomy),
    workspace: WorkspaceService = Depends(get_workspace),
) -> RecordResponse:
    """Deactivate *key*; removing a label's last sub-label removes the label."""
    _check_request(taxonomy, record_id, key)
    return workspace.remove_label(record_id, key)


@router.post("/{record_id}/labels/{key}/toggle", response_model=RecordResponse)
def toggle_label(
    record_id: str,
    key: str,
    taxonomy: Taxonomy = Depends(get_taxonomy),
    workspace: WorkspaceService = Depends(get_workspace),
) -> RecordResponse:
    """Flip *key* on the record, mirroring a label button press."""
    _check_request(taxonomy, record_id, key)
    return workspace.toggle_label(record_id, key)
