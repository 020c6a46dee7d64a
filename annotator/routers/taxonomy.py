"""Taxonomy API router.

Endpoints:
- GET /taxonomy -- label options, sub-label options and bit positions
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from annotator.dependencies import get_taxonomy
from annotator.models.annotation import TaxonomyResponse
from annotator.models.taxonomy import Taxonomy

router = APIRouter(prefix="/taxonomy", tags=["taxonomy"])


@router.get("", response_model=TaxonomyResponse)
def get_taxonomy_options(
    taxonomy: Taxonomy = Depends(get_taxonomy),
) -> TaxonomyResponse:
    """Return the label hierarchy in configuration order."""
    return TaxonomyResponse(
        options=list(taxonomy.options),
        positions=taxonomy.positions,
    )
