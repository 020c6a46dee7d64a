"""FastAPI dependency injection for the annotation session services."""

from fastapi import Request

from annotator.models.taxonomy import Taxonomy
from annotator.services.workspace import WorkspaceService


def get_taxonomy(request: Request) -> Taxonomy:
    """Return the session Taxonomy stored on app.state."""
    return request.app.state.taxonomy


def get_workspace(request: Request) -> WorkspaceService:
    """Return the application-wide WorkspaceService stored on app.state."""
    return request.app.state.workspace
