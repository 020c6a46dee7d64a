"""Annotator FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from annotator.config import get_settings
from annotator.ingestion.taxonomy_parser import load_taxonomy
from annotator.repositories.storage import StorageBackend
from annotator.services.annotation_store import AnnotationStore
from annotator.services.workspace import WorkspaceService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown.

    On startup:
    - Create the StorageBackend.
    - Load the taxonomy and encoding positions.  A ConfigLoadError is
      left to propagate so the server refuses to start without them.
    - Create the AnnotationStore and WorkspaceService and pre-load the
      default data folder into the file list.
    - Store all services on app.state for dependency injection.
    """
    settings = get_settings()

    # Storage
    storage = StorageBackend()
    app.state.storage = storage

    # Taxonomy (fatal on failure)
    taxonomy = load_taxonomy(
        settings.label_option_path,
        settings.encoding_position_path,
        storage=storage,
        strict=settings.strict_positions,
    )
    app.state.taxonomy = taxonomy

    # Annotation engine
    store = AnnotationStore(
        taxonomy,
        summary_order=settings.summary_order,
        summary_language=settings.summary_language,
    )
    app.state.store = store

    # Workspace: file list, per-file encodings, summary
    workspace = WorkspaceService(
        store=store,
        storage=storage,
        data_dir=settings.default_folder_path,
        output_dir=settings.resolved_output_dir,
        summary_file_name=settings.summary_file_name,
        annotation_file_name=settings.annotation_file_name,
    )
    workspace.scan_default_folder()
    app.state.workspace = workspace
    logger.info("Annotator ready with %d files", len(workspace.list_files()))

    yield

    # Shutdown
    if store.has_annotations():
        logger.info("Shutting down with %d annotated records in memory", len(store.record_ids()))


app = FastAPI(
    title="Annotator",
    description="Two-level label annotation with bit-encoded output",
    version="0.1.0",
    lifespan=lifespan,
)

# Router includes
from annotator.routers import annotations, files, records, session, taxonomy  # noqa: E402

app.include_router(taxonomy.router)
app.include_router(files.router)
app.include_router(records.router)
app.include_router(annotations.router)
app.include_router(session.router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Simple health check endpoint."""
    return {"status": "ok"}
