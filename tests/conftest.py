"""Shared pytest fixtures for annotator tests."""

import json
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI

from annotator.ingestion.taxonomy_parser import load_taxonomy
from annotator.models.taxonomy import Taxonomy
from annotator.repositories.storage import StorageBackend
from annotator.routers import annotations, files, records, session, taxonomy as taxonomy_router
from annotator.services.annotation_store import AnnotationStore
from annotator.services.workspace import WorkspaceService

# Field names deliberately mix case: matching is case-insensitive.
LABEL_OPTIONS = [
    {
        "Id": "1",
        "Label": {"Zh": "甲", "En": "Alpha"},
        "Value": "A",
        "SubLabels": [
            {"Id": "1-1", "Label": {"Zh": "甲一", "En": "Alpha one"}, "Value": "A1"},
            {"Id": "1-2", "Label": {"Zh": "甲二", "En": "Alpha two"}, "Value": "A2"},
        ],
    },
    {
        "id": "2",
        "label": {"zh": "乙", "en": "Beta"},
        "value": "B",
        "subLabels": [
            {"id": "2-1", "label": {"zh": "乙一", "en": "Beta one"}, "value": "B1"},
            {"id": "2-2", "label": {"zh": "乙二", "en": "Beta two"}, "value": "B2"},
        ],
    },
    {
        "ID": "3",
        "LABEL": {"ZH": "丙", "EN": "Gamma"},
        "VALUE": "C",
        "SUBLABELS": [
            {"ID": "3-1", "LABEL": {"ZH": "丙一", "EN": "Gamma one"}, "VALUE": "C1"},
        ],
    },
]

# Label and sub-label offsets overlap: each level has its own bit space.
POSITIONS = {
    "A": 0,
    "B": 1,
    "C": 2,
    "A1": 0,
    "A2": 1,
    "B1": 2,
    "B2": 3,
    "C1": 4,
}


@pytest.fixture()
def config_dir(tmp_path: Path) -> Path:
    """Write the label options and positions files into a temp directory."""
    cfg = tmp_path / "config"
    cfg.mkdir()
    (cfg / "label_options.json").write_text(
        json.dumps(LABEL_OPTIONS, ensure_ascii=False), encoding="utf-8"
    )
    (cfg / "encoding_positions.json").write_text(json.dumps(POSITIONS), encoding="utf-8")
    return cfg


@pytest.fixture()
def taxonomy(config_dir: Path) -> Taxonomy:
    """Taxonomy loaded from the temp configuration files."""
    return load_taxonomy(
        config_dir / "label_options.json",
        config_dir / "encoding_positions.json",
    )


@pytest.fixture()
def store(taxonomy: Taxonomy) -> AnnotationStore:
    return AnnotationStore(taxonomy)


@pytest.fixture()
def data_dir(tmp_path: Path) -> Path:
    """A data folder with two TSV files, one CSV file and one unrelated file."""
    folder = tmp_path / "data"
    folder.mkdir()
    (folder / "sample_001.tsv").write_text("id\ttext\n1\thello\n", encoding="utf-8")
    (folder / "sample_002.tsv").write_text("id\ttext\n2\tworld\n", encoding="utf-8")
    (folder / "extra.csv").write_text(
        'a,b,c,first line\na,b\na,b,c,"second, line",e\n', encoding="utf-8"
    )
    (folder / "notes.md").write_text("ignore me", encoding="utf-8")
    return folder


@pytest.fixture()
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "out"


@pytest.fixture()
def workspace(store: AnnotationStore, data_dir: Path, output_dir: Path) -> WorkspaceService:
    """Workspace over the temp data folder with its TSV files listed."""
    ws = WorkspaceService(
        store=store,
        storage=StorageBackend(),
        data_dir=data_dir,
        output_dir=output_dir,
    )
    ws.scan_default_folder()
    return ws


@pytest.fixture()
def annotator_app(taxonomy: Taxonomy, store: AnnotationStore, workspace: WorkspaceService) -> FastAPI:
    """A fully wired FastAPI test app with all services and routers."""
    app = FastAPI()

    # Wire services onto app.state
    app.state.storage = workspace.storage
    app.state.taxonomy = taxonomy
    app.state.store = store
    app.state.workspace = workspace

    # Include routers
    app.include_router(taxonomy_router.router)
    app.include_router(files.router)
    app.include_router(records.router)
    app.include_router(annotations.router)
    app.include_router(session.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


@pytest.fixture()
async def app_client(annotator_app: FastAPI) -> httpx.AsyncClient:
    """Yield an async HTTP client bound to the test app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=annotator_app),
        base_url="http://testserver",
    ) as client:
        yield client
