"""Annotator application configuration using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Annotator application settings.

    All fields can be overridden via environment variables with
    the ANNOTATOR_ prefix (e.g., ANNOTATOR_LABEL_OPTION_PATH).
    """

    label_option_path: Path = Path("config/label_options.json")
    encoding_position_path: Path = Path("config/encoding_positions.json")
    default_folder_path: Path = Path("data")
    output_dir: Path | None = None  # Falls back to default_folder_path
    summary_file_name: str = "summary.txt"
    summary_order: Literal["first_seen", "taxonomy"] = "first_seen"
    summary_language: Literal["zh", "en"] = "zh"
    annotation_file_name: str = "annotation.csv"
    strict_positions: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    model_config = {
        "env_prefix": "ANNOTATOR_",
        "env_file": ".env",
        "extra": "ignore",
    }

    @property
    def resolved_output_dir(self) -> Path:
        """Directory that receives per-file encodings and the summary."""
        return self.output_dir if self.output_dir is not None else self.default_folder_path


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (singleton)."""
    return Settings()
