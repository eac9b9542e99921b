from __future__ import annotations

from pathlib import Path
from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings
import os


def _base_dir() -> Path:
    root = os.getenv("APPDATA") or str(Path.home())
    return Path(root) / "MeetingActions"


class Settings(BaseSettings):
    app_name: str = "Meeting Actions"

    data_dir: Path = Field(default_factory=lambda: _base_dir() / "data")
    logs_dir: Path = Field(default_factory=lambda: _base_dir() / "logs")
    database_path: Path = Field(default_factory=lambda: _base_dir() / "data" / "meeting_actions.db")
    log_level: str = "INFO"

    # Structured-extraction service (OpenAI-compatible)
    openai_api_key: Optional[str] = None
    openai_base_url: str = "https://api.openai.com/v1"
    extraction_model: str = "gpt-4o-mini"
    http_timeout_s: float = 60.0

    # Chunking / preview limits
    chunk_max_tokens: int = 8000
    tokens_per_char: float = 0.25
    preview_max_chars: int = 16000
    preview_min_chars: int = 40
    preview_max_output_tokens: int = 1000
    preview_max_tasks: int = 8

    # Commit
    documents_url_prefix: str = "/dashboard/documents"
    description_max_chars: int = 4000

    class Config:
        env_prefix = "MA_"
        case_sensitive = False

    def ensure_dirs(self) -> None:
        for d in [self.data_dir, self.logs_dir, self.database_path.parent]:
            d.mkdir(parents=True, exist_ok=True)
