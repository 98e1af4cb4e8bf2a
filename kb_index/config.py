"""Configuration for KB Index."""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from .pipeline import DEFAULT_CHUNK_DELAY_MS, DEFAULT_CHUNK_SIZE
from .search import DEFAULT_TOP_K

ENV_PREFIX = "KB_INDEX_"

_TRUE = ("1", "true", "yes", "on")


class IndexSettings(BaseModel):
    """Tunables for rebuilding and querying knowledge base indexes."""
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    chunk_delay_ms: int = Field(default=DEFAULT_CHUNK_DELAY_MS, ge=0)
    top_k: int = Field(default=DEFAULT_TOP_K, ge=1)
    similarity_threshold: float = 0.3
    apply_similarity_threshold: bool = False
    verify_content: bool = False
    incremental: bool = False
    store_path: Optional[str] = None
    show_progress: bool = False

    @property
    def min_similarity(self) -> Optional[float]:
        return self.similarity_threshold if self.apply_similarity_threshold else None

    @classmethod
    def from_env(cls) -> "IndexSettings":
        """Create settings from ``KB_INDEX_*`` environment variables."""

        def env(name: str, default: str) -> str:
            return os.getenv(f"{ENV_PREFIX}{name}", default)

        def flag(name: str) -> bool:
            return env(name, "false").strip().lower() in _TRUE

        return cls(
            chunk_size=env("CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE)),
            chunk_delay_ms=env("CHUNK_DELAY_MS", str(DEFAULT_CHUNK_DELAY_MS)),
            top_k=env("TOP_K", str(DEFAULT_TOP_K)),
            similarity_threshold=env("SIMILARITY_THRESHOLD", "0.3"),
            apply_similarity_threshold=flag("APPLY_SIMILARITY_THRESHOLD"),
            verify_content=flag("VERIFY_CONTENT"),
            incremental=flag("INCREMENTAL"),
            store_path=os.getenv(f"{ENV_PREFIX}STORE_PATH") or None,
            show_progress=flag("SHOW_PROGRESS"),
        )
