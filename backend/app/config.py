from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

ROOT_DIR = Path(__file__).resolve().parents[2]


def _default_contracts_dir() -> Path:
    return ROOT_DIR / "contracts"


class Settings(BaseModel):
    contracts_dir: Path = Field(default_factory=_default_contracts_dir)
    config_path: Optional[Path] = None
    storage_root: Optional[Path] = None
    api_title: str = "Rental Contracts API"
    api_description: str = "FastAPI service that generates and serves vehicle rental contract PDFs."
    api_version: str = "0.1.0"


def _optional_path(value: str | None) -> Optional[Path]:
    return Path(value) if value else None


@lru_cache()
def get_settings() -> Settings:
    return Settings(
        contracts_dir=Path(os.getenv("CONTRACTS_DIR") or _default_contracts_dir()),
        config_path=_optional_path(os.getenv("CONTRACT_CONFIG")),
        storage_root=_optional_path(os.getenv("UPLOADS_DIR")),
    )
