from __future__ import annotations

from functools import lru_cache

from contract_builder.data_sources import load_contract_config
from contract_builder.pipelines import ContractGenerator

from .config import get_settings


@lru_cache()
def get_generator() -> ContractGenerator:
    """One generator per process; config, fonts and styles load once."""
    settings = get_settings()
    return ContractGenerator(load_contract_config(settings.config_path))
