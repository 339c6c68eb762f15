from __future__ import annotations

from fastapi import FastAPI

from backend.app.config import get_settings
from backend.app.routers import contracts, health
from contract_builder.logging_utils import setup_logging


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
    )
    app.include_router(health.router)
    app.include_router(contracts.router)
    return app


app = create_app()
