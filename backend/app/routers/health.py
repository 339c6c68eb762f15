from fastapi import APIRouter, Depends

from ..config import Settings, get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service health and contract storage check")
def healthcheck(settings: Settings = Depends(get_settings)) -> dict[str, str]:
    storage = "ready" if settings.contracts_dir.is_dir() else "missing"
    return {"status": "ok", "contracts_dir": storage}
