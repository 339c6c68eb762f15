from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from contract_builder.data_sources import contract_filename, resolve_photo
from contract_builder.logging_utils import get_logger
from contract_builder.models import RentalContractInput
from contract_builder.pipelines import ContractGenerator

from .. import schemas
from ..config import Settings, get_settings
from ..dependencies import get_generator

logger = get_logger(__name__)

router = APIRouter(prefix="/contracts", tags=["contracts"])


def _contract_path(settings: Settings, rental_number: str) -> Path:
    filename = contract_filename(rental_number)
    if Path(filename).name != filename:
        raise HTTPException(status_code=404, detail="Contract not found")
    return settings.contracts_dir / filename


@router.post("", response_model=schemas.ContractResult, summary="Generate the contract PDF for a rental")
def generate_contract(
    payload: schemas.RentalContract,
    settings: Settings = Depends(get_settings),
    generator: ContractGenerator = Depends(get_generator),
) -> schemas.ContractResult:
    rental = RentalContractInput.from_dict(payload.model_dump())
    rental.pickup_photos = [resolve_photo(p, settings.storage_root) for p in rental.pickup_photos]
    rental.return_photos = [resolve_photo(p, settings.storage_root) for p in rental.return_photos]

    output_path = _contract_path(settings, rental.rental_number)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        generator.generate(rental, output_path)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Contract generation failed: {e}") from e

    return schemas.ContractResult(
        success=True,
        filename=output_path.name,
        message="Contract generated",
    )


@router.get("/{rental_number}", summary="Download a generated contract PDF", response_class=FileResponse)
def download_contract(rental_number: str, settings: Settings = Depends(get_settings)) -> FileResponse:
    path = _contract_path(settings, rental_number)
    if not path.exists():
        logger.info("Contract requested but not generated: %s", path.name)
        raise HTTPException(status_code=404, detail="Contract not found")
    return FileResponse(path, media_type="application/pdf", filename=path.name)
