"""
Pipeline entrypoints for generating rental contracts.

`ContractGenerator` holds everything that does not change between contracts
(configuration, fonts, styles, the damage diagram) so a long-running service
can build it once and call `generate` per rental. The module-level
`generate` / `generate_async` helpers are for one-off use.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Dict, Union

from .data_sources import load_contract_config
from .layout import LayoutEngine, build_styles
from .logging_utils import get_logger
from .models import ContractConfig, RentalContractInput
from .renderers.pdf_renderer import build_pages, register_fonts, render_pdf
from .renderers.sections import SectionContext

logger = get_logger(__name__)

RentalLike = Union[RentalContractInput, Dict[str, Any]]


class ContractGenerator:
    def __init__(self, config: ContractConfig | None = None):
        self.config = config or load_contract_config()
        self.fonts = register_fonts(self.config.fonts_dir)
        self.styles = build_styles(self.config.palette, self.fonts)

    def _context(self) -> SectionContext:
        engine = LayoutEngine(self.styles, self.config.palette, margins=self.config.margins)
        diagram = None
        if self.config.damage_diagram:
            diagram = engine.load_image(self.config.damage_diagram)
        return SectionContext(engine=engine, config=self.config, damage_diagram=diagram)

    def layout(self, rental: RentalLike) -> LayoutEngine:
        """Run the section builders only; the returned engine holds every page."""
        rental = _coerce(rental)
        ctx = self._context()
        build_pages(ctx, rental)
        return ctx.engine

    def generate(self, rental: RentalLike, output_path: Union[str, Path]) -> Path:
        """
        Render the contract for `rental` to `output_path`. The parent
        directory must exist. Errors are logged and re-raised unchanged.
        """
        rental = _coerce(rental)
        output_path = Path(output_path)
        logger.info("Generating contract %s -> %s", rental.rental_number, output_path)
        try:
            engine = self.layout(rental)
            render_pdf(
                engine.pages,
                output_path,
                page_size=(engine.page_width, engine.page_height),
                title=self.config.label("document_title", rental_number=rental.rental_number),
                author=self.config.company.name,
            )
        except Exception:
            logger.exception("Contract generation failed for rental %s", rental.rental_number)
            raise
        logger.info("Contract %s written (%d pages)", rental.rental_number, engine.page_number)
        return output_path

    async def generate_async(self, rental: RentalLike, output_path: Union[str, Path]) -> Path:
        return await asyncio.to_thread(self.generate, rental, output_path)


def _coerce(rental: RentalLike) -> RentalContractInput:
    if isinstance(rental, RentalContractInput):
        return rental
    return RentalContractInput.from_dict(rental)


def generate(rental: RentalLike, output_path: Union[str, Path], config: ContractConfig | None = None) -> Path:
    return ContractGenerator(config).generate(rental, output_path)


async def generate_async(rental: RentalLike, output_path: Union[str, Path], config: ContractConfig | None = None) -> Path:
    return await ContractGenerator(config).generate_async(rental, output_path)


__all__ = ["ContractGenerator", "generate", "generate_async"]
