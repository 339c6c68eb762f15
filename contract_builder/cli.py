#!/usr/bin/env python3
"""
CLI wrapper for generating a rental contract PDF.

Usage:
    python -m contract_builder.cli rental.json                   # writes CONTRATTO-<n>.pdf next to the JSON
    python -m contract_builder.cli rental.json --output out/contract.pdf
    python -m contract_builder.cli rental.json --config deploy.yml --storage-root /srv/uploads
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .data_sources import contract_filename, load_contract_config, load_rental_record
from .logging_utils import get_logger, setup_logging
from .pipelines import ContractGenerator

logger = get_logger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Generate a vehicle rental contract PDF")
    p.add_argument("rental", type=Path, help="Assembled rental record (JSON)")
    p.add_argument("--output", dest="output_pdf", type=Path)
    p.add_argument("--config", dest="config_path", type=Path, help="YAML overrides for company, labels, palette")
    p.add_argument("--storage-root", dest="storage_root", type=Path, help="Base directory for relative photo paths")
    p.add_argument("--log-level", dest="log_level", default="INFO")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    if not args.rental.exists():
        logger.error("Rental record not found: %s", args.rental)
        return 1

    try:
        rental = load_rental_record(args.rental, storage_root=args.storage_root)
        output = args.output_pdf or args.rental.parent / contract_filename(rental.rental_number)
        generator = ContractGenerator(load_contract_config(args.config_path))
        generator.generate(rental, output)
    except Exception as e:
        logger.error("Contract generation failed: %s", e)
        return 1

    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
