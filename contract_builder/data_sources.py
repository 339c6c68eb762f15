from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .models import CompanyInfo, ContractConfig, PhotoEntry, RentalContractInput, Terms
from .layout import IMAGE_EXTENSIONS
from .logging_utils import get_logger

logger = get_logger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULTS_CONFIG_PATH = PACKAGE_DIR / "config" / "contract.defaults.yml"
CONFIG_DIR = PACKAGE_DIR / "config"

# Letterhead fields that can be overridden from the environment.
COMPANY_ENV_VARS = {
    "name": "COMPANY_NAME",
    "address": "COMPANY_ADDRESS",
    "city": "COMPANY_CITY",
    "zip": "COMPANY_ZIP",
    "province": "COMPANY_PROVINCE",
    "cf": "COMPANY_CF",
    "vat": "COMPANY_VAT",
    "phone": "COMPANY_PHONE",
    "email": "COMPANY_EMAIL",
}


def load_yaml_config(path: Path | None) -> Dict[str, Any]:
    """
    Load a single YAML file. Returns an empty dict if the path is missing.
    """
    if path is None or not Path(path).exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def merge_overrides(target: dict, override: dict):
    """
    Shallow merge of override dict into target; modifies target in place.
    Nested dicts are updated key by key, everything else is replaced.
    """
    if not override:
        return
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(target.get(k), dict):
            target[k].update(v)
        else:
            target[k] = v


def load_terms(locale: str = "it", path: Path | None = None) -> Terms:
    terms_path = path or CONFIG_DIR / f"terms.{locale}.yml"
    data = load_yaml_config(terms_path)
    if not data:
        raise FileNotFoundError(f"No terms and conditions found for locale '{locale}' at {terms_path}")
    return Terms.from_dict(data)


def load_company_info(cfg: Dict[str, Any], environ: Optional[Mapping[str, str]] = None) -> CompanyInfo:
    """
    Company identity from the merged config, with COMPANY_* environment
    variables taking precedence over YAML values.
    """
    environ = os.environ if environ is None else environ
    company = dict(cfg.get("company") or {})
    for key, var in COMPANY_ENV_VARS.items():
        if environ.get(var):
            company[key] = environ[var]
    return CompanyInfo.from_dict(company)


def _resolve_path(value: Any) -> Optional[Path]:
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else PACKAGE_DIR / path


def load_contract_config(
    path: Path | None = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ContractConfig:
    """
    Build the generator configuration.
    - Defaults live in contract.defaults.yml
    - Deployment overrides live in an optional YAML file (`path`)
    - COMPANY_* and FONTS_DIR environment variables win over both
    """
    environ = os.environ if environ is None else environ
    merged_cfg: Dict[str, Any] = {}
    merge_overrides(merged_cfg, load_yaml_config(DEFAULTS_CONFIG_PATH))
    merge_overrides(merged_cfg, load_yaml_config(path))

    locale = merged_cfg.get("locale") or "it"
    paths = merged_cfg.get("paths") or {}
    fonts_dir = environ.get("FONTS_DIR") or paths.get("fonts_dir")
    margins = (merged_cfg.get("page") or {}).get("margins") or [40, 40, 40, 40]

    return ContractConfig(
        company=load_company_info(merged_cfg, environ),
        terms=load_terms(locale, _resolve_path(paths.get("terms"))),
        labels={k: str(v) for k, v in (merged_cfg.get("labels") or {}).items()},
        palette=dict(merged_cfg.get("palette") or {}),
        margins=tuple(float(m) for m in margins),
        damage_diagram=_resolve_path(paths.get("damage_diagram")),
        fonts_dir=_resolve_path(fonts_dir),
        locale=locale,
    )


# ---------------- Rental records ----------------

def resolve_photo(entry: PhotoEntry, storage_root: Path | None = None) -> PhotoEntry:
    """
    Point a photo entry at a loadable file, or at nothing when the file is
    missing or not an image format the renderer accepts.
    """
    path = entry.file_path
    if path is not None and not path.is_absolute() and storage_root is not None:
        path = Path(storage_root) / path
    if path is None or path.suffix.lower() not in IMAGE_EXTENSIONS or not path.exists():
        if entry.file_path is not None:
            logger.warning("Photo file unavailable, rendering placeholder: %s", entry.file_path)
        return PhotoEntry(file_path=None, uploaded_at=entry.uploaded_at)
    return PhotoEntry(file_path=path, uploaded_at=entry.uploaded_at)


def load_rental_record(path: Path, storage_root: Path | None = None) -> RentalContractInput:
    """
    Read an assembled rental record from JSON and resolve its photo paths.
    Relative photo paths are taken relative to `storage_root`, defaulting to
    the JSON file's directory.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    rental = RentalContractInput.from_dict(data)
    root = storage_root or path.parent
    rental.pickup_photos = [resolve_photo(p, root) for p in rental.pickup_photos]
    rental.return_photos = [resolve_photo(p, root) for p in rental.return_photos]
    return rental


def contract_filename(rental_number: str) -> str:
    return f"CONTRATTO-{rental_number}.pdf"


__all__ = [
    "load_yaml_config",
    "merge_overrides",
    "load_terms",
    "load_company_info",
    "load_contract_config",
    "resolve_photo",
    "load_rental_record",
    "contract_filename",
    "DEFAULTS_CONFIG_PATH",
    "COMPANY_ENV_VARS",
]
