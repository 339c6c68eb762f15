from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .formatters import to_amount

DateLike = Union[str, date, datetime, None]

MONEY_FIELDS = (
    "daily_rate",
    "delivery_cost",
    "fuel_charge",
    "after_hours_charge",
    "extras_charge",
    "extra_km_charge",
    "franchise_charge",
    "discount",
    "amount_paid",
    "deposit_amount",
    "franchise_theft",
    "franchise_damage",
    "franchise_rca",
)


@dataclass
class CompanyInfo:
    """Letterhead identity printed at the top of every contract."""

    name: str
    address: str
    city: str
    zip: str
    province: str
    cf: str
    vat: str
    phone: str
    email: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompanyInfo":
        return cls(**{k: str(data.get(k) or "") for k in cls.__dataclass_fields__})


@dataclass
class CustomerInfo:
    full_name: Optional[str] = None
    fiscal_code: Optional[str] = None
    vat_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = "ITALIA"
    phone: Optional[str] = None
    email: Optional[str] = None
    license_number: Optional[str] = None
    license_issued_by: Optional[str] = None
    license_issue_date: DateLike = None
    license_expiry_date: DateLike = None
    birth_date: DateLike = None
    birth_place: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomerInfo":
        known = {k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__}
        if not known.get("country"):
            known["country"] = "ITALIA"
        return cls(**known)


@dataclass
class VehicleInfo:
    license_plate: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    seats: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VehicleInfo":
        return cls(**{k: v for k, v in (data or {}).items() if k in cls.__dataclass_fields__})


@dataclass
class ReturnState:
    """Values recorded when the rental was closed."""

    return_date: DateLike
    return_location: Optional[str] = None
    return_fuel_level: Optional[float] = None
    return_km: Optional[int] = None
    return_damages: Optional[str] = None


@dataclass
class PhotoEntry:
    file_path: Optional[Path]
    uploaded_at: DateLike = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PhotoEntry":
        raw_path = data.get("file_path")
        return cls(
            file_path=Path(raw_path) if raw_path else None,
            uploaded_at=data.get("uploaded_at") or data.get("upload_date"),
        )


@dataclass
class RentalContractInput:
    """
    Flattened rental record consumed by the contract generator.

    Customer and vehicle data are nested; everything describing the rental
    itself (financials, pickup and return state) sits at the top level.
    Return fields are only meaningful when `return_state` is set, i.e. the
    rental has been closed.
    """

    rental_number: str
    booking_code: Optional[str] = None
    rental_date: DateLike = None
    customer: CustomerInfo = field(default_factory=CustomerInfo)
    vehicle: VehicleInfo = field(default_factory=VehicleInfo)
    category_name: Optional[str] = None
    operator_name: Optional[str] = None

    daily_rate: Decimal = Decimal("0")
    total_days: Optional[int] = None
    delivery_cost: Decimal = Decimal("0")
    fuel_charge: Decimal = Decimal("0")
    after_hours_charge: Decimal = Decimal("0")
    extras_charge: Decimal = Decimal("0")
    extra_km_charge: Decimal = Decimal("0")
    franchise_charge: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    amount_paid: Decimal = Decimal("0")
    payment_method: Optional[str] = None
    deposit_amount: Decimal = Decimal("0")
    deposit_method: Optional[str] = None
    km_included: Optional[str] = None

    franchise_theft: Decimal = Decimal("0")
    franchise_damage: Decimal = Decimal("0")
    franchise_rca: Decimal = Decimal("0")

    pickup_location: Optional[str] = None
    pickup_date: DateLike = None
    pickup_fuel_level: Optional[float] = None
    pickup_km: Optional[int] = None
    pickup_damages: Optional[str] = None
    pickup_notes: Optional[str] = None
    expected_return_date: DateLike = None

    return_state: Optional[ReturnState] = None

    pickup_photos: List[PhotoEntry] = field(default_factory=list)
    return_photos: List[PhotoEntry] = field(default_factory=list)

    @property
    def is_closed(self) -> bool:
        return self.return_state is not None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RentalContractInput":
        scalars = {
            k: v
            for k, v in data.items()
            if k in cls.__dataclass_fields__
            and k not in ("customer", "vehicle", "return_state", "pickup_photos", "return_photos")
        }
        for key in MONEY_FIELDS:
            scalars[key] = to_amount(data.get(key))
        if scalars.get("total_days") in ("", None):
            scalars["total_days"] = None
        else:
            scalars["total_days"] = int(scalars["total_days"])
        scalars["rental_number"] = str(data.get("rental_number") or "")

        return_state = None
        if data.get("return_date"):
            return_state = ReturnState(
                return_date=data["return_date"],
                return_location=data.get("return_location"),
                return_fuel_level=data.get("return_fuel_level"),
                return_km=data.get("return_km"),
                return_damages=data.get("return_damages"),
            )

        return cls(
            customer=CustomerInfo.from_dict(data.get("customer") or {}),
            vehicle=VehicleInfo.from_dict(data.get("vehicle") or {}),
            return_state=return_state,
            pickup_photos=[PhotoEntry.from_dict(p) for p in data.get("pickup_photos") or []],
            return_photos=[PhotoEntry.from_dict(p) for p in data.get("return_photos") or []],
            **scalars,
        )


@dataclass
class TermsArticle:
    title: str
    body: str


@dataclass
class Terms:
    """General rental conditions printed after the contract page."""

    title: str
    intro: str
    articles: List[TermsArticle]
    consent_clause: str
    consent_options: List[str]
    marketing_consent: str
    attestation: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Terms":
        return cls(
            title=data.get("title", ""),
            intro=data.get("intro", ""),
            articles=[TermsArticle(a["title"], a["body"]) for a in data.get("articles", [])],
            consent_clause=data.get("consent_clause", ""),
            consent_options=list(data.get("consent_options", [])),
            marketing_consent=data.get("marketing_consent", ""),
            attestation=data.get("attestation", ""),
        )


@dataclass
class ContractConfig:
    """Everything the generator needs besides the rental record itself."""

    company: CompanyInfo
    terms: Terms
    labels: Dict[str, str]
    palette: Dict[str, str]
    margins: Tuple[float, float, float, float] = (40, 40, 40, 40)
    damage_diagram: Optional[Path] = None
    fonts_dir: Optional[Path] = None
    locale: str = "it"

    def label(self, key: str, **kwargs) -> str:
        text = self.labels.get(key, key)
        return text.format(**kwargs) if kwargs else text
