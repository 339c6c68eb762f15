from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Customer(BaseModel):
    full_name: Optional[str] = None
    fiscal_code: Optional[str] = None
    vat_number: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    license_number: Optional[str] = None
    license_issued_by: Optional[str] = None
    license_issue_date: Optional[date] = None
    license_expiry_date: Optional[date] = None
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None


class Vehicle(BaseModel):
    license_plate: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    color: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    seats: Optional[int] = None


class Photo(BaseModel):
    file_path: str
    uploaded_at: Optional[datetime] = None


class RentalContract(BaseModel):
    """Assembled rental record, as produced by the rentals back office."""

    rental_number: str = Field(min_length=1)
    booking_code: Optional[str] = None
    rental_date: Optional[datetime] = None
    customer: Customer = Field(default_factory=Customer)
    vehicle: Vehicle = Field(default_factory=Vehicle)
    category_name: Optional[str] = None
    operator_name: Optional[str] = None

    daily_rate: Decimal = Decimal("0")
    total_days: Optional[int] = Field(default=None, ge=1)
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
    pickup_date: Optional[datetime] = None
    pickup_fuel_level: Optional[float] = None
    pickup_km: Optional[int] = None
    pickup_damages: Optional[str] = None
    pickup_notes: Optional[str] = None
    expected_return_date: Optional[datetime] = None

    return_date: Optional[datetime] = None
    return_location: Optional[str] = None
    return_fuel_level: Optional[float] = None
    return_km: Optional[int] = None
    return_damages: Optional[str] = None

    pickup_photos: List[Photo] = Field(default_factory=list)
    return_photos: List[Photo] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class ContractResult(BaseModel):
    success: bool
    filename: str
    message: Optional[str] = None
