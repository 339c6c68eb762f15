import pytest
from PIL import Image

from contract_builder.data_sources import load_contract_config
from contract_builder.layout import LayoutEngine, build_styles
from contract_builder.renderers.sections import SectionContext


@pytest.fixture
def rental_data():
    """An open rental: vehicle handed over, not yet returned."""
    return {
        "rental_number": "R-2024-001",
        "booking_code": "BK-7781",
        "rental_date": "2024-03-01T09:15:00",
        "customer": {
            "full_name": "Mario Rossi",
            "fiscal_code": "RSSMRA85H15I754X",
            "address": "Via Roma 12",
            "city": "Siracusa",
            "province": "SR",
            "zip_code": "96100",
            "phone": "+39 333 1234567",
            "email": "mario.rossi@example.com",
            "license_number": "SR1234567A",
            "license_issued_by": "MCTC Siracusa",
            "license_issue_date": "2010-05-20",
            "license_expiry_date": "2030-05-20",
            "birth_date": "1985-06-15",
            "birth_place": "Siracusa",
        },
        "vehicle": {"license_plate": "GH123JK", "brand": "Fiat", "model": "Panda"},
        "category_name": "Economy",
        "daily_rate": 50,
        "total_days": 3,
        "delivery_cost": 0,
        "amount_paid": 100,
        "payment_method": "Carta di credito",
        "deposit_amount": 300,
        "km_included": "unlimited",
        "franchise_theft": 1500,
        "franchise_damage": 800,
        "franchise_rca": 500,
        "pickup_location": "Siracusa Centro",
        "pickup_date": "2024-03-01T10:00:00",
        "pickup_fuel_level": 75,
        "pickup_km": 12000,
        "pickup_damages": "Graffio paraurti posteriore",
        "expected_return_date": "2024-03-04T10:00:00",
        "pickup_photos": [],
        "return_photos": [],
    }


@pytest.fixture
def closed_rental_data(rental_data):
    data = dict(rental_data)
    data.update(
        {
            "return_date": "2024-03-04T09:30:00",
            "return_fuel_level": 50,
            "return_km": 12450,
        }
    )
    return data


@pytest.fixture
def make_png(tmp_path):
    def _make(name="photo.png", size=(400, 300), color=(180, 40, 40)):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new("RGB", size, color).save(path)
        return path

    return _make


@pytest.fixture
def config():
    return load_contract_config(environ={})


@pytest.fixture
def section_ctx(config):
    engine = LayoutEngine(build_styles(config.palette), config.palette, margins=config.margins)
    return SectionContext(engine=engine, config=config)


@pytest.fixture
def make_truncated_png(tmp_path):
    """A PNG whose header reads fine but whose pixel data is cut short."""

    def _make(name="truncated.png", size=(400, 300)):
        path = tmp_path / name
        Image.effect_noise(size, 64).convert("RGB").save(path)
        data = path.read_bytes()
        path.write_bytes(data[: len(data) // 2])
        return path

    return _make
