"""
Pytest configuration and shared fixtures.

Fixtures available to all tests:
  • store             - empty LocalStore on an in-memory sqlite database
  • sample_trips      - trip records with native (tz-aware) datetimes
  • sample_expenses   - one fuel expense and one vehicle expense with service lines
  • sample_shifts     - one closed and one open shift
  • sample_settings   - nested settings object
  • seeded_store      - store populated with every sample collection
"""

from __future__ import annotations

import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List

import pytest
import pytest_asyncio

# Ensure the project root is on the path so all taxiledger imports resolve.
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from taxiledger.database import make_engine  # noqa: E402
from taxiledger.store import LocalStore  # noqa: E402


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def make_trip(n: int, **overrides) -> Dict[str, Any]:
    trip = {
        "id": f"trip-{n:03d}",
        "taximeterFare": 10.5 + n,
        "chargedAmount": 12.0 + n,
        "paymentMethod": "cash" if n % 2 else "card",
        "tripType": "street",
        "dispatch": n % 3 == 0,
        "airport": False,
        "station": True,
        "dateTime": utc(2024, 3, 1 + n % 28, 8, 15, 0),
        "shiftId": "shift-1",
        "voucherInfo": {"company": "Acme", "code": f"V{n}"},
        "notes": f"trip {n}",
    }
    trip.update(overrides)
    return trip


@pytest.fixture
def store() -> LocalStore:
    return LocalStore.from_engine(make_engine("sqlite:///:memory:"))


@pytest.fixture
def sample_trips() -> List[Dict[str, Any]]:
    return [make_trip(n) for n in range(1, 4)]


@pytest.fixture
def sample_expenses() -> List[Dict[str, Any]]:
    return [
        {
            "id": "exp-1",
            "amount": 60.0,
            "date": utc(2024, 3, 2, 9, 0, 0),
            "type": "fuel",
            "category": "diesel",
            "paymentMethod": "card",
            "supplier": "Repsol",
            "concept": "Fuel",
            "workshop": None,
            "invoiceNumber": "F-100",
            "taxableBase": 49.59,
            "vatAmount": 10.41,
            "vatPercentage": 21,
            "kilometers": 120500,
            "vehicleKilometers": None,
            "partialKilometers": 450,
            "liters": 38.2,
            "pricePerLiter": 1.571,
            "discount": None,
            "services": None,
            "notes": "full tank",
        },
        {
            "id": "exp-2",
            "amount": 240.0,
            "date": utc(2024, 3, 5, 16, 30, 0),
            "type": "vehicle",
            "category": "maintenance",
            "paymentMethod": "card",
            "supplier": None,
            "concept": "Service",
            "workshop": "Garage Centro",
            "invoiceNumber": "T-77",
            "taxableBase": 198.35,
            "vatAmount": 41.65,
            "vatPercentage": 21,
            "kilometers": 121000,
            "vehicleKilometers": 121000,
            "partialKilometers": None,
            "liters": None,
            "pricePerLiter": None,
            "discount": 5,
            "services": [
                {"reference": "OIL-5W30", "amount": 80, "quantity": 1,
                 "discountPercentage": 0, "description": "Oil change"},
                {"reference": "FLT-01", "amount": 20, "quantity": 2,
                 "discountPercentage": 10, "description": "Filters"},
            ],
            "notes": "annual service",
        },
    ]


@pytest.fixture
def sample_shifts() -> List[Dict[str, Any]]:
    return [
        {
            "id": "shift-1",
            "startDate": utc(2024, 3, 1, 6, 0, 0),
            "startKilometers": 120000,
            "endDate": utc(2024, 3, 1, 16, 0, 0),
            "endKilometers": 120310,
            "number": 1,
        },
        {
            "id": "shift-2",
            "startDate": utc(2024, 3, 2, 6, 0, 0),
            "startKilometers": 120310,
            "endDate": None,
            "endKilometers": None,
            "number": 2,
        },
    ]


@pytest.fixture
def sample_settings() -> Dict[str, Any]:
    return {
        "darkTheme": True,
        "fontSize": 16,
        "breakLetter": "B",
        "dailyGoal": 180,
        "themeColor": "green",
        "highContrast": False,
        "fiscalData": {"name": "Juan Pérez", "taxId": "12345678Z"},
    }


@pytest.fixture
def sample_break_configuration() -> Dict[str, Any]:
    return {
        "startDate": "2024-01-01",
        "startDayLetter": "C",
        "weekendPattern": "Saturday: AC / Sunday: BD",
        "userBreakLetter": "B",
    }


@pytest.fixture
def sample_catalogs() -> Dict[str, List[Dict[str, Any]]]:
    created = utc(2024, 1, 10, 12, 0, 0)
    return {
        "suppliers": [{"id": "sup-1", "name": "Repsol", "address": "Main St 1",
                       "phone": "600111222", "taxId": "A1234567", "createdAt": created}],
        "concepts": [{"id": "con-1", "name": "Fuel", "description": "Diesel",
                      "category": "fuel", "createdAt": created}],
        "workshops": [{"id": "ws-1", "name": "Garage Centro", "address": "Calle 2",
                       "phone": "600333444", "createdAt": created}],
        "exceptions": [{"id": "exc-1", "startDate": utc(2024, 8, 1, 0, 0, 0),
                        "endDate": utc(2024, 8, 15, 0, 0, 0), "type": "holiday",
                        "newLetter": "D", "note": "summer", "description": "August break",
                        "appliesEven": True, "appliesOdd": False, "createdAt": created}],
    }


@pytest_asyncio.fixture
async def seeded_store(
    store,
    sample_trips,
    sample_expenses,
    sample_shifts,
    sample_settings,
    sample_break_configuration,
    sample_catalogs,
) -> LocalStore:
    for trip in sample_trips:
        await store.restore_record("trips", trip)
    for expense in sample_expenses:
        await store.restore_record("expenses", expense)
    for shift in sample_shifts:
        await store.restore_record("shifts", shift)
    for collection, records in sample_catalogs.items():
        for record in records:
            await store.restore_record(collection, record)
    await store.save_singleton("settings", sample_settings)
    await store.save_singleton("breakConfiguration", sample_break_configuration)
    return store
