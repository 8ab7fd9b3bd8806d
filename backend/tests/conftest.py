"""
Root pytest configuration for backend tests.

Provides:
- backend/ on sys.path so `from services... import ...` works
- DATABASE_URL defaulted to in-memory SQLite before config is imported
- Shared fixtures (app, app_ctx, client, make_transaction)

Every test that uses `app` gets a fresh in-memory database.
"""

import os
import sys
from pathlib import Path

# Add backend directory to Python path so imports like
# `from services.analytics_service import ...` and `from utils.normalize import ...` work
backend_dir = Path(__file__).parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

os.environ.setdefault('DATABASE_URL', 'sqlite://')

import pytest  # noqa: E402

from config import Config  # noqa: E402


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ENGINE_OPTIONS = {}
    ANALYTICS_CACHE_ENABLED = True
    LOG_LEVEL = 'WARNING'


@pytest.fixture
def app():
    """Create test Flask application backed by a fresh in-memory database."""
    from app import create_app
    from models.database import db

    app = create_app(TestConfig)
    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def app_ctx(app):
    """Run the test inside an application context."""
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_transaction(app_ctx):
    """
    Factory that inserts one resale transaction, creating reference rows
    (town, block, flat type, lease) on demand.

    Usage:
        make_transaction(town="BEDOK", month="2024-01", price=400000)
    """
    from models import Block, FlatModel, FlatType, Lease, StoreyRange, Town, Transaction
    from models.database import db

    def _get_or_create(model, defaults=None, **lookup):
        instance = model.query.filter_by(**lookup).first()
        if instance is None:
            instance = model(**lookup, **(defaults or {}))
            db.session.add(instance)
            db.session.flush()
        return instance

    def _make(
        town="BEDOK",
        month="2024-01",
        price=400000,
        floor_area_sqm=90.0,
        flat_type="4 ROOM",
        remaining_lease_years=70,
        remaining_lease_months=0,
        block_number="101",
        street_name=None,
        flat_model="MODEL A",
        storey_range="04 TO 06",
        price_per_sqm=None,
    ):
        town_row = _get_or_create(Town, town_name=Town.normalize_name(town))
        block = _get_or_create(
            Block,
            block_number=block_number,
            street_name=street_name or f"{town_row.town_name} AVE 1",
            town_id=town_row.id,
        )
        flat_type_name = FlatType.normalize_name(flat_type)
        flat_type_row = _get_or_create(
            FlatType,
            defaults={'typical_rooms': FlatType.rooms_from_name(flat_type_name)},
            flat_type_name=flat_type_name,
        )
        floor_min, floor_max = StoreyRange.parse_range(storey_range)
        storey = _get_or_create(
            StoreyRange,
            defaults={'floor_min': floor_min, 'floor_max': floor_max},
            storey_range=storey_range,
        )
        model_row = _get_or_create(FlatModel, flat_model_name=flat_model)

        lease = Lease(
            lease_commence_year=int(month[:4]) - (99 - remaining_lease_years),
            remaining_lease_years=remaining_lease_years,
            remaining_lease_months=remaining_lease_months,
        )
        db.session.add(lease)
        db.session.flush()

        txn = Transaction(
            month=month,
            price=price,
            floor_area_sqm=floor_area_sqm,
            price_per_sqm=price_per_sqm,
            block_id=block.id,
            flat_type_id=flat_type_row.id,
            flat_model_id=model_row.id,
            storey_range_id=storey.id,
            lease_id=lease.id,
        )
        db.session.add(txn)
        db.session.commit()
        return txn

    return _make
