from __future__ import annotations

import datetime as dt
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Generator, Optional

_TMP_DIR = tempfile.mkdtemp(prefix="journeyjournal-tests-")
os.environ.setdefault("JJ_SQLITE_PATH", str(Path(_TMP_DIR) / "app.db"))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from journeyjournal import models, services
from journeyjournal.database import enable_sqlite_foreign_keys, get_db
from journeyjournal.main import app

UTC = dt.timezone.utc


@pytest.fixture(scope="function")
def engine():
    engine = enable_sqlite_foreign_keys(
        create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    )
    models.Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def session(engine) -> Generator[Session, None, None]:
    SessionTesting = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = SessionTesting()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session: Session) -> Generator[TestClient, None, None]:
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def trip(session: Session) -> models.Trip:
    return services.create_trip(session, name="Italy", start_date=dt.date(2024, 5, 1), currency="EUR")


@pytest.fixture()
def rome(session: Session, trip: models.Trip) -> models.TripPoint:
    return services.create_trip_point(
        session,
        trip_id=trip.id,
        name="Rome",
        order=1,
        arrival_date=dt.datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        departure_date=dt.datetime(2024, 5, 4, 9, 0, tzinfo=UTC),
    )


@pytest.fixture()
def florence(session: Session, trip: models.Trip) -> models.TripPoint:
    return services.create_trip_point(
        session,
        trip_id=trip.id,
        name="Florence",
        order=2,
        arrival_date=dt.datetime(2024, 5, 4, 12, 0, tzinfo=UTC),
        departure_date=dt.datetime(2024, 5, 7, 9, 0, tzinfo=UTC),
    )


@pytest.fixture()
def add_expense(session: Session):
    def _add(trip_id: int, amount: str, **overrides) -> models.Expense:
        fields = {
            "description": "Dinner",
            "category": models.ExpenseCategory.RESTAURANT,
            "amount": Decimal(amount),
            "expense_date": dt.datetime(2024, 5, 2, 20, 0, tzinfo=UTC),
            "payment_method": models.PaymentMethod.CREDIT_CARD,
        }
        fields.update(overrides)
        return services.create_expense(session, trip_id, **fields)

    return _add


@pytest.fixture()
def add_accommodation(session: Session):
    def _add(
        trip_point_id: int,
        cost: str,
        status: models.AccommodationStatus = models.AccommodationStatus.CONFIRMED,
        **overrides,
    ) -> models.Accommodation:
        fields = {
            "name": "Hotel Roma",
            "accommodation_type": models.AccommodationType.HOTEL,
            "check_in_date": dt.datetime(2024, 5, 1, 15, 0, tzinfo=UTC),
            "check_out_date": dt.datetime(2024, 5, 4, 10, 0, tzinfo=UTC),
            "cost": Decimal(cost),
            "status": status,
        }
        fields.update(overrides)
        return services.create_accommodation(session, trip_point_id, **fields)

    return _add


@pytest.fixture()
def add_route(session: Session):
    def _add(
        from_point_id: int,
        to_point_id: int,
        cost: Optional[str] = None,
        is_selected: bool = False,
        **overrides,
    ) -> models.Route:
        fields = {
            "name": "Frecciarossa",
            "transportation_type": models.TransportationType.TRAIN,
            "cost": Decimal(cost) if cost is not None else None,
            "is_selected": is_selected,
        }
        fields.update(overrides)
        return services.create_route(session, from_point_id, to_point_id, **fields)

    return _add
