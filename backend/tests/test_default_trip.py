from __future__ import annotations

import datetime as dt

import pytest
from sqlalchemy.exc import IntegrityError

from journeyjournal import models, services
from journeyjournal.config import settings
from journeyjournal.errors import InvalidArgumentError, NotFoundError


def _defaults(session) -> list[int]:
    return [trip.id for trip in session.query(models.Trip).filter(models.Trip.is_default.is_(True))]


def _trip(session, name: str, **fields) -> models.Trip:
    return services.create_trip(session, name=name, start_date=dt.date(2024, 1, 1), **fields)


def test_set_default_moves_flag_between_trips(session) -> None:
    first = _trip(session, "X", is_default=True)
    second = _trip(session, "Y")
    assert _defaults(session) == [first.id]

    services.set_trip_as_default(session, second.id)

    assert _defaults(session) == [second.id]
    session.refresh(first)
    assert first.is_default is False


def test_only_one_default_after_every_call(session) -> None:
    trips = [_trip(session, name) for name in ("A", "B", "C", "D")]

    for trip_id in [trips[2].id, trips[0].id, trips[0].id, trips[3].id, trips[1].id]:
        services.set_trip_as_default(session, trip_id)
        assert _defaults(session) == [trip_id]


def test_set_default_on_current_default_is_noop(session) -> None:
    trip = _trip(session, "X", is_default=True)

    result = services.set_trip_as_default(session, trip.id)

    assert result.id == trip.id
    assert result.is_default is True
    assert _defaults(session) == [trip.id]


def test_set_default_unknown_trip_keeps_existing_default(session) -> None:
    trip = _trip(session, "X", is_default=True)

    with pytest.raises(NotFoundError):
        services.set_trip_as_default(session, 424242)

    assert _defaults(session) == [trip.id]


def test_creating_default_trip_clears_previous_default(session) -> None:
    first = _trip(session, "X", is_default=True)
    second = _trip(session, "Y", is_default=True)

    assert _defaults(session) == [second.id]
    assert first.is_default is False


def test_updating_trip_to_default_clears_others(session) -> None:
    first = _trip(session, "X", is_default=True)
    second = _trip(session, "Y")

    services.update_trip(session, second.id, name="Y", start_date=dt.date(2024, 1, 1), is_default=True)

    assert _defaults(session) == [second.id]
    assert first.is_default is False


def test_store_rejects_two_default_rows(session) -> None:
    _trip(session, "X", is_default=True)
    session.add(
        models.Trip(name="Rogue", start_date=dt.date(2024, 1, 1), is_default=True, total_cost=0)
    )

    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


def test_default_trip_is_listed_first(session) -> None:
    early = _trip(session, "Early")
    late = services.create_trip(session, name="Late", start_date=dt.date(2025, 1, 1), is_default=True)

    assert [trip.id for trip in services.list_trips(session)] == [late.id, early.id]


def test_trip_end_date_before_start_is_rejected(session) -> None:
    with pytest.raises(InvalidArgumentError):
        services.create_trip(
            session, name="Backwards", start_date=dt.date(2024, 5, 10), end_date=dt.date(2024, 5, 1)
        )

    assert session.query(models.Trip).count() == 0


def test_trip_currency_falls_back_to_default(session) -> None:
    trip = _trip(session, "Plain")

    assert trip.currency == settings.default_currency
