from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from journeyjournal import models, services
from journeyjournal.errors import InvalidArgumentError, NotFoundError

UTC = dt.timezone.utc


def test_new_trip_starts_at_zero(session, trip) -> None:
    assert trip.total_cost == Decimal("0.00")
    assert services.recalculate_trip_total_cost(session, trip.id) == Decimal("0.00")


def test_confirmed_accommodation_and_expense_are_summed(session, trip, rome, add_expense, add_accommodation) -> None:
    add_expense(trip.id, "120.00")
    add_accommodation(rome.id, "80.00", models.AccommodationStatus.CONFIRMED)

    assert trip.total_cost == Decimal("200.00")


def test_planned_accommodation_is_not_counted(session, trip, rome, add_expense, add_accommodation) -> None:
    add_expense(trip.id, "120.00")
    add_accommodation(rome.id, "80.00", models.AccommodationStatus.CONFIRMED)
    add_accommodation(rome.id, "50.00", models.AccommodationStatus.PLANNED)

    assert trip.total_cost == Decimal("200.00")


@pytest.mark.parametrize(
    ("status", "counted"),
    [
        (models.AccommodationStatus.PLANNED, False),
        (models.AccommodationStatus.CONFIRMED, True),
        (models.AccommodationStatus.PAYMENT_REQUIRED, False),
        (models.AccommodationStatus.PAID, True),
        (models.AccommodationStatus.CANCELLED, False),
    ],
)
def test_accommodation_status_decides_inclusion(session, trip, rome, add_accommodation, status, counted) -> None:
    add_accommodation(rome.id, "75.50", status)

    expected = Decimal("75.50") if counted else Decimal("0.00")
    assert services.calculate_trip_total_cost(session, trip.id) == expected


def test_route_counts_only_once_selected(session, trip, rome, florence, add_expense, add_accommodation, add_route) -> None:
    add_expense(trip.id, "120.00")
    add_accommodation(rome.id, "80.00")
    route = add_route(rome.id, florence.id, cost="30.00", is_selected=False)
    assert trip.total_cost == Decimal("200.00")

    services.update_route(
        session,
        route.id,
        name=route.name,
        transportation_type=route.transportation_type,
        cost=Decimal("30.00"),
        is_selected=True,
    )
    assert trip.total_cost == Decimal("230.00")
    assert services.recalculate_trip_total_cost(session, trip.id) == Decimal("230.00")


def test_selected_route_without_cost_is_ignored(session, trip, rome, florence, add_route) -> None:
    add_route(rome.id, florence.id, cost=None, is_selected=True)

    assert trip.total_cost == Decimal("0.00")


def test_deleting_expense_recomputes_total(session, trip, rome, florence, add_expense, add_accommodation, add_route) -> None:
    expense = add_expense(trip.id, "120.00")
    add_accommodation(rome.id, "80.00")
    add_route(rome.id, florence.id, cost="30.00", is_selected=True)
    assert trip.total_cost == Decimal("230.00")

    assert services.delete_expense(session, trip.id, expense.id) is True
    assert trip.total_cost == Decimal("110.00")


def test_accommodation_update_and_delete_recompute_total(session, trip, rome, add_accommodation) -> None:
    accommodation = add_accommodation(rome.id, "80.00", models.AccommodationStatus.PLANNED)
    assert trip.total_cost == Decimal("0.00")

    services.update_accommodation(
        session,
        accommodation.id,
        name=accommodation.name,
        accommodation_type=accommodation.accommodation_type,
        check_in_date=dt.datetime(2024, 5, 1, 15, 0, tzinfo=UTC),
        check_out_date=dt.datetime(2024, 5, 4, 10, 0, tzinfo=UTC),
        cost=Decimal("95.00"),
        status=models.AccommodationStatus.PAID,
    )
    assert trip.total_cost == Decimal("95.00")

    assert services.delete_accommodation(session, accommodation.id) is True
    assert trip.total_cost == Decimal("0.00")


def test_deleting_trip_point_recomputes_total(session, trip, rome, florence, add_expense, add_accommodation, add_route) -> None:
    add_expense(trip.id, "10.00")
    add_accommodation(rome.id, "80.00")
    add_route(rome.id, florence.id, cost="30.00", is_selected=True)
    assert trip.total_cost == Decimal("120.00")

    services.delete_trip_point(session, rome.id)

    assert trip.total_cost == Decimal("10.00")


def test_place_price_is_not_part_of_total(session, trip, rome) -> None:
    services.create_place_to_visit(
        session,
        rome.id,
        name="Colosseum",
        category=models.PlaceToVisitCategory.SITE,
        price=Decimal("18.00"),
    )

    assert services.recalculate_trip_total_cost(session, trip.id) == Decimal("0.00")


def test_other_trips_do_not_leak_into_total(session, trip, rome, add_expense, add_accommodation) -> None:
    other = services.create_trip(session, name="Spain", start_date=dt.date(2024, 8, 1))
    add_expense(other.id, "500.00")
    add_accommodation(rome.id, "40.00")

    assert trip.total_cost == Decimal("40.00")
    assert other.total_cost == Decimal("500.00")


def test_recalculate_is_idempotent(session, trip, rome, florence, add_expense, add_accommodation, add_route) -> None:
    add_expense(trip.id, "19.99")
    add_accommodation(rome.id, "80.01", models.AccommodationStatus.PAID)
    add_route(rome.id, florence.id, cost="12.50", is_selected=True)

    first = services.recalculate_trip_total_cost(session, trip.id)
    second = services.recalculate_trip_total_cost(session, trip.id)

    assert first == second == Decimal("112.50")


def test_total_is_independent_of_mutation_order(session, add_expense, add_accommodation, add_route) -> None:
    def build(order: list[str]) -> models.Trip:
        trip = services.create_trip(session, name="Loop", start_date=dt.date(2024, 6, 1))
        first = services.create_trip_point(
            session,
            trip.id,
            name="A",
            order=1,
            arrival_date=dt.datetime(2024, 6, 1, 10, 0, tzinfo=UTC),
            departure_date=dt.datetime(2024, 6, 2, 10, 0, tzinfo=UTC),
        )
        second = services.create_trip_point(
            session,
            trip.id,
            name="B",
            order=2,
            arrival_date=dt.datetime(2024, 6, 2, 14, 0, tzinfo=UTC),
            departure_date=dt.datetime(2024, 6, 3, 10, 0, tzinfo=UTC),
        )
        steps = {
            "expense": lambda: add_expense(trip.id, "40.00"),
            "stay": lambda: add_accommodation(first.id, "60.00"),
            "dropped": lambda: add_accommodation(second.id, "99.00", models.AccommodationStatus.CANCELLED),
            "route": lambda: add_route(first.id, second.id, cost="25.00", is_selected=True),
            "alternative": lambda: add_route(first.id, second.id, cost="70.00"),
        }
        for step in order:
            steps[step]()
        return trip

    forward = build(["expense", "stay", "dropped", "route", "alternative"])
    backward = build(["alternative", "route", "dropped", "stay", "expense"])

    assert forward.total_cost == backward.total_cost == Decimal("125.00")
    assert services.calculate_trip_total_cost(session, forward.id) == forward.total_cost


def test_recalculate_unknown_trip_raises(session) -> None:
    with pytest.raises(NotFoundError):
        services.recalculate_trip_total_cost(session, 999)


def test_rejected_expense_leaves_total_untouched(session, trip, add_expense) -> None:
    add_expense(trip.id, "25.00")

    with pytest.raises(InvalidArgumentError):
        add_expense(trip.id, "0")

    assert len(services.list_expenses(session, trip.id)) == 1
    assert trip.total_cost == Decimal("25.00")


def test_deleting_route_recomputes_total(session, trip, rome, florence, add_expense, add_route) -> None:
    add_expense(trip.id, "10.00")
    route = add_route(rome.id, florence.id, cost="30.00", is_selected=True)
    assert trip.total_cost == Decimal("40.00")

    assert services.delete_route(session, route.id) is True

    assert trip.total_cost == Decimal("10.00")
    assert session.query(models.Route).count() == 0
