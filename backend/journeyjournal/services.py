from __future__ import annotations

import datetime as dt
import logging
from collections import defaultdict
from contextlib import contextmanager
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from .config import settings
from .errors import InvalidArgumentError, InvalidStateError, NotFoundError
from .models import (
    COUNTED_ACCOMMODATION_STATUSES,
    Accommodation,
    AccommodationStatus,
    AccommodationType,
    Expense,
    ExpenseCategory,
    PaymentMethod,
    PlaceToVisit,
    PlaceToVisitCategory,
    Route,
    TransportationType,
    Trip,
    TripPoint,
    VisitStatus,
)

logger = logging.getLogger(__name__)

UTC = dt.timezone.utc
ZERO = Decimal("0.00")
CENT = Decimal("0.01")
# Numeric(18, 2) leaves 16 integer digits.
MONEY_LIMIT = Decimal(10) ** 16

_TRIP_GRAPH = (
    selectinload(Trip.trip_points).selectinload(TripPoint.accommodations),
    selectinload(Trip.trip_points).selectinload(TripPoint.places_to_visit),
    selectinload(Trip.trip_points).selectinload(TripPoint.routes_from),
    selectinload(Trip.trip_points).selectinload(TripPoint.routes_to),
    selectinload(Trip.expenses),
)


def _now() -> dt.datetime:
    return dt.datetime.now(UTC)


def _ensure_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _optional_utc(value: Optional[dt.datetime]) -> Optional[dt.datetime]:
    return _ensure_utc(value) if value is not None else None


def _quantize(value: Decimal) -> Decimal:
    return value.quantize(CENT)


def _to_money(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        value = _quantize(value)
    except InvalidOperation as exc:
        raise InvalidArgumentError(f"Invalid money amount: {value}") from exc
    if abs(value) >= MONEY_LIMIT:
        raise InvalidArgumentError(f"Money amount out of range: {value}")
    return value


@contextmanager
def _unit_of_work(db: Session) -> Iterator[Session]:
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


# Validation ----------------------------------------------------------------


def _validate_trip_dates(start_date: dt.date, end_date: Optional[dt.date]) -> None:
    if end_date is not None and end_date < start_date:
        raise InvalidArgumentError("End date must be greater than or equal to start date")


def _validate_stay(check_in: dt.datetime, check_out: dt.datetime) -> None:
    if _ensure_utc(check_out) < _ensure_utc(check_in):
        raise InvalidArgumentError("Check-out date must be greater than or equal to check-in date")


def _validate_expense_amount(amount: Decimal) -> None:
    if amount <= 0:
        raise InvalidArgumentError("Expense amount must be positive")


def _validate_rating(rating: Optional[int]) -> None:
    if rating is not None and not 1 <= rating <= 5:
        raise InvalidArgumentError("Rating must be between 1 and 5")


# Lookups -------------------------------------------------------------------


def _get_trip(db: Session, trip_id: int) -> Trip:
    trip = db.query(Trip).filter(Trip.id == trip_id).one_or_none()
    if not trip:
        raise NotFoundError("Trip", trip_id)
    return trip


def _get_trip_point(db: Session, trip_point_id: int) -> TripPoint:
    trip_point = db.query(TripPoint).filter(TripPoint.id == trip_point_id).one_or_none()
    if not trip_point:
        raise NotFoundError("TripPoint", trip_point_id)
    return trip_point


def _get_route(db: Session, route_id: int) -> Route:
    route = db.query(Route).filter(Route.id == route_id).one_or_none()
    if not route:
        raise NotFoundError("Route", route_id)
    return route


def _get_accommodation(db: Session, accommodation_id: int) -> Accommodation:
    accommodation = db.query(Accommodation).filter(Accommodation.id == accommodation_id).one_or_none()
    if not accommodation:
        raise NotFoundError("Accommodation", accommodation_id)
    return accommodation


def _get_place_to_visit(db: Session, place_id: int) -> PlaceToVisit:
    place = db.query(PlaceToVisit).filter(PlaceToVisit.id == place_id).one_or_none()
    if not place:
        raise NotFoundError("PlaceToVisit", place_id)
    return place


def _find_expense(db: Session, trip_id: int, expense_id: int) -> Optional[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.id == expense_id, Expense.trip_id == trip_id)
        .one_or_none()
    )


def _trip_id_for_point(db: Session, trip_point_id: int) -> Optional[int]:
    row = db.query(TripPoint.trip_id).filter(TripPoint.id == trip_point_id).one_or_none()
    return row[0] if row else None


# Cost aggregation ----------------------------------------------------------


def calculate_trip_total_cost(db: Session, trip_id: int) -> Decimal:
    """Sum every cost-bearing child of a trip from the stored rows.

    Expenses count in full, accommodations only when confirmed or paid and
    routes only when selected and priced. Currencies are not converted.
    """
    expenses = sum(
        (amount for (amount,) in db.query(Expense.amount).filter(Expense.trip_id == trip_id)),
        ZERO,
    )
    accommodations = sum(
        (
            cost
            for (cost,) in db.query(Accommodation.cost)
            .join(TripPoint, Accommodation.trip_point_id == TripPoint.id)
            .filter(
                TripPoint.trip_id == trip_id,
                Accommodation.status.in_(list(COUNTED_ACCOMMODATION_STATUSES)),
            )
        ),
        ZERO,
    )
    routes = sum(
        (
            cost
            for (cost,) in db.query(Route.cost)
            .join(TripPoint, Route.from_point_id == TripPoint.id)
            .filter(
                TripPoint.trip_id == trip_id,
                Route.is_selected.is_(True),
                Route.cost.isnot(None),
            )
        ),
        ZERO,
    )
    total = _quantize(expenses + accommodations + routes)
    logger.debug(
        "Trip %s cost: expenses=%s accommodations=%s routes=%s total=%s",
        trip_id,
        expenses,
        accommodations,
        routes,
        total,
    )
    return total


def _apply_trip_total_cost(db: Session, trip_id: int) -> Decimal:
    # Callers must have flushed their own writes first.
    trip = _get_trip(db, trip_id)
    total = calculate_trip_total_cost(db, trip_id)
    trip.total_cost = total
    trip.updated_at = _now()
    db.flush()
    return total


def recalculate_trip_total_cost(db: Session, trip_id: int) -> Decimal:
    """Overwrite the stored total of a trip with a fresh sum of its children."""
    with _unit_of_work(db):
        total = _apply_trip_total_cost(db, trip_id)
    logger.info("Recalculated total cost of trip %s: %s", trip_id, total)
    return total


# Default trip --------------------------------------------------------------


def _clear_default_flags(db: Session, keep_trip_id: Optional[int] = None) -> int:
    query = db.query(Trip).filter(Trip.is_default.is_(True))
    if keep_trip_id is not None:
        query = query.filter(Trip.id != keep_trip_id)
    cleared = query.update(
        {Trip.is_default: False, Trip.updated_at: _now()},
        synchronize_session="fetch",
    )
    if cleared:
        logger.info("Cleared default flag on %s trip(s)", cleared)
    return cleared


def set_trip_as_default(db: Session, trip_id: int) -> Trip:
    with _unit_of_work(db):
        trip = _get_trip(db, trip_id)
        if trip.is_default:
            return trip
        _clear_default_flags(db, keep_trip_id=trip_id)
        trip.is_default = True
        trip.updated_at = _now()
    logger.info("Trip %s is now the default trip", trip_id)
    db.refresh(trip)
    return trip


# Trips ---------------------------------------------------------------------


def _reload_trip(db: Session, trip_id: int) -> Trip:
    trip = db.query(Trip).options(*_TRIP_GRAPH).filter(Trip.id == trip_id).one_or_none()
    if trip is None:
        raise InvalidStateError(f"Failed to retrieve trip {trip_id} after saving it")
    return trip


def list_trips(db: Session) -> List[Trip]:
    return (
        db.query(Trip)
        .options(*_TRIP_GRAPH)
        .order_by(Trip.is_default.desc(), Trip.start_date.asc(), Trip.id.asc())
        .all()
    )


def get_trip(db: Session, trip_id: int) -> Trip:
    trip = db.query(Trip).options(*_TRIP_GRAPH).filter(Trip.id == trip_id).one_or_none()
    if not trip:
        raise NotFoundError("Trip", trip_id)
    return trip


def _build_trip_point(fields: Mapping[str, Any]) -> TripPoint:
    return TripPoint(
        name=fields["name"],
        order=fields["order"],
        arrival_date=_ensure_utc(fields["arrival_date"]),
        departure_date=_ensure_utc(fields["departure_date"]),
        notes=fields.get("notes"),
    )


def create_trip(
    db: Session,
    name: str,
    start_date: dt.date,
    end_date: Optional[dt.date] = None,
    is_completed: bool = False,
    is_default: bool = False,
    description: Optional[str] = None,
    planned_cost: Optional[Decimal] = None,
    currency: Optional[str] = None,
    trip_points: Iterable[Mapping[str, Any]] = (),
) -> Trip:
    _validate_trip_dates(start_date, end_date)
    with _unit_of_work(db):
        if is_default:
            _clear_default_flags(db)
        trip = Trip(
            name=name,
            start_date=start_date,
            end_date=end_date,
            is_completed=is_completed,
            is_default=is_default,
            description=description,
            planned_cost=_to_money(planned_cost),
            total_cost=ZERO,
            currency=currency or settings.default_currency,
        )
        for fields in sorted(trip_points, key=lambda item: item["order"]):
            trip.trip_points.append(_build_trip_point(fields))
        db.add(trip)
    logger.info("Created trip %s (%s)", trip.id, name)
    return _reload_trip(db, trip.id)


def update_trip(
    db: Session,
    trip_id: int,
    *,
    name: str,
    start_date: dt.date,
    end_date: Optional[dt.date] = None,
    is_completed: bool = False,
    is_default: bool = False,
    description: Optional[str] = None,
    planned_cost: Optional[Decimal] = None,
    currency: Optional[str] = None,
) -> Trip:
    with _unit_of_work(db):
        trip = _get_trip(db, trip_id)
        _validate_trip_dates(start_date, end_date)
        if is_default:
            _clear_default_flags(db, keep_trip_id=trip_id)
        trip.name = name
        trip.start_date = start_date
        trip.end_date = end_date
        trip.is_completed = is_completed
        trip.is_default = is_default
        trip.description = description
        trip.planned_cost = _to_money(planned_cost)
        trip.currency = currency or trip.currency or settings.default_currency
        trip.updated_at = _now()
    logger.info("Updated trip %s", trip_id)
    return _reload_trip(db, trip_id)


def _routes_touching(points: Iterable[TripPoint]) -> List[Route]:
    routes: Dict[int, Route] = {}
    for point in points:
        for route in list(point.routes_from) + list(point.routes_to):
            routes[route.id] = route
    return list(routes.values())


def delete_trip(db: Session, trip_id: int) -> bool:
    trip = db.query(Trip).filter(Trip.id == trip_id).one_or_none()
    if trip is None:
        return False
    with _unit_of_work(db):
        routes = _routes_touching(trip.trip_points)
        for route in routes:
            db.delete(route)
        db.flush()
        db.delete(trip)
    logger.info("Deleted trip %s with %s route(s)", trip_id, len(routes))
    return True


# Trip points ---------------------------------------------------------------


def get_trip_point(db: Session, trip_point_id: int) -> TripPoint:
    trip_point = (
        db.query(TripPoint)
        .options(
            selectinload(TripPoint.accommodations),
            selectinload(TripPoint.places_to_visit),
            selectinload(TripPoint.routes_from),
            selectinload(TripPoint.routes_to),
        )
        .filter(TripPoint.id == trip_point_id)
        .one_or_none()
    )
    if not trip_point:
        raise NotFoundError("TripPoint", trip_point_id)
    return trip_point


def create_trip_point(
    db: Session,
    trip_id: int,
    name: str,
    order: int,
    arrival_date: dt.datetime,
    departure_date: dt.datetime,
    notes: Optional[str] = None,
    accommodations: Iterable[Mapping[str, Any]] = (),
    places_to_visit: Iterable[Mapping[str, Any]] = (),
) -> TripPoint:
    accommodations = list(accommodations)
    places_to_visit = list(places_to_visit)
    for fields in accommodations:
        _validate_stay(fields["check_in_date"], fields["check_out_date"])
    for fields in places_to_visit:
        _validate_rating(fields.get("rating"))

    with _unit_of_work(db):
        _get_trip(db, trip_id)
        trip_point = _build_trip_point(
            {
                "name": name,
                "order": order,
                "arrival_date": arrival_date,
                "departure_date": departure_date,
                "notes": notes,
            }
        )
        trip_point.trip_id = trip_id
        for fields in accommodations:
            trip_point.accommodations.append(Accommodation(**_accommodation_values(fields)))
        for fields in places_to_visit:
            trip_point.places_to_visit.append(PlaceToVisit(**_place_values(fields)))
        db.add(trip_point)
        db.flush()
        if accommodations:
            _apply_trip_total_cost(db, trip_id)
    logger.info("Created trip point %s in trip %s", trip_point.id, trip_id)
    return get_trip_point(db, trip_point.id)


def update_trip_point(
    db: Session,
    trip_point_id: int,
    *,
    name: str,
    order: int,
    arrival_date: dt.datetime,
    departure_date: dt.datetime,
    notes: Optional[str] = None,
    accommodations: Optional[Iterable[Mapping[str, Any]]] = None,
    places_to_visit: Optional[Iterable[Mapping[str, Any]]] = None,
) -> TripPoint:
    """Replace a waypoint's fields.

    Nested accommodations or places to visit replace the current ones when a
    list is given and are left alone when it is None.
    """
    if accommodations is not None:
        accommodations = list(accommodations)
        for fields in accommodations:
            _validate_stay(fields["check_in_date"], fields["check_out_date"])
    if places_to_visit is not None:
        places_to_visit = list(places_to_visit)
        for fields in places_to_visit:
            _validate_rating(fields.get("rating"))

    with _unit_of_work(db):
        trip_point = _get_trip_point(db, trip_point_id)
        trip_point.name = name
        trip_point.order = order
        trip_point.arrival_date = _ensure_utc(arrival_date)
        trip_point.departure_date = _ensure_utc(departure_date)
        trip_point.notes = notes
        trip_point.updated_at = _now()
        if accommodations is not None:
            trip_point.accommodations = [
                Accommodation(**_accommodation_values(fields)) for fields in accommodations
            ]
        if places_to_visit is not None:
            trip_point.places_to_visit = [PlaceToVisit(**_place_values(fields)) for fields in places_to_visit]
        db.flush()
        if accommodations is not None:
            _apply_trip_total_cost(db, trip_point.trip_id)
    logger.info("Updated trip point %s", trip_point_id)
    return get_trip_point(db, trip_point_id)


def delete_trip_point(db: Session, trip_point_id: int) -> None:
    """Remove a waypoint after clearing every route that starts or ends there.

    Accommodations and places to visit go with it through the store cascade,
    so the owning trip's total is recomputed in the same transaction.
    """
    with _unit_of_work(db):
        trip_point = _get_trip_point(db, trip_point_id)
        trip_id = trip_point.trip_id
        routes = _routes_touching([trip_point])
        for route in routes:
            db.delete(route)
        db.flush()
        db.delete(trip_point)
        db.flush()
        _apply_trip_total_cost(db, trip_id)
    logger.info("Deleted trip point %s and %s route(s)", trip_point_id, len(routes))


# Routes --------------------------------------------------------------------


def get_route(db: Session, route_id: int) -> Route:
    return _get_route(db, route_id)


def create_route(
    db: Session,
    from_point_id: int,
    to_point_id: int,
    name: str,
    transportation_type: TransportationType,
    carrier: Optional[str] = None,
    departure_time: Optional[dt.datetime] = None,
    arrival_time: Optional[dt.datetime] = None,
    duration_minutes: Optional[int] = None,
    cost: Optional[Decimal] = None,
    is_selected: bool = False,
    notes: Optional[str] = None,
) -> Route:
    from_trip_id = _trip_id_for_point(db, from_point_id)
    if from_trip_id is None:
        raise NotFoundError("TripPoint", from_point_id)
    to_trip_id = _trip_id_for_point(db, to_point_id)
    if to_trip_id is None:
        raise NotFoundError("TripPoint", to_point_id)
    if from_trip_id != to_trip_id:
        logger.warning(
            "Rejected route %s -> %s: points belong to trips %s and %s",
            from_point_id,
            to_point_id,
            from_trip_id,
            to_trip_id,
        )
        raise InvalidArgumentError("Both trip points must belong to the same trip")
    if from_point_id == to_point_id:
        logger.warning("Rejected route %s -> %s: same start and end", from_point_id, to_point_id)
        raise InvalidArgumentError("Route cannot have the same starting and ending point")

    with _unit_of_work(db):
        route = Route(
            from_point_id=from_point_id,
            to_point_id=to_point_id,
            name=name,
            transportation_type=transportation_type,
            carrier=carrier,
            departure_time=_optional_utc(departure_time),
            arrival_time=_optional_utc(arrival_time),
            duration_minutes=duration_minutes,
            cost=_to_money(cost),
            is_selected=is_selected,
            notes=notes,
        )
        db.add(route)
        db.flush()
        _apply_trip_total_cost(db, from_trip_id)
    logger.info("Created route %s (%s -> %s)", route.id, from_point_id, to_point_id)
    db.refresh(route)
    return route


def update_route(
    db: Session,
    route_id: int,
    *,
    name: str,
    transportation_type: TransportationType,
    carrier: Optional[str] = None,
    departure_time: Optional[dt.datetime] = None,
    arrival_time: Optional[dt.datetime] = None,
    duration_minutes: Optional[int] = None,
    cost: Optional[Decimal] = None,
    is_selected: bool = False,
    notes: Optional[str] = None,
) -> Route:
    with _unit_of_work(db):
        route = _get_route(db, route_id)
        route.name = name
        route.transportation_type = transportation_type
        route.carrier = carrier
        route.departure_time = _optional_utc(departure_time)
        route.arrival_time = _optional_utc(arrival_time)
        route.duration_minutes = duration_minutes
        route.cost = _to_money(cost)
        route.is_selected = is_selected
        route.notes = notes
        route.updated_at = _now()
        db.flush()
        trip_id = _trip_id_for_point(db, route.from_point_id)
        if trip_id is not None:
            _apply_trip_total_cost(db, trip_id)
    logger.info("Updated route %s", route_id)
    db.refresh(route)
    return route


def delete_route(db: Session, route_id: int) -> bool:
    route = db.query(Route).filter(Route.id == route_id).one_or_none()
    if route is None:
        return False
    # The route row is the only path back to its trip.
    trip_id = _trip_id_for_point(db, route.from_point_id)
    with _unit_of_work(db):
        db.delete(route)
        db.flush()
        if trip_id is not None:
            _apply_trip_total_cost(db, trip_id)
    logger.info("Deleted route %s", route_id)
    return True


# Accommodations ------------------------------------------------------------


def _accommodation_values(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "name": fields["name"],
        "accommodation_type": fields["accommodation_type"],
        "address": fields.get("address"),
        "check_in_date": _ensure_utc(fields["check_in_date"]),
        "check_out_date": _ensure_utc(fields["check_out_date"]),
        "website_url": fields.get("website_url"),
        "cost": _to_money(fields["cost"]),
        "status": fields["status"],
        "notes": fields.get("notes"),
    }


def get_accommodation(db: Session, accommodation_id: int) -> Accommodation:
    return _get_accommodation(db, accommodation_id)


def create_accommodation(
    db: Session,
    trip_point_id: int,
    name: str,
    accommodation_type: AccommodationType,
    check_in_date: dt.datetime,
    check_out_date: dt.datetime,
    cost: Decimal,
    status: AccommodationStatus,
    address: Optional[str] = None,
    website_url: Optional[str] = None,
    notes: Optional[str] = None,
) -> Accommodation:
    _validate_stay(check_in_date, check_out_date)
    with _unit_of_work(db):
        trip_point = _get_trip_point(db, trip_point_id)
        accommodation = Accommodation(
            trip_point_id=trip_point.id,
            **_accommodation_values(
                {
                    "name": name,
                    "accommodation_type": accommodation_type,
                    "address": address,
                    "check_in_date": check_in_date,
                    "check_out_date": check_out_date,
                    "website_url": website_url,
                    "cost": cost,
                    "status": status,
                    "notes": notes,
                }
            ),
        )
        db.add(accommodation)
        db.flush()
        _apply_trip_total_cost(db, trip_point.trip_id)
    logger.info("Created accommodation %s at trip point %s", accommodation.id, trip_point_id)
    db.refresh(accommodation)
    return accommodation


def update_accommodation(
    db: Session,
    accommodation_id: int,
    *,
    name: str,
    accommodation_type: AccommodationType,
    check_in_date: dt.datetime,
    check_out_date: dt.datetime,
    cost: Decimal,
    status: AccommodationStatus,
    address: Optional[str] = None,
    website_url: Optional[str] = None,
    notes: Optional[str] = None,
) -> Accommodation:
    with _unit_of_work(db):
        accommodation = _get_accommodation(db, accommodation_id)
        _validate_stay(check_in_date, check_out_date)
        values = _accommodation_values(
            {
                "name": name,
                "accommodation_type": accommodation_type,
                "address": address,
                "check_in_date": check_in_date,
                "check_out_date": check_out_date,
                "website_url": website_url,
                "cost": cost,
                "status": status,
                "notes": notes,
            }
        )
        for key, value in values.items():
            setattr(accommodation, key, value)
        accommodation.updated_at = _now()
        db.flush()
        trip_id = _trip_id_for_point(db, accommodation.trip_point_id)
        if trip_id is not None:
            _apply_trip_total_cost(db, trip_id)
    logger.info("Updated accommodation %s", accommodation_id)
    db.refresh(accommodation)
    return accommodation


def delete_accommodation(db: Session, accommodation_id: int) -> bool:
    accommodation = db.query(Accommodation).filter(Accommodation.id == accommodation_id).one_or_none()
    if accommodation is None:
        return False
    trip_id = _trip_id_for_point(db, accommodation.trip_point_id)
    with _unit_of_work(db):
        db.delete(accommodation)
        db.flush()
        if trip_id is not None:
            _apply_trip_total_cost(db, trip_id)
    logger.info("Deleted accommodation %s", accommodation_id)
    return True


# Places to visit -----------------------------------------------------------


def _place_values(fields: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "name": fields["name"],
        "category": fields["category"],
        "address": fields.get("address"),
        "description": fields.get("description"),
        "price": _to_money(fields.get("price")),
        "website_url": fields.get("website_url"),
        "useful_links": fields.get("useful_links"),
        "order": fields.get("order", 0),
        "rating": fields.get("rating"),
        "visit_date": _optional_utc(fields.get("visit_date")),
        "visit_status": fields.get("visit_status") or VisitStatus.PLANNED,
        "after_visit_notes": fields.get("after_visit_notes"),
    }


def get_place_to_visit(db: Session, place_id: int) -> PlaceToVisit:
    return _get_place_to_visit(db, place_id)


def create_place_to_visit(
    db: Session,
    trip_point_id: int,
    name: str,
    category: PlaceToVisitCategory,
    **fields: Any,
) -> PlaceToVisit:
    _validate_rating(fields.get("rating"))
    with _unit_of_work(db):
        _get_trip_point(db, trip_point_id)
        place = PlaceToVisit(
            trip_point_id=trip_point_id,
            **_place_values({"name": name, "category": category, **fields}),
        )
        db.add(place)
    logger.info("Created place to visit %s at trip point %s", place.id, trip_point_id)
    db.refresh(place)
    return place


def update_place_to_visit(
    db: Session,
    place_id: int,
    *,
    name: str,
    category: PlaceToVisitCategory,
    **fields: Any,
) -> PlaceToVisit:
    with _unit_of_work(db):
        place = _get_place_to_visit(db, place_id)
        _validate_rating(fields.get("rating"))
        for key, value in _place_values({"name": name, "category": category, **fields}).items():
            setattr(place, key, value)
        place.updated_at = _now()
    logger.info("Updated place to visit %s", place_id)
    db.refresh(place)
    return place


def delete_place_to_visit(db: Session, place_id: int) -> bool:
    place = db.query(PlaceToVisit).filter(PlaceToVisit.id == place_id).one_or_none()
    if place is None:
        return False
    with _unit_of_work(db):
        db.delete(place)
    logger.info("Deleted place to visit %s", place_id)
    return True


# Expenses ------------------------------------------------------------------


def list_expenses(db: Session, trip_id: int) -> List[Expense]:
    return (
        db.query(Expense)
        .filter(Expense.trip_id == trip_id)
        .order_by(Expense.expense_date.desc(), Expense.id.desc())
        .all()
    )


def get_expense(db: Session, trip_id: int, expense_id: int) -> Expense:
    expense = _find_expense(db, trip_id, expense_id)
    if expense is None:
        raise NotFoundError("Expense", expense_id)
    return expense


def create_expense(
    db: Session,
    trip_id: int,
    description: str,
    category: ExpenseCategory,
    amount: Decimal,
    expense_date: dt.datetime,
    payment_method: PaymentMethod,
    notes: Optional[str] = None,
) -> Expense:
    amount = _to_money(amount)
    with _unit_of_work(db):
        _get_trip(db, trip_id)
        _validate_expense_amount(amount)
        expense = Expense(
            trip_id=trip_id,
            description=description,
            category=category,
            amount=amount,
            expense_date=_ensure_utc(expense_date),
            payment_method=payment_method,
            notes=notes,
        )
        db.add(expense)
        db.flush()
        _apply_trip_total_cost(db, trip_id)
    logger.info("Created expense %s for trip %s", expense.id, trip_id)
    db.refresh(expense)
    return expense


def update_expense(
    db: Session,
    trip_id: int,
    expense_id: int,
    *,
    description: str,
    category: ExpenseCategory,
    amount: Decimal,
    expense_date: dt.datetime,
    payment_method: PaymentMethod,
    notes: Optional[str] = None,
) -> Expense:
    amount = _to_money(amount)
    with _unit_of_work(db):
        expense = get_expense(db, trip_id, expense_id)
        _validate_expense_amount(amount)
        expense.description = description
        expense.category = category
        expense.amount = amount
        expense.expense_date = _ensure_utc(expense_date)
        expense.payment_method = payment_method
        expense.notes = notes
        expense.updated_at = _now()
        db.flush()
        _apply_trip_total_cost(db, trip_id)
    logger.info("Updated expense %s of trip %s", expense_id, trip_id)
    db.refresh(expense)
    return expense


def delete_expense(db: Session, trip_id: int, expense_id: int) -> bool:
    expense = _find_expense(db, trip_id, expense_id)
    if expense is None:
        return False
    with _unit_of_work(db):
        db.delete(expense)
        db.flush()
        _apply_trip_total_cost(db, trip_id)
    logger.info("Deleted expense %s of trip %s", expense_id, trip_id)
    return True


def summarize_expenses(db: Session, trip_id: int) -> Dict[str, Decimal]:
    totals: Dict[ExpenseCategory, Decimal] = defaultdict(lambda: ZERO)
    for category, amount in db.query(Expense.category, Expense.amount).filter(Expense.trip_id == trip_id):
        totals[category] += amount
    return {
        category.value: _quantize(totals[category])
        for category in ExpenseCategory
        if category in totals
    }
