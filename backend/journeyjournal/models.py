from __future__ import annotations

import datetime as dt
import enum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Text,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


MONEY = Numeric(18, 2, asdecimal=True)


class AccommodationType(str, enum.Enum):
    BOOKING = "Booking"
    HOTEL = "Hotel"
    APARTMENT = "Apartment"
    AIRBNB = "Airbnb"
    OTHER = "Other"


class AccommodationStatus(str, enum.Enum):
    PLANNED = "Planned"
    CONFIRMED = "Confirmed"
    PAYMENT_REQUIRED = "PaymentRequired"
    PAID = "Paid"
    CANCELLED = "Cancelled"


# Only these statuses count towards a trip's total cost.
COUNTED_ACCOMMODATION_STATUSES = frozenset({AccommodationStatus.CONFIRMED, AccommodationStatus.PAID})


class TransportationType(str, enum.Enum):
    FLIGHT = "Flight"
    TRAIN = "Train"
    BUS = "Bus"
    CAR = "Car"
    WALKING = "Walking"
    OTHER = "Other"


class ExpenseCategory(str, enum.Enum):
    TRANSPORTATION = "Transportation"
    RESTAURANT = "Restaurant"
    FOOD = "Food"
    ENTERTAINMENT = "Entertainment"
    SHOPPING = "Shopping"
    FEE = "Fee"
    LIVING = "Living"
    OTHER = "Other"


class PaymentMethod(str, enum.Enum):
    CASH = "Cash"
    CREDIT_CARD = "CreditCard"


class PlaceToVisitCategory(str, enum.Enum):
    MUSEUM = "Museum"
    PARK = "Park"
    RESTAURANT = "Restaurant"
    SITE = "Site"
    OTHER = "Other"


class VisitStatus(str, enum.Enum):
    PLANNED = "Planned"
    VISITED = "Visited"
    SKIPPED = "Skipped"


def _enum_column(enum_cls: type[enum.Enum], length: int = 20) -> Enum:
    return Enum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )


class Trip(Base):
    __tablename__ = "trips"
    __table_args__ = (
        Index(
            "ux_trips_single_default",
            "is_default",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False, index=True)
    is_default = Column(Boolean, nullable=False, default=False)
    description = Column(Text, nullable=True)
    planned_cost = Column(MONEY, nullable=True)
    # Derived; written only by the cost aggregator.
    total_cost = Column(MONEY, nullable=False, default=0)
    currency = Column(String(3), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    trip_points = relationship(
        "TripPoint",
        back_populates="trip",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: (TripPoint.order, TripPoint.id),
    )
    expenses = relationship(
        "Expense",
        back_populates="trip",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: (Expense.expense_date.desc(), Expense.id.desc()),
    )


class TripPoint(Base):
    __tablename__ = "trip_points"
    __table_args__ = (Index("ix_trip_points_trip_order", "trip_id", "order"),)

    id = Column(Integer, primary_key=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    order = Column(Integer, nullable=False)
    arrival_date = Column(DateTime(timezone=True), nullable=False)
    departure_date = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    trip = relationship("Trip", back_populates="trip_points")
    accommodations = relationship(
        "Accommodation",
        back_populates="trip_point",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: (Accommodation.check_in_date, Accommodation.id),
    )
    places_to_visit = relationship(
        "PlaceToVisit",
        back_populates="trip_point",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: (PlaceToVisit.order, PlaceToVisit.id),
    )
    # Routes are restricted, not cascaded: the services clear them explicitly.
    routes_from = relationship(
        "Route",
        back_populates="from_point",
        foreign_keys="Route.from_point_id",
        passive_deletes="all",
        order_by="Route.id",
    )
    routes_to = relationship(
        "Route",
        back_populates="to_point",
        foreign_keys="Route.to_point_id",
        passive_deletes="all",
        order_by="Route.id",
    )


class Accommodation(Base):
    __tablename__ = "accommodations"

    id = Column(Integer, primary_key=True)
    trip_point_id = Column(
        Integer, ForeignKey("trip_points.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    accommodation_type = Column(_enum_column(AccommodationType), nullable=False)
    address = Column(String(500), nullable=True)
    check_in_date = Column(DateTime(timezone=True), nullable=False)
    check_out_date = Column(DateTime(timezone=True), nullable=False)
    website_url = Column(String(500), nullable=True)
    cost = Column(MONEY, nullable=False)
    status = Column(_enum_column(AccommodationStatus), nullable=False, default=AccommodationStatus.PLANNED)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    trip_point = relationship("TripPoint", back_populates="accommodations")


class Route(Base):
    __tablename__ = "routes"
    __table_args__ = (Index("ix_routes_from_to", "from_point_id", "to_point_id"),)

    id = Column(Integer, primary_key=True)
    from_point_id = Column(Integer, ForeignKey("trip_points.id", ondelete="RESTRICT"), nullable=False)
    to_point_id = Column(Integer, ForeignKey("trip_points.id", ondelete="RESTRICT"), nullable=False)
    name = Column(String(200), nullable=False)
    transportation_type = Column(_enum_column(TransportationType), nullable=False)
    carrier = Column(String(200), nullable=True)
    departure_time = Column(DateTime(timezone=True), nullable=True)
    arrival_time = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    cost = Column(MONEY, nullable=True)
    is_selected = Column(Boolean, nullable=False, default=False, index=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    from_point = relationship("TripPoint", back_populates="routes_from", foreign_keys=[from_point_id])
    to_point = relationship("TripPoint", back_populates="routes_to", foreign_keys=[to_point_id])


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(200), nullable=False)
    category = Column(_enum_column(ExpenseCategory), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    expense_date = Column(DateTime(timezone=True), nullable=False)
    payment_method = Column(_enum_column(PaymentMethod), nullable=False)
    notes = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    trip = relationship("Trip", back_populates="expenses")


class PlaceToVisit(Base):
    __tablename__ = "places_to_visit"

    id = Column(Integer, primary_key=True)
    trip_point_id = Column(
        Integer, ForeignKey("trip_points.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name = Column(String(200), nullable=False)
    category = Column(_enum_column(PlaceToVisitCategory), nullable=False)
    address = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    # Informational only, never part of the trip total.
    price = Column(MONEY, nullable=True)
    website_url = Column(String(500), nullable=True)
    useful_links = Column(String(2000), nullable=True)
    order = Column(SmallInteger, nullable=False, default=0)
    rating = Column(SmallInteger, nullable=True)
    visit_date = Column(DateTime(timezone=True), nullable=True)
    visit_status = Column(_enum_column(VisitStatus), nullable=False, default=VisitStatus.PLANNED)
    after_visit_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    trip_point = relationship("TripPoint", back_populates="places_to_visit")
