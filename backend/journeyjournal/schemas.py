from __future__ import annotations

import datetime as dt
from decimal import Decimal
from typing import List, Optional

from typing_extensions import Annotated

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

from .models import (
    AccommodationStatus,
    AccommodationType,
    ExpenseCategory,
    PaymentMethod,
    PlaceToVisitCategory,
    TransportationType,
    VisitStatus,
)


def _serialize_datetime(value: dt.datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    else:
        value = value.astimezone(dt.timezone.utc)
    return value.isoformat()


Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Timestamp = Annotated[dt.datetime, PlainSerializer(_serialize_datetime, return_type=str, when_used="json")]


# Requests ------------------------------------------------------------------

# Same precision as the Numeric(18, 2) money columns.
MONEY_DIGITS = 18


def _normalize_currency(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().upper()
    return value or None


class TripPointDraft(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    order: int
    arrival_date: dt.datetime
    departure_date: dt.datetime
    notes: Optional[str] = None


class TripCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    start_date: dt.date
    end_date: Optional[dt.date] = None
    is_completed: bool = False
    is_default: bool = False
    description: Optional[str] = None
    planned_cost: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS)
    currency: Optional[str] = Field(default=None, max_length=3)
    trip_points: List[TripPointDraft] = Field(default_factory=list)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_currency(value)


class TripUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    start_date: dt.date
    end_date: Optional[dt.date] = None
    is_completed: bool = False
    is_default: bool = False
    description: Optional[str] = None
    planned_cost: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS)
    currency: Optional[str] = Field(default=None, max_length=3)

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: Optional[str]) -> Optional[str]:
        return _normalize_currency(value)


class AccommodationDraft(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    accommodation_type: AccommodationType
    address: Optional[str] = Field(default=None, max_length=500)
    check_in_date: dt.datetime
    check_out_date: dt.datetime
    website_url: Optional[str] = Field(default=None, max_length=500)
    cost: Decimal = Field(max_digits=MONEY_DIGITS)
    status: AccommodationStatus
    notes: Optional[str] = None


class AccommodationCreateRequest(AccommodationDraft):
    trip_point_id: int


class AccommodationUpdateRequest(AccommodationDraft):
    pass


class PlaceToVisitDraft(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    category: PlaceToVisitCategory
    address: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS)
    website_url: Optional[str] = Field(default=None, max_length=500)
    useful_links: Optional[str] = Field(default=None, max_length=2000)
    order: int = 0
    rating: Optional[int] = None
    visit_date: Optional[dt.datetime] = None
    visit_status: VisitStatus = VisitStatus.PLANNED
    after_visit_notes: Optional[str] = None


class PlaceToVisitCreateRequest(PlaceToVisitDraft):
    trip_point_id: int


class PlaceToVisitUpdateRequest(PlaceToVisitDraft):
    pass


class TripPointCreateRequest(TripPointDraft):
    trip_id: int
    accommodations: List[AccommodationDraft] = Field(default_factory=list)
    places_to_visit: List[PlaceToVisitDraft] = Field(default_factory=list)


class TripPointUpdateRequest(TripPointDraft):
    accommodations: Optional[List[AccommodationDraft]] = None
    places_to_visit: Optional[List[PlaceToVisitDraft]] = None


class RouteUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    transportation_type: TransportationType
    carrier: Optional[str] = Field(default=None, max_length=200)
    departure_time: Optional[dt.datetime] = None
    arrival_time: Optional[dt.datetime] = None
    duration_minutes: Optional[int] = None
    cost: Optional[Decimal] = Field(default=None, max_digits=MONEY_DIGITS)
    is_selected: bool = False
    notes: Optional[str] = None


class RouteCreateRequest(RouteUpdateRequest):
    from_point_id: int
    to_point_id: int


class ExpenseCreateRequest(BaseModel):
    description: str = Field(min_length=1, max_length=200)
    category: ExpenseCategory
    amount: Decimal = Field(max_digits=MONEY_DIGITS)
    expense_date: dt.datetime
    payment_method: PaymentMethod
    notes: Optional[str] = Field(default=None, max_length=200)


class ExpenseUpdateRequest(ExpenseCreateRequest):
    pass


# Responses -----------------------------------------------------------------


class AccommodationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_point_id: int
    name: str
    accommodation_type: AccommodationType
    address: Optional[str]
    check_in_date: Timestamp
    check_out_date: Timestamp
    website_url: Optional[str]
    cost: Money
    status: AccommodationStatus
    notes: Optional[str]
    created_at: Timestamp
    updated_at: Optional[Timestamp]


class RouteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_point_id: int
    to_point_id: int
    name: str
    transportation_type: TransportationType
    carrier: Optional[str]
    departure_time: Optional[Timestamp]
    arrival_time: Optional[Timestamp]
    duration_minutes: Optional[int]
    cost: Optional[Money]
    is_selected: bool
    notes: Optional[str]
    created_at: Timestamp
    updated_at: Optional[Timestamp]


class PlaceToVisitResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_point_id: int
    name: str
    category: PlaceToVisitCategory
    address: Optional[str]
    description: Optional[str]
    price: Optional[Money]
    website_url: Optional[str]
    useful_links: Optional[str]
    order: int
    rating: Optional[int]
    visit_date: Optional[Timestamp]
    visit_status: VisitStatus
    after_visit_notes: Optional[str]
    created_at: Timestamp
    updated_at: Optional[Timestamp]


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    description: str
    category: ExpenseCategory
    amount: Money
    expense_date: Timestamp
    payment_method: PaymentMethod
    notes: Optional[str]
    created_at: Timestamp
    updated_at: Optional[Timestamp]


class TripPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    trip_id: int
    name: str
    order: int
    arrival_date: Timestamp
    departure_date: Timestamp
    notes: Optional[str]
    created_at: Timestamp
    updated_at: Optional[Timestamp]
    accommodations: List[AccommodationResponse] = Field(default_factory=list)
    places_to_visit: List[PlaceToVisitResponse] = Field(default_factory=list)


class TripPointDetailResponse(TripPointResponse):
    routes_from: List[RouteResponse] = Field(default_factory=list)
    routes_to: List[RouteResponse] = Field(default_factory=list)


class TripResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_date: dt.date
    end_date: Optional[dt.date]
    is_completed: bool
    is_default: bool
    description: Optional[str]
    planned_cost: Optional[Money]
    total_cost: Money
    currency: Optional[str]
    created_at: Timestamp
    updated_at: Optional[Timestamp]
    trip_points: List[TripPointDetailResponse] = Field(default_factory=list)
    expenses: List[ExpenseResponse] = Field(default_factory=list)


class TripCostResponse(BaseModel):
    trip_id: int
    total_cost: Money
