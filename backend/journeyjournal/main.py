from __future__ import annotations

from typing import Dict

from fastapi import Depends, FastAPI, Response, status
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from . import models
from .config import settings
from .database import engine, get_db
from .errors import NotFoundError, register_exception_handlers
from .middleware import RequestLogMiddleware
from .schemas import (
    AccommodationCreateRequest,
    AccommodationResponse,
    AccommodationUpdateRequest,
    ExpenseCreateRequest,
    ExpenseResponse,
    ExpenseUpdateRequest,
    Money,
    PlaceToVisitCreateRequest,
    PlaceToVisitResponse,
    PlaceToVisitUpdateRequest,
    RouteCreateRequest,
    RouteResponse,
    RouteUpdateRequest,
    TripCostResponse,
    TripCreateRequest,
    TripPointCreateRequest,
    TripPointDetailResponse,
    TripPointUpdateRequest,
    TripResponse,
    TripUpdateRequest,
)
from .services import (
    create_accommodation,
    create_expense,
    create_place_to_visit,
    create_route,
    create_trip,
    create_trip_point,
    delete_accommodation,
    delete_expense,
    delete_place_to_visit,
    delete_route,
    delete_trip,
    delete_trip_point,
    get_accommodation,
    get_expense,
    get_place_to_visit,
    get_route,
    get_trip,
    get_trip_point,
    list_expenses,
    list_trips,
    recalculate_trip_total_cost,
    set_trip_as_default,
    summarize_expenses,
    update_accommodation,
    update_expense,
    update_place_to_visit,
    update_route,
    update_trip,
    update_trip_point,
)


models.Base.metadata.create_all(bind=engine)

app = FastAPI(title=settings.app_name)
register_exception_handlers(app)
app.add_middleware(RequestLogMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _no_content(deleted: bool, kind: str, entity_id: int) -> Response:
    if not deleted:
        raise NotFoundError(kind, entity_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/trips", response_model=list[TripResponse])
def trips_index(db: Session = Depends(get_db)) -> list[TripResponse]:
    return list_trips(db)


@app.get("/api/trips/{trip_id}", response_model=TripResponse)
def trip_detail(trip_id: int, db: Session = Depends(get_db)) -> TripResponse:
    return get_trip(db, trip_id)


@app.post("/api/trips", response_model=TripResponse, status_code=status.HTTP_201_CREATED)
def trip_create(payload: TripCreateRequest, db: Session = Depends(get_db)) -> TripResponse:
    return create_trip(db, **payload.model_dump())


@app.put("/api/trips/{trip_id}", response_model=TripResponse)
def trip_update(trip_id: int, payload: TripUpdateRequest, db: Session = Depends(get_db)) -> TripResponse:
    return update_trip(db, trip_id, **payload.model_dump())


@app.put("/api/trips/{trip_id}/default", status_code=status.HTTP_204_NO_CONTENT)
def trip_set_default(trip_id: int, db: Session = Depends(get_db)) -> Response:
    set_trip_as_default(db, trip_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/api/trips/{trip_id}/recalculate", response_model=TripCostResponse)
def trip_recalculate(trip_id: int, db: Session = Depends(get_db)) -> TripCostResponse:
    total = recalculate_trip_total_cost(db, trip_id)
    return TripCostResponse(trip_id=trip_id, total_cost=total)


@app.delete("/api/trips/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
def trip_delete(trip_id: int, db: Session = Depends(get_db)) -> Response:
    return _no_content(delete_trip(db, trip_id), "Trip", trip_id)


@app.post("/api/trippoints", response_model=TripPointDetailResponse, status_code=status.HTTP_201_CREATED)
def trip_point_create(payload: TripPointCreateRequest, db: Session = Depends(get_db)) -> TripPointDetailResponse:
    return create_trip_point(db, **payload.model_dump())


@app.get("/api/trippoints/{trip_point_id}", response_model=TripPointDetailResponse)
def trip_point_detail(trip_point_id: int, db: Session = Depends(get_db)) -> TripPointDetailResponse:
    return get_trip_point(db, trip_point_id)


@app.put("/api/trippoints/{trip_point_id}", response_model=TripPointDetailResponse)
def trip_point_update(
    trip_point_id: int,
    payload: TripPointUpdateRequest,
    db: Session = Depends(get_db),
) -> TripPointDetailResponse:
    return update_trip_point(db, trip_point_id, **payload.model_dump())


@app.delete("/api/trippoints/{trip_point_id}", status_code=status.HTTP_204_NO_CONTENT)
def trip_point_delete(trip_point_id: int, db: Session = Depends(get_db)) -> Response:
    delete_trip_point(db, trip_point_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/api/routes", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
def route_create(payload: RouteCreateRequest, db: Session = Depends(get_db)) -> RouteResponse:
    return create_route(db, **payload.model_dump())


@app.get("/api/routes/{route_id}", response_model=RouteResponse)
def route_detail(route_id: int, db: Session = Depends(get_db)) -> RouteResponse:
    return get_route(db, route_id)


@app.put("/api/routes/{route_id}", response_model=RouteResponse)
def route_update(route_id: int, payload: RouteUpdateRequest, db: Session = Depends(get_db)) -> RouteResponse:
    return update_route(db, route_id, **payload.model_dump())


@app.delete("/api/routes/{route_id}", status_code=status.HTTP_204_NO_CONTENT)
def route_delete(route_id: int, db: Session = Depends(get_db)) -> Response:
    return _no_content(delete_route(db, route_id), "Route", route_id)


@app.post("/api/accommodations", response_model=AccommodationResponse, status_code=status.HTTP_201_CREATED)
def accommodation_create(payload: AccommodationCreateRequest, db: Session = Depends(get_db)) -> AccommodationResponse:
    return create_accommodation(db, **payload.model_dump())


@app.get("/api/accommodations/{accommodation_id}", response_model=AccommodationResponse)
def accommodation_detail(accommodation_id: int, db: Session = Depends(get_db)) -> AccommodationResponse:
    return get_accommodation(db, accommodation_id)


@app.put("/api/accommodations/{accommodation_id}", response_model=AccommodationResponse)
def accommodation_update(
    accommodation_id: int,
    payload: AccommodationUpdateRequest,
    db: Session = Depends(get_db),
) -> AccommodationResponse:
    return update_accommodation(db, accommodation_id, **payload.model_dump())


@app.delete("/api/accommodations/{accommodation_id}", status_code=status.HTTP_204_NO_CONTENT)
def accommodation_delete(accommodation_id: int, db: Session = Depends(get_db)) -> Response:
    return _no_content(delete_accommodation(db, accommodation_id), "Accommodation", accommodation_id)


@app.post("/api/placestovisit", response_model=PlaceToVisitResponse, status_code=status.HTTP_201_CREATED)
def place_create(payload: PlaceToVisitCreateRequest, db: Session = Depends(get_db)) -> PlaceToVisitResponse:
    return create_place_to_visit(db, **payload.model_dump())


@app.get("/api/placestovisit/{place_id}", response_model=PlaceToVisitResponse)
def place_detail(place_id: int, db: Session = Depends(get_db)) -> PlaceToVisitResponse:
    return get_place_to_visit(db, place_id)


@app.put("/api/placestovisit/{place_id}", response_model=PlaceToVisitResponse)
def place_update(
    place_id: int,
    payload: PlaceToVisitUpdateRequest,
    db: Session = Depends(get_db),
) -> PlaceToVisitResponse:
    return update_place_to_visit(db, place_id, **payload.model_dump())


@app.delete("/api/placestovisit/{place_id}", status_code=status.HTTP_204_NO_CONTENT)
def place_delete(place_id: int, db: Session = Depends(get_db)) -> Response:
    return _no_content(delete_place_to_visit(db, place_id), "PlaceToVisit", place_id)


@app.get("/api/trips/{trip_id}/expenses", response_model=list[ExpenseResponse])
def expenses_index(trip_id: int, db: Session = Depends(get_db)) -> list[ExpenseResponse]:
    return list_expenses(db, trip_id)


@app.get("/api/trips/{trip_id}/expenses/summary", response_model=Dict[str, Money])
def expenses_summary(trip_id: int, db: Session = Depends(get_db)) -> Dict[str, Money]:
    return summarize_expenses(db, trip_id)


@app.get("/api/trips/{trip_id}/expenses/{expense_id}", response_model=ExpenseResponse)
def expense_detail(trip_id: int, expense_id: int, db: Session = Depends(get_db)) -> ExpenseResponse:
    return get_expense(db, trip_id, expense_id)


@app.post("/api/trips/{trip_id}/expenses", response_model=ExpenseResponse, status_code=status.HTTP_201_CREATED)
def expense_create(trip_id: int, payload: ExpenseCreateRequest, db: Session = Depends(get_db)) -> ExpenseResponse:
    return create_expense(db, trip_id, **payload.model_dump())


@app.put("/api/trips/{trip_id}/expenses/{expense_id}", response_model=ExpenseResponse)
def expense_update(
    trip_id: int,
    expense_id: int,
    payload: ExpenseUpdateRequest,
    db: Session = Depends(get_db),
) -> ExpenseResponse:
    return update_expense(db, trip_id, expense_id, **payload.model_dump())


@app.delete("/api/trips/{trip_id}/expenses/{expense_id}", status_code=status.HTTP_204_NO_CONTENT)
def expense_delete(trip_id: int, expense_id: int, db: Session = Depends(get_db)) -> Response:
    return _no_content(delete_expense(db, trip_id, expense_id), "Expense", expense_id)
