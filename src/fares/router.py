from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import Optional
from datetime import datetime

from src.database import get_db
from src.auth.dependencies import require_admin
from src.auth.schemas import SessionContext
from src.exceptions import InvalidRequestError, InfrastructureError
from src.fares.schemas import FareClass, FareEntryUpdate, FareQuoteRequest, FareQuote, FareTableResponse, FareComparison
from src.fares.service import FareCalculationService

router = APIRouter()

def _fare_service(db: Session) -> FareCalculationService:
    try:
        return FareCalculationService(db)
    except InfrastructureError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.message
        )

@router.get("/{fare_class}", response_model=FareTableResponse)
def get_fare_table(
    fare_class: FareClass,
    min_distance: Optional[int] = Query(None, ge=0, description="Lower distance bound (km)"),
    max_distance: Optional[int] = Query(None, ge=0, description="Upper distance bound (km)"),
    db: Session = Depends(get_db)
):
    """Get the distance/price table for a class"""
    fare_service = _fare_service(db)

    try:
        if min_distance is not None or max_distance is not None:
            entries = fare_service.get_fare_range(fare_class, min_distance or 0, max_distance or 10_000)
        else:
            entries = fare_service.get_fare_table(fare_class)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return FareTableResponse(fare_class=fare_class, entries=entries)

@router.put("/{fare_class}", response_model=FareTableResponse)
def set_fare(
    fare_class: FareClass,
    entry: FareEntryUpdate,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Add or replace a fare table entry (admin only)"""
    fare_service = _fare_service(db)

    try:
        entries = fare_service.set_fare(fare_class, entry.distance_km, entry.price)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except InfrastructureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

    return FareTableResponse(fare_class=fare_class, entries=entries)

@router.post("/quote", response_model=FareQuote)
def quote_fare(
    request: FareQuoteRequest,
    db: Session = Depends(get_db)
):
    """Calculate a dynamic fare quote"""
    fare_service = _fare_service(db)

    try:
        return fare_service.quote(
            request.fare_class,
            request.distance_km,
            passenger_count=request.passenger_count,
            from_station=request.from_station,
            to_station=request.to_station,
            at=request.at
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

@router.get("/compare/{distance_km}", response_model=FareComparison)
def compare_fares(
    distance_km: int,
    at: Optional[datetime] = Query(None, description="Travel moment used for time-of-day pricing"),
    db: Session = Depends(get_db)
):
    """Compare dynamic fares across all classes"""
    if distance_km <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Distance must be positive")

    return _fare_service(db).compare_classes(distance_km, at)
