from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date

from src.database import get_db
from src.exceptions import InfrastructureError, InvalidRequestError, NotFoundError
from src.trains.schemas import Station, TrainDetail, TrainSearchResult
from src.trains.service import TrainService

router = APIRouter()

@router.get("/stations", response_model=List[Station])
def list_stations(
    query: Optional[str] = Query(None, description="Search by station name, code or city"),
    limit: int = Query(50, ge=1, le=200, description="Number of stations to return"),
    db: Session = Depends(get_db)
):
    """List stations with optional search"""
    return TrainService(db).list_stations(query, limit)

@router.get("/search", response_model=List[TrainSearchResult])
def search_trains(
    from_station: str = Query(..., description="Origin station name or code"),
    to_station: str = Query(..., description="Destination station name or code"),
    journey_date: Optional[date] = Query(None, description="Journey date (defaults to today)"),
    db: Session = Depends(get_db)
):
    """Find trains running from one station to another"""
    try:
        return TrainService(db).search(from_station, to_station, journey_date)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except InfrastructureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

@router.get("/{train_id}", response_model=TrainDetail)
def get_train(
    train_id: int,
    db: Session = Depends(get_db)
):
    """Get train details with its full schedule"""
    try:
        return TrainService(db).get_train_detail(train_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
