from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from datetime import date

from src.database import get_db
from src.auth.dependencies import require_admin
from src.auth.schemas import SessionContext
from src.exceptions import InfrastructureError, InvalidRequestError, NotFoundError
from src.inventory.schemas import SeatAvailability, SeatChangeRequest, SeatChangeResult
from src.inventory.service import SeatInventoryService

router = APIRouter()

def _availability(inventory: SeatInventoryService, train_id: int, journey_date: date) -> SeatAvailability:
    seats = inventory.get_availability(train_id, journey_date)
    return SeatAvailability(
        train_id=train_id,
        journey_date=journey_date,
        seats=seats,
        total_available=sum(seats.values())
    )

@router.get("/{train_id}/{journey_date}", response_model=SeatAvailability)
def get_seat_availability(
    train_id: int,
    journey_date: date,
    db: Session = Depends(get_db)
):
    """Get available seats per class for a train on a date"""
    inventory = SeatInventoryService(db)

    try:
        return _availability(inventory, train_id, journey_date)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InfrastructureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

def _change_seats(db: Session, train_id: int, journey_date: date, request: SeatChangeRequest, reserve: bool) -> SeatChangeResult:
    inventory = SeatInventoryService(db)

    try:
        inventory.ensure_journey(train_id, journey_date)
        if reserve:
            success = inventory.reserve(train_id, journey_date, request.fare_class, request.seats)
        else:
            success = inventory.release(train_id, journey_date, request.fare_class, request.seats)
        availability = _availability(inventory, train_id, journey_date)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except InvalidRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except InfrastructureError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)

    action = "reserved" if reserve else "released"
    message = f"{request.seats} {request.fare_class.value} seat(s) {action}" if success \
        else f"Could not update {request.fare_class.value} seats"

    return SeatChangeResult(success=success, message=message, availability=availability)

@router.post("/{train_id}/{journey_date}/reserve", response_model=SeatChangeResult)
def reserve_seats(
    train_id: int,
    journey_date: date,
    request: SeatChangeRequest,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Manually take seats out of the inventory (admin only)"""
    return _change_seats(db, train_id, journey_date, request, reserve=True)

@router.post("/{train_id}/{journey_date}/release", response_model=SeatChangeResult)
def release_seats(
    train_id: int,
    journey_date: date,
    request: SeatChangeRequest,
    context: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Return seats to the inventory (admin only)"""
    return _change_seats(db, train_id, journey_date, request, reserve=False)
