from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import date, time

class StationBase(BaseModel):
    code: str
    name: str
    city: Optional[str] = None
    state: Optional[str] = None

class Station(StationBase):
    id: int

    class Config:
        from_attributes = True

class ScheduleStop(BaseModel):
    sequence_order: int
    station_code: str
    station_name: str
    arrival_time: Optional[time] = None
    departure_time: Optional[time] = None
    day_number: int = 1

class Train(BaseModel):
    id: int
    train_number: str
    name: str
    total_coaches: Optional[int] = None

    class Config:
        from_attributes = True

class TrainDetail(Train):
    stops: List[ScheduleStop] = []
    amenities: List[str] = []

class TrainSearchResult(BaseModel):
    """A train serving both stations, with timings and availability for the date"""
    train_id: int
    train_number: str
    train_name: str
    from_station: str
    to_station: str
    journey_date: date
    departure_time: Optional[time] = None
    arrival_time: Optional[time] = None
    duration: Optional[str] = None
    halts: Optional[int] = None
    distance_km: int
    amenities: List[str] = []
    availability: Dict[str, int] = {}
