from bisect import bisect_left, bisect_right, insort
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterator, Mapping, Optional, Tuple

CENT = Decimal("0.01")

def to_money(value: Decimal) -> Decimal:
    """Quantize an amount to 2 decimal places"""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def round_to_nearest(value: Decimal, unit: int = 5) -> Decimal:
    """Round an amount to the nearest multiple of ``unit`` (half-up)"""
    step = Decimal(unit)
    return (Decimal(value) / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP) * step


class DistanceTable:
    """
    Sorted mapping from distance in km to a Decimal value.

    Used for per-class fare tables and for the distance discount tiers.
    """

    def __init__(self, entries: Optional[Mapping[int, Decimal]] = None):
        self._distances = []
        self._values: Dict[int, Decimal] = {}
        for distance_km, value in (entries or {}).items():
            self.set(distance_km, value)

    def set(self, distance_km: int, value) -> None:
        if distance_km not in self._values:
            insort(self._distances, distance_km)
        self._values[distance_km] = Decimal(str(value))

    def get(self, distance_km: int) -> Optional[Decimal]:
        return self._values.get(distance_km)

    def floor_entry(self, distance_km) -> Optional[Tuple[int, Decimal]]:
        """Greatest entry with distance <= distance_km"""
        index = bisect_right(self._distances, distance_km)
        if index == 0:
            return None
        key = self._distances[index - 1]
        return key, self._values[key]

    def ceiling_entry(self, distance_km) -> Optional[Tuple[int, Decimal]]:
        """Smallest entry with distance >= distance_km"""
        index = bisect_left(self._distances, distance_km)
        if index == len(self._distances):
            return None
        key = self._distances[index]
        return key, self._values[key]

    def sub_range(self, min_distance: int, max_distance: int) -> Dict[int, Decimal]:
        """Entries with min_distance <= distance <= max_distance, inclusive"""
        start = bisect_left(self._distances, min_distance)
        end = bisect_right(self._distances, max_distance)
        return {key: self._values[key] for key in self._distances[start:end]}

    def interpolate(self, distance_km) -> Optional[Decimal]:
        """
        Value at ``distance_km``.

        Exact entries are returned as stored. Between two entries the value is
        linearly interpolated; beyond the table it is scaled by the ratio of
        distances to the single nearest entry. Returns None when empty.
        """
        exact = self._values.get(distance_km)
        if exact is not None:
            return exact

        lower = self.floor_entry(distance_km)
        higher = self.ceiling_entry(distance_km)
        distance = Decimal(str(distance_km))

        if lower and higher:
            d1, p1 = lower
            d2, p2 = higher
            return p1 + (distance - d1) / Decimal(d2 - d1) * (p2 - p1)
        if lower:
            d1, p1 = lower
            return p1 if d1 == 0 else p1 * distance / Decimal(d1)
        if higher:
            d2, p2 = higher
            return p2 * distance / Decimal(d2)
        return None

    def as_dict(self) -> Dict[int, Decimal]:
        return {key: self._values[key] for key in self._distances}

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._distances))

    def __len__(self) -> int:
        return len(self._distances)

    def __contains__(self, distance_km) -> bool:
        return distance_km in self._values
