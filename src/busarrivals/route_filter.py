"""Route and direction filtering of parsed trips."""

from typing import AbstractSet, Iterable, Iterator

from .models import TripRecord


def admit(record: TripRecord, interest_routes: AbstractSet[str], wanted_direction: str) -> bool:
    """True if the trip runs on a route of interest in the wanted direction."""
    return record.route_id in interest_routes and record.direction == wanted_direction


class RouteDirectionFilter:
    """Binds an interest set and direction for repeated use on a stop's passes."""

    def __init__(self, interest_routes: Iterable[str], wanted_direction: str):
        self.interest_routes = frozenset(interest_routes)
        self.wanted_direction = wanted_direction

    def admit(self, record: TripRecord) -> bool:
        return admit(record, self.interest_routes, self.wanted_direction)

    def apply(self, records: Iterable[TripRecord]) -> Iterator[TripRecord]:
        """Yield only admitted records; the rest are dropped."""
        for record in records:
            if self.admit(record):
                yield record
