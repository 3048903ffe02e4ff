"""Data models for the bus arrivals tracker."""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, NamedTuple, Optional

INBOUND = "Inbound"
OUTBOUND = "Outbound"
DIRECTIONS = (INBOUND, OUTBOUND)

SCHEDULE_PASS = "schedule"
PREDICTIONS_PASS = "predictions"


class PathValue(NamedTuple):
    """One line of a flattened feed."""
    path: str
    value: str


class NestingLevel(Enum):
    """Object levels of the flattened feed tree."""
    ROUTE = "route"
    DIRECTION = "direction"
    TRIP = "trip"


@dataclass(frozen=True)
class TripRecord:
    """A trip object closed by the feed parser."""
    route_id: str
    route_name: str
    direction: str  # "Inbound" or "Outbound"
    trip_id: str
    trip_name: str = ""
    head_sign: str = ""
    scheduled_arrival_epoch: Optional[int] = None
    predicted_arrival_epoch: Optional[int] = None  # Predictions pass only
    seconds_to_arrival: Optional[int] = None  # Predictions pass only


@dataclass
class ArrivalEntry:
    """Merged schedule/prediction data for one trip at one stop."""
    trip_id: str
    route_name: str
    head_sign: str = ""
    arrival_epoch: Optional[int] = None
    scheduled_arrival_epoch: Optional[int] = None  # From the schedule pass only
    seconds_to_arrival: Optional[int] = None
    predicted: bool = False


@dataclass
class StopRequest:
    """What the caller wants to know about one stop."""
    stop_id: str
    direction: str
    interest_routes: FrozenSet[str]
    now_epoch: int
    show_lateness: bool = False
    schedule_only: bool = False
    fixed_time: Optional[int] = None  # Overrides now_epoch for schedule lookups


@dataclass
class StopBlock:
    """Rendered arrivals for one stop, ready for output theming."""
    stop_id: str
    label: str
    lines: List[str] = field(default_factory=list)
    skipped: int = 0  # Trips dropped for missing or unparseable times
    predictions_available: bool = False


@dataclass
class RouteInfo:
    """A route as listed by the upstream API."""
    route_id: str
    route_name: str
    mode_name: str = ""


@dataclass
class StopInfo:
    """A stop served by a route in one direction."""
    stop_id: str
    stop_name: str
    direction: str
    stop_order: int = 0
