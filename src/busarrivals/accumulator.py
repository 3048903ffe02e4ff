"""Rebuild trip records from a flattened schedule or predictions feed."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional, Tuple

from .models import NestingLevel, PathValue, SCHEDULE_PASS, TripRecord

logger = logging.getLogger(__name__)

# (level, attribute) -> ParseContext field
_ATTRIBUTE_FIELDS: Dict[Tuple[NestingLevel, str], str] = {
    (NestingLevel.ROUTE, "route_id"): "route_id",
    (NestingLevel.ROUTE, "route_name"): "route_name",
    (NestingLevel.DIRECTION, "direction_name"): "direction",
    (NestingLevel.TRIP, "trip_id"): "trip_id",
    (NestingLevel.TRIP, "trip_name"): "trip_name",
    (NestingLevel.TRIP, "trip_headsign"): "head_sign",
    (NestingLevel.TRIP, "sch_arr_dt"): "scheduled_arrival_epoch",
    (NestingLevel.TRIP, "pre_dt"): "predicted_arrival_epoch",
    (NestingLevel.TRIP, "pre_away"): "seconds_to_arrival",
}

_NUMERIC_FIELDS = {"scheduled_arrival_epoch", "predicted_arrival_epoch", "seconds_to_arrival"}


@dataclass
class ParseContext:
    """Fields of the currently open route, direction and trip objects."""
    stop_name: str = ""
    route_id: str = ""
    route_name: str = ""
    direction: str = ""
    trip_id: str = ""
    trip_name: str = ""
    head_sign: str = ""
    scheduled_arrival_epoch: Optional[int] = None
    arrival_epoch: Optional[int] = None
    predicted_arrival_epoch: Optional[int] = None
    seconds_to_arrival: Optional[int] = None

    def snapshot(self) -> TripRecord:
        return TripRecord(
            route_id=self.route_id,
            route_name=self.route_name,
            direction=self.direction,
            trip_id=self.trip_id,
            trip_name=self.trip_name,
            head_sign=self.head_sign,
            scheduled_arrival_epoch=self.scheduled_arrival_epoch,
            predicted_arrival_epoch=self.predicted_arrival_epoch,
            seconds_to_arrival=self.seconds_to_arrival,
        )

    def clear_trip(self) -> None:
        self.trip_id = ""
        self.trip_name = ""
        self.head_sign = ""
        self.scheduled_arrival_epoch = None
        self.arrival_epoch = None
        self.predicted_arrival_epoch = None
        self.seconds_to_arrival = None

    def clear_direction(self) -> None:
        self.direction = ""

    def clear_route(self) -> None:
        self.route_id = ""
        self.route_name = ""
        self.direction = ""


class TripAccumulator:
    """
    State machine turning a PathValue stream into TripRecords.

    The feed has a fixed depth, ``/<pass>/mode/route/direction/trip``, so the
    three object levels are matched against precomputed path templates. Each
    traversal owns a fresh ParseContext; nothing survives between calls.
    """

    def __init__(self, pass_name: str):
        """
        Args:
            pass_name: Root element of the feed, "schedule" or "predictions".
        """
        self.pass_name = pass_name
        route_path = f"/{pass_name}/mode/route"
        direction_path = f"{route_path}/direction"
        self._root_path = f"/{pass_name}"
        self._levels: Dict[str, NestingLevel] = {
            route_path: NestingLevel.ROUTE,
            direction_path: NestingLevel.DIRECTION,
            f"{direction_path}/trip": NestingLevel.TRIP,
        }

    def accumulate(
        self, stream: Iterable[PathValue], context: Optional[ParseContext] = None
    ) -> Iterator[TripRecord]:
        """
        Yield one TripRecord per closed trip object.

        Args:
            stream: PathValue pairs for one feed response.
            context: Optional ParseContext to use for the traversal, for callers
                that want to read the stop name afterwards. A new one is made if
                omitted.

        Yields:
            TripRecord for every close marker reached with a trip id set.
        """
        if context is None:
            context = ParseContext()
        emitted = 0
        for pair in stream:
            context, record = self.step(context, pair)
            if record is not None:
                emitted += 1
                yield record
        logger.debug(f"{self.pass_name} pass emitted {emitted} trips")

    def step(self, context: ParseContext, pair: PathValue) -> Tuple[ParseContext, Optional[TripRecord]]:
        """
        Apply one PathValue to the context.

        Returns:
            The context and the TripRecord flushed by this pair, if any.
        """
        path, value = pair
        owner, sep, attribute = path.rpartition("/@")
        if sep:
            self._assign(context, owner, attribute, value)
            return context, None

        level = self._levels.get(path)
        if level is None or value:
            # Text content or a path outside route/direction/trip
            return context, None

        record = None
        if context.trip_id:
            record = context.snapshot()
            context.clear_trip()

        if level is NestingLevel.DIRECTION:
            context.clear_direction()
        elif level is NestingLevel.ROUTE:
            context.clear_route()
        return context, record

    def _assign(self, context: ParseContext, owner: str, attribute: str, value: str) -> None:
        if owner == self._root_path:
            if attribute == "stop_name":
                context.stop_name = value
            return

        level = self._levels.get(owner)
        field_name = _ATTRIBUTE_FIELDS.get((level, attribute))
        if field_name is None:
            return

        if field_name not in _NUMERIC_FIELDS:
            setattr(context, field_name, value)
            return

        number = _parse_int(value)
        if field_name == "scheduled_arrival_epoch":
            context.scheduled_arrival_epoch = number
            if self.pass_name == SCHEDULE_PASS:
                context.arrival_epoch = number
        elif field_name == "predicted_arrival_epoch":
            # Never touches scheduled_arrival_epoch
            context.predicted_arrival_epoch = number
            context.arrival_epoch = number
        else:
            context.seconds_to_arrival = number


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        logger.debug(f"Ignoring non-numeric value {value!r}")
        return None
