"""busarrivals - Upcoming bus arrivals from scheduled and realtime feeds."""

__version__ = "0.1.0"

from .models import ArrivalEntry, StopBlock, StopRequest, TripRecord
from .accumulator import ParseContext, TripAccumulator
from .route_filter import RouteDirectionFilter
from .merger import PassMerger
from .orderer import ArrivalOrderer
from .feed_client import FeedClient
from .stop_tracker import StopArrivalTracker

__all__ = [
    "StopArrivalTracker",
    "FeedClient",
    "TripAccumulator",
    "ParseContext",
    "RouteDirectionFilter",
    "PassMerger",
    "ArrivalOrderer",
    "TripRecord",
    "ArrivalEntry",
    "StopRequest",
    "StopBlock",
]
