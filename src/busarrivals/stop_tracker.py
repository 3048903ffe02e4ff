"""Main stop arrivals tracker."""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import tzinfo
from typing import List, Optional, Sequence

from .accumulator import ParseContext, TripAccumulator
from .feed_client import FeedClient
from .feed_stream import iter_path_values
from .merger import PassMerger
from .models import PREDICTIONS_PASS, SCHEDULE_PASS, StopBlock, StopRequest
from .orderer import ArrivalOrderer
from .route_filter import RouteDirectionFilter

logger = logging.getLogger(__name__)


class StopArrivalTracker:
    """
    Produces upcoming arrivals for bus stops.

    For each stop this runs:
    - a schedule pass over the stop's timetable feed
    - a predictions pass over its realtime feed, unless skipped or unavailable
    - the merge of both passes by trip id, ordered soonest first
    """

    def __init__(self, client: FeedClient, tz: Optional[tzinfo] = None):
        """
        Initialize the tracker.

        Args:
            client: Feed client used for both passes.
            tz: Time zone for clock labels. Local time if None.
        """
        self.client = client
        self.tz = tz
        self.merger = PassMerger()

    def get_stop_block(self, request: StopRequest) -> StopBlock:
        """
        Get ordered arrivals for one stop.

        Args:
            request: Stop, routes, direction and display flags.

        Returns:
            StopBlock with display lines.

        Raises:
            FeedError: If the schedule feed cannot be fetched.
        """
        route_filter = RouteDirectionFilter(request.interest_routes, request.direction)

        schedule_text = self.client.fetch_schedule(request.stop_id, fixed_time=request.fixed_time)
        schedule_context = ParseContext()
        schedule_records = list(
            route_filter.apply(
                TripAccumulator(SCHEDULE_PASS).accumulate(iter_path_values(schedule_text), schedule_context)
            )
        )
        label = schedule_context.stop_name

        prediction_records = None
        if request.schedule_only or request.fixed_time is not None:
            logger.debug(f"Skipping predictions for stop {request.stop_id}")
        else:
            predictions_text = self.client.fetch_predictions(request.stop_id)
            if predictions_text is not None:
                predictions_context = ParseContext()
                prediction_records = list(
                    route_filter.apply(
                        TripAccumulator(PREDICTIONS_PASS).accumulate(
                            iter_path_values(predictions_text), predictions_context
                        )
                    )
                )
                label = label or predictions_context.stop_name

        entries = self.merger.merge(schedule_records, prediction_records)
        now_epoch = request.fixed_time if request.fixed_time is not None else request.now_epoch
        ordered = ArrivalOrderer(now_epoch, show_lateness=request.show_lateness, tz=self.tz).order(entries)
        if ordered.skipped:
            logger.warning(f"Stop {request.stop_id}: skipped {ordered.skipped} trips with no usable arrival time")

        return StopBlock(
            stop_id=request.stop_id,
            label=label or f"Stop {request.stop_id}",
            lines=ordered.lines,
            skipped=ordered.skipped,
            predictions_available=prediction_records is not None,
        )

    def get_stop_blocks(self, requests: Sequence[StopRequest], max_workers: int = 1) -> List[StopBlock]:
        """
        Get arrivals for several stops, in the order requested.

        Args:
            requests: One StopRequest per stop.
            max_workers: Stops fetched concurrently. 1 processes them in turn.

        Returns:
            StopBlocks in the same order as requests.
        """
        if max_workers <= 1 or len(requests) <= 1:
            return [self.get_stop_block(request) for request in requests]

        # Stops share no parse or merge state; map() keeps the input order
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self.get_stop_block, requests))
