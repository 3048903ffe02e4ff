"""Merge a stop's schedule and predictions passes by trip id."""

import logging
from typing import Dict, Iterable, Optional

from .models import ArrivalEntry, TripRecord

logger = logging.getLogger(__name__)


class PassMerger:
    """
    Combines schedule and prediction TripRecords into ArrivalEntries.

    Each merge builds a new mapping, so merging the same records twice gives
    equal results.
    """

    def merge(
        self,
        schedule_records: Iterable[TripRecord],
        prediction_records: Optional[Iterable[TripRecord]] = None,
    ) -> Dict[str, ArrivalEntry]:
        """
        Build the trip_id -> ArrivalEntry mapping for one stop.

        Args:
            schedule_records: Admitted records from the schedule pass.
            prediction_records: Admitted records from the predictions pass, or
                None if predictions were skipped or unavailable.

        Returns:
            Mapping in first-seen order; schedule trips come before trips only
            known to the predictions pass.
        """
        entries: Dict[str, ArrivalEntry] = {}

        for record in schedule_records:
            if record.trip_id in entries:
                logger.debug(f"Duplicate trip {record.trip_id} in schedule pass; keeping first")
                continue
            entries[record.trip_id] = ArrivalEntry(
                trip_id=record.trip_id,
                route_name=record.route_name,
                head_sign=record.head_sign,
                arrival_epoch=record.scheduled_arrival_epoch,
                scheduled_arrival_epoch=record.scheduled_arrival_epoch,
            )

        if prediction_records is None:
            return entries

        for record in prediction_records:
            entry = entries.get(record.trip_id)
            if entry is None:
                # Not in the timetable: no scheduled time to compare against
                entry = ArrivalEntry(
                    trip_id=record.trip_id,
                    route_name=record.route_name,
                    head_sign=record.head_sign,
                )
                entries[record.trip_id] = entry
            if record.predicted_arrival_epoch is not None:
                entry.arrival_epoch = record.predicted_arrival_epoch
                entry.predicted = True
            entry.seconds_to_arrival = record.seconds_to_arrival
            if not entry.head_sign:
                entry.head_sign = record.head_sign

        return entries
