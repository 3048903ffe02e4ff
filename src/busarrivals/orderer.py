"""Order a stop's arrivals and render them as display lines."""

import logging
from datetime import datetime, tzinfo
from typing import List, Mapping, NamedTuple, Optional

from .models import ArrivalEntry

logger = logging.getLogger(__name__)

NO_ARRIVALS = "none"


class OrderedArrivals(NamedTuple):
    lines: List[str]
    skipped: int  # Entries left out for lack of an arrival time


def round_minutes(seconds: int) -> int:
    """Convert seconds to whole minutes, rounding halves away from zero."""
    minutes, remainder = divmod(abs(seconds), 60)
    if remainder >= 30:
        minutes += 1
    return -minutes if seconds < 0 else minutes


def format_clock(epoch: int, tz: Optional[tzinfo] = None) -> str:
    """Format an epoch as a 12-hour wall clock time, e.g. "5:07pm"."""
    moment = datetime.fromtimestamp(epoch, tz)
    hour = moment.hour % 12 or 12
    marker = "am" if moment.hour < 12 else "pm"
    return f"{hour}:{moment.minute:02d}{marker}"


def away_label(entry: ArrivalEntry, now_epoch: int) -> str:
    """Minutes until arrival; marked "(sched)" when there is no live countdown."""
    if entry.seconds_to_arrival is not None:
        return f"in {round_minutes(entry.seconds_to_arrival)} min"
    return f"in {round_minutes(entry.arrival_epoch - now_epoch)} min (sched)"


def late_label(entry: ArrivalEntry) -> str:
    """Predicted lateness against the timetable, "" if on time or unknown."""
    if not entry.predicted or entry.scheduled_arrival_epoch is None:
        return ""
    delta = round_minutes(entry.arrival_epoch - entry.scheduled_arrival_epoch)
    if delta > 0:
        return f"(late {delta})"
    if delta < 0:
        return f"(early {-delta})"
    return ""


class ArrivalOrderer:
    """Sorts ArrivalEntries soonest first and renders them."""

    def __init__(self, now_epoch: int, show_lateness: bool = False, tz: Optional[tzinfo] = None):
        """
        Args:
            now_epoch: Reference time for schedule-based countdowns.
            show_lateness: Append "(late N)"/"(early N)" to predicted trips.
            tz: Time zone for clock labels. Local time if None.
        """
        self.now_epoch = now_epoch
        self.show_lateness = show_lateness
        self.tz = tz

    def order(self, entries: Mapping[str, ArrivalEntry]) -> OrderedArrivals:
        """
        Order and render one stop's entries.

        Args:
            entries: trip_id -> ArrivalEntry in insertion order.

        Returns:
            OrderedArrivals with display lines (["none"] if nothing to show) and
            the number of entries dropped for a missing arrival time.
        """
        timed = [entry for entry in entries.values() if entry.arrival_epoch is not None]
        skipped = len(entries) - len(timed)
        if skipped:
            logger.debug(f"Skipping {skipped} entries without an arrival time")

        # sorted() is stable, so equal times keep insertion order
        timed = sorted(timed, key=lambda entry: entry.arrival_epoch)
        lines = [self.render(entry) for entry in timed]
        if not lines:
            lines = [NO_ARRIVALS]
        return OrderedArrivals(lines=lines, skipped=skipped)

    def render(self, entry: ArrivalEntry) -> str:
        parts = [format_clock(entry.arrival_epoch, self.tz), entry.route_name]
        if entry.head_sign:
            parts.append(entry.head_sign)
        parts.append(away_label(entry, self.now_epoch))
        line = "  ".join(parts)
        if self.show_lateness:
            late = late_label(entry)
            if late:
                line = f"{line} {late}"
        return line
