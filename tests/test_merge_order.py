"""Tests for filtering, merging and ordering a stop's arrivals."""

import random
import sys
import unittest
from datetime import timezone
from pathlib import Path

# Add src to path so we can import busarrivals
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from busarrivals.merger import PassMerger
from busarrivals.models import ArrivalEntry, TripRecord
from busarrivals.orderer import ArrivalOrderer, format_clock, late_label, round_minutes
from busarrivals.route_filter import RouteDirectionFilter, admit

UTC = timezone.utc


def scheduled(trip_id, epoch, route="78", direction="Inbound"):
    return TripRecord(
        route_id=route,
        route_name=route,
        direction=direction,
        trip_id=trip_id,
        scheduled_arrival_epoch=epoch,
    )


def predicted(trip_id, epoch, seconds, route="78", direction="Inbound", scheduled_epoch=None):
    return TripRecord(
        route_id=route,
        route_name=route,
        direction=direction,
        trip_id=trip_id,
        scheduled_arrival_epoch=scheduled_epoch,
        predicted_arrival_epoch=epoch,
        seconds_to_arrival=seconds,
    )


def run_stop(schedule, predictions=None, routes=("78",), direction="Inbound", now=700, show_lateness=False):
    route_filter = RouteDirectionFilter(routes, direction)
    schedule = list(route_filter.apply(schedule))
    if predictions is not None:
        predictions = list(route_filter.apply(predictions))
    entries = PassMerger().merge(schedule, predictions)
    return entries, ArrivalOrderer(now, show_lateness=show_lateness, tz=UTC).order(entries)


class TestRouteDirectionFilter(unittest.TestCase):
    """Test the route/direction predicate."""

    def test_admit(self):
        """Test that both route and direction must match."""
        self.assertTrue(admit(scheduled("T1", 1000), {"78"}, "Inbound"))
        self.assertFalse(admit(scheduled("T1", 1000, route="62"), {"78"}, "Inbound"))
        self.assertFalse(admit(scheduled("T1", 1000, direction="Outbound"), {"78"}, "Inbound"))

    def test_admission_independent_of_order(self):
        """Test that shuffling the records does not change which are admitted."""
        records = [
            scheduled("T1", 1000),
            scheduled("T2", 1000, route="62"),
            scheduled("T3", 1000, direction="Outbound"),
            scheduled("T4", 1000, route="1"),
        ]
        route_filter = RouteDirectionFilter({"78", "1"}, "Inbound")
        expected = {r.trip_id for r in route_filter.apply(records)}
        shuffled = list(records)
        random.Random(4).shuffle(shuffled)
        self.assertEqual({r.trip_id for r in route_filter.apply(shuffled)}, expected)
        self.assertEqual(expected, {"T1", "T4"})


class TestPassMerger(unittest.TestCase):
    """Test merging schedule and prediction passes."""

    def test_prediction_overrides_arrival_time(self):
        """Test that the predicted time wins and the scheduled one is kept."""
        entries = PassMerger().merge([scheduled("T1", 1000)], [predicted("T1", 1100, 300)])
        entry = entries["T1"]
        self.assertEqual(entry.arrival_epoch, 1100)
        self.assertEqual(entry.scheduled_arrival_epoch, 1000)
        self.assertEqual(entry.seconds_to_arrival, 300)
        self.assertTrue(entry.predicted)

    def test_schedule_only(self):
        """Test that skipping predictions keeps the scheduled time."""
        entry = PassMerger().merge([scheduled("T1", 1000)])["T1"]
        self.assertEqual(entry.arrival_epoch, 1000)
        self.assertIsNone(entry.seconds_to_arrival)
        self.assertFalse(entry.predicted)

    def test_distinct_trips_from_both_passes(self):
        """Test that each pass contributes its own trips."""
        entries = PassMerger().merge([scheduled("T1", 1000)], [predicted("T2", 1200, 500)])
        self.assertEqual(list(entries), ["T1", "T2"])
        self.assertIsNone(entries["T2"].scheduled_arrival_epoch)

    def test_unscheduled_prediction_ignores_its_own_scheduled_time(self):
        """Test that lateness only compares against the schedule pass."""
        entries = PassMerger().merge([], [predicted("T9", 1100, 300, scheduled_epoch=1000)])
        self.assertIsNone(entries["T9"].scheduled_arrival_epoch)

    def test_missing_prediction_time_keeps_schedule(self):
        """Test that an unparseable prediction does not erase the scheduled time."""
        entries = PassMerger().merge([scheduled("T1", 1000)], [predicted("T1", None, None)])
        self.assertEqual(entries["T1"].arrival_epoch, 1000)
        self.assertFalse(entries["T1"].predicted)

    def test_merge_is_idempotent(self):
        """Test that merging the same records twice gives equal mappings."""
        merger = PassMerger()
        schedule = [scheduled("T1", 1000), scheduled("T2", 1500)]
        predictions = [predicted("T1", 1100, 300)]
        self.assertEqual(merger.merge(schedule, predictions), merger.merge(schedule, predictions))


class TestArrivalOrderer(unittest.TestCase):
    """Test ordering and rendering."""

    def test_round_minutes(self):
        """Test rounding half away from zero."""
        self.assertEqual(round_minutes(0), 0)
        self.assertEqual(round_minutes(29), 0)
        self.assertEqual(round_minutes(30), 1)
        self.assertEqual(round_minutes(90), 2)
        self.assertEqual(round_minutes(100), 2)
        self.assertEqual(round_minutes(-30), -1)
        self.assertEqual(round_minutes(-29), 0)
        self.assertEqual(round_minutes(-90), -2)

    def test_format_clock(self):
        """Test 12-hour clock labels."""
        self.assertEqual(format_clock(1000, UTC), "12:16am")
        self.assertEqual(format_clock(13 * 3600 + 5 * 60, UTC), "1:05pm")
        self.assertEqual(format_clock(12 * 3600, UTC), "12:00pm")

    def test_stable_order_for_equal_times(self):
        """Test that ties keep insertion order."""
        entries, ordered = run_stop([scheduled("T1", 1000), scheduled("T2", 1000, route="62"), scheduled("T3", 900)],
                                    routes=("78", "62"))
        self.assertEqual(ordered.lines[0].split()[1], "78")
        self.assertEqual([line.split()[1] for line in ordered.lines], ["78", "78", "62"])
        self.assertTrue(ordered.lines[0].startswith("12:15am"))

    def test_entries_without_time_are_counted(self):
        """Test that untimed entries are left out and counted."""
        entries = {
            "T1": ArrivalEntry(trip_id="T1", route_name="78", arrival_epoch=1000, scheduled_arrival_epoch=1000),
            "T2": ArrivalEntry(trip_id="T2", route_name="78"),
        }
        ordered = ArrivalOrderer(700, tz=UTC).order(entries)
        self.assertEqual(len(ordered.lines), 1)
        self.assertEqual(ordered.skipped, 1)

    def test_head_sign_in_line(self):
        """Test that the destination is shown when known."""
        entries = {"T1": ArrivalEntry(trip_id="T1", route_name="78", head_sign="Harvard", arrival_epoch=1000)}
        ordered = ArrivalOrderer(700, tz=UTC).order(entries)
        self.assertEqual(ordered.lines, ["12:16am  78  Harvard  in 5 min (sched)"])

    def test_early_label(self):
        """Test early arrivals."""
        entry = ArrivalEntry(trip_id="T1", route_name="78", arrival_epoch=900, scheduled_arrival_epoch=1000,
                             seconds_to_arrival=200, predicted=True)
        self.assertEqual(late_label(entry), "(early 2)")

    def test_on_time_has_no_label(self):
        """Test that zero lateness renders nothing."""
        entry = ArrivalEntry(trip_id="T1", route_name="78", arrival_epoch=1020, scheduled_arrival_epoch=1000,
                             seconds_to_arrival=200, predicted=True)
        self.assertEqual(late_label(entry), "")

    def test_prediction_without_countdown_is_marked_sched(self):
        """Test the fallback when pre_away is missing."""
        _, ordered = run_stop([scheduled("T1", 1000)], [predicted("T1", 1300, None)])
        self.assertEqual(ordered.lines, ["12:21am  78  in 10 min (sched)"])

    def test_countdown_used_without_predicted_time(self):
        """Test that a valid pre_away is shown even when pre_dt did not parse."""
        record = TripRecord(route_id="78", route_name="78", direction="Inbound", trip_id="T1",
                            predicted_arrival_epoch=None, seconds_to_arrival=300)
        entries, ordered = run_stop([scheduled("T1", 1000)], [record], now=0, show_lateness=True)
        self.assertEqual(entries["T1"].arrival_epoch, 1000)
        self.assertEqual(ordered.lines, ["12:16am  78  in 5 min"])

    def test_order_is_idempotent(self):
        """Test that merging and ordering twice gives identical output."""
        schedule = [scheduled("T1", 2000), scheduled("T2", 1000)]
        predictions = [predicted("T1", 1900, 1200)]
        _, first = run_stop(schedule, predictions, show_lateness=True)
        _, second = run_stop(schedule, predictions, show_lateness=True)
        self.assertEqual(first, second)


class TestScenarios(unittest.TestCase):
    """End-to-end scenarios for one stop."""

    def test_schedule_only_trip(self):
        """Scenario: schedule-only trip is labelled (sched), no lateness."""
        entries, ordered = run_stop([scheduled("T1", 1000)], None, show_lateness=True)
        self.assertEqual(len(entries), 1)
        self.assertEqual(ordered.lines, ["12:16am  78  in 5 min (sched)"])

    def test_predicted_late_trip(self):
        """Scenario: prediction 100s behind schedule shows "(late 2)"."""
        entries, ordered = run_stop([scheduled("T1", 1000)], [predicted("T1", 1100, 300)], show_lateness=True)
        self.assertEqual(entries["T1"].arrival_epoch, 1100)
        self.assertEqual(ordered.lines, ["12:18am  78  in 5 min (late 2)"])

    def test_lateness_hidden_unless_requested(self):
        """Test that lateness only shows with show_lateness."""
        _, ordered = run_stop([scheduled("T1", 1000)], [predicted("T1", 1100, 300)])
        self.assertEqual(ordered.lines, ["12:18am  78  in 5 min"])

    def test_route_not_of_interest(self):
        """Scenario: a trip on another route leaves the stop empty."""
        entries, ordered = run_stop([scheduled("T1", 1000, route="62")])
        self.assertEqual(entries, {})
        self.assertEqual(ordered.lines, ["none"])
        self.assertEqual(ordered.skipped, 0)

    def test_soonest_first(self):
        """Scenario: later-listed earlier trip comes first."""
        _, ordered = run_stop([scheduled("T1", 2000), scheduled("T2", 1000)], now=0)
        self.assertEqual(ordered.lines, ["12:16am  78  in 17 min (sched)", "12:33am  78  in 33 min (sched)"])

    def test_prediction_only_trip(self):
        """Scenario: a trip only in the predictions pass still shows, without lateness."""
        entries, ordered = run_stop([], [predicted("T5", 1100, 300)], show_lateness=True)
        self.assertEqual(len(entries), 1)
        self.assertEqual(ordered.lines, ["12:18am  78  in 5 min"])

    def test_prediction_wins_regardless_of_schedule_time(self):
        """Test that the predicted time is used even when earlier than scheduled."""
        entries, _ = run_stop([scheduled("T1", 5000), scheduled("T2", 1000)], [predicted("T1", 900, 200)])
        self.assertEqual(entries["T1"].arrival_epoch, 900)
        self.assertEqual(entries["T2"].arrival_epoch, 1000)


if __name__ == "__main__":
    unittest.main()
