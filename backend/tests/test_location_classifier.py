import threading

import pytest

from app.services.location_classifier import (
    Fix,
    LocationTracker,
    ReportDeliveryError,
    TrackerContext,
    TrackerState,
    classify,
    interval_for,
    next_decision,
)


class FakeScheduler:
    def __init__(self):
        self.scheduled = []
        self.cancelled = []

    def schedule(self, delay, callback):
        handle = {"delay": delay, "callback": callback}
        self.scheduled.append(handle)
        return handle

    def cancel(self, handle):
        self.cancelled.append(handle)

    def fire_last(self):
        self.scheduled[-1]["callback"]()


class FakeFixSource:
    def __init__(self):
        self.started = 0
        self.stopped = 0
        self.options = None

    def start(self, options, on_fix, on_error):
        self.started += 1
        self.options = options

    def stop(self):
        self.stopped += 1


class FlakyReporter:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def __call__(self, payload):
        if self.fail:
            raise ReportDeliveryError("offline")
        self.sent.append(payload)


def fix(speed=None):
    return Fix(latitude=12.97, longitude=77.59, accuracy=8.0, speed=speed)


@pytest.mark.parametrize("on_shift,has_job,speed,expected", [
    (False, False, 5.0, TrackerState.OFF),
    (True, False, 5.0, TrackerState.IDLE),
    (True, True, 0.556, TrackerState.AT_LOCATION),
    (True, True, 0.6, TrackerState.TRAVELING),
    (True, True, None, TrackerState.AT_LOCATION),
    (False, True, 3.0, TrackerState.TRAVELING),
])
def test_classify(on_shift, has_job, speed, expected):
    assert classify(on_shift, has_job, speed) == expected


def test_intervals():
    assert interval_for(TrackerState.OFF) is None
    assert interval_for(TrackerState.TRAVELING) == 15.0
    assert interval_for(TrackerState.AT_LOCATION) == 60.0
    assert interval_for(TrackerState.IDLE) == 60.0


def test_next_decision_only_reschedules_on_cadence_change():
    context = TrackerContext(on_shift=True, active_order_id=3)
    assert next_decision(60.0, context, fix(0.1)).reschedule is False
    decision = next_decision(60.0, context, fix(2.0))
    assert decision.state == TrackerState.TRAVELING
    assert decision.interval == 15.0
    assert decision.reschedule is True


def test_starting_a_shift_starts_sampling_at_idle_cadence():
    scheduler, source = FakeScheduler(), FakeFixSource()
    tracker = LocationTracker(FlakyReporter(), scheduler=scheduler, fix_source=source)

    tracker.set_context(on_shift=True)

    assert tracker.state == TrackerState.IDLE
    assert source.started == 1
    assert source.options.high_accuracy is True
    assert [h["delay"] for h in scheduler.scheduled] == [60.0]


def test_speed_change_restarts_timer_at_new_cadence():
    scheduler = FakeScheduler()
    tracker = LocationTracker(FlakyReporter(), scheduler=scheduler)
    tracker.set_context(on_shift=True, active_order_id=7)
    first = tracker.timer_handle

    tracker.on_fix(fix(speed=2.0))

    assert tracker.state == TrackerState.TRAVELING
    assert scheduler.cancelled == [first]
    assert tracker.timer_handle["delay"] == 15.0

    tracker.on_fix(fix(speed=0.2))
    assert tracker.state == TrackerState.AT_LOCATION
    assert tracker.timer_handle["delay"] == 60.0


def test_same_cadence_keeps_the_running_timer():
    scheduler = FakeScheduler()
    tracker = LocationTracker(FlakyReporter(), scheduler=scheduler)
    tracker.set_context(on_shift=True)
    tracker.set_context(on_shift=True, active_order_id=1)
    assert tracker.state == TrackerState.AT_LOCATION
    assert len(scheduler.scheduled) == 1
    assert scheduler.cancelled == []


def test_tick_without_a_fix_sends_nothing_and_keeps_ticking():
    scheduler, reporter = FakeScheduler(), FlakyReporter()
    tracker = LocationTracker(reporter, scheduler=scheduler)
    tracker.set_context(on_shift=True)

    scheduler.fire_last()

    assert reporter.sent == []
    assert len(scheduler.scheduled) == 2
    assert tracker.timer_handle is scheduler.scheduled[-1]


def test_tick_reports_last_fix_with_classification():
    scheduler, reporter = FakeScheduler(), FlakyReporter()
    tracker = LocationTracker(reporter, scheduler=scheduler)
    tracker.set_context(on_shift=True, active_order_id=7)
    tracker.on_fix(fix(speed=0.1))

    scheduler.fire_last()

    assert reporter.sent == [{
        "latitude": 12.97,
        "longitude": 77.59,
        "accuracy": 8.0,
        "speed": 0.1,
        "order_id": 7,
        "tracking_status": "at_location",
    }]


def test_gps_error_is_sticky_until_next_fix():
    tracker = LocationTracker(FlakyReporter(), scheduler=FakeScheduler())
    tracker.set_context(on_shift=True)

    tracker.on_fix_error("timeout")
    assert tracker.gps_error == "timeout"
    assert tracker.state == TrackerState.IDLE

    tracker.on_fix(fix())
    assert tracker.gps_error is None


def test_failed_reports_are_queued_bounded_and_flushed():
    reporter = FlakyReporter(fail=True)
    tracker = LocationTracker(reporter, scheduler=FakeScheduler(), queue_size=3)
    tracker.set_context(on_shift=True)
    tracker.on_fix(fix())

    for _ in range(5):
        assert tracker.report() is False
    assert len(tracker.pending) == 3

    reporter.fail = False
    assert tracker.report() is True
    assert len(reporter.sent) == 4
    assert len(tracker.pending) == 0


def test_stop_cancels_timer_and_gps():
    scheduler, source = FakeScheduler(), FakeFixSource()
    tracker = LocationTracker(FlakyReporter(), scheduler=scheduler, fix_source=source)
    tracker.set_context(on_shift=True)
    handle = tracker.timer_handle

    tracker.stop()

    assert tracker.state == TrackerState.OFF
    assert tracker.timer_handle is None
    assert scheduler.cancelled == [handle]
    assert source.stopped == 1
    assert tracker.build_payload() is None


def test_cancelled_timer_firing_late_is_ignored():
    scheduler, reporter = FakeScheduler(), FlakyReporter()
    tracker = LocationTracker(reporter, scheduler=scheduler)
    tracker.set_context(on_shift=True, active_order_id=7)
    stale = scheduler.scheduled[0]
    tracker.on_fix(fix(speed=2.0))
    current = tracker.timer_handle

    stale["callback"]()

    assert scheduler.cancelled == [stale]
    assert [h["delay"] for h in scheduler.scheduled] == [60.0, 15.0]
    assert tracker.timer_handle is current
    assert reporter.sent == []

    scheduler.fire_last()
    assert [h["delay"] for h in scheduler.scheduled] == [60.0, 15.0, 15.0]
    assert len(reporter.sent) == 1


def test_tick_delivers_outside_the_tracker_lock():
    scheduler = FakeScheduler()
    blocked = []

    def reporter(payload):
        worker = threading.Thread(target=tracker.on_fix, args=(fix(speed=0.1),))
        worker.start()
        worker.join(timeout=2)
        blocked.append(worker.is_alive())

    tracker = LocationTracker(reporter, scheduler=scheduler)
    tracker.set_context(on_shift=True, active_order_id=7)
    tracker.on_fix(fix(speed=0.1))

    scheduler.fire_last()

    assert blocked == [False]
