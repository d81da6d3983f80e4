"""
Field-device location classifier.

The decision logic is pure: ``classify`` maps (on shift, active job, speed)
to a tracking state and ``interval_for`` maps a state to its reporting
cadence. ``LocationTracker`` is the one controller per device that owns the
mutable bits ({state, last_fix, timer_handle, gps_error}) and applies the
decisions: it restarts its timer whenever the cadence changes, reports the
last known fix on every tick, and queues reports that fail to deliver.
Reports go out after the state lock is released.

States:
    off          not on shift and no active job; nothing is sampled or sent
    idle         on shift, no active job                     (60 s cadence)
    traveling    active job, speed > 0.556 m/s (2 km/h)      (15 s cadence)
    at_location  active job, slower or unknown speed         (60 s cadence)
"""
import enum
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, Optional, Protocol
from app.core.config import settings
from app.core.logging_config import get_logger

logger = get_logger("location_classifier")


class TrackerState(str, enum.Enum):
    OFF = "off"
    IDLE = "idle"
    TRAVELING = "traveling"
    AT_LOCATION = "at_location"


class ReportDeliveryError(Exception):
    """Raised by a reporter when a location report could not be delivered."""


@dataclass(frozen=True)
class Fix:
    latitude: float
    longitude: float
    accuracy: Optional[float] = None
    speed: Optional[float] = None  # m/s; None when the device cannot tell
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class GpsOptions:
    high_accuracy: bool = True
    timeout_seconds: float = settings.GPS_TIMEOUT_SECONDS
    maximum_age_seconds: float = settings.GPS_MAX_AGE_SECONDS


@dataclass(frozen=True)
class TrackerContext:
    on_shift: bool = False
    active_order_id: Optional[int] = None

    @property
    def has_active_job(self) -> bool:
        return self.active_order_id is not None


@dataclass(frozen=True)
class Decision:
    state: TrackerState
    interval: Optional[float]
    reschedule: bool


def classify(
    on_shift: bool,
    has_active_job: bool,
    speed: Optional[float],
    threshold: float = settings.TRAVELING_SPEED_THRESHOLD_MPS,
) -> TrackerState:
    if not on_shift and not has_active_job:
        return TrackerState.OFF
    if not has_active_job:
        return TrackerState.IDLE
    if speed is not None and speed > threshold:
        return TrackerState.TRAVELING
    return TrackerState.AT_LOCATION


def interval_for(state: TrackerState) -> Optional[float]:
    if state == TrackerState.OFF:
        return None
    if state == TrackerState.TRAVELING:
        return float(settings.TRAVELING_INTERVAL_SECONDS)
    return float(settings.STATIONARY_INTERVAL_SECONDS)


def next_decision(current_interval: Optional[float], context: TrackerContext, fix: Optional[Fix]) -> Decision:
    state = classify(context.on_shift, context.has_active_job, fix.speed if fix else None)
    interval = interval_for(state)
    return Decision(state=state, interval=interval, reschedule=interval != current_interval)


class Scheduler(Protocol):
    def schedule(self, delay: float, callback: Callable[[], None]) -> Any: ...

    def cancel(self, handle: Any) -> None: ...


class ThreadingScheduler:
    def schedule(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer

    def cancel(self, handle: threading.Timer) -> None:
        handle.cancel()


class FixSource(Protocol):
    def start(self, options: GpsOptions, on_fix: Callable[[Fix], None], on_error: Callable[[str], None]) -> None: ...

    def stop(self) -> None: ...


class LocationTracker:
    def __init__(
        self,
        reporter: Callable[[Dict[str, Any]], None],
        scheduler: Optional[Scheduler] = None,
        fix_source: Optional[FixSource] = None,
        gps_options: Optional[GpsOptions] = None,
        queue_size: int = settings.REPORT_QUEUE_MAX,
    ):
        self.reporter = reporter
        self.scheduler = scheduler or ThreadingScheduler()
        self.fix_source = fix_source
        self.gps_options = gps_options or GpsOptions()

        self.state = TrackerState.OFF
        self.interval: Optional[float] = None
        self.last_fix: Optional[Fix] = None
        self.timer_handle: Any = None
        self.gps_error: Optional[str] = None
        self.context = TrackerContext()
        # Oldest reports fall off once the cap is reached
        self.pending: Deque[Dict[str, Any]] = deque(maxlen=queue_size)
        self._lock = threading.RLock()
        self._send_lock = threading.Lock()
        self._timer_generation = 0

    # Inputs

    def set_context(self, on_shift: bool, active_order_id: Optional[int] = None) -> None:
        with self._lock:
            self.context = TrackerContext(on_shift=on_shift, active_order_id=active_order_id)
            self._evaluate()

    def on_fix(self, fix: Fix) -> None:
        with self._lock:
            self.last_fix = fix
            if self.gps_error:
                logger.info("GPS fix reacquired")
            self.gps_error = None
            self._evaluate()

    def on_fix_error(self, message: str) -> None:
        # Sticky until the next good fix; the fix source keeps retrying
        with self._lock:
            self.gps_error = message
            logger.warning(f"GPS acquisition failed: {message}")

    def stop(self) -> None:
        with self._lock:
            self.context = TrackerContext()
            self._evaluate()

    # Decisions

    def _evaluate(self) -> None:
        previous = self.state
        decision = next_decision(self.interval, self.context, self.last_fix)
        self.state = decision.state
        if previous != decision.state:
            logger.info(f"Tracking state {previous.value} -> {decision.state.value}")
            self._toggle_fix_source(previous, decision.state)
        if decision.reschedule:
            self._reschedule(decision.interval)

    def _toggle_fix_source(self, previous: TrackerState, current: TrackerState) -> None:
        if self.fix_source is None:
            return
        if previous == TrackerState.OFF:
            self.fix_source.start(self.gps_options, self.on_fix, self.on_fix_error)
        elif current == TrackerState.OFF:
            self.fix_source.stop()

    def _reschedule(self, interval: Optional[float]) -> None:
        if self.timer_handle is not None:
            self.scheduler.cancel(self.timer_handle)
            self.timer_handle = None
        self.interval = interval
        self._timer_generation += 1
        if interval is not None:
            self._start_timer(interval)

    def _start_timer(self, interval: float) -> None:
        generation = self._timer_generation
        self.timer_handle = self.scheduler.schedule(interval, lambda: self._on_timer(generation))

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            # A cancelled timer may still fire once; only the current one ticks
            if generation != self._timer_generation:
                return
            self.timer_handle = None
            self._evaluate()
            payload = self.build_payload()
            if self.timer_handle is None and self.interval is not None:
                self._start_timer(self.interval)
        self.deliver(payload)

    # Reporting

    def build_payload(self) -> Optional[Dict[str, Any]]:
        if self.state == TrackerState.OFF or self.last_fix is None:
            return None
        fix = self.last_fix
        return {
            "latitude": fix.latitude,
            "longitude": fix.longitude,
            "accuracy": fix.accuracy,
            "speed": fix.speed,
            "order_id": self.context.active_order_id,
            "tracking_status": self.state.value,
        }

    def report(self) -> bool:
        """Send the current classification; False when waiting for a fix or delivery failed."""
        with self._lock:
            payload = self.build_payload()
        return self.deliver(payload)

    def deliver(self, payload: Optional[Dict[str, Any]]) -> bool:
        # Runs without the state lock so a slow reporter never blocks GPS callbacks
        if payload is None:
            return False
        with self._send_lock:
            try:
                self.reporter(payload)
            except ReportDeliveryError as e:
                self.pending.append(payload)
                logger.warning(f"Location report queued ({len(self.pending)} pending): {e}")
                return False
            self._flush_pending_locked()
        return True

    def flush_pending(self) -> int:
        with self._send_lock:
            return self._flush_pending_locked()

    def _flush_pending_locked(self) -> int:
        sent = 0
        while self.pending:
            try:
                self.reporter(self.pending[0])
            except ReportDeliveryError as e:
                logger.warning(f"Flushing queued location reports stopped: {e}")
                break
            self.pending.popleft()
            sent += 1
        return sent
