"""
Monitoring session lifecycle and serialized event dispatch.
"""

import logging
import math
import queue
import threading
from typing import Callable, List, Optional, Tuple

from ..sensors.orientation import OrientationSample, HeadingEstimator
from ..sensors.motion import MotionSample, MotionIntegrator
from ..sensors.geo import GeoFix, GeoreferencingCorrelator, GeolocationError
from ..math.utils import is_finite_number
from .state import HeadingState, MotionState, LatLon, Point2D

logger = logging.getLogger(__name__)


def _readout(values, convert) -> Optional[Tuple[float, ...]]:
    """Display readout; missing or non-numeric components read as 0."""
    try:
        components = tuple(values)
    except TypeError:
        return None
    return tuple(convert(v) if is_finite_number(v) else 0.0 for v in components)


class MonitoringSession:
    """
    Owns the estimators for one monitoring session.

    Orientation, motion and geolocation events are handed to the
    handle_* methods, which run to completion one at a time. While the
    session is stopped every event is ignored. Velocity, position and
    path survive stop/start; only reset() clears them.
    """

    SENSOR_STREAMS = ("motion", "orientation")
    PERMISSION_DENIED_MESSAGE = "Permission to access one or more sensors was denied."

    def __init__(self, heading_params=None, motion_params=None, geo_params=None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize session.

        Args:
            heading_params: HeadingEstimator overrides
            motion_params: MotionIntegrator overrides
            geo_params: GeoreferencingCorrelator overrides
            clock: Monotonic clock in seconds for the calibrating window
        """
        self.heading_estimator = HeadingEstimator(heading_params, clock)
        self.motion_integrator = MotionIntegrator(motion_params)
        self.correlator = GeoreferencingCorrelator(geo_params)

        self.is_monitoring = False
        self.error: Optional[str] = None
        self.gps_error: Optional[str] = None

        # Latest raw readouts for display
        self.accelerometer_reading: Optional[Tuple[float, float, float]] = None
        self.gyroscope_reading: Optional[Tuple[float, float, float]] = None

        self._projection_stale = True

    @classmethod
    def from_config(cls, config, clock: Optional[Callable[[], float]] = None) -> 'MonitoringSession':
        """Create a session from a Config."""
        return cls(
            heading_params=config.heading,
            motion_params=config.motion,
            geo_params=config.geo,
            clock=clock
        )

    def start(self, request_permission: Optional[Callable[[str], bool]] = None) -> bool:
        """
        Start monitoring.

        Args:
            request_permission: Called with each sensor stream name
                ("motion", "orientation"); returns True if access is granted.
                Access is assumed when no callback is given.

        Returns:
            True if the session is monitoring
        """
        self.error = None

        if self.is_monitoring:
            logger.info("Session already monitoring")
            return True

        self.motion_integrator.rebase()

        try:
            granted = True
            for stream in self.SENSOR_STREAMS:
                if request_permission is not None and not request_permission(stream):
                    granted = False
        except Exception as e:
            self.error = f"Error starting sensor monitoring: {e}"
            logger.exception("Permission request failed")
            return False

        if not granted:
            self.error = self.PERMISSION_DENIED_MESSAGE
            logger.warning(self.PERMISSION_DENIED_MESSAGE)
            return False

        self.is_monitoring = True
        logger.info("Monitoring session started")
        return True

    def stop(self):
        """Stop monitoring; events arriving afterwards are ignored."""
        if not self.is_monitoring:
            return

        self.is_monitoring = False
        self.motion_integrator.rebase()
        self.heading_estimator.calibration.cancel()
        logger.info("Monitoring session stopped")

    def reset(self):
        """Clear velocity, position and path; sensor bias is kept."""
        self.motion_integrator.reset()
        self._projection_stale = True
        logger.info("Path reset")

    def handle_orientation(self, sample: OrientationSample) -> HeadingState:
        """Orientation stream callback."""
        if self.is_monitoring:
            self.heading_estimator.update(sample)
        return self.heading_estimator.state

    def handle_motion(self, sample: MotionSample) -> MotionState:
        """Motion stream callback."""
        if not self.is_monitoring:
            return self.motion_integrator.state

        if sample.accel_including_gravity is not None:
            self.accelerometer_reading = _readout(sample.accel_including_gravity, float)
        if sample.rotation_rate is not None:
            self.gyroscope_reading = _readout(sample.rotation_rate, math.degrees)

        heading = self.heading_estimator.state.copy()
        path_length = len(self.motion_integrator.path)

        state = self.motion_integrator.update(sample, heading)

        if len(self.motion_integrator.path) != path_length:
            self._projection_stale = True
        return state

    def handle_fix(self, fix: GeoFix) -> List[LatLon]:
        """Geolocation stream callback."""
        if not self.is_monitoring:
            return self.correlator.ground_truth

        had_anchor = self.correlator.anchor is not None
        trace = self.correlator.ingest_ground_truth(fix)

        if fix.is_valid:
            self.gps_error = None
        if not had_anchor and self.correlator.anchor is not None:
            self._projection_stale = True
        return trace

    def handle_fix_error(self, code):
        """Geolocation stream error callback."""
        if not self.is_monitoring:
            return

        self.gps_error = GeolocationError.describe(code)
        logger.warning(self.gps_error)

    @property
    def heading_state(self) -> HeadingState:
        return self.heading_estimator.state

    @property
    def motion_state(self) -> MotionState:
        return self.motion_integrator.state

    @property
    def path(self) -> List[Point2D]:
        return list(self.motion_integrator.path)

    @property
    def projected_trace(self) -> List[LatLon]:
        """DR path projected onto the anchor fix, recomputed when stale."""
        if self._projection_stale:
            self.correlator.update_path(self.motion_integrator.path)
            self._projection_stale = False
        return list(self.correlator.projected)

    @property
    def ground_truth_trace(self) -> List[LatLon]:
        return list(self.correlator.ground_truth)

    @property
    def is_calibrating(self) -> bool:
        return self.heading_estimator.is_calibrating

    def status(self) -> dict:
        """Snapshot of the session for external collaborators."""
        motion = self.motion_state
        # Refresh projection before reading drift
        projected = self.projected_trace

        return {
            'is_monitoring': self.is_monitoring,
            'is_calibrating': self.is_calibrating,
            'heading': self.heading_state.filtered_heading,
            'velocity': {'vx': motion.vx, 'vy': motion.vy, 'speed': motion.speed},
            'position': {'x': motion.x, 'y': motion.y},
            'path_length': len(self.motion_integrator.path),
            'projected_length': len(projected),
            'ground_truth_length': len(self.correlator.ground_truth),
            'center': self.correlator.center,
            'drift_m': self.correlator.drift_m(),
            'error': self.error,
            'gps_error': self.gps_error
        }


_STOP = object()


class SerialDispatcher:
    """
    Serializes all three event streams through one queue.

    Producers on any thread submit events; a single worker thread hands
    them to the session in arrival order, so a heading update is always
    committed before the motion sample queued after it is integrated.
    """

    def __init__(self, session: MonitoringSession, maxsize: int = 0):
        self.session = session
        self._queue = queue.Queue(maxsize)
        self._lock = threading.Lock()
        self._accepting = False
        self._thread = None

        self._handlers = {
            'orientation': session.handle_orientation,
            'motion': session.handle_motion,
            'fix': session.handle_fix,
            'fix_error': session.handle_fix_error,
        }

        # Statistics
        self.dispatched_count = 0
        self.failed_count = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """
        Start the worker thread.

        A worker left draining by an earlier stop() is joined first so
        that only one thread ever consumes the queue.
        """
        with self._lock:
            if self._accepting:
                return
            if self._thread is not None and self._thread.is_alive():
                self._thread.join()
            self._accepting = True
            self._thread = threading.Thread(target=self._run, name="dr-dispatch", daemon=True)
            self._thread.start()

    def stop(self, timeout: float = 2.0):
        """
        Stop accepting events.

        Events already queued are still delivered before the worker exits.
        The worker may outlive the timeout; start() waits for it.
        """
        with self._lock:
            if not self._accepting:
                return
            self._accepting = False
            self._queue.put(_STOP)

        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def join(self):
        """Block until every queued event has been handled."""
        self._queue.join()

    def submit(self, kind: str, payload) -> bool:
        """
        Queue an event.

        Args:
            kind: One of 'orientation', 'motion', 'fix', 'fix_error'
            payload: Sample, fix or error code

        Returns:
            False if the dispatcher is not accepting events
        """
        if kind not in self._handlers:
            raise ValueError(f"Unknown event kind: {kind}")

        with self._lock:
            if not self._accepting:
                return False
            self._queue.put((kind, payload))
        return True

    def submit_orientation(self, sample: OrientationSample) -> bool:
        return self.submit('orientation', sample)

    def submit_motion(self, sample: MotionSample) -> bool:
        return self.submit('motion', sample)

    def submit_fix(self, fix: GeoFix) -> bool:
        return self.submit('fix', fix)

    def submit_fix_error(self, code) -> bool:
        return self.submit('fix_error', code)

    def _run(self):
        """Worker loop."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    break

                kind, payload = item
                try:
                    self._handlers[kind](payload)
                    self.dispatched_count += 1
                except Exception:
                    self.failed_count += 1
                    logger.exception("Dispatch of %s event failed", kind)
            finally:
                self._queue.task_done()
