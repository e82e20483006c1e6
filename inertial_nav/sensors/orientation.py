"""
Compass heading estimation from device orientation events.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..math.constants import *
from ..math.utils import wrap_degrees, all_finite, is_finite_number
from ..tracking.state import HeadingState

logger = logging.getLogger(__name__)


@dataclass
class OrientationSample:
    """Raw device orientation event."""

    # Euler angles (degrees)
    azimuth: float
    pitch: float
    roll: float

    # Platform hints
    compass_heading_present: bool = False
    screen_rotation: Optional[float] = None

    @classmethod
    def from_event(cls, alpha: Optional[float], beta: Optional[float],
                   gamma: Optional[float],
                   compass_heading: Optional[float] = None,
                   screen_rotation: Optional[float] = None) -> 'OrientationSample':
        """
        Build a sample from a host orientation event.

        Platforms that report a native compass heading may omit alpha;
        the compass heading then stands in for the azimuth.

        Args:
            alpha: Rotation about the vertical axis (degrees), may be None
            beta: Front-to-back tilt (degrees)
            gamma: Left-to-right tilt (degrees)
            compass_heading: Platform-native compass heading (degrees)
            screen_rotation: Screen orientation angle (degrees)
        """
        azimuth = alpha if alpha is not None else compass_heading
        return cls(
            azimuth=azimuth,
            pitch=beta,
            roll=gamma,
            compass_heading_present=compass_heading is not None,
            screen_rotation=screen_rotation
        )

    @property
    def is_valid(self) -> bool:
        """Check that all angles are finite numbers."""
        if not all_finite(self.azimuth, self.pitch, self.roll):
            return False
        if self.screen_rotation is not None and not is_finite_number(self.screen_rotation):
            return False
        return True


class CalibrationSignal:
    """
    Expiring "calibrating" flag.

    Raised on suspected magnetic interference and cleared automatically
    once the window has elapsed on the monotonic clock. Raising it again
    restarts the window.
    """

    def __init__(self, window_s: float = CALIBRATING_WINDOW_S,
                 clock: Optional[Callable[[], float]] = None):
        if window_s <= 0:
            raise ValueError("Calibrating window must be positive")
        self.window_s = window_s
        self.clock = clock or time.monotonic
        self._raised_at = None

    def trigger(self):
        self._raised_at = self.clock()

    def cancel(self):
        self._raised_at = None

    @property
    def active(self) -> bool:
        if self._raised_at is None:
            return False
        if self.clock() - self._raised_at >= self.window_s:
            self._raised_at = None
            return False
        return True

    @property
    def remaining(self) -> float:
        """Seconds until the flag clears (0 when inactive)."""
        if not self.active:
            return 0.0
        return self.window_s - (self.clock() - self._raised_at)


class HeadingEstimator:
    """
    Turns raw orientation samples into a stable compass heading.

    Each sample is tilt compensated, low-pass filtered, normalized for
    the reporting platform and compared against the previous heading to
    flag magnetic interference.
    """

    def __init__(self, params: Optional[Dict[str, float]] = None,
                 clock: Optional[Callable[[], float]] = None):
        """
        Initialize heading estimator.

        Args:
            params: Optional overrides (alpha, tilt_threshold_deg,
                interference_threshold_deg, calibrating_window_s)
            clock: Monotonic clock in seconds, used for the calibrating window
        """
        params = params or {}

        alpha = params.get('alpha', HEADING_FILTER_ALPHA)
        if not 0.0 < alpha <= 1.0:
            raise ValueError(f"Filter coefficient must be in (0, 1], got {alpha}")

        self.tilt_threshold = params.get('tilt_threshold_deg', TILT_COMPENSATION_THRESHOLD_DEG)
        self.interference_threshold = params.get('interference_threshold_deg',
                                                 INTERFERENCE_THRESHOLD_DEG)
        if self.tilt_threshold < 0 or self.interference_threshold < 0:
            raise ValueError("Heading thresholds must be non-negative")

        self.state = HeadingState(alpha=alpha)
        self.calibration = CalibrationSignal(
            params.get('calibrating_window_s', CALIBRATING_WINDOW_S), clock)

        # Statistics
        self.sample_count = 0
        self.dropped_count = 0
        self.interference_count = 0

    @property
    def heading(self) -> float:
        """Current filtered heading in degrees."""
        return self.state.filtered_heading

    @property
    def is_calibrating(self) -> bool:
        return self.calibration.active

    def tilt_compensate(self, azimuth: float, pitch: float, roll: float) -> float:
        """
        Correct a compass azimuth for device tilt.

        Near-level readings are returned unchanged because the
        projection amplifies noise there.

        Args:
            azimuth: Raw azimuth (degrees)
            pitch: Pitch (degrees)
            roll: Roll (degrees)

        Returns:
            Heading in degrees, [0, 360)
        """
        if abs(pitch) <= self.tilt_threshold and abs(roll) <= self.tilt_threshold:
            return wrap_degrees(azimuth)

        a = math.radians(azimuth)
        b = math.radians(pitch)
        g = math.radians(roll)

        heading = math.degrees(math.atan2(
            math.sin(g) * math.cos(b) * math.cos(a) + math.sin(b) * math.sin(a),
            math.cos(g) * math.cos(a)
        ))
        return wrap_degrees(heading)

    def low_pass(self, value: float):
        """
        Exponential smoothing of a heading value.

        Returns:
            (filtered value, new filter memory)
        """
        last = self.state.last_value
        if last is None:
            return value, value

        alpha = self.state.alpha
        filtered = alpha * value + (1 - alpha) * last
        return filtered, filtered

    @staticmethod
    def normalize_for_platform(heading: float, sample: OrientationSample) -> float:
        """Apply the compass inversion or the screen rotation offset."""
        if sample.compass_heading_present:
            return wrap_degrees(360.0 - heading)
        if sample.screen_rotation is not None:
            return wrap_degrees(heading + sample.screen_rotation)
        return wrap_degrees(heading)

    def update(self, sample: OrientationSample) -> HeadingState:
        """
        Process one orientation sample.

        Malformed samples and samples yielding non-finite intermediate
        values leave the state untouched.

        Args:
            sample: Raw orientation sample

        Returns:
            Current heading state
        """
        if not sample.is_valid:
            self.dropped_count += 1
            return self.state

        compensated = self.tilt_compensate(sample.azimuth, sample.pitch, sample.roll)
        filtered, memory = self.low_pass(compensated)
        heading = self.normalize_for_platform(filtered, sample)

        if not all_finite(compensated, memory, heading):
            self.dropped_count += 1
            return self.state

        previous = self.state.filtered_heading
        if abs(heading - previous) > self.interference_threshold:
            self.interference_count += 1
            self.calibration.trigger()
            logger.debug("Heading jump %.1f° -> %.1f°, possible magnetic interference",
                         previous, heading)

        self.state.last_value = memory
        self.state.filtered_heading = heading
        self.sample_count += 1

        return self.state

    def get_statistics(self) -> dict:
        """Get estimator statistics."""
        return {
            'sample_count': self.sample_count,
            'dropped_count': self.dropped_count,
            'interference_count': self.interference_count,
            'heading': self.state.filtered_heading,
            'is_calibrating': self.is_calibrating
        }
