"""
Linear acceleration integration for inertial dead reckoning.
"""

import logging
import math
import numpy as np
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..math.constants import *
from ..math.utils import rotation_matrix, all_finite
from ..tracking.state import HeadingState, MotionState, Path, Point2D

logger = logging.getLogger(__name__)


@dataclass
class MotionSample:
    """Raw device motion event."""

    # Linear acceleration, gravity removed, device frame (m/s²)
    accel_x: float
    accel_y: float

    # Monotonic timestamp (milliseconds)
    timestamp: float

    # Display-only readouts
    accel_including_gravity: Optional[Tuple[float, float, float]] = None
    rotation_rate: Optional[Tuple[float, float, float]] = None  # rad/s

    @property
    def is_valid(self) -> bool:
        """Check that acceleration and timestamp are finite numbers."""
        return all_finite(self.accel_x, self.accel_y, self.timestamp)

    @property
    def acceleration(self) -> np.ndarray:
        """Get linear acceleration as numpy array."""
        return np.array([self.accel_x, self.accel_y], dtype=float)


class MotionIntegrator:
    """
    Double-integrates device acceleration into a world-frame trajectory.

    Per accepted sample: stationary detection with bias learning,
    bias removal and deadzone, rotation into the world frame by the
    current heading, damped velocity integration and semi-implicit
    Euler position integration.
    """

    def __init__(self, params: Optional[Dict[str, float]] = None):
        """
        Initialize motion integrator.

        Args:
            params: Optional overrides (stationary_threshold_ms2,
                stationary_samples, bias_weight, deadzone_ms2, damping,
                min_delta_time_s)
        """
        params = params or {}

        self.stationary_threshold = params.get('stationary_threshold_ms2', STATIONARY_THRESHOLD_MS2)
        self.stationary_samples = int(params.get('stationary_samples', STATIONARY_SAMPLES_REQUIRED))
        self.bias_weight = params.get('bias_weight', BIAS_LEARNING_WEIGHT)
        self.deadzone = params.get('deadzone_ms2', ACCEL_DEADZONE_MS2)
        self.damping = params.get('damping', VELOCITY_DAMPING)
        self.min_dt = params.get('min_delta_time_s', MIN_DELTA_TIME_S)

        if self.stationary_threshold < 0 or self.deadzone < 0 or self.min_dt < 0:
            raise ValueError("Motion thresholds must be non-negative")
        if self.stationary_samples < 1:
            raise ValueError("At least one stationary sample is required")
        if not 0.0 <= self.bias_weight <= 1.0:
            raise ValueError(f"Bias weight must be in [0, 1], got {self.bias_weight}")
        if self.damping < 0:
            raise ValueError("Damping must be non-negative")

        self.state = MotionState()
        self.path = Path()

        # Statistics
        self.sample_count = 0
        self.integrated_count = 0
        self.rejected_count = 0
        self.dropped_count = 0

    @property
    def is_stationary(self) -> bool:
        return self.state.stationary_count >= self.stationary_samples

    def rebase(self):
        """Forget the timestamp baseline; the next sample only seeds it."""
        self.state.last_timestamp = None

    def reset(self):
        """
        Clear velocity, position and path.

        The acceleration bias and stationary count are sensor properties
        and are kept.
        """
        self.state.vx = 0.0
        self.state.vy = 0.0
        self.state.x = 0.0
        self.state.y = 0.0
        self.state.last_timestamp = None
        self.path.clear()

    def apply_deadzone(self, acceleration: np.ndarray) -> np.ndarray:
        """Zero every component whose magnitude is within the deadzone."""
        result = acceleration.copy()
        result[np.abs(result) <= self.deadzone] = 0.0
        return result

    @staticmethod
    def rotate_to_world(acceleration: np.ndarray, heading_deg: float) -> np.ndarray:
        """
        Rotate device-frame acceleration into the world frame.

        Args:
            acceleration: [ax, ay] in the device frame
            heading_deg: Heading in degrees

        Returns:
            [ax, ay] in the world frame
        """
        return rotation_matrix(-math.radians(heading_deg)) @ acceleration

    def update(self, sample: MotionSample, heading: HeadingState) -> MotionState:
        """
        Process one motion sample.

        The heading is read once before any integration so that a
        concurrent heading update cannot leak into this step.

        Args:
            sample: Raw motion sample
            heading: Most recently committed heading state

        Returns:
            Current motion state
        """
        if not sample.is_valid:
            self.dropped_count += 1
            return self.state

        heading_deg = heading.filtered_heading
        now = sample.timestamp
        last = self.state.last_timestamp

        if last is None:
            self.state.last_timestamp = now
            return self.state

        dt = (now - last) * MS_TO_S
        if dt <= 0 or dt < self.min_dt:
            # Duplicate or out-of-order delivery; never move the baseline back
            self.state.last_timestamp = max(last, now)
            self.rejected_count += 1
            return self.state

        raw = sample.acceleration
        bias = self.state.acceleration_bias

        with np.errstate(over='ignore', invalid='ignore'):
            magnitude = math.hypot(raw[0], raw[1])
            if magnitude < self.stationary_threshold:
                stationary_count = self.state.stationary_count + 1
            else:
                stationary_count = 0

            if stationary_count >= self.stationary_samples:
                new_bias = bias * (1 - self.bias_weight) + raw * self.bias_weight
                if not np.all(np.isfinite(new_bias)):
                    self.dropped_count += 1
                    return self.state

                self.state.bias_x, self.state.bias_y = float(new_bias[0]), float(new_bias[1])
                self.state.vx = 0.0
                self.state.vy = 0.0
                self.state.stationary_count = stationary_count
                self.state.last_timestamp = now
                self.sample_count += 1
                return self.state

            corrected = self.apply_deadzone(raw - bias)
            world = self.rotate_to_world(corrected, heading_deg)

            velocity = (self.state.velocity + world * dt) * math.exp(-self.damping * dt)
            position = self.state.position + velocity * dt

        if not (np.all(np.isfinite(velocity)) and np.all(np.isfinite(position))):
            logger.debug("Discarding motion sample at %.1f ms: non-finite integration result", now)
            self.dropped_count += 1
            return self.state

        self.state.vx, self.state.vy = float(velocity[0]), float(velocity[1])
        self.state.x, self.state.y = float(position[0]), float(position[1])
        self.state.stationary_count = stationary_count
        self.state.last_timestamp = now
        self.path.append(Point2D(self.state.x, self.state.y))

        self.sample_count += 1
        self.integrated_count += 1

        return self.state

    def get_statistics(self) -> dict:
        """Get integrator statistics."""
        return {
            'sample_count': self.sample_count,
            'integrated_count': self.integrated_count,
            'rejected_count': self.rejected_count,
            'dropped_count': self.dropped_count,
            'is_stationary': self.is_stationary,
            'path_length': len(self.path),
            'acceleration_bias': self.state.acceleration_bias.tolist()
        }
