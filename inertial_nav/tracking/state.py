"""
Estimator state representation for inertial dead reckoning.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional

from ..math.constants import HEADING_FILTER_ALPHA


class Point2D(NamedTuple):
    """Position in the local world frame (meters from session origin)."""
    x: float
    y: float


class LatLon(NamedTuple):
    """Geographic coordinate in decimal degrees."""
    latitude: float
    longitude: float


@dataclass
class HeadingState:
    """
    Heading estimate owned by the HeadingEstimator.

    - filtered_heading: Published heading in degrees, always in [0, 360)
    - last_value: Low-pass filter memory (None until the first sample)
    - alpha: Exponential smoothing coefficient in (0, 1]
    """

    filtered_heading: float = 0.0
    last_value: Optional[float] = None
    alpha: float = HEADING_FILTER_ALPHA

    def copy(self) -> 'HeadingState':
        """Create a copy of the state."""
        return HeadingState(
            filtered_heading=self.filtered_heading,
            last_value=self.last_value,
            alpha=self.alpha
        )

    def __str__(self) -> str:
        return f"HeadingState(heading={self.filtered_heading:.1f}°)"


@dataclass
class MotionState:
    """
    Kinematic state owned by the MotionIntegrator.

    Velocity and position are in the world frame with the origin at
    session start. The acceleration bias and stationary count describe
    the sensor, not the trajectory, and survive a path reset.
    """

    # Velocity (m/s)
    vx: float = 0.0
    vy: float = 0.0

    # Position (meters)
    x: float = 0.0
    y: float = 0.0

    # Learned acceleration bias (m/s², device frame)
    bias_x: float = 0.0
    bias_y: float = 0.0

    stationary_count: int = 0
    last_timestamp: Optional[float] = None

    @property
    def velocity(self) -> np.ndarray:
        """Get velocity as [vx, vy] vector."""
        return np.array([self.vx, self.vy])

    @property
    def position(self) -> np.ndarray:
        """Get position as [x, y] vector."""
        return np.array([self.x, self.y])

    @property
    def acceleration_bias(self) -> np.ndarray:
        """Get acceleration bias as [bx, by] vector."""
        return np.array([self.bias_x, self.bias_y])

    @property
    def speed(self) -> float:
        """Get speed in m/s."""
        return float(np.hypot(self.vx, self.vy))

    def copy(self) -> 'MotionState':
        """Create a copy of the state."""
        return MotionState(
            vx=self.vx,
            vy=self.vy,
            x=self.x,
            y=self.y,
            bias_x=self.bias_x,
            bias_y=self.bias_y,
            stationary_count=self.stationary_count,
            last_timestamp=self.last_timestamp
        )

    def __str__(self) -> str:
        return (
            f"MotionState(pos=[{self.x:.2f}, {self.y:.2f}], "
            f"vel=[{self.vx:.2f}, {self.vy:.2f}], "
            f"bias=[{self.bias_x:.3f}, {self.bias_y:.3f}], "
            f"stationary={self.stationary_count})"
        )


@dataclass
class Path:
    """Append-only sequence of DR positions, starting at the origin."""

    points: List[Point2D] = field(default_factory=lambda: [Point2D(0.0, 0.0)])

    def append(self, point: Point2D):
        self.points.append(Point2D(float(point[0]), float(point[1])))

    def clear(self):
        """Drop the trajectory and re-seed it with the origin."""
        self.points = [Point2D(0.0, 0.0)]

    def as_array(self) -> np.ndarray:
        """Get path as an (n, 2) array of [x, y] rows."""
        return np.array(self.points, dtype=float).reshape(-1, 2)

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, index):
        return self.points[index]
