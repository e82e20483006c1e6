"""
Estimator state and session lifecycle for inertial dead reckoning.
"""

from .state import HeadingState, MotionState, Path, Point2D, LatLon

__all__ = ["HeadingState", "MotionState", "Path", "Point2D", "LatLon"]
