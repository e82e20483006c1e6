"""
Mathematical utilities for inertial dead reckoning.
"""

from .utils import (rotation_matrix, wrap_degrees, is_finite_number,
                    all_finite, meters_per_degree, haversine_distance)
from .constants import *

__all__ = ["rotation_matrix", "wrap_degrees", "is_finite_number", "all_finite",
           "meters_per_degree", "haversine_distance"]
