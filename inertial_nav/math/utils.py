"""
Mathematical utility functions for inertial dead reckoning.
"""

import math
import numbers

import numpy as np

from .constants import EARTH_RADIUS_M, METERS_PER_DEGREE


def rotation_matrix(angle):
    """
    Create a 2D rotation matrix for the given angle.

    Args:
        angle (float): Angle in radians

    Returns:
        np.ndarray: 2x2 rotation matrix
    """
    cos_a = math.cos(angle)
    sin_a = math.sin(angle)

    return np.array([
        [cos_a, -sin_a],
        [sin_a,  cos_a]
    ])


def wrap_degrees(angle):
    """
    Wrap angle to [0, 360) range.

    Args:
        angle (float): Angle in degrees

    Returns:
        float: Wrapped angle in [0, 360)
    """
    wrapped = angle % 360.0
    # -1e-18 % 360.0 rounds to 360.0
    if wrapped >= 360.0:
        wrapped = 0.0
    return wrapped


def is_finite_number(value):
    """True for real, finite numbers (bools are not numbers here)."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return math.isfinite(value)


def all_finite(*values):
    """True if every value is a finite real number."""
    return all(is_finite_number(v) for v in values)


def meters_per_degree(latitude):
    """
    Flat-Earth scale factors at the given latitude.

    Args:
        latitude: Latitude in degrees

    Returns:
        (meters_per_lat_degree, meters_per_lon_degree)
    """
    return (METERS_PER_DEGREE,
            METERS_PER_DEGREE * math.cos(math.radians(latitude)))


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great circle distance between two points on Earth.

    Args:
        lat1, lon1: Latitude and longitude of first point (degrees)
        lat2, lon2: Latitude and longitude of second point (degrees)

    Returns:
        float: Distance in meters
    """
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.asin(math.sqrt(min(1.0, a)))

    return EARTH_RADIUS_M * c
