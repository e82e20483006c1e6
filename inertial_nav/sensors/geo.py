"""
Georeferencing of the dead-reckoned path against satellite fixes.
"""

import logging
import numpy as np
import time
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..math.constants import DUPLICATE_FIX_RADIUS_M, METERS_PER_DEGREE
from ..math.utils import all_finite, haversine_distance, meters_per_degree
from ..tracking.state import LatLon

logger = logging.getLogger(__name__)


class GeolocationError:
    """Error codes reported by the host geolocation stream."""

    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3

    MESSAGES = {
        PERMISSION_DENIED: "User denied GPS access",
        POSITION_UNAVAILABLE: "Location unavailable",
        TIMEOUT: "Request timeout",
    }

    @classmethod
    def describe(cls, code) -> str:
        """Human readable message for an error code."""
        return "GPS error: " + cls.MESSAGES.get(code, "Unknown error")


@dataclass(frozen=True)
class GeoFix:
    """Ground-truth position fix from the satellite receiver."""

    # Position (decimal degrees)
    latitude: float
    longitude: float

    # Horizontal accuracy (meters)
    accuracy: Optional[float] = None

    # Timestamp (milliseconds)
    timestamp: Optional[float] = None

    def __post_init__(self):
        if self.timestamp is None:
            object.__setattr__(self, 'timestamp', time.time() * 1000.0)

    @property
    def is_valid(self) -> bool:
        """Check that the fix holds a finite, in-range position."""
        return (all_finite(self.latitude, self.longitude) and
                -90 <= self.latitude <= 90 and
                -180 <= self.longitude <= 180)

    @property
    def position(self) -> LatLon:
        return LatLon(self.latitude, self.longitude)


class GeoreferencingCorrelator:
    """
    Cross-references the DR path with ground-truth fixes.

    The first accepted fix anchors the local tangent plane: DR points
    (meters from the session origin) are projected onto geographic
    coordinates around it with a flat-Earth approximation, which holds
    for local-scale trajectories only. Ground-truth fixes are collected
    into a trace with near-duplicate suppression.
    """

    def __init__(self, params: Optional[Dict[str, float]] = None):
        """
        Initialize correlator.

        Args:
            params: Optional overrides (duplicate_radius_m)
        """
        params = params or {}

        self.duplicate_radius = params.get('duplicate_radius_m', DUPLICATE_FIX_RADIUS_M)
        if self.duplicate_radius < 0:
            raise ValueError("Duplicate radius must be non-negative")

        self.anchor: Optional[GeoFix] = None
        self.latest_fix: Optional[GeoFix] = None

        self.ground_truth: List[LatLon] = []
        self.projected: List[LatLon] = []

        # Statistics
        self.fix_count = 0
        self.duplicate_count = 0
        self.dropped_count = 0

    @staticmethod
    def project_path(path: Iterable[Tuple[float, float]],
                     anchor: Optional[GeoFix]) -> List[LatLon]:
        """
        Project local DR points onto geographic coordinates.

        Args:
            path: Sequence of (x, y) points in meters, x east and y north
            anchor: Fix used as the local origin

        Returns:
            Projected trace, empty if there is no anchor, fewer than two
            points, or the projection degenerates
        """
        if anchor is None or not anchor.is_valid:
            return []

        points = np.array(list(path), dtype=float).reshape(-1, 2)
        if len(points) < 2:
            return []

        meters_per_lat, meters_per_lon = meters_per_degree(anchor.latitude)

        with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
            lats = anchor.latitude + points[:, 1] / meters_per_lat
            lons = anchor.longitude + points[:, 0] / meters_per_lon

        if not (np.all(np.isfinite(lats)) and np.all(np.isfinite(lons))):
            return []

        return [LatLon(float(lat), float(lon)) for lat, lon in zip(lats, lons)]

    def distance_to_trace(self, fix: GeoFix) -> np.ndarray:
        """
        Flat-Earth distances from a fix to every stored ground-truth point.

        Each distance is scaled by the longitude factor at the stored
        point's latitude.
        """
        if not self.ground_truth:
            return np.empty(0)

        trace = np.array(self.ground_truth, dtype=float)
        dlat_m = (trace[:, 0] - fix.latitude) * METERS_PER_DEGREE
        dlon_m = (trace[:, 1] - fix.longitude) * METERS_PER_DEGREE * np.cos(np.radians(trace[:, 0]))
        return np.sqrt(dlat_m**2 + dlon_m**2)

    def ingest_ground_truth(self, fix: GeoFix) -> List[LatLon]:
        """
        Add a fix to the ground-truth trace.

        The first valid fix also becomes the projection anchor. A fix
        closer than the duplicate radius to any stored point is dropped.

        Args:
            fix: Ground-truth fix

        Returns:
            Ground-truth trace
        """
        if not fix.is_valid:
            self.dropped_count += 1
            return self.ground_truth

        self.fix_count += 1
        self.latest_fix = fix

        if self.anchor is None:
            self.anchor = fix
            logger.info("Georeference anchor set to: %.6f, %.6f", fix.latitude, fix.longitude)

        if np.any(self.distance_to_trace(fix) < self.duplicate_radius):
            self.duplicate_count += 1
            return self.ground_truth

        self.ground_truth.append(fix.position)
        return self.ground_truth

    def update_path(self, path: Iterable[Tuple[float, float]]) -> List[LatLon]:
        """Recompute the projected trace for a new path."""
        self.projected = self.project_path(path, self.anchor)
        return self.projected

    @property
    def center(self) -> Optional[LatLon]:
        """Latest fix position, used to center a map view."""
        if self.latest_fix is None:
            return None
        return self.latest_fix.position

    def bounds(self) -> Optional[Tuple[LatLon, LatLon]]:
        """
        Bounding box enclosing both traces.

        Returns:
            (south_west, north_east) corners, or None if both traces are empty
        """
        coords = self.projected + self.ground_truth
        if not coords:
            return None

        array = np.array(coords, dtype=float)
        south_west = LatLon(float(array[:, 0].min()), float(array[:, 1].min()))
        north_east = LatLon(float(array[:, 0].max()), float(array[:, 1].max()))
        return south_west, north_east

    def drift_m(self) -> Optional[float]:
        """
        Distance between the newest DR point and the newest ground-truth point.

        Returns:
            Great circle distance in meters, None if either trace is empty
        """
        if not self.projected or not self.ground_truth:
            return None

        dr = self.projected[-1]
        truth = self.ground_truth[-1]
        return haversine_distance(dr.latitude, dr.longitude, truth.latitude, truth.longitude)

    def get_statistics(self) -> dict:
        """Get correlator statistics."""
        anchor = None
        if self.anchor is not None:
            anchor = (self.anchor.latitude, self.anchor.longitude)

        return {
            'fix_count': self.fix_count,
            'duplicate_count': self.duplicate_count,
            'dropped_count': self.dropped_count,
            'anchor': anchor,
            'ground_truth_length': len(self.ground_truth),
            'projected_length': len(self.projected),
            'drift_m': self.drift_m()
        }
