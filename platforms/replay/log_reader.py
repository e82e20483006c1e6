"""
Reader for recorded sensor event logs.

A log is a CSV file with one event per row, in arrival order:

    type,t_ms,ax,ay,alpha,beta,gamma,compass_heading,screen_rotation,lat,lon,accuracy,code

`type` is one of orientation, motion, fix or fix_error; columns not
used by an event type are left empty.
"""

import logging
import math
import os
from typing import Iterator, List, Tuple

import pandas as pd

from inertial_nav.sensors import OrientationSample, MotionSample, GeoFix

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "t_ms")


def _value(row, column):
    """Cell value, None for missing columns and empty cells."""
    if column not in row:
        return None
    value = row[column]
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return value


def _number(row, column):
    # Empty required cells become NaN so the estimators drop the sample
    value = _value(row, column)
    return float("nan") if value is None else float(value)


def parse_event(row) -> Tuple[str, object]:
    """
    Convert one log row into a (kind, payload) event.

    Returns:
        Event tuple, or None for unknown event types
    """
    kind = str(row["type"]).strip().lower()

    if kind == "orientation":
        compass = _value(row, "compass_heading")
        screen = _value(row, "screen_rotation")
        alpha = _value(row, "alpha")
        sample = OrientationSample.from_event(
            alpha=float(alpha) if alpha is not None else None,
            beta=_number(row, "beta"),
            gamma=_number(row, "gamma"),
            compass_heading=float(compass) if compass is not None else None,
            screen_rotation=float(screen) if screen is not None else None
        )
        return kind, sample

    if kind == "motion":
        return kind, MotionSample(
            accel_x=_number(row, "ax"),
            accel_y=_number(row, "ay"),
            timestamp=_number(row, "t_ms")
        )

    if kind == "fix":
        accuracy = _value(row, "accuracy")
        return kind, GeoFix(
            latitude=_number(row, "lat"),
            longitude=_number(row, "lon"),
            accuracy=float(accuracy) if accuracy is not None else None,
            timestamp=_number(row, "t_ms")
        )

    if kind == "fix_error":
        code = _value(row, "code")
        return kind, int(code) if code is not None else None

    return None


def read_event_log(path: str) -> List[Tuple[str, object]]:
    """
    Read a recorded event log.

    Args:
        path: CSV log file

    Returns:
        Events in file order

    Raises:
        FileNotFoundError: If the log does not exist
        ValueError: If required columns are missing
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Event log not found: {path}")

    frame = pd.read_csv(path)
    missing = [c for c in REQUIRED_COLUMNS if c not in frame.columns]
    if missing:
        raise ValueError(f"Event log {path} is missing columns: {', '.join(missing)}")

    return list(iter_events(frame))


def iter_events(frame: pd.DataFrame) -> Iterator[Tuple[str, object]]:
    """Yield events from a log data frame, skipping unknown types."""
    for index, row in frame.iterrows():
        event = parse_event(row)
        if event is None:
            logger.warning("Skipping row %d: unknown event type %r", index, row["type"])
            continue
        yield event
