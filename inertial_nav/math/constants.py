"""
Mathematical, geodetic and tuning constants for inertial dead reckoning.
"""

# Conversion factors
MS_TO_S = 1.0 / 1000.0

# Earth parameters
EARTH_RADIUS_M = 6371000.0      # Mean Earth radius in meters
METERS_PER_DEGREE = 111320.0    # Meters per degree of latitude (flat-Earth)

# Heading estimation
HEADING_FILTER_ALPHA = 0.2           # Exponential smoothing coefficient
TILT_COMPENSATION_THRESHOLD_DEG = 5.0
INTERFERENCE_THRESHOLD_DEG = 20.0    # Heading jump that raises "calibrating"
CALIBRATING_WINDOW_S = 2.0           # How long "calibrating" stays raised

# Motion integration
STATIONARY_THRESHOLD_MS2 = 0.12      # 2D magnitude below which a sample is still
STATIONARY_SAMPLES_REQUIRED = 6
BIAS_LEARNING_WEIGHT = 0.2           # Weight of the raw reading in bias update
ACCEL_DEADZONE_MS2 = 0.05
VELOCITY_DAMPING = 1.0               # 1/s
MIN_DELTA_TIME_S = 0.001

# Georeferencing
DUPLICATE_FIX_RADIUS_M = 0.5
