"""Named numerical tolerances shared by the intersection and shading code.

Every epsilon used by the hot path is defined here once. Taichi functions
capture these module-level floats as compile-time constants.
"""

import math

# Smallest ray parameter accepted as a hit. Exceeds single-precision machine
# epsilon (~1.19e-7) so a ray leaving a surface does not re-hit it at t ~ 0.
EPSILON_BIAS = 1e-6

# Offset applied along the surface normal when spawning shadow rays.
SHADOW_BIAS = 1e-4

# Tolerance for "is this direction unit length".
UNIT_LENGTH_TOLERANCE = 1e-3

# Squared length below which a vector is treated as zero by safe_normalize.
ZERO_LENGTH_SQUARED = 1e-12

# Component magnitude below which a vector is considered near zero.
NEAR_ZERO = 1e-8

# Distance below which a point light is considered coincident with the
# shaded point; irradiance is defined as zero there.
MIN_LIGHT_DISTANCE = 1e-6

# Largest finite single-precision value. NaN fails every comparison, so
# abs(x) <= FLOAT_MAX is a finiteness test that also rejects NaN.
FLOAT_MAX = 3.4028234e38

# Default ray range for primary and secondary rays.
T_MIN = EPSILON_BIAS
T_MAX = 1e30

# Camera field-of-view clamp in degrees.
MIN_FOV_DEGREES = 1.0
MAX_FOV_DEGREES = 179.0

# |forward . up| above this is treated as a degenerate (parallel) up hint.
PARALLEL_UP_THRESHOLD = 0.999

# Cook-Torrance parameter domain.
MIN_ROUGHNESS = 0.01
MAX_ROUGHNESS = 1.0
DIELECTRIC_F0 = 0.04

INV_PI = 1.0 / math.pi
