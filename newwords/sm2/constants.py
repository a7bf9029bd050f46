"""
SM-2 Constants and Parameters

All configurable parameters for the SM-2 algorithm in one place.
"""

# ---- Quality Scale ----

QUALITY_MIN = 0          # Complete blackout
QUALITY_MAX = 5          # Perfect response
PASSING_QUALITY = 3      # Lowest quality that counts as a correct recall


# ---- Easiness Factor ----

DEFAULT_EASINESS_FACTOR = 2.5
MIN_EASINESS_FACTOR = 1.3


# ---- Interval Ramp (days) ----

FIRST_INTERVAL = 1       # After the first passing recall
SECOND_INTERVAL = 6      # After the second consecutive passing recall
FAILED_INTERVAL = 1      # Review again tomorrow after a failing recall
NEW_ITEM_INTERVAL = 0    # Never scheduled yet


# ---- Easiness Factor Update Weights ----
# ef' = ef + (EF_BASE_GAIN - (5 - q) * (EF_LINEAR + (5 - q) * EF_QUADRATIC))

EF_BASE_GAIN = 0.1
EF_LINEAR = 0.08
EF_QUADRATIC = 0.02
