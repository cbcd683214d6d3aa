"""Centralized constants for the mnemos scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ease ----------
STARTING_EASE = 2.5
MIN_EASE = 1.3
AGAIN_EASE_PENALTY = 0.2
HARD_EASE_PENALTY = 0.15
EASY_EASE_BONUS = 0.15

# ---------- Interval multipliers ----------
EASY_BONUS = 1.3
INTERVAL_MODIFIER = 1.0
HARD_INTERVAL_FACTOR = 1.2
LAPSE_INTERVAL_FACTOR = 0.1

# ---------- Seed intervals (days) ----------
GOOD_SEED_INTERVAL = 1.0
EASY_SEED_INTERVAL = 4.0

# ---------- Labels ----------
GRADUATED_THRESHOLD_DAYS = 21

# ---------- Due selection ----------
DEFAULT_DAILY_NEW_LIMIT = 50

# ---------- Forecast ----------
DEFAULT_FORECAST_HORIZON_DAYS = 7
TOMORROW_BUCKET_END = 1  # day offset
THREE_DAY_BUCKET_END = 3  # day offset

# ---------- Overdue penalty ----------
MIN_OVERDUE_PENALTY = 0.5
OVERDUE_PENALTY_DIVISOR = 10.0

SECONDS_PER_DAY = 86400.0
