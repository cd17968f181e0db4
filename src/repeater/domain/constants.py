"""Centralized constants for the repeater application.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Scheduling ----------
TARGET_RETENTION = 0.9
MIN_INTERVAL_DAYS = 1
MAX_INTERVAL_DAYS = 256
MIN_DIFFICULTY = 1.0
MAX_DIFFICULTY = 10.0
MIN_STABILITY = 0.001

# Seed values for a record that has never been reviewed. They are replaced
# by the initial FSRS values on the first rating.
DEFAULT_NEW_STABILITY = 2.3065
DEFAULT_NEW_DIFFICULTY = 5.0

# ---------- Reporting ----------
UPCOMING_WEEK_DAYS = 7
UPCOMING_MONTH_DAYS = 30

# ---------- Deck discovery ----------
MARKDOWN_SUFFIX = ".md"
FRONTMATTER_SKIP_KEY = "repeat"

# ---------- Drill presentation ----------
CLOZE_PLACEHOLDER_MIN = 3
