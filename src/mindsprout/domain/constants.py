"""Centralized constants for MindSprout.

All magic numbers and scheduling defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Time ----------
DAY_MS = 86_400_000

# ---------- Scheduler ----------
INITIAL_EASINESS = 2.5
EASINESS_FLOOR = 1.3
EXAM_EASINESS_CEILING = 1.8
EXAM_MULTIPLIER_CAP = 1.6
PASS_QUALITY = 2

# Fixed early steps (days) before multiplicative growth kicks in
FIRST_PASS_INTERVAL = 1
STANDARD_SECOND_INTERVAL = 4
EXAM_SECOND_INTERVAL = 2
EXAM_THIRD_INTERVAL = 4
LAPSE_INTERVAL = 1

# ---------- Decks / Sessions ----------
DEFAULT_SESSION_LIMIT = 20
DEFAULT_DECK_COLOR = "#6366f1"

# ---------- Stats ----------
STANDARD_MASTERY_THRESHOLD = 21
EXAM_MASTERY_THRESHOLD = 7
SPROUT_MAX_INTERVAL = 5  # exclusive
TREE_MAX_INTERVAL = 21  # exclusive
LEARNING_MAX_REPETITION = 4  # exclusive
LEECH_FAILURE_COUNT = 3
LEECH_EASINESS = 1.4
MAX_LEECHES = 5
WORKLOAD_DAYS = 7

# ---------- Bundles ----------
BUNDLE_VERSION = 1

# ---------- Cloze ----------
CLOZE_BLANK = "____"
CLOZE_SEPARATOR = ", "
