"""Centralized constants for the mastery scheduler.

All magic numbers and configuration defaults live here so every layer
imports from a single source of truth.
"""

# ---------- Ratings ----------
RATING_MIN = 1
RATING_MAX = 10
DEFAULT_LAPSE_MAX = 2  # 1-2 = forgot
DEFAULT_HARD_MAX = 4  # 3-4 = hard
DEFAULT_GOOD_MAX = 6  # 5-6 = good, 7-10 = easy

# ---------- Forgetting curve ----------
DECAY = -0.5
FACTOR = 0.9 ** (1 / DECAY) - 1  # R(S, S) == 0.9
DEFAULT_DESIRED_RETENTION = 0.9

# ---------- Memory model ----------
MIN_STABILITY = 0.1  # days
DEFAULT_INITIAL_STABILITY = 0.4  # stability of a card before its first review
INITIAL_STABILITY_LAPSE = 0.4
INITIAL_STABILITY_HARD = 1.2
INITIAL_STABILITY_GOOD = 3.2
INITIAL_STABILITY_EASY = 8.0
EASY_RATING_BONUS = 0.1  # extra initial stability per rating step inside the easy band

DIFFICULTY_MIN = 1.0
DIFFICULTY_MAX = 10.0
DEFAULT_INITIAL_DIFFICULTY = 5.0
DIFFICULTY_STEP = 0.15
LAPSE_DIFFICULTY_PENALTY = 1.0
LAPSE_STABILITY_FACTOR = 0.36

STABILITY_GAIN = 2.0
DIFFICULTY_DAMPING = 0.5
SPACING_BONUS = 0.5

# ---------- Scheduling ----------
GRADUATION_STABILITY = 1.0  # days of stability needed to leave Learning
MASTERY_STABILITY = 21.0  # days; Review cards at or above this count as mastered
MIN_INTERVAL_DAYS = 1.0
MAX_INTERVAL_DAYS = 180.0
SECONDS_PER_DAY = 86400.0

# ---------- Queues ----------
DEFAULT_DUE_LIMIT = 50

# ---------- Error weighting ----------
HIGH_IMPACT_MULTIPLIER = 1.5
LOW_IMPACT_MULTIPLIER = 0.7

# (id, name, multiplier, description)
DEFAULT_ERROR_TYPES = [
    (1, "Conceptual Error", 1.5, "Misunderstood the underlying concept"),
    (2, "Terminology Error", 1.5, "Confused or misused a key term"),
    (3, "Logical Gap", 1.5, "Missing step in the reasoning"),
    (4, "Performance Error", 1.5, "Correct idea, wrong complexity"),
    (5, "Off-by-One Error", 1.0, None),
    (6, "Edge Case Error", 1.0, None),
    (7, "Careless Error", 1.0, None),
    (8, "Implementation Error", 1.0, None),
    (9, "Unoptimized", 0.7, None),
    (10, "Over Time Limit", 0.7, None),
]

# ---------- Storage ----------
DEFAULT_STORE_FILENAME = "cards.json"
