"""Configuration constants for the answer-input engine."""

MIN_DIFFICULTY = 1
MAX_DIFFICULTY = 10
DEFAULT_DIFFICULTY = 5

# Answer matching
FUZZY_MATCH_THRESHOLD = 85    # Similarity percentage at which an answer counts as solved
WORD_MATCH_THRESHOLD = 85     # Similarity percentage for a single word to be valid
CHAR_PARTIAL_THRESHOLD = 0.5  # Near-miss score at which a character is "partial"
SIMILARITY_CACHE_SIZE = 256

# Progress estimation
PROGRESS_WORD_WEIGHT = 0.4
PROGRESS_CHAR_WEIGHT = 0.6
PROGRESS_FLOOR_TRIGGER = 0.10  # Base scores below this get the floor correction
PROGRESS_FLOOR_BONUS = 0.05
PROGRESS_FLOOR_CAP = 0.15

# Edit history
HISTORY_MAX_DEPTH = 50        # Snapshots kept per stack

# Debounce delays
VALIDATION_DEBOUNCE_MS = 150
HINT_DEBOUNCE_MS = 2000

# Content generation
CONTENT_TIMEOUT_SECONDS = 8.0
FALLBACK_CONFIDENCE = 0.5

# Pressure engine
PRESSURE_CHECK_INTERVAL_SECONDS = 2.0
PRESSURE_PROGRESS_DELTA = 0.05     # Progress movement that bypasses the throttle
TACTIC_DISPLAY_SECONDS = 10.0      # How long a fired tactic stays active
INTENSITY_TIME_WINDOW_SECONDS = 300  # Time factor reaches its cap after 5 minutes
INTENSITY_MAX_TIME_FACTOR = 2.0
RED_HERRING_HISTORY = 3            # Red herrings kept on screen
