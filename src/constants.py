"""
Shared constants used across multiple modules.
Single source of truth for the artifact lifecycle progress plan.
"""

# Wire part type is "data-artifact-<kind>"
WIRE_PART_PREFIX = "data-artifact-"

# Progress plan: processing starts at 10%, the data pass spans 60%,
# analytics begin at 80%, complete is always 100%.
PROGRESS_PROCESSING_START = 0.1
PROGRESS_PROCESSING_SPAN = 0.6
PROGRESS_ANALYZING = 0.8
PROGRESS_COMPLETE = 1.0

# Analysis domains (cache keys in the invocation context)
DOMAINS = ("recovery", "sleep", "strain", "workout", "burn-rate")

TREND_LABELS = ("improving", "declining", "stable")
LOAD_TREND_LABELS = ("increasing", "decreasing", "stable")

MS_PER_HOUR = 1000 * 60 * 60
MS_PER_MINUTE = 1000 * 60
