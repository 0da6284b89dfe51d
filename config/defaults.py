"""Default configuration constants for the Team Workload Planner."""

# Member capacity defaults (used when a member record omits them)
DEFAULT_WORKING_HOURS_PER_DAY = 8.0
DEFAULT_WORKING_DAYS = frozenset({0, 1, 2, 3, 4})  # Mon-Fri, date.weekday() numbering

# Global calendar weekend (Saturday, Sunday)
WEEKEND_DAYS = frozenset({5, 6})

WEEKDAY_NAMES = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]

# Calendar granularity
CALENDAR_TYPES = ["day", "week", "month"]
DEFAULT_CALENDAR_TYPE = "month"

# Workload status bands (utilization %)
NORMAL_MAX_PCT = 75.0
FULLY_ALLOCATED_MAX_PCT = 100.0

# Overallocation severity: above this band the conflict is "high"
OVERALLOCATION_HIGH_PCT = 120.0

# Rebalancing
REBALANCE_STRATEGIES = ["even", "skills", "priority"]
DEFAULT_REBALANCE_STRATEGY = "even"
DEFAULT_MAX_UTILIZATION = 100.0
MAX_REBALANCE_ITERATIONS = 1000

# Hours below this are treated as zero when comparing floats
HOURS_EPSILON = 1e-9
