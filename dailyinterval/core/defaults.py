"""Shared default constants for the dailyinterval library."""

MINUTES_PER_DAY: int = 24 * 60

# Fraction of the remaining wait armed per timer cycle.
# Each cycle re-measures against the wall clock, so any single timer's
# drift costs at most (1 - rate) of the remaining wait.
DEFAULT_REARM_RATE: float = 0.9

# Longest single sleep armed per cycle. Matches asyncio's own select
# timeout ceiling (one day).
DEFAULT_MAX_DELAY_SECONDS: float = 86_400.0

# Shortest sleep armed per cycle, so the geometric approach to the
# fire instant terminates instead of spinning on sub-millisecond waits.
DEFAULT_MIN_DELAY_SECONDS: float = 0.01

# Upper bound on realign-and-advance rounds in the DST compensator.
# Only one seasonal shift is modeled per look-ahead window, so a
# healthy compensation finishes in at most two rounds.
MAX_COMPENSATION_STEPS: int = 8
