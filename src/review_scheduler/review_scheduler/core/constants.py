"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from datetime import time

# Business window used by the scope countdown (local wall-clock).
COLLEGE_DAY_START = time(8, 45)
COLLEGE_DAY_END = time(16, 20)

# datetime.weekday(): Monday=0 ... Sunday=6
NON_WORKING_WEEKDAY = 6

FACULTY_TEAM_QUOTA = 4
DEFAULT_ACCESS_HOURS = 24
DEFAULT_NUMBER_OF_PHASES = 4

BATCH_CHUNK_SIZE = 50
BATCH_TRANSACTION_TIMEOUT_SECONDS = 30

SYSTEM_ASSIGNER = "SYSTEM_AUTO_REASSIGN"

# Label for an implicit absentee when no session covers the assignment time.
MISSED_DEADLINE_LABEL = "Missed Deadline"
