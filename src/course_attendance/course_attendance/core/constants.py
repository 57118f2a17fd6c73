"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

HOURS_PER_CHECK_IN = 1
DEFAULT_ATTENDANCE_LIMIT = 200
MAX_ATTENDANCE_LIMIT = 1000
MAX_LOCATION_LENGTH = 255
MAX_DEVICE_INFO_LENGTH = 255
