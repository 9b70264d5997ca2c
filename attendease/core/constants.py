"""
Core application constants.

These values centralize literals shared across services and the API:
- Real-time room prefixes.
- Session time format.
- Push payload type tags.
"""

# Real-time room prefixes
ROOM_USER_PREFIX: str = "user:"
ROOM_BATCH_PREFIX: str = "batch:"
ROOM_ENROLLMENT_PREFIX: str = "enrollment:"

# Session start/end times are stored as zero-padded 24h strings
TIME_PATTERN: str = r"^([01]\d|2[0-3]):[0-5]\d$"

# Push notification data type for low attendance alerts
PUSH_TYPE_LOW_ATTENDANCE: str = "LOW_ATTENDANCE"
