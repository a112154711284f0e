"""
Constants for SmartMark.

These constants are used by various modules for sensible defaults.
Many are also available via the config system.
"""

# Remote table holding bookmark rows
BOOKMARKS_TABLE = "bookmarks"

# Notifications (in seconds)
NOTIFICATION_TIMEOUT = 3.0

# Change feed polling
DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_POLL_BATCH_SIZE = 100

# User-facing messages
MSG_REQUIRED = "Title and URL are required"
MSG_INVALID_URL = "Invalid URL format (e.g., https://google.com)"
MSG_ADDED = "Bookmark added!"
MSG_DELETED = "Bookmark deleted"
MSG_NOT_SIGNED_IN = "Not signed in. Run 'smartmark login EMAIL' first."
