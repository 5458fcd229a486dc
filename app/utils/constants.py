"""Common constants."""

# Job statuses
STATUS_RECEIVED = "Received"
STATUS_SENT_TO_SERVICE = "Sent to Service"
STATUS_IN_PROGRESS = "In Progress"
STATUS_WAITING_FOR_PARTS = "Waiting for Parts"
STATUS_READY = "Ready"
STATUS_DELIVERED = "Delivered"
STATUS_RETURN = "Return"
STATUS_PENDING = "Pending"

ITEM_STATUSES = [
    STATUS_RECEIVED,
    STATUS_SENT_TO_SERVICE,
    STATUS_IN_PROGRESS,
    STATUS_WAITING_FOR_PARTS,
    STATUS_READY,
    STATUS_DELIVERED,
    STATUS_RETURN,
    STATUS_PENDING,
]

DEFAULT_ITEM_STATUS = STATUS_RECEIVED

# Status groups (dashboard filter cards and cached counts)
STATUS_GROUP_IN_PROGRESS = "in-progress"
STATUS_GROUP_READY = "ready"
STATUS_GROUP_RETURNED = "returned"

STATUS_GROUPS = {
    STATUS_GROUP_IN_PROGRESS: [
        STATUS_RECEIVED,
        STATUS_IN_PROGRESS,
        STATUS_WAITING_FOR_PARTS,
        STATUS_SENT_TO_SERVICE,
    ],
    STATUS_GROUP_READY: [STATUS_READY, STATUS_DELIVERED],
    STATUS_GROUP_RETURNED: [STATUS_PENDING, STATUS_RETURN],
}

# Older clients send camelCase group names
STATUS_GROUP_ALIASES = {
    "inProgress": STATUS_GROUP_IN_PROGRESS,
    "in_progress": STATUS_GROUP_IN_PROGRESS,
}

# Keys used in the cached stats payload
STATS_KEYS = {
    STATUS_GROUP_IN_PROGRESS: "inProgress",
    STATUS_GROUP_READY: "ready",
    STATUS_GROUP_RETURNED: "returned",
}

# Sortable item fields
SORTABLE_FIELDS = ["createdAt", "customerName", "cost", "status"]
DEFAULT_SORT_FIELD = "createdAt"

# Phone numbers are stored as exactly ten digits
PHONE_NUMBER_PATTERN = r"[0-9]{10}"

# Cookies and headers
AUTH_COOKIE_NAME = "chip_auth"
CSRF_COOKIE_NAME = "chip_csrf"
CSRF_HEADER_NAME = "x-csrf-token"

# HTTP methods that never change state
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})

# Cache keys
STATS_CACHE_KEY = "items:stats"
LOGIN_ATTEMPTS_KEY_PREFIX = "login:attempts"

# Vision uploads
ALLOWED_IMAGE_MIME_TYPES = frozenset({"image/jpeg", "image/png", "image/webp", "image/gif"})
