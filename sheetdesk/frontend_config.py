import os

# API base used by the frontend. Can be overridden by setting API_URL env var.
API_BASE = os.getenv("API_URL", "http://localhost:3000")

# Collection prefix of the CSV file service.
RESOURCE_PATH = os.getenv("RESOURCE_PATH", "/csv-files")

# Seconds before a request to the service is abandoned. Empty or "0" disables it.
_timeout = os.getenv("REQUEST_TIMEOUT", "300")
REQUEST_TIMEOUT = float(_timeout) if _timeout and float(_timeout) > 0 else None

# Client-side upload constraints.
MAX_UPLOAD_SIZE = int(os.environ.get("MAX_UPLOAD_SIZE", 10 * 1024 * 1024))  # 10 MB default
ALLOWED_EXTENSIONS = (".csv",)

# Listing
PAGE_SIZE = int(os.getenv("PAGE_SIZE", 10))
MAX_RESOURCES = int(os.getenv("MAX_RESOURCES", 1000))
ALL_CATEGORIES = "all"

# Notifications stay visible this long before they expire.
NOTIFICATION_SECONDS = float(os.getenv("NOTIFICATION_SECONDS", 3))

# Upload progress: real transfer fills up to TRANSFER_CEILING, the synthetic
# ticker advances PROGRESS_TICK_STEP every PROGRESS_TICK_SECONDS toward it.
TRANSFER_CEILING = int(os.getenv("TRANSFER_CEILING", 85))
PROGRESS_TICK_STEP = int(os.getenv("PROGRESS_TICK_STEP", 2))
PROGRESS_TICK_SECONDS = float(os.getenv("PROGRESS_TICK_SECONDS", 0.2))
COMPLETION_DELAY_SECONDS = float(os.getenv("COMPLETION_DELAY_SECONDS", 0.5))

CATEGORY_LABELS = (
    "Field Research",
    "Performance Review",
    "Satisfaction Survey",
)

STATUS_LABELS = {
    "COMPLETED": "Completed",
    "PROCESSING": "Processing",
    "ERROR": "Error",
}

EDITABLE_STATUSES = ("PROCESSING", "COMPLETED")
