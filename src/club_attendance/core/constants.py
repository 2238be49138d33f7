"""Constants and defaults shared by services, controllers and settings."""

DEFAULT_LATE_GRACE_MINUTES = 15
DEFAULT_BULK_MARK_WORKERS = 8
DEFAULT_JWT_EXPIRE_MINUTES = 15
DEFAULT_JWT_REFRESH_EXPIRE_DAYS = 7

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100

DEFAULT_MAX_CAPACITY = 100
MAX_NOTES_LENGTH = 500
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000
MIN_PASSWORD_LENGTH = 6

DASHBOARD_OVERVIEW_DAYS = 30
DASHBOARD_RECENT_LIMIT = 5
DASHBOARD_UPCOMING_LIMIT = 3

API_PREFIX = "/api/v1"
