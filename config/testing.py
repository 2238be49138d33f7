import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "club_attendance_test"),
}

JWT_SECRET = "test-jwt-secret"
JWT_EXPIRE_MINUTES = 15
JWT_REFRESH_SECRET = "test-jwt-refresh-secret"
JWT_REFRESH_EXPIRE_DAYS = 7

LATE_GRACE_MINUTES = 15
BULK_MARK_WORKERS = 4

QR_TOKEN = "TEST_CHECKIN"

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
