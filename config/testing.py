import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "review_scheduler_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = False

FACULTY_TEAM_QUOTA = 4
DEFAULT_ACCESS_HOURS = 24
BATCH_CHUNK_SIZE = 50
BATCH_TRANSACTION_TIMEOUT_SECONDS = 30
