import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "review_scheduler_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

FACULTY_TEAM_QUOTA = int(os.getenv("FACULTY_TEAM_QUOTA", "4"))
DEFAULT_ACCESS_HOURS = float(os.getenv("DEFAULT_ACCESS_HOURS", "24"))
BATCH_CHUNK_SIZE = int(os.getenv("BATCH_CHUNK_SIZE", "50"))
BATCH_TRANSACTION_TIMEOUT_SECONDS = int(os.getenv("BATCH_TRANSACTION_TIMEOUT_SECONDS", "60"))
