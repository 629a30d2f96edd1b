import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "yourobc_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

INVOICE_NUMBER_PREFIX = ""
INVOICE_NUMBER_START = 13
INVOICE_NUMBER_INCREMENT = 13

KPI_WARNING_THRESHOLD = "80"
KPI_CRITICAL_THRESHOLD = "50"

SESSION_INACTIVITY_MINUTES = 15
