import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "yourobc_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

# Invoice numbers: [prefix]YYMM#### where #### starts at START and grows by INCREMENT
INVOICE_NUMBER_PREFIX = os.getenv("INVOICE_NUMBER_PREFIX", "")
INVOICE_NUMBER_START = int(os.getenv("INVOICE_NUMBER_START", "13"))
INVOICE_NUMBER_INCREMENT = int(os.getenv("INVOICE_NUMBER_INCREMENT", "13"))

KPI_WARNING_THRESHOLD = os.getenv("KPI_WARNING_THRESHOLD", "80")
KPI_CRITICAL_THRESHOLD = os.getenv("KPI_CRITICAL_THRESHOLD", "50")

SESSION_INACTIVITY_MINUTES = int(os.getenv("SESSION_INACTIVITY_MINUTES", "15"))
