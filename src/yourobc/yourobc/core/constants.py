"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from decimal import Decimal

DEFAULT_LIST_LIMIT = 200

# Invoice numbering (YYMM####)
INVOICE_NUMBER_START = 13
INVOICE_NUMBER_INCREMENT = 13
INVOICE_SEQUENCE_DIGITS = 4

# Yearly counters (PREFIX-YYYY-000001)
COUNTER_SEQUENCE_DIGITS = 6
MAX_COUNTER_PREFIX_LENGTH = 10

# Invoices
DEFAULT_PAYMENT_TERMS_DAYS = 30
MAX_PAYMENT_TERMS_DAYS = 365
MAX_LINE_ITEMS = 100
MAX_COLLECTION_ATTEMPTS = 10
MAX_DUNNING_LEVEL = 3
DUNNING_FEES = {
    1: Decimal("5.00"),
    2: Decimal("10.00"),
    3: Decimal("25.00"),
}
LINE_TOTAL_TOLERANCE = Decimal("0.01")

# Vacations
ANNUAL_VACATION_DAYS = 25
MAX_CARRYOVER_DAYS = 5

# Sessions
SESSION_INACTIVITY_MINUTES = 15
SESSION_AUTO_LOGOUT_HOURS = 8

# KPIs
KPI_WARNING_THRESHOLD = Decimal("80")
KPI_CRITICAL_THRESHOLD = Decimal("50")

# Quotes
MIN_VALIDITY_PERIOD_DAYS = 1
MAX_VALIDITY_PERIOD_DAYS = 365
MAX_MARKUP_PERCENTAGE = Decimal("500")

# Exchange rates
MIN_EXCHANGE_RATE = Decimal("0.0001")
MAX_EXCHANGE_RATE = Decimal("10000")
DEFAULT_EXCHANGE_RATES = {
    ("EUR", "USD"): Decimal("1.1"),
    ("USD", "EUR"): Decimal("0.91"),
}

# Supporting
MAX_TITLE_LENGTH = 200
MAX_COMMENT_LENGTH = 5000
MAX_NOTIFICATION_MESSAGE_LENGTH = 1000
NOTIFICATION_RETENTION_DAYS = 90
