import os

# Database
DATABASE_URL = os.environ.get(
    "DATABASE_URL",
    "postgresql://localhost:5432/tradingbot",
)

# Table holding one row per minted token
TOKEN_TABLE = os.environ.get("TOKEN_TABLE", "token_info")

# Create the token table and its indexes on startup if missing
ENSURE_SCHEMA = os.environ.get("ENSURE_SCHEMA", "true").lower() == "true"

# Pool sizing
DB_POOL_MIN_SIZE = int(os.environ.get("DB_POOL_MIN_SIZE", "1"))
DB_POOL_MAX_SIZE = int(os.environ.get("DB_POOL_MAX_SIZE", "20"))
DB_POOL_TIMEOUT = float(os.environ.get("DB_POOL_TIMEOUT", "10"))

# Level for the engine's structured loggers
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Analytics defaults
DEFAULT_WIN_PERCENT = float(os.environ.get("DEFAULT_WIN_PERCENT", "70"))

# How many member tokens a serialized group carries (0 = all)
MEMBER_SAMPLE_LIMIT = int(os.environ.get("MEMBER_SAMPLE_LIMIT", "5"))
