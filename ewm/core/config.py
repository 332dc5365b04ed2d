import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ewm.db")

# Redis configuration (per-event locks and Celery broker)
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
EVENT_LOCK_TIMEOUT = int(os.getenv("EVENT_LOCK_TIMEOUT", "10"))
EVENT_LOCK_BLOCKING_TIMEOUT = int(os.getenv("EVENT_LOCK_BLOCKING_TIMEOUT", "5"))

# Statistics collector
STATS_SERVER_URL = os.getenv("STATS_SERVER_URL", "http://localhost:9090")
STATS_TIMEOUT_SECONDS = float(os.getenv("STATS_TIMEOUT_SECONDS", "2.0"))

# Name this service reports to the statistics collector
APP_NAME = os.getenv("APP_NAME", "ewm-main-service")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_redis_url():
    return REDIS_URL
