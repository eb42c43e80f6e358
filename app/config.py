import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Falls back to a local SQLite file for development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./food_parcels.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# All calendar-day and weekday math is anchored here, independent of server locale.
# Not configurable from the environment on purpose.
LOCAL_TIMEZONE = "Europe/Stockholm"

# Identifier lengths (food parcels use 12-character IDs, other rows 8)
PARCEL_ID_LENGTH = 12
DEFAULT_ID_LENGTH = 8

# Settings key for the household parcel-count warning
PARCEL_WARNING_THRESHOLD_KEY = "parcel_warning_threshold"
