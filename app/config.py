import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cleanday.db")

# Firebase Configuration (ID token verification)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS - comma separated list of origins
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")

# Recurring bookings
# Default cap for generated occurrences (roughly one year of weekly cleanings)
RECURRENCE_MAX_OCCURRENCES = int(os.getenv("RECURRENCE_MAX_OCCURRENCES", "52"))
# Cap for the dedicated recurring series endpoint (two years of weekly cleanings)
RECURRENCE_SERIES_MAX_OCCURRENCES = int(os.getenv("RECURRENCE_SERIES_MAX_OCCURRENCES", "104"))
# End boundary used when a series has no explicit end date
RECURRENCE_DEFAULT_HORIZON_MONTHS = int(os.getenv("RECURRENCE_DEFAULT_HORIZON_MONTHS", "12"))
