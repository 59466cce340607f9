"""
Configuration constants and environment setup.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# =============================================================================
# PATHS
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent
DB_PATH = Path(os.environ.get("CALENDAR_DB_PATH", PROJECT_ROOT / "data" / "db" / "calendar.db"))

# =============================================================================
# EVENT STORE CONFIGURATION
# =============================================================================

# "local" (SQLite blob per owner) or "firestore" (live-sync)
EVENT_BACKEND = os.environ.get("EVENT_BACKEND", "local").lower()
FIREBASE_PROJECT_ID = os.environ.get("FIREBASE_PROJECT_ID", "")

# Firestore layout: users/{uid}/events/{event_id}
USERS_COLLECTION = "users"
EVENTS_COLLECTION = "events"

# =============================================================================
# HOLIDAY SOURCES
# =============================================================================

HOLIDAY_API_BASE = os.environ.get(
    "HOLIDAY_API_BASE", "https://date.nager.at/api/v3/PublicHolidays"
)
HOLIDAY_COUNTRY_CODE = os.environ.get("HOLIDAY_COUNTRY_CODE", "IN")
HOLIDAY_REGION_CODE = os.environ.get("HOLIDAY_REGION_CODE", "IN-TN")
# Empty reads the festival table in-process; set to fetch another deployment's list
FESTIVALS_URL = os.environ.get("FESTIVALS_URL", "")
# Most recently used years kept in the merged holiday cache
HOLIDAY_CACHE_YEARS = int(os.environ.get("HOLIDAY_CACHE_YEARS", "6"))

# Ordered (substrings, icon); matched case-insensitively, first match wins
HOLIDAY_ICON_RULES = [
    (("diwali", "deepavali"), "\U0001fa94"),  # diya lamp
    (("pongal",), "\U0001f33e"),  # sheaf of rice
    (("independence",), "\U0001f1ee\U0001f1f3"),  # flag of India
    (("republic",), "\U0001f5f3\ufe0f"),  # ballot box
    (("new year",), "\U0001f389"),  # party popper
]
DEFAULT_HOLIDAY_ICON = "\U0001f4c5"  # calendar

# =============================================================================
# DISPLAY CONFIGURATION
# =============================================================================

WEEKDAY_HEADERS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
VIEW_MODES = ("month", "week", "day")

# =============================================================================
# API CONFIGURATION
# =============================================================================

CALENDAR_API_KEY = os.environ.get("CALENDAR_API_KEY", "")
API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
API_VERSION = "1.0.0"
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
