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
DB_PATH = Path(
    os.environ.get("CALENDAR_PROXY_DB_PATH", PROJECT_ROOT / "data" / "db" / "calendar-proxy.db")
)

# =============================================================================
# GOOGLE OAUTH CREDENTIALS (from environment)
# =============================================================================

GOOGLE_CLIENT_ID = os.environ.get("GOOGLE_CLIENT_ID", "")
GOOGLE_CLIENT_SECRET = os.environ.get("GOOGLE_CLIENT_SECRET", "")
GOOGLE_REDIRECT_URI = os.environ.get("GOOGLE_REDIRECT_URI", "http://localhost:5173")

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_TOKEN_INFO_URL = "https://oauth2.googleapis.com/tokeninfo"
GOOGLE_CALENDAR_API_BASE_URL = "https://www.googleapis.com/calendar/v3"
GMAIL_API_BASE_URL = "https://gmail.googleapis.com/gmail/v1"

# Placeholder stored in place of a password for identities created via Google
OAUTH_PASSWORD_PLACEHOLDER = "GOOGLE_OAUTH"

# =============================================================================
# SESSION CONFIGURATION
# =============================================================================

JWT_SECRET = os.environ.get("JWT_SECRET", "")
JWT_ALGORITHM = "HS256"
SESSION_COOKIE_NAME = "authToken"
SESSION_TTL_SECONDS = 3600
SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "false").lower() == "true"

# =============================================================================
# PROVIDER CONFIGURATION
# =============================================================================

PROVIDER_TIMEOUT_SECONDS = float(os.environ.get("PROVIDER_TIMEOUT_SECONDS", "15"))
PROVIDER_READ_RETRIES = int(os.environ.get("PROVIDER_READ_RETRIES", "1"))
RETRY_AFTER_SECONDS = 5  # hint sent with retryable provider failures

CALENDAR_ID = "primary"
CALENDAR_WINDOW_PAST_DAYS = 30
CALENDAR_WINDOW_FUTURE_DAYS = 90
CALENDAR_MAX_RESULTS = 2500  # events.list page ceiling

GMAIL_EVENT_QUERY = "subject:(invite OR reservation OR flight OR meeting) -is:chat"
GMAIL_MAX_RESULTS = 500
GMAIL_IMPORT_LIMIT = int(os.environ.get("GMAIL_IMPORT_LIMIT", "50"))

# =============================================================================
# EXTRACTION CONFIGURATION
# =============================================================================

RELEVANCE_KEYWORDS = (
    "meeting",
    "schedule",
    "task",
    "reminder",
    "invite",
    "reservation",
    "flight",
)
DEFAULT_EVENT_DURATION_MINUTES = 60
DEFAULT_EVENT_HOUR = 9
DESCRIPTION_MAX_CHARS = 200
DEFAULT_TIME_ZONE = os.environ.get("DEFAULT_TIME_ZONE", "UTC")

GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-1.5-flash-8b")
GEMINI_GENERATION_CONFIG = {
    "temperature": 1,
    "top_p": 0.95,
    "top_k": 40,
    "max_output_tokens": 8192,
    "response_mime_type": "text/plain",
}

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "text" or "json"

# =============================================================================
# API CONFIGURATION
# =============================================================================

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8080"))
API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
API_VERSION = "1.0.0"
