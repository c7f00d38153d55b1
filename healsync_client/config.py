"""Runtime settings for the HealSync client, read from the environment."""
import os

from dotenv import load_dotenv

load_dotenv()

BASE_URL = os.getenv("HEALSYNC_BASE_URL", "http://localhost:8080")
API_PREFIX = os.getenv("HEALSYNC_API_PREFIX", "/v1/healsync")
HTTP_TIMEOUT = float(os.getenv("HEALSYNC_HTTP_TIMEOUT", "15"))

# appointments are booked in fixed one-hour windows
SLOT_DURATION_MINUTES = int(os.getenv("HEALSYNC_SLOT_DURATION", "60"))
REDIRECT_DELAY = float(os.getenv("HEALSYNC_REDIRECT_DELAY", "2"))

STORE_PATH = os.getenv("HEALSYNC_STORE_PATH", "")
API_KEY = os.getenv("HEALSYNC_API_KEY", "")
LOG_LEVEL = os.getenv("HEALSYNC_LOG_LEVEL", "INFO")
