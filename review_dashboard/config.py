import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# Paths
PACKAGE_DATA_DIR = Path(__file__).resolve().parent / "data"
MOCK_REVIEWS_PATH = PACKAGE_DATA_DIR / "reviews.json"
REVIEWS_STORE_PATH = Path(os.getenv("REVIEWS_STORE_PATH", str(_PROJECT_ROOT / "data" / "reviews.json")))
OUTPUTS_DIR = Path(os.getenv("OUTPUTS_DIR", "outputs"))

# Hostaway
HOSTAWAY_ACCOUNT_ID = os.getenv("HOSTAWAY_ACCOUNT_ID", "61148").strip()
HOSTAWAY_API_URL = os.getenv(
    "HOSTAWAY_API_URL",
    f"https://api.hostaway.com/v1/reviews?accountId={HOSTAWAY_ACCOUNT_ID}",
).strip()
HOSTAWAY_API_KEY = os.getenv("HOSTAWAY_API_KEY", "").strip()
HOSTAWAY_TIMEOUT_SECONDS = float(os.getenv("HOSTAWAY_TIMEOUT_SECONDS", "10"))

# Dashboard client
DASHBOARD_API_BASE = os.getenv("DASHBOARD_API_BASE", "http://localhost:5000").rstrip("/")
DASHBOARD_TIMEOUT_SECONDS = float(os.getenv("DASHBOARD_TIMEOUT_SECONDS", "10"))

# Aggregation
ISSUE_RATING_THRESHOLD = 7
ISSUE_SAMPLE_LIMIT = 10
ISSUE_EXCERPT_LENGTH = 50
ALERT_ISSUE_COUNT = 2

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
