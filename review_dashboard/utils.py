from dateutil import parser as dateparser
from datetime import datetime, timezone
from pathlib import Path
import re

from review_dashboard.config import OUTPUTS_DIR


def parse_timestamp(s):
    """Parse an ISO-ish timestamp into a naive UTC datetime, or None."""
    if not s:
        return None
    if isinstance(s, datetime):
        dt = s
    else:
        try:
            dt = dateparser.parse(str(s))
        except (ValueError, OverflowError):
            return None
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def safe_filename(s: str) -> str:
    return re.sub(r'[^A-Za-z0-9\-_\.]+', '_', s).strip('_')


def ensure_outputs_dir(base=None):
    p = Path(base) if base else OUTPUTS_DIR
    p.mkdir(parents=True, exist_ok=True)
    return p


def format_one_decimal(value: float) -> str:
    return f"{value:.1f}"


def to_stars(rating) -> int:
    # public page shows 0-10 ratings as 1-5 stars
    if rating is None:
        return 0
    return int(round((float(rating) / 10) * 5))
