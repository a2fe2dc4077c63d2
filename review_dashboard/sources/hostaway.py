import logging
from typing import List, Dict, Optional, Any

import requests
from pydantic import ValidationError

from review_dashboard.models import Review
from review_dashboard.utils import parse_timestamp

log = logging.getLogger("hostaway")

RATING_MIN = 0.0
RATING_MAX = 10.0
DISPLAY_FLAG_KEYS = ("publicDisplay", "PublicDisplayStatus", "displayOnWebsite")


def _clamp_rating(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    if rating != rating:  # NaN
        return None
    return max(RATING_MIN, min(RATING_MAX, rating))


def _categories(raw: Any) -> Dict[str, Any]:
    """Flatten Hostaway's ``[{category, rating}]`` list into a mapping.

    Numeric sub-ratings are clamped like the overall rating; anything else is
    kept as-is so the key stays visible to category filters.
    """
    out: Dict[str, Any] = {}
    if isinstance(raw, dict):
        items = [{"category": k, "rating": v} for k, v in raw.items()]
    elif isinstance(raw, list):
        items = raw
    else:
        return out
    for it in items:
        if not isinstance(it, dict) or not it.get("category"):
            continue
        value = it.get("rating")
        clamped = _clamp_rating(value)
        out[str(it["category"])] = clamped if clamped is not None else value
    return out


def _text(value) -> str:
    return "" if value is None else str(value)


def display_flag(raw: Dict) -> bool:
    for key in DISPLAY_FLAG_KEYS:
        if key in raw and raw[key] is not None:
            return bool(raw[key])
    return False


def _submitted_at(raw: Dict) -> Optional[str]:
    value = raw.get("submittedAt") or raw.get("date") or raw.get("created")
    if value is None:
        return None
    dt = parse_timestamp(value)
    return dt.isoformat() if dt else str(value)


def normalize_hostaway(raw: Dict) -> Review:
    """Map one raw Hostaway review into the canonical ``Review``.

    Raises ``pydantic.ValidationError`` when the record has no usable id.
    """
    categories = _categories(raw.get("reviewCategory"))
    rating = _clamp_rating(raw.get("rating"))
    if rating is None:
        numeric = [v for v in categories.values() if isinstance(v, float)]
        if numeric:
            rating = round(sum(numeric) / len(numeric), 1)

    listing_id = raw.get("listingId")
    return Review(
        id=str(raw.get("id")) if raw.get("id") is not None else None,
        property=_text(raw.get("listingName")),
        reviewer=_text(raw.get("guestName")),
        text=_text(raw.get("publicReview")),
        rating_overall=rating,
        ratings_by_category=categories,
        channel=_text(raw.get("channel")) or None,
        submitted_at=_submitted_at(raw),
        public_display=display_flag(raw),
        listing_id=str(listing_id) if listing_id is not None else None,
        review_type=raw.get("type"),
        status=raw.get("status"),
    )


def normalize_all(raw_reviews: List[Dict]) -> List[Review]:
    reviews: List[Review] = []
    for r in raw_reviews:
        if not isinstance(r, dict):
            log.warning(f"Skipping non-object review record: {r!r}")
            continue
        try:
            reviews.append(normalize_hostaway(r))
        except ValidationError as e:
            log.warning(f"Skipping invalid review: {e}; id={r.get('id')}")
    return reviews


def fetch_hostaway_reviews_api(api_url: str, token: str, timeout: float = 10) -> List[Dict]:
    """
    Calls the Hostaway reviews endpoint and returns the raw ``result`` array.
    Raises RuntimeError on any non-success response; network errors from
    requests propagate unchanged.
    """
    headers = {
        "Accept": "application/json",
        "Authorization": f"Bearer {token}",
        "User-Agent": "review-dashboard/0.1",
    }
    resp = requests.get(api_url, headers=headers, timeout=timeout)
    log.debug("Hostaway API GET %s | status=%s", resp.url, resp.status_code)
    if resp.status_code >= 400:
        raise RuntimeError(f"Hostaway API error {resp.status_code}: {resp.text[:300]}")
    try:
        data = resp.json()
    except ValueError as e:
        raise RuntimeError(f"Hostaway API returned non-JSON body: {e}") from e
    if not isinstance(data, dict) or data.get("status") != "success" or not isinstance(data.get("result"), list):
        raise RuntimeError(f"Invalid API response structure. Received status: {resp.status_code}")
    return data["result"]
