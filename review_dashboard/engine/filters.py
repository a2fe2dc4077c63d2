from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from dateutil.relativedelta import relativedelta

from review_dashboard.models import FilterCriteria, Facets, Review
from review_dashboard.utils import parse_timestamp, utc_now

HIGH_RATING = 8
MEDIUM_RATING = 5

# how far back each date-range bucket reaches; months are calendar months
DATE_RANGE_DELTAS = {
    "week": timedelta(days=7),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
}


def rating_bucket(rating) -> str:
    """Return ``high``, ``medium`` or ``low``; anything not high or medium is low."""
    if rating is not None and rating >= HIGH_RATING:
        return "high"
    if rating is not None and MEDIUM_RATING <= rating < HIGH_RATING:
        return "medium"
    return "low"


def matches_search(review: Review, search: str) -> bool:
    if not search:
        return True
    needle = search.lower()
    return (
        needle in review.property.lower()
        or needle in review.reviewer.lower()
        or needle in review.text.lower()
    )


def matches_rating(review: Review, bucket: Optional[str]) -> bool:
    if not bucket:
        return True
    return rating_bucket(review.rating_overall) == bucket


def matches_category(review: Review, category: Optional[str]) -> bool:
    # presence only: a falsy sub-rating still counts
    if not category:
        return True
    return category in review.ratings_by_category


def _reference_time(now: Optional[datetime]) -> datetime:
    # timestamps are compared as naive UTC, so "now" must be too
    return parse_timestamp(now) if now else utc_now()


def date_range_start(date_range: str, now: datetime) -> Optional[datetime]:
    delta = DATE_RANGE_DELTAS.get(date_range)
    if delta is None:
        return None
    return now - delta


def matches_date_range(review: Review, date_range: str, now: Optional[datetime] = None) -> bool:
    if not date_range or date_range == "all":
        return True
    start = date_range_start(date_range, _reference_time(now))
    if start is None:
        return True
    submitted = parse_timestamp(review.submitted_at)
    if submitted is None:
        return False
    return submitted > start


def filter_reviews(reviews: Iterable[Review], criteria: FilterCriteria, now: Optional[datetime] = None) -> List[Review]:
    """AND of every active predicate; inactive criteria always match.

    Returns a new list, the input is left untouched.
    """
    now = _reference_time(now)
    return [
        r for r in reviews
        if matches_search(r, criteria.search)
        and (not criteria.property or r.property == criteria.property)
        and matches_rating(r, criteria.rating)
        and matches_category(r, criteria.category)
        and (not criteria.channel or r.channel == criteria.channel)
        and matches_date_range(r, criteria.date_range, now)
    ]


def has_active_filters(criteria: FilterCriteria) -> bool:
    return bool(
        criteria.search
        or criteria.property
        or criteria.rating
        or criteria.category
        or criteria.channel
        or criteria.date_range != "all"
    )


def facets(reviews: Iterable[Review]) -> Facets:
    """Distinct properties, categories and channels in first-seen order."""
    seen: Dict[str, dict] = {"properties": {}, "categories": {}, "channels": {}}
    for r in reviews:
        seen["properties"].setdefault(r.property, None)
        for key in r.ratings_by_category:
            seen["categories"].setdefault(key, None)
        if r.channel:
            seen["channels"].setdefault(r.channel, None)
    return Facets(**{k: list(v) for k, v in seen.items()})
