"""
Derived statistics for the dashboard.

Every function here is pure: it reads the given reviews (and visibility flags
where needed) and returns fresh models. Missing ratings count as 0.
"""

from typing import Dict, Iterable, List, Mapping, Optional

from review_dashboard.config import ISSUE_EXCERPT_LENGTH, ISSUE_RATING_THRESHOLD, ISSUE_SAMPLE_LIMIT
from review_dashboard.models import (
    ChannelPerformance,
    DashboardKpis,
    MonthlyTrend,
    PropertyPerformance,
    RatingBucket,
    Review,
    ReviewIssue,
)
from review_dashboard.engine.filters import HIGH_RATING
from review_dashboard.utils import format_one_decimal, parse_timestamp

POSITIVE_RATING = 8
NEGATIVE_RATING = 6
DEFAULT_ISSUE_CATEGORY = "General"

# (label, low, high, color); both ends inclusive
DISTRIBUTION_BUCKETS = [
    ("1-2", 1, 2, "#ef4444"),
    ("3-4", 3, 4, "#f97316"),
    ("5-6", 5, 6, "#eab308"),
    ("7-8", 7, 8, "#22c55e"),
    ("9-10", 9, 10, "#16a34a"),
]


def _rating(review: Review) -> float:
    return review.rating_overall or 0.0


def _is_public(review: Review, flags: Optional[Mapping[str, bool]]) -> bool:
    if flags is None:
        return review.public_display
    return bool(flags.get(review.id, False))


def _issue(review: Review) -> ReviewIssue:
    category = next(iter(review.ratings_by_category), DEFAULT_ISSUE_CATEGORY)
    return ReviewIssue(
        category=category,
        text=review.text[:ISSUE_EXCERPT_LENGTH] + "...",
        rating=review.rating_overall,
    )


def property_performance(reviews: Iterable[Review], flags: Optional[Mapping[str, bool]] = None) -> List[PropertyPerformance]:
    """Per-property counts, averages, public rate and low-rating issues.

    Meant to be fed the full collection, not a filtered view. ``flags`` is the
    current id -> public map; without it each review's own flag is used.
    """
    stats: Dict[str, PropertyPerformance] = {}
    for r in reviews:
        p = stats.get(r.property)
        if p is None:
            p = stats[r.property] = PropertyPerformance(property=r.property)
        rating = _rating(r)
        p.total += rating
        p.count += 1
        p.ratings.append(rating)
        if _is_public(r, flags):
            p.public_count += 1
        if rating < ISSUE_RATING_THRESHOLD:
            p.issue_count += 1
            if len(p.issues) < ISSUE_SAMPLE_LIMIT:
                p.issues.append(_issue(r))

    for p in stats.values():
        if p.count:
            p.avg_rating = format_one_decimal(p.total / p.count)
            p.public_rate = format_one_decimal(p.public_count / p.count * 100)
    return list(stats.values())


def monthly_trends(reviews: Iterable[Review]) -> List[MonthlyTrend]:
    """Group by calendar month of submission, in first-seen order."""
    acc: Dict[str, dict] = {}
    for r in reviews:
        submitted = parse_timestamp(r.submitted_at)
        if submitted is None:
            continue
        month = submitted.strftime("%b %Y")
        m = acc.setdefault(month, {"total": 0.0, "count": 0, "positive": 0, "negative": 0})
        rating = _rating(r)
        m["total"] += rating
        m["count"] += 1
        if rating >= POSITIVE_RATING:
            m["positive"] += 1
        if rating < NEGATIVE_RATING:
            m["negative"] += 1
    return [
        MonthlyTrend(
            month=month,
            avg=round(m["total"] / m["count"], 1) if m["count"] else 0.0,
            positive=m["positive"],
            negative=m["negative"],
            total=m["count"],
        )
        for month, m in acc.items()
    ]


def rating_distribution(reviews: Iterable[Review]) -> List[RatingBucket]:
    ratings = [r.rating_overall for r in reviews if r.rating_overall is not None]
    return [
        RatingBucket(rating=label, count=sum(1 for v in ratings if low <= v <= high), fill=fill)
        for label, low, high, fill in DISTRIBUTION_BUCKETS
    ]


def channel_performance(reviews: Iterable[Review]) -> List[ChannelPerformance]:
    acc: Dict[str, List[float]] = {}
    for r in reviews:
        if not r.channel:
            continue
        acc.setdefault(r.channel, []).append(_rating(r))
    return [
        ChannelPerformance(channel=channel, avg_rating=round(sum(vals) / len(vals), 1), count=len(vals))
        for channel, vals in acc.items()
    ]


def dashboard_kpis(filtered: List[Review], all_reviews: List[Review], flags: Optional[Mapping[str, bool]] = None) -> DashboardKpis:
    kpis = DashboardKpis(total_reviews=len(all_reviews), filtered_reviews=len(filtered))
    if all_reviews:
        kpis.filtered_share = round(len(filtered) / len(all_reviews) * 100)
    if filtered:
        kpis.avg_rating = format_one_decimal(sum(_rating(r) for r in filtered) / len(filtered))
        kpis.high_ratings = sum(1 for r in filtered if _rating(r) >= HIGH_RATING)
        kpis.public_count = sum(1 for r in filtered if _is_public(r, flags))
        kpis.public_rate = round(kpis.public_count / len(filtered) * 100)
    return kpis
