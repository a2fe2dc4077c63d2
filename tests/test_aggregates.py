"""
Unit tests for dashboard aggregations and alert detection.
"""

from review_dashboard.config import ISSUE_SAMPLE_LIMIT
from review_dashboard.engine.aggregates import (
    channel_performance,
    dashboard_kpis,
    monthly_trends,
    property_performance,
    rating_distribution,
)
from review_dashboard.engine.alerts import detect_alerts
from review_dashboard.models import PropertyPerformance


def test_property_average_and_issue_count(make_review):
    """Ratings [9, 8, 5] average to 7.3 with one issue below 7."""
    reviews = [make_review(property="P", rating_overall=v) for v in (9, 8, 5)]
    [perf] = property_performance(reviews)
    assert perf.avg_rating == "7.3"
    assert perf.issue_count == 1
    assert perf.issues[0].rating == 5
    assert perf.ratings == [9, 8, 5]


def test_issue_excerpt_and_category(make_review):
    long_text = "x" * 80
    reviews = [
        make_review(property="P", rating_overall=4, text=long_text, ratings_by_category={"noise": 2, "value": 6}),
        make_review(property="P", rating_overall=3, text="short", ratings_by_category={}),
    ]
    [perf] = property_performance(reviews)
    assert perf.issues[0].text == "x" * 50 + "..."
    assert perf.issues[0].category == "noise"
    assert perf.issues[1].category == "General"


def test_issue_list_is_capped_but_counted(make_review):
    reviews = [make_review(property="P", rating_overall=2) for _ in range(ISSUE_SAMPLE_LIMIT + 3)]
    [perf] = property_performance(reviews)
    assert len(perf.issues) == ISSUE_SAMPLE_LIMIT
    assert perf.issue_count == ISSUE_SAMPLE_LIMIT + 3


def test_public_rate_uses_flags(make_review):
    reviews = [make_review(id=f"r{i}", property="P", public_display=False) for i in range(3)]
    [perf] = property_performance(reviews, {"r0": True, "r1": True})
    assert perf.public_count == 2
    assert perf.public_rate == "66.7"
    [own] = property_performance(reviews)
    assert own.public_rate == "0.0"


def test_missing_rating_counts_as_zero_issue(make_review):
    [perf] = property_performance([make_review(property="P", rating_overall=None)])
    assert perf.avg_rating == "0.0"
    assert perf.issue_count == 1


def test_rating_distribution_buckets(make_review):
    reviews = [make_review(rating_overall=v) for v in (9, 6, 3)]
    counts = {b.rating: b.count for b in rating_distribution(reviews)}
    assert counts == {"1-2": 0, "3-4": 1, "5-6": 1, "7-8": 0, "9-10": 1}


def test_rating_distribution_skips_gaps(make_review):
    """Buckets are integer ranges, so 8.5 lands in none of them."""
    counts = {b.rating: b.count for b in rating_distribution([make_review(rating_overall=8.5)])}
    assert sum(counts.values()) == 0


def test_monthly_trends(make_review):
    reviews = [
        make_review(rating_overall=9, submitted_at="2020-08-21T22:45:14"),
        make_review(rating_overall=4, submitted_at="2020-08-02T10:00:00"),
        make_review(rating_overall=7, submitted_at="2020-09-03T18:40:51"),
    ]
    trends = monthly_trends(reviews)
    assert [t.month for t in trends] == ["Aug 2020", "Sep 2020"]
    aug = trends[0]
    assert aug.avg == 6.5
    assert aug.positive == 1
    assert aug.negative == 1
    assert aug.total == 2
    assert trends[1].positive == 0 and trends[1].negative == 0


def test_channel_performance(make_review):
    reviews = [
        make_review(channel="Airbnb", rating_overall=9),
        make_review(channel="Airbnb", rating_overall=6),
        make_review(channel=None, rating_overall=1),
    ]
    [airbnb] = channel_performance(reviews)
    assert airbnb.channel == "Airbnb"
    assert airbnb.avg_rating == 7.5
    assert airbnb.count == 2


def test_empty_collection_is_all_zeros():
    assert property_performance([]) == []
    assert monthly_trends([]) == []
    assert channel_performance([]) == []
    assert [b.count for b in rating_distribution([])] == [0, 0, 0, 0, 0]
    kpis = dashboard_kpis([], [])
    assert kpis.avg_rating == "0.0"
    assert kpis.filtered_reviews == 0
    assert kpis.public_rate == 0
    assert kpis.filtered_share == 0


def test_kpis(make_review):
    all_reviews = [make_review(id=str(i), rating_overall=v, public_display=i == 0) for i, v in enumerate((9, 8, 4, 2))]
    filtered = all_reviews[:2]
    kpis = dashboard_kpis(filtered, all_reviews)
    assert kpis.avg_rating == "8.5"
    assert kpis.high_ratings == 2
    assert kpis.filtered_share == 50
    assert kpis.public_count == 1
    assert kpis.public_rate == 50


def test_detect_alerts():
    performance = [
        PropertyPerformance(property="Good", avg_rating="8.2", issue_count=1),
        PropertyPerformance(property="Weak", avg_rating="6.4", issue_count=3),
        PropertyPerformance(property="Busy", avg_rating="7.0", issue_count=3),
    ]
    alerts = detect_alerts(performance)
    assert [(a.property, a.type, a.priority) for a in alerts] == [
        ("Weak", "warning", "high"),
        ("Weak", "alert", "medium"),
        ("Busy", "alert", "medium"),
    ]
    assert alerts[1].message == "3 reviews mention issues"


def test_detect_alerts_is_not_deduplicated():
    performance = [PropertyPerformance(property="Weak", avg_rating="5.0", issue_count=0)]
    assert detect_alerts(performance) == detect_alerts(performance)
    assert len(detect_alerts(performance + performance)) == 2
