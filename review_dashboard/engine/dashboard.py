from datetime import datetime
from typing import List, Mapping, Optional

from review_dashboard.models import DashboardQuery, DashboardView, Review
from review_dashboard.engine.aggregates import (
    channel_performance,
    dashboard_kpis,
    monthly_trends,
    property_performance,
    rating_distribution,
)
from review_dashboard.engine.alerts import detect_alerts
from review_dashboard.engine.filters import facets, filter_reviews, has_active_filters
from review_dashboard.engine.sorting import sort_reviews


def build_dashboard(
    reviews: List[Review],
    query: Optional[DashboardQuery] = None,
    flags: Optional[Mapping[str, bool]] = None,
    now: Optional[datetime] = None,
) -> DashboardView:
    """
    Compute the whole dashboard for one query.

    Filtered/sorted reviews, monthly trends and the rating histogram follow
    the query; property and channel performance (and the alerts derived from
    them) always cover the full collection.
    """
    query = query or DashboardQuery()
    if flags is not None:
        reviews = [
            r.model_copy(update={"public_display": bool(flags.get(r.id, False))})
            for r in reviews
        ]
    visible = sort_reviews(filter_reviews(reviews, query.criteria, now), query.sort)
    performance = property_performance(reviews)
    return DashboardView(
        query=query,
        has_active_filters=has_active_filters(query.criteria),
        reviews=visible,
        facets=facets(reviews),
        kpis=dashboard_kpis(visible, reviews),
        property_performance=performance,
        monthly_trends=monthly_trends(visible),
        rating_distribution=rating_distribution(visible),
        channel_performance=channel_performance(reviews),
        alerts=detect_alerts(performance),
    )
