from typing import Iterable, List

from review_dashboard.config import ALERT_ISSUE_COUNT, ISSUE_RATING_THRESHOLD
from review_dashboard.models import Alert, PropertyPerformance


def detect_alerts(performance: Iterable[PropertyPerformance]) -> List[Alert]:
    """Warnings for low-average properties, alerts for repeated issues.

    Recomputed from scratch on each call; nothing is deduplicated.
    """
    alerts: List[Alert] = []
    for p in performance:
        if float(p.avg_rating) < ISSUE_RATING_THRESHOLD:
            alerts.append(Alert(
                type="warning",
                property=p.property,
                message=f"Low average rating ({p.avg_rating}/10)",
                priority="high",
            ))
        if p.issue_count > ALERT_ISSUE_COUNT:
            alerts.append(Alert(
                type="alert",
                property=p.property,
                message=f"{p.issue_count} reviews mention issues",
                priority="medium",
            ))
    return alerts
