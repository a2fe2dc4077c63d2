from typing import Iterable, List

from review_dashboard.models import Review, SortSpec
from review_dashboard.utils import parse_timestamp

SORT_ATTRIBUTES = {
    "submittedAt": "submitted_at",
    "ratingOverall": "rating_overall",
    "property": "property",
    "reviewer": "reviewer",
    "channel": "channel",
}


def sort_key(review: Review, field: str):
    value = getattr(review, SORT_ATTRIBUTES[field])
    if field == "submittedAt":
        value = parse_timestamp(value)
    elif isinstance(value, str):
        value = value.lower()
    # missing values sort lowest; id breaks ties so equal keys keep a fixed order
    if value is None:
        return (0, 0, review.id)
    return (1, value, review.id)


def sort_reviews(reviews: Iterable[Review], sort: SortSpec) -> List[Review]:
    return sorted(reviews, key=lambda r: sort_key(r, sort.field), reverse=sort.order == "desc")
