import pytest

from review_dashboard.models import Review
from review_dashboard.store import VisibilityStore


@pytest.fixture(autouse=True)
def no_live_api(monkeypatch):
    """Never reach the real Hostaway API unless a test passes its own key."""
    monkeypatch.setattr("review_dashboard.sources.fetcher.HOSTAWAY_API_KEY", "")


@pytest.fixture
def make_review():
    counter = {"n": 0}

    def _make(**kwargs):
        counter["n"] += 1
        data = {
            "id": str(counter["n"]),
            "property": "Shoreditch Heights",
            "reviewer": "Guest",
            "text": "Lovely stay",
            "rating_overall": 8.0,
            "ratings_by_category": {},
            "channel": "Airbnb",
            "submitted_at": "2020-08-21T22:45:14",
            "public_display": False,
        }
        data.update(kwargs)
        return Review(**data)

    return _make


@pytest.fixture
def store(tmp_path):
    """Store seeded from the packaged mock dataset, writing into tmp_path."""
    return VisibilityStore(tmp_path / "reviews.json")
