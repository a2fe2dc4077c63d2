"""
Tests for the dashboard session: optimistic visibility, selection, views.

The HTTP client is replaced with a MagicMock; no server is started.
"""

from datetime import datetime
from unittest.mock import MagicMock

import pytest
import requests

from review_dashboard.client import (
    BULK_UPDATE_ERROR,
    FAILED,
    FETCH_ERROR,
    SAVED,
    ApiError,
    DashboardSession,
    ReviewsApiClient,
    SelectionState,
    VisibilityMap,
)
from review_dashboard.models import ReviewEnvelope


def test_visibility_map_optimistic_update():
    persist = MagicMock()
    vis = VisibilityMap(persist, {"a": False})
    assert vis.set_visible("a", True) is True
    assert vis.get("a") is True
    assert vis.status("a") == SAVED
    persist.assert_called_once_with("a", True)


def test_failed_write_is_not_reverted():
    persist = MagicMock(side_effect=ApiError("500"))
    vis = VisibilityMap(persist, {"a": False})
    assert vis.set_visible("a", True) is False
    assert vis.get("a") is True
    assert vis.failed_ids() == ["a"]


def test_retry_failed_resends_current_value():
    persist = MagicMock(side_effect=[ApiError("500"), None])
    vis = VisibilityMap(persist, {})
    vis.set_visible("a", True)
    assert vis.retry_failed() == {"a": True}
    assert vis.failed_ids() == []
    assert persist.call_args_list[-1].args == ("a", True)


def test_bulk_partial_failure():
    def persist(rid, value):
        if rid == "b":
            raise ApiError("boom")

    vis = VisibilityMap(persist, {"a": False, "b": False, "c": False})
    results = vis.set_visible_bulk(["a", "b", "c"], True)
    assert results == {"a": True, "b": False, "c": True}
    assert vis.snapshot() == {"a": True, "b": True, "c": True}
    assert vis.status("b") == FAILED


def test_toggle_round_trip():
    vis = VisibilityMap(MagicMock(), {"a": True})
    for value in (False, True, True):
        vis.set_visible("a", value)
    assert vis.get("a") is True


def test_select_all_when_partially_selected():
    """3 of 5 selected: select-all picks all 5, toggling again clears."""
    filtered = ["1", "2", "3", "4", "5"]
    sel = SelectionState()
    for rid in ("1", "2", "3"):
        sel.toggle(rid, filtered)
    assert not sel.all_selected
    sel.toggle_all(filtered)
    assert sel.selected == set(filtered)
    sel.toggle_all(filtered)
    assert sel.selected == set()


def test_selecting_every_row_sets_all_selected():
    sel = SelectionState()
    for rid in ("1", "2"):
        sel.toggle(rid, ["1", "2"])
    assert sel.all_selected
    sel.toggle("2", ["1", "2"])
    assert not sel.all_selected


@pytest.fixture
def api(make_review):
    api = MagicMock(spec=ReviewsApiClient)
    reviews = [
        make_review(id="1", property="A", rating_overall=9, public_display=True, submitted_at="2021-01-10T00:00:00"),
        make_review(id="2", property="A", rating_overall=4, submitted_at="2021-01-05T00:00:00"),
        make_review(id="3", property="B", rating_overall=8, submitted_at="2020-06-01T00:00:00"),
    ]
    api.fetch_reviews.return_value = ReviewEnvelope(source="live", count=3, reviews=reviews)
    return api


@pytest.fixture
def session(api):
    s = DashboardSession(api, now=lambda: datetime(2021, 1, 15))
    assert s.load()
    return s


def test_load_failure_sets_banner():
    api = MagicMock(spec=ReviewsApiClient)
    api.fetch_reviews.side_effect = ApiError("down")
    s = DashboardSession(api)
    assert s.load() is False
    assert s.error == FETCH_ERROR
    assert s.reviews == []


def test_toggle_public_display_calls_api(session, api):
    session.toggle_public_display("2")
    api.set_public_display.assert_called_once_with("2", True)
    assert session.view().kpis.public_count == 2


def test_select_all_follows_filters(session):
    session.query.criteria.date_range = "month"
    session.toggle_select_all()
    assert session.selection.selected == {"1", "2"}


def test_bulk_failure_sets_generic_error(session, api):
    api.set_public_display.side_effect = ApiError("500")
    session.toggle_select_all()
    results = session.bulk_public_display(False)
    assert set(results) == {"1", "2", "3"}
    assert session.error == BULK_UPDATE_ERROR
    assert session.visibility.snapshot() == {"1": False, "2": False, "3": False}


def test_clear_filters_resets_query_and_selection(session):
    session.query.criteria.search = "x"
    session.toggle_select_review("1")
    session.clear_filters()
    assert not session.view().has_active_filters
    assert session.selection.selected == set()


def test_view_uses_local_flags(session):
    view = session.view()
    assert [r.id for r in view.reviews] == ["1", "2", "3"]
    perf = {p.property: p for p in view.property_performance}
    assert perf["A"].public_count == 1
    assert perf["A"].avg_rating == "6.5"


def test_api_client_raises_on_http_error():
    http = MagicMock()
    http.request.return_value = MagicMock(status_code=404, text="nope")
    client = ReviewsApiClient("http://test", session=http)
    with pytest.raises(ApiError):
        client.set_public_display("zzz", True)
    http.request.assert_called_once_with(
        "PATCH", "http://test/api/reviews/hostaway/zzz/public", timeout=client.timeout, json={"publicDisplay": True}
    )


def test_api_client_wraps_network_errors():
    http = MagicMock()
    http.request.side_effect = requests.ConnectionError("refused")
    with pytest.raises(ApiError):
        ReviewsApiClient("http://test", session=http).fetch_reviews()


def test_api_client_parses_envelope():
    http = MagicMock()
    http.request.return_value = MagicMock(status_code=200)
    http.request.return_value.json.return_value = {
        "status": "success", "source": "live", "count": 1,
        "reviews": [{"id": "7", "property": "P", "ratingOverall": 9, "publicDisplay": True}],
    }
    env = ReviewsApiClient("http://test", session=http).fetch_reviews()
    assert env.reviews[0].rating_overall == 9
    assert env.reviews[0].public_display is True


def test_select_all_after_query_change_selects_new_view(session):
    """A select-all made under a narrower filter does not count as "all" later."""
    session.query.criteria.date_range = "month"
    session.toggle_select_all()
    assert session.selection.selected == {"1", "2"}
    session.query.criteria.date_range = "all"
    session.toggle_select_all()
    assert session.selection.selected == {"1", "2", "3"}
    session.toggle_select_all()
    assert session.selection.selected == set()


def test_ids_outside_the_view_do_not_make_it_all_selected():
    sel = SelectionState()
    sel.toggle("x", ["x"])
    sel.toggle("a", ["a", "b"])
    assert not sel.all_selected
    sel.toggle_all(["a", "b"])
    assert sel.selected == {"a", "b"}
    assert sel.all_selected


def test_select_all_on_empty_view_selects_nothing():
    sel = SelectionState()
    sel.toggle("x", ["x"])
    sel.toggle_all([])
    assert sel.selected == set()
    assert not sel.all_selected


def test_non_json_success_body_is_api_error():
    http = MagicMock()
    http.request.return_value = MagicMock(status_code=200)
    http.request.return_value.json.side_effect = ValueError("Expecting value")
    client = ReviewsApiClient("http://test", session=http)
    with pytest.raises(ApiError):
        client.fetch_reviews()

    s = DashboardSession(client)
    assert s.load() is False
    assert s.error == FETCH_ERROR
