import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

import requests

from review_dashboard.config import DASHBOARD_API_BASE, DASHBOARD_TIMEOUT_SECONDS
from review_dashboard.engine.dashboard import build_dashboard
from review_dashboard.engine.filters import filter_reviews
from review_dashboard.engine.sorting import sort_reviews
from review_dashboard.models import DashboardQuery, DashboardView, Review, ReviewEnvelope
from review_dashboard.utils import utc_now

log = logging.getLogger("client")

FETCH_ERROR = "Failed to fetch reviews."
UPDATE_ERROR = "Failed to update public display status."
BULK_UPDATE_ERROR = "Failed to update bulk public display status."

PENDING = "pending"
SAVED = "saved"
FAILED = "failed"


class ApiError(RuntimeError):
    pass


class ReviewsApiClient:
    """Thin requests wrapper around the dashboard's HTTP API."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or DASHBOARD_API_BASE).rstrip("/")
        self.timeout = timeout if timeout is not None else DASHBOARD_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(f"{method} {url} failed: {e}") from e
        if resp.status_code >= 400:
            raise ApiError(f"{method} {url} returned {resp.status_code}: {resp.text[:300]}")
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(f"{method} {url} returned a non-JSON body: {e}") from e

    def fetch_reviews(self) -> ReviewEnvelope:
        return ReviewEnvelope.model_validate(self._request("GET", "/api/reviews/hostaway"))

    def fetch_public_reviews(self) -> ReviewEnvelope:
        return ReviewEnvelope.model_validate(self._request("GET", "/api/reviews/public"))

    def set_public_display(self, review_id: str, value: bool) -> Dict:
        return self._request("PATCH", f"/api/reviews/hostaway/{review_id}/public", json={"publicDisplay": value})


class VisibilityMap:
    """
    Optimistic id -> public-display map.

    Local state changes before the persister is called and is never rolled
    back. Each id remembers whether its last write is pending, saved or
    failed, so callers can show or retry the ones that diverged from storage.
    """

    def __init__(self, persist: Callable[[str, bool], object], initial: Optional[Dict[str, bool]] = None):
        self.persist = persist
        self._flags: Dict[str, bool] = dict(initial or {})
        self._status: Dict[str, str] = {}

    @classmethod
    def from_reviews(cls, reviews: Iterable[Review], persist: Callable[[str, bool], object]) -> "VisibilityMap":
        return cls(persist, {r.id: r.public_display for r in reviews})

    def get(self, review_id: str) -> bool:
        return self._flags.get(review_id, False)

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._flags)

    def status(self, review_id: str) -> Optional[str]:
        return self._status.get(review_id)

    def failed_ids(self) -> List[str]:
        return [rid for rid, s in self._status.items() if s == FAILED]

    def _send(self, review_id: str, value: bool) -> bool:
        try:
            self.persist(review_id, value)
        except Exception as e:
            log.error(f"Persisting publicDisplay={value} for review {review_id} failed: {e}")
            self._status[review_id] = FAILED
            return False
        self._status[review_id] = SAVED
        return True

    def set_visible(self, review_id: str, value: bool) -> bool:
        self._flags[review_id] = value
        self._status[review_id] = PENDING
        return self._send(review_id, value)

    def set_visible_bulk(self, review_ids: Iterable[str], value: bool) -> Dict[str, bool]:
        """One independent persist call per id, in parallel, with no ordering.

        Returns ``{id: succeeded}``; partial failure is possible and is not undone.
        """
        ids = list(dict.fromkeys(review_ids))
        for rid in ids:
            self._flags[rid] = value
            self._status[rid] = PENDING
        if not ids:
            return {}
        with ThreadPoolExecutor(max_workers=len(ids)) as pool:
            outcomes = list(pool.map(lambda rid: self._send(rid, value), ids))
        return dict(zip(ids, outcomes))

    def retry_failed(self) -> Dict[str, bool]:
        results = {}
        for rid in self.failed_ids():
            results[rid] = self._send(rid, self._flags[rid])
        return results


class SelectionState:
    """Ids chosen for bulk actions."""

    def __init__(self):
        self.selected: Set[str] = set()
        self.all_selected = False

    def covers(self, filtered_ids: List[str]) -> bool:
        return bool(filtered_ids) and set(filtered_ids) <= self.selected

    def toggle(self, review_id: str, filtered_ids: List[str]) -> None:
        if review_id in self.selected:
            self.selected.discard(review_id)
        else:
            self.selected.add(review_id)
        self.all_selected = self.covers(filtered_ids)

    def toggle_all(self, filtered_ids: List[str]) -> None:
        # decided against the current filtered view, never a remembered flag
        if self.covers(filtered_ids):
            self.selected = set()
        else:
            self.selected = set(filtered_ids)
        self.all_selected = self.covers(filtered_ids)

    def clear(self) -> None:
        self.selected = set()
        self.all_selected = False


class DashboardSession:
    """
    Everything one dashboard user works with: loaded reviews, the optimistic
    visibility map, the bulk selection and the current query.
    """

    def __init__(self, client: Optional[ReviewsApiClient] = None, now: Optional[Callable[[], datetime]] = None):
        self.client = client or ReviewsApiClient()
        self.now = now or utc_now
        self.reviews: List[Review] = []
        self.source: Optional[str] = None
        self.visibility = VisibilityMap(self.client.set_public_display)
        self.selection = SelectionState()
        self.query = DashboardQuery()
        self.error: Optional[str] = None

    def load(self) -> bool:
        try:
            envelope = self.client.fetch_reviews()
        except ApiError as e:
            log.error(f"Error fetching reviews: {e}")
            self.error = FETCH_ERROR
            return False
        self.reviews = envelope.reviews
        self.source = envelope.source
        self.visibility = VisibilityMap.from_reviews(self.reviews, self.client.set_public_display)
        return True

    def filtered_ids(self) -> List[str]:
        visible = sort_reviews(filter_reviews(self.reviews, self.query.criteria, self.now()), self.query.sort)
        return [r.id for r in visible]

    def toggle_public_display(self, review_id: str) -> bool:
        ok = self.visibility.set_visible(review_id, not self.visibility.get(review_id))
        if not ok:
            self.error = UPDATE_ERROR
        return ok

    def bulk_public_display(self, display: bool) -> Dict[str, bool]:
        results = self.visibility.set_visible_bulk(sorted(self.selection.selected), display)
        if not all(results.values()):
            self.error = BULK_UPDATE_ERROR
        return results

    def toggle_select_review(self, review_id: str) -> None:
        self.selection.toggle(review_id, self.filtered_ids())

    def toggle_select_all(self) -> None:
        self.selection.toggle_all(self.filtered_ids())

    def clear_filters(self) -> None:
        self.query = DashboardQuery()
        self.selection.clear()

    def view(self) -> DashboardView:
        return build_dashboard(self.reviews, self.query, self.visibility.snapshot(), self.now())
