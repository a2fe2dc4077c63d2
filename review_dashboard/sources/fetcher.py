import logging
from typing import List, Dict, Literal, Optional, Tuple

import requests

from review_dashboard.config import HOSTAWAY_API_KEY, HOSTAWAY_API_URL, HOSTAWAY_TIMEOUT_SECONDS
from review_dashboard.models import ReviewEnvelope
from review_dashboard.sources.hostaway import fetch_hostaway_reviews_api, normalize_all
from review_dashboard.store import VisibilityStore

log = logging.getLogger("fetcher")

Scope = Literal["all", "public"]


class ReviewFetcher:
    """
    Live-first review loader with a single static fallback.

    Upstream errors never reach the caller: they are logged and the store's
    dataset is served instead, tagged through the envelope's ``source``.
    """

    def __init__(
        self,
        store: VisibilityStore,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.store = store
        self.api_url = api_url if api_url is not None else HOSTAWAY_API_URL
        self.api_key = api_key if api_key is not None else HOSTAWAY_API_KEY
        self.timeout = timeout if timeout is not None else HOSTAWAY_TIMEOUT_SECONDS

    def _load_raw(self) -> Tuple[List[Dict], str]:
        if not self.api_key:
            log.warning("No Hostaway API key configured. Falling back to mock data.")
            return self.store.raw_reviews(), "error-fallback"
        try:
            log.info("Attempting to fetch live reviews from Hostaway API...")
            raw = fetch_hostaway_reviews_api(self.api_url, self.api_key, timeout=self.timeout)
        except (requests.RequestException, RuntimeError) as e:
            log.error(f"Hostaway API request failed: {e}. Falling back to mock data.")
            return self.store.raw_reviews(), "error-fallback"
        if not raw:
            log.warning("Live API returned an empty array. Falling back to mock data.")
            return self.store.raw_reviews(), "empty-live-fallback"
        log.info(f"Successfully fetched {len(raw)} reviews from Hostaway API.")
        return raw, "live"

    def fetch(self, scope: Scope = "all") -> ReviewEnvelope:
        raw, source = self._load_raw()
        reviews = self.store.apply_to(normalize_all(raw))
        if scope == "public":
            reviews = [r for r in reviews if r.public_display]
        log.info(f"Sending {len(reviews)} {'public ' if scope == 'public' else ''}normalized reviews (source: {source}).")
        return ReviewEnvelope(source=source, count=len(reviews), reviews=reviews)
