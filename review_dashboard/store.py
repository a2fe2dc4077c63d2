import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from review_dashboard.config import MOCK_REVIEWS_PATH, REVIEWS_STORE_PATH
from review_dashboard.models import Review
from review_dashboard.sources.hostaway import display_flag

log = logging.getLogger("store")

FLAG_KEY = "publicDisplay"


class ReviewNotFoundError(LookupError):
    def __init__(self, review_id: str):
        super().__init__(f"Review {review_id} not found")
        self.review_id = review_id


class VisibilityStore:
    """
    File-backed public-display flags.

    The backing file is one JSON document shaped like a Hostaway response
    (``{"status": "success", "result": [...]}``). It doubles as the fallback
    dataset and is rewritten wholesale on every update; concurrent writers
    race and the last one wins.
    """

    def __init__(self, path: Optional[Path] = None, seed_path: Optional[Path] = None):
        self.path = Path(path) if path else REVIEWS_STORE_PATH
        self.seed_path = Path(seed_path) if seed_path else MOCK_REVIEWS_PATH
        self._document: Optional[Dict] = None

    def _load(self) -> Dict:
        if self._document is None:
            source = self.path if self.path.exists() else self.seed_path
            with open(source, "r", encoding="utf-8") as f:
                doc = json.load(f)
            if not isinstance(doc, dict) or not isinstance(doc.get("result"), list):
                raise ValueError(f"Malformed review store document: {source}")
            self._document = doc
            log.info(f"Loaded {len(doc['result'])} reviews from {source}")
        return self._document

    def _write(self) -> None:
        doc = self._load()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(doc, f, indent=2, ensure_ascii=False)
        log.info(f"Wrote {len(doc['result'])} reviews to {self.path}")

    def reload(self) -> None:
        self._document = None

    def raw_reviews(self) -> List[Dict]:
        return self._load()["result"]

    def _find(self, review_id) -> Optional[Dict]:
        key = str(review_id)
        for r in self.raw_reviews():
            if r.get("id") is not None and str(r["id"]) == key:
                return r
        return None

    def is_known(self, review_id) -> bool:
        return self._find(review_id) is not None

    def flags(self) -> Dict[str, bool]:
        out = {}
        for r in self.raw_reviews():
            if r.get("id") is None:
                continue
            out[str(r["id"])] = display_flag(r)
        return out

    def set_visible(self, review_id, value: bool) -> Dict:
        record = self._find(review_id)
        if record is None:
            raise ReviewNotFoundError(str(review_id))
        record[FLAG_KEY] = bool(value)
        self._write()
        return record

    def set_visible_bulk(self, review_ids: Iterable, value: bool) -> Dict[str, bool]:
        """Apply ``value`` to every known id; unknown ids are reported False.

        Not transactional: known ids are written even if others are missing.
        """
        results: Dict[str, bool] = {}
        changed = False
        for rid in review_ids:
            record = self._find(rid)
            if record is None:
                results[str(rid)] = False
                continue
            record[FLAG_KEY] = bool(value)
            results[str(rid)] = True
            changed = True
        if changed:
            self._write()
        return results

    def apply_to(self, reviews: List[Review]) -> List[Review]:
        """Overlay stored flags onto normalized reviews with a known id."""
        flags = self.flags()
        out = []
        for r in reviews:
            if r.id in flags and flags[r.id] != r.public_display:
                r = r.model_copy(update={"public_display": flags[r.id]})
            out.append(r)
        return out
