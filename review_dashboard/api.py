import logging
import platform
import sys
from functools import lru_cache
from typing import Optional

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from review_dashboard import __version__
from review_dashboard.engine.dashboard import build_dashboard
from review_dashboard.models import (
    DashboardQuery,
    DateRange,
    FilterCriteria,
    RatingBucketName,
    SortField,
    SortOrder,
    SortSpec,
    VisibilityResult,
    VisibilityUpdate,
)
from review_dashboard.sources.fetcher import ReviewFetcher
from review_dashboard.store import ReviewNotFoundError, VisibilityStore

log = logging.getLogger("api")

app = FastAPI(title="Review Dashboard API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_store() -> VisibilityStore:
    return VisibilityStore()


def get_fetcher(store: VisibilityStore = Depends(get_store)) -> ReviewFetcher:
    return ReviewFetcher(store)


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "version": __version__,
        "python_version": platform.python_version(),
        "executable": sys.executable,
        "platform": platform.platform(),
    }


@app.get("/api/reviews/hostaway")
def all_reviews(fetcher: ReviewFetcher = Depends(get_fetcher)):
    return fetcher.fetch("all").model_dump(by_alias=True)


@app.get("/api/reviews/public")
def public_reviews(fetcher: ReviewFetcher = Depends(get_fetcher)):
    return fetcher.fetch("public").model_dump(by_alias=True)


@app.patch("/api/reviews/hostaway/{review_id}/public")
def update_public_display(review_id: str, body: VisibilityUpdate, store: VisibilityStore = Depends(get_store)):
    try:
        record = store.set_visible(review_id, body.public_display)
    except ReviewNotFoundError:
        result = VisibilityResult(success=False, message="Review not found")
        return JSONResponse(status_code=404, content=result.model_dump(by_alias=True, exclude_none=True))
    except OSError as e:
        log.error(f"Persisting review {review_id} failed: {e}")
        result = VisibilityResult(success=False, message=f"Failed to persist review {review_id}")
        return JSONResponse(status_code=500, content=result.model_dump(by_alias=True, exclude_none=True))
    return VisibilityResult(
        success=True,
        message=f"Review {review_id} visibility updated",
        review=record,
    ).model_dump(by_alias=True)


@app.get("/api/dashboard")
def dashboard(
    search: str = "",
    property: Optional[str] = None,
    rating: Optional[RatingBucketName] = None,
    category: Optional[str] = None,
    channel: Optional[str] = None,
    date_range: DateRange = Query("all", alias="dateRange"),
    sort_by: SortField = Query("submittedAt", alias="sortBy"),
    sort_order: SortOrder = Query("desc", alias="sortOrder"),
    fetcher: ReviewFetcher = Depends(get_fetcher),
):
    query = DashboardQuery(
        criteria=FilterCriteria(
            search=search,
            property=property,
            rating=rating,
            category=category,
            channel=channel,
            date_range=date_range,
        ),
        sort=SortSpec(field=sort_by, order=sort_order),
    )
    envelope = fetcher.fetch("all")
    view = build_dashboard(envelope.reviews, query)
    out = view.model_dump(by_alias=True)
    out["source"] = envelope.source
    return out
