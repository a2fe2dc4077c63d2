import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from review_dashboard.config import LOG_LEVEL
from review_dashboard.engine.dashboard import build_dashboard
from review_dashboard.models import DashboardQuery
from review_dashboard.output import write_result
from review_dashboard.sources.fetcher import ReviewFetcher
from review_dashboard.store import ReviewNotFoundError, VisibilityStore
from review_dashboard.utils import to_stars

app = typer.Typer()
logging.basicConfig(level=LOG_LEVEL)

SCOPES = ("all", "public")


@app.command()
def fetch(
    scope: str = typer.Option("all", help="all | public"),
    out_dir: Optional[Path] = typer.Option(None, help="Directory for the JSON envelope (default: outputs/)"),
    store_path: Optional[Path] = typer.Option(None, help="Review store JSON file"),
):
    """Fetch reviews (live with mock fallback) and write the envelope to disk."""
    if scope not in SCOPES:
        typer.echo(f"Unknown scope: {scope}. Supported: {list(SCOPES)}")
        raise typer.Exit(code=1)
    envelope = ReviewFetcher(VisibilityStore(store_path)).fetch(scope)
    stamp = datetime.now().strftime("%Y%m%dT%H%M%S")
    outpath = write_result(envelope.model_dump(by_alias=True), f"reviews-{scope}", stamp, out_dir)
    typer.echo(f"Wrote {envelope.count} reviews (source: {envelope.source}) to {outpath}")


@app.command()
def dashboard(
    search: str = typer.Option("", help="Case-insensitive match on property, reviewer or text"),
    property: Optional[str] = typer.Option(None, "--property", help="Exact property name"),
    rating: Optional[str] = typer.Option(None, help="high | medium | low"),
    category: Optional[str] = typer.Option(None, help="Only reviews rated in this category"),
    channel: Optional[str] = typer.Option(None, help="Exact channel name"),
    date_range: str = typer.Option("all", help="all | week | month | quarter"),
    sort_by: str = typer.Option("submittedAt", help="submittedAt | ratingOverall | property | reviewer | channel"),
    sort_order: str = typer.Option("desc", help="asc | desc"),
    limit: int = typer.Option(10, help="Rows to print"),
    store_path: Optional[Path] = typer.Option(None, help="Review store JSON file"),
):
    """Print KPIs, alerts and the top filtered reviews."""
    try:
        query = DashboardQuery.model_validate({
            "criteria": {
                "search": search,
                "property": property,
                "rating": rating,
                "category": category,
                "channel": channel,
                "dateRange": date_range,
            },
            "sort": {"field": sort_by, "order": sort_order},
        })
    except ValidationError as e:
        typer.echo(f"Invalid dashboard options: {e}")
        raise typer.Exit(code=1)

    envelope = ReviewFetcher(VisibilityStore(store_path)).fetch("all")
    view = build_dashboard(envelope.reviews, query)
    k = view.kpis
    typer.echo(f"Source: {envelope.source}")
    typer.echo(
        f"Reviews: {k.filtered_reviews}/{k.total_reviews} ({k.filtered_share}%) | "
        f"avg {k.avg_rating} | {k.high_ratings} high | {k.public_count} public ({k.public_rate}%)"
    )
    for a in view.alerts:
        typer.echo(f"[{a.type.upper()}/{a.priority}] {a.property}: {a.message}")
    for r in view.reviews[:limit]:
        flag = "public" if r.public_display else "hidden"
        rating_txt = "-" if r.rating_overall is None else f"{r.rating_overall:g}"
        typer.echo(f"{r.id}\t{rating_txt}\t{'*' * to_stars(r.rating_overall)}\t{flag}\t{r.property}\t{r.reviewer}")


@app.command("set-public")
def set_public(
    review_id: str = typer.Argument(..., help="Review id"),
    hide: bool = typer.Option(False, "--hide", help="Hide instead of show"),
    store_path: Optional[Path] = typer.Option(None, help="Review store JSON file"),
):
    """Show (or hide) one review on the public page."""
    store = VisibilityStore(store_path)
    try:
        store.set_visible(review_id, not hide)
    except ReviewNotFoundError as e:
        typer.echo(str(e))
        raise typer.Exit(code=2)
    typer.echo(f"Review {review_id} visibility updated: publicDisplay={not hide}")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(5000, help="Port"),
):
    """Run the HTTP API."""
    import uvicorn

    typer.echo(f"Starting review dashboard API at http://{host}:{port}")
    uvicorn.run("review_dashboard.api:app", host=host, port=port, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    app()
