from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any, Literal

RatingBucketName = Literal["high", "medium", "low"]
DateRange = Literal["all", "week", "month", "quarter"]
SortField = Literal["submittedAt", "ratingOverall", "property", "reviewer", "channel"]
SortOrder = Literal["asc", "desc"]
FetchSource = Literal["live", "empty-live-fallback", "error-fallback"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class Review(CamelModel):
    id: str
    property: str = ""
    reviewer: str = ""
    text: str = ""
    rating_overall: Optional[float] = Field(None, ge=0, le=10)
    ratings_by_category: Dict[str, Any] = Field(default_factory=dict)
    channel: Optional[str] = None
    submitted_at: Optional[str] = None  # ISO-8601
    public_display: bool = False
    listing_id: Optional[str] = None
    review_type: Optional[str] = None
    status: Optional[str] = None


class ReviewEnvelope(CamelModel):
    status: str = "success"
    source: FetchSource
    count: int = 0
    reviews: List[Review] = Field(default_factory=list)


class FilterCriteria(CamelModel):
    search: str = ""
    property: Optional[str] = None
    rating: Optional[RatingBucketName] = None
    category: Optional[str] = None
    channel: Optional[str] = None
    date_range: DateRange = "all"

    @field_validator("rating", "property", "category", "channel", mode="before")
    @classmethod
    def _blank_is_inactive(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SortSpec(CamelModel):
    field: SortField = "submittedAt"
    order: SortOrder = "desc"


class DashboardQuery(CamelModel):
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)
    sort: SortSpec = Field(default_factory=SortSpec)


class VisibilityUpdate(CamelModel):
    public_display: bool


class VisibilityResult(CamelModel):
    success: bool
    message: str
    review: Optional[Dict[str, Any]] = None


class ReviewIssue(CamelModel):
    category: str
    text: str
    rating: Optional[float] = None


class PropertyPerformance(CamelModel):
    property: str
    count: int = 0
    total: float = 0.0
    ratings: List[float] = Field(default_factory=list)
    public_count: int = 0
    issues: List[ReviewIssue] = Field(default_factory=list)
    avg_rating: str = "0.0"
    public_rate: str = "0.0"
    issue_count: int = 0


class MonthlyTrend(CamelModel):
    month: str
    avg: float = 0.0
    positive: int = 0
    negative: int = 0
    total: int = 0


class RatingBucket(CamelModel):
    rating: str
    count: int = 0
    fill: str


class ChannelPerformance(CamelModel):
    channel: str
    avg_rating: float = 0.0
    count: int = 0


class Alert(CamelModel):
    type: Literal["warning", "alert"]
    property: str
    message: str
    priority: Literal["high", "medium"]


class DashboardKpis(CamelModel):
    total_reviews: int = 0
    filtered_reviews: int = 0
    filtered_share: int = 0  # percent of all reviews
    avg_rating: str = "0.0"
    high_ratings: int = 0
    public_count: int = 0
    public_rate: int = 0  # percent of filtered reviews


class Facets(CamelModel):
    properties: List[str] = Field(default_factory=list)
    categories: List[str] = Field(default_factory=list)
    channels: List[str] = Field(default_factory=list)


class DashboardView(CamelModel):
    query: DashboardQuery
    has_active_filters: bool = False
    reviews: List[Review] = Field(default_factory=list)
    facets: Facets = Field(default_factory=Facets)
    kpis: DashboardKpis = Field(default_factory=DashboardKpis)
    property_performance: List[PropertyPerformance] = Field(default_factory=list)
    monthly_trends: List[MonthlyTrend] = Field(default_factory=list)
    rating_distribution: List[RatingBucket] = Field(default_factory=list)
    channel_performance: List[ChannelPerformance] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)
