"""Analytics over a filtered slice of stored reviews."""

import logging
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .constants import AnalyticsConstants
from .errors import InvalidFilter
from .models import Platform, Sentiment, StoredReview

logger = logging.getLogger(__name__)

INSUFFICIENT_DATA = "Insufficient data to generate insights"


@dataclass(frozen=True)
class AnalyticsFilters:
    """Filters for one analytics query; all optional and ANDed together."""
    business_name: Optional[str] = None
    platform: Optional[Platform] = None
    sentiment: Optional[Sentiment] = None
    days: int = AnalyticsConstants.DEFAULT_DAYS

    def since(self, now: Optional[datetime] = None) -> datetime:
        now = now or datetime.now(timezone.utc)
        return now - timedelta(days=self.days)

    def matches(self, review: StoredReview, since: Optional[datetime] = None) -> bool:
        if self.business_name and self.business_name.lower() not in review.business_name.lower():
            return False
        if self.platform and review.platform != self.platform:
            return False
        if self.sentiment and review.sentiment != self.sentiment:
            return False
        return since is None or review.occurred_at >= since

    @classmethod
    def from_params(cls, params: Mapping[str, Any], default_days: int = AnalyticsConstants.DEFAULT_DAYS) -> "AnalyticsFilters":
        """Parse raw request parameters, raising InvalidFilter on malformed values."""
        business_name = params.get("business_name") or params.get("businessName") or None
        return cls(
            business_name=business_name.strip() if isinstance(business_name, str) else None,
            platform=_parse_enum(Platform, params.get("platform"), "platform"),
            sentiment=_parse_enum(Sentiment, params.get("sentiment"), "sentiment"),
            days=_parse_days(params.get("days"), default_days),
        )


def _parse_enum(enum_cls, raw, name: str):
    if raw is None or raw == "":
        return None
    if isinstance(raw, enum_cls):
        return raw
    try:
        return enum_cls(str(raw).strip().upper())
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise InvalidFilter(f"Unknown {name} '{raw}'. Expected one of: {valid}")


def _parse_days(raw, default: int) -> int:
    if raw is None or raw == "":
        return default
    if isinstance(raw, bool):
        raise InvalidFilter(f"Invalid day count: {raw!r}")
    try:
        days = int(str(raw).strip())
    except ValueError:
        raise InvalidFilter(f"Day count must be an integer, got {raw!r}")
    if days <= 0:
        raise InvalidFilter(f"Day count must be positive, got {days}")
    if days > AnalyticsConstants.MAX_DAYS:
        raise InvalidFilter(f"Day count must be at most {AnalyticsConstants.MAX_DAYS}, got {days}")
    return days


@dataclass
class AnalyticsReport:
    """Full analytics report for one slice."""
    total_reviews: int
    average_rating: float
    period: str
    last_updated: datetime
    sentiment_distribution: Dict[str, int]
    rating_distribution: Dict[int, int]
    platform_distribution: Dict[str, int]
    daily_trends: List[Dict[str, Any]] = field(default_factory=list)
    monthly_trends: List[Dict[str, Any]] = field(default_factory=list)
    top_topics: List[Dict[str, Any]] = field(default_factory=list)
    recent_positive: List[StoredReview] = field(default_factory=list)
    recent_negative: List[StoredReview] = field(default_factory=list)
    business_comparison: List[Dict[str, Any]] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": {
                "total_reviews": self.total_reviews,
                "average_rating": self.average_rating,
                "period": self.period,
                "last_updated": self.last_updated.isoformat(),
            },
            "sentiment_distribution": dict(self.sentiment_distribution),
            "rating_distribution": {str(k): v for k, v in self.rating_distribution.items()},
            "platform_distribution": dict(self.platform_distribution),
            "daily_trends": list(self.daily_trends),
            "monthly_trends": list(self.monthly_trends),
            "top_topics": list(self.top_topics),
            "recent_reviews": {
                "positive": [r.to_dict() for r in self.recent_positive],
                "negative": [r.to_dict() for r in self.recent_negative],
            },
            "business_comparison": list(self.business_comparison),
            "insights": list(self.insights),
        }


def _mean_rating(reviews: Sequence[StoredReview]) -> float:
    if not reviews:
        return 0.0
    return sum(r.rating for r in reviews) / len(reviews)


def sentiment_distribution(reviews: Sequence[StoredReview]) -> Dict[str, int]:
    counts = Counter(r.sentiment for r in reviews)
    return {
        "positive": counts[Sentiment.POSITIVE],
        "negative": counts[Sentiment.NEGATIVE],
        "neutral": counts[Sentiment.NEUTRAL],
    }


def rating_distribution(reviews: Sequence[StoredReview]) -> Dict[int, int]:
    counts = Counter(r.rating for r in reviews)
    return {stars: counts[stars] for stars in range(1, 6)}


def platform_distribution(reviews: Sequence[StoredReview]) -> Dict[str, int]:
    return dict(Counter(r.platform.value for r in reviews))


def _bucket_trends(reviews: Sequence[StoredReview], key_fn, key_name: str, with_sentiment: bool) -> List[Dict[str, Any]]:
    buckets: Dict[str, List[StoredReview]] = {}
    for review in reviews:
        buckets.setdefault(key_fn(review), []).append(review)

    trends = []
    for key in sorted(buckets):
        items = buckets[key]
        entry = {
            key_name: key,
            "count": len(items),
            "average_rating": round(_mean_rating(items), AnalyticsConstants.RATING_DECIMALS),
        }
        if with_sentiment:
            entry["positive"] = sum(1 for r in items if r.sentiment == Sentiment.POSITIVE)
            entry["negative"] = sum(1 for r in items if r.sentiment == Sentiment.NEGATIVE)
        trends.append(entry)
    return trends


def daily_trends(reviews: Sequence[StoredReview]) -> List[Dict[str, Any]]:
    """Per UTC calendar day, ascending."""
    return _bucket_trends(reviews, lambda r: r.occurred_at.date().isoformat(), "date", with_sentiment=True)


def monthly_trends(reviews: Sequence[StoredReview]) -> List[Dict[str, Any]]:
    """Per UTC calendar month (YYYY-MM), ascending."""
    return _bucket_trends(reviews, lambda r: r.occurred_at.strftime("%Y-%m"), "month", with_sentiment=False)


def top_topics(reviews: Sequence[StoredReview], limit: int = AnalyticsConstants.TOP_TOPICS_LIMIT) -> List[Dict[str, Any]]:
    # Counter.most_common keeps first-seen order among equal counts
    counts = Counter(topic for r in reviews for topic in r.topics)
    return [{"topic": topic, "count": count} for topic, count in counts.most_common(limit)]


def business_comparison(reviews: Sequence[StoredReview]) -> List[Dict[str, Any]]:
    groups: "OrderedDict[str, List[StoredReview]]" = OrderedDict()
    for review in reviews:
        groups.setdefault(review.business_name, []).append(review)

    rows = []
    for name, items in groups.items():
        rows.append({
            "name": name,
            "total_reviews": len(items),
            "average_rating": round(_mean_rating(items), AnalyticsConstants.RATING_DECIMALS),
            "positive": sum(1 for r in items if r.sentiment == Sentiment.POSITIVE),
            "negative": sum(1 for r in items if r.sentiment == Sentiment.NEGATIVE),
        })
    return sorted(rows, key=lambda row: row["average_rating"], reverse=True)


def generate_insights(reviews: Sequence[StoredReview], sentiments: Dict[str, int],
                      topics: List[Dict[str, Any]]) -> List[str]:
    """Short narrative notes derived from fixed thresholds."""
    total = len(reviews)
    if total == 0:
        return [INSUFFICIENT_DATA]

    insights = []

    positive_share = sentiments["positive"] / total * 100
    if positive_share > AnalyticsConstants.HIGH_POSITIVE_SHARE:
        insights.append(f"Excellent online reputation with {round(positive_share)}% positive reviews")
    elif positive_share < AnalyticsConstants.LOW_POSITIVE_SHARE:
        insights.append(f"Attention needed: only {round(positive_share)}% of reviews are positive")

    overall = _mean_rating(reviews)
    if overall >= AnalyticsConstants.EXCELLENT_RATING:
        insights.append("Exceptional rating, maintain current quality standards")
    elif overall < AnalyticsConstants.POOR_RATING:
        insights.append("Low rating requires immediate action to improve the customer experience")

    if topics:
        insights.append(f"\"{topics[0]['topic']}\" is the most mentioned topic ({topics[0]['count']} times)")

    recent = reviews[:min(AnalyticsConstants.TREND_WINDOW, total)]
    recent_mean = _mean_rating(recent)
    if recent_mean > overall + AnalyticsConstants.TREND_DELTA:
        insights.append("Improving trend: recent reviews show improvement")
    elif recent_mean < overall - AnalyticsConstants.TREND_DELTA:
        insights.append("Declining trend: recent reviews have worsened")

    return insights


def compute_analytics(reviews: Sequence[StoredReview], days: int = AnalyticsConstants.DEFAULT_DAYS,
                      now: Optional[datetime] = None) -> AnalyticsReport:
    """Compute the analytics report for a slice sorted by occurrence, newest first."""
    reviews = list(reviews)
    now = now or datetime.now(timezone.utc)
    sentiments = sentiment_distribution(reviews)
    topics = top_topics(reviews)

    report = AnalyticsReport(
        total_reviews=len(reviews),
        average_rating=round(_mean_rating(reviews), AnalyticsConstants.RATING_DECIMALS),
        period=f"{days} days",
        last_updated=now,
        sentiment_distribution=sentiments,
        rating_distribution=rating_distribution(reviews),
        platform_distribution=platform_distribution(reviews),
        daily_trends=daily_trends(reviews),
        monthly_trends=monthly_trends(reviews),
        top_topics=topics,
        recent_positive=[r for r in reviews if r.sentiment == Sentiment.POSITIVE][:AnalyticsConstants.RECENT_REVIEWS_LIMIT],
        recent_negative=[r for r in reviews if r.sentiment == Sentiment.NEGATIVE][:AnalyticsConstants.RECENT_REVIEWS_LIMIT],
        business_comparison=business_comparison(reviews),
        insights=generate_insights(reviews, sentiments, topics),
    )
    logger.debug(f"Computed analytics over {report.total_reviews} reviews ({report.period})")
    return report
