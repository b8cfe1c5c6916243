"""Data models for ReviewPulse."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Platform(Enum):
    GOOGLE_MAPS = "GOOGLE_MAPS"
    YELP = "YELP"
    TRUSTPILOT = "TRUSTPILOT"
    AMAZON = "AMAZON"


class Sentiment(Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass
class BusinessInfo:
    """A business match returned by a source search."""
    id: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None


@dataclass(frozen=True)
class UnifiedReview:
    """Unified review model across all platforms."""

    # Identity
    platform: Platform
    platform_id: str

    # Target business
    business_name: str
    rating: int
    content: str
    occurred_at: datetime
    business_id: Optional[str] = None

    title: Optional[str] = None
    author_name: Optional[str] = None
    author_image: Optional[str] = None
    url: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.rating, int) or not (1 <= self.rating <= 5):
            raise ValueError(f"Invalid rating: {self.rating!r}. Must be 1-5")
        if not self.content or not self.content.strip():
            raise ValueError(f"Review {self.platform_id} has empty content")
        object.__setattr__(self, "occurred_at", to_utc(self.occurred_at))

    @property
    def natural_key(self) -> Tuple[Platform, str]:
        return (self.platform, self.platform_id)


@dataclass(frozen=True)
class Classification:
    """Sentiment/topic judgment for a single review."""
    sentiment: Sentiment
    sentiment_score: float
    topics: Tuple[str, ...] = ()
    meta: Dict[str, Any] = field(default_factory=dict)

    def __hash__(self):
        # meta is a dict; equal instances still share these fields
        return hash((self.sentiment, self.sentiment_score, self.topics))


@dataclass(frozen=True)
class StoredReview(UnifiedReview):
    """A classified review persisted in the store."""

    sentiment: Sentiment = Sentiment.NEUTRAL
    sentiment_score: float = 0.0
    topics: Tuple[str, ...] = ()
    classification_meta: Dict[str, Any] = field(default_factory=dict)

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    ingested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __hash__(self):
        return hash(self.natural_key)

    @classmethod
    def from_review(cls, review: UnifiedReview, classification: Classification) -> "StoredReview":
        return cls(
            platform=review.platform,
            platform_id=review.platform_id,
            business_name=review.business_name,
            rating=review.rating,
            content=review.content,
            occurred_at=review.occurred_at,
            business_id=review.business_id,
            title=review.title,
            author_name=review.author_name,
            author_image=review.author_image,
            url=review.url,
            sentiment=classification.sentiment,
            sentiment_score=classification.sentiment_score,
            topics=tuple(classification.topics),
            classification_meta=dict(classification.meta),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "platform": self.platform.value,
            "platform_id": self.platform_id,
            "business_name": self.business_name,
            "business_id": self.business_id,
            "rating": self.rating,
            "title": self.title,
            "content": self.content,
            "author_name": self.author_name,
            "author_image": self.author_image,
            "occurred_at": self.occurred_at.isoformat(),
            "url": self.url,
            "sentiment": self.sentiment.value,
            "sentiment_score": self.sentiment_score,
            "topics": list(self.topics),
            "classification_meta": self.classification_meta,
            "ingested_at": self.ingested_at.isoformat(),
        }


@dataclass
class IngestionSummary:
    """Outcome of one aggregate-and-store pass."""
    total_found: int = 0
    newly_stored: int = 0
    duplicates_skipped: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "total_found": self.total_found,
            "newly_stored": self.newly_stored,
            "duplicates_skipped": self.duplicates_skipped,
            "failed": self.failed,
        }
