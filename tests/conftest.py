"""Shared fixtures for ReviewPulse tests."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from reviewpulse.core.config import Settings
from reviewpulse.core.errors import SourceUnavailable
from reviewpulse.core.models import (
    BusinessInfo, Platform, Sentiment, StoredReview, UnifiedReview,
)
from reviewpulse.services.base import ReviewSource
from reviewpulse.services.store import InMemoryReviewStore

NOW = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def make_review(platform=Platform.GOOGLE_MAPS, platform_id="r1", rating=4, days_ago=1,
                business_name="Joe's Pizza", content="Nice place", **extra) -> UnifiedReview:
    return UnifiedReview(
        platform=platform,
        platform_id=platform_id,
        business_name=business_name,
        rating=rating,
        content=content,
        occurred_at=NOW - timedelta(days=days_ago),
        **extra,
    )


def make_stored(platform=Platform.GOOGLE_MAPS, platform_id="r1", rating=4, days_ago=1,
                sentiment: Optional[Sentiment] = None, topics=(), business_name="Joe's Pizza",
                occurred_at: Optional[datetime] = None) -> StoredReview:
    if sentiment is None:
        sentiment = Sentiment.POSITIVE if rating >= 4 else Sentiment.NEGATIVE if rating <= 2 else Sentiment.NEUTRAL
    return StoredReview(
        platform=platform,
        platform_id=platform_id,
        business_name=business_name,
        rating=rating,
        content="Some review text",
        occurred_at=occurred_at or NOW - timedelta(days=days_ago),
        sentiment=sentiment,
        sentiment_score=(rating - 3) / 2,
        topics=tuple(topics),
    )


class FakeSource(ReviewSource):
    """In-process source returning canned businesses and reviews."""

    def __init__(self, platform: Platform, reviews: List[UnifiedReview] = None,
                 businesses: List[BusinessInfo] = None, fail: bool = False,
                 requires_location: bool = False, delay: float = 0.0):
        super().__init__(api_key="test-key", session=object())
        self.platform = platform
        self.requires_location = requires_location
        self.reviews = reviews or []
        self.businesses = businesses if businesses is not None else [
            BusinessInfo(id=f"{platform.value.lower()}-1", name="Joe's Pizza"),
            BusinessInfo(id=f"{platform.value.lower()}-2", name="Joe's Pizza Annex"),
        ]
        self.fail = fail
        self.delay = delay
        self.requested_ids = []

    def search_business(self, query, location=None):
        if self.fail:
            raise SourceUnavailable(self.platform, "simulated outage")
        return list(self.businesses)

    def get_reviews(self, business_id):
        if self.delay:
            import time
            time.sleep(self.delay)
        self.requested_ids.append(business_id)
        return list(self.reviews)


@pytest.fixture
def store():
    return InMemoryReviewStore()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        google_maps_api_key="gm-key",
        yelp_api_key="yelp-key",
        trustpilot_api_key="",
        openai_api_key="",
        OPENAI_API_KEY="",
        database_url=f"sqlite:///{tmp_path / 'reviews.db'}",
        cache_dir="",
        sources_file="",
    )
