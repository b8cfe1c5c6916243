"""Trustpilot review source for ReviewPulse."""

import logging
from typing import Any, Dict, List, Optional

from ..core.constants import SourceConstants
from ..core.models import BusinessInfo, Platform, UnifiedReview
from .base import ReviewSource, parse_iso_datetime

logger = logging.getLogger(__name__)


class TrustpilotSource(ReviewSource):
    """Trustpilot review source using the Trustpilot business-unit API."""

    platform = Platform.TRUSTPILOT
    base_url = SourceConstants.TRUSTPILOT_API_URL

    @property
    def headers(self) -> Dict[str, str]:
        return {"apikey": self.api_key}

    def search_business(self, query: str, location: Optional[str] = None) -> List[BusinessInfo]:
        data = self._get_json(
            f"{self.base_url}/business-units/search",
            params={"query": query, "limit": SourceConstants.SEARCH_LIMIT},
            headers=self.headers,
        )
        units = data.get("businessUnits") or []
        logger.info(f"Found {len(units)} business units for query: {query}")
        return [
            BusinessInfo(
                id=unit["id"],
                name=unit.get("displayName", ""),
                website=unit.get("websiteUrl"),
                rating=unit.get("trustScore"),
                review_count=unit.get("numberOfReviews"),
            )
            for unit in units
            if unit.get("id")
        ]

    def get_reviews(self, business_id: str) -> List[UnifiedReview]:
        business = self._get_json(f"{self.base_url}/business-units/{business_id}", headers=self.headers)
        data = self._get_json(
            f"{self.base_url}/business-units/{business_id}/reviews",
            params={"perPage": SourceConstants.TRUSTPILOT_PAGE_SIZE},
            headers=self.headers,
        )
        business_name = business.get("displayName", "")

        def to_review(review: Dict[str, Any]) -> UnifiedReview:
            consumer = review.get("consumer") or {}
            return self._build_review(
                platform_id=f"tp_{business_id}_{review['id']}",
                business_name=business_name,
                business_id=business_id,
                rating=review["stars"],
                title=review.get("title"),
                content=review.get("text"),
                occurred_at=parse_iso_datetime(review["createdAt"]),
                author_name=consumer.get("displayName"),
                url=review.get("url"),
            )

        reviews = self._map_reviews(data.get("reviews") or [], to_review)
        logger.info(f"Retrieved {len(reviews)} reviews for business unit {business_id}")
        return reviews
