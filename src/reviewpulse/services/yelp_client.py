"""Yelp review source for ReviewPulse."""

import logging
from typing import Any, Dict, List, Optional

from ..core.constants import SourceConstants
from ..core.models import BusinessInfo, Platform, UnifiedReview
from .base import ReviewSource, parse_iso_datetime

logger = logging.getLogger(__name__)


class YelpSource(ReviewSource):
    """Yelp review source using the Yelp Fusion API."""

    platform = Platform.YELP
    requires_location = True
    base_url = SourceConstants.YELP_API_URL

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def search_business(self, query: str, location: Optional[str] = None) -> List[BusinessInfo]:
        """Search for businesses on Yelp; Yelp cannot search without a location."""
        if not location:
            logger.info("Yelp search skipped: no location given")
            return []

        data = self._get_json(
            f"{self.base_url}/businesses/search",
            params={"term": query, "location": location, "limit": SourceConstants.SEARCH_LIMIT},
            headers=self.headers,
        )
        businesses = data.get("businesses") or []
        logger.info(f"Found {len(businesses)} businesses for query: {query}")
        return [self._to_business(b) for b in businesses if b.get("id")]

    def get_business_details(self, business_id: str) -> BusinessInfo:
        data = self._get_json(f"{self.base_url}/businesses/{business_id}", headers=self.headers)
        return self._to_business(data)

    def get_reviews(self, business_id: str) -> List[UnifiedReview]:
        """Get reviews for a specific business (Yelp returns at most 3)."""
        data = self._get_json(f"{self.base_url}/businesses/{business_id}/reviews", headers=self.headers)
        business = self.get_business_details(business_id)

        def to_review(review: Dict[str, Any]) -> UnifiedReview:
            user = review.get("user") or {}
            return self._build_review(
                platform_id=f"yelp_{business_id}_{review['id']}",
                business_name=business.name,
                business_id=business_id,
                rating=review["rating"],
                content=review.get("text"),
                occurred_at=parse_iso_datetime(review["time_created"]),
                author_name=user.get("name"),
                author_image=user.get("image_url"),
                url=review.get("url"),
            )

        reviews = self._map_reviews(data.get("reviews") or [], to_review)
        logger.info(f"Retrieved {len(reviews)} reviews for business {business_id}")
        return reviews

    @staticmethod
    def _to_business(business: Dict[str, Any]) -> BusinessInfo:
        location = business.get("location") or {}
        address = ", ".join(location.get("display_address") or []) or location.get("address1")
        return BusinessInfo(
            id=business["id"],
            name=business.get("name", ""),
            address=address,
            phone=business.get("phone"),
            website=business.get("url"),
            rating=business.get("rating"),
            review_count=business.get("review_count"),
        )
