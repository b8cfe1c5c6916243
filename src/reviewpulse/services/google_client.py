"""Google Maps (Places API) review source for ReviewPulse."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.constants import SourceConstants
from ..core.errors import SourceUnavailable
from ..core.models import BusinessInfo, Platform, UnifiedReview
from .base import ReviewSource

logger = logging.getLogger(__name__)


class GoogleMapsSource(ReviewSource):
    """Google Maps review source using the Google Places API."""

    platform = Platform.GOOGLE_MAPS
    base_url = SourceConstants.GOOGLE_PLACES_URL

    def _get_places_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a Places endpoint; auth, quota and request errors arrive as HTTP 200 with a status."""
        data = self._get_json(url, params=params)
        status = data.get("status")
        if status and status not in SourceConstants.GOOGLE_OK_STATUSES:
            raise SourceUnavailable(self.platform, data.get("error_message") or status)
        return data

    def search_business(self, query: str, location: Optional[str] = None) -> List[BusinessInfo]:
        """Search for places using Places text search."""
        text_query = f"{query} {location}" if location else query
        data = self._get_places_json(
            f"{self.base_url}/textsearch/json",
            params={
                "query": text_query,
                "key": self.api_key,
                "fields": "place_id,name,formatted_address,rating,user_ratings_total",
            },
        )
        places = data.get("results") or []
        logger.info(f"Found {len(places)} places for query: {text_query}")
        return [
            BusinessInfo(
                id=place["place_id"],
                name=place.get("name", ""),
                address=place.get("formatted_address"),
                rating=place.get("rating"),
                review_count=place.get("user_ratings_total"),
            )
            for place in places[:SourceConstants.SEARCH_LIMIT]
            if place.get("place_id")
        ]

    def get_reviews(self, business_id: str) -> List[UnifiedReview]:
        """Get reviews for a place (the Places API returns at most 5)."""
        data = self._get_places_json(
            f"{self.base_url}/details/json",
            params={"place_id": business_id, "key": self.api_key, "fields": "name,reviews"},
        )
        place = data.get("result") or {}
        place_name = place.get("name", "")
        place_url = f"https://www.google.com/maps/place/?q=place_id:{business_id}"

        def to_review(review: Dict[str, Any]) -> UnifiedReview:
            # Google reviews carry no id; the epoch timestamp is stable per author post
            created = int(review["time"])
            return self._build_review(
                platform_id=f"gm_{business_id}_{created}",
                business_name=place_name,
                business_id=business_id,
                rating=review["rating"],
                content=review.get("text"),
                occurred_at=datetime.fromtimestamp(created, tz=timezone.utc),
                author_name=review.get("author_name"),
                author_image=review.get("profile_photo_url"),
                url=place_url,
            )

        reviews = self._map_reviews(place.get("reviews") or [], to_review)
        logger.info(f"Retrieved {len(reviews)} reviews for place {business_id}")
        return reviews
