"""Base class for review source adapters."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

import requests

from ..core.constants import SourceConstants, ErrorConstants
from ..core.errors import SourceUnavailable
from ..core.models import BusinessInfo, Platform, UnifiedReview

logger = logging.getLogger(__name__)


class ReviewSource(ABC):
    """A review platform able to search businesses and fetch their reviews."""

    platform: Platform
    requires_location: bool = False

    def __init__(self, api_key: str, timeout: float = ErrorConstants.SOURCE_TIMEOUT,
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    @abstractmethod
    def search_business(self, query: str, location: Optional[str] = None) -> List[BusinessInfo]:
        """Return matching businesses in the platform's own ranking order."""

    @abstractmethod
    def get_reviews(self, business_id: str) -> List[UnifiedReview]:
        """Return the business's reviews mapped to UnifiedReview."""

    def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None,
                  headers: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        """GET a JSON document, raising SourceUnavailable on any failure."""
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceUnavailable(self.platform, f"request to {url} failed: {e}") from e

        if response.status_code != 200:
            raise SourceUnavailable(self.platform, f"{url} returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise SourceUnavailable(self.platform, f"{url} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise SourceUnavailable(self.platform, f"{url} returned unexpected payload")
        return data

    def _build_review(self, platform_id: str, business_name: str, rating: Any, content: Optional[str],
                      occurred_at: datetime, **extra) -> UnifiedReview:
        return UnifiedReview(
            platform=self.platform,
            platform_id=platform_id,
            business_name=business_name or "",
            rating=clamp_rating(rating),
            content=normalize_content(content),
            occurred_at=occurred_at,
            **extra,
        )

    def _map_reviews(self, raw_reviews: List[Dict[str, Any]], mapper) -> List[UnifiedReview]:
        """Map native payloads, dropping (and logging) entries missing required fields."""
        reviews = []
        for raw in raw_reviews:
            try:
                reviews.append(mapper(raw))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed {self.platform.value} review: {e}")
        return reviews


def clamp_rating(value: Any) -> int:
    """Round and clamp a native rating into the 1-5 range."""
    try:
        rating = int(round(float(value)))
    except (TypeError, ValueError):
        raise ValueError(f"Non-numeric rating: {value!r}")
    return max(SourceConstants.MIN_RATING, min(SourceConstants.MAX_RATING, rating))


def normalize_content(text: Optional[str]) -> str:
    text = (text or "").strip()
    return text if text else SourceConstants.EMPTY_CONTENT_SENTINEL


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing 'Z' and Yelp's space separator."""
    return datetime.fromisoformat(value.replace("Z", "+00:00").replace(" ", "T", 1))
