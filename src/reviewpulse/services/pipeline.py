"""End-to-end pipeline: aggregate, ingest, query, and analyze reviews."""

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .. import __version__
from ..core.analytics import AnalyticsFilters, AnalyticsReport, compute_analytics
from ..core.config import Settings, load_source_configs
from ..core.constants import AnalyticsConstants
from ..core.errors import InvalidFilter
from ..core.models import BusinessInfo, IngestionSummary, Platform
from .aggregator import ReviewAggregator, build_sources
from .ingestion import ReviewIngestor
from .llm import ClassifierFactory, ClassifierGateway
from .store import ReviewStore, SQLReviewStore

logger = logging.getLogger(__name__)


class ReviewPipeline:
    """Facade over aggregation, ingestion, storage, and analytics."""

    def __init__(self, aggregator: ReviewAggregator, store: ReviewStore,
                 gateway: Optional[ClassifierGateway] = None, settings: Optional[Settings] = None):
        self.aggregator = aggregator
        self.store = store
        self.gateway = gateway or ClassifierGateway()
        self.settings = settings
        self.ingestor = ReviewIngestor(store, self.gateway)

    @classmethod
    def from_settings(cls, settings: Settings, store: Optional[ReviewStore] = None) -> "ReviewPipeline":
        aggregator = ReviewAggregator(
            build_sources(load_source_configs(settings)), timeout=settings.aggregation_timeout
        )
        return cls(
            aggregator=aggregator,
            store=store or SQLReviewStore(settings.database_url),
            gateway=ClassifierFactory.create(settings),
            settings=settings,
        )

    @property
    def default_days(self) -> int:
        return self.settings.default_days if self.settings else AnalyticsConstants.DEFAULT_DAYS

    def aggregate_and_store(self, business_name: str, location: Optional[str] = None,
                            platforms: Optional[Iterable[Platform]] = None) -> IngestionSummary:
        """Fetch reviews for a business from every source and store the unseen ones."""
        if not business_name or not business_name.strip():
            raise InvalidFilter("Business name is required")
        reviews = self.aggregator.get_all_reviews(business_name.strip(), location, platforms)
        return self.ingestor.ingest(reviews)

    def search(self, query: str, location: Optional[str] = None) -> Dict[Platform, List[BusinessInfo]]:
        return self.aggregator.search_all(query, location)

    def analytics(self, params: Optional[Mapping[str, Any]] = None,
                  now: Optional[datetime] = None) -> AnalyticsReport:
        """Parse filters (InvalidFilter on bad input) and compute the report over the window."""
        filters = AnalyticsFilters.from_params(params or {}, default_days=self.default_days)
        now = now or datetime.now(timezone.utc)
        reviews = self.store.query_by_filters(filters, now=now)
        return compute_analytics(reviews, days=filters.days, now=now)

    def list_reviews(self, page: Any = 1, limit: Any = AnalyticsConstants.DEFAULT_PAGE_SIZE,
                     platform: Optional[str] = None, sentiment: Optional[str] = None,
                     business_name: Optional[str] = None) -> Dict[str, Any]:
        """Paginated listing of stored reviews, newest first."""
        page = _parse_positive_int(page, "page")
        limit = _parse_positive_int(limit, "limit")
        if limit > AnalyticsConstants.MAX_PAGE_SIZE:
            raise InvalidFilter(f"limit must be at most {AnalyticsConstants.MAX_PAGE_SIZE}")

        filters = AnalyticsFilters.from_params(
            {"platform": platform, "sentiment": sentiment, "business_name": business_name}
        )
        total = self.store.count(filters)
        reviews = self.store.query(filters, offset=(page - 1) * limit, limit=limit)
        return {
            "reviews": reviews,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    def health(self) -> Dict[str, Any]:
        """Connectivity and configuration status of the store, sources, and classifier."""
        store_ok = self.store.ping()
        services: Dict[str, str] = {"database": "connected" if store_ok else "unreachable"}

        if self.settings is not None:
            for platform, config in load_source_configs(self.settings).items():
                if not config.enabled:
                    state = "disabled"
                else:
                    state = "configured" if config.api_key else "missing"
                services[platform.value.lower()] = state
        else:
            for platform in self.aggregator.sources:
                services[platform.value.lower()] = "configured"
        services["classifier"] = "fallback" if self.gateway.uses_fallback_only else "configured"

        inactive = sorted(name for name, state in services.items() if state in ("disabled", "missing"))
        return {
            "status": "healthy" if store_ok else "unhealthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "services": services,
            "warnings": f"Optional services disabled: {', '.join(inactive)}" if inactive else None,
        }


def _parse_positive_int(raw: Any, name: str) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidFilter(f"{name} must be an integer, got {raw!r}")
    if value < 1:
        raise InvalidFilter(f"{name} must be at least 1, got {value}")
    return value
