"""Cross-platform review collection and aggregation."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout, as_completed
from typing import Dict, Iterable, List, Optional

import requests

from ..core.config import SourceConfig, load_source_configs, Settings
from ..core.constants import ErrorConstants
from ..core.models import BusinessInfo, Platform, UnifiedReview
from .base import ReviewSource
from .google_client import GoogleMapsSource
from .trustpilot_client import TrustpilotSource
from .yelp_client import YelpSource

logger = logging.getLogger(__name__)

SOURCE_CLASSES = {
    Platform.GOOGLE_MAPS: GoogleMapsSource,
    Platform.YELP: YelpSource,
    Platform.TRUSTPILOT: TrustpilotSource,
}


def build_sources(configs: Dict[Platform, SourceConfig],
                  session: Optional[requests.Session] = None) -> Dict[Platform, ReviewSource]:
    """Instantiate an adapter for every active source config."""
    sources = {}
    for platform, config in configs.items():
        source_cls = SOURCE_CLASSES.get(platform)
        if source_cls is None:
            logger.warning(f"No adapter available for platform: {platform.value}")
            continue
        if not config.enabled:
            logger.info(f"{platform.value}: disabled by configuration")
            continue
        if not config.api_key:
            logger.warning(f"{platform.value}: no API key configured, source disabled")
            continue
        sources[platform] = source_cls(config.api_key, timeout=config.timeout, session=session)
    return sources


class ReviewAggregator:
    """Fetches reviews for one business from every configured source in parallel."""

    def __init__(self, sources: Dict[Platform, ReviewSource],
                 timeout: float = ErrorConstants.AGGREGATION_TIMEOUT):
        self.sources = dict(sources)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "ReviewAggregator":
        return cls(build_sources(load_source_configs(settings)), timeout=settings.aggregation_timeout)

    def _selected(self, platforms: Optional[Iterable[Platform]]) -> Dict[Platform, ReviewSource]:
        if platforms is None:
            return self.sources
        wanted = set(platforms)
        return {p: s for p, s in self.sources.items() if p in wanted}

    def _fetch_from_source(self, source: ReviewSource, business_name: str,
                           location: Optional[str]) -> List[UnifiedReview]:
        """Search, then fetch reviews for the source's first match."""
        matches = source.search_business(business_name, location)
        if not matches:
            logger.info(f"{source.platform.value}: no business found for '{business_name}'")
            return []
        top = matches[0]
        logger.info(f"{source.platform.value}: using top match '{top.name}' ({top.id})")
        return source.get_reviews(top.id)

    def _run_parallel(self, sources: Dict[Platform, ReviewSource], fn) -> Dict[Platform, list]:
        """Run fn(source) for each source; failures and timeouts yield an empty list."""
        results = {platform: [] for platform in sources}
        if not sources:
            return results

        executor = ThreadPoolExecutor(max_workers=len(sources))
        future_to_platform = {executor.submit(fn, source): platform for platform, source in sources.items()}
        try:
            for future in as_completed(future_to_platform, timeout=self.timeout):
                platform = future_to_platform[future]
                try:
                    results[platform] = future.result()
                    logger.info(f"✅ {platform.value}: collected {len(results[platform])} items")
                except Exception as e:
                    logger.error(f"❌ {platform.value}: failed with error: {e}")
                    results[platform] = []
        except FuturesTimeout:
            for future, platform in future_to_platform.items():
                if not future.done():
                    future.cancel()
                    logger.error(f"❌ {platform.value}: abandoned after {self.timeout:.0f}s timeout")
        finally:
            # In-flight calls are abandoned rather than awaited
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    def get_all_reviews(self, business_name: str, location: Optional[str] = None,
                        platforms: Optional[Iterable[Platform]] = None) -> List[UnifiedReview]:
        """Collect reviews for a business from all selected sources."""
        logger.info(f"🚀 Aggregating reviews for '{business_name}' (location: {location or 'n/a'})")
        start_time = time.time()

        runnable = {}
        for platform, source in self._selected(platforms).items():
            if source.requires_location and not location:
                logger.info(f"{platform.value}: skipped, location required")
                continue
            runnable[platform] = source

        results = self._run_parallel(
            runnable, lambda source: self._fetch_from_source(source, business_name, location)
        )

        # Merge only after every source has settled
        all_reviews: List[UnifiedReview] = []
        for platform in runnable:
            all_reviews.extend(results[platform])

        elapsed_time = time.time() - start_time
        logger.info(f"Aggregated {len(all_reviews)} reviews from {len(runnable)} sources in {elapsed_time:.1f}s")
        return all_reviews

    def search_all(self, query: str, location: Optional[str] = None,
                   platforms: Optional[Iterable[Platform]] = None) -> Dict[Platform, List[BusinessInfo]]:
        """Run the business search on every selected source."""
        return self._run_parallel(
            self._selected(platforms), lambda source: source.search_business(query, location)
        )
