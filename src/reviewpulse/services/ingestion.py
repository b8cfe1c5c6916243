"""Ingestion stage: dedup by natural key, classify, and persist new reviews."""

import logging
import threading
from typing import Iterable

from ..core.errors import DuplicateReview
from ..core.models import IngestionSummary, StoredReview, UnifiedReview
from .llm import ClassifierGateway
from .store import ReviewStore

logger = logging.getLogger(__name__)


class ReviewIngestor:
    """Stores only previously unseen reviews.

    Items are processed one at a time under a process-wide lock so that the
    check-then-insert sequence for a natural key is never interleaved. Across
    processes the store's uniqueness constraint is authoritative and a losing
    insert is counted as a duplicate.
    """

    _lock = threading.Lock()

    def __init__(self, store: ReviewStore, gateway: ClassifierGateway):
        self.store = store
        self.gateway = gateway

    def ingest(self, reviews: Iterable[UnifiedReview]) -> IngestionSummary:
        batch = sorted(reviews, key=lambda r: r.occurred_at, reverse=True)
        summary = IngestionSummary(total_found=len(batch))

        for review in batch:
            with self._lock:
                outcome = self._ingest_one(review)
            if outcome == "stored":
                summary.newly_stored += 1
            elif outcome == "duplicate":
                summary.duplicates_skipped += 1
            else:
                summary.failed += 1

        logger.info(
            f"Processed {summary.total_found} reviews, saved {summary.newly_stored} new ones "
            f"({summary.duplicates_skipped} duplicates, {summary.failed} failed)"
        )
        return summary

    def _ingest_one(self, review: UnifiedReview) -> str:
        key = f"{review.platform.value}/{review.platform_id}"
        try:
            if self.store.find_by_natural_key(review.platform, review.platform_id) is not None:
                logger.debug(f"Skipping already stored review {key}")
                return "duplicate"

            classification = self.gateway.classify(review)
            self.store.insert(StoredReview.from_review(review, classification))
            return "stored"
        except DuplicateReview:
            logger.info(f"Review {key} was stored concurrently; counted as duplicate")
            return "duplicate"
        except Exception as e:
            logger.error(f"Error processing review {key}: {e}")
            return "failed"
