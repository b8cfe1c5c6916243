"""Services for ReviewPulse."""

from .aggregator import ReviewAggregator, build_sources
from .base import ReviewSource
from .google_client import GoogleMapsSource
from .yelp_client import YelpSource
from .trustpilot_client import TrustpilotSource
from .llm import ClassifierFactory, ClassifierGateway, FallbackReviewClassifier, OpenAIReviewClassifier
from .store import ReviewStore, InMemoryReviewStore, SQLReviewStore
from .ingestion import ReviewIngestor
from .pipeline import ReviewPipeline

__all__ = [
    "ReviewAggregator",
    "build_sources",
    "ReviewSource",
    "GoogleMapsSource",
    "YelpSource",
    "TrustpilotSource",
    "ClassifierFactory",
    "ClassifierGateway",
    "FallbackReviewClassifier",
    "OpenAIReviewClassifier",
    "ReviewStore",
    "InMemoryReviewStore",
    "SQLReviewStore",
    "ReviewIngestor",
    "ReviewPipeline",
]
