"""Core modules for ReviewPulse."""

from .models import *
from .config import settings, Settings, SourceConfig, load_source_configs
from .errors import *
from .analytics import AnalyticsFilters, AnalyticsReport, compute_analytics

__all__ = [
    "settings",
    "Settings",
    "SourceConfig",
    "load_source_configs",
    "Platform",
    "Sentiment",
    "BusinessInfo",
    "UnifiedReview",
    "Classification",
    "StoredReview",
    "IngestionSummary",
    "ReviewPulseError",
    "SourceUnavailable",
    "ClassificationFailure",
    "DuplicateReview",
    "PersistenceFailure",
    "InvalidFilter",
    "AnalyticsFilters",
    "AnalyticsReport",
    "compute_analytics",
]
