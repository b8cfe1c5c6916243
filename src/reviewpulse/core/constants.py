"""Constants and configuration values for ReviewPulse."""

# Source Adapter Constants
class SourceConstants:
    """Constants related to review source adapters."""

    SEARCH_LIMIT = 20  # businesses per search call
    TRUSTPILOT_PAGE_SIZE = 100  # reviews per Trustpilot page
    EMPTY_CONTENT_SENTINEL = "(no review text)"  # replaces blank review bodies
    MIN_RATING = 1
    MAX_RATING = 5

    GOOGLE_PLACES_URL = "https://maps.googleapis.com/maps/api/place"
    GOOGLE_OK_STATUSES = ("OK", "ZERO_RESULTS")  # any other Places status is an error
    YELP_API_URL = "https://api.yelp.com/v3"
    TRUSTPILOT_API_URL = "https://api.trustpilot.com/v1"

# Analytics Constants
class AnalyticsConstants:
    """Constants for analytics and insight generation."""

    DEFAULT_DAYS = 30  # trailing window for analytics queries
    MAX_DAYS = 36500  # upper bound keeps the window start a representable date
    TOP_TOPICS_LIMIT = 10
    RECENT_REVIEWS_LIMIT = 5  # recent positive/negative examples
    RATING_DECIMALS = 2

    # Insight thresholds
    HIGH_POSITIVE_SHARE = 70.0  # percent
    LOW_POSITIVE_SHARE = 40.0  # percent
    EXCELLENT_RATING = 4.5
    POOR_RATING = 3.0
    TREND_WINDOW = 10  # most recent reviews compared against the overall mean
    TREND_DELTA = 0.3

    # Listing
    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 100

# Classifier Constants
class ClassifierConstants:
    """Constants for the sentiment/topic classifier."""

    PROMPT_VERSION = "v1.2"  # bump to invalidate cached classifications
    TEMPERATURE = 0.2
    MAX_TOKENS = 600
    MAX_TOPICS = 8
    MANUAL_REVIEW_MARKER = "manual_review_required"
    FALLBACK_SUMMARY = "Automatic analysis unavailable; review requires manual analysis"
    FALLBACK_ACTION = "Review this feedback manually"

# Cache Constants
class CacheConstants:
    """Constants for caching behavior."""

    CACHE_TTL_HOURS = 24 * 7  # classifications are stable per review text
    CACHE_KEY_LENGTH = 8  # length of cache key for logging

# Error Handling Constants
class ErrorConstants:
    """Constants for error handling and retries."""

    MAX_RETRY_ATTEMPTS = 3
    RETRY_BASE_DELAY = 1.0
    RETRY_MAX_WAIT = 30.0  # seconds, cap on a single backoff sleep
    SOURCE_TIMEOUT = 10.0  # seconds per HTTP call to a review source
    AGGREGATION_TIMEOUT = 60.0  # seconds for one whole aggregation pass
    CLASSIFIER_TIMEOUT = 30.0  # seconds per classifier request

# File and Path Constants
class FileConstants:
    """Constants for file operations."""

    CACHE_DIR = ".cache/classifier"
    SOURCES_FILE = "config/sources.yaml"
    DATABASE_URL = "sqlite:///reviewpulse.db"
    LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
