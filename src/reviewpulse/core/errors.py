"""Error taxonomy for the ReviewPulse pipeline."""

from typing import Optional


class ReviewPulseError(Exception):
    pass


class SourceUnavailable(ReviewPulseError):
    """A review source failed (network, auth, rate limit, bad payload)."""

    def __init__(self, platform, message: str = "Source unavailable"):
        self.platform = platform
        super().__init__(f"{getattr(platform, 'value', platform)}: {message}")


class ClassificationFailure(ReviewPulseError):
    pass


class DuplicateReview(ReviewPulseError):
    """The (platform, platform_id) natural key is already stored."""

    def __init__(self, platform, platform_id: str):
        self.platform = platform
        self.platform_id = platform_id
        super().__init__(f"Review {getattr(platform, 'value', platform)}/{platform_id} already stored")


class PersistenceFailure(ReviewPulseError):
    def __init__(self, message: str = "Store rejected the write", cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)


class InvalidFilter(ReviewPulseError):
    pass
