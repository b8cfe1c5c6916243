"""ReviewPulse - multi-platform review aggregation and analytics."""

__version__ = "1.0.0"
__author__ = "ReviewPulse Team"

from .core.models import *
from .core.config import settings
from .services.pipeline import ReviewPipeline
from .services.aggregator import ReviewAggregator
from .services.llm import ClassifierFactory

__all__ = [
    "settings",
    "ReviewPipeline",
    "ReviewAggregator",
    "ClassifierFactory",
]
