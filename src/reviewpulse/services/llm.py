"""Review classification: OpenAI-backed classifier with a deterministic fallback."""

import hashlib
import json
import logging
import re
from abc import ABC, abstractmethod
from textwrap import dedent
from typing import Any, Dict, Optional

import openai
from diskcache import Cache
from tenacity import retry, stop_after_attempt, wait_exponential

from ..core.config import Settings
from ..core.constants import CacheConstants, ClassifierConstants, ErrorConstants
from ..core.errors import ClassificationFailure
from ..core.models import Classification, Sentiment, UnifiedReview

logger = logging.getLogger(__name__)

CLASSIFY_SYSTEM_PROMPT = (
    "You are an expert in sentiment analysis of online customer reviews. "
    "Provide precise and useful analysis."
)

CLASSIFY_PROMPT = dedent("""
Analyze this review and return ONLY JSON (no prose, no code fences).

Review:
- Platform: {platform}
- Rating: {rating}/5
- Title: {title}
- Content: {content}
- Author: {author}

JSON schema:
{{
  "sentiment": "POSITIVE" | "NEGATIVE" | "NEUTRAL",
  "sentimentScore": number between -1 and 1,
  "topics": [short lowercase topic labels, at most {max_topics}],
  "summary": one-sentence summary,
  "actionItems": [recommended actions for the business]
}}
""").strip()


def _strip_code_fences(s: str) -> str:
    s = s.strip()
    return re.sub(r"^```(?:json)?|```$", "", s, flags=re.IGNORECASE | re.MULTILINE).strip()


def _safe_json(s: str) -> dict:
    """Parse JSON from an LLM response, tolerating fences and surrounding prose."""
    cleaned = _strip_code_fences(s or "")
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        m = re.search(r"\{.*\}", cleaned, re.S)
        if not m:
            raise ClassificationFailure(f"No JSON object in classifier output: {cleaned[:200]}")
        try:
            data = json.loads(m.group(0))
        except json.JSONDecodeError as e:
            raise ClassificationFailure(f"Unparsable classifier output: {e}")
    if not isinstance(data, dict):
        raise ClassificationFailure("Classifier output is not a JSON object")
    return data


def parse_classification(payload: Dict[str, Any]) -> Classification:
    """Validate a classifier JSON payload into a Classification."""
    try:
        sentiment = Sentiment(str(payload["sentiment"]).strip().upper())
        score = float(payload.get("sentimentScore", payload.get("sentiment_score")))
    except (KeyError, TypeError, ValueError) as e:
        raise ClassificationFailure(f"Malformed classification payload: {e}")
    if not -1.0 <= score <= 1.0:
        raise ClassificationFailure(f"Sentiment score out of range: {score}")

    raw_topics = payload.get("topics") or []
    if not isinstance(raw_topics, list):
        raise ClassificationFailure("Topics must be a list")
    topics = []
    for topic in raw_topics:
        label = str(topic).strip()
        if label and label not in topics:
            topics.append(label)

    action_items = payload.get("actionItems") or []
    return Classification(
        sentiment=sentiment,
        sentiment_score=score,
        topics=tuple(topics[:ClassifierConstants.MAX_TOPICS]),
        meta={
            "summary": str(payload.get("summary") or ""),
            "action_items": [str(a) for a in action_items] if isinstance(action_items, list) else [],
        },
    )


class ReviewClassifier(ABC):
    """Produces a sentiment/topic judgment for one review."""

    @abstractmethod
    def classify(self, review: UnifiedReview) -> Classification:
        """Classify a review; may raise on failure."""


class FallbackReviewClassifier(ReviewClassifier):
    """Deterministic classification derived purely from the star rating."""

    def classify(self, review: UnifiedReview) -> Classification:
        rating = review.rating
        if rating >= 4:
            sentiment = Sentiment.POSITIVE
        elif rating <= 2:
            sentiment = Sentiment.NEGATIVE
        else:
            sentiment = Sentiment.NEUTRAL
        return Classification(
            sentiment=sentiment,
            sentiment_score=(rating - 3) / 2,
            topics=(),
            meta={
                ClassifierConstants.MANUAL_REVIEW_MARKER: True,
                "summary": ClassifierConstants.FALLBACK_SUMMARY,
                "action_items": [ClassifierConstants.FALLBACK_ACTION],
            },
        )


class OpenAIReviewClassifier(ReviewClassifier):
    """OpenAI-based review classifier with on-disk caching."""

    def __init__(self, settings: Settings, client=None, cache: Optional[Cache] = None):
        self.client = client or openai.OpenAI(
            api_key=settings.effective_openai_key, timeout=settings.classifier_timeout, max_retries=0
        )
        self.model = settings.openai_model
        self.timeout = settings.classifier_timeout
        if cache is None and settings.cache_dir:
            cache = Cache(settings.cache_dir)
        self.cache = cache
        # Bind retry policy from settings; the final error propagates to the gateway
        self._complete = retry(
            stop=stop_after_attempt(max(1, settings.max_retries)),
            wait=wait_exponential(
                multiplier=settings.retry_delay, exp_base=settings.retry_backoff, max=ErrorConstants.RETRY_MAX_WAIT
            ),
            reraise=True,
        )(self._complete_once)
        logger.info(f"OpenAI classifier initialized (model={self.model}, cache={'on' if self.cache is not None else 'off'})")

    def _cache_key(self, prompt: str) -> str:
        return hashlib.md5(f"{self.model}|{prompt}|{ClassifierConstants.PROMPT_VERSION}".encode()).hexdigest()

    def _complete_once(self, prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": CLASSIFY_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=ClassifierConstants.TEMPERATURE,
            max_tokens=ClassifierConstants.MAX_TOKENS,
            timeout=self.timeout,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise ClassificationFailure("Empty response from OpenAI")
        return content.strip()

    def classify(self, review: UnifiedReview) -> Classification:
        prompt = CLASSIFY_PROMPT.format(
            platform=review.platform.value,
            rating=review.rating,
            title=review.title or "Untitled",
            content=review.content,
            author=review.author_name or "Anonymous",
            max_topics=ClassifierConstants.MAX_TOPICS,
        )
        cache_key = self._cache_key(prompt)

        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached:
                logger.debug(f"Cache hit for classification: {cache_key[:CacheConstants.CACHE_KEY_LENGTH]}...")
                return parse_classification(_safe_json(cached))

        raw = self._complete(prompt)
        classification = parse_classification(_safe_json(raw))

        if self.cache is not None:
            self.cache.set(cache_key, raw, expire=3600 * CacheConstants.CACHE_TTL_HOURS)
        return classification


class ClassifierGateway:
    """Total classification: any classifier failure falls back to the rating-based result."""

    def __init__(self, classifier: Optional[ReviewClassifier] = None,
                 fallback: Optional[ReviewClassifier] = None):
        self.fallback = fallback or FallbackReviewClassifier()
        self.classifier = classifier

    def classify(self, review: UnifiedReview) -> Classification:
        if self.classifier is None:
            return self.fallback.classify(review)
        try:
            return self.classifier.classify(review)
        except Exception as e:
            logger.warning(f"Classification failed for {review.platform.value}/{review.platform_id}: {e}. Using fallback.")
            return self.fallback.classify(review)

    @property
    def uses_fallback_only(self) -> bool:
        return self.classifier is None


class ClassifierFactory:
    """Factory for creating the classifier gateway."""

    @staticmethod
    def create(settings: Settings) -> ClassifierGateway:
        if settings.effective_openai_key:
            return ClassifierGateway(OpenAIReviewClassifier(settings))
        logger.info("No OpenAI key configured; using rating-based classification")
        return ClassifierGateway()
