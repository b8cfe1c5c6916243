"""Review persistence: in-memory and SQL-backed stores keyed by (platform, platform_id)."""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import JSON, Column, DateTime, Float, Index, Integer, String, Text, UniqueConstraint, create_engine, func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.analytics import AnalyticsFilters
from ..core.errors import DuplicateReview, PersistenceFailure
from ..core.models import Platform, Sentiment, StoredReview

logger = logging.getLogger(__name__)


class ReviewStore(ABC):
    """Append-only store of classified reviews."""

    @abstractmethod
    def find_by_natural_key(self, platform: Platform, platform_id: str) -> Optional[StoredReview]:
        """Return the stored review with this key, or None."""

    @abstractmethod
    def insert(self, review: StoredReview) -> StoredReview:
        """Persist a review; raises DuplicateReview or PersistenceFailure."""

    @abstractmethod
    def query(self, filters: AnalyticsFilters, since: Optional[datetime] = None,
              offset: int = 0, limit: Optional[int] = None) -> List[StoredReview]:
        """Matching reviews, newest occurrence first."""

    @abstractmethod
    def count(self, filters: AnalyticsFilters, since: Optional[datetime] = None) -> int:
        """Number of matching reviews."""

    def query_by_filters(self, filters: AnalyticsFilters, now: Optional[datetime] = None) -> List[StoredReview]:
        """The analytics slice: matching reviews within the trailing day window."""
        return self.query(filters, since=filters.since(now))

    def ping(self) -> bool:
        return True


class InMemoryReviewStore(ReviewStore):
    """Thread-safe dict-backed store, used for tests and dry runs."""

    def __init__(self):
        self._reviews: Dict[Tuple[Platform, str], StoredReview] = {}
        self._lock = threading.Lock()

    def find_by_natural_key(self, platform: Platform, platform_id: str) -> Optional[StoredReview]:
        with self._lock:
            return self._reviews.get((platform, platform_id))

    def insert(self, review: StoredReview) -> StoredReview:
        with self._lock:
            if review.natural_key in self._reviews:
                raise DuplicateReview(review.platform, review.platform_id)
            self._reviews[review.natural_key] = review
        return review

    def _matching(self, filters: AnalyticsFilters, since: Optional[datetime]) -> List[StoredReview]:
        with self._lock:
            reviews = list(self._reviews.values())
        matched = [r for r in reviews if filters.matches(r, since)]
        return sorted(matched, key=lambda r: r.occurred_at, reverse=True)

    def query(self, filters: AnalyticsFilters, since: Optional[datetime] = None,
              offset: int = 0, limit: Optional[int] = None) -> List[StoredReview]:
        matched = self._matching(filters, since)
        end = None if limit is None else offset + limit
        return matched[offset:end]

    def count(self, filters: AnalyticsFilters, since: Optional[datetime] = None) -> int:
        return len(self._matching(filters, since))

    def __len__(self) -> int:
        with self._lock:
            return len(self._reviews)


Base = declarative_base()


class ReviewRecord(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True)
    platform = Column(String(32), nullable=False)
    platform_id = Column(String(255), nullable=False)

    business_name = Column(String(255), nullable=False)
    business_id = Column(String(255), nullable=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(500), nullable=True)
    content = Column(Text, nullable=False)
    author_name = Column(String(255), nullable=True)
    author_image = Column(String(1000), nullable=True)
    occurred_at = Column(DateTime, nullable=False)  # naive UTC
    url = Column(String(1000), nullable=True)

    sentiment = Column(String(16), nullable=False)
    sentiment_score = Column(Float, nullable=False)
    topics = Column(JSON, nullable=False, default=list)
    classification_meta = Column(JSON, nullable=False, default=dict)
    ingested_at = Column(DateTime, nullable=False)  # naive UTC

    __table_args__ = (
        UniqueConstraint("platform", "platform_id", name="uq_reviews_platform_id"),
        Index("ix_reviews_occurred_at", "occurred_at"),
        Index("ix_reviews_business_name", "business_name"),
    )


def _naive_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _to_record(review: StoredReview) -> ReviewRecord:
    return ReviewRecord(
        id=review.id,
        platform=review.platform.value,
        platform_id=review.platform_id,
        business_name=review.business_name,
        business_id=review.business_id,
        rating=review.rating,
        title=review.title,
        content=review.content,
        author_name=review.author_name,
        author_image=review.author_image,
        occurred_at=_naive_utc(review.occurred_at),
        url=review.url,
        sentiment=review.sentiment.value,
        sentiment_score=review.sentiment_score,
        topics=list(review.topics),
        classification_meta=dict(review.classification_meta),
        ingested_at=_naive_utc(review.ingested_at),
    )


def _from_record(record: ReviewRecord) -> StoredReview:
    return StoredReview(
        id=record.id,
        platform=Platform(record.platform),
        platform_id=record.platform_id,
        business_name=record.business_name,
        business_id=record.business_id,
        rating=record.rating,
        title=record.title,
        content=record.content,
        author_name=record.author_name,
        author_image=record.author_image,
        occurred_at=record.occurred_at.replace(tzinfo=timezone.utc),
        url=record.url,
        sentiment=Sentiment(record.sentiment),
        sentiment_score=record.sentiment_score,
        topics=tuple(record.topics or ()),
        classification_meta=dict(record.classification_meta or {}),
        ingested_at=record.ingested_at.replace(tzinfo=timezone.utc),
    )


class SQLReviewStore(ReviewStore):
    """SQLAlchemy-backed store; the unique constraint guards the natural key across processes."""

    def __init__(self, database_url: str, echo: bool = False):
        self.engine = create_engine(database_url, echo=echo, future=True)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        Base.metadata.create_all(bind=self.engine)
        logger.info(f"Initialized SQLReviewStore at {self.engine.url.render_as_string(hide_password=True)}")

    def find_by_natural_key(self, platform: Platform, platform_id: str) -> Optional[StoredReview]:
        stmt = select(ReviewRecord).where(
            ReviewRecord.platform == platform.value, ReviewRecord.platform_id == platform_id
        )
        try:
            with self.SessionLocal() as session:
                record = session.execute(stmt).scalar_one_or_none()
                return _from_record(record) if record is not None else None
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Lookup failed for {platform.value}/{platform_id}", cause=e) from e

    def insert(self, review: StoredReview) -> StoredReview:
        with self.SessionLocal() as session:
            try:
                session.add(_to_record(review))
                session.commit()
            except IntegrityError as e:
                session.rollback()
                # Another pass stored the same key first; any other constraint is a real failure
                if self.find_by_natural_key(review.platform, review.platform_id) is not None:
                    raise DuplicateReview(review.platform, review.platform_id) from e
                raise PersistenceFailure(f"Constraint violation storing {review.platform_id}", cause=e) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise PersistenceFailure(f"Failed to store {review.platform_id}", cause=e) from e
        return review

    def _where(self, stmt, filters: AnalyticsFilters, since: Optional[datetime]):
        if filters.business_name:
            stmt = stmt.where(ReviewRecord.business_name.icontains(filters.business_name, autoescape=True))
        if filters.platform:
            stmt = stmt.where(ReviewRecord.platform == filters.platform.value)
        if filters.sentiment:
            stmt = stmt.where(ReviewRecord.sentiment == filters.sentiment.value)
        if since is not None:
            stmt = stmt.where(ReviewRecord.occurred_at >= _naive_utc(since))
        return stmt

    def query(self, filters: AnalyticsFilters, since: Optional[datetime] = None,
              offset: int = 0, limit: Optional[int] = None) -> List[StoredReview]:
        stmt = self._where(select(ReviewRecord), filters, since).order_by(ReviewRecord.occurred_at.desc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self.SessionLocal() as session:
                return [_from_record(r) for r in session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            raise PersistenceFailure("Review query failed", cause=e) from e

    def count(self, filters: AnalyticsFilters, since: Optional[datetime] = None) -> int:
        stmt = self._where(select(func.count()).select_from(ReviewRecord), filters, since)
        try:
            with self.SessionLocal() as session:
                return session.execute(stmt).scalar_one()
        except SQLAlchemyError as e:
            raise PersistenceFailure("Review count failed", cause=e) from e

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error(f"Store health check failed: {e}")
            return False
