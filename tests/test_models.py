"""Test the review data models."""

from datetime import datetime, timedelta, timezone

import pytest

from reviewpulse.core.models import Classification, Platform, Sentiment, StoredReview

from conftest import NOW, make_review, make_stored


class TestUnifiedReview:
    """Validation on construction."""

    @pytest.mark.parametrize("rating", [0, 6, 4.5, "5"])
    def test_rejects_invalid_rating(self, rating):
        with pytest.raises(ValueError):
            make_review(rating=rating)

    def test_rejects_blank_content(self):
        with pytest.raises(ValueError):
            make_review(content="   ")

    def test_occurred_at_normalized_to_utc(self):
        review = make_review()
        assert review.occurred_at.tzinfo is not None

        offset = timezone(timedelta(hours=2))
        local = StoredReview(
            platform=Platform.YELP, platform_id="y1", business_name="Joe's Pizza", rating=3,
            content="ok", occurred_at=datetime(2024, 6, 1, 12, tzinfo=offset),
        )
        assert local.occurred_at == datetime(2024, 6, 1, 10, tzinfo=timezone.utc)
        assert local.occurred_at.utcoffset() == timedelta(0)


class TestHashing:
    """Frozen models holding metadata dicts stay hashable."""

    def test_classification_hashable(self):
        first = Classification(Sentiment.POSITIVE, 0.8, ("service",), {"summary": "good"})
        second = Classification(Sentiment.POSITIVE, 0.8, ("service",), {"summary": "good"})

        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_stored_review_hashable(self):
        review = StoredReview.from_review(
            make_review(platform_id="gm_1"),
            Classification(Sentiment.POSITIVE, 0.5, (), {"summary": "fine"}),
        )

        assert hash(review) == hash((Platform.GOOGLE_MAPS, "gm_1"))
        assert review in {review}

    def test_stored_reviews_with_different_keys_are_distinct(self):
        reviews = {make_stored(platform_id="a"), make_stored(platform_id="b"), make_stored(platform_id="a", days_ago=5)}
        assert {r.platform_id for r in reviews} == {"a", "b"}
        assert len(reviews) == 3


def test_stored_review_to_dict():
    review = make_stored(platform_id="gm_1", rating=5, topics=["service"])

    data = review.to_dict()

    assert data["platform"] == "GOOGLE_MAPS"
    assert data["sentiment"] == "POSITIVE"
    assert data["topics"] == ["service"]
    assert data["occurred_at"] == (NOW - timedelta(days=1)).isoformat()
