"""Test review source adapters against canned API payloads."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

from reviewpulse.core.constants import SourceConstants
from reviewpulse.core.errors import SourceUnavailable
from reviewpulse.core.models import Platform
from reviewpulse.services.base import clamp_rating, normalize_content, parse_iso_datetime
from reviewpulse.services.google_client import GoogleMapsSource
from reviewpulse.services.trustpilot_client import TrustpilotSource
from reviewpulse.services.yelp_client import YelpSource


def _response(payload, status=200):
    response = Mock()
    response.status_code = status
    response.json.return_value = payload
    return response


def _session(*payloads):
    session = Mock()
    session.get.side_effect = [p if isinstance(p, Mock) else _response(p) for p in payloads]
    return session


class TestHelpers:
    """Test rating and content normalization helpers."""

    def test_clamp_rating(self):
        """Ratings are rounded and clamped into 1-5."""
        assert clamp_rating(4) == 4
        assert clamp_rating("3") == 3
        assert clamp_rating(4.6) == 5
        assert clamp_rating(0) == 1
        assert clamp_rating(7) == 5

    def test_clamp_rating_rejects_non_numeric(self):
        with pytest.raises(ValueError):
            clamp_rating(None)
        with pytest.raises(ValueError):
            clamp_rating("great")

    def test_normalize_content(self):
        assert normalize_content("  Tasty  ") == "Tasty"
        assert normalize_content("") == SourceConstants.EMPTY_CONTENT_SENTINEL
        assert normalize_content(None) == SourceConstants.EMPTY_CONTENT_SENTINEL

    def test_parse_iso_datetime(self):
        assert parse_iso_datetime("2024-05-01T10:00:00Z") == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
        # Yelp uses a space separator and no offset
        assert parse_iso_datetime("2024-05-01 10:00:00") == datetime(2024, 5, 1, 10)


class TestGoogleMapsSource:
    """Test the Google Places adapter."""

    def test_search_business(self):
        """Text search maps results and appends the location hint."""
        session = _session({"results": [
            {"place_id": "p1", "name": "Joe's Pizza", "formatted_address": "7 Carmine St", "rating": 4.5,
             "user_ratings_total": 120},
            {"name": "No id"},
        ]})
        source = GoogleMapsSource("gm-key", session=session)

        matches = source.search_business("Joe's Pizza", "New York")

        assert [m.id for m in matches] == ["p1"]
        assert matches[0].address == "7 Carmine St"
        assert matches[0].review_count == 120
        params = session.get.call_args.kwargs["params"]
        assert params["query"] == "Joe's Pizza New York"
        assert params["key"] == "gm-key"

    def test_get_reviews_maps_fields(self):
        session = _session({"result": {"name": "Joe's Pizza", "reviews": [
            {"time": 1714557600, "rating": 5, "text": "Best slice", "author_name": "Ann",
             "profile_photo_url": "http://img"},
            {"time": 1714471200, "rating": 2, "text": "   "},
        ]}})
        source = GoogleMapsSource("gm-key", session=session)

        reviews = source.get_reviews("p1")

        assert len(reviews) == 2
        first = reviews[0]
        assert first.platform == Platform.GOOGLE_MAPS
        assert first.platform_id == "gm_p1_1714557600"
        assert first.business_name == "Joe's Pizza"
        assert first.business_id == "p1"
        assert first.rating == 5
        assert first.author_name == "Ann"
        assert first.occurred_at == datetime.fromtimestamp(1714557600, tz=timezone.utc)
        assert "place_id:p1" in first.url
        assert reviews[1].content == SourceConstants.EMPTY_CONTENT_SENTINEL

    def test_malformed_review_is_skipped(self):
        session = _session({"result": {"name": "Joe's Pizza", "reviews": [
            {"rating": 5, "text": "no timestamp"},
            {"time": 1714557600, "rating": "n/a", "text": "bad rating"},
            {"time": 1714557601, "rating": 4, "text": "ok"},
        ]}})
        reviews = GoogleMapsSource("gm-key", session=session).get_reviews("p1")

        assert [r.platform_id for r in reviews] == ["gm_p1_1714557601"]

    def test_http_error_raises_source_unavailable(self):
        session = _session(_response({}, status=403))
        with pytest.raises(SourceUnavailable):
            GoogleMapsSource("gm-key", session=session).search_business("Joe's Pizza")

    def test_network_error_raises_source_unavailable(self):
        session = Mock()
        session.get.side_effect = requests.ConnectionError("boom")
        with pytest.raises(SourceUnavailable) as exc_info:
            GoogleMapsSource("gm-key", session=session).get_reviews("p1")
        assert exc_info.value.platform == Platform.GOOGLE_MAPS

    @pytest.mark.parametrize("status", ["REQUEST_DENIED", "OVER_QUERY_LIMIT", "INVALID_REQUEST"])
    def test_error_status_raises_source_unavailable(self, status):
        """Places reports auth and quota errors with HTTP 200 and a status field."""
        session = _session({"status": status, "error_message": "The provided API key is invalid.", "results": []})

        with pytest.raises(SourceUnavailable) as exc_info:
            GoogleMapsSource("bad-key", session=session).search_business("Joe's Pizza")

        assert "API key is invalid" in str(exc_info.value)

    def test_error_status_on_details_raises_source_unavailable(self):
        session = _session({"status": "OVER_QUERY_LIMIT"})
        with pytest.raises(SourceUnavailable) as exc_info:
            GoogleMapsSource("gm-key", session=session).get_reviews("p1")
        assert "OVER_QUERY_LIMIT" in str(exc_info.value)

    def test_zero_results_is_not_an_error(self):
        session = _session({"status": "ZERO_RESULTS", "results": []})
        assert GoogleMapsSource("gm-key", session=session).search_business("Nowhere Diner") == []

    def test_invalid_json_raises_source_unavailable(self):
        response = _response(None)
        response.json.side_effect = ValueError("not json")
        with pytest.raises(SourceUnavailable):
            GoogleMapsSource("gm-key", session=_session(response)).search_business("x")


class TestYelpSource:
    """Test the Yelp Fusion adapter."""

    def test_requires_location(self):
        session = Mock()
        source = YelpSource("yelp-key", session=session)

        assert source.requires_location
        assert source.search_business("Joe's Pizza") == []
        session.get.assert_not_called()

    def test_search_business(self):
        session = _session({"businesses": [
            {"id": "b1", "name": "Joe's Pizza", "location": {"display_address": ["7 Carmine St", "New York, NY"]},
             "phone": "+1212", "rating": 4.0, "review_count": 900},
        ]})
        source = YelpSource("yelp-key", session=session)

        matches = source.search_business("Joe's Pizza", "New York")

        assert matches[0].id == "b1"
        assert matches[0].address == "7 Carmine St, New York, NY"
        assert session.get.call_args.kwargs["headers"] == {"Authorization": "Bearer yelp-key"}
        assert session.get.call_args.kwargs["params"]["location"] == "New York"

    def test_get_reviews(self):
        session = _session(
            {"reviews": [
                {"id": "r9", "rating": 1, "text": "Cold pizza", "time_created": "2024-05-01 10:00:00",
                 "user": {"name": "Bob", "image_url": "http://bob"}, "url": "http://yelp/r9"},
            ]},
            {"id": "b1", "name": "Joe's Pizza"},
        )
        reviews = YelpSource("yelp-key", session=session).get_reviews("b1")

        assert len(reviews) == 1
        review = reviews[0]
        assert review.platform_id == "yelp_b1_r9"
        assert review.business_name == "Joe's Pizza"
        assert review.rating == 1
        assert review.author_name == "Bob"
        assert review.occurred_at == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)


class TestTrustpilotSource:
    """Test the Trustpilot adapter."""

    def test_search_business(self):
        session = _session({"businessUnits": [
            {"id": "u1", "displayName": "Joe's Pizza", "websiteUrl": "https://joes.example", "trustScore": 4.2},
        ]})
        source = TrustpilotSource("tp-key", session=session)

        matches = source.search_business("Joe's Pizza")

        assert matches[0].id == "u1"
        assert matches[0].website == "https://joes.example"
        assert session.get.call_args.kwargs["headers"] == {"apikey": "tp-key"}

    def test_get_reviews(self):
        session = _session(
            {"id": "u1", "displayName": "Joe's Pizza"},
            {"reviews": [
                {"id": "t1", "stars": 4, "title": "Good", "text": "Good crust",
                 "createdAt": "2024-05-02T08:30:00Z", "consumer": {"displayName": "Cleo"}},
            ]},
        )
        reviews = TrustpilotSource("tp-key", session=session).get_reviews("u1")

        review = reviews[0]
        assert review.platform == Platform.TRUSTPILOT
        assert review.platform_id == "tp_u1_t1"
        assert review.title == "Good"
        assert review.rating == 4
        assert review.author_name == "Cleo"
        assert session.get.call_args.kwargs["params"] == {"perPage": SourceConstants.TRUSTPILOT_PAGE_SIZE}
