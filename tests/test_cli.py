"""Test the command-line interface with an injected pipeline."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from reviewpulse.cli import main
from reviewpulse.core.models import Platform, UnifiedReview
from reviewpulse.services.aggregator import ReviewAggregator
from reviewpulse.services.pipeline import ReviewPipeline

from conftest import FakeSource


def _recent_review(platform_id, rating, days_ago):
    # The CLI computes analytics against the wall clock
    return UnifiedReview(
        platform=Platform.GOOGLE_MAPS,
        platform_id=platform_id,
        business_name="Joe's Pizza",
        rating=rating,
        content="Great slice",
        occurred_at=datetime.now(timezone.utc) - timedelta(days=days_ago),
    )


@pytest.fixture
def pipeline(store):
    sources = {
        Platform.GOOGLE_MAPS: FakeSource(
            Platform.GOOGLE_MAPS, [_recent_review("gm_1", 5, 1), _recent_review("gm_2", 4, 2)],
        ),
    }
    return ReviewPipeline(ReviewAggregator(sources), store)


class TestCLI:
    """Test CLI commands."""

    def test_ingest(self, pipeline, capsys):
        main(["ingest", "Joe's Pizza"], pipeline=pipeline)
        assert "Processed 2 reviews, saved 2 new ones" in capsys.readouterr().out

    def test_ingest_json(self, pipeline, capsys):
        main(["ingest", "Joe's Pizza", "--json"], pipeline=pipeline)
        data = json.loads(capsys.readouterr().out)
        assert data == {"total_found": 2, "newly_stored": 2, "duplicates_skipped": 0, "failed": 0}

    def test_analytics(self, pipeline, capsys):
        main(["ingest", "Joe's Pizza"], pipeline=pipeline)
        capsys.readouterr()

        main(["analytics", "--business", "joe", "--json"], pipeline=pipeline)

        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["total_reviews"] == 2
        assert data["summary"]["average_rating"] == 4.5
        assert data["summary"]["period"] == "30 days"

    def test_analytics_export(self, pipeline, capsys, tmp_path):
        out = tmp_path / "report.json"
        main(["analytics", "--out", str(out)], pipeline=pipeline)

        payload = json.loads(out.read_text(encoding="utf-8"))
        assert payload["data"]["summary"]["total_reviews"] == 0
        assert "export_timestamp" in payload["metadata"]

    @pytest.mark.parametrize("days", ["abc", "1000000"])
    def test_invalid_days_exits_with_usage_error(self, pipeline, capsys, days):
        with pytest.raises(SystemExit) as exc_info:
            main(["analytics", "--days", days], pipeline=pipeline)

        assert exc_info.value.code == 2
        assert "Invalid request" in capsys.readouterr().err

    def test_reviews_listing(self, pipeline, capsys):
        main(["ingest", "Joe's Pizza"], pipeline=pipeline)
        capsys.readouterr()

        main(["reviews", "--limit", "1"], pipeline=pipeline)

        out = capsys.readouterr().out
        assert "Page 1/2 (2 reviews)" in out
        assert "GOOGLE_MAPS" in out

    def test_search(self, pipeline, capsys):
        main(["search", "Joe's Pizza"], pipeline=pipeline)
        out = capsys.readouterr().out
        assert "GOOGLE_MAPS: 2 matches" in out
        assert "used for aggregation" in out

    def test_health(self, pipeline, capsys):
        main(["health"], pipeline=pipeline)
        assert json.loads(capsys.readouterr().out)["status"] == "healthy"

    def test_no_command_prints_help(self, capsys):
        main([])
        assert "usage" in capsys.readouterr().out.lower()
