"""Basic usage examples for ReviewPulse."""

from reviewpulse import ReviewPipeline, settings
from reviewpulse.utils import export_to_json


def example_ingest(pipeline: ReviewPipeline):
    """Example: Aggregate and store reviews for one business."""
    print("🔍 Aggregating reviews for: Joe's Pizza (New York)")

    summary = pipeline.aggregate_and_store("Joe's Pizza", "New York")
    print(f"📊 Found {summary.total_found} reviews")
    print(f"💾 Saved {summary.newly_stored} new, skipped {summary.duplicates_skipped} duplicates")
    if summary.failed:
        print(f"⚠️ {summary.failed} reviews could not be stored")


def example_analytics(pipeline: ReviewPipeline):
    """Example: Analytics over the last 30 days."""
    print("\n📈 Analytics for Joe's Pizza (last 30 days)")

    report = pipeline.analytics({"business_name": "Joe's Pizza", "days": 30})
    print(f"⭐ Average rating: {report.average_rating:.2f}/5 over {report.total_reviews} reviews")
    print(f"😊 Sentiment: {report.sentiment_distribution}")
    for item in report.top_topics[:5]:
        print(f"  {item['topic']}: {item['count']}")
    for insight in report.insights:
        print(f"💡 {insight}")

    export_to_json(report, "joes_pizza_analytics.json")
    print("📁 Report exported to joes_pizza_analytics.json")


def example_listing(pipeline: ReviewPipeline):
    """Example: Page through stored negative reviews."""
    print("\n👎 Recent negative reviews")

    result = pipeline.list_reviews(page=1, limit=5, sentiment="NEGATIVE")
    for review in result["reviews"]:
        print(f"  [{review.platform.value}] {review.rating}★ {review.content[:80]}")
    print(f"  ({result['pagination']['total']} in total)")


if __name__ == "__main__":
    print("ReviewPulse Basic Usage Examples")
    print("=" * 40)

    pipeline = ReviewPipeline.from_settings(settings)
    health = pipeline.health()
    if health["warnings"]:
        print(f"⚠️ {health['warnings']}")

    try:
        example_ingest(pipeline)
        example_analytics(pipeline)
        example_listing(pipeline)
    except Exception as e:
        print(f"❌ Error running examples: {e}")
        print("Make sure your API keys are configured in .env")
