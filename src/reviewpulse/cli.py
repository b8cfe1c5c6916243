"""Command-line interface for ReviewPulse."""

import argparse
import json
import logging
import subprocess
import sys
from pathlib import Path

from .core.config import settings
from .core.constants import FileConstants, AnalyticsConstants
from .core.errors import InvalidFilter
from .core.models import Platform
from .services.pipeline import ReviewPipeline
from .utils.data_prep import export_to_json, prepare_export

logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=FileConstants.LOG_FORMAT
    )


def _platforms(names):
    if not names:
        return None
    try:
        return [Platform(name.upper()) for name in names]
    except ValueError as e:
        raise InvalidFilter(str(e))


def _emit(payload, args):
    if getattr(args, "out", None):
        export_to_json(payload, args.out)
        print(f"Results exported to {args.out}")
    if getattr(args, "json", False):
        print(json.dumps(prepare_export(payload), indent=2, ensure_ascii=False))
        return True
    return False


def cmd_ingest(args, pipeline):
    """Aggregate and store reviews for one business."""
    summary = pipeline.aggregate_and_store(args.business, args.location, _platforms(args.platform))
    if _emit(summary, args):
        return
    print(f"Processed {summary.total_found} reviews, saved {summary.newly_stored} new ones")
    if summary.duplicates_skipped or summary.failed:
        print(f"  duplicates skipped: {summary.duplicates_skipped}, failed: {summary.failed}")


def cmd_search(args, pipeline):
    """Show which business each source would aggregate."""
    results = pipeline.search(args.query, args.location)
    if _emit(results, args):
        return
    for platform, matches in results.items():
        print(f"\n{platform.value}: {len(matches)} matches")
        for i, match in enumerate(matches[:5], 1):
            marker = " <- used for aggregation" if i == 1 else ""
            print(f"  {i}. {match.name} ({match.id}) {match.address or ''}{marker}")


def cmd_analytics(args, pipeline):
    """Compute analytics for the given filters."""
    report = pipeline.analytics({
        "business_name": args.business,
        "platform": args.platform,
        "days": args.days,
    })
    if _emit(report, args):
        return

    print(f"\nAnalytics ({report.period}):")
    print(f"Total reviews: {report.total_reviews}")
    print(f"Average rating: {report.average_rating:.2f}/5")
    s = report.sentiment_distribution
    print(f"Sentiment: {s['positive']} positive, {s['negative']} negative, {s['neutral']} neutral")
    print("Ratings: " + ", ".join(f"{k}★ {v}" for k, v in report.rating_distribution.items()))
    if report.platform_distribution:
        print("Platforms: " + ", ".join(f"{k} {v}" for k, v in report.platform_distribution.items()))
    if report.top_topics:
        print("\nTop topics:")
        for item in report.top_topics:
            print(f"  {item['topic']}: {item['count']}")
    if len(report.business_comparison) > 1:
        print("\nBusiness comparison:")
        for row in report.business_comparison:
            print(f"  {row['name']}: {row['average_rating']:.2f}/5 ({row['total_reviews']} reviews)")
    print("\nInsights:")
    for insight in report.insights:
        print(f"  - {insight}")


def cmd_reviews(args, pipeline):
    """List stored reviews page by page."""
    result = pipeline.list_reviews(
        page=args.page, limit=args.limit, platform=args.platform,
        sentiment=args.sentiment, business_name=args.business,
    )
    if _emit(result, args):
        return
    p = result["pagination"]
    print(f"Page {p['page']}/{max(p['pages'], 1)} ({p['total']} reviews)")
    for review in result["reviews"]:
        print(f"  [{review.platform.value}] {review.business_name} {review.rating}★ "
              f"{review.sentiment.value} {review.occurred_at:%Y-%m-%d}: {review.content[:80]}")


def cmd_health(args, pipeline):
    """Report store and service status."""
    report = pipeline.health()
    print(json.dumps(report, indent=2))
    if report["status"] != "healthy":
        sys.exit(1)


def cmd_ui(args):
    """UI command."""
    app_path = Path(__file__).parent / "ui" / "streamlit_app.py"

    if not app_path.exists():
        print(f"Streamlit app not found at {app_path}")
        return

    print("Launching ReviewPulse dashboard...")
    try:
        subprocess.run([
            sys.executable, "-m", "streamlit", "run", str(app_path)
        ], check=True)
    except subprocess.CalledProcessError as e:
        print(f"Failed to launch UI: {e}")
    except KeyboardInterrupt:
        print("\nUI stopped by user")


def build_parser():
    parser = argparse.ArgumentParser(description="ReviewPulse - Multi-Platform Review Analytics")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    platform_names = [p.value for p in Platform]

    ingest_parser = subparsers.add_parser('ingest', help='Aggregate and store reviews for a business')
    ingest_parser.add_argument('business', help='Business name')
    ingest_parser.add_argument('--location', help='Location hint (required by Yelp)')
    ingest_parser.add_argument('--platform', action='append', help=f'Restrict to platform(s): {", ".join(platform_names)}')
    ingest_parser.add_argument('--json', action='store_true', help='Print JSON output')
    ingest_parser.add_argument('--out', help='Output JSON file')

    search_parser = subparsers.add_parser('search', help='Search businesses on every source')
    search_parser.add_argument('query', help='Search query')
    search_parser.add_argument('--location', help='Location hint')
    search_parser.add_argument('--json', action='store_true', help='Print JSON output')
    search_parser.add_argument('--out', help='Output JSON file')

    analytics_parser = subparsers.add_parser('analytics', help='Compute review analytics')
    analytics_parser.add_argument('--business', help='Business name (substring, case-insensitive)')
    analytics_parser.add_argument('--platform', help='Platform filter')
    analytics_parser.add_argument('--days', default=str(settings.default_days), help='Trailing window in days')
    analytics_parser.add_argument('--json', action='store_true', help='Print JSON output')
    analytics_parser.add_argument('--out', help='Output JSON file')

    reviews_parser = subparsers.add_parser('reviews', help='List stored reviews')
    reviews_parser.add_argument('--business', help='Business name (substring, case-insensitive)')
    reviews_parser.add_argument('--platform', help='Platform filter')
    reviews_parser.add_argument('--sentiment', help='POSITIVE, NEGATIVE or NEUTRAL')
    reviews_parser.add_argument('--page', default='1', help='Page number')
    reviews_parser.add_argument('--limit', default=str(AnalyticsConstants.DEFAULT_PAGE_SIZE), help='Page size')
    reviews_parser.add_argument('--json', action='store_true', help='Print JSON output')
    reviews_parser.add_argument('--out', help='Output JSON file')

    subparsers.add_parser('health', help='Check store and service configuration')
    subparsers.add_parser('ui', help='Launch the Streamlit dashboard')
    return parser


COMMANDS = {
    'ingest': cmd_ingest,
    'search': cmd_search,
    'analytics': cmd_analytics,
    'reviews': cmd_reviews,
    'health': cmd_health,
}


def main(argv=None, pipeline=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    if args.command == 'ui':
        cmd_ui(args)
        return

    try:
        pipeline = pipeline or ReviewPipeline.from_settings(settings)
        COMMANDS[args.command](args, pipeline)
    except InvalidFilter as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        sys.exit(2)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
