"""Weekly earthquake report: fetch the USGS feed, post the last complete ISO week once.

Usage:
  quakestats-weekly              # fetch, report, publish, record
  quakestats-weekly --dry-run    # print the report, publish nothing, record nothing
  quakestats-weekly --debug

Environment (a .env file in the working directory is loaded first):
  BLUESKY_IDENTIFIER / BLUESKY_PASSWORD   credentials for the posting account
  BLUESKY_HOST                            PDS host (default https://bsky.social)
  QUAKESTATS_FEED_URL                     CSV feed (default USGS all_month.csv)
  QUAKESTATS_LEDGER_PATH                  sqlite ledger of published weeks
  QUAKESTATS_HTTP_TIMEOUT                 seconds per HTTP call (default 20)

Exit codes: 0 ok / nothing to do, 1 fatal (feed or ledger unavailable), 2 publish failed.
"""
from __future__ import annotations
import argparse
import logging
import sys

from dotenv import find_dotenv, load_dotenv

from quakestats.quakes.errors import FeedUnavailable, LedgerUnavailable
from quakestats.quakes.ledger import PublicationLedger
from quakestats.quakes.logging_config import setup_logging, log_event
from quakestats.quakes.pipeline import RunState, WeeklyReportPipeline
from quakestats.quakes.publishers.bluesky import BlueskyPublisher
from quakestats.quakes.settings import load_settings
from quakestats.quakes.sources.usgs_source import USGSFeedSource

logger = logging.getLogger("quakestats.weekly")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_PUBLISH_FAILED = 2


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description='Post the weekly earthquake report for the last complete ISO week.')
    ap.add_argument('--debug', action='store_true')
    ap.add_argument('--dry-run', action='store_true', help='Generate and print the report without publishing or recording it')
    args = ap.parse_args(argv)

    load_dotenv(find_dotenv(usecwd=True))
    setup_logging(debug=args.debug)
    settings = load_settings()

    feed = USGSFeedSource(url=settings.feed_url, timeout=settings.http_timeout)
    publisher = BlueskyPublisher(host=settings.bluesky_host, timeout=settings.http_timeout)
    try:
        with PublicationLedger(settings.ledger_path) as ledger:
            run = WeeklyReportPipeline(feed, ledger, publisher, dry_run=args.dry_run).run()
    except (FeedUnavailable, LedgerUnavailable) as e:
        logger.error(f"Weekly run aborted: {e}")
        log_event('weekly_run_fatal', error_type=type(e).__name__, error=str(e))
        return EXIT_FATAL

    if run.state is RunState.DRY_RUN:
        print(run.report.text)
    if run.state is RunState.PUBLISH_FAILED:
        return EXIT_PUBLISH_FAILED
    return EXIT_OK


if __name__ == '__main__':
    sys.exit(main())
