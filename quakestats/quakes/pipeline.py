"""Weekly pipeline: fetch -> parse -> aggregate -> filter -> select -> publish -> record.

The ledger entry is written only after the publisher returned normally, so a failed
publish is retried by the next run, and a crash between publish and record can
lead to one duplicate post.
"""
from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
import logging
import time

from .errors import FeedUnavailable, LedgerUnavailable, LedgerWriteFailed, PublishFailed
from .ledger import PublicationLedger
from .logging_config import log_event
from .models import Report
from .parser import parse_feed
from .publishers.base import Publisher
from .report import generate_report
from .sources.base import FeedSource
from .weeks import complete_weeks, group_by_week

logger = logging.getLogger(__name__)


class RunState(str, Enum):
    FETCHING = "fetching"
    PARSING = "parsing"
    AGGREGATING = "aggregating"
    FILTERING = "filtering"
    SELECTING = "selecting"
    PUBLISHING = "publishing"
    RECORDING = "recording"
    # terminal
    NO_REPORT = "no_report"
    ALREADY_PUBLISHED = "already_published"
    DRY_RUN = "dry_run"
    PUBLISH_FAILED = "publish_failed"
    DONE = "done"
    FATAL = "fatal"


TERMINAL_STATES = frozenset({
    RunState.NO_REPORT,
    RunState.ALREADY_PUBLISHED,
    RunState.DRY_RUN,
    RunState.PUBLISH_FAILED,
    RunState.DONE,
    RunState.FATAL,
})


@dataclass
class PipelineRun:
    now: datetime
    state: RunState = RunState.FETCHING
    history: List[RunState] = field(default_factory=list)
    report: Report = field(default_factory=Report)
    events_total: int = 0
    dropped: Counter = field(default_factory=Counter)
    weeks_total: int = 0
    complete_total: int = 0
    recorded: bool = False
    error: Optional[str] = None

    def advance(self, state: RunState):
        self.state = state
        self.history.append(state)
        logger.debug(f"pipeline state -> {state.value}")

    def summary(self) -> dict:
        return {
            'state': self.state.value,
            'week_key': self.report.week_key,
            'should_publish': self.report.should_publish,
            'events_total': self.events_total,
            'dropped_total': sum(self.dropped.values()),
            'weeks_total': self.weeks_total,
            'complete_total': self.complete_total,
            'recorded': self.recorded,
            'error': self.error,
        }


class WeeklyReportPipeline:
    def __init__(self, feed: FeedSource, ledger: PublicationLedger, publisher: Publisher, dry_run: bool = False):
        self.feed = feed
        self.ledger = ledger
        self.publisher = publisher
        self.dry_run = dry_run

    def run(self, now: datetime | None = None) -> PipelineRun:
        if now is None:
            now = datetime.now(timezone.utc)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        run = PipelineRun(now=now)
        t_start = time.time()
        try:
            self._run(run)
        except (FeedUnavailable, LedgerUnavailable) as e:
            run.error = str(e)
            run.advance(RunState.FATAL)
            raise
        finally:
            log_event('weekly_run', elapsed_s=round(time.time() - t_start, 3), **run.summary())
        return run

    def _run(self, run: PipelineRun):
        run.advance(RunState.FETCHING)
        raw = self.feed.fetch()

        run.advance(RunState.PARSING)
        parsed = parse_feed(raw)
        run.events_total = len(parsed.events)
        run.dropped = parsed.dropped
        logger.info(f"Parsed {run.events_total} events ({parsed.dropped_total} dropped)")

        run.advance(RunState.AGGREGATING)
        buckets = group_by_week(parsed.events)
        run.weeks_total = len(buckets)

        run.advance(RunState.FILTERING)
        complete = complete_weeks(buckets, run.now)
        run.complete_total = len(complete)

        run.advance(RunState.SELECTING)
        run.report = generate_report(complete, self.ledger)
        report = run.report
        if not report.should_publish:
            if report.week_key is None:
                logger.info("No complete weeks of earthquake data available")
                run.advance(RunState.NO_REPORT)
            else:
                logger.info(f"Report for {report.week_key} already posted")
                run.advance(RunState.ALREADY_PUBLISHED)
            return

        logger.info(f"New report for {report.week_key}:\n{report.text}")
        if self.dry_run:
            logger.info("Dry run: skipping publish and ledger update")
            run.advance(RunState.DRY_RUN)
            return

        run.advance(RunState.PUBLISHING)
        try:
            self.publisher.publish(report.text)
        except PublishFailed as e:
            run.error = str(e)
            logger.error(f"Publishing {report.week_key} via {self.publisher.name} failed: {e}")
            run.advance(RunState.PUBLISH_FAILED)
            return

        run.advance(RunState.RECORDING)
        try:
            self.ledger.mark_published(report.week_key)
            run.recorded = True
        except LedgerWriteFailed as e:
            run.error = str(e)
            logger.warning(f"Published {report.week_key} but could not record it; next run may post it again: {e}")
        run.advance(RunState.DONE)


__all__ = ["RunState", "TERMINAL_STATES", "PipelineRun", "WeeklyReportPipeline"]
