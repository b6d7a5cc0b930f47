from datetime import datetime, timezone
import logging

from quakestats.quakes.models import QuakeEvent
from quakestats.quakes.report import REPORT_TITLE, generate_report, render_report
from quakestats.quakes.weeks import complete_weeks, group_by_week

UTC = timezone.utc


class SpyLedger:
    def __init__(self, published=()):
        self.published = set(published)
        self.lookups = []

    def was_published(self, week_key):
        self.lookups.append(week_key)
        return week_key in self.published


def _buckets():
    evs = [
        QuakeEvent(timestamp=datetime(2024, 2, 5, 10, tzinfo=UTC), magnitude=4.2, label="Place A"),
        QuakeEvent(timestamp=datetime(2024, 2, 6, 3, tzinfo=UTC), magnitude=1.5, label="Place B"),
        QuakeEvent(timestamp=datetime(2024, 1, 30, 3, tzinfo=UTC), magnitude=6.3, label="Place C"),
    ]
    return group_by_week(evs)


def test_render_report_exact_text():
    text = render_report(_buckets()["2024-W06"])
    assert text == (
        "Weekly Earthquake Report\n"
        "2024-W06 (2024-02-05T00:00:00Z - 2024-02-11T23:59:59Z)\n"
        "\n"
        "Micro < 2.0: 1\n"
        "Minor 2.0 - 3.9: 0\n"
        "Light 4.0 - 4.9: 1\n"
        "Moderate 5.0 - 5.9: 0\n"
        "Strong 6.0 - 6.9: 0\n"
        "Major 7.0 - 7.9: 0\n"
        "Great >= 8.0: 0\n"
        "\n"
        "Total: 2"
    )


def test_render_report_deterministic():
    b = _buckets()["2024-W06"]
    assert render_report(b) == render_report(b.model_copy(deep=True))


def test_generate_report_picks_latest_complete_week():
    complete = complete_weeks(_buckets(), datetime(2024, 2, 12, tzinfo=UTC))
    assert sorted(complete) == ["2024-W05", "2024-W06"]
    ledger = SpyLedger()
    report = generate_report(complete, ledger)
    assert report.should_publish is True
    assert report.week_key == "2024-W06"
    assert report.text.startswith(REPORT_TITLE)
    assert report.text.endswith("Total: 2")
    assert ledger.lookups == ["2024-W06"]


def test_generate_report_already_published():
    complete = complete_weeks(_buckets(), datetime(2024, 2, 12, tzinfo=UTC))
    report = generate_report(complete, SpyLedger(published={"2024-W06"}))
    assert report.should_publish is False
    assert report.week_key == "2024-W06"
    assert report.text is None


def test_generate_report_skips_older_unpublished_week():
    # W05 was never published, but only the latest complete week is considered
    complete = complete_weeks(_buckets(), datetime(2024, 2, 12, tzinfo=UTC))
    ledger = SpyLedger(published={"2024-W06"})
    report = generate_report(complete, ledger)
    assert report.should_publish is False
    assert ledger.lookups == ["2024-W06"]


def test_generate_report_no_complete_weeks_skips_ledger():
    ledger = SpyLedger()
    report = generate_report({}, ledger)
    assert report.should_publish is False
    assert report.week_key is None
    assert ledger.lookups == []


def test_generate_report_already_published_logs_nothing(caplog):
    caplog.set_level(logging.DEBUG, logger="quakestats")
    complete = complete_weeks(_buckets(), datetime(2024, 2, 12, tzinfo=UTC))
    generate_report(complete, SpyLedger(published={"2024-W06"}))
    assert caplog.records == []
