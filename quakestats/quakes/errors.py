from __future__ import annotations


class QuakeStatsError(Exception):
    """Base quakestats error."""


class FeedUnavailable(QuakeStatsError):
    """Feed could not be fetched (network failure or non-2xx status)."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
        self.message = message


class RowParseError(QuakeStatsError):
    MALFORMED_TIMESTAMP = "malformed-timestamp"
    MALFORMED_MAGNITUDE = "malformed-magnitude"
    TRUNCATED_ROW = "truncated-row"

    def __init__(self, kind: str, message: str):
        super().__init__(f"{kind}: {message}")
        self.kind = kind
        self.message = message


class LedgerUnavailable(QuakeStatsError):
    """Ledger file could not be opened, locked or read."""


class LedgerWriteFailed(QuakeStatsError):
    """Recording a publication failed."""


class PublishFailed(QuakeStatsError):
    """Publication channel rejected the post or could not be reached."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
        self.message = message
