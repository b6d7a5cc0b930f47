"""Feed source protocol.

A feed source returns the raw CSV bytes of one poll. It raises `FeedUnavailable`
when the feed cannot be reached; row-level problems are the parser's concern.
"""
from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class FeedSource(Protocol):
    name: str
    def fetch(self) -> bytes:  # pragma: no cover - interface definition
        ...
