"""Publication channel protocol.

A publisher takes the finished report text and either returns normally or raises
`PublishFailed`. Nothing else about the channel leaks into the pipeline.
"""
from __future__ import annotations
from typing import Protocol, runtime_checkable


@runtime_checkable
class Publisher(Protocol):
    name: str
    def publish(self, text: str) -> None:  # pragma: no cover - interface definition
        ...
