"""Bluesky publisher over plain XRPC.

Two calls per post: com.atproto.server.createSession (identifier + app password)
and com.atproto.repo.createRecord for an app.bsky.feed.post record. Credentials
come from args or the BLUESKY_IDENTIFIER / BLUESKY_PASSWORD env variables.
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import logging
import os

import httpx

from ..errors import PublishFailed
from ..settings import DEFAULT_BLUESKY_HOST

logger = logging.getLogger(__name__)

POST_COLLECTION = "app.bsky.feed.post"


@dataclass
class BlueskyPublisher:
    name: str = "bluesky"
    host: str = DEFAULT_BLUESKY_HOST
    identifier: Optional[str] = None
    password: Optional[str] = None
    timeout: float = 20.0

    def _cred(self):
        identifier = self.identifier or os.getenv('BLUESKY_IDENTIFIER')
        password = self.password or os.getenv('BLUESKY_PASSWORD')
        if not identifier or not password:
            raise PublishFailed("Missing Bluesky credentials. Set BLUESKY_IDENTIFIER and BLUESKY_PASSWORD.")
        return identifier, password

    def _xrpc(self, method: str) -> str:
        return f"{self.host.rstrip('/')}/xrpc/{method}"

    def _post_json(self, client: httpx.Client, method: str, payload: dict, headers: dict | None = None) -> dict:
        resp = client.post(self._xrpc(method), json=payload, headers=headers)
        status = resp.status_code
        if status in (401, 403):
            raise PublishFailed(f"{method} unauthorized (HTTP {status})", status=status)
        if not 200 <= status < 300:
            raise PublishFailed(f"{method} failed with HTTP {status}", status=status)
        try:
            data = resp.json()
        except ValueError as e:
            raise PublishFailed(f"Invalid JSON from {method}", status=status) from e
        return data if isinstance(data, dict) else {}

    def publish(self, text: str) -> None:
        identifier, password = self._cred()
        try:
            with httpx.Client(timeout=self.timeout) as client:
                session = self._post_json(
                    client,
                    "com.atproto.server.createSession",
                    {"identifier": identifier, "password": password},
                )
                access_jwt = session.get("accessJwt")
                did = session.get("did")
                if not access_jwt or not did:
                    raise PublishFailed("Bluesky session response missing accessJwt/did")
                record = {
                    "$type": POST_COLLECTION,
                    "text": text,
                    "createdAt": datetime.now(timezone.utc).isoformat(timespec='seconds').replace('+00:00', 'Z'),
                }
                created = self._post_json(
                    client,
                    "com.atproto.repo.createRecord",
                    {"repo": did, "collection": POST_COLLECTION, "record": record},
                    headers={"Authorization": f"Bearer {access_jwt}"},
                )
        except httpx.RequestError as e:
            raise PublishFailed(f"Network error contacting Bluesky: {e}") from e
        logger.info(f"Posted report to Bluesky as {session.get('handle') or did} ({created.get('uri')})")
