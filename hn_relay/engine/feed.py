"""Hacker News feed access: top story ids and item details."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from ..config import FeedConfig
from .deadline import Deadline
from .errors import DecodeError, DetailFetchError
from .models import FeedItem


class HackerNewsFeed:
    """Read the ranked story list and individual items over HTTP."""

    def __init__(
        self,
        config: FeedConfig,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("hn_relay.feed").bind(component="feed")
        self._client = client or httpx.Client(follow_redirects=True)

    def close(self) -> None:
        self._client.close()

    def top_story_ids(self, deadline: Deadline, limit: int | None = None) -> list[int]:
        """Return the current top story ids in rank order, at most ``limit`` of them."""

        limit = limit or self.config.batch_size
        payload = self._get_json(
            self.config.top_stories_url(),
            deadline,
            params={"orderBy": '"$key"', "limitToFirst": limit},
        )
        if not isinstance(payload, list):
            raise DecodeError(f"top stories payload is not a list: {type(payload).__name__}")
        ids: list[int] = []
        for value in payload[:limit]:
            if isinstance(value, bool) or not isinstance(value, int):
                raise DecodeError(f"top stories payload contains a non-integer id: {value!r}")
            ids.append(value)
        return ids

    def item(self, item_id: int, deadline: Deadline) -> FeedItem:
        payload = self._get_json(self.config.item_url(item_id), deadline)
        if payload is None:
            raise DecodeError(f"item {item_id} does not exist")
        try:
            return FeedItem.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(f"item {item_id} has an unexpected shape: {exc}") from exc

    def _get_json(
        self,
        url: str,
        deadline: Deadline,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = self._client.get(url, params=params, timeout=deadline.remaining())
        except httpx.HTTPError as exc:
            self.logger.warning("feed_request_failed", url=url, error=str(exc))
            raise DetailFetchError(f"request to {url} failed: {exc}") from exc
        if response.status_code != 200:
            self.logger.warning("feed_bad_status", url=url, status=response.status_code)
            raise DetailFetchError(f"unexpected status {response.status_code} from {url}")
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"invalid JSON from {url}") from exc


__all__ = ["HackerNewsFeed"]
