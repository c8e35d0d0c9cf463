"""Execute one Create/Update/Delete action for one story."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

import structlog

from ..config import RelayConfig
from .channel import TelegramChannel
from .deadline import Deadline
from .errors import ChannelError, StorageError, UnrecordedMessageError
from .feed import HackerNewsFeed
from .formatting import MessageFormatter
from .models import Action, ActionKind, DispatchOutcome, FeedItem, project_record


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ItemDispatcher:
    """Carry a single action through enrichment, filtering, the channel and the store.

    Every handler is safe to re-run: Create re-checks the store before
    posting, Update overwrites the record unconditionally and Delete
    tolerates messages that are already gone.
    """

    def __init__(
        self,
        config: RelayConfig,
        feed: HackerNewsFeed,
        channel: TelegramChannel,
        store,
        formatter: MessageFormatter | None = None,
        clock: Callable[[], datetime] = utc_now,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.feed = feed
        self.channel = channel
        self.store = store
        self.formatter = formatter or MessageFormatter(config.channel, config.feed, config.filters)
        self.clock = clock
        self.logger = logger or structlog.get_logger("hn_relay.dispatcher").bind(component="dispatcher")
        self._handlers: dict[ActionKind, Callable[[Action, Deadline], DispatchOutcome]] = {
            ActionKind.CREATE: self.create,
            ActionKind.UPDATE: self.update,
            ActionKind.DELETE: self.delete,
        }

    def handle(self, action: Action, deadline: Deadline) -> DispatchOutcome:
        return self._handlers[action.kind](action, deadline)

    def create(self, action: Action, deadline: Deadline, item: FeedItem | None = None) -> DispatchOutcome:
        item = item or self.feed.item(action.item_id, deadline)
        if item.should_ignore(self.config.filters):
            self.logger.debug("story_ignored", item_id=action.item_id, action="create")
            return DispatchOutcome.IGNORED
        # A concurrent or retried Create may have posted since classification.
        if self.store.exists(action.item_id):
            self.logger.warning("story_already_posted", item_id=action.item_id)
            return DispatchOutcome.ALREADY_POSTED

        message_id = self.channel.send_message(self.formatter.send_request(item), deadline)
        try:
            self.store.put(project_record(item, message_id, self.clock()))
        except StorageError as exc:
            self.logger.error(
                "story_posted_unrecorded", item_id=action.item_id, message_id=message_id, error=str(exc)
            )
            raise UnrecordedMessageError(action.item_id, message_id, exc) from exc
        self.logger.info("story_created", item_id=action.item_id, message_id=message_id)
        return DispatchOutcome.CREATED

    def update(self, action: Action, deadline: Deadline, item: FeedItem | None = None) -> DispatchOutcome:
        item = item or self.feed.item(action.item_id, deadline)
        if item.should_ignore(self.config.filters):
            self.logger.debug("story_ignored", item_id=action.item_id, action="update")
            return DispatchOutcome.IGNORED

        message_id = action.message_id
        self.channel.edit_message(self.formatter.edit_request(item, message_id), deadline)
        self.store.put(project_record(item, message_id, self.clock()))
        self.logger.info("story_updated", item_id=action.item_id, message_id=message_id)
        return DispatchOutcome.UPDATED

    def delete(self, action: Action, deadline: Deadline) -> DispatchOutcome:
        response = self.channel.delete_message(
            self.formatter.delete_request(action.message_id), deadline
        )
        outcome = DispatchOutcome.DELETED
        if not response.ok:
            if not response.should_ignore_error():
                raise ChannelError(
                    f"deleteMessage failed for item {action.item_id}: {response.description}",
                    error_code=response.error_code,
                    description=response.description,
                )
            self.logger.warning(
                "delete_error_ignored",
                item_id=action.item_id,
                message_id=action.message_id,
                error_code=response.error_code,
                description=response.description,
            )
            outcome = DispatchOutcome.PURGED

        self.store.delete(action.item_id)
        self.logger.info(
            "story_removed", item_id=action.item_id, message_id=action.message_id, outcome=outcome.value
        )
        return outcome


__all__ = ["ItemDispatcher", "utc_now"]
