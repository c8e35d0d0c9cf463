"""Render feed items as channel messages."""

from __future__ import annotations

import html

from ..config import ChannelConfig, FeedConfig, FilterConfig
from .channel import (
    DeleteMessageRequest,
    EditMessageTextRequest,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    SendMessageRequest,
)
from .models import FeedItem

HOT = "🔥"


def hot_suffix(value: int, threshold: int) -> str:
    return f" {HOT}" if value > threshold else ""


class MessageFormatter:
    """Build Bot API requests for a story."""

    def __init__(self, channel: ChannelConfig, feed: FeedConfig, filters: FilterConfig) -> None:
        self.channel = channel
        self.feed = feed
        self.filters = filters

    def text(self, item: FeedItem) -> str:
        return f"<b>{html.escape(item.title, quote=False)}</b>  {item.url}"

    def reply_markup(self, item: FeedItem) -> InlineKeyboardMarkup:
        threshold = self.filters.hot_threshold
        return InlineKeyboardMarkup(
            inline_keyboard=[
                [
                    InlineKeyboardButton(
                        text=f"Score: {item.score}{hot_suffix(item.score, threshold)}",
                        url=item.url,
                    ),
                    InlineKeyboardButton(
                        text=f"Comments: {item.descendants}{hot_suffix(item.descendants, threshold)}",
                        url=self.feed.permalink(item.id),
                    ),
                ]
            ]
        )

    def send_request(self, item: FeedItem) -> SendMessageRequest:
        return SendMessageRequest(
            chat_id=self.channel.chat_id,
            text=self.text(item),
            parse_mode=self.channel.parse_mode,
            reply_markup=self.reply_markup(item),
        )

    def edit_request(self, item: FeedItem, message_id: int) -> EditMessageTextRequest:
        return EditMessageTextRequest(
            chat_id=self.channel.chat_id,
            message_id=message_id,
            text=self.text(item),
            parse_mode=self.channel.parse_mode,
            reply_markup=self.reply_markup(item),
        )

    def delete_request(self, message_id: int) -> DeleteMessageRequest:
        return DeleteMessageRequest(chat_id=self.channel.chat_id, message_id=message_id)


__all__ = ["HOT", "MessageFormatter", "hot_suffix"]
