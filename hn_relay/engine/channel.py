"""Telegram Bot API client for the send/edit/delete message calls."""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError

from ..config import ChannelConfig
from .deadline import Deadline
from .errors import ChannelError

# Someone removed the message from the channel by hand, or it is older than
# the 48h window in which Telegram allows bots to delete messages.
IGNORABLE_DELETE_ERRORS = (
    "message to delete not found",
    "message can't be deleted",
)
NOT_MODIFIED_ERROR = "message is not modified"


class InlineKeyboardButton(BaseModel):
    text: str
    url: str | None = None


class InlineKeyboardMarkup(BaseModel):
    inline_keyboard: list[list[InlineKeyboardButton]] = Field(default_factory=list)


class SendMessageRequest(BaseModel):
    chat_id: str
    text: str
    parse_mode: str | None = None
    reply_markup: InlineKeyboardMarkup | None = None


class EditMessageTextRequest(BaseModel):
    chat_id: str
    message_id: int
    text: str
    parse_mode: str | None = None
    reply_markup: InlineKeyboardMarkup | None = None


class DeleteMessageRequest(BaseModel):
    chat_id: str
    message_id: int


class ApiResponse(BaseModel):
    ok: bool = False
    error_code: int | None = None
    description: str = ""


class MessageResult(BaseModel):
    message_id: int


class SendMessageResponse(ApiResponse):
    result: MessageResult | None = None


class DeleteMessageResponse(ApiResponse):
    def should_ignore_error(self) -> bool:
        """True when a failed delete still means the message is effectively gone."""
        return self.error_code == 400 and any(
            pattern in self.description for pattern in IGNORABLE_DELETE_ERRORS
        )


ResponseT = TypeVar("ResponseT", bound=ApiResponse)


class TelegramChannel:
    """Post, edit and delete channel messages through the Bot API."""

    def __init__(
        self,
        config: ChannelConfig,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.config = config
        self.logger = logger or structlog.get_logger("hn_relay.channel").bind(component="channel")
        self._client = client or httpx.Client()

    def close(self) -> None:
        self._client.close()

    def send_message(self, request: SendMessageRequest, deadline: Deadline) -> int:
        response = self._call("sendMessage", request, SendMessageResponse, deadline)
        if not response.ok:
            raise ChannelError(
                f"sendMessage failed: {response.description}",
                error_code=response.error_code,
                description=response.description,
            )
        if response.result is None:
            raise ChannelError("sendMessage succeeded without a message_id")
        return response.result.message_id

    def edit_message(self, request: EditMessageTextRequest, deadline: Deadline) -> None:
        response = self._call("editMessageText", request, ApiResponse, deadline)
        if response.ok:
            return
        if response.error_code == 400 and NOT_MODIFIED_ERROR in response.description:
            self.logger.debug("edit_not_modified", message_id=request.message_id)
            return
        raise ChannelError(
            f"editMessageText failed: {response.description}",
            error_code=response.error_code,
            description=response.description,
        )

    def delete_message(self, request: DeleteMessageRequest, deadline: Deadline) -> DeleteMessageResponse:
        """Return the raw delete response; callers decide which failures matter."""
        return self._call("deleteMessage", request, DeleteMessageResponse, deadline)

    def _call(
        self,
        method: str,
        request: BaseModel,
        response_type: type[ResponseT],
        deadline: Deadline,
    ) -> ResponseT:
        body: dict[str, Any] = request.model_dump(mode="json", exclude_none=True)
        try:
            response = self._client.post(
                self.config.method_url(method),
                json=body,
                timeout=deadline.remaining(),
            )
        except httpx.HTTPError as exc:
            # The URL carries the bot token, so only the method is logged.
            self.logger.warning("channel_request_failed", method=method, error=type(exc).__name__)
            raise ChannelError(f"{method} request failed: {type(exc).__name__}") from exc
        try:
            return response_type.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ChannelError(
                f"{method} returned an unreadable response (status {response.status_code})"
            ) from exc


__all__ = [
    "ApiResponse",
    "DeleteMessageRequest",
    "DeleteMessageResponse",
    "EditMessageTextRequest",
    "IGNORABLE_DELETE_ERRORS",
    "InlineKeyboardButton",
    "InlineKeyboardMarkup",
    "MessageResult",
    "SendMessageRequest",
    "SendMessageResponse",
    "TelegramChannel",
]
