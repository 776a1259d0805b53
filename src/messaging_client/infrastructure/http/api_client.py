from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
import pydantic

from messaging_client.application.exceptions import ApiError
from messaging_client.application.ports.api import ConversationList, MessagePage
from messaging_client.domain.entities.message import Message
from messaging_client.domain.value_objects.enums import (
    ConversationType,
    DeliveryStatus,
    MessageType,
)
from messaging_client.infrastructure.http.schemas import (
    ApiResponse,
    ConversationListResponse,
    CreateConversationRequest,
    CreateConversationResponse,
    MessagesResponse,
    SendMessageRequest,
    SendMessageResponse,
    UnreadCountResponse,
)
from messaging_client.infrastructure.mappers import conversation as conversation_mapper
from messaging_client.infrastructure.mappers import message as message_mapper

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=pydantic.BaseModel)


class HttpMessagingApi:
    """Implements application.ports.api.MessagingApi over the REST backend."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        timeout_seconds: float = 15.0,
        page_size: int = 50,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._page_size = page_size
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_conversations(self) -> ConversationList:
        body = await self._call("GET", "/messages/conversations", ConversationListResponse)
        return ConversationList(
            conversations=[conversation_mapper.schema_to_entity(c) for c in body.conversations],
            total_unread=body.total_unread,
        )

    async def create_conversation(
        self,
        participant_ids: list[str],
        conversation_type: ConversationType,
        title: str | None,
    ) -> str:
        request = CreateConversationRequest(
            participant_ids=participant_ids,
            type=conversation_type.value,
            title=title,
        )
        body = await self._call(
            "POST", "/messages/conversations", CreateConversationResponse, json=request.to_wire(),
        )
        return body.conversation.id

    async def list_messages(
        self,
        conversation_id: str,
        *,
        before: str | None = None,
    ) -> MessagePage:
        params: dict[str, Any] = {"limit": self._page_size}
        if before:
            params["before"] = before
        body = await self._call(
            "GET", f"/messages/conversations/{conversation_id}", MessagesResponse, params=params,
        )
        return MessagePage(
            messages=[message_mapper.schema_to_entity(m, conversation_id) for m in body.messages],
            has_more=body.has_more,
        )

    async def send_message(
        self,
        conversation_id: str,
        content: str,
        message_type: MessageType,
    ) -> Message:
        request = SendMessageRequest(content=content, message_type=message_type.value)
        body = await self._call(
            "POST",
            f"/messages/conversations/{conversation_id}/messages",
            SendMessageResponse,
            json=request.to_wire(),
        )
        return message_mapper.schema_to_entity(
            body.message, conversation_id, default_status=DeliveryStatus.SENT,
        )

    async def mark_read(self, conversation_id: str) -> None:
        response = await self.request("POST", f"/messages/conversations/{conversation_id}/read")
        _raise_for_envelope(response)

    async def unread_count(self) -> int:
        body = await self._call("GET", "/messages/unread-count", UnreadCountResponse)
        return body.unread_count

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> ApiResponse[Any]:
        """Perform a call and wrap the outcome as ``{ok, status, data, error}``."""
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Network error: {exc}") from exc

        try:
            data = response.json() if response.content else None
        except ValueError:
            data = None

        if response.is_success:
            return ApiResponse(ok=True, status=response.status_code, data=data)
        return ApiResponse(
            ok=False,
            status=response.status_code,
            data=data,
            error=_error_detail(data, response),
        )

    async def _call(
        self,
        method: str,
        path: str,
        schema: type[SchemaT],
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> SchemaT:
        response = await self.request(method, path, json=json, params=params)
        _raise_for_envelope(response)
        try:
            return schema.model_validate(response.data)
        except pydantic.ValidationError as exc:
            logger.warning("Unexpected payload from %s %s: %s", method, path, exc)
            raise ApiError("Unexpected response from server", response.status) from exc


def _raise_for_envelope(response: ApiResponse[Any]) -> None:
    if not response.ok:
        raise ApiError(response.error or "Request failed", response.status)


def _error_detail(data: Any, response: httpx.Response) -> str:
    if isinstance(data, dict):
        for key in ("error", "message", "detail"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Request failed ({response.status_code} {response.reason_phrase})".strip()
