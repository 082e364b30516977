import time
from typing import Any, Callable, Optional

from pydantic import ValidationError

from constants import DELETE_GRACE_SECONDS
from errors import InvalidJoinRequest, InvalidMessage, RelayError
from logging_config import get_logger
from registry import ChatRegistry
from scheduler import Scheduler, TimerHandle
from schemas.chat import (
    AutoDeleteTriggerEvent,
    ChatMessageRequest,
    ErrorEvent,
    JoinChatRequest,
    JoinedChatEvent,
    RelayedMessageEvent,
    UserJoinedEvent,
)
from transport import Transport

logger = get_logger(__name__)


class RelayEngine:
    """Routes join / message / delete events between the registry and the transport.

    Each handler validates its payload and applies its registry mutation
    before the first ``await``, so handlers never interleave mid-mutation on
    a single event loop.
    """

    def __init__(
        self,
        registry: ChatRegistry,
        transport: Transport,
        scheduler: Scheduler,
        clock: Callable[[], float] = time.time,
        grace_delay: float = DELETE_GRACE_SECONDS,
    ):
        self.registry = registry
        self.transport = transport
        self.scheduler = scheduler
        self.clock = clock
        self.grace_delay = grace_delay

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    async def join(self, sid: str, data: Any) -> None:
        try:
            request = self._parse_join(data)
        except RelayError as e:
            await self._report(sid, e)
            return

        invite_id, alias = request.invite_id, request.alias
        chat = self.registry.get_or_create(invite_id, self.now_ms())
        if not chat.add_participant(alias):
            logger.debug(f"Alias {alias} already a participant of chat {invite_id}")

        await self.transport.enter_room(sid, invite_id)
        logger.info(f"{alias} joined chat {invite_id} (connection {sid})")

        await self.transport.broadcast(
            invite_id,
            "user-joined",
            UserJoinedEvent(alias=alias, message=f"{alias} joined the secure chat").model_dump(),
            skip_sid=sid,
        )
        await self.transport.send(sid, "joined-chat", JoinedChatEvent(invite_id=invite_id).model_dump(by_alias=True))

    async def message(self, sid: str, data: Any) -> None:
        try:
            request = self._parse_message(data)
        except RelayError as e:
            await self._report(sid, e)
            return

        invite_id = request.invite_id
        chat = self.registry.get(invite_id)
        if chat is not None:
            chat.add_message(request.sender, request.message, self.now_ms())
        else:
            # Relayed anyway, storage is best-effort
            logger.debug(f"No stored chat {invite_id}, relaying message without storing it")
        logger.info(f"Message in chat {invite_id} from {request.sender}")

        await self.transport.broadcast(
            invite_id,
            "message",
            RelayedMessageEvent(message=request.message, sender=request.sender).model_dump(),
            skip_sid=sid,
        )

    async def delete_request(self, sid: str, data: Any) -> Optional[TimerHandle]:
        invite_id = data.get("inviteId") if isinstance(data, dict) else None
        if not isinstance(invite_id, str) or not invite_id:
            logger.debug(f"Ignoring auto-delete request without invite id from connection {sid}")
            return None

        logger.info(f"Auto-delete requested for chat {invite_id} by connection {sid}")
        await self.transport.broadcast(
            invite_id,
            "auto-delete-trigger",
            AutoDeleteTriggerEvent(invite_id=invite_id).model_dump(by_alias=True),
        )
        # Never cancelled: a rejoin during the grace window is still wiped
        return self.scheduler.call_later(self.grace_delay, self.expire_chat, invite_id)

    def expire_chat(self, invite_id: str) -> None:
        if self.registry.delete(invite_id):
            logger.info(f"Chat {invite_id} cleaned from server")

    async def disconnect(self, sid: str) -> None:
        # Aliases stay in their chats; cleanup is left to auto-delete or the sweeper
        logger.info(f"Client disconnected: {sid}")

    def _parse_join(self, data: Any) -> JoinChatRequest:
        try:
            request = JoinChatRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed join-chat payload: {e.error_count()} errors")
            raise InvalidJoinRequest()
        if not request.invite_id or not request.alias:
            logger.warning("join-chat rejected: missing inviteId or alias")
            raise InvalidJoinRequest()
        return request

    def _parse_message(self, data: Any) -> ChatMessageRequest:
        try:
            request = ChatMessageRequest.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed message payload: {e.error_count()} errors")
            raise InvalidMessage()
        if not request.invite_id or not request.message or not request.sender:
            logger.warning("message rejected: missing inviteId, message or sender")
            raise InvalidMessage()
        return request

    async def _report(self, sid: str, error: RelayError) -> None:
        await self.transport.send(sid, "error", ErrorEvent(message=error.message).model_dump())
