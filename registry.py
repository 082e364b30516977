import random
import string
from collections import deque
from typing import Deque, Dict, List, Optional, Set, Tuple

from constants import MAX_MESSAGES_PER_CHAT
from logging_config import get_logger
from schemas.chat import StoredMessage

logger = get_logger(__name__)


def generate_message_id(length: int = 11) -> str:
    return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))


class Chat:
    """Server-side state of one chat, keyed by its invitation identifier."""

    def __init__(self, invite_id: str, created_at: int, max_messages: int = MAX_MESSAGES_PER_CHAT):
        self.invite_id = invite_id
        self.created_at = created_at  # epoch milliseconds
        # Aliases ever seen in this chat; disconnection does not remove them
        self.participants: Set[str] = set()
        # deque drops the oldest entry once maxlen is reached
        self.messages: Deque[StoredMessage] = deque(maxlen=max_messages)

    def add_participant(self, alias: str) -> bool:
        """Add *alias*; returns False if it was already present."""
        if alias in self.participants:
            return False
        self.participants.add(alias)
        return True

    def add_message(self, sender: str, body: str, timestamp: int) -> StoredMessage:
        message = StoredMessage(
            id=generate_message_id(),
            sender=sender,
            body=body,
            timestamp=timestamp,
        )
        self.messages.append(message)
        return message

    def last_activity(self) -> int:
        if self.messages:
            return self.messages[-1].timestamp
        return self.created_at


class ChatRegistry:
    """In-memory mapping of invitation identifier -> Chat.

    Not persisted; a fresh instance is empty. Every method runs to completion
    without suspending, so on a single event loop no caller can observe a
    half-applied change.
    """

    def __init__(self, max_messages: int = MAX_MESSAGES_PER_CHAT):
        self.max_messages = max_messages
        self._chats: Dict[str, Chat] = {}

    def get_or_create(self, invite_id: str, now_ms: int) -> Chat:
        chat = self._chats.get(invite_id)
        if chat is None:
            chat = Chat(invite_id, created_at=now_ms, max_messages=self.max_messages)
            self._chats[invite_id] = chat
            logger.info(f"Chat {invite_id} created")
        return chat

    def get(self, invite_id: str) -> Optional[Chat]:
        return self._chats.get(invite_id)

    def delete(self, invite_id: str) -> bool:
        chat = self._chats.pop(invite_id, None)
        if chat is None:
            logger.debug(f"Chat {invite_id} already absent, nothing to delete")
            return False
        logger.debug(f"Chat {invite_id} deleted ({len(chat.messages)} messages dropped)")
        return True

    def items(self) -> List[Tuple[str, Chat]]:
        # Snapshot so callers may delete while iterating
        return list(self._chats.items())

    def __contains__(self, invite_id: object) -> bool:
        return invite_id in self._chats

    def __len__(self) -> int:
        return len(self._chats)
