from pydantic import BaseModel, Field
from typing import Optional


class JoinChatRequest(BaseModel):
    invite_id: Optional[str] = Field(None, alias="inviteId")
    alias: Optional[str] = None

class ChatMessageRequest(BaseModel):
    invite_id: Optional[str] = Field(None, alias="inviteId")
    message: Optional[str] = None
    sender: Optional[str] = None

class StoredMessage(BaseModel):
    id: str
    sender: str
    body: str
    timestamp: int  # epoch milliseconds

class JoinedChatEvent(BaseModel):
    success: bool = True
    invite_id: str = Field(serialization_alias="inviteId")
    message: str = "Secure connection established"

class UserJoinedEvent(BaseModel):
    alias: str
    message: str

class RelayedMessageEvent(BaseModel):
    message: str
    sender: str

class AutoDeleteTriggerEvent(BaseModel):
    invite_id: str = Field(serialization_alias="inviteId")
    message: str = "Chat deleted for security"

class ErrorEvent(BaseModel):
    message: str

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    active_chats: int
