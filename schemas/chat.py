from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from models.chat import ChatMessage


# Request Schemas
class ChatRequest(BaseModel):
    message: str = Field(min_length=1)


# Response Schemas
class ChatResponse(BaseModel):
    response: str
    metadata: List[Dict[str, Any]] = []
    page: Optional[int] = None
    status: str = "Got response from AI."


class MessagesResponse(BaseModel):
    session_id: str
    messages: List[ChatMessage]


class SavedChatResponse(BaseModel):
    path: str
    message_count: int


class ChatFileListItem(BaseModel):
    filename: str
    size: int


class ArchiveResponse(BaseModel):
    archived: int
    archive_dir: str
