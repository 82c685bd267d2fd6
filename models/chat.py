from typing import Literal

from pydantic import BaseModel


class ChatMessage(BaseModel):
    role: Literal["human", "ai"]
    statement: str
