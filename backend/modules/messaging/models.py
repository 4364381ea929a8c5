"""
Messaging module data models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from shared.models import Identity


class MessageType(str, Enum):
    """Kind of content a message carries."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"
    SYSTEM = "system"


class ConversationMessage(BaseModel):
    """A message as stored by the messaging store."""

    id: str = Field(..., description="Message ID")
    conversation_id: str = Field(..., description="Conversation the message belongs to")
    sender_id: str = Field(..., description="Sending user ID")
    content: str = Field(..., min_length=1, max_length=5000)
    message_type: MessageType = Field(default=MessageType.TEXT)
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_wire(self, sender: Optional[Identity] = None) -> dict[str, Any]:
        """Shape broadcast on ``message:new``, with the sender's public identity."""
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "sender": sender.public() if sender else {"userId": self.sender_id},
            "content": self.content,
            "messageType": self.message_type.value,
            "isRead": self.is_read,
            "createdAt": self.created_at.isoformat(),
        }
