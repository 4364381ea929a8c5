"""
Messaging module interface.
"""

from typing import Protocol, runtime_checkable

from .models import ConversationMessage, MessageType


@runtime_checkable
class IMessageStore(Protocol):
    """Write side of the messaging store, used by connection sessions."""

    async def create_message(
        self,
        conversation_id: str,
        sender_id: str,
        content: str,
        message_type: MessageType = MessageType.TEXT,
    ) -> ConversationMessage:
        """
        Persist a message and mark it as the conversation's latest.

        Returns:
            The stored message with its ID and timestamp
        """
        ...

    async def count_unread(self, conversation_id: str, recipient_id: str) -> int:
        """Count messages in the conversation not yet read by ``recipient_id``."""
        ...
