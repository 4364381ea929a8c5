"""
Messaging module.

Direct messages between the participants of a conversation, sent over the
real-time connection.

Public API:
- IMessageStore: Persistence contract for conversation messages
- MessageType: Kind of message content
- ConversationMessage: One stored message
"""

from .interfaces import IMessageStore
from .models import MessageType, ConversationMessage

__all__ = [
    "IMessageStore",
    "MessageType",
    "ConversationMessage",
]
