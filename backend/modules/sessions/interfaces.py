"""
Sessions module interface.
"""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class IConversationLookup(Protocol):
    """Reads conversation membership from the messaging store."""

    async def get_conversation_participants(self, conversation_id: str) -> Optional[list[str]]:
        """
        Get the user IDs taking part in a conversation.

        Returns:
            Participant IDs, or None if the conversation does not exist
        """
        ...
