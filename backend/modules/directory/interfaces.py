"""
Directory module interface.

A directory satisfies every lookup protocol the feature modules declare,
so one object can be handed to all of them.
"""

from typing import Protocol, runtime_checkable

from modules.access.interfaces import ISubscriptionLookup, IPurchaseLookup, IPostLookup
from modules.auth.interfaces import IIdentityLookup
from modules.messaging.interfaces import IMessageStore
from modules.sessions.interfaces import IConversationLookup
from modules.streams.interfaces import IStreamLookup, ISubscriberLookup


@runtime_checkable
class IDirectory(
    ISubscriptionLookup,
    IPurchaseLookup,
    IPostLookup,
    IIdentityLookup,
    IStreamLookup,
    ISubscriberLookup,
    IConversationLookup,
    IMessageStore,
    Protocol,
):
    """All lookups of the platform's persistence layer, plus the message store."""

    pass
