"""
Directory module.

The persistence collaborator the real-time core reads from: identities,
subscriptions, purchases, streams, posts and conversations. Writes belong
to the CRUD services that own those tables.

Public API:
- IDirectory: Every lookup the service needs, in one protocol
- InMemoryDirectory: Process-local directory (default backend, tests)
- SupabaseDirectory: Directory backed by the Supabase tables
"""

from .interfaces import IDirectory
from .memory import InMemoryDirectory
from .repository import SupabaseDirectory

__all__ = [
    # Interface
    "IDirectory",
    # Implementations
    "InMemoryDirectory",
    "SupabaseDirectory",
]
