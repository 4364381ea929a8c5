"""
Base repository class for database access.

Provides a common abstraction layer for all repositories, encapsulating
Supabase client access and the row-fetching helpers they share.
"""

from typing import Any, Optional, TypeVar, Generic
from supabase import AsyncClient


T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base class for all repositories.

    Provides common functionality for database operations:
    - Async Supabase client access via self._db
    - Generic type parameter for model type hints

    Subclasses should implement domain-specific data access methods
    and handle dict-to-Pydantic model mapping internally.

    Example:
        class StreamRepository(BaseRepository[StreamRecord]):
            async def get_by_id(self, stream_id: str) -> Optional[StreamRecord]:
                row = await self._first("live_streams", id=stream_id)
                return self._map_to_stream(row) if row else None
    """

    def __init__(self, db: AsyncClient) -> None:
        """
        Initialize the repository with an async Supabase client.

        Args:
            db: Async Supabase client instance for database operations.
        """
        self._db = db

    async def _rows(self, table: str, **filters: Any) -> list[dict[str, Any]]:
        """Select every row of ``table`` matching all equality filters."""
        query = self._db.table(table).select("*")
        for column, value in filters.items():
            query = query.eq(column, value)
        result = await query.execute()
        return result.data or []

    async def _first(self, table: str, **filters: Any) -> Optional[dict[str, Any]]:
        """Select the first row matching all equality filters, or None."""
        rows = await self._rows(table, **filters)
        return rows[0] if rows else None

    async def _insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert one row and return it as stored (with generated columns)."""
        result = await self._db.table(table).insert(row).execute()
        return result.data[0] if result.data else row

    async def _update(self, table: str, values: dict[str, Any], **filters: Any) -> None:
        """Update every row of ``table`` matching all equality filters."""
        query = self._db.table(table).update(values)
        for column, value in filters.items():
            query = query.eq(column, value)
        await query.execute()
