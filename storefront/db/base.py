# storefront/db/base.py
from typing import Any, Dict, Iterable, List, Union

from storefront.db.query import Filter, Query

Row = Dict[str, Any]


class BackendError(Exception):
    """Any failure reported by (or while reaching) the database service."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class Backend:
    """
    Table-style read/write interface over the hosted database.
    Subclasses implement `select`, `insert` and `update`.
    """

    async def select(self, query: Query) -> List[Row]:
        raise NotImplementedError

    async def insert(self, table: str, rows: Union[Row, List[Row]]) -> List[Row]:
        """Insert one row or a batch. Returns the stored rows (with generated ids)."""
        raise NotImplementedError

    async def update(self, table: str, values: Row, filters: Iterable[Filter]) -> List[Row]:
        """Update rows matching every filter. Returns the updated rows."""
        raise NotImplementedError

    async def single(self, query: Query) -> Row:
        rows = await self.select(query)
        if len(rows) != 1:
            raise BackendError(f"Expected a single row from {query.table}, got {len(rows)}", status_code=406)
        return rows[0]

    def for_session(self, access_token) -> "Backend":
        """Backends without row-level auth ignore the caller's token."""
        return self

    async def aclose(self) -> None:
        return None
