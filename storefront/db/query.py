# storefront/db/query.py
"""
Table query description shared by every backend.

A Query only records what to fetch; a Backend executes it:

    q = Query("products").eq("category", "lamps").order("price", ascending=False).limit(4)
    rows = await backend.select(q)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

# operator names follow the hosted service's REST dialect
EQ = "eq"
NEQ = "neq"
IN = "in"
ILIKE = "ilike"


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any


@dataclass
class Query:
    table: str
    filters: List[Filter] = field(default_factory=list)
    ordering: Optional[Tuple[str, bool]] = None  # (column, ascending)
    max_rows: Optional[int] = None

    def eq(self, column: str, value: Any) -> "Query":
        self.filters.append(Filter(column, EQ, value))
        return self

    def neq(self, column: str, value: Any) -> "Query":
        self.filters.append(Filter(column, NEQ, value))
        return self

    def in_(self, column: str, values) -> "Query":
        self.filters.append(Filter(column, IN, list(values)))
        return self

    def ilike(self, column: str, pattern: str) -> "Query":
        """Case-insensitive pattern match; `%` matches any run of characters."""
        self.filters.append(Filter(column, ILIKE, pattern))
        return self

    def order(self, column: str, ascending: bool = True) -> "Query":
        self.ordering = (column, ascending)
        return self

    def limit(self, n: int) -> "Query":
        if n < 0:
            raise ValueError("limit must be non-negative")
        self.max_rows = n
        return self
