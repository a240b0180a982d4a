# storefront/db/file_backend.py
"""
File-backed stand-in for the hosted database, used for local development and tests.
Each table is a CSV file inside DATA_DIR. Writes take a file lock so two workers
never interleave a read-modify-write on the same table.

Usage:
    backend = FileBackend(Path("data"))
    await backend.insert("products", {"name": "Lamp", "price": "25.00"})
    await backend.select(Query("products").ilike("name", "%lamp%"))
"""
import re
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Union

import pandas as pd
from filelock import FileLock

from storefront.db.base import Backend, BackendError, Row
from storefront.db.query import EQ, ILIKE, IN, NEQ, Filter, Query

# tables keyed by an opaque string id instead of an auto-increment integer
STRING_ID_TABLES = {"profiles", "auth_users", "auth_sessions"}


def _like_to_regex(pattern: str) -> str:
    out = []
    for ch in pattern:
        if ch == "%":
            out.append(".*")
        elif ch == "_":
            out.append(".")
        else:
            out.append(re.escape(ch))
    return "".join(out)


class FileBackend(Backend):
    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _file_path(self, table: str) -> Path:
        if not re.fullmatch(r"[a-z_]+", table):
            raise BackendError(f"Invalid table name: {table!r}", status_code=400)
        return self.data_dir / f"{table}.csv"

    def _lock_for(self, path: Path) -> FileLock:
        return FileLock(str(path) + ".lock")

    def _read_df(self, table: str) -> pd.DataFrame:
        path = self._file_path(table)
        if not path.exists():
            return pd.DataFrame()
        try:
            return pd.read_csv(path, dtype=str).fillna("")
        except pd.errors.EmptyDataError:
            return pd.DataFrame()

    def _write_df_nolock(self, table: str, df: pd.DataFrame) -> None:
        """
        Write DataFrame for `table` WITHOUT acquiring the file lock.
        Use this only when the caller already holds the lock.
        """
        path = self._file_path(table)
        path.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(path, index=False)

    @staticmethod
    def _to_records(df: pd.DataFrame) -> List[Row]:
        if df.empty:
            return []
        records = df.to_dict(orient="records")
        # empty cells stand for NULL
        return [{k: (None if v == "" else v) for k, v in r.items()} for r in records]

    def _mask(self, df: pd.DataFrame, filters: Iterable[Filter], table: str) -> pd.Series:
        mask = pd.Series(True, index=df.index)
        for f in filters:
            if f.column not in df.columns:
                raise BackendError(f"column {table}.{f.column} does not exist", status_code=400)
            col = df[f.column].astype(str)
            if f.op == EQ:
                mask &= col == self._cell(f.value)
            elif f.op == NEQ:
                mask &= col != self._cell(f.value)
            elif f.op == IN:
                mask &= col.isin([self._cell(v) for v in f.value])
            elif f.op == ILIKE:
                mask &= col.str.fullmatch(_like_to_regex(str(f.value)), case=False)
            else:
                raise BackendError(f"Unsupported filter operator: {f.op}", status_code=400)
        return mask

    @staticmethod
    def _cell(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "True" if value else "False"
        return str(value)

    def _next_id(self, df: pd.DataFrame) -> int:
        if df.empty or "id" not in df.columns:
            return 1
        ids = pd.to_numeric(df["id"], errors="coerce").dropna()
        return int(ids.max()) + 1 if not ids.empty else 1

    # --- Backend interface ---

    async def select(self, query: Query) -> List[Row]:
        df = self._read_df(query.table)
        if df.empty:
            return []
        df = df[self._mask(df, query.filters, query.table)]
        if query.ordering:
            column, ascending = query.ordering
            if column not in df.columns:
                raise BackendError(f"column {query.table}.{column} does not exist", status_code=400)
            numeric = pd.to_numeric(df[column], errors="coerce")
            # numeric columns sort by value, text columns lexically
            if numeric.notna().all():
                df = df.assign(_key=numeric).sort_values("_key", ascending=ascending, kind="stable").drop(columns="_key")
            else:
                df = df.sort_values(column, ascending=ascending, kind="stable")
        if query.max_rows is not None:
            df = df.head(query.max_rows)
        return self._to_records(df)

    async def insert(self, table: str, rows: Union[Row, List[Row]]) -> List[Row]:
        batch = [dict(rows)] if isinstance(rows, dict) else [dict(r) for r in rows]
        if not batch:
            return []
        path = self._file_path(table)
        path.parent.mkdir(parents=True, exist_ok=True)
        with self._lock_for(path):
            df = self._read_df(table)
            next_id = self._next_id(df)
            now = datetime.utcnow().isoformat(sep=" ")
            saved = []
            for data in batch:
                if data.get("id") in (None, ""):
                    if table in STRING_ID_TABLES:
                        data["id"] = uuid.uuid4().hex
                    else:
                        data["id"] = next_id
                        next_id += 1
                data.setdefault("created_at", now)
                saved.append(data)
            new_rows = pd.DataFrame([{k: self._cell(v) for k, v in r.items()} for r in saved])
            df = new_rows if df.empty else pd.concat([df, new_rows], ignore_index=True, sort=False)
            self._write_df_nolock(table, df.fillna(""))
        return saved

    async def update(self, table: str, values: Row, filters: Iterable[Filter]) -> List[Row]:
        filters = list(filters)
        if not filters:
            raise BackendError("UPDATE requires a filter", status_code=400)
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            if df.empty:
                return []
            mask = self._mask(df, filters, table)
            if not mask.any():
                return []
            for k, v in values.items():
                if k not in df.columns:
                    df[k] = ""
                df.loc[mask, k] = self._cell(v)
            self._write_df_nolock(table, df)
            return self._to_records(df[mask])
