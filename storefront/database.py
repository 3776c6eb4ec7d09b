# storefront/database.py
"""
File-backed table store using CSV (preferred) or Excel (xlsx) as storage.
Provides basic CRUD primitives plus a filtered / sorted / paged query per
table name. Uses file locking to avoid simultaneous writes corrupting files.

One instance is built per process by the application lifespan and handed to
the services; this module keeps no global handle.

Usage:
    db = FileBackedDB(settings.DATA_DIR, {"orders": settings.ORDERS_FILE})
    db.connect()
    db.list_records("users")
    db.get_record("orders", "id", "9f1c...")
    db.create_record("users", {"username": "bob", "email": "b@x.com"})
    rows, total = db.query_records("orders", {"status": "Delivered"}, sort_by="created_at", skip=20, limit=10)
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import os
import pandas as pd
import uuid
from filelock import FileLock


class DatabaseNotConnected(RuntimeError):
    pass


def _sort_key(column: pd.Series) -> pd.Series:
    """
    Cells are read back as strings. Sort numerically when every cell parses
    as a number, otherwise lexically (ISO timestamps sort correctly as text).
    """
    numeric = pd.to_numeric(column, errors="coerce")
    if len(column) and numeric.notna().all():
        return numeric
    return column.astype(str)


class FileBackedDB:
    """
    Manages CSV / Excel files inside data_dir.
    Table name corresponds to a file name in `table_files` (or you may pass a full filename).
    """

    def __init__(self, data_dir: Path, table_files: Optional[Dict[str, str]] = None):
        self.data_dir = Path(data_dir)
        self.table_files: Dict[str, str] = dict(table_files or {})
        self._locks: Dict[str, FileLock] = {}
        self.connected = False

    # --- lifecycle ---

    def connect(self) -> "FileBackedDB":
        """Create the data directory if needed and mark the handle usable."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.connected = True
        return self

    def disconnect(self) -> None:
        self._locks.clear()
        self.connected = False

    def _ensure_connected(self) -> None:
        if not self.connected:
            raise DatabaseNotConnected(f"FileBackedDB at {self.data_dir} is not connected")

    # --- file helpers ---

    def _file_path(self, table: str) -> Path:
        """
        Resolve table -> file path. If table looks like a filename (has .csv/.xlsx),
        use it directly (relative to data_dir). Otherwise use the configured
        mapping, else fall back to table + .csv
        """
        if table.endswith(".csv") or table.endswith(".xlsx"):
            return self.data_dir / Path(table)
        filename = self.table_files.get(table, f"{table}.csv")
        return self.data_dir / Path(filename)

    def _lock_for(self, path: Path) -> FileLock:
        key = str(path)
        lock = self._locks.get(key)
        if lock is None:
            lock = FileLock(key + ".lock")
            self._locks[key] = lock
        return lock

    def _read_df(self, table: str) -> pd.DataFrame:
        path = self._file_path(table)
        if not path.exists():
            return pd.DataFrame()
        # keep_default_na=False: free text such as "N/A" must survive a round trip
        if path.suffix.lower() in (".xls", ".xlsx"):
            return pd.read_excel(path, dtype=str, keep_default_na=False).fillna("")
        return pd.read_csv(path, dtype=str, keep_default_na=False).fillna("")

    def _read_df_locked(self, table: str) -> pd.DataFrame:
        # writers replace the file under the same lock
        with self._lock_for(self._file_path(table)):
            return self._read_df(table)

    def _write_df_nolock(self, path: Path, df: pd.DataFrame) -> None:
        """
        Write DataFrame to `path` WITHOUT acquiring file lock.
        Use this only when the caller already holds the lock.
        The table is written to a sibling temp file and swapped in, so the
        file on disk is always a complete table.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f"{path.stem}.tmp{path.suffix}")
        if path.suffix.lower() in (".xls", ".xlsx"):
            df.to_excel(tmp, index=False)
        else:
            df.to_csv(tmp, index=False)
        os.replace(tmp, path)

    @staticmethod
    def _to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
        if df.empty:
            return []
        return df.astype(object).where(pd.notnull(df), None).to_dict(orient="records")

    # --- high-level CRUD primitives ---

    def list_records(self, table: str) -> List[Dict[str, Any]]:
        self._ensure_connected()
        return self._to_records(self._read_df_locked(table))

    def get_record(self, table: str, key: str, value: Any) -> Optional[Dict[str, Any]]:
        self._ensure_connected()
        df = self._read_df_locked(table)
        if df.empty or key not in df.columns:
            return None
        # treat everything as string for comparison simplicity
        mask = df[key].astype(str) == str(value)
        if not mask.any():
            return None
        return self._to_records(df[mask].iloc[[0]])[0]

    def create_record(self, table: str, data: Dict[str, Any], id_field: str = "id") -> Dict[str, Any]:
        """
        Create a new record. If id_field not present in `data`, one will be generated (uuid4 hex).
        Returns the saved record (with id).
        """
        self._ensure_connected()
        if id_field not in data or not data.get(id_field):
            data[id_field] = uuid.uuid4().hex
        new_row = {k: ("" if v is None else v) for k, v in data.items()}
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            if df.empty:
                df = pd.DataFrame([new_row])
            else:
                df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True, sort=False)
            self._write_df_nolock(path, df)
        return data

    def update_record(self, table: str, key: str, value: Any, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update rows where df[key] == value with fields in updates. Returns the updated first row dict or None.
        """
        self._ensure_connected()
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            if df.empty or key not in df.columns:
                return None
            mask = df[key].astype(str) == str(value)
            if not mask.any():
                return None
            df = df.astype(object)
            for k, v in updates.items():
                df.loc[mask, k] = "" if v is None else v
            self._write_df_nolock(path, df)
            return self._to_records(df[mask].iloc[[0]])[0]

    def query_records(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        ascending: bool = True,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Exact-match filter, sort and slice a table. Returns (rows, total) where
        total is the number of rows matching `filters` before slicing.
        Sorting by a column the table does not have keeps file order.
        """
        self._ensure_connected()
        df = self._read_df_locked(table)
        if df.empty:
            return [], 0
        for k, v in (filters or {}).items():
            if k not in df.columns:
                return [], 0
            df = df[df[k].astype(str) == str(v)]
        total = len(df)
        if sort_by and sort_by in df.columns and total:
            df = df.sort_values(by=sort_by, ascending=ascending, key=_sort_key, kind="mergesort")
        if skip:
            df = df.iloc[skip:]
        if limit is not None:
            df = df.iloc[:limit]
        return self._to_records(df), total
