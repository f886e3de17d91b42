# storefront/database.py
"""
Simple file-backed document store using CSV (preferred) or Excel (xlsx) tables.
Provides basic CRUD primitives per table name. Every read-modify-write of a
table file happens under that table's file lock so concurrent writers never
interleave whole-file rewrites.

Usage:
    from storefront.database import db
    db.get_record("carts", "guest_id", "guest_1700000000000_ab12")
    db.upsert_record("carts", "id", cart_id, {"id": cart_id, "items": "[]"})
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional
import pandas as pd
import uuid
from filelock import FileLock
from storefront.config import settings


class FileBackedDB:
    """
    Manages CSV / Excel files inside a data directory.
    Table name corresponds to a file name in settings (or you may pass full filename).
    When no directory is given the current ``settings.DATA_DIR`` is used on every call.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self._data_dir = Path(data_dir) if data_dir else None

    @property
    def data_dir(self) -> Path:
        return self._data_dir or Path(settings.DATA_DIR)

    def _file_path(self, table: str) -> Path:
        """
        Resolve table -> file path. If table looks like a filename (has .csv/.xlsx),
        use it directly (relative to data_dir). Otherwise try config mapping,
        else fallback to table + .csv
        """
        if table.endswith(".csv") or table.endswith(".xlsx"):
            return self.data_dir / Path(table)

        mapping = {
            "users": settings.USERS_FILE,
            "products": settings.PRODUCTS_FILE,
            "carts": settings.CARTS_FILE,
        }
        filename = mapping.get(table, f"{table}.csv")
        return self.data_dir / Path(filename)

    def _lock_for(self, path: Path) -> FileLock:
        path.parent.mkdir(parents=True, exist_ok=True)
        return FileLock(str(path) + ".lock", timeout=settings.LOCK_TIMEOUT)

    def _read_df(self, table: str) -> pd.DataFrame:
        path = self._file_path(table)
        if not path.exists():
            return pd.DataFrame()
        if path.suffix.lower() in (".xls", ".xlsx"):
            return pd.read_excel(path, dtype=str).fillna("")
        try:
            return pd.read_csv(path, dtype=str, keep_default_na=False).fillna("")
        except pd.errors.EmptyDataError:
            return pd.DataFrame()

    def _write_df_nolock(self, path: Path, df: pd.DataFrame) -> None:
        """
        Write DataFrame to `path` WITHOUT acquiring the file lock.
        Use this only when the caller already holds the lock.
        The file is written next to the target and swapped in, so readers never
        observe a half-written table.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp{path.suffix}")
        try:
            if path.suffix.lower() in (".xls", ".xlsx"):
                df.to_excel(tmp, index=False)
            else:
                df.to_csv(tmp, index=False)
            os.replace(tmp, path)
        finally:
            if tmp.exists():
                tmp.unlink()

    @staticmethod
    def _mask(df: pd.DataFrame, key: str, value: Any) -> Optional[pd.Series]:
        if df.empty or key not in df.columns:
            return None
        # treat everything as string for comparison simplicity
        mask = df[key].astype(str) == str(value)
        if not mask.any():
            return None
        return mask

    @staticmethod
    def _append(df: pd.DataFrame, new_row: Dict[str, Any]) -> pd.DataFrame:
        if df.empty:
            return pd.DataFrame([new_row])
        return pd.concat([df, pd.DataFrame([new_row])], ignore_index=True, sort=False).fillna("")

    @staticmethod
    def _assign(df: pd.DataFrame, mask: pd.Series, updates: Dict[str, Any]) -> None:
        for k, v in updates.items():
            if k not in df.columns:
                df[k] = ""
            df[k] = df[k].astype(object)
            df.loc[mask, k] = "" if v is None else v

    @staticmethod
    def _row(df: pd.DataFrame, mask: pd.Series) -> Dict[str, Any]:
        row = df[mask].iloc[0].to_dict()
        return {k: (None if pd.isna(v) else v) for k, v in row.items()}

    # --- high-level CRUD primitives ---

    def list_records(self, table: str) -> List[Dict[str, Any]]:
        df = self._read_df(table)
        if df.empty:
            return []
        return df.where(pd.notnull(df), None).to_dict(orient="records")

    def get_record(self, table: str, key: str, value: Any) -> Optional[Dict[str, Any]]:
        df = self._read_df(table)
        mask = self._mask(df, key, value)
        if mask is None:
            return None
        return self._row(df, mask)

    def create_record(self, table: str, data: Dict[str, Any], id_field: str = "id") -> Dict[str, Any]:
        """
        Create a new record. If id_field not present in `data`, one will be generated (uuid4 hex).
        Returns the saved record (with id).
        """
        if id_field not in data or not data.get(id_field):
            data[id_field] = uuid.uuid4().hex
        new_row = {k: ("" if v is None else v) for k, v in data.items()}
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            self._write_df_nolock(path, self._append(df, new_row))
        return data

    def update_record(self, table: str, key: str, value: Any, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Update rows where df[key] == value with fields in updates. Returns the updated first row dict or None.
        """
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            mask = self._mask(df, key, value)
            if mask is None:
                return None
            self._assign(df, mask, updates)
            self._write_df_nolock(path, df)
            return self._row(df, mask)

    def upsert_record(self, table: str, key: str, value: Any, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace the fields of the row where df[key] == value, or append `data` as a new row.
        `data` must carry `key` itself. Returns the stored row dict.
        """
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            mask = self._mask(df, key, value)
            if mask is None:
                new_row = {k: ("" if v is None else v) for k, v in data.items()}
                self._write_df_nolock(path, self._append(df, new_row))
                return dict(new_row)
            self._assign(df, mask, data)
            self._write_df_nolock(path, df)
            return self._row(df, mask)

    def apply_batch(
        self,
        table: str,
        key: str,
        upserts: List[Dict[str, Any]],
        deletes: List[Any],
    ) -> None:
        """
        Drop the rows whose `key` is in `deletes` and upsert every dict in `upserts`
        (each must carry `key`), all in one locked rewrite of the table file.
        Either the whole batch lands or the file is left as it was.
        """
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            if deletes and not df.empty and key in df.columns:
                gone = df[key].astype(str).isin([str(v) for v in deletes])
                df = df[~gone].reset_index(drop=True).copy()
            for data in upserts:
                mask = self._mask(df, key, data[key])
                if mask is None:
                    df = self._append(df, {k: ("" if v is None else v) for k, v in data.items()})
                else:
                    self._assign(df, mask, data)
            self._write_df_nolock(path, df)

    def delete_record(self, table: str, key: str, value: Any) -> bool:
        """
        Delete all records where df[key] == value. Returns True if any rows were removed.
        """
        path = self._file_path(table)
        with self._lock_for(path):
            df = self._read_df(table)
            mask = self._mask(df, key, value)
            if mask is None:
                return False
            self._write_df_nolock(path, df[~mask])
            return True


# module-level singleton for convenience
db = FileBackedDB()
