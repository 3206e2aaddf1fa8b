import os
import sqlite3
import logging
from typing import List, Optional

import pandas as pd

from pc_network.config import ID_COLUMNS, OPTIONAL_COLUMNS, REQUIRED_COLUMNS, SQLITE_TABLE
from pc_network.errors import DataIntegrityError

logger = logging.getLogger(__name__)

SQLITE_SUFFIXES = (".db", ".sqlite", ".sqlite3")


class EncounterLoader:
    """Module for loading patient-provider encounter records from CSV or SQLite"""
    def __init__(self, path: str, table: str = SQLITE_TABLE):
        self.path = str(path)
        self.table = table

    def _connect(self):
        if not os.path.exists(self.path):
            raise FileNotFoundError(f"SQLite DB not found at {self.path}")
        return sqlite3.connect(self.path)

    def _read_sqlite(self) -> pd.DataFrame:
        conn = self._connect()
        try:
            df = pd.read_sql(f'SELECT * FROM "{self.table}"', conn)
        finally:
            conn.close()
        return df

    def _read_csv(self) -> pd.DataFrame:
        if not os.path.exists(self.path):
            raise FileNotFoundError(f"Encounter file not found at {self.path}")
        # Everything as text so NPIs keep leading zeros and match graph node keys
        return pd.read_csv(self.path, dtype=str, keep_default_na=True)

    def load(self) -> pd.DataFrame:
        """Read the encounter table and return cleaned records"""
        if self.path.lower().endswith(SQLITE_SUFFIXES):
            df = self._read_sqlite()
        else:
            df = self._read_csv()
        logger.info(f"Encounters loaded: {df.shape[0]} rows, {df.shape[1]} columns")
        return prepare_records(df)


def validate_columns(df: pd.DataFrame, required: Optional[List[str]] = None) -> None:
    """Raise DataIntegrityError if any required column is absent"""
    required = REQUIRED_COLUMNS if required is None else required
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise DataIntegrityError(f"Encounter data is missing required columns: {missing}")


def _clean_id(series: pd.Series) -> pd.Series:
    # Only numeric float columns are rewritten: 1234567890.0 -> "1234567890".
    # Text ids are never altered beyond whitespace, so "7" and "7.0" stay distinct.
    if pd.api.types.is_float_dtype(series):
        values = series.dropna()
        if (values == values.round()).all():
            series = series.astype("Int64")
    s = series.astype("string").str.strip()
    return s.mask(s == "")


def prepare_records(df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate and normalise raw encounter rows.
    - required columns must be present
    - patient_id / npi become stripped strings
    - rows missing either identifier are dropped
    Optional columns are kept as-is when present.
    """
    validate_columns(df)
    keep = REQUIRED_COLUMNS + [c for c in OPTIONAL_COLUMNS if c in df.columns]
    records = df[keep].copy()
    for col in ID_COLUMNS:
        records[col] = _clean_id(records[col])
    records["provider_hrr"] = _clean_id(records["provider_hrr"])

    before = len(records)
    records = records.dropna(subset=ID_COLUMNS).reset_index(drop=True)
    dropped = before - len(records)
    if dropped:
        logger.warning(f"Dropped {dropped} encounter rows missing patient_id or npi")
    if before and records.empty:
        raise DataIntegrityError("No encounter rows with both patient_id and npi")
    return records
