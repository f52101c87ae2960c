import os
import sys

import pandas as pd

from cell_coercion import is_empty
from logging_utils import get_logger
from validation import EMAIL_RE

log = get_logger("files")

SUPPORTED = (".csv", ".json", ".parquet", ".xlsx")
UNSUPPORTED_MESSAGE = "Unsupported file type (use .csv, .json, .parquet, or .xlsx)"


class FileTypeHandler:
    DEFAULT_COLUMNS = ("col_a", "col_b", "col_c")

    def __init__(self, path: str):
        self.path = path
        _, ext = os.path.splitext(path)
        self.ext = ext.lower()
        if self.ext not in SUPPORTED:
            raise ValueError(UNSUPPORTED_MESSAGE)

    # ---------- loading ----------
    def load(self) -> pd.DataFrame:
        if not os.path.exists(self.path) or os.path.getsize(self.path) == 0:
            return self._default_df()

        if self.ext == ".csv":
            try:
                df = pd.read_csv(self.path)
            except pd.errors.EmptyDataError:
                return self._default_df()
        elif self.ext == ".json":
            df = pd.read_json(self.path, orient="records", convert_dates=False)
        elif self.ext == ".parquet":
            self._ensure_parquet_engine()
            df = pd.read_parquet(self.path)
        else:
            self._ensure_excel_engine()
            df = pd.read_excel(self.path)
        log.info("Loaded %s (%d rows)", self.path, len(df))
        return self._ensure_non_empty(df)

    def _ensure_non_empty(self, df: pd.DataFrame) -> pd.DataFrame:
        if df is None or df.shape[1] == 0:
            return self._default_df()
        return df

    def _default_df(self) -> pd.DataFrame:
        return pd.DataFrame({c: pd.Series([None] * 3, dtype=object) for c in self.DEFAULT_COLUMNS})

    # ---------- schema / rows ----------
    @staticmethod
    def _looks_like_email(series: pd.Series) -> bool:
        values = [v for v in series if not is_empty(v)]
        return bool(values) and all(isinstance(v, str) and EMAIL_RE.match(v) for v in values)

    @staticmethod
    def _integral_float_columns(df: pd.DataFrame) -> set:
        """Float columns that hold whole numbers (ints widened by missing values)."""
        found = set()
        for name in df.columns:
            series = df[name]
            if pd.api.types.is_float_dtype(series) and (series.dropna() % 1 == 0).all():
                found.add(name)
        return found

    def infer_schema(self, df: pd.DataFrame) -> dict:
        schema = {}
        integral = self._integral_float_columns(df)
        for name in df.columns:
            series = df[name]
            key = str(name)
            if pd.api.types.is_bool_dtype(series):
                entry = {"type": "boolean"}
            elif pd.api.types.is_integer_dtype(series):
                entry = {"type": "number", "decimal": False}
            elif pd.api.types.is_float_dtype(series):
                entry = {"type": "number"}
                if name in integral and series.notna().any():
                    entry["decimal"] = False
            elif pd.api.types.is_datetime64_any_dtype(series):
                entry = {"type": "date"}
            elif self._looks_like_email(series):
                entry = {"type": "email"}
            else:
                entry = {"type": "text"}
            entry["label"] = key
            schema[key] = entry
        return schema

    def to_rows(self, df: pd.DataFrame) -> list[dict]:
        rows = []
        integral = self._integral_float_columns(df)
        for record in df.to_dict("records"):
            row = {}
            for key, value in record.items():
                if is_empty(value):
                    value = None
                elif isinstance(value, pd.Timestamp):
                    value = value.strftime("%Y-%m-%d")
                elif hasattr(value, "item"):
                    # numpy scalar
                    value = value.item()
                if isinstance(value, float) and key in integral:
                    value = int(value)
                row[str(key)] = value
            rows.append(row)
        return rows

    def load_rows(self):
        """(schema, rows) for the file."""
        df = self.load()
        return self.infer_schema(df), self.to_rows(df)

    # ---------- saving ----------
    def save(self, rows, columns) -> None:
        df = pd.DataFrame(
            {key: pd.Series([row.get(key) for row in rows], dtype=object) for key in columns},
            columns=list(columns),
        )
        if self.ext == ".csv":
            df.to_csv(self.path, index=False)
        elif self.ext == ".json":
            df.to_json(self.path, orient="records", indent=2)
        elif self.ext == ".parquet":
            self._ensure_parquet_engine()
            df.infer_objects().to_parquet(self.path)
        else:
            self._ensure_excel_engine()
            df.to_excel(self.path, index=False)
        log.info("Saved %d rows to %s", len(df), self.path)

    def _ensure_parquet_engine(self):
        try:
            import pyarrow  # noqa: F401

            return
        except ImportError:
            pass
        print("Parquet support requires pyarrow. Install via: pip install pyarrow")
        sys.exit(1)

    def _ensure_excel_engine(self):
        try:
            import openpyxl  # noqa: F401

            return
        except ImportError:
            pass
        print("XLSX support requires openpyxl. Install via: pip install openpyxl")
        sys.exit(1)
