import datetime as dt
import math

import pandas as pd

TRUE_TOKENS = {"true", "yes", "1", "y"}
FALSE_TOKENS = {"false", "no", "0", "n"}


def is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _display_text(value) -> str:
    if isinstance(value, bool):
        return "True" if value else "False"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_iso_date(value) -> str:
    if isinstance(value, bool):
        raise ValueError(f"Cannot coerce '{value}' to date")
    if isinstance(value, (int, float)):
        ts = pd.to_datetime(value, unit="ms", errors="raise")
    else:
        ts = pd.to_datetime(value, errors="raise")
    if pd.isna(ts):
        raise ValueError(f"Cannot coerce '{value}' to date")
    return ts.strftime("%Y-%m-%d")


def _to_number(text: str, column):
    try:
        num = float(text)
    except ValueError:
        raise ValueError(f"Cannot coerce '{text}' to number") from None
    if not math.isfinite(num):
        raise ValueError(f"Cannot coerce '{text}' to number")
    if num.is_integer() and (column.decimal is False or "." not in text):
        return int(num)
    return num


def _match_option(text: str, column):
    for opt in column.values:
        if str(opt.id) == text:
            return opt.id
    lowered = text.lower()
    for opt in column.values:
        if opt.name.lower() == lowered:
            return opt.id
    raise ValueError(f"No option matches '{text}'")


def convert_for_type(value, column):
    """Convert a pasted value into the target column's type.

    Raises ValueError when the value cannot be represented; bulk operations
    skip such cells.
    """
    if column is None or value is None:
        raise ValueError("Nothing to convert")

    if column.type in ("text", "email"):
        return _display_text(value)

    if isinstance(value, (dt.date, pd.Timestamp)) and column.type == "date":
        return _to_iso_date(value)

    text = _display_text(value).strip()
    if text == "":
        raise ValueError("Empty value")

    if column.type == "number":
        if isinstance(value, bool):
            raise ValueError(f"Cannot coerce '{value}' to number")
        return _to_number(text, column)

    if column.type == "boolean":
        if isinstance(value, bool):
            return value
        lowered = text.lower()
        if lowered in TRUE_TOKENS:
            return True
        if lowered in FALSE_TOKENS:
            return False
        raise ValueError(f"Cannot coerce '{text}' to boolean")

    if column.type == "date":
        return _to_iso_date(value if isinstance(value, (int, float)) else text)

    if column.type == "select":
        return _match_option(text, column)

    raise ValueError(f"Unsupported column type '{column.type}'")


def format_value(value, column) -> str:
    """Display text for a stored value."""
    if is_empty(value):
        return ""
    col_type = column.type if column is not None else "text"
    if col_type == "boolean":
        if value is True:
            return "True"
        if value is False:
            return "False"
        return ""
    if col_type == "select":
        opt = column.option_for_id(value)
        return opt.name if opt else ""
    if col_type == "date":
        try:
            ts = pd.to_datetime(value, errors="raise")
        except (ValueError, TypeError):
            return str(value)
        return ts.strftime("%x")
    return _display_text(value) if col_type == "number" else str(value)


def format_value_for_input(value, column) -> str:
    if is_empty(value):
        return ""
    if column is not None and column.type == "date":
        try:
            return _to_iso_date(value)
        except ValueError:
            return ""
    if column is not None and column.type == "select":
        opt = column.option_for_id(value)
        return opt.name if opt else ""
    return _display_text(value)


def parse_value_from_input(text, column):
    """Parse editor text for a column; empty input means None."""
    text = "" if text is None else str(text)
    stripped = text.strip()
    if stripped == "":
        return None
    col_type = column.type if column is not None else "text"

    if col_type == "number":
        try:
            return _to_number(stripped, column)
        except ValueError:
            return None
    if col_type == "boolean":
        return stripped.lower() in TRUE_TOKENS
    if col_type == "select":
        try:
            return _match_option(stripped, column)
        except ValueError:
            return stripped
    if col_type == "date":
        return stripped
    return text
