import datetime as dt
import math
import re

from cell_coercion import is_empty
from logging_utils import get_logger

log = get_logger("validation")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class ValidationError(ValueError):
    """A value a column rejects: required-empty, too long, or malformed."""

    def __init__(self, message, error_type, column_key=None, value=None):
        super().__init__(message)
        self.message = message
        self.error_type = error_type  # required | maxlength | value
        self.column_key = column_key
        self.value = value


def _fail(message, error_type, column_key, value):
    log.debug("Validation failed: %s", message)
    raise ValidationError(message, error_type, column_key, value)


def validate_input(value, column, column_key):
    if column is None:
        return
    label = column.label or column_key

    if is_empty(value):
        if column.required:
            _fail(f'Column "{label}" is required.', "required", column_key, value)
        return

    if column.type == "text":
        if column.maxlength and isinstance(value, str) and len(value) > column.maxlength:
            _fail(
                f'Column "{label}" exceeds max length of {column.maxlength}.',
                "maxlength",
                column_key,
                value,
            )
    elif column.type == "email":
        if not isinstance(value, str) or not EMAIL_RE.match(value):
            _fail(f'Invalid email format for column "{label}".', "value", column_key, value)
    elif column.type == "number":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            _fail(f'Column "{label}" expects a number.', "value", column_key, value)
        if not math.isfinite(value):
            _fail(f'Column "{label}" expects a number.', "value", column_key, value)
        if column.decimal is False and not float(value).is_integer():
            _fail(f'Column "{label}" expects an integer.', "value", column_key, value)
    elif column.type == "date":
        ok = isinstance(value, str) and ISO_DATE_RE.match(value)
        if ok:
            try:
                dt.date.fromisoformat(value)
            except ValueError:
                ok = False
        if not ok:
            _fail(
                f'Invalid date format (YYYY-MM-DD) for column "{label}".',
                "value",
                column_key,
                value,
            )
    elif column.type == "boolean":
        if not isinstance(value, bool):
            _fail(f'Column "{label}" expects a boolean.', "value", column_key, value)
    elif column.type == "select":
        if column.values and column.option_for_id(value) is None:
            _fail(f'Invalid selection for column "{label}".', "value", column_key, value)


def check_input(value, column, column_key):
    """Like validate_input, but returns the ValidationError (or None) instead of raising."""
    try:
        validate_input(value, column, column_key)
    except ValidationError as exc:
        return exc
    return None
