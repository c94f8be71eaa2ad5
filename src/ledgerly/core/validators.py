"""Validators shared by request schemas."""

from typing import Any


def reject_null(value: Any) -> Any:
    """Refuse an explicit null for a field whose column cannot be empty.

    Update schemas keep every field optional so clients can send partial
    payloads; an omitted field is fine, a null one is not.
    """
    if value is None:
        raise ValueError("Field cannot be null")
    return value
