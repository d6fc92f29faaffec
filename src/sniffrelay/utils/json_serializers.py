"""Shared JSON serialization utilities for type-safe JSON encoding."""

import dataclasses
from datetime import date, datetime
from pathlib import Path
from typing import Any


def json_serializer(obj: Any) -> Any:
    """
    ``default=`` hook for ``json.dumps``.

    - datetime/date -> ISO 8601 string
    - Path -> string
    - Enums -> value
    - dataclasses -> dict
    - Everything else -> string (fallback)
    """
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Path):
        return str(obj)
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return dataclasses.asdict(obj)
    if hasattr(obj, "value"):
        return obj.value
    return str(obj)


__all__ = ["json_serializer"]
