"""
SQL utilities for consistent handling of query results.

SQLModel/SQLAlchemy may return MAX/COUNT results as int, None (empty table) or a
1-tuple/Row. Use scalar_int() to coerce to int everywhere.
"""
from typing import Any


def scalar_int(x: Any, default: int = 0) -> int:
    """Convert an aggregate result to int. Handles int, None or 1-tuple/Row."""
    if isinstance(x, (tuple, list)) or hasattr(x, "_mapping"):
        x = x[0]
    if x is None:
        return default
    return int(x)
