"""Sentinel values shared by plugins."""

from typing import Any


class _MissingSentinel:
    """Sentinel to distinguish missing fields from None values."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING = _MissingSentinel()


def get_nested(data: dict[str, Any], path: str) -> Any:
    """Get value from nested dict using dot notation.

    Args:
        data: Source dictionary
        path: Dot-separated path (e.g., "meta.source")

    Returns:
        Value at path or MISSING sentinel
    """
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current
