"""
Shared helpers for records exchanged between services
"""
import copy
from typing import Any, Dict, Optional

from sqlalchemy import inspect as sa_inspect


def model_to_dict(instance: Any) -> Dict[str, Any]:
    """Column values of an ORM instance as a plain dict"""
    mapper = sa_inspect(instance).mapper
    return {column.key: getattr(instance, column.key) for column in mapper.column_attrs}


def deep_merge(base: Dict[str, Any], *sources: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Merge `sources` into a copy of `base`, later sources winning.

    Nested mappings are merged key by key; a None value never overwrites.
    """
    result = copy.deepcopy(base)
    for source in sources:
        if not source:
            continue
        for key, value in source.items():
            if value is None:
                continue
            current = result.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                result[key] = deep_merge(current, value)
            else:
                result[key] = copy.deepcopy(value)
    return result


def safe_get_nested(data: Any, *keys, default=None):
    """Get a nested value from dicts, returning `default` on any missing key

    Args:
        data: Dict to search
        *keys: Keys to follow in order
        default: Value returned when a key is missing

    Returns:
        Value or default
    """
    current = data
    for key in keys:
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            return default
    return current if current is not None else default
