"""
Cache key derivation.
"""

from typing import Any, Mapping, Optional

from ..serialization import canonical_params


def cache_key(operation_id: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Deterministic key for (operation, params); object key order does not matter."""
    return f"{operation_id}({canonical_params(params)})"
