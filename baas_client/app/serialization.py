"""
Canonical JSON used on the wire and in cache keys.
"""

import json
from typing import Any, Mapping, Optional


def canonical_json(value: Any) -> str:
    """Serialize with sorted keys and no insignificant whitespace.

    Two parameter mappings with the same content always produce the same
    text, regardless of insertion order.
    """
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def canonical_params(params: Optional[Mapping[str, Any]]) -> str:
    """Canonical form of call parameters; None is treated as an empty object."""
    return canonical_json(dict(params) if params is not None else {})


def parse_json(text: str) -> Any:
    """Parse JSON text, raising ValueError on malformed input."""
    return json.loads(text)
