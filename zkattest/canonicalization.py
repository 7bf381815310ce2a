"""
zkattest Canonical JSON

Caller-facing results (API responses, proof fixtures, CLI output) are
rendered as canonical JSON so two parties serialising the same attestation
produce identical bytes:
- Object keys sorted lexicographically
- No whitespace between tokens
- UTF-8 encoding
- bytes rendered as 0x-prefixed lowercase hex
- Enums rendered as their value
"""

import json
from enum import Enum
from typing import Any

_SCALARS = (str, int, float, bool, type(None))


def to_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def canonicalize(obj: Any) -> bytes:
    """
    Serialize obj as canonical JSON.

    Returns:
        UTF-8 bytes with sorted keys and compact separators

    Raises:
        ValueError: for values with no JSON rendering
    """
    text = json.dumps(
        _normalize(obj),
        sort_keys=True,
        separators=(',', ':'),
        ensure_ascii=False
    )
    return text.encode('utf-8')


def canonicalize_str(obj: Any) -> str:
    return canonicalize(obj).decode('utf-8')


def _normalize(value: Any) -> Any:
    # Enum before scalars: str-enums are also str
    if isinstance(value, Enum):
        return _normalize(value.value)
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, (bytes, bytearray)):
        return to_hex(value)
    if isinstance(value, dict):
        return {(k.value if isinstance(k, Enum) else k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    raise ValueError(f"Cannot canonicalize type: {type(value).__name__}")
