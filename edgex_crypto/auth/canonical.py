"""
Canonical string encoding of request parameters and bodies.

Produces the sorted ``key=value&key=value`` form that edgeX signs. Encoding
is structural only: no URL escaping, no separators other than ``=`` and ``&``.
"""

from collections.abc import Mapping
from typing import Any

from ..utils.numeric import js_number_to_string


def _utf16_sort_key(key: str) -> bytes:
    # JavaScript sorts strings by UTF-16 code units, not code points
    return key.encode("utf-16-be", "surrogatepass")


def _scalar_to_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return js_number_to_string(value)
    # Decimal and anything else: its own string form
    return str(value)


def encode(value: Any, sort_keys: bool = True) -> str:
    """
    Encode a JSON-like value into its canonical signing string.

    Args:
        value: None, scalar, sequence or mapping (nested freely)
        sort_keys: Sort mapping keys at every level (default: True)

    Returns:
        Canonical string

    Examples:
        >>> encode({"b": 1, "a": 2})
        'a=2&b=1'
        >>> encode({"a": {"c": 1, "b": 2}})
        'a=b=2&c=1'
        >>> encode([{"y": True}, 3])
        'y=true&3'
    """
    if value is None or callable(value):
        return ""

    if isinstance(value, Mapping):
        keys = [str(k) for k in value.keys()]
        originals = dict(zip(keys, value.keys()))
        if sort_keys:
            keys = sorted(keys, key=_utf16_sort_key)
        return "&".join(
            f"{key}={encode(value[originals[key]], sort_keys)}" for key in keys
        )

    if isinstance(value, (list, tuple)):
        return "&".join(encode(item, sort_keys) for item in value)

    return _scalar_to_string(value)


def convert_request_body_to_string(body: Any) -> str:
    """
    Convert a POST/PUT body into the canonical signing string.

    Args:
        body: Request body (mapping, usually)

    Returns:
        Canonical string, or "" for a missing or empty body
    """
    if not body:
        return ""
    return encode(body, sort_keys=True)
