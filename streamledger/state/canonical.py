"""
Canonical byte encodings.

Two consumers need byte-for-byte stable output:

- signed engine calls (`integration/auth.py`), hashed after a domain separator;
- the `JsonFileStore` snapshot, so identical ledgers produce identical files.

Canonical JSON here means UTF-8, sorted keys, no whitespace, str keys only and
integers instead of floats (amounts never carry fractions).
"""

from __future__ import annotations

import json
import string
from typing import Any

DOMAIN_PREFIX = b"streamledger:"
_HEX_DIGITS = frozenset(string.hexdigits)


def _check_text(text: str, where: str) -> None:
    if any("\ud800" <= ch <= "\udfff" for ch in text):
        raise TypeError(f"{where}: lone surrogate in string")


def _check_canonical(value: Any, where: str = "$") -> None:
    if isinstance(value, float):
        raise TypeError(f"{where}: float values have no canonical form")
    if isinstance(value, str):
        _check_text(value, where)
    elif isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise TypeError(f"{where}: object key {key!r} is not a str")
            _check_text(key, where)
            _check_canonical(item, f"{where}.{key}")
    elif isinstance(value, (list, tuple)):
        for i, item in enumerate(value):
            _check_canonical(item, f"{where}[{i}]")


def canonical_json_bytes(value: Any) -> bytes:
    """Encode *value* canonically; raises TypeError for floats, surrogates, non-str keys."""
    _check_canonical(value)
    return json.dumps(
        value, sort_keys=True, separators=(",", ":"), ensure_ascii=False, allow_nan=False,
    ).encode("utf-8")


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """`streamledger:<label>:v<version>` plus a NUL terminator.

    Prefixing every signed message with one of these keeps a signature made for
    one purpose (or chain) from verifying under another.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label or not label.isascii():
        raise ValueError(f"label must be ASCII without NUL: {label!r}")
    if not isinstance(version, int) or isinstance(version, bool) or version < 1:
        raise ValueError(f"version must be a positive int: {version!r}")
    return DOMAIN_PREFIX + f"{label}:v{version}".encode("ascii") + b"\x00"


def hex_to_bytes_allow_0x(hex_str: str, *, name: str, expected_nbytes: int | None = None) -> bytes:
    """Decode hex with an optional 0x prefix, checking the byte length when given."""
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a string")
    digits = hex_str[2:] if hex_str[:2].lower() == "0x" else hex_str
    if not digits or len(digits) % 2 or not _HEX_DIGITS.issuperset(digits):
        raise ValueError(f"{name} must be non-empty, even-length hex")
    raw = bytes.fromhex(digits)
    if expected_nbytes is not None and len(raw) != expected_nbytes:
        raise ValueError(f"{name} must be {expected_nbytes} bytes, got {len(raw)}")
    return raw
