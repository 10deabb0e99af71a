"""Record serialization for the stream ledger.

Records are stored as plain dicts of str/int/bool so any key-value backend
(in-memory, JSON file) can hold them.

Round-trip property (tested): `stream_from_dict(stream_to_dict(s)) == s`.
"""

from __future__ import annotations

from typing import Any, Mapping

from ..core.types import ProtocolConfig, Stream

# Auto-derived from the dataclass field definitions (single source of truth).
STREAM_FIELDS: tuple[str, ...] = tuple(Stream.__dataclass_fields__)
CONFIG_FIELDS: tuple[str, ...] = tuple(ProtocolConfig.__dataclass_fields__)

_STR_FIELDS = frozenset({"sender", "recipient", "token_address", "admin", "treasury"})
_BOOL_FIELDS = frozenset({"is_active"})


def _to_dict(record: Any, names: tuple[str, ...]) -> dict[str, Any]:
    return {name: getattr(record, name) for name in names}


def _kwargs_from_dict(d: Mapping[str, Any], names: tuple[str, ...]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {}
    for name in names:
        val = d[name]
        if name in _STR_FIELDS:
            if not isinstance(val, str):
                raise TypeError(f"field {name!r} must be str, got {type(val).__name__}")
            kwargs[name] = val
        elif name in _BOOL_FIELDS:
            if not isinstance(val, bool):
                raise TypeError(f"field {name!r} must be bool, got {type(val).__name__}")
            kwargs[name] = val
        else:
            if not isinstance(val, int) or isinstance(val, bool):
                raise TypeError(f"field {name!r} must be int, got {type(val).__name__}")
            kwargs[name] = int(val)  # normalize int subclasses
    return kwargs


def stream_to_dict(stream: Stream) -> dict[str, Any]:
    return _to_dict(stream, STREAM_FIELDS)


def stream_from_dict(d: Mapping[str, Any]) -> Stream:
    """Raises KeyError on missing fields, TypeError on mistyped ones."""
    return Stream(**_kwargs_from_dict(d, STREAM_FIELDS))


def config_to_dict(config: ProtocolConfig) -> dict[str, Any]:
    return _to_dict(config, CONFIG_FIELDS)


def config_from_dict(d: Mapping[str, Any]) -> ProtocolConfig:
    return ProtocolConfig(**_kwargs_from_dict(d, CONFIG_FIELDS))
