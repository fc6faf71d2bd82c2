"""
Attribute value codec for storage backends.

Each attribute value is stored as a small JSON document tagging the value
with its kind, so that fixed-width numbers, timestamps and typed lists come
back as the same Python types they were written as:

    Int32(5)                      {"t": "int32", "v": 5}
    TypedList(str, ["a"])         {"t": "list", "e": "str", "v": ["a"]}
    [1, "x"]                      {"t": "seq", "v": [{"t": "int", ...}, ...]}
    {"a": 1}                      {"t": "map", "v": {"a": {"t": "int", ...}}}

Plain tuples decode as lists. Pydantic models are stored as their JSON
dump and decode as mappings; read them back with Session.get_struct.
Bytes are stored base64 encoded. Subclasses of str, int and float (enum
members, AttributeKey) are stored as their base value and decode as the
plain builtin.
"""

import base64
import json
from datetime import datetime
from typing import Any, Callable, Optional

from pydantic import BaseModel

from websession.core.exceptions import AttributeEncodingError
from websession.models.values import (
    Byte,
    Float32,
    Int8,
    Int16,
    Int32,
    Int64,
    TypedList,
)


# =============================================================================
# Scalar Kinds
# =============================================================================

_SCALAR_TAGS: dict[type, str] = {
    str: "str",
    bool: "bool",
    int: "int",
    Byte: "byte",
    Int8: "int8",
    Int16: "int16",
    Int32: "int32",
    Int64: "int64",
    float: "float64",
    Float32: "float32",
    datetime: "time",
}

_TAG_TYPES: dict[str, type] = {tag: kind for kind, tag in _SCALAR_TAGS.items()}


def _scalar_to_json(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return float(value)
    return value


def _base_scalar(value: Any) -> Optional[dict[str, Any]]:
    """Tag a subclass of a builtin scalar by its base value."""
    if isinstance(value, bool):
        return {"t": "bool", "v": bool(value)}
    if isinstance(value, str):
        return {"t": "str", "v": str.__str__(value)}
    if isinstance(value, int):
        return {"t": "int", "v": int.__int__(value)}
    if isinstance(value, float):
        return {"t": "float64", "v": float.__float__(value)}
    return None


def _scalar_from_json(kind: type, raw: Any) -> Any:
    if kind is datetime:
        return datetime.fromisoformat(raw)
    if kind is bool:
        if not isinstance(raw, bool):
            raise ValueError(f"expected bool, got {type(raw).__name__}")
        return raw
    if kind is float:
        return float(raw)
    return kind(raw)


# =============================================================================
# Encoding
# =============================================================================


def encode_value(value: Any) -> dict[str, Any]:
    """
    Convert a value into its tagged JSON-compatible form.

    Raises:
        AttributeEncodingError: If the value (or a nested value) has no
            representation.
    """
    kind = type(value)

    if value is None:
        return {"t": "null"}
    if kind in _SCALAR_TAGS:
        return {"t": _SCALAR_TAGS[kind], "v": _scalar_to_json(value)}
    if isinstance(value, (bytes, bytearray)):
        return {"t": "bytes", "v": base64.b64encode(value).decode("ascii")}
    if isinstance(value, TypedList):
        return {
            "t": "list",
            "e": _SCALAR_TAGS[value.element_type],
            "v": [_scalar_to_json(v) for v in value],
        }
    if isinstance(value, (list, tuple)):
        return {"t": "seq", "v": [encode_value(v) for v in value]}
    if isinstance(value, dict):
        encoded: dict[str, Any] = {}
        for k, v in value.items():
            if not isinstance(k, str):
                raise AttributeEncodingError(
                    f"mapping keys must be str, got {type(k).__name__}"
                )
            encoded[k] = encode_value(v)
        return {"t": "map", "v": encoded}
    if isinstance(value, BaseModel):
        return encode_value(value.model_dump(mode="json"))

    base = _base_scalar(value)
    if base is not None:
        return base

    raise AttributeEncodingError(f"unsupported attribute type: {kind.__name__}")


def decode_value(doc: Any) -> Any:
    """
    Rebuild a value from its tagged form.

    Raises:
        AttributeEncodingError: If the document is malformed.
    """
    if not isinstance(doc, dict) or "t" not in doc:
        raise AttributeEncodingError(f"malformed attribute document: {doc!r}")

    tag = doc["t"]
    try:
        if tag == "null":
            return None
        if tag in _TAG_TYPES:
            return _scalar_from_json(_TAG_TYPES[tag], doc["v"])
        if tag == "bytes":
            return base64.b64decode(doc["v"], validate=True)
        if tag == "list":
            element_type = _TAG_TYPES[doc["e"]]
            return TypedList(
                element_type,
                (_scalar_from_json(element_type, v) for v in doc["v"]),
            )
        if tag == "seq":
            return [decode_value(v) for v in doc["v"]]
        if tag == "map":
            return {k: decode_value(v) for k, v in doc["v"].items()}
    except AttributeEncodingError:
        raise
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise AttributeEncodingError(f"malformed {tag!r} attribute: {e}") from e

    raise AttributeEncodingError(f"unknown attribute tag: {tag!r}")


# =============================================================================
# Text Form
# =============================================================================


def dumps(value: Any, key: Optional[str] = None) -> str:
    """
    Serialize one attribute value to JSON text.

    Args:
        value: The attribute value.
        key: Attribute key, reported on failure.
    """
    return _with_key(
        key, lambda: json.dumps(encode_value(value), separators=(",", ":"))
    )


def loads(text: str | bytes, key: Optional[str] = None) -> Any:
    """Deserialize one attribute value written by dumps()."""

    def _load() -> Any:
        try:
            doc = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise AttributeEncodingError(f"invalid attribute JSON: {e}") from e
        return decode_value(doc)

    return _with_key(key, _load)


def _with_key(key: Optional[str], fn: Callable[[], Any]) -> Any:
    try:
        return fn()
    except AttributeEncodingError as e:
        if key is not None and e.key is None:
            e.key = key
        raise
    except (TypeError, ValueError, RecursionError) as e:
        # self-referencing containers end up here
        raise AttributeEncodingError(str(e), key=key) from e
