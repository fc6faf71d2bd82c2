"""
Typed, non-converting access to a session's attribute bag.

Every getter returns ``(value, found)``. ``found`` is False both when the
key is absent and when the stored value's type is not one the getter
accepts; ``value`` is then the getter's zero value. A getter may widen a
narrower kind by value (Int32 read as a 64-bit integer) but never narrows
and never parses (the string "5" is not an int).

The accessors work on the in-memory entity only and never touch a store.
"""

from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import TypeAdapter, ValidationError

from websession.models.values import Byte, Float32, Int8, Int16, Int32, Int64, TypedList

_INT32_KINDS: tuple[type, ...] = (Byte, Int8, Int16, Int32)
_INT_KINDS: tuple[type, ...] = _INT32_KINDS + (int,)
_INT64_KINDS: tuple[type, ...] = _INT_KINDS + (Int64,)
_FLOAT64_KINDS: tuple[type, ...] = (Float32, float)


class AttributeAccessors:
    """
    Mixin providing attribute access over a ``data`` dict.

    Matching is on the exact runtime type, so ``bool`` (a subclass of
    ``int`` in Python) is never accepted by a numeric getter.
    """

    data: dict[str, Any]

    # =========================================================================
    # Raw access
    # =========================================================================

    def set_attribute(self, key: str, value: Any) -> None:
        """Store a value under key, replacing any previous value."""
        self.data[key] = value

    def set_attributes(self, attrs: Mapping[str, Any]) -> None:
        """Store every pair of attrs; later writes win on key collision."""
        for key, value in attrs.items():
            self.set_attribute(key, value)

    def get_attribute(self, key: str) -> tuple[Any, bool]:
        """Return the stored value and whether the key exists."""
        if key in self.data:
            return self.data[key], True
        return None, False

    def _lookup(self, key: str, kinds: tuple[type, ...]) -> tuple[Any, bool]:
        value, ok = self.get_attribute(key)
        if not ok or type(value) not in kinds:
            return None, False
        return value, True

    # =========================================================================
    # Scalars
    # =========================================================================

    def get_string(self, key: str) -> tuple[str, bool]:
        value, ok = self._lookup(key, (str,))
        return (value, True) if ok else ("", False)

    def get_int(self, key: str) -> tuple[int, bool]:
        """
        Read an integer of at most 32 bits or a platform int.

        Int64 values are rejected: a 64-bit value is never narrowed.
        """
        value, ok = self._lookup(key, _INT_KINDS)
        return (int(value), True) if ok else (0, False)

    def get_int32(self, key: str) -> tuple[int, bool]:
        """Read Byte, Int8, Int16 or Int32 as a plain int."""
        value, ok = self._lookup(key, _INT32_KINDS)
        return (int(value), True) if ok else (0, False)

    def get_int64(self, key: str) -> tuple[int, bool]:
        """Read any integer kind, widened by value to a plain int."""
        value, ok = self._lookup(key, _INT64_KINDS)
        return (int(value), True) if ok else (0, False)

    def get_float32(self, key: str) -> tuple[float, bool]:
        """Read a Float32; a double is never narrowed."""
        value, ok = self._lookup(key, (Float32,))
        return (value, True) if ok else (0.0, False)

    def get_float64(self, key: str) -> tuple[float, bool]:
        """Read a float or a Float32 widened to a plain float."""
        value, ok = self._lookup(key, _FLOAT64_KINDS)
        return (float(value), True) if ok else (0.0, False)

    def get_bool(self, key: str) -> tuple[bool, bool]:
        value, ok = self._lookup(key, (bool,))
        return (value, True) if ok else (False, False)

    def get_time(self, key: str) -> tuple[Optional[datetime], bool]:
        value, ok = self.get_attribute(key)
        if ok and isinstance(value, datetime):
            return value, True
        return None, False

    # =========================================================================
    # Sequences
    # =========================================================================

    def get_slice(self, key: str) -> tuple[Optional[list[Any]], bool]:
        """
        Read any list or tuple, whatever its element types.

        Strings and bytes are not sequences here.
        """
        value, ok = self.get_attribute(key)
        if ok and isinstance(value, (list, tuple)):
            return list(value), True
        return None, False

    def _get_typed_list(
        self, key: str, element_type: type
    ) -> tuple[Optional[list[Any]], bool]:
        value, ok = self.get_attribute(key)
        if ok and isinstance(value, TypedList) and value.element_type is element_type:
            return value, True
        return None, False

    def get_string_slice(self, key: str) -> tuple[Optional[list[str]], bool]:
        return self._get_typed_list(key, str)

    def get_int_slice(self, key: str) -> tuple[Optional[list[int]], bool]:
        return self._get_typed_list(key, int)

    def get_int32_slice(self, key: str) -> tuple[Optional[list[int]], bool]:
        """Read a TypedList of Int32; lists of other integer kinds do not match."""
        return self._get_typed_list(key, Int32)

    def get_int64_slice(self, key: str) -> tuple[Optional[list[int]], bool]:
        return self._get_typed_list(key, Int64)

    def get_float32_slice(self, key: str) -> tuple[Optional[list[float]], bool]:
        return self._get_typed_list(key, Float32)

    def get_float64_slice(self, key: str) -> tuple[Optional[list[float]], bool]:
        """Read a TypedList of float; a Float32 list does not match."""
        return self._get_typed_list(key, float)

    def get_bool_slice(self, key: str) -> tuple[Optional[list[bool]], bool]:
        return self._get_typed_list(key, bool)

    def get_time_slice(self, key: str) -> tuple[Optional[list[datetime]], bool]:
        return self._get_typed_list(key, datetime)

    # =========================================================================
    # Structured values
    # =========================================================================

    def get_struct(self, key: str, target: Any) -> tuple[Any, bool]:
        """
        Validate a stored mapping (or model) into ``target``.

        ``target`` is a pydantic model class, any type pydantic can
        validate, or a prepared ``TypeAdapter`` for custom validation.

        Example:
            >>> session.set_attribute("cart", {"items": 3, "total": 9.5})
            >>> cart, ok = session.get_struct("cart", Cart)
        """
        value, ok = self.get_attribute(key)
        if not ok:
            return None, False
        adapter = target if isinstance(target, TypeAdapter) else TypeAdapter(target)
        try:
            return adapter.validate_python(value), True
        except ValidationError:
            return None, False
