"""
Fixed-width attribute value types.

Python has one arbitrary-precision ``int`` and one double-precision
``float``. Session attributes distinguish narrower kinds so that typed
getters can accept a value only when no precision is implicitly gained or
lost. These types carry that distinction:

    Byte, Int8, Int16, Int32, Int64   range-checked int subclasses
    Float32                           float rounded to single precision
    TypedList                         list bound to one element type

Plain ``int`` plays the role of the platform integer and plain ``float``
the double. Arithmetic on these types returns plain ``int``/``float``.

Example:
    >>> session.set_attribute("visits", Int32(3))
    >>> session.get_int64("visits")
    (3, True)
    >>> session.set_attribute("scores", TypedList(Int32, [1, 2, 3]))
    >>> session.get_int32_slice("scores")
    ([1, 2, 3], True)
"""

import struct
from datetime import datetime
from typing import Any, ClassVar, Iterable


# =============================================================================
# Fixed-width Integers
# =============================================================================


class _FixedInt(int):
    """Base for range-checked integer kinds."""

    bits: ClassVar[int] = 64
    signed: ClassVar[bool] = True
    min_value: ClassVar[int]
    max_value: ClassVar[int]

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if cls.signed:
            cls.min_value = -(1 << (cls.bits - 1))
            cls.max_value = (1 << (cls.bits - 1)) - 1
        else:
            cls.min_value = 0
            cls.max_value = (1 << cls.bits) - 1

    def __new__(cls, value: int = 0) -> "_FixedInt":
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(
                f"{cls.__name__} requires an int, got {type(value).__name__}"
            )
        if not cls.min_value <= value <= cls.max_value:
            raise OverflowError(
                f"{value} out of range for {cls.__name__} "
                f"[{cls.min_value}, {cls.max_value}]"
            )
        return super().__new__(cls, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({int(self)})"


class Byte(_FixedInt):
    """Unsigned 8-bit integer."""

    bits = 8
    signed = False


class Int8(_FixedInt):
    bits = 8


class Int16(_FixedInt):
    bits = 16


class Int32(_FixedInt):
    bits = 32


class Int64(_FixedInt):
    bits = 64


# =============================================================================
# Single-precision Float
# =============================================================================


class Float32(float):
    """A float rounded to IEEE 754 single precision."""

    def __new__(cls, value: float = 0.0) -> "Float32":
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(
                f"Float32 requires a number, got {type(value).__name__}"
            )
        try:
            rounded = struct.unpack("<f", struct.pack("<f", value))[0]
        except OverflowError as e:
            raise OverflowError(f"{value} out of range for Float32") from e
        return super().__new__(cls, rounded)

    def __repr__(self) -> str:
        return f"Float32({float(self)!r})"


# =============================================================================
# Homogeneous Lists
# =============================================================================

ELEMENT_TYPES: tuple[type, ...] = (
    str,
    bool,
    int,
    Byte,
    Int8,
    Int16,
    Int32,
    Int64,
    float,
    Float32,
    datetime,
)


def _coerce(element_type: type, value: Any) -> Any:
    if issubclass(element_type, (_FixedInt, Float32)):
        return element_type(value)
    if element_type is int:
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"int element required, got {type(value).__name__}")
        return int(value)
    if element_type is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"float element required, got {type(value).__name__}")
        return float(value)
    if element_type is bool:
        if not isinstance(value, bool):
            raise TypeError(f"bool element required, got {type(value).__name__}")
        return value
    if not isinstance(value, element_type):
        raise TypeError(
            f"{element_type.__name__} element required, got {type(value).__name__}"
        )
    return element_type(value) if element_type is str else value


class TypedList(list):
    """
    A list whose elements all have one declared type.

    Elements are converted to the element type when they enter the list
    (``TypedList(Int32, [1, 2])`` holds two Int32), so reading it back
    never needs per-element checks.

    Attributes:
        element_type: One of ELEMENT_TYPES.
    """

    def __init__(self, element_type: type, iterable: Iterable[Any] = ()) -> None:
        if element_type not in ELEMENT_TYPES:
            raise TypeError(f"unsupported element type: {element_type!r}")
        self.element_type = element_type
        super().__init__(_coerce(element_type, v) for v in iterable)

    def append(self, value: Any) -> None:
        super().append(_coerce(self.element_type, value))

    def insert(self, index: Any, value: Any) -> None:
        super().insert(index, _coerce(self.element_type, value))

    def extend(self, iterable: Iterable[Any]) -> None:
        super().extend(_coerce(self.element_type, v) for v in iterable)

    def __iadd__(self, iterable: Iterable[Any]) -> "TypedList":  # type: ignore[override]
        self.extend(iterable)
        return self

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            value = [_coerce(self.element_type, v) for v in value]
        else:
            value = _coerce(self.element_type, value)
        super().__setitem__(index, value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, TypedList) and other.element_type is not self.element_type:
            return False
        return super().__eq__(other)

    def __ne__(self, other: object) -> bool:
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    __hash__ = None  # type: ignore[assignment]

    def __reduce__(self) -> tuple[Any, ...]:
        return (TypedList, (self.element_type, list(self)))

    def __repr__(self) -> str:
        return f"TypedList({self.element_type.__name__}, {list.__repr__(self)})"
