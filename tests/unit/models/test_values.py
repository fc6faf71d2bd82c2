"""
Unit tests for websession/models/values.py - fixed-width attribute values.
"""

import copy
import pickle
from datetime import datetime, timezone

import pytest


class TestFixedInts:
    @pytest.mark.parametrize(
        "kind_name, low, high",
        [
            ("Byte", 0, 255),
            ("Int8", -128, 127),
            ("Int16", -32768, 32767),
            ("Int32", -(2**31), 2**31 - 1),
            ("Int64", -(2**63), 2**63 - 1),
        ],
    )
    def test_ranges(self, kind_name, low, high):
        from websession.models import values

        kind = getattr(values, kind_name)

        assert kind(low) == low
        assert kind(high) == high
        with pytest.raises(OverflowError):
            kind(high + 1)
        with pytest.raises(OverflowError):
            kind(low - 1)

    def test_fixed_int_is_an_int(self):
        from websession.models.values import Int32

        value = Int32(7)

        assert isinstance(value, int)
        assert value + 1 == 8
        assert type(value + 1) is int

    def test_rejects_non_int(self):
        from websession.models.values import Int16

        with pytest.raises(TypeError):
            Int16(1.5)
        with pytest.raises(TypeError):
            Int16("1")
        with pytest.raises(TypeError):
            Int16(True)

    def test_repr_names_the_kind(self):
        from websession.models.values import Int8

        assert repr(Int8(-3)) == "Int8(-3)"


class TestFloat32:
    def test_rounds_to_single_precision(self):
        from websession.models.values import Float32

        value = Float32(0.1)

        assert value != 0.1
        assert abs(value - 0.1) < 1e-7

    def test_exact_values_are_kept(self):
        from websession.models.values import Float32

        assert Float32(1.5) == 1.5

    def test_overflow(self):
        from websession.models.values import Float32

        with pytest.raises(OverflowError):
            Float32(1e40)

    def test_rejects_non_number(self):
        from websession.models.values import Float32

        with pytest.raises(TypeError):
            Float32("1.0")


class TestTypedList:
    def test_elements_are_coerced(self):
        from websession.models.values import Int32, TypedList

        values = TypedList(Int32, [1, 2, 3])

        assert values == [1, 2, 3]
        assert all(type(v) is Int32 for v in values)
        assert values.element_type is Int32

    def test_append_checks_range(self):
        from websession.models.values import Byte, TypedList

        values = TypedList(Byte, [1])

        with pytest.raises(OverflowError):
            values.append(300)

    def test_mixed_elements_rejected(self):
        from websession.models.values import TypedList

        with pytest.raises(TypeError):
            TypedList(str, ["a", 1])

    def test_bool_is_not_an_int_element(self):
        from websession.models.values import TypedList

        with pytest.raises(TypeError):
            TypedList(int, [True])

    def test_setitem_and_extend_coerce(self):
        from websession.models.values import Float32, TypedList

        values = TypedList(Float32, [1.0])
        values.extend([0.1])
        values[0] = 0.2

        assert all(type(v) is Float32 for v in values)

    def test_element_type_takes_part_in_equality(self):
        from websession.models.values import Int32, Int64, TypedList

        assert TypedList(Int32, [1]) != TypedList(Int64, [1])
        assert TypedList(Int32, [1]) == TypedList(Int32, [1])

    def test_unsupported_element_type(self):
        from websession.models.values import TypedList

        with pytest.raises(TypeError):
            TypedList(dict, [])

    def test_deepcopy_and_pickle_keep_element_type(self):
        from websession.models.values import TypedList

        now = datetime.now(timezone.utc)
        values = TypedList(datetime, [now])

        for clone in (copy.deepcopy(values), pickle.loads(pickle.dumps(values))):
            assert clone == values
            assert clone.element_type is datetime
            assert clone is not values
