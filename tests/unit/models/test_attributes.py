"""
Unit tests for websession/models/attributes.py - typed attribute getters.
"""

from datetime import datetime, timezone

import pytest
from pydantic import BaseModel


@pytest.fixture
def session():
    from websession.models.domain import new_session

    return new_session()


class Cart(BaseModel):
    items: list[str]
    total: int


# =============================================================================
# Raw access
# =============================================================================


class TestRawAccess:
    def test_missing_key(self, session):
        assert session.get_attribute("missing") == (None, False)

    def test_last_write_wins(self, session):
        session.set_attribute("theme", "light")
        session.set_attribute("theme", "dark")

        assert session.get_attribute("theme") == ("dark", True)

    def test_set_attributes(self, session):
        session.set_attributes({"a": 1, "b": "two"})

        assert session.data == {"a": 1, "b": "two"}

    def test_none_value_is_found(self, session):
        session.set_attribute("nothing", None)

        assert session.get_attribute("nothing") == (None, True)


# =============================================================================
# Scalars
# =============================================================================


class TestScalarGetters:
    def test_get_string(self, session):
        session.set_attribute("name", "ada")

        assert session.get_string("name") == ("ada", True)
        assert session.get_string("missing") == ("", False)

    def test_numeric_string_is_not_an_int(self, session):
        session.set_attribute("count", "5")

        assert session.get_int("count") == (0, False)

    def test_int32_widens_to_int64(self, session):
        from websession.models.values import Int32

        session.set_attribute("visits", Int32(42))

        value, ok = session.get_int64("visits")
        assert (value, ok) == (42, True)
        assert type(value) is int

    def test_int64_is_not_narrowed(self, session):
        from websession.models.values import Int64

        session.set_attribute("big", Int64(5))

        assert session.get_int("big") == (0, False)
        assert session.get_int32("big") == (0, False)
        assert session.get_int64("big") == (5, True)

    @pytest.mark.parametrize("kind_name", ["Byte", "Int8", "Int16", "Int32"])
    def test_small_ints_read_by_get_int(self, session, kind_name):
        from websession.models import values

        session.set_attribute("n", getattr(values, kind_name)(7))

        assert session.get_int("n") == (7, True)
        assert session.get_int32("n") == (7, True)

    def test_plain_int(self, session):
        session.set_attribute("n", 2**40)

        assert session.get_int("n") == (2**40, True)
        assert session.get_int64("n") == (2**40, True)
        assert session.get_int32("n") == (0, False)

    def test_bool_is_not_numeric(self, session):
        session.set_attribute("flag", True)

        assert session.get_int("flag") == (0, False)
        assert session.get_bool("flag") == (True, True)

    def test_float32_getters(self, session):
        from websession.models.values import Float32

        session.set_attribute("ratio", Float32(0.5))

        assert session.get_float32("ratio") == (0.5, True)
        value, ok = session.get_float64("ratio")
        assert (value, ok) == (0.5, True)
        assert type(value) is float

    def test_float64_is_not_narrowed(self, session):
        session.set_attribute("ratio", 0.25)

        assert session.get_float32("ratio") == (0.0, False)
        assert session.get_float64("ratio") == (0.25, True)

    def test_int_is_not_a_float(self, session):
        session.set_attribute("n", 3)

        assert session.get_float64("n") == (0.0, False)

    def test_get_time(self, session):
        now = datetime.now(timezone.utc)
        session.set_attribute("seen", now)

        assert session.get_time("seen") == (now, True)
        assert session.get_time("missing") == (None, False)

    def test_get_bool_zero(self, session):
        session.set_attribute("flag", "true")

        assert session.get_bool("flag") == (False, False)


# =============================================================================
# Sequences
# =============================================================================


class TestSliceGetters:
    def test_typed_int32_list(self, session):
        from websession.models.values import Int32, TypedList

        session.set_attribute("scores", TypedList(Int32, [1, 2, 3]))

        assert session.get_int32_slice("scores") == ([1, 2, 3], True)

    def test_plain_list_is_not_a_typed_slice(self, session):
        session.set_attribute("scores", [1, 2, 3])

        assert session.get_int32_slice("scores") == (None, False)
        assert session.get_int_slice("scores") == (None, False)

    def test_element_type_must_match_exactly(self, session):
        from websession.models.values import Int32, TypedList

        session.set_attribute("scores", TypedList(Int32, [1]))

        assert session.get_int64_slice("scores") == (None, False)
        assert session.get_int_slice("scores") == (None, False)

    @pytest.mark.parametrize(
        "getter, element_type, items",
        [
            ("get_string_slice", str, ["a", "b"]),
            ("get_int_slice", int, [1, 2]),
            ("get_float64_slice", float, [1.5]),
            ("get_bool_slice", bool, [True, False]),
        ],
    )
    def test_typed_slices(self, session, getter, element_type, items):
        from websession.models.values import TypedList

        session.set_attribute("values", TypedList(element_type, items))

        assert getattr(session, getter)("values") == (items, True)

    def test_time_and_float32_slices(self, session):
        from websession.models.values import Float32, Int64, TypedList

        now = datetime.now(timezone.utc)
        session.set_attribute("times", TypedList(datetime, [now]))
        session.set_attribute("floats", TypedList(Float32, [0.5]))
        session.set_attribute("longs", TypedList(Int64, [2**40]))

        assert session.get_time_slice("times") == ([now], True)
        assert session.get_float32_slice("floats") == ([0.5], True)
        assert session.get_int64_slice("longs") == ([2**40], True)

    def test_get_slice_accepts_any_sequence(self, session):
        from websession.models.values import Int32, TypedList

        session.set_attribute("mixed", [1, "a"])
        session.set_attribute("pair", ("x", 2))
        session.set_attribute("typed", TypedList(Int32, [4]))

        assert session.get_slice("mixed") == ([1, "a"], True)
        assert session.get_slice("pair") == (["x", 2], True)
        assert session.get_slice("typed") == ([4], True)

    def test_get_slice_rejects_strings(self, session):
        session.set_attribute("name", "abc")

        assert session.get_slice("name") == (None, False)


# =============================================================================
# Structs
# =============================================================================


class TestGetStruct:
    def test_mapping_into_model(self, session):
        session.set_attribute("cart", {"items": ["apple"], "total": 3})

        cart, ok = session.get_struct("cart", Cart)

        assert ok
        assert cart == Cart(items=["apple"], total=3)

    def test_model_instance(self, session):
        session.set_attribute("cart", Cart(items=[], total=0))

        cart, ok = session.get_struct("cart", Cart)

        assert ok
        assert cart.total == 0

    def test_incompatible_value(self, session):
        session.set_attribute("cart", {"items": "nope"})

        assert session.get_struct("cart", Cart) == (None, False)

    def test_missing_key(self, session):
        assert session.get_struct("cart", Cart) == (None, False)
