"""Tests for identify()."""

from objectpool import ObjectPool, identify


class TestIdentify:
    def test_numeric_id(self):
        assert identify({"id": 1, "type": "user"}) == "user:1"

    def test_string_id(self):
        assert identify({"id": "abc", "type": "user", "name": "x"}) == "user:abc"

    def test_integral_float_matches_int(self):
        assert identify({"id": 1.0, "type": "user"}) == "user:1"
        assert identify({"id": 1.5, "type": "user"}) == "user:1.5"
        assert identify({"id": -0.0, "type": "user"}) == "user:0"

    def test_float_ids_render_like_javascript(self):
        assert identify({"id": 1e21, "type": "n"}) == "n:1e+21"
        assert identify({"id": 1e20, "type": "n"}) == "n:100000000000000000000"
        assert identify({"id": 1e-7, "type": "n"}) == "n:1e-7"
        assert identify({"id": 1.5e-7, "type": "n"}) == "n:1.5e-7"
        assert identify({"id": 0.000001, "type": "n"}) == "n:0.000001"
        assert identify({"id": 2.5e25, "type": "n"}) == "n:2.5e+25"
        assert identify({"id": -12.25, "type": "n"}) == "n:-12.25"

    def test_missing_fields(self):
        assert identify({"id": 1}) is None
        assert identify({"type": "user"}) is None
        assert identify({}) is None

    def test_wrong_field_types(self):
        assert identify({"id": None, "type": "user"}) is None
        assert identify({"id": [1], "type": "user"}) is None
        assert identify({"id": 1, "type": 5}) is None

    def test_bool_is_not_an_id(self):
        assert identify({"id": True, "type": "flag"}) is None

    def test_custom_type_key(self):
        assert identify({"id": 3, "__type": "post"}, type_key="__type") == "post:3"
        assert identify({"id": 3, "type": "post"}, type_key="__type") is None

    def test_pool_uses_its_type_key(self):
        pool = ObjectPool(type_key="kind")
        assert pool.identify({"id": 7, "kind": "team"}) == "team:7"
        assert pool.identify({"id": 7, "type": "team"}) is None
