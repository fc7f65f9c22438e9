"""
Bravia RPC - Catalog Tests
"""

from bravia_rpc.services.catalog import MethodDescriptor, ObjectParam, ScalarParam, ServiceCatalog, decode_param


class TestDecodeParam:
    """Parameter descriptor decoding."""

    def test_scalar(self):
        param = decode_param("string")

        assert param == ScalarParam("string")
        assert param.kind == "scalar"
        assert param.names == ["string"]

    def test_object(self):
        param = decode_param('{"status":"bool"}')

        assert isinstance(param, ObjectParam)
        assert param.kind == "object"
        assert param.fields == {"status": "bool"}
        assert param.repeated is False

    def test_repeated_object(self):
        param = decode_param('{"target":"string", "volume":"int"}*')

        assert isinstance(param, ObjectParam)
        assert param.repeated is True
        assert param.names == ["target", "volume"]

    def test_broken_object_falls_back_to_scalar(self):
        assert decode_param("{not json") == ScalarParam("{not json")


class TestMethodDescriptor:
    """Rows returned by getMethodTypes."""

    def test_from_full_row(self):
        descriptor = MethodDescriptor.from_row(["setAudioMute", ['{"status":"bool"}'], [], "1.0"])

        assert descriptor.name == "setAudioMute"
        assert descriptor.version == "1.0"
        assert descriptor.to_dict() == {
            "method": "setAudioMute",
            "version": "1.0",
            "in": [{"fields": {"status": "bool"}, "repeated": False}],
            "out": [],
        }

    def test_short_row_uses_first_and_last(self):
        descriptor = MethodDescriptor.from_row(["getPowerStatus", "1.1"])

        assert descriptor.name == "getPowerStatus"
        assert descriptor.version == "1.1"
        assert descriptor.inputs == []


class TestServiceCatalog:
    """Version resolution and discovery order."""

    def _catalog(self) -> ServiceCatalog:
        catalog = ServiceCatalog()
        catalog.add(MethodDescriptor("getPowerStatus", "1.0"))
        catalog.add(MethodDescriptor("setPowerStatus", "1.0"))
        catalog.add(MethodDescriptor("getPowerStatus", "1.1"))
        return catalog

    def test_exact_version(self):
        assert self._catalog().resolve("getPowerStatus", "1.0").version == "1.0"

    def test_missing_version_resolves_to_last_discovered(self):
        assert self._catalog().resolve("getPowerStatus", "2.0").version == "1.1"

    def test_latest_is_discovery_order_not_numeric(self):
        catalog = ServiceCatalog()
        catalog.add(MethodDescriptor("getContentList", "1.5"))
        catalog.add(MethodDescriptor("getContentList", "1.0"))

        assert catalog.resolve("getContentList", "9.9").version == "1.0"

    def test_unknown_method(self):
        assert self._catalog().resolve("getNothing", "1.0") is None

    def test_duplicate_pair_ignored(self):
        catalog = self._catalog()

        assert catalog.add(MethodDescriptor("getPowerStatus", "1.0")) is False
        assert len(catalog) == 3
        assert [d.version for d in catalog.lookup("getPowerStatus")] == ["1.0", "1.1"]

    def test_methods_keep_discovery_order(self):
        catalog = self._catalog()

        assert [(d.name, d.version) for d in catalog.methods()] == [
            ("getPowerStatus", "1.0"),
            ("setPowerStatus", "1.0"),
            ("getPowerStatus", "1.1"),
        ]
        assert [d.name for d in catalog.methods("1.1")] == ["getPowerStatus"]

    def test_clear(self):
        catalog = self._catalog()
        catalog.clear()

        assert len(catalog) == 0
        assert "getPowerStatus" not in catalog
