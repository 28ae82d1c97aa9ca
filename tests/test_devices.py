"""Tests for core/devices.py: descriptor table and capability lookups."""

import json

import pytest

from core.devices import (
    Capability,
    DescriptorError,
    DescriptorTable,
    PortType,
)
from conftest import TABLE


class TestDevices:
    def test_load_order_is_preserved(self, table):
        assert [d.id for d in table.devices()] == ["holux", "mtk", "orphan"]

    def test_labels_and_driver_ids(self, table):
        holux = table.devices()[0]
        assert holux.label == "Holux M-241"
        assert holux.driver_id == "m241"

    def test_duplicate_id_rejected(self):
        data = {"devices": [TABLE["devices"][0], TABLE["devices"][0]], "drivers": []}
        with pytest.raises(DescriptorError):
            DescriptorTable.from_dict(data)

    def test_unknown_port_type_rejected(self):
        data = {"devices": [], "drivers": [{"id": "x", "ports": ["Parallel"]}]}
        with pytest.raises(DescriptorError):
            DescriptorTable.from_dict(data)

    def test_missing_id_rejected(self):
        with pytest.raises(DescriptorError):
            DescriptorTable.from_dict({"devices": [{"label": "nope"}]})


class TestCapabilityFor:
    @pytest.mark.parametrize("model_id", ["", "garmin", "HOLUX", "m241"])
    def test_unknown_or_empty_is_all_false(self, table, model_id):
        assert table.capability_for(model_id) == Capability()

    def test_holux(self, table):
        cap = table.capability_for("holux")
        assert cap.can_erase is False
        assert cap.can_erase_only is True
        assert cap.can_log_enable is False
        assert cap.can_shutoff is False

    def test_missing_flags_default_false(self, table):
        assert table.capability_for("orphan") == Capability()

    def test_returned_capability_is_a_copy(self, table):
        cap = table.capability_for("mtk")
        assert cap == table.device("mtk").capability
        assert cap is not table.device("mtk").capability


class TestPortTypesFor:
    def test_known_models(self, table):
        assert table.port_types_for("holux") == [PortType.USB_SERIAL]
        assert table.port_types_for("mtk") == [PortType.USB_SERIAL, PortType.RFCOMM]

    @pytest.mark.parametrize("model_id", ["", "unknown"])
    def test_unknown_model_matches_nothing(self, table, model_id):
        assert table.port_types_for(model_id) == [PortType.NONE]

    def test_missing_driver_matches_nothing(self, table):
        assert table.port_types_for("orphan") == [PortType.NONE]


class TestLoad:
    def test_packaged_table(self):
        table = DescriptorTable.load()
        ids = [d.id for d in table.devices()]
        assert "holux" in ids
        cap = table.capability_for("holux")
        assert cap.can_erase is False
        assert cap.can_erase_only is True
        for desc in table.devices():
            assert table.port_types_for(desc.id) != [PortType.NONE]

    def test_from_file(self, tmp_path):
        path = tmp_path / "devices.json"
        path.write_text(json.dumps(TABLE))
        table = DescriptorTable.load(path)
        assert len(table.devices()) == 3

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "devices.json"
        path.write_text("{not json")
        with pytest.raises(DescriptorError):
            DescriptorTable.load(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(DescriptorError):
            DescriptorTable.load(tmp_path / "nope.json")
