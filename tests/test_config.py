"""
Policy parsing, named profiles and VMConfig loading.
"""
import sys
import os
import json
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from tape_emulator import (
    VMConfig, PROFILES, PointerPolicy, CellPolicy, ConfigError, TapeVM,
)
from tape_emulator.config import DEFAULT_MEMORY_SIZE, DEFAULT_CHUNK_SIZE


class TestPolicyParsing:
    def test_member_passthrough(self):
        assert PointerPolicy.parse(PointerPolicy.ERROR) is PointerPolicy.ERROR

    def test_name_any_case(self):
        assert PointerPolicy.parse("Clamp") is PointerPolicy.CLAMP
        assert CellPolicy.parse(" unlimited ") is CellPolicy.UNLIMITED

    def test_ordinal(self):
        assert PointerPolicy.parse(1) is PointerPolicy.WRAP
        assert CellPolicy.parse(2) is CellPolicy.ERROR

    def test_unknown(self):
        with pytest.raises(ConfigError, match="choices"):
            PointerPolicy.parse("bounce")
        with pytest.raises(ConfigError):
            CellPolicy.parse(5)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            CellPolicy.parse("sixteen-bit")

    def test_vm_configure_by_name(self):
        vm = TapeVM(10)
        vm.configure("wrap", "error")
        assert vm.pointer_policy is PointerPolicy.WRAP
        assert vm.cell_policy is CellPolicy.ERROR


class TestProfiles:
    def test_known_profiles(self):
        assert set(PROFILES) == {"standard", "ring", "strict", "bignum"}

    def test_strict(self):
        cfg = VMConfig.from_profile("STRICT")
        assert cfg.pointer_policy is PointerPolicy.ERROR
        assert cfg.cell_policy is CellPolicy.ERROR
        assert cfg.memory_size == DEFAULT_MEMORY_SIZE

    def test_overrides_skip_none(self):
        cfg = VMConfig.from_profile("ring", cell_policy="unlimited", memory_size=None)
        assert cfg.pointer_policy is PointerPolicy.WRAP
        assert cfg.cell_policy is CellPolicy.UNLIMITED
        assert cfg.memory_size == DEFAULT_MEMORY_SIZE

    def test_unknown_profile(self):
        with pytest.raises(ConfigError, match="Unknown profile"):
            VMConfig.from_profile("turbo")


class TestVMConfig:
    def test_defaults(self):
        cfg = VMConfig()
        assert cfg.pointer_policy is PointerPolicy.CLAMP
        assert cfg.cell_policy is CellPolicy.WRAP
        assert cfg.chunk_size == DEFAULT_CHUNK_SIZE

    @pytest.mark.parametrize("value", [0, -5, True, "100"])
    def test_rejects_bad_memory_size(self, value):
        with pytest.raises(ConfigError, match="memory_size"):
            VMConfig(memory_size=value)

    def test_from_dict_with_profile(self):
        cfg = VMConfig.from_dict({"profile": "bignum", "memory_size": 64})
        assert cfg.cell_policy is CellPolicy.UNLIMITED
        assert cfg.memory_size == 64

    def test_from_dict_unknown_key(self):
        with pytest.raises(ConfigError, match="colour"):
            VMConfig.from_dict({"colour": "blue"})

    def test_to_dict_uses_names(self):
        data = VMConfig(pointer_policy="wrap").to_dict()
        assert data["pointer_policy"] == "WRAP"
        assert data["cell_policy"] == "WRAP"
        assert VMConfig.from_dict(data) == VMConfig(pointer_policy="wrap")

    def test_from_json(self, tmp_path):
        path = tmp_path / "vm.json"
        path.write_text(json.dumps({"pointer_policy": "error", "max_steps": 500}))
        cfg = VMConfig.from_json(path)
        assert cfg.pointer_policy is PointerPolicy.ERROR
        assert cfg.max_steps == 500

    def test_from_json_invalid(self, tmp_path):
        path = tmp_path / "vm.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError, match="Invalid JSON"):
            VMConfig.from_json(path)
        path.write_text("[1, 2]")
        with pytest.raises(ConfigError, match="object"):
            VMConfig.from_json(path)

    def test_build_vm(self):
        vm = VMConfig.from_profile("ring", memory_size=16).build_vm()
        assert vm.memory_size == 16
        assert vm.pointer_policy is PointerPolicy.WRAP
        vm.load("<+")
        vm.run_fast()
        assert vm.pointer == 15
        assert vm.memory[15] == 1
