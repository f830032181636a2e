"""
Tape VM — Configuration

Constants and named policy profiles, plus the VMConfig record the CLI
and hosts build a VM from.

Profiles:
  standard   CLAMP pointer, WRAP cells        (classic behaviour)
  ring       WRAP pointer,  WRAP cells        (circular tape)
  strict     ERROR pointer, ERROR cells       (catch every overflow)
  bignum     CLAMP pointer, UNLIMITED cells   (signed integer cells)
"""

from __future__ import annotations
import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Union

from .errors import ConfigError
from .policies import PointerPolicy, CellPolicy


DEFAULT_MEMORY_SIZE = 30000
DEFAULT_MAX_STEPS = 1_000_000
DEFAULT_CHUNK_SIZE = 10_000
HOST_CHUNK_SIZE = 50_000     # slice a timer-driven host runs per tick

PROFILES: Dict[str, Dict[str, Any]] = {
    "standard": {
        "pointer_policy": PointerPolicy.CLAMP,
        "cell_policy": CellPolicy.WRAP,
        "description": "Clamp pointer at the tape ends, 8-bit wrapping cells",
    },
    "ring": {
        "pointer_policy": PointerPolicy.WRAP,
        "cell_policy": CellPolicy.WRAP,
        "description": "Circular tape, 8-bit wrapping cells",
    },
    "strict": {
        "pointer_policy": PointerPolicy.ERROR,
        "cell_policy": CellPolicy.ERROR,
        "description": "Raise on any pointer or cell overflow",
    },
    "bignum": {
        "pointer_policy": PointerPolicy.CLAMP,
        "cell_policy": CellPolicy.UNLIMITED,
        "description": "Clamp pointer, unbounded signed integer cells",
    },
}


@dataclass
class VMConfig:
    memory_size: int = DEFAULT_MEMORY_SIZE
    pointer_policy: PointerPolicy = PointerPolicy.CLAMP
    cell_policy: CellPolicy = CellPolicy.WRAP
    max_steps: int = DEFAULT_MAX_STEPS
    chunk_size: int = DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        self.pointer_policy = PointerPolicy.parse(self.pointer_policy)
        self.cell_policy = CellPolicy.parse(self.cell_policy)
        for name in ("memory_size", "max_steps", "chunk_size"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")

    @classmethod
    def from_profile(cls, name: str, **overrides) -> "VMConfig":
        profile = PROFILES.get(name.lower())
        if profile is None:
            raise ConfigError(
                f"Unknown profile: {name!r} (choices: {', '.join(PROFILES)})")
        values = {k: v for k, v in profile.items() if k != "description"}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VMConfig":
        """Build from a plain mapping. A ``profile`` key seeds the policies."""
        data = dict(data)
        unknown = set(data) - set(cls.__dataclass_fields__) - {"profile"}
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        profile = data.pop("profile", None)
        if profile is not None:
            return cls.from_profile(profile, **data)
        return cls(**data)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "VMConfig":
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top-level JSON value must be an object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["pointer_policy"] = self.pointer_policy.name
        data["cell_policy"] = self.cell_policy.name
        return data

    def build_vm(self):
        """Create a TapeVM configured with these settings."""
        from .emu import TapeVM
        vm = TapeVM(self.memory_size)
        vm.configure(self.pointer_policy, self.cell_policy)
        return vm
