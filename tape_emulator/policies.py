"""
Tape VM — Overflow Policies

Two independent three-way policies, chosen at configuration time:

  PointerPolicy  governs ``>`` / ``<``   CLAMP | WRAP | ERROR
  CellPolicy     governs ``+`` / ``-``   WRAP  | UNLIMITED | ERROR

Values match the ordinals the settings dialog of the desktop front end
stores, so persisted settings round-trip.
"""

from __future__ import annotations
import enum

from .errors import ConfigError


class _ParseableEnum(enum.Enum):

    @classmethod
    def parse(cls, value):
        """Accept an enum member, its name (any case) or its ordinal."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                pass
        elif isinstance(value, str):
            key = value.strip().upper().replace("-", "_")
            if key in cls.__members__:
                return cls.__members__[key]
        choices = ", ".join(m.name.lower() for m in cls)
        raise ConfigError(f"Unknown {cls.__name__}: {value!r} (choices: {choices})")


class PointerPolicy(_ParseableEnum):
    CLAMP = 0   # stay at the boundary
    WRAP = 1    # wrap around modulo memory size
    ERROR = 2   # raise PointerOverflow


class CellPolicy(_ParseableEnum):
    WRAP = 0       # modulo 256
    UNLIMITED = 1  # any signed integer
    ERROR = 2      # raise CellOverflow


POINTER_POLICY_NAMES = {
    PointerPolicy.CLAMP: "Clamp",
    PointerPolicy.WRAP: "Wrap-around",
    PointerPolicy.ERROR: "Error on overflow",
}

CELL_POLICY_NAMES = {
    CellPolicy.WRAP: "Wrap (0-255)",
    CellPolicy.UNLIMITED: "Unlimited",
    CellPolicy.ERROR: "Error on overflow",
}
