"""
ByteVM Machine Variants
=======================

Defines the two machine configurations the interpreter supports.

Supported variants:
- BYTE: 8-bit only. Registers A, B, PC, FL. INP, OUT and INC act on A
  and take no operand.
- WORD: 8/16-bit. Registers A, B, C, D, PC, FL, I. INP, OUT and INC take
  a width tag ($01 byte, $02 word); word forms act on the B:C pair.

Everything else (opcode values, memory model, flags) is shared, so a
single VirtualMachine is parametrized by one of these descriptions.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass

from .memory import DEFAULT_MEMORY_SIZE
from .registers import Register


@dataclass(frozen=True)
class MachineVariant:
    """
    Configuration for one machine variant.

    Attributes:
        name: Human-readable name (e.g., "WORD (8/16-bit)")
        code: Variant code used in configuration ("BYTE", "WORD")
        registers: Registers the variant has
        width_tagged: True if INP, OUT and INC carry a width tag operand
        default_memory_size: Memory size when none is configured
    """
    name: str
    code: str
    registers: tuple[Register, ...]
    width_tagged: bool
    default_memory_size: int = DEFAULT_MEMORY_SIZE

    @property
    def supports_words(self) -> bool:
        """Check if the variant has 16-bit INP/OUT/INC."""
        return self.width_tagged

    def has_register(self, register: Register) -> bool:
        return register in self.registers


# =============================================================================
# Predefined Variants
# =============================================================================

VARIANT_BYTE = MachineVariant(
    name="BYTE (8-bit)",
    code="BYTE",
    registers=(Register.A, Register.B, Register.PC, Register.FL),
    width_tagged=False,
)

VARIANT_WORD = MachineVariant(
    name="WORD (8/16-bit)",
    code="WORD",
    registers=tuple(Register),
    width_tagged=True,
)

VARIANT_DEFAULT = VARIANT_WORD

# Lookup by code; "V1"/"V2" are the historical names of the two machines
_VARIANT_MAP = {
    "BYTE": VARIANT_BYTE,
    "V1": VARIANT_BYTE,
    "WORD": VARIANT_WORD,
    "V2": VARIANT_WORD,
}


def get_variant(code: str) -> MachineVariant:
    """
    Get a variant configuration by code.

    Args:
        code: Variant code ("BYTE", "WORD", "V1", "V2"), case-insensitive.
              Empty string or "DEFAULT" selects the default variant.

    Returns:
        MachineVariant configuration

    Raises:
        ValueError: If the code is unknown
    """
    key = code.strip().upper()

    if key in _VARIANT_MAP:
        return _VARIANT_MAP[key]

    if key in ("DEFAULT", ""):
        return VARIANT_DEFAULT

    available = ", ".join(sorted(_VARIANT_MAP.keys()))
    raise ValueError(
        f"Unknown variant '{code}'. Available: {available}"
    )


def list_variants() -> list[MachineVariant]:
    """
    Get list of all predefined variants.

    Returns:
        List of MachineVariant instances
    """
    return [VARIANT_BYTE, VARIANT_WORD]
