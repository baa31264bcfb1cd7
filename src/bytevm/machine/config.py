"""
ByteVM Configuration
====================

Construction parameters for a VirtualMachine. Configuration can come
from:
- Default values (defined here)
- Explicit keyword arguments
- Environment variables, via MachineConfig.from_env()

The machine itself never reads the environment; from_env() is for
outer layers such as the command-line tool.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .memory import MAX_MEMORY_SIZE
from .variants import MachineVariant, get_variant

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


@dataclass(frozen=True)
class MachineConfig:
    """
    Configuration for machine initialization.

    Attributes:
        variant: Variant code ("BYTE" or "WORD"; "V1"/"V2" also accepted)
        memory_size: Memory size in bytes; None uses the variant default (255)
        strict_opcodes: Raise UnknownOpcodeError on undefined opcodes.
                        When False they are skipped like NOP.
        max_steps: Default step limit for run(); None means unlimited

    Example:
        >>> config = MachineConfig(variant="BYTE")
        >>> config = MachineConfig(memory_size=256, max_steps=10_000)
    """
    variant: str = "WORD"
    memory_size: Optional[int] = None
    strict_opcodes: bool = True
    max_steps: Optional[int] = None

    def __post_init__(self):
        # Fail at construction rather than at first run
        get_variant(self.variant)
        if self.memory_size is not None and not 1 <= self.memory_size <= MAX_MEMORY_SIZE:
            raise ValueError(
                f"Memory size must be 1-{MAX_MEMORY_SIZE}, got {self.memory_size}"
            )
        if self.max_steps is not None and self.max_steps < 0:
            raise ValueError(f"max_steps must be >= 0, got {self.max_steps}")

    @property
    def machine_variant(self) -> MachineVariant:
        return get_variant(self.variant)

    @property
    def effective_memory_size(self) -> int:
        if self.memory_size is None:
            return self.machine_variant.default_memory_size
        return self.memory_size

    def with_overrides(self, **overrides) -> "MachineConfig":
        """
        Return a copy with the given fields replaced. Overrides whose
        value is None are ignored, so unset CLI options keep the
        current value.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MachineConfig":
        """
        Create MachineConfig from environment variables.

        Environment variables (all optional):
            BYTEVM_VARIANT: Variant code ("BYTE", "WORD")
            BYTEVM_MEMORY_SIZE: Memory size in bytes (integer)
            BYTEVM_MAX_STEPS: Step limit (integer)
            BYTEVM_STRICT_OPCODES: "1"/"0", "true"/"false", ...

        Invalid values are logged and ignored.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            MachineConfig with values from the environment
        """
        env = os.environ if environ is None else environ
        kwargs = {}

        if variant := env.get("BYTEVM_VARIANT"):
            try:
                get_variant(variant)
                kwargs["variant"] = variant
            except ValueError:
                logger.warning("Ignoring BYTEVM_VARIANT=%r", variant)

        if size := env.get("BYTEVM_MEMORY_SIZE"):
            try:
                value = int(size, 0)
                if 1 <= value <= MAX_MEMORY_SIZE:
                    kwargs["memory_size"] = value
                else:
                    logger.warning("Ignoring BYTEVM_MEMORY_SIZE=%r", size)
            except ValueError:
                logger.warning("Ignoring BYTEVM_MEMORY_SIZE=%r", size)

        if steps := env.get("BYTEVM_MAX_STEPS"):
            try:
                value = int(steps)
                if value >= 0:
                    kwargs["max_steps"] = value
                else:
                    logger.warning("Ignoring BYTEVM_MAX_STEPS=%r", steps)
            except ValueError:
                logger.warning("Ignoring BYTEVM_MAX_STEPS=%r", steps)

        if strict := env.get("BYTEVM_STRICT_OPCODES"):
            if strict.lower() in _TRUE_VALUES:
                kwargs["strict_opcodes"] = True
            elif strict.lower() in _FALSE_VALUES:
                kwargs["strict_opcodes"] = False
            else:
                logger.warning("Ignoring BYTEVM_STRICT_OPCODES=%r", strict)

        return cls(**kwargs)
