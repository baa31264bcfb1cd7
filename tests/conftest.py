"""
ByteVM Test Configuration
=========================

Shared fixtures for the unit tests:
- Scripted IO plugins
- Machine factories for both variants
- Helpers for writing program files used by the CLI tests

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from pathlib import Path
from typing import Callable

import pytest

from bytevm.machine import MachineConfig, ScriptedIO, VirtualMachine


# ═══════════════════════════════════════════════════════════════════════════════
# MACHINE FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def make_vm() -> Callable[..., tuple[VirtualMachine, ScriptedIO]]:
    """
    Fixture: Factory for a machine with a program already loaded.

    Usage:
        vm, io = make_vm([Opcode.INP, Opcode.END], inputs=[10], variant="BYTE")
    """

    def _make(program=(), inputs=(), variant="WORD", **config):
        io = ScriptedIO(inputs)
        vm = VirtualMachine(io, MachineConfig(variant=variant, **config))
        vm.load_program(bytes(program))
        return vm, io

    return _make


@pytest.fixture
def byte_vm() -> VirtualMachine:
    """Fixture: Empty BYTE machine with no pending input."""
    return VirtualMachine(ScriptedIO(), MachineConfig(variant="BYTE"))


@pytest.fixture
def word_vm() -> VirtualMachine:
    """Fixture: Empty WORD machine with no pending input."""
    return VirtualMachine(ScriptedIO())


# ═══════════════════════════════════════════════════════════════════════════════
# FILE HELPERS
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def write_program(tmp_path: Path) -> Callable[..., Path]:
    """
    Fixture: Write a program to a temporary file.

    Bytes are written as a raw image, strings as hex text.
    """

    def _write(content, name: str = "program.bin") -> Path:
        path = tmp_path / name
        if isinstance(content, str):
            path.write_text(content)
        else:
            path.write_bytes(bytes(content))
        return path

    return _write
