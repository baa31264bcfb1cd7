#!/usr/bin/env python3
"""
ByteVM Demo
===========

This script demonstrates how to use the ByteVM machine to:
1. Create a machine for a chosen variant
2. Load and run a program with scripted input
3. Stop at a breakpoint and inspect registers
4. Disassemble the loaded program

Usage:
    source .venv/bin/activate
    python examples/vm_demo.py

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from bytevm import (
    BreakReason,
    MachineConfig,
    Opcode,
    Register,
    ScriptedIO,
    VirtualMachine,
)


def main():
    # ==========================================================================
    # 1. Create a machine
    # ==========================================================================
    # Available variants: "BYTE" (8-bit), "WORD" (8/16-bit, default)

    io = ScriptedIO([10])
    vm = VirtualMachine(io, MachineConfig(variant="BYTE"))
    print(f"Variant: {vm.variant.name}")
    print(f"Memory:  {vm.memory.size} bytes")

    # ==========================================================================
    # 2. Load a countdown program
    # ==========================================================================

    vm.load_program(bytes([
        Opcode.NOP,          # $00
        Opcode.INP,          # $01
        Opcode.DEC,          # $02 loop
        Opcode.JMZ, 0x07,    # $03
        Opcode.JMP, 0x02,    # $05
        Opcode.OUT,          # $07
        Opcode.END,          # $08
    ]))

    # ==========================================================================
    # 3. Break on the third pass through the loop
    # ==========================================================================

    vm.breakpoints.add_condition('a', '==', 7)
    event = vm.run()
    if event.reason == BreakReason.REGISTER_CONDITION:
        print(f"{event} at ${event.address:02X}, A={vm.get_register(Register.A)}")

    vm.breakpoints.clear_all()
    event = vm.run()
    print(f"{event}; output {io.outputs}")

    # ==========================================================================
    # 4. Disassemble
    # ==========================================================================

    for line in vm.disassemble_at(0, 7):
        print(line)


if __name__ == "__main__":
    main()
