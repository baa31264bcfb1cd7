"""
Virtual Machine Unit Tests
==========================

Tests for the execution engine on both machine variants:
- Instruction semantics and flag effects
- Countdown loops with JMZ and JMN
- PUT/GET round trips
- Fatal errors (memory, registers, decoding, IO plugin)
- Execution control (halt, reset, step limit)

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging

import pytest
from bytevm.errors import (
    InvalidOperandError,
    MachineHaltedError,
    MemoryAccessError,
    PluginError,
    RegisterError,
    UnknownOpcodeError,
)
from bytevm.machine import (
    BreakReason,
    ByteIOPlugin,
    Flags,
    MachineConfig,
    MachineState,
    Opcode,
    Register,
    ScriptedIO,
    VirtualMachine,
    Width,
    WordIOPlugin,
    run_program,
)

BYTE = Width.BYTE
WORD = Width.WORD
VALUE = 10


# =============================================================================
# BYTE Variant Programs
# =============================================================================

class TestByteVariantPrograms:
    """Programs for the 8-bit machine, where INP/OUT/INC take no operand."""

    def test_nop_end(self, make_vm):
        vm, io = make_vm([Opcode.NOP, Opcode.END], variant="BYTE")
        event = vm.run()
        assert event.reason == BreakReason.HALTED
        assert event.address == 1
        assert vm.steps == 2
        assert io.outputs == []

    def test_inc(self, make_vm):
        vm, io = make_vm(
            [Opcode.NOP, Opcode.INP, Opcode.INC, Opcode.INC, Opcode.OUT, Opcode.END],
            inputs=[VALUE], variant="BYTE",
        )
        vm.run()
        assert io.outputs == [12]
        assert vm.get_register(Register.A) == 12

    def test_dec(self, make_vm):
        vm, io = make_vm(
            [Opcode.NOP, Opcode.INP, Opcode.DEC, Opcode.DEC, Opcode.OUT, Opcode.END],
            inputs=[VALUE], variant="BYTE",
        )
        vm.run()
        assert io.outputs == [8]
        assert vm.get_flag(Flags.SF) is False
        assert vm.get_flag(Flags.ZF) is False

    def test_add(self, make_vm):
        vm, io = make_vm(
            [Opcode.NOP, Opcode.INP, Opcode.ADD, 10, Opcode.OUT, Opcode.END],
            inputs=[VALUE], variant="BYTE",
        )
        vm.run()
        assert io.outputs == [20]
        assert vm.get_register(Register.B) == 10

    def test_sub_to_zero(self, make_vm):
        vm, io = make_vm(
            [Opcode.NOP, Opcode.INP, Opcode.SUB, 10, Opcode.OUT, Opcode.END],
            inputs=[VALUE], variant="BYTE",
        )
        vm.run()
        assert io.outputs == [0]
        assert vm.get_flag(Flags.ZF) is True
        assert vm.get_flag(Flags.SF) is False

    def test_jmz_countdown(self, make_vm):
        """DEC loops until A reaches zero, then JMZ leaves the loop."""
        vm, io = make_vm([
            Opcode.NOP,                  # $00
            Opcode.INP,                  # $01
            Opcode.DEC,                  # $02 loop
            Opcode.JMZ, 0x07,            # $03
            Opcode.JMP, 0x02,            # $05
            Opcode.OUT,                  # $07 done
            Opcode.END,                  # $08
        ], inputs=[VALUE], variant="BYTE")
        vm.run()
        assert vm.get_flag(Flags.ZF) is True
        assert io.outputs == [0]

    def test_jmn_countdown(self, make_vm):
        """DEC loops past zero; the wrapped byte reads as -1 signed."""
        vm, io = make_vm([
            Opcode.NOP,                  # $00
            Opcode.INP,                  # $01
            Opcode.DEC,                  # $02 loop
            Opcode.JMN, 0x07,            # $03
            Opcode.JMP, 0x02,            # $05
            Opcode.OUT,                  # $07 done
            Opcode.END,                  # $08
        ], inputs=[VALUE], variant="BYTE")
        vm.run()
        assert vm.get_flag(Flags.SF) is True
        assert io.outputs == [255]
        assert io.outputs[0] - 256 == -1

    def test_put_and_get(self, make_vm):
        address = 0x32
        vm, io = make_vm([
            Opcode.NOP,
            Opcode.INP,
            Opcode.PUT, Register.A, address,
            Opcode.GET, Register.B, address,
            Opcode.END,
        ], inputs=[VALUE], variant="BYTE")
        vm.run()
        assert vm.peek_byte(address) == VALUE
        assert vm.get_register(Register.B) == VALUE

    def test_register_c_not_available(self, make_vm):
        vm, _ = make_vm([Opcode.GET, Register.C, 0x10, Opcode.END], variant="BYTE")
        with pytest.raises(RegisterError, match="BYTE"):
            vm.run()


# =============================================================================
# WORD Variant Programs
# =============================================================================

class TestWordVariantPrograms:
    """Programs for the 8/16-bit machine with width-tagged IO."""

    def test_inc_byte(self, make_vm):
        vm, io = make_vm([
            Opcode.NOP,
            Opcode.INP, BYTE,
            Opcode.INC, BYTE,
            Opcode.INC, BYTE,
            Opcode.OUT, BYTE,
            Opcode.END,
        ], inputs=[VALUE])
        vm.run()
        assert io.outputs == [12]
        assert vm.get_register(Register.A) == 12
        assert vm.get_word_register() == 0

    def test_inc_word(self, make_vm):
        vm, io = make_vm([
            Opcode.NOP,
            Opcode.INP, WORD,
            Opcode.INC, WORD,
            Opcode.INC, WORD,
            Opcode.OUT, WORD,
            Opcode.END,
        ], inputs=[VALUE])
        vm.run()
        assert io.outputs == [12]
        assert vm.get_word_register() == 12
        assert vm.get_register(Register.A) == 0

    def test_word_io_uses_b_and_c(self, make_vm):
        vm, io = make_vm([Opcode.INP, WORD, Opcode.OUT, WORD, Opcode.END], inputs=[0x1234])
        vm.run()
        assert vm.get_register(Register.B) == 0x12
        assert vm.get_register(Register.C) == 0x34
        assert io.outputs == [0x1234]

    def test_dec(self, make_vm):
        vm, io = make_vm([
            Opcode.NOP,
            Opcode.INP, BYTE,
            Opcode.DEC,
            Opcode.DEC,
            Opcode.OUT, BYTE,
            Opcode.END,
        ], inputs=[VALUE])
        vm.run()
        assert io.outputs == [8]
        assert not vm.get_flag(Flags.SF)
        assert not vm.get_flag(Flags.ZF)

    def test_add(self, make_vm):
        vm, io = make_vm([
            Opcode.NOP,
            Opcode.INP, BYTE,
            Opcode.ADD, 10,
            Opcode.OUT, BYTE,
            Opcode.END,
        ], inputs=[VALUE])
        vm.run()
        assert io.outputs == [20]

    def test_jmz_countdown(self, make_vm):
        vm, io = make_vm([
            Opcode.NOP,                  # $00
            Opcode.INP, BYTE,            # $01
            Opcode.DEC,                  # $03 loop
            Opcode.JMZ, 0x08,            # $04
            Opcode.JMP, 0x03,            # $06
            Opcode.OUT, BYTE,            # $08 done
            Opcode.END,                  # $0A
        ], inputs=[VALUE])
        vm.run()
        assert vm.get_flag(Flags.ZF) is True
        assert io.outputs == [0]

    def test_jmn_countdown(self, make_vm):
        vm, io = make_vm([
            Opcode.NOP,                  # $00
            Opcode.INP, BYTE,            # $01
            Opcode.DEC,                  # $03 loop
            Opcode.JMN, 0x08,            # $04
            Opcode.JMP, 0x03,            # $06
            Opcode.OUT, BYTE,            # $08 done
            Opcode.END,                  # $0A
        ], inputs=[VALUE])
        vm.run()
        assert vm.get_flag(Flags.SF) is True
        assert vm.get_flag(Flags.ZF) is False
        assert io.outputs == [255]

    def test_put_get_round_trip(self, make_vm):
        """PUT then GET moves exactly one byte and touches nothing else."""
        address = 0x32
        vm, io = make_vm([
            Opcode.NOP,
            Opcode.INP, BYTE,
            Opcode.PUT, Register.A, address,
            Opcode.GET, Register.D, address,
            Opcode.OUT, BYTE,
            Opcode.END,
        ], inputs=[VALUE])
        before = bytearray(vm.memory.dump())
        vm.run()

        before[address] = VALUE
        assert vm.memory.dump() == bytes(before)
        assert vm.get_register(Register.D) == VALUE
        for reg in (Register.B, Register.C, Register.I, Register.FL):
            assert vm.get_register(reg) == 0
        assert io.outputs == [VALUE]

    def test_index_register(self, make_vm):
        vm, _ = make_vm([Opcode.GET, Register.I, 0x40, Opcode.END])
        vm.poke_byte(0x40, 0x99)
        vm.run()
        assert vm.get_register(Register.I) == 0x99
        assert vm.get_register(Register.FL) == 0
        assert vm.pc == 4

    def test_invalid_width_tag(self, make_vm):
        vm, _ = make_vm([Opcode.NOP, Opcode.INP, 0x03, Opcode.END], inputs=[1])
        with pytest.raises(InvalidOperandError) as exc_info:
            vm.run()
        assert exc_info.value.address == 2
        assert exc_info.value.value == 0x03
        assert exc_info.value.mnemonic == "INP"

    def test_invalid_width_tag_keeps_flags(self, make_vm):
        """INC with a bad width tag fails before touching the flags."""
        vm, _ = make_vm([Opcode.INC, 0x03, Opcode.END])
        vm.set_flag(Flags.ZF, True)
        vm.set_register(Register.A, 5)
        with pytest.raises(InvalidOperandError):
            vm.run()
        assert vm.get_flag(Flags.ZF) is True
        assert vm.get_register(Register.A) == 5


# =============================================================================
# Arithmetic and Flags
# =============================================================================

class TestArithmetic:
    """Test wraparound and flag computation of INC, DEC, ADD and SUB."""

    def test_inc_signed_overflow(self, make_vm):
        vm, _ = make_vm([Opcode.INC, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 0x7F)
        vm.run()
        assert vm.get_register(Register.A) == 0x80
        assert vm.get_flag(Flags.OF) is True

    def test_inc_wraps(self, make_vm):
        vm, _ = make_vm([Opcode.INC, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 0xFF)
        vm.run()
        assert vm.get_register(Register.A) == 0
        assert vm.get_flag(Flags.OF) is True
        assert vm.get_flag(Flags.ZF) is False

    def test_inc_word_overflow(self, make_vm):
        vm, _ = make_vm([Opcode.INC, WORD, Opcode.END])
        vm.set_word_register(0x7FFF)
        vm.run()
        assert vm.get_word_register() == 0x8000
        assert vm.get_flag(Flags.OF) is True

    def test_inc_word_wraps(self, make_vm):
        vm, _ = make_vm([Opcode.INC, WORD, Opcode.END])
        vm.set_word_register(0xFFFF)
        vm.run()
        assert vm.get_word_register() == 0
        assert vm.get_flag(Flags.OF) is True

    def test_inc_word_no_overflow(self, make_vm):
        vm, _ = make_vm([Opcode.INC, WORD, Opcode.END])
        vm.set_word_register(0x00FF)
        vm.run()
        assert vm.get_word_register() == 0x0100
        assert vm.get_flag(Flags.OF) is False

    def test_dec_below_zero(self, make_vm):
        vm, _ = make_vm([Opcode.DEC, Opcode.END], variant="BYTE")
        vm.run()
        assert vm.get_register(Register.A) == 0xFF
        assert vm.get_flag(Flags.SF) is True
        assert vm.get_flag(Flags.ZF) is False

    def test_add_overflow(self, make_vm):
        vm, _ = make_vm([Opcode.ADD, 10, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 120)
        vm.run()
        assert vm.get_register(Register.A) == 130
        assert vm.get_flag(Flags.OF) is True

    def test_add_wraps(self, make_vm):
        vm, _ = make_vm([Opcode.ADD, 10, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 250)
        vm.run()
        assert vm.get_register(Register.A) == 4
        assert vm.get_flag(Flags.OF) is True

    def test_sub_negative(self, make_vm):
        vm, _ = make_vm([Opcode.SUB, 6, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 5)
        vm.run()
        assert vm.get_register(Register.A) == 0xFF
        assert vm.get_register(Register.B) == 6
        assert vm.get_flag(Flags.SF) is True

    def test_flags_do_not_carry_over(self, make_vm):
        """SUB reaching zero after an overflowing ADD reports only ZF."""
        vm, _ = make_vm([Opcode.ADD, 10, Opcode.SUB, 130, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 120)
        vm.step()
        assert vm.get_flag(Flags.OF) is True

        vm.step()
        assert vm.get_register(Register.A) == 0
        assert vm.get_flag(Flags.ZF) is True
        assert vm.get_flag(Flags.OF) is False

    def test_dec_clears_overflow(self, make_vm):
        vm, _ = make_vm([Opcode.DEC, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 5)
        vm.set_flag(Flags.OF, True)
        vm.run()
        assert vm.get_register(Register.FL) == 0

    def test_non_arithmetic_keeps_flags(self, make_vm):
        vm, _ = make_vm([Opcode.NOP, Opcode.JMP, 0x03, Opcode.END], variant="BYTE")
        vm.set_flag(Flags.ZF, True)
        vm.set_flag(Flags.OF, True)
        vm.run()
        assert vm.get_flag(Flags.ZF) is True
        assert vm.get_flag(Flags.OF) is True

    def test_jumps_not_taken(self, make_vm):
        vm, _ = make_vm(
            [Opcode.JMZ, 0x10, Opcode.JMN, 0x10, Opcode.END], variant="BYTE"
        )
        vm.run()
        assert vm.last_event.address == 4


# =============================================================================
# Fatal Errors
# =============================================================================

class TestErrors:
    """Errors stop the machine and propagate to the caller."""

    def test_unknown_opcode_strict(self, make_vm):
        vm, _ = make_vm([Opcode.NOP, 0x42, Opcode.END])
        with pytest.raises(UnknownOpcodeError) as exc_info:
            vm.run()
        assert exc_info.value.opcode == 0x42
        assert exc_info.value.address == 1
        assert "$01: unknown opcode $42" in str(exc_info.value)
        assert vm.state == MachineState.RUNNING

    def test_unknown_opcode_lenient(self, make_vm, caplog):
        vm, io = make_vm(
            [0x42, Opcode.INP, Opcode.OUT, Opcode.END],
            inputs=[5], variant="BYTE", strict_opcodes=False,
        )
        with caplog.at_level(logging.WARNING, logger="bytevm.machine.vm"):
            vm.run()
        assert io.outputs == [5]
        assert vm.steps == 4
        assert "unknown opcode $42" in caplog.text

    def test_running_off_the_end(self, make_vm):
        """Zeroed memory is NOPs; the fetch after the last byte fails."""
        vm, _ = make_vm([Opcode.NOP])
        with pytest.raises(MemoryAccessError) as exc_info:
            vm.run()
        assert exc_info.value.address == 255
        assert vm.steps == 255

    def test_get_out_of_range(self, make_vm):
        vm, _ = make_vm([Opcode.GET, Register.A, 0xFF, Opcode.END], variant="BYTE")
        with pytest.raises(MemoryAccessError):
            vm.run()

    def test_put_out_of_range(self, make_vm):
        vm, _ = make_vm([Opcode.PUT, Register.A, 0x80, Opcode.END], memory_size=64)
        with pytest.raises(MemoryAccessError):
            vm.run()

    def test_unknown_register_id(self, make_vm):
        vm, _ = make_vm([Opcode.PUT, 0x09, 0x20, Opcode.END])
        with pytest.raises(RegisterError, match="unknown register"):
            vm.run()

    def test_program_too_large(self, word_vm):
        with pytest.raises(MemoryAccessError):
            word_vm.load_program(bytes(256))

    def test_plugin_exception(self, make_vm):
        vm, _ = make_vm([Opcode.INP, Opcode.END], variant="BYTE")
        vm.set_register(Register.A, 7)
        with pytest.raises(PluginError) as exc_info:
            vm.run()
        assert exc_info.value.operation == "read_byte"
        assert isinstance(exc_info.value.__cause__, EOFError)
        assert vm.get_register(Register.A) == 7

    def test_plugin_value_out_of_range(self):
        class WideIO:
            def read_byte(self):
                return 300

            def write_byte(self, value):
                pass

        vm = VirtualMachine(WideIO(), MachineConfig(variant="BYTE"))
        vm.load_program(bytes([Opcode.INP, Opcode.END]))
        with pytest.raises(PluginError, match="returned 300"):
            vm.run()
        assert vm.get_register(Register.A) == 0

    def test_byte_plugin_on_word_io(self):
        class ByteOnlyIO:
            def read_byte(self):
                return 1

            def write_byte(self, value):
                pass

        io = ByteOnlyIO()
        assert isinstance(io, ByteIOPlugin)
        assert not isinstance(io, WordIOPlugin)

        vm = VirtualMachine(io)
        vm.load_program(bytes([Opcode.INP, WORD, Opcode.END]))
        with pytest.raises(PluginError, match="no read_word"):
            vm.run()

    def test_write_failure_propagates(self):
        class BrokenOutput(ScriptedIO):
            def write_byte(self, value):
                raise OSError("device gone")

        vm = VirtualMachine(BrokenOutput([1]), MachineConfig(variant="BYTE"))
        vm.load_program(bytes([Opcode.INP, Opcode.OUT, Opcode.END]))
        with pytest.raises(PluginError, match="device gone"):
            vm.run()
        assert not vm.is_halted


# =============================================================================
# Execution Control
# =============================================================================

class TestExecutionControl:
    """Test state machine, stepping, reset and step limits."""

    def test_initial_state(self, word_vm):
        assert word_vm.state == MachineState.RUNNING
        assert word_vm.pc == 0
        assert word_vm.steps == 0
        assert word_vm.memory.size == 255

    def test_step(self, make_vm):
        vm, _ = make_vm([Opcode.NOP, Opcode.JMP, 0x05], variant="BYTE")
        event = vm.step()
        assert event.reason == BreakReason.STEP
        assert event.address == 1
        vm.step()
        assert vm.pc == 5

    def test_operands_advance_pc(self, make_vm):
        vm, _ = make_vm([Opcode.PUT, Register.A, 0x40, Opcode.INP, BYTE], inputs=[1])
        vm.step()
        assert vm.pc == 3
        vm.step()
        assert vm.pc == 5

    def test_halted_machine_refuses_to_run(self, make_vm):
        vm, _ = make_vm([Opcode.END])
        event = vm.step()
        assert event.reason == BreakReason.HALTED
        assert vm.is_halted
        with pytest.raises(MachineHaltedError):
            vm.step()
        with pytest.raises(MachineHaltedError):
            vm.run()

    def test_reset_keeps_memory(self, make_vm):
        vm, io = make_vm([Opcode.INP, Opcode.OUT, Opcode.END], inputs=[3, 4], variant="BYTE")
        vm.run()
        vm.reset()
        assert vm.state == MachineState.RUNNING
        assert vm.pc == 0
        assert vm.steps == 0
        assert vm.get_register(Register.A) == 0
        vm.run()
        assert io.outputs == [3, 4]

    def test_reset_clear_memory(self, make_vm):
        vm, _ = make_vm([Opcode.NOP, Opcode.END])
        vm.reset(clear_memory=True)
        assert vm.memory.dump() == bytes(255)

    def test_max_steps(self, make_vm):
        vm, _ = make_vm([Opcode.JMP, 0x00])
        event = vm.run(max_steps=50)
        assert event.reason == BreakReason.MAX_STEPS
        assert vm.steps == 50
        assert vm.state == MachineState.RUNNING

        vm.run(max_steps=50)
        assert vm.steps == 100

    def test_config_max_steps(self, make_vm):
        vm, _ = make_vm([Opcode.JMP, 0x00], max_steps=10)
        assert vm.run().reason == BreakReason.MAX_STEPS
        assert vm.steps == 10

    def test_zero_steps(self, make_vm):
        vm, _ = make_vm([Opcode.END])
        assert vm.run(max_steps=0).reason == BreakReason.MAX_STEPS
        assert vm.steps == 0

    def test_pc_wraps_at_256(self, make_vm):
        vm, _ = make_vm([Opcode.END], memory_size=256)
        vm.pc = 0xFF
        event = vm.run()
        assert event.reason == BreakReason.HALTED
        assert event.address == 0
        assert vm.steps == 2

    def test_trace_callback(self, make_vm):
        vm, _ = make_vm([Opcode.NOP, Opcode.NOP, Opcode.END])
        trace = []
        vm.on_instruction = lambda address, opcode: trace.append((address, opcode))
        vm.run()
        assert trace == [(0, 0x00), (1, 0x00), (2, 0xFF)]

    def test_debug_logging(self, make_vm, caplog):
        vm, _ = make_vm([Opcode.NOP, Opcode.END])
        with caplog.at_level(logging.DEBUG, logger="bytevm.machine.vm"):
            vm.run()
        assert "$00: NOP" in caplog.text
        assert "$01: END" in caplog.text


# =============================================================================
# Accessors
# =============================================================================

class TestAccessors:
    """Test the inspection API used by tooling and tests."""

    def test_flags(self, word_vm):
        for flag in Flags:
            word_vm.set_flag(flag, True)
            assert word_vm.get_flag(flag) is True
            assert word_vm.get_flag_byte(flag) == 1
        word_vm.set_flag_byte(Flags.ZF, 0)
        assert word_vm.get_flag(Flags.ZF) is False
        assert word_vm.get_flag(Flags.SF) is True

        word_vm.reset_flags()
        assert word_vm.get_register(Register.FL) == 0

    def test_word_memory(self, word_vm):
        word_vm.poke_word(0x10, 0xBEEF)
        assert word_vm.peek_byte(0x10) == 0xBE
        assert word_vm.peek_word(0x10) == 0xBEEF

    def test_registers_word(self, word_vm):
        word_vm.set_word_register(0x0102)
        regs = word_vm.registers
        assert list(regs) == ["a", "b", "c", "d", "pc", "fl", "i", "bc", "sf", "zf", "of"]
        assert regs["bc"] == 0x0102

    def test_registers_byte(self, byte_vm):
        assert list(byte_vm.registers) == ["a", "b", "pc", "fl", "sf", "zf", "of"]

    def test_disassemble_at(self, make_vm):
        vm, _ = make_vm([Opcode.INP, BYTE, Opcode.END])
        lines = vm.disassemble_at(0, 2)
        assert lines[0].endswith("INP byte")
        assert lines[1].endswith("END")

    def test_repr(self, word_vm):
        assert "variant=WORD" in repr(word_vm)
        assert "state=RUNNING" in repr(word_vm)


class TestRunProgram:
    """Test the one-call convenience entry point."""

    def test_run_program(self):
        io = ScriptedIO([VALUE])
        vm = run_program(bytes([0x01, 0x01, 0x05, 0x0A, 0x02, 0x01, 0xFF]), io)
        assert io.outputs == [20]
        assert vm.last_event.reason == BreakReason.HALTED

    def test_run_program_byte_variant(self):
        io = ScriptedIO([VALUE])
        run_program(bytes([0x01, 0x07, 0x07, 0x02, 0xFF]), io, MachineConfig(variant="V1"))
        assert io.outputs == [12]
