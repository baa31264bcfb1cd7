"""
ByteVM Execution Engine
=======================

The fetch-decode-execute loop and instruction semantics.

Each cycle:
1. Fetch the byte at PC and increment PC.
2. Decode it as an opcode.
3. Execute it; operands are fetched through the same primitive, so
   opcode and operand bytes share one advancing cursor.

The machine starts RUNNING with PC = 0 and becomes HALTED only by
executing END. There is no internal step limit unless one is
configured; an endless program is the caller's concern.

Arithmetic stores results wrapped to the register width, while flags
come from the unwrapped result:
- INC sets OF when the result exceeds the signed maximum (127 / 32767)
- ADD sets OF when the result exceeds 127
- DEC and SUB set ZF when the result is 0, SF when it is below 0
Flags are cleared before each of these instructions computes its own.

Example usage:
    >>> from bytevm.machine import MachineConfig, VirtualMachine, ScriptedIO, Opcode
    >>> io = ScriptedIO([10])
    >>> vm = VirtualMachine(io, MachineConfig(variant="BYTE"))
    >>> vm.load_program(bytes([Opcode.INP, Opcode.INC, Opcode.OUT, Opcode.END]))
    >>> vm.run().reason
    <BreakReason.HALTED: 1>
    >>> io.outputs
    [11]

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
from enum import Enum, auto
from typing import Callable, List, Optional

from .config import MachineConfig
from ..errors import (
    InvalidOperandError,
    MachineHaltedError,
    PluginError,
    UnknownOpcodeError,
)
from .breakpoints import BreakEvent, BreakpointManager, BreakReason
from .memory import Memory
from .opcodes import Opcode, Width, get_instruction_info
from .registers import Flags, Register, RegisterFile

logger = logging.getLogger(__name__)

SBYTE_MAX = 0x7F
SWORD_MAX = 0x7FFF


class MachineState(Enum):
    """Execution state of the machine."""
    RUNNING = auto()
    HALTED = auto()


class VirtualMachine:
    """
    Register machine with flat memory and an injected IO plugin.

    Attributes:
        config: The MachineConfig used to initialize this instance
        variant: The MachineVariant in effect
        io: IO plugin called by INP and OUT
        memory: The Memory instance
        register_file: The RegisterFile instance
        breakpoints: The breakpoint/watchpoint manager
        on_instruction: Optional callback(address, opcode) invoked after
            each fetch, before execution. Used for tracing.

    Example:
        >>> vm = VirtualMachine(ScriptedIO([10]))
        >>> vm.load_program(bytes([0x01, 0x01, 0x02, 0x01, 0xFF]))
        >>> event = vm.run()
        >>> print(f"A=${vm.get_register(Register.A):02X}")
        A=$0A
    """

    def __init__(self, io, config: Optional[MachineConfig] = None):
        """
        Initialize the machine.

        Args:
            io: IO plugin (ByteIOPlugin, or WordIOPlugin for word INP/OUT)
            config: MachineConfig; defaults to the WORD variant with 255
                    bytes of memory

        Raises:
            ValueError: If the configuration is invalid
        """
        self.config = config or MachineConfig()
        self.variant = self.config.machine_variant
        self.io = io

        self.memory = Memory(self.config.effective_memory_size)
        self.register_file = RegisterFile(self.variant.registers, self.variant.code)
        self.breakpoints = BreakpointManager(self.variant)

        self.on_instruction: Optional[Callable[[int, int], None]] = None

        self._state = MachineState.RUNNING
        self._steps = 0
        self._last_address = 0
        self._last_event: Optional[BreakEvent] = None
        # PC that run() executes without a break check, after stopping there
        self._resume_pc: Optional[int] = None
        # Set by PUT when a write watchpoint fires
        self._memory_break_requested = False

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def state(self) -> MachineState:
        return self._state

    @property
    def is_halted(self) -> bool:
        return self._state is MachineState.HALTED

    @property
    def steps(self) -> int:
        """Instructions executed since construction or the last reset."""
        return self._steps

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """The event returned by the most recent run()."""
        return self._last_event

    @property
    def pc(self) -> int:
        """Program counter (8-bit)."""
        return self.register_file.get(Register.PC)

    @pc.setter
    def pc(self, value: int) -> None:
        self.register_file.set(Register.PC, value)

    @property
    def registers(self) -> dict:
        """
        Current register and flag values.

        Returns:
            Dictionary with one key per register of the variant, plus
            'bc' on the WORD variant and 'sf', 'zf', 'of'
        """
        result = self.register_file.as_dict()
        if self.variant.supports_words:
            result['bc'] = self.register_file.get_word()
        result['sf'] = self.get_flag(Flags.SF)
        result['zf'] = self.get_flag(Flags.ZF)
        result['of'] = self.get_flag(Flags.OF)
        return result

    # =========================================================================
    # Memory Access
    # =========================================================================

    def peek_byte(self, address: int) -> int:
        return self.memory.peek_byte(address)

    def poke_byte(self, address: int, value: int) -> None:
        self.memory.poke_byte(address, value)

    def peek_word(self, address: int) -> int:
        """Read a big-endian word from address and address+1."""
        return self.memory.peek_word(address)

    def poke_word(self, address: int, value: int) -> None:
        """Write a big-endian word to address and address+1."""
        self.memory.poke_word(address, value)

    def load_program(self, program: bytes, address: int = 0) -> None:
        """
        Copy a program image into memory.

        The image is loaded verbatim; there is no header or relocation.
        PC is not changed.

        Raises:
            MemoryAccessError: If the program does not fit
        """
        self.memory.load(bytes(program), address)
        logger.debug("Loaded %d bytes at $%02X", len(program), address)

    # =========================================================================
    # Register and Flag Access
    # =========================================================================

    def get_register(self, register: int) -> int:
        return self.register_file.get(register)

    def set_register(self, register: int, value: int) -> None:
        self.register_file.set(register, value)

    def get_word_register(self) -> int:
        """Read the B:C pair as a 16-bit value."""
        return self.register_file.get_word()

    def set_word_register(self, value: int) -> None:
        self.register_file.set_word(value)

    def get_flag(self, flag: Flags) -> bool:
        return self.register_file.get_flag(flag)

    def set_flag(self, flag: Flags, value: bool) -> None:
        self.register_file.set_flag(flag, value)

    def get_flag_byte(self, flag: Flags) -> int:
        return self.register_file.get_flag_byte(flag)

    def set_flag_byte(self, flag: Flags, value: int) -> None:
        self.register_file.set_flag_byte(flag, value)

    def reset_flags(self) -> None:
        self.register_file.reset_flags()

    # =========================================================================
    # Fetch and Plugin Primitives
    # =========================================================================

    def _fetch_byte(self) -> int:
        """Fetch next byte at PC and increment PC."""
        pc = self.pc
        value = self.memory.peek_byte(pc)
        self.pc = pc + 1
        return value

    def _fetch_width(self, mnemonic: str) -> Width:
        """Fetch the width tag of INP/OUT/INC, or BYTE on untagged variants."""
        if not self.variant.width_tagged:
            return Width.BYTE
        address = self.pc
        raw = self._fetch_byte()
        try:
            return Width(raw)
        except ValueError:
            raise InvalidOperandError(mnemonic, raw, address) from None

    def _write_byte(self, address: int, value: int) -> None:
        """Write on behalf of the running program, checking watchpoints."""
        self.memory.poke_byte(address, value)
        if not self.breakpoints.check_memory_write(address, value):
            self._memory_break_requested = True

    def _call_plugin(self, operation: str, *args) -> Optional[int]:
        method = getattr(self.io, operation, None)
        if method is None:
            raise PluginError(operation, f"IO plugin has no {operation}()")
        try:
            return method(*args)
        except Exception as e:
            raise PluginError(operation, f"IO plugin {operation}() failed: {e}") from e

    def _read_input(self, width: Width) -> int:
        operation, limit = ("read_word", 0xFFFF) if width is Width.WORD else ("read_byte", 0xFF)
        value = self._call_plugin(operation)
        if not isinstance(value, int) or not 0 <= value <= limit:
            raise PluginError(
                operation,
                f"IO plugin {operation}() returned {value!r}, expected 0-{limit}"
            )
        return value

    # =========================================================================
    # ALU Operations
    # =========================================================================

    def _inc8(self, value: int) -> int:
        """Increment 8-bit value, set OF."""
        result = value + 1
        self.set_flag(Flags.OF, result > SBYTE_MAX)
        return result & 0xFF

    def _inc16(self, value: int) -> int:
        """Increment 16-bit value, set OF."""
        result = value + 1
        self.set_flag(Flags.OF, result > SWORD_MAX)
        return result & 0xFFFF

    def _dec8(self, value: int) -> int:
        """Decrement 8-bit value, set ZF, SF."""
        result = value - 1
        self.set_flag(Flags.ZF, result == 0)
        self.set_flag(Flags.SF, result < 0)
        return result & 0xFF

    def _add8(self, a: int, b: int) -> int:
        """Add 8-bit values, set OF."""
        result = a + b
        self.set_flag(Flags.OF, result > SBYTE_MAX)
        return result & 0xFF

    def _sub8(self, a: int, b: int) -> int:
        """Subtract 8-bit values, set ZF, SF."""
        result = a - b
        self.set_flag(Flags.ZF, result == 0)
        self.set_flag(Flags.SF, result < 0)
        return result & 0xFF

    # =========================================================================
    # Instruction Execution
    # =========================================================================

    def _execute_instruction(self, opcode: int, address: int) -> None:
        """
        Execute one decoded instruction.

        Args:
            opcode: The opcode byte (already fetched)
            address: Address the opcode was fetched from
        """
        match opcode:
            case Opcode.NOP:
                pass

            case Opcode.INP:
                if self._fetch_width("INP") is Width.WORD:
                    self.set_word_register(self._read_input(Width.WORD))
                else:
                    self.set_register(Register.A, self._read_input(Width.BYTE))

            case Opcode.OUT:
                if self._fetch_width("OUT") is Width.WORD:
                    self._call_plugin("write_word", self.get_word_register())
                else:
                    self._call_plugin("write_byte", self.get_register(Register.A))

            case Opcode.PUT:
                reg = self.register_file.resolve(self._fetch_byte())
                location = self._fetch_byte()
                self._write_byte(location, self.get_register(reg))

            case Opcode.GET:
                reg = self.register_file.resolve(self._fetch_byte())
                location = self._fetch_byte()
                self.set_register(reg, self.memory.peek_byte(location))

            case Opcode.ADD:
                self.reset_flags()
                self.set_register(Register.B, self._fetch_byte())
                self.set_register(
                    Register.A,
                    self._add8(self.get_register(Register.A), self.get_register(Register.B)),
                )

            case Opcode.SUB:
                self.reset_flags()
                self.set_register(Register.B, self._fetch_byte())
                self.set_register(
                    Register.A,
                    self._sub8(self.get_register(Register.A), self.get_register(Register.B)),
                )

            case Opcode.INC:
                width = self._fetch_width("INC")
                self.reset_flags()
                if width is Width.WORD:
                    self.set_word_register(self._inc16(self.get_word_register()))
                else:
                    self.set_register(Register.A, self._inc8(self.get_register(Register.A)))

            case Opcode.DEC:
                self.reset_flags()
                self.set_register(Register.A, self._dec8(self.get_register(Register.A)))

            case Opcode.JMP:
                self.pc = self._fetch_byte()

            case Opcode.JMZ:
                target = self._fetch_byte()
                if self.get_flag(Flags.ZF):
                    self.pc = target

            case Opcode.JMN:
                target = self._fetch_byte()
                if self.get_flag(Flags.SF):
                    self.pc = target

            case Opcode.END:
                self._state = MachineState.HALTED

            case _:
                if self.config.strict_opcodes:
                    raise UnknownOpcodeError(opcode, address)
                logger.warning("$%02X: unknown opcode $%02X skipped", address, opcode)

    # =========================================================================
    # Execution Control
    # =========================================================================

    def reset(self, clear_memory: bool = False) -> None:
        """
        Return to the power-on state: registers and flags zeroed, PC = 0,
        state RUNNING. Memory and breakpoints are kept unless
        clear_memory is set.
        """
        self.register_file.reset()
        if clear_memory:
            self.memory.clear()
        self._state = MachineState.RUNNING
        self._steps = 0
        self._last_event = None
        self._resume_pc = None
        self._memory_break_requested = False
        self.breakpoints.clear_break_request()

    def step(self) -> BreakEvent:
        """
        Execute exactly one instruction, ignoring breakpoints.

        Returns:
            BreakEvent with reason HALTED if the instruction was END,
            otherwise STEP with the new PC

        Raises:
            MachineHaltedError: If the machine is already halted
            VMError: Any fatal error raised by the instruction
        """
        if self._state is MachineState.HALTED:
            raise MachineHaltedError()

        self._memory_break_requested = False
        address = self.pc
        opcode = self._fetch_byte()
        self._last_address = address

        if self.on_instruction:
            self.on_instruction(address, opcode)
        if logger.isEnabledFor(logging.DEBUG):
            info = get_instruction_info(opcode)
            logger.debug(
                "$%02X: %s", address, info.mnemonic if info else f"${opcode:02X}"
            )

        self._execute_instruction(opcode, address)
        self._steps += 1

        if self._state is MachineState.HALTED:
            return BreakEvent(BreakReason.HALTED, address=address,
                              message=f"Halted at ${address:02X}")
        return BreakEvent(BreakReason.STEP, address=self.pc,
                          message=f"Step to ${self.pc:02X}")

    def run(self, max_steps: Optional[int] = None) -> BreakEvent:
        """
        Run until END, a breakpoint, or the step limit.

        Args:
            max_steps: Maximum instructions to execute in this call.
                       None uses config.max_steps (None = unlimited).

        Returns:
            BreakEvent describing why execution stopped

        Raises:
            MachineHaltedError: If the machine is already halted
            VMError: Any fatal error; the machine stops mid-program

        Example:
            >>> vm.breakpoints.add_breakpoint(0x07)
            >>> event = vm.run()
            >>> if event.reason == BreakReason.PC_BREAKPOINT:
            ...     print(f"Stopped at ${event.address:02X}")
        """
        if self._state is MachineState.HALTED:
            raise MachineHaltedError()

        limit = max_steps if max_steps is not None else self.config.max_steps
        resume_pc, self._resume_pc = self._resume_pc, None
        executed = 0

        while self._state is MachineState.RUNNING:
            if limit is not None and executed >= limit:
                return self._finish(BreakEvent(
                    BreakReason.MAX_STEPS,
                    address=self.pc,
                    message=f"Reached max steps ({limit})"
                ))

            pc = self.pc
            if pc != resume_pc and not self.breakpoints.check_instruction(self, pc):
                self._resume_pc = pc
                return self._finish(self.breakpoints.last_event)
            resume_pc = None

            self.step()
            executed += 1

            if self._memory_break_requested:
                self._memory_break_requested = False
                return self._finish(self.breakpoints.last_event)

        return self._finish(BreakEvent(
            BreakReason.HALTED,
            address=self._last_address,
            message=f"Halted at ${self._last_address:02X} after {self._steps} steps"
        ))

    def _finish(self, event: BreakEvent) -> BreakEvent:
        self._last_event = event
        logger.debug("Stopped: %s", event)
        return event

    # =========================================================================
    # Debug Helpers
    # =========================================================================

    def disassemble_at(self, address: int, count: int = 10) -> List[str]:
        """
        Disassemble instructions in memory starting at address.

        Returns:
            List of listing lines
        """
        from ..disassembler import Disassembler

        data = self.memory.dump(address)
        disasm = Disassembler(self.variant)
        return [str(instr) for instr in disasm.disassemble(data, address, count)]

    def __repr__(self) -> str:
        return (
            f"VirtualMachine(variant={self.variant.code}, "
            f"pc=${self.pc:02X}, "
            f"state={self._state.name}, "
            f"steps={self._steps})"
        )


def run_program(
    program: bytes,
    io,
    config: Optional[MachineConfig] = None,
    max_steps: Optional[int] = None,
) -> VirtualMachine:
    """
    Create a machine, load a program at address 0 and run it.

    Args:
        program: Program image
        io: IO plugin
        config: MachineConfig (default WORD variant)
        max_steps: Step limit for this run

    Returns:
        The machine after run() returned; see vm.last_event for why

    Example:
        >>> io = ScriptedIO([10])
        >>> vm = run_program(bytes([0x01, 0x01, 0x05, 0x0A, 0x02, 0x01, 0xFF]), io)
        >>> io.outputs
        [20]
    """
    vm = VirtualMachine(io, config)
    vm.load_program(program)
    vm.run(max_steps)
    return vm
