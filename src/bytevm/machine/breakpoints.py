"""
Breakpoint and Watchpoint System
================================

Debugging support for the execution loop:
- PC breakpoints (break when PC reaches an address)
- Memory write watchpoints (break after PUT writes an address)
- Register conditions (break when registers or flags match)

The BreakpointManager is checked by VirtualMachine.run() before each
instruction and after each PUT. Direct poke_byte/poke_word calls from
tooling never trigger watchpoints.

Example usage:

    >>> vm = VirtualMachine(ScriptedIO([10]))
    >>> vm.breakpoints.add_breakpoint(0x07)
    >>> event = vm.run()
    >>> event.reason == BreakReason.PC_BREAKPOINT
    True

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional, Set, TYPE_CHECKING

from .registers import Flags, Register

if TYPE_CHECKING:
    from .variants import MachineVariant
    from .vm import VirtualMachine


class BreakReason(Enum):
    """
    Enumeration of reasons why run() returned.
    """
    HALTED = auto()         # END executed
    PC_BREAKPOINT = auto()  # PC reached a breakpoint address
    MEMORY_WRITE = auto()   # Write watchpoint triggered
    REGISTER_CONDITION = auto()  # Register condition met
    STEP = auto()           # Single step
    USER_INTERRUPT = auto() # request_break() was called
    MAX_STEPS = auto()      # Step limit reached


@dataclass
class BreakEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        address: PC or memory address involved (if applicable)
        value: Value written (if applicable)
        message: Human-readable description
    """
    reason: BreakReason
    address: Optional[int] = None
    value: Optional[int] = None
    message: str = ""

    def __str__(self) -> str:
        if self.message:
            return self.message
        match self.reason:
            case BreakReason.HALTED:
                return "Halted"
            case BreakReason.PC_BREAKPOINT:
                return f"Breakpoint at ${self.address:02X}"
            case BreakReason.MEMORY_WRITE:
                return f"Write ${self.value:02X} to ${self.address:02X}"
            case BreakReason.REGISTER_CONDITION:
                return "Register condition met"
            case BreakReason.STEP:
                return "Single step"
            case BreakReason.MAX_STEPS:
                return "Maximum steps reached"
            case _:
                return "User interrupt"


class RegisterCondition:
    """
    Condition on machine registers or flags.

    Supported operands: a, b, c, d, pc, fl, i, bc (the B:C word),
    flag_sf, flag_zf, flag_of

    Supported operators: ==, !=, <, <=, >, >=, & (bitwise test)

    Examples:
        >>> cond = RegisterCondition('a', '==', 0)
        >>> cond = RegisterCondition('flag_sf', '==', True)
        >>> cond = RegisterCondition('bc', '>=', 0x8000)
    """

    VALID_REGISTERS = frozenset({
        'a', 'b', 'c', 'd', 'pc', 'fl', 'i', 'bc',
        'flag_sf', 'flag_zf', 'flag_of',
    })
    VALID_OPERATORS = frozenset({'==', '!=', '<', '<=', '>', '>=', '&'})

    def __init__(
        self,
        register: str,
        operator: str,
        value: int | bool,
        description: str = ""
    ):
        self.register = register.lower()
        self.operator = operator
        self.value = value
        self.description = description or f"{register} {operator} {value}"

        if self.register not in self.VALID_REGISTERS:
            raise ValueError(
                f"Unknown register '{register}'. "
                f"Valid registers: {', '.join(sorted(self.VALID_REGISTERS))}"
            )
        if self.operator not in self.VALID_OPERATORS:
            raise ValueError(
                f"Unknown operator '{operator}'. "
                f"Valid operators: {', '.join(sorted(self.VALID_OPERATORS))}"
            )

    @property
    def registers(self) -> tuple[Register, ...]:
        """Registers the condition reads."""
        if self.register.startswith('flag_'):
            return (Register.FL,)
        if self.register == 'bc':
            return (Register.B, Register.C)
        return (Register[self.register.upper()],)

    def _actual(self, vm: "VirtualMachine") -> int | bool:
        if self.register.startswith('flag_'):
            return vm.get_flag(Flags[self.register[5:].upper()])
        if self.register == 'bc':
            return vm.get_word_register()
        return vm.get_register(Register[self.register.upper()])

    def check(self, vm: "VirtualMachine") -> bool:
        """Return True if the condition holds for the machine state."""
        actual = self._actual(vm)

        match self.operator:
            case '==':
                return actual == self.value
            case '!=':
                return actual != self.value
            case '<':
                return actual < self.value
            case '<=':
                return actual <= self.value
            case '>':
                return actual > self.value
            case '>=':
                return actual >= self.value
            case _:
                return (actual & self.value) != 0

    def __repr__(self) -> str:
        return f"RegisterCondition({self.register!r}, {self.operator!r}, {self.value!r})"


class BreakpointManager:
    """
    Manages breakpoints, write watchpoints and register conditions.

    Example:
        >>> mgr = BreakpointManager()
        >>> mgr.add_breakpoint(0x10)
        >>> mgr.add_write_watchpoint(0x40)
        >>> mgr.add_condition('a', '==', 0)
    """

    def __init__(self, variant: Optional["MachineVariant"] = None):
        """
        Args:
            variant: Machine variant that conditions are checked against;
                     None accepts every register
        """
        self._variant = variant
        self._pc_breakpoints: Set[int] = set()
        self._write_watchpoints: Set[int] = set()
        # List with None holes so condition ids stay stable
        self._register_conditions: List[Optional[RegisterCondition]] = []
        self._last_event: Optional[BreakEvent] = None
        self._break_requested: bool = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def last_event(self) -> Optional[BreakEvent]:
        """Get the last break event recorded by a check."""
        return self._last_event

    @property
    def breakpoint_count(self) -> int:
        return len(self._pc_breakpoints)

    @property
    def watchpoint_count(self) -> int:
        return len(self._write_watchpoints)

    # =========================================================================
    # PC Breakpoints
    # =========================================================================

    def add_breakpoint(self, address: int) -> None:
        """
        Add PC breakpoint at address.

        Execution stops when PC reaches this address, before the
        instruction there is executed.
        """
        self._pc_breakpoints.add(address & 0xFF)

    def remove_breakpoint(self, address: int) -> None:
        self._pc_breakpoints.discard(address & 0xFF)

    def has_breakpoint(self, address: int) -> bool:
        return (address & 0xFF) in self._pc_breakpoints

    def list_breakpoints(self) -> List[int]:
        """Sorted list of breakpoint addresses."""
        return sorted(self._pc_breakpoints)

    # =========================================================================
    # Memory Watchpoints
    # =========================================================================

    def add_write_watchpoint(self, address: int) -> None:
        """Break after an instruction writes to address."""
        self._write_watchpoints.add(address)

    def remove_write_watchpoint(self, address: int) -> None:
        self._write_watchpoints.discard(address)

    def list_write_watchpoints(self) -> List[int]:
        return sorted(self._write_watchpoints)

    # =========================================================================
    # Register Conditions
    # =========================================================================

    def add_register_condition(self, condition: RegisterCondition) -> int:
        """
        Add a register condition.

        Returns:
            Condition id for remove_register_condition()

        Raises:
            ValueError: If the condition reads a register the variant lacks
        """
        if self._variant is not None:
            missing = [
                reg.name for reg in condition.registers
                if not self._variant.has_register(reg)
            ]
            if missing:
                raise ValueError(
                    f"Condition on '{condition.register}' needs register "
                    f"{', '.join(missing)}, not available on the "
                    f"{self._variant.code} variant"
                )
        self._register_conditions.append(condition)
        return len(self._register_conditions) - 1

    def add_condition(self, register: str, operator: str, value: int | bool) -> int:
        """Shorthand for add_register_condition(RegisterCondition(...))."""
        return self.add_register_condition(RegisterCondition(register, operator, value))

    def remove_register_condition(self, condition_id: int) -> None:
        if 0 <= condition_id < len(self._register_conditions):
            self._register_conditions[condition_id] = None

    def list_register_conditions(self) -> List[tuple[int, RegisterCondition]]:
        return [
            (i, cond) for i, cond in enumerate(self._register_conditions)
            if cond is not None
        ]

    # =========================================================================
    # Control
    # =========================================================================

    def request_break(self) -> None:
        """Ask the running machine to stop before its next instruction."""
        self._break_requested = True

    def clear_break_request(self) -> None:
        self._break_requested = False

    def clear_all(self) -> None:
        """Remove all breakpoints, watchpoints and conditions."""
        self._pc_breakpoints.clear()
        self._write_watchpoints.clear()
        self._register_conditions.clear()
        self._break_requested = False
        self._last_event = None

    # =========================================================================
    # Check Functions (called by the execution loop)
    # =========================================================================

    def check_instruction(self, vm: "VirtualMachine", pc: int) -> bool:
        """
        Check if we should break before executing the instruction at pc.

        Returns:
            True to continue execution, False to break
        """
        if self._break_requested:
            self._break_requested = False
            self._last_event = BreakEvent(
                BreakReason.USER_INTERRUPT,
                address=pc,
                message="User interrupt"
            )
            return False

        if pc in self._pc_breakpoints:
            self._last_event = BreakEvent(
                BreakReason.PC_BREAKPOINT,
                address=pc,
                message=f"Breakpoint at ${pc:02X}"
            )
            return False

        for cond in self._register_conditions:
            if cond is not None and cond.check(vm):
                self._last_event = BreakEvent(
                    BreakReason.REGISTER_CONDITION,
                    address=pc,
                    message=f"Condition: {cond.description}"
                )
                return False

        return True

    def check_memory_write(self, address: int, value: int) -> bool:
        """
        Check if a write by the running program should break.

        Returns:
            True to continue execution, False to break
        """
        if address in self._write_watchpoints:
            self._last_event = BreakEvent(
                BreakReason.MEMORY_WRITE,
                address=address,
                value=value,
                message=f"Write ${value:02X} to ${address:02X}"
            )
            return False
        return True
