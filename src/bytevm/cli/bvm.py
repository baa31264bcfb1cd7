"""
bytevm - Virtual Machine Command-Line Interface
===============================================

This module implements the command-line interface for ByteVM. It runs
program images on either machine variant and disassembles them.

Program Files
-------------
A program is a raw image loaded verbatim at address 0. With --hex the
file is read as text instead: whitespace-separated hex bytes, with
anything after ';' or '#' on a line treated as a comment.

    ; countdown (BYTE variant)
    01        ; INP
    08        ; DEC
    0A 06     ; JMZ $06
    09 01     ; JMP $01
    02 FF     ; OUT, END

Usage Examples
--------------
Run a program, reading input from the console:
    $ bytevm run countdown.bin

Run with scripted input and show the final registers:
    $ bytevm run countdown.bin --input 10 --registers

Run a hex listing on the BYTE machine:
    $ bytevm run --hex --variant BYTE countdown.hex --input 3

Disassemble:
    $ bytevm disasm countdown.bin -o countdown.lst

Environment
-----------
BYTEVM_VARIANT, BYTEVM_MEMORY_SIZE, BYTEVM_MAX_STEPS and
BYTEVM_STRICT_OPCODES provide defaults; command-line options win.

Exit Codes
----------
0 - Success
1 - The program faulted (unknown opcode, memory access, IO failure)
2 - Invalid arguments, program file or configuration
3 - Internal error

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
from pathlib import Path
from typing import Optional

import click

from bytevm import __version__
from bytevm.cli.errors import handle_cli_exception
from bytevm.disassembler import Disassembler
from bytevm.errors import VMError
from bytevm.machine import (
    BreakReason,
    MachineConfig,
    ScriptedIO,
    VirtualMachine,
    list_variants,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores common options like verbosity.
    """

    def __init__(self) -> None:
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.INFO
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


class ConsoleIO:
    """IO plugin that prompts on the terminal for INP and echoes OUT."""

    def read_byte(self) -> int:
        return click.prompt("INP", type=click.IntRange(0, 0xFF))

    def read_word(self) -> int:
        return click.prompt("INP (word)", type=click.IntRange(0, 0xFFFF))

    def write_byte(self, value: int) -> None:
        click.echo(value)

    def write_word(self, value: int) -> None:
        click.echo(value)


def parse_hex_program(text: str) -> bytes:
    """
    Parse a hex program listing into bytes.

    Args:
        text: Hex bytes separated by whitespace; ';' and '#' start comments

    Returns:
        The program image

    Raises:
        ValueError: If a token is not a one-byte hex value
    """
    image = bytearray()
    for line_number, line in enumerate(text.splitlines(), start=1):
        for marker in (";", "#"):
            line = line.split(marker, 1)[0]
        for token in line.split():
            token = token.removeprefix("$").removeprefix("0x").removeprefix("0X")
            if len(token) > 2:
                raise ValueError(f"line {line_number}: '{token}' is not a byte")
            try:
                image.append(int(token, 16))
            except ValueError:
                raise ValueError(f"line {line_number}: invalid hex byte '{token}'") from None
    return bytes(image)


def read_program(path: Path, hex_text: bool) -> bytes:
    """Read a program image from a raw binary or hex text file."""
    if hex_text:
        return parse_hex_program(path.read_text())
    return path.read_bytes()


variant_option = click.option(
    "--variant",
    type=click.Choice([v.code for v in list_variants()], case_sensitive=False),
    default=None,
    help="Machine variant (default: $BYTEVM_VARIANT or WORD)",
)

hex_option = click.option(
    "--hex",
    "hex_text",
    is_flag=True,
    help="Read PROGRAM as hex text instead of a raw image",
)

program_argument = click.argument(
    "program",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable verbose output (traces each instruction)",
)
@click.version_option(version=__version__, prog_name="bytevm")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Run and inspect programs for the ByteVM virtual machine.

    Two machine variants are available: BYTE (8-bit, registers A, B,
    PC, FL) and WORD (adds C, D, I and 16-bit IO on the B:C pair).
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Run Command
# =============================================================================

@main.command()
@program_argument
@hex_option
@variant_option
@click.option(
    "--memory-size",
    type=click.IntRange(1, 0x10000),
    default=None,
    help="Memory size in bytes (default: 255)",
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=0),
    default=None,
    help="Stop after this many instructions (default: unlimited)",
)
@click.option(
    "-i", "--input", "inputs",
    type=int,
    multiple=True,
    help="Input value for INP; repeat for several. Omit to prompt.",
)
@click.option(
    "--lenient",
    is_flag=True,
    help="Skip unknown opcodes instead of stopping",
)
@click.option(
    "--registers",
    "show_registers",
    is_flag=True,
    help="Print registers and flags when the machine stops",
)
@pass_context
def run(
    ctx: Context,
    program: Path,
    hex_text: bool,
    variant: Optional[str],
    memory_size: Optional[int],
    max_steps: Optional[int],
    inputs: tuple[int, ...],
    lenient: bool,
    show_registers: bool,
) -> None:
    """
    Run a program until it executes END.

    PROGRAM is loaded at address 0. With --input, INP consumes the given
    values in order and the values written by OUT are printed once the
    machine stops. Without --input, INP prompts on the terminal and OUT
    prints immediately.

    Examples:

        bytevm run countdown.bin --input 10

        bytevm run --hex --variant BYTE add.hex -i 10 --registers
    """
    try:
        config = MachineConfig.from_env().with_overrides(
            variant=variant,
            memory_size=memory_size,
            max_steps=max_steps,
            strict_opcodes=False if lenient else None,
        )
        image = read_program(program, hex_text)
        logger.debug(
            "Running %s (%d bytes) on %s", program.name, len(image), config.variant
        )

        io = ScriptedIO(inputs) if inputs else ConsoleIO()
        vm = VirtualMachine(io, config)
        vm.load_program(image)
        try:
            event = vm.run()
        finally:
            if isinstance(io, ScriptedIO):
                for value in io.outputs:
                    click.echo(value)
    except VMError as e:
        handle_cli_exception(e, ctx.verbose, "Runtime")
    except Exception as e:
        handle_cli_exception(e, ctx.verbose)

    if event.reason is not BreakReason.HALTED:
        click.echo(f"Stopped: {event}", err=True)
    elif ctx.verbose:
        click.echo(str(event), err=True)

    if show_registers:
        click.echo(
            " ".join(f"{name.upper()}={int(value)}" for name, value in vm.registers.items())
        )


# =============================================================================
# Disasm Command
# =============================================================================

@main.command()
@program_argument
@hex_option
@variant_option
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@pass_context
def disasm(
    ctx: Context,
    program: Path,
    hex_text: bool,
    variant: Optional[str],
    output: Optional[Path],
) -> None:
    """
    Disassemble a program image.

    Operand layout follows the chosen variant: on WORD, INP, OUT and INC
    carry a width tag byte.

    Examples:

        bytevm disasm countdown.bin

        bytevm disasm --variant BYTE countdown.bin -o countdown.lst
    """
    try:
        config = MachineConfig.from_env().with_overrides(variant=variant)
        image = read_program(program, hex_text)
        disassembler = Disassembler(config.machine_variant)

        lines = [
            f"; Disassembly of {program.name}",
            f"; Size: {len(image)} bytes",
            f"; Variant: {config.machine_variant.code}",
            "",
        ]
        lines.extend(str(instr) for instr in disassembler.disassemble(image))
        text = "\n".join(lines) + "\n"

        if output:
            output.write_text(text)
            click.echo(f"Wrote {output}", err=True)
        else:
            click.echo(text, nl=False)
    except Exception as e:
        handle_cli_exception(e, ctx.verbose)


# =============================================================================
# Variants Command
# =============================================================================

@main.command()
def variants() -> None:
    """List the available machine variants."""
    for v in list_variants():
        registers = ", ".join(r.name for r in v.registers)
        tagged = "width-tagged IO" if v.width_tagged else "8-bit IO"
        click.echo(f"{v.code:<6} {v.name:<28} {registers}  ({tagged})")


if __name__ == "__main__":
    main()
