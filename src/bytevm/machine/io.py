"""
IO Plugin Interface
===================

The machine performs all input and output through a plugin injected at
construction. The plugin is called synchronously at INP and OUT; a
plugin that blocks blocks the whole machine.

Two capability shapes exist:
- ByteIOPlugin: read_byte / write_byte (enough for the BYTE variant)
- WordIOPlugin: adds read_word / write_word (needed by WORD-width INP/OUT)

Any object with the right methods works; no base class is required.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from collections import deque
from typing import Iterable, Protocol, runtime_checkable


@runtime_checkable
class ByteIOPlugin(Protocol):
    """Protocol for byte-wide input and output."""

    def read_byte(self) -> int:
        """Return the next input byte (0-255)."""
        ...

    def write_byte(self, value: int) -> None:
        """Consume one output byte."""
        ...


@runtime_checkable
class WordIOPlugin(ByteIOPlugin, Protocol):
    """Protocol for byte- and word-wide input and output."""

    def read_word(self) -> int:
        """Return the next input word (0-65535)."""
        ...

    def write_word(self, value: int) -> None:
        """Consume one output word."""
        ...


class ScriptedIO:
    """
    In-memory IO plugin fed from a list of input values.

    Inputs are consumed in order by read_byte and read_word alike;
    everything written is appended to outputs. Reading past the end of
    the inputs raises EOFError, which the machine reports as a
    PluginError.

    Attributes:
        outputs: Values written by OUT, in order

    Example:
        >>> io = ScriptedIO([10])
        >>> io.read_byte()
        10
        >>> io.write_byte(12)
        >>> io.last_output
        12
    """

    def __init__(self, inputs: Iterable[int] = ()):
        self._inputs = deque(inputs)
        self.outputs: list[int] = []

    def feed(self, *values: int) -> None:
        """Queue more input values."""
        self._inputs.extend(values)

    @property
    def pending(self) -> int:
        """Number of unread inputs."""
        return len(self._inputs)

    @property
    def last_output(self) -> int | None:
        return self.outputs[-1] if self.outputs else None

    def _next(self) -> int:
        if not self._inputs:
            raise EOFError("no input left")
        return self._inputs.popleft()

    def read_byte(self) -> int:
        return self._next()

    def write_byte(self, value: int) -> None:
        self.outputs.append(value)

    def read_word(self) -> int:
        return self._next()

    def write_word(self, value: int) -> None:
        self.outputs.append(value)
