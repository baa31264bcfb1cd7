"""
Memory Subsystem for ByteVM
===========================

A flat, bounds-checked byte array addressed from 0.

Word layout:
    Words are big-endian. The high byte lives at the lower address:

        address     address+1
        +---------+---------+
        |   HI    |   LO    |
        +---------+---------+

Out-of-range access raises MemoryAccessError. Addresses never wrap and
are never clamped.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from ..errors import MemoryAccessError

DEFAULT_MEMORY_SIZE = 255
MAX_MEMORY_SIZE = 0x10000


def split_word(value: int) -> tuple[int, int]:
    """Split a 16-bit value into (high byte, low byte)."""
    value &= 0xFFFF
    return (value >> 8) & 0xFF, value & 0xFF


def join_word(hi: int, lo: int) -> int:
    """Combine a high and low byte into a 16-bit value."""
    return ((hi & 0xFF) << 8) | (lo & 0xFF)


class Memory:
    """
    Flat byte-addressable memory.

    Attributes:
        size: Number of addressable bytes

    Example:
        >>> mem = Memory(256)
        >>> mem.poke_word(0x10, 0x1234)
        >>> mem.peek_byte(0x10), mem.peek_byte(0x11)
        (18, 52)
    """

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE):
        """
        Initialize memory filled with zeros.

        Args:
            size: Memory size in bytes (1 to 65536)

        Raises:
            ValueError: If size is out of range
        """
        if not 1 <= size <= MAX_MEMORY_SIZE:
            raise ValueError(
                f"Memory size must be 1-{MAX_MEMORY_SIZE}, got {size}"
            )
        self._data = bytearray(size)

    @property
    def size(self) -> int:
        return len(self._data)

    def _check(self, address: int, width: int) -> None:
        if address < 0 or address + width > len(self._data):
            raise MemoryAccessError(address, len(self._data), width)

    # ========================================
    # Byte Access
    # ========================================

    def peek_byte(self, address: int) -> int:
        """
        Read byte from memory.

        Raises:
            MemoryAccessError: If address is outside memory
        """
        self._check(address, 1)
        return self._data[address]

    def poke_byte(self, address: int, value: int) -> None:
        """
        Write byte to memory. The value is masked to 8 bits.

        Raises:
            MemoryAccessError: If address is outside memory
        """
        self._check(address, 1)
        self._data[address] = value & 0xFF

    # ========================================
    # Word Access (big-endian)
    # ========================================

    def peek_word(self, address: int) -> int:
        """
        Read 16-bit word from address and address+1.

        Raises:
            MemoryAccessError: If either byte is outside memory
        """
        self._check(address, 2)
        return join_word(self._data[address], self._data[address + 1])

    def poke_word(self, address: int, value: int) -> None:
        """
        Write 16-bit word to address and address+1. The value is masked
        to 16 bits. Nothing is written if the second byte is out of range.

        Raises:
            MemoryAccessError: If either byte is outside memory
        """
        self._check(address, 2)
        self._data[address], self._data[address + 1] = split_word(value)

    # ========================================
    # Block Operations
    # ========================================

    def load(self, data: bytes, address: int = 0) -> None:
        """
        Copy bytes into memory starting at address.

        Raises:
            MemoryAccessError: If the block does not fit; memory is left
                unchanged
        """
        if not data:
            return
        self._check(address, len(data))
        self._data[address:address + len(data)] = bytes(data)

    def dump(self, address: int = 0, count: int | None = None) -> bytes:
        """
        Read a block of bytes. With count None, reads to the end of memory.

        Raises:
            MemoryAccessError: If the block runs past the end of memory
        """
        if count is None:
            count = len(self._data) - address
        if count <= 0:
            return b""
        self._check(address, count)
        return bytes(self._data[address:address + count])

    def clear(self) -> None:
        """Fill memory with zeros."""
        self._data[:] = bytes(len(self._data))

    def __len__(self) -> int:
        return len(self._data)
