"""
ByteVM Command-Line Interface
=============================

This package provides the `bytevm` command-line tool:

- **bytevm run**: Execute a program image
- **bytevm disasm**: Disassemble a program image
- **bytevm variants**: List machine variants

The tool is a Click-based CLI application; errors are reported through
the shared handler in `errors.py`.
"""

__all__ = ["bvm", "errors"]
