"""
IO Plugin Tests
===============

Tests for the plugin protocols and the in-memory ScriptedIO plugin.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import pytest
from bytevm.machine import ByteIOPlugin, ScriptedIO, WordIOPlugin


class TestScriptedIO:
    """Test the scripted plugin."""

    def test_inputs_in_order(self):
        io = ScriptedIO([1, 2, 0x1234])
        assert io.read_byte() == 1
        assert io.read_byte() == 2
        assert io.read_word() == 0x1234
        assert io.pending == 0

    def test_exhausted(self):
        io = ScriptedIO()
        with pytest.raises(EOFError):
            io.read_byte()

    def test_feed(self):
        io = ScriptedIO([1])
        io.feed(2, 3)
        assert io.pending == 3

    def test_outputs(self):
        io = ScriptedIO()
        assert io.last_output is None
        io.write_byte(7)
        io.write_word(0xBEEF)
        assert io.outputs == [7, 0xBEEF]
        assert io.last_output == 0xBEEF

    def test_satisfies_both_protocols(self):
        io = ScriptedIO()
        assert isinstance(io, ByteIOPlugin)
        assert isinstance(io, WordIOPlugin)
