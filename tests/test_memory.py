"""
Tests for the Chip8Memory module.

This module contains unit tests for the CHIP-8 memory bank: font loading,
byte and word access, address wrapping and ROM loading limits.
"""
import unittest
from chip8_emulator.systems.chip8.memory import Chip8Memory
from chip8_emulator.utils.error_handler import ROMTooLargeError
from chip8_emulator.constants import (
    FONTSET, PROGRAM_START, MAX_PROGRAM_SIZE, MEMORY_CAPACITY,
)

class TestChip8Memory(unittest.TestCase):
    """
    Test cases for the Chip8Memory class.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.memory = Chip8Memory()
        self.anomalies = []
        self.memory.anomaly_callback = lambda message, context: self.anomalies.append((message, context))

    def test_reset_loads_font(self):
        """Font glyphs occupy the lowest addresses after reset."""
        self.assertEqual(self.memory.dump(0, len(FONTSET)), FONTSET)
        self.assertEqual(self.memory.read(len(FONTSET)), 0)

    def test_reset_clears_program_area(self):
        """Reset zeroes everything outside the font."""
        self.memory.write(0x300, 0xAB)
        self.memory.reset()
        self.assertEqual(self.memory.read(0x300), 0)
        self.assertEqual(self.memory.dump(0, len(FONTSET)), FONTSET)

    def test_read_word_is_big_endian(self):
        """Instruction words are fetched high byte first."""
        self.memory.write(0x200, 0x60)
        self.memory.write(0x201, 0x0A)
        self.assertEqual(self.memory.read_word(0x200), 0x600A)

    def test_write_word(self):
        """Words are stored high byte first."""
        self.memory.write_word(0x300, 0x1234)
        self.assertEqual(self.memory.read(0x300), 0x12)
        self.assertEqual(self.memory.read(0x301), 0x34)

    def test_write_masks_to_byte(self):
        """Values wider than a byte are truncated."""
        self.memory.write(0x300, 0x1FF)
        self.assertEqual(self.memory.read(0x300), 0xFF)

    def test_out_of_range_address_wraps(self):
        """Addresses beyond capacity wrap and are reported."""
        self.memory.write(MEMORY_CAPACITY + 0x300, 0x42)
        self.assertEqual(self.memory.read(0x300), 0x42)
        self.assertEqual(len(self.anomalies), 1)
        self.assertEqual(self.anomalies[0][1]["address"], MEMORY_CAPACITY + 0x300)

    def test_font_region_is_write_protected(self):
        """Writes into the font glyphs are dropped."""
        with self.assertLogs("Chip8Emulator.Chip8.Memory", level="WARNING"):
            self.memory.write(0x000, 0x00)
        self.assertEqual(self.memory.read(0x000), FONTSET[0])
        self.assertEqual(len(self.anomalies), 1)

    def test_block_access(self):
        """Blocks round-trip, including across the end of memory."""
        self.memory.write_block(0x300, b"\x01\x02\x03")
        self.assertEqual(self.memory.read_block(0x300, 3), b"\x01\x02\x03")

        self.memory.write_block(0xFFF, b"\x09\x08")
        self.assertEqual(self.memory.read(0xFFF), 0x09)
        # Second byte wrapped to address 0, which is protected font data
        self.assertEqual(self.memory.read(0x000), FONTSET[0])

    def test_load_rom(self):
        """ROM byte i lands at the program start plus i."""
        rom = bytes(range(1, 11))
        self.memory.load_rom(rom)
        for i, value in enumerate(rom):
            self.assertEqual(self.memory.read(PROGRAM_START + i), value)
        self.assertEqual(self.memory.rom_size, len(rom))

    def test_load_rom_at_size_limit(self):
        """A ROM exactly filling the program area is accepted."""
        rom = b"\xAA" * MAX_PROGRAM_SIZE
        self.memory.load_rom(rom)
        self.assertEqual(self.memory.read(PROGRAM_START + MAX_PROGRAM_SIZE - 1), 0xAA)
        self.assertEqual(self.memory.read(PROGRAM_START + MAX_PROGRAM_SIZE), 0)

    def test_load_rom_too_large(self):
        """An oversized ROM is rejected without copying anything."""
        with self.assertRaises(ROMTooLargeError) as cm:
            self.memory.load_rom(b"\xAA" * (MAX_PROGRAM_SIZE + 1))
        self.assertEqual(cm.exception.size, MAX_PROGRAM_SIZE + 1)
        self.assertEqual(cm.exception.limit, 3232)
        self.assertEqual(self.memory.read(PROGRAM_START), 0)
        self.assertFalse(self.memory.has_loaded_program)

    def test_has_loaded_program(self):
        """Presence check looks at the first instruction word."""
        self.assertFalse(self.memory.has_loaded_program)
        self.memory.load_rom(b"\x00\x01")
        self.assertTrue(self.memory.has_loaded_program)
        self.memory.reset()
        self.memory.load_rom(b"\x00\x00\x60\x01")
        self.assertFalse(self.memory.has_loaded_program)

if __name__ == '__main__':
    unittest.main()
