"""
CHIP-8 memory system implementation.

The CHIP-8 has a flat 4KB address space:
- 0x000-0x04F: built-in hexadecimal font (16 glyphs x 5 bytes)
- 0x050-0x1FF: reserved for the interpreter
- 0x200-0xE9F: program ROM and work RAM
- 0xEA0-0xFFF: reserved trailer (call stack, work area and display
  refresh on the original interpreter)

Instructions are 16 bits wide and stored big-endian.
"""

from ...common.interfaces import Memory
from ...constants import (
    MEMORY_CAPACITY, PROGRAM_START, MAX_PROGRAM_SIZE, ADDRESS_MASK,
    FONTSET, FONT_START, FONT_END,
)
from ...utils.error_handler import ROMTooLargeError
import numpy as np
import logging
from typing import Callable, Dict, Any, Optional

logger = logging.getLogger("Chip8Emulator.Chip8.Memory")

class Chip8Memory(Memory):
    """
    Emulates the CHIP-8 4KB byte-addressable memory.

    Addresses outside the 12-bit address space wrap around and are reported
    as anomalies. Writes into the font region are dropped so programs can
    never corrupt the built-in glyphs.
    """

    def __init__(self):
        """Initialize the memory system with the font loaded."""
        self.size = MEMORY_CAPACITY
        self.ram = np.zeros(self.size, dtype=np.uint8)
        self.rom_size = 0

        # Called with (message, context) for non-fatal anomalies
        self.anomaly_callback: Optional[Callable[[str, Dict[str, Any]], None]] = None

        self.reset()

        logger.info("CHIP-8 memory system initialized")

    def reset(self) -> None:
        """Zero all memory and reload the font table."""
        self.ram.fill(0)
        self.ram[FONT_START:FONT_END] = np.frombuffer(FONTSET, dtype=np.uint8)
        self.rom_size = 0

    def _report(self, message: str, **context) -> None:
        logger.warning(message)
        if self.anomaly_callback:
            self.anomaly_callback(message, context)

    def _resolve(self, address: int) -> int:
        """Map an address into the 12-bit address space."""
        if 0 <= address < self.size:
            return address
        wrapped = address & ADDRESS_MASK
        self._report(f"Memory address out of range: 0x{address:X}, wrapped to 0x{wrapped:03X}",
                     address=address)
        return wrapped

    def read(self, address: int) -> int:
        """
        Read a byte from the specified address.

        Args:
            address: Memory address

        Returns:
            Byte value at address
        """
        return int(self.ram[self._resolve(address)])

    def write(self, address: int, value: int) -> None:
        """
        Write a byte to the specified address.

        Args:
            address: Memory address
            value: Byte value (masked to 8 bits)
        """
        address = self._resolve(address)
        if FONT_START <= address < FONT_END:
            self._report(f"Write to font region ignored: 0x{address:03X}", address=address)
            return
        self.ram[address] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Read a big-endian 16-bit word."""
        return (self.read(address) << 8) | self.read(address + 1)

    def write_word(self, address: int, value: int) -> None:
        """Write a big-endian 16-bit word."""
        self.write(address, (value >> 8) & 0xFF)
        self.write(address + 1, value & 0xFF)

    def read_block(self, address: int, length: int) -> bytes:
        """Read ``length`` consecutive bytes, wrapping each address independently."""
        if 0 <= address and address + length <= self.size:
            return self.ram[address:address + length].tobytes()
        return bytes(self.read(address + offset) for offset in range(length))

    def write_block(self, address: int, data: bytes) -> None:
        """Write consecutive bytes starting at ``address``."""
        for offset, value in enumerate(data):
            self.write(address + offset, value)

    def load_rom(self, rom_data: bytes) -> None:
        """
        Copy a program image into memory at the program start offset.

        Args:
            rom_data: Raw program bytes

        Raises:
            ROMTooLargeError: If the image does not fit below the reserved trailer.
                Memory is left untouched.
        """
        if len(rom_data) > MAX_PROGRAM_SIZE:
            raise ROMTooLargeError(len(rom_data), MAX_PROGRAM_SIZE)

        data = np.frombuffer(bytes(rom_data), dtype=np.uint8)
        self.ram[PROGRAM_START:PROGRAM_START + len(data)] = data
        self.rom_size = len(data)

        logger.info(f"Loaded {self.rom_size} bytes at 0x{PROGRAM_START:03X}")

    @property
    def has_loaded_program(self) -> bool:
        """
        Whether a program appears to be loaded.

        Heuristic only: true when the first instruction word is non-zero.
        """
        return bool(self.ram[PROGRAM_START] or self.ram[PROGRAM_START + 1])

    def get_state(self) -> Dict[str, Any]:
        return {
            "size": self.size,
            "rom_size": self.rom_size,
            "has_loaded_program": self.has_loaded_program,
        }

    def dump(self, start: int = 0, end: Optional[int] = None) -> bytes:
        """Return a copy of a memory range for inspection."""
        return self.ram[start:end].tobytes()
