"""
CHIP-8 Emulator

A virtual machine for the CHIP-8 instruction set: 4KB of memory, sixteen
8-bit registers, a call stack, a 64x32 monochrome display and two countdown
timers, advanced one instruction at a time by the host.
"""

__version__ = "0.1.0"

from .systems.chip8 import Chip8System
from .systems.system_factory import SystemFactory
