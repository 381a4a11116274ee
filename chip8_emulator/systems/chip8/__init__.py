"""
CHIP-8 emulation components.
"""
# Import main classes for external use
from .cpu import Chip8CPU, DecodedInstruction
from .registers import RegisterFile, CallStack
from .memory import Chip8Memory
from .display import Chip8Display
from .timers import Chip8Timers
from .keypad import Chip8Keypad
from .chip8_system import Chip8System
