"""
Global constants for the CHIP-8 Emulator.
"""

# Memory layout
MEMORY_CAPACITY = 4096
PROGRAM_START = 0x200
RESERVED_TRAILER_SIZE = 0x160  # 0xEA0-0xFFF, stack/work/display area on the original interpreter
MAX_PROGRAM_SIZE = MEMORY_CAPACITY - PROGRAM_START - RESERVED_TRAILER_SIZE
ADDRESS_MASK = 0xFFF
INDEX_MASK = 0xFFFF

# Register file and stack
REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
STACK_DEPTH = 16

# Instruction format
INSTRUCTION_SIZE = 2

# Display
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
SPRITE_WIDTH = 8

# Input
KEY_COUNT = 16

# Built-in hexadecimal font, 16 glyphs x 5 rows
FONT_START = 0x000
FONT_GLYPH_SIZE = 5
FONTSET = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
FONT_END = FONT_START + len(FONTSET)

# Host defaults
DEFAULT_CYCLES_PER_FRAME = 10
DEFAULT_FRAMES = 60
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

# Performance constants
MAX_HISTORY_SIZE = 100000
MAX_ANOMALY_HISTORY = 256
