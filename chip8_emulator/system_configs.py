"""
Configuration data for supported systems.
"""

from .constants import (
    MEMORY_CAPACITY, PROGRAM_START, MAX_PROGRAM_SIZE, REGISTER_COUNT,
    STACK_DEPTH, DISPLAY_WIDTH, DISPLAY_HEIGHT, KEY_COUNT,
    DEFAULT_CYCLES_PER_FRAME,
)

SYSTEM_CONFIGS = {
    "chip8": {
        "cpu_type": "CHIP-8",
        "memory_map": {
            "font": {"start": 0x000, "end": 0x04F},
            "interpreter": {"start": 0x050, "end": 0x1FF},
            "program": {"start": PROGRAM_START, "end": PROGRAM_START + MAX_PROGRAM_SIZE - 1},
            "reserved": {"start": PROGRAM_START + MAX_PROGRAM_SIZE, "end": MEMORY_CAPACITY - 1},
        },
        "registers": [
            # General purpose registers, VF doubles as the flag register
            "V0", "V1", "V2", "V3", "V4", "V5", "V6", "V7",
            "V8", "V9", "VA", "VB", "VC", "VD", "VE", "VF",
            # Special registers
            "I", "PC", "SP", "DT", "ST"
        ],
        "register_count": REGISTER_COUNT,
        "stack_depth": STACK_DEPTH,
        "resolution": (DISPLAY_WIDTH, DISPLAY_HEIGHT),
        "key_count": KEY_COUNT,
        "cycles_per_frame": DEFAULT_CYCLES_PER_FRAME,
        "random_seed": None,
    },
}
