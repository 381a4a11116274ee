"""
CHIP-8 delay and sound timers.

Both timers are 8-bit counters decremented once per emulated cycle while
non-zero. The sound timer being non-zero means the buzzer is on; the host
is told about it through the value returned by ``tick``.
"""

import logging
from typing import Dict, Any

logger = logging.getLogger("Chip8Emulator.Chip8.Timers")

class Chip8Timers:
    """Delay and sound countdown timers."""

    def __init__(self):
        self.delay_timer = 0
        self.sound_timer = 0

    def reset(self) -> None:
        self.delay_timer = 0
        self.sound_timer = 0

    def set_delay(self, value: int) -> None:
        self.delay_timer = value & 0xFF

    def set_sound(self, value: int) -> None:
        self.sound_timer = value & 0xFF

    def tick(self) -> bool:
        """
        Decrement both timers by one, stopping at zero.

        Returns:
            True if the sound timer was active (and decremented) this tick
        """
        if self.delay_timer > 0:
            self.delay_timer -= 1

        if self.sound_timer > 0:
            self.sound_timer -= 1
            if self.sound_timer == 0:
                logger.debug("Sound timer expired")
            return True
        return False

    @property
    def sound_active(self) -> bool:
        return self.sound_timer > 0

    def get_state(self) -> Dict[str, Any]:
        return {
            "DT": self.delay_timer,
            "ST": self.sound_timer,
        }
