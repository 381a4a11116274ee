"""
CHIP-8 hexadecimal keypad.

The keypad has sixteen logical keys, 0x0-0xF. Any number of keys can be held
at once; the held set is kept as a 16-bit mask written by the host and read by
the skip-if-key and await-key instructions.
"""

import logging
from typing import Callable, Dict, Any, List, Optional

from ...constants import KEY_COUNT

logger = logging.getLogger("Chip8Emulator.Chip8.Keypad")

class Chip8Keypad:
    """Set of currently held logical keys."""

    def __init__(self):
        self.state = 0

        # Called with (message, context) for non-fatal anomalies
        self.anomaly_callback: Optional[Callable[[str, Dict[str, Any]], None]] = None

    def reset(self) -> None:
        self.state = 0

    def _valid(self, key: int) -> bool:
        if 0 <= key < KEY_COUNT:
            return True
        message = f"Key code out of range: {key}"
        logger.warning(message)
        if self.anomaly_callback:
            self.anomaly_callback(message, {"key": key})
        return False

    def press(self, key: int) -> None:
        """Mark a key as held. Out-of-range codes are ignored."""
        if self._valid(key):
            self.state |= 1 << key

    def release(self, key: int) -> None:
        """Mark a key as released. Out-of-range codes are ignored."""
        if self._valid(key):
            self.state &= ~(1 << key)

    def release_all(self) -> None:
        self.state = 0

    def is_pressed(self, key: int) -> bool:
        if not self._valid(key):
            return False
        return bool(self.state & (1 << key))

    def pressed_keys(self) -> List[int]:
        """All held keys, lowest code first."""
        return [key for key in range(KEY_COUNT) if self.state & (1 << key)]

    def first_pressed(self) -> Optional[int]:
        """The lowest held key code, or None when nothing is held."""
        if not self.state:
            return None
        return (self.state & -self.state).bit_length() - 1

    def get_state(self) -> Dict[str, Any]:
        return {
            "keys": self.state,
            "pressed": self.pressed_keys(),
        }
