"""
CHIP-8 monochrome display.

The display is a 64x32 grid of on/off pixels stored row-major as a boolean
numpy array indexed ``[y, x]``. It is only mutated by the clear-screen and
sprite-draw instructions; consumers receive read-only copies so a renderer
can never write back into emulator state.
"""

import logging
from typing import Dict, Any, Tuple

import numpy as np

from ...common.interfaces import VideoProcessor
from ...constants import DISPLAY_WIDTH, DISPLAY_HEIGHT, SPRITE_WIDTH

logger = logging.getLogger("Chip8Emulator.Chip8.Display")

class Chip8Display(VideoProcessor):
    """
    Emulates the CHIP-8 framebuffer.

    Sprites are 8 pixels wide, one byte per row with the most significant bit
    leftmost, and are XOR-blended onto the screen. Pixels falling past the
    right or bottom edge are clipped, not wrapped.
    """

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self.frame_buffer = np.zeros((height, width), dtype=bool)

        # Incremented on every mutation so callers can detect changes per cycle
        self.generation = 0
        # Set on mutation, cleared when a consumer takes the frame
        self.needs_draw = True

        logger.debug(f"Display initialized ({width}x{height})")

    def reset(self) -> None:
        self.frame_buffer.fill(False)
        self.generation += 1
        self.needs_draw = True

    def clear(self) -> None:
        """Turn every pixel off."""
        self.frame_buffer.fill(False)
        self._mark_dirty()

    def _mark_dirty(self) -> None:
        self.generation += 1
        self.needs_draw = True

    def draw_sprite(self, x: int, y: int, rows: bytes) -> bool:
        """
        XOR a sprite onto the screen.

        Args:
            x: Column of the sprite's left edge
            y: Row of the sprite's top edge
            rows: Sprite bitmap, one byte per row

        Returns:
            True if any lit pixel was turned off (collision)
        """
        self._mark_dirty()

        if not rows or x >= self.width or y >= self.height:
            return False

        bits = np.unpackbits(np.frombuffer(bytes(rows), dtype=np.uint8)).reshape(len(rows), SPRITE_WIDTH)
        bits = bits[:self.height - y, :self.width - x].astype(bool)

        region = self.frame_buffer[y:y + bits.shape[0], x:x + bits.shape[1]]
        collision = bool(np.any(region & bits))
        region ^= bits

        return collision

    def get_pixel(self, x: int, y: int) -> bool:
        return bool(self.frame_buffer[y, x])

    def get_frame_buffer(self) -> np.ndarray:
        """Return a read-only copy of the frame buffer."""
        snapshot = self.frame_buffer.copy()
        snapshot.flags.writeable = False
        return snapshot

    def consume_frame(self) -> Tuple[np.ndarray, bool]:
        """
        Take the current frame for rendering.

        Returns:
            Tuple of (read-only frame, whether it changed since the last call)
        """
        changed = self.needs_draw
        self.needs_draw = False
        return self.get_frame_buffer(), changed

    def render_text(self, on: str = "#", off: str = " ") -> str:
        """Render the frame buffer as text, one line per row."""
        return "\n".join("".join(on if pixel else off for pixel in row) for row in self.frame_buffer)

    def get_state(self) -> Dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "pixels_on": int(np.count_nonzero(self.frame_buffer)),
            "needs_draw": self.needs_draw,
        }
