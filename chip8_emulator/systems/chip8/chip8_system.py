"""
CHIP-8 system implementation.

This module provides a complete system implementation for the CHIP-8
virtual machine, integrating the CPU, memory, display, timers and keypad.
It handles system initialization, program loading and the per-cycle
fetch-execute-timer sequence. Pacing of cycles against real time is left to
the host.
"""

import logging
import os
from typing import Dict, Any, Optional, Tuple

import numpy as np

from ...common.interfaces import System
from ...constants import DEFAULT_CYCLES_PER_FRAME, MAX_ANOMALY_HISTORY
from ...utils.error_handler import ErrorHandler, ROMTooLargeError
from .cpu import Chip8CPU
from .memory import Chip8Memory
from .display import Chip8Display
from .timers import Chip8Timers
from .keypad import Chip8Keypad

logger = logging.getLogger("Chip8Emulator.Chip8.System")

class Chip8System(System):
    """
    Complete CHIP-8 virtual machine.

    The host owns the instance and drives it explicitly: ``load_program``
    once, then ``cycle`` (or ``run_frame``) repeatedly, forwarding key events
    through ``press_key``/``release_key`` between cycles.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 error_handler: Optional[ErrorHandler] = None):
        """
        Initialize the CHIP-8 system.

        Args:
            config: System configuration dictionary
            error_handler: Optional handler that records runtime anomalies
        """
        self.config = config or {}
        self.error_handler = error_handler
        self.cycles_per_frame = self.config.get("cycles_per_frame", DEFAULT_CYCLES_PER_FRAME)

        # Create and connect components
        self.memory = Chip8Memory()
        self.cpu = Chip8CPU(random_seed=self.config.get("random_seed"))
        self.display = Chip8Display()
        self.timers = Chip8Timers()
        self.keypad = Chip8Keypad()

        self.cpu.set_memory(self.memory)
        self.cpu.connect_display(self.display)
        self.cpu.connect_timers(self.timers)
        self.cpu.connect_keypad(self.keypad)

        for component in (self.cpu, self.memory, self.keypad):
            component.anomaly_callback = self._on_anomaly

        # System state
        self.cycle_count = 0
        self.frame_count = 0
        self.sound_tick = False
        self.sound_ticks = 0
        self.anomaly_count = 0
        self.anomalies = []

        # ROM information
        self.rom_name = ""

        self.reset()

        logger.info("CHIP-8 system initialized")

    def _on_anomaly(self, message: str, context: Dict[str, Any]) -> None:
        self.anomaly_count += 1
        self.anomalies.append({"cycle": self.cycle_count, "message": message, **context})
        if len(self.anomalies) > MAX_ANOMALY_HISTORY:
            self.anomalies = self.anomalies[-MAX_ANOMALY_HISTORY:]
        if self.error_handler:
            self.error_handler.report_anomaly(message, context)

    def reset(self) -> None:
        """Reset every component to its power-on state."""
        self.memory.reset()
        self.cpu.reset()
        self.display.reset()
        self.timers.reset()
        self.keypad.reset()

        self.cycle_count = 0
        self.frame_count = 0
        self.sound_tick = False
        self.sound_ticks = 0
        self.anomaly_count = 0
        self.anomalies = []
        self.rom_name = ""

        logger.debug("System reset")

    def load_program(self, program: bytes) -> None:
        """
        Reset the machine and copy a program image to the program area.

        Args:
            program: Raw program bytes

        Raises:
            ROMTooLargeError: If the program does not fit. The system is left
                reset, with no program loaded.
        """
        self.reset()
        try:
            self.memory.load_rom(program)
        except ROMTooLargeError as e:
            logger.error(f"Failed to load program: {e}")
            raise

    def load_rom(self, rom_path: str) -> None:
        """
        Load a CHIP-8 ROM file.

        Args:
            rom_path: Path to ROM file
        """
        with open(rom_path, 'rb') as f:
            rom_data = f.read()

        self.load_program(rom_data)
        self.rom_name = os.path.basename(rom_path)

        logger.info(f"Loaded ROM: {self.rom_name} ({len(rom_data)} bytes)")

    @property
    def has_loaded_program(self) -> bool:
        return self.memory.has_loaded_program

    def press_key(self, key: int) -> None:
        self.keypad.press(key)

    def release_key(self, key: int) -> None:
        self.keypad.release(key)

    def release_all_keys(self) -> None:
        self.keypad.release_all()

    def cycle(self) -> bool:
        """
        Execute one instruction and tick the timers.

        Returns:
            True if the frame buffer was changed by this cycle
        """
        generation = self.display.generation

        self.cpu.step()

        self.sound_tick = self.timers.tick()
        if self.sound_tick:
            self.sound_ticks += 1

        self.cycle_count += 1
        return self.display.generation != generation

    def run_frame(self) -> Dict[str, Any]:
        """
        Run ``cycles_per_frame`` cycles.

        Returns:
            System state at the end of the frame, with ``frame_changed`` and
            ``frame_sound_ticks`` describing the frame just run
        """
        changed = False
        sound_ticks = 0

        for _ in range(self.cycles_per_frame):
            changed = self.cycle() or changed
            if self.sound_tick:
                sound_ticks += 1

        self.frame_count += 1

        state = self.get_system_state()
        state["frame_changed"] = changed
        state["frame_sound_ticks"] = sound_ticks
        return state

    def get_frame_buffer(self) -> np.ndarray:
        return self.display.get_frame_buffer()

    def consume_frame(self) -> Tuple[np.ndarray, bool]:
        return self.display.consume_frame()

    @property
    def needs_draw(self) -> bool:
        return self.display.needs_draw

    def get_system_state(self) -> Dict[str, Any]:
        """Get the current state of the entire system."""
        return {
            "cycle": self.cycle_count,
            "cycle_count": self.cycle_count,
            "frame_count": self.frame_count,
            "registers": self.cpu.registers.get_state(),
            "cpu_state": self.cpu.get_state(),
            "timer_state": self.timers.get_state(),
            "keypad_state": self.keypad.get_state(),
            "display_state": self.display.get_state(),
            "memory_state": self.memory.get_state(),
            "sound_tick": self.sound_tick,
            "sound_ticks": self.sound_ticks,
            "anomaly_count": self.anomaly_count,
            "frame_buffer": self.display.get_frame_buffer(),
        }
