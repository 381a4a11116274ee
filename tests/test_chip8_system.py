"""
Tests for the Chip8System module.

This module contains unit tests for program loading, the per-cycle
execute-then-tick sequence, frame stepping and anomaly reporting.
"""
import os
import tempfile
import unittest
import numpy as np
from chip8_emulator.systems import SystemFactory
from chip8_emulator.systems.chip8 import Chip8System
from chip8_emulator.utils.error_handler import (
    ErrorHandler, ErrorCategory, ROMTooLargeError,
)
from chip8_emulator.constants import FONTSET, MAX_PROGRAM_SIZE

class TestChip8SystemLoading(unittest.TestCase):
    """
    Test cases for program loading and reset.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.system = Chip8System()

    def test_power_on_state(self):
        """A new machine has the font loaded, PC at 0x200 and no program."""
        self.assertEqual(self.system.memory.dump(0, len(FONTSET)), FONTSET)
        self.assertEqual(self.system.cpu.PC, 0x200)
        self.assertEqual(self.system.cpu.stack.sp, 0)
        self.assertFalse(self.system.has_loaded_program)
        self.assertFalse(self.system.get_frame_buffer().any())

    def test_load_program_resets_state(self):
        """Loading a program discards registers, timers, stack and screen."""
        self.system.load_program(bytes.fromhex("6005F0152206"))
        for _ in range(3):
            self.system.cycle()
        self.system.display.draw_sprite(0, 0, b"\xFF")

        self.system.load_program(bytes.fromhex("6001"))
        self.assertEqual(bytes(self.system.cpu.V), bytes(16))
        self.assertEqual(self.system.cpu.PC, 0x200)
        self.assertEqual(self.system.cpu.stack.sp, 0)
        self.assertEqual(self.system.timers.delay_timer, 0)
        self.assertFalse(self.system.get_frame_buffer().any())
        self.assertEqual(self.system.cycle_count, 0)
        self.assertTrue(self.system.has_loaded_program)

    def test_too_large_program_leaves_no_program(self):
        """A rejected program leaves the machine reset and empty."""
        self.system.load_program(bytes.fromhex("600A"))
        with self.assertRaises(ROMTooLargeError):
            self.system.load_program(b"\x12" * (MAX_PROGRAM_SIZE + 1))
        self.assertFalse(self.system.has_loaded_program)
        self.assertEqual(self.system.cpu.PC, 0x200)

    def test_load_rom_from_file(self):
        """ROM files are read in binary and named after their basename."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "test.ch8")
            with open(path, "wb") as f:
                f.write(bytes.fromhex("600A"))

            self.system.load_rom(path)

        self.assertEqual(self.system.rom_name, "test.ch8")
        self.system.cycle()
        self.assertEqual(self.system.cpu.V[0], 10)
        self.assertEqual(self.system.cpu.PC, 0x202)

    def test_load_rom_missing_file(self):
        with self.assertRaises(OSError):
            self.system.load_rom("/nonexistent/rom.ch8")

    def test_failed_load_clears_rom_name(self):
        """After a rejected ROM the previous ROM name is no longer reported."""
        with tempfile.TemporaryDirectory() as tmpdir:
            first = os.path.join(tmpdir, "a.ch8")
            with open(first, "wb") as f:
                f.write(bytes.fromhex("600A"))
            second = os.path.join(tmpdir, "b.ch8")
            with open(second, "wb") as f:
                f.write(b"\x12" * (MAX_PROGRAM_SIZE + 1))

            self.system.load_rom(first)
            self.assertEqual(self.system.rom_name, "a.ch8")
            with self.assertRaises(ROMTooLargeError):
                self.system.load_rom(second)

        self.assertEqual(self.system.rom_name, "")
        self.assertFalse(self.system.has_loaded_program)

    def test_reset_clears_rom_name(self):
        self.system.rom_name = "game.ch8"
        self.system.reset()
        self.assertEqual(self.system.rom_name, "")

class TestChip8SystemExecution(unittest.TestCase):
    """
    Test cases for cycles and frames.
    """

    def test_timers_tick_once_per_cycle(self):
        """Delay timer set to 5 reaches 0 after five more cycles and stays there."""
        system = Chip8System()
        system.load_program(bytes.fromhex("6005F015" + "6000" * 8))
        system.cycle()
        system.cycle()
        self.assertEqual(system.timers.delay_timer, 4)
        for _ in range(4):
            system.cycle()
        self.assertEqual(system.timers.delay_timer, 0)
        system.cycle()
        self.assertEqual(system.timers.delay_timer, 0)

    def test_run_frame(self):
        """A frame runs the configured number of cycles."""
        system = Chip8System({"cycles_per_frame": 4})
        system.load_program(bytes.fromhex("1200"))
        state = system.run_frame()
        self.assertEqual(state["cycle_count"], 4)
        self.assertEqual(state["frame_count"], 1)
        self.assertFalse(state["frame_changed"])
        self.assertEqual(state["frame_sound_ticks"], 0)

    def test_run_frame_reports_change_and_sound(self):
        system = Chip8System({"cycles_per_frame": 6})
        system.load_program(bytes.fromhex("6003F018A000D0051208"))
        state = system.run_frame()
        self.assertTrue(state["frame_changed"])
        self.assertEqual(state["frame_sound_ticks"], 3)
        self.assertEqual(state["sound_ticks"], 3)
        self.assertEqual(state["timer_state"], {"DT": 0, "ST": 0})

    def test_consume_frame(self):
        """The draw flag is set by drawing and cleared by consuming."""
        system = Chip8System()
        system.load_program(bytes.fromhex("A000D005"))
        system.consume_frame()
        self.assertFalse(system.needs_draw)

        system.cycle()
        system.cycle()
        self.assertTrue(system.needs_draw)
        frame, changed = system.consume_frame()
        self.assertTrue(changed)
        self.assertEqual(frame.shape, (32, 64))
        self.assertFalse(system.needs_draw)

    def test_frame_buffer_snapshot_is_read_only(self):
        system = Chip8System()
        frame = system.get_frame_buffer()
        self.assertIsInstance(frame, np.ndarray)
        with self.assertRaises(ValueError):
            frame[0, 0] = True

    def test_keys_forwarded_to_keypad(self):
        system = Chip8System()
        system.press_key(0x3)
        system.press_key(0x9)
        self.assertEqual(system.keypad.pressed_keys(), [0x3, 0x9])
        system.release_key(0x3)
        self.assertEqual(system.keypad.pressed_keys(), [0x9])
        system.release_all_keys()
        self.assertEqual(system.keypad.pressed_keys(), [])

    def test_get_system_state(self):
        system = Chip8System()
        system.load_program(bytes.fromhex("600A"))
        system.cycle()
        state = system.get_system_state()
        self.assertEqual(state["cycle"], 1)
        self.assertEqual(state["registers"]["V0"], 10)
        self.assertEqual(state["registers"]["PC"], 0x202)
        self.assertIn("frame_buffer", state)

class TestChip8SystemAnomalies(unittest.TestCase):
    """
    Test cases for anomaly reporting through the error handler.
    """

    def setUp(self):
        """Set up test fixtures."""
        self.error_handler = ErrorHandler(console_level=100)

    def tearDown(self):
        """Clean up test fixtures."""
        self.error_handler.close()

    def test_anomalies_recorded(self):
        """Unknown opcodes reach the error handler as runtime warnings."""
        system = Chip8System(error_handler=self.error_handler)
        system.load_program(bytes.fromhex("0123F0FF"))
        system.cycle()
        system.cycle()

        self.assertEqual(system.anomaly_count, 2)
        self.assertEqual(system.anomalies[0]["opcode"], 0x0123)
        self.assertEqual(system.anomalies[1]["pc"], 0x202)

        errors = self.error_handler.get_error_history(category=ErrorCategory.RUNTIME)
        self.assertEqual(len(errors), 2)
        self.assertEqual(errors[0]["level"], "WARNING")

class TestSystemFactory(unittest.TestCase):
    """
    Test cases for the SystemFactory class.
    """

    def test_create_chip8(self):
        system = SystemFactory.create_system("chip8", {"cycles_per_frame": 3, "random_seed": 7})
        self.assertIsInstance(system, Chip8System)
        self.assertEqual(system.cycles_per_frame, 3)
        self.assertEqual(system.cpu.random_seed, 7)

    def test_memory_size_is_fixed(self):
        """A memory_size override does not shrink the 4KB address space."""
        system = SystemFactory.create_system("chip8", {"memory_size": 2048})
        self.assertEqual(system.memory.size, 4096)
        self.assertEqual(system.memory.ram.shape, (4096,))

        # Jump to 0x900 and execute the empty word there
        system.load_program(bytes.fromhex("1900"))
        with self.assertLogs("Chip8Emulator.Chip8.CPU", level="WARNING"):
            system.cycle()
            system.cycle()
        self.assertEqual(system.cpu.PC, 0x902)
        self.assertEqual(system.anomaly_count, 1)

    def test_unknown_system(self):
        with self.assertRaises(ValueError):
            SystemFactory.create_system("vip")

if __name__ == '__main__':
    unittest.main()
