"""
Main entry point for the CHIP-8 Emulator.

This module provides a headless runner: it loads a ROM, runs a fixed number
of frames as fast as possible, and optionally prints the final screen and
writes a state trace. It does not open a window or play sound.
"""

import argparse
import logging
import time
import sys
from typing import List, Optional

from .systems.system_factory import SystemFactory
from .analysis.state_recorder import StateRecorder
from .utils.config_manager import ConfigManager
from .utils.error_handler import ErrorHandler, Chip8Error
from .constants import LOG_LEVELS

logger = logging.getLogger("Chip8Emulator")

def parse_keys(value: str) -> List[int]:
    """Parse a comma-separated list of hexadecimal key codes."""
    keys = []
    for token in value.split(','):
        token = token.strip()
        if not token:
            continue
        try:
            key = int(token, 16)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid key: {token}")
        if not 0 <= key <= 0xF:
            raise argparse.ArgumentTypeError(f"Key out of range 0-F: {token}")
        keys.append(key)
    return keys

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Headless CHIP-8 virtual machine")
    parser.add_argument('--rom', type=str, required=True, help='Path to ROM file')
    parser.add_argument('--frames', type=int, help='Number of frames to run')
    parser.add_argument('--cycles-per-frame', type=int, help='Instructions executed per frame')
    parser.add_argument('--keys', type=parse_keys, default=[],
                        help='Comma-separated hex keys held for the whole run, e.g. 1,A')
    parser.add_argument('--seed', type=int, help='Seed for the random number instruction')
    parser.add_argument('--show-screen', action='store_true', help='Print the final screen')
    parser.add_argument('--trace', type=str, help='Write per-frame state history to this JSON file')
    parser.add_argument('--config', type=str, help='Path to configuration file (JSON or YAML)')
    parser.add_argument('--log-level', type=str, choices=LOG_LEVELS, help='Logging level')
    parser.add_argument('--log-file', type=str, help='Also write log output to this file')
    parser.add_argument('--error-report', type=str, help='Write a JSON error report to this file')
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run the emulator.

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Process exit status
    """
    args = build_parser().parse_args(argv)

    config = ConfigManager()
    if args.config and not config.load_config(args.config):
        print(f"Error loading configuration: {args.config}", file=sys.stderr)
        return 1

    # Command line overrides configuration file
    if args.frames is not None:
        config.set("run.frames", args.frames)
    if args.cycles_per_frame is not None:
        config.set("cpu.cycles_per_frame", args.cycles_per_frame)
    if args.seed is not None:
        config.set("cpu.random_seed", args.seed)
    if args.log_level:
        config.set("logging.level", args.log_level)
    if args.log_file:
        config.set("logging.file", args.log_file)
    if args.show_screen:
        config.set("run.show_screen", True)

    validation_errors = config.validate_config(config.as_dict())
    if validation_errors:
        for error in validation_errors:
            print(f"Invalid configuration: {error}", file=sys.stderr)
        return 1

    error_handler = ErrorHandler(log_file=config.get("logging.file"),
                                 console_level=getattr(logging, config.get("logging.level")))
    try:
        return _run(args, config, error_handler)
    finally:
        if args.error_report:
            error_handler.export_error_report(args.error_report)
        error_handler.close()

def _run(args: argparse.Namespace, config: ConfigManager, error_handler: ErrorHandler) -> int:
    system = SystemFactory.create_system(config.get("system"), config.get_system_config(),
                                         error_handler=error_handler)

    try:
        logger.info(f"Loading ROM: {args.rom}")
        system.load_rom(args.rom)
    except (OSError, Chip8Error) as e:
        error_handler.handle_error(e, message=f"Error loading ROM: {e}")
        return 1

    if not system.has_loaded_program:
        logger.error("No program loaded.")
        return 1

    for key in args.keys:
        system.press_key(key)

    recorder = StateRecorder() if args.trace else None
    frames = config.get("run.frames")

    start_time = time.time()
    logger.info(f"Running {frames} frames at {system.cycles_per_frame} cycles per frame")

    status = 0
    for frame in range(frames):
        try:
            state = system.run_frame()
        except Chip8Error as e:
            error_handler.handle_error(e, message=f"Error running frame {frame + 1}: {e}",
                                       context={"pc": system.cpu.PC, "opcode": system.cpu.opcode})
            status = 1
            break

        if recorder:
            recorder.record_state(state)

    execution_time = time.time() - start_time

    if recorder and not recorder.save_history(args.trace, format='json'):
        status = 1

    if config.get("run.show_screen"):
        print(system.display.render_text())

    cycles_per_second = system.cycle_count / execution_time if execution_time > 0 else 0
    print(f"ROM: {system.rom_name}")
    print(f"Frames run: {system.frame_count}")
    print(f"Cycles run: {system.cycle_count}")
    print(f"Sound ticks: {system.sound_ticks}")
    print(f"Anomalies: {system.anomaly_count}")
    print(f"Performance: {cycles_per_second:.2f} cycles/second")

    return status

if __name__ == "__main__":
    sys.exit(main())
