"""
State recording module for capturing and managing emulator state snapshots.
"""

import numpy as np
import logging
import json
import os
import time
from typing import Dict, List, Optional, Any
from collections import deque
import pickle

from ..constants import MAX_HISTORY_SIZE

logger = logging.getLogger("Chip8Emulator.StateRecorder")

class StateRecorder:
    """
    Records and retrieves system state snapshots during emulation.

    Snapshots are the dictionaries returned by ``Chip8System.get_system_state``
    (or any dict with ``cycle`` and ``registers`` keys). The most recent
    ``max_history`` snapshots are kept, plus one out of every
    ``compression_ratio`` in a compressed history.
    """

    def __init__(self, max_history: int = MAX_HISTORY_SIZE,
                compression_ratio: int = 10,
                record_filter: Optional[List[str]] = None):
        """
        Initialize the state recorder.

        Args:
            max_history: Maximum number of states to keep in memory
            compression_ratio: Ratio for compressed storage (1:N)
            record_filter: List of register names to include (None for all)
        """
        self.max_history = max_history
        self.compression_ratio = max(1, compression_ratio)
        self.record_filter = record_filter

        self.state_history = deque(maxlen=max_history)
        self.compressed_history = []

        self.stats = {
            "total_records": 0,
            "start_time": time.time(),
            "start_cycle": None,
            "current_cycle": None,
            "unique_registers": set(),
        }

        logger.debug(f"Initialized state recorder with max history {max_history}, "
                     f"compression ratio 1:{self.compression_ratio}")

    def record_state(self, state: Dict[str, Any]) -> None:
        """
        Record a system state snapshot.

        Args:
            state: System state dictionary
        """
        if self.record_filter is not None and "registers" in state:
            state = state.copy()
            state["registers"] = {name: value for name, value in state["registers"].items()
                                  if name in self.record_filter}

        self.stats["total_records"] += 1

        if "cycle" in state:
            if self.stats["start_cycle"] is None:
                self.stats["start_cycle"] = state["cycle"]
            self.stats["current_cycle"] = state["cycle"]

        if "registers" in state:
            self.stats["unique_registers"].update(state["registers"].keys())

        self.state_history.append(state)

        if self.stats["total_records"] % self.compression_ratio == 0:
            self.compressed_history.append(state)

    def clear(self) -> None:
        """Discard all recorded states and statistics."""
        self.state_history.clear()
        self.compressed_history = []
        self.stats.update(total_records=0, start_time=time.time(),
                          start_cycle=None, current_cycle=None, unique_registers=set())

    def get_state_history(self, start_idx: Optional[int] = None,
                       end_idx: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get a slice of the state history.

        Args:
            start_idx: Starting index (None for beginning)
            end_idx: Ending index (None for end)

        Returns:
            List of state snapshots
        """
        return list(self.state_history)[start_idx:end_idx]

    def get_state_by_cycle(self, cycle: int) -> Optional[Dict[str, Any]]:
        """
        Get the state snapshot recorded at a cycle, or the nearest one.

        Args:
            cycle: Cycle number to retrieve

        Returns:
            State snapshot, or None if nothing with a cycle was recorded
        """
        candidates = [state for state in self.state_history if "cycle" in state]
        if not candidates:
            return None

        nearest = min(candidates, key=lambda state: abs(state["cycle"] - cycle))
        if nearest["cycle"] != cycle:
            logger.debug(f"Exact cycle {cycle} not found, returning nearest cycle {nearest['cycle']}")
        return nearest

    def get_register_history(self, register_name: str) -> Dict[str, List[Any]]:
        """
        Get history for a specific register.

        Args:
            register_name: Name of register to retrieve (e.g. 'V0', 'PC')

        Returns:
            Dictionary with cycle numbers and register values
        """
        cycles = []
        values = []

        for state in self.state_history:
            if "registers" in state and register_name in state["registers"]:
                cycles.append(state.get("cycle", len(cycles)))
                values.append(state["registers"][register_name])

        return {
            "cycles": cycles,
            "values": values
        }

    def find_register_value_changes(self, register_name: str) -> List[Dict[str, Any]]:
        """
        Find all points where a register changes value.

        Args:
            register_name: Register name to track

        Returns:
            List of change events with cycle and value information
        """
        changes = []
        last_value = None

        for state in self.state_history:
            if "registers" not in state or register_name not in state["registers"]:
                continue

            current_value = state["registers"][register_name]
            if last_value is not None and current_value != last_value:
                changes.append({
                    "cycle": state.get("cycle"),
                    "old_value": last_value,
                    "new_value": current_value
                })
            last_value = current_value

        return changes

    def get_statistics(self) -> Dict[str, Any]:
        """
        Get recorder statistics.

        Returns:
            Dictionary with statistics
        """
        elapsed_time = time.time() - self.stats["start_time"]

        if self.stats["start_cycle"] is not None and self.stats["current_cycle"] is not None:
            total_cycles = self.stats["current_cycle"] - self.stats["start_cycle"]
        else:
            total_cycles = 0

        return {
            "total_records": self.stats["total_records"],
            "elapsed_time": elapsed_time,
            "start_cycle": self.stats["start_cycle"],
            "current_cycle": self.stats["current_cycle"],
            "total_cycles": total_cycles,
            "cycles_per_second": total_cycles / elapsed_time if elapsed_time > 0 else 0,
            "current_history_size": len(self.state_history),
            "max_history_size": self.max_history,
            "compression_ratio": self.compression_ratio,
            "compressed_history_size": len(self.compressed_history),
            "unique_registers": sorted(self.stats["unique_registers"]),
        }

    def save_history(self, filename: str, format: str = 'pickle') -> bool:
        """
        Save state history to a file.

        Args:
            filename: Output filename
            format: File format ('pickle' or 'json')

        Returns:
            True if successful, False otherwise
        """
        if format not in ('pickle', 'json'):
            logger.error(f"Unsupported format: {format}")
            return False

        data = {
            "history": list(self.state_history),
            "compressed": list(self.compressed_history),
            "statistics": self.get_statistics()
        }

        try:
            output_dir = os.path.dirname(filename)
            if output_dir and not os.path.exists(output_dir):
                os.makedirs(output_dir)

            if format == 'pickle':
                with open(filename, 'wb') as f:
                    pickle.dump(data, f)
            else:
                with open(filename, 'w') as f:
                    json.dump(self._convert_numpy_arrays(data), f, indent=2)

        except OSError as e:
            logger.error(f"Error saving history: {e}")
            return False

        logger.info(f"Saved state history to {filename} in {format} format")
        return True

    def _convert_numpy_arrays(self, data: Any) -> Any:
        """
        Return a copy of ``data`` with numpy values replaced by plain Python ones.

        Args:
            data: Data structure to convert
        """
        if isinstance(data, dict):
            return {key: self._convert_numpy_arrays(value) for key, value in data.items()}
        if isinstance(data, (list, tuple)):
            return [self._convert_numpy_arrays(item) for item in data]
        if isinstance(data, np.ndarray):
            return data.astype(int).tolist() if data.dtype == bool else data.tolist()
        if isinstance(data, np.generic):
            return data.item()
        return data

    def load_history(self, filename: str) -> bool:
        """
        Load state history from a file.

        Args:
            filename: Input filename (.pkl/.pickle or .json)

        Returns:
            True if successful, False otherwise
        """
        _, ext = os.path.splitext(filename)

        try:
            if ext.lower() in ('.pkl', '.pickle'):
                with open(filename, 'rb') as f:
                    data = pickle.load(f)
            elif ext.lower() == '.json':
                with open(filename, 'r') as f:
                    data = json.load(f)
            else:
                logger.error(f"Unsupported file format: {ext}")
                return False
        except (OSError, pickle.UnpicklingError, json.JSONDecodeError) as e:
            logger.error(f"Error loading history: {e}")
            return False

        self.state_history = deque(data.get("history", []), maxlen=self.max_history)
        self.compressed_history = list(data.get("compressed", []))

        statistics = data.get("statistics", {})
        for stat in ("total_records", "start_cycle", "current_cycle"):
            if stat in statistics:
                self.stats[stat] = statistics[stat]

        unique_registers = set()
        for state in self.state_history:
            unique_registers.update(state.get("registers", {}).keys())
        self.stats["unique_registers"] = unique_registers

        logger.info(f"Loaded state history from {filename}")
        return True
