"""
Configuration management for the CHIP-8 Emulator.

This module provides tools for loading, validating, and managing configuration settings
for the emulator and its headless runner. It supports JSON and YAML files and validates
user settings before merging them onto the defaults.
"""

import os
import json
import logging
import copy
from typing import Dict, Any, Optional, List
import yaml

from ..constants import DEFAULT_CYCLES_PER_FRAME, DEFAULT_FRAMES, LOG_LEVELS
from ..system_configs import SYSTEM_CONFIGS

logger = logging.getLogger("Chip8Emulator.ConfigManager")

class ConfigManager:
    """
    Configuration management for the CHIP-8 Emulator.

    Holds a nested configuration dictionary built from defaults plus any
    user file or dictionary, and gives dotted-path access to it.
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Path to configuration file (None for default values)
        """
        self.defaults = {
            "system": "chip8",
            "cpu": {
                "cycles_per_frame": DEFAULT_CYCLES_PER_FRAME,
                "random_seed": None
            },
            "logging": {
                "level": "INFO",
                "file": None
            },
            "run": {
                "frames": DEFAULT_FRAMES,
                "show_screen": False
            }
        }

        self.config = copy.deepcopy(self.defaults)

        # Set of keys that have been modified from defaults
        self.modified_keys = set()

        if config_path:
            self.load_config(config_path)

        logger.debug("ConfigManager initialized")

    def load_config(self, config_path: str) -> bool:
        """
        Load configuration from file.

        Args:
            config_path: Path to configuration file

        Returns:
            True if configuration loaded successfully, False otherwise
        """
        if not os.path.exists(config_path):
            logger.error(f"Configuration file not found: {config_path}")
            return False

        _, ext = os.path.splitext(config_path)
        ext = ext.lower()

        try:
            if ext == '.json':
                with open(config_path, 'r') as f:
                    user_config = json.load(f)
            elif ext in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    user_config = yaml.safe_load(f) or {}
            else:
                logger.error(f"Unsupported configuration format: {ext}")
                return False
        except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
            logger.error(f"Error loading configuration: {e}")
            return False

        if not isinstance(user_config, dict):
            logger.error(f"Configuration root must be a mapping: {config_path}")
            return False

        validation_errors = self.validate_config(user_config)
        if validation_errors:
            for error in validation_errors:
                logger.error(f"Configuration validation error: {error}")
            return False

        self._merge_config(user_config)

        logger.info(f"Configuration loaded from {config_path}")
        return True

    def _merge_config(self, user_config: Dict[str, Any], path: str = "") -> None:
        """
        Merge user configuration with defaults, tracking modified keys.

        Args:
            user_config: User configuration dictionary
            path: Current key path for tracking (internal use)
        """
        target = self.config
        if path:
            for k in path.split('.'):
                target = target[k]

        for key, value in user_config.items():
            current_path = f"{path}.{key}" if path else key

            if isinstance(value, dict) and key in target and isinstance(target[key], dict):
                self._merge_config(value, current_path)
            else:
                target[key] = value
                self.modified_keys.add(current_path)

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        for section in ("cpu", "logging", "run"):
            if section in config and not isinstance(config[section], dict):
                errors.append(f"Invalid {section}: {config[section]}. Must be a mapping")
        if errors:
            return errors

        if "system" in config and config["system"] not in SYSTEM_CONFIGS:
            valid_systems = ", ".join(SYSTEM_CONFIGS.keys())
            errors.append(f"Invalid system type: {config['system']}. Valid options: {valid_systems}")

        if "cpu" in config:
            cpu_config = config["cpu"]

            if "cycles_per_frame" in cpu_config:
                value = cpu_config["cycles_per_frame"]
                if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                    errors.append(f"Invalid cpu.cycles_per_frame: {value}. Must be a positive integer")

            if "random_seed" in cpu_config:
                value = cpu_config["random_seed"]
                if value is not None and (not isinstance(value, int) or isinstance(value, bool) or value < 0):
                    errors.append(f"Invalid cpu.random_seed: {value}. Must be a non-negative integer or null")

        if "logging" in config:
            log_config = config["logging"]

            if "level" in log_config and log_config["level"] not in LOG_LEVELS:
                valid_levels = ", ".join(LOG_LEVELS)
                errors.append(f"Invalid logging.level: {log_config['level']}. Valid options: {valid_levels}")

        if "run" in config:
            run_config = config["run"]

            if "frames" in run_config:
                value = run_config["frames"]
                if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                    errors.append(f"Invalid run.frames: {value}. Must be a non-negative integer")

            if "show_screen" in run_config and not isinstance(run_config["show_screen"], bool):
                errors.append(f"Invalid run.show_screen: {run_config['show_screen']}. Must be a boolean")

        return errors

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'cpu.cycles_per_frame')
            default: Default value if key not found

        Returns:
            Configuration value or default if not found
        """
        value = self.config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value by key path.

        Args:
            key: Configuration key path (e.g., 'cpu.cycles_per_frame')
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config or not isinstance(config[k], dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value
        self.modified_keys.add(key)

        logger.debug(f"Configuration updated: {key} = {value}")

    def reset(self, key: Optional[str] = None) -> None:
        """
        Reset configuration to defaults.

        Args:
            key: Key path to reset (None for all)
        """
        if key is None:
            self.config = copy.deepcopy(self.defaults)
            self.modified_keys.clear()
            logger.info("Configuration reset to defaults")
            return

        keys = key.split('.')
        config = self.config
        for k in keys[:-1]:
            if k not in config:
                return
            config = config[k]

        config[keys[-1]] = self._get_default_value(keys)
        self.modified_keys.discard(key)
        logger.info(f"Configuration key reset to default: {key}")

    def _get_default_value(self, keys: List[str]) -> Any:
        value = self.defaults
        for k in keys:
            if k not in value:
                return None
            value = value[k]
        return copy.deepcopy(value)

    def save_config(self, config_path: str, format: str = 'json') -> bool:
        """
        Save current configuration to file.

        Args:
            config_path: Path to output file
            format: Output format ('json' or 'yaml')

        Returns:
            True if saved successfully, False otherwise
        """
        if format.lower() not in ['json', 'yaml', 'yml']:
            logger.error(f"Unsupported configuration format: {format}")
            return False

        try:
            directory = os.path.dirname(config_path)
            if directory and not os.path.exists(directory):
                os.makedirs(directory)

            with open(config_path, 'w') as f:
                if format.lower() == 'json':
                    json.dump(self.config, f, indent=2)
                else:
                    yaml.safe_dump(self.config, f, default_flow_style=False)

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")
            return False

        logger.info(f"Configuration saved to {config_path}")
        return True

    def get_modified_config(self) -> Dict[str, Any]:
        """
        Get a dictionary containing only modified configuration values.

        Returns:
            Dictionary with modified values
        """
        modified_config = {}

        for key in self.modified_keys:
            keys = key.split('.')
            current = modified_config
            for k in keys[:-1]:
                current = current.setdefault(k, {})
            current[keys[-1]] = self.get(key)

        return modified_config

    def load_from_dict(self, config_dict: Dict[str, Any]) -> bool:
        """
        Load configuration from dictionary.

        Args:
            config_dict: Configuration dictionary

        Returns:
            True if loaded successfully, False otherwise
        """
        validation_errors = self.validate_config(config_dict)
        if validation_errors:
            for error in validation_errors:
                logger.error(f"Configuration validation error: {error}")
            return False

        self._merge_config(config_dict)

        logger.debug("Configuration loaded from dictionary")
        return True

    def get_system_config(self) -> Dict[str, Any]:
        """
        Get the machine configuration with CPU overrides applied.

        Returns:
            System configuration dictionary
        """
        system_type = self.get("system", "chip8")
        config = copy.deepcopy(SYSTEM_CONFIGS.get(system_type, {}))
        config["cycles_per_frame"] = self.get("cpu.cycles_per_frame", DEFAULT_CYCLES_PER_FRAME)
        config["random_seed"] = self.get("cpu.random_seed")
        return config

    def as_dict(self) -> Dict[str, Any]:
        """
        Get full configuration as dictionary.

        Returns:
            Configuration dictionary
        """
        return copy.deepcopy(self.config)
