"""Configuration loading utilities for calibration files."""

from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


class ConfigLoader:
    """Read, merge and write YAML calibration files."""

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize config loader.

        Args:
            config_dir: Directory searched for relative calibration paths.
        """
        self.config_dir = Path(config_dir) if config_dir else Path("configs")

    def _resolve(self, config_path: Union[str, Path]) -> Path:
        config_path = Path(config_path)

        if config_path.is_absolute() or config_path.exists():
            return config_path
        # Already rooted at config_dir
        if str(config_path).startswith(str(self.config_dir)):
            return config_path
        return self.config_dir / config_path

    def load(self, config_path: Union[str, Path]) -> Any:
        """
        Load a calibration file.

        An empty file loads as an empty mapping.

        Args:
            config_path: Path to the YAML file, absolute or relative to config_dir.

        Returns:
            The top-level node of the file with includes expanded.

        Raises:
            FileNotFoundError: If the file does not exist.
            yaml.YAMLError: If the file is not valid YAML.
        """
        config_path = self._resolve(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Calibration file not found: {config_path}")

        with open(config_path, "r") as f:
            config = yaml.safe_load(f)

        if config is None:
            return {}

        return self._process_includes(config, config_path.parent)

    def _process_includes(self, config: Any, base_dir: Path) -> Any:
        """
        Expand ``"!include <file>"`` values, e.g. ``color: "!include color.yaml"``.

        The value is a quoted string so that ``safe_load`` accepts it.
        """
        if not isinstance(config, dict):
            return config

        result = {}
        for key, value in config.items():
            if isinstance(value, str) and value.startswith("!include "):
                result[key] = self.load(base_dir / value[len("!include "):].strip())
            elif isinstance(value, dict):
                result[key] = self._process_includes(value, base_dir)
            else:
                result[key] = value

        return result

    def merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Deep merge ``override`` on top of ``base``.

        Nested mappings merge key by key; any other value replaces the base
        value. Neither input is modified.
        """
        result = dict(base)

        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self.merge(result[key], value)
            else:
                result[key] = value

        return result

    def save(self, config: Dict[str, Any], path: Union[str, Path]) -> None:
        """
        Write a mapping to a YAML file, creating parent directories.

        Args:
            config: Mapping of plain Python values.
            path: Output file path.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)
