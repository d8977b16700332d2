"""YAML configuration loading for relayfeed.

Uses ``yaml.safe_load`` so configuration files can only contain plain YAML
types. Used by
[Timeline.from_yaml()][relayfeed.client.timeline.Timeline.from_yaml] and the
CLI to load timeline configuration.

Examples:
    ```python
    from relayfeed.core.yaml import load_yaml

    config = load_yaml("config/timeline.yaml")
    ```
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigurationError


def load_yaml(config_path: str | Path) -> dict[str, Any]:
    """Load and parse a YAML configuration file.

    Args:
        config_path: Path to the YAML file (absolute or relative).

    Returns:
        Parsed configuration as a dictionary. Returns an empty dict if the
        file exists but contains no data.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file contains invalid YAML syntax.
        ConfigurationError: If the top-level document is not a mapping.

    Warning:
        The structure of the returned dictionary is not validated here.
        Pass it to [TimelineConfig][relayfeed.client.configs.TimelineConfig]
        for schema validation.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file must contain a mapping, got {type(data).__name__}: {config_path}"
        )
    return data
