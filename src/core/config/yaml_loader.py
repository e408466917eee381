# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""YAML policy file loader utilities.

Analysis thresholds and marker lexicons are shipped as YAML so they can
be tuned without code changes. Files are optional: a deployment may
override only the keys it cares about, and the loader deep-merges the
override onto the built-in defaults.

Example:
    >>> from pathlib import Path
    >>> from src.core.config.yaml_loader import load_yaml, deep_merge
    >>> overrides = load_yaml(Path("config/writing_analysis/thresholds.yaml"))
    >>> merged = deep_merge({"anomaly": {"bulk_text_chars": 500}}, overrides)
"""

from pathlib import Path
from typing import Any

import yaml


class YAMLLoadError(Exception):
    """Raised when YAML file cannot be loaded or parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        """Initialize YAMLLoadError.

        Args:
            path: Path to the YAML file that failed to load.
            reason: Description of why the file failed to load.
        """
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load YAML file '{path}': {reason}")


def load_yaml(path: Path) -> dict[str, Any]:
    """Load a single YAML file and return its contents as a dictionary.

    Args:
        path: Path to the YAML file to load.

    Returns:
        Dictionary containing the parsed YAML contents.
        Empty dict if file is empty.

    Raises:
        YAMLLoadError: If the file doesn't exist, cannot be read,
            or contains invalid YAML.
    """
    if not path.is_file():
        raise YAMLLoadError(path, "File does not exist")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise YAMLLoadError(path, f"Cannot read file: {e}") from e

    try:
        parsed = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise YAMLLoadError(path, f"Invalid YAML syntax: {e}") from e

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise YAMLLoadError(
            path, f"YAML root must be a mapping, got {type(parsed).__name__}"
        )

    return parsed


def load_optional_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML file that may legitimately be absent.

    A missing file yields an empty mapping. A file that exists but is
    unreadable or malformed still raises.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed mapping, or empty dict when the file does not exist.

    Raises:
        YAMLLoadError: If the file exists but cannot be parsed.
    """
    if not path.exists():
        return {}
    return load_yaml(path)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries, with override taking precedence.

    Nested dictionaries are merged recursively. For non-dict values,
    including lists, the override value replaces the base value.

    Args:
        base: The base dictionary to merge into.
        override: The dictionary whose values take precedence.

    Returns:
        A new dictionary containing the merged result.
        Neither input dictionary is modified.

    Example:
        >>> base = {"a": 1, "b": {"c": 2, "d": 3}}
        >>> override = {"b": {"c": 10}, "e": 5}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'c': 10, 'd': 3}, 'e': 5}
    """
    result: dict[str, Any] = base.copy()

    for key, override_value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(override_value, dict)
        ):
            result[key] = deep_merge(result[key], override_value)
        else:
            result[key] = override_value

    return result
