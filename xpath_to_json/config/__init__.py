"""Configuration module."""

import os
from pathlib import Path
from typing import Any, Dict

import yaml


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load settings from YAML file.

    Args:
        config_path: Path to settings file. If None, uses the bundled settings.yaml

    Returns:
        Settings dictionary
    """
    if config_path is None:
        config_dir = Path(__file__).parent
        config_path = config_dir / "settings.yaml"

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    config.setdefault("parser", {})
    config.setdefault("logging", {})
    config.setdefault("output", {})

    # Override with environment variables if present
    if "HTML_PARSER" in os.environ:
        config["parser"]["backend"] = os.environ["HTML_PARSER"]

    if "LOG_LEVEL" in os.environ:
        config["logging"]["level"] = os.environ["LOG_LEVEL"]

    if "OUTPUT_INDENT" in os.environ:
        config["output"]["indent"] = int(os.environ["OUTPUT_INDENT"])

    return config
