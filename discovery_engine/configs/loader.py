"""
Configuration loading and validation.

This module handles loading of YAML configuration files and
validates that all required fields are present.
"""

import logging
from pathlib import Path
from typing import Dict, Any, List

import yaml

logger = logging.getLogger(__name__)

WEIGHT_KEYS = ["lifestyle", "budget", "location", "preferences",
               "deal_breakers", "interests", "age"]


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        filepath: Path to the YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    logger.info(f"Loading configuration from {filepath}")
    with open(filepath, "r") as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Configuration file is empty: {filepath}")

    return config


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of warnings/errors.

    Args:
        config: Configuration dictionary

    Returns:
        List of warning/error messages (empty if valid)
    """
    issues = []

    required_sections = ["global", "scoring", "deck", "repository", "storage"]
    for section in required_sections:
        if section not in config:
            issues.append(f"Missing required section: {section}")

    # Scoring weights must cover every category and sum to 1
    if "scoring" in config and "weights" in config["scoring"]:
        weights = config["scoring"]["weights"]
        missing = [k for k in WEIGHT_KEYS if k not in weights]
        if missing:
            issues.append(f"Missing scoring weights: {missing}")
        unknown = [k for k in weights if k not in WEIGHT_KEYS]
        if unknown:
            issues.append(f"Unknown scoring weights: {unknown}")
        total = sum(float(v) for v in weights.values())
        if abs(total - 1.0) > 1e-6:
            issues.append(f"Scoring weights don't sum to 1: {total}")
        negative = [k for k, v in weights.items() if float(v) < 0]
        if negative:
            issues.append(f"Scoring weights must be non-negative: {negative}")

    if "deck" in config:
        deck = config["deck"]
        for key in ["page_size", "refill_size", "low_watermark"]:
            if key in deck and int(deck[key]) < 1:
                issues.append(f"deck.{key} must be >= 1, got {deck[key]}")

    if "repository" in config:
        latency = config["repository"].get("latency_ms", 0)
        if latency < 0:
            issues.append(f"repository.latency_ms must be >= 0, got {latency}")

    if "global" in config:
        if "random_seed" not in config["global"]:
            issues.append("Missing global.random_seed (required for synthetic profiles)")

    return issues


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "scoring.weights.budget")
        default: Default value if path doesn't exist

    Returns:
        Configuration value or default
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value
