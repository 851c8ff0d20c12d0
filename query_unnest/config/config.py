"""Configuration management for the plan rewriter."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml


@dataclass
class OptimizerConfig:
    """Configuration for the rewriting constructors."""

    enable_hoisting: bool = True
    enable_decorrelation: bool = True
    check_invariants: bool = True  # Fail fast on caller bugs (duplicate ids, bad projections)


@dataclass
class LoggingConfig:
    """Configuration for logging output."""

    level: str = "INFO"
    structured: bool = False
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""

    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(config_path: str) -> Config:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Parsed configuration

    Example YAML format:
        optimizer:
          enable_hoisting: true
          enable_decorrelation: true
          check_invariants: true

        logging:
          level: DEBUG
          structured: false
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Parse optimizer config
    optimizer_data = data.get("optimizer") or {}
    optimizer = OptimizerConfig(**optimizer_data)

    # Parse logging config
    logging_data = data.get("logging") or {}
    logging_config = LoggingConfig(**logging_data)

    return Config(optimizer=optimizer, logging=logging_config)
