"""CLI module for protosdk.

This module provides the command-line interface for SDK generation.
It supports CLI arguments, environment variables and a YAML config file.
"""

from .main import (
    Config,
    build_config,
    cli,
    evaluate_boolean,
    load_config_file,
    main,
    run_generation,
)

__all__ = [
    "cli",
    "main",
    "Config",
    "build_config",
    "load_config_file",
    "run_generation",
    "evaluate_boolean",
]
