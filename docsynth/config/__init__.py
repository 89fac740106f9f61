"""
Configuration for the document image generator.
"""

from .config import (
    Config,
    GenerationConfig,
    InputConfig,
    OutputConfig,
    build_parser,
    load_config,
    merge_configs,
    parse_args,
)

__all__ = [
    "Config",
    "GenerationConfig",
    "InputConfig",
    "OutputConfig",
    "build_parser",
    "load_config",
    "merge_configs",
    "parse_args",
]
