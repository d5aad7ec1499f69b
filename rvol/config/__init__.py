"""
rvol Unified Configuration

Loads all sections of config.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    LoggingConfig,
    ManualConfig,
    OracleSectionConfig,
    PairConfig,
    RvolConfig,
    load_config,
)

__all__ = [
    "LoggingConfig",
    "ManualConfig",
    "OracleSectionConfig",
    "PairConfig",
    "RvolConfig",
    "load_config",
]
