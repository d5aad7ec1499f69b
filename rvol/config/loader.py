"""
rvol TOML Configuration Loader

Loads all sections of config.toml at startup with environment variable
overrides (dataclass + from_dict + from_file).

Environment variable mapping:
    [oracle] period                 → RVOL_PERIOD
    [oracle] commit_phase_duration  → RVOL_COMMIT_PHASE_DURATION
    [oracle] window_size            → RVOL_WINDOW_SIZE
    [logging] level                 → RVOL_LOG_LEVEL
    [manual] admin                  → RVOL_ADMIN
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

try:
    import tomllib as tomli  # Python 3.11+
except ImportError:
    import tomli  # type: ignore[no-redef]

from eth_utils import is_address

from ..constants import COMMIT_PHASE_DURATION, DEFAULT_PERIOD, DEFAULT_WINDOW_SIZE
from ..exceptions import ConfigurationError
from ..oracle.vol_oracle import OracleConfig

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------

@dataclass
class OracleSectionConfig:
    """[oracle] section."""
    period: int = DEFAULT_PERIOD
    commit_phase_duration: int = COMMIT_PHASE_DURATION
    window_size: int = DEFAULT_WINDOW_SIZE

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OracleSectionConfig":
        return cls(
            period=data.get("period", DEFAULT_PERIOD),
            commit_phase_duration=data.get("commit_phase_duration", COMMIT_PHASE_DURATION),
            window_size=data.get("window_size", DEFAULT_WINDOW_SIZE),
        )

    def apply_env(self) -> None:
        """Override from environment variables."""
        if v := os.environ.get("RVOL_PERIOD"):
            self.period = _env_int("RVOL_PERIOD", v)
        if v := os.environ.get("RVOL_COMMIT_PHASE_DURATION"):
            self.commit_phase_duration = _env_int("RVOL_COMMIT_PHASE_DURATION", v)
        if v := os.environ.get("RVOL_WINDOW_SIZE"):
            self.window_size = _env_int("RVOL_WINDOW_SIZE", v)


@dataclass
class LoggingConfig:
    """[logging] section."""
    level: str = "INFO"
    file_output: bool = True
    log_file: str = "logs/rvol.log"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingConfig":
        return cls(
            level=str(data.get("level", "INFO")).upper(),
            file_output=data.get("file_output", True),
            log_file=data.get("log_file", "logs/rvol.log"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("RVOL_LOG_LEVEL"):
            self.level = v.upper()


@dataclass
class ManualConfig:
    """[manual] section."""
    admin: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ManualConfig":
        return cls(admin=data.get("admin", ""))

    def apply_env(self) -> None:
        if v := os.environ.get("RVOL_ADMIN"):
            self.admin = v


@dataclass
class PairConfig:
    """One [[pairs]] entry."""
    pool: str
    base: str
    quote: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PairConfig":
        try:
            return cls(pool=data["pool"], base=data["base"], quote=data["quote"])
        except KeyError as e:
            raise ConfigurationError(f"[[pairs]] entry missing {e.args[0]!r}") from e


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass
class RvolConfig:
    """Complete rvol configuration."""
    oracle: OracleSectionConfig = field(default_factory=OracleSectionConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    manual: ManualConfig = field(default_factory=ManualConfig)
    pairs: List[PairConfig] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RvolConfig":
        return cls(
            oracle=OracleSectionConfig.from_dict(data.get("oracle", {})),
            logging=LoggingConfig.from_dict(data.get("logging", {})),
            manual=ManualConfig.from_dict(data.get("manual", {})),
            pairs=[PairConfig.from_dict(p) for p in data.get("pairs", [])],
        )

    @classmethod
    def from_file(cls, config_path: str) -> "RvolConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides).
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.oracle.apply_env()
        self.logging.apply_env()
        self.manual.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        self.to_oracle_config()
        if self.logging.level not in LOG_LEVELS:
            raise ConfigurationError(f"Invalid log level: {self.logging.level}")
        if self.manual.admin and not is_address(self.manual.admin):
            raise ConfigurationError(f"Invalid admin address: {self.manual.admin}")
        for pair in self.pairs:
            for name in ("pool", "base", "quote"):
                if not is_address(getattr(pair, name)):
                    raise ConfigurationError(f"Invalid {name} address: {getattr(pair, name)}")
        return True

    def to_oracle_config(self) -> OracleConfig:
        return OracleConfig(
            period=self.oracle.period,
            commit_phase_duration=self.oracle.commit_phase_duration,
            window_size=self.oracle.window_size,
        )

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics, NOT for re-creating TOML)."""
        return {
            "oracle": {
                "period": self.oracle.period,
                "commit_phase_duration": self.oracle.commit_phase_duration,
                "window_size": self.oracle.window_size,
            },
            "logging": {
                "level": self.logging.level,
                "file_output": self.logging.file_output,
                "log_file": self.logging.log_file,
            },
            "manual": {
                "admin": self.manual.admin,
            },
            "pairs": [
                {"pool": p.pool, "base": p.base, "quote": p.quote} for p in self.pairs
            ],
        }


def _env_int(name: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> RvolConfig:
    """
    Load rvol configuration.

    Resolution order:
        1. Explicit *path* argument
        2. RVOL_CONFIG env var
        3. ./config.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("RVOL_CONFIG", "config.toml")

    return RvolConfig.from_file(path)
