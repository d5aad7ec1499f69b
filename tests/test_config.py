"""
Tests for configuration loading, the CLI and the logging helpers.
"""

import json
from decimal import Decimal

import pytest
from click.testing import CliRunner

from rvol.cli.main import cli, read_prices
from rvol.config import LoggingConfig, PairConfig, RvolConfig, load_config
from rvol.exceptions import ConfigurationError
from rvol.logger import LogManager, TerminalSafeFormatter
from rvol.oracle import OracleConfig

ENV_VARS = (
    "RVOL_PERIOD",
    "RVOL_COMMIT_PHASE_DURATION",
    "RVOL_WINDOW_SIZE",
    "RVOL_LOG_LEVEL",
    "RVOL_ADMIN",
    "RVOL_CONFIG",
)

CONFIG_TOML = """
[oracle]
period = 3600
commit_phase_duration = 300
window_size = 24

[logging]
level = "debug"
file_output = false

[manual]
admin = "0xaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"

[[pairs]]
pool = "0x8ad599c3a0ff1de082011efddc58f1908eb6e6d8"
base = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
quote = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "rvol.toml"
    path.write_text(CONFIG_TOML)
    return path


# ============================================================================
#  CONFIG LOADER
# ============================================================================

class TestRvolConfig:

    def test_defaults(self):
        cfg = RvolConfig()
        assert cfg.oracle.period == 86400
        assert cfg.oracle.commit_phase_duration == 1800
        assert cfg.oracle.window_size == 65535
        assert cfg.logging.level == "INFO"
        assert cfg.pairs == []
        assert cfg.validate()

    def test_from_file(self, config_file):
        cfg = RvolConfig.from_file(str(config_file))
        assert cfg.oracle.period == 3600
        assert cfg.oracle.commit_phase_duration == 300
        assert cfg.oracle.window_size == 24
        assert cfg.logging.level == "DEBUG"
        assert cfg.logging.file_output is False
        assert len(cfg.pairs) == 1
        assert cfg.pairs[0].base == "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
        assert cfg.validate()

    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = RvolConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg.oracle.period == 86400

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "broken.toml"
        path.write_text("[oracle\nperiod = ")
        with pytest.raises(ConfigurationError, match="Invalid TOML"):
            RvolConfig.from_file(str(path))

    def test_env_overrides_file(self, config_file, monkeypatch):
        monkeypatch.setenv("RVOL_PERIOD", "7200")
        monkeypatch.setenv("RVOL_WINDOW_SIZE", "48")
        monkeypatch.setenv("RVOL_LOG_LEVEL", "warning")
        cfg = RvolConfig.from_file(str(config_file))
        assert cfg.oracle.period == 7200
        assert cfg.oracle.window_size == 48
        assert cfg.oracle.commit_phase_duration == 300
        assert cfg.logging.level == "WARNING"

    def test_env_not_integer(self, monkeypatch):
        monkeypatch.setenv("RVOL_PERIOD", "daily")
        with pytest.raises(ConfigurationError, match="RVOL_PERIOD"):
            RvolConfig().apply_env()

    def test_load_config_uses_env_path(self, config_file, monkeypatch):
        monkeypatch.setenv("RVOL_CONFIG", str(config_file))
        assert load_config().oracle.period == 3600

    def test_load_config_default_location(self, tmp_path):
        (tmp_path / "config.toml").write_text("[oracle]\nperiod = 600\n")
        assert load_config().oracle.period == 600

    def test_to_oracle_config(self, config_file):
        oracle_cfg = RvolConfig.from_file(str(config_file)).to_oracle_config()
        assert isinstance(oracle_cfg, OracleConfig)
        assert oracle_cfg.period == 3600
        assert oracle_cfg.annualization_constant == 93

    def test_validate_bad_period(self):
        cfg = RvolConfig.from_dict({"oracle": {"period": 0}})
        with pytest.raises(ConfigurationError, match="!period"):
            cfg.validate()

    def test_validate_commit_phase_too_wide(self):
        cfg = RvolConfig.from_dict({"oracle": {"period": 3000, "commit_phase_duration": 1800}})
        with pytest.raises(ConfigurationError, match="at most half the period"):
            cfg.validate()

    def test_validate_bad_level(self):
        cfg = RvolConfig(logging=LoggingConfig(level="LOUD"))
        with pytest.raises(ConfigurationError, match="log level"):
            cfg.validate()

    def test_validate_bad_admin(self):
        cfg = RvolConfig.from_dict({"manual": {"admin": "0x1234"}})
        with pytest.raises(ConfigurationError, match="admin"):
            cfg.validate()

    def test_validate_bad_pair(self):
        cfg = RvolConfig(pairs=[PairConfig(pool="0x01", base="0x02", quote="0x03")])
        with pytest.raises(ConfigurationError, match="pool"):
            cfg.validate()

    def test_pair_missing_key(self):
        with pytest.raises(ConfigurationError, match="quote"):
            RvolConfig.from_dict({"pairs": [{"pool": "0x01", "base": "0x02"}]})

    def test_to_dict(self, config_file):
        data = RvolConfig.from_file(str(config_file)).to_dict()
        assert data["oracle"]["window_size"] == 24
        assert data["pairs"][0]["quote"] == "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"


# ============================================================================
#  CLI
# ============================================================================

class TestCli:

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "rvol" in result.output

    def test_show_config(self, config_file):
        result = CliRunner().invoke(cli, ["show-config", "--config", str(config_file)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["oracle"]["period"] == 3600
        assert data["oracle"]["annualization_constant"] == 93

    def test_show_config_rejects_invalid(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[oracle]\nwindow_size = 0\n")
        result = CliRunner().invoke(cli, ["show-config", "--config", str(path)])
        assert result.exit_code != 0
        assert "Invalid configuration" in result.output

    def test_simulate(self, tmp_path):
        cfg = tmp_path / "sim.toml"
        cfg.write_text('[logging]\nfile_output = false\nlevel = "WARNING"\n')
        prices = tmp_path / "prices.csv"
        prices.write_text("price\n2000\n2020\n# holiday\n\n1990\n2010\n")

        result = CliRunner().invoke(
            cli, ["simulate", str(prices), "--config", str(cfg)], env={"COLUMNS": "200"}
        )
        assert result.exit_code == 0, result.output
        assert "rvol simulation (4 periods, period=86400s)" in result.output
        assert "%" in result.output

    def test_simulate_short_period(self, tmp_path):
        cfg = tmp_path / "sim.toml"
        cfg.write_text('[logging]\nfile_output = false\nlevel = "WARNING"\n')
        prices = tmp_path / "prices.csv"
        prices.write_text("100\n101\n99\n")

        result = CliRunner().invoke(
            cli,
            ["simulate", str(prices), "--config", str(cfg), "--period", "3600", "--window", "2"],
            env={"COLUMNS": "200"},
        )
        assert result.exit_code == 0, result.output
        assert "period=3600s" in result.output

    def test_simulate_invalid_override(self, tmp_path):
        cfg = tmp_path / "sim.toml"
        cfg.write_text('[logging]\nfile_output = false\n')
        prices = tmp_path / "prices.csv"
        prices.write_text("100\n")
        result = CliRunner().invoke(cli, ["simulate", str(prices), "--config", str(cfg), "--period", "0"])
        assert result.exit_code != 0
        assert "Invalid configuration" in result.output

    def test_simulate_empty_file(self, tmp_path):
        cfg = tmp_path / "sim.toml"
        cfg.write_text('[logging]\nfile_output = false\n')
        prices = tmp_path / "prices.csv"
        prices.write_text("price\n")
        result = CliRunner().invoke(cli, ["simulate", str(prices), "--config", str(cfg)])
        assert result.exit_code != 0
        assert "No prices" in result.output


class TestReadPrices:

    def test_header_comments_and_columns(self, tmp_path):
        path = tmp_path / "p.csv"
        path.write_text("close,volume\n# comment\n1.5,10\n\n2.25,11\n")
        assert read_prices(str(path)) == [Decimal("1.5"), Decimal("2.25")]

    def test_bad_row_after_data(self, tmp_path):
        path = tmp_path / "p.csv"
        path.write_text("1.5\nabc\n")
        with pytest.raises(Exception, match="not a price"):
            read_prices(str(path))

    def test_non_positive(self, tmp_path):
        path = tmp_path / "p.csv"
        path.write_text("0\n")
        with pytest.raises(Exception, match="positive"):
            read_prices(str(path))


# ============================================================================
#  LOGGING
# ============================================================================

class TestLogging:

    def test_formatter_strips_control_sequences(self):
        assert TerminalSafeFormatter.sanitize("\x1b[31mCOMMIT\x1b[0m\r ok\x07") == "COMMIT ok"

    def test_invalid_format_falls_back(self):
        default = LogManager.validate_log_format("")
        assert LogManager.validate_log_format("%(message") == default

    def test_valid_format_kept(self):
        fmt = "%(levelname)s %(message)s"
        assert LogManager.validate_log_format(fmt) == fmt

    def test_singleton(self):
        assert LogManager() is LogManager()
