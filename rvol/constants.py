"""
rvol Constants

This module consolidates all global constants and environment configuration
used throughout the codebase. Constants are organized by category for easy
reference and maintenance.
"""
import ast
from dotenv import dotenv_values

# =============================================================================
# ENVIRONMENT CONFIGURATION
# =============================================================================
# Load environment variables once at module import
_config = dotenv_values(".env")

LOGGER_DEFAULTS = {
    'LOG_LEVEL':                       'INFO',
    'LOG_FORMAT':                      '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
    'LOG_DATE_FORMAT':                 '%Y-%m-%dT%H:%M:%S',
    'LOG_CONSOLE_HIGHLIGHTING':        'True',
    'LOG_FILE_OUTPUT':                 'True',
}

LOG_MAX_FILE_SIZE = 10 * 1024 * 1024 # 10MB
LOG_BACKUP_COUNT = 5


# WARNING: THE VALUES BELOW DEFINE THE ORACLE'S NUMERIC CONTRACT. CHANGING THEM MAKES
# ACCUMULATORS PRODUCED BY THIS BUILD INCOMPARABLE WITH ONES PRODUCED BY OTHER BUILDS.

# ==================================================================================
# SCHEDULING
# ==================================================================================
SECONDS_PER_YEAR = 31_536_000  # 365 days
COMMIT_PHASE_DURATION = 1800  # 30 minutes either side of every period boundary
DEFAULT_PERIOD = 86400  # one sample per day


# ==================================================================================
# FIXED-POINT SCALES
# ==================================================================================
WAD = 10 ** 18  # periodReturn and ln() scale
LOG_RETURN_SCALE = 10 ** 8  # log-returns, mean and stdev scale
WAD_TO_LOG_RETURN = WAD // LOG_RETURN_SCALE


# ==================================================================================
# ACCUMULATOR FIELD WIDTHS
# ==================================================================================
MAX_SAMPLE_COUNT = 2 ** 16 - 1  # uint16
MEAN_BOUND = 2 ** 95  # |mean| < 2^95 (int96)
M2_BOUND = 2 ** 112  # m2 < 2^112 (uint112)
DEFAULT_WINDOW_SIZE = MAX_SAMPLE_COUNT


# ==================================================================================
# MANUAL ORACLE BOUNDS (1e8 scale)
# ==================================================================================
MIN_MANUAL_VOL = 50 * 10 ** 6  # 50%
MAX_MANUAL_VOL = 400 * 10 ** 6  # 400%


# ==================================================================================
# ADDRESSES
# ==================================================================================
ZERO_ADDRESS = '0x' + '0' * 40


# ==================================================================================
# CONFIGURATION WRAPPERS
# ==================================================================================
class ConfigString(str):
    """
    String subclass that stores a default value.
    """
    def __new__(cls, value, default):
        obj = str.__new__(cls, value)
        obj._default = default
        return obj

    def default(self):
        return self._default

class ConfigBool(int):
    """
    Int subclass acting as a boolean that stores a default value.
    """
    def __new__(cls, value, default):
        obj = int.__new__(cls, bool(value))
        obj._default = default
        return obj

    def default(self):
        return self._default

    def __repr__(self):
        return str(bool(self))

    def __str__(self):
        return str(bool(self))

    def __eq__(self, other):
        return bool(self) == other

    __hash__ = int.__hash__


# ==================================================================================
# DYNAMIC CONFIGURATION LOADING
# ==================================================================================
namespace = globals()

def parse_bool(v):
    """
    Convert "True"/"False" (any casing, with surrounding whitespace) into bool.
    Avoids exceptions by only calling ast.literal_eval for known literals.
    """
    if not isinstance(v, str):
        return v
    s = v.strip()
    if not s:
        return v
    if s.casefold() in {"true", "false"}:
        # ast.literal_eval expects "True"/"False"
        return ast.literal_eval(s.title())
    return v

for key, default_raw in LOGGER_DEFAULTS.items():
    # dotenv_values returns strings or None. None is treated as missing.
    raw = _config.get(key)
    value_raw = default_raw if raw is None else raw

    # Parses only boolean-literals. Leaves other values untouched.
    value = parse_bool(value_raw)
    default_val = parse_bool(default_raw)

    if isinstance(value, bool):
        namespace[key] = ConfigBool(value, default_val)
    else:
        namespace[key] = ConfigString(value_raw, default_val)
