# backend/servertemp/config.py
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

# === defaults ===
DEFAULT_UPDATE_INTERVAL_S = 10 * 60.0   # 10 minutes
DEFAULT_INITIAL_DELAY_S = 1.0           # let the host finish starting up
DEFAULT_PLUGIN_HEADER = "ServerTempPlugin"
DEFAULT_PROBE_TIMEOUT_S = 10.0
DEFAULT_THERMAL_ZONE_PATH = "/sys/class/thermal/thermal_zone0/temp"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

ENV_FILE = Path(__file__).resolve().parents[1] / ".env"


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    update_interval_s: float = DEFAULT_UPDATE_INTERVAL_S
    initial_delay_s: float = DEFAULT_INITIAL_DELAY_S
    plugin_header: str = DEFAULT_PLUGIN_HEADER
    probe_timeout_s: float = DEFAULT_PROBE_TIMEOUT_S
    thermal_zone_path: str = DEFAULT_THERMAL_ZONE_PATH
    log_level: str = "INFO"
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from SERVER_TEMP_* environment variables."""
        interval = _env_float("SERVER_TEMP_UPDATE_INTERVAL_S", DEFAULT_UPDATE_INTERVAL_S)
        if interval <= 0:
            raise ValueError("SERVER_TEMP_UPDATE_INTERVAL_S must be > 0")
        return cls(
            update_interval_s=interval,
            initial_delay_s=_env_float("SERVER_TEMP_INITIAL_DELAY_S", DEFAULT_INITIAL_DELAY_S),
            plugin_header=os.getenv("SERVER_TEMP_PLUGIN_HEADER", DEFAULT_PLUGIN_HEADER),
            probe_timeout_s=_env_float("SERVER_TEMP_PROBE_TIMEOUT_S", DEFAULT_PROBE_TIMEOUT_S),
            thermal_zone_path=os.getenv("SERVER_TEMP_THERMAL_ZONE_PATH", DEFAULT_THERMAL_ZONE_PATH),
            log_level=os.getenv("SERVER_TEMP_LOG_LEVEL", "INFO").upper(),
            host=os.getenv("SERVER_TEMP_HOST", DEFAULT_HOST),
            port=int(_env_float("SERVER_TEMP_PORT", DEFAULT_PORT, minimum=1)),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Local dev: pick up backend/.env without overriding real env vars
    if ENV_FILE.exists():
        load_dotenv(dotenv_path=ENV_FILE, override=False)
    return Settings.from_env()
