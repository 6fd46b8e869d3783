import pytest

from servertemp.config import Settings


def test_defaults(monkeypatch):
    for name in ("SERVER_TEMP_UPDATE_INTERVAL_S", "SERVER_TEMP_INITIAL_DELAY_S",
                 "SERVER_TEMP_PLUGIN_HEADER", "SERVER_TEMP_PROBE_TIMEOUT_S"):
        monkeypatch.delenv(name, raising=False)
    s = Settings.from_env()
    assert s.update_interval_s == 600
    assert s.initial_delay_s == 1
    assert s.plugin_header == "ServerTempPlugin"
    assert s.thermal_zone_path == "/sys/class/thermal/thermal_zone0/temp"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SERVER_TEMP_UPDATE_INTERVAL_S", "30")
    monkeypatch.setenv("SERVER_TEMP_PROBE_TIMEOUT_S", "2.5")
    monkeypatch.setenv("SERVER_TEMP_LOG_LEVEL", "debug")
    s = Settings.from_env()
    assert s.update_interval_s == 30
    assert s.probe_timeout_s == 2.5
    assert s.log_level == "DEBUG"


@pytest.mark.parametrize("value", ["ten", "0", "-5"])
def test_bad_interval_rejected(monkeypatch, value):
    monkeypatch.setenv("SERVER_TEMP_UPDATE_INTERVAL_S", value)
    with pytest.raises(ValueError):
        Settings.from_env()
