# backend/servertemp/errors.py
from typing import Optional


class TemperatureError(Exception):
    """Base class for anything that stops a cycle from producing a reading."""


class ProbeFailure(TemperatureError):
    """One sensing method could not produce a value (command, file or parse).

    ``method`` is the probe identifier used by the coordinator; ``label`` is
    what ends up in the message shown to clients, e.g. ``thermal_zone0 failed``.
    """

    def __init__(self, method: str, reason: Optional[str] = None, label: Optional[str] = None):
        self.method = method
        self.reason = reason or "no output"
        super().__init__(f"{label or method} failed")


class AcquisitionExhausted(TemperatureError):
    """Every sensing method has been marked failed."""

    def __init__(self, message: str = "Unable to read temperature from system"):
        super().__init__(message)
