# backend/servertemp/cache.py
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, TypedDict
import threading

CELSIUS = "C"


# ---- Types ----
class ReadingPayload(TypedDict):
    """Wire shape served by /server_temp."""
    temperature: Optional[float]
    unit: str
    error: Optional[str]
    timestamp: Optional[int]    # epoch milliseconds


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TemperatureReading:
    """
    Last known temperature, or the reason there is none.

    After any completed cycle exactly one of `temperature` / `error` is set;
    both are None only before the first cycle.
    """
    temperature: Optional[float] = None
    timestamp: Optional[datetime] = None
    unit: str = CELSIUS
    error: Optional[str] = None

    def __post_init__(self):
        if self.temperature is not None and self.error is not None:
            raise ValueError("a reading carries either a temperature or an error, not both")

    @classmethod
    def success(cls, temperature: float, at: Optional[datetime] = None) -> "TemperatureReading":
        return cls(temperature=float(temperature), timestamp=at or _utcnow())

    @classmethod
    def failure(cls, error: str, at: Optional[datetime] = None) -> "TemperatureReading":
        return cls(error=error or "Unknown error", timestamp=at or _utcnow())

    def as_payload(self) -> ReadingPayload:
        ts = int(self.timestamp.timestamp() * 1000) if self.timestamp else None
        return {
            "temperature": self.temperature,
            "unit": self.unit,
            "error": self.error,
            "timestamp": ts,
        }


@dataclass
class TemperatureCache:
    """Single shared record; each cycle replaces it whole."""
    _reading: TemperatureReading = field(default_factory=TemperatureReading)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def store(self, reading: TemperatureReading) -> None:
        with self._lock:
            self._reading = reading

    def snapshot(self) -> TemperatureReading:
        with self._lock:
            return self._reading
