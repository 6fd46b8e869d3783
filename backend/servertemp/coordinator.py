# backend/servertemp/coordinator.py
import logging
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Sequence

from .errors import AcquisitionExhausted, ProbeFailure
from .probes import Probe

logger = logging.getLogger(__name__)


class ProbeStatus(str, Enum):
    UNTRIED = "untried"
    FAILED = "failed"
    WORKING = "working"


class TemperatureCoordinator:
    """
    Walks the probes in priority order and remembers the outcome:
      - the first probe that succeeds becomes the working method and is the
        only one called from then on;
      - a probe that fails while searching is marked failed for the lifetime
        of the process.

    A working method that later fails is retried as-is on the next call; it
    is neither marked failed nor replaced.
    """

    def __init__(self, probes: Sequence[Probe]):
        if not probes:
            raise ValueError("at least one probe is required")
        names = [p.name for p in probes]
        if len(set(names)) != len(names):
            raise ValueError(f"probe names must be unique: {names}")
        self._probes: List[Probe] = list(probes)
        self._status: Dict[str, ProbeStatus] = {p.name: ProbeStatus.UNTRIED for p in probes}

    # ---- state views ----
    @property
    def probes(self) -> List[Probe]:
        return list(self._probes)

    @property
    def working_method(self) -> Optional[str]:
        for name, st in self._status.items():
            if st is ProbeStatus.WORKING:
                return name
        return None

    @property
    def failed_methods(self) -> FrozenSet[str]:
        return frozenset(n for n, st in self._status.items() if st is ProbeStatus.FAILED)

    def status(self, name: str) -> ProbeStatus:
        return self._status[name]

    # ---- acquisition ----
    async def acquire(self, verbose: bool = False) -> float:
        """Return degrees Celsius or raise ProbeFailure / AcquisitionExhausted."""
        if verbose:
            logger.info("Attempting to read temperature...")

        working = self.working_method
        if working is not None:
            # a failure here propagates; the probe stays the working method
            return await self._read(self._by_name(working), verbose)

        for probe in self._probes:
            if self._status[probe.name] is ProbeStatus.FAILED:
                continue
            try:
                temp = await self._read(probe, verbose)
            except ProbeFailure:
                self._status[probe.name] = ProbeStatus.FAILED
                continue
            self._status[probe.name] = ProbeStatus.WORKING
            return temp

        logger.error("All temperature reading methods failed")
        raise AcquisitionExhausted()

    async def _read(self, probe: Probe, verbose: bool) -> float:
        try:
            temp = await probe.read()
        except ProbeFailure as e:
            if verbose:
                logger.warning("%s: %s", e, e.reason)
            raise
        if verbose:
            logger.info("Temperature read via %s: %s°C", probe.label, temp)
        return temp

    def _by_name(self, name: str) -> Probe:
        for p in self._probes:
            if p.name == name:
                return p
        raise KeyError(name)
