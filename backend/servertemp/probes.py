# backend/servertemp/probes.py
"""
Sensing methods for the host CPU/board temperature.

Each probe reads the temperature once and either returns degrees Celsius or
raises ProbeFailure. Parsing lives in plain functions so the rules can be
checked without a Raspberry Pi or lm-sensors around.
"""
import asyncio
import math
import re
from pathlib import Path
from typing import List, Optional, Sequence

from .config import DEFAULT_PROBE_TIMEOUT_S, DEFAULT_THERMAL_ZONE_PATH
from .errors import ProbeFailure

VCGENCMD_PATTERN = re.compile(r"temp=([\d.]+)")
SENSORS_CORE_PATTERN = re.compile(r"Core \d+:\s+\+([\d.]+)°C")


# ---- Parsers ---------------------------------------------------------------
def parse_vcgencmd(output: str) -> Optional[float]:
    """`temp=45.6'C` -> 45.6; None when the pattern is missing."""
    m = VCGENCMD_PATTERN.search(output or "")
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:  # e.g. "temp=..'C"
        return None


def parse_thermal_zone(raw: str) -> Optional[float]:
    """Millidegrees (`42123`) -> degrees (42.123); None if not a number."""
    try:
        value = float((raw or "").strip()) / 1000.0
    except ValueError:
        return None
    return None if math.isnan(value) else value


def parse_sensors(output: str) -> Optional[float]:
    """First `Core N: +38.0°C` line of `sensors -A` -> 38.0."""
    m = SENSORS_CORE_PATTERN.search(output or "")
    if not m:
        return None
    try:
        return float(m.group(1))
    except ValueError:
        return None


# ---- Execution helpers -----------------------------------------------------
async def run_command(argv: Sequence[str], *, merge_stderr: bool = False,
                      timeout: float = DEFAULT_PROBE_TIMEOUT_S) -> str:
    """
    Run a command without blocking the event loop and return its stdout.

    Raises OSError if it cannot be started, RuntimeError on a non-zero exit
    and asyncio.TimeoutError when it runs past `timeout`. On timeout or
    cancellation the child is killed and reaped before the error propagates.
    """
    proc = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT if merge_stderr else asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except BaseException:
        if proc.returncode is None:
            try:
                proc.kill()
            except ProcessLookupError:
                pass
            await proc.wait()
        raise

    text = stdout.decode("utf-8", errors="replace") if stdout else ""
    if proc.returncode != 0:
        detail = (stderr or b"").decode("utf-8", errors="replace").strip() or text.strip()
        raise RuntimeError(f"{argv[0]} exited with code {proc.returncode}: {detail[:200]}")
    return text


# ---- Probes ----------------------------------------------------------------
class Probe:
    """One way of reading the temperature. Subclasses implement `read()`."""

    name = "probe"
    label = "probe"

    def __init__(self, timeout: float = DEFAULT_PROBE_TIMEOUT_S):
        self.timeout = timeout

    async def read(self) -> float:
        raise NotImplementedError

    def _fail(self, reason: Optional[str] = None) -> ProbeFailure:
        return ProbeFailure(self.name, reason, label=self.label)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class VcgencmdProbe(Probe):
    """Broadcom (Raspberry Pi) firmware query: `vcgencmd measure_temp`."""

    name = "vcgencmd"
    label = "vcgencmd"

    def __init__(self, command: Sequence[str] = ("vcgencmd", "measure_temp"),
                 timeout: float = DEFAULT_PROBE_TIMEOUT_S):
        super().__init__(timeout)
        self.command = tuple(command)

    async def read(self) -> float:
        try:
            out = await run_command(self.command, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise self._fail(f"timed out after {self.timeout:g}s")
        except (OSError, RuntimeError) as e:
            raise self._fail(str(e))
        if not out.strip():
            raise self._fail("no output")
        temp = parse_vcgencmd(out)
        if temp is None:
            raise self._fail(f"unexpected output: {out.strip()[:100]}")
        return temp


class ThermalZoneProbe(Probe):
    """Linux sysfs thermal zone, value in millidegrees Celsius."""

    name = "thermal_zone"
    label = "thermal_zone0"

    def __init__(self, path: str = DEFAULT_THERMAL_ZONE_PATH,
                 timeout: float = DEFAULT_PROBE_TIMEOUT_S):
        super().__init__(timeout)
        self.path = Path(path)

    async def read(self) -> float:
        try:
            data = await asyncio.wait_for(asyncio.to_thread(self.path.read_bytes),
                                          timeout=self.timeout)
        except asyncio.TimeoutError:
            raise self._fail(f"timed out after {self.timeout:g}s")
        except OSError as e:
            raise self._fail(str(e))
        raw = data.decode("utf-8", errors="replace")
        if not raw.strip():
            raise self._fail("no output")
        temp = parse_thermal_zone(raw)
        if temp is None:
            raise self._fail(f"not a number: {raw.strip()[:50]!r}")
        return temp


class SensorsProbe(Probe):
    """lm-sensors `sensors -A`, stderr folded into stdout."""

    name = "sensors"
    label = "sensors"

    def __init__(self, command: Sequence[str] = ("sensors", "-A"),
                 timeout: float = DEFAULT_PROBE_TIMEOUT_S):
        super().__init__(timeout)
        self.command = tuple(command)

    async def read(self) -> float:
        try:
            out = await run_command(self.command, merge_stderr=True, timeout=self.timeout)
        except asyncio.TimeoutError:
            raise self._fail(f"timed out after {self.timeout:g}s")
        except (OSError, RuntimeError) as e:
            raise self._fail(str(e))
        if not out.strip():
            raise self._fail("no output")
        temp = parse_sensors(out)
        if temp is None:
            raise self._fail("no 'Core N:' reading in output")
        return temp


def default_probes(thermal_zone_path: str = DEFAULT_THERMAL_ZONE_PATH,
                   timeout: float = DEFAULT_PROBE_TIMEOUT_S) -> List[Probe]:
    """Probes in priority order: vcgencmd, thermal zone, sensors."""
    return [
        VcgencmdProbe(timeout=timeout),
        ThermalZoneProbe(path=thermal_zone_path, timeout=timeout),
        SensorsProbe(timeout=timeout),
    ]
