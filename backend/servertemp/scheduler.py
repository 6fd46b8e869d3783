# backend/servertemp/scheduler.py
import asyncio
import logging
from enum import Enum
from typing import Optional

from .cache import TemperatureCache, TemperatureReading
from .config import DEFAULT_INITIAL_DELAY_S, DEFAULT_UPDATE_INTERVAL_S
from .coordinator import TemperatureCoordinator
from .errors import TemperatureError

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    ACTIVE = "active"
    DISABLED = "disabled"     # terminal until process restart


class RefreshScheduler:
    """
    Drives the coordinator: one delayed first cycle plus a fixed-interval tick,
    both scheduled by start().

    If the very first cycle fails, the host can't report a temperature at all:
    the tick is cancelled and the failure stays in the cache for good. Failures
    after a successful first cycle are stored and ticking goes on.
    """

    def __init__(self, coordinator: TemperatureCoordinator, cache: TemperatureCache,
                 interval_s: float = DEFAULT_UPDATE_INTERVAL_S,
                 initial_delay_s: float = DEFAULT_INITIAL_DELAY_S):
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        self.coordinator = coordinator
        self.cache = cache
        self.interval_s = interval_s
        self.initial_delay_s = max(0.0, initial_delay_s)

        self.state = SchedulerState.ACTIVE
        self.cycles_run = 0
        self._first_cycle_done = False   # also gates the one-time diagnostics
        self._cycle_lock = asyncio.Lock()
        self._first_task: Optional[asyncio.Task] = None
        self._tick_task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self.state is SchedulerState.ACTIVE

    # ---- lifecycle ----
    def start(self) -> None:
        """Schedule the delayed first cycle and the recurring tick. Needs a running loop."""
        if self._tick_task is not None:
            return
        self._first_task = asyncio.create_task(self._delayed_first(), name="server-temp-first")
        self._tick_task = asyncio.create_task(self._tick_loop(), name="server-temp-tick")
        logger.info("Temperature will be updated every %.1f minutes", self.interval_s / 60)

    async def stop(self) -> None:
        tasks = [t for t in (self._first_task, self._tick_task) if t is not None]
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._first_task = self._tick_task = None

    async def _delayed_first(self) -> None:
        await asyncio.sleep(self.initial_delay_s)
        await self.run_cycle()

    async def _tick_loop(self) -> None:
        while self.active:
            await asyncio.sleep(self.interval_s)
            await self.run_cycle()

    # ---- one cycle ----
    async def run_cycle(self) -> None:
        """Acquire once and store the outcome. No-op once disabled."""
        async with self._cycle_lock:
            if not self.active:
                return
            first = not self._first_cycle_done
            try:
                temp = await self.coordinator.acquire(verbose=first)
            except TemperatureError as e:
                self._record_failure(str(e), first)
            except Exception as e:  # keep the tick alive on surprises
                logger.exception("Unexpected error while reading temperature")
                self._record_failure(f"Unexpected error: {e}", first)
            else:
                self.cache.store(TemperatureReading.success(temp))
                if first:
                    logger.info("Temperature updated: %.1f°C", temp)
                    if self.coordinator.working_method:
                        logger.info("Using method: %s", self.coordinator.working_method)
            finally:
                self.cycles_run += 1
                self._first_cycle_done = True

    def _record_failure(self, message: str, first: bool) -> None:
        logger.warning(message)
        self.cache.store(TemperatureReading.failure(message))
        if first:
            self._disable()

    def _disable(self) -> None:
        self.state = SchedulerState.DISABLED
        tick = self._tick_task
        if tick is not None and tick is not asyncio.current_task():
            tick.cancel()
        logger.warning("Temperature reading not supported on this system, monitoring disabled.")
