import pytest

from servertemp.config import Settings
from servertemp.errors import ProbeFailure
from servertemp.probes import Probe

FAIL = object()   # FakeProbe result meaning "raise ProbeFailure"


class FakeProbe(Probe):
    """Scripted probe: returns/raises the queued results, repeating the last one."""

    def __init__(self, name, *results):
        super().__init__(timeout=1.0)
        self.name = name
        self.label = name
        self.results = list(results) or [FAIL]
        self.calls = 0

    async def read(self):
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if result is FAIL:
            raise ProbeFailure(self.name, "scripted failure", label=self.label)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def settings():
    # large delays: tests drive cycles by hand unless they start the scheduler
    return Settings(update_interval_s=3600, initial_delay_s=3600)
