import pytest

from conftest import FAIL, FakeProbe
from servertemp.coordinator import ProbeStatus, TemperatureCoordinator
from servertemp.errors import AcquisitionExhausted, ProbeFailure
from servertemp.probes import ThermalZoneProbe


def make(*probes):
    return TemperatureCoordinator(list(probes))


@pytest.mark.asyncio
async def test_first_success_becomes_working_method():
    a, b, c = FakeProbe("a", 50.0), FakeProbe("b", 40.0), FakeProbe("c", 30.0)
    coord = make(a, b, c)

    assert await coord.acquire() == 50.0
    assert coord.working_method == "a"
    assert coord.failed_methods == frozenset()
    assert (b.calls, c.calls) == (0, 0)


@pytest.mark.asyncio
async def test_falls_back_in_priority_order_and_marks_failures():
    a, b, c = FakeProbe("a", FAIL), FakeProbe("b", FAIL), FakeProbe("c", 38.0)
    coord = make(a, b, c)

    assert await coord.acquire() == 38.0
    assert coord.working_method == "c"
    assert coord.failed_methods == {"a", "b"}
    assert coord.status("a") is ProbeStatus.FAILED
    assert coord.status("c") is ProbeStatus.WORKING


@pytest.mark.asyncio
async def test_only_working_method_runs_afterwards():
    a, b = FakeProbe("a", FAIL), FakeProbe("b", 41.0, 42.0, 43.0)
    coord = make(a, b)

    for expected in (41.0, 42.0, 43.0):
        assert await coord.acquire() == expected
    assert a.calls == 1
    assert b.calls == 3


@pytest.mark.asyncio
async def test_failing_working_method_is_replayed_not_replaced():
    a, b = FakeProbe("a", 45.0, FAIL), FakeProbe("b", 30.0)
    coord = make(a, b)
    await coord.acquire()

    for _ in range(3):
        with pytest.raises(ProbeFailure, match="^a failed$"):
            await coord.acquire()

    assert coord.working_method == "a"
    assert "a" not in coord.failed_methods
    assert b.calls == 0
    assert a.calls == 4


@pytest.mark.asyncio
async def test_exhausted_when_every_probe_failed():
    a, b, c = FakeProbe("a"), FakeProbe("b"), FakeProbe("c")
    coord = make(a, b, c)

    with pytest.raises(AcquisitionExhausted, match="Unable to read temperature from system"):
        await coord.acquire()
    assert coord.failed_methods == {"a", "b", "c"}
    assert coord.working_method is None

    # failed methods are never retried
    with pytest.raises(AcquisitionExhausted):
        await coord.acquire()
    assert (a.calls, b.calls, c.calls) == (1, 1, 1)


@pytest.mark.asyncio
async def test_failed_probe_is_skipped_on_later_searches():
    # "b" fails during the first search; a later search (still no working
    # method because "c" failed too) must not touch it again
    a, b, c = FakeProbe("a"), FakeProbe("b"), FakeProbe("c")
    coord = make(a, b, c)
    with pytest.raises(AcquisitionExhausted):
        await coord.acquire()
    with pytest.raises(AcquisitionExhausted):
        await coord.acquire()
    assert b.calls == 1


@pytest.mark.asyncio
async def test_verbose_logs_diagnostics(caplog):
    caplog.set_level("INFO", logger="servertemp")
    coord = make(FakeProbe("a", FAIL), FakeProbe("b", 42.5))

    await coord.acquire(verbose=True)

    text = caplog.text
    assert "Attempting to read temperature" in text
    assert "a failed" in text
    assert "Temperature read via b: 42.5°C" in text


@pytest.mark.asyncio
async def test_quiet_by_default(caplog):
    caplog.set_level("INFO", logger="servertemp")
    await make(FakeProbe("a", 42.5)).acquire()
    assert caplog.text == ""


def test_rejects_duplicate_or_missing_probes():
    with pytest.raises(ValueError):
        TemperatureCoordinator([])
    with pytest.raises(ValueError):
        TemperatureCoordinator([FakeProbe("a"), FakeProbe("a")])


@pytest.mark.asyncio
async def test_unreadable_thermal_zone_falls_through_to_next_probe(tmp_path):
    zone = tmp_path / "temp"
    zone.write_bytes(b"\xff\xfe42123\n")
    first, last = FakeProbe("vcgencmd"), FakeProbe("sensors", 38.0)
    coord = make(first, ThermalZoneProbe(path=str(zone)), last)

    assert await coord.acquire() == 38.0
    assert coord.failed_methods == {"vcgencmd", "thermal_zone"}
    assert coord.working_method == "sensors"
