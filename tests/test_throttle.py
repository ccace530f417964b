import asyncio
import time

from minty.utils.throttle import RequestThrottle


async def test_duplicate_in_flight_key_returns_none():
    throttle = RequestThrottle(min_interval=0)
    release = asyncio.Event()
    calls = []

    async def slow_action():
        calls.append("run")
        await release.wait()
        return "done"

    first = asyncio.create_task(throttle.run("weekly-report", slow_action))
    await asyncio.sleep(0)
    assert throttle.is_pending("weekly-report")

    assert await throttle.run("weekly-report", slow_action) is None

    release.set()
    assert await first == "done"
    assert calls == ["run"]
    assert not throttle.is_pending("weekly-report")


async def test_calls_in_same_scope_are_spaced_by_min_interval():
    throttle = RequestThrottle(min_interval=0.05)

    async def action():
        return time.monotonic()

    first = await throttle.run("budget-alert:1", action, scope="user-1")
    second = await throttle.run("weekly-report:user-1", action, scope="user-1")
    assert second - first >= 0.045


async def test_other_owners_are_not_held_back():
    throttle = RequestThrottle(min_interval=2.0)

    async def action():
        return time.monotonic()

    await throttle.run("budget-alert:a", action, scope="owner-a")
    started = time.monotonic()
    finished = await throttle.run("budget-alert:b", action, scope="owner-b")
    assert finished - started < 0.5


async def test_concurrent_calls_in_one_scope_take_consecutive_slots():
    throttle = RequestThrottle(min_interval=0.05)

    async def action():
        return time.monotonic()

    stamps = await asyncio.gather(
        throttle.run("monthly-report:u", action, scope="u"),
        throttle.run("transaction-reminder:u", action, scope="u"),
        throttle.run("budget-alert:x", action, scope="other"),
    )
    assert stamps[1] - stamps[0] >= 0.045
    assert stamps[2] < stamps[1]


async def test_failures_are_swallowed_and_key_released():
    throttle = RequestThrottle(min_interval=0)

    async def broken():
        raise RuntimeError("network down")

    assert await throttle.run("reminder", broken) is None
    assert not throttle.is_pending("reminder")

    async def ok():
        return 1

    assert await throttle.run("reminder", ok) == 1
