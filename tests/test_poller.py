import anyio
import pytest

from luffa.errors import LuffaAPIError, SoftFailError
from luffa.poller import Poller


class _Source:
    def __init__(self, results: list) -> None:
        self.results = list(results)
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def receive(self):
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await anyio.sleep(0)
            result = self.results.pop(0) if self.results else []
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.mark.anyio
async def test_tick_does_nothing_when_idle() -> None:
    source = _Source([[1]])
    batches: list = []
    poller = Poller(source.receive, batches.append)

    await poller.tick()

    assert source.calls == 0
    assert batches == []


@pytest.mark.anyio
async def test_failures_do_not_stop_the_loop() -> None:
    source = _Source(
        [
            SoftFailError("Robot verification failed"),
            LuffaAPIError("Invalid JSON response from Luffa API"),
            RuntimeError("network down"),
            ["batch"],
        ]
    )
    batches: list = []
    poller: Poller

    def on_batch(data) -> None:
        batches.append(data)
        poller.stop()

    async def fake_sleep(delay: float) -> None:
        await anyio.sleep(0)

    poller = Poller(source.receive, on_batch, 0.25, sleep=fake_sleep)
    with anyio.fail_after(5):
        async with anyio.create_task_group() as tg:
            poller.start(tg)

    assert batches == [["batch"]]
    assert source.calls == 4
    assert poller.running is False


@pytest.mark.anyio
async def test_dispatch_errors_are_contained() -> None:
    source = _Source([["a"], ["b"]])
    seen: list = []
    poller: Poller

    def on_batch(data) -> None:
        seen.append(data)
        if len(seen) == 2:
            poller.stop()
        raise ValueError("bad batch")

    async def fake_sleep(delay: float) -> None:
        await anyio.sleep(0)

    poller = Poller(source.receive, on_batch, sleep=fake_sleep)
    with anyio.fail_after(5):
        async with anyio.create_task_group() as tg:
            poller.start(tg)

    assert seen == [["a"], ["b"]]


@pytest.mark.anyio
async def test_cycles_never_overlap_and_wait_after_completion() -> None:
    source = _Source([[], [], [], []])
    events: list[str] = []
    poller: Poller

    async def fake_sleep(delay: float) -> None:
        events.append(f"sleep:{delay}:{source.in_flight}")
        if len(events) == 3:
            poller.stop()
        await anyio.sleep(0)

    poller = Poller(source.receive, lambda data: None, 2.0, sleep=fake_sleep)
    with anyio.fail_after(5):
        async with anyio.create_task_group() as tg:
            poller.start(tg)
            poller.start(tg)

    assert source.max_in_flight == 1
    assert source.calls == 3
    assert events == ["sleep:2.0:0"] * 3


@pytest.mark.anyio
async def test_stop_cancels_pending_wait() -> None:
    source = _Source([[]])
    polled = anyio.Event()

    def on_batch(data) -> None:
        polled.set()

    poller = Poller(source.receive, on_batch, 3600)
    with anyio.fail_after(5):
        async with anyio.create_task_group() as tg:
            poller.start(tg)
            await polled.wait()
            await anyio.sleep(0)
            poller.stop()
            poller.stop()

    assert source.calls == 1


@pytest.mark.anyio
async def test_restart_after_stop() -> None:
    source = _Source([])
    count = 0
    poller: Poller

    def on_batch(data) -> None:
        nonlocal count
        count += 1
        poller.stop()

    poller = Poller(source.receive, on_batch, 0)
    with anyio.fail_after(5):
        async with anyio.create_task_group() as tg:
            poller.start(tg)
        async with anyio.create_task_group() as tg:
            poller.start(tg)

    assert count == 2
