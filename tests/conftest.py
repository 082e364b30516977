"""Shared fakes for relay tests: controllable clock, manual scheduler, in-memory transport."""
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

import pytest

from registry import ChatRegistry
from relay import RelayEngine
from sweeper import InactivitySweeper

T0 = 1_700_000_000.0


class FakeClock:
    def __init__(self, start: float = T0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTimer:
    def __init__(self, when: float, callback: Callable[..., Any], args: Tuple[Any, ...]):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Runs scheduled callbacks only when the test advances it."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.timers: List[FakeTimer] = []

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimer:
        timer = FakeTimer(self.clock() + delay, callback, args)
        self.timers.append(timer)
        return timer

    def advance(self, seconds: float) -> None:
        self.clock.advance(seconds)
        for timer in sorted(self.timers, key=lambda t: t.when):
            if not timer.cancelled and not timer.fired and timer.when <= self.clock():
                timer.fired = True
                timer.callback(*timer.args)

    @property
    def pending(self) -> List[FakeTimer]:
        return [t for t in self.timers if not t.fired and not t.cancelled]


class FakeTransport:
    """Records what every connection would receive."""

    def __init__(self):
        self.rooms: Dict[str, Set[str]] = defaultdict(set)
        self.received: Dict[str, List[Tuple[str, dict]]] = defaultdict(list)

    async def enter_room(self, sid: str, room: str) -> None:
        self.rooms[room].add(sid)

    async def send(self, sid: str, event: str, data: dict) -> None:
        self.received[sid].append((event, data))

    async def broadcast(self, room: str, event: str, data: dict, skip_sid: Optional[str] = None) -> None:
        for sid in sorted(self.rooms.get(room, ())):
            if sid != skip_sid:
                self.received[sid].append((event, data))

    def disconnect(self, sid: str) -> None:
        for members in self.rooms.values():
            members.discard(sid)

    def events(self, sid: str, name: str) -> List[dict]:
        return [data for event, data in self.received[sid] if event == name]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return FakeScheduler(clock)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def registry():
    return ChatRegistry()


@pytest.fixture
def engine(registry, transport, scheduler, clock):
    return RelayEngine(registry, transport, scheduler, clock=clock, grace_delay=1)


@pytest.fixture
def sweeper(registry, clock):
    return InactivitySweeper(registry, clock=clock, interval=30 * 60, idle_threshold=2 * 60 * 60)
