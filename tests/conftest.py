import time

import jwt
import pytest

SECRET = b"test-extension-secret-0123456789abcdef"


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = float(start)

    def advance(self, delta: float) -> None:
        self.now += float(delta)

    def __call__(self) -> float:
        return self.now


class FakeTimer:
    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects scheduled callbacks; tests fire them explicitly"""

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def fire_all(self):
        timers, self.timers = self.timers, []
        for timer in timers:
            if not timer.cancelled:
                timer.callback()


class FakeDispatcher:
    def __init__(self):
        self.sent = []
        self.closed = False

    async def dispatch(self, channel_id, color):
        self.sent.append((channel_id, color))
        return True

    async def close(self):
        self.closed = True


@pytest.fixture
def clock():
    return FakeClock(1000.0)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def dispatcher():
    return FakeDispatcher()


@pytest.fixture
def make_token():
    def _make(channel_id="chan-1", user_id="U-alice", exp_in=60, secret=SECRET, **extra):
        payload = {
            "exp": int(time.time()) + exp_in,
            "channel_id": channel_id,
            "opaque_user_id": user_id,
            "role": "viewer",
        }
        payload.update(extra)
        return jwt.encode(payload, secret, algorithm="HS256")
    return _make


@pytest.fixture
def auth_header(make_token):
    def _header(**kwargs):
        return "Bearer " + make_token(**kwargs)
    return _header
