"""Shared fixtures: deterministic randomness, fake clock, instant sleep."""

import asyncio
import hashlib
import itertools

import pytest

from fairplay.utils.commit_reveal import CommitmentScheme


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def counter_bytes():
    """Deterministic, never-repeating byte source."""
    counter = itertools.count()

    def random_bytes(n: int) -> bytes:
        seed = str(next(counter)).encode()
        out = b""
        while len(out) < n:
            out += hashlib.sha256(seed + len(out).to_bytes(4, "big")).digest()
        return out[:n]

    return random_bytes


class SleepRecorder:
    """Async sleep replacement that records delays and only yields to the loop."""

    def __init__(self):
        self.calls = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheme():
    return CommitmentScheme(random_bytes=counter_bytes())


@pytest.fixture
def sleep():
    return SleepRecorder()
