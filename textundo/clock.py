"""Time sources for merge-window decisions (milliseconds)."""
import time


def monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ManualClock:
    """Clock that only moves when told to. Lets tests simulate typing pauses."""

    def __init__(self, start: float = 0.0):
        self._now = float(start)

    def __call__(self) -> float:
        return self._now

    def advance(self, ms: float) -> float:
        self._now += ms
        return self._now

    def set(self, ms: float):
        self._now = float(ms)
