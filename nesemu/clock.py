"""A prescaled clock that paces itself against the NES master clock."""

import time

MASTER_CLOCK_HZ = 21.477272 * 1e6
CLOCK_INTERVAL_NS = int((1 / MASTER_CLOCK_HZ) * 1e9)


class Clock:
    """Counts master ticks and yields one output tick per ``prescaler`` ticks."""

    def __init__(self, prescaler: int, name: str) -> None:
        if prescaler <= 0:
            raise ValueError("prescaler must be a positive integer")
        self.name = name
        self._divider = prescaler
        self._ticks = 0

    @property
    def ticks(self) -> int:
        """Number of master ticks counted so far."""
        return self._ticks

    def tick(self) -> bool:
        """Advance to the next divided tick, sleeping one master period per skipped tick."""
        while True:
            current = self._ticks
            self._ticks += 1
            if current % self._divider == 0:
                return True
            time.sleep(CLOCK_INTERVAL_NS / 1e9)