"""Test tone generator that cycles the NES square duty patterns, then a triangle wave."""

SAMPLE_RATE = 44100
FREQUENCY = 440.0
VOLUME = 0.08

DUTY_PATTERNS = (0b01000000, 0b01100000, 0b01111000, 0b01111110)
TRIANGLE_PATTERN = (
    15, 14, 13, 12, 11, 10, 9, 8, 7, 6, 5, 4, 3, 2, 1, 0,
    0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11, 12, 13, 14, 15,
)

_SQUARE_STEP = (FREQUENCY / SAMPLE_RATE) * 8.0
_TRIANGLE_STEP = (FREQUENCY / SAMPLE_RATE) * 32.0


class WaveformGenerator:
    """Plays each duty pattern for one second, then switches to a triangle wave for good."""

    def __init__(self) -> None:
        self.phase = 0.0
        self.duty_cycle = 0
        self.samples_elapsed = 0
        self.triangle = False

    def _next_sample(self) -> float:
        if self.triangle:
            step = int(self.phase) & 31
            sample = (TRIANGLE_PATTERN[step] / 15.0 - 0.5) * VOLUME
            self.phase += _TRIANGLE_STEP
            if self.phase >= 32.0:
                self.phase -= 32.0
            return sample

        step = int(self.phase) & 7
        sample = VOLUME if DUTY_PATTERNS[self.duty_cycle] & (1 << step) else -VOLUME
        self.phase += _SQUARE_STEP
        if self.phase >= 8.0:
            self.phase -= 8.0
        self.samples_elapsed += 1
        if self.samples_elapsed >= SAMPLE_RATE:
            self.samples_elapsed = 0
            self.duty_cycle = (self.duty_cycle + 1) % len(DUTY_PATTERNS)
            if self.duty_cycle == 0:
                self.triangle = True
                self.phase = 0.0
        return sample

    def render(self, count: int) -> list:
        """Produce the next ``count`` mono samples."""
        if count < 0:
            raise ValueError("sample count must not be negative")
        return [self._next_sample() for _ in range(count)]