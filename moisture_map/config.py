import math
from dataclasses import dataclass

DEFAULT_POWER = 2.0
DEFAULT_RESOLUTION = 0.00005  # degrees
DEFAULT_BUFFER = 0.0001       # degrees
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600


@dataclass(frozen=True)
class IDWConfig:
    power: float = DEFAULT_POWER
    resolution: float = DEFAULT_RESOLUTION
    buffer: float = DEFAULT_BUFFER

    def __post_init__(self):
        for name in ('power', 'resolution', 'buffer'):
            if not math.isfinite(getattr(self, name)):
                raise ValueError(f'{name} must be finite')
        if self.power < 0:
            raise ValueError('power must be >= 0')
        if self.resolution <= 0:
            raise ValueError('resolution must be > 0')
        if self.buffer < 0:
            raise ValueError('buffer must be >= 0')
