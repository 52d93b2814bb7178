import logging
from typing import Iterable, Optional, Sequence, Tuple

from .config import IDWConfig
from .grid import build_lattice, estimate
from .models import FieldSummary, InterpolatedField, Raster, SamplePoint
from .render import rasterize

logger = logging.getLogger(__name__)


def interpolate(samples: Sequence[SamplePoint], config: IDWConfig) -> Optional[InterpolatedField]:
    """GridBuilder -> IDWEstimator. None means no field (empty input)."""
    built = build_lattice(samples, config)
    if built is None:
        return None
    bbox, lattice = built
    logger.info('IDW over %d cells x %d samples (power=%g)', lattice.cell_count, len(samples), config.power)
    return estimate(samples, lattice, config, bbox=bbox)


def render_raster(samples: Sequence[SamplePoint], config: IDWConfig, width: int, height: int) -> Optional[Raster]:
    field = interpolate(samples, config)
    if field is None:
        return None
    return rasterize(field, samples, width, height)


def render_commands(samples: Sequence[SamplePoint], config: IDWConfig, width: int, height: int) -> list:
    raster = render_raster(samples, config, width, height)
    return raster.commands() if raster is not None else []


def summarize(field: InterpolatedField, config: IDWConfig) -> FieldSummary:
    return FieldSummary(min_value=field.bbox.min_value, max_value=field.bbox.max_value, power=config.power)


class FieldRecomputer:
    """
    Caller-side change detection around :func:`interpolate`.

    Recomputes only when the sample sequence differs from the last one seen, and
    publishes a field only once it is complete. An empty sequence leaves the
    previously published field in place.
    """

    def __init__(self, config: IDWConfig):
        self.config = config
        self.field: Optional[InterpolatedField] = None
        self.samples: Tuple[SamplePoint, ...] = ()
        self.runs = 0
        self._seen: Optional[Tuple[SamplePoint, ...]] = None

    def update(self, samples: Iterable[SamplePoint]) -> Optional[InterpolatedField]:
        samples = tuple(samples)
        if samples == self._seen:
            return self.field
        self._seen = samples
        self.runs += 1
        field = interpolate(samples, self.config)
        if field is None:
            logger.info('No samples; keeping previous field')
            return self.field
        self.field, self.samples = field, samples
        return field

    def summary(self) -> Optional[FieldSummary]:
        if self.field is None:
            return None
        return summarize(self.field, self.config)

    def raster(self, width: int, height: int) -> Optional[Raster]:
        if self.field is None:
            return None
        return rasterize(self.field, self.samples, width, height)
