import math
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple
import numpy as np


class SamplePoint(NamedTuple):
    latitude: float
    longitude: float
    value: float


@dataclass(frozen=True)
class BoundingBox:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float
    min_value: float
    max_value: float

    @classmethod
    def from_samples(cls, samples) -> Optional['BoundingBox']:
        if not samples:
            return None
        lats = [p.latitude for p in samples]
        lons = [p.longitude for p in samples]
        vals = [p.value for p in samples]
        return cls(min(lats), max(lats), min(lons), max(lons), min(vals), max(vals))


@dataclass(frozen=True, eq=False)
class Lattice:
    lat_axis: np.ndarray
    lon_axis: np.ndarray

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self.lat_axis), len(self.lon_axis))

    @property
    def cell_count(self) -> int:
        return len(self.lat_axis) * len(self.lon_axis)


@dataclass(frozen=True, eq=False)
class InterpolatedField:
    """Estimate grid indexed [lat_index, lon_index] plus the bbox/lattice it was built on."""
    estimate: np.ndarray
    bbox: BoundingBox
    lattice: Lattice


@dataclass(frozen=True)
class FieldSummary:
    min_value: float
    max_value: float
    power: float


@dataclass(frozen=True)
class Color:
    red: float
    green: float
    blue: float

    def to_rgb(self) -> Tuple[int, int, int]:
        # 8-bit surfaces only; the float channels stay unclamped. NaN -> 0
        return tuple(0 if math.isnan(c) else int(math.floor(min(255.0, max(0.0, c))))
                     for c in (self.red, self.green, self.blue))

    def css(self) -> str:
        r, g, b = self.to_rgb()
        return f'rgb({r}, {g}, {b})'


@dataclass(frozen=True)
class CellRect:
    x: float
    y: float
    width: float
    height: float
    color: Color


@dataclass(frozen=True)
class SampleMarker:
    x: float
    y: float
    label: str
    radius: float = 5.0


@dataclass(frozen=True)
class Raster:
    cells: Tuple[CellRect, ...]
    markers: Tuple[SampleMarker, ...]

    def commands(self) -> list:
        """Draw order: every field cell, then the sample overlays."""
        return list(self.cells) + list(self.markers)
