import logging
import math
from typing import Optional, Sequence, Tuple
import numpy as np
import rasterio
from rasterio.transform import from_origin

from .config import IDWConfig
from .models import BoundingBox, InterpolatedField, Lattice, SamplePoint

logger = logging.getLogger(__name__)

# slack on the inclusive upper bound, in units of one step
_STEP_EPS = 1e-6


def axis(lo: float, hi: float, step: float) -> np.ndarray:
    """Values lo, lo+step, ... up to and including hi (within _STEP_EPS of a step)."""
    n = int(math.floor((hi - lo) / step + _STEP_EPS)) + 1
    values = lo + np.arange(max(n, 1)) * step
    values.setflags(write=False)
    return values


def build_lattice(samples: Sequence[SamplePoint], config: IDWConfig) -> Optional[Tuple[BoundingBox, Lattice]]:
    bbox = BoundingBox.from_samples(samples)
    if bbox is None:
        logger.info('No samples; no field to build')
        return None
    buf, res = config.buffer, config.resolution
    lattice = Lattice(
        lat_axis=axis(bbox.min_lat - buf, bbox.max_lat + buf, res),
        lon_axis=axis(bbox.min_lon - buf, bbox.max_lon + buf, res),
    )
    logger.debug('Lattice %d x %d over %s', lattice.shape[0], lattice.shape[1], bbox)
    return bbox, lattice


def idw_grid(samples: Sequence[SamplePoint], lattice: Lattice, power: float) -> np.ndarray:
    lat = np.array([p.latitude for p in samples], dtype=float)
    lon = np.array([p.longitude for p in samples], dtype=float)
    val = np.array([p.value for p in samples], dtype=float)
    lon_axis = np.asarray(lattice.lon_axis, dtype=float)

    grid = np.zeros(lattice.shape, dtype=float)
    if len(val) == 0:
        return grid

    # one lattice row at a time: (lon cells, samples)
    dx = lon[None, :] - lon_axis[:, None]
    for i, yy in enumerate(lattice.lat_axis):
        dy = lat - yy
        d = np.sqrt(dx * dx + dy * dy)
        hit = d == 0
        exact = hit.any(axis=1)
        with np.errstate(divide='ignore', over='ignore', invalid='ignore'):
            w = 1.0 / np.power(d, power)
            w[exact] = 0.0
            w_sum = w.sum(axis=1)
            wv_sum = (w * val).sum(axis=1)
        # d**power underflowed: rescale by the nearest sample, (d_min / d)**power
        big = ~exact & ~(np.isfinite(w_sum) & np.isfinite(wv_sum))
        if big.any():
            db = d[big]
            w[big] = np.power(db.min(axis=1)[:, None] / db, power)
            w_sum[big] = w[big].sum(axis=1)
            wv_sum[big] = (w[big] * val).sum(axis=1)
        row = np.zeros_like(w_sum)
        np.divide(wv_sum, w_sum, out=row, where=w_sum != 0)
        # first zero-distance sample in input order wins
        row[exact] = val[hit[exact].argmax(axis=1)]
        grid[i] = row
    return grid


def estimate(samples: Sequence[SamplePoint], lattice: Lattice, config: IDWConfig,
             bbox: Optional[BoundingBox] = None) -> InterpolatedField:
    if bbox is None:
        bbox = BoundingBox.from_samples(samples)
    grid = idw_grid(samples, lattice, config.power)
    grid.setflags(write=False)
    return InterpolatedField(estimate=grid, bbox=bbox, lattice=lattice)


def write_geotiff(path: str, field: InterpolatedField, resolution: float, crs: str = 'EPSG:4326'):
    lat_axis, lon_axis = field.lattice.lat_axis, field.lattice.lon_axis
    # lattice nodes are cell centers; raster rows run north to south
    west = float(lon_axis[0]) - resolution / 2.0
    north = float(lat_axis[-1]) + resolution / 2.0
    transform = from_origin(west, north, resolution, resolution)
    arr = np.flipud(np.asarray(field.estimate))
    profile = {
        'driver': 'GTiff',
        'height': arr.shape[0],
        'width': arr.shape[1],
        'count': 1,
        'dtype': 'float32',
        'crs': crs,
        'transform': transform,
        'compress': 'lzw'
    }
    with rasterio.open(path, 'w', **profile) as dst:
        dst.write(arr.astype('float32'), 1)
