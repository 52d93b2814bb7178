import logging
from typing import List, Optional
import numpy as np
import pandas as pd

from .models import SamplePoint

logger = logging.getLogger(__name__)

LAT_NAMES = ('lat', 'latitude')
LON_NAMES = ('lon', 'lng', 'long', 'longitude')
VALUE_NAMES = ('moisture', 'soil_moisture', 'moisture_value', 'value')


def _pick(lower: dict, names) -> Optional[str]:
    for n in names:
        if n in lower:
            return lower[n]
    return None


def _is_number(text) -> bool:
    try:
        float(text)
    except (TypeError, ValueError):
        return False
    return True


def read_points_csv(path, lat=None, lon=None, value=None) -> List[SamplePoint]:
    """Read (latitude, longitude, value) samples from a CSV path or buffer.

    Columns are auto-detected by name when not given. A file whose first row is
    all numbers is read as headerless ``lat,lon,value``.
    """
    df = pd.read_csv(path)
    if len(df.columns) == 3 and all(_is_number(c) for c in df.columns) and not (lat or lon or value):
        if hasattr(path, 'seek'):
            path.seek(0)
        df = pd.read_csv(path, header=None, names=['lat', 'lon', 'value'])

    # --- Auto-detect whatever was not specified ---
    lower = {str(c).strip().lower(): c for c in df.columns}
    lat = lat or _pick(lower, LAT_NAMES)
    lon = lon or _pick(lower, LON_NAMES)
    value = value or _pick(lower, VALUE_NAMES)

    missing = [name for name, col in (('latitude', lat), ('longitude', lon), ('value', value))
               if col is None or col not in df.columns]
    if missing:
        raise ValueError(
            f"Missing {', '.join(missing)} column(s); pass --lat/--lon/--value (columns found: {list(df.columns)})"
        )

    data = df[[lat, lon, value]].apply(pd.to_numeric, errors='coerce')
    finite = np.isfinite(data.to_numpy(dtype=float)).all(axis=1)
    dropped = int((~finite).sum())
    if dropped:
        logger.warning('Dropped %d row(s) with missing or non-numeric values', dropped)
    data = data[finite]
    return [SamplePoint(float(a), float(b), float(c)) for a, b, c in data.itertuples(index=False, name=None)]
