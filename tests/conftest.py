import pytest

from moisture_map.config import IDWConfig
from moisture_map.models import SamplePoint


@pytest.fixture
def pair():
    """Two samples one unit apart along longitude."""
    return [SamplePoint(0.0, 0.0, 10.0), SamplePoint(0.0, 1.0, 20.0)]


@pytest.fixture
def half_step():
    return IDWConfig(power=2.0, resolution=0.5, buffer=0.0)


@pytest.fixture
def plot_points():
    """A small field plot in degrees, as logged by the probe."""
    return [
        SamplePoint(29.6000, -95.7500, 50.0),
        SamplePoint(29.6005, -95.7495, 55.0),
        SamplePoint(29.5995, -95.7495, 45.0),
        SamplePoint(29.5995, -95.7505, 60.0),
        SamplePoint(29.6005, -95.7505, 40.0),
        SamplePoint(29.6002, -95.7502, 52.0),
        SamplePoint(29.6007, -95.7498, 58.0),
        SamplePoint(29.5998, -95.7498, 48.0),
        SamplePoint(29.5998, -95.7502, 62.0),
        SamplePoint(29.6002, -95.7498, 43.0),
    ]
