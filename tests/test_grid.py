import numpy as np
import pytest
import rasterio

from moisture_map.config import IDWConfig
from moisture_map.grid import axis, build_lattice, estimate, idw_grid, write_geotiff
from moisture_map.models import BoundingBox, Lattice, SamplePoint


def single_cell(lat, lon):
    return Lattice(lat_axis=np.array([lat]), lon_axis=np.array([lon]))


class TestAxis:
    def test_inclusive_upper_bound(self):
        np.testing.assert_array_equal(axis(0.0, 1.0, 0.5), [0.0, 0.5, 1.0])

    def test_zero_range_emits_start(self):
        np.testing.assert_array_equal(axis(3.0, 3.0, 0.5), [3.0])

    def test_does_not_step_past_upper_bound(self):
        np.testing.assert_array_equal(axis(0.0, 1.2, 0.5), [0.0, 0.5, 1.0])

    def test_read_only(self):
        with pytest.raises(ValueError):
            axis(0.0, 1.0, 0.5)[0] = 9.0


class TestBuildLattice:
    def test_empty_input_is_no_field(self, half_step):
        assert build_lattice([], half_step) is None

    def test_bbox_and_shape(self, pair, half_step):
        bbox, lattice = build_lattice(pair, half_step)
        assert bbox == BoundingBox(0.0, 0.0, 0.0, 1.0, 10.0, 20.0)
        assert lattice.shape == (1, 3)
        assert lattice.cell_count == 3

    @pytest.mark.parametrize("resolution,buffer", [
        (0.5, 0.0), (0.3, 0.1), (0.00005, 0.0001), (0.07, 0.25),
    ])
    def test_coverage(self, plot_points, resolution, buffer):
        config = IDWConfig(power=2.0, resolution=resolution, buffer=buffer)
        bbox, lattice = build_lattice(plot_points, config)
        for ax, lo, hi in (
            (lattice.lat_axis, bbox.min_lat, bbox.max_lat),
            (lattice.lon_axis, bbox.min_lon, bbox.max_lon),
        ):
            assert len(ax) >= 1
            assert np.all(np.diff(ax) > 0)
            assert ax[0] == lo - buffer
            assert ax[-1] >= hi + buffer - resolution
            assert ax[-1] <= hi + buffer + 1e-6 * resolution

    def test_default_plot_lattice(self, plot_points):
        _, lattice = build_lattice(plot_points, IDWConfig())
        # 0.0012 deg lat span + 2 x 0.0001 buffer at 0.00005 steps
        assert lattice.shape == (29, 25)


class TestEstimate:
    def test_equal_distance_is_plain_average(self, pair, half_step):
        bbox, lattice = build_lattice(pair, half_step)
        field = estimate(pair, lattice, half_step, bbox=bbox)
        assert field.estimate[0, 1] == 15.0
        assert field.estimate[0, 0] == 10.0
        assert field.estimate[0, 2] == 20.0

    def test_single_sample_is_constant(self):
        samples = [SamplePoint(0.0, 0.0, 10.0)]
        config = IDWConfig(power=2.0, resolution=0.25, buffer=1.0)
        bbox, lattice = build_lattice(samples, config)
        field = estimate(samples, lattice, config, bbox=bbox)
        assert field.estimate.shape == (9, 9)
        np.testing.assert_allclose(field.estimate, 10.0)

    def test_first_duplicate_wins(self, half_step):
        a = SamplePoint(0.0, 0.0, 1.0)
        b = SamplePoint(0.0, 0.0, 2.0)
        c = SamplePoint(0.0, 1.0, 5.0)
        lattice = single_cell(0.0, 0.0)
        assert estimate([a, b, c], lattice, half_step).estimate[0, 0] == 1.0
        assert estimate([b, a, c], lattice, half_step).estimate[0, 0] == 2.0

    @pytest.mark.parametrize("power", [0.0, 1.0, 2.0, 3.5])
    def test_exact_at_every_sample(self, plot_points, power):
        config = IDWConfig(power=power)
        for p in plot_points:
            field = estimate(plot_points, single_cell(p.latitude, p.longitude), config)
            assert field.estimate[0, 0] == p.value

    def test_symmetric_midpoint(self):
        samples = [SamplePoint(0.0, 0.0, 7.0), SamplePoint(2.0, 2.0, 7.0)]
        field = estimate(samples, single_cell(1.0, 1.0), IDWConfig(power=2.0))
        assert field.estimate[0, 0] == pytest.approx(7.0)

    def test_within_sample_range(self, plot_points):
        config = IDWConfig(power=1.0, resolution=0.0001, buffer=0.0003)
        bbox, lattice = build_lattice(plot_points, config)
        grid = estimate(plot_points, lattice, config, bbox=bbox).estimate
        assert grid.min() >= bbox.min_value - 1e-9
        assert grid.max() <= bbox.max_value + 1e-9

    def test_power_zero_is_mean_away_from_samples(self, pair):
        field = estimate(pair, single_cell(5.0, 5.0), IDWConfig(power=0.0))
        assert field.estimate[0, 0] == pytest.approx(15.0)

    def test_nearer_sample_dominates(self, pair):
        field = estimate(pair, single_cell(0.0, 0.1), IDWConfig(power=2.0))
        assert 10.0 < field.estimate[0, 0] < 11.0

    def test_zero_weight_sum_falls_back_to_zero(self):
        # 500**400 overflows, so every weight is 0
        samples = [SamplePoint(0.0, 0.0, 5.0), SamplePoint(0.0, 1000.0, 9.0)]
        field = estimate(samples, single_cell(0.0, 500.0), IDWConfig(power=400.0))
        assert field.estimate[0, 0] == 0.0

    @pytest.mark.parametrize("power", [50.0, 100.0, 300.0])
    def test_high_power_stays_finite_and_bounded(self, power):
        # d**power underflows to 0 at these distances
        samples = [SamplePoint(29.6, -95.75, 50.0), SamplePoint(29.6005, -95.7495, 55.0)]
        config = IDWConfig(power=power)
        bbox, lattice = build_lattice(samples, config)
        grid = estimate(samples, lattice, config, bbox).estimate
        assert np.isfinite(grid).all()
        assert grid.min() >= 50.0
        assert grid.max() <= 55.0

    def test_high_power_rescale_keeps_weighted_average(self):
        # distances 1e-4 and 3e-4 at power 100: weights 1 and 3**-100 after rescaling
        samples = [SamplePoint(0.0, 0.0, 10.0), SamplePoint(0.0, 4e-4, 20.0)]
        field = estimate(samples, single_cell(0.0, 1e-4), IDWConfig(power=100.0))
        expected = (10.0 + 20.0 * 3.0 ** -100) / (1.0 + 3.0 ** -100)
        assert field.estimate[0, 0] == pytest.approx(expected)

    def test_no_samples_gives_zeros(self):
        grid = idw_grid([], Lattice(np.array([0.0, 1.0]), np.array([0.0])), 2.0)
        np.testing.assert_array_equal(grid, [[0.0], [0.0]])

    def test_deterministic(self, plot_points):
        config = IDWConfig()
        bbox, lattice = build_lattice(plot_points, config)
        a = estimate(plot_points, lattice, config, bbox=bbox).estimate
        b = estimate(list(plot_points), lattice, config, bbox=bbox).estimate
        assert np.array_equal(a, b)

    def test_field_is_read_only(self, pair, half_step):
        bbox, lattice = build_lattice(pair, half_step)
        field = estimate(pair, lattice, half_step, bbox=bbox)
        with pytest.raises(ValueError):
            field.estimate[0, 0] = 1.0


def test_write_geotiff_north_up(tmp_path, half_step):
    samples = [SamplePoint(0.0, 0.0, 10.0), SamplePoint(1.0, 0.0, 20.0)]
    bbox, lattice = build_lattice(samples, half_step)
    field = estimate(samples, lattice, half_step, bbox=bbox)
    out = tmp_path / "field.tif"
    write_geotiff(str(out), field, half_step.resolution)

    with rasterio.open(out) as src:
        arr = src.read(1)
        assert arr.shape == (3, 1)
        assert src.crs.to_string() == "EPSG:4326"
        assert src.transform.c == pytest.approx(-0.25)
        assert src.transform.f == pytest.approx(1.25)
    # top row is the northernmost lattice row
    assert arr[0, 0] == pytest.approx(20.0)
    assert arr[1, 0] == pytest.approx(15.0)
    assert arr[2, 0] == pytest.approx(10.0)
