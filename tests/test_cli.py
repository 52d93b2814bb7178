import json

import pytest
import rasterio
from PIL import Image
from typer.testing import CliRunner

from moisture_map.cli import app

runner = CliRunner()


@pytest.fixture
def points_csv(tmp_path):
    path = tmp_path / "sensor_data.csv"
    path.write_text(
        "latitude,longitude,moisture\n"
        "29.6000,-95.7500,50\n"
        "29.6005,-95.7495,55\n"
        "29.5995,-95.7495,45\n"
        "29.5995,-95.7505,60\n"
        "29.6005,-95.7505,40\n",
        encoding="utf-8",
    )
    return path


def test_build_map_writes_all_outputs(tmp_path, points_csv):
    out = tmp_path / "out" / "map.png"
    tif = tmp_path / "out" / "map.tif"
    html = tmp_path / "out" / "report.html"
    result = runner.invoke(app, [
        "build-map", "--input", str(points_csv), "--out", str(out),
        "--geotiff", str(tif), "--report", str(html), "--width", "200", "--height", "150",
    ])
    assert result.exit_code == 0, result.output

    with Image.open(out) as img:
        assert img.size == (200, 150)
    with rasterio.open(tif) as src:
        # 0.001 deg span + 2 x 0.0001 buffer at 0.00005 steps
        assert (src.height, src.width) == (25, 25)
    text = html.read_text(encoding="utf-8")
    assert "Soil Moisture IDW Report" in text
    assert "data:image/png;base64," in text


def test_summary_json(points_csv):
    result = runner.invoke(app, ["summary", "--input", str(points_csv), "--power", "1"])
    assert result.exit_code == 0, result.output
    out = result.output
    res = json.loads(out[out.index("{"):out.rindex("}") + 1])
    assert res["min_value"] == 40.0
    assert res["max_value"] == 60.0
    assert res["power"] == 1.0
    assert res["samples"] == 5


def test_legend(tmp_path):
    out = tmp_path / "legend.png"
    result = runner.invoke(app, ["legend", "--vmin", "40", "--vmax", "60", "--out", str(out)])
    assert result.exit_code == 0, result.output
    assert out.exists()


def test_no_valid_samples_exits_nonzero(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("lat,lon,moisture\n", encoding="utf-8")
    result = runner.invoke(app, ["build-map", "--input", str(path), "--out", str(tmp_path / "x.png")])
    assert result.exit_code == 1
    assert not (tmp_path / "x.png").exists()


def test_bad_power_is_usage_error(points_csv, tmp_path):
    result = runner.invoke(app, [
        "build-map", "--input", str(points_csv), "--out", str(tmp_path / "x.png"), "--power=-2",
    ])
    assert result.exit_code == 2


def test_missing_column_is_usage_error(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("lat,lon,temp\n0,0,1\n", encoding="utf-8")
    result = runner.invoke(app, ["summary", "--input", str(path)])
    assert result.exit_code == 2
