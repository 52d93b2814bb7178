# streamlit_app.py
import io
import tempfile
from pathlib import Path

import streamlit as st

from moisture_map.config import (
    DEFAULT_BUFFER, DEFAULT_HEIGHT, DEFAULT_POWER, DEFAULT_RESOLUTION, DEFAULT_WIDTH, IDWConfig,
)
from moisture_map.grid import write_geotiff
from moisture_map.io import read_points_csv
from moisture_map.models import SamplePoint
from moisture_map.pipeline import FieldRecomputer
from moisture_map.render import draw_raster, make_legend_png
from moisture_map.report import make_report_html

# ---------------------------- CONFIG ----------------------------
st.set_page_config(
    page_title="Soil Moisture Heatmap (IDW)",
    page_icon="💧",
    layout="wide",
    initial_sidebar_state="expanded",
)

# 45 x 45 m demo plot; [latitude, longitude, moisture]
DEMO_POINTS = [
    SamplePoint(29.6000, -95.7500, 50),  # Center
    SamplePoint(29.6005, -95.7495, 55),  # North-East
    SamplePoint(29.5995, -95.7495, 45),  # South-East
    SamplePoint(29.5995, -95.7505, 60),  # South-West
    SamplePoint(29.6005, -95.7505, 40),  # North-West
    SamplePoint(29.6002, -95.7502, 52),
    SamplePoint(29.6007, -95.7498, 58),
    SamplePoint(29.5998, -95.7498, 48),
    SamplePoint(29.5998, -95.7502, 62),
    SamplePoint(29.6002, -95.7498, 43),
    SamplePoint(29.6000, -95.7498, 51),
    SamplePoint(29.6003, -95.7503, 49),
    SamplePoint(29.5997, -95.7501, 57),
    SamplePoint(29.6001, -95.7501, 53),
    SamplePoint(29.5999, -95.7499, 46),
]

# ---------------------------- HELPERS ----------------------------
def _recomputer(config: IDWConfig, mode: str) -> FieldRecomputer:
    """One recomputer per (parameters, data mode); switching either starts from scratch."""
    key = (config, mode)
    rc = st.session_state.get("recomputer")
    if rc is None or st.session_state.get("recomputer_key") != key:
        rc = FieldRecomputer(config)
        st.session_state["recomputer"] = rc
        st.session_state["recomputer_key"] = key
        st.session_state["field_source"] = None
    return rc

def _png_bytes(img) -> bytes:
    buf = io.BytesIO()
    img.save(buf, "PNG")
    return buf.getvalue()

def _geotiff_bytes(field, resolution: float) -> bytes:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "moisture.tif"
        write_geotiff(str(path), field, resolution)
        return path.read_bytes()

def _legend_bytes(vmin: float, vmax: float) -> bytes:
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "legend.png"
        make_legend_png(vmin, vmax, str(path))
        return path.read_bytes()

# ---------------------------- UI ----------------------------
st.markdown(
    """
    <div style="padding: 14px 18px; border-radius: 14px; background: linear-gradient(135deg,#0ea5e9, #6366f1); color: white;">
      <h1 style="margin:0; font-size: 28px;">Soil Moisture Heatmap (IDW)</h1>
      <div style="opacity:.95; font-size: 15px; margin-top: 6px;">
        Interpolate probe readings over a field with Inverse Distance Weighting and overlay the measured points.
      </div>
    </div>
    """,
    unsafe_allow_html=True,
)

mode = st.sidebar.radio(
    "Data",
    ["Demo points", "Upload CSV"],
    help="Use the built-in demo plot or your own sensor_data.csv.",
)

with st.sidebar:
    st.markdown("### IDW parameters")
    power = st.slider("Power", 0.0, 5.0, DEFAULT_POWER, 0.5)
    resolution = st.number_input("Resolution (deg)", value=DEFAULT_RESOLUTION, min_value=1e-7, step=1e-5, format="%.6f")
    buffer = st.number_input("Buffer (deg)", value=DEFAULT_BUFFER, min_value=0.0, step=1e-5, format="%.6f")

    st.markdown("---")
    st.markdown("### Canvas")
    width = st.number_input("Width (px)", value=DEFAULT_WIDTH, min_value=100, max_value=4000, step=50)
    height = st.number_input("Height (px)", value=DEFAULT_HEIGHT, min_value=100, max_value=4000, step=50)

# ---------------------------- LOGIC PER MODE ----------------------------
samples, source = [], None
if mode == "Demo points":
    samples, source = DEMO_POINTS, "demo"
else:
    up = st.file_uploader("CSV with columns (latitude, longitude, moisture) or bare lat,lon,moisture rows", type=["csv"])
    colx, coly, colz = st.columns(3)
    with colx: lat_col = st.text_input("Latitude column (blank = auto)", value="")
    with coly: lon_col = st.text_input("Longitude column (blank = auto)", value="")
    with colz: val_col = st.text_input("Moisture column (blank = auto)", value="")
    if up:
        try:
            samples = read_points_csv(up, lat=lat_col or None, lon=lon_col or None, value=val_col or None)
            source = up.name
        except ValueError as e:
            st.error(f"Could not read CSV: {e}")

try:
    config = IDWConfig(power=float(power), resolution=float(resolution), buffer=float(buffer))
except ValueError as e:
    st.error(f"Invalid parameters: {e}")
    st.stop()

rc = _recomputer(config, mode)
with st.spinner("Interpolating..."):
    field = rc.update(samples)
if samples:
    st.session_state["field_source"] = source
# an empty upload keeps the last field; label it with the data it came from
source = st.session_state.get("field_source")

# ---------------------------- PRESENTATION TABS ----------------------------
tabs = st.tabs(["🗺️ Map", "📊 Stats", "⬇️ Downloads", "ℹ️ How it works"])

img = None
if field is not None:
    img = draw_raster(rc.raster(int(width), int(height)), int(width), int(height))

with tabs[0]:
    if img is None:
        st.info("No field yet. Pick the demo points or upload a CSV with at least one valid row.")
    else:
        st.image(img, caption=f"Interpolated soil moisture from {source or 'unknown source'}; circles are the measured points",
                 use_container_width=True)
        s = rc.summary()
        c1, c2, c3 = st.columns(3)
        c1.metric("Min moisture", f"{s.min_value:.1f}")
        c2.metric("Max moisture", f"{s.max_value:.1f}")
        c3.metric("IDW power", f"{s.power:g}")
        st.image(_legend_bytes(s.min_value, s.max_value))

with tabs[1]:
    st.subheader("Field")
    if field is not None:
        rows, cols = field.lattice.shape
        st.caption(f"Lattice: {rows} x {cols} • Samples: {len(rc.samples)} • Recomputations: {rc.runs}")
        st.dataframe([p._asdict() for p in rc.samples], use_container_width=True)
    else:
        st.info("Run with the demo points or upload a CSV to see statistics.")

with tabs[2]:
    st.subheader("Downloads")
    if field is not None:
        st.download_button("Download Map (PNG)", _png_bytes(img), file_name="moisture_map.png", mime="image/png")
        st.download_button("Download Field (GeoTIFF)", _geotiff_bytes(field, config.resolution),
                           file_name="moisture.tif", mime="image/tiff")
        html = make_report_html(field, config, len(rc.samples), image=img, source=source)
        st.download_button("Download Report (HTML)", html.encode("utf-8"), file_name="report.html", mime="text/html")
    else:
        st.info("Nothing to download yet.")

with tabs[3]:
    st.subheader("How it works")
    st.markdown(
        """
        1. **Grid**: a regular lattice covers the samples' bounding box plus the buffer, one node per *resolution* degrees.
        2. **IDW**: each node is the average of all samples weighted by `1 / distance^power`; a node that sits exactly on a sample takes its value.
        3. **Render**: red is the driest reading, cyan the wettest; white circles mark the measured points.

        Distances are taken in raw degrees, which is fine for a plot-sized area.
        """
    )
