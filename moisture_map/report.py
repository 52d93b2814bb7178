import base64
import io
from typing import Optional
import numpy as np
from PIL import Image

from .config import IDWConfig
from .models import InterpolatedField


def field_stats(field: InterpolatedField) -> dict:
    arr = np.asarray(field.estimate, dtype='float64')
    return {
        'min': float(np.nanmin(arr)),
        'max': float(np.nanmax(arr)),
        'mean': float(np.nanmean(arr)),
        'std': float(np.nanstd(arr)),
        'rows': int(arr.shape[0]),
        'cols': int(arr.shape[1])
    }


def _png_data_uri(img: Image.Image) -> str:
    buf = io.BytesIO()
    img.save(buf, 'PNG')
    return 'data:image/png;base64,' + base64.b64encode(buf.getvalue()).decode('ascii')


def make_report_html(field: InterpolatedField, config: IDWConfig, n_samples: int,
                     image: Optional[Image.Image] = None, source: Optional[str] = None) -> str:
    stats = field_stats(field)
    bbox = field.bbox

    html = f"""
<!doctype html>
<html lang='en'>
<head>
<meta charset='utf-8'/>
<meta name='viewport' content='width=device-width,initial-scale=1'/>
<title>Soil Moisture IDW Report</title>
<style>
body{{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu;line-height:1.4;margin:24px;color:#0f172a}}
.card{{border:1px solid #e2e8f0;border-radius:12px;padding:16px;margin-bottom:16px}}
.code{{font-family:ui-monospace,SFMono-Regular,Menlo,Consolas,monospace;background:#f8fafc;border-radius:8px;padding:8px;display:block;white-space:pre-wrap}}
.kv td{{padding:4px 8px;border-bottom:1px solid #f1f5f9}}
img{{max-width:100%;border-radius:8px}}
</style>
</head>
<body>
<h1>Soil Moisture IDW Report</h1>
<div class='card'>
  <h3>Field Stats</h3>
  <table class='kv'>
    <tr><td>Sample min</td><td>{bbox.min_value:.3f}</td></tr>
    <tr><td>Sample max</td><td>{bbox.max_value:.3f}</td></tr>
    <tr><td>Field min</td><td>{stats['min']:.3f}</td></tr>
    <tr><td>Field max</td><td>{stats['max']:.3f}</td></tr>
    <tr><td>Mean</td><td>{stats['mean']:.3f}</td></tr>
    <tr><td>Std</td><td>{stats['std']:.3f}</td></tr>
    <tr><td>Rows (lat)</td><td>{stats['rows']}</td></tr>
    <tr><td>Cols (lon)</td><td>{stats['cols']}</td></tr>
  </table>
</div>
<div class='card'>
  <h3>Inputs</h3>
  <table class='kv'>
    <tr><td>Samples</td><td>{n_samples}</td></tr>
    <tr><td>IDW power</td><td>{config.power:g}</td></tr>
    <tr><td>Resolution (deg)</td><td>{config.resolution:g}</td></tr>
    <tr><td>Buffer (deg)</td><td>{config.buffer:g}</td></tr>
    <tr><td>Latitude</td><td>{bbox.min_lat:.6f} .. {bbox.max_lat:.6f}</td></tr>
    <tr><td>Longitude</td><td>{bbox.min_lon:.6f} .. {bbox.max_lon:.6f}</td></tr>
  </table>
  {f"<div class='code'>CSV: {source}</div>" if source else ''}
</div>
<div class='card'>
  <h3>Map</h3>
  """
    if image is not None:
        html += f"<img alt='Interpolated soil moisture' src='{_png_data_uri(image)}'/>"
    else:
        html += "<div class='code'>No map rendered.</div>"
    html += """
</div>
</body>
</html>
"""
    return html
