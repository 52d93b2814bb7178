import csv, math, random
from pathlib import Path
import typer

app = typer.Typer(add_completion=False)

@app.command()
def main(
    out: Path = typer.Option(..., help='CSV output path'),
    n: int = typer.Option(40, help='Number of probe readings'),
    headerless: bool = typer.Option(False, help='Write bare lat,lon,moisture rows (sensor logger format)'),
):
    random.seed(42)
    clat, clon = 29.6000, -95.7500  # ~45 m square plot
    pts = []
    for _ in range(n):
        dlat = (random.random() - 0.5) * 0.0012
        dlon = (random.random() - 0.5) * 0.0012
        # wetter toward the south-west corner
        m = 50 + 8 * math.tanh((-dlat - dlon) / 0.0004) + random.random() * 2.0
        pts.append((round(clat + dlat, 6), round(clon + dlon, 6), round(m, 2)))
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open('w', newline='', encoding='utf-8') as f:
        w = csv.writer(f)
        if not headerless:
            w.writerow(['latitude', 'longitude', 'moisture'])
        w.writerows(pts)
    print(f'Wrote {len(pts)} points to {out}')

if __name__ == '__main__':
    app()
