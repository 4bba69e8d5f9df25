"""Vector document output: draws scaled geometries onto a matplotlib Axes.

The Axes is set up in canvas units with a top-left origin so the same scale
record serves the raster, SVG and document outputs; saving the figure as PDF
keeps every primitive as a vector drawing command.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any

from .labels import drawable_points, is_drawn, label_anchor
from .models import Connection, RenderGeometry
from .scale import is_drawable
from .style import (
    PDF_LABEL_FONT_SIZE,
    PDF_LINE_WIDTH,
    PDF_POINT_LINE_WIDTH,
    PDF_POINT_RADIUS,
    PDF_POLYGON_EDGE_WIDTH,
    clean_label,
    to_unit_rgb,
)


_POINTS_PER_INCH = 72.0


def new_document(width: float, height: float, *, title: str | None = None) -> tuple[Any, Any]:
    """Create a one-page figure whose data coordinates are canvas units."""
    plt, _, _ = _require_matplotlib()
    fig = plt.figure(figsize=(width / _POINTS_PER_INCH, height / _POINTS_PER_INCH), dpi=_POINTS_PER_INCH)
    ax = fig.add_axes((0.0, 0.0, 1.0, 1.0))
    ax.set_xlim(0.0, width)
    ax.set_ylim(height, 0.0)
    ax.set_aspect("equal", adjustable="box")
    ax.axis("off")
    if title:
        ax.text(4.0, 4.0, title, fontsize=PDF_LABEL_FONT_SIZE + 3, va="top", ha="left")
    return (fig, ax)


def save_document(fig: Any, path: Path) -> Path:
    plt, _, _ = _require_matplotlib()
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fig.savefig(path, format="pdf")
    finally:
        plt.close(fig)
    return path


def draw_geometry(ax: Any, geometry: RenderGeometry, label: str, color: str) -> Any:
    """Add one row's primitives to ``ax``; rows without drawable vertices leave it untouched."""
    rgb = to_unit_rgb(color)
    anchor = label_anchor(geometry)
    if anchor is None:
        return ax

    _, patches, lines = _require_matplotlib()
    for shape in geometry.shapes:
        if not is_drawn(geometry, shape):
            continue
        if geometry.connection is Connection.MARKER:
            for x, y in shape[0]:
                if is_drawable((x, y)):
                    ax.add_patch(
                        patches.Circle(
                            (x, y),
                            radius=PDF_POINT_RADIUS,
                            fill=False,
                            linewidth=PDF_POINT_LINE_WIDTH,
                            edgecolor=rgb,
                        )
                    )
        elif geometry.connection is Connection.PATH:
            points = drawable_points(shape[0])
            ax.add_line(
                lines.Line2D(
                    [p[0] for p in points],
                    [p[1] for p in points],
                    linewidth=PDF_LINE_WIDTH,
                    color=rgb,
                )
            )
        else:
            for ring_idx, ring in enumerate(shape):
                points = drawable_points(ring)
                if len(points) < 3:
                    continue
                ax.add_patch(
                    patches.Polygon(
                        points,
                        closed=True,
                        facecolor=rgb if ring_idx == 0 else "white",
                        edgecolor="black",
                        linewidth=PDF_POLYGON_EDGE_WIDTH,
                    )
                )

    text = clean_label(label)
    if text:
        ax.text(anchor[0], anchor[1], text, fontsize=PDF_LABEL_FONT_SIZE, va="top", ha="left")
    return ax


@lru_cache(maxsize=1)
def _require_matplotlib() -> tuple[Any, Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.lines as lines
        import matplotlib.patches as patches
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for vector document rendering") from exc
    return (plt, patches, lines)
