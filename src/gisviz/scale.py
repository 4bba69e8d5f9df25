"""Bounding box accumulation and the frozen raw-to-pixel transform."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence


_LOGGER = logging.getLogger("gisviz.scale")

PixelPair = tuple[float | None, float | None]


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Running extent of a batch; all fields are None until a pair is scanned."""

    min_x: float | None = None
    min_y: float | None = None
    max_x: float | None = None
    max_y: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.min_x is None

    def include(self, x: float, y: float) -> BoundingBox:
        if self.min_x is None or self.min_y is None or self.max_x is None or self.max_y is None:
            return BoundingBox(min_x=x, min_y=y, max_x=x, max_y=y)
        return BoundingBox(
            min_x=min(self.min_x, x),
            min_y=min(self.min_y, y),
            max_x=max(self.max_x, x),
            max_y=max(self.max_y, y),
        )

    def merge(self, other: BoundingBox) -> BoundingBox:
        if other.is_empty:
            return self
        box = self.include(float(other.min_x), float(other.min_y))  # type: ignore[arg-type]
        return box.include(float(other.max_x), float(other.max_y))  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class PaddingPolicy:
    border_px: float = 0.0
    keep_aspect: bool = True
    flip_y: bool = False


@dataclass(frozen=True, slots=True)
class ScaleRecord:
    """Frozen mapping from raw coordinates into canvas space for one batch."""

    min_x: float
    min_y: float
    scale_x: float
    scale_y: float
    offset_x: float
    offset_y: float
    canvas_width: float
    canvas_height: float
    flip_y: bool = False
    max_x: float | None = None
    max_y: float | None = None

    def apply_x(self, x: float) -> float:
        return (x - self.min_x) * self.scale_x + self.offset_x

    def apply_y(self, y: float) -> float:
        py = (y - self.min_y) * self.scale_y + self.offset_y
        if self.flip_y:
            py = self.canvas_height - py
        return py

    def apply(self, x: float, y: float) -> tuple[float, float]:
        return (self.apply_x(x), self.apply_y(y))

    @property
    def source_extent(self) -> tuple[float, float, float, float]:
        """Raw ``(min_x, min_y, max_x, max_y)`` the record was frozen from."""
        max_x = self.min_x if self.max_x is None else self.max_x
        max_y = self.min_y if self.max_y is None else self.max_y
        return (self.min_x, self.min_y, max_x, max_y)


def to_number(value: str | float | None) -> float | None:
    """Return the numeric value of a coordinate component, None when blank."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = value.strip()
    if not text:
        return None
    return float(text)


def scan(pairs: Iterable[Sequence[str | float | None]], box: BoundingBox) -> BoundingBox:
    """Fold complete pairs into ``box``; pairs with a blank component are skipped."""
    for pair in pairs:
        x = to_number(pair[0])
        y = to_number(pair[1]) if len(pair) > 1 else None
        if x is None or y is None:
            continue
        box = box.include(x, y)
    return box


def freeze(
    box: BoundingBox,
    canvas_width: float,
    canvas_height: float,
    padding: PaddingPolicy | None = None,
) -> ScaleRecord:
    """Compute the batch transform so the whole extent fits the canvas.

    A zero-width (or zero-height) extent gets scale 1 on that axis and is
    centered; an empty box is treated as a single point at the origin.
    """
    policy = padding if padding is not None else PaddingPolicy()
    if canvas_width <= 0 or canvas_height <= 0:
        raise ValueError("Canvas width and height must be > 0")

    min_x = 0.0 if box.min_x is None else float(box.min_x)
    min_y = 0.0 if box.min_y is None else float(box.min_y)
    max_x = min_x if box.max_x is None else float(box.max_x)
    max_y = min_y if box.max_y is None else float(box.max_y)

    border = max(float(policy.border_px), 0.0)
    plot_width = max(canvas_width - 2.0 * border, 0.0)
    plot_height = max(canvas_height - 2.0 * border, 0.0)

    extent_x = max_x - min_x
    extent_y = max_y - min_y
    degenerate_x = extent_x <= 0.0
    degenerate_y = extent_y <= 0.0

    scale_x = 1.0 if degenerate_x else plot_width / extent_x
    scale_y = 1.0 if degenerate_y else plot_height / extent_y
    if policy.keep_aspect and not degenerate_x and not degenerate_y:
        scale_x = scale_y = min(scale_x, scale_y)

    offset_x = border + (plot_width - extent_x * scale_x) / 2.0
    offset_y = border + (plot_height - extent_y * scale_y) / 2.0

    record = ScaleRecord(
        min_x=min_x,
        min_y=min_y,
        scale_x=scale_x,
        scale_y=scale_y,
        offset_x=offset_x,
        offset_y=offset_y,
        canvas_width=float(canvas_width),
        canvas_height=float(canvas_height),
        flip_y=policy.flip_y,
        max_x=max_x,
        max_y=max_y,
    )
    _LOGGER.debug(
        "Frozen scale: extent=(%s, %s, %s, %s) scale=(%s, %s) offset=(%s, %s)",
        min_x,
        min_y,
        max_x,
        max_y,
        scale_x,
        scale_y,
        offset_x,
        offset_y,
    )
    return record


def transform(
    pairs: Iterable[Sequence[str | float | None]],
    scale: ScaleRecord,
) -> list[PixelPair]:
    """Map raw pairs into canvas space, axis by axis.

    A blank component stays None; callers decide drawability with
    ``is_drawable`` since a marker needs both axes.
    """
    out: list[PixelPair] = []
    for pair in pairs:
        x = to_number(pair[0])
        y = to_number(pair[1]) if len(pair) > 1 else None
        out.append(
            (
                None if x is None else scale.apply_x(x),
                None if y is None else scale.apply_y(y),
            )
        )
    return out


def is_drawable(pair: PixelPair) -> bool:
    return pair[0] is not None and pair[1] is not None


def format_number(value: float) -> str:
    """Compact decimal text for markup output (``30.0`` -> ``30``)."""
    text = f"{value:.4f}".rstrip("0").rstrip(".")
    return "0" if text in {"-0", ""} else text
