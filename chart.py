from __future__ import annotations
import io
import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from progress_service import ProgressData, ProgressPoint

GRID_COLOR = "#e5e7eb"
LABEL_COLOR = "#6b7280"
BACKGROUND = "#ffffff"


class Canvas(Protocol):
    def clear(self, width: int, height: int, fill: str) -> None: ...

    def line(self, x1: float, y1: float, x2: float, y2: float, color: str, width: int = 1) -> None: ...

    def polyline(self, points: Sequence[Tuple[float, float]], color: str, width: int = 1) -> None: ...

    def circle(self, x: float, y: float, radius: float, fill: str) -> None: ...

    def text(self, x: float, y: float, text: str, fill: str, angle: int = 0) -> None: ...


class RecordingCanvas:
    """Canvas that only remembers the drawing calls made on it."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def _record(self, name: str, **kwargs) -> None:
        self.calls.append((name, kwargs))

    def clear(self, width, height, fill):
        self.calls = []
        self._record("clear", width=width, height=height, fill=fill)

    def line(self, x1, y1, x2, y2, color, width=1):
        self._record("line", x1=x1, y1=y1, x2=x2, y2=y2, color=color, width=width)

    def polyline(self, points, color, width=1):
        self._record("polyline", points=list(points), color=color, width=width)

    def circle(self, x, y, radius, fill):
        self._record("circle", x=x, y=y, radius=radius, fill=fill)

    def text(self, x, y, text, fill, angle=0):
        self._record("text", x=x, y=y, text=text, fill=fill, angle=angle)

    def of_kind(self, name: str) -> list[dict]:
        return [kw for n, kw in self.calls if n == name]


class PillowCanvas:
    """Canvas drawing into a Pillow image."""

    def __init__(self, width: int, height: int) -> None:
        self.image = Image.new("RGB", (width, height), BACKGROUND)
        self.draw = ImageDraw.Draw(self.image)
        self.font = ImageFont.load_default()

    def clear(self, width, height, fill):
        self.image = Image.new("RGB", (int(width), int(height)), fill)
        self.draw = ImageDraw.Draw(self.image)

    def line(self, x1, y1, x2, y2, color, width=1):
        self.draw.line((x1, y1, x2, y2), fill=color, width=width)

    def polyline(self, points, color, width=1):
        pts = [(float(x), float(y)) for x, y in points]
        if len(pts) > 1:
            self.draw.line(pts, fill=color, width=width, joint="curve")

    def circle(self, x, y, radius, fill):
        self.draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=fill)

    def text(self, x, y, text, fill, angle=0):
        if not angle:
            self.draw.text((x, y), text, fill=fill, font=self.font)
            return
        left, top, right, bottom = self.draw.textbbox((0, 0), text, font=self.font)
        label = Image.new("RGBA", (right - left + 2, bottom - top + 2), (255, 255, 255, 0))
        ImageDraw.Draw(label).text((-left, -top), text, fill=fill, font=self.font)
        label = label.rotate(angle, expand=True)
        pos = (int(x - label.width / 2), int(y - label.height / 2))
        self.image.paste(label, pos, label)

    def save(self, path: str) -> None:
        self.image.save(path, format="PNG")

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()


@dataclass(frozen=True)
class ChartHit:
    series_label: str
    point: ProgressPoint
    x: float
    y: float
    distance_sq: float


class ChartRenderer:
    """Draw progress series and locate the point under the pointer."""

    ROWS = 4
    MAX_X_LABELS = 5
    HIT_RADIUS = 20
    MARKER_RADIUS = 3
    LINE_WIDTH = 2
    Y_TITLE = "Weight (lb)"

    def __init__(self, width: int, height: int, padding: int = 40) -> None:
        self.width = width
        self.height = height
        self.padding = padding

    def y_max(self, data: ProgressData) -> float:
        weights = [p.weight_lb for s in data.visible_series() for p in s.points]
        return max(10.0, max([0.0] + weights) * 1.2)

    def x_scale(self, data: ProgressData) -> Callable[[float], float]:
        lo, hi = data.domain
        span = hi - lo
        inner = self.width - self.padding * 2
        if len(data.labels) <= 1:
            # one date: index span counts as 1, leftmost point on the axis
            return lambda v: self.padding + (v - lo) * inner / (1 + span)
        if span <= 0:
            return lambda v: float(self.padding)
        return lambda v: self.padding + (v - lo) * inner / span

    def y_scale(self, y_max: float) -> Callable[[float], float]:
        inner = self.height - self.padding * 2
        return lambda v: self.padding + inner * (1 - v / y_max)

    def point_position(
        self, data: ProgressData, point: ProgressPoint, y_max: float | None = None
    ) -> Tuple[float, float]:
        y_max = self.y_max(data) if y_max is None else y_max
        return self.x_scale(data)(point.x), self.y_scale(y_max)(point.weight_lb)

    def _draw_axes(self, canvas: Canvas, data: ProgressData, y_max: float) -> None:
        pad = self.padding
        inner_h = self.height - pad * 2
        for i in range(self.ROWS + 1):
            y = pad + inner_h * i / self.ROWS
            canvas.line(pad, y, self.width - pad, y, GRID_COLOR, 1)
        for i in range(self.ROWS + 1):
            value = y_max * (1 - i / self.ROWS)
            y = pad + inner_h * i / self.ROWS + 4
            canvas.text(pad - 30, y, str(math.floor(value + 0.5)), LABEL_COLOR)
        canvas.text(4, self.height / 2, self.Y_TITLE, LABEL_COLOR, angle=90)
        stride = max(1, len(data.labels) // self.MAX_X_LABELS)
        x_scale = self.x_scale(data)
        for i, label in enumerate(data.labels):
            if i % stride:
                continue
            canvas.text(x_scale(i) - 16, self.height - pad + 14, label, LABEL_COLOR)

    def render(self, canvas: Canvas, data: ProgressData) -> float:
        """Draw ``data`` onto ``canvas``; return the y-axis maximum used."""
        canvas.clear(self.width, self.height, BACKGROUND)
        y_max = self.y_max(data)
        self._draw_axes(canvas, data, y_max)
        x_scale = self.x_scale(data)
        y_scale = self.y_scale(y_max)
        for s in data.visible_series():
            if not s.points:
                continue
            pts = [(x_scale(p.x), y_scale(p.weight_lb)) for p in s.points]
            canvas.polyline(pts, s.color, self.LINE_WIDTH)
            for x, y in pts:
                canvas.circle(x, y, self.MARKER_RADIUS, s.color)
        return y_max

    def hit_test(self, data: ProgressData, mx: float, my: float) -> Optional[ChartHit]:
        if not data.labels:
            return None
        y_max = self.y_max(data)
        x_scale = self.x_scale(data)
        y_scale = self.y_scale(y_max)
        best: Optional[ChartHit] = None
        for s in data.visible_series():
            for p in s.points:
                x, y = x_scale(p.x), y_scale(p.weight_lb)
                d2 = (mx - x) ** 2 + (my - y) ** 2
                if best is None or d2 < best.distance_sq:
                    best = ChartHit(s.label, p, x, y, d2)
        if best is not None and best.distance_sq < self.HIT_RADIUS**2:
            return best
        return None

    def tooltip(self, data: ProgressData, hit: ChartHit) -> str:
        label = data.labels[hit.point.workout_index]
        return (
            f"{hit.series_label}\n{label} — {hit.point.weight_lb:.1f} lb • "
            f"{hit.point.reps} reps"
        )

    def legend(self, data: ProgressData) -> List[Tuple[str, str]]:
        return [(s.label, s.color if s.visible else "#cccccc") for s in data.series]
