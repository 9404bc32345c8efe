"""
Visual description of a chart: path, points, value labels, axis ticks and
clickable time labels. `ChartRender.to_svg()` serializes it for hosts that
want markup.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from ..timecode import display_label
from .geometry import MARGIN, ChartGeometry, ChartSample

POINT_RADIUS = 4
VALUE_LABEL_OFFSET = 12
TICK_LABEL_X = MARGIN - 10
TIME_LABEL_OFFSET = 40


def format_number(value: float) -> str:
    """Compact number text: integers without a decimal point, others to 3 places."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.3f}".rstrip("0").rstrip(".")


class YTick(BaseModel):
    value: float
    y: float
    label: str


class TimeLabel(BaseModel):
    """Clickable x-axis label; activating it seeks to `seconds`."""

    time: str
    label: str
    seconds: int
    x: float
    y: float


class DataPoint(BaseModel):
    time: str
    value: float
    cx: float
    cy: float
    r: float = POINT_RADIUS
    label: str
    label_y: float


class AxisTitle(BaseModel):
    text: str
    x: float
    y: float
    rotate: float = 90


class ChartRender(BaseModel):
    width: float
    height: float
    path: str = ""
    points: list[DataPoint] = Field(default_factory=list)
    y_ticks: list[YTick] = Field(default_factory=list)
    time_labels: list[TimeLabel] = Field(default_factory=list)
    title: Optional[AxisTitle] = None

    def to_svg(self) -> str:
        svg = ET.Element(
            "svg",
            {
                "xmlns": "http://www.w3.org/2000/svg",
                "class": "lineChart",
                "width": format_number(self.width),
                "height": format_number(self.height),
            },
        )

        axis = ET.SubElement(svg, "g", {"class": "axisLabels"})
        for tick in self.y_ticks:
            g = ET.SubElement(axis, "g", {"transform": f"translate(0 {format_number(tick.y)})"})
            text = ET.SubElement(
                g, "text", {"x": format_number(TICK_LABEL_X), "dy": "0.25em", "text-anchor": "end"}
            )
            text.text = tick.label

        times = ET.SubElement(svg, "g", {"class": "axisLabels timeLabels"})
        for t in self.time_labels:
            text = ET.SubElement(
                times,
                "text",
                {
                    "x": format_number(t.x),
                    "y": format_number(t.y),
                    "role": "button",
                    "data-seconds": str(t.seconds),
                },
            )
            text.text = t.label

        if self.path:
            line = ET.SubElement(svg, "g")
            ET.SubElement(line, "path", {"d": self.path, "fill": "none"})

        points = ET.SubElement(svg, "g")
        for p in self.points:
            g = ET.SubElement(points, "g", {"class": "dataPoint"})
            ET.SubElement(
                g,
                "circle",
                {"cx": format_number(p.cx), "cy": format_number(p.cy), "r": format_number(p.r)},
            )
            label = ET.SubElement(g, "text", {"x": format_number(p.cx), "y": format_number(p.label_y)})
            label.text = p.label

        if self.title is not None:
            title = ET.SubElement(
                svg,
                "text",
                {
                    "class": "axisTitle",
                    "x": format_number(self.title.x),
                    "y": format_number(self.title.y),
                    "transform": f"rotate({format_number(self.title.rotate)})",
                },
            )
            title.text = self.title.text

        return ET.tostring(svg, encoding="unicode")


def line_path(geometry: ChartGeometry, samples: Sequence[ChartSample]) -> str:
    """Straight segments through the samples in the order given ('M x,y L x,y ...')."""
    coords = []
    for s in samples:
        x = geometry.x_band(s.time)
        if x is None:
            continue
        coords.append(f"{format_number(x)},{format_number(geometry.y_scale(s.value))}")
    if not coords:
        return ""
    return "M" + "L".join(coords)


def render(geometry: ChartGeometry, samples: Sequence[ChartSample], y_label: str = "") -> ChartRender:
    """Lay out every chart element for one geometry snapshot. Pure."""
    y_ticks = [
        YTick(value=tick, y=geometry.y_scale(tick), label=format_number(tick))
        for tick in geometry.ticks
    ]

    time_y = geometry.y_max + TIME_LABEL_OFFSET
    time_labels: list[TimeLabel] = []
    points: list[DataPoint] = []
    for s in samples:
        x = geometry.x_band(s.time)
        if x is None:
            continue
        y = geometry.y_scale(s.value)
        time_labels.append(
            TimeLabel(time=s.time, label=display_label(s.time), seconds=s.seconds, x=x, y=time_y)
        )
        points.append(
            DataPoint(
                time=s.time,
                value=s.value,
                cx=x,
                cy=y,
                label=format_number(s.value),
                label_y=y - VALUE_LABEL_OFFSET,
            )
        )

    title = None
    if y_label:
        title = AxisTitle(text=y_label, x=MARGIN, y=-geometry.width + MARGIN)

    return ChartRender(
        width=geometry.width,
        height=geometry.height,
        path=line_path(geometry, samples),
        points=points,
        y_ticks=y_ticks,
        time_labels=time_labels,
        title=title,
    )
