"""Tests for chart scales, geometry, rendering and the seek component."""

import math
import xml.etree.ElementTree as ET

import pytest
from pydantic import ValidationError

from shared.schemas import QueryResult, TimedEntry
from timelens.chart import (
    MARGIN,
    TimeSeriesChart,
    compute_geometry,
    render,
    samples_from_pairs,
    samples_from_result,
)
from timelens.chart.render import format_number
from timelens.chart.scales import band_scale, even_ticks, nice_domain, tick_increment
from timelens.errors import FormatError

FOUR = [("00:00", 1), ("00:05", 3), ("00:10", 2), ("00:15", 5)]


# --- scales ---


@pytest.mark.parametrize(
    "start, stop, expected",
    [
        (0, 1, (0.0, 1.0)),
        (1, 5, (1.0, 5.0)),
        (0.3, 9.7, (0.0, 10.0)),
        (2, 4, (2.0, 4.0)),
        (3, 97, (0.0, 100.0)),
        (-7, 13, (-8.0, 14.0)),
    ],
)
def test_nice_domain(start, stop, expected):
    assert nice_domain(start, stop) == expected


def test_nice_domain_reversed():
    assert nice_domain(9.7, 0.3) == (10.0, 0.0)


def test_tick_increment():
    assert tick_increment(0, 10, 10) == 1
    assert tick_increment(0, 100, 10) == 10
    # negative means 1/k
    assert tick_increment(0, 1, 10) == -10


def test_even_ticks():
    assert even_ticks(0, 1, 0) == ()
    assert even_ticks(0, 1, 1) == (0.0,)
    assert even_ticks(1, 5, 5) == (1.0, 2.0, 3.0, 4.0, 5.0)
    assert even_ticks(0, 1, 3) == (0.0, 0.5, 1.0)


def test_band_scale_dedups_labels():
    scale = band_scale(["a", "b", "a"], (0, 100))
    assert scale.domain == ("a", "b")
    assert len(scale.positions) == 2
    assert scale("missing") is None


def test_band_scale_reversed_range():
    forward = band_scale(["a", "b"], (0, 100))
    backward = band_scale(["a", "b"], (100, 0))
    assert backward("a") == forward("b")
    assert backward("b") == forward("a")


# --- geometry ---


@pytest.mark.parametrize("width, height", [(0, 0), (1, 1), (320, 200), (800, 400), (1920, 1080)])
def test_empty_samples_use_unit_domain(width, height):
    geometry = compute_geometry([], width, height)
    assert geometry.y_scale.domain == (0.0, 1.0)
    assert geometry.x_band.domain == ()


def test_height_700_has_ten_ticks():
    assert len(compute_geometry([], 600, 700).ticks) == 10
    geometry = compute_geometry(samples_from_pairs(FOUR), 600, 700)
    assert len(geometry.ticks) == 10
    assert geometry.ticks[0] == geometry.y_scale.domain[0]
    assert geometry.ticks[-1] == geometry.y_scale.domain[1]


@pytest.mark.parametrize("height, count", [(0, 0), (69, 0), (70, 1), (400, 5), (1080, 15)])
def test_tick_count_follows_height(height, count):
    assert len(compute_geometry([], 600, height).ticks) == count


def test_four_samples_evenly_banded():
    geometry = compute_geometry(samples_from_pairs(FOUR), 600, 400)
    band = geometry.x_band

    assert band.domain == ("00:00", "00:05", "00:10", "00:15")
    gaps = [b - a for a, b in zip(band.positions, band.positions[1:])]
    assert gaps == pytest.approx([band.step] * 3)
    assert band.step == pytest.approx((600 - (MARGIN + 10)) / 4.2)
    assert band.bandwidth == pytest.approx(band.step * 0.8)

    lo, hi = geometry.y_scale.domain
    assert lo <= 1 and hi >= 5


def test_vertical_axis_is_inverted():
    geometry = compute_geometry(samples_from_pairs(FOUR), 600, 400)
    lo, hi = geometry.y_scale.domain
    assert geometry.y_scale(lo) == pytest.approx(400 - MARGIN)
    assert geometry.y_scale(hi) == pytest.approx(MARGIN)
    assert geometry.y_scale(5) < geometry.y_scale(1)


def test_flat_series_is_widened():
    geometry = compute_geometry(samples_from_pairs([("00:00", 3), ("00:05", 3)]), 600, 400)
    assert geometry.y_scale.domain == (2.0, 4.0)
    assert geometry.y_scale(3) == pytest.approx(200)


def test_geometry_is_deterministic():
    samples = samples_from_pairs(FOUR)
    assert compute_geometry(samples, 640, 480) == compute_geometry(samples, 640, 480)


@pytest.mark.parametrize("lo, hi", [(-1e308, 1e308), (0.0, 5e-324)])
def test_extreme_domain_left_as_is(lo, hi):
    assert nice_domain(lo, hi) == (lo, hi)

    geometry = compute_geometry(samples_from_pairs([("00:00", lo), ("00:05", hi)]), 600, 700)
    assert geometry.y_scale.domain == (lo, hi)
    assert len(geometry.ticks) == 10
    assert all(math.isfinite(t) for t in geometry.ticks)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        compute_geometry([], -1, 100)


# --- samples ---


def test_samples_from_result():
    result = QueryResult(
        function_name="set_timecodes_with_numeric_values",
        entries=[TimedEntry(time="00:01:23", value=7), TimedEntry(time="00:05", value=2.5)],
    )
    samples = samples_from_result(result)
    assert [(s.time, s.value, s.seconds) for s in samples] == [("00:01:23", 7.0, 83), ("00:05", 2.5, 5)]


def test_sample_rejects_bad_time():
    with pytest.raises(FormatError):
        samples_from_pairs([("later", 1)])


def test_sample_rejects_non_numeric_value():
    with pytest.raises(ValidationError):
        samples_from_pairs([("00:01", "lots")])


# --- render ---


def test_render_elements():
    samples = samples_from_pairs([("00:01:23", 4), ("00:01:30", 7.25)])
    geometry = compute_geometry(samples, 600, 400)
    chart = render(geometry, samples, y_label="Excitement")

    assert [t.label for t in chart.time_labels] == ["01:23", "01:30"]
    assert [t.seconds for t in chart.time_labels] == [83, 90]
    assert all(t.y == 400 - MARGIN + 40 for t in chart.time_labels)
    assert [p.label for p in chart.points] == ["4", "7.25"]
    assert all(p.label_y == p.cy - 12 for p in chart.points)
    assert chart.path.startswith("M") and chart.path.count("L") == 1
    assert len(chart.y_ticks) == len(geometry.ticks)
    assert chart.title.text == "Excitement"
    assert chart.title.y == -600 + MARGIN


def test_render_empty():
    chart = render(compute_geometry([], 300, 200), [])
    assert chart.path == ""
    assert chart.points == []
    assert chart.title is None
    assert [t.label for t in chart.y_ticks] == ["0", "1"]


def test_to_svg():
    samples = samples_from_pairs(FOUR)
    svg = render(compute_geometry(samples, 600, 400), samples, "Score").to_svg()
    root = ET.fromstring(svg)

    ns = "{http://www.w3.org/2000/svg}"
    assert root.tag == f"{ns}svg"
    buttons = [el for el in root.iter(f"{ns}text") if el.get("role") == "button"]
    assert [b.get("data-seconds") for b in buttons] == ["0", "5", "10", "15"]
    assert len(list(root.iter(f"{ns}circle"))) == 4
    assert len(list(root.iter(f"{ns}path"))) == 1


def test_format_number():
    assert format_number(3.0) == "3"
    assert format_number(0.5) == "0.5"
    assert format_number(1 / 3) == "0.333"


# --- component ---


def test_seek_forwards_seconds():
    seen = []
    chart = TimeSeriesChart(on_seek=seen.append)
    assert chart.seek("01:23") == 83
    assert seen == [83]


def test_seek_malformed_label_does_not_call_back():
    seen = []
    chart = TimeSeriesChart(on_seek=seen.append)
    with pytest.raises(FormatError):
        chart.seek("1m23s")
    assert seen == []


def test_seek_index():
    seen = []
    chart = TimeSeriesChart(on_seek=seen.append, samples=samples_from_pairs(FOUR), width=600, height=400)
    assert chart.seek_index(3) == 15
    assert chart.seek_index(4) is None
    assert seen == [15]


def test_resize_recomputes_geometry():
    samples = samples_from_pairs(FOUR)
    chart = TimeSeriesChart(on_seek=lambda s: None, samples=samples, width=600, height=400)

    geometry = chart.resize(900, 700)
    assert geometry == compute_geometry(samples, 900, 700)
    assert chart.geometry is geometry
    assert chart.render().width == 900


def test_set_samples_keeps_size():
    chart = TimeSeriesChart(on_seek=lambda s: None, width=600, height=400)
    assert chart.geometry.y_scale.domain == (0.0, 1.0)

    chart.set_samples(samples_from_pairs(FOUR))
    assert chart.snapshot.width == 600 and chart.snapshot.height == 400
    assert len(chart.render().points) == 4
