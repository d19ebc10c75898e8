"""
Tests for the OpenCV drawing surface

Runs anywhere: no OpenGL context is needed. Assertions check pixel
properties (dark vs light, opacity ordering) rather than exact values,
so they stay valid if anti-aliasing details change.
"""

import pytest
import numpy as np

from blackout_lines.core import create_canvas_fill
from blackout_lines.opencv_shell import (
    OpenCVCanvas,
    color_to_uint8,
    fill_canvas_opencv,
    read_canvas,
    render_polylines_opencv,
    render_scene_opencv,
    to_cv2_points,
)
from blackout_lines.animation import tick
from blackout_lines.noise import PerlinNoise
from blackout_lines.sketch_types import AnimationState, PointerInput, SketchConfig


@pytest.fixture
def small_canvas():
    with OpenCVCanvas(width=100, height=100) as canvas:
        yield canvas


def horizontal_line(weight=1.0, alpha=1.0):
    return {
        'points': np.array([[10.0, 50.0], [90.0, 50.0]]),
        'weight': weight,
        'color': (0.0, 0.0, 0.0),
        'alpha': alpha,
        'layer': 'coarse',
    }


# ============================================================================
# LEVEL 1: Smoke Tests
# ============================================================================

def test_canvas_starts_white(small_canvas):
    result = read_canvas(small_canvas)
    assert result.shape == (100, 100, 3)
    assert result.dtype == np.uint8
    assert result.min() == 255


def test_read_returns_copy(small_canvas):
    result = read_canvas(small_canvas)
    result[:] = 0
    assert small_canvas.pixels.min() == 255


def test_color_to_uint8():
    assert color_to_uint8((1.0, 0.5, 0.0)) == (255, 128, 0)


def test_to_cv2_points_fixed_point():
    """Vertices become int32 in 1/16 pixel units"""
    result = to_cv2_points(np.array([[1.5, 2.25], [3.0, 4.0]]))
    assert result.shape == (2, 1, 2)
    assert result.dtype == np.int32
    assert result[0, 0].tolist() == [24, 36]


def test_empty_polylines_noop(small_canvas):
    render_polylines_opencv(small_canvas, [])
    assert small_canvas.pixels.min() == 255


# ============================================================================
# LEVEL 2: Property Tests
# ============================================================================

def test_opaque_fill_replaces_canvas(small_canvas):
    """A fully opaque overlay turns the canvas black"""
    fill_canvas_opencv(small_canvas, create_canvas_fill(100, 100, 0, 255))
    assert small_canvas.pixels.max() == 0


def test_transparent_fill_noop(small_canvas):
    fill_canvas_opencv(small_canvas, create_canvas_fill(100, 100, 0, 0))
    assert small_canvas.pixels.min() == 255


def test_trail_fill_lightens_black(small_canvas):
    """White at alpha 10 over black gives about 10"""
    small_canvas.pixels[:] = 0
    fill_canvas_opencv(small_canvas, create_canvas_fill(100, 100, 255, 10))
    assert abs(int(small_canvas.pixels[0, 0, 0]) - 10) <= 1
    assert np.all(small_canvas.pixels == small_canvas.pixels[0, 0, 0])


def test_repeated_trail_fills_converge_to_white(small_canvas):
    small_canvas.pixels[:] = 0
    fill = create_canvas_fill(100, 100, 255, 10)
    for _ in range(300):
        fill_canvas_opencv(small_canvas, fill)
    assert small_canvas.pixels.min() > 240


def test_polyline_darkens_pixels(small_canvas):
    render_polylines_opencv(small_canvas, [horizontal_line()])
    assert small_canvas.pixels[49:52, 20:80].min() < 100
    # Far from the line stays white
    assert small_canvas.pixels[10, 50].min() == 255


def test_thin_stroke_lighter_than_full(small_canvas):
    """Sub-pixel weight draws with reduced opacity"""
    render_polylines_opencv(small_canvas, [horizontal_line(weight=0.5)])
    thin = small_canvas.pixels[49:52, 20:80].min()

    with OpenCVCanvas(width=100, height=100) as other:
        render_polylines_opencv(other, [horizontal_line(weight=1.0)])
        full = other.pixels[49:52, 20:80].min()

    assert full < thin < 255


def test_degenerate_polyline_skipped(small_canvas):
    single = horizontal_line()
    single['points'] = single['points'][:1]
    render_polylines_opencv(small_canvas, [single])
    assert small_canvas.pixels.min() == 255


def test_scene_with_full_overlay_is_black():
    config = SketchConfig(width=120, height=90)
    state = AnimationState(is_blackout=True, fade_level=255.0)
    _, scene = tick(state, PointerInput(60, 45), PerlinNoise(seed=4), config)

    with OpenCVCanvas(config.width, config.height) as canvas:
        render_scene_opencv(canvas, scene)
        assert read_canvas(canvas).max() == 0


def test_scene_draws_lines():
    config = SketchConfig(width=120, height=90)
    _, scene = tick(AnimationState(), PointerInput(60, 45), PerlinNoise(seed=4), config)

    with OpenCVCanvas(config.width, config.height) as canvas:
        render_scene_opencv(canvas, scene)
        result = read_canvas(canvas)
        assert result.min() < 128
        assert result.max() == 255


def test_timings_recorded():
    config = SketchConfig(width=60, height=40)
    _, scene = tick(AnimationState(), PointerInput(30, 20), PerlinNoise(seed=4), config)

    with OpenCVCanvas(config.width, config.height, enable_timing=True) as canvas:
        render_scene_opencv(canvas, scene)
        read_canvas(canvas)
        summary = canvas.timings.get_summary()

    assert summary['render_scene_total']['count'] == 1
    assert summary['fill_canvas']['count'] == 2
    assert 'render_polylines' in summary
    assert 'read_canvas' in summary
