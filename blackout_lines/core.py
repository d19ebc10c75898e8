"""
Blackout Lines - Functional Core

Pure functions for the per-frame calculations.
No side effects, no GPU or window operations - only calculations.

Follows functional core, imperative shell pattern:
- This module: Pure transformations (testable, predictable)
- shell.py / opencv_shell.py: Drawing surfaces (side effects)
"""

import numpy as np
from typing import Tuple, List, Dict, Any, Callable

from .sketch_types import LayerSpec, SketchConfig


# ============================================================================
# Range Mapping
# ============================================================================

def map_range(value, in_min: float, in_max: float, out_min: float, out_max: float):
    """Linearly re-map a value (or numpy array) from one range onto another

    Values outside the input range extrapolate; clamp first when needed.

    Examples:
        >>> map_range(300, 0, 600, 5, 30)
        17.5
        >>> map_range(0.5, 0, 1, -50, 50)
        0.0
    """
    return (value - in_min) / (in_max - in_min) * (out_max - out_min) + out_min


def clamp(value: float, low: float, high: float) -> float:
    """Constrain value to [low, high]"""
    return max(low, min(high, value))


# ============================================================================
# Phase Timer and Fade Controller
# ============================================================================

def advance_phase(
    is_blackout: bool,
    phase_timer: int,
    movement_duration: int,
    blackout_duration: int
) -> Tuple[bool, int]:
    """Advance the movement/blackout state machine by one frame

    The timer is incremented first, then compared with strict greater-than,
    so a phase switches on the (duration + 1)-th increment.

    Args:
        is_blackout: Current phase flag
        phase_timer: Frames counted in the current phase
        movement_duration: Movement phase threshold
        blackout_duration: Blackout phase threshold

    Returns:
        (is_blackout, phase_timer) after this frame
    """
    phase_timer += 1

    if not is_blackout and phase_timer > movement_duration:
        return True, 0
    if is_blackout and phase_timer > blackout_duration:
        return False, 0

    return is_blackout, phase_timer


def update_fade(fade_level: float, is_blackout: bool, fade_step: float) -> float:
    """Ramp overlay opacity toward black in blackout, toward clear otherwise

    Returns:
        New fade level clamped to [0, 255]
    """
    if is_blackout:
        return clamp(fade_level + fade_step, 0.0, 255.0)
    return clamp(fade_level - fade_step, 0.0, 255.0)


# ============================================================================
# Input Mapping
# ============================================================================

def pointer_to_noise_scale(pointer_x: float, config: SketchConfig) -> float:
    """Map pointer X across the canvas onto the noise scale range

    Examples:
        >>> pointer_to_noise_scale(0, SketchConfig())
        0.005
    """
    x = clamp(pointer_x, 0.0, float(config.width))
    low, high = config.noise_scale_range
    return map_range(x, 0.0, float(config.width), low, high)


def pointer_to_line_spacing(pointer_y: float, config: SketchConfig) -> float:
    """Map pointer Y down the canvas onto the line spacing range

    Examples:
        >>> pointer_to_line_spacing(300, SketchConfig())
        17.5
    """
    y = clamp(pointer_y, 0.0, float(config.height))
    low, high = config.line_spacing_range
    return map_range(y, 0.0, float(config.height), low, high)


# ============================================================================
# Line Field Construction
# ============================================================================

def sample_positions(step: float, limit: float) -> np.ndarray:
    """Positions 0, step, 2*step, ... strictly below limit

    Positions are computed as index * step rather than by repeated addition.
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")
    positions = np.arange(0.0, limit, step, dtype=np.float64)
    return positions[positions < limit]


def build_layer_polylines(
    layer: LayerSpec,
    noise: Callable,
    noise_scale_x: float,
    noise_scale_y: float,
    line_spacing: float,
    frame_count: int,
    width: float,
    height: float,
    stroke_color: Tuple[float, float, float] = (0.0, 0.0, 0.0)
) -> List[Dict[str, Any]]:
    """Build one field of noise-displaced horizontal polylines

    Each row y gets one open polyline. A vertex at column x is displaced
    vertically by the noise value at
    (x * scale_x, y * scale_y + frame_count * time_speed), mapped onto
    [-amplitude, amplitude].

    Args:
        layer: Layer parameters
        noise: Coherent noise callable accepting broadcastable arrays
        noise_scale_x, noise_scale_y: Noise sampling scale
        line_spacing: Base row spacing (multiplied by the layer's multiplier)
        frame_count: Current frame number (noise time axis)
        width, height: Canvas size
        stroke_color: RGB stroke color (0.0 to 1.0)

    Returns:
        List of polyline specs with 'points' as (N, 2) float arrays
    """
    rows = sample_positions(line_spacing * layer.spacing_multiplier, height)
    columns = sample_positions(layer.x_step, width)
    if rows.size == 0 or columns.size == 0:
        return []

    noise_x = columns * noise_scale_x * layer.noise_multiplier
    noise_y = rows * noise_scale_y * layer.noise_multiplier + frame_count * layer.time_speed

    values = noise(noise_x[np.newaxis, :], noise_y[:, np.newaxis])
    offsets = map_range(values, 0.0, 1.0, -layer.amplitude, layer.amplitude)
    vertex_y = rows[:, np.newaxis] + offsets

    polylines = []
    for row_index in range(rows.size):
        points = np.column_stack((columns, vertex_y[row_index]))
        polylines.append({
            'points': points,
            'weight': layer.stroke_weight,
            'color': stroke_color,
            'alpha': 1.0,
            'layer': layer.name,
        })

    return polylines


# ============================================================================
# Full-Canvas Fills
# ============================================================================

def gray_to_color(gray: float) -> Tuple[float, float, float]:
    """Convert a 0-255 gray level into an RGB tuple (0.0 to 1.0)"""
    level = gray / 255.0
    return (level, level, level)


def create_canvas_fill(width: float, height: float, gray: float, alpha: float) -> Dict[str, Any]:
    """Create a full-canvas rectangle specification

    Args:
        width, height: Canvas size
        gray: Fill gray level (0-255)
        alpha: Fill opacity (0-255)

    Returns:
        Fill spec dict with color and alpha on a 0.0-1.0 scale
    """
    return {
        'x': 0.0,
        'y': 0.0,
        'width': float(width),
        'height': float(height),
        'color': gray_to_color(gray),
        'alpha': clamp(alpha, 0.0, 255.0) / 255.0,
    }


def create_trail_fill(config: SketchConfig) -> Dict[str, Any]:
    """Near-transparent white wash that lets previous frames bleed through"""
    return create_canvas_fill(config.width, config.height, config.trail_gray, config.trail_alpha)


def create_fade_overlay(fade_level: float, config: SketchConfig) -> Dict[str, Any]:
    """Black wash whose opacity is the current fade level"""
    return create_canvas_fill(config.width, config.height, config.overlay_gray, fade_level)


# ============================================================================
# Surface Coordinate Transformations
# ============================================================================

# Longest miter offset, in half stroke widths
MITER_LIMIT = 4.0


def pixel_to_normalized(points: np.ndarray, width: float, height: float) -> np.ndarray:
    """Convert top-left pixel coordinates to OpenGL normalized coordinates

    Args:
        points: (N, 2) array of (x, y) with y increasing downward
        width, height: Canvas size in pixels

    Returns:
        (N, 2) float32 array in -1..1 with y increasing upward
    """
    points = np.asarray(points, dtype=np.float64)
    normalized = np.empty(points.shape, dtype=np.float32)
    normalized[:, 0] = points[:, 0] / width * 2.0 - 1.0
    normalized[:, 1] = 1.0 - points[:, 1] / height * 2.0
    return normalized


def stroke_coverage(weight: float) -> Tuple[float, float]:
    """Split a stroke weight into drawable width and opacity

    Strokes thinner than one pixel are drawn one pixel wide with
    proportionally reduced opacity.

    Returns:
        (draw_width, alpha_multiplier)

    Examples:
        >>> stroke_coverage(0.5)
        (1.0, 0.5)
        >>> stroke_coverage(2.0)
        (2.0, 1.0)
    """
    if weight <= 0:
        return (1.0, 0.0)
    if weight < 1.0:
        return (1.0, weight)
    return (weight, 1.0)


def polyline_to_triangles(points: np.ndarray, width: float) -> np.ndarray:
    """Expand an open polyline into per-segment quads (two triangles each)

    Interior vertices are offset along the miter direction, so neighbouring
    quads meet at a shared edge instead of overlapping. Translucent strokes
    therefore cover every pixel once. End vertices use their segment normal.
    Very sharp turns are clamped to MITER_LIMIT half-widths.
    Zero-length segments produce degenerate triangles.

    Args:
        points: (N, 2) vertex array
        width: Stroke width in the same units as points

    Returns:
        (6 * (N - 1), 2) float64 array of triangle vertices
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) < 2:
        return np.empty((0, 2), dtype=np.float64)

    direction = np.diff(points, axis=0)
    length = np.linalg.norm(direction, axis=1, keepdims=True)
    safe_length = np.where(length > 0, length, 1.0)
    # Zero rows for zero-length segments
    normals = np.column_stack((-direction[:, 1], direction[:, 0])) / safe_length

    vertex_normals = np.empty_like(points)
    vertex_normals[0] = normals[0]
    vertex_normals[-1] = normals[-1]
    vertex_normals[1:-1] = normals[:-1] + normals[1:]

    norm = np.linalg.norm(vertex_normals, axis=1, keepdims=True)
    miter = vertex_normals / np.where(norm > 0, norm, 1.0)

    # cos of half the turn angle; 1 at the ends
    cos_half = np.ones(len(points))
    if len(points) > 2:
        cos_half[1:-1] = np.maximum(
            np.sum(miter[1:-1] * normals[:-1], axis=1),
            np.sum(miter[1:-1] * normals[1:], axis=1),
        )
    scale = (width / 2.0) / np.maximum(cos_half, 1.0 / MITER_LIMIT)
    offset = miter * scale[:, np.newaxis]

    left = points + offset
    right = points - offset

    a = left[:-1]
    b = right[:-1]
    c = left[1:]
    d = right[1:]

    # (a, b, c) and (c, b, d) per segment
    triangles = np.stack((a, b, c, c, b, d), axis=1)
    return triangles.reshape(-1, 2)


def batch_polyline_triangles(
    polylines: List[Dict[str, Any]],
    width: float,
    height: float
) -> Dict[Tuple[float, float, Tuple[float, float, float]], np.ndarray]:
    """Group polylines by stroke style and triangulate them for GPU upload

    Args:
        polylines: Polyline specs
        width, height: Canvas size in pixels

    Returns:
        Mapping (draw_width, alpha, color) → (M, 2) float32 normalized vertices,
        in first-seen order
    """
    grouped: Dict[Tuple[float, float, Tuple[float, float, float]], List[np.ndarray]] = {}
    for polyline in polylines:
        draw_width, coverage = stroke_coverage(polyline['weight'])
        alpha = polyline.get('alpha', 1.0) * coverage
        key = (draw_width, alpha, tuple(polyline['color']))
        grouped.setdefault(key, []).append(polyline_to_triangles(polyline['points'], draw_width))

    batches = {}
    for key, parts in grouped.items():
        vertices = np.concatenate(parts) if parts else np.empty((0, 2))
        batches[key] = pixel_to_normalized(vertices, width, height)
    return batches
