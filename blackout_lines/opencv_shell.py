"""
Blackout Lines - Imperative Shell (CPU)

OpenCV drawing surface for machines without an OpenGL context.
Same drawing contract as shell.py: a persistent RGB canvas, source-over
alpha blending, anti-aliased open polylines.
"""

import cv2  # type: ignore
import numpy as np
from typing import Any, Dict, List

from .core import gray_to_color, stroke_coverage
from .shell import FrameTimings, time_operation
from .sketch_types import FrameScene

# cv2 fixed-point precision for sub-pixel vertices
SUBPIXEL_BITS = 4
SUBPIXEL_SCALE = 1 << SUBPIXEL_BITS


def color_to_uint8(color) -> tuple:
    """RGB tuple (0.0 to 1.0) → RGB tuple (0 to 255)"""
    return tuple(int(round(c * 255)) for c in color)


class OpenCVCanvas:
    """CPU canvas backed by a numpy RGB array

    This is an imperative shell - owns the pixel buffer.
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        canvas_gray: int = 255,
        enable_timing: bool = False
    ):
        self.width = width
        self.height = height
        self.timings = FrameTimings() if enable_timing else None
        self.pixels = np.empty((height, width, 3), dtype=np.uint8)
        self.pixels[:] = color_to_uint8(gray_to_color(canvas_gray))

    def cleanup(self):
        """Nothing to release; kept for parity with CanvasContext"""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()


def to_cv2_points(points: np.ndarray) -> np.ndarray:
    """Convert (N, 2) float vertices to cv2 fixed-point int32 (N, 1, 2)"""
    fixed = np.round(np.asarray(points, dtype=np.float64) * SUBPIXEL_SCALE)
    return fixed.astype(np.int32).reshape(-1, 1, 2)


def fill_canvas_opencv(canvas: OpenCVCanvas, fill: Dict[str, Any]) -> None:
    """Blend a full-canvas rectangle over the current contents

    Side effects:
    - Modifies canvas.pixels in place
    """
    with time_operation(canvas.timings, 'fill_canvas'):
        alpha = fill['alpha']
        if alpha <= 0.0:
            return

        color = color_to_uint8(fill['color'])
        if alpha >= 1.0:
            canvas.pixels[:] = color
            return

        solid = np.empty_like(canvas.pixels)
        solid[:] = color
        cv2.addWeighted(solid, alpha, canvas.pixels, 1.0 - alpha, 0, dst=canvas.pixels)


def render_polylines_opencv(canvas: OpenCVCanvas, polylines: List[Dict[str, Any]]) -> None:
    """Stroke open polylines onto the canvas

    Strokes with reduced opacity are drawn onto a copy and blended back.

    Side effects:
    - Modifies canvas.pixels in place
    """
    with time_operation(canvas.timings, 'render_polylines'):
        if not polylines:
            return

        grouped: Dict[tuple, List[np.ndarray]] = {}
        for polyline in polylines:
            if len(polyline['points']) < 2:
                continue
            draw_width, coverage = stroke_coverage(polyline['weight'])
            alpha = polyline.get('alpha', 1.0) * coverage
            key = (draw_width, alpha, color_to_uint8(polyline['color']))
            grouped.setdefault(key, []).append(to_cv2_points(polyline['points']))

        for (draw_width, alpha, color), curves in grouped.items():
            if alpha <= 0.0:
                continue
            thickness = max(1, int(round(draw_width)))

            if alpha >= 1.0:
                cv2.polylines(canvas.pixels, curves, False, color, thickness, cv2.LINE_AA, SUBPIXEL_BITS)
                continue

            overlay = canvas.pixels.copy()
            cv2.polylines(overlay, curves, False, color, thickness, cv2.LINE_AA, SUBPIXEL_BITS)
            cv2.addWeighted(overlay, alpha, canvas.pixels, 1.0 - alpha, 0, dst=canvas.pixels)


def render_scene_opencv(canvas: OpenCVCanvas, scene: FrameScene) -> None:
    """Paint one frame: trail fill, line layers, blackout overlay"""
    with time_operation(canvas.timings, 'render_scene_total'):
        fill_canvas_opencv(canvas, scene.background)
        render_polylines_opencv(canvas, scene.polylines)
        fill_canvas_opencv(canvas, scene.overlay)


def read_canvas(canvas: OpenCVCanvas) -> np.ndarray:
    """Copy of the canvas as an RGB array (height, width, 3)"""
    with time_operation(canvas.timings, 'read_canvas'):
        return canvas.pixels.copy()
