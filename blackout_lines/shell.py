"""
Blackout Lines - Imperative Shell (GPU)

Handles all GPU operations and side effects.
Uses pure functions from core for calculations.

Follows functional core, imperative shell pattern:
- core.py / animation.py: Pure transformations (testable, predictable)
- This module: GPU operations (side effects, resources, I/O)

The canvas is a persistent offscreen framebuffer: it is cleared once when the
context is created and never again, so the translucent trail fill lets
earlier frames show through.
"""

import moderngl
import numpy as np
from PIL import Image
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager

from .core import batch_polyline_triangles, gray_to_color
from .sketch_types import FrameScene


# ============================================================================
# Performance Timing Utilities
# ============================================================================

class FrameTimings:
    """Accumulates wall-clock time per named operation"""
    def __init__(self):
        self.timings = {}
        self.counts = {}

    def record(self, operation: str, duration: float):
        """Add one measurement for an operation"""
        if operation not in self.timings:
            self.timings[operation] = 0.0
            self.counts[operation] = 0
        self.timings[operation] += duration
        self.counts[operation] += 1

    def get_summary(self) -> Dict[str, Dict[str, float]]:
        """Total, average and call count per operation"""
        summary = {}
        for op, total in self.timings.items():
            count = self.counts[op]
            summary[op] = {
                'total_ms': total * 1000,
                'avg_ms': (total / count) * 1000 if count > 0 else 0,
                'count': count
            }
        return summary

    def reset(self):
        self.timings.clear()
        self.counts.clear()


@contextmanager
def time_operation(timings: Optional[FrameTimings], operation: str):
    """Context manager to time an operation

    Args:
        timings: FrameTimings to record into, or None to skip timing
        operation: Name of the operation being timed
    """
    if timings is None:
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        timings.record(operation, time.perf_counter() - start)


def print_timing_summary(timings: Optional[FrameTimings], title: str = "Frame Timing Summary"):
    """Print a table of timing data, slowest operation first"""
    if timings is None:
        print(f"{title}: Timing disabled")
        return

    summary = timings.get_summary()
    if not summary:
        print(f"{title}: No timing data collected")
        return

    print(f"\n{'='*70}")
    print(f"{title}")
    print(f"{'='*70}")
    print(f"{'Operation':<35} {'Total (ms)':>12} {'Avg (ms)':>12} {'Count':>8}")
    print(f"{'-'*70}")

    sorted_ops = sorted(summary.items(), key=lambda x: x[1]['total_ms'], reverse=True)
    for op_name, stats in sorted_ops:
        print(f"{op_name:<35} {stats['total_ms']:>12.3f} {stats['avg_ms']:>12.4f} {stats['count']:>8}")

    print(f"{'='*70}\n")


# ============================================================================
# Shader Source Code
# ============================================================================

# Flat-color geometry in normalized coordinates (fills and stroke triangles)
FLAT_VERTEX_SHADER = """
#version 330

in vec2 in_position;

void main() {
    gl_Position = vec4(in_position, 0.0, 1.0);
}
"""

FLAT_FRAGMENT_SHADER = """
#version 330

uniform vec4 u_color;

out vec4 f_color;

void main() {
    f_color = u_color;
}
"""


# ============================================================================
# GPU Context and Resource Management
# ============================================================================

class CanvasContext:
    """Offscreen GPU canvas that keeps its contents between frames

    This is an imperative shell - handles GPU resources and side effects.
    """

    def __init__(
        self,
        width: int = 800,
        height: int = 600,
        canvas_gray: int = 255,
        enable_timing: bool = False
    ):
        """Create the OpenGL context, canvas framebuffer and shader program

        Side effects:
        - Creates a standalone OpenGL context
        - Allocates GPU memory for the canvas texture
        - Compiles the flat-color shader program
        - Clears the canvas to canvas_gray

        Args:
            width: Canvas width in pixels
            height: Canvas height in pixels
            canvas_gray: Initial canvas gray level (0-255)
            enable_timing: Record per-operation timings

        Raises:
            RuntimeError: If no OpenGL context can be created, or the canvas
                resources cannot be allocated (the context is released first)
        """
        self.width = width
        self.height = height

        self.timings = FrameTimings() if enable_timing else None

        try:
            # Standalone context (no window required)
            self.ctx = moderngl.create_standalone_context()
        except Exception as e:
            raise RuntimeError(f"Failed to create OpenGL context: {e}")

        try:
            self._create_resources(width, height, canvas_gray)
        except Exception as e:
            self.ctx.release()
            raise RuntimeError(f"Failed to create GPU canvas resources: {e}")

    def _create_resources(self, width: int, height: int, canvas_gray: int):
        # Source-over alpha blending for every draw
        self.ctx.enable(moderngl.BLEND)
        self.ctx.blend_func = moderngl.SRC_ALPHA, moderngl.ONE_MINUS_SRC_ALPHA

        self.canvas_texture = self.ctx.texture((width, height), 4)
        self.fbo = self.ctx.framebuffer(color_attachments=[self.canvas_texture])

        self.flat_prog = self.ctx.program(
            vertex_shader=FLAT_VERTEX_SHADER,
            fragment_shader=FLAT_FRAGMENT_SHADER
        )

        fullscreen_quad = np.array([
            [-1, -1],  # Bottom-left
            [ 1, -1],  # Bottom-right
            [-1,  1],  # Top-left
            [ 1,  1],  # Top-right
        ], dtype='f4')
        self.fullscreen_vbo = self.ctx.buffer(fullscreen_quad.tobytes())
        self.fullscreen_vao = self.ctx.vertex_array(
            self.flat_prog,
            [(self.fullscreen_vbo, '2f', 'in_position')]
        )

        self.fbo.use()
        self.fbo.clear(*gray_to_color(canvas_gray), 1.0)

    def cleanup(self):
        """Release GPU resources

        Side effects:
        - Frees GPU memory for the canvas and buffers
        - Destroys OpenGL context
        """
        self.fullscreen_vao.release()
        self.fullscreen_vbo.release()
        self.flat_prog.release()
        self.fbo.release()
        self.canvas_texture.release()
        self.ctx.release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()


# ============================================================================
# GPU Rendering Operations
# ============================================================================

def fill_canvas(ctx: CanvasContext, fill: Dict[str, Any]) -> None:
    """Blend a full-canvas rectangle over the current contents

    Side effects:
    - Renders to the canvas framebuffer

    Args:
        ctx: Canvas context
        fill: Fill spec with 'color' (RGB 0-1) and 'alpha' (0-1)
    """
    with time_operation(ctx.timings, 'fill_canvas'):
        if fill['alpha'] <= 0.0:
            return

        ctx.flat_prog['u_color'].value = (*fill['color'], fill['alpha'])
        ctx.fbo.use()
        ctx.fullscreen_vao.render(moderngl.TRIANGLE_STRIP)


def render_polylines(ctx: CanvasContext, polylines) -> None:
    """Stroke open polylines onto the canvas

    Polylines are triangulated by the functional core and drawn in one call
    per stroke style.

    Side effects:
    - Uploads vertex data to GPU
    - Renders to the canvas framebuffer
    - Allocates/deallocates GPU buffers

    Args:
        ctx: Canvas context
        polylines: Polyline specs with 'points', 'weight', 'color', 'alpha'
    """
    with time_operation(ctx.timings, 'render_polylines'):
        if not polylines:
            return

        with time_operation(ctx.timings, 'polylines_triangulate'):
            batches = batch_polyline_triangles(polylines, ctx.width, ctx.height)

        ctx.fbo.use()
        for (_, alpha, color), vertices in batches.items():
            if len(vertices) == 0 or alpha <= 0.0:
                continue

            with time_operation(ctx.timings, 'polylines_gpu_upload'):
                vbo = ctx.ctx.buffer(vertices.astype('f4').tobytes())
                vao = ctx.ctx.vertex_array(ctx.flat_prog, [(vbo, '2f', 'in_position')])
                ctx.flat_prog['u_color'].value = (*color, alpha)

            with time_operation(ctx.timings, 'polylines_render'):
                vao.render(moderngl.TRIANGLES)

            vao.release()
            vbo.release()


def render_scene(ctx: CanvasContext, scene: FrameScene) -> None:
    """Paint one frame: trail fill, line layers, blackout overlay

    Side effects:
    - Renders to the canvas framebuffer (contents are kept for the next frame)

    Args:
        ctx: Canvas context
        scene: Scene built by animation.tick()
    """
    with time_operation(ctx.timings, 'render_scene_total'):
        fill_canvas(ctx, scene.background)
        render_polylines(ctx, scene.polylines)
        fill_canvas(ctx, scene.overlay)


def read_framebuffer(ctx: CanvasContext) -> np.ndarray:
    """Read current canvas contents (synchronous)

    Side effects:
    - Reads from GPU memory

    Returns:
        RGB numpy array (height, width, 3), top row first
    """
    with time_operation(ctx.timings, 'read_framebuffer'):
        raw = ctx.fbo.read(components=3)
        img = np.frombuffer(raw, dtype='u1').reshape((ctx.height, ctx.width, 3))

        # Flip vertically (OpenGL origin is bottom-left, images are top-left)
        return np.flip(img, axis=0).copy()


def save_frame(ctx: CanvasContext, filepath: str) -> None:
    """Save current canvas to an image file

    Side effects:
    - Reads from GPU
    - Writes to filesystem
    """
    Image.fromarray(read_framebuffer(ctx)).save(filepath)
