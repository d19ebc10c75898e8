"""
Drawing Surface - backend selection

One object the window and video shells draw through, whichever
backend renders the pixels:
- 'gpu': ModernGL offscreen framebuffer (shell.py)
- 'cpu': OpenCV numpy canvas (opencv_shell.py)
"""

import numpy as np
from typing import Dict, Optional

from .shell import CanvasContext, FrameTimings, render_scene, read_framebuffer
from .opencv_shell import OpenCVCanvas, render_scene_opencv, read_canvas
from .sketch_types import FrameScene, SketchConfig, DEFAULT_CONFIG

BACKENDS = ('gpu', 'cpu')


class DrawingSurface:
    """Fixed-size persistent canvas with a render/read interface

    Usage:
        with DrawingSurface('cpu', config) as surface:
            surface.render(scene)
            frame = surface.read()
    """

    def __init__(
        self,
        backend: str = 'gpu',
        config: SketchConfig = DEFAULT_CONFIG,
        enable_timing: bool = False
    ):
        """
        Raises:
            ValueError: Unknown backend name
            RuntimeError: GPU backend without an OpenGL context
        """
        if backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{backend}', expected one of {', '.join(BACKENDS)}")

        self.backend = backend
        self.width = config.width
        self.height = config.height

        if backend == 'gpu':
            self.ctx = CanvasContext(config.width, config.height, config.canvas_gray, enable_timing)
            self._render = render_scene
            self._read = read_framebuffer
        else:
            self.ctx = OpenCVCanvas(config.width, config.height, config.canvas_gray, enable_timing)
            self._render = render_scene_opencv
            self._read = read_canvas

    @property
    def timings(self) -> Optional[FrameTimings]:
        return self.ctx.timings

    def timing_summary(self) -> Dict[str, Dict[str, float]]:
        if self.ctx.timings is None:
            return {}
        return self.ctx.timings.get_summary()

    def render(self, scene: FrameScene) -> None:
        self._render(self.ctx, scene)

    def read(self) -> np.ndarray:
        """RGB uint8 array (height, width, 3), top row first"""
        return self._read(self.ctx)

    def cleanup(self):
        self.ctx.cleanup()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.cleanup()
