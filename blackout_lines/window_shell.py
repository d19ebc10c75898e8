"""
Interactive Window - Imperative Shell

Runs the animation in an OpenCV HighGUI window.

- Mouse callback records the latest pointer position and button state
- cv2.waitKey() paces the loop at the requested frame rate
- 'q' or Esc, or closing the window, stops the loop

Architecture:
- Functional core: animation.py (tick, scene construction)
- Imperative shell: This file (window, input, frame pacing)
"""

import time
from typing import Optional

import cv2  # type: ignore

from .animation import Animator
from .shell import print_timing_summary
from .sketch_types import PointerInput, SketchConfig, DEFAULT_CONFIG
from .surface import DrawingSurface

WINDOW_NAME = 'Blackout Lines'
QUIT_KEYS = (ord('q'), 27)


class PointerTracker:
    """Last known pointer sample, written by the OpenCV mouse callback

    Starts at the canvas origin until the pointer first moves over the window.
    """

    def __init__(self):
        self.x = 0.0
        self.y = 0.0
        self.pressed = False

    def on_mouse(self, event, x, y, flags, param=None):
        """cv2.setMouseCallback handler"""
        self.x = float(x)
        self.y = float(y)
        if event == cv2.EVENT_LBUTTONDOWN:
            self.pressed = True
        elif event == cv2.EVENT_LBUTTONUP:
            self.pressed = False
        else:
            self.pressed = bool(flags & cv2.EVENT_FLAG_LBUTTON)

    def sample(self) -> PointerInput:
        return PointerInput(x=self.x, y=self.y, pressed=self.pressed)


def frame_delay_ms(fps: float, elapsed_seconds: float) -> int:
    """Milliseconds to wait so one frame takes 1/fps seconds (at least 1)"""
    remaining = 1000.0 / fps - elapsed_seconds * 1000.0
    return max(1, int(remaining))


def window_closed(name: str = WINDOW_NAME) -> bool:
    try:
        return cv2.getWindowProperty(name, cv2.WND_PROP_VISIBLE) < 1
    except cv2.error:
        return True


def run_interactive(
    config: SketchConfig = DEFAULT_CONFIG,
    seed: Optional[int] = None,
    fps: float = 60.0,
    backend: str = 'gpu',
    max_frames: Optional[int] = None,
    verbose: bool = True,
    enable_timing: bool = False
) -> int:
    """Open the window and animate until the user quits

    Args:
        config: Sketch constants
        seed: Noise seed (random when None)
        fps: Target frame rate
        backend: Drawing surface backend ('gpu' or 'cpu')
        max_frames: Stop after this many frames (None = run until quit)
        verbose: Print progress information
        enable_timing: Print per-operation timing on exit

    Returns:
        Number of frames rendered

    Raises:
        ValueError: If fps is not positive
        RuntimeError: If the drawing surface or the window cannot be created
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    animator = Animator(config, seed=seed)
    tracker = PointerTracker()

    if verbose:
        print("=" * 60)
        print("Blackout Lines")
        print("=" * 60)
        print(f"Canvas: {config.width}x{config.height} @ {fps:g} FPS ({backend})")
        print(f"Noise seed: {getattr(animator.noise, 'seed', 'custom')}")
        print("Move the mouse: X = noise scale, Y = line spacing. Press q or Esc to quit.")
        print()

    frames_rendered = 0

    with DrawingSurface(backend, config, enable_timing=enable_timing) as surface:
        try:
            cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_AUTOSIZE)
            cv2.setMouseCallback(WINDOW_NAME, tracker.on_mouse)
        except cv2.error as e:
            # Headless OpenCV builds have no GUI backend
            raise RuntimeError(f"Failed to open window: {e}")

        if verbose:
            print("✓ Window ready")

        try:
            while max_frames is None or frames_rendered < max_frames:
                frame_start = time.perf_counter()

                scene = animator.step(tracker.sample())
                surface.render(scene)
                frame = surface.read()
                cv2.imshow(WINDOW_NAME, cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
                frames_rendered += 1

                delay = frame_delay_ms(fps, time.perf_counter() - frame_start)
                key = cv2.waitKey(delay) & 0xFF
                if key in QUIT_KEYS or window_closed():
                    break
        except KeyboardInterrupt:
            if verbose:
                print("\nInterrupted")
        finally:
            cv2.destroyAllWindows()

        if verbose:
            print(f"✓ {frames_rendered} frames rendered")
        if enable_timing:
            print_timing_summary(surface.timings)

    return frames_rendered
