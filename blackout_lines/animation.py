"""
Animation Core - Functional Core

Per-frame update of the animation state and scene construction.
No side effects, no GPU operations - only animation math.

tick() is the whole frame step: it takes the previous state and the latest
pointer sample and returns the next state plus the FrameScene to draw.
Used by window_shell.py and video_shell.py to drive the drawing surfaces.
"""

import math
from dataclasses import replace
from typing import Callable, Iterator, Optional, Tuple

from .core import (
    advance_phase,
    update_fade,
    pointer_to_noise_scale,
    pointer_to_line_spacing,
    build_layer_polylines,
    gray_to_color,
    create_trail_fill,
    create_fade_overlay,
)
from .noise import PerlinNoise
from .sketch_types import (
    AnimationState,
    FrameScene,
    PointerInput,
    SketchConfig,
    DEFAULT_CONFIG,
)

PointerTrace = Callable[[int], PointerInput]


# ============================================================================
# Frame Step
# ============================================================================

def update_state(
    state: AnimationState,
    pointer: PointerInput,
    config: SketchConfig = DEFAULT_CONFIG
) -> AnimationState:
    """Advance timers, phase, fade and pointer-derived parameters by one frame

    Order: phase timer, then fade, then input mapping.
    """
    is_blackout, phase_timer = advance_phase(
        state.is_blackout,
        state.phase_timer,
        config.movement_duration_frames,
        config.blackout_duration_frames
    )
    fade_level = update_fade(state.fade_level, is_blackout, config.fade_step)

    noise_scale = pointer_to_noise_scale(pointer.x, config)
    line_spacing = pointer_to_line_spacing(pointer.y, config)

    return replace(
        state,
        noise_scale_x=noise_scale,
        noise_scale_y=noise_scale,
        line_spacing=line_spacing,
        is_blackout=is_blackout,
        phase_timer=phase_timer,
        fade_level=fade_level,
        frame_count=state.frame_count + 1,
    )


def build_frame_scene(
    state: AnimationState,
    noise: Callable,
    config: SketchConfig = DEFAULT_CONFIG
) -> FrameScene:
    """Build the draw specifications for an already-updated state

    Returns:
        FrameScene with trail fill, every layer's polylines, and fade overlay
    """
    stroke_color = gray_to_color(config.stroke_gray)

    polylines = []
    for layer in config.layers:
        polylines.extend(build_layer_polylines(
            layer=layer,
            noise=noise,
            noise_scale_x=state.noise_scale_x,
            noise_scale_y=state.noise_scale_y,
            line_spacing=state.line_spacing,
            frame_count=state.frame_count,
            width=config.width,
            height=config.height,
            stroke_color=stroke_color
        ))

    return FrameScene(
        frame_number=state.frame_count,
        is_blackout=state.is_blackout,
        fade_level=state.fade_level,
        background=create_trail_fill(config),
        polylines=polylines,
        overlay=create_fade_overlay(state.fade_level, config),
    )


def tick(
    state: AnimationState,
    pointer: PointerInput,
    noise: Callable,
    config: SketchConfig = DEFAULT_CONFIG
) -> Tuple[AnimationState, FrameScene]:
    """One complete frame step

    Args:
        state: State after the previous frame
        pointer: Latest pointer sample
        noise: Coherent noise callable
        config: Sketch constants

    Returns:
        (next_state, scene)
    """
    next_state = update_state(state, pointer, config)
    return next_state, build_frame_scene(next_state, noise, config)


# ============================================================================
# Animator
# ============================================================================

class Animator:
    """Owns the animation state between frames

    Thin stateful wrapper over tick() for the shells; all calculations
    stay in the pure functions above.
    """

    def __init__(
        self,
        config: SketchConfig = DEFAULT_CONFIG,
        noise: Optional[Callable] = None,
        seed: Optional[int] = None
    ):
        self.config = config.validate()
        if noise is None:
            noise = PerlinNoise(seed=seed, octaves=config.noise_octaves, falloff=config.noise_falloff)
        self.noise = noise
        self.state = AnimationState()

    def step(self, pointer: PointerInput) -> FrameScene:
        """Advance one frame and return its scene"""
        self.state, scene = tick(self.state, pointer, self.noise, self.config)
        return scene


# ============================================================================
# Pointer Traces (headless input)
# ============================================================================

def fixed_pointer(x: float, y: float, pressed: bool = False) -> PointerTrace:
    """Pointer trace that stays at one position"""
    pointer = PointerInput(x=x, y=y, pressed=pressed)
    return lambda frame_number: pointer


def sweep_pointer(
    frame_number: int,
    width: float,
    height: float,
    period_frames: float = 900.0
) -> PointerInput:
    """Slow Lissajous path across the canvas

    X completes one cycle per period, Y two cycles per 1.5 periods,
    so the pointer wanders over most of the canvas.
    """
    phase = 2.0 * math.pi * frame_number / period_frames
    x = (0.5 + 0.5 * math.sin(phase)) * width
    y = (0.5 + 0.5 * math.sin(phase * 4.0 / 3.0 + math.pi / 2.0)) * height
    return PointerInput(x=x, y=y)


def sweep_trace(width: float, height: float, period_frames: float = 900.0) -> PointerTrace:
    """Pointer trace following sweep_pointer()"""
    return lambda frame_number: sweep_pointer(frame_number, width, height, period_frames)


def generate_scenes(
    animator: Animator,
    pointer_trace: PointerTrace,
    total_frames: int
) -> Iterator[FrameScene]:
    """Yield scenes for consecutive frames, sampling the trace per frame

    The trace is called with the zero-based frame index.
    """
    for frame_index in range(total_frames):
        yield animator.step(pointer_trace(frame_index))
