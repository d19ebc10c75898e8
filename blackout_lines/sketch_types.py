"""
Sketch Data Types - Shared Contract

Defines the data contract between the animation core and the drawing surfaces.
The animation state is immutable: every frame produces a new AnimationState
instead of mutating the previous one.

Type Hierarchy:
    SketchConfig → constants for canvas, timing, mapping ranges and layers
    AnimationState → per-frame state advanced by animation.tick()
    PointerInput → last known pointer sample handed to tick()
    FrameScene → draw specifications consumed by the shells
"""

from dataclasses import dataclass, field
from typing import Tuple, List, Dict, Any


@dataclass(frozen=True)
class LayerSpec:
    """One field of noise-displaced horizontal lines

    Attributes:
        name: Layer label carried into polyline specs ('coarse', 'fine')
        spacing_multiplier: Row spacing as a multiple of the current line spacing
        x_step: Horizontal distance between polyline vertices (canvas units)
        noise_multiplier: Extra factor applied to the noise scale
        time_speed: Noise time-axis advance per frame
        amplitude: Vertical displacement range is [-amplitude, amplitude]
        stroke_weight: Line width in canvas units
    """
    name: str
    spacing_multiplier: float
    x_step: float
    noise_multiplier: float
    time_speed: float
    amplitude: float
    stroke_weight: float


COARSE_LAYER = LayerSpec(
    name='coarse',
    spacing_multiplier=1.0,
    x_step=10.0,
    noise_multiplier=1.0,
    time_speed=0.01,
    amplitude=50.0,
    stroke_weight=1.0,
)

# Thinner, denser detail on top of the coarse field
FINE_LAYER = LayerSpec(
    name='fine',
    spacing_multiplier=2.0,
    x_step=5.0,
    noise_multiplier=1.5,
    time_speed=0.02,
    amplitude=30.0,
    stroke_weight=0.5,
)


@dataclass(frozen=True)
class SketchConfig:
    """Canvas, timing and mapping constants

    Attributes:
        width, height: Canvas size in logical units (pixels)
        movement_duration_frames: Timer threshold for leaving the movement phase
        blackout_duration_frames: Timer threshold for leaving the blackout phase
        fade_step: Overlay opacity change per frame (0-255 scale)
        noise_scale_range: Pointer X maps onto this noise scale range
        line_spacing_range: Pointer Y maps onto this line spacing range
        trail_gray: Gray level of the per-frame trail fill (0-255)
        trail_alpha: Opacity of the per-frame trail fill (0-255)
        overlay_gray: Gray level of the blackout overlay (0-255)
        stroke_gray: Gray level of the line strokes (0-255)
        canvas_gray: Gray level the canvas starts with (0-255)
        noise_octaves: Octaves summed by the noise function
        noise_falloff: Amplitude multiplier between octaves
        layers: Line fields drawn every frame, back to front
    """
    width: int = 800
    height: int = 600
    movement_duration_frames: int = 300
    blackout_duration_frames: int = 100
    fade_step: float = 5.0
    noise_scale_range: Tuple[float, float] = (0.005, 0.02)
    line_spacing_range: Tuple[float, float] = (5.0, 30.0)
    trail_gray: int = 255
    trail_alpha: int = 10
    overlay_gray: int = 0
    stroke_gray: int = 0
    canvas_gray: int = 255
    noise_octaves: int = 4
    noise_falloff: float = 0.5
    layers: Tuple[LayerSpec, ...] = (COARSE_LAYER, FINE_LAYER)

    def validate(self) -> 'SketchConfig':
        """Raise ValueError for settings the animation cannot run with

        Returns:
            self, so calls can be chained
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Canvas size must be positive, got {self.width}x{self.height}")
        if self.movement_duration_frames < 0 or self.blackout_duration_frames < 0:
            raise ValueError("Phase durations must not be negative")
        if self.fade_step <= 0:
            raise ValueError(f"Fade step must be positive, got {self.fade_step}")
        low, high = self.line_spacing_range
        if low <= 0 or high <= 0:
            raise ValueError(f"Line spacing range must be positive, got {self.line_spacing_range}")
        if self.noise_octaves < 1:
            raise ValueError(f"Noise octaves must be at least 1, got {self.noise_octaves}")
        for layer in self.layers:
            if layer.x_step <= 0 or layer.spacing_multiplier <= 0:
                raise ValueError(f"Layer '{layer.name}' needs positive steps")
        return self


DEFAULT_CONFIG = SketchConfig()


@dataclass(frozen=True)
class AnimationState:
    """Everything the animator carries from one frame to the next

    Attributes:
        noise_scale_x, noise_scale_y: Noise sampling scale (from pointer X)
        line_spacing: Distance between coarse rows (from pointer Y)
        is_blackout: True during the blackout phase
        phase_timer: Frames since the last phase transition
        fade_level: Blackout overlay opacity, 0-255
        frame_count: Frames rendered so far, never reset
    """
    noise_scale_x: float = 0.01
    noise_scale_y: float = 0.01
    line_spacing: float = 15.0
    is_blackout: bool = False
    phase_timer: int = 0
    fade_level: float = 0.0
    frame_count: int = 0

    @property
    def phase_name(self) -> str:
        return 'blackout' if self.is_blackout else 'movement'


@dataclass(frozen=True)
class PointerInput:
    """Last known pointer sample in canvas units

    Attributes:
        x, y: Pointer position (top-left origin)
        pressed: Primary button held down
    """
    x: float = 0.0
    y: float = 0.0
    pressed: bool = False


@dataclass(frozen=True)
class FrameScene:
    """Draw specifications for one frame, in painting order

    background → polylines → overlay

    Attributes:
        frame_number: AnimationState.frame_count this scene was built for
        is_blackout: Phase the frame was rendered in
        fade_level: Overlay opacity on the 0-255 scale
        background: Full-canvas trail fill spec
        polylines: Open polyline specs, first layer first
        overlay: Full-canvas blackout fill spec
    """
    frame_number: int
    is_blackout: bool
    fade_level: float
    background: Dict[str, Any]
    polylines: List[Dict[str, Any]] = field(default_factory=list)
    overlay: Dict[str, Any] = field(default_factory=dict)

    def polylines_for_layer(self, name: str) -> List[Dict[str, Any]]:
        """Polyline specs that belong to one layer"""
        return [p for p in self.polylines if p['layer'] == name]
