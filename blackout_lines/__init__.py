"""
Blackout Lines Package

Generative noise-displaced line fields that fade to black and back,
using functional core, imperative shell pattern.

Modules:
- sketch_types: Frozen dataclasses shared by core and shells
- noise: Seeded coherent noise
- core: Pure per-frame calculations
- animation: Frame step (tick) and state owner
- shell: GPU drawing surface (ModernGL)
- opencv_shell: CPU drawing surface (OpenCV)
- surface: Backend selection
- window_shell: Interactive window
- video_shell: Offline export to video or PNG frames
"""

from .sketch_types import (
    LayerSpec,
    COARSE_LAYER,
    FINE_LAYER,
    SketchConfig,
    DEFAULT_CONFIG,
    AnimationState,
    PointerInput,
    FrameScene,
)

from .noise import PerlinNoise

from .core import (
    # Range mapping
    map_range,
    clamp,

    # Phase timer and fade
    advance_phase,
    update_fade,

    # Input mapping
    pointer_to_noise_scale,
    pointer_to_line_spacing,

    # Line fields and fills
    sample_positions,
    build_layer_polylines,
    create_trail_fill,
    create_fade_overlay,

    # Surface geometry
    pixel_to_normalized,
    stroke_coverage,
    polyline_to_triangles,
)

from .animation import (
    update_state,
    build_frame_scene,
    tick,
    Animator,
    fixed_pointer,
    sweep_pointer,
    sweep_trace,
    generate_scenes,
)

__all__ = [
    # Types
    'LayerSpec',
    'COARSE_LAYER',
    'FINE_LAYER',
    'SketchConfig',
    'DEFAULT_CONFIG',
    'AnimationState',
    'PointerInput',
    'FrameScene',

    # Noise
    'PerlinNoise',

    # Core
    'map_range',
    'clamp',
    'advance_phase',
    'update_fade',
    'pointer_to_noise_scale',
    'pointer_to_line_spacing',
    'sample_positions',
    'build_layer_polylines',
    'create_trail_fill',
    'create_fade_overlay',
    'pixel_to_normalized',
    'stroke_coverage',
    'polyline_to_triangles',

    # Animation
    'update_state',
    'build_frame_scene',
    'tick',
    'Animator',
    'fixed_pointer',
    'sweep_pointer',
    'sweep_trace',
    'generate_scenes',
]
