#!/usr/bin/env python3
"""
Blackout Lines - Generative Line Field Renderer

Animates fields of noise-displaced horizontal lines that periodically fade
to black and back. Mouse X controls the noise scale, mouse Y the line spacing.

Runs in an interactive window by default, or renders headlessly to a video
file / PNG frame directory with --render.

Usage:
    python render_blackout_lines.py                          # Interactive window
    python render_blackout_lines.py --backend cpu            # No OpenGL needed
    python render_blackout_lines.py --render out.mp4         # Headless video
    python render_blackout_lines.py --render frames/ --sweep # PNG frames, moving pointer
"""

import argparse
import sys
from dataclasses import replace

from blackout_lines.animation import fixed_pointer, sweep_trace
from blackout_lines.sketch_types import DEFAULT_CONFIG, SketchConfig
from blackout_lines.surface import BACKENDS
from blackout_lines.video_shell import render_to_video
from blackout_lines.window_shell import run_interactive


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generative noise line fields with periodic blackouts',
        epilog="""
Examples:
  python render_blackout_lines.py                             # Interactive window
  python render_blackout_lines.py --seed 7 --fps 30           # Fixed noise, 30 FPS
  python render_blackout_lines.py --render out.mp4 --frames 1200
  python render_blackout_lines.py --render frames/ --pointer 100 500
        """
    )
    parser.add_argument('--render', metavar='PATH', default=None,
                        help='Render headlessly: .mp4/.mov/.mkv writes a video, otherwise a PNG frame directory')
    parser.add_argument('--frames', type=int, default=600,
                        help='Frames to render with --render (default: 600)')
    parser.add_argument('--fps', type=float, default=60.0,
                        help='Frames per second (default: 60)')
    parser.add_argument('--width', type=int, default=DEFAULT_CONFIG.width,
                        help=f'Canvas width (default: {DEFAULT_CONFIG.width})')
    parser.add_argument('--height', type=int, default=DEFAULT_CONFIG.height,
                        help=f'Canvas height (default: {DEFAULT_CONFIG.height})')
    parser.add_argument('--seed', type=int, default=None,
                        help='Noise seed (default: random)')
    parser.add_argument('--backend', choices=BACKENDS, default='gpu',
                        help='Drawing surface: gpu (ModernGL) or cpu (OpenCV) (default: gpu)')
    parser.add_argument('--pointer', type=float, nargs=2, metavar=('X', 'Y'), default=None,
                        help='Fixed pointer position for --render (default: canvas centre)')
    parser.add_argument('--sweep', action='store_true',
                        help='Move the pointer along a sweeping path for --render')
    parser.add_argument('--movement-frames', type=int, default=DEFAULT_CONFIG.movement_duration_frames,
                        help=f'Movement phase length (default: {DEFAULT_CONFIG.movement_duration_frames})')
    parser.add_argument('--blackout-frames', type=int, default=DEFAULT_CONFIG.blackout_duration_frames,
                        help=f'Blackout phase length (default: {DEFAULT_CONFIG.blackout_duration_frames})')
    parser.add_argument('--fade-step', type=float, default=DEFAULT_CONFIG.fade_step,
                        help=f'Overlay opacity change per frame, 0-255 scale (default: {DEFAULT_CONFIG.fade_step:g})')
    parser.add_argument('--timing', action='store_true',
                        help='Print per-operation timing summary')
    parser.add_argument('--quiet', action='store_true',
                        help='Suppress progress output')
    return parser


def config_from_args(args: argparse.Namespace) -> SketchConfig:
    """Apply command-line overrides to the default sketch constants"""
    config = replace(
        DEFAULT_CONFIG,
        width=args.width,
        height=args.height,
        movement_duration_frames=args.movement_frames,
        blackout_duration_frames=args.blackout_frames,
        fade_step=args.fade_step,
    )
    return config.validate()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    verbose = not args.quiet

    try:
        config = config_from_args(args)

        if args.render is None:
            if args.pointer is not None or args.sweep:
                print("⚠️  Warning: --pointer and --sweep only apply with --render")
            run_interactive(
                config=config,
                seed=args.seed,
                fps=args.fps,
                backend=args.backend,
                verbose=verbose,
                enable_timing=args.timing
            )
            return 0

        if args.sweep:
            trace = sweep_trace(config.width, config.height)
        elif args.pointer is not None:
            trace = fixed_pointer(*args.pointer)
        else:
            trace = fixed_pointer(config.width / 2.0, config.height / 2.0)

        render_to_video(
            output_path=args.render,
            total_frames=args.frames,
            fps=args.fps,
            pointer_trace=trace,
            config=config,
            seed=args.seed,
            backend=args.backend,
            verbose=verbose,
            enable_timing=args.timing
        )
    except (RuntimeError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
