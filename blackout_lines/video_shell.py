"""
Offline Export - Imperative Shell

Renders a fixed number of frames without a window, driven by a scripted
pointer trace, and writes them either as a video (raw RGB frames piped to
FFmpeg) or as numbered PNG files.

Usage:
    from blackout_lines.video_shell import render_to_video

    render_to_video(
        output_path="lines.mp4",
        total_frames=1200,
        fps=60,
        pointer_trace=fixed_pointer(400, 300),
    )
"""

from pathlib import Path
import shutil
import subprocess
import time
from typing import List, Optional

from PIL import Image

from .animation import Animator, PointerTrace, fixed_pointer, generate_scenes
from .shell import print_timing_summary
from .sketch_types import SketchConfig, DEFAULT_CONFIG
from .surface import DrawingSurface

VIDEO_SUFFIXES = ('.mp4', '.mov', '.mkv')

# Time allowed for FFmpeg to finish encoding after the last frame
FFMPEG_TIMEOUT_SECONDS = 60


def is_video_path(path) -> bool:
    return Path(path).suffix.lower() in VIDEO_SUFFIXES


def build_ffmpeg_command(output_path, width: int, height: int, fps: float) -> List[str]:
    """FFmpeg command reading raw RGB frames from stdin"""
    return [
        'ffmpeg',
        '-y',  # Overwrite output
        '-loglevel', 'error',
        '-f', 'rawvideo',
        '-vcodec', 'rawvideo',
        '-s', f'{width}x{height}',
        '-pix_fmt', 'rgb24',
        '-r', str(fps),
        '-i', '-',  # Read from stdin
        '-c:v', 'libx264',
        '-pix_fmt', 'yuv420p',
        str(output_path),
    ]


def frame_filename(frame_index: int) -> str:
    """PNG name for a zero-based frame index (frame_00001.png is the first)"""
    return f"frame_{frame_index + 1:05d}.png"


def render_to_video(
    output_path: str,
    total_frames: int = 600,
    fps: float = 60.0,
    pointer_trace: Optional[PointerTrace] = None,
    config: SketchConfig = DEFAULT_CONFIG,
    seed: Optional[int] = None,
    backend: str = 'gpu',
    verbose: bool = True,
    enable_timing: bool = False
) -> Path:
    """Render frames headlessly to a video file or a PNG directory

    Args:
        output_path: .mp4/.mov/.mkv for video, anything else is a directory
        total_frames: Number of frames to render
        fps: Frames per second of the output video
        pointer_trace: Pointer sample per frame index (default: canvas centre)
        config: Sketch constants
        seed: Noise seed (random when None)
        backend: Drawing surface backend ('gpu' or 'cpu')
        verbose: Print progress information
        enable_timing: Print per-operation timing at the end

    Returns:
        Path of the written video file or frame directory

    Raises:
        ValueError: If total_frames or fps is not positive
        RuntimeError: If FFmpeg is missing or fails, or the surface cannot be created
    """
    if total_frames <= 0:
        raise ValueError(f"total_frames must be positive, got {total_frames}")
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    output_path = Path(output_path)
    as_video = is_video_path(output_path)

    if pointer_trace is None:
        pointer_trace = fixed_pointer(config.width / 2.0, config.height / 2.0)

    if as_video and shutil.which('ffmpeg') is None:
        raise RuntimeError("FFmpeg not found on PATH (required for video output)")

    animator = Animator(config, seed=seed)

    if verbose:
        print("=" * 60)
        print("Rendering Blackout Lines")
        print("=" * 60)
        print(f"Output: {output_path}")
        print(f"Canvas: {config.width}x{config.height} @ {fps:g} FPS ({backend})")
        print(f"Frames: {total_frames}")
        print(f"Noise seed: {getattr(animator.noise, 'seed', 'custom')}")
        print()

    if as_video:
        output_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        output_path.mkdir(parents=True, exist_ok=True)

    start_time = time.time()

    with DrawingSurface(backend, config, enable_timing=enable_timing) as surface:
        if verbose:
            print("✓ Surface ready, rendering...")

        if as_video:
            _write_video(surface, animator, pointer_trace, total_frames, fps, output_path, verbose)
        else:
            _write_png_frames(surface, animator, pointer_trace, total_frames, output_path, verbose)

        if enable_timing:
            print_timing_summary(surface.timings)

    if verbose:
        elapsed = time.time() - start_time
        rate = total_frames / elapsed if elapsed > 0 else 0.0
        print(f"✓ {total_frames} frames in {elapsed:.1f}s ({rate:.1f} FPS)")
        print(f"✓ Saved: {output_path}")

    return output_path


def _print_progress(frame_index: int, total_frames: int, verbose: bool):
    if not verbose:
        return
    done = frame_index + 1
    if done == total_frames or done % 60 == 0:
        print(f"  {done}/{total_frames} frames ({done / total_frames * 100:.0f}%)")


def _write_png_frames(surface, animator, pointer_trace, total_frames, output_dir: Path, verbose: bool):
    scenes = generate_scenes(animator, pointer_trace, total_frames)
    for frame_index, scene in enumerate(scenes):
        surface.render(scene)
        Image.fromarray(surface.read()).save(output_dir / frame_filename(frame_index))
        _print_progress(frame_index, total_frames, verbose)


def _ffmpeg_stderr(process) -> str:
    """Last 500 characters FFmpeg wrote to stderr"""
    if not process.stderr:
        return ''
    return process.stderr.read().decode('utf-8', errors='replace')[-500:]


def _write_video(surface, animator, pointer_trace, total_frames, fps, output_path: Path, verbose: bool):
    ffmpeg_cmd = build_ffmpeg_command(output_path, surface.width, surface.height, fps)

    try:
        process = subprocess.Popen(
            ffmpeg_cmd,
            stdin=subprocess.PIPE,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE
        )
    except Exception as e:
        raise RuntimeError(f"Failed to start FFmpeg: {e}")

    try:
        scenes = generate_scenes(animator, pointer_trace, total_frames)
        for frame_index, scene in enumerate(scenes):
            surface.render(scene)
            try:
                process.stdin.write(surface.read().tobytes())
            except BrokenPipeError:
                raise RuntimeError(f"FFmpeg pipe broken. FFmpeg error: {_ffmpeg_stderr(process)}")
            _print_progress(frame_index, total_frames, verbose)

        try:
            process.stdin.close()
        except BrokenPipeError:
            raise RuntimeError(f"FFmpeg pipe broken. FFmpeg error: {_ffmpeg_stderr(process)}")
        return_code = process.wait(timeout=FFMPEG_TIMEOUT_SECONDS)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
        raise RuntimeError(f"FFmpeg encoding timed out after {FFMPEG_TIMEOUT_SECONDS} seconds")
    except Exception:
        process.kill()
        process.wait()
        raise

    if return_code != 0:
        raise RuntimeError(f"FFmpeg encoding failed (code {return_code}): {_ffmpeg_stderr(process)}")
