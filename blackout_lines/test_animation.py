#!/usr/bin/env python3
"""
Tests for animation system functional core

Tests the frame step, the state owner and pointer traces.
No GPU operations - only animation math.
"""

import pytest
import numpy as np
from dataclasses import replace

from blackout_lines.animation import (
    update_state,
    build_frame_scene,
    tick,
    Animator,
    fixed_pointer,
    sweep_pointer,
    sweep_trace,
    generate_scenes,
)
from blackout_lines.core import sample_positions
from blackout_lines.noise import PerlinNoise
from blackout_lines.sketch_types import AnimationState, PointerInput, SketchConfig

CENTRE = PointerInput(x=400, y=300)


@pytest.fixture
def noise():
    return PerlinNoise(seed=1234)


@pytest.fixture
def small_config():
    """Small canvas and short phases to keep scene tests fast"""
    return SketchConfig(width=200, height=150, movement_duration_frames=10, blackout_duration_frames=4)


class TestUpdateState:
    """Test per-frame state advancement"""

    def test_first_frame_at_canvas_centre(self):
        """Centre pointer, movement phase: mid-range parameters, fade heading to 0"""
        prior = AnimationState(fade_level=20.0)
        state = update_state(prior, CENTRE)

        assert state.noise_scale_x == pytest.approx(0.0125)
        assert state.noise_scale_y == pytest.approx(0.0125)
        assert state.line_spacing == pytest.approx(17.5)
        assert state.is_blackout is False
        assert state.fade_level == 15.0

    def test_frame_count_increments(self):
        state = AnimationState()
        for expected in range(1, 6):
            state = update_state(state, CENTRE)
            assert state.frame_count == expected

    def test_transition_after_movement_duration_plus_one(self):
        """301 frames of movement, then blackout with a reset timer"""
        state = AnimationState()
        for _ in range(300):
            state = update_state(state, CENTRE)
        assert state.is_blackout is False
        assert state.phase_timer == 300

        state = update_state(state, CENTRE)
        assert state.is_blackout is True
        assert state.phase_timer == 0
        assert state.fade_level == 5.0

    def test_timer_resets_only_on_transitions(self):
        """phase_timer hits 0 exactly when the phase flips"""
        state = AnimationState()
        for _ in range(2000):
            previous = state
            state = update_state(state, CENTRE)
            flipped = state.is_blackout != previous.is_blackout
            assert flipped == (state.phase_timer == 0)

    def test_fade_bounds_and_step(self):
        """Fade moves by exactly one step per frame until clamped"""
        state = AnimationState()
        for _ in range(3000):
            previous = state
            state = update_state(state, CENTRE)
            assert 0.0 <= state.fade_level <= 255.0
            if state.is_blackout:
                assert state.fade_level == min(255.0, previous.fade_level + 5.0)
            else:
                assert state.fade_level == max(0.0, previous.fade_level - 5.0)

    def test_fade_reaches_black_during_blackout(self):
        """Blackout is long enough for the overlay to become opaque"""
        state = AnimationState()
        peak = 0.0
        for _ in range(420):
            state = update_state(state, CENTRE)
            peak = max(peak, state.fade_level)
        assert peak == 255.0

    def test_parameters_follow_latest_pointer(self):
        """Each frame uses only the current pointer sample"""
        state = update_state(AnimationState(), PointerInput(x=0, y=0))
        state = update_state(state, PointerInput(x=800, y=600))

        assert state.noise_scale_x == pytest.approx(0.02)
        assert state.line_spacing == pytest.approx(30.0)

    def test_pressed_pointer_maps_identically(self):
        """Button state does not change the derived parameters"""
        released = update_state(AnimationState(), PointerInput(x=120, y=450, pressed=False))
        pressed = update_state(AnimationState(), PointerInput(x=120, y=450, pressed=True))
        assert released == pressed

    def test_custom_durations(self):
        config = SketchConfig(movement_duration_frames=2, blackout_duration_frames=1)
        state = AnimationState()
        phases = []
        for _ in range(8):
            state = update_state(state, CENTRE, config)
            phases.append(state.is_blackout)
        assert phases == [False, False, True, True, False, False, False, True]


class TestFrameScene:
    """Test scene construction"""

    def test_scene_layers_and_fills(self, noise, small_config):
        state = update_state(AnimationState(), PointerInput(x=100, y=75), small_config)
        scene = build_frame_scene(state, noise, small_config)

        assert scene.frame_number == 1
        assert scene.background['alpha'] == pytest.approx(10 / 255)
        assert scene.overlay['alpha'] == 0.0

        coarse = scene.polylines_for_layer('coarse')
        fine = scene.polylines_for_layer('fine')
        assert len(coarse) > len(fine) > 0
        # Coarse layer is drawn first
        assert scene.polylines[0]['layer'] == 'coarse'
        assert scene.polylines[-1]['layer'] == 'fine'

    def test_vertex_displacement_within_amplitude(self, noise, small_config):
        """Every vertex stays within its layer's amplitude of its row"""
        state = update_state(AnimationState(), PointerInput(x=30, y=20), small_config)
        scene = build_frame_scene(state, noise, small_config)

        coarse_rows = sample_positions(state.line_spacing, small_config.height)
        for row_y, polyline in zip(coarse_rows, scene.polylines_for_layer('coarse')):
            assert np.all(np.abs(polyline['points'][:, 1] - row_y) <= 50.0)

        fine_rows = sample_positions(state.line_spacing * 2, small_config.height)
        for row_y, polyline in zip(fine_rows, scene.polylines_for_layer('fine')):
            assert np.all(np.abs(polyline['points'][:, 1] - row_y) <= 30.0)

    def test_overlay_tracks_fade(self, noise, small_config):
        state = replace(AnimationState(), is_blackout=True, fade_level=100.0)
        state = update_state(state, CENTRE, small_config)
        scene = build_frame_scene(state, noise, small_config)

        assert scene.is_blackout is True
        assert scene.fade_level == 105.0
        assert scene.overlay['alpha'] == pytest.approx(105.0 / 255.0)

    def test_tick_returns_state_and_scene(self, noise, small_config):
        state, scene = tick(AnimationState(), CENTRE, noise, small_config)
        assert state.frame_count == 1
        assert scene.frame_number == 1

    def test_scenes_animate_over_time(self, noise, small_config):
        """The noise time axis moves the lines between frames"""
        state, first = tick(AnimationState(), CENTRE, noise, small_config)
        state, second = tick(state, CENTRE, noise, small_config)
        assert not np.array_equal(first.polylines[0]['points'], second.polylines[0]['points'])


class TestAnimator:
    """Test the state owner and determinism"""

    def test_identical_runs_are_bit_identical(self, small_config):
        """Same seed and pointer trace → same vertex coordinates"""
        trace = sweep_trace(small_config.width, small_config.height, period_frames=30)

        runs = []
        for _ in range(2):
            animator = Animator(small_config, seed=99)
            runs.append(list(generate_scenes(animator, trace, 25)))

        for first, second in zip(*runs):
            assert len(first.polylines) == len(second.polylines)
            for a, b in zip(first.polylines, second.polylines):
                np.testing.assert_array_equal(a['points'], b['points'])
            assert first.fade_level == second.fade_level

    def test_step_advances_owned_state(self, small_config):
        animator = Animator(small_config, seed=1)
        animator.step(CENTRE)
        animator.step(CENTRE)
        assert animator.state.frame_count == 2

    def test_custom_noise(self, small_config):
        """A supplied noise callable is used as-is"""
        def flat(x, y=0.0, z=0.0):
            return np.full(np.broadcast(x, y).shape, 0.5)

        animator = Animator(small_config, noise=flat)
        scene = animator.step(PointerInput(x=0, y=0))
        row = scene.polylines[1]['points']
        np.testing.assert_allclose(row[:, 1], 5.0)

    def test_invalid_config_rejected(self):
        with pytest.raises(ValueError):
            Animator(SketchConfig(width=0), seed=1)

    def test_generate_scenes_count(self, small_config):
        animator = Animator(small_config, seed=2)
        scenes = list(generate_scenes(animator, fixed_pointer(10, 10), 7))
        assert [s.frame_number for s in scenes] == list(range(1, 8))


class TestPointerTraces:
    """Test headless pointer input"""

    def test_fixed_pointer(self):
        trace = fixed_pointer(12.0, 34.0, pressed=True)
        assert trace(0) == PointerInput(12.0, 34.0, True)
        assert trace(500) == PointerInput(12.0, 34.0, True)

    def test_sweep_stays_on_canvas(self):
        for frame in range(0, 2000, 7):
            pointer = sweep_pointer(frame, 800, 600)
            assert 0.0 <= pointer.x <= 800.0
            assert 0.0 <= pointer.y <= 600.0

    def test_sweep_starts_mid_left_to_right(self):
        pointer = sweep_pointer(0, 800, 600)
        assert pointer.x == pytest.approx(400.0)
        assert pointer.y == pytest.approx(600.0)
