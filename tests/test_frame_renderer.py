"""
Tests for the framebuffer-to-surface renderer (headless SDL).
"""

import os

import numpy as np
import pytest

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
pygame = pytest.importorskip("pygame")

from conftest import make_machine

from chip8vm.shell.frame_renderer import FrameRenderer


OFF = (0, 0, 0)
ON = (255, 128, 0)


def test_rgb_array_uses_colours():
    machine = make_machine()
    machine.frame_buffer.draw_sprite(0, 0, bytes([0x80]))
    rgb = FrameRenderer(machine, OFF, ON).rgb_array()
    assert rgb.shape == (32, 64, 3)
    assert rgb.dtype == np.uint8
    assert tuple(rgb[0, 0]) == ON
    assert tuple(rgb[0, 1]) == OFF

def test_render_writes_surface_and_clears_dirty():
    machine = make_machine()
    machine.frame_buffer.draw_sprite(3, 2, bytes([0x80]))
    renderer = FrameRenderer(machine, OFF, ON)
    surface = renderer.render()
    assert surface.get_size() == (64, 32)
    assert tuple(surface.get_at((3, 2)))[:3] == ON
    assert tuple(surface.get_at((2, 3)))[:3] == OFF
    assert machine.frame_buffer.dirty is False

def test_bad_colour_rejected():
    with pytest.raises(ValueError):
        FrameRenderer(make_machine(), OFF, (300, 0, 0))
