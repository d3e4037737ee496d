import json
import logging

import pygame
import pytest

import constants
import main
from main import HostState, caption, draw_frame, handle_event, run_simulation_loop
from particle import Mode


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k)


def click(pos, button=1):
    return pygame.event.Event(pygame.MOUSEBUTTONDOWN, pos=pos, button=button)


def release(pos, button=1):
    return pygame.event.Event(pygame.MOUSEBUTTONUP, pos=pos, button=button)


def motion(pos):
    return pygame.event.Event(pygame.MOUSEMOTION, pos=pos, rel=(0, 0), buttons=(0, 0, 0))


@pytest.fixture
def system(make_system):
    system = make_system(num_particles=2, bounds=(300, 200))
    a, b = system.particles
    a.position[:] = (50, 50)
    a.radius = 10
    b.position[:] = (200, 150)
    b.radius = 10
    return system


@pytest.fixture
def state():
    return HostState()


@pytest.fixture
def display():
    pygame.display.init()
    yield pygame.display.set_mode((300, 200))
    pygame.quit()


@pytest.fixture
def app_logger():
    logger = logging.getLogger("particle_sim")
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def test_quit_stops_the_loop(system, state):
    handle_event(pygame.event.Event(pygame.QUIT), system, state)
    assert state.running is False


def test_mode_and_leak_keys(system, state):
    handle_event(key(pygame.K_e), system, state)
    assert system.mode is Mode.EDIT
    handle_event(key(pygame.K_c), system, state)
    assert system.mode is Mode.COLLISION

    handle_event(key(pygame.K_l), system, state)
    assert system.velocity_leak_enabled is True
    handle_event(key(pygame.K_l), system, state)
    assert system.velocity_leak_enabled is False


def test_pointer_follows_mouse(system, state):
    handle_event(motion((12, 34)), system, state)
    assert state.pointer == (12, 34)


def test_window_resize_resizes_arena(system, state):
    handle_event(pygame.event.Event(pygame.VIDEORESIZE, w=640, h=480, size=(640, 480)), system, state)
    assert tuple(system.bounds) == (640, 480)


def test_click_selects_only_in_edit_mode(system, state):
    handle_event(click((50, 50)), system, state)
    assert state.selected is None

    handle_event(key(pygame.K_e), system, state)
    handle_event(click((52, 48)), system, state)
    assert state.selected is system.particles[0]

    handle_event(click((120, 120)), system, state)
    assert state.selected is None


def test_drag_moves_selected_particle(system, state):
    system.set_mode(Mode.EDIT)
    handle_event(click((50, 50)), system, state)
    handle_event(motion((80, 90)), system, state)
    assert system.particles[0].position.tolist() == [80.0, 90.0]

    handle_event(release((80, 90)), system, state)
    handle_event(motion((100, 100)), system, state)
    assert system.particles[0].position.tolist() == [80.0, 90.0]
    assert state.pointer == (100, 100)


def test_edit_keys_change_selected_particle(system, state):
    system.set_mode(Mode.EDIT)
    handle_event(click((50, 50)), system, state)
    handle_event(release((50, 50)), system, state)
    particle = state.selected

    handle_event(key(pygame.K_RIGHTBRACKET), system, state)
    assert particle.radius == 11
    handle_event(key(pygame.K_LEFTBRACKET), system, state)
    handle_event(key(pygame.K_LEFTBRACKET), system, state)
    assert particle.radius == 9

    handle_event(key(pygame.K_k), system, state)
    assert particle.color == constants.EDIT_COLOR_PALETTE[0]
    handle_event(key(pygame.K_k), system, state)
    assert particle.color == constants.EDIT_COLOR_PALETTE[1]

    handle_event(key(pygame.K_RIGHT), system, state)
    handle_event(key(pygame.K_DOWN), system, state)
    assert particle.position.tolist() == [50.0 + constants.EDIT_NUDGE, 50.0 + constants.EDIT_NUDGE]

    handle_event(key(pygame.K_ESCAPE), system, state)
    assert state.selected is None


def test_radius_keys_respect_bounds(system, state):
    system.set_mode(Mode.EDIT)
    handle_event(click((50, 50)), system, state)
    particle = state.selected
    for _ in range(30):
        handle_event(key(pygame.K_RIGHTBRACKET), system, state)
    assert particle.radius == constants.MAX_PARTICLE_SIZE


def test_caption_reports_mode_leak_and_selection(system, state):
    text = caption(system, state)
    assert "mode: collision" in text
    assert "leak: off" in text

    state.selected = system.particles[0]
    assert "selected: (50, 50) r=10" in caption(system, state)


def test_draw_frame_shows_pointer_ring_in_collision_mode(system, state):
    screen = pygame.Surface((300, 200))
    state.pointer = (150, 100)
    draw_frame(screen, system, state)
    ring_pixel = (150 + constants.POINTER_COLLISION_RADIUS - 1, 100)
    assert tuple(screen.get_at(ring_pixel))[:3] == constants.POINTER_BORDER_COLOR

    system.set_mode(Mode.EDIT)
    draw_frame(screen, system, state)
    assert tuple(screen.get_at(ring_pixel))[:3] == constants.BACKGROUND_COLOR


def test_run_loop_stops_at_max_ticks(system, display):
    ticks = run_simulation_loop(system, display, pygame.time.Clock(), {'max_ticks': 3, 'log_throttle_ticks': 1})
    assert ticks == 3
    assert system.tick_count == 3


def test_main_reports_missing_config(tmp_path, capsys, app_logger):
    assert main.main(str(tmp_path / "missing.json")) == 1
    assert "FATAL" in capsys.readouterr().out


def test_main_runs_a_short_session(tmp_path, monkeypatch, app_logger):
    config = {
        "run_id": "smoke",
        "master_seed": 1,
        "logging": {"level": "INFO", "format": "%(message)s"},
        "window": {"width": 200, "height": 150, "resizable": False},
        "simulation": {"particle_count": 5},
        "run_control": {"max_ticks": 2},
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config))
    monkeypatch.chdir(tmp_path)

    assert main.main(str(path)) == 0
    assert (tmp_path / "runs" / "smoke" / "simulation.log").exists()


def test_main_reports_non_numeric_window_size(tmp_path, monkeypatch, capsys, app_logger):
    config = {
        "run_id": "bad_window",
        "logging": {"level": "INFO", "format": "%(message)s"},
        "window": {"width": "wide", "height": 150},
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(config))
    monkeypatch.chdir(tmp_path)

    assert main.main(str(path)) == 1
    assert "FATAL" in capsys.readouterr().out
