# main.py

import cProfile
import io
import logging
import pstats

import numpy as np
import pygame

import constants
import logger_setup
from config_loader import load_config, simulation_params, window_size
from particle import Mode
from particle_system import ParticleSystem

# Get the application's dedicated logger
logger = logging.getLogger("particle_sim")


class HostState:
    """
    Interaction state owned by the host: where the pointer is, which particle
    is selected for editing and whether it is being dragged.
    """
    def __init__(self):
        self.pointer = (0, 0)
        self.selected = None
        self.dragging = False
        self.palette_index = 0
        self.running = True


def _handle_edit_key(key, particle_system: ParticleSystem, state: HostState):
    particle = state.selected
    if key == pygame.K_LEFTBRACKET:
        particle_system.set_radius(particle, particle.radius - 1)
    elif key == pygame.K_RIGHTBRACKET:
        particle_system.set_radius(particle, particle.radius + 1)
    elif key == pygame.K_k:
        color = constants.EDIT_COLOR_PALETTE[state.palette_index % len(constants.EDIT_COLOR_PALETTE)]
        state.palette_index += 1
        particle_system.set_color(particle, color)
    else:
        nudges = {
            pygame.K_LEFT: (-constants.EDIT_NUDGE, 0),
            pygame.K_RIGHT: (constants.EDIT_NUDGE, 0),
            pygame.K_UP: (0, -constants.EDIT_NUDGE),
            pygame.K_DOWN: (0, constants.EDIT_NUDGE),
        }
        if key in nudges:
            dx, dy = nudges[key]
            particle_system.set_position(particle, particle.position[0] + dx, particle.position[1] + dy)


def handle_event(event, particle_system: ParticleSystem, state: HostState):
    """
    Applies one pygame event to the host state and the particle system.
    Edits happen here, between ticks, on the loop's thread.
    """
    if event.type == pygame.QUIT:
        state.running = False

    elif event.type == pygame.VIDEORESIZE:
        particle_system.resize((event.w, event.h))

    elif event.type == pygame.MOUSEMOTION:
        state.pointer = event.pos
        if state.dragging and state.selected is not None:
            particle_system.set_position(state.selected, *event.pos)

    elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
        if particle_system.mode != Mode.EDIT:
            return
        state.selected = particle_system.find_particle_at(*event.pos)
        state.dragging = state.selected is not None
        if state.selected is not None:
            logger.debug(f"Selected {state.selected!r}.")

    elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
        state.dragging = False

    elif event.type == pygame.KEYDOWN:
        if event.key == pygame.K_c:
            particle_system.set_mode(Mode.COLLISION)
            state.dragging = False
        elif event.key == pygame.K_e:
            particle_system.set_mode(Mode.EDIT)
        elif event.key == pygame.K_l:
            particle_system.set_velocity_leak(not particle_system.velocity_leak_enabled)
        elif event.key == pygame.K_ESCAPE:
            state.selected = None
            state.dragging = False
        elif state.selected is not None:
            _handle_edit_key(event.key, particle_system, state)


def caption(particle_system: ParticleSystem, state: HostState) -> str:
    text = (f"{constants.TITLE} | mode: {particle_system.mode.value} | "
            f"leak: {'on' if particle_system.velocity_leak_enabled else 'off'}")
    if state.selected is not None:
        x, y, radius, color = state.selected.render_state()
        text += f" | selected: ({x:.0f}, {y:.0f}) r={radius:g} {color}"
    return text


def draw_frame(screen: pygame.Surface, particle_system: ParticleSystem, state: HostState):
    screen.fill(constants.BACKGROUND_COLOR)
    particle_system.draw(screen, selected=state.selected)
    if particle_system.mode == Mode.COLLISION:
        pygame.draw.circle(
            screen,
            constants.POINTER_BORDER_COLOR,
            state.pointer,
            int(particle_system.pointer_collision_radius),
            constants.POINTER_BORDER_WIDTH
        )


def run_simulation_loop(particle_system: ParticleSystem, screen, clock, run_params: dict):
    """
    The main simulation loop: events, one tick, drawing, frame pacing.
    Returns the number of ticks run.
    """
    state = HostState()
    log_throttle = run_params.get('log_throttle_ticks', 300)
    max_ticks = run_params.get('max_ticks')
    tick = 0

    while state.running:
        for event in pygame.event.get():
            handle_event(event, particle_system, state)

        particle_system.tick(state.pointer)

        # Hot loop, throttled logging
        if tick % log_throttle == 0:
            logger.debug(
                f"Tick={tick}, "
                f"Mode={particle_system.mode.value}, "
                f"Leak={particle_system.velocity_leak_enabled}, "
                f"MeanSpeed={particle_system.get_mean_speed():.4f}"
            )

        draw_frame(screen, particle_system, state)
        pygame.display.set_caption(caption(particle_system, state))
        pygame.display.flip()
        clock.tick(constants.FPS)
        tick += 1

        if max_ticks is not None and tick >= max_ticks:
            logger.info(f"Reached max_ticks ({max_ticks}). Stopping simulation.")
            state.running = False

    return tick


def main(config_path='config.json'):
    """
    Main function to initialize and run the simulation.
    """
    # --- Setup ---
    try:
        logger_setup.setup_logging(config_path)
        config = load_config(config_path)
        sim_params = simulation_params(config)
        width, height = window_size(config)
    except (OSError, ValueError, KeyError) as e:
        print(f"FATAL: Could not load configuration from {config_path}. Error: {e}")
        return 1

    run_params = config.get('run_control', {})

    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    # Initialize the master random number generator (RNG)
    rng = np.random.default_rng(config.get('master_seed'))
    logger.info(f"Master RNG initialized with seed: {config.get('master_seed')}")

    # --- Initialization ---
    pygame.init()
    flags = pygame.RESIZABLE if config.get('window', {}).get('resizable', True) else 0
    screen = pygame.display.set_mode((width, height), flags)
    pygame.display.set_caption(constants.TITLE)
    clock = pygame.time.Clock()

    particle_system = ParticleSystem(
        num_particles=sim_params['particle_count'],
        config=sim_params,
        rng=rng,
        bounds=(width, height)
    )

    if run_params.get('profile', False):
        profiler = cProfile.Profile()
        profiler.enable()
        ticks = run_simulation_loop(particle_system, screen, clock, run_params)
        profiler.disable()

        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logger.info(f"Profile of {ticks} ticks:\n{s.getvalue()}")
    else:
        ticks = run_simulation_loop(particle_system, screen, clock, run_params)

    logger.info(f"Application shutting down after {ticks} ticks.")
    pygame.quit()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
