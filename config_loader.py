# config_loader.py
"""
Loading and validation of the per-run configuration file.

Static framework values live in constants.py; config.json holds everything
that may change between runs (seed, logging, window size, simulation
parameters, run control).
"""
import json
import logging
from typing import Any, Dict

import constants
from particle import Mode

logger = logging.getLogger("particle_sim")

# --- Data Contracts ---
#
# load_config(path: str) -> Dict[str, Any]:
#   - Raises FileNotFoundError / json.JSONDecodeError (logged, re-raised).
#
# simulation_params(config: Dict[str, Any]) -> Dict[str, Any]:
#   - Outputs: the 'simulation' section with every key present, missing keys
#     filled from constants.py.
#   - Raises ValueError on values that would break the simulation invariants.
#
# window_size(config: Dict[str, Any]) -> (int, int)

SIMULATION_DEFAULTS = {
    'particle_count': constants.MAX_PARTICLES,
    'min_particle_size': constants.MIN_PARTICLE_SIZE,
    'max_particle_size': constants.MAX_PARTICLE_SIZE,
    'pointer_collision_radius': constants.POINTER_COLLISION_RADIUS,
    'collision_velocity': constants.COLLISION_VELOCITY,
    'velocity_leak_rate': constants.VELOCITY_LEAK_RATE,
    'velocity_leak_enabled': False,
    'initial_mode': Mode.COLLISION.value,
    'use_jit': True,
}


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logger.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logger.info("Configuration loaded successfully.")
        return config
    except FileNotFoundError:
        logger.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logger.error(f"Error decoding JSON from {path}.")
        raise


def _fail(message: str):
    logger.error(message)
    raise ValueError(message)


def simulation_params(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Returns the 'simulation' section merged over the defaults, after checking
    that the values are usable.
    """
    params = dict(SIMULATION_DEFAULTS)
    params.update(config.get('simulation', {}))

    count = params['particle_count']
    if not isinstance(count, int) or count < 0:
        _fail(f"particle_count must be a non-negative integer, got {count!r}.")

    min_size, max_size = params['min_particle_size'], params['max_particle_size']
    if not isinstance(min_size, int) or not isinstance(max_size, int):
        _fail("min_particle_size and max_particle_size must be integers.")
    if min_size <= 0 or min_size > max_size:
        _fail(f"Particle size range [{min_size}, {max_size}] is invalid.")

    if params['pointer_collision_radius'] < 0:
        _fail("pointer_collision_radius must not be negative.")
    if params['collision_velocity'] < 0:
        _fail("collision_velocity must not be negative.")
    if not 0 <= params['velocity_leak_rate'] < 1:
        _fail(f"velocity_leak_rate must be in [0, 1), got {params['velocity_leak_rate']}.")

    try:
        Mode(params['initial_mode'])
    except ValueError:
        _fail(f"Unknown initial_mode {params['initial_mode']!r}.")

    return params


def window_size(config: Dict[str, Any]):
    """Returns the (width, height) of the window, which is also the arena size."""
    window = config.get('window', {})
    width = window.get('width', constants.WIDTH)
    height = window.get('height', constants.HEIGHT)
    for value in (width, height):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            _fail(f"Window size must be numeric, got {value!r}.")
    if width <= 0 or height <= 0:
        _fail(f"Window size must be positive, got {width}x{height}.")
    return int(width), int(height)
