# particle_system.py

import logging
import math
from collections import namedtuple

import numba
import numpy as np
import pygame

import constants
from particle import Mode, Particle, _collide_with_point_jit, _resolve_boundary_jit

logger = logging.getLogger("particle_sim")

# Width and height of the rectangular arena the particles are confined to.
Bounds = namedtuple('Bounds', ['width', 'height'])

# --- JIT-Compiled Physics Functions ---
# The population kernel works on flat NumPy arrays gathered from the Particle
# objects. Particles are stepped one after another and write their new state
# back immediately, so later particles see earlier ones at this tick's
# positions, exactly like Particle.step driven from a Python loop.

@numba.jit(nopython=True)
def _step_particles_jit(positions, velocities, radii, pointer_x, pointer_y, collide_with_pointer,
                        leak_enabled, width, height, pointer_radius, impulse, leak_rate,
                        bounce, cross_damping):
    """
    Numba-accelerated sequential step of every particle.
    Index equality stands in for identity when skipping self.
    """
    num_particles = positions.shape[0]
    for i in range(num_particles):
        x = positions[i, 0]
        y = positions[i, 1]
        radius = radii[i]
        vx = velocities[i, 0]
        vy = velocities[i, 1]

        if collide_with_pointer:
            vx, vy = _collide_with_point_jit(x, y, radius, vx, vy, pointer_x, pointer_y, pointer_radius, impulse)

        for j in range(num_particles):
            if j == i:
                continue
            vx, vy = _collide_with_point_jit(x, y, radius, vx, vy, positions[j, 0], positions[j, 1], radii[j], impulse)

        # Integrate before resolving edges, as in Particle.step.
        x += vx
        y += vy
        x, y, vx, vy = _resolve_boundary_jit(x, y, vx, vy, radius, width, height, bounce, cross_damping)

        if leak_enabled:
            vx -= vx * leak_rate
            vy -= vy * leak_rate

        positions[i, 0] = x
        positions[i, 1] = y
        velocities[i, 0] = vx
        velocities[i, 1] = vy


class ParticleSystem:
    """
    Owns the particle population and the arena, runs one tick per frame and
    offers a bounded mutation API for interactive editing.

    Data Contract:
    - Inputs:
        - num_particles (int): The number of particles to create.
        - config (dict): The 'simulation' section of the config file. Missing
          keys fall back to the defaults in constants.py.
        - rng (np.random.Generator): The master seeded random number generator.
        - bounds (tuple): The (width, height) of the arena.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Mutates particle positions and velocities in place.
    - Invariants: The number of particles is constant throughout the run.
      Radii stay within [min_particle_size, max_particle_size]. After a tick,
      every particle center lies within [radius, size - radius] on both axes.
    """
    def __init__(self, num_particles: int, config: dict, rng: np.random.Generator, bounds: tuple):
        self.num_particles = num_particles
        self.bounds = Bounds(*bounds)
        self.min_particle_size = config.get('min_particle_size', constants.MIN_PARTICLE_SIZE)
        self.max_particle_size = config.get('max_particle_size', constants.MAX_PARTICLE_SIZE)
        self.pointer_collision_radius = config.get('pointer_collision_radius', constants.POINTER_COLLISION_RADIUS)
        self.collision_velocity = config.get('collision_velocity', constants.COLLISION_VELOCITY)
        self.velocity_leak_rate = config.get('velocity_leak_rate', constants.VELOCITY_LEAK_RATE)
        self.use_jit = config.get('use_jit', True)

        self.mode = Mode(config.get('initial_mode', Mode.COLLISION))
        self.velocity_leak_enabled = bool(config.get('velocity_leak_enabled', False))
        self.tick_count = 0

        # --- Initialize the population ---
        positions = rng.random((num_particles, 2)) * np.array(self.bounds, dtype=float)
        radii = rng.integers(self.min_particle_size, self.max_particle_size + 1, num_particles)
        colors = rng.integers(0, 0x1000000, num_particles)
        self.particles = [
            Particle(positions[i], float(radii[i]), f"#{int(colors[i]):06x}")
            for i in range(num_particles)
        ]

        logger.info(f"ParticleSystem created for {num_particles} particles in a "
                    f"{self.bounds.width}x{self.bounds.height} arena.")
        logger.info(f"Mode: {self.mode.value}, velocity leak: {self.velocity_leak_enabled}, "
                    f"JIT kernel: {self.use_jit}.")

    # --- Simulation ---

    def tick(self, pointer_pos, mode=None, velocity_leak_enabled=None, render=None):
        """
        Advances every particle by one step, in order, then hands each
        particle's renderable state to render (if given).

        mode and velocity_leak_enabled default to the system's own fields.
        """
        mode = self.mode if mode is None else Mode(mode)
        if velocity_leak_enabled is None:
            velocity_leak_enabled = self.velocity_leak_enabled

        if self.use_jit:
            self._step_all_jit(pointer_pos, mode, velocity_leak_enabled)
        else:
            for particle in self.particles:
                particle.step(
                    pointer_pos, self.particles, mode, velocity_leak_enabled, self.bounds,
                    pointer_radius=self.pointer_collision_radius,
                    impulse=self.collision_velocity,
                    leak_rate=self.velocity_leak_rate
                )

        self.tick_count += 1

        if render is not None:
            for particle in self.particles:
                render(particle.render_state())

    def _step_all_jit(self, pointer_pos, mode: Mode, velocity_leak_enabled: bool):
        """
        Gathers the population into arrays, runs the JIT kernel and writes the
        results back to the Particle objects.
        """
        positions = np.empty((self.num_particles, 2), dtype=float)
        velocities = np.empty((self.num_particles, 2), dtype=float)
        radii = np.empty(self.num_particles, dtype=float)
        for i, particle in enumerate(self.particles):
            positions[i] = particle.position
            velocities[i] = particle.velocity
            radii[i] = particle.radius

        _step_particles_jit(
            positions, velocities, radii,
            float(pointer_pos[0]), float(pointer_pos[1]),
            mode == Mode.COLLISION,
            bool(velocity_leak_enabled),
            float(self.bounds.width), float(self.bounds.height),
            float(self.pointer_collision_radius),
            float(self.collision_velocity),
            float(self.velocity_leak_rate),
            float(constants.BOUNCE_FACTOR),
            float(constants.CROSS_DAMPING)
        )

        for i, particle in enumerate(self.particles):
            particle.position[:] = positions[i]
            particle.velocity[:] = velocities[i]

    def resize(self, bounds: tuple):
        """
        Updates the arena bounds. Particles are not moved here; any particle
        over an edge of the new arena is clamped by its next step.
        """
        old_bounds = self.bounds
        self.bounds = Bounds(*bounds)
        logger.info(f"Arena resized from {old_bounds.width}x{old_bounds.height} "
                    f"to {self.bounds.width}x{self.bounds.height}.")

    def set_mode(self, mode):
        self.mode = Mode(mode)
        logger.info(f"Mode set to '{self.mode.value}'.")

    def set_velocity_leak(self, enabled: bool):
        self.velocity_leak_enabled = bool(enabled)
        logger.info(f"Velocity leak {'enabled' if self.velocity_leak_enabled else 'disabled'}.")

    # --- Interactive editing ---

    def find_particle_at(self, x: float, y: float):
        """
        Returns the first particle whose square bounding box contains (x, y),
        edges included, or None.
        """
        for particle in self.particles:
            px, py = particle.position
            r = particle.radius
            if px - r <= x <= px + r and py - r <= y <= py + r:
                return particle
        return None

    def _require_owned(self, particle: Particle):
        if not any(p is particle for p in self.particles):
            raise ValueError(f"{particle!r} does not belong to this particle system.")

    def set_color(self, particle: Particle, color):
        self._require_owned(particle)
        particle.color = color
        logger.debug(f"Particle color set to {color!r}.")

    def set_radius(self, particle: Particle, radius: float) -> float:
        """
        Sets a particle's radius, clamped into [min_particle_size,
        max_particle_size]. Returns the radius actually applied.
        """
        self._require_owned(particle)
        radius = float(radius)
        if not math.isfinite(radius):
            raise ValueError(f"Radius must be a finite number, got {radius}.")

        applied = float(min(max(radius, self.min_particle_size), self.max_particle_size))
        if applied != radius:
            logger.warning(f"Requested radius {radius} is outside "
                           f"[{self.min_particle_size}, {self.max_particle_size}]; using {applied}.")
        particle.radius = applied
        return applied

    def set_position(self, particle: Particle, x: float, y: float):
        """
        Moves a particle, clamping its center into [radius, size - radius] on
        both axes. Returns the position actually applied.
        """
        self._require_owned(particle)
        x, y = float(x), float(y)
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Position must be finite, got ({x}, {y}).")

        r = particle.radius
        applied_x = float(min(max(r, x), self.bounds.width - r))
        applied_y = float(min(max(r, y), self.bounds.height - r))
        if (applied_x, applied_y) != (x, y):
            logger.warning(f"Requested position ({x:.1f}, {y:.1f}) is outside the arena; "
                           f"using ({applied_x:.1f}, {applied_y:.1f}).")
        particle.position[0] = applied_x
        particle.position[1] = applied_y
        return applied_x, applied_y

    # --- Diagnostics & rendering ---

    def get_mean_speed(self) -> float:
        if not self.particles:
            return 0.0
        return float(np.mean([p.speed() for p in self.particles]))

    def draw(self, screen: pygame.Surface, selected: Particle = None):
        """
        Draws all particles on the screen, outlining the selected one.
        """
        for particle in self.particles:
            if particle is selected:
                particle.draw(screen, constants.SELECTION_COLOR, constants.SELECTION_BORDER_WIDTH)
            else:
                particle.draw(screen)
