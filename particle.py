# particle.py

import enum
import logging
from collections import namedtuple

import numba
import numpy as np
import pygame

import constants

logger = logging.getLogger("particle_sim")

# Renderable snapshot of one particle, handed to the host once per tick.
ParticleState = namedtuple('ParticleState', ['x', 'y', 'radius', 'color'])


class Mode(str, enum.Enum):
    """Pointer interaction mode of the simulation."""
    COLLISION = 'collision'
    EDIT = 'edit'


# --- JIT-Compiled Physics Functions ---
# Scalar kernels shared by Particle (one body at a time) and by the array
# kernel in particle_system.py (whole population). Keeping a single copy of the
# arithmetic guarantees both paths produce the same state.

@numba.jit(nopython=True)
def _collide_with_point_jit(x, y, radius, vx, vy, point_x, point_y, collision_radius, impulse):
    """
    Returns the velocity after reacting to a point closer than
    collision_radius + radius. The push is chosen per axis by comparing
    coordinates; an axis where they are equal receives no impulse.
    """
    diff_x = point_x - x
    diff_y = point_y - y
    distance = np.sqrt(diff_x * diff_x + diff_y * diff_y)
    if distance < collision_radius + radius:
        if x < point_x:
            vx -= impulse
        elif x > point_x:
            vx += impulse
        if y < point_y:
            vy -= impulse
        elif y > point_y:
            vy += impulse
    return vx, vy


@numba.jit(nopython=True)
def _resolve_boundary_jit(x, y, vx, vy, radius, width, height, bounce, cross_damping):
    """
    Bounces a particle touching an edge and clamps it back into the arena.
    Both axes are checked every call, so a corner hit damps each velocity
    component twice.
    """
    if x + radius >= width or x - radius <= 0:
        vx *= bounce
        vy *= cross_damping
        x = min(max(radius, x), width - radius)
    if y + radius >= height or y - radius <= 0:
        vy *= bounce
        vx *= cross_damping
        y = min(max(radius, y), height - radius)
    return x, y, vx, vy


class Particle:
    """
    Represents a single circular body that is pushed away by the pointer and
    by overlapping neighbours.

    Data Contract:
    - Inputs:
        - position: (x, y) in arena coordinates. Copied into a float array.
        - radius (float): Positive radius in pixels.
        - color: Opaque color token (a '#rrggbb' string by default).
        - velocity: Optional (vx, vy). Defaults to (0, 0).
    - Invariants: position and velocity are float64 arrays of length 2 and are
      mutated in place; identity, not value, distinguishes particles.
    """
    def __init__(self, position, radius: float, color, velocity=None):
        self.position = np.array(position, dtype=float)
        self.radius = radius
        self.color = color
        if velocity is None:
            self.velocity = np.zeros(2, dtype=float)
        else:
            self.velocity = np.array(velocity, dtype=float)

        logger.debug(f"Particle created: radius={self.radius}, color={self.color}, pos={self.position}")

    def __repr__(self):
        return (f"Particle(position=({self.position[0]:.2f}, {self.position[1]:.2f}), "
                f"radius={self.radius}, color={self.color!r})")

    def collide_with_point(self, point, collision_radius: float,
                           impulse: float = constants.COLLISION_VELOCITY):
        """
        Accumulates a repulsion impulse if point lies within
        collision_radius + radius of the center. Repeated calls in the same
        tick add up before integration.
        """
        vx, vy = _collide_with_point_jit(
            self.position[0], self.position[1], float(self.radius),
            self.velocity[0], self.velocity[1],
            float(point[0]), float(point[1]), float(collision_radius), float(impulse)
        )
        self.velocity[0] = vx
        self.velocity[1] = vy

    def update(self):
        """
        Integrates the position by one tick.
        p_new = p_old + v
        """
        self.position += self.velocity

    def check_boundary_collision(self, width: float, height: float):
        """
        Checks for and handles collisions with the arena edges.
        The colliding axis velocity is reversed and halved, the other axis is
        halved, and the center is clamped to [radius, size - radius].

        - Inputs:
            - width (float): The width of the arena.
            - height (float): The height of the arena.
        """
        x, y, vx, vy = _resolve_boundary_jit(
            self.position[0], self.position[1],
            self.velocity[0], self.velocity[1],
            float(self.radius), float(width), float(height),
            constants.BOUNCE_FACTOR, constants.CROSS_DAMPING
        )
        self.position[0] = x
        self.position[1] = y
        self.velocity[0] = vx
        self.velocity[1] = vy

    def apply_velocity_leak(self, leak_rate: float = constants.VELOCITY_LEAK_RATE):
        self.velocity -= self.velocity * leak_rate

    def step(self, pointer_pos, all_particles, mode: Mode, velocity_leak_enabled: bool, bounds,
             pointer_radius: float = constants.POINTER_COLLISION_RADIUS,
             impulse: float = constants.COLLISION_VELOCITY,
             leak_rate: float = constants.VELOCITY_LEAK_RATE):
        """
        Advances this particle by one tick.

        Neighbour positions are read as they are now, so neighbours already
        stepped during the current tick are seen at their new positions.
        """
        if mode == Mode.COLLISION:
            self.collide_with_point(pointer_pos, pointer_radius, impulse)

        for other in all_particles:
            if other is self:
                continue
            self.collide_with_point(other.position, other.radius, impulse)

        # Edges are resolved on the integrated position so the particle ends the tick inside the arena.
        self.update()
        self.check_boundary_collision(bounds[0], bounds[1])

        # Leak after integration: this tick's displacement used the full velocity.
        if velocity_leak_enabled:
            self.apply_velocity_leak(leak_rate)

    def speed(self) -> float:
        return float(np.sqrt(np.sum(self.velocity ** 2)))

    def render_state(self) -> ParticleState:
        return ParticleState(float(self.position[0]), float(self.position[1]), self.radius, self.color)

    def draw(self, screen: pygame.Surface, outline_color=None, outline_width: int = 0):
        """
        Draws the particle on the screen, optionally with an outline ring.
        """
        center = (int(self.position[0]), int(self.position[1]))
        radius = int(round(self.radius))
        pygame.draw.circle(screen, pygame.Color(self.color), center, radius)
        if outline_color is not None and outline_width > 0:
            pygame.draw.circle(screen, outline_color, center, radius + outline_width, outline_width)
