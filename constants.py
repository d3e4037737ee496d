# constants.py

"""
Application Constants

This module defines static configuration values for the application's framework
and the default physics settings of the repulsion simulation. The physics values
may be overridden per run from the 'simulation' section of config.json.

Data Contract:
- All values are immutable constants.
- Units are specified in comments where applicable.
"""

# Screen dimensions (defaults, config.json 'window' section takes precedence)
WIDTH = 1200  # Pixels
HEIGHT = 700  # Pixels

# Framerate
FPS = 60  # Frames per second

# Colors (RGB)
BLACK = (0, 0, 0)
WHITE = (255, 255, 255)
YELLOW = (255, 255, 0)

# Window Title
TITLE = "Repulsion Simulator"

# --- Simulation defaults ---
MAX_PARTICLES = 120

# Particle radius bounds. Initial radii are drawn as integers from this range.
MIN_PARTICLE_SIZE = 5   # Pixels
MAX_PARTICLE_SIZE = 15  # Pixels

# Radius around the pointer inside which particles are pushed away.
POINTER_COLLISION_RADIUS = 10  # Pixels

# Velocity added per axis for every overlapping neighbour (or the pointer).
COLLISION_VELOCITY = 0.005  # Pixels per tick, per collision

# Fraction of the velocity removed every tick while the leak is enabled.
VELOCITY_LEAK_RATE = 0.002

# Boundary response. Applied per axis when a particle touches an edge.
BOUNCE_FACTOR = -0.5   # Velocity along the colliding axis
CROSS_DAMPING = 0.5    # Velocity along the other axis

# --- Host / visualization ---
BACKGROUND_COLOR = BLACK
POINTER_BORDER_COLOR = YELLOW
POINTER_BORDER_WIDTH = 2
SELECTION_COLOR = WHITE
SELECTION_BORDER_WIDTH = 2

# Keyboard nudge distance for the selected particle in edit mode.
EDIT_NUDGE = 5  # Pixels

# Colors the selected particle cycles through in edit mode.
EDIT_COLOR_PALETTE = [
    "#ff0066",  # Hot Pink
    "#00ffff",  # Cyan
    "#ffcc00",  # Gold
    "#00ff66",  # Bright Green
    "#cc00ff",  # Purple
    "#ff6600",  # Orange
]
