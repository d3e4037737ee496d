import os

# pygame must not try to open a real window during tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest

from particle_system import ParticleSystem


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def make_system(rng):
    def _make(num_particles=20, bounds=(400, 300), **overrides):
        config = {'use_jit': True}
        config.update(overrides)
        return ParticleSystem(num_particles, config, rng, bounds)
    return _make
