"""
Tremor: Multiscale Acoustic Wave Models

File: leapfrog.py
Description: Explicit leap-frog (central difference) integration of
                 M u'' + S u = f(t) b
             with an implicit mass solve in every step:
                 M u0 = M (2 u1 - u2) - dt^2 (S u1 - f(t) b)

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

from Tremor.parallel.comm import global_dot
from Tremor.logging import get_logger

logger = get_logger(__name__)

class LeapFrogState:
    """
    Ring of the three retained time levels.

    u0: level being computed, u1: last computed level, u2: the one before.
    The buffers are rotated, never reallocated.
    """
    def __init__(self, n):
        self.u0 = np.zeros(n)
        self.u1 = np.zeros(n)
        self.u2 = np.zeros(n)
        self.step = 0

    @property
    def current(self):
        """Latest solution."""
        return self.u1

    def rotate(self):
        self.u0, self.u1, self.u2 = self.u2, self.u0, self.u1


class LeapFrogOperators:
    """
    Mass and stiffness matrices, spatial source vector and the mass solver.

    The matrices only need to support `@` with a vector of the state's
    layout, which holds for scipy matrices and DistributedMatrix alike.
    """
    def __init__(self, mass, stiffness, source, solver, comm=None):
        self.mass = mass
        self.stiffness = stiffness
        self.source = source
        self.solver = solver
        self.comm = comm

    def norm(self, u):
        """Global L2 norm of a (possibly distributed) vector."""
        if self.comm is None:
            return float(np.linalg.norm(u))
        return float(np.sqrt(global_dot(self.comm, u, u)))


def time_step(state, ops, dt, timeval):
    """
    Advance the state by one step with source amplitude `timeval` and
    return the new solution.
    """
    y = 2.0*state.u1 - state.u2
    rhs = ops.mass @ y - dt**2 * (ops.stiffness @ state.u1 - timeval*ops.source)
    state.u0[:] = ops.solver.solve(rhs, x0=y)

    state.rotate()
    state.step += 1
    return state.current


class LeapFrogIntegrator:
    """
    Drives time_step() over the precomputed source samples.

    Observers are called after every step as observer(step, state) and
    decide themselves whether the step is relevant to them.
    """
    def __init__(self, ops, dt, time_values, name="coarse"):
        self.ops = ops
        self.dt = dt
        self.time_values = np.asarray(time_values)
        self.name = name
        self.state = LeapFrogState(ops.source.shape[0])
        self.norms = []

    @property
    def n_steps(self):
        return self.time_values.size

    def step(self, t):
        """Run step t (1-based)."""
        time_step(self.state, self.ops, self.dt, self.time_values[t - 1])

    def run(self, observers=()):
        N = self.n_steps
        log_every = max(N // 10, 1)
        for t in range(1, N + 1):
            self.step(t)

            if t % log_every == 0:
                norm = self.ops.norm(self.state.current)
                self.norms.append((t, norm))
                logger.info(f"step {t} / {N} ||U_{self.name}||_L2 = {norm:.6e}")

            for observer in observers:
                observer(t, self.state)

        return self.state.current
