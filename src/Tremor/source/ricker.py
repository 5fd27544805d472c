"""
Tremor: Multiscale Acoustic Wave Models

File: ricker.py
Description: Ricker wavelet time function of the point source.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

def ricker(t, frequency, scale=1.0):
    """
    Ricker wavelet scale*(1 - 2a^2)*exp(-a^2), a = pi f (t - 1/f).

    The peak is delayed by one period so that the wavelet starts close to zero.
    """
    a = np.pi * frequency * (np.asarray(t, dtype=np.float64) - 1.0/frequency)
    return scale * (1.0 - 2.0*a**2) * np.exp(-a**2)

def n_time_steps(T, dt):
    return int(round(T / dt))

def time_values(params):
    """
    Source amplitude of every time step, precomputed before the loop.
    Entry t-1 belongs to step t and is sampled at t*dt - dt.
    """
    p = params
    N = n_time_steps(p.T, p.dt)
    t = np.arange(1, N + 1) * p.dt - p.dt
    return ricker(t, p.frequency, p.scale)
