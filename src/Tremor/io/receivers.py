"""
Tremor: Multiscale Acoustic Wave Models

File: receivers.py
Description: Sets of seismic receivers. A set is either a line of equally
             spaced receivers between two points or a plane of receivers
             spanned by two vectors from an origin.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

from Tremor.config import verify

def _point(rec, key, dim):
    value = rec.get(key)
    verify(value is not None and len(value) == dim,
           f"Receivers set needs '{key}' with {dim} coordinates, got {value}")
    return np.asarray(value, dtype=np.float64)

def _fractions(n):
    verify(int(n) > 0, f"Number of receivers ({n}) must be >0")
    n = int(n)
    return np.array([0.0]) if n == 1 else np.linspace(0.0, 1.0, n)

def receiver_points(rec, dim):
    """
    Coordinates (n_receivers, dim) of a receivers set.

    line:  start, end, n
    plane: origin, v1, v2, n1, n2 (receivers along v1 run fastest)
    """
    kind = rec.get('type')
    if kind == 'line':
        start, end = _point(rec, 'start', dim), _point(rec, 'end', dim)
        s = _fractions(rec.get('n', 0))
        return start + s[:, None] * (end - start)
    if kind == 'plane':
        origin = _point(rec, 'origin', dim)
        v1, v2 = _point(rec, 'v1', dim), _point(rec, 'v2', dim)
        s1 = _fractions(rec.get('n1', 0))
        s2 = _fractions(rec.get('n2', 0))
        S2, S1 = np.meshgrid(s2, s1, indexing='ij')
        return origin + S1.reshape(-1, 1) * v1 + S2.reshape(-1, 1) * v2
    verify(False, f"Unknown type of receivers set: {kind}")


class ReceiversSet:
    """
    Receivers of one set resolved to the fine mesh.

    matrix: sparse (n_receivers, n_fine_dofs) evaluation of the fine field
    """
    def __init__(self, index, rec, space, dof_table=None):
        self.index = index
        self.type = rec['type']
        self.points = receiver_points(rec, space.dim)
        self.matrix = space.point_matrix(self.points, dof_table)

    @property
    def n_receivers(self):
        return self.points.shape[0]

    def sample(self, u):
        """Field values at the receivers from a full fine vector."""
        return self.matrix @ u

    def sample_local(self, u_local, row_range):
        """Contribution of the locally stored fine rows to the samples."""
        lo, hi = row_range
        return self.matrix[:, lo:hi] @ u_local
