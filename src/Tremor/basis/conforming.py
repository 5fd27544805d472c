"""
Tremor: Multiscale Acoustic Wave Models

File: conforming.py
Description: Spectral local basis built in the continuous Q_p space of the
             coarse cell. The modes are computed on the continuous space and
             embedded in the discontinuous fine space through the injection
             that copies the value of a shared node into every cell touching it.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
import scipy.sparse as sp

from Tremor.basis.spectral import DGSpectralBasis
from Tremor.basis.base_basis import lowest_modes, m_orthonormalize
from Tremor.errors import BasisError, ConfigurationError
from Tremor.fem.assembly import assemble_mass, assemble_stiffness

def injection(space):
    """
    Sparse (DG DOFs) x (continuous DOFs) injection of Q_p into the DG space
    of the same order. Also returns the mask of continuous DOFs on the
    boundary of the mesh.
    """
    mesh, p, dim = space.mesh, space.order, space.dim
    nodes = tuple(n*p + 1 for n in mesh.counts)

    # Local node multi-indices, x fastest
    local = np.indices((p + 1,)*dim).reshape(dim, -1)[::-1].T

    rows, cols = [], []
    for c in range(mesh.n_cells):
        cell = np.array(mesh.cell_multi_index(c))
        glob = cell*p + local
        idx = np.zeros(len(local), dtype=np.int64)
        for a in reversed(range(dim)):
            idx = idx*nodes[a] + glob[:, a]
        rows.append(space.cell_dofs(c))
        cols.append(idx)

    rows = np.concatenate(rows)
    cols = np.concatenate(cols)
    n_nodes = int(np.prod(nodes))
    P = sp.csr_matrix((np.ones(rows.size), (rows, cols)), shape=(space.n_dofs, n_nodes))

    grid = np.indices(nodes[::-1]).reshape(dim, -1)[::-1].T
    on_boundary = np.any((grid == 0) | (grid == np.array(nodes) - 1), axis=1)
    return P, on_boundary


class ConformingSpectralBasis(DGSpectralBasis): # Inherit from DGSpectralBasis
    def __init__(self, ctx):
        super().__init__(ctx)
        if self.order < 1:
            raise ConfigurationError("The conforming local basis requires order >= 1")

    def compute_local_basis(self, sub_mesh, n_basis, n_interior, coef_a, coef_b):
        space = self.local_space(sub_mesh)
        P, on_boundary = injection(space)
        if n_basis > P.shape[1]:
            raise BasisError(f"{n_basis} basis functions requested on a sub-mesh "
                             f"with {P.shape[1]} continuous DOFs")

        M = assemble_mass(space, coef_b)
        # Face terms vanish for continuous functions
        S = assemble_stiffness(space, coef_a, self.sigma, self.kappa, interior=False, boundary=False)
        M_c = (P.T @ M @ P).tocsr()
        S_c = (P.T @ S @ P).tocsr()

        # Dirichlet modes live on the interior nodes only
        inner = np.flatnonzero(~on_boundary)
        V_i = np.zeros((P.shape[1], n_interior))
        if n_interior > 0:
            V_i[inner] = lowest_modes(S_c[inner][:, inner], M_c[inner][:, inner], n_interior)
        V_n = lowest_modes(S_c, M_c, n_basis - n_interior)

        V = P @ np.hstack((V_i, V_n))
        return m_orthonormalize(V, M)
