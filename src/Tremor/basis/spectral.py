"""
Tremor: Multiscale Acoustic Wave Models

File: spectral.py
Description: Spectral local basis built in the discontinuous fine space of the
             coarse cell. The first n_interior functions are the lowest modes
             of the local problem with the Dirichlet penalty on the coarse cell
             boundary, the remaining ones the lowest modes of the local problem
             with natural boundary conditions.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

from Tremor.basis.base_basis import BaseBasis, lowest_modes, m_orthonormalize
from Tremor.errors import BasisError
from Tremor.fem.dg_space import DGSpace
from Tremor.fem.assembly import assemble_mass, assemble_stiffness
from Tremor.logging import get_logger

logger = get_logger(__name__)

class DGSpectralBasis(BaseBasis): # Inherit from BaseBasis
    def __init__(self, ctx):
        s, p, o = ctx
        self.order = p.order
        self.sigma = p.dg_sigma
        self.kappa = p.dg_kappa

        logger.info(f"Local basis: DG spectral, order {self.order}, "
                    f"{p.gms_nb} functions per coarse cell ({p.gms_ni} interior).")

    def local_space(self, sub_mesh):
        return DGSpace(sub_mesh, self.order)

    def compute_local_basis(self, sub_mesh, n_basis, n_interior, coef_a, coef_b):
        space = self.local_space(sub_mesh)
        if n_basis > space.n_dofs:
            raise BasisError(f"{n_basis} basis functions requested on a sub-mesh "
                             f"with {space.n_dofs} DOFs")

        M = assemble_mass(space, coef_b)
        S_dirichlet = assemble_stiffness(space, coef_a, self.sigma, self.kappa)
        S_neumann = assemble_stiffness(space, coef_a, self.sigma, self.kappa, boundary=False)

        V = np.hstack((lowest_modes(S_dirichlet, M, n_interior),
                       lowest_modes(S_neumann, M, n_basis - n_interior)))
        return m_orthonormalize(V, M)
