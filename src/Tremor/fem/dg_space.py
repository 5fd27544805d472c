"""
Tremor: Multiscale Acoustic Wave Models

File: dg_space.py
Description: Discontinuous Galerkin space of tensor-product Lagrange polynomials
             on a structured mesh. DOFs are numbered element by element.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
import scipy.sparse as sp

from Tremor.fem.reference import ReferenceElement1D, kron_axes, gauss_legendre
from Tremor.errors import PreconditionError

class DGSpace:
    """
    DG space of order p on a StructuredMesh.

    Each cell carries (p+1)^dim DOFs located at the tensor Gauss-Lobatto
    nodes, x running fastest. The DOFs of cell c are
        c*n_loc, ..., c*n_loc + n_loc - 1
    in the natural (serial) numbering.
    """
    def __init__(self, mesh, order):
        if order < 0:
            raise PreconditionError(f"Order ({order}) is negative")
        self.mesh = mesh
        self.order = int(order)
        self.dim = mesh.dim
        self.ref = ReferenceElement1D(self.order)
        self.n_loc = self.ref.n ** self.dim
        self.n_dofs = mesh.n_cells * self.n_loc

    def cell_dofs(self, cell):
        """DOFs of one cell in the natural numbering."""
        return cell*self.n_loc + np.arange(self.n_loc, dtype=np.int64)

    def dof_table(self):
        """(n_cells, n_loc) table of the natural DOF numbering."""
        return np.arange(self.n_dofs, dtype=np.int64).reshape(self.mesh.n_cells, self.n_loc)

    # ------------------------------------------------------------------
    # Cell matrices (unit coefficient)
    # ------------------------------------------------------------------
    def _axis_mass(self, axis):
        return self.mesh.h[axis] * self.ref.m

    def tensor(self, axis, mat):
        """Tensor `mat` on `axis` with the 1D mass matrices of the other axes."""
        mats = [self._axis_mass(a) for a in range(self.dim)]
        mats[axis] = mat
        return kron_axes(mats)

    def mass_block(self):
        """Cell mass matrix for a unit coefficient."""
        return kron_axes([self._axis_mass(a) for a in range(self.dim)])

    def stiffness_block(self):
        """Cell volume stiffness matrix (grad u . grad v) for a unit coefficient."""
        block = np.zeros((self.n_loc, self.n_loc))
        for a in range(self.dim):
            block += self.tensor(a, self.ref.k / self.mesh.h[a])
        return block

    def interior_face_blocks(self, axis):
        """
        Face matrices for the interior faces normal to `axis`.

        Side 0 is the cell on the low side (face at its reference x=1),
        side 1 the cell on the high side (face at reference x=0); the normal
        points from side 0 to side 1. Returns P1, P2, P3 of shape
        (2, 2, n_loc, n_loc) with
            P1[s, t] = <jump of test on s, average normal derivative of trial on t>
            P2[s, t] = <average normal derivative of test on s, jump of trial on t>
            P3[s, t] = <jump of test on s, jump of trial on t>
        """
        h = self.mesh.h[axis]
        r = self.ref
        jump = (r.v1, -r.v0)
        grad = (0.5*r.d1/h, 0.5*r.d0/h)

        P = np.zeros((3, 2, 2, self.n_loc, self.n_loc))
        for s in range(2):
            for t in range(2):
                P[0, s, t] = self.tensor(axis, np.outer(jump[s], grad[t]))
                P[1, s, t] = self.tensor(axis, np.outer(grad[s], jump[t]))
                P[2, s, t] = self.tensor(axis, np.outer(jump[s], jump[t]))
        return P[0], P[1], P[2]

    def boundary_face_blocks(self, axis, side):
        """Face matrices B1, B2, B3 for the boundary faces on one side of the domain."""
        h = self.mesh.h[axis]
        r = self.ref
        if side == 0: # outward normal -e_axis
            jump, grad = r.v0, -r.d0/h
        else:         # outward normal +e_axis
            jump, grad = r.v1, r.d1/h
        return (self.tensor(axis, np.outer(jump, grad)),
                self.tensor(axis, np.outer(grad, jump)),
                self.tensor(axis, np.outer(jump, jump)))

    def penalty_scale(self, axis):
        """Penalty weight per unit coefficient: (p+1)^2 / h."""
        return (self.order + 1)**2 / self.mesh.h[axis]

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------
    def basis_values(self, local):
        """Values of the cell basis at local coordinates in [0, 1]^dim, shape (n_points, n_loc)."""
        local = np.atleast_2d(local)
        vals = np.ones((local.shape[0], 1))
        for a in range(self.dim):
            va = self.ref.values(local[:, a]).T # (n_points, p+1)
            # x fastest: the new axis becomes the slow index
            vals = (va[:, :, None] * vals[:, None, :]).reshape(local.shape[0], -1)
        return vals

    def point_matrix(self, points, dof_table=None):
        """
        Sparse (n_points, n_dofs) evaluation matrix at physical points.
        """
        cells, local = self.mesh.locate(points)
        vals = self.basis_values(local)
        table = self.dof_table() if dof_table is None else dof_table
        rows = np.repeat(np.arange(len(cells)), self.n_loc)
        cols = table[cells].reshape(-1)
        return sp.csr_matrix((vals.reshape(-1), (rows, cols)), shape=(len(cells), self.n_dofs))

    def cell_quadrature(self, n_points=None):
        """
        Tensor Gauss-Legendre rule on the reference cell.

        Returns local points (n_qp, dim), weights scaled by the cell volume
        and the basis values at the points (n_qp, n_loc).
        """
        n = self.ref.n + 2 if n_points is None else n_points
        x, w = gauss_legendre(n)
        grids = np.meshgrid(*([x]*self.dim), indexing='ij')
        # x fastest to match the DOF ordering
        local = np.stack([g.reshape(-1) for g in reversed(grids)], axis=1)
        weights = kron_axes([w]*self.dim) * np.prod(self.mesh.h)
        return local, weights, self.basis_values(local)

    def cell_origins(self):
        """Lower corner of every cell, shape (n_cells, dim)."""
        idx = np.indices(self.mesh.counts[::-1]).reshape(self.dim, -1)[::-1].T
        return idx * np.array(self.mesh.h)
