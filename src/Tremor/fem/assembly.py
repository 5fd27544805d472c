"""
Tremor: Multiscale Acoustic Wave Models

File: assembly.py
Description: Assembly of the fine-scale interior penalty DG operators and of the
             source vector. The matrices are assembled in COO format by numba
             kernels; only the rows of the owned cells are produced so that the
             same code serves the serial and the distributed runs.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numba as nb
import numpy as np
import scipy.sparse as sp

from Tremor.errors import ConfigurationError
from Tremor.profiling import timer

# Numba compiled functions - Not part of the class
@nb.njit(cache=True, inline='always')
def insert_block(i_idx, j_idx, vals, ptr, rows, cols, scale, block):
    for r in range(rows.shape[0]):
        for c in range(cols.shape[0]):
            i_idx[ptr[0]] = rows[r]
            j_idx[ptr[0]] = cols[c]
            vals[ptr[0]] = scale * block[r, c]
            # Increment current index
            ptr[0] += 1

@nb.njit(cache=True)
def assemble_cells(dofs, owned, coef, block):
    """Block-diagonal part: coef[c] * block for every owned cell c."""
    n_cells, n_loc = dofs.shape
    max_nnz = n_cells * n_loc * n_loc

    i_idx = np.zeros((max_nnz,), dtype=np.int64)
    j_idx = np.zeros((max_nnz,), dtype=np.int64)
    vals = np.zeros((max_nnz,), dtype=np.float64)
    ptr = np.array([0], dtype=np.int64)

    for c in range(n_cells):
        if owned[c]:
            insert_block(i_idx, j_idx, vals, ptr, dofs[c], dofs[c], coef[c], block)

    n = ptr[0]
    return i_idx[:n], j_idx[:n], vals[:n]

@nb.njit(cache=True)
def assemble_interior_faces(dofs, owned, minus, plus, coef, P1, P2, P3, sigma, penalty):
    """
    Face terms of the interior penalty form on interior faces.

    Block (s, t) couples the test functions of side s with the trial
    functions of side t:
        -q_t P1[s, t] + sigma q_s P2[s, t] + penalty {q} P3[s, t]
    Rows belong to side s and are only produced if that cell is owned.
    """
    n_faces = minus.shape[0]
    n_loc = dofs.shape[1]
    max_nnz = 4 * n_faces * n_loc * n_loc

    i_idx = np.zeros((max_nnz,), dtype=np.int64)
    j_idx = np.zeros((max_nnz,), dtype=np.int64)
    vals = np.zeros((max_nnz,), dtype=np.float64)
    ptr = np.array([0], dtype=np.int64)
    block = np.zeros((n_loc, n_loc), dtype=np.float64)

    for f in range(n_faces):
        cells = (minus[f], plus[f])
        q_avg = 0.5 * (coef[cells[0]] + coef[cells[1]])
        for s in range(2):
            cs = cells[s]
            if not owned[cs]:
                continue
            for t in range(2):
                ct = cells[t]
                for r in range(n_loc):
                    for c in range(n_loc):
                        block[r, c] = (-coef[ct] * P1[s, t, r, c]
                                       + sigma * coef[cs] * P2[s, t, r, c]
                                       + penalty * q_avg * P3[s, t, r, c])
                insert_block(i_idx, j_idx, vals, ptr, dofs[cs], dofs[ct], 1.0, block)

    n = ptr[0]
    return i_idx[:n], j_idx[:n], vals[:n]

@nb.njit(cache=True)
def assemble_boundary_faces(dofs, owned, cells, coef, B1, B2, B3, sigma, penalty):
    """Weak homogeneous Dirichlet terms on the boundary faces of `cells`."""
    n_faces = cells.shape[0]
    n_loc = dofs.shape[1]
    max_nnz = n_faces * n_loc * n_loc

    i_idx = np.zeros((max_nnz,), dtype=np.int64)
    j_idx = np.zeros((max_nnz,), dtype=np.int64)
    vals = np.zeros((max_nnz,), dtype=np.float64)
    ptr = np.array([0], dtype=np.int64)
    block = -B1 + sigma * B2 + penalty * B3

    for f in range(n_faces):
        c = cells[f]
        if owned[c]:
            insert_block(i_idx, j_idx, vals, ptr, dofs[c], dofs[c], coef[c], block)

    n = ptr[0]
    return i_idx[:n], j_idx[:n], vals[:n]


def _ownership(space, dof_table, owned):
    if dof_table is None:
        dof_table = space.dof_table()
    if owned is None:
        owned = np.ones(space.mesh.n_cells, dtype=np.bool_)
    return np.ascontiguousarray(dof_table, dtype=np.int64), np.asarray(owned, dtype=np.bool_)

def _to_csr(parts, n_dofs, row_range):
    i_idx = np.concatenate([p[0] for p in parts])
    j_idx = np.concatenate([p[1] for p in parts])
    vals = np.concatenate([p[2] for p in parts])

    lo, hi = row_range if row_range is not None else (0, n_dofs)
    # Duplicates are summed by the conversion
    mat = sp.coo_matrix((vals, (i_idx - lo, j_idx)), shape=(hi - lo, n_dofs))
    return mat.tocsr()

@timer.time_function("Assembly", "Mass")
def assemble_mass(space, coef, dof_table=None, owned=None, row_range=None):
    """
    Mass matrix int coef u v over the owned cells.

    dof_table maps (cell, local dof) to the global DOF and defaults to the
    natural numbering. row_range selects the block of rows stored locally.
    """
    dofs, owned = _ownership(space, dof_table, owned)
    coef = np.asarray(coef, dtype=np.float64)
    parts = [assemble_cells(dofs, owned, coef, space.mass_block())]
    return _to_csr(parts, space.n_dofs, row_range)

@timer.time_function("Assembly", "Stiffness")
def assemble_stiffness(space, coef, sigma, kappa, dof_table=None, owned=None, row_range=None,
                       interior=True, boundary=True):
    """
    Interior penalty stiffness matrix of -div(coef grad u) with weak
    homogeneous Dirichlet data. sigma = -1 gives the symmetric method.

    interior=False drops the interior face terms, boundary=False the
    Dirichlet terms (natural boundary condition).
    """
    dofs, owned = _ownership(space, dof_table, owned)
    coef = np.asarray(coef, dtype=np.float64)
    mesh = space.mesh

    parts = [assemble_cells(dofs, owned, coef, space.stiffness_block())]
    for axis in range(space.dim):
        penalty = kappa * space.penalty_scale(axis)

        minus, plus = mesh.interior_faces(axis)
        if interior and minus.size > 0:
            P1, P2, P3 = space.interior_face_blocks(axis)
            parts.append(assemble_interior_faces(dofs, owned, minus, plus, coef,
                                                 P1, P2, P3, sigma, penalty))

        for side in ((0, 1) if boundary else ()):
            B1, B2, B3 = space.boundary_face_blocks(axis, side)
            parts.append(assemble_boundary_faces(dofs, owned, mesh.boundary_faces(axis, side),
                                                 coef, B1, B2, B3, sigma, penalty))

    return _to_csr(parts, space.n_dofs, row_range)


def gaussian(points, center, support, plane_wave=False):
    """
    Normalized Gaussian exp(-r^2/support^2) / (sqrt(pi) support)^d.

    With plane_wave the function only depends on the y coordinate.
    """
    points = np.atleast_2d(points)
    if plane_wave:
        r2 = (points[:, 1] - center[1])**2
        dim = 1
    else:
        r2 = np.sum((points - np.asarray(center))**2, axis=1)
        dim = points.shape[1]
    return (1.0 / (np.sqrt(np.pi) * support))**dim * np.exp(-r2 / support**2)

@timer.time_function("Assembly", "Source")
def assemble_source(space, function, center, support=None, plane_wave=False,
                    dof_table=None, owned=None, row_range=None):
    """
    Spatial part of the source vector b_i = (f, phi_i).

    function is 'gauss' (quadrature of the normalized Gaussian) or 'delta'
    (basis values at the source point).
    """
    dofs, owned = _ownership(space, dof_table, owned)
    lo, hi = row_range if row_range is not None else (0, space.n_dofs)
    b = np.zeros(hi - lo)

    if function == 'gauss':
        local, weights, phi = space.cell_quadrature()
        h = np.array(space.mesh.h)
        origins = space.cell_origins()
        for c in np.flatnonzero(owned):
            f = gaussian(origins[c] + local*h, center, support, plane_wave)
            b[dofs[c] - lo] += phi.T @ (weights * f)
    elif function == 'delta':
        if plane_wave:
            raise ConfigurationError("A plane wave source requires the 'gauss' spatial function")
        cells, local = space.mesh.locate(np.asarray(center)[None, :])
        if owned[cells[0]]:
            b[dofs[cells[0]] - lo] += space.basis_values(local)[0]
    else:
        raise ConfigurationError(f"Unknown spatial function of the source: {function}")

    return b
