"""
Tremor: Multiscale Acoustic Wave Models

File: base_basis.py
Description: Base class of the local basis kernels. A kernel computes, for the
             fine sub-mesh of one coarse cell, a dense matrix whose columns are
             the local multiscale basis functions expressed in the DOFs of the
             fine DG space of the sub-mesh.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
import scipy.linalg as la

from Tremor.errors import BasisError

class BaseBasis:
    def __init__(self, ctx):
        raise NotImplementedError()

    def finalize(self, ctx):
        pass

    def compute_local_basis(self, sub_mesh, n_basis, n_interior, coef_a, coef_b):
        """
        Return the (local fine DOFs) x n_basis basis matrix of a sub-mesh.

        coef_a: stiffness coefficient (1/rho) per cell of the sub-mesh
        coef_b: mass coefficient (1/K) per cell of the sub-mesh
        """
        raise NotImplementedError()


def lowest_modes(A, M, k):
    """
    Eigenvectors of the k smallest eigenvalues of A v = lambda M v.

    A and M are symmetrized before the dense solve.
    """
    if k == 0:
        return np.zeros((M.shape[0], 0))
    if k > M.shape[0]:
        raise BasisError(f"Requested {k} modes of a problem of size {M.shape[0]}")

    A = _dense(A)
    M = _dense(M)
    try:
        _, vecs = la.eigh(0.5*(A + A.T), 0.5*(M + M.T), subset_by_index=[0, k - 1])
    except la.LinAlgError as e:
        raise BasisError(f"Local eigenvalue problem failed: {e}") from e
    return vecs

def m_orthonormalize(V, M):
    """Make the columns of V orthonormal in the M inner product."""
    M = _dense(M)
    G = V.T @ M @ V
    try:
        L = la.cholesky(0.5*(G + G.T), lower=True)
    except la.LinAlgError as e:
        raise BasisError("Local basis functions are linearly dependent") from e
    return la.solve_triangular(L, V.T, lower=True).T

def _dense(A):
    return A.toarray() if hasattr(A, 'toarray') else np.asarray(A)
