"""
Tremor: Multiscale Acoustic Wave Models

File: smoother.py
Description: Symmetric Gauss-Seidel sweeps on CSR matrices, used as the
             preconditioner of the mass matrix solves.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numba as nb
import numpy as np
import scipy.sparse as sp

from Tremor.errors import PreconditionError

@nb.njit(cache=True)
def sgs_sweep(indptr, indices, data, diag, rhs, x):
    """
    In-place forward then backward Gauss-Seidel sweep for A x = rhs.
    """
    n = rhs.shape[0]

    # Forward pass
    for i in range(n):
        s = rhs[i]
        for k in range(indptr[i], indptr[i + 1]):
            j = indices[k]
            if j != i:
                s -= data[k] * x[j]
        x[i] = s / diag[i]

    # Backward pass
    for i in range(n - 1, -1, -1):
        s = rhs[i]
        for k in range(indptr[i], indptr[i + 1]):
            j = indices[k]
            if j != i:
                s -= data[k] * x[j]
        x[i] = s / diag[i]

    return x


class SymmetricGaussSeidel:
    """
    Preconditioner z = B^{-1} r given by one symmetric Gauss-Seidel sweep on
    A z = r from a zero initial guess. B is symmetric positive definite when
    A is, which makes it usable inside CG.

    The matrix is captured once at construction.
    """
    def __init__(self, A, n_sweeps=1):
        A = sp.csr_matrix(A)
        A.sort_indices()
        self.indptr = A.indptr.astype(np.int64)
        self.indices = A.indices.astype(np.int64)
        self.data = A.data.astype(np.float64)
        self.diag = A.diagonal().astype(np.float64)
        self.n_sweeps = n_sweeps
        self.shape = A.shape

        if np.any(self.diag <= 0.0):
            raise PreconditionError("Gauss-Seidel smoother requires a positive diagonal")

    def apply(self, r):
        z = np.zeros(self.shape[0])
        r = np.ascontiguousarray(r, dtype=np.float64)
        for _ in range(self.n_sweeps):
            sgs_sweep(self.indptr, self.indices, self.data, self.diag, r, z)
        return z

    def __call__(self, r):
        return self.apply(r)
