"""
Tremor: Multiscale Acoustic Wave Models

File: pcg.py
Description: Preconditioned conjugate gradient solvers for the mass matrix
             systems of the time integrator. The serial solver wraps
             scipy.sparse.linalg.cg, the distributed one runs the same
             iteration with global reductions.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
import scipy.sparse.linalg as spla

from Tremor.errors import SolverDivergenceError
from Tremor.parallel.comm import global_dot
from Tremor.solvers.smoother import SymmetricGaussSeidel
from Tremor.logging import get_logger

logger = get_logger(__name__)

class SerialPCG:
    """
    CG on a serial SPD matrix with a symmetric Gauss-Seidel preconditioner.

    The preconditioner is set up once and reused by every solve.
    """
    def __init__(self, A, rel_tol=1e-12, max_iter=200):
        self.A = A
        self.rel_tol = rel_tol
        self.max_iter = max_iter
        self.smoother = SymmetricGaussSeidel(A)
        self.precond = spla.LinearOperator(A.shape, matvec=self.smoother.apply, dtype=np.float64)
        self.iterations = 0

    def solve(self, b, x0=None):
        self.iterations = 0

        def count(xk):
            self.iterations += 1

        x, info = spla.cg(self.A, b, x0=x0, rtol=self.rel_tol, atol=0.0,
                          maxiter=self.max_iter, M=self.precond, callback=count)
        if info != 0:
            residual = np.linalg.norm(b - self.A @ x) / max(np.linalg.norm(b), np.finfo(float).tiny)
            raise SolverDivergenceError(f"PCG did not converge in {self.max_iter} iterations "
                                        f"(relative residual {residual:.3e})",
                                        iterations=self.iterations, residual=residual)
        return x


class DistributedPCG:
    """
    CG on a DistributedMatrix. The preconditioner is a symmetric Gauss-Seidel
    sweep on the rank-local diagonal block (block Jacobi across ranks).

    Every dot product is a global reduction, so the solve acts as a barrier.
    """
    def __init__(self, A, rel_tol=1e-12, max_iter=200):
        self.A = A
        self.comm = A.comm
        self.rel_tol = rel_tol
        self.max_iter = max_iter
        self.smoother = SymmetricGaussSeidel(A.diagonal_block())
        self.iterations = 0

    def dot(self, x, y):
        return global_dot(self.comm, x, y)

    def solve(self, b, x0=None):
        x = np.zeros_like(b) if x0 is None else np.array(x0, dtype=np.float64)
        self.iterations = 0

        b_norm = np.sqrt(self.dot(b, b))
        if b_norm == 0.0:
            return np.zeros_like(b)
        if not np.isfinite(b_norm):
            raise SolverDivergenceError(f"Right-hand side norm is {b_norm}", iterations=0, residual=b_norm)

        r = b - self.A.mult(x)
        z = self.smoother.apply(r)
        p = z.copy()
        rz = self.dot(r, z)

        residual = np.sqrt(self.dot(r, r)) / b_norm
        # A NaN residual never satisfies the tolerance
        while not residual <= self.rel_tol:
            if self.iterations == self.max_iter or not np.isfinite(residual):
                raise SolverDivergenceError(f"PCG did not converge in {self.iterations} iterations "
                                            f"(relative residual {residual:.3e})",
                                            iterations=self.iterations, residual=residual)
            Ap = self.A.mult(p)
            alpha = rz / self.dot(p, Ap)
            x += alpha * p
            r -= alpha * Ap

            z = self.smoother.apply(r)
            rz_new = self.dot(r, z)
            p = z + (rz_new / rz) * p
            rz = rz_new

            self.iterations += 1
            residual = np.sqrt(self.dot(r, r)) / b_norm

        return x
