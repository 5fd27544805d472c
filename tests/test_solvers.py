import numpy as np
import pytest
import scipy.sparse as sp

from Tremor.errors import SolverDivergenceError, PreconditionError
from Tremor.fem.assembly import assemble_mass, assemble_stiffness
from Tremor.solvers.pcg import SerialPCG
from Tremor.solvers.smoother import SymmetricGaussSeidel


def laplacian(n):
    return sp.diags([-np.ones(n - 1), 2.0*np.ones(n), -np.ones(n - 1)], [-1, 0, 1], format='csr')


def test_sgs_is_exact_for_triangular_systems(rng):
    n = 8
    A = sp.csr_matrix(np.tril(rng.random((n, n))) + n*np.eye(n))
    r = rng.random(n)
    # The forward pass solves a lower triangular system exactly, the backward
    # pass then leaves it unchanged
    z = SymmetricGaussSeidel(A)(r)
    assert np.allclose(A @ z, r)


def test_sgs_rejects_nonpositive_diagonal():
    with pytest.raises(PreconditionError):
        SymmetricGaussSeidel(sp.diags([1.0, 0.0, 2.0]))


def test_pcg_solves_the_mass_system(space2d, rng):
    coef = rng.random(space2d.mesh.n_cells) + 0.5
    M = assemble_mass(space2d, coef)
    x_true = rng.random(space2d.n_dofs)
    b = M @ x_true

    solver = SerialPCG(M, rel_tol=1e-12)
    x = solver.solve(b)
    assert np.allclose(x, x_true, rtol=1e-9)
    assert 0 < solver.iterations < 200

    # A good initial guess does not hurt
    x = solver.solve(b, x0=x_true + 1e-6)
    assert np.allclose(x, x_true, rtol=1e-9)


def test_pcg_solves_the_stiffness_system(space2d, rng):
    S = assemble_stiffness(space2d, np.ones(space2d.mesh.n_cells), -1.0, 1.0)
    b = rng.random(space2d.n_dofs)
    x = SerialPCG(S, rel_tol=1e-10, max_iter=1000).solve(b)
    assert np.linalg.norm(S @ x - b) <= 1e-8 * np.linalg.norm(b)


def test_pcg_zero_rhs():
    x = SerialPCG(laplacian(20)).solve(np.zeros(20))
    assert np.all(x == 0.0)


def test_pcg_divergence_is_reported(rng):
    A = laplacian(200)
    with pytest.raises(SolverDivergenceError) as info:
        SerialPCG(A, rel_tol=1e-14, max_iter=1).solve(rng.random(200))
    assert info.value.iterations == 1
    assert info.value.residual > 1e-14
