import numpy as np
import pytest

from Tremor.basis.spectral import DGSpectralBasis
from Tremor.basis.conforming import ConformingSpectralBasis, injection
from Tremor.errors import BasisError, ConfigurationError
from Tremor.fem.dg_space import DGSpace
from Tremor.fem.assembly import assemble_mass
from Tremor.mesh.structured import StructuredMesh

from conftest import make_context


@pytest.fixture
def sub_mesh():
    return StructuredMesh.box((3, 3), (300.0, 300.0))


def coefficients(mesh, rho=2500.0, vp=3500.0):
    n = mesh.n_cells
    return np.full(n, 1.0/rho), np.full(n, 1.0/(rho*vp**2))


@pytest.mark.parametrize("kernel", [DGSpectralBasis, ConformingSpectralBasis])
def test_local_basis_is_mass_orthonormal(kernel, sub_mesh):
    basis = kernel(make_context())
    coef_a, coef_b = coefficients(sub_mesh)
    V = basis.compute_local_basis(sub_mesh, 5, 2, coef_a, coef_b)

    space = DGSpace(sub_mesh, 1)
    assert V.shape == (space.n_dofs, 5)

    M = assemble_mass(space, coef_b).toarray()
    assert np.allclose(V.T @ M @ V, np.eye(5), atol=1e-10)


def test_neumann_modes_contain_constants(sub_mesh):
    basis = DGSpectralBasis(make_context())
    coef_a, coef_b = coefficients(sub_mesh)
    V = basis.compute_local_basis(sub_mesh, 1, 0, coef_a, coef_b)

    # The lowest natural mode is constant
    assert np.allclose(V[:, 0], V[0, 0])


def test_injection_gives_continuous_functions(sub_mesh):
    space = DGSpace(sub_mesh, 2)
    P, on_boundary = injection(space)
    assert P.shape == (space.n_dofs, 7*7)
    assert np.count_nonzero(~on_boundary) == 5*5

    # Every DG DOF copies exactly one continuous DOF
    assert np.allclose(P.sum(axis=1), 1.0)

    # Values on both sides of the face between cells 0 and 1 agree
    u = P @ np.arange(P.shape[1], dtype=float)
    left = space.cell_dofs(0).reshape(3, 3)[:, -1]
    right = space.cell_dofs(1).reshape(3, 3)[:, 0]
    assert np.allclose(u[left], u[right])


def test_conforming_basis_requires_order_one():
    with pytest.raises(ConfigurationError):
        ConformingSpectralBasis(make_context({'order': 0}))


def test_too_many_basis_functions(sub_mesh):
    basis = DGSpectralBasis(make_context())
    coef_a, coef_b = coefficients(sub_mesh)
    with pytest.raises(BasisError):
        basis.compute_local_basis(sub_mesh, 100, 1, coef_a, coef_b)
