import numpy as np
import pytest
import scipy.sparse as sp

from Tremor.basis.spectral import DGSpectralBasis
from Tremor.errors import (DimensionMismatchError, DiscretizationMismatchError,
                           DofResolutionError)
from Tremor.fem.dg_space import DGSpace
from Tremor.fem.assembly import assemble_mass, assemble_stiffness
from Tremor.gmsfem.local_region import LocalRegionProcessor, LocalBases
from Tremor.gmsfem.partition import CoarseGrid
from Tremor.gmsfem.restriction import assemble_restriction
from Tremor.gmsfem.projection import project_operator, project_vector
from Tremor.media.properties import AcousticMedium
from Tremor.mesh.structured import StructuredMesh

from conftest import make_context


@pytest.fixture
def setup():
    mesh = StructuredMesh.box((5, 4), (500.0, 400.0))
    space = DGSpace(mesh, 1)
    rho = np.linspace(2000.0, 3000.0, mesh.n_cells)
    medium = AcousticMedium(rho, np.full(mesh.n_cells, 3000.0))
    coarse = CoarseGrid(mesh, (2, 2))
    basis = DGSpectralBasis(make_context())
    return mesh, space, medium, coarse, basis


def processor(setup, dof_table=None, n_basis=3, n_interior=1):
    mesh, space, medium, coarse, basis = setup
    table = space.dof_table() if dof_table is None else dof_table
    return LocalRegionProcessor(space, basis, medium, coarse, table, n_basis, n_interior)


def test_local_bases(setup):
    mesh, space, medium, coarse, basis = setup
    bases = processor(setup).process_range()

    assert len(bases) == coarse.n_cells
    assert list(bases) == [0, 1, 2, 3]
    for cid, b in bases.items():
        assert b.matrix.shape == (b.local2global.size, 3)
        assert np.all(b.local2global >= 0)

    # Coarse cells do not overlap and cover the fine space
    dofs = np.concatenate([b.local2global for _, b in bases.items()])
    assert sorted(dofs) == list(range(space.n_dofs))


def test_local_dofs_follow_the_fine_cells(setup):
    mesh, space, medium, coarse, basis = setup
    proc = processor(setup)
    _, local2global = proc.process(1, (1, 0))

    # First local cell of coarse cell (1, 0) is fine cell 3
    assert list(local2global[:space.n_loc]) == list(space.cell_dofs(3))


def test_discretization_mismatch(setup):
    mesh, space, medium, coarse, basis = setup
    wrong = np.arange(mesh.n_cells * 9).reshape(mesh.n_cells, 9)
    with pytest.raises(DiscretizationMismatchError):
        processor(setup, dof_table=wrong).process(0, (0, 0))


def test_unresolved_dofs(setup):
    mesh, space, medium, coarse, basis = setup
    table = space.dof_table().copy()
    table[0, 1] = -1
    with pytest.raises(DofResolutionError):
        processor(setup, dof_table=table).process(0, (0, 0))


def test_restriction_entries(setup):
    mesh, space, medium, coarse, basis = setup
    bases = processor(setup).process_range()
    R = assemble_restriction(bases, space.n_dofs).toarray()

    assert R.shape == (4*3, space.n_dofs)
    for cid, b in bases.items():
        rows = slice(3*cid, 3*cid + 3)
        assert np.allclose(R[rows][:, b.local2global], b.matrix.T)
        # No entries outside the support of the coarse cell
        outside = np.setdiff1d(np.arange(space.n_dofs), b.local2global)
        assert np.all(R[rows][:, outside] == 0.0)


def test_restriction_checks_the_fine_dimension(setup):
    mesh, space, medium, coarse, basis = setup
    bases = processor(setup).process_range(0, 2)
    with pytest.raises(DimensionMismatchError):
        assemble_restriction(bases, space.n_dofs)


def test_local_bases_are_read_only():
    bases = LocalBases()
    bases.add(0, np.ones((2, 1)), np.array([0, 1]))
    with pytest.raises(ValueError):
        bases[0].matrix[0, 0] = 2.0
    with pytest.raises(DimensionMismatchError):
        bases.add(0, np.ones((2, 1)), np.array([0, 1]))


def test_projection_preserves_symmetry(rng):
    n_fine, n_coarse = 40, 7
    R = sp.random(n_coarse, n_fine, density=0.3, random_state=12, format='csr')
    A = sp.random(n_fine, n_fine, density=0.2, random_state=7, format='csr')
    A = A + A.T

    C = project_operator(R, A).toarray()
    assert C.shape == (n_coarse, n_coarse)
    assert np.allclose(C, C.T, rtol=1e-13, atol=1e-13)
    assert np.allclose(C, R.toarray() @ A.toarray() @ R.toarray().T)

    b = rng.random(n_fine)
    assert np.allclose(project_vector(R, b), R @ b)

    with pytest.raises(DimensionMismatchError):
        project_operator(R, A[:10, :10])
    with pytest.raises(DimensionMismatchError):
        project_vector(R, b[:10])


def test_projected_operators(setup):
    mesh, space, medium, coarse, basis = setup
    R = assemble_restriction(processor(setup).process_range(), space.n_dofs)

    M = assemble_mass(space, medium.one_over_K)
    S = assemble_stiffness(space, medium.one_over_rho, -1.0, 1.0)
    M_c = project_operator(R, M).toarray()
    S_c = project_operator(R, S).toarray()

    # Local bases are orthonormal in the mass inner product
    assert np.allclose(M_c, np.eye(R.shape[0]), atol=1e-10)
    assert np.allclose(S_c, S_c.T, rtol=1e-10, atol=1e-12*np.abs(S_c).max())
