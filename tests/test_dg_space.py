import numpy as np
import pytest

from Tremor.errors import PreconditionError, ConfigurationError
from Tremor.fem.dg_space import DGSpace
from Tremor.fem.reference import ReferenceElement1D, gauss_lobatto_nodes
from Tremor.fem.assembly import assemble_mass, assemble_stiffness, assemble_source
from Tremor.mesh.structured import StructuredMesh


@pytest.mark.parametrize("order", [0, 1, 2, 3])
def test_reference_element(order):
    ref = ReferenceElement1D(order)
    # Lagrange property
    assert np.allclose(ref.values(ref.nodes), np.eye(order + 1))
    # Mass integrates 1 to the unit length, derivatives of a constant vanish
    assert ref.m.sum() == pytest.approx(1.0)
    assert np.allclose(ref.k.sum(axis=1), 0.0)
    assert np.allclose(ref.m, ref.m.T)


def test_gauss_lobatto_nodes():
    assert np.allclose(gauss_lobatto_nodes(1), [0.0, 1.0])
    assert np.allclose(gauss_lobatto_nodes(2), [0.0, 0.5, 1.0])
    assert np.allclose(gauss_lobatto_nodes(0), [0.5])


def test_mesh_faces_and_location(mesh2d):
    minus, plus = mesh2d.interior_faces(0)
    assert minus.size == 5*4
    assert np.all(plus - minus == 1)
    minus, plus = mesh2d.interior_faces(1)
    assert np.all(plus - minus == 6)

    assert sorted(mesh2d.boundary_faces(1, 1)) == list(range(18, 24))

    cells, local = mesh2d.locate([[150.0, 250.0], [600.0, 400.0]])
    assert list(cells) == [2*6 + 1, 23]
    assert np.allclose(local, [[0.5, 0.5], [1.0, 1.0]])

    with pytest.raises(PreconditionError):
        mesh2d.locate([[700.0, 10.0]])


def test_sub_mesh_and_block(mesh2d):
    sub = mesh2d.sub_mesh((2, 3))
    assert sub.counts == (2, 3)
    assert sub.h == pytest.approx(mesh2d.h)
    assert list(mesh2d.block((1, 1), (2, 2))) == [7, 8, 13, 14]


def test_mass_integrates_coefficient(space2d):
    coef = np.linspace(1.0, 2.0, space2d.mesh.n_cells)
    M = assemble_mass(space2d, coef)
    ones = np.ones(space2d.n_dofs)
    cell_area = np.prod(space2d.mesh.h)
    assert ones @ M @ ones == pytest.approx(coef.sum() * cell_area)
    assert abs(M - M.T).max() < 1e-12


@pytest.mark.parametrize("order", [1, 2])
def test_stiffness_properties(order):
    mesh = StructuredMesh.box((4, 3), (4.0, 3.0))
    space = DGSpace(mesh, order)
    coef = np.full(mesh.n_cells, 2.0)
    ones = np.ones(space.n_dofs)

    S = assemble_stiffness(space, coef, -1.0, 1.0).toarray()
    assert np.allclose(S, S.T)
    assert np.linalg.eigvalsh(S).min() > 0.0

    # Constants are in the kernel of the natural boundary operator
    S_n = assemble_stiffness(space, coef, -1.0, 1.0, boundary=False).toarray()
    assert np.allclose(S_n @ ones, 0.0, atol=1e-12)
    assert np.linalg.eigvalsh(S_n).min() > -1e-10


def test_owned_rows_assemble_the_same_operator(space2d):
    coef = np.ones(space2d.mesh.n_cells)
    S = assemble_stiffness(space2d, coef, -1.0, 1.0).toarray()

    n_half = space2d.mesh.n_cells // 2
    owned = np.arange(space2d.mesh.n_cells) < n_half
    lo, hi = 0, n_half * space2d.n_loc
    top = assemble_stiffness(space2d, coef, -1.0, 1.0, owned=owned, row_range=(lo, hi)).toarray()
    bottom = assemble_stiffness(space2d, coef, -1.0, 1.0, owned=~owned,
                                row_range=(hi, space2d.n_dofs)).toarray()
    assert np.allclose(np.vstack((top, bottom)), S)


def test_basis_values_partition_of_unity(space2d, rng):
    local = rng.random((10, 2))
    vals = space2d.basis_values(local)
    assert vals.shape == (10, space2d.n_loc)
    assert np.allclose(vals.sum(axis=1), 1.0)

    P = space2d.point_matrix([[120.0, 330.0]])
    assert P.shape == (1, space2d.n_dofs)
    assert P.sum() == pytest.approx(1.0)


def test_source_vectors():
    mesh = StructuredMesh.box((20, 20), (100.0, 100.0))
    space = DGSpace(mesh, 2)
    center = np.array([50.0, 50.0])

    # The basis sums to one, so the entries sum to the integral of f
    b = assemble_source(space, 'gauss', center, support=10.0)
    assert b.sum() == pytest.approx(1.0, rel=1e-3)

    b = assemble_source(space, 'delta', center)
    assert b.sum() == pytest.approx(1.0)
    assert np.count_nonzero(b) <= space.n_loc

    with pytest.raises(ConfigurationError):
        assemble_source(space, 'delta', center, plane_wave=True)
    with pytest.raises(ConfigurationError):
        assemble_source(space, 'ricker', center)


def test_three_dimensional_operators():
    mesh = StructuredMesh.box((3, 2, 2), (3.0, 2.0, 2.0))
    space = DGSpace(mesh, 1)
    assert space.n_loc == 8

    coef = np.ones(mesh.n_cells)
    M = assemble_mass(space, coef)
    ones = np.ones(space.n_dofs)
    assert ones @ M @ ones == pytest.approx(12.0)

    S = assemble_stiffness(space, coef, -1.0, 1.0).toarray()
    assert np.allclose(S, S.T)
    assert np.linalg.eigvalsh(S).min() > 0.0
