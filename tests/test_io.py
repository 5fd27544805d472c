import os

import numpy as np
import pytest
import scipy.io
import scipy.sparse as sp

from Tremor.context import ContextNamespace
from Tremor.errors import ConfigurationError, OutputError
from Tremor.io.receivers import receiver_points, ReceiversSet
from Tremor.io.seismograms import SeismogramWriter, read_seismogram, SEISMOGRAMS_DIR
from Tremor.io.snapshots import SnapshotWriter, read_snapshot, prepare_output, SNAPSHOTS_DIR
from Tremor.io.matrices import write_matrices
from Tremor.media.properties import AcousticMedium, read_cell_values


def line(n=5):
    return ContextNamespace({'type': 'line', 'start': [0.0, 200.0], 'end': [600.0, 200.0], 'n': n})


def test_line_receivers():
    points = receiver_points(line(), 2)
    assert points.shape == (5, 2)
    assert np.allclose(points[:, 0], [0.0, 150.0, 300.0, 450.0, 600.0])
    assert np.allclose(points[:, 1], 200.0)

    assert receiver_points(line(1), 2).shape == (1, 2)


def test_plane_receivers():
    rec = {'type': 'plane', 'origin': [0.0, 0.0, 0.0], 'v1': [1.0, 0.0, 0.0],
           'v2': [0.0, 0.0, 2.0], 'n1': 3, 'n2': 2}
    points = receiver_points(rec, 3)
    assert points.shape == (6, 3)
    # Receivers along v1 run fastest
    assert np.allclose(points[:3, 0], [0.0, 0.5, 1.0])
    assert np.allclose(points[:3, 2], 0.0)
    assert np.allclose(points[3:, 2], 2.0)


@pytest.mark.parametrize("rec", [
    {'type': 'line', 'start': [0.0], 'end': [1.0, 1.0], 'n': 2},
    {'type': 'line', 'start': [0.0, 0.0], 'end': [1.0, 1.0], 'n': 0},
    {'type': 'circle'},
])
def test_invalid_receivers(rec):
    with pytest.raises(ConfigurationError):
        receiver_points(rec, 2)


def test_receivers_sample_the_fine_field(space2d):
    receivers = ReceiversSet(0, line(), space2d, space2d.dof_table())
    assert receivers.n_receivers == 5
    assert receivers.matrix.shape == (5, space2d.n_dofs)

    u = np.ones(space2d.n_dofs)
    assert np.allclose(receivers.sample(u), 1.0)

    lo, hi = 0, space2d.n_dofs // 2
    split = receivers.sample_local(u[lo:hi], (lo, hi)) + \
            receivers.sample_local(u[hi:], (hi, space2d.n_dofs))
    assert np.allclose(split, receivers.sample(u))


def test_snapshots(tmp_path, space2d):
    prepare_output(str(tmp_path), [SNAPSHOTS_DIR])
    writer = SnapshotWriter(str(tmp_path), space2d, "_run")

    values = np.linspace(0.0, 1.0, space2d.n_dofs)
    fname = writer.write(20, 0.02, "coarse_pressure", values)
    assert os.path.basename(fname) == "coarse_pressure_run_000020.npz"

    data = read_snapshot(fname)
    assert int(data['cycle']) == 20
    assert float(data['time']) == pytest.approx(0.02)
    assert int(data['order']) == 1
    assert list(data['counts']) == [6, 4]
    assert np.array_equal(data['values'], values)


def test_snapshot_errors(tmp_path, space2d):
    # Output directory never prepared
    writer = SnapshotWriter(str(tmp_path), space2d)
    with pytest.raises(OutputError):
        writer.write(0, 0.0, "p", np.zeros(3))

    blocker = tmp_path / "file"
    blocker.write_text("")
    with pytest.raises(OutputError):
        prepare_output(str(blocker), [SNAPSHOTS_DIR])


def test_seismograms(tmp_path, space2d):
    prepare_output(str(tmp_path), [SEISMOGRAMS_DIR])
    sets = [ReceiversSet(0, line(3), space2d), ReceiversSet(1, line(2), space2d)]

    writer = SeismogramWriter(str(tmp_path), sets, "p", "_a")
    for k in range(4):
        writer.write([np.full(3, k), np.full(2, -k)])
    writer.close()
    assert writer.samples == 4
    assert writer.files == []

    fname = os.path.join(str(tmp_path), SEISMOGRAMS_DIR, "seis0_line_p_a.bin")
    data = read_seismogram(fname, 3)
    assert data.shape == (4, 3)
    assert np.array_equal(data[:, 0], [0.0, 1.0, 2.0, 3.0])

    data = read_seismogram(os.path.join(str(tmp_path), SEISMOGRAMS_DIR, "seis1_line_p_a.bin"), 2)
    assert np.array_equal(data[-1], [-3.0, -3.0])


def test_seismogram_errors(tmp_path, space2d):
    with pytest.raises(OutputError):
        SeismogramWriter(str(tmp_path / "missing"), [ReceiversSet(0, line(), space2d)])


def test_write_matrices(tmp_path):
    A = sp.random(5, 4, density=0.5, random_state=3, format='csr')
    write_matrices(str(tmp_path), {'R': A, 'local_basis_0': np.eye(2)}, "_x")

    B = scipy.io.mmread(str(tmp_path / "R_x.mtx"))
    assert np.allclose(B.toarray(), A.toarray())
    assert np.allclose(scipy.io.mmread(str(tmp_path / "local_basis_0_x.mtx")), np.eye(2))


def test_medium():
    medium = AcousticMedium(np.array([2000.0, 2500.0]), np.array([3000.0, 1000.0]))
    assert np.allclose(medium.K, [2000.0*9e6, 2500.0*1e6])
    assert np.allclose(medium.one_over_rho, [5e-4, 4e-4])

    coef_a, coef_b = medium.subset([1, 0])
    assert coef_a[0] == pytest.approx(4e-4)
    assert coef_b[1] == pytest.approx(1.0 / (2000.0*9e6))

    with pytest.raises(ConfigurationError):
        AcousticMedium(np.array([1.0, 0.0]), np.array([1.0, 1.0]))


def test_read_cell_values(tmp_path):
    fname = tmp_path / "rho.bin"
    np.arange(6, dtype=np.float64).tofile(str(fname))
    assert np.array_equal(read_cell_values(str(fname), 6, "rho"), np.arange(6.0))

    with pytest.raises(ConfigurationError):
        read_cell_values(str(fname), 8, "rho")
    with pytest.raises(ConfigurationError):
        read_cell_values(str(tmp_path / "missing.bin"), 6, "rho")
