import numpy as np
import pytest
import scipy.sparse as sp

from Tremor.model.leapfrog import LeapFrogState, LeapFrogOperators, LeapFrogIntegrator, time_step
from Tremor.solvers.pcg import SerialPCG
from Tremor.source.ricker import ricker, n_time_steps, time_values

from conftest import make_context, build_model


def test_ring_rotation():
    state = LeapFrogState(3)
    u0, u1, u2 = state.u0, state.u1, state.u2
    state.rotate()
    # The freshly computed level becomes the current one
    assert state.current is u0
    assert state.u2 is u1
    assert state.u0 is u2


def test_single_step_matches_the_scheme(rng):
    n, dt = 6, 0.1
    M = sp.diags(rng.random(n) + 1.0, format='csr')
    S = sp.diags(rng.random(n), format='csr')
    b = rng.random(n)
    ops = LeapFrogOperators(M, S, b, SerialPCG(M))

    state = LeapFrogState(n)
    state.u1[:] = rng.random(n)
    state.u2[:] = rng.random(n)
    u1, u2 = state.u1.copy(), state.u2.copy()

    u = time_step(state, ops, dt, 0.5)
    expected = 2*u1 - u2 - dt**2 * (S @ u1 - 0.5*b) / M.diagonal()
    assert np.allclose(u, expected, rtol=1e-10)
    assert state.step == 1
    assert np.array_equal(state.u2, u1)


@pytest.mark.parametrize("mode", ["serial", "parallel"])
def test_zero_source_stays_zero(small_params, mode):
    comm = pytest.importorskip("mpi4py.MPI").COMM_WORLD if mode == 'parallel' else None
    ctx = make_context(dict(small_params, scale=0.0), {'mode': mode}, comm=comm)
    model = build_model(ctx)
    assert np.all(model.time_values == 0.0)

    ops = LeapFrogOperators(model.M_coarse, model.S_coarse, model.b_coarse,
                            model.make_solver(model.M_coarse, ctx.params),
                            comm if model.parallel else None)
    integrator = LeapFrogIntegrator(ops, model.dt, model.time_values)

    seen = []
    def all_levels_zero(t, state):
        assert np.all(state.u0 == 0.0)
        assert np.all(state.u1 == 0.0)
        assert np.all(state.u2 == 0.0)
        seen.append(t)

    u = integrator.run([all_levels_zero])

    assert seen == list(range(1, integrator.n_steps + 1))
    assert np.all(u == 0.0)
    assert all(norm == 0.0 for _, norm in integrator.norms)


def test_coarse_scheme_is_stable(small_params):
    # 1000 steps of dt = 1e-3 on 100 m cells, well below the CFL limit
    model = build_model(make_context(dict(small_params, T=1.0)))
    ops = LeapFrogOperators(model.M_coarse, model.S_coarse, model.b_coarse,
                            SerialPCG(model.M_coarse))
    integrator = LeapFrogIntegrator(ops, model.dt, model.time_values)

    seen = []
    integrator.run([lambda t, state: seen.append(t)])

    assert integrator.n_steps == 1000
    assert seen == list(range(1, 1001))
    # Norms are logged every 100 steps
    assert [t for t, _ in integrator.norms] == list(range(100, 1001, 100))

    norms = np.array([norm for _, norm in integrator.norms])
    assert np.all(np.isfinite(norms))
    peak = np.abs(model.time_values).max() * np.linalg.norm(model.b_coarse)
    assert norms.max() < 1e3 * peak


def test_ricker():
    f = 10.0
    # Peak one period after the start
    assert ricker(1.0/f, f, 2.0) == pytest.approx(2.0)
    assert abs(ricker(0.0, f)) < 1e-3
    t = np.linspace(0.0, 0.5, 501)
    assert np.argmax(ricker(t, f)) == 100


def test_time_values():
    p = make_context({'T': 0.01, 'dt': 1e-3, 'frequency': 25.0, 'scale': 3.0}).params
    assert n_time_steps(p.T, p.dt) == 10

    values = time_values(p)
    assert values.size == 10
    # Step t uses the source at time t*dt - dt
    assert values[0] == pytest.approx(ricker(0.0, 25.0, 3.0))
    assert values[4] == pytest.approx(ricker(4e-3, 25.0, 3.0))
