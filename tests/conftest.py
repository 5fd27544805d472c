import numpy as np
import pytest

from Tremor.config import make_config
from Tremor.context import Context
from Tremor.mesh.structured import StructuredMesh
from Tremor.fem.dg_space import DGSpace


def make_context(params=None, options=None, receivers=None, comm=None):
    """Context over the defaults with some entries overridden."""
    config = {'parameters': params or {}, 'options': options or {}}
    if receivers:
        config['receivers'] = receivers
    state, p, o, r = make_config(config)
    return Context(state, p, o, r, comm)


def build_model(ctx):
    """Load the components of a context the way the driver does."""
    import importlib

    for comp in ('mesh', 'basis', 'model'):
        module, cls = ctx.options[comp].split('.')
        module = importlib.import_module(f"Tremor.{comp}.{module}")
        setattr(ctx, comp, getattr(module, cls)(ctx))
    return ctx.model


@pytest.fixture
def small_params():
    # 10 x 10 fine cells, 2 x 2 coarse cells
    return {
        'nx': 10, 'ny': 10,
        'gms_Nx': 2, 'gms_Ny': 2,
        'gms_nb': 4, 'gms_ni': 1,
        'T': 0.05, 'dt': 1e-3,
    }


@pytest.fixture
def mesh2d():
    return StructuredMesh.box((6, 4), (600.0, 400.0))


@pytest.fixture
def space2d(mesh2d):
    return DGSpace(mesh2d, 1)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
