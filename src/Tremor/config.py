"""
Tremor: Multiscale Acoustic Wave Models

File: config.py
Description: Loading and validation of TOML input files.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""
import toml

from Tremor.context import ContextNamespace
from Tremor.defaults import default_config
from Tremor.errors import ConfigurationError

SPATIAL_FUNCTIONS = ('delta', 'gauss')
RUN_MODES = ('auto', 'serial', 'parallel')
PARTITIONS = ('block', 'cyclic')
RECEIVER_TYPES = ('line', 'plane')


def verify(condition, message):
    if not condition:
        raise ConfigurationError(message)


def load_input(input_file):
    """
    Read a TOML input file and merge it over the defaults.

    Returns the state, params and options namespaces and the list of receiver sets.
    """
    try:
        with open(input_file, 'r') as f:
            config = toml.load(f)
    except OSError as e:
        raise ConfigurationError(f"Input file '{input_file}' can't be opened: {e}") from e
    except toml.TomlDecodeError as e:
        raise ConfigurationError(f"Input file '{input_file}' is not valid TOML: {e}") from e

    return make_config(config)


def make_config(config):
    """Merge a configuration dictionary over the defaults and validate it."""
    state, params, options = default_config()

    unknown = set(config) - {'parameters', 'options', 'receivers'}
    verify(not unknown, f"Unknown sections in input file: {sorted(unknown)}")

    for section, defaults in (('parameters', params), ('options', options)):
        unknown = set(config.get(section, {})) - set(defaults)
        verify(not unknown, f"Unknown {section} in input file: {sorted(unknown)}")

    params.update(config.get('parameters', {}))
    options.update(config.get('options', {}))
    receivers = [ContextNamespace(r) for r in config.get('receivers', [])]

    params = ContextNamespace(params)
    options = ContextNamespace(options)
    check_parameters(params, options, receivers)

    return ContextNamespace(state), params, options, receivers


def axes(params):
    """Names of the active axes for the configured dimension."""
    return ('x', 'y', 'z')[:params.dimension]


def check_parameters(params, options, receivers=()):
    p = params
    verify(p.dimension in (2, 3), f"Dimension ({p.dimension}) must be 2 or 3")

    for a in axes(p):
        size, n, gms = p[f's{a}'], p[f'n{a}'], p[f'gms_N{a}']
        verify(size > 0, f"Size of the domain (s{a}={size} m) must be >0")
        verify(n > 0, f"Number of cells (n{a}={n}) must be >0")
        verify(0 < gms <= n, f"Number of coarse cells (gms_N{a}={gms}) must be in [1, n{a}={n}]")

    verify(p.order >= 0, f"Order ({p.order}) is negative")
    verify(p.dg_kappa >= 0, f"dg_kappa ({p.dg_kappa}) must be >=0")
    verify(p.gms_nb > 0, f"Number of basis functions (gms_nb={p.gms_nb}) must be >0")
    verify(0 <= p.gms_ni <= p.gms_nb,
           f"Number of interior basis functions (gms_ni={p.gms_ni}) must be in [0, gms_nb={p.gms_nb}]")

    verify(p.frequency > 0, f"Frequency ({p.frequency}) must be >0")
    verify(p.spatial_function in SPATIAL_FUNCTIONS,
           f"Unknown spatial function of the source: {p.spatial_function}")
    if p.spatial_function == 'gauss':
        verify(p.gauss_support > 0, f"Gauss support ({p.gauss_support}) must be >0")
    else:
        verify(not p.plane_wave, "A plane wave source requires the 'gauss' spatial function")
    for a in axes(p):
        verify(0 <= p[f'source_{a}'] <= p[f's{a}'],
               f"Source location (source_{a}={p[f'source_{a}']}) is outside of the domain")
    if p.rhofile is None:
        verify(p.rho > 0, f"Density ({p.rho}) must be >0")
    if p.vpfile is None:
        verify(p.vp > 0, f"P-wave velocity ({p.vp}) must be >0")

    verify(p.T > 0, f"Time ({p.T}) must be >0")
    verify(0 < p.dt < p.T, f"dt ({p.dt}) must be in (0, T={p.T})")
    verify(p.step_snap > 0, f"step_snap ({p.step_snap}) must be >0")
    verify(p.step_seis > 0, f"step_seis ({p.step_seis}) must be >0")
    verify(p.solver_rel_tol > 0, f"solver_rel_tol ({p.solver_rel_tol}) must be >0")
    verify(p.solver_max_iter > 0, f"solver_max_iter ({p.solver_max_iter}) must be >0")

    verify(options.mode in RUN_MODES, f"Unknown run mode: {options.mode}")
    verify(options.partition in PARTITIONS, f"Unknown fine cell partition: {options.partition}")

    for r in receivers:
        verify('type' in r and r['type'] in RECEIVER_TYPES,
               f"Unknown type of receivers set: {r.get('type')}")
