"""
Tremor: Multiscale Acoustic Wave Models

File: errors.py
Description: Exception hierarchy for Tremor. Every error raised here is fatal:
             the run is aborted on the first violated invariant.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

class TremorError(Exception):
    """Base class for all Tremor errors."""


class PreconditionError(TremorError, ValueError):
    """A configuration or partitioning invariant does not hold."""


class ConfigurationError(PreconditionError):
    """Invalid or inconsistent input parameters."""


class DimensionMismatchError(PreconditionError):
    """Operator or vector dimensions do not agree."""


class DiscretizationMismatchError(PreconditionError):
    """Local and global finite element spaces disagree on a cell."""


class DofResolutionError(PreconditionError):
    """A fine DOF could not be resolved to a global index."""


class BasisError(TremorError, RuntimeError):
    """The local basis kernel could not produce a valid basis."""


class SolverDivergenceError(TremorError, RuntimeError):
    """An iterative linear solve did not converge."""
    def __init__(self, message, iterations=None, residual=None):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual


class OutputError(TremorError, OSError):
    """An output file or directory could not be written."""
