"""
Tremor: Multiscale Acoustic Wave Models

File: projection.py
Description: Galerkin projection of the fine operators onto the coarse space.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

from Tremor.errors import DimensionMismatchError
from Tremor.parallel.distributed_matrix import DistributedMatrix, rap
from Tremor.profiling import timer

@timer.time_function("Setup", "Projection")
def project_operator(R, A):
    """Coarse operator (R A) R^T."""
    if isinstance(R, DistributedMatrix):
        return rap(R, A)

    if A.shape != (R.shape[1], R.shape[1]):
        raise DimensionMismatchError(f"Cannot project a {A.shape} operator with a {R.shape} restriction")
    return ((R @ A) @ R.T).tocsr()

def project_vector(R, b):
    """Coarse vector R b."""
    if isinstance(R, DistributedMatrix):
        return R.mult(b)

    b = np.asarray(b)
    if b.shape != (R.shape[1],):
        raise DimensionMismatchError(f"Cannot restrict a vector of shape {b.shape} with a {R.shape} restriction")
    return R @ b
