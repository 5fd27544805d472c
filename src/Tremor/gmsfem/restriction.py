"""
Tremor: Multiscale Acoustic Wave Models

File: restriction.py
Description: Assembly of the restriction operator R (coarse rows x fine columns)
             from the local bases of the coarse cells:
                 R[row, local2global[j]] = matrix[j, row]
             Each coarse cell contributes a contiguous block of rows, in
             ascending coarse cell order.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
import scipy.sparse as sp

from Tremor.errors import DimensionMismatchError
from Tremor.parallel.comm import global_sum, partition_starts
from Tremor.parallel.distributed_matrix import DistributedMatrix
from Tremor.profiling import timer
from Tremor.logging import get_logger

logger = get_logger(__name__)

def local_blocks(bases):
    """COO triplets of the rows of R contributed by `bases`, rows counted from 0."""
    rows, cols, vals = [], [], []
    offset = 0
    for _, basis in bases.items():
        n_fine, width = basis.matrix.shape
        rows.append(np.repeat(offset + np.arange(width, dtype=np.int64), n_fine))
        cols.append(np.tile(basis.local2global, width))
        # The local matrix is stored fine DOF major
        vals.append(basis.matrix.T.reshape(-1))
        offset += width

    if not rows:
        return np.zeros(0, np.int64), np.zeros(0, np.int64), np.zeros(0), 0
    return np.concatenate(rows), np.concatenate(cols), np.concatenate(vals), offset

def check_columns(n_columns, n_fine):
    if n_columns != n_fine:
        raise DimensionMismatchError(f"Local DOF maps span {n_columns} fine DOFs, "
                                     f"the fine space has {n_fine}")

@timer.time_function("Setup", "Restriction")
def assemble_restriction(bases, n_fine):
    """Serial R as a CSR matrix."""
    check_columns(bases.n_columns, n_fine)

    rows, cols, vals, n_rows = local_blocks(bases)
    R = sp.csr_matrix((vals, (rows, cols)), shape=(n_rows, n_fine))
    logger.info(f"Restriction operator: {R.shape[0]} x {R.shape[1]}, {R.nnz} non-zeros.")
    return R

@timer.time_function("Setup", "Restriction")
def assemble_distributed_restriction(comm, bases, fine_row_starts):
    """
    Collective: R distributed by the coarse rows of every rank.

    The column partition is the row partition of the fine operators.
    """
    n_fine = int(fine_row_starts[-1])
    check_columns(global_sum(comm, bases.n_columns), n_fine)

    rows, cols, vals, n_rows = local_blocks(bases)
    local = sp.csr_matrix((vals, (rows, cols)), shape=(n_rows, n_fine))
    row_starts = partition_starts(comm, n_rows)

    R = DistributedMatrix(comm, local, row_starts, fine_row_starts)
    logger.info(f"Restriction operator: {R.shape[0]} x {R.shape[1]}, "
                f"{global_sum(comm, local.nnz)} non-zeros.")
    return R
