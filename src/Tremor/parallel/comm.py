"""
Tremor: Multiscale Acoustic Wave Models

File: comm.py
Description: Thin helpers around the mpi4py collectives used by the distributed
             code path.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
from mpi4py import MPI

def world():
    return MPI.COMM_WORLD

def exclusive_offset(comm, n_local):
    """Sum of n_local over the lower ranks."""
    offset = comm.exscan(int(n_local), op=MPI.SUM)
    # exscan is undefined on rank 0
    return 0 if comm.Get_rank() == 0 else offset

def partition_starts(comm, n_local):
    """Start of every rank's range with the global size appended."""
    counts = comm.allgather(int(n_local))
    return np.concatenate(([0], np.cumsum(counts))).astype(np.int64)

def allgather_vector(comm, x_local, starts):
    """Assemble a distributed vector on every rank."""
    counts = np.diff(starts)
    x = np.empty(int(starts[-1]), dtype=np.float64)
    comm.Allgatherv([np.ascontiguousarray(x_local, dtype=np.float64), MPI.DOUBLE],
                    [x, counts, starts[:-1], MPI.DOUBLE])
    return x

def gather_vector(comm, x_local, starts, root=0):
    """Assemble a distributed vector on the root rank only (None elsewhere)."""
    counts = np.diff(starts)
    send = [np.ascontiguousarray(x_local, dtype=np.float64), MPI.DOUBLE]
    if comm.Get_rank() == root:
        x = np.empty(int(starts[-1]), dtype=np.float64)
        comm.Gatherv(send, [x, counts, starts[:-1], MPI.DOUBLE], root=root)
        return x
    comm.Gatherv(send, None, root=root)
    return None

def global_dot(comm, x, y):
    return comm.allreduce(float(np.dot(x, y)), op=MPI.SUM)

def global_sum(comm, value):
    return comm.allreduce(value, op=MPI.SUM)
