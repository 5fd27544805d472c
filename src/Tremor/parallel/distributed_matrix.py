"""
Tremor: Multiscale Acoustic Wave Models

File: distributed_matrix.py
Description: Row-distributed sparse matrix. Every rank stores a contiguous
             block of rows in CSR format with global column indices. The row
             and column partitions are kept so that vectors living in the row
             or column space can be exchanged consistently.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
import scipy.sparse as sp

from Tremor.errors import DimensionMismatchError
from Tremor.parallel.comm import allgather_vector

class DistributedMatrix:
    """
    comm: communicator
    local: CSR block of the rows owned by this rank, all columns
    row_starts, col_starts: partition offsets of the rows and columns,
        length size + 1 with the global size last
    """
    def __init__(self, comm, local, row_starts, col_starts):
        self.comm = comm
        self.rank = comm.Get_rank()
        self.local = sp.csr_matrix(local)
        self.row_starts = np.asarray(row_starts, dtype=np.int64)
        self.col_starts = np.asarray(col_starts, dtype=np.int64)

        lo, hi = self.local_range
        if self.local.shape != (hi - lo, self.col_starts[-1]):
            raise DimensionMismatchError(f"Local block of shape {self.local.shape} does not match "
                                         f"rows [{lo}, {hi}) of a {self.shape} matrix")

    @property
    def shape(self):
        return int(self.row_starts[-1]), int(self.col_starts[-1])

    @property
    def local_range(self):
        """Global rows [lo, hi) stored on this rank."""
        return int(self.row_starts[self.rank]), int(self.row_starts[self.rank + 1])

    @property
    def col_range(self):
        """Global columns [lo, hi) whose vector entries live on this rank."""
        return int(self.col_starts[self.rank]), int(self.col_starts[self.rank + 1])

    def mult(self, x_local):
        """y = A x for a vector distributed like the columns; y is distributed like the rows."""
        x = allgather_vector(self.comm, x_local, self.col_starts)
        return self.local @ x

    def __matmul__(self, x_local):
        return self.mult(x_local)

    def gather(self):
        """The full matrix on every rank. Only used for output."""
        return sp.vstack(self.comm.allgather(self.local), format='csr')

    def rows(self, indices):
        """
        Collective: the global rows `indices` (ascending) fetched from the
        ranks that own them.
        """
        indices = np.asarray(indices, dtype=np.int64)
        owner = owners(self.row_starts, indices)
        requests = self.comm.alltoall([indices[owner == r] for r in range(self.comm.Get_size())])

        lo, _ = self.local_range
        blocks = [self.local[req - lo].tocoo() for req in requests]
        replies = self.comm.alltoall([(b.row, b.col, b.data, b.shape[0]) for b in blocks])

        rows, cols, vals, offset = [], [], [], 0
        for r_rows, r_cols, r_vals, n in replies:
            rows.append(r_rows + offset)
            cols.append(r_cols)
            vals.append(r_vals)
            offset += n
        return sp.csr_matrix((np.concatenate(vals), (np.concatenate(rows), np.concatenate(cols))),
                             shape=(indices.size, self.shape[1]))

    def transpose(self):
        """
        Distributed transpose, rows partitioned like the columns of this matrix.

        Each rank receives only the transposed entries of its own rows.
        """
        lo, _ = self.local_range
        coo = self.local.tocoo()
        rows, cols, vals = exchange_triplets(self.comm, owners(self.col_starts, coo.col),
                                             coo.col, coo.row + lo, coo.data)

        c_lo, c_hi = self.col_range
        local = sp.csr_matrix((vals, (rows - c_lo, cols)), shape=(c_hi - c_lo, self.shape[0]))
        return DistributedMatrix(self.comm, local, self.col_starts, self.row_starts)

    @property
    def T(self):
        return self.transpose()

    def diagonal_block(self):
        """Square block of the local rows and the matching columns."""
        lo, hi = self.local_range
        return self.local[:, lo:hi].tocsr()


def owners(starts, indices):
    """Rank owning each global index under the partition `starts`."""
    return np.searchsorted(starts, indices, side='right') - 1

def exchange_triplets(comm, owner, rows, cols, vals):
    """
    Collective: send every (row, col, val) triplet to its owning rank and
    return the concatenated triplets received from all ranks.
    """
    parts = []
    for r in range(comm.Get_size()):
        mask = owner == r
        parts.append((rows[mask].astype(np.int64), cols[mask].astype(np.int64), vals[mask]))
    received = comm.alltoall(parts)
    return tuple(np.concatenate([p[k] for p in received]) for k in range(3))

def rap(R, A):
    """
    Galerkin product (R A) R^T of distributed matrices.

    The columns of R must be partitioned like the rows of A. The product is
    distributed like the rows of R, in both dimensions. No rank holds more
    than its own rows of R, R^T and R A plus the rows of R^T it multiplies.
    """
    if not np.array_equal(R.col_starts, A.row_starts) or A.shape[0] != A.shape[1]:
        raise DimensionMismatchError(f"Cannot project a {A.shape} operator with a {R.shape} restriction")

    comm = R.comm
    Rt = R.transpose()

    # R A is the sum over ranks of R[:, lo:hi] A[lo:hi, :]; the partial
    # products are sent to the ranks owning their coarse rows
    partial = (Rt.local.T @ A.local).tocoo()
    rows, cols, vals = exchange_triplets(comm, owners(R.row_starts, partial.row),
                                         partial.row, partial.col, partial.data)
    r_lo, r_hi = R.local_range
    RA = sp.csr_matrix((vals, (rows - r_lo, cols)), shape=(r_hi - r_lo, A.shape[1]))

    # Only the rows of R^T matching the columns used by the local rows of R A
    needed = np.unique(RA.indices)
    C = (RA[:, needed] @ Rt.rows(needed)).tocsr()
    return DistributedMatrix(comm, C, R.row_starts, R.row_starts)
