"""
Tremor: Multiscale Acoustic Wave Models

File: dof_exchange.py
Description: Ownership of the fine cells and resolution of their global DOFs.

             In a distributed run every rank numbers the DOFs of the fine cells
             it owns. The coarse cells a rank processes may overlap fine cells
             owned by other ranks, so the per-cell DOF lists are exchanged once:
             every rank packs tagged records
                 (-attribute, dof_count, dof_0, ..., dof_{k-1})
             for its cells, the records are gathered on rank 0 and the
             concatenated buffer is broadcast to every rank, which parses it
             into a complete table  fine cell -> global DOFs.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
from mpi4py import MPI

from Tremor.errors import DofResolutionError, PreconditionError
from Tremor.gmsfem.partition import owned_range
from Tremor.parallel.comm import exclusive_offset, partition_starts
from Tremor.logging import get_logger

logger = get_logger(__name__)

def pack_records(owned_cells, owned_dofs):
    """
    Serialize the DOFs of the owned cells into a flat int64 buffer.

    owned_cells: fine cell ids
    owned_dofs: (len(owned_cells), n_loc) global DOFs of those cells
    """
    owned_cells = np.asarray(owned_cells, dtype=np.int64)
    owned_dofs = np.asarray(owned_dofs, dtype=np.int64)
    if owned_dofs.ndim != 2 or owned_dofs.shape[0] != owned_cells.size:
        raise DofResolutionError(f"DOF lists of shape {owned_dofs.shape} do not match {owned_cells.size} cells")
    n_loc = owned_dofs.shape[1]

    records = np.empty((len(owned_cells), n_loc + 2), dtype=np.int64)
    records[:, 0] = -(owned_cells + 1) # attributes start at 1
    records[:, 1] = n_loc
    records[:, 2:] = owned_dofs
    return records.reshape(-1)

def parse_records(buffer, n_cells, n_loc):
    """
    Parse a buffer of concatenated records into an (n_cells, n_loc) table.

    Every cell must appear exactly once with n_loc non-negative DOFs.
    """
    buffer = np.asarray(buffer, dtype=np.int64)
    table = np.full((n_cells, n_loc), -1, dtype=np.int64)
    seen = np.zeros(n_cells, dtype=bool)

    pos = 0
    while pos < buffer.size:
        tag = buffer[pos]
        if tag >= 0:
            raise DofResolutionError(f"Malformed DOF record at position {pos}: tag {tag} is not negative")
        cell = -tag - 1
        if cell >= n_cells:
            raise DofResolutionError(f"Fine cell {cell} out of range [0, {n_cells})")
        if seen[cell]:
            raise DofResolutionError(f"Fine cell {cell} appears more than once")
        if pos + 1 >= buffer.size:
            raise DofResolutionError(f"Truncated DOF record of fine cell {cell}")

        count = buffer[pos + 1]
        if count != n_loc:
            raise DofResolutionError(f"Fine cell {cell} has {count} DOFs, expected {n_loc}")
        if pos + 2 + count > buffer.size:
            raise DofResolutionError(f"Truncated DOF record of fine cell {cell}")

        dofs = buffer[pos + 2:pos + 2 + count]
        if np.any(dofs < 0):
            raise DofResolutionError(f"Fine cell {cell} has unresolved DOFs: {dofs}")

        table[cell] = dofs
        seen[cell] = True
        pos += 2 + count

    if not np.all(seen):
        missing = np.flatnonzero(~seen)
        raise DofResolutionError(f"{missing.size} fine cells have no DOF record, first: {missing[:10]}")
    return table

def exchange_dof_table(comm, owned_cells, owned_dofs, n_cells):
    """
    Collective: build the complete fine cell -> global DOF table on every rank.

    Records are gathered on rank 0 (Gatherv), the total length is broadcast
    and then the concatenated buffer itself.
    """
    send = pack_records(owned_cells, owned_dofs)
    # Ranks without cells still know the width of the table
    n_loc = comm.allreduce(np.asarray(owned_dofs).shape[1], op=MPI.MAX)

    counts = comm.gather(send.size, root=0)
    if comm.Get_rank() == 0:
        displs = np.concatenate(([0], np.cumsum(counts)[:-1]))
        buffer = np.empty(int(np.sum(counts)), dtype=np.int64)
        comm.Gatherv([send, MPI.INT64_T], [buffer, counts, displs, MPI.INT64_T], root=0)
        total = buffer.size
    else:
        comm.Gatherv([send, MPI.INT64_T], None, root=0)
        total = None

    total = comm.bcast(total, root=0)
    if comm.Get_rank() != 0:
        buffer = np.empty(total, dtype=np.int64)
    comm.Bcast([buffer, MPI.INT64_T], root=0)

    return parse_records(buffer, n_cells, n_loc)


def cell_owners(n_cells, size, partition='block'):
    """Owning rank of every fine cell."""
    if partition == 'block':
        owners = np.empty(n_cells, dtype=np.int64)
        for rank in range(size):
            lo, hi = owned_range(n_cells, size, rank)
            owners[lo:hi] = rank
        return owners
    if partition == 'cyclic':
        return np.arange(n_cells, dtype=np.int64) % size
    raise PreconditionError(f"Unknown fine cell partition: {partition}")


class FineLayout:
    """
    Ownership of the fine cells and the global numbering of their DOFs.

    owned: mask of the cells owned by this rank
    dof_table: (n_cells, n_loc) global DOFs of every cell
    row_starts: offsets of every rank's contiguous DOF range
    """
    def __init__(self, owned, dof_table, row_starts, rank=0):
        self.owned = owned
        self.dof_table = dof_table
        self.row_starts = np.asarray(row_starts, dtype=np.int64)
        self.rank = rank

    @classmethod
    def serial(cls, space):
        owned = np.ones(space.mesh.n_cells, dtype=bool)
        return cls(owned, space.dof_table(), [0, space.n_dofs])

    @classmethod
    def distributed(cls, comm, space, partition='block'):
        """
        Collective: number the DOFs of the owned cells contiguously, starting
        after the DOFs of the lower ranks, and exchange the numbering.
        """
        rank, size = comm.Get_rank(), comm.Get_size()
        n_cells, n_loc = space.mesh.n_cells, space.n_loc

        owned = cell_owners(n_cells, size, partition) == rank
        owned_cells = np.flatnonzero(owned)
        n_local = owned_cells.size * n_loc

        offset = exclusive_offset(comm, n_local)
        owned_dofs = offset + np.arange(n_local, dtype=np.int64).reshape(-1, n_loc)

        table = exchange_dof_table(comm, owned_cells, owned_dofs, n_cells)
        row_starts = partition_starts(comm, n_local)

        logger.info(f"Fine DOFs distributed ({partition}) over {size} ranks: "
                    f"{np.diff(row_starts).min()} to {np.diff(row_starts).max()} per rank.")
        return cls(owned, table, row_starts, rank)

    @property
    def row_range(self):
        return int(self.row_starts[self.rank]), int(self.row_starts[self.rank + 1])

    @property
    def n_dofs(self):
        return int(self.row_starts[-1])

    def to_natural(self, values):
        """Reorder a full vector from this numbering to the natural cell-by-cell one."""
        return np.asarray(values)[self.dof_table.reshape(-1)]
