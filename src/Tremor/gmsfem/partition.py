"""
Tremor: Multiscale Acoustic Wave Models

File: partition.py
Description: Load-balanced splitting of fine cells into coarse cells and of
             work items into contiguous ranges of worker processes.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

from Tremor.errors import PreconditionError

def distribute(n_fine, n_coarse):
    """
    Split n_fine items into n_coarse groups as evenly as possible.

    The first n_fine % n_coarse groups get one extra item.
    """
    if n_coarse <= 0:
        raise PreconditionError(f"Number of coarse cells ({n_coarse}) must be >0")
    if n_coarse > n_fine:
        raise PreconditionError(f"Number of coarse cells ({n_coarse}) exceeds "
                                f"the number of fine cells ({n_fine})")

    base, extra = divmod(n_fine, n_coarse)
    return [base + 1 if i < extra else base for i in range(n_coarse)]

def owned_range(n_items, n_workers, rank):
    """
    Contiguous range [start, stop) of items owned by `rank`.

    Uses the same balancing as distribute(); when there are more workers than
    items the surplus workers own an empty range.
    """
    if n_workers <= 0 or not 0 <= rank < n_workers:
        raise PreconditionError(f"Invalid worker {rank} of {n_workers}")

    base, extra = divmod(n_items, n_workers)
    start = rank*base + min(rank, extra)
    stop = start + base + (1 if rank < extra else 0)
    return start, stop

def offsets(counts):
    """Exclusive prefix sums, with the total appended."""
    return np.concatenate(([0], np.cumsum(counts))).astype(np.int64)


class CoarseGrid:
    """
    Coarse grid laid over a structured fine mesh.

    groups[a] holds the number of fine cells of every coarse cell along
    axis a. Coarse cells are numbered with x running fastest.
    """
    def __init__(self, mesh, counts):
        if len(counts) != mesh.dim:
            raise PreconditionError(f"Coarse grid {counts} does not match the {mesh.dim}D mesh")

        self.mesh = mesh
        self.dim = mesh.dim
        self.counts = tuple(int(n) for n in counts)
        self.groups = tuple(tuple(distribute(mesh.counts[a], self.counts[a]))
                            for a in range(self.dim))
        self.starts = tuple(offsets(g) for g in self.groups)

    @property
    def n_cells(self):
        return int(np.prod(self.counts))

    def multi_index(self, cell):
        idx = []
        for a in range(self.dim):
            idx.append(cell % self.counts[a])
            cell //= self.counts[a]
        return tuple(idx)

    def cells(self, start=0, stop=None):
        """Iterate over (coarse id, multi-index) in ascending id order."""
        stop = self.n_cells if stop is None else stop
        for cid in range(start, stop):
            yield cid, self.multi_index(cid)

    def fine_counts(self, index):
        """Fine cells of a coarse cell along every axis."""
        return tuple(self.groups[a][index[a]] for a in range(self.dim))

    def fine_offset(self, index):
        """Fine multi-index of the lower corner of a coarse cell."""
        return tuple(int(self.starts[a][index[a]]) for a in range(self.dim))

    def extent(self, index):
        """Physical lower corner and size of a coarse cell."""
        h = self.mesh.h
        origin = tuple(o*h[a] for a, o in enumerate(self.fine_offset(index)))
        size = tuple(n*h[a] for a, n in enumerate(self.fine_counts(index)))
        return origin, size

    def fine_cells(self, index):
        """Global fine cells of a coarse cell in its local order (x fastest)."""
        return self.mesh.block(self.fine_offset(index), self.fine_counts(index))
