"""
Tremor: Multiscale Acoustic Wave Models

File: local_region.py
Description: Processing of the coarse cells. For every coarse cell the fine
             sub-mesh is carved out, the local basis kernel is invoked on it
             and the rows of the resulting basis matrix are mapped onto the
             global fine DOFs.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

from collections import OrderedDict, namedtuple

import numpy as np

from Tremor.errors import (DimensionMismatchError, DiscretizationMismatchError,
                           DofResolutionError)
from Tremor.profiling import timer
from Tremor.logging import get_logger

logger = get_logger(__name__)

# Local basis matrix (local fine DOFs x basis functions) and the global fine
# DOF of each of its rows
LocalBasis = namedtuple('LocalBasis', ['matrix', 'local2global'])


class LocalBases:
    """Local bases of the processed coarse cells, keyed by coarse cell id."""
    def __init__(self):
        self._bases = OrderedDict()

    def add(self, cid, matrix, local2global):
        if cid in self._bases:
            raise DimensionMismatchError(f"Coarse cell {cid} processed twice")
        matrix.setflags(write=False)
        local2global.setflags(write=False)
        self._bases[cid] = LocalBasis(matrix, local2global)

    def __getitem__(self, cid):
        return self._bases[cid]

    def __len__(self):
        return len(self._bases)

    def __iter__(self):
        return iter(sorted(self._bases))

    def items(self):
        """(coarse id, LocalBasis) pairs in ascending coarse id order."""
        for cid in self:
            yield cid, self._bases[cid]

    @property
    def n_rows(self):
        return sum(b.matrix.shape[1] for b in self._bases.values())

    @property
    def n_columns(self):
        return sum(b.local2global.size for b in self._bases.values())


class LocalRegionProcessor:
    """
    space: global fine space (gives the discretization family and order)
    basis: local basis kernel with compute_local_basis()
    medium: per fine cell coefficients
    coarse: CoarseGrid
    dof_table: (n_fine_cells, n_loc) global fine DOFs of every fine cell
    """
    def __init__(self, space, basis, medium, coarse, dof_table, n_basis, n_interior):
        self.space = space
        self.basis = basis
        self.medium = medium
        self.coarse = coarse
        self.dof_table = dof_table
        self.n_basis = n_basis
        self.n_interior = n_interior

    def local_to_global(self, sub_space, fine_cells):
        """
        Global fine DOF of every DOF of the sub-mesh space.

        Local cell k of the sub-mesh is the global fine cell fine_cells[k].
        """
        sub_table = sub_space.dof_table()
        local2global = np.full(sub_space.n_dofs, -1, dtype=np.int64)

        for k, cell in enumerate(fine_cells):
            ldofs = sub_table[k]
            gdofs = self.dof_table[cell]
            if ldofs.size != gdofs.size:
                raise DiscretizationMismatchError(f"Fine cell {cell} has {ldofs.size} local DOFs "
                                                  f"but {gdofs.size} global DOFs")
            local2global[ldofs] = gdofs

        if np.any(local2global < 0):
            raise DofResolutionError(f"{np.sum(local2global < 0)} local DOFs are not "
                                     f"mapped to global fine DOFs")
        return local2global

    def process(self, cid, index):
        """Local basis matrix and DOF map of one coarse cell."""
        counts = self.coarse.fine_counts(index)
        origin, size = self.coarse.extent(index)
        sub_mesh = self.space.mesh.sub_mesh(counts)
        logger.debug(f"Coarse cell {cid}: origin {origin}, size {size}, {counts} fine cells.")
        fine_cells = self.coarse.fine_cells(index)

        # Coefficients in the local (x fastest) order of the sub-mesh
        coef_a, coef_b = self.medium.subset(fine_cells)

        matrix = self.basis.compute_local_basis(sub_mesh, self.n_basis, self.n_interior,
                                                coef_a, coef_b)

        sub_space = type(self.space)(sub_mesh, self.space.order)
        local2global = self.local_to_global(sub_space, fine_cells)

        if matrix.shape != (local2global.size, self.n_basis):
            raise DimensionMismatchError(f"Local basis of coarse cell {cid} has shape {matrix.shape}, "
                                         f"expected ({local2global.size}, {self.n_basis})")
        return np.ascontiguousarray(matrix), local2global

    @timer.time_function("Setup", "Local bases")
    def process_range(self, start=0, stop=None):
        """Process the coarse cells [start, stop) in ascending order."""
        bases = LocalBases()
        for cid, index in self.coarse.cells(start, stop):
            matrix, local2global = self.process(cid, index)
            bases.add(cid, matrix, local2global)
        return bases
