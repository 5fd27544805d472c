"""
Tremor: Multiscale Acoustic Wave Models

File: structured.py
Description: This file implements structured meshes of quadrilaterals (2D) and
             hexahedra (3D) with uniform spacing in each dimension.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

from Tremor.mesh.base_mesh import BaseMesh
from Tremor.config import axes
from Tremor.errors import PreconditionError
from Tremor.logging import get_logger

logger = get_logger(__name__)

class StructuredMesh(BaseMesh): # Inherit from BaseMesh
    """
    Uniform tensor-product mesh of a box [0, sx] x [0, sy] (x [0, sz]).

    Cells are numbered lexicographically with x running fastest:
        cell = (iz*ny + iy)*nx + ix
    and carry the attribute cell + 1.

    The numpy views of per-cell arrays are shaped (nz, ny, nx), i.e. the
    array axis of the mesh axis a is dim - 1 - a.
    """
    def __init__(self, ctx):
        """
        Build the fine mesh from the grid parameters in the context.
        """
        s, p, o = ctx
        counts = tuple(int(p[f'n{a}']) for a in axes(p))
        sizes = tuple(float(p[f's{a}']) for a in axes(p))
        self._build(counts, sizes)

        # Print some information about the mesh
        self.info()

    @classmethod
    def box(cls, counts, sizes):
        """Create a mesh directly from cell counts and domain sizes."""
        mesh = cls.__new__(cls)
        mesh._build(tuple(int(n) for n in counts), tuple(float(s) for s in sizes))
        return mesh

    def _build(self, counts, sizes):
        if len(counts) not in (2, 3) or len(counts) != len(sizes):
            raise PreconditionError(f"Unsupported mesh shape: counts={counts}, sizes={sizes}")
        if min(counts) <= 0 or min(sizes) <= 0.0:
            raise PreconditionError(f"Mesh counts and sizes must be >0: counts={counts}, sizes={sizes}")

        self.dim = len(counts)
        self.counts = counts
        self.sizes = sizes
        self.h = tuple(s / n for s, n in zip(sizes, counts))

        # Lexicographic cell numbers laid out as (nz, ny, nx)
        self.cells = np.arange(int(np.prod(counts)), dtype=np.int64).reshape(counts[::-1])
        self.attributes = self.cells.reshape(-1) + 1

    @property
    def n_cells(self):
        return self.cells.size

    def array_axis(self, axis):
        return self.dim - 1 - axis

    def cell_index(self, multi_index):
        """Cell number of the (ix, iy[, iz]) multi-index."""
        c = 0
        for a in reversed(range(self.dim)):
            c = c*self.counts[a] + int(multi_index[a])
        return c

    def cell_multi_index(self, cell):
        """(ix, iy[, iz]) multi-index of a cell number."""
        idx = []
        for a in range(self.dim):
            idx.append(cell % self.counts[a])
            cell //= self.counts[a]
        return tuple(idx)

    def cell_origin(self, cell):
        return np.array([i*h for i, h in zip(self.cell_multi_index(cell), self.h)])

    def interior_faces(self, axis):
        """
        Cells on both sides of every interior face normal to `axis`.

        Returns (minus, plus) where plus is the neighbor of minus in the
        positive axis direction.
        """
        ax = self.array_axis(axis)
        n = self.counts[axis]
        minus = np.take(self.cells, np.arange(0, n - 1), axis=ax).reshape(-1)
        plus = np.take(self.cells, np.arange(1, n), axis=ax).reshape(-1)
        return minus, plus

    def boundary_faces(self, axis, side):
        """Cells touching the domain boundary normal to `axis` (side 0 = low, 1 = high)."""
        ax = self.array_axis(axis)
        i = 0 if side == 0 else self.counts[axis] - 1
        return np.take(self.cells, i, axis=ax).reshape(-1)

    def block(self, offset, counts):
        """
        Global cell numbers of a box of cells, listed in the box's own
        lexicographic order (x fastest).
        """
        slices = tuple(slice(offset[a], offset[a] + counts[a]) for a in reversed(range(self.dim)))
        return self.cells[slices].reshape(-1)

    def sub_mesh(self, counts):
        """An isolated mesh of `counts` cells with the same spacing as this mesh."""
        sizes = tuple(n*h for n, h in zip(counts, self.h))
        return StructuredMesh.box(counts, sizes)

    def locate(self, points):
        """
        Return the cells containing each point together with the local
        coordinates of the point in [0, 1]^dim.

        Points on internal faces are assigned to the cell on the high side,
        points on the upper domain boundary to the last cell.
        """
        points = np.atleast_2d(np.asarray(points, dtype=np.float64))
        if points.shape[1] != self.dim:
            raise PreconditionError(f"Points must have {self.dim} coordinates, got shape {points.shape}")

        tol = 1e-12 * max(self.sizes)
        if np.any(points < -tol) or np.any(points > np.array(self.sizes) + tol):
            raise PreconditionError("Some points lie outside of the computational domain")

        cells = np.zeros(points.shape[0], dtype=np.int64)
        local = np.zeros_like(points)
        stride = 1
        for a in range(self.dim):
            i = np.clip(np.floor(points[:, a] / self.h[a]).astype(np.int64), 0, self.counts[a] - 1)
            local[:, a] = np.clip(points[:, a] / self.h[a] - i, 0.0, 1.0)
            cells += stride * i
            stride *= self.counts[a]
        return cells, local

    def info(self):
        logger.info(10*"-" + " Mesh Information " + 10*"-")
        logger.info(f"Structured {self.dim}D mesh initialized.")
        logger.info("Domain size: " + " x ".join(f"{s:.1f}" for s in self.sizes))
        logger.info("Cells: " + " x ".join(str(n) for n in self.counts))
        logger.info("Cell size: " + " x ".join(f"{h:.2f}" for h in self.h))
        logger.info(f"Total cells: {self.n_cells}")
        logger.info(38*"-")
