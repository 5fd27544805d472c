"""
Tremor: Multiscale Acoustic Wave Models

File: reference.py
Description: One-dimensional reference element on [0, 1]. Tensor products of
             these quantities give the cell matrices of the DG spaces.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

from functools import reduce

import numpy as np
from numpy.polynomial import Polynomial
from numpy.polynomial import legendre

def gauss_legendre(n):
    """n-point Gauss-Legendre rule mapped to [0, 1]."""
    x, w = legendre.leggauss(n)
    return 0.5*(x + 1.0), 0.5*w

def gauss_lobatto_nodes(order):
    """order+1 Gauss-Lobatto nodes on [0, 1]; the midpoint for order 0."""
    if order == 0:
        return np.array([0.5])
    interior = legendre.Legendre.basis(order).deriv().roots()
    nodes = np.concatenate(([-1.0], np.sort(interior.real), [1.0]))
    return 0.5*(nodes + 1.0)

def kron_axes(mats):
    """
    Tensor product of per-axis matrices with axis 0 (x) running fastest,
    i.e. kron(mats[-1], ..., mats[0]).
    """
    return reduce(np.kron, reversed(mats))


class ReferenceElement1D:
    """
    Lagrange basis of degree `order` on the Gauss-Lobatto nodes of [0, 1].

    m, k: reference mass and stiffness matrices (unit length)
    v0, v1: basis values at x = 0 and x = 1
    d0, d1: basis derivatives at x = 0 and x = 1 (unit length)
    """
    def __init__(self, order):
        self.order = int(order)
        self.n = self.order + 1
        self.nodes = gauss_lobatto_nodes(self.order)

        # Lagrange polynomials and their derivatives
        self.polys = []
        for i, xi in enumerate(self.nodes):
            others = np.delete(self.nodes, i)
            poly = Polynomial.fromroots(others) if len(others) else Polynomial([1.0])
            self.polys.append(poly / poly(xi))
        self.dpolys = [poly.deriv() for poly in self.polys]

        # Exact for products of two degree-p polynomials
        xq, wq = gauss_legendre(self.n + 1)
        V = self.values(xq)
        D = self.derivatives(xq)
        self.m = (V * wq) @ V.T
        self.k = (D * wq) @ D.T

        self.v0 = self.values(0.0)[:, 0]
        self.v1 = self.values(1.0)[:, 0]
        self.d0 = self.derivatives(0.0)[:, 0]
        self.d1 = self.derivatives(1.0)[:, 0]

    def values(self, x):
        """Basis values, shape (n_basis, n_points)."""
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        return np.array([poly(x) for poly in self.polys])

    def derivatives(self, x):
        """Basis derivatives, shape (n_basis, n_points)."""
        x = np.atleast_1d(np.asarray(x, dtype=np.float64))
        if self.order == 0:
            return np.zeros((1, x.size))
        return np.array([dpoly(x) for dpoly in self.dpolys])
