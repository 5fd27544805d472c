"""
Tremor: Multiscale Acoustic Wave Models

File: properties.py
Description: Physical properties of the acoustic medium. Density and P-wave
             velocity are either homogeneous or read cell by cell from raw
             float64 files.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np

from Tremor.errors import ConfigurationError
from Tremor.logging import get_logger

logger = get_logger(__name__)

def read_cell_values(filename, n_cells, name):
    """Read n_cells float64 values from a binary file."""
    try:
        values = np.fromfile(filename, dtype=np.float64)
    except OSError as e:
        raise ConfigurationError(f"File '{filename}' with {name} can't be opened: {e}") from e
    if values.size != n_cells:
        raise ConfigurationError(f"File '{filename}' holds {values.size} values of {name}, "
                                 f"expected {n_cells}")
    return values


class AcousticMedium:
    """
    Per-cell density rho and P-wave velocity vp with the derived bulk modulus
    K = rho vp^2. The coefficients of the wave operators are 1/rho
    (stiffness) and 1/K (mass).
    """
    def __init__(self, rho, vp):
        self.rho = np.asarray(rho, dtype=np.float64)
        self.vp = np.asarray(vp, dtype=np.float64)

        if self.rho.shape != self.vp.shape:
            raise ConfigurationError(f"Density and velocity arrays differ in shape: "
                                     f"{self.rho.shape} vs {self.vp.shape}")
        if np.any(self.rho <= 0.0):
            raise ConfigurationError("Density values must be >0")
        if np.any(self.vp <= 0.0):
            raise ConfigurationError("P-wave velocity values must be >0")

        self.K = self.rho * self.vp**2
        self.one_over_rho = 1.0 / self.rho
        self.one_over_K = 1.0 / self.K

    @classmethod
    def from_params(cls, params, n_cells):
        """Homogeneous values or per-cell files, as given in the parameters."""
        p = params
        if p.rhofile is not None:
            rho = read_cell_values(p.rhofile, n_cells, "density")
        else:
            rho = np.full(n_cells, float(p.rho))

        if p.vpfile is not None:
            vp = read_cell_values(p.vpfile, n_cells, "P-wave velocity")
        else:
            vp = np.full(n_cells, float(p.vp))

        medium = cls(rho, vp)
        medium.info()
        return medium

    @property
    def n_cells(self):
        return self.rho.size

    def subset(self, cells):
        """Coefficients (1/rho, 1/K) of the given cells, in the given order."""
        return self.one_over_rho[cells], self.one_over_K[cells]

    def info(self):
        logger.info(10*"-" + " Media Information " + 10*"-")
        logger.info(f"rho: min {self.rho.min():.2f}, max {self.rho.max():.2f}")
        logger.info(f"vp:  min {self.vp.min():.2f}, max {self.vp.max():.2f}")
        logger.info(f"K:   min {self.K.min():.4e}, max {self.K.max():.4e}")
        logger.info(39*"-")
