"""
Tremor: Multiscale Acoustic Wave Models

File: seismograms.py
Description: Streaming of seismograms. Every receivers set has its own binary
             file of float64 values with one row of n_receivers values per
             recorded time step.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import os

import numpy as np

from Tremor.errors import OutputError
from Tremor.logging import get_logger

logger = get_logger(__name__)

SEISMOGRAMS_DIR = "seismograms"

class SeismogramWriter:
    """
    Open files for every receivers set; only used on the root rank.
    """
    def __init__(self, output_dir, sets, field_name="p", extra_string=""):
        self.directory = os.path.join(output_dir, SEISMOGRAMS_DIR)
        self.files = []
        self.samples = 0
        for rec_set in sets:
            fname = os.path.join(self.directory,
                                 f"seis{rec_set.index}_{rec_set.type}_{field_name}{extra_string}.bin")
            try:
                self.files.append(open(fname, 'wb'))
            except OSError as e:
                self.close()
                raise OutputError(f"Seismogram file '{fname}' can't be opened: {e}") from e

        if self.files:
            logger.info(f"{len(self.files)} seismogram files opened in {self.directory}.")

    def write(self, samples):
        """samples: one array of receiver values per set."""
        for f, values in zip(self.files, samples):
            try:
                np.asarray(values, dtype=np.float64).tofile(f)
            except OSError as e:
                raise OutputError(f"Seismogram file '{f.name}' can't be written: {e}") from e
        self.samples += 1

    def close(self):
        for f in self.files:
            f.close()
        self.files = []


def read_seismogram(fname, n_receivers):
    """Seismogram file as an (n_samples, n_receivers) array."""
    return np.fromfile(fname, dtype=np.float64).reshape(-1, n_receivers)
