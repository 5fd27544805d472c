"""
Tremor: Multiscale Acoustic Wave Models

File: matrices.py
Description: Matrix Market output of the operators for inspection.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import os

import scipy.io

from Tremor.errors import OutputError
from Tremor.logging import get_logger

logger = get_logger(__name__)

def write_matrix(output_dir, name, A):
    fname = os.path.join(output_dir, f"{name}.mtx")
    try:
        scipy.io.mmwrite(fname, A)
    except OSError as e:
        raise OutputError(f"Matrix file '{fname}' can't be written: {e}") from e
    return fname

def write_matrices(output_dir, matrices, extra_string=""):
    """Write a dict name -> matrix (dense or sparse)."""
    for name, A in matrices.items():
        write_matrix(output_dir, f"{name}{extra_string}", A)
    logger.info(f"{len(matrices)} matrices written to {output_dir}.")
