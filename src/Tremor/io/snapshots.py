"""
Tremor: Multiscale Acoustic Wave Models

File: snapshots.py
Description: Snapshots of the fine-space fields, one .npz file per field and
             cycle, with the mesh information needed to render them.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import os

import numpy as np

from Tremor.errors import OutputError

SNAPSHOTS_DIR = "snapshots"

def prepare_output(output_dir, subdirs):
    """Create the output directories."""
    for d in subdirs:
        path = os.path.join(output_dir, d)
        try:
            os.makedirs(path, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Output directory '{path}' can't be created: {e}") from e


class SnapshotWriter:
    """
    Writes (cycle, time, field name, values) snapshots. Values are in the
    natural cell by cell DOF order of the fine space.
    """
    def __init__(self, output_dir, space, extra_string=""):
        self.directory = os.path.join(output_dir, SNAPSHOTS_DIR)
        self.extra_string = extra_string
        self.meta = {
            'order': space.order,
            'counts': np.array(space.mesh.counts),
            'sizes': np.array(space.mesh.sizes),
        }

    def filename(self, field_name, cycle):
        return os.path.join(self.directory, f"{field_name}{self.extra_string}_{cycle:06d}.npz")

    def write(self, cycle, time, field_name, values):
        fname = self.filename(field_name, cycle)
        try:
            with open(fname, 'wb') as f:
                np.savez(f, cycle=cycle, time=time, values=np.asarray(values), **self.meta)
        except OSError as e:
            raise OutputError(f"Snapshot '{fname}' can't be written: {e}") from e
        return fname


def read_snapshot(fname):
    with np.load(fname) as data:
        return {key: data[key] for key in data.files}
