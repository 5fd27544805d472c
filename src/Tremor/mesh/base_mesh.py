"""
Tremor: Multiscale Acoustic Wave Models

File: base_mesh.py
Description: Base mesh class for Tremor, which handles the fine mesh data structure.
             This class is meant to be inherited by specific mesh implementations and
             serves to implement the required methods for the mesh class.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

class BaseMesh:
    def __init__(self, ctx):
        raise NotImplementedError()

    def finalize(self, ctx):
        pass

    @property
    def n_cells(self):
        raise NotImplementedError()

    def sub_mesh(self, counts):
        raise NotImplementedError()

    def locate(self, points):
        raise NotImplementedError()
