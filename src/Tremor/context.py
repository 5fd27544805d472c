"""
Tremor: Multiscale Acoustic Wave Models

File: context.py
Description: Class to store the state of the simulation, the physical parameters,
             the runtime options and the MPI communicator of the run.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

from Tremor.errors import ConfigurationError

class Context:
    """
        Context class to store global simulation state, parameters, and runtime options.

        This object is passed to all major components (mesh, basis, model) to access shared data.
        Components should not store references to each other; all interaction occurs through the context.

        The communicator is None for single-process runs that never touch MPI.
    """
    def __init__(self, state = None, params = None, options = None, receivers = None, comm = None):
        """
        state: Dictionary containing the state of the simulation (time, step, ...).
        params: Dictionary containing the physical and discretization parameters.
        options: Dictionary containing the runtime options.
        receivers: List of receiver set descriptions.
        comm: MPI communicator (mpi4py) or None.
        """
        self.state = state or ContextNamespace()
        self.params = params or ContextNamespace()
        self.options = options or ContextNamespace()
        self.receivers = receivers or []
        self.comm = comm

        # Components are attached by the driver once they are built
        self.mesh = None
        self.basis = None
        self.model = None

    def __iter__(self):
        yield self.state
        yield self.params
        yield self.options

    @property
    def rank(self):
        return 0 if self.comm is None else self.comm.Get_rank()

    @property
    def size(self):
        return 1 if self.comm is None else self.comm.Get_size()

    @property
    def is_root(self):
        return self.rank == 0

    @property
    def parallel(self):
        """
        True if the distributed code path is used.

        "auto" selects it whenever more than one process is running.
        """
        mode = self.options.get('mode', 'auto')
        if mode == 'parallel':
            if self.comm is None:
                raise ConfigurationError("mode = 'parallel' requires an MPI communicator.")
            return True
        if mode == 'serial':
            return False
        return self.size > 1


class ContextNamespace(dict):
    """
    A dictionary-like class that allows attribute access to its keys.
    """
    def __init__(self, args = None):
        super().__init__(args or {})

    def _raise(self, key):
        raise AttributeError(f"'{self.__class__.__name__}' object has no attribute '{key}'")

    def __getattr__(self, key):
        if key in self:
            return self[key]
        else:
            self._raise(key)

    def __setattr__(self, key, value):
        self[key] = value

    def __delattr__(self, key):
        if key in self:
            del self[key]
        else:
            self._raise(key)
