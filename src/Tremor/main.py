"""
Tremor: Multiscale Acoustic Wave Models

File: main.py
Description: Main driver class for Tremor, which loads the input, builds the
             components and runs the time integration of the model.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""
import importlib
import re
import time
import numba as nb

from Tremor.context import Context
from Tremor.profiling import timer
from Tremor.banner import print_banner
from Tremor.config import load_input, verify, RUN_MODES
from Tremor.parallel.comm import world
from Tremor.logging import get_logger, set_level

logger = get_logger(__name__)

class Tremor():
    def __init__(self, args):
        comm = world()

        # Print Tremor banner
        print_banner(comm.Get_rank())

        # Initialize constants
        self.input_file = args['input']

        # Load input file
        state, params, options, receivers = self.load_input(self.input_file)

        # Command line arguments override the input file
        if args.get('mode') is not None:
            options.mode = args['mode']
            verify(options.mode in RUN_MODES, f"Unknown run mode: {options.mode}")

        set_level(options.log_level)
        self.set_threading(options)

        # Create context object
        self.ctx = Context(state, params, options, receivers, comm)
        mode = "distributed" if self.ctx.parallel else "single process"
        logger.info(f"Running in {mode} mode on {self.ctx.size} process(es).")

        # Initialize solver components
        with timer.time_section("Setup", "Components"):
            self.ctx.mesh = self.load_component('mesh', options.mesh)
            self.ctx.basis = self.load_component('basis', options.basis)
            self.ctx.model = self.load_component('model', options.model)

    def load_input(self, input):
        logger.info(f"Reading input file {input}")
        return load_input(input)

    def set_threading(self, options):
        # Set up threading layer
        tl = options.threading_layer
        logger.info(f"Using threading layer: {tl}")
        nb.config.THREADING_LAYER = tl

        # Set up number of threads
        num_threads = options.num_threads
        if num_threads > 0:
            nb.set_num_threads(num_threads)
        num_threads = nb.get_num_threads()
        logger.info(f"Numba using {num_threads} threads.")

    def load_component(self, comp, cls_name):
        # Check that the format is correct
        def validate_format(attr):
            # Regular expression pattern to match "module.classname" format
            pattern = r"^[a-zA-Z_]\w*\.[a-zA-Z_]\w*$"
            return bool(re.match(pattern, attr))

        verify(validate_format(cls_name),
               f"Invalid format for {cls_name} option. Please use 'module.class' format.")

        module, cls = cls_name.split('.')
        try:
            module = importlib.import_module(f"Tremor.{comp}.{module}")
            cls = getattr(module, cls)
        except (ImportError, AttributeError) as e:
            verify(False, f"Unknown {comp} component {cls_name}: {e}")
        return cls(self.ctx)

    def solve(self):
        s, p, o = self.ctx

        logger.info("Starting simulation...")
        start = time.time()

        self.ctx.model.solve(self.ctx)

        end = time.time()
        logger.info("Time loop complete!")

        # Finalize mesh, basis and model
        logger.info("Finalizing simulation...")
        self.ctx.mesh.finalize(self.ctx)
        self.ctx.basis.finalize(self.ctx)
        self.ctx.model.finalize(self.ctx)

        if self.ctx.is_root:
            timer.report()
        logger.info(f"Total workload runtime {end-start:.4f} seconds, "
                    f"{s.step} steps up to t = {s.time:.4f} s.")
