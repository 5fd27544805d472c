"""
Tremor: Multiscale Acoustic Wave Models

File: acoustic.py
Description: Acoustic wave model reduced with the generalized multiscale finite
             element method (GMsFEM).

             The pressure satisfies
                 (1/K) p_tt - div((1/rho) grad p) = f(t) g(x)
             and is discretized with an interior penalty DG method on the fine
             mesh. Local spectral bases on the coarse cells define the
             restriction operator R; the fine operators are projected onto the
             coarse space and the reduced system is integrated with the
             leap-frog scheme. The same pipeline runs on one process or
             distributed over an MPI communicator.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

import numpy as np
from mpi4py import MPI

from Tremor.model.base_model import BaseModel
from Tremor.config import axes
from Tremor.fem.dg_space import DGSpace
from Tremor.fem.assembly import assemble_mass, assemble_stiffness, assemble_source
from Tremor.media.properties import AcousticMedium
from Tremor.source.ricker import time_values
from Tremor.gmsfem.partition import CoarseGrid, owned_range
from Tremor.gmsfem.dof_exchange import FineLayout
from Tremor.gmsfem.local_region import LocalRegionProcessor
from Tremor.gmsfem.restriction import assemble_restriction, assemble_distributed_restriction
from Tremor.gmsfem.projection import project_operator, project_vector
from Tremor.parallel.comm import allgather_vector, gather_vector
from Tremor.parallel.distributed_matrix import DistributedMatrix
from Tremor.solvers.pcg import SerialPCG, DistributedPCG
from Tremor.model.leapfrog import LeapFrogOperators, LeapFrogIntegrator
from Tremor.io.receivers import ReceiversSet
from Tremor.io.seismograms import SeismogramWriter, SEISMOGRAMS_DIR
from Tremor.io.snapshots import SnapshotWriter, prepare_output, SNAPSHOTS_DIR
from Tremor.io.matrices import write_matrices
from Tremor.profiling import timer
import Tremor.format as fmt
from Tremor.logging import get_logger

logger = get_logger(__name__)

class AcousticGMsFEM(BaseModel): # Inherit from BaseModel
    def __init__(self, ctx):
        s, p, o = ctx
        self.comm = ctx.comm
        self.parallel = ctx.parallel
        self.is_root = ctx.is_root
        self.dt = p.dt

        # Fine scale discretization
        self.space = DGSpace(ctx.mesh, p.order)
        self.medium = AcousticMedium.from_params(p, ctx.mesh.n_cells)
        self.coarse = CoarseGrid(ctx.mesh, [p[f'gms_N{a}'] for a in axes(p)])

        with timer.time_section("Setup", "DOF layout"):
            if self.parallel:
                self.layout = FineLayout.distributed(self.comm, self.space, o.partition)
            else:
                self.layout = FineLayout.serial(self.space)

        self.assemble_fine(p)
        self.build_coarse(ctx.basis, p)

        # Source time function, evaluated once
        self.time_values = time_values(p)

        # Receivers are resolved on the fine mesh in the global numbering
        self.receivers = [ReceiversSet(i, rec, self.space, self.layout.dof_table)
                          for i, rec in enumerate(ctx.receivers)]

        self.info(p)

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def assemble_fine(self, p):
        """Fine mass and stiffness matrices and the spatial source vector."""
        kwargs = dict(dof_table=self.layout.dof_table,
                      owned=self.layout.owned,
                      row_range=self.layout.row_range)

        M = assemble_mass(self.space, self.medium.one_over_K, **kwargs)
        S = assemble_stiffness(self.space, self.medium.one_over_rho, p.dg_sigma, p.dg_kappa, **kwargs)

        center = np.array([p[f'source_{a}'] for a in axes(p)])
        self.b_fine = assemble_source(self.space, p.spatial_function, center,
                                      p.gauss_support, p.plane_wave, **kwargs)

        if self.parallel:
            starts = self.layout.row_starts
            M = DistributedMatrix(self.comm, M, starts, starts)
            S = DistributedMatrix(self.comm, S, starts, starts)
        self.M_fine, self.S_fine = M, S

    def build_coarse(self, basis, p):
        """Local bases, restriction operator and projected operators."""
        processor = LocalRegionProcessor(self.space, basis, self.medium, self.coarse,
                                         self.layout.dof_table, p.gms_nb, p.gms_ni)

        if self.parallel:
            start, stop = owned_range(self.coarse.n_cells, self.comm.Get_size(), self.comm.Get_rank())
            self.bases = processor.process_range(start, stop)
            self.R = assemble_distributed_restriction(self.comm, self.bases, self.layout.row_starts)
            self.Rt = self.R.transpose()
        else:
            self.bases = processor.process_range()
            self.R = assemble_restriction(self.bases, self.space.n_dofs)
            self.Rt = self.R.T.tocsr()

        self.M_coarse = project_operator(self.R, self.M_fine)
        self.S_coarse = project_operator(self.R, self.S_fine)
        self.b_coarse = project_vector(self.R, self.b_fine)

    def make_solver(self, M, p):
        if self.parallel:
            return DistributedPCG(M, p.solver_rel_tol, p.solver_max_iter)
        return SerialPCG(M, p.solver_rel_tol, p.solver_max_iter)

    def info(self, p):
        logger.info(10*"-" + " GMsFEM Information " + 10*"-")
        logger.info("Coarse cells: " + " x ".join(str(n) for n in self.coarse.counts))
        logger.info(f"Fine DOFs: {self.space.n_dofs}, coarse DOFs: {self.R.shape[0]}")
        logger.info(f"Basis functions per coarse cell: {p.gms_nb} ({p.gms_ni} interior)")
        logger.info(f"Time steps: {len(self.time_values)}, dt = {fmt.s2ms(p.dt)}")
        logger.info(f"Receivers sets: {len(self.receivers)}")
        logger.info(40*"-")

    # ------------------------------------------------------------------
    # Output helpers
    # ------------------------------------------------------------------
    def full_fine_field(self, u_local):
        """Fine field in natural order on the root rank (None elsewhere)."""
        if self.parallel:
            u = gather_vector(self.comm, u_local, self.layout.row_starts)
            return None if u is None else self.layout.to_natural(u)
        return self.layout.to_natural(u_local)

    def prolongate(self, u):
        """Fine field R^T u of a coarse vector."""
        return self.Rt @ u

    def coarse_solution(self, u):
        """Full coarse vector on every rank."""
        if self.parallel:
            return allgather_vector(self.comm, u, self.R.row_starts)
        return np.array(u)

    def sample_receivers(self, u_local):
        if self.parallel:
            samples = []
            for rec in self.receivers:
                local = rec.sample_local(u_local, self.layout.row_range)
                samples.append(self.comm.reduce(local, op=MPI.SUM, root=0))
            return samples
        return [rec.sample(u_local) for rec in self.receivers]

    def snapshot_observer(self, writer, field_name, to_fine, step_snap):
        def observe(t, state):
            if t % step_snap == 0:
                with timer.time_section("Output", "Snapshots"):
                    u = self.full_fine_field(to_fine(state.current))
                    if self.is_root:
                        writer.write(t, t*self.dt, field_name, u)
        return observe

    def seismogram_observer(self, writer, to_fine, step_seis):
        def observe(t, state):
            if self.receivers and t % step_seis == 0:
                with timer.time_section("Output", "Seismograms"):
                    samples = self.sample_receivers(to_fine(state.current))
                    if self.is_root:
                        writer.write(samples)
        return observe

    def print_matrices(self, output_dir, extra_string):
        def full(A):
            return A.gather() if isinstance(A, DistributedMatrix) else A

        matrices = {
            'R': full(self.R), 'Rt': full(self.Rt),
            'M_fine': full(self.M_fine), 'S_fine': full(self.S_fine),
            'M_coarse': full(self.M_coarse), 'S_coarse': full(self.S_coarse),
        }
        local = [(cid, b.matrix) for cid, b in self.bases.items()]
        if self.parallel:
            # Local bases are collected on the root rank
            gathered = self.comm.gather(local, root=0)
            local = [] if gathered is None else [item for part in gathered for item in part]
        matrices.update({f"local_basis_{cid}": matrix for cid, matrix in local})

        if self.is_root:
            write_matrices(output_dir, matrices, extra_string)

    # ------------------------------------------------------------------
    # Time integration
    # ------------------------------------------------------------------
    def run_integrator(self, integrator, field_name, seis_name, to_fine, snapshots, o, p):
        # Cycle 0 snapshot of the initial state
        u0 = self.full_fine_field(to_fine(integrator.state.current))
        if self.is_root:
            snapshots.write(0, 0.0, field_name, u0)

        seis_writer = SeismogramWriter(o.output_dir, self.receivers, seis_name, o.extra_string) \
                      if self.is_root else None
        try:
            observers = [self.snapshot_observer(snapshots, field_name, to_fine, p.step_snap),
                         self.seismogram_observer(seis_writer, to_fine, p.step_seis)]
            with timer.time_section("Time Loop", field_name):
                u = integrator.run(observers)
        finally:
            if seis_writer is not None:
                seis_writer.close()
        return u

    def solve(self, ctx):
        s, p, o = ctx

        if self.is_root:
            prepare_output(o.output_dir, [SNAPSHOTS_DIR, SEISMOGRAMS_DIR])
        if self.comm is not None:
            self.comm.Barrier()

        if o.print_matrices:
            self.print_matrices(o.output_dir, o.extra_string)

        snapshots = SnapshotWriter(o.output_dir, self.space, o.extra_string)

        # Coarse scale
        ops = LeapFrogOperators(self.M_coarse, self.S_coarse, self.b_coarse,
                                self.make_solver(self.M_coarse, p),
                                self.comm if self.parallel else None)
        self.coarse_integrator = LeapFrogIntegrator(ops, p.dt, self.time_values, name="coarse")

        logger.info("Starting coarse scale time stepping...")
        u = self.run_integrator(self.coarse_integrator, "coarse_pressure", "p", self.prolongate,
                                snapshots, o, p)
        self.coarse_final = self.coarse_solution(u)

        # Optional fine scale reference solution
        self.fine_integrator = None
        if o.fine_scale:
            ops = LeapFrogOperators(self.M_fine, self.S_fine, self.b_fine,
                                    self.make_solver(self.M_fine, p),
                                    self.comm if self.parallel else None)
            self.fine_integrator = LeapFrogIntegrator(ops, p.dt, self.time_values, name="fine")

            logger.info("Starting fine scale time stepping...")
            self.run_integrator(self.fine_integrator, "fine_pressure", "pf",
                                lambda u: u, snapshots, o, p)

        s.step = len(self.time_values)
        s.time = s.step * p.dt
