"""
Tremor: Multiscale Acoustic Wave Models

File: __main__.py
Description: Command line entry point:
                 python -m Tremor -i input.toml [--mode serial|parallel]
             Use mpiexec -n P for distributed runs.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""
import argparse

from Tremor.main import Tremor
from Tremor.config import RUN_MODES

parser = argparse.ArgumentParser(prog="Tremor",
                                 description="Multiscale (GMsFEM) acoustic wave simulation.")
parser.add_argument("-i", "--input",
                    required=True,
                    type=str,
                    help="TOML input file")
parser.add_argument("-m", "--mode",
                    default=None,
                    choices=RUN_MODES,
                    help="Override the run mode of the input file")

def main():
    args = vars(parser.parse_args())
    sim = Tremor(args)
    sim.solve()


if __name__ == '__main__':
    main()
