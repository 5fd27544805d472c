"""
Tremor: Multiscale Acoustic Wave Models

File: banner.py
Description: Banner to be printed at the start of the simulation.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""
import termcolor

banner = termcolor.colored(r"""
 _____ ____  _____ __  __  ___  ____  
|_   _|  _ \| ____|  \/  |/ _ \|  _ \ 
  | | | |_) |  _| | |\/| | | | | |_) |
  | | |  _ <| |___| |  | | |_| |  _ < 
  |_| |_| \_\_____|_|  |_|\___/|_| \_\  (v0.1)
""", 'cyan', attrs=['bold'])

def print_banner(rank=0):
    # Only the root process greets the user
    if rank == 0:
        print(banner)


if __name__ == '__main__':
    print_banner()
