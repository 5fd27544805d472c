"""
Tremor: Multiscale Acoustic Wave Models

File: format.py
Description: Utility functions for pretty formatting of numbers and strings.

Author: Marcel Ferrari
Copyright (c) 2025 Marcel Ferrari.

This Source Code Form is subject to the terms of the Mozilla Public
License, v. 2.0. If a copy of the MPL was not distributed with this
file, You can obtain one at https://mozilla.org/MPL/2.0/.
"""

def s2ms(seconds):
    """
    Format a simulation time in seconds into s or ms.

    Parameters:
        seconds (float): The time in seconds.

    Returns:
        str: A formatted string with the time in the most appropriate unit.
    """
    if abs(seconds) >= 1.0 or seconds == 0.0:
        return f"{seconds:.4f} s"
    return f"{seconds*1e3:.3f} ms"

