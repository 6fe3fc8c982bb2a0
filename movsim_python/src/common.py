# common.py

# Copyright (C) 2024 The Movsim authors. License: GNU GPL Version 3
# See README, LICENSE, and https://www.gnu.org/licenses/gpl-3.0.html

# This file is part of Movsim. Movsim is free software: you can
# redistribute it and/or modify it under the terms of the GNU General
# Public License as published by the Free Software Foundation, either
# version 3 of the License, or (at your option) any later version.
# Movsim is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details. You should have received
# a copy of the GNU General Public License along with Movsim. If
# not, see <https://www.gnu.org/licenses/>.

# ----------------------------------------------------------------------
# common.py
# ----------------------------------------------------------------------

def stacktrace():
    import traceback
    traceback.print_stack()

class Mode:
    def __init__(self):
        self.trace = False
        self.show_err = True

    def set_trace(self):
        self.trace = True

    def clear_trace(self):
        self.trace = False

    def show_mode(self):
        print(f"trace={self.trace} show_err={self.show_err}")

    def devlog(self, xs):
        if self.trace:
            print(xs)

    def errlog(self, xs):
        if self.show_err:
            print(xs)

mode = Mode()

# ----------------------------------------------------------------------
# Logging error message
# ----------------------------------------------------------------------

# indicate_error is for internal inconsistencies, not for rejected
# user input. Rejections are raised as SimulatorError below.

def indicate_error(xs):
    print(f"\033[91m\033[1m{xs}\033[0m") # ANSI escape codes for red and bold
    stacktrace()

# ----------------------------------------------------------------------
# Rejections
# ----------------------------------------------------------------------

# Every rejection is raised before any state is changed, so a caller
# that catches SimulatorError can rely on the engine being exactly as
# it was before the call.

class SimulatorError(Exception):
    pass

class ValidationError(SimulatorError):
    """A value is not a well formed hex word (or hex byte), or names an
    unknown register."""

    def __init__(self, msg, field=None, value=None):
        super().__init__(msg)
        self.field = field
        self.value = value

class AddressingError(SimulatorError):
    """The addressing mode, register selection or displacement cannot
    produce an effective address."""

class MemoryReadError(SimulatorError):
    """A memory read found no value at the effective address."""

    def __init__(self, msg, address=None):
        super().__init__(msg)
        self.address = address

# ----------------------------------------------------------------------
# Engine options
# ----------------------------------------------------------------------

# Policies fixed for the lifetime of an engine. The stack starts at
# the top of the segment and grows down unless stack_grows_down is
# cleared, in which case it starts at 0 and grows up.

class Options:
    def __init__(self, stack_grows_down=True, stack_top=None,
                 reject_zero_reads=True):
        self.stack_grows_down = stack_grows_down
        if stack_top is None:
            stack_top = 0xFFFE if stack_grows_down else 0x0000
        self.stack_top = stack_top
        self.reject_zero_reads = reject_zero_reads

    def show(self):
        return (f"stack_grows_down={self.stack_grows_down} "
                f"stack_top={self.stack_top:04X} "
                f"reject_zero_reads={self.reject_zero_reads}")
