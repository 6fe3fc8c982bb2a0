# models.py

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
# models.py connects the emulator to a Qt user interface: item models
# that present snapshots of the machine, and a session object through
# which the interface issues commands.
# ----------------------------------------------------------------------

from PySide6.QtCore import Qt, QObject, Signal, QMutex
from PySide6.QtGui import QStandardItemModel, QStandardItem

import common
import arithmetic as arith
import architecture as arch
import state as st
import emulator as em

# ----------------------------------------------------------------------
# Item models
# ----------------------------------------------------------------------

# Each model is refreshed from a snapshot with update(snap); it never
# holds a reference into the live machine.

class RegisterModel(QStandardItemModel):
    def __init__(self, bank="general"):
        names = [r.value for r in (arch.GenReg if bank == "general" else arch.AdrReg)]
        super().__init__(len(names), 2)
        self.bank = bank
        self.names = names
        self.setHorizontalHeaderLabels(["Register", "Value"])
        self.previous_values = {} # To highlight registers changed since the last update

    def update(self, snap):
        values = snap.registers if self.bank == "general" else snap.address_registers
        for i, reg_name in enumerate(self.names):
            value = values[reg_name]
            name_item = QStandardItem(reg_name)
            value_item = QStandardItem(value)
            if reg_name in self.previous_values and self.previous_values[reg_name] != value:
                value_item.setBackground(Qt.GlobalColor.yellow)
            self.setItem(i, 0, name_item)
            self.setItem(i, 1, value_item)
            self.previous_values[reg_name] = value

class MemoryModel(QStandardItemModel):
    def __init__(self):
        super().__init__(0, 4)
        self.setHorizontalHeaderLabels(["Address", "Value", "Address calculation", "Value source"])

    def update(self, snap):
        self.setRowCount(len(snap.memory))
        for row, cell in enumerate(snap.memory):
            p = cell.provenance
            self.setItem(row, 0, QStandardItem(arith.word_to_hex4(cell.address)))
            self.setItem(row, 1, QStandardItem(cell.value))
            self.setItem(row, 2, QStandardItem(p.address_calculation if p else ""))
            self.setItem(row, 3, QStandardItem(p.value_source if p else ""))

class StackModel(QStandardItemModel):
    def __init__(self, grows_down=True):
        super().__init__(0, 2)
        self.grows_down = grows_down
        self.setHorizontalHeaderLabels(["Address", "Value"])
        self.pointer = None

    def update(self, snap):
        self.pointer = snap.stack.pointer
        self.setRowCount(len(snap.stack.values))
        for i, value in enumerate(snap.stack.values):
            a = st.stack_slot_address(snap.stack.pointer, i, self.grows_down)
            self.setItem(i, 0, QStandardItem(arith.word_to_hex4(a)))
            self.setItem(i, 1, QStandardItem(value))

class HistoryModel(QStandardItemModel):
    def __init__(self):
        super().__init__(0, 1)
        self.setHorizontalHeaderLabels(["Operation"])

    def update(self, snap):
        self.setRowCount(len(snap.history))
        for row, e in enumerate(snap.history):
            self.setItem(row, 0, QStandardItem(e.show()))

# ----------------------------------------------------------------------
# Session
# ----------------------------------------------------------------------

class EngineSession(QObject):
    """Owns one emulator state and runs commands on it one at a time.

    Widgets call execute(); the session holds its mutex for the whole
    command so that two callers can never interleave a mutation.
    Accepted commands emit state_changed, rejected ones emit error with
    a message for the user. A POP from an empty stack changes nothing
    and emits nothing_popped with the register name.
    """

    state_changed = Signal()
    error = Signal(str)
    nothing_popped = Signal(str)

    def __init__(self, es=None):
        super().__init__()
        self.es = es if es is not None else em.EmulatorState()
        self._mutex = QMutex()
        # Selector choices made in the interface
        self.selected_from = "AX"
        self.selected_to = "BX"
        self.addressing_mode = arch.AddressingMode.INDEXING
        self.selection = ""
        self.direction = arch.Direction.TO_MEMORY

    def run(self, command, *args, **kwargs):
        """Run command under the mutex; returns (accepted, result), where
        result is the rejection when accepted is False."""
        self._mutex.lock()
        try:
            return True, command(self.es, *args, **kwargs)
        except common.SimulatorError as e:
            return False, e
        finally:
            self._mutex.unlock()

    def execute(self, command, *args, **kwargs):
        accepted, result = self.run(command, *args, **kwargs)
        if not accepted:
            self.error.emit(str(result))
            return None
        self.state_changed.emit()
        return result

    def snapshot(self):
        self._mutex.lock()
        try:
            return em.snapshot(self.es)
        finally:
            self._mutex.unlock()

    def set_addressing_mode(self, mode):
        m = arch.get_mode(mode)
        if m is None:
            self.error.emit(f"unknown addressing mode {mode!r}")
            return
        self.addressing_mode = m
        self.selection = ""

    def set_direction(self, direction):
        d = arch.get_direction(direction)
        if d is None:
            self.error.emit(f"unknown direction {direction!r}")
            return
        self.direction = d

    # Commands using the current selector choices

    def mov(self):
        return self.execute(em.mov_register, self.selected_from, self.selected_to)

    def xchg(self):
        return self.execute(em.xchg_registers, self.selected_from, self.selected_to)

    def mov_memory(self):
        return self.execute(em.mov_memory, self.selected_from, self.addressing_mode,
                            self.selection, self.direction)

    def xchg_memory(self):
        return self.execute(em.xchg_memory, self.selected_from, self.addressing_mode,
                            self.selection)

    def push(self):
        return self.execute(em.push, self.selected_from)

    def pop(self):
        """An empty stack emits nothing_popped instead of state_changed."""
        accepted, result = self.run(em.pop, self.selected_from)
        if not accepted:
            self.error.emit(str(result))
            return None
        if result is None:
            self.nothing_popped.emit(self.selected_from)
            return None
        self.state_changed.emit()
        return result
