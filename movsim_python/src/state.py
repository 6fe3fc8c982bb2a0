# state.py

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

# -------------------------------------------------------------------------
# state.py defines the stateful containers of the processor: the two
# register banks, memory with its derived view of written cells, the
# stack, and the operation log.
# -------------------------------------------------------------------------

import time
import uuid
from dataclasses import dataclass
from typing import Optional, Tuple

import common
import arithmetic as arith
import architecture as arch

# -------------------------------------------------------------------------
# Register banks
# -------------------------------------------------------------------------

# A bank maps each member of a closed register enum to a canonical hex
# word. The bank validates what it stores but does not log; logging is
# the job of the engine.

class RegisterBank:
    def __init__(self, kind, bank_name):
        self.kind = kind
        self.bank_name = bank_name
        self.values = {}
        self.reset()

    def names(self):
        return [r.value for r in self.kind]

    def register(self, name):
        r = name if isinstance(name, self.kind) else arch.lookup_register(self.kind, name)
        if r is None:
            raise common.ValidationError(
                f"{name!r} is not a register of the {self.bank_name} bank "
                f"({', '.join(self.names())})", "register", name)
        return r

    def get(self, name):
        return self.values[self.register(name)]

    def update(self, name, value):
        r = self.register(name)
        x = arith.canonical_hex4(value, r.value)
        self.values[r] = x
        common.mode.devlog(f"{self.bank_name}: {r.value} := {x}")
        return x

    def set_all(self, mapping):
        """Store several values at once. Every name and value is checked
        before anything is stored."""
        checked = []
        for name, value in mapping.items():
            r = self.register(name)
            checked.append((r, arith.canonical_hex4(value, r.value)))
        for r, x in checked:
            self.values[r] = x
        return {r.value: x for r, x in checked}

    def reset(self):
        for r in self.kind:
            self.values[r] = arch.zero_word

    def generate_random(self, rng=None):
        return {r.value: arith.random_hex4(rng) for r in self.kind}

    def move_register_to_register(self, frm, to):
        src = self.register(frm)
        dst = self.register(to)
        self.values[dst] = self.values[src]
        return self.values[dst]

    def exchange(self, first, second):
        a = self.register(first)
        b = self.register(second)
        temp = self.values[a]
        self.values[a] = self.values[b]
        self.values[b] = temp

    def snapshot(self):
        return {r.value: self.values[r] for r in self.kind}

    def show(self):
        return " ".join(f"{r.value}={self.values[r]}" for r in self.kind)

class GeneralRegisters(RegisterBank):
    def __init__(self):
        super().__init__(arch.GenReg, "general")

class AddressRegisters(RegisterBank):
    def __init__(self):
        super().__init__(arch.AdrReg, "address")

# -------------------------------------------------------------------------
# Memory
# -------------------------------------------------------------------------

# Provenance records how an address was computed and where a written
# value came from; it is shown beside the cell in the memory view.

@dataclass(frozen=True)
class Provenance:
    address_calculation: str
    value_source: str

@dataclass(frozen=True)
class MemoryCell:
    address: int
    value: str
    provenance: Optional[Provenance] = None

    def show(self):
        xs = f"{arith.word_to_hex4(self.address)}: {self.value}"
        if self.provenance:
            xs += (f"  [address {self.provenance.address_calculation};"
                   f" value {self.provenance.value_source}]")
        return xs

class Memory:
    """65536 byte cells plus the view of cells that differ from "00".

    The view is ordered most recently written first. It is patched on
    every write and always equals the filter of the backing cells;
    check_view() verifies this.
    """

    def __init__(self):
        self.reset()

    def reset(self):
        self.cells = [arch.zero_byte] * arch.mem_size
        self.displayed = []

    def check_address(self, a):
        if not isinstance(a, int) or not 0 <= a < arch.mem_size:
            raise IndexError(f"memory address out of range: {a!r}")
        return a

    def read(self, a):
        return self.cells[self.check_address(a)]

    def write(self, a, value, provenance=None):
        self.check_address(a)
        x = arith.canonical_hex2(value)
        self.cells[a] = x
        self.displayed = [c for c in self.displayed if c.address != a]
        if x != arch.zero_byte:
            self.displayed.insert(0, MemoryCell(a, x, provenance))
        common.mode.devlog(f"mem[{arith.word_to_hex4(a)}] := {x}")

    # A word occupies the cell at a (low byte) and the next cell (high
    # byte), wrapping at the top of memory. The high byte is written
    # first so that the view lists the lower address first.

    def read_word(self, a):
        lo = self.read(a)
        hi = self.read(arith.limit16(a + 1))
        return arith.bytes_to_word(lo, hi)

    def write_word(self, a, value, provenance=None):
        self.check_address(a)
        lo, hi = arith.word_to_bytes(value)
        self.write(arith.limit16(a + 1), hi, provenance)
        self.write(a, lo, provenance)

    def displayed_cells(self):
        return tuple(self.displayed)

    def scan(self):
        """Recompute the written cells from the backing array."""
        return {a: x for a, x in enumerate(self.cells) if x != arch.zero_byte}

    def check_view(self):
        view = {c.address: c.value for c in self.displayed}
        ok = view == self.scan() and len(view) == len(self.displayed)
        if not ok:
            common.indicate_error("memory view out of sync with cells")
        return ok

# -------------------------------------------------------------------------
# Stack
# -------------------------------------------------------------------------

def stack_slot_address(pointer, i, grows_down=True):
    """Address of the i-th stack value counting from the most recent."""
    if grows_down:
        return arith.limit16(pointer + i * arch.stack_word_size)
    return arith.limit16(pointer - (i + 1) * arch.stack_word_size)

@dataclass(frozen=True)
class StackSnapshot:
    values: Tuple[str, ...]
    pointer: int

class Stack:
    """Words pushed so far, most recent first, and the stack pointer.

    The pointer moves by one word (two bytes) per push or pop: down from
    top when grows_down, otherwise up from top.
    """

    def __init__(self, top=0xFFFE, grows_down=True):
        self.top = top
        self.grows_down = grows_down
        self.reset()

    def reset(self):
        self.values = []
        self.pointer = self.top

    def step(self):
        return -arch.stack_word_size if self.grows_down else arch.stack_word_size

    def push(self, value):
        x = arith.canonical_hex4(value)
        self.values.insert(0, x)
        self.pointer += self.step()
        common.mode.devlog(f"push {x} sp={self.pointer:04X}")

    def pop(self):
        if not self.values:
            common.mode.devlog("pop: stack is empty")
            return None
        x = self.values.pop(0)
        self.pointer -= self.step()
        common.mode.devlog(f"pop {x} sp={self.pointer:04X}")
        return x

    def peek(self):
        return self.values[0] if self.values else None

    def is_empty(self):
        return not self.values

    def slot_address(self, i):
        return stack_slot_address(self.pointer, i, self.grows_down)

    def snapshot(self):
        return StackSnapshot(tuple(self.values), self.pointer)

# -------------------------------------------------------------------------
# Operation log
# -------------------------------------------------------------------------

# An entry is written once and never changed. Besides what the history
# line shows, it records the addressing mode and selection so that the
# log can be replayed.

@dataclass(frozen=True)
class LogEntry:
    id: str
    timestamp: float
    operation: str
    kind: arch.OpKind
    register: str
    second_register: Optional[str] = None
    pointer: Optional[str] = None
    address: Optional[int] = None
    value: Optional[str] = None
    mode: Optional[arch.AddressingMode] = None
    selection: Optional[str] = None

    def command(self):
        k = self.kind
        if k in (arch.OpKind.MOV, arch.OpKind.XCHG):
            return f"{self.operation} {self.register}, {self.second_register}"
        elif k == arch.OpKind.MOV_TO_MEMORY:
            return f"{self.operation} [{self.pointer}], {self.register}"
        elif k in (arch.OpKind.MOV_FROM_MEMORY, arch.OpKind.XCHG_MEMORY):
            return f"{self.operation} {self.register}, [{self.pointer}]"
        elif k == arch.OpKind.STACK:
            return f"{self.operation} {self.register}"
        elif self.value is None:
            return f"{self.operation} {self.register}"
        else:
            return f"{self.operation} {self.register}, {self.value}"

    def show(self):
        return f"{self.command()}  {arch.kind_label[self.kind]}"

class OperationLog:
    def __init__(self):
        self.entries = []
        self.last_time = 0.0

    def add(self, operation, kind, register, **fields):
        now = max(time.time(), self.last_time)
        self.last_time = now
        e = LogEntry(str(uuid.uuid4()), now, operation, kind, register, **fields)
        self.entries.insert(0, e)
        common.mode.devlog(f"log: {e.show()}")
        return e

    def clear(self):
        self.entries = []

    def snapshot(self):
        return tuple(self.entries)

    def chronological(self):
        return list(reversed(self.entries))

    def __len__(self):
        return len(self.entries)

    def show(self):
        return "\n".join(e.show() for e in self.entries)
