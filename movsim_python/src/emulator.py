# emulator.py

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
# emulator.py defines the semantics of the data movement instructions
# MOV, XCHG, PUSH and POP, together with register assignment and reset.
# -------------------------------------------------------------------------

# Every command takes the emulator state es and its operands, checks
# everything that can be rejected, and only then changes state and
# appends to the operation log. A rejected command raises a
# SimulatorError and leaves es exactly as it was.

import random
import types
from dataclasses import dataclass
from typing import Mapping, Tuple

import common
import arithmetic as arith
import architecture as arch
import state as st
import addressing as adr

# ------------------------------------------------------------------------
# Emulator state
# ------------------------------------------------------------------------

class EmulatorState:
    def __init__(self, options=None, rng=None):
        self.options = options if options is not None else common.Options()
        self.rng = rng if rng is not None else random.Random()
        self.regs = st.GeneralRegisters()
        self.adr_regs = st.AddressRegisters()
        self.mem = st.Memory()
        self.stack = st.Stack(self.options.stack_top, self.options.stack_grows_down)
        self.log = st.OperationLog()
        common.mode.devlog(f"new EmulatorState {self.options.show()}")

def bank_of(es, which):
    if which in ("general", "regs", arch.GenReg):
        return es.regs
    elif which in ("address", "adr", arch.AdrReg):
        return es.adr_regs
    raise common.ValidationError(f"unknown register bank {which!r}", "bank", which)

def find_bank(es, name):
    """The bank holding the register called name."""
    if arch.lookup_register(arch.GenReg, name) is not None:
        return es.regs
    if arch.lookup_register(arch.AdrReg, name) is not None:
        return es.adr_regs
    raise common.ValidationError(f"unknown register {name!r}", "register", name)

def reject(e):
    common.mode.errlog(f"rejected: {e}")
    raise e

# ------------------------------------------------------------------------
# Assignment, random values and reset
# ------------------------------------------------------------------------

def assign_register(es, name, value, origin=arch.OpKind.ASSIGN):
    """MOV of an immediate value into a register of either bank. origin
    says where the value came from: ASSIGN (typed by the user) or
    RANDOM."""
    kind = arch.get_kind(origin)
    if kind not in arch.assignment_kinds:
        reject(common.ValidationError(f"an assigned value cannot have origin {origin!r}",
                                      "origin", origin))
    try:
        bank = find_bank(es, name)
        r = bank.register(name)
        x = arith.canonical_hex4(value, r.value)
    except common.ValidationError as e:
        reject(e)
    bank.update(r, x)
    return es.log.add("MOV", kind, r.value, value=x)

def assign_registers(es, which, values, origin=arch.OpKind.ASSIGN):
    """Assign several registers of one bank at once. Empty values are
    skipped. If any supplied value is invalid nothing is assigned."""
    bank = bank_of(es, which)
    kind = arch.get_kind(origin)
    if kind not in arch.assignment_kinds:
        reject(common.ValidationError(f"an assigned value cannot have origin {origin!r}",
                                      "origin", origin))
    supplied = {k: v for k, v in values.items() if v not in (None, "")}
    if not supplied:
        reject(common.ValidationError("no new values were given", "values", values))
    try:
        checked = {bank.register(k): v for k, v in supplied.items()}
        stored = bank.set_all(checked)
    except common.ValidationError as e:
        reject(e)
    return [es.log.add("MOV", kind, name, value=stored[name])
            for name in bank.names() if name in stored]

def randomize_registers(es, which, values=None):
    """Set every register of a bank to a random word. The values may be
    generated by the caller; otherwise they are drawn from es.rng."""
    bank = bank_of(es, which)
    if values is None:
        values = bank.generate_random(es.rng)
    try:
        values = {bank.register(k).value: v for k, v in values.items()}
    except common.ValidationError as e:
        reject(e)
    missing = [name for name in bank.names() if values.get(name) in (None, "")]
    if missing:
        reject(common.ValidationError(f"no random value for {', '.join(missing)}",
                                      "values", values))
    return assign_registers(es, which, values, arch.OpKind.RANDOM)

def reset_bank(es, which):
    bank = bank_of(es, which)
    bank.reset()
    return [es.log.add("MOV", arch.OpKind.RESET, name, value=arch.zero_word)
            for name in bank.names()]

def reset_registers(es):
    return reset_bank(es, "general")

def reset_address_registers(es):
    return reset_bank(es, "address")

def reset_memory(es):
    es.mem.reset()
    return [es.log.add("RESET", arch.OpKind.RESET, "MEMORY")]

def reset_stack(es):
    es.stack.reset()
    return [es.log.add("RESET", arch.OpKind.RESET, "STACK")]

def reset_all(es):
    common.mode.devlog("reset the processor")
    return (reset_registers(es) + reset_address_registers(es) +
            reset_memory(es) + reset_stack(es))

def clear_log(es):
    es.log.clear()

# ------------------------------------------------------------------------
# Register to register
# ------------------------------------------------------------------------

# Moving a register onto itself is a valid MOV and is logged.

def mov_register(es, frm, to):
    try:
        src = es.regs.register(frm)
        dst = es.regs.register(to)
    except common.ValidationError as e:
        reject(e)
    x = es.regs.move_register_to_register(src, dst)
    return es.log.add("MOV", arch.OpKind.MOV, dst.value,
                      second_register=src.value, value=x)

def xchg_registers(es, first, second):
    try:
        a = es.regs.register(first)
        b = es.regs.register(second)
    except common.ValidationError as e:
        reject(e)
    before = f"{es.regs.get(a)}<->{es.regs.get(b)}"
    es.regs.exchange(a, b)
    return es.log.add("XCHG", arch.OpKind.XCHG, a.value,
                      second_register=b.value, value=before)

# ------------------------------------------------------------------------
# Register and memory
# ------------------------------------------------------------------------

def effective_address(es, mode, sel):
    try:
        return adr.resolve(mode, sel, es.adr_regs.snapshot(), es.regs.get(arch.GenReg.BX))
    except common.AddressingError as e:
        reject(e)

def fetch_word(es, ea):
    x = es.mem.read_word(ea.address)
    if es.options.reject_zero_reads and arith.zero_word_p(x):
        reject(common.MemoryReadError(f"there is no value at address {ea.hex()}",
                                      ea.address))
    return x

def mov_to_memory(es, reg, mode, sel):
    try:
        r = es.regs.register(reg)
    except common.ValidationError as e:
        reject(e)
    ea = effective_address(es, mode, sel)
    x = es.regs.get(r)
    source = st.Provenance(ea.show(), f"value from register {r.value}: {x}")
    es.mem.write_word(ea.address, x, source)
    return es.log.add("MOV", arch.OpKind.MOV_TO_MEMORY, r.value,
                      pointer=ea.composition, address=ea.address, value=x,
                      mode=arch.get_mode(mode), selection=adr.normalize_selection(sel))

def mov_from_memory(es, reg, mode, sel):
    try:
        r = es.regs.register(reg)
    except common.ValidationError as e:
        reject(e)
    ea = effective_address(es, mode, sel)
    x = fetch_word(es, ea)
    es.regs.update(r, x)
    return es.log.add("MOV", arch.OpKind.MOV_FROM_MEMORY, r.value,
                      pointer=ea.composition, address=ea.address, value=x,
                      mode=arch.get_mode(mode), selection=adr.normalize_selection(sel))

def mov_memory(es, reg, mode, sel, direction):
    d = arch.get_direction(direction)
    if d == arch.Direction.TO_MEMORY:
        return mov_to_memory(es, reg, mode, sel)
    elif d == arch.Direction.FROM_MEMORY:
        return mov_from_memory(es, reg, mode, sel)
    reject(common.ValidationError(f"unknown direction {direction!r}", "direction", direction))

def xchg_memory(es, reg, mode, sel):
    try:
        r = es.regs.register(reg)
    except common.ValidationError as e:
        reject(e)
    ea = effective_address(es, mode, sel)
    m = fetch_word(es, ea)
    x = es.regs.get(r)
    swapped = f"{x}<->{m}"
    source = st.Provenance(ea.show(), f"exchanged with register {r.value}: {swapped}")
    es.mem.write_word(ea.address, x, source)
    es.regs.update(r, m)
    return es.log.add("XCHG", arch.OpKind.XCHG_MEMORY, r.value,
                      pointer=ea.composition, address=ea.address, value=swapped,
                      mode=arch.get_mode(mode), selection=adr.normalize_selection(sel))

# ------------------------------------------------------------------------
# Stack
# ------------------------------------------------------------------------

def push(es, reg):
    try:
        r = es.regs.register(reg)
    except common.ValidationError as e:
        reject(e)
    x = es.regs.get(r)
    es.stack.push(x)
    return es.log.add("PUSH", arch.OpKind.STACK, r.value, value=x)

def pop(es, reg):
    """Pop into reg. Returns None, and logs nothing, if the stack is
    empty."""
    try:
        r = es.regs.register(reg)
    except common.ValidationError as e:
        reject(e)
    x = es.stack.pop()
    if x is None:
        common.mode.devlog(f"pop {r.value}: nothing to pop")
        return None
    es.regs.update(r, x)
    return es.log.add("POP", arch.OpKind.STACK, r.value, value=x)

# ------------------------------------------------------------------------
# Snapshots
# ------------------------------------------------------------------------

@dataclass(frozen=True)
class Snapshot:
    registers: Mapping[str, str]
    address_registers: Mapping[str, str]
    memory: Tuple[st.MemoryCell, ...]
    stack: st.StackSnapshot
    history: Tuple[st.LogEntry, ...]

    def machine_state(self):
        """Everything except the log, for comparing two machines."""
        return (dict(self.registers), dict(self.address_registers),
                {c.address: c.value for c in self.memory}, self.stack)

def snapshot(es):
    return Snapshot(types.MappingProxyType(es.regs.snapshot()),
                    types.MappingProxyType(es.adr_regs.snapshot()),
                    es.mem.displayed_cells(),
                    es.stack.snapshot(),
                    es.log.snapshot())

# ------------------------------------------------------------------------
# Replay
# ------------------------------------------------------------------------

# Replaying a log, oldest entry first, onto a fresh machine rebuilds the
# machine state. A RESET entry for a single register is replayed as a
# reset of that register only.

def replay_entry(es, e):
    k = e.kind
    if k in arch.assignment_kinds:
        assign_register(es, e.register, e.value, k)
    elif k == arch.OpKind.RESET:
        if e.register == "MEMORY":
            reset_memory(es)
        elif e.register == "STACK":
            reset_stack(es)
        else:
            bank = find_bank(es, e.register)
            bank.update(e.register, arch.zero_word)
            es.log.add("MOV", arch.OpKind.RESET, e.register, value=arch.zero_word)
    elif k == arch.OpKind.MOV:
        mov_register(es, e.second_register, e.register)
    elif k == arch.OpKind.XCHG:
        xchg_registers(es, e.register, e.second_register)
    elif k == arch.OpKind.MOV_TO_MEMORY:
        mov_to_memory(es, e.register, e.mode, e.selection)
    elif k == arch.OpKind.MOV_FROM_MEMORY:
        mov_from_memory(es, e.register, e.mode, e.selection)
    elif k == arch.OpKind.XCHG_MEMORY:
        xchg_memory(es, e.register, e.mode, e.selection)
    elif k == arch.OpKind.STACK:
        if e.operation == "PUSH":
            push(es, e.register)
        else:
            pop(es, e.register)
    else:
        common.indicate_error(f"replay: unknown kind {k}")

def replay(entries, options=None):
    """Build a new machine by replaying entries in chronological order."""
    es = EmulatorState(options)
    for e in entries:
        replay_entry(es, e)
    return es

# ------------------------------------------------------------------------
# Console output
# ------------------------------------------------------------------------

def dump_registers(es):
    print("\n--- Registers ---")
    for name, value in es.regs.snapshot().items():
        print(f"{name}: {arith.show_word(value)}")
    print("--- Address registers ---")
    for name, value in es.adr_regs.snapshot().items():
        print(f"{name}: {arith.show_word(value)}")
    print("-----------------")

def dump_memory(es, start_addr=0, end_addr=arch.mem_size):
    print(f"\n--- Memory (Addresses {arith.word_to_hex4(start_addr)} to "
          f"{arith.word_to_hex4(end_addr-1)}) ---")
    current_addr = start_addr
    while current_addr < end_addr:
        line_output = f"MEM[{arith.word_to_hex4(current_addr)}]: "
        for i in range(arch.words_per_line):
            if current_addr + i < end_addr:
                line_output += f"{es.mem.read(current_addr + i)} "
            else:
                break
        print(line_output)
        current_addr += arch.words_per_line
    print("-----------------")

def dump_written_memory(es):
    cells = es.mem.displayed_cells()
    if not cells:
        print("\n--- No Memory Written ---")
        return
    print("\n--- Written Memory (most recent first) ---")
    for c in cells:
        print(c.show())
    print("--------------------------------")

def dump_stack(es):
    print(f"\n--- Stack (SP={arith.word_to_hex4(es.stack.pointer)}) ---")
    for i, value in enumerate(es.stack.values):
        print(f"{arith.word_to_hex4(es.stack.slot_address(i))}: {value}")
    print("-----------------")

def dump_history(es):
    print("\n--- Operation History (most recent first) ---")
    for e in es.log.entries:
        print(e.show())
    print("--------------------------------")
