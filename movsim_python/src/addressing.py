# addressing.py

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
# addressing.py computes effective addresses. It is a pure function of
# the addressing mode, the register selection, the address registers
# and BX; it never touches memory.
# -------------------------------------------------------------------------

from dataclasses import dataclass

import common
import arithmetic as arith
import architecture as arch

@dataclass(frozen=True)
class EffectiveAddress:
    address: int
    composition: str

    def hex(self):
        return arith.word_to_hex4(self.address)

    def show(self):
        return f"{self.hex()} (computed as {self.composition})"

# -------------------------------------------------------------------------
# Register selections
# -------------------------------------------------------------------------

def selections(mode):
    m = arch.get_mode(mode)
    if m is None:
        raise common.AddressingError(f"unknown addressing mode {mode!r}")
    return arch.mode_selections[m]

def normalize_selection(sel):
    if not isinstance(sel, str):
        return ""
    return sel.upper().replace(" ", "").replace("+", "_")

def split_selection(mode, sel):
    """Return (mode, index_name, base_name) for a selection that is legal
    in mode; either name is None when the mode does not use it."""
    m = arch.get_mode(mode)
    if m is None:
        raise common.AddressingError(f"unknown addressing mode {mode!r}")
    s = normalize_selection(sel)
    if not s:
        raise common.AddressingError(f"no register selected for {m.value} addressing")
    if s not in arch.mode_selections[m]:
        legal = ", ".join(arch.show_selection(x) for x in arch.mode_selections[m])
        raise common.AddressingError(
            f"{sel!r} cannot be used in {m.value} addressing (use one of {legal})")
    if m == arch.AddressingMode.INDEXING:
        return m, s, None
    elif m == arch.AddressingMode.BASE:
        return m, None, s
    else:
        index, base = s.split("_")
        return m, index, base

def infer_mode(sel):
    """Find the addressing mode in which sel is a legal selection."""
    s = normalize_selection(sel)
    for m, xs in arch.mode_selections.items():
        if s in xs:
            return m
    raise common.AddressingError(f"{sel!r} is not an index or base register selection")

# -------------------------------------------------------------------------
# Effective address
# -------------------------------------------------------------------------

def register_word(name, adr, bx):
    h = bx if name == "BX" else adr.get(name)
    if not arith.is_hex4(h):
        raise common.AddressingError(f"register {name} holds {h!r}, not a hex word")
    return arith.hex4_to_word(h)

def resolve(mode, sel, adr, bx):
    """Compute the effective address.

    adr maps the address register names SI, DI, BP and DISP to hex
    words; bx is the value of the general register BX. The sum wraps
    modulo 65536.
    """
    m, index, base = split_selection(mode, sel)
    disp = adr.get("DISP")
    if not arith.is_hex4(disp):
        raise common.AddressingError(f"displacement must be a 4-digit hex number, got {disp!r}")
    disp = disp.upper()
    parts = [r for r in (index, base) if r is not None]
    a = arith.bin_add(*[register_word(r, adr, bx) for r in parts], arith.hex4_to_word(disp))
    composition = "+".join(parts + [disp])
    common.mode.devlog(f"resolve {m.value} {composition} = {arith.word_to_hex4(a)}")
    return EffectiveAddress(a, composition)
