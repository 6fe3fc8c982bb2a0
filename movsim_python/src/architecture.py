# architecture.py

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

# --------------------------------------------------------------------
# architecture.py defines global constants and tables specifying the
# registers, addressing modes and operation kinds of the simulated
# processor
# --------------------------------------------------------------------

from enum import Enum

import common

# --------------------------------------------------------------------
# Architecture constants
# --------------------------------------------------------------------

mem_size = 65536  # number of byte cells = 2^16
address_mask = 0xFFFF
words_per_line = 8

word_digits = 4
byte_digits = 2

zero_word = "0000"
zero_byte = "00"

# Each stack element is one word, which occupies two bytes

stack_word_size = 2

# --------------------------------------------------------------------
# Registers
# --------------------------------------------------------------------

# The general registers take part in MOV, XCHG, PUSH and POP. The
# address registers are used only to compute effective addresses and
# can be assigned, randomized and reset, but are never MOV/XCHG
# operands. BX is a general register that can also serve as a base.

class GenReg(Enum):
    AX = "AX"
    BX = "BX"
    CX = "CX"
    DX = "DX"

class AdrReg(Enum):
    SI = "SI"
    DI = "DI"
    BP = "BP"
    DISP = "DISP"

index_registers = ("SI", "DI")
base_registers = ("BX", "BP")

def lookup_register(kind, name):
    """Return the member of register enum kind named name (any case),
    or None if there is no such register."""
    if not isinstance(name, str):
        return None
    try:
        return kind(name.strip().upper())
    except ValueError:
        return None

# --------------------------------------------------------------------
# Addressing modes and directions
# --------------------------------------------------------------------

class AddressingMode(Enum):
    INDEXING = "indexing"      # SI or DI, plus DISP
    BASE = "base"              # BX or BP, plus DISP
    INDEX_BASE = "index-base"  # SI or DI, plus BX or BP, plus DISP

class Direction(Enum):
    TO_MEMORY = "toMemory"
    FROM_MEMORY = "fromMemory"

# The register selections that are legal in each addressing mode.
# Compound index-base selections join the index and base register
# names with an underscore.

mode_selections = {
    AddressingMode.INDEXING: ("SI", "DI"),
    AddressingMode.BASE: ("BX", "BP"),
    AddressingMode.INDEX_BASE: ("SI_BX", "SI_BP", "DI_BX", "DI_BP"),
}

def get_mode(x):
    if isinstance(x, AddressingMode):
        return x
    for m in AddressingMode:
        if isinstance(x, str) and x.strip().lower() == m.value.lower():
            return m
    return None

def get_direction(x):
    if isinstance(x, Direction):
        return x
    for d in Direction:
        if isinstance(x, str) and x.strip().lower() == d.value.lower():
            return d
    return None

def show_selection(sel):
    return sel.replace("_", "+")

# --------------------------------------------------------------------
# Operation kinds
# --------------------------------------------------------------------

# The kind recorded in each operation log entry. ASSIGN keeps the tag
# PRZYPISZ used by the history display of the classroom tool.

class OpKind(Enum):
    RANDOM = "RANDOM"
    ASSIGN = "PRZYPISZ"
    RESET = "RESET"
    MOV = "MOV"
    XCHG = "XCHG"
    MOV_TO_MEMORY = "MOV_TO_MEMORY"
    MOV_FROM_MEMORY = "MOV_FROM_MEMORY"
    XCHG_MEMORY = "XCHG_MEMORY"
    STACK = "STACK"

# Label shown in the last column of a history line

kind_label = {
    OpKind.RANDOM: "RANDOM",
    OpKind.ASSIGN: "PRZYPISZ",
    OpKind.RESET: "RESET",
    OpKind.MOV: "MOV",
    OpKind.XCHG: "XCHG",
    OpKind.MOV_TO_MEMORY: "MOV",
    OpKind.MOV_FROM_MEMORY: "MOV",
    OpKind.XCHG_MEMORY: "XCHG",
    OpKind.STACK: "STACK",
}

# Value origins accepted by the immediate assignment command

assignment_kinds = (OpKind.ASSIGN, OpKind.RANDOM)

def get_kind(x):
    if isinstance(x, OpKind):
        return x
    for k in OpKind:
        if x == k.value or x == k.name:
            return k
    common.mode.devlog(f"get_kind: unknown kind {x}")
    return None
