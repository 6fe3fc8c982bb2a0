# script.py

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
# script.py reads a small command language, one command per line, and
# runs it against an emulator state. A semicolon starts a comment.
#
#   MOV AX, 1A2B        assign a value (also SI, DI, BP, DISP)
#   MOV BX, AX          register to register
#   MOV [SI+DISP], AX   register to memory
#   MOV AX, [SI+BX]     memory to register
#   XCHG AX, BX         XCHG AX, [BP]
#   PUSH AX             POP DX
#   RANDOM REGS         RANDOM ADDRESS
#   RESET REGS          RESET ADDRESS | MEMORY | STACK | ALL
#   CLEAR LOG
#
# The displacement always comes from DISP, so "+DISP" inside the
# brackets is optional. The addressing mode follows from the registers
# named inside the brackets.
# ----------------------------------------------------------------------

import re

import common
import arithmetic as arith
import architecture as arch
import addressing as adr
import emulator as em

class ScriptError(common.SimulatorError):
    def __init__(self, msg, line_number=None):
        super().__init__(f"line {line_number}: {msg}" if line_number else msg)
        self.line_number = line_number

# ----------------------------------------------------------------------
# Parser
# ----------------------------------------------------------------------

mem_operand_parser = re.compile(r"^\[(.*)\]$")

bank_words = {"REGS": "general", "REGISTERS": "general",
              "ADDRESS": "address", "ADR": "address"}

def mk_stmt(line_number, src_line):
    return {"lineNumber": line_number,
            "srcLine": src_line,
            "operation": "",
            "operands": []}

def parse_line(line_number, src_line):
    """Split a line into operation and operands; returns None for a
    blank or comment line."""
    s = mk_stmt(line_number, src_line)
    line = src_line
    comment_start = line.find(";")
    if comment_start != -1:
        line = line[:comment_start]
    line = line.strip()
    if not line:
        return None
    parts = line.split(None, 1)
    s["operation"] = parts[0].upper()
    if len(parts) > 1:
        s["operands"] = [op.strip() for op in parts[1].split(",") if op.strip()]
    common.mode.devlog(f"parse_line {line_number} op={s['operation']} operands={s['operands']}")
    return s

def parse_script(text):
    stmts = []
    for i, line in enumerate(text.replace("\r", "").split("\n")):
        s = parse_line(i + 1, line)
        if s is not None:
            stmts.append(s)
    return stmts

def is_mem_operand(x):
    return mem_operand_parser.match(x.strip()) is not None

def parse_mem_operand(x, line_number=None):
    """Return (mode, selection) for a bracketed memory operand."""
    m = mem_operand_parser.match(x.strip())
    if not m:
        raise ScriptError(f"{x!r} is not a memory operand", line_number)
    names = [p.strip().upper() for p in m.group(1).split("+")]
    names = [p for p in names if p and p != "DISP"]
    if not 1 <= len(names) <= 2:
        raise ScriptError(f"{x!r} must name one index or base register, or one of each",
                          line_number)
    names.sort(key=lambda r: 0 if r in arch.index_registers else 1)
    sel = "_".join(names)
    try:
        return adr.infer_mode(sel), sel
    except common.AddressingError as e:
        raise ScriptError(str(e), line_number)

def require_n_operands(s, n):
    if len(s["operands"]) != n:
        raise ScriptError(f"{s['operation']} needs {n} operand(s), got {len(s['operands'])}",
                          s["lineNumber"])

def require_word(s, i, choices):
    x = s["operands"][i].upper()
    if x not in choices:
        raise ScriptError(f"{s['operation']} expects one of {', '.join(choices)}, got {x}",
                          s["lineNumber"])
    return x

# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------

def exec_mov(es, s):
    require_n_operands(s, 2)
    a, b = s["operands"]
    if is_mem_operand(a):
        mode, sel = parse_mem_operand(a, s["lineNumber"])
        return [em.mov_to_memory(es, b, mode, sel)]
    if is_mem_operand(b):
        mode, sel = parse_mem_operand(b, s["lineNumber"])
        return [em.mov_from_memory(es, a, mode, sel)]
    if arith.is_hex4(b):
        return [em.assign_register(es, a, b)]
    return [em.mov_register(es, b, a)]

def exec_xchg(es, s):
    require_n_operands(s, 2)
    a, b = s["operands"]
    if is_mem_operand(a):
        a, b = b, a
    if is_mem_operand(b):
        mode, sel = parse_mem_operand(b, s["lineNumber"])
        return [em.xchg_memory(es, a, mode, sel)]
    return [em.xchg_registers(es, a, b)]

def exec_push(es, s):
    require_n_operands(s, 1)
    return [em.push(es, s["operands"][0])]

def exec_pop(es, s):
    require_n_operands(s, 1)
    e = em.pop(es, s["operands"][0])
    return [] if e is None else [e]

def exec_random(es, s):
    require_n_operands(s, 1)
    x = require_word(s, 0, list(bank_words))
    return em.randomize_registers(es, bank_words[x])

def exec_reset(es, s):
    require_n_operands(s, 1)
    x = require_word(s, 0, list(bank_words) + ["MEMORY", "STACK", "ALL"])
    if x in bank_words:
        return em.reset_bank(es, bank_words[x])
    elif x == "MEMORY":
        return em.reset_memory(es)
    elif x == "STACK":
        return em.reset_stack(es)
    else:
        return em.reset_all(es)

def exec_clear(es, s):
    require_n_operands(s, 1)
    require_word(s, 0, ["LOG"])
    em.clear_log(es)
    return []

dispatch_operation = {
    "MOV": exec_mov,
    "XCHG": exec_xchg,
    "PUSH": exec_push,
    "POP": exec_pop,
    "RANDOM": exec_random,
    "RESET": exec_reset,
    "CLEAR": exec_clear,
}

def execute_statement(es, s):
    f = dispatch_operation.get(s["operation"])
    if f is None:
        raise ScriptError(f"unknown operation {s['operation']}", s["lineNumber"])
    return f(es, s)

class ScriptResult:
    def __init__(self, line_number, src_line, entries=None, error=None):
        self.line_number = line_number
        self.src_line = src_line
        self.entries = entries if entries is not None else []
        self.error = error

    def ok(self):
        return self.error is None

    def show(self):
        status = f"error: {self.error}" if self.error else \
            (", ".join(e.show() for e in self.entries) or "no change")
        return f"{self.line_number:4d}  {self.src_line.strip():<24} {status}"

def run_script(es, text, keep_going=False):
    """Run every command in text. A rejected command stops the run
    unless keep_going is set, in which case it is recorded in the
    results and the next line is run."""
    results = []
    for s in parse_script(text):
        try:
            entries = execute_statement(es, s)
        except common.SimulatorError as e:
            if not keep_going:
                raise
            common.mode.errlog(f"line {s['lineNumber']}: {e}")
            results.append(ScriptResult(s["lineNumber"], s["srcLine"], error=e))
            continue
        results.append(ScriptResult(s["lineNumber"], s["srcLine"], entries))
    return results
