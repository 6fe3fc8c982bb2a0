import pytest

import common
import architecture as arch
import emulator as em
import script
import main

program = """
; move a word through memory and the stack
MOV AX, 1a2b
MOV SI, 0010
MOV DISP, 0005
MOV [SI+DISP], AX     ; stored at 0015
MOV BX, [SI]
PUSH BX
POP CX
XCHG AX, DX
"""

def test_parse_script_skips_comments():
    stmts = script.parse_script(program)
    assert len(stmts) == 8
    assert stmts[0]["operation"] == "MOV"
    assert stmts[0]["operands"] == ["AX", "1a2b"]
    assert stmts[3]["operands"] == ["[SI+DISP]", "AX"]
    assert stmts[3]["lineNumber"] == 6

@pytest.mark.parametrize("operand,mode,sel", [
    ("[SI]", arch.AddressingMode.INDEXING, "SI"),
    ("[di+disp]", arch.AddressingMode.INDEXING, "DI"),
    ("[BP + DISP]", arch.AddressingMode.BASE, "BP"),
    ("[BX+SI]", arch.AddressingMode.INDEX_BASE, "SI_BX"),
    ("[DI+BP+DISP]", arch.AddressingMode.INDEX_BASE, "DI_BP"),
])
def test_parse_mem_operand(operand, mode, sel):
    assert script.parse_mem_operand(operand) == (mode, sel)

@pytest.mark.parametrize("operand", ["[BX+BP]", "[SI+DI]", "[AX]", "[DISP]", "[]", "SI"])
def test_bad_mem_operand(operand):
    with pytest.raises(script.ScriptError):
        script.parse_mem_operand(operand, 3)

def test_run_script():
    es = em.EmulatorState()
    results = script.run_script(es, program)
    assert len(results) == 8
    assert all(r.ok() for r in results)
    assert es.regs.snapshot() == {"AX": "0000", "BX": "1A2B", "CX": "1A2B", "DX": "1A2B"}
    assert es.adr_regs.get("SI") == "0010"
    assert es.mem.read_word(0x0015) == "1A2B"
    assert es.stack.values == []
    assert len(es.log) == 8
    assert es.log.entries[0].show() == "XCHG AX, DX  XCHG"

def test_xchg_with_memory_either_side():
    es = em.EmulatorState()
    script.run_script(es, "MOV AX, 00AA\nMOV [DI], AX\nMOV CX, 00CC\nXCHG [DI], CX")
    assert es.regs.get("CX") == "00AA"
    assert es.mem.read_word(0) == "00CC"

def test_pop_empty_reports_no_change():
    es = em.EmulatorState()
    results = script.run_script(es, "POP AX")
    assert results[0].entries == []
    assert "no change" in results[0].show()
    assert len(es.log) == 0

def test_random_reset_and_clear():
    es = em.EmulatorState()
    results = script.run_script(es, "RANDOM REGS\nRANDOM ADDRESS\nRESET ALL\nCLEAR LOG")
    assert len(results[0].entries) == 4
    assert len(results[2].entries) == 10
    assert len(es.log) == 0
    assert es.regs.get("AX") == "0000"

def test_rejected_line_stops_the_run():
    es = em.EmulatorState()
    with pytest.raises(common.MemoryReadError):
        script.run_script(es, "MOV AX, 1111\nMOV BX, [SI]\nMOV CX, 2222")
    assert es.regs.get("AX") == "1111"
    assert es.regs.get("CX") == "0000"

def test_keep_going():
    es = em.EmulatorState()
    results = script.run_script(es, "MOV AX, 12345\nFOO AX\nMOV CX, 2222", keep_going=True)
    assert [r.ok() for r in results] == [False, False, True]
    assert isinstance(results[1].error, script.ScriptError)
    assert results[1].error.line_number == 2
    assert es.regs.get("CX") == "2222"

@pytest.mark.parametrize("line", ["MOV AX", "PUSH", "RESET EVERYTHING", "CLEAR REGS", "RANDOM"])
def test_malformed_lines(line):
    es = em.EmulatorState()
    with pytest.raises(script.ScriptError):
        script.run_script(es, line)

# ----------------------------------------------------------------------
# Command line
# ----------------------------------------------------------------------

def test_main_resolve(capsys):
    status = main.main(["resolve", "index-base", "SI+BP",
                        "--si", "FFFF", "--bp", "FFFF", "--disp", "0002"])
    assert status == 0
    assert "0001 (computed as SI+BP+0002)" in capsys.readouterr().out

def test_main_resolve_bad_selection(capsys):
    assert main.main(["resolve", "base", "SI"]) == 1
    assert "Error" in capsys.readouterr().out

def test_main_run(tmp_path, capsys):
    f = tmp_path / "prog.mov"
    f.write_text(program)
    assert main.main(["run", str(f), "--history"]) == 0
    out = capsys.readouterr().out
    assert "Operation History" in out
    assert "MOV [SI+0005], AX  MOV" in out

def test_main_run_reports_failure(tmp_path, capsys):
    f = tmp_path / "bad.mov"
    f.write_text("MOV AX, [SI]\n")
    assert main.main(["run", str(f)]) == 1
    assert "Stopped" in capsys.readouterr().out

def test_main_missing_file(tmp_path):
    assert main.main(["run", str(tmp_path / "none.mov")]) == 1
