import dataclasses
import random

import pytest

import common
import architecture as arch
import state as st

# ----------------------------------------------------------------------
# Register banks
# ----------------------------------------------------------------------

def test_bank_starts_at_zero():
    regs = st.GeneralRegisters()
    assert regs.snapshot() == {"AX": "0000", "BX": "0000", "CX": "0000", "DX": "0000"}
    adr = st.AddressRegisters()
    assert adr.snapshot() == {"SI": "0000", "DI": "0000", "BP": "0000", "DISP": "0000"}

def test_update_stores_canonical_form():
    regs = st.GeneralRegisters()
    assert regs.update("ax", "1a2b") == "1A2B"
    assert regs.get("AX") == "1A2B"
    assert regs.get(arch.GenReg.AX) == "1A2B"

def test_update_rejects_bad_value_without_change():
    regs = st.GeneralRegisters()
    regs.update("BX", "00FF")
    with pytest.raises(common.ValidationError):
        regs.update("BX", "XYZ1")
    assert regs.get("BX") == "00FF"

def test_trailing_newline_is_not_a_word():
    regs = st.GeneralRegisters()
    with pytest.raises(common.ValidationError):
        regs.update("AX", "1A2B\n")
    assert regs.get("AX") == "0000"
    s = st.Stack()
    with pytest.raises(common.ValidationError):
        s.push("1234\n")
    assert s.values == []
    assert s.pointer == 0xFFFE
    with pytest.raises(common.ValidationError):
        st.Memory().write(0, "FF\n")

def test_unknown_register():
    regs = st.GeneralRegisters()
    with pytest.raises(common.ValidationError):
        regs.update("SI", "0001")
    with pytest.raises(common.ValidationError):
        st.AddressRegisters().get("AX")

def test_reset_restores_initial_bank():
    regs = st.GeneralRegisters()
    regs.update("AX", "1234")
    regs.update("DX", "FFFF")
    regs.reset()
    assert regs.snapshot() == st.GeneralRegisters().snapshot()
    regs.reset()
    assert regs.snapshot() == st.GeneralRegisters().snapshot()

def test_exchange_is_its_own_inverse():
    regs = st.GeneralRegisters()
    regs.update("AX", "1111")
    regs.update("CX", "2222")
    regs.exchange("AX", "CX")
    assert regs.get("AX") == "2222"
    assert regs.get("CX") == "1111"
    regs.exchange("AX", "CX")
    assert regs.get("AX") == "1111"
    assert regs.get("CX") == "2222"

def test_move_register_to_register():
    regs = st.GeneralRegisters()
    regs.update("AX", "1A2B")
    regs.move_register_to_register("AX", "BX")
    assert regs.get("BX") == "1A2B"
    assert regs.get("AX") == "1A2B"
    regs.move_register_to_register("AX", "AX")
    assert regs.get("AX") == "1A2B"

def test_set_all_is_all_or_nothing():
    regs = st.GeneralRegisters()
    with pytest.raises(common.ValidationError):
        regs.set_all({"AX": "1111", "BX": "nope"})
    assert regs.get("AX") == "0000"
    assert regs.set_all({"ax": "1111", "BX": "abcd"}) == {"AX": "1111", "BX": "ABCD"}

def test_generate_random_does_not_mutate():
    adr = st.AddressRegisters()
    values = adr.generate_random(random.Random(3))
    assert set(values) == {"SI", "DI", "BP", "DISP"}
    assert all(len(v) == 4 for v in values.values())
    assert adr.snapshot() == st.AddressRegisters().snapshot()

# ----------------------------------------------------------------------
# Memory
# ----------------------------------------------------------------------

def test_memory_write_and_read():
    mem = st.Memory()
    assert mem.read(0x0015) == "00"
    mem.write(0x0015, "ff")
    assert mem.read(0x0015) == "FF"
    cells = mem.displayed_cells()
    assert len(cells) == 1
    assert cells[0].address == 0x0015
    assert cells[0].value == "FF"

def test_memory_view_most_recent_first():
    mem = st.Memory()
    mem.write(1, "01")
    mem.write(2, "02")
    mem.write(1, "11")
    assert [c.address for c in mem.displayed_cells()] == [1, 2]
    assert mem.displayed_cells()[0].value == "11"

def test_writing_zero_removes_cell_from_view():
    mem = st.Memory()
    mem.write(7, "AA")
    mem.write(7, "00")
    assert mem.displayed_cells() == ()
    assert mem.check_view()

def test_memory_view_matches_cells():
    mem = st.Memory()
    rng = random.Random(11)
    for _ in range(300):
        a = rng.randrange(0, 64)
        mem.write(a, rng.choice(["00", "01", "7F", "FF"]))
        assert mem.check_view()

def test_memory_provenance_kept():
    mem = st.Memory()
    p = st.Provenance("0015 (computed as SI+0005)", "value from register AX: 1A2B")
    mem.write(0x15, "2B", p)
    assert mem.displayed_cells()[0].provenance == p
    assert "SI+0005" in mem.displayed_cells()[0].show()

@pytest.mark.parametrize("a", [-1, 65536, "10", None])
def test_memory_address_out_of_range(a):
    mem = st.Memory()
    with pytest.raises(IndexError):
        mem.read(a)
    with pytest.raises(IndexError):
        mem.write(a, "01")

def test_memory_rejects_bad_byte():
    mem = st.Memory()
    with pytest.raises(common.ValidationError):
        mem.write(0, "123")
    assert mem.read(0) == "00"

def test_memory_words_are_little_endian():
    mem = st.Memory()
    mem.write_word(0x0015, "1A2B")
    assert mem.read(0x0015) == "2B"
    assert mem.read(0x0016) == "1A"
    assert mem.read_word(0x0015) == "1A2B"
    assert [c.address for c in mem.displayed_cells()] == [0x0015, 0x0016]

def test_memory_word_wraps_at_top():
    mem = st.Memory()
    mem.write_word(0xFFFF, "BEEF")
    assert mem.read(0xFFFF) == "EF"
    assert mem.read(0x0000) == "BE"
    assert mem.read_word(0xFFFF) == "BEEF"

def test_memory_reset():
    mem = st.Memory()
    mem.write_word(0x100, "1234")
    mem.reset()
    assert mem.displayed_cells() == ()
    assert mem.cells == st.Memory().cells

# ----------------------------------------------------------------------
# Stack
# ----------------------------------------------------------------------

def test_push_then_pop():
    s = st.Stack()
    assert s.snapshot() == st.StackSnapshot((), 0xFFFE)
    s.push("1234")
    assert s.pointer == 0xFFFC
    assert s.values == ["1234"]
    assert s.pop() == "1234"
    assert s.pointer == 0xFFFE
    assert s.values == []

def test_pop_empty_is_noop():
    s = st.Stack()
    assert s.is_empty()
    assert s.pop() is None
    assert s.pointer == 0xFFFE
    assert s.values == []

def test_pointer_invariant_holds():
    s = st.Stack()
    rng = random.Random(5)
    for _ in range(200):
        if rng.random() < 0.6:
            s.push("ABCD")
        else:
            s.pop()
        assert s.pointer == s.top - 2 * len(s.values)

def test_stack_order_and_slots():
    s = st.Stack()
    s.push("0001")
    s.push("0002")
    assert s.peek() == "0002"
    assert s.slot_address(0) == 0xFFFA
    assert s.slot_address(1) == 0xFFFC

def test_stack_slot_address():
    assert st.stack_slot_address(0xFFFA, 0) == 0xFFFA
    assert st.stack_slot_address(0xFFFA, 1) == 0xFFFC
    assert st.stack_slot_address(0xFFFE, 1) == 0x0000
    assert st.stack_slot_address(4, 0, grows_down=False) == 2
    assert st.stack_slot_address(4, 1, grows_down=False) == 0

def test_stack_growing_up():
    s = st.Stack(top=0, grows_down=False)
    s.push("0001")
    s.push("0002")
    assert s.pointer == 4
    assert s.slot_address(0) == 2
    assert s.pop() == "0002"
    assert s.pointer == 2

def test_stack_reset():
    s = st.Stack()
    s.push("1111")
    s.reset()
    assert s.snapshot() == st.Stack().snapshot()

# ----------------------------------------------------------------------
# Operation log
# ----------------------------------------------------------------------

def test_log_is_most_recent_first():
    log = st.OperationLog()
    a = log.add("MOV", arch.OpKind.ASSIGN, "AX", value="0001")
    b = log.add("PUSH", arch.OpKind.STACK, "AX", value="0001")
    assert log.snapshot() == (b, a)
    assert log.chronological() == [a, b]
    assert a.id != b.id
    assert b.timestamp >= a.timestamp

def test_log_entries_are_frozen():
    log = st.OperationLog()
    e = log.add("MOV", arch.OpKind.ASSIGN, "AX", value="0001")
    with pytest.raises(dataclasses.FrozenInstanceError):
        e.value = "0002"

def test_log_clear():
    log = st.OperationLog()
    log.add("MOV", arch.OpKind.ASSIGN, "AX", value="0001")
    log.clear()
    assert len(log) == 0

def test_log_entry_lines():
    log = st.OperationLog()
    assert log.add("MOV", arch.OpKind.RANDOM, "AX", value="1A2B").show() == "MOV AX, 1A2B  RANDOM"
    assert log.add("MOV", arch.OpKind.ASSIGN, "SI", value="0010").show() == "MOV SI, 0010  PRZYPISZ"
    assert log.add("MOV", arch.OpKind.MOV, "BX", second_register="AX",
                   value="1A2B").show() == "MOV BX, AX  MOV"
    assert log.add("XCHG", arch.OpKind.XCHG, "AX", second_register="BX").show() == "XCHG AX, BX  XCHG"
    assert log.add("MOV", arch.OpKind.MOV_TO_MEMORY, "AX",
                   pointer="SI+0005").show() == "MOV [SI+0005], AX  MOV"
    assert log.add("MOV", arch.OpKind.MOV_FROM_MEMORY, "CX",
                   pointer="SI+BX+0005").show() == "MOV CX, [SI+BX+0005]  MOV"
    assert log.add("XCHG", arch.OpKind.XCHG_MEMORY, "DX",
                   pointer="BP+0000").show() == "XCHG DX, [BP+0000]  XCHG"
    assert log.add("PUSH", arch.OpKind.STACK, "AX", value="1A2B").show() == "PUSH AX  STACK"
    assert log.add("RESET", arch.OpKind.RESET, "MEMORY").show() == "RESET MEMORY  RESET"
