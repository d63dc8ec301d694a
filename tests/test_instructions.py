import io

import pytest

from kplvm.instructions import (
    CodeBlock,
    CodeOverflowError,
    Instruction,
    OpCode,
)


def test_emit_returns_consecutive_addresses():
    block = CodeBlock(10)
    assert block.emit(OpCode.LC, q=7) == 0
    assert block.emit(OpCode.HL) == 1
    assert len(block) == 2


def test_emit_stores_operands():
    block = CodeBlock(4)
    block.emit(OpCode.CALL, 2, 15)
    inst = block[0]
    assert (inst.op, inst.p, inst.q) == (OpCode.CALL, 2, 15)


def test_emit_defaults_operands_to_zero():
    block = CodeBlock(4)
    block.emit(OpCode.AD)
    assert (block[0].p, block[0].q) == (0, 0)


def test_emit_overflow_raises():
    block = CodeBlock(2)
    block.emit(OpCode.HL)
    block.emit(OpCode.HL)
    with pytest.raises(CodeOverflowError):
        block.emit(OpCode.HL)
    assert len(block) == 2


def test_negative_max_size_rejected():
    with pytest.raises(ValueError):
        CodeBlock(-1)


@pytest.mark.parametrize(
    "inst, text",
    [
        (Instruction(OpCode.LA, 1, 4), "LA 1,4"),
        (Instruction(OpCode.LV, 0, 5), "LV 0,5"),
        (Instruction(OpCode.CALL, 1, 9), "CALL 1,9"),
        (Instruction(OpCode.LC, 0, 42), "LC 42"),
        (Instruction(OpCode.INT, 0, 6), "INT 6"),
        (Instruction(OpCode.DCT, 0, 3), "DCT 3"),
        (Instruction(OpCode.J, 0, 12), "J 12"),
        (Instruction(OpCode.FJ, 0, 8), "FJ 8"),
        (Instruction(OpCode.HL, 3, 3), "HL"),
        (Instruction(OpCode.WRI), "WRI"),
        (Instruction(OpCode.NEG), "NEG"),
        (Instruction(OpCode.BP), "BP"),
    ],
)
def test_instruction_str(inst, text):
    assert str(inst) == text


def test_listing_format():
    block = CodeBlock(5)
    block.emit(OpCode.INT, q=4)
    block.emit(OpCode.HL)
    assert block.listing() == "0:  INT 4\n1:  HL\n"


def test_listing_empty():
    assert CodeBlock(3).listing() == ""


def test_iteration_and_indexing_agree():
    block = CodeBlock(5)
    block.emit(OpCode.LC, q=1)
    block.emit(OpCode.LC, q=2)
    block.emit(OpCode.AD)
    assert list(block) == [block[0], block[1], block[2]]


def test_instruction_is_patchable_through_index():
    block = CodeBlock(5)
    addr = block.emit(OpCode.J, q=0)
    block[addr].q = 3
    assert str(block[addr]) == "J 3"


def test_save_wire_format():
    block = CodeBlock(2)
    block.emit(OpCode.LC, q=5)
    out = io.BytesIO()
    block.save(out)
    assert out.getvalue() == b"\x02\x00\x00\x00\x00\x00\x00\x00\x05\x00\x00\x00"


def test_save_load_round_trip():
    block = CodeBlock(20)
    block.emit(OpCode.J, q=1)
    block.emit(OpCode.INT, q=5)
    block.emit(OpCode.LA, 0, 4)
    block.emit(OpCode.LC, q=-17)
    block.emit(OpCode.ST)
    block.emit(OpCode.BP)
    block.emit(OpCode.HL)
    buf = io.BytesIO()
    block.save(buf)
    buf.seek(0)
    loaded = CodeBlock.load(buf, 20)
    assert list(loaded) == list(block)
    assert loaded.listing() == block.listing()


def test_load_empty_stream():
    loaded = CodeBlock.load(io.BytesIO(b""), 10)
    assert len(loaded) == 0


def test_load_truncated_record_rejected():
    block = CodeBlock(2)
    block.emit(OpCode.HL)
    buf = io.BytesIO()
    block.save(buf)
    with pytest.raises(ValueError):
        CodeBlock.load(io.BytesIO(buf.getvalue()[:-1]), 10)


def test_load_unknown_opcode_rejected():
    data = b"\x63\x00\x00\x00" + b"\x00" * 8
    with pytest.raises(ValueError):
        CodeBlock.load(io.BytesIO(data), 10)


def test_load_too_many_instructions():
    block = CodeBlock(5)
    for _ in range(5):
        block.emit(OpCode.WLN)
    buf = io.BytesIO()
    block.save(buf)
    buf.seek(0)
    with pytest.raises(CodeOverflowError):
        CodeBlock.load(buf, 4)