import io

import pytest

from kplvm.instructions import CodeBlock, OpCode
from kplvm.vm import Status, VirtualMachine


def _block(*instructions):
    block = CodeBlock(100)
    for inst in instructions:
        op, *operands = inst
        p, q = (0, 0) if not operands else ((0, operands[0]) if len(operands) == 1 else operands)
        block.emit(op, p, q)
    return block


def _run(block, stdin="", stack_size=64, debug=False):
    out = io.StringIO()
    vm = VirtualMachine(block, stack_size, io.StringIO(stdin), out, debug)
    status = vm.run()
    return vm, status, out.getvalue()


def test_write_constant():
    _, status, output = _run(_block((OpCode.LC, 7), (OpCode.WRI,), (OpCode.HL,)))
    assert status is Status.NORMAL_EXIT
    assert output == "7"


def test_read_int_round_trip():
    block = _block((OpCode.RI,), (OpCode.WRI,), (OpCode.WLN,), (OpCode.HL,))
    _, status, output = _run(block, stdin="  -42\n")
    assert status is Status.NORMAL_EXIT
    assert output == "-42\n"


def test_read_char_round_trip():
    block = _block((OpCode.RC,), (OpCode.WRC,), (OpCode.HL,))
    _, _, output = _run(block, stdin="q")
    assert output == "q"


def test_read_int_then_char_keeps_following_character():
    block = _block((OpCode.RI,), (OpCode.RC,), (OpCode.WRC,), (OpCode.WRI,), (OpCode.HL,))
    _, _, output = _run(block, stdin="12x")
    assert output == "x12"


def test_read_without_input_is_io_error():
    _, status, _ = _run(_block((OpCode.RI,), (OpCode.HL,)))
    assert status is Status.IO_ERROR


def test_divide_by_zero():
    block = _block((OpCode.LC, 5), (OpCode.LC, 0), (OpCode.DV,), (OpCode.HL,))
    _, status, _ = _run(block)
    assert status is Status.DIVIDE_BY_ZERO


def test_division_truncates_toward_zero():
    block = _block((OpCode.LC, -7), (OpCode.LC, 2), (OpCode.DV,), (OpCode.HL,))
    vm, _, _ = _run(block)
    assert vm.stack[vm.t] == -3


@pytest.mark.parametrize(
    "op, a, b, expected",
    [
        (OpCode.LT, 1, 2, 1),
        (OpCode.LT, 2, 1, 0),
        (OpCode.EQ, 4, 4, 1),
        (OpCode.NE, 4, 4, 0),
        (OpCode.GE, 3, 3, 1),
        (OpCode.LE, 5, 3, 0),
        (OpCode.GT, 5, 3, 1),
    ],
)
def test_comparisons(op, a, b, expected):
    vm, _, _ = _run(_block((OpCode.LC, a), (OpCode.LC, b), (op,), (OpCode.HL,)))
    assert vm.t == 0
    assert vm.stack[0] == expected


def test_false_jump_skips_when_zero():
    block = _block(
        (OpCode.LC, 0), (OpCode.FJ, 4), (OpCode.LC, 1), (OpCode.WRI,),
        (OpCode.LC, 2), (OpCode.WRI,), (OpCode.HL,),
    )
    _, _, output = _run(block)
    assert output == "2"


def test_procedure_call_and_return():
    block = _block(
        (OpCode.J, 5),
        (OpCode.INT, 4), (OpCode.LC, 9), (OpCode.WRI,), (OpCode.EP,),
        (OpCode.INT, 4), (OpCode.CALL, 0, 1), (OpCode.HL,),
    )
    vm, status, output = _run(block)
    assert status is Status.NORMAL_EXIT
    assert output == "9"
    assert vm.t == 3
    assert vm.b == 0


def test_function_returns_value_on_top():
    block = _block(
        (OpCode.J, 6),
        (OpCode.INT, 4), (OpCode.LA, 0, 0), (OpCode.LC, 11), (OpCode.ST,), (OpCode.EF,),
        (OpCode.INT, 4), (OpCode.CALL, 0, 1), (OpCode.WRI,), (OpCode.HL,),
    )
    _, status, output = _run(block)
    assert status is Status.NORMAL_EXIT
    assert output == "11"


def test_stack_overflow():
    block = _block((OpCode.LC, 1), (OpCode.LC, 2), (OpCode.LC, 3), (OpCode.HL,))
    _, status, _ = _run(block, stack_size=2)
    assert status is Status.STACK_OVERFLOW


def test_copy_top_and_negate():
    vm, _, _ = _run(_block((OpCode.LC, 6), (OpCode.CV,), (OpCode.NEG,), (OpCode.HL,)))
    assert vm.stack[:2] == [6, -6]


def test_base_follows_static_links():
    vm = VirtualMachine(_block((OpCode.HL,)), 16, io.StringIO(), io.StringIO())
    vm.b = 4
    vm.stack[7] = 0
    assert vm.base(0) == 4
    assert vm.base(1) == 0


def test_dump_memory_format():
    vm, _, _ = _run(_block((OpCode.LC, 5), (OpCode.LC, 6), (OpCode.HL,)))
    dump = vm.dump_memory()
    assert dump.startswith("Start dumping...\n")
    assert "     0: 5\n" in dump
    assert "     1: 6\n" in dump
    assert dump.endswith("Finish dumping!\n")


def test_reset_restores_initial_state():
    vm, _, _ = _run(_block((OpCode.LC, 5), (OpCode.HL,)))
    vm.reset()
    assert (vm.pc, vm.t, vm.b, vm.status) == (0, -1, 0, Status.INACTIVE)


def test_debug_trace_and_top_command():
    block = _block((OpCode.LC, 7), (OpCode.HL,))
    vm, status, output = _run(block, stdin="tc", debug=True)
    assert status is Status.NORMAL_EXIT
    assert output.splitlines() == ["     0-0   :  LC 7", "Top (0) = 7"]
    assert vm.debug is False


def test_debug_halt_command_stops_program():
    block = _block((OpCode.LC, 7), (OpCode.WRI,), (OpCode.HL,))
    _, status, output = _run(block, stdin="h", debug=True)
    assert status is Status.NORMAL_EXIT
    assert "7" not in output.split("\n", 1)[1]


def test_breakpoint_enables_debug():
    block = _block((OpCode.BP,), (OpCode.LC, 3), (OpCode.HL,))
    _, _, output = _run(block, stdin="cc")
    assert "LC 3" not in output
    assert output == ""


def test_negative_stack_size_rejected():
    with pytest.raises(ValueError):
        VirtualMachine(_block((OpCode.HL,)), -1)