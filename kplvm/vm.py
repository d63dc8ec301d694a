"""The stack machine that runs compiled KPL executables."""

from __future__ import annotations

import enum
import sys
from collections.abc import Iterable
from typing import TextIO

from .instructions import FALSE, TRUE, Instruction, OpCode

DEFAULT_STACK_SIZE = 2048

_WORD_RANGE = 1 << 32
_WORD_HALF = 1 << 31


class Status(enum.IntEnum):
    """Processor status of the machine."""

    ACTIVE = 0
    INACTIVE = 1
    NORMAL_EXIT = 2
    IO_ERROR = 3
    DIVIDE_BY_ZERO = 4
    STACK_OVERFLOW = 5
    MODULE_BY_ZERO = 6


class _MemoryFault(Exception):
    """An access outside the stack."""


def _wrap(value: int) -> int:
    """Reduce a value to a signed 32-bit word."""
    return (value + _WORD_HALF) % _WORD_RANGE - _WORD_HALF


def _truncating_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return -quotient if (a < 0) != (b < 0) else quotient


_ARITHMETIC = {
    OpCode.AD: lambda a, b: a + b,
    OpCode.SB: lambda a, b: a - b,
    OpCode.ML: lambda a, b: a * b,
}

_COMPARISONS = {
    OpCode.EQ: lambda a, b: a == b,
    OpCode.NE: lambda a, b: a != b,
    OpCode.GT: lambda a, b: a > b,
    OpCode.LT: lambda a, b: a < b,
    OpCode.GE: lambda a, b: a >= b,
    OpCode.LE: lambda a, b: a <= b,
}


class VirtualMachine:
    """Executes a sequence of instructions on a word-addressed stack.

    ``t`` is the index of the stack top, ``b`` the base of the current frame
    and ``pc`` the address of the instruction being executed.
    """

    def __init__(self, code: Iterable[Instruction], stack_size: int = DEFAULT_STACK_SIZE,
                 stdin: TextIO | None = None, stdout: TextIO | None = None,
                 debug: bool = False) -> None:
        if stack_size < 0:
            raise ValueError(f"stack_size must not be negative, got {stack_size}")
        self.code = list(code)
        self.stack_size = stack_size
        self.stack = [0] * stack_size
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stdout = stdout if stdout is not None else sys.stdout
        self.debug = debug
        self._pending = ""
        self.reset()

    def reset(self) -> None:
        """Put the machine back at the start of the program."""
        self.pc = 0
        self.t = -1
        self.b = 0
        self.status = Status.INACTIVE

    # memory -------------------------------------------------------------

    def _get(self, address: int) -> int:
        if not 0 <= address < self.stack_size:
            raise _MemoryFault(address)
        return self.stack[address]

    def _set(self, address: int, value: int) -> None:
        if not 0 <= address < self.stack_size:
            raise _MemoryFault(address)
        self.stack[address] = value

    def _check_stack(self) -> bool:
        if self.t >= self.stack_size:
            self.status = Status.STACK_OVERFLOW
        return 0 <= self.t < self.stack_size

    def base(self, level: int) -> int:
        """Follow ``level`` static links from the current frame and return that base."""
        current = self.b
        for _ in range(level):
            current = self._get(current + 3)
        return current

    def dump_memory(self) -> str:
        """Return the stack contents from the bottom up to the top."""
        lines = [f"  {i:4d}: {self.stack[i]}\n" for i in range(self.t + 1)]
        return "Start dumping...\n" + "".join(lines) + "Finish dumping!\n"

    # input --------------------------------------------------------------

    def _read_raw(self) -> str:
        if self._pending:
            ch, self._pending = self._pending, ""
            return ch
        return self.stdin.read(1)

    def _read_int(self) -> int | None:
        ch = self._read_raw()
        while ch and ch.isspace():
            ch = self._read_raw()
        sign = ""
        if ch in ("+", "-") and ch:
            sign, ch = ch, self._read_raw()
        digits = []
        while ch and ch.isdigit():
            digits.append(ch)
            ch = self._read_raw()
        self._pending = ch
        if not digits:
            return None
        return _wrap(int(sign + "".join(digits)))

    # execution ----------------------------------------------------------

    def run(self) -> Status:
        """Run until the program halts or fails, and return the final status."""
        self.status = Status.ACTIVE
        count = 0
        while self.status is Status.ACTIVE:
            if not 0 <= self.pc < len(self.code):
                raise RuntimeError(f"program counter {self.pc} is outside the code")
            instruction = self.code[self.pc]
            if self.debug:
                self.stdout.write(f"{count:6d}-{self.pc:<4d}:  {instruction}\n")
                count += 1
            next_pc = self.pc + 1
            try:
                next_pc = self._execute(instruction, next_pc)
                if self.debug:
                    self._interact()
            except _MemoryFault:
                self.status = Status.STACK_OVERFLOW
            self.pc = next_pc
        return self.status

    def _execute(self, inst: Instruction, next_pc: int) -> int:
        op, p, q = inst.op, inst.p, inst.q
        if op is OpCode.LA:
            self.t += 1
            if self._check_stack():
                self._set(self.t, self.base(p) + q)
        elif op is OpCode.LV:
            self.t += 1
            if self._check_stack():
                self._set(self.t, self._get(self.base(p) + q))
        elif op is OpCode.LC:
            self.t += 1
            if self._check_stack():
                self._set(self.t, q)
        elif op is OpCode.LI:
            self._set(self.t, self._get(self._get(self.t)))
        elif op is OpCode.INT:
            self.t += q
            self._check_stack()
        elif op is OpCode.DCT:
            self.t -= q
            self._check_stack()
        elif op is OpCode.J:
            return q
        elif op is OpCode.FJ:
            if self._get(self.t) == FALSE:
                next_pc = q
            self.t -= 1
            self._check_stack()
        elif op is OpCode.HL:
            self.status = Status.NORMAL_EXIT
        elif op is OpCode.ST:
            self._set(self._get(self.t - 1), self._get(self.t))
            self.t -= 2
            self._check_stack()
        elif op is OpCode.CALL:
            self._set(self.t + 2, self.b)           # dynamic link
            self._set(self.t + 3, self.pc)          # return address
            self._set(self.t + 4, self.base(p))     # static link
            self.b = self.t + 1
            return q
        elif op in (OpCode.EP, OpCode.EF):
            self.t = self.b - 1 if op is OpCode.EP else self.b
            return_address = self._get(self.b + 2)
            self.b = self._get(self.b + 1)
            return return_address + 1
        elif op is OpCode.RC:
            self.t += 1
            ch = self._read_raw()
            if not ch:
                self.status = Status.IO_ERROR
            elif self._check_stack():
                self._set(self.t, ord(ch))
        elif op is OpCode.RI:
            self.t += 1
            number = self._read_int()
            if number is None:
                self.status = Status.IO_ERROR
            elif self._check_stack():
                self._set(self.t, number)
        elif op is OpCode.WRC:
            self.stdout.write(chr(self._get(self.t) % 256))
            self.t -= 1
            self._check_stack()
        elif op is OpCode.WRI:
            self.stdout.write(str(self._get(self.t)))
            self.t -= 1
            self._check_stack()
        elif op is OpCode.WLN:
            self.stdout.write("\n")
        elif op in _ARITHMETIC:
            self.t -= 1
            if self._check_stack():
                result = _ARITHMETIC[op](self._get(self.t), self._get(self.t + 1))
                self._set(self.t, _wrap(result))
        elif op is OpCode.DV:
            self.t -= 1
            if self._check_stack():
                divisor = self._get(self.t + 1)
                if divisor == 0:
                    self.status = Status.DIVIDE_BY_ZERO
                else:
                    self._set(self.t, _wrap(_truncating_div(self._get(self.t), divisor)))
        elif op is OpCode.NEG:
            self._set(self.t, _wrap(-self._get(self.t)))
        elif op is OpCode.CV:
            self._set(self.t + 1, self._get(self.t))
            self.t += 1
            self._check_stack()
        elif op in _COMPARISONS:
            self.t -= 1
            holds = _COMPARISONS[op](self._get(self.t), self._get(self.t + 1))
            self._set(self.t, TRUE if holds else FALSE)
            self._check_stack()
        elif op is OpCode.BP:
            self.debug = True
        return next_pc

    def _read_location(self) -> int | None:
        self.stdout.write("\nEnter memory location (level, offset):")
        level = self._read_int()
        offset = self._read_int()
        if level is None or offset is None:
            self.status = Status.IO_ERROR
            return None
        return self.base(level) + offset

    def _interact(self) -> None:
        """Read debugger commands until one of them lets execution go on."""
        while True:
            command = self._read_raw().lower()
            if command == "a":
                address = self._read_location()
                if address is None:
                    return
                self.stdout.write(f"Absolute address = {address}\n")
            elif command == "m":
                address = self._read_location()
                if address is None:
                    return
                self.stdout.write(f"Value = {self._get(address)}\n")
            elif command == "t":
                self.stdout.write(f"Top ({self.t}) = {self._get(self.t)}\n")
            elif command == "c":
                self.debug = False
                return
            elif command == "h":
                self.status = Status.NORMAL_EXIT
                return
            else:
                return