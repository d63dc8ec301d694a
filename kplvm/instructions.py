"""Stack-machine instructions, code blocks and the executable file format."""

from __future__ import annotations

import enum
import struct
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

TRUE = 1
FALSE = 0
DC_VALUE = 0
INT_SIZE = 1
CHAR_SIZE = 1

DEFAULT_CODE_SIZE = 1024

# One record per instruction: opcode, p, q as little-endian 32-bit integers.
_RECORD = struct.Struct("<iii")


class OpCode(enum.IntEnum):
    """Operation codes of the stack machine, numbered as in the executable format."""

    LA = 0    # t := t + 1; s[t] := base(p) + q
    LV = 1    # t := t + 1; s[t] := s[base(p) + q]
    LC = 2    # t := t + 1; s[t] := q
    LI = 3    # s[t] := s[s[t]]
    INT = 4   # t := t + q
    DCT = 5   # t := t - q
    J = 6     # pc := q
    FJ = 7    # if s[t] = 0 then pc := q; t := t - 1
    HL = 8    # halt
    ST = 9    # s[s[t-1]] := s[t]; t := t - 2
    CALL = 10  # save links, b := t + 1; pc := q
    EP = 11   # exit procedure
    EF = 12   # exit function
    RC = 13   # read a character
    RI = 14   # read an integer
    WRC = 15  # write a character from s[t]
    WRI = 16  # write an integer from s[t]
    WLN = 17  # write a line break
    AD = 18
    SB = 19
    ML = 20
    DV = 21
    NEG = 22
    CV = 23   # copy top
    EQ = 24
    NE = 25
    GT = 26
    LT = 27
    GE = 28
    LE = 29
    BP = 30   # breakpoint


_WITH_P_AND_Q = frozenset({OpCode.LA, OpCode.LV, OpCode.CALL})
_WITH_Q = frozenset({OpCode.LC, OpCode.INT, OpCode.DCT, OpCode.J, OpCode.FJ})


class CodeOverflowError(Exception):
    """Raised when a code block has no room for another instruction."""


@dataclass
class Instruction:
    """A single machine instruction with its two operands."""

    op: OpCode
    p: int = DC_VALUE
    q: int = DC_VALUE

    def __str__(self) -> str:
        name = self.op.name
        if self.op in _WITH_P_AND_Q:
            return f"{name} {self.p},{self.q}"
        if self.op in _WITH_Q:
            return f"{name} {self.q}"
        return name


class CodeBlock:
    """A bounded, growable sequence of instructions."""

    def __init__(self, max_size: int) -> None:
        if max_size < 0:
            raise ValueError(f"max_size must not be negative, got {max_size}")
        self.max_size = max_size
        self._code: list[Instruction] = []

    def emit(self, op: OpCode, p: int = DC_VALUE, q: int = DC_VALUE) -> int:
        """Append an instruction and return its address."""
        if len(self._code) >= self.max_size:
            raise CodeOverflowError(
                f"code block is full ({self.max_size} instructions)"
            )
        self._code.append(Instruction(OpCode(op), p, q))
        return len(self._code) - 1

    def __len__(self) -> int:
        return len(self._code)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self._code)

    def __getitem__(self, index: int) -> Instruction:
        return self._code[index]

    def listing(self) -> str:
        """Return a numbered listing, one instruction per line."""
        return "".join(
            f"{address}:  {instruction}\n"
            for address, instruction in enumerate(self._code)
        )

    def save(self, stream: BinaryIO) -> None:
        """Write the instructions to a binary stream."""
        stream.write(
            b"".join(_RECORD.pack(int(i.op), i.p, i.q) for i in self._code)
        )

    @classmethod
    def load(cls, stream: BinaryIO, max_size: int = DEFAULT_CODE_SIZE) -> CodeBlock:
        """Read a code block from a binary stream.

        Raises ValueError if the data is not a whole number of instruction
        records or holds an unknown opcode, and CodeOverflowError if it holds
        more than ``max_size`` instructions.
        """
        data = stream.read()
        if len(data) % _RECORD.size:
            raise ValueError("truncated instruction record in executable")
        block = cls(max_size)
        for op, p, q in _RECORD.iter_unpack(data):
            try:
                opcode = OpCode(op)
            except ValueError:
                raise ValueError(f"unknown opcode {op} in executable") from None
            block.emit(opcode, p, q)
        return block