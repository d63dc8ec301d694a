# kplvm

The stack machine that programs of KPL, a small Pascal-like teaching
language, run on, together with the pieces used to produce code for it.

The package holds:

- `kplvm.instructions`: the instruction set (`OpCode`, `Instruction`) and
  `CodeBlock`, a bounded list of instructions with a numbered `listing()`,
  binary `save()` and `CodeBlock.load()`. Emitting past the block's
  `max_size` raises `CodeOverflowError`.
- `kplvm.vm`: `VirtualMachine`, which runs a code block on a word stack and
  returns a `Status` (`NORMAL_EXIT`, `DIVIDE_BY_ZERO`, `STACK_OVERFLOW`,
  `IO_ERROR`, ...). `dump_memory()` renders the stack up to its top.
- `kplvm.symtab`: types, constants, declared objects, nested scopes and
  `SymbolTable`, which comes with the predefined `READC`, `READI`, `WRITEI`,
  `WRITEC` and `WRITELN`, and assigns frame offsets to variables and
  parameters as they are declared.
- `kplvm.codegen`: `CodeGenerator`, which emits instructions for loading
  variables, parameters and return values, for calls and for jumps that are
  patched later, and writes the result to an executable file with
  `serialize()`.
- `kplvm.debug`: text renderings of types, constants, objects and scopes
  (`format_type`, `format_constant`, `format_object`, `format_scope`).
- `kplvm.charcode`: the character classes of the KPL alphabet (`char_code`).

## Installation

```
pip install .
```

## Running an executable

```
kplrun program.bin [-s=stack_size] [-c=code_size] [-debug] [-dump]
```

- `-s=stack_size` sets the size of the stack in words (default 2048).
- `-c=code_size` sets the largest number of instructions loaded (default 1024).
- `-debug` prints each instruction as it runs and, after each one, reads a
  command from standard input: `a` asks for a level and offset and prints the
  absolute address, `m` prints the value stored there, `t` prints the stack
  top, `c` leaves debug mode, `h` halts; any other character goes on to the
  next instruction.
- `-dump` prints the code listing instead of running it.

An executable is a sequence of instruction records, each the opcode, `p` and
`q` as little-endian 32-bit integers. A file that is not a whole number of
records, holds an unknown opcode or has more instructions than the code size
is rejected. A runtime fault such as division by zero or a stack overflow is
reported on standard output.

## Using it from Python

Running hand-built code:

```python
import io
from kplvm.instructions import CodeBlock, OpCode
from kplvm.vm import VirtualMachine

code = CodeBlock(100)
code.emit(OpCode.LC, 0, 6)
code.emit(OpCode.LC, 0, 7)
code.emit(OpCode.ML, 0, 0)
code.emit(OpCode.WRI, 0, 0)
code.emit(OpCode.HL, 0, 0)

out = io.StringIO()
vm = VirtualMachine(code, 256, io.StringIO(), out, False)
status = vm.run()
print(status.name, out.getvalue())   # NORMAL_EXIT 42
```

Generating code against a symbol table:

```python
from kplvm.codegen import CodeGenerator
from kplvm.symtab import SymbolTable, VariableObject, make_int_type
from kplvm.debug import format_scope

symtab = SymbolTable()
program = symtab.create_program("DEMO")
symtab.enter_block(program.scope)
x = VariableObject("X", type=make_int_type())
symtab.declare(x)                     # X gets offset 4, after the reserved words

gen = CodeGenerator(symtab, 100)
gen.gen_variable_address(x)           # LA 0,4
print(gen.listing())
print(format_scope(program.scope))
gen.serialize("demo.bin")
```

## What it does not do

There is no compiler from KPL source text here: the package has no scanner
or parser, so code is produced only by calling `CodeGenerator` (or
`CodeBlock.emit`) directly. The `kplrun` command runs executables; it does
not build them.

## Running the tests

```
pip install .[test]
pytest
```