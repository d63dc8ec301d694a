"""Code generation helpers that emit stack-machine instructions."""

from __future__ import annotations

from os import PathLike

from .instructions import DC_VALUE, CodeBlock, OpCode
from .symtab import (
    FunctionObject,
    ParameterObject,
    ProcedureObject,
    Scope,
    SymbolObject,
    SymbolTable,
    VariableObject,
)

CODE_SIZE = 10000

# Layout of the reserved words at the bottom of every stack frame.
RETURN_VALUE_OFFSET = 0
DYNAMIC_LINK_OFFSET = 1
RETURN_ADDRESS_OFFSET = 2
STATIC_LINK_OFFSET = 3


class CodeGenerator:
    """Emits instructions into a code block, resolving names through a symbol table."""

    def __init__(self, symtab: SymbolTable, max_size: int = CODE_SIZE) -> None:
        self.symtab = symtab
        self.code = CodeBlock(max_size)

    def compute_nested_level(self, scope: Scope) -> int:
        """Count the static links from the current scope out to ``scope``."""
        level = 0
        current = self.symtab.current_scope
        while current is not scope:
            if current is None:
                raise ValueError("scope does not enclose the current scope")
            current = current.outer
            level += 1
        return level

    def gen(self, op: OpCode, p: int = DC_VALUE, q: int = DC_VALUE) -> int:
        """Emit one instruction and return its address."""
        return self.code.emit(op, p, q)

    def gen_jump(self, label: int) -> int:
        """Emit an unconditional jump and return its address for later patching."""
        return self.gen(OpCode.J, DC_VALUE, label)

    def gen_false_jump(self, label: int) -> int:
        """Emit a jump-if-false and return its address for later patching."""
        return self.gen(OpCode.FJ, DC_VALUE, label)

    def update_jump(self, address: int, label: int) -> None:
        """Set the target of the jump at ``address`` to ``label``."""
        instruction = self.code[address]
        if instruction.op not in (OpCode.J, OpCode.FJ):
            raise ValueError(f"instruction at {address} is not a jump")
        instruction.q = label

    def current_address(self) -> int:
        """The address the next emitted instruction will get."""
        return len(self.code)

    def _scope_of(self, obj: VariableObject | ParameterObject) -> Scope:
        if obj.scope is None:
            raise ValueError(f"{obj.name} has not been declared in a scope")
        return obj.scope

    def gen_variable_address(self, var: VariableObject) -> int:
        level = self.compute_nested_level(self._scope_of(var))
        return self.gen(OpCode.LA, level, var.local_offset)

    def gen_variable_value(self, var: VariableObject) -> int:
        level = self.compute_nested_level(self._scope_of(var))
        return self.gen(OpCode.LV, level, var.local_offset)

    def gen_parameter_address(self, param: ParameterObject) -> int:
        level = self.compute_nested_level(self._scope_of(param))
        return self.gen(OpCode.LA, level, param.local_offset)

    def gen_parameter_value(self, param: ParameterObject) -> int:
        level = self.compute_nested_level(self._scope_of(param))
        return self.gen(OpCode.LV, level, param.local_offset)

    def gen_return_value_address(self, func: FunctionObject) -> int:
        level = self.compute_nested_level(func.scope)
        return self.gen(OpCode.LA, level, RETURN_VALUE_OFFSET)

    def gen_return_value_value(self, func: FunctionObject) -> int:
        level = self.compute_nested_level(func.scope)
        return self.gen(OpCode.LV, level, RETURN_VALUE_OFFSET)

    def gen_predefined_procedure_call(self, proc: SymbolObject) -> int | None:
        """Emit the instruction for WRITEI, WRITEC or WRITELN; other objects emit nothing."""
        if proc is self.symtab.writei:
            return self.gen(OpCode.WRI)
        if proc is self.symtab.writec:
            return self.gen(OpCode.WRC)
        if proc is self.symtab.writeln:
            return self.gen(OpCode.WLN)
        return None

    def gen_procedure_call(self, proc: ProcedureObject) -> int:
        level = self.compute_nested_level(proc.scope.outer)
        return self.gen(OpCode.CALL, level, proc.code_address)

    def gen_predefined_function_call(self, func: SymbolObject) -> int | None:
        """Emit the instruction for READI or READC; other objects emit nothing."""
        if func is self.symtab.readi:
            return self.gen(OpCode.RI)
        if func is self.symtab.readc:
            return self.gen(OpCode.RC)
        return None

    def gen_function_call(self, func: FunctionObject) -> int:
        level = self.compute_nested_level(func.scope.outer)
        return self.gen(OpCode.CALL, level, func.code_address)

    def is_predefined_procedure(self, proc: SymbolObject) -> bool:
        return any(proc is p for p in
                   (self.symtab.writei, self.symtab.writec, self.symtab.writeln))

    def is_predefined_function(self, func: SymbolObject) -> bool:
        return func is self.symtab.readi or func is self.symtab.readc

    def listing(self) -> str:
        """Numbered listing of the generated code."""
        return self.code.listing()

    def serialize(self, path: str | PathLike[str]) -> None:
        """Write the generated code to ``path`` in the executable format."""
        with open(path, "wb") as stream:
            self.code.save(stream)