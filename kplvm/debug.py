"""Readable renderings of types, constants, objects and scopes."""

from __future__ import annotations

from .symtab import (
    ConstantObject,
    ConstantValue,
    FunctionObject,
    ParameterObject,
    ParamKind,
    ProcedureObject,
    ProgramObject,
    Scope,
    SymbolObject,
    Type,
    TypeClass,
    TypeObject,
    VariableObject,
)


def format_type(type_: Type) -> str:
    """Render a type as ``Int``, ``Char`` or ``Arr(size,element)``."""
    if type_.type_class is TypeClass.INT:
        return "Int"
    if type_.type_class is TypeClass.CHAR:
        return "Char"
    if type_.element_type is None:
        raise ValueError("array type without an element type")
    return f"Arr({type_.array_size},{format_type(type_.element_type)})"


def format_constant(value: ConstantValue) -> str:
    """Render a constant: integers as digits, characters in single quotes."""
    if value.type is TypeClass.INT:
        return str(value.value)
    if value.type is TypeClass.CHAR:
        return f"'{value.value}'"
    return ""


def format_object(obj: SymbolObject, indent: int = 0) -> str:
    """Render one declared object; blocks include their scopes, indented further."""
    pad = " " * indent
    if isinstance(obj, ConstantObject):
        text = format_constant(obj.value) if obj.value is not None else ""
        return f"{pad}Const {obj.name} = {text}"
    if isinstance(obj, TypeObject):
        text = format_type(obj.actual_type) if obj.actual_type is not None else ""
        return f"{pad}Type {obj.name} = {text}"
    if isinstance(obj, VariableObject):
        text = format_type(obj.type) if obj.type is not None else ""
        return f"{pad}Var {obj.name} : {text} at offset {obj.local_offset}"
    if isinstance(obj, ParameterObject):
        label = "Param" if obj.param_kind is ParamKind.VALUE else "Param VAR"
        text = format_type(obj.type) if obj.type is not None else ""
        return f"{pad}{label} {obj.name} : {text} at offset {obj.local_offset}"
    if isinstance(obj, FunctionObject):
        text = format_type(obj.return_type) if obj.return_type is not None else ""
        head = f"{pad}Function {obj.name} : {text} at address {obj.code_address}\n"
        return head + format_scope(obj.scope, indent + 4)
    if isinstance(obj, ProcedureObject):
        head = f"{pad}Procedure {obj.name} at address {obj.code_address}\n"
        return head + format_scope(obj.scope, indent + 4)
    if isinstance(obj, ProgramObject):
        head = f"{pad}Program {obj.name} at address {obj.code_address}\n"
        return head + format_scope(obj.scope, indent + 4)
    return ""


def format_scope(scope: Scope, indent: int = 0) -> str:
    """Render every object of a scope, each followed by a line break."""
    return "".join(format_object(obj, indent) + "\n" for obj in scope.objects)