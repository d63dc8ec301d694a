"""Types, constants, declared objects, scopes and the symbol table."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import ClassVar, Union

from .instructions import CHAR_SIZE, DC_VALUE, INT_SIZE

# Words at the bottom of every stack frame: return value, dynamic link,
# return address and static link.
RESERVED_WORDS = 4


class TypeClass(enum.Enum):
    """The basic shape of a type."""

    INT = enum.auto()
    CHAR = enum.auto()
    ARRAY = enum.auto()


class ObjectKind(enum.Enum):
    """What a declared name stands for."""

    CONSTANT = enum.auto()
    VARIABLE = enum.auto()
    TYPE = enum.auto()
    FUNCTION = enum.auto()
    PROCEDURE = enum.auto()
    PARAMETER = enum.auto()
    PROGRAM = enum.auto()


class ParamKind(enum.Enum):
    """How a parameter is passed."""

    VALUE = enum.auto()
    REFERENCE = enum.auto()


@dataclass(frozen=True)
class Type:
    """A type; array types carry their size and element type."""

    type_class: TypeClass
    array_size: int = 0
    element_type: Type | None = None

    def size(self) -> int:
        """Number of stack words a value of this type occupies."""
        if self.type_class is TypeClass.INT:
            return INT_SIZE
        if self.type_class is TypeClass.CHAR:
            return CHAR_SIZE
        if self.element_type is None:
            raise ValueError("array type without an element type")
        return self.array_size * self.element_type.size()

    def duplicate(self) -> Type:
        """Return a deep copy of this type."""
        if self.type_class is TypeClass.ARRAY and self.element_type is not None:
            return Type(self.type_class, self.array_size, self.element_type.duplicate())
        return Type(self.type_class, self.array_size, self.element_type)


def make_int_type() -> Type:
    """Return a new integer type."""
    return Type(TypeClass.INT)


def make_char_type() -> Type:
    """Return a new character type."""
    return Type(TypeClass.CHAR)


def make_array_type(array_size: int, element_type: Type) -> Type:
    """Return a new array type of the given size and element type."""
    return Type(TypeClass.ARRAY, array_size, element_type)


@dataclass(frozen=True)
class ConstantValue:
    """A constant: an integer or a single character."""

    type: TypeClass
    value: Union[int, str]


def make_int_constant(value: int) -> ConstantValue:
    """Return an integer constant."""
    return ConstantValue(TypeClass.INT, int(value))


def make_char_constant(value: str) -> ConstantValue:
    """Return a character constant; ``value`` must be one character."""
    if not isinstance(value, str) or len(value) != 1:
        raise ValueError(f"expected a single character, got {value!r}")
    return ConstantValue(TypeClass.CHAR, value)


def _find(objects: list[SymbolObject], name: str) -> SymbolObject | None:
    return next((obj for obj in objects if obj.name == name), None)


@dataclass(eq=False)
class Scope:
    """A block's declarations together with its enclosing scope."""

    owner: SymbolObject | None = None
    outer: Scope | None = None
    frame_size: int = RESERVED_WORDS
    objects: list[SymbolObject] = field(default_factory=list)

    def find(self, name: str) -> SymbolObject | None:
        """Return the object declared here under ``name``, or None."""
        return _find(self.objects, name)


@dataclass(eq=False)
class SymbolObject:
    """A named entity in a program."""

    kind: ClassVar[ObjectKind]
    name: str


@dataclass(eq=False)
class ConstantObject(SymbolObject):
    kind: ClassVar[ObjectKind] = ObjectKind.CONSTANT
    value: ConstantValue | None = None


@dataclass(eq=False)
class TypeObject(SymbolObject):
    kind: ClassVar[ObjectKind] = ObjectKind.TYPE
    actual_type: Type | None = None


@dataclass(eq=False)
class VariableObject(SymbolObject):
    kind: ClassVar[ObjectKind] = ObjectKind.VARIABLE
    type: Type | None = None
    scope: Scope | None = None
    local_offset: int = 0


@dataclass(eq=False)
class ParameterObject(SymbolObject):
    kind: ClassVar[ObjectKind] = ObjectKind.PARAMETER
    param_kind: ParamKind = ParamKind.VALUE
    type: Type | None = None
    scope: Scope | None = None
    local_offset: int = 0


@dataclass(eq=False)
class FunctionObject(SymbolObject):
    kind: ClassVar[ObjectKind] = ObjectKind.FUNCTION
    return_type: Type | None = None
    params: list[ParameterObject] = field(default_factory=list)
    code_address: int = DC_VALUE
    scope: Scope = field(init=False)

    def __post_init__(self) -> None:
        self.scope = Scope(owner=self)

    @property
    def param_count(self) -> int:
        return len(self.params)


@dataclass(eq=False)
class ProcedureObject(SymbolObject):
    kind: ClassVar[ObjectKind] = ObjectKind.PROCEDURE
    params: list[ParameterObject] = field(default_factory=list)
    code_address: int = DC_VALUE
    scope: Scope = field(init=False)

    def __post_init__(self) -> None:
        self.scope = Scope(owner=self)

    @property
    def param_count(self) -> int:
        return len(self.params)


@dataclass(eq=False)
class ProgramObject(SymbolObject):
    kind: ClassVar[ObjectKind] = ObjectKind.PROGRAM
    code_address: int = DC_VALUE
    scope: Scope = field(init=False)

    def __post_init__(self) -> None:
        self.scope = Scope(owner=self)


class SymbolTable:
    """Nested scopes plus the predefined global functions and procedures."""

    def __init__(self) -> None:
        self.program: ProgramObject | None = None
        self.current_scope: Scope | None = None
        self.global_objects: list[SymbolObject] = []

        self.readc = FunctionObject("READC")
        self.declare(self.readc)
        self.readc.return_type = make_char_type()

        self.readi = FunctionObject("READI")
        self.declare(self.readi)
        self.readi.return_type = make_int_type()

        self.writei = ProcedureObject("WRITEI")
        self.declare(self.writei)
        self.enter_block(self.writei.scope)
        self.declare(ParameterObject("i", ParamKind.VALUE, make_int_type()))
        self.exit_block()

        self.writec = ProcedureObject("WRITEC")
        self.declare(self.writec)
        self.enter_block(self.writec.scope)
        self.declare(ParameterObject("ch", ParamKind.VALUE, make_char_type()))
        self.exit_block()

        self.writeln = ProcedureObject("WRITELN")
        self.declare(self.writeln)

        self.int_type = make_int_type()
        self.char_type = make_char_type()

    def create_program(self, name: str) -> ProgramObject:
        """Create the program object and record it as this table's program."""
        self.program = ProgramObject(name)
        return self.program

    def enter_block(self, scope: Scope) -> None:
        """Make ``scope`` the current scope."""
        self.current_scope = scope

    def exit_block(self) -> None:
        """Return to the scope enclosing the current one."""
        if self.current_scope is None:
            raise RuntimeError("no block to exit")
        self.current_scope = self.current_scope.outer

    def declare(self, obj: SymbolObject) -> None:
        """Add ``obj`` to the current scope, or to the globals outside any block."""
        scope = self.current_scope
        if scope is None:
            self.global_objects.append(obj)
            return
        if isinstance(obj, VariableObject):
            if obj.type is None:
                raise ValueError(f"variable {obj.name} has no type")
            obj.scope = scope
            obj.local_offset = scope.frame_size
            scope.frame_size += obj.type.size()
        elif isinstance(obj, ParameterObject):
            obj.scope = scope
            obj.local_offset = scope.frame_size
            scope.frame_size += 1
            if isinstance(scope.owner, (FunctionObject, ProcedureObject)):
                scope.owner.params.append(obj)
        elif isinstance(obj, (FunctionObject, ProcedureObject)):
            obj.scope.outer = scope
        scope.objects.append(obj)

    def lookup(self, name: str) -> SymbolObject | None:
        """Find ``name`` in the current scope, its enclosing scopes, then the globals."""
        scope = self.current_scope
        while scope is not None:
            obj = scope.find(name)
            if obj is not None:
                return obj
            scope = scope.outer
        return _find(self.global_objects, name)