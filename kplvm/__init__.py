"""Instruction set, symbol table, code generator and stack virtual machine for KPL."""

__version__ = "1.0.0"