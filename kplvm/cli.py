"""Command line runner for KPL executables."""

from __future__ import annotations

import sys
from dataclasses import dataclass

from .instructions import DEFAULT_CODE_SIZE, CodeBlock, CodeOverflowError
from .vm import DEFAULT_STACK_SIZE, Status, VirtualMachine

_USAGE = (
    "Usage: kplrun input [-s=stack_size] [-c=code_size] [-debug] [-dump]\n"
    "   input: input kpl program\n"
    "   -s=stack_size: set the stack size\n"
    "   -c=code_size: set the code size\n"
    "   -debug: enable code dump\n"
)

_RUNTIME_ERRORS = {
    Status.DIVIDE_BY_ZERO: "Runtime error: Divide by zero!",
    Status.MODULE_BY_ZERO: "Runtime error: Module by zero!",
    Status.STACK_OVERFLOW: "Runtime error: Stack overflow!",
    Status.IO_ERROR: "Runtime error: IO error!",
}


@dataclass
class _Options:
    stack_size: int = DEFAULT_STACK_SIZE
    code_size: int = DEFAULT_CODE_SIZE
    debug: bool = False
    dump: bool = False


def _apply(option: str, options: _Options) -> bool:
    try:
        if option.startswith("-s="):
            options.stack_size = int(option[3:])
        elif option.startswith("-c="):
            options.code_size = int(option[3:])
        elif option == "-debug":
            options.debug = True
        elif option == "-dump":
            options.dump = True
        else:
            return False
    except ValueError:
        return False
    return options.stack_size >= 0 and options.code_size >= 0


def main(argv: list[str] | None = None) -> int:
    """Load an executable and run it; return the process exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    out = sys.stdout

    if not args:
        out.write("kplrun: no input file.\n")
        out.write(_USAGE)
        return 1

    options = _Options()
    if not all(_apply(option, options) for option in args[1:]):
        out.write(_USAGE)
        return 1

    try:
        with open(args[0], "rb") as stream:
            try:
                code = CodeBlock.load(stream, options.code_size)
            except (ValueError, CodeOverflowError):
                out.write("kplrun: Wrong executable format!\n")
                return 1
    except OSError:
        out.write("kplrun: Can't read input file!\n")
        return 1

    if options.dump:
        out.write(code.listing())
        return 0

    machine = VirtualMachine(code, options.stack_size, sys.stdin, out, options.debug)
    status = machine.run()
    message = _RUNTIME_ERRORS.get(status)
    if message is not None:
        out.write(message + "\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())