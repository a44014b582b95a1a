"""Exception classes for decoding and validating WebAssembly modules."""

from typing import Any


class WasmError(Exception):
    """Base class for all errors raised by this package."""

    pass


class DecodeError(WasmError):
    """Error during binary format decoding."""

    pass


class ValidationError(WasmError):
    """Error during module validation."""

    pass


class InvalidOperation(ValidationError):
    """Stack type mismatch or underflow at an instruction."""

    def __init__(
        self, instruction: Any, expected: str, found: str | None = None
    ) -> None:
        self.instruction = instruction
        self.expected = expected
        self.found = found  # None means the stack was empty
        if found is None:
            detail = f"expected {expected}, stack is empty"
        else:
            detail = f"expected {expected}, found {found}"
        super().__init__(f"Invalid operation '{instruction}': {detail}")


class LocalNotFound(ValidationError):
    """local.get referenced an index outside the parameters and locals."""

    def __init__(self, index: int, func_index: int) -> None:
        self.index = index
        self.func_index = func_index
        super().__init__(f"Local {index} not found in function {func_index}")


class GlobalNotFound(ValidationError):
    """global.get referenced an index outside the global index space."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Global {index} not found")


class UnmatchedInstruction(ValidationError):
    """Accessor instruction the validator has no resolution rule for."""

    def __init__(self, instruction: Any) -> None:
        self.instruction = instruction
        super().__init__(f"No operand resolution for '{instruction}'")
