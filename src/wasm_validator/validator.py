"""Operand stack type checker.

The validator walks every function body once, front to back, keeping a
simulated stack of value types. Accessor instructions push the type of the
local or global they read; instructions with a known signature must find
their operand types on top of the stack and leave their result types there.

Control flow is not modelled: each body is checked as a single flat frame,
and instructions without a signature (blocks, branches, calls, memory
access, conversions, ...) are skipped without touching the stack.
"""

import enum
import logging

from .classifications import GET_INST, contains
from .errors import (
    GlobalNotFound,
    InvalidOperation,
    LocalNotFound,
    UnmatchedInstruction,
)
from .signatures import Signature, resolve_signature
from .types import FuncBody, Instruction, Module, ValType

logger = logging.getLogger(__name__)


class Filter(enum.Enum):
    """Which instructions the validator checks."""

    # Binary arithmetic operators and constants of the four numeric types
    NUMERIC_INSTRUCTIONS = "numeric"
    # Placeholder: accessors are still resolved but nothing is checked
    NO_FILTER = "none"


class ModuleValidator:
    """Type-checks the function bodies of one module.

    A validator owns its stack and must not be used from several threads
    at once. Create one per module (or per thread).
    """

    def __init__(
        self, module: Module, filter: Filter = Filter.NUMERIC_INSTRUCTIONS
    ) -> None:
        self.module = module
        self.filter = filter
        self.stack: list[ValType] = []
        self._globals: list[ValType] | None = None

    def validate(self) -> bool:
        """Check every function body in declaration order.

        Returns True when all bodies pass. The first violation is raised as
        a ValidationError subclass and no later function is examined.
        """
        if self.module.code is None:
            logger.debug("Module has no code section")
            return True

        try:
            for index in range(len(self.module.code)):
                self.check_function(index)
        finally:
            self.stack.clear()
        logger.debug("Validated %d function bodies", len(self.module.code))
        return True

    def check_function(self, index: int) -> None:
        """Check the body at ``code[index]``, starting from an empty stack.

        The stack is left as the body's instructions leave it, so callers can
        inspect ``self.stack`` afterwards.

        Raises ValueError when the module has no code section and IndexError
        when ``index`` is not a body index.
        """
        if self.module.code is None:
            raise ValueError("Module has no code section")
        if not 0 <= index < len(self.module.code):
            raise IndexError(f"No function body at index {index}")
        body = self.module.code[index]
        self.stack.clear()
        local_env: tuple[ValType, ...] | None = None

        logger.debug(
            "Checking function %d (%d instructions)", index, len(body.instructions)
        )
        for instruction in body.instructions:
            if contains(instruction, GET_INST):
                if instruction.opcode == "local.get" and local_env is None:
                    local_env = self.local_environment(index, body)
                self.push_global_or_local(instruction, local_env, index)

            if self.filter is Filter.NUMERIC_INSTRUCTIONS:
                signature = resolve_signature(instruction)
                if signature is not None:
                    self.apply_signature(signature, instruction)
            elif self.filter is Filter.NO_FILTER:
                pass  # nothing is checked in this mode yet

    def local_environment(self, index: int, body: FuncBody) -> tuple[ValType, ...]:
        """Parameter types followed by declared local types for one function."""
        func_type = self.module.func_type(index)
        if func_type is None:
            # No index is resolvable, so every local.get raises LocalNotFound
            logger.debug("Function %d has no resolvable type", index)
            return ()
        return func_type.params + body.locals

    def global_environment(self) -> list[ValType]:
        if self._globals is None:
            self._globals = self.module.global_types()
        return self._globals

    def push_global_or_local(
        self,
        instruction: Instruction,
        local_env: tuple[ValType, ...] | None,
        index: int,
    ) -> None:
        """Push the type of the local or global an accessor reads."""
        slot = instruction.operand
        if instruction.opcode == "local.get":
            if not isinstance(slot, int) or not 0 <= slot < len(local_env):
                raise LocalNotFound(slot, index)
            self.stack.append(local_env[slot])
        elif instruction.opcode == "global.get":
            globals_ = self.global_environment()
            if not isinstance(slot, int) or not 0 <= slot < len(globals_):
                raise GlobalNotFound(slot)
            self.stack.append(globals_[slot])
        else:
            raise UnmatchedInstruction(instruction)

    def apply_signature(self, signature: Signature, instruction: Instruction) -> None:
        """Pop and compare the operands of ``signature``, then push its results."""
        for expected in signature.pop:
            if not self.stack:
                raise InvalidOperation(instruction, expected)
            found = self.stack.pop()
            if found != expected:
                raise InvalidOperation(instruction, expected, found)
        self.stack.extend(signature.push)


def validate_module(
    module: Module, filter: Filter = Filter.NUMERIC_INSTRUCTIONS
) -> bool:
    """Validate ``module`` with a fresh ModuleValidator."""
    return ModuleValidator(module, filter).validate()
