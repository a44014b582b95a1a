"""WebAssembly type definitions."""

from dataclasses import dataclass, field
from typing import Any


# Value type constants
VALTYPE_I32 = "i32"
VALTYPE_I64 = "i64"
VALTYPE_F32 = "f32"
VALTYPE_F64 = "f64"
VALTYPE_FUNCREF = "funcref"
VALTYPE_EXTERNREF = "externref"

# Value types the checker models on the operand stack
NUMERIC_VALTYPES = (VALTYPE_I32, VALTYPE_I64, VALTYPE_F32, VALTYPE_F64)

# Binary encoding of value types
VALTYPE_ENCODING = {
    0x7F: VALTYPE_I32,
    0x7E: VALTYPE_I64,
    0x7D: VALTYPE_F32,
    0x7C: VALTYPE_F64,
    0x70: VALTYPE_FUNCREF,
    0x6F: VALTYPE_EXTERNREF,
}

ValType = str  # One of the VALTYPE_* constants


@dataclass(frozen=True)
class FuncType:
    """WebAssembly function type (signature)."""

    params: tuple[ValType, ...]
    results: tuple[ValType, ...]

    def __repr__(self) -> str:
        params = ", ".join(self.params)
        results = ", ".join(self.results)
        return f"({params}) -> ({results})"


@dataclass(frozen=True)
class GlobalType:
    """Global type with value type and mutability."""

    valtype: ValType
    mutable: bool = False


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction: its mnemonic plus any immediate."""

    opcode: str
    operand: Any = None

    def __repr__(self) -> str:
        if self.operand is not None:
            return f"{self.opcode} {self.operand}"
        return self.opcode


@dataclass(frozen=True)
class FuncBody:
    """One entry of the code section."""

    locals: tuple[ValType, ...]
    instructions: list[Instruction] = field(default_factory=list)


@dataclass(frozen=True)
class Global:
    """Global variable declared in the global section."""

    type: GlobalType
    init: list[Instruction] = field(default_factory=list)


# Import kinds
IMPORT_FUNC = "func"
IMPORT_TABLE = "table"
IMPORT_MEMORY = "memory"
IMPORT_GLOBAL = "global"


@dataclass(frozen=True)
class Import:
    """An import entry."""

    module: str
    name: str
    kind: str  # One of IMPORT_* constants
    desc: Any  # Type index for func, GlobalType for global


@dataclass
class Module:
    """The parts of a decoded module the checker reads.

    ``code`` is ``None`` when the binary has no code section, which is
    distinct from a code section with zero bodies.
    """

    types: list[FuncType] = field(default_factory=list)
    imports: list[Import] = field(default_factory=list)
    func_type_indices: list[int] = field(default_factory=list)
    globals: list[Global] = field(default_factory=list)
    code: list[FuncBody] | None = None

    def global_types(self) -> list[ValType]:
        """Value types of the global index space, imports first."""
        imported = [
            imp.desc.valtype for imp in self.imports if imp.kind == IMPORT_GLOBAL
        ]
        return imported + [g.type.valtype for g in self.globals]

    def func_type(self, index: int) -> FuncType | None:
        """Type of the function whose body is ``code[index]``, if resolvable."""
        if not 0 <= index < len(self.func_type_indices):
            return None
        type_idx = self.func_type_indices[index]
        if not 0 <= type_idx < len(self.types):
            return None
        return self.types[type_idx]
