"""Operand stack type checker for WebAssembly modules.

Decodes a WebAssembly binary and checks that the numeric instructions in
every function body find operands of the right type on the stack.
"""

from .decoder import (
    decode_module,
    BinaryReader,
    decode_unsigned_leb128,
    decode_signed_leb128,
)
from .errors import (
    WasmError,
    DecodeError,
    ValidationError,
    InvalidOperation,
    LocalNotFound,
    GlobalNotFound,
    UnmatchedInstruction,
)
from .types import Module, FuncType, FuncBody, Global, GlobalType, Import, Instruction
from .signatures import Signature, resolve_signature
from .validator import Filter, ModuleValidator, validate_module

__version__ = "0.1.0"

__all__ = [
    # Main API
    "decode_module",
    "validate_module",
    "ModuleValidator",
    "Filter",
    "resolve_signature",
    "Signature",
    # Decoder internals (for testing)
    "BinaryReader",
    "decode_unsigned_leb128",
    "decode_signed_leb128",
    # Types
    "Module",
    "FuncType",
    "FuncBody",
    "Global",
    "GlobalType",
    "Import",
    "Instruction",
    # Errors
    "WasmError",
    "DecodeError",
    "ValidationError",
    "InvalidOperation",
    "LocalNotFound",
    "GlobalNotFound",
    "UnmatchedInstruction",
]
