"""WebAssembly binary format decoder.

Only the sections the type checker reads are decoded (type, import,
function, global and code). Every other known section is skipped using its
declared size.
"""

import logging
import struct
from pathlib import Path
from typing import BinaryIO

from . import opcodes
from .errors import DecodeError
from .types import (
    FuncBody,
    FuncType,
    Global,
    GlobalType,
    Import,
    Instruction,
    Module,
    ValType,
    IMPORT_FUNC,
    IMPORT_GLOBAL,
    IMPORT_MEMORY,
    IMPORT_TABLE,
    VALTYPE_ENCODING,
)

logger = logging.getLogger(__name__)

# WASM magic number and version
WASM_MAGIC = b"\x00asm"
WASM_VERSION = 1

# Section IDs
SECTION_CUSTOM = 0
SECTION_TYPE = 1
SECTION_IMPORT = 2
SECTION_FUNCTION = 3
SECTION_TABLE = 4
SECTION_MEMORY = 5
SECTION_GLOBAL = 6
SECTION_EXPORT = 7
SECTION_START = 8
SECTION_ELEMENT = 9
SECTION_CODE = 10
SECTION_DATA = 11
SECTION_DATA_COUNT = 12
SECTION_TAG = 13

SKIPPED_SECTIONS = {
    SECTION_CUSTOM: "custom",
    SECTION_TABLE: "table",
    SECTION_MEMORY: "memory",
    SECTION_EXPORT: "export",
    SECTION_START: "start",
    SECTION_ELEMENT: "element",
    SECTION_DATA: "data",
    SECTION_DATA_COUNT: "data count",
    SECTION_TAG: "tag",
}

FUNC_TYPE_MARKER = 0x60
BLOCK_TYPE_EMPTY = 0x40

# Upper bound on locals per function body
MAX_LOCALS = 50_000


class BinaryReader:
    """A reader for binary data with position tracking."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.position = 0

    def read_byte(self) -> int:
        if self.position >= len(self.data):
            raise DecodeError(f"Unexpected end of data at position {self.position}")
        byte = self.data[self.position]
        self.position += 1
        return byte

    def read_bytes(self, n: int) -> bytes:
        end = self.position + n
        if end > len(self.data):
            raise DecodeError(
                f"Unexpected end of data: wanted {n} bytes at position {self.position}"
            )
        chunk = self.data[self.position : end]
        self.position = end
        return chunk

    def peek_byte(self) -> int:
        if self.position >= len(self.data):
            raise DecodeError(f"Unexpected end of data at position {self.position}")
        return self.data[self.position]

    def eof(self) -> bool:
        return self.position >= len(self.data)


def decode_unsigned_leb128(reader: BinaryReader, max_bits: int = 32) -> int:
    """Decode an unsigned LEB128 integer."""
    result = 0
    shift = 0
    while True:
        byte = reader.read_byte()
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result
        shift += 7
        if shift >= max_bits + 7:
            raise DecodeError("LEB128 integer too long")


def decode_signed_leb128(reader: BinaryReader, max_bits: int = 32) -> int:
    """Decode a signed LEB128 integer."""
    result = 0
    shift = 0
    while True:
        byte = reader.read_byte()
        result |= (byte & 0x7F) << shift
        shift += 7
        if not byte & 0x80:
            break
        if shift >= max_bits + 7:
            raise DecodeError("LEB128 integer too long")

    # Sign bit of the final group
    if byte & 0x40:
        result -= 1 << shift
    return result


def decode_name(reader: BinaryReader) -> str:
    """Decode a length-prefixed UTF-8 name."""
    raw = reader.read_bytes(decode_unsigned_leb128(reader))
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Invalid UTF-8 in name: {e}") from e


def decode_valtype(reader: BinaryReader) -> ValType:
    byte = reader.read_byte()
    try:
        return VALTYPE_ENCODING[byte]
    except KeyError:
        raise DecodeError(f"Unknown value type: 0x{byte:02x}") from None


def decode_vector(reader: BinaryReader, decode_item) -> list:
    """Decode a count-prefixed vector using ``decode_item`` for each entry."""
    count = decode_unsigned_leb128(reader)
    return [decode_item(reader) for _ in range(count)]


def skip_limits(reader: BinaryReader) -> None:
    flags = reader.read_byte()
    decode_unsigned_leb128(reader)
    if flags & 0x01:
        decode_unsigned_leb128(reader)


def decode_blocktype(reader: BinaryReader) -> tuple | int:
    """Decode a block type: empty, one value type, or a type index."""
    byte = reader.peek_byte()
    if byte == BLOCK_TYPE_EMPTY:
        reader.read_byte()
        return ()
    if byte in VALTYPE_ENCODING:
        reader.read_byte()
        return (VALTYPE_ENCODING[byte],)
    return decode_signed_leb128(reader, 33)


def _read_memarg(reader: BinaryReader) -> tuple[int, int]:
    align = decode_unsigned_leb128(reader)
    offset = decode_unsigned_leb128(reader)
    return (align, offset)


def _read_br_table(reader: BinaryReader) -> tuple[list[int], int]:
    labels = decode_vector(reader, decode_unsigned_leb128)
    return (labels, decode_unsigned_leb128(reader))


def _read_call_indirect(reader: BinaryReader) -> tuple[int, int]:
    type_idx = decode_unsigned_leb128(reader)
    table_idx = decode_unsigned_leb128(reader)
    return (type_idx, table_idx)


def _read_reserved(reader: BinaryReader) -> None:
    if reader.read_byte() != 0x00:
        raise DecodeError("Expected zero byte after memory instruction")
    return None


IMMEDIATE_READERS = {
    opcodes.IMM_NONE: lambda reader: None,
    opcodes.IMM_U32: decode_unsigned_leb128,
    opcodes.IMM_I32: lambda reader: decode_signed_leb128(reader, 32),
    opcodes.IMM_I64: lambda reader: decode_signed_leb128(reader, 64),
    opcodes.IMM_F32: lambda reader: struct.unpack("<f", reader.read_bytes(4))[0],
    opcodes.IMM_F64: lambda reader: struct.unpack("<d", reader.read_bytes(8))[0],
    opcodes.IMM_MEMARG: _read_memarg,
    opcodes.IMM_BLOCKTYPE: decode_blocktype,
    opcodes.IMM_BR_TABLE: _read_br_table,
    opcodes.IMM_CALL_INDIRECT: _read_call_indirect,
    opcodes.IMM_RESERVED: _read_reserved,
    opcodes.IMM_VALTYPES: lambda reader: tuple(decode_vector(reader, decode_valtype)),
    opcodes.IMM_REFTYPE: decode_valtype,
}


def decode_instruction(reader: BinaryReader) -> Instruction:
    """Decode a single instruction."""
    opcode = reader.read_byte()
    if opcode == opcodes.EXTENDED_PREFIX:
        sub_opcode = decode_unsigned_leb128(reader)
        opcode = opcodes.EXTENDED_BASE | sub_opcode
        if opcode not in opcodes.OPCODE_NAMES:
            raise DecodeError(f"Unsupported extended opcode: 0xFC 0x{sub_opcode:02x}")
    elif opcode not in opcodes.OPCODE_NAMES:
        raise DecodeError(f"Unknown opcode: 0x{opcode:02x}")

    read_immediate = IMMEDIATE_READERS[opcodes.IMMEDIATES[opcode]]
    return Instruction(opcodes.OPCODE_NAMES[opcode], read_immediate(reader))


def decode_expr(reader: BinaryReader) -> list[Instruction]:
    """Decode an instruction sequence up to and including its final "end"."""
    instructions = []
    depth = 0
    while True:
        instr = decode_instruction(reader)
        instructions.append(instr)
        if instr.opcode in opcodes.BLOCK_OPENERS:
            depth += 1
        elif instr.opcode == "end":
            if depth == 0:
                return instructions
            depth -= 1


def decode_func_type(reader: BinaryReader) -> FuncType:
    marker = reader.read_byte()
    if marker != FUNC_TYPE_MARKER:
        raise DecodeError(f"Expected function type marker 0x60, got 0x{marker:02x}")
    params = tuple(decode_vector(reader, decode_valtype))
    results = tuple(decode_vector(reader, decode_valtype))
    return FuncType(params, results)


def decode_global_type(reader: BinaryReader) -> GlobalType:
    valtype = decode_valtype(reader)
    return GlobalType(valtype, reader.read_byte() != 0)


def decode_import(reader: BinaryReader) -> Import:
    mod_name = decode_name(reader)
    name = decode_name(reader)
    kind = reader.read_byte()

    if kind == 0x00:
        return Import(mod_name, name, IMPORT_FUNC, decode_unsigned_leb128(reader))
    if kind == 0x01:
        elem_type = decode_valtype(reader)
        skip_limits(reader)
        return Import(mod_name, name, IMPORT_TABLE, elem_type)
    if kind == 0x02:
        skip_limits(reader)
        return Import(mod_name, name, IMPORT_MEMORY, None)
    if kind == 0x03:
        return Import(mod_name, name, IMPORT_GLOBAL, decode_global_type(reader))
    raise DecodeError(f"Unknown import kind: {kind}")


def decode_global(reader: BinaryReader) -> Global:
    global_type = decode_global_type(reader)
    return Global(global_type, decode_expr(reader))


def decode_func_body(reader: BinaryReader) -> FuncBody:
    """Decode one code section entry, checking its declared size."""
    body_size = decode_unsigned_leb128(reader)
    body_start = reader.position

    local_types: list[ValType] = []
    for _ in range(decode_unsigned_leb128(reader)):
        n = decode_unsigned_leb128(reader)
        if len(local_types) + n > MAX_LOCALS:
            raise DecodeError(f"Too many locals: more than {MAX_LOCALS} declared")
        local_types.extend([decode_valtype(reader)] * n)

    instructions = decode_expr(reader)

    consumed = reader.position - body_start
    if consumed != body_size:
        raise DecodeError(
            f"Function body size mismatch: expected {body_size}, got {consumed}"
        )
    return FuncBody(tuple(local_types), instructions)


def decode_section(reader: BinaryReader, module: Module) -> None:
    """Decode a single section into ``module``."""
    section_id = reader.read_byte()
    section_size = decode_unsigned_leb128(reader)
    section = BinaryReader(reader.read_bytes(section_size))

    if section_id in SKIPPED_SECTIONS:
        logger.debug(
            "Skipping %s section (%d bytes)", SKIPPED_SECTIONS[section_id], section_size
        )
        return

    if section_id == SECTION_TYPE:
        module.types.extend(decode_vector(section, decode_func_type))
    elif section_id == SECTION_IMPORT:
        module.imports.extend(decode_vector(section, decode_import))
    elif section_id == SECTION_FUNCTION:
        module.func_type_indices.extend(
            decode_vector(section, decode_unsigned_leb128)
        )
    elif section_id == SECTION_GLOBAL:
        module.globals.extend(decode_vector(section, decode_global))
    elif section_id == SECTION_CODE:
        bodies = decode_vector(section, decode_func_body)
        if len(bodies) != len(module.func_type_indices):
            raise DecodeError(
                f"Code section count ({len(bodies)}) != function section count "
                f"({len(module.func_type_indices)})"
            )
        module.code = bodies
    else:
        raise DecodeError(f"Unknown section id: {section_id}")

    if not section.eof():
        raise DecodeError(f"Trailing bytes in section {section_id}")
    logger.debug("Decoded section %d (%d bytes)", section_id, section_size)


def decode_module(source: bytes | BinaryIO | Path) -> Module:
    """Decode a WebAssembly module from binary format.

    Args:
        source: WASM bytes, file-like object, or path to .wasm file

    Returns:
        Decoded Module object

    Raises:
        DecodeError: If the binary format is invalid
    """
    if isinstance(source, Path):
        data = source.read_bytes()
    elif isinstance(source, (bytes, bytearray)):
        data = bytes(source)
    else:
        data = source.read()

    reader = BinaryReader(data)

    magic = reader.read_bytes(4)
    if magic != WASM_MAGIC:
        raise DecodeError(
            f"Invalid WASM magic number: expected {WASM_MAGIC!r}, got {magic!r}"
        )

    version = int.from_bytes(reader.read_bytes(4), "little")
    if version != WASM_VERSION:
        raise DecodeError(f"Unsupported WASM version: {version}")

    module = Module()
    while not reader.eof():
        decode_section(reader, module)
    return module
