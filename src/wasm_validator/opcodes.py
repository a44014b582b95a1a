"""WebAssembly opcode table.

Every opcode the decoder understands is listed once, with its text-format
mnemonic and the kind of immediate that follows it in the binary encoding.
"""

# Immediate kinds
IMM_NONE = "none"
IMM_U32 = "u32"  # label, function, local, global or table index
IMM_I32 = "i32"
IMM_I64 = "i64"
IMM_F32 = "f32"
IMM_F64 = "f64"
IMM_MEMARG = "memarg"  # align + offset
IMM_BLOCKTYPE = "blocktype"
IMM_BR_TABLE = "br_table"
IMM_CALL_INDIRECT = "call_indirect"
IMM_RESERVED = "reserved"  # single zero byte (memory index in the MVP)
IMM_VALTYPES = "valtypes"  # typed select
IMM_REFTYPE = "reftype"

# Prefix byte for the 0xFC extension space
EXTENDED_PREFIX = 0xFC

# Extended opcodes are stored as 0xFC00 | sub_opcode
EXTENDED_BASE = 0xFC00


def _family(
    start: int, prefix: str, names: tuple[str, ...], immediate: str = IMM_NONE
) -> list[tuple[int, str, str]]:
    """Consecutive opcodes sharing a type prefix, e.g. i32.add .. i32.rotr."""
    return [
        (start + offset, f"{prefix}.{name}", immediate)
        for offset, name in enumerate(names)
    ]


_INT_COMPARE = (
    "eq",
    "ne",
    "lt_s",
    "lt_u",
    "gt_s",
    "gt_u",
    "le_s",
    "le_u",
    "ge_s",
    "ge_u",
)
_FLOAT_COMPARE = ("eq", "ne", "lt", "gt", "le", "ge")
_INT_UNARY = ("clz", "ctz", "popcnt")
_INT_BINARY = (
    "add",
    "sub",
    "mul",
    "div_s",
    "div_u",
    "rem_s",
    "rem_u",
    "and",
    "or",
    "xor",
    "shl",
    "shr_s",
    "shr_u",
    "rotl",
    "rotr",
)
_FLOAT_UNARY = ("abs", "neg", "ceil", "floor", "trunc", "nearest", "sqrt")
_FLOAT_BINARY = ("add", "sub", "mul", "div", "min", "max", "copysign")

OPCODE_TABLE: list[tuple[int, str, str]] = [
    # Control
    (0x00, "unreachable", IMM_NONE),
    (0x01, "nop", IMM_NONE),
    (0x02, "block", IMM_BLOCKTYPE),
    (0x03, "loop", IMM_BLOCKTYPE),
    (0x04, "if", IMM_BLOCKTYPE),
    (0x05, "else", IMM_NONE),
    (0x0B, "end", IMM_NONE),
    (0x0C, "br", IMM_U32),
    (0x0D, "br_if", IMM_U32),
    (0x0E, "br_table", IMM_BR_TABLE),
    (0x0F, "return", IMM_NONE),
    (0x10, "call", IMM_U32),
    (0x11, "call_indirect", IMM_CALL_INDIRECT),
    # Parametric
    (0x1A, "drop", IMM_NONE),
    (0x1B, "select", IMM_NONE),
    (0x1C, "select", IMM_VALTYPES),
    # Variable
    (0x20, "local.get", IMM_U32),
    (0x21, "local.set", IMM_U32),
    (0x22, "local.tee", IMM_U32),
    (0x23, "global.get", IMM_U32),
    (0x24, "global.set", IMM_U32),
    # Table
    (0x25, "table.get", IMM_U32),
    (0x26, "table.set", IMM_U32),
    # Memory
    (0x28, "i32.load", IMM_MEMARG),
    (0x29, "i64.load", IMM_MEMARG),
    (0x2A, "f32.load", IMM_MEMARG),
    (0x2B, "f64.load", IMM_MEMARG),
    *_family(0x2C, "i32", ("load8_s", "load8_u", "load16_s", "load16_u"), IMM_MEMARG),
    *_family(
        0x30,
        "i64",
        ("load8_s", "load8_u", "load16_s", "load16_u", "load32_s", "load32_u"),
        IMM_MEMARG,
    ),
    (0x36, "i32.store", IMM_MEMARG),
    (0x37, "i64.store", IMM_MEMARG),
    (0x38, "f32.store", IMM_MEMARG),
    (0x39, "f64.store", IMM_MEMARG),
    *_family(0x3A, "i32", ("store8", "store16"), IMM_MEMARG),
    *_family(0x3C, "i64", ("store8", "store16", "store32"), IMM_MEMARG),
    (0x3F, "memory.size", IMM_RESERVED),
    (0x40, "memory.grow", IMM_RESERVED),
    # Constants
    (0x41, "i32.const", IMM_I32),
    (0x42, "i64.const", IMM_I64),
    (0x43, "f32.const", IMM_F32),
    (0x44, "f64.const", IMM_F64),
    # Comparisons
    (0x45, "i32.eqz", IMM_NONE),
    *_family(0x46, "i32", _INT_COMPARE),
    (0x50, "i64.eqz", IMM_NONE),
    *_family(0x51, "i64", _INT_COMPARE),
    *_family(0x5B, "f32", _FLOAT_COMPARE),
    *_family(0x61, "f64", _FLOAT_COMPARE),
    # Arithmetic
    *_family(0x67, "i32", _INT_UNARY + _INT_BINARY),
    *_family(0x79, "i64", _INT_UNARY + _INT_BINARY),
    *_family(0x8B, "f32", _FLOAT_UNARY + _FLOAT_BINARY),
    *_family(0x99, "f64", _FLOAT_UNARY + _FLOAT_BINARY),
    # Conversions
    *_family(
        0xA7,
        "i32",
        ("wrap_i64", "trunc_f32_s", "trunc_f32_u", "trunc_f64_s", "trunc_f64_u"),
    ),
    *_family(
        0xAC,
        "i64",
        (
            "extend_i32_s",
            "extend_i32_u",
            "trunc_f32_s",
            "trunc_f32_u",
            "trunc_f64_s",
            "trunc_f64_u",
        ),
    ),
    *_family(
        0xB2,
        "f32",
        (
            "convert_i32_s",
            "convert_i32_u",
            "convert_i64_s",
            "convert_i64_u",
            "demote_f64",
        ),
    ),
    *_family(
        0xB7,
        "f64",
        (
            "convert_i32_s",
            "convert_i32_u",
            "convert_i64_s",
            "convert_i64_u",
            "promote_f32",
        ),
    ),
    (0xBC, "i32.reinterpret_f32", IMM_NONE),
    (0xBD, "i64.reinterpret_f64", IMM_NONE),
    (0xBE, "f32.reinterpret_i32", IMM_NONE),
    (0xBF, "f64.reinterpret_i64", IMM_NONE),
    # Sign extension
    *_family(0xC0, "i32", ("extend8_s", "extend16_s")),
    *_family(0xC2, "i64", ("extend8_s", "extend16_s", "extend32_s")),
    # Reference
    (0xD0, "ref.null", IMM_REFTYPE),
    (0xD1, "ref.is_null", IMM_NONE),
    (0xD2, "ref.func", IMM_U32),
    # Non-trapping float-to-int conversions (0xFC prefix)
    *_family(
        EXTENDED_BASE,
        "i32",
        ("trunc_sat_f32_s", "trunc_sat_f32_u", "trunc_sat_f64_s", "trunc_sat_f64_u"),
    ),
    *_family(
        EXTENDED_BASE | 0x04,
        "i64",
        ("trunc_sat_f32_s", "trunc_sat_f32_u", "trunc_sat_f64_s", "trunc_sat_f64_u"),
    ),
]

# Opcode to name mapping
OPCODE_NAMES: dict[int, str] = {op: name for op, name, _ in OPCODE_TABLE}

# Opcode to immediate kind
IMMEDIATES: dict[int, str] = {op: imm for op, _, imm in OPCODE_TABLE}

# Structured instructions that open a nesting level closed by "end"
BLOCK_OPENERS = frozenset({"block", "loop", "if"})
