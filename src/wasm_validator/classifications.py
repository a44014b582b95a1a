"""Instruction classification tables.

Instructions are grouped into categories by operation kind only; the
immediate operand an instruction carries never affects its category.
Lookups go through ``CATEGORY_TABLE``, a mnemonic-keyed dict, so adding an
opcode to a category means adding it to one tuple below.
"""

from dataclasses import dataclass
from typing import Iterable

from .types import (
    Instruction,
    ValType,
    VALTYPE_F32,
    VALTYPE_F64,
    VALTYPE_I32,
    VALTYPE_I64,
)

# Category kinds
ACCESSOR = "accessor"
BINOP = "binop"
CONST = "const"


@dataclass(frozen=True)
class Category:
    """A semantic instruction category, optionally tied to one value type."""

    kind: str
    valtype: ValType | None = None

    def __repr__(self) -> str:
        if self.valtype is None:
            return f"<{self.kind}>"
        return f"<{self.valtype} {self.kind}>"


GET_INST = Category(ACCESSOR)
I32_BINOP = Category(BINOP, VALTYPE_I32)
I64_BINOP = Category(BINOP, VALTYPE_I64)
F32_BINOP = Category(BINOP, VALTYPE_F32)
F64_BINOP = Category(BINOP, VALTYPE_F64)
I32_CONST = Category(CONST, VALTYPE_I32)
I64_CONST = Category(CONST, VALTYPE_I64)
F32_CONST = Category(CONST, VALTYPE_F32)
F64_CONST = Category(CONST, VALTYPE_F64)

# Checked in this order by the signature resolver
BINOP_CATEGORIES = (I32_BINOP, I64_BINOP, F32_BINOP, F64_BINOP)
CONST_INST = (I32_CONST, I64_CONST, F32_CONST, F64_CONST)

_INT_ARITHMETIC = (
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
# i32 comparisons also have the [i32 i32] -> [i32] shape. i64/f32/f64
# comparisons push an i32, not their operand type, so they stay unclassified.
_I32_COMPARE = (
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
_FLOAT_ARITHMETIC = ("add", "sub", "mul", "div", "min", "max", "copysign")


def _ops(prefix: str, names: Iterable[str]) -> tuple[str, ...]:
    return tuple(f"{prefix}.{name}" for name in names)


CATEGORY_MEMBERS: dict[Category, tuple[str, ...]] = {
    GET_INST: ("local.get", "global.get"),
    I32_BINOP: _ops("i32", _INT_ARITHMETIC + _I32_COMPARE),
    I64_BINOP: _ops("i64", _INT_ARITHMETIC),
    F32_BINOP: _ops("f32", _FLOAT_ARITHMETIC),
    F64_BINOP: _ops("f64", _FLOAT_ARITHMETIC),
    I32_CONST: ("i32.const",),
    I64_CONST: ("i64.const",),
    F32_CONST: ("f32.const",),
    F64_CONST: ("f64.const",),
}


def build_category_table(
    members: dict[Category, tuple[str, ...]],
) -> dict[str, Category]:
    """Invert ``members`` into a mnemonic -> category lookup.

    Raises ValueError if a mnemonic is listed under two categories.
    """
    table: dict[str, Category] = {}
    for category, opcodes in members.items():
        for opcode in opcodes:
            existing = table.setdefault(opcode, category)
            if existing != category:
                raise ValueError(
                    f"{opcode} is listed in both {existing!r} and {category!r}"
                )
    return table


CATEGORY_TABLE = build_category_table(CATEGORY_MEMBERS)


def classify(instruction: Instruction) -> Category | None:
    """Return the category of ``instruction``, or None if it has none."""
    return CATEGORY_TABLE.get(instruction.opcode)


def contains(
    instruction: Instruction, categories: Category | Iterable[Category]
) -> bool:
    """Check whether the instruction's kind belongs to the given category(ies)."""
    category = classify(instruction)
    if category is None:
        return False
    if isinstance(categories, Category):
        return category == categories
    return category in categories
