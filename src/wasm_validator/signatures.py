"""Stack effects of the instructions the checker understands."""

from dataclasses import dataclass

from .classifications import BINOP_CATEGORIES, CONST_INST, classify
from .types import Instruction, ValType, NUMERIC_VALTYPES


@dataclass(frozen=True)
class Signature:
    """Value types an instruction pops (top of stack first) and pushes."""

    pop: tuple[ValType, ...]
    push: tuple[ValType, ...]

    def __repr__(self) -> str:
        return f"[{' '.join(self.pop)}] -> [{' '.join(self.push)}]"


def const_result_type(instruction: Instruction) -> ValType | None:
    """Value type named by a constant instruction's mnemonic ("f64.const")."""
    prefix, _, _ = instruction.opcode.partition(".")
    if prefix in NUMERIC_VALTYPES:
        return prefix
    return None


def resolve_signature(instruction: Instruction) -> Signature | None:
    """Map an instruction to its stack effect.

    Binary operators pop two operands of their type and push one; constants
    pop nothing and push their own type. Every other instruction returns
    None and is not checked.
    """
    category = classify(instruction)
    if category is None:
        return None

    for binop in BINOP_CATEGORIES:
        if category == binop:
            return Signature(pop=(binop.valtype,) * 2, push=(binop.valtype,))

    if category in CONST_INST:
        valtype = const_result_type(instruction)
        if valtype is not None:
            return Signature(pop=(), push=(valtype,))

    return None
