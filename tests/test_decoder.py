"""Tests for the WebAssembly binary decoder."""

import io
import struct

import pytest
from wasm_validator.decoder import (
    MAX_LOCALS,
    BinaryReader,
    decode_expr,
    decode_instruction,
    decode_module,
    decode_signed_leb128,
    decode_unsigned_leb128,
)
from wasm_validator.errors import DecodeError
from wasm_validator.types import FuncType, GlobalType, Instruction

from wasm_builder import (
    F32,
    F64,
    I32,
    I64,
    WASM_HEADER,
    func_body,
    func_type,
    make_module,
    section,
    uleb,
    vector,
)
from wasm_fixtures import ADD_TWO_I32, CONST_FUNCS, MUL_ADD_DIVIDE


class TestLEB128:
    """Test LEB128 variable-length integer encoding."""

    def test_decode_unsigned_single_byte(self):
        assert decode_unsigned_leb128(BinaryReader(bytes([0x00]))) == 0
        assert decode_unsigned_leb128(BinaryReader(bytes([0x7F]))) == 127

    def test_decode_unsigned_multibyte(self):
        # 624485 = 0xE5 0x8E 0x26
        reader = BinaryReader(bytes([0xE5, 0x8E, 0x26]))
        assert decode_unsigned_leb128(reader) == 624485
        assert reader.eof()

    def test_decode_unsigned_padded(self):
        # Section sizes emitted by some toolchains are padded to five bytes
        reader = BinaryReader(bytes([0x91, 0x80, 0x80, 0x80, 0x00]))
        assert decode_unsigned_leb128(reader) == 17

    def test_decode_unsigned_too_long(self):
        reader = BinaryReader(bytes([0x80] * 6 + [0x00]))
        with pytest.raises(DecodeError, match="too long"):
            decode_unsigned_leb128(reader)

    def test_decode_signed_negative(self):
        assert decode_signed_leb128(BinaryReader(bytes([0x7F]))) == -1
        # -123456 = 0xC0 0xBB 0x78
        reader = BinaryReader(bytes([0xC0, 0xBB, 0x78]))
        assert decode_signed_leb128(reader) == -123456

    def test_decode_signed_min_i32(self):
        reader = BinaryReader(bytes([0x80, 0x80, 0x80, 0x80, 0x78]))
        assert decode_signed_leb128(reader) == -(2**31)

    def test_decode_signed_max_i64(self):
        reader = BinaryReader(bytes([0xFF] * 9 + [0x00]))
        assert decode_signed_leb128(reader, 64) == 2**63 - 1


class TestBinaryReader:
    """Test the binary reader helper class."""

    def test_position_tracking(self):
        reader = BinaryReader(bytes([1, 2, 3, 4, 5]))
        assert reader.read_byte() == 1
        assert reader.read_bytes(2) == bytes([2, 3])
        assert reader.position == 3
        assert reader.peek_byte() == 4
        assert reader.position == 3

    def test_read_past_eof_raises(self):
        reader = BinaryReader(bytes([1]))
        reader.read_byte()
        assert reader.eof()
        with pytest.raises(DecodeError):
            reader.read_byte()
        with pytest.raises(DecodeError, match="wanted 2 bytes"):
            reader.read_bytes(2)


class TestDecodeInstruction:
    """Test decoding of single instructions and expressions."""

    def test_index_immediate(self):
        reader = BinaryReader(bytes([0x20, 0x05]))
        assert decode_instruction(reader) == Instruction("local.get", 5)

    def test_no_immediate(self):
        assert decode_instruction(BinaryReader(bytes([0x6A]))) == Instruction("i32.add")
        assert decode_instruction(BinaryReader(bytes([0xA6]))) == Instruction(
            "f64.copysign"
        )

    def test_const_immediates(self):
        reader = BinaryReader(bytes([0x41, 0x7F]))
        assert decode_instruction(reader) == Instruction("i32.const", -1)

        reader = BinaryReader(bytes([0x44]) + struct.pack("<d", 1.5))
        assert decode_instruction(reader) == Instruction("f64.const", 1.5)

    def test_memarg_immediate(self):
        reader = BinaryReader(bytes([0x28, 0x02, 0x10]))
        assert decode_instruction(reader) == Instruction("i32.load", (2, 16))

    def test_extended_opcode(self):
        reader = BinaryReader(bytes([0xFC, 0x06]))
        assert decode_instruction(reader) == Instruction("i64.trunc_sat_f64_s")

    def test_unsupported_extended_opcode(self):
        # memory.copy (bulk memory) is not decoded
        with pytest.raises(DecodeError, match="0xFC 0x0a"):
            decode_instruction(BinaryReader(bytes([0xFC, 0x0A, 0x00, 0x00])))

    def test_unknown_opcode(self):
        with pytest.raises(DecodeError, match="Unknown opcode: 0x27"):
            decode_instruction(BinaryReader(bytes([0x27])))

    def test_expr_tracks_nesting(self):
        # block (result i32) i32.const 1 end end
        reader = BinaryReader(bytes([0x02, 0x7F, 0x41, 0x01, 0x0B, 0x0B, 0x01]))
        instructions = decode_expr(reader)
        assert [i.opcode for i in instructions] == [
            "block",
            "i32.const",
            "end",
            "end",
        ]
        assert instructions[0].operand == ("i32",)
        # The trailing nop is not part of the expression
        assert reader.read_byte() == 0x01

    def test_br_table(self):
        reader = BinaryReader(bytes([0x0E, 0x02, 0x00, 0x01, 0x02]))
        assert decode_instruction(reader) == Instruction("br_table", ([0, 1], 2))


class TestDecodeModule:
    """Test complete module decoding."""

    def test_decode_minimal_module(self):
        module = decode_module(WASM_HEADER)
        assert module.types == []
        assert module.code is None

    def test_decode_invalid_magic(self):
        with pytest.raises(DecodeError, match="magic"):
            decode_module(bytes(4) + WASM_HEADER[4:])

    def test_decode_invalid_version(self):
        with pytest.raises(DecodeError, match="version"):
            decode_module(WASM_HEADER[:4] + bytes([0x02, 0x00, 0x00, 0x00]))

    def test_decode_truncated_section(self):
        with pytest.raises(DecodeError, match="Unexpected end"):
            decode_module(WASM_HEADER + bytes([0x01, 0x07, 0x01, 0x60]))

    def test_decode_function(self):
        module = decode_module(ADD_TWO_I32)
        assert module.types == [FuncType(("i32", "i32"), ("i32",))]
        assert module.func_type_indices == [0]
        assert len(module.code) == 1
        body = module.code[0]
        assert body.locals == ()
        assert body.instructions == [
            Instruction("local.get", 0),
            Instruction("local.get", 1),
            Instruction("i32.add"),
            Instruction("end"),
        ]

    def test_decode_skips_other_sections(self):
        module = decode_module(MUL_ADD_DIVIDE)
        assert module.func_type_indices == [0, 0, 0]
        assert [body.instructions[2].opcode for body in module.code] == [
            "i32.mul",
            "i32.add",
            "i32.div_s",
        ]

    def test_decode_padded_sizes(self):
        module = decode_module(CONST_FUNCS)
        assert [t.results for t in module.types] == [
            ("i32",),
            ("i64",),
            ("f32",),
            ("f64",),
        ]
        assert module.globals == []
        assert module.code[0].instructions[0] == Instruction("i32.const", 2**31 - 1)
        assert module.code[1].instructions[0] == Instruction("i64.const", 2**63 - 1)

    def test_decode_locals(self):
        wasm = make_module(
            types=[func_type([I32], [])],
            func_types=[0],
            bodies=[func_body(bytes([0x0B]), [(2, I64), (1, F32)])],
        )
        module = decode_module(wasm)
        assert module.code[0].locals == ("i64", "i64", "f32")

    def test_decode_globals_and_imports(self):
        env_global = uleb(3) + b"env" + uleb(1) + b"g" + bytes([0x03, F64, 0x00])
        imports = section(2, vector([env_global]))
        globals_ = section(6, vector([bytes([I64, 0x01, 0x42, 0x00, 0x0B])]))
        module = decode_module(WASM_HEADER + imports + globals_)
        assert module.imports[0].kind == "global"
        assert module.imports[0].desc == GlobalType("f64", False)
        assert module.globals[0].type == GlobalType("i64", True)
        assert module.global_types() == ["f64", "i64"]

    def test_decode_from_path_and_file(self, tmp_path):
        path = tmp_path / "add.wasm"
        path.write_bytes(ADD_TWO_I32)
        assert decode_module(path).func_type_indices == [0]
        assert decode_module(io.BytesIO(ADD_TWO_I32)).func_type_indices == [0]

    def test_too_many_locals(self):
        # One group of 20 000 000 i32 locals in a few bytes
        body = func_body(bytes([0x0B]), [(20_000_000, I32)])
        wasm = make_module([func_type([], [])], [0], [body])
        with pytest.raises(DecodeError, match="Too many locals"):
            decode_module(wasm)

    def test_locals_limit_counts_all_groups(self):
        groups = [(MAX_LOCALS, I32), (1, I64)]
        wasm = make_module([func_type([], [])], [0], [func_body(bytes([0x0B]), groups)])
        with pytest.raises(DecodeError, match="Too many locals"):
            decode_module(wasm)

    def test_body_size_mismatch(self):
        # Declared size 5, actual content 4 bytes: 0 locals, i32.const 0, end
        body = uleb(5) + bytes([0x00, 0x41, 0x00, 0x0B, 0x01])
        wasm = make_module([func_type([], [])], [0], [body])
        with pytest.raises(DecodeError, match="size mismatch"):
            decode_module(wasm)

    def test_code_without_function_section(self):
        wasm = WASM_HEADER + section(10, vector([func_body(bytes([0x0B]))]))
        with pytest.raises(DecodeError, match="function section count"):
            decode_module(wasm)

    def test_unknown_section(self):
        with pytest.raises(DecodeError, match="Unknown section id: 42"):
            decode_module(WASM_HEADER + bytes([42, 0x00]))
