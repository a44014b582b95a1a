"""Binaries produced by a C/WAT toolchain, used as decoder and validator inputs."""

# (func (param i32 i32) (result i32) local.get 0 local.get 1 i32.add)
# with a "name" custom section
ADD_TWO_I32 = bytes.fromhex(
    "0061736d0100000001070160027f7f017f030201000a09010700200020016a0b"
    "0014046e616d65020d01000200036c68730103726873"
)

# Four exported functions returning i32/i64/f32/f64 constants, plus table,
# memory, empty global and export sections
CONST_FUNCS = bytes.fromhex(
    "0061736d01000000019180808000046000017f6000017e6000017d6000017c03"
    "8580808000040001020304848080800001700000058380808000010001068180"
    "8080000007ca8080800005066d656d6f727902000d5f5a396933325f636f6e73"
    "747600000d5f5a396936345f636f6e73747600010d5f5a396633325f636f6e73"
    "747600020d5f5a396636345f636f6e73747600030abc80808000048880808000"
    "0041ffffffff070b8d808080000042ffffffffffffffffff000b878080800000"
    "43ffff7f7f0b8b8080800000442e02688302a2b97f0b"
)

# (func $addTwo (param f64 i32) (result i32) local.get 0 local.get 1 i32.add)
ADD_F64_AS_I32 = bytes.fromhex(
    "0061736d0100000001070160027c7f017f03020100070a010661646454776f00"
    "000a09010700200020016a0b0019046e616d65010901000661646454776f0207"
    "01000200000100"
)

# Three (i32, i32) -> i32 functions: i32.mul, i32.add, i32.div_s
MUL_ADD_DIVIDE = bytes.fromhex(
    "0061736d0100000001070160027f7f017f030403000000040401700000050301"
    "0001072f04095f5a346d756c7469690000085f5a33616464696900010b5f5a36"
    "64697669646569690002066d656d6f727902000a19030700200120006c0b0700"
    "200120006a0b0700200020016d0b004b046e616d6501230300095f5a346d756c"
    "74696901085f5a336164646969020b5f5a366469766964656969021f03000200"
    "027030010270310102000270300102703102020002703001027031"
)
