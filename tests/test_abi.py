import pytest

from noirexec.core.abi import Abi, AbiParameter, AbiReturnType, AbiType
from noirexec.core.convert import to_value_tree
from noirexec.core.errors import (
    InputOutsideRangeError, MissingParamError, MissingWitnessValueError,
    TypeMismatchError, UnexpectedParamsError,
)
from noirexec.core.fieldla import BN254_PRIME
from noirexec.core.values import Record, Scalar, Sequence, Text

FIELD = AbiType("field")
U8 = AbiType("integer", sign="unsigned", width=8)
I8 = AbiType("integer", sign="signed", width=8)
POINT = AbiType("struct", path="Point", fields=(("y", FIELD), ("x", FIELD)))


def abi(*params, ret=None):
    return Abi([AbiParameter(n, t) for n, t in params], AbiReturnType(ret) if ret else None)


def test_parse_noir_abi_json():
    a = Abi.from_json({
        "parameters": [
            {"name": "x", "type": {"kind": "field"}, "visibility": "private"},
            {"name": "xs", "type": {"kind": "array", "length": 3,
                                    "type": {"kind": "integer", "sign": "unsigned", "width": 32}},
             "visibility": "public"},
            {"name": "msg", "type": {"kind": "string", "length": 5}, "visibility": "private"},
        ],
        "return_type": {"abi_type": {"kind": "tuple", "fields": [{"kind": "boolean"}, {"kind": "field"}]},
                        "visibility": "public"},
        "error_types": {"42": {"error_kind": "string", "string": "boom"}},
    })
    assert [p.name for p in a.parameters] == ["x", "xs", "msg"]
    assert a.parameters[1].visibility == "public"
    assert a.field_count() == 1 + 3 + 5
    assert a.return_type.abi_type.describe() == "(bool, Field)"
    assert a.error_message("42") == "boom"
    assert Abi.from_json(a.to_json()) == a

def test_encode_flattens_in_declaration_order():
    a = abi(("x", FIELD), ("xs", AbiType("array", length=2, elem=FIELD)))
    w = a.encode({"xs": to_value_tree([5, 6]), "x": to_value_tree(4)})
    assert w == {0: 4, 1: 5, 2: 6}

def test_struct_fields_are_matched_by_name():
    # converter sorts keys (x, y); the ABI declares (y, x)
    a = abi(("p", POINT))
    w = a.encode({"p": to_value_tree({"x": 1, "y": 2})})
    assert w == {0: 2, 1: 1}

def test_missing_param():
    a = abi(("x", FIELD), ("y", FIELD))
    with pytest.raises(MissingParamError):
        a.encode({"x": Scalar(1)})

def test_unexpected_param():
    a = abi(("x", FIELD))
    with pytest.raises(UnexpectedParamsError) as exc:
        a.encode({"x": Scalar(1), "z": Scalar(2)})
    assert exc.value.names == ["z"]

@pytest.mark.parametrize("typ,value", [
    (FIELD, Text("1")),
    (AbiType("array", length=2, elem=FIELD), to_value_tree([1, 2, 3])),
    (AbiType("string", length=3), Text("four")),
    (POINT, to_value_tree({"x": 1})),
    (POINT, to_value_tree({"x": 1, "y": 2, "z": 3})),
    (AbiType("tuple", items=(FIELD, FIELD)), Scalar(1)),
])
def test_shape_mismatch(typ, value):
    with pytest.raises(TypeMismatchError):
        abi(("v", typ)).encode({"v": value})

def test_integer_ranges():
    with pytest.raises(InputOutsideRangeError):
        abi(("v", U8)).encode({"v": Scalar(256)})
    with pytest.raises(InputOutsideRangeError):
        abi(("v", I8)).encode({"v": to_value_tree(-129)})
    with pytest.raises(InputOutsideRangeError):
        abi(("v", AbiType("boolean"))).encode({"v": Scalar(2)})

def test_signed_integers_use_twos_complement():
    a = abi(("v", I8), ret=I8)
    w = a.encode({"v": to_value_tree(-1)})
    assert w == {0: 0xFF}
    w[1] = 0x80
    inputs, ret = a.decode(w)
    assert inputs["v"] == Scalar(BN254_PRIME - 1)
    assert ret == to_value_tree(-128)

def test_decode_strings_and_structs():
    a = abi(("s", AbiType("string", length=2)), ret=POINT)
    inputs, ret = a.decode({0: ord("h"), 1: ord("i"), 2: 7, 3: 8})
    assert inputs["s"] == Text("hi")
    assert ret == Record({"x": Scalar(8), "y": Scalar(7)})

def test_decode_missing_param_witness():
    with pytest.raises(MissingWitnessValueError):
        abi(("x", FIELD), ("y", FIELD)).decode({0: 1})

def test_decode_without_return_witnesses():
    a = abi(("x", FIELD), ret=FIELD)
    assert a.decode({0: 1}) == ({"x": Scalar(1)}, None)

def test_void_function_decodes_to_none():
    a = abi(("x", FIELD))
    assert a.decode({0: 1, 1: 99})[1] is None

def test_sequence_return_value():
    a = abi(ret=AbiType("array", length=3, elem=FIELD))
    _, ret = a.decode({0: 1, 1: 2, 2: 3})
    assert ret == Sequence((Scalar(1), Scalar(2), Scalar(3)))
