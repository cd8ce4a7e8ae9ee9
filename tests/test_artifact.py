import base64
import gzip
import json

import pytest

from noirexec.core.artifact import load_artifact, save_artifact
from noirexec.core.errors import IoError, SerdeError

from conftest import FIELD, FIXTURES, make_artifact, sum_circuit


def test_load_exported_fixture():
    a = load_artifact(FIXTURES / "addition" / "export" / "addition.json")
    assert a.noir_version.startswith("0.36.0")
    assert [p.name for p in a.abi.parameters] == ["x", "y"]
    assert len(a.bytecode.functions) == 1
    assert a.bytecode.functions[0].return_values == [2]
    assert a.file_map[0].path == "src/main.nr"
    assert a.debug_symbols[0].locations[0][0].start == 57

def test_save_then_load(tmp_path):
    art = make_artifact([sum_circuit()], [("x", FIELD), ("y", FIELD)], FIELD)
    save_artifact(tmp_path / "export" / "sum.json", art)
    loaded = load_artifact(tmp_path / "export" / "sum.json")
    assert loaded.abi == art.abi
    assert loaded.bytecode == art.bytecode

def test_missing_file(tmp_path):
    with pytest.raises(IoError) as exc:
        load_artifact(tmp_path / "nope.json")
    assert exc.value.path == tmp_path / "nope.json"

def test_not_json(tmp_path):
    p = tmp_path / "f.json"
    p.write_text("{ definitely not json")
    with pytest.raises(SerdeError):
        load_artifact(p)

def test_incompatible_version(tmp_path):
    p = tmp_path / "f.json"
    save_artifact(p, make_artifact([sum_circuit()], version="0.31.0"))
    with pytest.raises(SerdeError, match="0.31.0"):
        load_artifact(p)

@pytest.mark.parametrize("field,value", [
    ("bytecode", "!!!not base64!!!"),
    ("bytecode", "aGVsbG8="),                  # base64, but not gzip
    ("abi", {"parameters": [{"name": "x", "type": {"kind": "matrix"}}]}),
    ("abi", None),
])
def test_malformed_fields(tmp_path, field, value):
    p = tmp_path / "f.json"
    save_artifact(p, make_artifact([sum_circuit()]))
    obj = json.loads(p.read_text())
    obj[field] = value
    p.write_text(json.dumps(obj))
    with pytest.raises(SerdeError):
        load_artifact(p)

def test_missing_version(tmp_path):
    p = tmp_path / "f.json"
    p.write_text(json.dumps({"abi": {}, "bytecode": ""}))
    with pytest.raises(SerdeError):
        load_artifact(p)

def test_binary_bytecode_is_rejected(tmp_path):
    # nargo's own exports carry bincode ACIR, not the JSON program this package reads
    p = tmp_path / "f.json"
    save_artifact(p, make_artifact([sum_circuit()]))
    obj = json.loads(p.read_text())
    obj["bytecode"] = base64.b64encode(gzip.compress(b"\x01\x00\x00\x00\x9c\xff")).decode("ascii")
    p.write_text(json.dumps(obj))
    with pytest.raises(SerdeError):
        load_artifact(p)
