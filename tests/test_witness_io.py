import json

from noirexec.core.fieldla import BN254_PRIME
from noirexec.core.witness_io import dump_witness_json, witness_to_vector

def test_sparse_witness_to_dense_vector():
    z = witness_to_vector({0: 2, 3: BN254_PRIME + 7})
    assert z.dtype == object
    assert list(z) == [2, 0, 0, 7]
    assert len(witness_to_vector({})) == 0
    # indices past n_vars are dropped
    assert list(witness_to_vector({0: 1, 5: 1}, n_vars=2)) == [1, 0]

def test_dump_writes_decimal_strings(tmp_path):
    out = tmp_path / "w" / "main.json"
    dump_witness_json(out, {0: 2, 2: 5})
    assert json.loads(out.read_text()) == {"values": ["2", "0", "5"]}

def test_dump_pads_to_n_vars(tmp_path):
    out = tmp_path / "w.json"
    dump_witness_json(out, {0: BN254_PRIME - 1}, n_vars=3)
    assert json.loads(out.read_text())["values"] == [str(BN254_PRIME - 1), "0", "0"]
