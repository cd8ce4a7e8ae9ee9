from __future__ import annotations
import json
from pathlib import Path
from typing import Mapping, Optional

import numpy as np

from .fieldla import BN254_PRIME

def witness_to_vector(witness: Mapping[int, int], n_vars: Optional[int] = None, p: int = BN254_PRIME) -> np.ndarray:
    """
    Dense z (length n_vars) from a sparse witness map; unassigned indices stay 0.
    n_vars defaults to one past the highest assigned index.
    """
    if n_vars is None:
        n_vars = max(witness) + 1 if witness else 0
    z = np.zeros(n_vars, dtype=object)
    for idx, v in witness.items():
        if 0 <= idx < n_vars:
            z[idx] = v % p
    return z

def dump_witness_json(path, witness: Mapping[int, int], n_vars: Optional[int] = None):
    z = witness_to_vector(witness, n_vars)
    outp = Path(path)
    outp.parent.mkdir(parents=True, exist_ok=True)
    outp.write_text(json.dumps({"values": [str(int(v)) for v in z]}))
