from __future__ import annotations
from typing import List

from ..core.fieldla import BN254_PRIME


class BlackBoxError(Exception):
    pass


class Bn254BlackBoxSolver:
    """Field backend for BN254: the prime and the black-box functions the solver delegates."""

    prime = BN254_PRIME

    def solve(self, name: str, inputs: List[int], num_bits: int) -> List[int]:
        if name == "RANGE":
            for x in inputs:
                if x.bit_length() > num_bits:
                    raise BlackBoxError(f"value {x} does not fit in {num_bits} bits")
            return []
        if name in ("AND", "XOR"):
            if len(inputs) != 2:
                raise BlackBoxError(f"expected 2 inputs, got {len(inputs)}")
            lhs, rhs = inputs
            if lhs.bit_length() > num_bits or rhs.bit_length() > num_bits:
                raise BlackBoxError(f"inputs exceed {num_bits} bits")
            return [lhs & rhs] if name == "AND" else [lhs ^ rhs]
        raise BlackBoxError(f"unsupported black box function {name!r}")
