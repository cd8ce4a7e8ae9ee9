from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..core.fieldla import BN254_PRIME, parse_field, inv_modp

@dataclass(frozen=True)
class Expression:
    """
    sum(c * w_a * w_b) + sum(c * w) + q_c, over F_p.
    JSON form mirrors ACIR:
      {"mul_terms": [[c, a, b]], "linear_combinations": [[c, w]], "q_c": c}
    """
    mul_terms: Tuple[Tuple[int, int, int], ...] = ()
    linear_combinations: Tuple[Tuple[int, int], ...] = ()
    q_c: int = 0

    def __post_init__(self):
        p = BN254_PRIME
        object.__setattr__(self, "mul_terms", tuple((c % p, a, b) for c, a, b in self.mul_terms))
        object.__setattr__(self, "linear_combinations", tuple((c % p, w) for c, w in self.linear_combinations))
        object.__setattr__(self, "q_c", self.q_c % p)

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "Expression":
        mul = tuple((parse_field(c), int(a), int(b)) for c, a, b in obj.get("mul_terms", []))
        lin = tuple((parse_field(c), int(w)) for c, w in obj.get("linear_combinations", []))
        return Expression(mul, lin, parse_field(obj.get("q_c", 0)))

    @staticmethod
    def witness(w: int) -> "Expression":
        return Expression(linear_combinations=((1, w),))

    def to_json(self) -> Dict[str, Any]:
        return {
            "mul_terms": [[str(c), a, b] for c, a, b in self.mul_terms],
            "linear_combinations": [[str(c), w] for c, w in self.linear_combinations],
            "q_c": str(self.q_c),
        }

    def witnesses(self) -> List[int]:
        out = []
        for _, a, b in self.mul_terms:
            out += [a, b]
        out += [w for _, w in self.linear_combinations]
        return sorted(set(out))

    def evaluate(self, witness: Dict[int, int], p: int = BN254_PRIME) -> Optional[int]:
        """Value of the expression, or None while any witness is unknown."""
        if any(w not in witness for w in self.witnesses()):
            return None
        acc = self.q_c
        for c, a, b in self.mul_terms:
            acc += c * witness[a] * witness[b]
        for c, w in self.linear_combinations:
            acc += c * witness[w]
        return acc % p

    def partial(self, witness: Dict[int, int], p: int = BN254_PRIME):
        """
        Fold all known witnesses into a constant.
        Returns (linear coefficients of unknowns, constant, has_nonlinear_unknown).
        """
        coeffs: Dict[int, int] = {}
        const = self.q_c
        nonlinear = False
        for c, a, b in self.mul_terms:
            ka, kb = a in witness, b in witness
            if ka and kb:
                const += c * witness[a] * witness[b]
            elif ka:
                coeffs[b] = (coeffs.get(b, 0) + c * witness[a]) % p
            elif kb:
                coeffs[a] = (coeffs.get(a, 0) + c * witness[b]) % p
            else:
                nonlinear = True
        for c, w in self.linear_combinations:
            if w in witness:
                const += c * witness[w]
            else:
                coeffs[w] = (coeffs.get(w, 0) + c) % p
        return {w: c for w, c in coeffs.items() if c != 0}, const % p, nonlinear

def solve_for_unknown(coeff: int, const: int, p: int = BN254_PRIME) -> int:
    # coeff * w + const == 0
    return (-const * inv_modp(coeff, p)) % p
