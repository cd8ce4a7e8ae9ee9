from __future__ import annotations

BN254_PRIME = 21888242871839275222246405745257275088548364400416034343698204186575808495617

I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1
U64_MAX = (1 << 64) - 1

def modp(x: int, p: int = BN254_PRIME) -> int:
    r = x % p
    return r if r >= 0 else r + p

def inv_modp(a: int, p: int = BN254_PRIME) -> int:
    a = a % p
    if a == 0:
        raise ZeroDivisionError("No inverse for 0 mod p")
    return pow(a, p - 2, p)

def parse_field(s, p: int = BN254_PRIME) -> int:
    """
    Parse a coefficient as found in artifacts:
      • ints
      • decimal strings, optionally negative ("-1")
      • hex strings ("0x1f", "-0x1")
    Return value reduced mod p.
    """
    if isinstance(s, bool):
        raise ValueError(f"Unsupported field value: {s!r}")
    if isinstance(s, int):
        return modp(s, p)
    if not isinstance(s, str):
        raise ValueError(f"Unsupported field value type: {type(s)}")
    t = s.strip()
    neg = t.startswith("-")
    if neg:
        t = t[1:]
    v = int(t, 16) if t.startswith(("0x", "0X")) else int(t)
    return modp(-v if neg else v, p)

def to_hex(x: int) -> str:
    # fixed width: 32 bytes
    return "0x" + format(x, "064x")

def is_negative(x: int, p: int = BN254_PRIME) -> bool:
    """Field elements in the upper half of [0, p) stand for negative integers."""
    return x > (p - 1) // 2

def to_signed(x: int, p: int = BN254_PRIME) -> int:
    return x - p if is_negative(x, p) else x

def twos_complement(x: int, width: int) -> int:
    return x & ((1 << width) - 1)

def from_twos_complement(x: int, width: int) -> int:
    if x >= 1 << (width - 1):
        return x - (1 << width)
    return x
