from __future__ import annotations
import dataclasses
import math
from functools import singledispatch
from typing import Any, Dict

import numpy as np

from .fieldla import U64_MAX, to_hex
from .values import Scalar, Sequence, Text, Record, ValueTree, InputMap


class ProjectionError(TypeError):
    """A host value has no projection into the generic tree."""


# ---- stage (a): host value -> generic tree (None/bool/int/float/str/list/dict) ----

@singledispatch
def to_generic(value) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_generic(getattr(value, f.name)) for f in dataclasses.fields(value)}
    raise ProjectionError(f"no generic projection for {type(value).__name__}")

@to_generic.register(type(None))
def _(value):
    return None

@to_generic.register(bool)
def _(value):
    return value

@to_generic.register(int)
def _(value):
    return int(value)

@to_generic.register(float)
def _(value):
    # JSON has no NaN/inf; they project to null
    return value if math.isfinite(value) else None

@to_generic.register(str)
def _(value):
    return value

@to_generic.register(bytes)
@to_generic.register(bytearray)
@to_generic.register(memoryview)
def _(value):
    return list(bytes(value))

@to_generic.register(list)
@to_generic.register(tuple)
def _(value):
    return [to_generic(v) for v in value]

@to_generic.register(dict)
def _(value):
    out: Dict[str, Any] = {}
    for k, v in value.items():
        if isinstance(k, bool) or not isinstance(k, (str, int)):
            raise ProjectionError(f"object keys must be strings, got {type(k).__name__}")
        out[str(k)] = to_generic(v)
    return out

@to_generic.register(np.bool_)
def _(value):
    return bool(value)

@to_generic.register(np.integer)
def _(value):
    return int(value)

@to_generic.register(np.floating)
def _(value):
    return to_generic(float(value))

@to_generic.register(np.ndarray)
def _(value):
    return [to_generic(v) for v in value.tolist()]


# ---- stage (b): generic tree -> value tree ----

def _saturating_u64(x: float) -> int:
    # truncate toward zero, clamp to [0, 2^64 - 1]
    if x != x or x <= 0:
        return 0
    if x >= U64_MAX:
        return U64_MAX
    return int(x)

def _int_to_scalar(x: int) -> Scalar:
    # i64 and u64 embed directly; negatives land on p - |x|.
    # Python ints wider than 64 bits just wrap mod p.
    return Scalar(x)

def generic_to_value_tree(g) -> ValueTree:
    if g is None:
        return Scalar(0)
    if isinstance(g, bool):
        return Scalar(1 if g else 0)
    if isinstance(g, int):
        return _int_to_scalar(g)
    if isinstance(g, float):
        return Scalar(_saturating_u64(g))
    if isinstance(g, str):
        return Text(g)
    if isinstance(g, list):
        return Sequence(tuple(generic_to_value_tree(v) for v in g))
    if isinstance(g, dict):
        return Record({k: generic_to_value_tree(g[k]) for k in sorted(g)})
    raise TypeError(f"not a generic tree value: {type(g).__name__}")

def to_value_tree(value) -> ValueTree:
    """
    Convert any host value into a value tree:

      >>> to_value_tree({"b": "hi", "a": [1, True]})
      Record(fields={'a': Sequence(items=(Scalar(value=1), Scalar(value=1))), 'b': Text(text='hi')})
    """
    if isinstance(value, (Scalar, Sequence, Text, Record)):
        return value
    return generic_to_value_tree(to_generic(value))


# ---- reverse: value tree -> JSON-able data (for display) ----

def value_tree_to_json(v: ValueTree):
    if isinstance(v, Scalar):
        return to_hex(v.value)
    if isinstance(v, Text):
        return v.text
    if isinstance(v, Sequence):
        return [value_tree_to_json(x) for x in v.items]
    if isinstance(v, Record):
        return {k: value_tree_to_json(x) for k, x in v.fields.items()}
    raise TypeError(f"not a value tree: {type(v).__name__}")

def input_map_from_generic(obj: Dict[str, Any]) -> InputMap:
    return {name: to_value_tree(v) for name, v in obj.items()}
