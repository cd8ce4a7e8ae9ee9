from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import (
    AbiError, MissingParamError, UnexpectedParamsError, TypeMismatchError,
    InputOutsideRangeError, MissingWitnessValueError,
)
from .fieldla import to_signed, twos_complement, from_twos_complement
from .values import Scalar, Sequence, Text, Record, ValueTree

# witness index -> field element
WitnessMap = Dict[int, int]

@dataclass(frozen=True)
class AbiType:
    kind: str
    sign: Optional[str] = None                           # integer
    width: Optional[int] = None                          # integer
    length: Optional[int] = None                         # array, string
    elem: Optional["AbiType"] = None                     # array
    fields: Tuple[Tuple[str, "AbiType"], ...] = ()       # struct
    items: Tuple["AbiType", ...] = ()                    # tuple
    path: Optional[str] = None                           # struct

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "AbiType":
        kind = obj["kind"]
        if kind in ("field", "boolean"):
            return AbiType(kind)
        if kind == "integer":
            sign = obj["sign"]
            if sign not in ("signed", "unsigned"):
                raise ValueError(f"unknown integer sign {sign!r}")
            return AbiType(kind, sign=sign, width=int(obj["width"]))
        if kind == "array":
            return AbiType(kind, length=int(obj["length"]), elem=AbiType.from_json(obj["type"]))
        if kind == "string":
            return AbiType(kind, length=int(obj["length"]))
        if kind == "struct":
            fields = tuple((f["name"], AbiType.from_json(f["type"])) for f in obj["fields"])
            return AbiType(kind, fields=fields, path=obj.get("path"))
        if kind == "tuple":
            return AbiType(kind, items=tuple(AbiType.from_json(t) for t in obj["fields"]))
        raise ValueError(f"unknown ABI type kind {kind!r}")

    def to_json(self) -> Dict[str, Any]:
        if self.kind == "integer":
            return {"kind": self.kind, "sign": self.sign, "width": self.width}
        if self.kind == "array":
            return {"kind": self.kind, "length": self.length, "type": self.elem.to_json()}
        if self.kind == "string":
            return {"kind": self.kind, "length": self.length}
        if self.kind == "struct":
            return {"kind": self.kind, "path": self.path,
                    "fields": [{"name": n, "type": t.to_json()} for n, t in self.fields]}
        if self.kind == "tuple":
            return {"kind": self.kind, "fields": [t.to_json() for t in self.items]}
        return {"kind": self.kind}

    def field_count(self) -> int:
        """Number of witnesses a value of this type occupies once flattened."""
        if self.kind == "array":
            return self.length * self.elem.field_count()
        if self.kind == "string":
            return self.length
        if self.kind == "struct":
            return sum(t.field_count() for _, t in self.fields)
        if self.kind == "tuple":
            return sum(t.field_count() for t in self.items)
        return 1

    def describe(self) -> str:
        if self.kind == "integer":
            return f"{'i' if self.sign == 'signed' else 'u'}{self.width}"
        if self.kind == "boolean":
            return "bool"
        if self.kind == "array":
            return f"[{self.elem.describe()}; {self.length}]"
        if self.kind == "string":
            return f"str<{self.length}>"
        if self.kind == "struct":
            inner = ", ".join(f"{n}: {t.describe()}" for n, t in self.fields)
            return f"{self.path or 'struct'} {{ {inner} }}"
        if self.kind == "tuple":
            return "(" + ", ".join(t.describe() for t in self.items) + ")"
        return "Field"

@dataclass(frozen=True)
class AbiParameter:
    name: str
    typ: AbiType
    visibility: str = "private"

@dataclass(frozen=True)
class AbiReturnType:
    abi_type: AbiType
    visibility: str = "public"

def _describe_value(v: ValueTree) -> str:
    if isinstance(v, Scalar):
        return "a scalar"
    if isinstance(v, Sequence):
        return f"a sequence of {len(v.items)}"
    if isinstance(v, Text):
        return f"text of {len(v.text.encode('utf-8'))} bytes"
    if isinstance(v, Record):
        return "a record {" + ", ".join(sorted(v.fields)) + "}"
    return type(v).__name__

def encode_value(v: ValueTree, typ: AbiType, path: str) -> List[int]:
    """Flatten one value against its declared type; struct fields are matched by name."""
    if typ.kind in ("field", "boolean", "integer"):
        if not isinstance(v, Scalar):
            raise TypeMismatchError(path, typ.describe(), _describe_value(v))
        x = v.value
        if typ.kind == "boolean" and x not in (0, 1):
            raise InputOutsideRangeError(path, x, "bool")
        if typ.kind == "integer":
            if typ.sign == "unsigned":
                if x >= 1 << typ.width:
                    raise InputOutsideRangeError(path, x, typ.describe())
            else:
                s = to_signed(x)
                if not -(1 << (typ.width - 1)) <= s < 1 << (typ.width - 1):
                    raise InputOutsideRangeError(path, s, typ.describe())
                x = twos_complement(s, typ.width)
        return [x]
    if typ.kind == "string":
        if not isinstance(v, Text):
            raise TypeMismatchError(path, typ.describe(), _describe_value(v))
        raw = v.text.encode("utf-8")
        if len(raw) != typ.length:
            raise TypeMismatchError(path, typ.describe(), _describe_value(v))
        return list(raw)
    if typ.kind in ("array", "tuple"):
        if not isinstance(v, Sequence):
            raise TypeMismatchError(path, typ.describe(), _describe_value(v))
        elem_types = [typ.elem] * typ.length if typ.kind == "array" else list(typ.items)
        if len(v.items) != len(elem_types):
            raise TypeMismatchError(path, typ.describe(), _describe_value(v))
        out: List[int] = []
        for i, (item, t) in enumerate(zip(v.items, elem_types)):
            out.extend(encode_value(item, t, f"{path}[{i}]"))
        return out
    if typ.kind == "struct":
        if not isinstance(v, Record) or set(v.fields) != {n for n, _ in typ.fields}:
            raise TypeMismatchError(path, typ.describe(), _describe_value(v))
        out = []
        for name, t in typ.fields:
            out.extend(encode_value(v.fields[name], t, f"{path}.{name}"))
        return out
    raise AbiError(f"unknown ABI type kind {typ.kind!r} at `{path}`")

def decode_value(it: Iterator[int], typ: AbiType, path: str) -> ValueTree:
    if typ.kind in ("field", "boolean"):
        return Scalar(next(it))
    if typ.kind == "integer":
        x = next(it)
        if typ.sign == "signed" and x < 1 << typ.width:
            return Scalar(from_twos_complement(x, typ.width))
        return Scalar(x)
    if typ.kind == "string":
        raw = [next(it) for _ in range(typ.length)]
        if any(b > 0xFF for b in raw):
            raise AbiError(f"`{path}` is not a byte string")
        try:
            return Text(bytes(raw).decode("utf-8"))
        except UnicodeDecodeError as err:
            raise AbiError(f"`{path}` is not valid UTF-8: {err}") from err
    if typ.kind == "array":
        return Sequence(tuple(decode_value(it, typ.elem, f"{path}[{i}]") for i in range(typ.length)))
    if typ.kind == "tuple":
        return Sequence(tuple(decode_value(it, t, f"{path}[{i}]") for i, t in enumerate(typ.items)))
    if typ.kind == "struct":
        return Record({name: decode_value(it, t, f"{path}.{name}") for name, t in typ.fields})
    raise AbiError(f"unknown ABI type kind {typ.kind!r} at `{path}`")

@dataclass
class Abi:
    """
    A function's interface: ordered parameters, optional return type and the
    assertion payload types (selector -> {"error_kind": ..., ...}).

    Parameters occupy witnesses 0..n-1 in declaration order; the return value
    follows directly after them.
    """
    parameters: List[AbiParameter] = field(default_factory=list)
    return_type: Optional[AbiReturnType] = None
    error_types: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @staticmethod
    def from_json(obj: Dict[str, Any]) -> "Abi":
        params = [AbiParameter(p["name"], AbiType.from_json(p["type"]), p.get("visibility", "private"))
                  for p in obj.get("parameters", [])]
        rt = obj.get("return_type")
        ret = AbiReturnType(AbiType.from_json(rt["abi_type"]), rt.get("visibility", "public")) if rt else None
        error_types = {str(k): v for k, v in (obj.get("error_types") or {}).items()}
        for selector, et in error_types.items():
            if not isinstance(et, dict):
                raise ValueError(f"error type {selector!r} must be an object")
        return Abi(params, ret, error_types)

    def to_json(self) -> Dict[str, Any]:
        return {
            "parameters": [{"name": p.name, "type": p.typ.to_json(), "visibility": p.visibility}
                           for p in self.parameters],
            "return_type": ({"abi_type": self.return_type.abi_type.to_json(),
                             "visibility": self.return_type.visibility} if self.return_type else None),
            "error_types": dict(self.error_types),
        }

    def field_count(self) -> int:
        return sum(p.typ.field_count() for p in self.parameters)

    def encode(self, input_map: Mapping[str, ValueTree]) -> WitnessMap:
        declared = [p.name for p in self.parameters]
        extra = sorted(set(input_map) - set(declared))
        if extra:
            raise UnexpectedParamsError(extra)
        witness: WitnessMap = {}
        pointer = 0
        for p in self.parameters:
            if p.name not in input_map:
                raise MissingParamError(p.name)
            for x in encode_value(input_map[p.name], p.typ, p.name):
                witness[pointer] = x
                pointer += 1
        return witness

    def decode(self, witness: Mapping[int, int]) -> Tuple[Dict[str, ValueTree], Optional[ValueTree]]:
        inputs: Dict[str, ValueTree] = {}
        pointer = 0
        for p in self.parameters:
            n = p.typ.field_count()
            vals = []
            for i in range(pointer, pointer + n):
                if i not in witness:
                    raise MissingWitnessValueError(p.name, i)
                vals.append(witness[i])
            pointer += n
            inputs[p.name] = decode_value(iter(vals), p.typ, p.name)

        if self.return_type is None:
            return inputs, None
        idx = range(pointer, pointer + self.return_type.abi_type.field_count())
        if not all(i in witness for i in idx):
            return inputs, None
        ret = decode_value(iter([witness[i] for i in idx]), self.return_type.abi_type, "return")
        return inputs, ret

    def error_message(self, selector: Optional[str]) -> Optional[str]:
        """Static message for an assertion payload selector, if it has one."""
        if selector is None:
            return None
        et = self.error_types.get(str(selector))
        if et and et.get("error_kind") == "string":
            return et.get("string")
        return None
